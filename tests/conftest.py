"""Pytest fixtures for lead-ingest tests."""

from typing import Any, Callable, Optional

import pytest

from lead_ingest.crm.base import CrmClient
from lead_ingest.errors import CrmOperationError
from lead_ingest.models.lead import RawLead
from lead_ingest.models.settings import Settings
from lead_ingest.owners import OwnerResolver

DEFAULT_OWNER = 1


class FakeCrm(CrmClient):
    """In-memory CrmClient that records every call."""

    def __init__(
        self,
        *,
        find_user: Optional[Callable[[dict], Optional[int]]] = None,
        listing: Optional[dict] = None,
        call_id: Optional[str] = "CALL-1",
        fail_create_for: Optional[set[str]] = None,
    ):
        self._find_user = find_user or (lambda f: None)
        self.listing = listing
        self.call_id = call_id
        self.fail_create_for = fail_create_for or set()
        self.deals: list[dict[str, Any]] = []
        self.user_queries: list[dict[str, Any]] = []
        self.listing_queries: list[dict[str, Any]] = []
        self.registered: list[dict[str, Any]] = []
        self.finished: list[dict[str, Any]] = []
        self.attached: list[dict[str, Any]] = []

    def create_deal(self, fields: dict[str, Any]) -> int:
        title = str(fields.get("TITLE", ""))
        if any(marker in title for marker in self.fail_create_for):
            raise CrmOperationError("crm.deal.add", "simulated failure")
        self.deals.append(fields)
        return 1000 + len(self.deals)

    def lookup_user(self, filter: dict[str, Any]) -> Optional[int]:
        self.user_queries.append(filter)
        return self._find_user(filter)

    def lookup_listing(self, filter: dict[str, Any], select: Optional[list[str]] = None) -> Optional[dict[str, Any]]:
        self.listing_queries.append(filter)
        return self.listing

    def register_call(self, fields: dict[str, Any]) -> Optional[str]:
        self.registered.append(fields)
        return self.call_id

    def finish_call(self, fields: dict[str, Any]) -> Any:
        self.finished.append(fields)
        return True

    def attach_recording(self, fields: dict[str, Any]) -> Any:
        self.attached.append(fields)
        return True


@pytest.fixture
def settings() -> Settings:
    """Settings with deterministic ids and codes."""
    return Settings(
        auth_token="test-token",
        since="2025-01-01 00:00:00",
        default_owner_id=DEFAULT_OWNER,
        category_id=7,
        platforms={
            "bayut": {"source_id": "SRC_BAYUT"},
            "dubizzle": {"source_id": "SRC_DUBIZZLE"},
        },
    )


@pytest.fixture
def crm() -> FakeCrm:
    return FakeCrm()


@pytest.fixture
def owners(crm: FakeCrm) -> OwnerResolver:
    return OwnerResolver(crm, default_user_id=DEFAULT_OWNER, excluded_user_ids=[3, 268, 1945])


@pytest.fixture
def email_lead_data() -> dict[str, Any]:
    """Email enquiry as returned with type=leads."""
    return {
        "lead_id": 50101,
        "client_name": "Sara Khan",
        "client_email": "sara@example.com",
        "client_phone": "+971500000001",
        "message": "Is this still available?",
        "property_reference": "REF-123",
        "property_id": 8812345,
        "current_type": "Apartment",
        "date_time": "2025-02-03 10:15:00",
    }


@pytest.fixture
def whatsapp_lead_data() -> dict[str, Any]:
    """Bayut whatsapp lead as returned with type=whatsapp_leads."""
    return {
        "lead_id": "wa-777",
        "listing_reference": "REF-456",
        "listing_id": 9900112,
        "date_time": "2025-02-03 11:00:00",
        "detail": {
            "actor_name": "Omar Ali",
            "cell": "+971500000002",
            "message": "Hi, I'd like to view this villa",
        },
    }


@pytest.fixture
def dubizzle_whatsapp_lead_data(whatsapp_lead_data: dict[str, Any]) -> dict[str, Any]:
    data = dict(whatsapp_lead_data)
    data["lead_id"] = "wa-888"
    data["detail"] = {
        "actor_name": "Omar Ali",
        "cell": "+971500000002",
        "message": "Hello there Link: https://dubizzle.test/listing/42",
    }
    return data


@pytest.fixture
def call_lead_data() -> dict[str, Any]:
    """Call log as returned with type=call_logs."""
    return {
        "lead_id": "call-321",
        "caller_number": "+971500000003",
        "receiver_number": "+971400000009",
        "call_status": "Answered",
        "call_total_duration": "0:03:10",
        "call_connected_duration": "0:02:45",
        "call_recordingurl": "https://recordings.test/call-321.mp3",
        "listing_reference": "REF-789",
        "date": "2025-02-03",
        "time": "12:30:00",
    }


@pytest.fixture
def email_lead(email_lead_data: dict[str, Any]) -> RawLead:
    return RawLead(data=email_lead_data)


@pytest.fixture
def call_lead(call_lead_data: dict[str, Any]) -> RawLead:
    return RawLead(data=call_lead_data)
