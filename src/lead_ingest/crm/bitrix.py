"""Bitrix24 inbound-webhook client.

Every REST method is a POST of a JSON body to `{webhook_url}/{method}.json`.
Successful responses carry a `result` key; failures carry `error` and
`error_description`, sometimes with a 2xx status.
"""

import json
import logging
from typing import Any, Optional

import httpx

from lead_ingest.crm.base import CrmClient
from lead_ingest.errors import CrmOperationError

logger = logging.getLogger(__name__)


class BitrixClient(CrmClient):
    """CrmClient backed by a Bitrix24 inbound webhook."""

    def __init__(
        self,
        webhook_url: str,
        *,
        listing_entity_type_id: int = 1084,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        if not webhook_url:
            raise ValueError("Bitrix webhook URL is required")
        self._webhook_url = webhook_url.rstrip("/")
        self._listing_entity_type_id = listing_entity_type_id
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def call(self, method: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Invoke a REST method and return its `result` value."""
        url = f"{self._webhook_url}/{method}.json"
        try:
            resp = self._client.post(url, json=params or {})
        except httpx.RequestError as e:
            raise CrmOperationError(method, str(e)) from e

        try:
            payload = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            payload = None

        if isinstance(payload, dict) and payload.get("error"):
            raise CrmOperationError(
                method,
                payload.get("error_description") or str(payload["error"]),
            )
        if resp.is_error:
            raise CrmOperationError(method, f"HTTP {resp.status_code}")
        if not isinstance(payload, dict):
            raise CrmOperationError(method, "response is not a JSON object")
        return payload.get("result")

    def create_deal(self, fields: dict[str, Any]) -> int:
        result = self.call("crm.deal.add", {"fields": fields})
        try:
            return int(result)
        except (TypeError, ValueError):
            raise CrmOperationError("crm.deal.add", f"unexpected result: {result!r}")

    def lookup_user(self, filter: dict[str, Any]) -> Optional[int]:
        result = self.call("user.get", {"filter": filter})
        if not result or not isinstance(result, list):
            return None
        user_id = result[0].get("ID") if isinstance(result[0], dict) else None
        if not user_id:
            return None
        try:
            return int(user_id)
        except (TypeError, ValueError):
            raise CrmOperationError("user.get", f"unexpected user ID: {user_id!r}")

    def lookup_listing(
        self,
        filter: dict[str, Any],
        select: Optional[list[str]] = None,
    ) -> Optional[dict[str, Any]]:
        params: dict[str, Any] = {
            "entityTypeId": self._listing_entity_type_id,
            "filter": filter,
        }
        if select:
            params["select"] = select
        result = self.call("crm.item.list", params)
        items = (result or {}).get("items") if isinstance(result, dict) else None
        if not items or not isinstance(items, list):
            return None
        return items[0]

    def register_call(self, fields: dict[str, Any]) -> Optional[str]:
        result = self.call("telephony.externalcall.register", fields)
        if isinstance(result, dict) and result.get("CALL_ID"):
            return str(result["CALL_ID"])
        logger.warning("Call registration returned no CALL_ID: %s", result)
        return None

    def finish_call(self, fields: dict[str, Any]) -> Any:
        return self.call("telephony.externalcall.finish", fields)

    def attach_recording(self, fields: dict[str, Any]) -> Any:
        return self.call("telephony.externalcall.attachRecord", fields)
