"""Raw lead records, lead classification enums, and mapped deal fields."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    """Listing platform a lead originates from."""

    BAYUT = "bayut"
    DUBIZZLE = "dubizzle"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class LeadType(str, Enum):
    """Lead type; values are the `type` query parameter of the leads API."""

    EMAIL = "leads"
    WHATSAPP = "whatsapp_leads"
    CALL = "call_logs"

    @property
    def channel(self) -> str:
        """Channel key used in code tables: email | whatsapp | call."""
        return _CHANNELS[self]

    @property
    def label(self) -> str:
        """Channel name as shown in deal titles."""
        return _LABELS[self]


_CHANNELS = {
    LeadType.EMAIL: "email",
    LeadType.WHATSAPP: "whatsapp",
    LeadType.CALL: "call",
}

_LABELS = {
    LeadType.EMAIL: "Email",
    LeadType.WHATSAPP: "WhatsApp",
    LeadType.CALL: "Call",
}


class RawLead(BaseModel):
    """
    Lead object as returned by a platform's leads API.
    Field names differ per lead type; everything but lead_id may be missing.
    """

    model_config = ConfigDict(extra="allow")

    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def lead_id(self) -> Optional[str]:
        """Idempotency key, normalized to str. None when absent or blank."""
        value = self.data.get("lead_id")
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def get(self, key: str, default: Any = None) -> Any:
        value = self.data.get(key)
        return default if value is None else value

    def text(self, key: str) -> Optional[str]:
        """String value of a top-level field; None for missing or blank."""
        value = self.data.get(key)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @property
    def detail(self) -> dict[str, Any]:
        """Nested `detail` object of whatsapp leads (empty dict if absent)."""
        detail = self.data.get("detail")
        return detail if isinstance(detail, dict) else {}


class MappedLead(BaseModel):
    """Deal field set produced for one lead, keyed by CRM field code."""

    lead_id: str
    platform: Platform
    lead_type: LeadType
    fields: dict[str, Any] = Field(default_factory=dict)
    assigned_user_id: int
    source_code: str
