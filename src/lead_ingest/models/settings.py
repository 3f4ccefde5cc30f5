"""Runtime settings: CRM field codes, lookup tables, platforms and storage."""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from lead_ingest.models.lead import LeadType, Platform

ENV_AUTH_TOKEN = "LEAD_INGEST_AUTH_TOKEN"
ENV_CRM_WEBHOOK_URL = "LEAD_INGEST_CRM_WEBHOOK_URL"
ENV_SINCE = "LEAD_INGEST_SINCE"


class OwnerPolicy(str, Enum):
    """What to do when a call's phone-based owner lookup returns the placeholder user."""

    KEEP = "keep"
    REPLACE_PLACEHOLDER = "replace_placeholder"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class CodeTables(_Frozen):
    """Enumeration codes written into deal custom fields."""

    collection_source: dict[str, str] = Field(
        default_factory=lambda: {
            "bayut_call": "41293",
            "bayut_email": "41294",
            "bayut_whatsapp": "41295",
            "dubizzle_call": "41296",
            "dubizzle_email": "41297",
            "dubizzle_whatsapp": "41298",
        },
        description="Keyed by '{platform}_{channel}'",
    )
    mode_of_enquiry: dict[str, str] = Field(
        default_factory=lambda: {
            "whatsapp": "41290",
            "email": "41291",
            "call": "41292",
        },
        description="Keyed by channel",
    )
    property_type: dict[str, str] = Field(
        default_factory=lambda: {
            "Apartment": "41300",
            "Villa": "41301",
            "Townhouse": "41302",
            "Office": "41303",
            "Plot": "41304",
            "Building": "41305",
            "Half Floor": "41306",
            "Full Floor": "41307",
        },
        description="Free-text property type -> code",
    )

    def collection_source_for(self, platform: Platform, lead_type: LeadType) -> Optional[str]:
        return self.collection_source.get(f"{platform.value}_{lead_type.channel}")

    def mode_of_enquiry_for(self, lead_type: LeadType) -> Optional[str]:
        return self.mode_of_enquiry.get(lead_type.channel)

    def property_type_code(self, value: Optional[str]) -> Optional[str]:
        """Code for a property type; None when absent or unrecognized."""
        if not value or not str(value).strip():
            return None
        value = str(value).strip()
        if value in self.property_type:
            return self.property_type[value]
        lowered = value.lower()
        for name, code in self.property_type.items():
            if name.lower() == lowered:
                return code
        return None


class DealFieldKeys(_Frozen):
    """CRM deal field codes the mapping rules write to."""

    title: str = "TITLE"
    category: str = "CATEGORY_ID"
    assigned: str = "ASSIGNED_BY_ID"
    source: str = "SOURCE_ID"
    comments: str = "COMMENTS"
    contact_name: str = "UF_CRM_1701770331658"
    email: str = "UF_CRM_65732038DAD70"
    phone: str = "UF_CRM_PHONE_WORK"
    whatsapp_phone: str = "UF_CRM_62A5B8743F62A"
    mode_of_enquiry: str = "ufCrm43_1738827952373"
    collection_source: str = "ufCrm43_1738828095478"
    property_type: str = "ufCrm43_1738828386601"
    enquiry_date: str = "ufCrm43_1738828518085"
    call_status: str = "ufCrm43_1738828617892"


class ListingFields(_Frozen):
    """Field codes of the listings entity used for owner resolution."""

    reference: str = "ufCrm37ReferenceNumber"
    owner_id: str = "ufCrm37OwnerId"
    owner_name: str = "ufCrm37ListingOwner"
    agent_email: str = "ufCrm37AgentEmail"


class PlatformSettings(_Frozen):
    """Per-platform API endpoint, CRM source code and target field codes."""

    base_url: str
    source_id: str
    reference_field: str
    property_link_field: str
    call_reference_field: str = "UF_CRM_6447D61518434"


DEFAULT_PLATFORMS: dict[str, dict[str, str]] = {
    "bayut": {
        "base_url": "https://www.bayut.com/api-v7/stats/website-client-leads",
        "source_id": "BAYUT",
        "reference_field": "ufCrm43_1738828416520",
        "property_link_field": "UF_CRM_6447D614AB1DF",
    },
    "dubizzle": {
        "base_url": "https://dubizzle.com/profolio/api-v7/stats/website-client-leads",
        "source_id": "DUBIZZLE",
        "reference_field": "UF_CRM_6447D61518434",
        "property_link_field": "UF_CRM_660FC42E05A3E",
    },
}


class StoreSettings(_Frozen):
    backend: Literal["file", "sqlite"] = "file"
    path: Path = Path("processed_leads.txt")


class CrmSettings(_Frozen):
    webhook_url: str = ""
    listing_entity_type_id: int = 1084


class Settings(_Frozen):
    """Process-wide settings, usually loaded from YAML."""

    auth_token: str = ""
    since: str = Field(default="", description="Lower bound passed as `timestamp` to the leads API")

    default_owner_id: int = 1
    category_id: int = 0
    excluded_user_ids: list[int] = Field(default_factory=lambda: [3, 268, 1945])
    unassigned_owner_id: Optional[int] = None
    owner_policy: OwnerPolicy = OwnerPolicy.KEEP

    property_link_template: str = "https://www.bayut.com/property/details-{property_id}.html"
    request_timeout: float = 30.0

    store: StoreSettings = Field(default_factory=StoreSettings)
    crm: CrmSettings = Field(default_factory=CrmSettings)
    platforms: dict[Platform, PlatformSettings] = Field(
        default_factory=lambda: {Platform(k): PlatformSettings(**v) for k, v in DEFAULT_PLATFORMS.items()}
    )
    codes: CodeTables = Field(default_factory=CodeTables)
    field_keys: DealFieldKeys = Field(default_factory=DealFieldKeys)
    listing_fields: ListingFields = Field(default_factory=ListingFields)

    @field_validator("platforms", mode="before")
    @classmethod
    def _merge_platform_defaults(cls, value: Any) -> Any:
        """Partial platform entries are layered over the built-in defaults."""
        if not isinstance(value, Mapping):
            return value
        merged: dict[str, Any] = {k: dict(v) for k, v in DEFAULT_PLATFORMS.items()}
        for key, override in value.items():
            name = key.value if isinstance(key, Platform) else str(key).lower()
            if isinstance(override, PlatformSettings):
                override = override.model_dump()
            merged.setdefault(name, {}).update(override or {})
        return merged

    def platform(self, platform: Platform) -> PlatformSettings:
        return self.platforms[platform]

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file. Missing keys fall back to defaults."""
        data = yaml.safe_load(Path(path).read_text()) or {}
        return cls.model_validate(data)

    def with_env_overrides(self, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Return a copy with secrets and `since` taken from the environment when set."""
        env = os.environ if environ is None else environ
        update: dict[str, Any] = {}
        if env.get(ENV_AUTH_TOKEN):
            update["auth_token"] = env[ENV_AUTH_TOKEN]
        if env.get(ENV_SINCE):
            update["since"] = env[ENV_SINCE]
        if env.get(ENV_CRM_WEBHOOK_URL):
            update["crm"] = self.crm.model_copy(update={"webhook_url": env[ENV_CRM_WEBHOOK_URL]})
        return self.model_copy(update=update) if update else self
