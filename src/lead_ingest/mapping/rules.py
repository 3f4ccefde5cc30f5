"""Mapping rules: one function per (platform, lead type) producing deal fields.

Every rule returns an ordered dict keyed by CRM field code. Required keys
(title, category, owner, source, contact name, contact channel, comments,
enquiry mode, collection source) are always present; optional custom fields
are omitted when their value is unknown.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from lead_ingest.models.lead import LeadType, Platform, RawLead
from lead_ingest.models.settings import CodeTables, DealFieldKeys, PlatformSettings, Settings
from lead_ingest.owners import OwnerResolver

from .parsers import format_call_comments, parse_message_and_link, property_link

UNKNOWN = "Unknown"
NO_REFERENCE = "No reference"


@dataclass(frozen=True)
class MappingContext:
    """Everything a rule needs besides the lead itself."""

    platform: Platform
    lead_type: LeadType
    settings: Settings
    owners: OwnerResolver

    @property
    def keys(self) -> DealFieldKeys:
        return self.settings.field_keys

    @property
    def codes(self) -> CodeTables:
        return self.settings.codes

    @property
    def platform_settings(self) -> PlatformSettings:
        return self.settings.platform(self.platform)

    def title(self, subject: str) -> str:
        return f"{self.platform.label} - {self.lead_type.label} - {subject}"

    def owner_for_reference(self, reference: Optional[str]) -> int:
        if reference:
            return self.owners.resolve(reference, "reference")
        return self.owners.default_user_id

    def link_for(self, property_id: Any) -> Optional[str]:
        return property_link(self.settings.property_link_template, property_id)


MappingRule = Callable[[RawLead, MappingContext], dict[str, Any]]


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _deal_fields(
    ctx: MappingContext,
    *,
    subject: str,
    owner_id: int,
    contact_name: str,
    contact: dict[str, Any],
    comments: Optional[str],
    required_extra: Optional[dict[str, Any]] = None,
    reference: Optional[str] = None,
    reference_field: Optional[str] = None,
    link: Optional[str] = None,
    property_type: Optional[str] = None,
    enquiry_date: Optional[str] = None,
) -> dict[str, Any]:
    k = ctx.keys
    fields: dict[str, Any] = {
        k.title: ctx.title(subject),
        k.category: ctx.settings.category_id,
        k.assigned: owner_id,
        k.source: ctx.platform_settings.source_id,
        k.contact_name: contact_name,
    }
    fields.update(contact)
    fields[k.comments] = comments or ""
    fields[k.mode_of_enquiry] = ctx.codes.mode_of_enquiry_for(ctx.lead_type)
    fields[k.collection_source] = ctx.codes.collection_source_for(ctx.platform, ctx.lead_type)
    fields.update(required_extra or {})

    optional = {
        ctx.platform_settings.property_link_field: link,
        k.property_type: property_type,
        reference_field or ctx.platform_settings.reference_field: reference,
        k.enquiry_date: enquiry_date,
    }
    fields.update({key: value for key, value in optional.items() if value is not None})
    return fields


def map_email_lead(lead: RawLead, ctx: MappingContext) -> dict[str, Any]:
    """Email enquiry (API type `leads`); same shape on both platforms."""
    reference = lead.text("property_reference")
    return _deal_fields(
        ctx,
        subject=reference or NO_REFERENCE,
        owner_id=ctx.owner_for_reference(reference),
        contact_name=lead.text("client_name") or UNKNOWN,
        contact={
            ctx.keys.email: lead.text("client_email"),
            ctx.keys.phone: lead.text("client_phone"),
        },
        comments=lead.get("message"),
        reference=reference,
        link=ctx.link_for(lead.get("property_id")),
        property_type=ctx.codes.property_type_code(lead.get("current_type")),
        enquiry_date=lead.text("date_time"),
    )


def _map_whatsapp(
    lead: RawLead,
    ctx: MappingContext,
    *,
    comments: Optional[str],
    link: Optional[str],
) -> dict[str, Any]:
    detail = lead.detail
    reference = lead.text("listing_reference")
    actor_name = _text(detail.get("actor_name"))
    return _deal_fields(
        ctx,
        subject=reference or actor_name or UNKNOWN,
        owner_id=ctx.owner_for_reference(reference),
        contact_name=actor_name or UNKNOWN,
        contact={ctx.keys.whatsapp_phone: _text(detail.get("cell"))},
        comments=comments,
        reference=reference,
        link=link,
        enquiry_date=lead.text("date_time"),
    )


def map_bayut_whatsapp_lead(lead: RawLead, ctx: MappingContext) -> dict[str, Any]:
    """Bayut whatsapp: plain message, link built from listing_id."""
    return _map_whatsapp(
        lead,
        ctx,
        comments=lead.detail.get("message"),
        link=ctx.link_for(lead.get("listing_id")),
    )


def map_dubizzle_whatsapp_lead(lead: RawLead, ctx: MappingContext) -> dict[str, Any]:
    """Dubizzle whatsapp: listing link is embedded at the end of the message."""
    parts = parse_message_and_link(lead.detail.get("message"))
    return _map_whatsapp(lead, ctx, comments=parts.message, link=parts.link)


def map_call_lead(lead: RawLead, ctx: MappingContext) -> dict[str, Any]:
    """Call log; owner falls back from listing reference to the receiving number."""
    reference = lead.text("listing_reference")
    receiver = lead.text("receiver_number")
    if reference:
        owner_id = ctx.owners.resolve(reference, "reference")
    elif receiver:
        owner_id = ctx.owners.resolve_receiver(receiver)
    else:
        owner_id = ctx.owners.default_user_id

    caller = lead.text("caller_number")
    started = " ".join(p for p in (lead.text("date"), lead.text("time")) if p)
    return _deal_fields(
        ctx,
        subject=reference or NO_REFERENCE,
        owner_id=owner_id,
        contact_name=caller or UNKNOWN,
        contact={ctx.keys.phone: caller},
        comments=format_call_comments(lead.data),
        required_extra={ctx.keys.call_status: lead.text("call_status")},
        reference=reference,
        reference_field=ctx.platform_settings.call_reference_field,
        enquiry_date=started or None,
    )


MAPPING_RULES: dict[tuple[Platform, LeadType], MappingRule] = {
    (Platform.BAYUT, LeadType.EMAIL): map_email_lead,
    (Platform.BAYUT, LeadType.WHATSAPP): map_bayut_whatsapp_lead,
    (Platform.BAYUT, LeadType.CALL): map_call_lead,
    (Platform.DUBIZZLE, LeadType.EMAIL): map_email_lead,
    (Platform.DUBIZZLE, LeadType.WHATSAPP): map_dubizzle_whatsapp_lead,
    (Platform.DUBIZZLE, LeadType.CALL): map_call_lead,
}
