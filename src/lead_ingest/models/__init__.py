"""Data models for leads, mapped deals and settings."""

from lead_ingest.models.lead import LeadType, MappedLead, Platform, RawLead
from lead_ingest.models.settings import OwnerPolicy, Settings

__all__ = ["LeadType", "MappedLead", "OwnerPolicy", "Platform", "RawLead", "Settings"]
