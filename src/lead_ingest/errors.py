"""Exception types raised across the ingestion pipeline."""

from typing import Optional


class LeadIngestError(Exception):
    """Base exception for lead ingestion."""
    pass


class TransportError(LeadIngestError):
    """HTTP request failed (connection error, timeout or non-2xx status)."""
    pass


class DecodeError(LeadIngestError):
    """Response body could not be decoded as JSON."""
    pass


class ConfigurationError(LeadIngestError):
    """Invalid settings or missing mapping rule."""
    pass


class CrmOperationError(LeadIngestError):
    """A CRM REST method failed or returned an error payload."""

    def __init__(self, method: str, description: Optional[str] = None):
        self.method = method
        self.description = description or "unknown error"
        super().__init__(f"{method} failed: {self.description}")
