"""Source connectors for listing-platform lead APIs."""

from lead_ingest.connectors.fetcher import LeadFetcher

__all__ = ["LeadFetcher"]
