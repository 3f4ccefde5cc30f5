"""Lead ingestion from listing platforms into CRM deals."""

__version__ = "0.1.0"
