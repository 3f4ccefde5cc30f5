"""Persistent record of processed lead ids."""

from lead_ingest.models.settings import StoreSettings
from lead_ingest.store.base import ProcessedLeadStore
from lead_ingest.store.file_store import FileLeadStore
from lead_ingest.store.sqlite_store import ProcessedLead, SqliteLeadStore


def open_store(settings: StoreSettings) -> ProcessedLeadStore:
    """Build the store backend named in settings."""
    if settings.backend == "sqlite":
        return SqliteLeadStore(settings.path)
    return FileLeadStore(settings.path)


__all__ = [
    "FileLeadStore",
    "ProcessedLead",
    "ProcessedLeadStore",
    "SqliteLeadStore",
    "open_store",
]
