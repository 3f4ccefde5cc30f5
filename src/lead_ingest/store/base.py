"""Processed-lead store interface."""

from abc import ABC, abstractmethod
from typing import Optional


class ProcessedLeadStore(ABC):
    """
    Append-only set of lead ids already turned into deals.
    Durable state is read once (load); appends update both the durable record
    and the in-memory set, so contains() sees them without re-reading.
    """

    def __init__(self) -> None:
        self._ids: Optional[set[str]] = None

    @abstractmethod
    def _read_all(self) -> set[str]:
        """Read every persisted lead id."""
        pass

    @abstractmethod
    def _write(
        self,
        lead_id: str,
        platform: Optional[str],
        lead_type: Optional[str],
        deal_id: Optional[int],
    ) -> None:
        """Durably record one lead id."""
        pass

    def load(self) -> set[str]:
        """Load persisted ids (once per instance). Empty on first run."""
        if self._ids is None:
            self._ids = self._read_all()
        return set(self._ids)

    def contains(self, lead_id: str) -> bool:
        if self._ids is None:
            self.load()
        return str(lead_id) in self._ids

    def append(
        self,
        lead_id: str,
        *,
        platform: Optional[str] = None,
        lead_type: Optional[str] = None,
        deal_id: Optional[int] = None,
    ) -> None:
        """Record a processed lead id."""
        if self._ids is None:
            self.load()
        lead_id = str(lead_id)
        self._write(lead_id, platform, lead_type, deal_id)
        self._ids.add(lead_id)

    def __len__(self) -> int:
        if self._ids is None:
            self.load()
        return len(self._ids)
