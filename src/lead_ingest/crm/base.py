"""Abstract CRM client used by the pipeline."""

from abc import ABC, abstractmethod
from typing import Any, Optional


class CrmClient(ABC):
    """
    Operations the ingestion pipeline needs from the CRM.
    Implementations raise CrmOperationError when a call fails; a lookup that
    simply finds nothing returns None.
    """

    @abstractmethod
    def create_deal(self, fields: dict[str, Any]) -> int:
        """Create a deal and return its id."""
        pass

    @abstractmethod
    def lookup_user(self, filter: dict[str, Any]) -> Optional[int]:
        """Return the id of the first user matching filter, or None."""
        pass

    @abstractmethod
    def lookup_listing(
        self,
        filter: dict[str, Any],
        select: Optional[list[str]] = None,
    ) -> Optional[dict[str, Any]]:
        """Return the first listing item matching filter, or None."""
        pass

    @abstractmethod
    def register_call(self, fields: dict[str, Any]) -> Optional[str]:
        """Register an external call; returns its CALL_ID when the CRM issues one."""
        pass

    @abstractmethod
    def finish_call(self, fields: dict[str, Any]) -> Any:
        pass

    @abstractmethod
    def attach_recording(self, fields: dict[str, Any]) -> Any:
        pass
