"""CRM clients."""

from lead_ingest.crm.base import CrmClient
from lead_ingest.crm.bitrix import BitrixClient

__all__ = ["BitrixClient", "CrmClient"]
