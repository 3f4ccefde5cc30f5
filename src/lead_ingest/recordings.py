"""Call recording transfer: download audio and attach it to the deal's call."""

import base64
import logging
import uuid
from typing import Any, Optional

import httpx

from lead_ingest.crm.base import CrmClient
from lead_ingest.errors import CrmOperationError
from lead_ingest.mapping.parsers import duration_to_seconds
from lead_ingest.models.lead import MappedLead, RawLead

logger = logging.getLogger(__name__)

# Platforms send the literal string "None" when a call has no recording
_NO_RECORDING = {"", "none"}

CALL_TYPE_INCOMING = 2
CALL_STATUS_SUCCESS = 200


def has_recording(url: Optional[str]) -> bool:
    """True when a call log's recording URL points at an actual file."""
    if url is None:
        return False
    return str(url).strip().lower() not in _NO_RECORDING


def download_recording(
    url: str,
    *,
    client: Optional[httpx.Client] = None,
) -> tuple[Optional[bytes], Optional[str]]:
    """
    Download recording bytes. Returns (content, error_message).
    On success, error_message is None.
    """
    client = client or httpx.Client(timeout=60.0, follow_redirects=True)
    try:
        resp = client.get(url)
        resp.raise_for_status()
        return (resp.content, None)
    except httpx.HTTPStatusError as e:
        return (None, f"HTTP {e.response.status_code}")
    except httpx.RequestError as e:
        return (None, str(e))


def recording_filename(lead_id: str) -> str:
    return f"{lead_id}|call{uuid.uuid4().hex[:13]}.mp3"


class CallRecordingHandler:
    """
    Registers a finished external call on a deal and attaches its recording.
    Failures are logged and reported as False; the deal is never touched.
    """

    def __init__(self, crm: CrmClient, *, client: Optional[httpx.Client] = None):
        self._crm = crm
        self._client = client or httpx.Client(timeout=60.0, follow_redirects=True)

    def handle(self, lead: RawLead, mapped: MappedLead, deal_id: int) -> bool:
        url = lead.text("call_recordingurl")
        if not has_recording(url):
            return False

        content, error = download_recording(url, client=self._client)
        if content is None:
            logger.warning(
                "Recording download failed for lead %s (%s): %s", mapped.lead_id, url, error
            )
            return False

        try:
            call_id = self._crm.register_call(self._call_fields(lead, mapped, deal_id))
            if not call_id:
                logger.warning("No call id for lead %s (deal %s); recording not attached", mapped.lead_id, deal_id)
                return False

            duration = duration_to_seconds(lead.text("call_connected_duration"))
            self._crm.finish_call(
                {
                    "CALL_ID": call_id,
                    "USER_ID": mapped.assigned_user_id,
                    "DURATION": duration,
                    "STATUS_CODE": CALL_STATUS_SUCCESS,
                }
            )
            self._crm.attach_recording(
                {
                    "CALL_ID": call_id,
                    "FILENAME": recording_filename(mapped.lead_id),
                    "FILE_CONTENT": base64.b64encode(content).decode("ascii"),
                }
            )
        except (CrmOperationError, ValueError) as e:
            logger.warning(
                "Recording transfer failed for lead %s (deal %s): %s", mapped.lead_id, deal_id, e
            )
            return False

        logger.info("Attached recording to deal %s (lead %s, call %s)", deal_id, mapped.lead_id, call_id)
        return True

    @staticmethod
    def _call_fields(lead: RawLead, mapped: MappedLead, deal_id: int) -> dict[str, Any]:
        receiver = lead.text("receiver_number") or ""
        started = " ".join(p for p in (lead.text("date"), lead.text("time")) if p)
        return {
            "USER_PHONE_INNER": receiver,
            "USER_ID": mapped.assigned_user_id,
            "PHONE_NUMBER": lead.text("caller_number") or "",
            "CALL_START_DATE": started,
            "CRM_CREATE": 0,
            "CRM_SOURCE": mapped.source_code,
            "CRM_ENTITY_TYPE": "DEAL",
            "CRM_ENTITY_ID": deal_id,
            "SHOW": 0,
            "TYPE": CALL_TYPE_INCOMING,
            "LINE_NUMBER": f"{mapped.platform.label} {receiver}".strip(),
        }
