"""Lead fetcher for the Bayut and Dubizzle website-client-leads API.

Both platforms expose the same stats endpoint shape under different base URLs:
    GET {base_url}?type={leads|call_logs|whatsapp_leads}&timestamp={since}
with a bearer token. The body is a JSON array of lead objects, or an empty body
when there is nothing new.
"""

import json
import logging
from typing import Any, Mapping, Optional

import httpx

from lead_ingest.errors import DecodeError, TransportError
from lead_ingest.models.lead import LeadType, Platform, RawLead
from lead_ingest.models.settings import DEFAULT_PLATFORMS

logger = logging.getLogger(__name__)


class LeadFetcher:
    """
    Fetches raw lead batches per (platform, lead type).
    A failed fetch degrades to an empty batch so other pairs still run.
    """

    DEFAULT_HEADERS = {
        "User-Agent": "lead-ingest/0.1",
        "Accept": "application/json",
        "Content-Type": "application/json",
    }

    def __init__(
        self,
        base_urls: Optional[Mapping[Platform, str]] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self._base_urls: dict[Platform, str] = {
            Platform(name): cfg["base_url"] for name, cfg in DEFAULT_PLATFORMS.items()
        }
        if base_urls:
            self._base_urls.update(base_urls)
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers=self.DEFAULT_HEADERS,
        )

    def url_for(self, platform: Platform) -> str:
        return self._base_urls[platform]

    def fetch_raw(
        self,
        platform: Platform,
        lead_type: LeadType,
        since: str,
        auth_token: str,
    ) -> Any:
        """
        Fetch and decode one batch. Returns the decoded JSON (None for empty body).
        Raises TransportError on request/HTTP failure, DecodeError on bad JSON.
        """
        params = {"type": lead_type.value, "timestamp": since}
        headers = {"Authorization": f"Bearer {auth_token}"}
        try:
            resp = self._client.get(self.url_for(platform), params=params, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"HTTP {e.response.status_code} from {platform.value} ({lead_type.value})"
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"Request to {platform.value} ({lead_type.value}) failed: {e}") from e

        if not resp.content.strip():
            return None
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Invalid JSON from {platform.value} ({lead_type.value}): {e}") from e

    def fetch(
        self,
        platform: Platform,
        lead_type: LeadType,
        since: str,
        auth_token: str,
    ) -> list[RawLead]:
        """Fetch one batch as RawLead list; any failure is logged and yields []."""
        try:
            payload = self.fetch_raw(platform, lead_type, since, auth_token)
        except (TransportError, DecodeError) as e:
            logger.warning("Fetch failed for %s %s: %s", platform.value, lead_type.value, e)
            return []

        if payload is None:
            return []
        if not isinstance(payload, list):
            logger.warning(
                "Unexpected %s payload for %s %s; treating as empty: %s",
                type(payload).__name__,
                platform.value,
                lead_type.value,
                payload,
            )
            return []

        leads: list[RawLead] = []
        for item in payload:
            if isinstance(item, dict):
                leads.append(RawLead(data=item))
            else:
                logger.warning("Skipping non-object lead in %s %s: %r", platform.value, lead_type.value, item)
        return leads
