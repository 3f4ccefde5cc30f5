"""Pipeline orchestration: fetch every batch, then dedupe → map → create deal → record."""

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Optional

import httpx

from lead_ingest.connectors.fetcher import LeadFetcher
from lead_ingest.crm.base import CrmClient
from lead_ingest.crm.bitrix import BitrixClient
from lead_ingest.errors import ConfigurationError, CrmOperationError
from lead_ingest.mapping.mapper import FieldMapper
from lead_ingest.models.lead import LeadType, Platform, RawLead
from lead_ingest.models.settings import Settings
from lead_ingest.owners import OwnerResolver
from lead_ingest.recordings import CallRecordingHandler, has_recording
from lead_ingest.store import ProcessedLeadStore, open_store

logger = logging.getLogger(__name__)

PLATFORMS: tuple[Platform, ...] = (Platform.BAYUT, Platform.DUBIZZLE)
LEAD_TYPES: tuple[LeadType, ...] = (LeadType.EMAIL, LeadType.CALL, LeadType.WHATSAPP)

CREATED = "created"
DUPLICATE = "duplicate"
FAILED = "failed"


@dataclass
class BatchResult:
    """Counts for one (platform, lead type) batch."""

    platform: str
    lead_type: str
    fetched: int = 0
    created: int = 0
    duplicates: int = 0
    failed: int = 0
    recordings: int = 0
    skipped: bool = False  # no mapping rule


@dataclass
class RunSummary:
    batches: list[BatchResult] = field(default_factory=list)

    def total(self, name: str) -> int:
        return sum(getattr(b, name) for b in self.batches)

    @property
    def created(self) -> int:
        return self.total("created")

    @property
    def duplicates(self) -> int:
        return self.total("duplicates")

    @property
    def failed(self) -> int:
        return self.total("failed")

    def to_dict(self) -> dict:
        return {
            "fetched": self.total("fetched"),
            "created": self.created,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "recordings": self.total("recordings"),
            "batches": [asdict(b) for b in self.batches],
        }


class LeadProcessor:
    """
    Runs one ingestion pass over every platform and lead type.
    A failing lead never stops its batch; a failing batch never stops the run.
    """

    def __init__(
        self,
        *,
        fetcher: LeadFetcher,
        mapper: FieldMapper,
        crm: CrmClient,
        store: ProcessedLeadStore,
        recordings: Optional[CallRecordingHandler] = None,
        since: str = "",
        auth_token: str = "",
    ):
        self._fetcher = fetcher
        self._mapper = mapper
        self._crm = crm
        self._store = store
        self._recordings = recordings
        self._since = since
        self._auth_token = auth_token

    def run(self) -> RunSummary:
        """Fetch all batches, then process them in platform/type order."""
        processed = self._store.load()
        logger.info("Loaded %d processed lead ids", len(processed))

        batches = self.fetch_all()
        summary = RunSummary()
        for platform in PLATFORMS:
            for lead_type in LEAD_TYPES:
                leads = batches.get((platform, lead_type), [])
                result = BatchResult(platform=platform.value, lead_type=lead_type.value, fetched=len(leads))
                if leads:
                    self.process_batch(platform, lead_type, leads, result)
                summary.batches.append(result)

        logger.info(
            "Run finished: %d created, %d duplicates, %d failed",
            summary.created,
            summary.duplicates,
            summary.failed,
        )
        return summary

    def fetch_all(self) -> dict[tuple[Platform, LeadType], list[RawLead]]:
        batches: dict[tuple[Platform, LeadType], list[RawLead]] = {}
        for platform in PLATFORMS:
            for lead_type in LEAD_TYPES:
                leads = self._fetcher.fetch(platform, lead_type, self._since, self._auth_token)
                if not isinstance(leads, list):
                    leads = []
                batches[(platform, lead_type)] = leads
                logger.info(
                    "%s %s: %d",
                    platform.label,
                    lead_type.value.replace("_", " ").capitalize(),
                    len(leads),
                )
                if leads and logger.isEnabledFor(logging.DEBUG):
                    logger.debug(
                        "%s %s payload: %s",
                        platform.value,
                        lead_type.value,
                        json.dumps([lead.data for lead in leads], indent=2, default=str),
                    )
        return batches

    def process_batch(
        self,
        platform: Platform,
        lead_type: LeadType,
        leads: list[RawLead],
        result: Optional[BatchResult] = None,
    ) -> BatchResult:
        result = result or BatchResult(platform=platform.value, lead_type=lead_type.value, fetched=len(leads))
        if not self._mapper.has_rule(platform, lead_type):
            logger.error(
                "No mapping rule for %s/%s; skipping %d leads",
                platform.value,
                lead_type.value,
                len(leads),
            )
            result.skipped = True
            return result

        for lead in leads:
            outcome, recorded = self.process_lead(lead, platform, lead_type)
            if outcome == CREATED:
                result.created += 1
            elif outcome == DUPLICATE:
                result.duplicates += 1
            else:
                result.failed += 1
            if recorded:
                result.recordings += 1
        return result

    def process_lead(self, lead: RawLead, platform: Platform, lead_type: LeadType) -> tuple[str, bool]:
        """Process one lead. Returns (outcome, recording_attached)."""
        lead_id = lead.lead_id
        if lead_id is None:
            logger.warning("Lead without lead_id in %s/%s skipped: %s", platform.value, lead_type.value, lead.data)
            return FAILED, False

        if self._store.contains(lead_id):
            logger.info("Duplicate lead skipped: %s (%s/%s)", lead_id, platform.value, lead_type.value)
            return DUPLICATE, False

        operation = "map"
        try:
            mapped = self._mapper.map(lead, platform, lead_type)
            logger.debug("Deal fields for lead %s: %s", lead_id, mapped.fields)

            operation = "create_deal"
            deal_id = self._crm.create_deal(mapped.fields)
            logger.info("Deal %s created for lead %s (%s/%s)", deal_id, lead_id, platform.value, lead_type.value)
        except (CrmOperationError, ConfigurationError) as e:
            logger.error(
                "Lead %s (%s/%s) failed at %s: %s", lead_id, platform.value, lead_type.value, operation, e
            )
            return FAILED, False
        except Exception:
            logger.exception(
                "Lead %s (%s/%s) failed at %s", lead_id, platform.value, lead_type.value, operation
            )
            return FAILED, False

        try:
            self._store.append(
                lead_id,
                platform=platform.value,
                lead_type=lead_type.value,
                deal_id=deal_id,
            )
        except Exception:
            # The next run will create this deal again unless the id is recorded by hand.
            logger.exception(
                "Deal %s created for lead %s (%s/%s) but not recorded",
                deal_id,
                lead_id,
                platform.value,
                lead_type.value,
            )
            return FAILED, False

        recorded = False
        if (
            lead_type == LeadType.CALL
            and self._recordings is not None
            and has_recording(lead.text("call_recordingurl"))
        ):
            try:
                recorded = self._recordings.handle(lead, mapped, deal_id)
            except Exception:
                logger.exception("Recording handling failed for lead %s (deal %s)", lead_id, deal_id)
        return CREATED, recorded


def build_processor(
    settings: Settings,
    *,
    crm: Optional[CrmClient] = None,
    client: Optional[httpx.Client] = None,
) -> LeadProcessor:
    """Wire a LeadProcessor from settings."""
    if not settings.auth_token:
        raise ConfigurationError("auth_token is not configured")
    if crm is None:
        if not settings.crm.webhook_url:
            raise ConfigurationError("crm.webhook_url is not configured")
        crm = BitrixClient(
            settings.crm.webhook_url,
            listing_entity_type_id=settings.crm.listing_entity_type_id,
            timeout=settings.request_timeout,
        )

    owners = OwnerResolver(
        crm,
        default_user_id=settings.default_owner_id,
        excluded_user_ids=settings.excluded_user_ids,
        listing_fields=settings.listing_fields,
        placeholder_user_id=settings.unassigned_owner_id,
        policy=settings.owner_policy,
    )
    fetcher = LeadFetcher(
        base_urls={p: cfg.base_url for p, cfg in settings.platforms.items()},
        client=client,
        timeout=settings.request_timeout,
    )
    return LeadProcessor(
        fetcher=fetcher,
        mapper=FieldMapper(settings, owners),
        crm=crm,
        store=open_store(settings.store),
        recordings=CallRecordingHandler(crm, client=client),
        since=settings.since,
        auth_token=settings.auth_token,
    )
