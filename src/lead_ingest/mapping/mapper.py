"""Field mapper: dispatches a raw lead to its (platform, lead type) rule."""

import logging
from typing import Mapping, Optional

from lead_ingest.errors import ConfigurationError
from lead_ingest.models.lead import LeadType, MappedLead, Platform, RawLead
from lead_ingest.models.settings import Settings
from lead_ingest.owners import OwnerResolver

from .rules import MAPPING_RULES, MappingContext, MappingRule

logger = logging.getLogger(__name__)


def missing_pairs(rules: Mapping[tuple[Platform, LeadType], MappingRule]) -> list[tuple[Platform, LeadType]]:
    """(platform, lead type) combinations with no rule."""
    return [(p, t) for p in Platform for t in LeadType if (p, t) not in rules]


class FieldMapper:
    """
    Maps raw leads to deal fields using an explicit rule table.
    The table is checked on construction: strict mode raises for gaps,
    otherwise gaps are logged and those batches are skipped at run time.
    """

    def __init__(
        self,
        settings: Settings,
        owners: OwnerResolver,
        rules: Optional[Mapping[tuple[Platform, LeadType], MappingRule]] = None,
        *,
        strict: bool = True,
    ):
        self._settings = settings
        self._owners = owners
        self._rules = dict(MAPPING_RULES if rules is None else rules)

        gaps = missing_pairs(self._rules)
        if gaps:
            names = ", ".join(f"{p.value}/{t.value}" for p, t in gaps)
            if strict:
                raise ConfigurationError(f"No mapping rule for: {names}")
            logger.error("No mapping rule for: %s", names)

    def rule_for(self, platform: Platform, lead_type: LeadType) -> Optional[MappingRule]:
        return self._rules.get((platform, lead_type))

    def has_rule(self, platform: Platform, lead_type: LeadType) -> bool:
        return (platform, lead_type) in self._rules

    def map(self, lead: RawLead, platform: Platform, lead_type: LeadType) -> MappedLead:
        """Build the deal field set for one lead."""
        rule = self.rule_for(platform, lead_type)
        if rule is None:
            raise ConfigurationError(f"No mapping rule for {platform.value}/{lead_type.value}")
        if lead.lead_id is None:
            raise ValueError("Lead has no lead_id")

        ctx = MappingContext(
            platform=platform,
            lead_type=lead_type,
            settings=self._settings,
            owners=self._owners,
        )
        fields = rule(lead, ctx)
        keys = self._settings.field_keys
        return MappedLead(
            lead_id=lead.lead_id,
            platform=platform,
            lead_type=lead_type,
            fields=fields,
            assigned_user_id=fields[keys.assigned],
            source_code=str(fields[keys.source]),
        )
