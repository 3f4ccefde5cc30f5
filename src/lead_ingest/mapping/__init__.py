"""Raw lead -> CRM deal field mapping."""

from lead_ingest.mapping.mapper import FieldMapper, missing_pairs
from lead_ingest.mapping.parsers import (
    MessageParts,
    duration_to_seconds,
    format_call_comments,
    parse_message_and_link,
    property_link,
)
from lead_ingest.mapping.rules import MAPPING_RULES, MappingContext

__all__ = [
    "FieldMapper",
    "MAPPING_RULES",
    "MappingContext",
    "MessageParts",
    "duration_to_seconds",
    "format_call_comments",
    "missing_pairs",
    "parse_message_and_link",
    "property_link",
]
