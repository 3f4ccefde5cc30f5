"""Parsing helpers for lead payload fields."""

import re
from typing import Any, NamedTuple, Optional

# Dubizzle whatsapp messages end with "Link: <listing url>"
LINK_MARKER = "Link:"
LINK_PATTERN = re.compile(r"Link:\s(https?://\S+)")

CALL_COMMENT_LINES = (
    ("Receiver Number", "receiver_number"),
    ("Call Status", "call_status"),
    ("Call Duration", "call_total_duration"),
    ("Call Connected Duration", "call_connected_duration"),
    ("Call Recording URL", "call_recordingurl"),
)


class MessageParts(NamedTuple):
    message: str
    link: Optional[str]


def parse_message_and_link(text: Optional[str]) -> MessageParts:
    """
    Split a whatsapp message into body and trailing listing link.
    Body is everything before the first "Link:" marker, trimmed.
    """
    if not text:
        return MessageParts("", None)
    match = LINK_PATTERN.search(text)
    link = match.group(1) if match else None
    message = text.split(LINK_MARKER, 1)[0].strip()
    return MessageParts(message, link)


def duration_to_seconds(value: Optional[str]) -> int:
    """
    Convert "H:MM:SS" (or "M:SS", "S") to whole seconds.
    Empty or None is 0; anything non-numeric raises ValueError.
    """
    if value is None:
        return 0
    text = str(value).strip()
    if not text:
        return 0
    parts = [p.strip() for p in text.split(":")]
    if len(parts) > 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid duration: {value!r}")
    seconds = 0
    for part in parts:
        seconds = seconds * 60 + int(part)
    return seconds


def property_link(template: str, property_id: Any) -> Optional[str]:
    """Property detail URL for a listing id; None when there is no id."""
    if property_id is None or not str(property_id).strip():
        return None
    return template.format(property_id=str(property_id).strip())


def format_call_comments(data: dict[str, Any]) -> str:
    """Fixed-layout comment block summarizing a call log."""
    lines = []
    for label, key in CALL_COMMENT_LINES:
        value = data.get(key)
        lines.append(f"{label}: {'' if value is None else value}")
    return "\n".join(lines)
