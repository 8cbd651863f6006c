"""Controlled CAP vocabularies and case-insensitive coercion into them."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

CATEGORIES: tuple[str, ...] = (
    "Met",
    "Geo",
    "Safety",
    "Security",
    "Rescue",
    "Fire",
    "Health",
    "Env",
    "Transport",
    "Infra",
    "CBRNE",
    "Other",
)
URGENCIES: tuple[str, ...] = ("Immediate", "Expected", "Future", "Past", "Unknown")
SEVERITIES: tuple[str, ...] = ("Extreme", "Severe", "Moderate", "Minor", "Unknown")
CERTAINTIES: tuple[str, ...] = ("Observed", "Likely", "Possible", "Unlikely", "Unknown")
STATUSES: tuple[str, ...] = ("Actual", "Exercise", "System", "Test", "Draft")
MESSAGE_TYPES: tuple[str, ...] = ("Alert", "Update", "Cancel", "Ack", "Error")

DEFAULT_CATEGORY = "Other"
DEFAULT_URGENCY = "Unknown"
DEFAULT_SEVERITY = "Unknown"
DEFAULT_CERTAINTY = "Unknown"
DEFAULT_STATUS = "Actual"
DEFAULT_MESSAGE_TYPE = "Alert"

CANCEL = "Cancel"


def normalize(value: Any, vocabulary: Sequence[str], default: str) -> str:
    """Return the canonical vocabulary entry matching ``value``, else ``default``.

    Matching ignores case and surrounding whitespace. Non-string input is
    treated as missing.
    """
    if not isinstance(value, str):
        return default
    wanted = value.strip().casefold()
    if not wanted:
        return default
    for candidate in vocabulary:
        if candidate.casefold() == wanted:
            return candidate
    return default


def normalize_category(value: Any) -> str:
    return normalize(value, CATEGORIES, DEFAULT_CATEGORY)


def normalize_urgency(value: Any) -> str:
    return normalize(value, URGENCIES, DEFAULT_URGENCY)


def normalize_severity(value: Any) -> str:
    return normalize(value, SEVERITIES, DEFAULT_SEVERITY)


def normalize_certainty(value: Any) -> str:
    return normalize(value, CERTAINTIES, DEFAULT_CERTAINTY)


def normalize_status(value: Any) -> str:
    return normalize(value, STATUSES, DEFAULT_STATUS)


def normalize_message_type(value: Any) -> str:
    return normalize(value, MESSAGE_TYPES, DEFAULT_MESSAGE_TYPE)
