"""Filter evaluation over grouped alerts."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .alerts import Alert

AlertT = TypeVar("AlertT", bound=Alert)

# FilterSpec attribute -> Alert attribute
MULTI_VALUE_FIELDS: dict[str, str] = {
    "categories": "category",
    "severities": "severity",
    "urgencies": "urgency",
    "statuses": "status",
    "message_types": "msg_type",
}

SEARCH_FIELDS = ("title", "description", "event", "area_desc", "sender_name")

_SUMMARY_LABELS = {
    "categories": "Categories",
    "severities": "Severities",
    "urgencies": "Urgencies",
    "statuses": "Statuses",
    "message_types": "Message Types",
}


class DateRange(BaseModel):
    """Inclusive bounds on ``sent``; either side may be open."""

    model_config = ConfigDict(frozen=True)

    start: datetime | None = None
    end: datetime | None = None

    @field_validator("start", "end")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def for_days(cls, start: date | None = None, end: date | None = None) -> "DateRange":
        """Range covering whole UTC days from ``start`` through ``end``."""
        return cls(
            start=datetime.combine(start, time.min, tzinfo=timezone.utc) if start else None,
            end=datetime.combine(end, time.max, tzinfo=timezone.utc) if end else None,
        )

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None


class FilterSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    date_range: DateRange = Field(default_factory=DateRange)
    categories: frozenset[str] = frozenset()
    severities: frozenset[str] = frozenset()
    urgencies: frozenset[str] = frozenset()
    statuses: frozenset[str] = frozenset()
    message_types: frozenset[str] = frozenset()
    search_text: str = ""

    @field_validator("search_text")
    @classmethod
    def _strip_search(cls, value: str) -> str:
        return value.strip()


@dataclass
class FilterOptions:
    categories: list[str] = field(default_factory=list)
    severities: list[str] = field(default_factory=list)
    urgencies: list[str] = field(default_factory=list)
    statuses: list[str] = field(default_factory=list)
    message_types: list[str] = field(default_factory=list)
    earliest: datetime | None = None
    latest: datetime | None = None


def apply_filters(alerts: Iterable[AlertT], spec: FilterSpec) -> list[AlertT]:
    """Return alerts matching every active criterion, newest first."""
    filtered = list(alerts)
    if not spec.date_range.is_open:
        filtered = filter_by_date_range(filtered, spec.date_range)
    for spec_field, alert_field in MULTI_VALUE_FIELDS.items():
        values = getattr(spec, spec_field)
        if values:
            filtered = filter_by_field(filtered, alert_field, values)
    if spec.search_text.strip():
        filtered = filter_by_search_text(filtered, spec.search_text)
    filtered.sort(key=lambda alert: alert.sent, reverse=True)
    return filtered


def filter_by_date_range(alerts: Iterable[AlertT], date_range: DateRange) -> list[AlertT]:
    start, end = date_range.start, date_range.end
    return [
        alert
        for alert in alerts
        if (start is None or alert.sent >= start) and (end is None or alert.sent <= end)
    ]


def filter_by_field(
    alerts: Iterable[AlertT], attribute: str, values: Iterable[str]
) -> list[AlertT]:
    allowed = set(values)
    if not allowed:
        return list(alerts)
    return [alert for alert in alerts if getattr(alert, attribute) in allowed]


def filter_by_search_text(alerts: Iterable[AlertT], search_text: str) -> list[AlertT]:
    term = search_text.strip().casefold()
    if not term:
        return list(alerts)
    return [
        alert
        for alert in alerts
        if any(term in (getattr(alert, name) or "").casefold() for name in SEARCH_FIELDS)
    ]


def filter_options(alerts: Sequence[Alert]) -> FilterOptions:
    """Values actually present in ``alerts``, for populating filter choices."""
    if not alerts:
        return FilterOptions()
    sent = [alert.sent for alert in alerts]
    return FilterOptions(
        earliest=min(sent),
        latest=max(sent),
        **{
            spec_field: sorted({getattr(alert, alert_field) for alert in alerts})
            for spec_field, alert_field in MULTI_VALUE_FIELDS.items()
        },
    )


def has_active_filters(spec: FilterSpec | None) -> bool:
    if spec is None:
        return False
    return (
        not spec.date_range.is_open
        or any(getattr(spec, name) for name in MULTI_VALUE_FIELDS)
        or bool(spec.search_text.strip())
    )


def active_filter_summary(spec: FilterSpec) -> list[str]:
    summary: list[str] = []
    start, end = spec.date_range.start, spec.date_range.end
    if start and end:
        summary.append(f"Date: {start.date().isoformat()} - {end.date().isoformat()}")
    elif start:
        summary.append(f"Date: After {start.date().isoformat()}")
    elif end:
        summary.append(f"Date: Before {end.date().isoformat()}")

    for name, label in _SUMMARY_LABELS.items():
        values = getattr(spec, name)
        if values:
            summary.append(f"{label}: {', '.join(sorted(values))}")

    if spec.search_text.strip():
        summary.append(f'Search: "{spec.search_text.strip()}"')
    return summary
