"""Flat query-parameter encoding of filter state and the selected alert."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date, timezone

import httpx

from .filters import DateRange, FilterSpec

LOGGER = logging.getLogger(__name__)

DATE_START = "dateStart"
DATE_END = "dateEnd"
SEARCH = "search"
ALERT = "alert"

# FilterSpec attribute -> parameter name
LIST_PARAMS: dict[str, str] = {
    "categories": "categories",
    "severities": "severities",
    "urgencies": "urgencies",
    "statuses": "statuses",
    "message_types": "messageTypes",
}


def serialize_filters(spec: FilterSpec) -> dict[str, str]:
    """Encode ``spec`` as parameters; empty criteria are omitted entirely."""
    params: dict[str, str] = {}
    if spec.date_range.start is not None:
        params[DATE_START] = spec.date_range.start.astimezone(timezone.utc).date().isoformat()
    if spec.date_range.end is not None:
        params[DATE_END] = spec.date_range.end.astimezone(timezone.utc).date().isoformat()
    for attribute, key in LIST_PARAMS.items():
        values = getattr(spec, attribute)
        if values:
            params[key] = ",".join(sorted(values))
    if spec.search_text:
        params[SEARCH] = spec.search_text
    return params


def deserialize_filters(params: Mapping[str, str]) -> FilterSpec:
    lists = {
        attribute: frozenset(part for part in params[key].split(",") if part)
        for attribute, key in LIST_PARAMS.items()
        if params.get(key)
    }
    return FilterSpec(
        date_range=DateRange.for_days(
            _parse_day(params.get(DATE_START)), _parse_day(params.get(DATE_END))
        ),
        search_text=params.get(SEARCH) or "",
        **lists,
    )


def alert_id_from_params(params: Mapping[str, str]) -> str | None:
    return params.get(ALERT) or None


def build_query(spec: FilterSpec, alert_id: str | None = None) -> str:
    params = serialize_filters(spec)
    if alert_id:
        params[ALERT] = alert_id
    return str(httpx.QueryParams(params))


def read_query(query: str) -> tuple[FilterSpec, str | None]:
    """Decode a query string (with or without a leading ``?``)."""
    params = dict(httpx.QueryParams(query.lstrip("?")))
    return deserialize_filters(params), alert_id_from_params(params)


def _parse_day(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        LOGGER.warning("Ignoring malformed date parameter: %s", value)
        return None
