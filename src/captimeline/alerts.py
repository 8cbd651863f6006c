"""Alert model and per-row normalisation of CAP CSV exports."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from . import vocab
from .documents import DEFAULT_BACKEND, MarkupBackend, ParsedDocument, parse_cap_document
from .geometry import Ring, extract_polygon
from .ingest import RawRow
from .settings import RegionBounds

LOGGER = logging.getLogger(__name__)

ROOT_TAG = "<alert"


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    identifier: str
    title: str
    description: str
    category: str
    event: str
    urgency: str
    severity: str
    certainty: str
    status: str
    msg_type: str
    sender: str
    sender_name: str
    source: str
    sent: datetime
    effective: datetime | None = None
    expires: datetime | None = None
    area_desc: str
    polygon: Ring | None = None
    original_xml: str
    language: str
    references: str
    has_geometry: bool
    is_expired: bool
    is_cancelled: bool

    @field_validator("sent", "effective", "expires")
    @classmethod
    def _require_timezone(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_geometry_flag(self) -> "Alert":
        if self.has_geometry != bool(self.polygon):
            raise ValueError("has_geometry must match the presence of a polygon")
        return self


@dataclass
class RowFailure:
    row: int
    message: str


@dataclass
class ProcessingResult:
    alerts: list[Alert] = field(default_factory=list)
    skipped: int = 0
    failures: list[RowFailure] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.alerts)


def parse_date(value: Any) -> datetime | None:
    """Parse an ISO 8601 or RFC 2822 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value.strip())
    except (ValueError, OverflowError) as exc:
        LOGGER.warning("Error parsing date %r: %s", value, exc)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def looks_like_document(content: str | None) -> bool:
    return bool(content) and ROOT_TAG in content


def process_row(
    row: RawRow,
    index: int,
    now: datetime | None = None,
    backend: MarkupBackend | None = DEFAULT_BACKEND,
    bounds: RegionBounds | None = None,
) -> Alert | None:
    """Normalise one CSV row, or return ``None`` when the row is skipped."""
    content = row.get("content") or ""
    if not looks_like_document(content):
        LOGGER.debug("Row %s: no CAP document found", index)
        return None

    document = parse_cap_document(content, backend)
    if document is None:
        LOGGER.warning("Row %s: failed to parse CAP XML", index)
        return None

    return build_alert(document, row, index, now=now, bounds=bounds)


def build_alert(
    document: ParsedDocument,
    row: RawRow,
    index: int,
    now: datetime | None = None,
    bounds: RegionBounds | None = None,
) -> Alert:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    info = document.info
    area = info.area if info else None

    alert_id = document.identifier or f"alert-{index}"
    polygon = extract_polygon(area.polygon if area else "", bounds)
    msg_type = vocab.normalize_message_type(document.msg_type)
    expires = parse_date(info.expires) if info else None

    title = (info.headline if info else "") or row.get("title") or "Untitled Alert"
    description = (
        (info.description if info else "") or row.get("summary") or ""
    )
    if not title.strip():
        title = f"Alert {alert_id}"
    if not description.strip():
        description = "No description available"

    return Alert(
        id=alert_id,
        identifier=document.identifier,
        title=title,
        description=description,
        category=vocab.normalize_category(info.category if info else None),
        event=(info.event if info else "") or "Unknown Event",
        urgency=vocab.normalize_urgency(info.urgency if info else None),
        severity=vocab.normalize_severity(info.severity if info else None),
        certainty=vocab.normalize_certainty(info.certainty if info else None),
        status=vocab.normalize_status(document.status),
        msg_type=msg_type,
        sender=document.sender or "Unknown Sender",
        sender_name=(info.sender_name if info else "") or row.get("author") or "Unknown",
        source=document.source,
        sent=parse_date(document.sent) or parse_date(row.get("pubDate")) or now,
        effective=parse_date(info.effective) if info else None,
        expires=expires,
        area_desc=(area.area_desc if area else "") or "Unknown Area",
        polygon=polygon,
        original_xml=row.get("content") or "",
        language=(info.language if info else "") or "en-US",
        references=document.references,
        has_geometry=bool(polygon),
        is_expired=expires is not None and expires < now,
        is_cancelled=msg_type == vocab.CANCEL,
    )


def process_rows(
    rows: Iterable[RawRow],
    now: datetime | None = None,
    backend: MarkupBackend | None = DEFAULT_BACKEND,
    bounds: RegionBounds | None = None,
) -> ProcessingResult:
    """Normalise every row independently; one bad row never stops the batch."""
    now = now or datetime.now(timezone.utc)
    result = ProcessingResult()
    seen: set[str] = set()

    for index, row in enumerate(rows):
        try:
            alert = process_row(row, index, now=now, backend=backend, bounds=bounds)
        except Exception as exc:
            LOGGER.warning("Error processing row %s: %s", index, exc)
            result.failures.append(RowFailure(row=index, message=str(exc)))
            continue

        if alert is None:
            result.skipped += 1
            continue

        if alert.id in seen:
            unique_id = f"{alert.id}#{index}"
            LOGGER.warning("Row %s: duplicate identifier %s renamed to %s", index, alert.id, unique_id)
            alert = alert.model_copy(update={"id": unique_id})
        seen.add(alert.id)
        result.alerts.append(alert)

    LOGGER.info(
        "Processing complete: %s alerts processed, %s skipped, %s errors",
        result.processed,
        result.skipped,
        len(result.failures),
    )
    if result.failures:
        LOGGER.warning("Processing errors: %s", [(f.row, f.message) for f in result.failures])
    return result
