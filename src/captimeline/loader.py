"""Load orchestration: read, normalise and group alerts with observable progress."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from .alerts import ProcessingResult, process_rows
from .documents import DEFAULT_BACKEND, MarkupBackend
from .errors import LoadError, SourceError
from .filters import (
    DateRange,
    FilterOptions,
    FilterSpec,
    apply_filters,
    filter_by_date_range,
    filter_by_search_text,
    filter_options,
)
from .ingest import parse_csv, read_source
from .settings import Settings, get_settings
from .timeline import DisplayAlert, group_alerts

LOGGER = logging.getLogger(__name__)

SourceReader = Callable[[str | Path, float], Awaitable[str]]
Subscriber = Callable[["LoadStatus"], None]


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class LoadStatus:
    state: LoadState
    progress: int = 0
    error: str | None = None
    generation: int = 0


@dataclass
class AlertStats:
    total: int = 0
    with_geometry: int = 0
    expired: int = 0
    cancelled: int = 0
    options: FilterOptions = field(default_factory=FilterOptions)


class AlertLoader:
    """Single owner of the grouped alert collection.

    Every :meth:`load` starts a new generation. A load that finishes after a
    newer one has started discards its result, so the latest request wins.
    """

    def __init__(
        self,
        source: str | Path | None = None,
        settings: Settings | None = None,
        backend: MarkupBackend | None = DEFAULT_BACKEND,
        reader: SourceReader = read_source,
    ) -> None:
        self.settings = settings or get_settings()
        self.source = source or self.settings.csv_source
        self.backend = backend
        self.reader = reader
        self.status = LoadStatus(LoadState.IDLE)
        self.alerts: list[DisplayAlert] = []
        self.result: ProcessingResult | None = None
        self._generation = 0
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def load(self) -> list[DisplayAlert] | None:
        """Run a full load; returns ``None`` if a newer load superseded this one."""
        self._generation += 1
        generation = self._generation
        self._publish(LoadStatus(LoadState.LOADING, 0, generation=generation))
        LOGGER.info("Starting alert data loading from %s", self.source)

        try:
            text = await self._read_with_retry()
            if not self._publish_progress(generation, 30):
                return None

            rows = parse_csv(text)
            if not self._publish_progress(generation, 60):
                return None

            now = datetime.now(timezone.utc)
            result = await asyncio.to_thread(
                process_rows,
                rows,
                now,
                self.backend,
                self.settings.region_bounds,
            )
            if not self._publish_progress(generation, 90):
                return None

            grouped = group_alerts(result.alerts)
        except Exception as exc:
            if generation != self._generation:
                return None
            LOGGER.exception("Failed to load alert data: %s", exc)
            self._publish(LoadStatus(LoadState.FAILED, 0, str(exc), generation))
            raise LoadError(f"Data processing failed: {exc}") from exc

        if generation != self._generation:
            LOGGER.info("Discarding superseded load generation=%s", generation)
            return None

        self.alerts = grouped
        self.result = result
        self._publish(LoadStatus(LoadState.READY, 100, generation=generation))
        LOGGER.info("Successfully loaded %s alerts in %s groups", result.processed, len(grouped))
        return grouped

    async def retry(self) -> list[DisplayAlert] | None:
        LOGGER.info("Retrying alert data loading")
        return await self.load()

    async def _read_with_retry(self) -> str:
        attempts = self.settings.fetch_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return await self.reader(self.source, self.settings.fetch_timeout_seconds)
            except SourceError as exc:
                if attempt >= attempts:
                    raise
                delay = self.settings.fetch_backoff_seconds * (2 ** (attempt - 1))
                LOGGER.warning(
                    "Read attempt %s/%s failed: %s; retrying in %.2fs",
                    attempt,
                    attempts,
                    exc,
                    delay,
                )
                await asyncio.sleep(delay)
        raise SourceError("No read attempts were made")  # pragma: no cover

    def _publish_progress(self, generation: int, progress: int) -> bool:
        if generation != self._generation:
            LOGGER.info("Discarding superseded load generation=%s", generation)
            return False
        self._publish(LoadStatus(LoadState.LOADING, progress, generation=generation))
        return True

    def _publish(self, status: LoadStatus) -> None:
        self.status = status
        for callback in list(self._subscribers):
            callback(status)

    def get(self, alert_id: str) -> DisplayAlert | None:
        for alert in self.alerts:
            if alert.id == alert_id:
                return alert
        return None

    def filtered(self, spec: FilterSpec) -> list[DisplayAlert]:
        return apply_filters(self.alerts, spec)

    def by_category(self, category: str) -> list[DisplayAlert]:
        return [alert for alert in self.alerts if alert.category == category]

    def by_severity(self, severity: str) -> list[DisplayAlert]:
        return [alert for alert in self.alerts if alert.severity == severity]

    def in_date_range(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[DisplayAlert]:
        return filter_by_date_range(self.alerts, DateRange(start=start, end=end))

    def search(self, term: str) -> list[DisplayAlert]:
        return filter_by_search_text(self.alerts, term)

    def stats(self) -> AlertStats:
        return AlertStats(
            total=len(self.alerts),
            with_geometry=sum(alert.has_geometry for alert in self.alerts),
            expired=sum(alert.is_expired for alert in self.alerts),
            cancelled=sum(alert.is_cancelled for alert in self.alerts),
            options=filter_options(self.alerts),
        )
