"""Run reporting helpers."""

from __future__ import annotations

import json
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .alerts import ProcessingResult
from .filters import FilterSpec, active_filter_summary
from .geometry import polygon_area_km2
from .timeline import DisplayAlert


@dataclass
class RunReporter:
    run_id: str | None = None
    started_at: float = field(default=0.0, init=False)
    finished_at: float = field(default=0.0, init=False)
    source: str | None = field(default=None, init=False)
    status: str = field(default="running", init=False)
    steps: dict[str, Any] = field(default_factory=dict, init=False)

    def start_run(self, source: str | Path | None = None) -> None:
        self.run_id = self.run_id or uuid.uuid4().hex
        self.source = str(source) if source is not None else None
        self.started_at = time.time()

    def record_processing(self, result: ProcessingResult) -> None:
        self.steps["processing"] = {
            "alerts": result.processed,
            "skipped": result.skipped,
            "errors": len(result.failures),
            "failed_rows": [failure.row for failure in result.failures],
        }

    def record_grouping(self, groups: Sequence[DisplayAlert]) -> None:
        areas = [polygon_area_km2(group.polygon) for group in groups if group.has_geometry]
        self.steps["grouping"] = {
            "groups": len(groups),
            "largest_group": max((group.group_size for group in groups), default=0),
            "with_geometry": len(areas),
            "total_area_km2": round(sum(area for area in areas if area), 2),
        }

    def record_filter(self, spec: FilterSpec, matched: int) -> None:
        self.steps["filter"] = {
            "criteria": active_filter_summary(spec),
            "matched": matched,
        }

    def record_failure(self, message: str) -> None:
        self.status = "failed"
        self.steps["error"] = {"message": message}

    def finish_run(self) -> None:
        self.finished_at = time.time()
        if self.status == "running":
            self.status = "succeeded"

    def summary(self) -> dict[str, Any]:
        if self.finished_at and self.started_at:
            duration = self.finished_at - self.started_at
        else:
            duration = 0.0
        return {
            "run_id": self.run_id,
            "source": self.source,
            "status": self.status,
            "duration_seconds": round(duration, 2),
            "steps": self.steps,
        }

    def persist(self, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{self.run_id}.json"
        path.write_text(json.dumps(self.summary(), indent=2), encoding="utf-8")
        return path

    def emit_metrics(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fp:
            fp.write(json.dumps(self.summary()) + "\n")
