"""Reconcile Alert/Update/Cancel chains into grouped display records.

CAP messages reference their predecessors through ``<references>``, a
whitespace-separated list of ``sender,identifier,sent`` triplets. Alerts that
reference one another, directly or transitively, are merged into a single
:class:`DisplayAlert` whose fields come from the most recent message and whose
``timeline`` holds the full history in ascending ``sent`` order.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from .alerts import Alert

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reference:
    sender: str
    identifier: str
    # informational only; never used for lookup
    sent: str = ""


class DisplayAlert(Alert):
    timeline: tuple[Alert, ...]
    is_group_header: bool = True
    group_size: int


def parse_references(raw: str | None) -> list[Reference]:
    if not isinstance(raw, str) or not raw.strip():
        return []
    references: list[Reference] = []
    for triplet in raw.split():
        parts = triplet.split(",")
        if len(parts) < 2:
            continue
        references.append(
            Reference(sender=parts[0], identifier=parts[1], sent=",".join(parts[2:]))
        )
    return references


class DisjointSet:
    """Union-find over string keys backed by a parent index array."""

    def __init__(self, keys: Sequence[str]):
        self._index: dict[str, int] = {}
        for key in keys:
            self._index.setdefault(key, len(self._index))
        self._parent = list(range(len(self._index)))
        self._size = [1] * len(self._index)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def find(self, key: str) -> int:
        node = self._index[key]
        root = node
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[node] != root:
            self._parent[node], node = root, self._parent[node]
        return root

    def union(self, first: str, second: str) -> None:
        root_a = self.find(first)
        root_b = self.find(second)
        if root_a == root_b:
            return
        if self._size[root_a] < self._size[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        self._size[root_a] += self._size[root_b]


def group_alerts(alerts: Sequence[Alert]) -> list[DisplayAlert]:
    """Collapse referencing alerts into one :class:`DisplayAlert` per chain."""
    if not alerts:
        return []

    links = DisjointSet([alert.id for alert in alerts])
    for alert in alerts:
        for reference in parse_references(alert.references):
            # references outside this batch are ignored
            if reference.identifier in links:
                links.union(alert.id, reference.identifier)

    groups: dict[int, list[tuple[int, Alert]]] = {}
    for position, alert in enumerate(alerts):
        groups.setdefault(links.find(alert.id), []).append((position, alert))

    result: list[DisplayAlert] = []
    for members in groups.values():
        members.sort(key=lambda item: (item[1].sent, item[0]))
        history = tuple(alert for _, alert in members)
        result.append(_project(history))

    LOGGER.info("Grouped %s alerts into %s groups", len(alerts), len(result))
    return result


def _project(history: tuple[Alert, ...]) -> DisplayAlert:
    latest = history[-1]
    polygon = latest.polygon
    if not latest.has_geometry:
        for earlier in reversed(history[:-1]):
            if earlier.has_geometry:
                polygon = earlier.polygon
                break

    fields = latest.model_dump(exclude={"timeline", "is_group_header", "group_size"})
    fields.update(
        polygon=polygon,
        has_geometry=bool(polygon),
        timeline=history,
        is_group_header=True,
        group_size=len(history),
    )
    return DisplayAlert(**fields)
