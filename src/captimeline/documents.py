"""CAP document parsing into flat, string-only records."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Protocol

LOGGER = logging.getLogger(__name__)

_DOUBLED_QUOTES = re.compile(r'""([^"]*)""')


class MarkupBackend(Protocol):
    """Capability that turns document text into an element tree."""

    def parse_document(self, text: str) -> ET.Element:
        ...


class ElementTreeBackend:
    """Default backend built on :mod:`xml.etree.ElementTree`."""

    def parse_document(self, text: str) -> ET.Element:
        return ET.fromstring(text)


DEFAULT_BACKEND: MarkupBackend = ElementTreeBackend()


@dataclass(frozen=True)
class ParsedArea:
    area_desc: str = ""
    polygon: str = ""


@dataclass(frozen=True)
class ParsedInfo:
    language: str = ""
    category: str = ""
    event: str = ""
    urgency: str = ""
    severity: str = ""
    certainty: str = ""
    effective: str = ""
    expires: str = ""
    sender_name: str = ""
    headline: str = ""
    description: str = ""
    area: ParsedArea | None = None


@dataclass(frozen=True)
class ParsedDocument:
    identifier: str = ""
    sender: str = ""
    source: str = ""
    sent: str = ""
    status: str = ""
    msg_type: str = ""
    scope: str = ""
    references: str = ""
    info: ParsedInfo | None = None


def clean_markup(text: str) -> str:
    """Collapse ``""x""`` quoting left behind by CSV export into ``"x"``."""
    return _DOUBLED_QUOTES.sub(r'"\1"', text).strip()


def parse_cap_document(
    text: str, backend: MarkupBackend | None = DEFAULT_BACKEND
) -> ParsedDocument | None:
    """Parse one CAP ``<alert>`` document.

    Returns ``None`` when no backend is available, when the markup is not
    well-formed, or when it contains no ``<alert>`` element.
    """
    if backend is None:
        LOGGER.warning("No markup backend available; cannot parse CAP documents")
        return None

    try:
        root = backend.parse_document(clean_markup(text))
    except Exception as exc:
        # substitute backends raise their own error types
        LOGGER.warning("CAP XML parsing error: %s", exc)
        return None

    alert = root if _local_name(root.tag) == "alert" else root.find(".//{*}alert")
    if alert is None:
        LOGGER.warning("No alert element found in XML")
        return None

    info_el = alert.find(".//{*}info")
    info: ParsedInfo | None = None
    if info_el is not None:
        area_el = info_el.find(".//{*}area")
        area = None
        if area_el is not None:
            area = ParsedArea(
                area_desc=_text(area_el, "areaDesc"),
                polygon=_text(area_el, "polygon"),
            )
        info = ParsedInfo(
            language=_text(info_el, "language"),
            category=_text(info_el, "category"),
            event=_text(info_el, "event"),
            urgency=_text(info_el, "urgency"),
            severity=_text(info_el, "severity"),
            certainty=_text(info_el, "certainty"),
            effective=_text(info_el, "effective"),
            expires=_text(info_el, "expires"),
            sender_name=_text(info_el, "senderName"),
            headline=_text(info_el, "headline"),
            description=_text(info_el, "description"),
            area=area,
        )

    return ParsedDocument(
        identifier=_text(alert, "identifier"),
        sender=_text(alert, "sender"),
        source=_text(alert, "source"),
        sent=_text(alert, "sent"),
        status=_text(alert, "status"),
        msg_type=_text(alert, "msgType"),
        scope=_text(alert, "scope"),
        references=_text(alert, "references"),
        info=info,
    )


def _text(parent: ET.Element, tag: str) -> str:
    element = parent.find(f".//{{*}}{tag}")
    if element is None:
        return ""
    return "".join(element.itertext()).strip()


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]
