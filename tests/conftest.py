import csv
import io
from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from captimeline.alerts import Alert

WELLINGTON = "-41.0,174.0 -41.5,174.5 -41.2,175.0 -41.0,174.0"


def _element(tag: str, value: str | None) -> str:
    return f"<{tag}>{value}</{tag}>" if value is not None else ""


def build_cap(
    identifier: str | None = "A1",
    sent: str | None = "2024-05-01T10:00:00+12:00",
    msg_type: str | None = "Alert",
    status: str | None = "Actual",
    references: str | None = None,
    polygon: str | None = WELLINGTON,
    headline: str | None = "Heavy rain warning",
    description: str | None = "Heavy rain expected overnight.",
    category: str | None = "Met",
    event: str | None = "Rain",
    severity: str | None = "Minor",
    urgency: str | None = "Expected",
    certainty: str | None = "Likely",
    expires: str | None = None,
    area_desc: str | None = "Wellington",
    namespace: str | None = "urn:oasis:names:tc:emergency:cap:1.2",
) -> str:
    area = ""
    if area_desc is not None or polygon is not None:
        area = "<area>" + _element("areaDesc", area_desc) + _element("polygon", polygon) + "</area>"
    info = (
        "<info>"
        + _element("language", "en-NZ")
        + _element("category", category)
        + _element("event", event)
        + _element("urgency", urgency)
        + _element("severity", severity)
        + _element("certainty", certainty)
        + _element("expires", expires)
        + _element("senderName", "MetService")
        + _element("headline", headline)
        + _element("description", description)
        + area
        + "</info>"
    )
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<alert{xmlns}>"
        + _element("identifier", identifier)
        + _element("sender", "alerts@metservice.com")
        + _element("sent", sent)
        + _element("status", status)
        + _element("msgType", msg_type)
        + _element("scope", "Public")
        + _element("references", references)
        + info
        + "</alert>"
    )


def build_csv(rows: list[dict[str, str]]) -> str:
    fields = ["title", "summary", "author", "pubDate", "content"]
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fields, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({name: row.get(name, "") for name in fields})
    return buffer.getvalue()


@pytest.fixture
def cap_document() -> Callable[..., str]:
    return build_cap


@pytest.fixture
def csv_text() -> Callable[[list[dict[str, str]]], str]:
    return build_csv


@pytest.fixture
def chain_csv() -> str:
    return build_csv(
        [
            {"content": build_cap(identifier="A1", sent="2024-05-01T10:00:00+12:00")},
            {
                "content": build_cap(
                    identifier="A2",
                    msg_type="Update",
                    references="alerts@metservice.com,A1,2024-05-01T10:00:00+12:00",
                    sent="2024-05-01T12:00:00+12:00",
                    polygon=None,
                )
            },
            {
                "content": build_cap(
                    identifier="A3",
                    msg_type="Cancel",
                    references="alerts@metservice.com,A2,2024-05-01T12:00:00+12:00",
                    sent="2024-05-01T14:00:00+12:00",
                    polygon=None,
                )
            },
        ]
    )


@pytest.fixture
def make_alert() -> Callable[..., Alert]:
    def factory(**overrides: Any) -> Alert:
        polygon = overrides.pop("polygon", None)
        fields: dict[str, Any] = {
            "id": "alert-1",
            "identifier": "alert-1",
            "title": "Heavy rain warning",
            "description": "Heavy rain expected overnight.",
            "category": "Met",
            "event": "Rain",
            "urgency": "Expected",
            "severity": "Minor",
            "certainty": "Likely",
            "status": "Actual",
            "msg_type": "Alert",
            "sender": "alerts@metservice.com",
            "sender_name": "MetService",
            "source": "",
            "sent": datetime(2024, 5, 1, tzinfo=timezone.utc),
            "area_desc": "Wellington",
            "polygon": polygon,
            "original_xml": "",
            "language": "en-NZ",
            "references": "",
            "has_geometry": bool(polygon),
            "is_expired": False,
            "is_cancelled": overrides.get("msg_type") == "Cancel",
        }
        fields.update(overrides)
        fields["identifier"] = overrides.get("identifier", fields["id"])
        return Alert(**fields)

    return factory
