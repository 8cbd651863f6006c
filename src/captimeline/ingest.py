"""CSV ingestion for exported CAP alert feeds."""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path

import httpx

from .errors import SourceError

LOGGER = logging.getLogger(__name__)

RawRow = dict[str, str]


def parse_csv(text: str) -> list[RawRow]:
    """Split CSV text into rows keyed by trimmed header names.

    Empty lines are skipped and every cell is trimmed. Rows whose width
    differs from the header are logged and kept. Raises ``SourceError`` when
    no data rows remain.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff"), newline=""))
    try:
        header = next(reader)
    except StopIteration:
        raise SourceError("No data found in CSV file") from None
    except csv.Error as exc:
        raise SourceError(f"Failed to parse CSV: {exc}") from exc

    fields = [name.strip() for name in header]
    rows: list[RawRow] = []
    warnings = 0
    try:
        for record in reader:
            if not record or (len(record) == 1 and not record[0].strip()):
                continue
            if len(record) != len(fields):
                warnings += 1
                LOGGER.warning(
                    "CSV row %s has %s fields, expected %s",
                    reader.line_num,
                    len(record),
                    len(fields),
                )
            row = {name: "" for name in fields if name}
            for name, cell in zip(fields, record):
                if name:
                    row[name] = cell.strip()
            rows.append(row)
    except csv.Error as exc:
        warnings += 1
        LOGGER.warning("CSV parsing stopped at line %s: %s", reader.line_num, exc)

    if not rows:
        raise SourceError("No data found in CSV file")

    LOGGER.info("CSV parsed: rows=%s warnings=%s", len(rows), warnings)
    return rows


def is_remote(source: str | Path) -> bool:
    return isinstance(source, str) and source.startswith(("http://", "https://"))


async def read_source(
    source: str | Path,
    timeout_seconds: float = 30.0,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Return the CSV text at ``source``, a local path or an HTTP(S) URL."""
    if not is_remote(source):
        path = Path(source)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceError(f"Failed to read CSV {path}: {exc}") from exc

    close_client = False
    if client is None:
        client = httpx.AsyncClient(timeout=timeout_seconds, follow_redirects=True)
        close_client = True

    try:
        response = await client.get(str(source))
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SourceError(
            f"Failed to fetch CSV: {exc.response.status_code} {exc.response.reason_phrase}"
        ) from exc
    except httpx.HTTPError as exc:
        raise SourceError(f"Failed to fetch CSV: {exc}") from exc
    finally:
        if close_client:
            await client.aclose()

    LOGGER.info("CSV loaded: characters=%s", len(response.text))
    return response.text
