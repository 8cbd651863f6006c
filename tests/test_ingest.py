import asyncio

import httpx
import pytest

from captimeline.errors import SourceError
from captimeline.ingest import parse_csv, read_source


def test_parse_csv_trims_headers_and_cells() -> None:
    rows = parse_csv(" title , content \n  Flood  , <alert/> \n\n")

    assert rows == [{"title": "Flood", "content": "<alert/>"}]


def test_parse_csv_keeps_quoted_multiline_cells(csv_text, cap_document) -> None:
    document = cap_document().replace("<info>", "\n<info>\n")
    rows = parse_csv(csv_text([{"title": "One", "content": document}]))

    assert len(rows) == 1
    assert rows[0]["content"] == document.strip()


def test_parse_csv_warns_on_ragged_rows(caplog) -> None:
    rows = parse_csv("title,content\nonly-title\na,b,c\n")

    assert rows == [{"title": "only-title", "content": ""}, {"title": "a", "content": "b"}]
    assert "expected 2" in caplog.text


def test_parse_csv_without_rows_is_fatal() -> None:
    with pytest.raises(SourceError):
        parse_csv("title,content\n")
    with pytest.raises(SourceError):
        parse_csv("")


def test_read_source_reads_local_file(tmp_path) -> None:
    path = tmp_path / "cap.csv"
    path.write_text("title,content\na,b\n", encoding="utf-8")

    assert asyncio.run(read_source(path)) == "title,content\na,b\n"


def test_read_source_missing_file_is_fatal(tmp_path) -> None:
    with pytest.raises(SourceError):
        asyncio.run(read_source(tmp_path / "missing.csv"))


def test_read_source_fetches_url() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/cap.csv"
        return httpx.Response(200, text="title,content\na,b\n")

    async def run() -> str:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await read_source("https://example.test/cap.csv", client=client)

    assert asyncio.run(run()) == "title,content\na,b\n"


def test_read_source_http_error_is_fatal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    async def run() -> str:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await read_source("https://example.test/cap.csv", client=client)

    with pytest.raises(SourceError, match="503"):
        asyncio.run(run())


def test_read_source_undecodable_file_is_fatal(tmp_path) -> None:
    path = tmp_path / "cap.csv"
    path.write_bytes(b"title,content\nx,\xff\xfe<alert/>\n")

    with pytest.raises(SourceError, match="Failed to read CSV"):
        asyncio.run(read_source(path))
