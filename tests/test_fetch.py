import asyncio
import logging

import httpx
import pytest

from pagequery import Document, FetchError, FetchOpts, InvalidSelectorError, MalformedMarkupError
from pagequery.fetch import LOCAL, REMOTE, detect_origin, load, obtain_markup

PAGE = '<div class="card"><a href="/job/1">Dev</a></div>'


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def fetch_with(handler, location="https://jobs.example/list", **kwargs):
    async with mock_client(handler) as client:
        return await obtain_markup(location, REMOTE, client=client, **kwargs)


@pytest.mark.parametrize(
    "location,origin",
    [
        ("https://example.com/page", REMOTE),
        ("HTTP://example.com", REMOTE),
        ("page.html", LOCAL),
        ("/tmp/page.html", LOCAL),
        ("file:///tmp/page.html", LOCAL),
        ("C:\\pages\\index.html", LOCAL),
    ],
)
def test_detect_origin(location, origin):
    assert detect_origin(location) == origin


def test_remote_fetch_returns_text():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["ua"] = request.headers["user-agent"]
        return httpx.Response(200, text=PAGE)

    markup = asyncio.run(fetch_with(handler, opts=FetchOpts(user_agent="tests/1.0")))
    assert markup == PAGE
    assert seen == {"url": "https://jobs.example/list", "ua": "tests/1.0"}


def test_extra_headers_are_sent():
    def handler(request):
        assert request.headers["x-token"] == "abc"
        assert request.headers["accept"].startswith("text/html")
        return httpx.Response(200, text="ok")

    assert asyncio.run(fetch_with(handler, opts=FetchOpts(headers={"X-Token": "abc"}))) == "ok"


def test_default_user_agent_names_the_package():
    assert FetchOpts().user_agent.startswith("pagequery/")


@pytest.mark.parametrize("status", [404, 500, 503])
def test_http_error_status_raises_fetch_error(status, caplog):
    def handler(request):
        return httpx.Response(status, text="nope")

    with caplog.at_level(logging.WARNING, logger="pagequery.fetch"):
        with pytest.raises(FetchError) as excinfo:
            asyncio.run(fetch_with(handler))
    err = excinfo.value
    assert err.status_code == status
    assert err.location == "https://jobs.example/list"
    assert isinstance(err, OSError)
    assert isinstance(err.__cause__, httpx.HTTPStatusError)
    assert any(record.levelno == logging.WARNING for record in caplog.records)


def test_transport_error_raises_fetch_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(fetch_with(handler))
    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_local_read(tmp_path):
    page = tmp_path / "page.html"
    page.write_text(PAGE, encoding="utf-8")
    assert asyncio.run(obtain_markup(str(page), LOCAL)) == PAGE


def test_local_read_uses_configured_encoding(tmp_path):
    page = tmp_path / "latin.html"
    page.write_bytes("<p>café</p>".encode("latin-1"))
    markup = asyncio.run(obtain_markup(str(page), LOCAL, opts=FetchOpts(encoding="latin-1")))
    assert markup == "<p>café</p>"


def test_missing_local_file_propagates_unchanged(tmp_path):
    with pytest.raises(FileNotFoundError):
        asyncio.run(obtain_markup(str(tmp_path / "absent.html"), LOCAL))


def test_unknown_origin():
    with pytest.raises(ValueError):
        asyncio.run(obtain_markup("x", "ftp"))


def test_load_detects_origin_and_parses(tmp_path):
    page = tmp_path / "page.html"
    page.write_text(PAGE, encoding="utf-8")
    doc = asyncio.run(load(str(page)))
    assert isinstance(doc, Document)
    assert doc.find(".card a").get_attr("href") == "/job/1"


def test_load_remote_with_client():
    def handler(request):
        return httpx.Response(200, text=PAGE)

    async def run():
        async with mock_client(handler) as client:
            return await load("https://jobs.example/list", client=client)

    doc = asyncio.run(run())
    assert [card.tag for card in doc.find_all(".card")] == ["div"]


def test_load_passes_parse_options(tmp_path):
    page = tmp_path / "page.html"
    page.write_text("<div>a</span></div>", encoding="utf-8")
    with pytest.raises(MalformedMarkupError):
        asyncio.run(load(str(page), LOCAL, strict=True))
    doc = asyncio.run(load(str(page), LOCAL, collect_errors=True))
    assert [e.code for e in doc.errors] == ["unexpected-end-tag"]


def test_engine_errors_are_not_wrapped(tmp_path):
    page = tmp_path / "broken.html"
    page.write_text("<div class='x", encoding="utf-8")
    with pytest.raises(MalformedMarkupError):
        asyncio.run(load(str(page)))

    page.write_text(PAGE, encoding="utf-8")
    doc = asyncio.run(load(str(page)))
    with pytest.raises(InvalidSelectorError):
        doc.find_all("a ~ b")
