"""Obtain markup from a URL or a local file and hand it to the parser.

Retrieval is the only asynchronous step: the markup is fetched once, then
parsing and every query run synchronously on the resulting Document.
"""

from __future__ import annotations

import asyncio
import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx

from .document import Document

logger = logging.getLogger(__name__)

REMOTE = "remote"
LOCAL = "local"

REMOTE_SCHEMES = {"http", "https"}

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


def _get_version() -> str:
    try:
        return version("pagequery")
    except PackageNotFoundError:  # pragma: no cover
        return "dev"


class FetchError(OSError):
    """Raised when a remote document cannot be retrieved."""

    location: str
    status_code: int | None

    def __init__(self, message: str, location: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.location = location
        self.status_code = status_code


class FetchOpts:
    """Options for retrieving markup."""

    __slots__ = ("encoding", "follow_redirects", "headers", "timeout", "user_agent")

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str | None = None,
        follow_redirects: bool = True,
        headers: dict[str, str] | None = None,
        encoding: str = "utf-8",
    ) -> None:
        self.timeout = float(timeout)
        self.user_agent = user_agent or f"pagequery/{_get_version()}"
        self.follow_redirects = bool(follow_redirects)
        self.headers = dict(headers) if headers else {}
        self.encoding = encoding

    def request_headers(self) -> dict[str, str]:
        headers = dict(DEFAULT_HEADERS)
        headers["User-Agent"] = self.user_agent
        headers.update(self.headers)
        return headers


def detect_origin(location: str) -> str:
    """Return ``"remote"`` for http(s) URLs and ``"local"`` for anything else."""
    scheme = urlparse(location).scheme.lower()
    return REMOTE if scheme in REMOTE_SCHEMES else LOCAL


async def _fetch_remote(location: str, opts: FetchOpts, client: httpx.AsyncClient | None) -> str:
    logger.debug("Fetching %s", location)
    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=opts.timeout,
                follow_redirects=opts.follow_redirects,
                headers=opts.request_headers(),
            ) as own_client:
                response = await own_client.get(location)
        else:
            response = await client.get(
                location,
                headers=opts.request_headers(),
                timeout=opts.timeout,
                follow_redirects=opts.follow_redirects,
            )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.warning("Fetching %s failed with HTTP %d", location, status)
        raise FetchError(f"HTTP {status} while fetching {location}", location, status) from e
    except httpx.HTTPError as e:
        logger.warning("Fetching %s failed: %s", location, e)
        raise FetchError(f"Could not fetch {location}: {e}", location) from e

    logger.debug("Fetched %s (%d bytes, HTTP %d)", location, len(response.content), response.status_code)
    return response.text


async def _read_local(location: str, opts: FetchOpts) -> str:
    path = Path(location)
    logger.debug("Reading %s", path)
    return await asyncio.to_thread(path.read_text, encoding=opts.encoding)


async def obtain_markup(
    location: str,
    origin: str,
    *,
    opts: FetchOpts | None = None,
    client: httpx.AsyncClient | None = None,
) -> str:
    """
    Retrieve raw markup text.

    Args:
        location: A URL for ``"remote"``, a filesystem path for ``"local"``
        origin: ``"remote"`` or ``"local"``
        opts: Retrieval options; defaults to ``FetchOpts()``
        client: An existing client to reuse for remote fetches

    Returns:
        The markup as text

    Raises:
        FetchError: If a remote fetch fails or returns a non-2xx status
        OSError: If a local file cannot be read
        ValueError: If origin is not recognized
    """
    opts = opts or FetchOpts()
    if origin == REMOTE:
        return await _fetch_remote(location, opts, client)
    if origin == LOCAL:
        return await _read_local(location, opts)
    raise ValueError(f"Unknown origin {origin!r}; expected {REMOTE!r} or {LOCAL!r}")


async def load(
    location: str,
    origin: str | None = None,
    *,
    opts: FetchOpts | None = None,
    client: httpx.AsyncClient | None = None,
    **parse_options: Any,
) -> Document:
    """Obtain markup from ``location`` and parse it into a Document.

    ``origin`` defaults to ``detect_origin(location)``. Extra keyword arguments
    are passed to Document (``collect_errors``, ``strict``, ``tokenizer_opts``).
    Parse errors propagate unchanged.
    """
    if origin is None:
        origin = detect_origin(location)
    markup = await obtain_markup(location, origin, opts=opts, client=client)
    return Document(markup, **parse_options)
