"""Fetch a printer's cumulative page counter over HTTP.

Printer status pages come in two shapes: a script that embeds the counters
as JSON-like ``key: value`` pairs, or a plain HTML fragment holding the
number. Many older firmwares serve GBK instead of UTF-8.
"""

import re

import httpx

from printledger.core.config import settings
from printledger.models.enums import FetchFailure

_CHARSET_HEADER = re.compile(r"charset=([^;\s]+)", re.IGNORECASE)
_CHARSET_META = re.compile(rb"<meta[^>]+charset=[\"']?([^\"'\s/>]+)", re.IGNORECASE)
_GBK_FAMILY = {"gbk", "gb2312", "gb18030"}

_JSON_COUNTER = re.compile(
    r"[\"']?(?:total_?counter|total_?count|total_?pages|total_?impressions|total)[\"']?"
    r"\s*:\s*[\"']?(\d[\d,]*)",
    re.IGNORECASE,
)
_SCRIPT_OR_STYLE = re.compile(r"<(script|style)\b.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]+>")
_NUMBER = re.compile(r"\d[\d,]*")

_RESOLVE_HINTS = ("name or service not known", "nodename nor servname", "getaddrinfo", "name resolution")


class CounterFetchError(Exception):
    """A counter could not be fetched; ``kind`` classifies the failure."""

    def __init__(self, kind: FetchFailure, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


def build_client(
    timeout: float = settings.FETCH_TIMEOUT_SECONDS,
    verify: bool = settings.FETCH_VERIFY_TLS,
) -> httpx.AsyncClient:
    """HTTP client for polling printers. A timeout is mandatory."""
    if not timeout or timeout <= 0:
        raise ValueError("A positive fetch timeout is required")
    return httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": settings.USER_AGENT},
        follow_redirects=True,
        verify=verify,
    )


def decode_body(content: bytes, content_type: str | None = None) -> str:
    """Decode a response body using the header charset, else the meta charset."""
    encoding = None
    if content_type:
        match = _CHARSET_HEADER.search(content_type)
        if match:
            encoding = match.group(1).strip("\"'").lower()
    if encoding is None:
        meta = _CHARSET_META.search(content)
        encoding = meta.group(1).decode("ascii", "ignore").lower() if meta else "utf-8"

    if encoding in _GBK_FAMILY:
        encoding = "gb18030"
    try:
        return content.decode(encoding, errors="replace")
    except LookupError:
        return content.decode("utf-8", errors="replace")


def _to_int(raw: str) -> int:
    return int(raw.replace(",", ""))


def parse_counter(text: str) -> int:
    """Extract the cumulative counter from a status page or fragment."""
    match = _JSON_COUNTER.search(text)
    if match:
        return _to_int(match.group(1))

    visible = _TAG.sub(" ", _SCRIPT_OR_STYLE.sub(" ", text))
    match = _NUMBER.search(visible)
    if match:
        return _to_int(match.group())

    raise CounterFetchError(FetchFailure.PARSE_FAILURE, "No counter value found in response")


def _classify_connect_error(exc: httpx.ConnectError) -> FetchFailure:
    message = str(exc).lower()
    if any(hint in message for hint in _RESOLVE_HINTS):
        return FetchFailure.RESOLVE_FAILURE
    return FetchFailure.CONNECTION_REFUSED


async def fetch_counter(client: httpx.AsyncClient, url: str) -> int:
    """Fetch and parse the counter at ``url``.

    Raises:
        CounterFetchError: on any network, HTTP or parse failure
    """
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.TimeoutException as exc:
        raise CounterFetchError(FetchFailure.TIMEOUT, f"Timed out fetching {url}") from exc
    except httpx.ConnectError as exc:
        raise CounterFetchError(_classify_connect_error(exc), str(exc) or "Connection failed") from exc
    except httpx.HTTPStatusError as exc:
        raise CounterFetchError(
            FetchFailure.HTTP_ERROR, f"HTTP {exc.response.status_code} from {url}"
        ) from exc
    except httpx.HTTPError as exc:
        raise CounterFetchError(FetchFailure.HTTP_ERROR, str(exc) or type(exc).__name__) from exc
    except (httpx.InvalidURL, ValueError) as exc:
        raise CounterFetchError(
            FetchFailure.RESOLVE_FAILURE, f"Invalid target URL {url!r}: {exc}"
        ) from exc

    text = decode_body(response.content, response.headers.get("content-type"))
    return parse_counter(text)
