"""Single-request executor: one descriptor in, one timed response out."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiohttp
from multidict import CIMultiDict

from callforge._internal.config import RequestSettings
from callforge._internal.errors import ConfigurationError, NetworkError
from callforge._internal.logging import get_logger

if TYPE_CHECKING:
    from callforge.dsl.models import RequestDescriptor

logger = get_logger("engine.executor")

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})

# RFC 9110 token characters.
_HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


@dataclass(frozen=True)
class HttpResponse:
    """Status and body of a completed request.

    Attributes:
        method: HTTP method that was sent.
        url: Absolute request URL.
        status: HTTP response status code.
        body: Response body decoded as text.
        elapsed: Seconds from send to fully-read body.
    """

    method: str
    url: str
    status: int
    body: str
    elapsed: float

    @property
    def ok(self) -> bool:
        """Return True for a 2xx status."""
        return 200 <= self.status < 300


def build_url(base_url: str | None, endpoint: str) -> str:
    """Resolve ``endpoint`` to an absolute URL.

    Args:
        base_url: Base URL for relative endpoints.
        endpoint: Absolute ``http(s)://`` URL or a relative path.

    Returns:
        The absolute URL, joined with exactly one slash.

    Raises:
        ConfigurationError: If the endpoint is relative and there is no
            base URL.
    """
    if endpoint.startswith(("http://", "https://")):
        return endpoint
    if not base_url:
        msg = f"Endpoint {endpoint!r} is relative but no base URL was provided"
        raise ConfigurationError(msg)
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


def parse_method(method: str) -> str:
    """Normalize ``method`` to one of the supported HTTP verbs.

    Raises:
        ConfigurationError: If the method is not supported.
    """
    normalized = method.upper()
    if normalized not in SUPPORTED_METHODS:
        msg = f"Unsupported HTTP method: {normalized}"
        raise ConfigurationError(msg)
    return normalized


def parse_headers(raw_headers: tuple[str, ...] | list[str]) -> CIMultiDict[str]:
    """Parse ``"Key: Value"`` lines into a case-insensitive header map.

    Later lines replace earlier ones with the same name.

    Raises:
        ConfigurationError: If a line has no colon or an invalid name.
    """
    headers: CIMultiDict[str] = CIMultiDict()
    for line in raw_headers:
        name, sep, value = line.partition(":")
        if not sep:
            msg = f"Invalid header format, expected 'Key: Value', got: {line}"
            raise ConfigurationError(msg)
        name = name.strip()
        if not _HEADER_NAME_RE.match(name):
            msg = f"Invalid header name: {name!r}"
            raise ConfigurationError(msg)
        value = value.strip()
        if "\r" in value or "\n" in value:
            msg = f"Invalid header value for {name}"
            raise ConfigurationError(msg)
        headers[name] = value
    return headers


def _build_form(file_fields: dict[str, str]) -> aiohttp.FormData:
    form = aiohttp.FormData()
    for field_name, file_path in file_fields.items():
        path = Path(file_path)
        try:
            content = path.read_bytes()
        except OSError as exc:
            msg = f"Failed to read file: {file_path}"
            raise ConfigurationError(msg) from exc
        form.add_field(field_name, content, filename=path.name or "file")
    return form


def _client_timeout(settings: RequestSettings) -> aiohttp.ClientTimeout:
    return aiohttp.ClientTimeout(total=settings.request_timeout, connect=settings.conn_timeout)


async def execute_request(
    descriptor: RequestDescriptor,
    settings: RequestSettings | None = None,
) -> HttpResponse:
    """Send ``descriptor`` and return the status and body text.

    A fresh ``aiohttp.ClientSession`` is built for the call with the
    configured timeouts and user agent. For multipart descriptors with
    file fields, any ``Content-Type`` header is dropped so the transport
    can set the boundary; files are read fully into memory before sending.

    A non-2xx status is not an exception here: the response is returned
    and ``HttpResponse.ok`` is False.

    Args:
        descriptor: The request to send.
        settings: Timeouts, user agent and verbosity.

    Returns:
        The completed HttpResponse.

    Raises:
        ConfigurationError: If the URL, method, headers or upload files
            are invalid. Raised before any network activity.
        NetworkError: If the connection fails or times out.
    """
    settings = settings or RequestSettings()
    url = build_url(descriptor.base_url, descriptor.endpoint)
    method = parse_method(descriptor.method)
    headers = parse_headers(descriptor.headers)

    data: aiohttp.FormData | bytes | None = None
    if descriptor.multipart:
        headers.popall("Content-Type", None)
    if descriptor.multipart and descriptor.file_fields:
        data = _build_form(descriptor.file_fields)
    elif descriptor.body is not None:
        data = descriptor.body.encode("utf-8")

    # Raw bodies go out without a Content-Type unless one was given.
    skip_auto_headers = ("Content-Type",) if isinstance(data, bytes) and "Content-Type" not in headers else ()

    if settings.verbose:
        logger.info("-> %s %s", descriptor.method, url)
        for line in descriptor.headers:
            logger.info("-> Header: %s", line)
        if descriptor.body is not None:
            logger.info("-> Body: %s", descriptor.body)

    start = time.monotonic()
    try:
        async with (
            aiohttp.ClientSession(
                timeout=_client_timeout(settings),
                headers={"User-Agent": settings.user_agent},
            ) as session,
            session.request(
                method, url, headers=headers, data=data, skip_auto_headers=skip_auto_headers
            ) as resp,
        ):
            status = resp.status
            body = await resp.text(errors="replace")
    except (aiohttp.ClientError, TimeoutError) as exc:
        msg = f"HTTP request failed: {method} {url}: {type(exc).__name__}: {exc}"
        raise NetworkError(msg) from exc
    elapsed = time.monotonic() - start

    if settings.verbose:
        logger.info("<- %d %s (%d ms)", status, url, int(elapsed * 1000))

    return HttpResponse(method=method, url=url, status=status, body=body, elapsed=elapsed)
