from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import Union
from urllib.parse import urlsplit

import httpx

from .errors import FetchError

MAX_DEFAULT_CSV_BYTES = 10 * 1024 * 1024
DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_USER_AGENT = "remote-csv-display-v1/0.1"

_BLOCKED_HOSTS = {
    "localhost",
    "localhost.localdomain",
}

logger = logging.getLogger("remote_csv_display_v1.security")


@dataclass(frozen=True)
class FetchResponse:
    status_code: int
    text: str


def is_safe_public_http_url(url: str) -> bool:
    try:
        if not url or not url.strip():
            return False

        parsed = urlsplit(url.strip())
        if parsed.scheme not in {"http", "https"}:
            return False
        if not parsed.netloc:
            return False
        # .port raises ValueError above 65535.
        if parsed.port == 0:
            return False

        host = (parsed.hostname or "").rstrip(".").lower()
        if not host:
            return False
        return is_safe_public_host(host)
    except Exception:
        return False


def is_safe_https_url(url: str) -> bool:
    if not is_safe_public_http_url(url):
        return False
    return urlsplit(url.strip()).scheme == "https"


def is_safe_public_host(host: str) -> bool:
    if host in _BLOCKED_HOSTS:
        return False
    if host.endswith(".local") or host.endswith(".internal"):
        return False

    try:
        ip = ipaddress.ip_address(host)
        return _is_public_ip(ip)
    except ValueError:
        pass

    try:
        records = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except OSError:
        # Unresolvable hosts cannot be proven public.
        return False

    if not records:
        return False

    for record in records:
        resolved_ip = record[4][0]
        try:
            ip = ipaddress.ip_address(resolved_ip)
        except ValueError:
            return False
        if not _is_public_ip(ip):
            return False

    return True


def _is_public_ip(ip: Union[ipaddress.IPv4Address, ipaddress.IPv6Address]) -> bool:
    return not (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_reserved
        or ip.is_unspecified
    )


async def fetch_csv(
    url: str,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    user_agent: str = DEFAULT_USER_AGENT,
    max_csv_bytes: int = MAX_DEFAULT_CSV_BYTES,
) -> FetchResponse:
    """Single GET of a CSV resource, bounded by ``timeout_seconds`` end to end.

    Every redirect hop is re-checked against the SSRF guard, and the body is
    read in chunks so an oversized response is cut off without being buffered.
    """
    try:
        return await asyncio.wait_for(
            _stream_csv(url, timeout_seconds, user_agent, max_csv_bytes),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        raise FetchError(f"csv request exceeded {timeout_seconds}s: {url}") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(f"csv request failed: {url}") from exc


async def _stream_csv(url: str, timeout_seconds: float, user_agent: str, max_csv_bytes: int) -> FetchResponse:
    timeout = httpx.Timeout(connect=5.0, read=timeout_seconds, write=5.0, pool=5.0)
    headers = {
        "User-Agent": user_agent,
        "Accept": "text/csv,text/plain,*/*;q=0.8",
    }

    async with httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        event_hooks={"request": [_guard_request_target]},
    ) as client:
        async with client.stream("GET", url, headers=headers) as response:
            _validate_response_size(response.headers, max_csv_bytes)
            chunks = []
            received = 0
            async for chunk in response.aiter_bytes():
                received += len(chunk)
                if received > max_csv_bytes:
                    raise FetchError("csv exceeds maximum allowed bytes")
                chunks.append(chunk)
            encoding = response.encoding or "utf-8"

    body = b"".join(chunks).decode(encoding, errors="replace")
    return FetchResponse(status_code=response.status_code, text=body)


async def _guard_request_target(request: httpx.Request) -> None:
    target = str(request.url)
    if not is_safe_public_http_url(target):
        logger.warning("blocked request to non-public target: %s", target)
        raise FetchError(f"request target is not allowed: {target}")


def _validate_response_size(headers: httpx.Headers | dict, max_csv_bytes: int) -> None:
    content_length = headers.get("content-length")
    if not content_length:
        return
    try:
        value = int(content_length)
    except ValueError:
        return
    if value > max_csv_bytes:
        raise FetchError("csv exceeds maximum allowed bytes")
