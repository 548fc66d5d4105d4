"""Bounded HTTP fetcher.

Every failure is returned as a :class:`FetchFailure` value; nothing raised by
the network layer escapes :func:`fetch_content`.
"""

import asyncio
import ipaddress
import logging
import socket
from typing import List, Optional
from urllib.parse import urljoin, urlparse

import httpx

from app.models.fetch import (
    FetchedContent,
    FetchFailure,
    FetchFailureReason,
    FetchOutcome,
    FetchRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5 MiB
DEFAULT_TIMEOUT_MS = 10_000
MAX_REDIRECTS = 10
ALLOWED_SCHEMES = {"http", "https"}
USER_AGENT = "URLAnalyzer/1.0 (Web Analyzer)"


class _Rejected(Exception):
    """Internal signal carrying a failure reason out of the request loop."""

    def __init__(self, reason: FetchFailureReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


async def _is_private_address(hostname: str) -> bool:
    """Return True if *hostname* resolves to a private, loopback, or link-local address.

    Resolution runs in the event loop's executor so a slow DNS lookup neither
    blocks other requests nor escapes the fetch deadline.
    """
    try:
        infos = await asyncio.get_running_loop().getaddrinfo(hostname, None)
    except socket.gaierror:
        return False
    except UnicodeError:
        # idna rejects empty labels and labels over 63 characters
        raise _Rejected(FetchFailureReason.INVALID_SCHEME, f"Invalid hostname: {hostname!r}")

    for info in infos:
        # Strip IPv6 zone IDs (e.g. "::1%eth0" → "::1")
        raw_ip = info[4][0].split("%")[0]
        try:
            addr = ipaddress.ip_address(raw_ip)
        except ValueError:
            continue
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            return True
    return False


async def _validate_url(url: str) -> None:
    """Raise :class:`_Rejected` if *url* fails scheme / SSRF validation."""
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as exc:
        # e.g. an unterminated IPv6 literal such as "http://[::1/"
        raise _Rejected(FetchFailureReason.INVALID_SCHEME, f"Invalid URL: {exc}")

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise _Rejected(
            FetchFailureReason.INVALID_SCHEME,
            f"Scheme '{parsed.scheme}' is not allowed. Only HTTP/HTTPS URLs are supported.",
        )

    if not hostname:
        raise _Rejected(FetchFailureReason.INVALID_SCHEME, "URL must have a valid hostname.")

    if await _is_private_address(hostname):
        raise _Rejected(
            FetchFailureReason.BLOCKED_ADDRESS,
            "Requests to private/internal addresses are not allowed.",
        )


def _decode(body: bytes, response: httpx.Response) -> str:
    # httpx falls back to utf-8 when the declared charset is missing or unknown
    return body.decode(response.encoding or "utf-8", errors="replace")


async def _get(request: FetchRequest, transport: Optional[httpx.AsyncBaseTransport]) -> FetchedContent:
    """Run the GET, following redirects manually so every hop is validated."""
    await _validate_url(request.url)

    current_url = request.url
    # Per-phase limits equal the overall budget; wait_for enforces the total.
    async with httpx.AsyncClient(
        follow_redirects=False,
        timeout=request.timeout_ms / 1000,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    ) as client:
        for _ in range(MAX_REDIRECTS + 1):
            async with client.stream("GET", current_url) as response:
                if response.is_redirect:
                    location = response.headers.get("location", "")
                    next_url = urljoin(current_url, location)
                    await _validate_url(next_url)
                    current_url = next_url
                    continue

                if not response.is_success:
                    raise _Rejected(
                        FetchFailureReason.HTTP_ERROR,
                        f"HTTP error! status: {response.status_code}",
                    )

                content_length = response.headers.get("content-length")
                if content_length and content_length.isdigit() and int(content_length) > request.max_bytes:
                    raise _Rejected(
                        FetchFailureReason.TOO_LARGE,
                        f"Content too large: {content_length} bytes",
                    )

                # The declared length may be absent or wrong, so count as we go.
                chunks: List[bytes] = []
                total = 0
                async for chunk in response.aiter_bytes():
                    total += len(chunk)
                    if total > request.max_bytes:
                        raise _Rejected(
                            FetchFailureReason.TOO_LARGE,
                            f"Content too large: exceeded {request.max_bytes} bytes",
                        )
                    chunks.append(chunk)

                body = b"".join(chunks)
                return FetchedContent(
                    raw_text=_decode(body, response),
                    declared_content_type=response.headers.get("content-type", ""),
                    byte_length=len(body),
                    final_url=current_url,
                )

    raise _Rejected(FetchFailureReason.NETWORK_ERROR, "Too many redirects.")


async def fetch_content(
    request: FetchRequest,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FetchOutcome:
    """Fetch ``request.url`` within the request's time and byte budgets.

    The timeout covers the whole exchange (address checks, connect, headers
    and body); once it fires the in-flight request is abandoned and no
    partial content is kept.  A single attempt is made.

    Args:
        request: URL and budgets.
        transport: Optional httpx transport, used to substitute a mock in tests.

    Returns:
        :class:`FetchedContent` on success, :class:`FetchFailure` otherwise.
    """
    try:
        content = await asyncio.wait_for(
            _get(request, transport), timeout=request.timeout_ms / 1000
        )
    except _Rejected as exc:
        logger.warning("Fetch rejected for %s – %s", request.url, exc)
        return FetchFailure(reason=exc.reason, message=str(exc))
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.error("Timeout fetching URL: %s", request.url)
        return FetchFailure(
            reason=FetchFailureReason.TIMEOUT,
            message=f"Request timed out after {request.timeout_ms} ms",
        )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.error("Error fetching URL %s: %s", request.url, exc)
        return FetchFailure(
            reason=FetchFailureReason.NETWORK_ERROR,
            message=str(exc) or exc.__class__.__name__,
        )

    logger.info(
        "Fetched URL",
        extra={
            "url": request.url,
            "content_type": content.declared_content_type,
            "bytes": content.byte_length,
        },
    )
    return content
