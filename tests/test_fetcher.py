"""Tests for app.services.fetcher.fetch_content.

Network access is replaced with ``httpx.MockTransport`` and DNS-based address
checks are stubbed out, so these tests run offline.
"""

import asyncio
import socket
import time

import httpx
import pytest

from app.models.fetch import FetchedContent, FetchFailure, FetchFailureReason, FetchRequest
from app.services import fetcher
from app.services.fetcher import USER_AGENT, fetch_content

_URL = "https://example.com/page"

_resolve_for_real = fetcher._is_private_address


def _address_check(is_private):
    """Return an async stand-in for the DNS-based address check."""

    async def check(hostname):
        return is_private(hostname)

    return check


@pytest.fixture(autouse=True)
def public_addresses(monkeypatch):
    """Treat every hostname as public unless a test says otherwise."""
    monkeypatch.setattr(fetcher, "_is_private_address", _address_check(lambda hostname: False))


def _fetch(handler, url: str = _URL, max_bytes: int = 1024 * 1024, timeout_ms: int = 2_000):
    request = FetchRequest(url=url, max_bytes=max_bytes, timeout_ms=timeout_ms)
    return asyncio.run(fetch_content(request, transport=httpx.MockTransport(handler)))


def _never_called(request):
    raise AssertionError("transport must not be called")


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------

class TestFetchSuccess:
    def test_returns_text_and_literal_content_type(self):
        seen = {}

        def handler(request):
            seen["user_agent"] = request.headers["user-agent"]
            return httpx.Response(
                200, headers={"Content-Type": "Text/HTML; charset=UTF-8"}, text="<p>hi</p>"
            )

        outcome = _fetch(handler)

        assert isinstance(outcome, FetchedContent)
        assert outcome.raw_text == "<p>hi</p>"
        assert outcome.declared_content_type == "Text/HTML; charset=UTF-8"
        assert outcome.byte_length == len(b"<p>hi</p>")
        assert outcome.final_url == _URL
        assert seen["user_agent"] == USER_AGENT

    def test_decodes_declared_charset(self):
        def handler(request):
            return httpx.Response(
                200,
                headers={"Content-Type": "text/plain; charset=iso-8859-1"},
                content="café".encode("latin-1"),
            )

        outcome = _fetch(handler)
        assert outcome.raw_text == "café"
        assert outcome.byte_length == 4

    def test_missing_content_type_is_empty_string(self):
        outcome = _fetch(lambda request: httpx.Response(200, content=b"raw"))
        assert outcome.declared_content_type == ""

    def test_follows_redirects(self):
        def handler(request):
            if request.url.path == "/page":
                return httpx.Response(302, headers={"Location": "/moved"})
            return httpx.Response(200, headers={"Content-Type": "text/plain"}, text="moved")

        outcome = _fetch(handler)
        assert outcome.raw_text == "moved"
        assert outcome.final_url == "https://example.com/moved"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestFetchValidation:
    @pytest.mark.parametrize("url", ["ftp://example.com/file", "file:///etc/passwd", "javascript:alert(1)"])
    def test_non_http_scheme_is_rejected_before_any_request(self, url):
        outcome = _fetch(_never_called, url=url)
        assert isinstance(outcome, FetchFailure)
        assert outcome.reason == FetchFailureReason.INVALID_SCHEME

    def test_missing_hostname_is_rejected(self):
        outcome = _fetch(_never_called, url="http:///nohost")
        assert outcome.reason == FetchFailureReason.INVALID_SCHEME

    def test_private_address_is_blocked(self, monkeypatch):
        monkeypatch.setattr(fetcher, "_is_private_address", _address_check(lambda hostname: True))
        outcome = _fetch(_never_called)
        assert outcome.reason == FetchFailureReason.BLOCKED_ADDRESS

    def test_redirect_to_private_address_is_blocked(self, monkeypatch):
        monkeypatch.setattr(
            fetcher, "_is_private_address", _address_check(lambda hostname: hostname == "internal.local")
        )

        def handler(request):
            if request.url.host == "internal.local":
                raise AssertionError("redirect target must not be requested")
            return httpx.Response(301, headers={"Location": "http://internal.local/admin"})

        outcome = _fetch(handler)
        assert outcome.reason == FetchFailureReason.BLOCKED_ADDRESS

    def test_malformed_ipv6_literal_is_invalid(self):
        outcome = _fetch(_never_called, url="http://[::1/")
        assert isinstance(outcome, FetchFailure)
        assert outcome.reason == FetchFailureReason.INVALID_SCHEME

    def test_overlong_hostname_label_is_invalid(self, monkeypatch):
        # Uses the real resolver: idna rejects the label before any DNS query.
        monkeypatch.setattr(fetcher, "_is_private_address", _resolve_for_real)
        outcome = _fetch(_never_called, url="http://" + "a" * 64 + ".com/")
        assert isinstance(outcome, FetchFailure)
        assert outcome.reason == FetchFailureReason.INVALID_SCHEME

    def test_too_many_redirects(self):
        outcome = _fetch(lambda request: httpx.Response(302, headers={"Location": "/again"}))
        assert outcome.reason == FetchFailureReason.NETWORK_ERROR
        assert "redirect" in outcome.message.lower()


# ---------------------------------------------------------------------------
# HTTP and network errors
# ---------------------------------------------------------------------------

class TestFetchErrors:
    def test_non_2xx_is_http_error_with_status(self):
        outcome = _fetch(lambda request: httpx.Response(404, text="missing"))
        assert outcome.reason == FetchFailureReason.HTTP_ERROR
        assert "404" in outcome.message

    def test_connection_error_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        outcome = _fetch(handler)
        assert outcome.reason == FetchFailureReason.NETWORK_ERROR
        assert "connection refused" in outcome.message

    def test_transport_timeout_is_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        assert _fetch(handler).reason == FetchFailureReason.TIMEOUT


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------

class TestFetchBudgets:
    def test_declared_length_over_budget_is_too_large(self):
        def handler(request):
            return httpx.Response(200, headers={"Content-Length": "50000"}, content=b"tiny")

        outcome = _fetch(handler, max_bytes=1000)
        assert outcome.reason == FetchFailureReason.TOO_LARGE
        assert "50000" in outcome.message

    def test_streamed_body_over_budget_is_too_large_without_header(self):
        async def body():
            for _ in range(10):
                yield b"x" * 1024

        outcome = _fetch(lambda request: httpx.Response(200, content=body()), max_bytes=4096)
        assert outcome.reason == FetchFailureReason.TOO_LARGE

    def test_understated_length_is_still_capped(self):
        def handler(request):
            return httpx.Response(200, headers={"Content-Length": "10"}, content=b"y" * 5000)

        outcome = _fetch(handler, max_bytes=100)
        assert outcome.reason == FetchFailureReason.TOO_LARGE

    def test_body_exactly_at_budget_is_accepted(self):
        outcome = _fetch(lambda request: httpx.Response(200, content=b"z" * 100), max_bytes=100)
        assert isinstance(outcome, FetchedContent)
        assert outcome.byte_length == 100

    def test_unresponsive_server_times_out_promptly(self):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200, text="too late")

        started = time.monotonic()
        outcome = _fetch(handler, timeout_ms=100)
        elapsed = time.monotonic() - started

        assert outcome.reason == FetchFailureReason.TIMEOUT
        assert elapsed < 0.6


# ---------------------------------------------------------------------------
# Deadline
# ---------------------------------------------------------------------------

def _timed_fetch(handler, url: str = _URL, timeout_ms: int = 2_000):
    """Fetch and measure elapsed time inside the event loop."""

    async def run():
        request = FetchRequest(url=url, max_bytes=1024, timeout_ms=timeout_ms)
        started = time.monotonic()
        outcome = await fetch_content(request, transport=httpx.MockTransport(handler))
        return outcome, time.monotonic() - started

    return asyncio.run(run())


class TestFetchDeadline:
    def test_client_phase_timeouts_follow_budget(self):
        """Budgets above httpx's 5 s default are not cut short per phase."""
        seen = {}

        def handler(request):
            seen.update(request.extensions["timeout"])
            return httpx.Response(200, text="ok")

        outcome = _fetch(handler, timeout_ms=12_000)

        assert isinstance(outcome, FetchedContent)
        assert seen == {"connect": 12.0, "read": 12.0, "write": 12.0, "pool": 12.0}

    def test_slow_answer_within_budget_succeeds(self):
        async def handler(request):
            await asyncio.sleep(0.3)
            return httpx.Response(200, text="eventually")

        outcome = _fetch(handler, timeout_ms=1_000)
        assert outcome.raw_text == "eventually"

    def test_slow_address_lookup_counts_against_budget(self, monkeypatch):
        monkeypatch.setattr(fetcher, "_is_private_address", _resolve_for_real)

        def slow_getaddrinfo(*args, **kwargs):
            time.sleep(1)
            return []

        monkeypatch.setattr(socket, "getaddrinfo", slow_getaddrinfo)

        outcome, elapsed = _timed_fetch(_never_called, url="http://example.com/", timeout_ms=100)

        assert outcome.reason == FetchFailureReason.TIMEOUT
        assert elapsed < 0.6

    def test_address_lookup_does_not_block_the_event_loop(self, monkeypatch):
        monkeypatch.setattr(fetcher, "_is_private_address", _resolve_for_real)

        def slow_getaddrinfo(*args, **kwargs):
            time.sleep(0.5)
            return []

        monkeypatch.setattr(socket, "getaddrinfo", slow_getaddrinfo)

        async def run():
            ticks = 0

            async def ticker():
                nonlocal ticks
                while True:
                    await asyncio.sleep(0.05)
                    ticks += 1

            task = asyncio.create_task(ticker())
            request = FetchRequest(url="http://example.com/", max_bytes=1024, timeout_ms=2_000)
            outcome = await fetch_content(
                request, transport=httpx.MockTransport(lambda r: httpx.Response(200, text="ok"))
            )
            task.cancel()
            return outcome, ticks

        outcome, ticks = asyncio.run(run())

        assert isinstance(outcome, FetchedContent)
        assert ticks >= 5
