"""Tests for the aiohttp-based source fetcher."""

import asyncio

import pytest

aiohttp_mod = pytest.importorskip("aiohttp")

from config import EngineConfig
from models import FetchError, SourceEntry
from registry.async_fetcher import AsyncSourceFetcher
from registry.cache import SourceCache

BASE = "https://registry.example/ui"


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse."""

    def __init__(self, status, text):
        self.status = status
        self._text = text

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Session returning canned responses keyed by URL."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []
        self.closed = False

    def get(self, url, **kwargs):
        self.calls.append(url)
        outcome = self.responses[url]
        if isinstance(outcome, BaseException):
            raise outcome
        return FakeResponse(*outcome)

    async def close(self):
        self.closed = True


def _fetcher(responses):
    session = FakeSession(responses)
    fetcher = AsyncSourceFetcher(EngineConfig(registry_base_url=BASE), SourceCache(), session=session)
    return fetcher, session


class TestAsyncSourceFetcher:
    """Tests for AsyncSourceFetcher."""

    def test_success_is_cached(self):
        fetcher, session = _fetcher({f"{BASE}/card.tsx": (200, 'import { Check } from "lucide-react"\n')})

        async def run():
            async with fetcher:
                first = await fetcher.fetch("card")
                second = await fetcher.fetch("card")
            return first, second

        first, second = asyncio.run(run())

        assert isinstance(first, SourceEntry)
        assert first is second
        assert [ref.name for ref in first.declared_deps] == ["lucide-react"]
        assert session.calls == [f"{BASE}/card.tsx"]

    def test_http_error_not_cached(self):
        fetcher, session = _fetcher({f"{BASE}/missing-widget.tsx": (404, "404: Not Found")})

        async def run():
            first = await fetcher.fetch("missing-widget")
            second = await fetcher.fetch("missing-widget")
            await fetcher.stop()
            return first, second

        first, second = asyncio.run(run())

        assert isinstance(first, FetchError)
        assert first.status_code == 404
        assert first == second
        assert len(session.calls) == 2

    def test_timeout(self):
        fetcher, _ = _fetcher({f"{BASE}/card.tsx": asyncio.TimeoutError()})

        outcome = asyncio.run(fetcher.fetch("card"))

        assert isinstance(outcome, FetchError)
        assert "timed out" in outcome.reason

    def test_client_error(self):
        fetcher, _ = _fetcher({f"{BASE}/card.tsx": aiohttp_mod.ClientConnectionError("refused")})

        outcome = asyncio.run(fetcher.fetch("card"))

        assert isinstance(outcome, FetchError)
        assert outcome.reason.startswith("connection error")

    def test_injected_session_not_closed(self):
        fetcher, session = _fetcher({})

        async def run():
            async with fetcher:
                pass

        asyncio.run(run())

        assert session.closed is False

    def test_clear_cache(self):
        fetcher, session = _fetcher({f"{BASE}/card.tsx": (200, "export {}\n")})

        async def run():
            await fetcher.fetch("card")
            fetcher.clear_cache()
            await fetcher.fetch("card")

        asyncio.run(run())

        assert len(session.calls) == 2
