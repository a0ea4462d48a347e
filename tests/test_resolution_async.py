"""Tests for concurrent resolution."""

import asyncio

import pytest

pytest.importorskip("aiohttp")

from config import EngineConfig
from registry.async_fetcher import AsyncSourceFetcher
from registry.cache import SourceCache
from resolution.engine import ResolutionEngine

from registry_fakes import AsyncFakeRegistry, FakeRegistry, module, path, TABLE, BUTTON

GRAPH = {
    "a": module("c", "d", externals=["x"]),
    "b": module("e", externals=["y", "x"]),
    "c": module("a"),
    "d": module(),
    "e": module("missing"),
}


class TestResolveAsync:
    """Tests for ResolutionEngine.resolve_async."""

    def test_same_output_as_sequential(self):
        """Completion order does not change files, deps or visit order."""
        delays = {"a": 0.03, "b": 0.001, "c": 0.02, "d": 0.001, "e": 0.01}
        engine = ResolutionEngine(EngineConfig(max_concurrency=3))

        expected = ResolutionEngine(fetcher=FakeRegistry(GRAPH)).resolve(["a", "b"])
        actual = asyncio.run(engine.resolve_async(["a", "b"], fetcher=AsyncFakeRegistry(GRAPH, delays)))

        assert actual.files == expected.files
        assert actual.external_deps == expected.external_deps
        assert [r.name for r in actual.external_deps] == ["x", "y"]
        assert actual.visit_order == expected.visit_order

    def test_table_scenario(self):
        registry = AsyncFakeRegistry({"table": TABLE, "button": BUTTON})

        result = asyncio.run(ResolutionEngine().resolve_async(["table"], fetcher=registry))

        assert set(result.files) == {path("table"), path("button")}
        assert [r.name for r in result.external_deps] == ["date-lib"]

    def test_missing_widget_scenario(self):
        result = asyncio.run(ResolutionEngine().resolve_async(["missing-widget"], fetcher=AsyncFakeRegistry({})))
        assert "missing-widget" in result.files[path("missing-widget")]
        assert result.external_deps == []

    def test_concurrency_cap(self):
        sources = {f"m{i}": module() for i in range(7)}
        registry = AsyncFakeRegistry(sources, {name: 0.01 for name in sources})
        engine = ResolutionEngine(EngineConfig(max_concurrency=2))

        result = asyncio.run(engine.resolve_async(list(sources), fetcher=registry))

        assert len(result.files) == 7
        assert registry.max_in_flight <= 2

    def test_timeout_degrades_to_placeholder(self):
        registry = AsyncFakeRegistry({"slow": module(), "fast": module()}, {"slow": 1.0})
        engine = ResolutionEngine(EngineConfig(request_timeout=0.05))

        result = asyncio.run(engine.resolve_async(["slow", "fast"], fetcher=registry))

        assert result.records["slow"].failed
        assert result.records["slow"].error.reason == "timeout"
        assert "timeout" in result.files[path("slow")]
        assert not result.records["fast"].failed

    def test_fetch_exception_degrades(self):
        class Broken:
            async def fetch(self, name):
                raise RuntimeError("kaput")

        result = asyncio.run(ResolutionEngine().resolve_async(["card"], fetcher=Broken()))

        assert result.records["card"].failed
        assert "kaput" in result.records["card"].error.reason

    def test_cycle(self):
        registry = AsyncFakeRegistry({"a": module("b"), "b": module("a")})
        result = asyncio.run(ResolutionEngine().resolve_async(["a"], fetcher=registry))
        assert registry.calls == ["a", "b"]
        assert set(result.files) == {path("a"), path("b")}


BASE = "https://registry.example/ui"


class DelayedResponse:
    """aiohttp-style response whose body arrives after a delay."""

    status = 200

    def __init__(self, body, delay):
        self._body = body
        self._delay = delay

    async def text(self):
        await asyncio.sleep(self._delay)
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class DelayedSession:
    """Session serving fixed bodies with per-URL delays."""

    def __init__(self, bodies, delays=None):
        self.bodies = bodies
        self.delays = delays or {}
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(url)
        return DelayedResponse(self.bodies[url], self.delays.get(url, 0))

    async def close(self):
        pass


class TestCancellation:
    """Tests for cancelling a running resolve_async."""

    def test_completed_fetches_stay_cached(self):
        """Cancelling abandons in-flight fetches; finished ones serve the next run."""
        config = EngineConfig(registry_base_url=BASE, max_concurrency=2)
        cache = SourceCache()
        bodies = {f"{BASE}/fast.tsx": module(), f"{BASE}/slow.tsx": module()}
        first_session = DelayedSession(bodies, {f"{BASE}/slow.tsx": 30})

        async def cancelled_run():
            fetcher = AsyncSourceFetcher(config, cache, session=first_session)
            task = asyncio.ensure_future(
                ResolutionEngine(config, cache=cache).resolve_async(["fast", "slow"], fetcher=fetcher)
            )
            while "fast" not in cache:
                await asyncio.sleep(0.005)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(cancelled_run())

        assert first_session.calls == [f"{BASE}/fast.tsx", f"{BASE}/slow.tsx"]
        assert "fast" in cache
        assert "slow" not in cache

        second_session = DelayedSession(bodies)
        fetcher = AsyncSourceFetcher(config, cache, session=second_session)
        result = asyncio.run(ResolutionEngine(config, cache=cache).resolve_async(["fast", "slow"], fetcher=fetcher))

        assert second_session.calls == [f"{BASE}/slow.tsx"]
        assert set(result.files) == {path("fast"), path("slow")}
        assert not result.failures
