"""Asynchronous registry fetcher backed by aiohttp."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from config import EngineConfig
from constants import Constants
from models import FetchError, FetchOutcome
from registry.cache import SourceCache, process_cache
from registry.source import build_url, decode_payload
from transform.scanner import DependencyScanner

logger = logging.getLogger(__name__)


class AsyncSourceFetcher:
    """Same contract as SourceFetcher, with bounded concurrent requests.

    Use as an async context manager, or call ``start()``/``stop()``. A session
    passed in by the caller is used as-is and is not closed by ``stop()``.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        cache: Optional[SourceCache] = None,
        session: Optional[Any] = None,
    ):
        """Initialize the fetcher.

        Args:
            config: Engine configuration; defaults when omitted.
            cache: Source cache; the process-wide cache when omitted.
            session: Optional pre-built aiohttp.ClientSession (or compatible object).
        """
        self.config = config or EngineConfig()
        self.cache = cache if cache is not None else process_cache()
        self.scanner = DependencyScanner(self.config.internal_alias, self.config.base_runtime_packages)
        self._timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
        self._session = session
        self._owns_session = session is None
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            connector = aiohttp.TCPConnector(limit=self.config.max_concurrency)
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                connector=connector,
                headers={"User-Agent": Constants.USER_AGENT},
            )
            self._owns_session = True
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.config.max_concurrency)

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None
        self._semaphore = None

    async def __aenter__(self) -> "AsyncSourceFetcher":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    async def fetch(self, name: str) -> FetchOutcome:
        """Return the module's SourceEntry, or a FetchError describing the failure."""
        cached = self.cache.get(name)
        if cached is not None:
            if is_debug_enabled(logger):
                logger.debug(
                    "Source cache hit",
                    extra=extra_context(event="cache_hit", component="async_fetcher", target=name),
                )
            return cached

        if self._session is None or self._semaphore is None:
            await self.start()
        assert self._session is not None and self._semaphore is not None

        url = build_url(self.config, name)
        async with self._semaphore:
            with Timer() as t:
                status, body = await self._get(url)
        outcome = decode_payload(self.config, self.scanner, name, url, status, body)

        if isinstance(outcome, FetchError):
            logger.warning(
                "Failed to fetch %s from %s: %s",
                name,
                safe_url(url),
                outcome.reason,
                extra=extra_context(
                    event="fetch",
                    component="async_fetcher",
                    outcome="failure",
                    target=name,
                    status_code=outcome.status_code,
                    duration_ms=t.duration_ms(),
                ),
            )
            return outcome

        self.cache.set(name, outcome)
        logger.info(
            "Fetched %s (%d chars)",
            name,
            len(outcome.raw_source),
            extra=extra_context(
                event="fetch",
                component="async_fetcher",
                outcome="success",
                target=name,
                duration_ms=t.duration_ms(),
            ),
        )
        return outcome

    async def _get(self, url: str):
        """GET ``url``; transport failures become status 0 plus a reason."""
        try:
            async with self._session.get(url, timeout=self._timeout) as response:
                return response.status, await response.text()
        except asyncio.TimeoutError:
            return 0, f"timed out after {self.config.request_timeout} seconds"
        except aiohttp.ClientError as exc:
            return 0, f"connection error: {exc}"

    def clear_cache(self) -> None:
        self.cache.clear()
