"""Synchronous registry fetcher backed by requests."""
from __future__ import annotations

import logging
from typing import Optional

from common.http_client import robust_get
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from config import EngineConfig
from models import FetchError, FetchOutcome
from registry.cache import SourceCache, process_cache
from registry.source import build_url, decode_payload
from transform.scanner import DependencyScanner

logger = logging.getLogger(__name__)


class SourceFetcher:
    """Fetch one module's source, cache-first.

    Successful fetches are stored in the cache; failures are returned as
    FetchError values and never cached, so a later call may retry.
    """

    def __init__(self, config: Optional[EngineConfig] = None, cache: Optional[SourceCache] = None):
        self.config = config or EngineConfig()
        self.cache = cache if cache is not None else process_cache()
        self.scanner = DependencyScanner(self.config.internal_alias, self.config.base_runtime_packages)

    def fetch(self, name: str) -> FetchOutcome:
        """Return the module's SourceEntry, or a FetchError describing the failure."""
        cached = self.cache.get(name)
        if cached is not None:
            if is_debug_enabled(logger):
                logger.debug(
                    "Source cache hit",
                    extra=extra_context(event="cache_hit", component="fetcher", target=name),
                )
            return cached

        url = build_url(self.config, name)
        with Timer() as t:
            status, _headers, body = robust_get(url, context="registry", timeout=self.config.request_timeout)
        outcome = decode_payload(self.config, self.scanner, name, url, status, body)

        if isinstance(outcome, FetchError):
            logger.warning(
                "Failed to fetch %s from %s: %s",
                name,
                safe_url(url),
                outcome.reason,
                extra=extra_context(
                    event="fetch",
                    component="fetcher",
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
                component="fetcher",
                outcome="success",
                target=name,
                duration_ms=t.duration_ms(),
            ),
        )
        return outcome

    def clear_cache(self) -> None:
        self.cache.clear()
