"""Resolution engine: worklist traversal over registry modules.

Each run keeps an explicit queue, a visited set and an arena of finalized
ModuleRecords keyed by name. A name is processed at most once per run, so
cyclic sibling graphs terminate; every name that is ever discovered ends up in
the file-set, either normalized or as a placeholder.
"""
from __future__ import annotations

import asyncio
import logging
import re
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Set

from common.logging_utils import extra_context, is_debug_enabled, Timer
from config import EngineConfig
from models import (
    FetchError,
    FetchOutcome,
    InvalidRequestError,
    ModuleRecord,
    ModuleStatus,
    NodeState,
    PackageRef,
    ResolutionResult,
    SourceEntry,
    ordered_unique,
)
from registry.async_fetcher import AsyncSourceFetcher
from registry.cache import SourceCache
from registry.fetcher import SourceFetcher
from resolution.fallback import degrade_to_placeholder
from transform.normalizer import DialectNormalizer
from transform.scanner import DependencyScanner

logger = logging.getLogger(__name__)

_PATH_LIKE = re.compile(r"[/\\]|^\.|\.\.|\s")


def validate_requested(requested: Iterable[str]) -> List[str]:
    """Check the caller's module list and collapse duplicates.

    Raises:
        InvalidRequestError: On an empty list, or any non-string, blank or
            path-like name.
    """
    if requested is None or isinstance(requested, (str, bytes)):
        raise InvalidRequestError("requested modules must be a list of names")
    try:
        names = list(requested)
    except TypeError as exc:
        raise InvalidRequestError("requested modules must be a list of names") from exc
    if not names:
        raise InvalidRequestError("no modules requested")

    cleaned = []
    for name in names:
        if not isinstance(name, str):
            raise InvalidRequestError(f"module name must be a string, got {type(name).__name__}")
        stripped = name.strip()
        if not stripped:
            raise InvalidRequestError("module name must not be blank")
        if _PATH_LIKE.search(stripped):
            raise InvalidRequestError(f"module name looks like a path: {name!r}")
        cleaned.append(stripped)
    return list(ordered_unique(cleaned))


class _Run:
    """Mutable state of one resolution run."""

    def __init__(self, names: List[str]):
        self.worklist: Deque[str] = deque(names)
        self.queued: Set[str] = set(names)
        self.visited: Set[str] = set()
        self.records: Dict[str, ModuleRecord] = {}
        self.files: Dict[str, str] = {}
        self.external: List[PackageRef] = []
        self._external_names: Set[str] = set()
        self.visit_order: List[str] = []
        self.states: Dict[str, NodeState] = {name: NodeState.PENDING for name in names}

    def pop(self) -> Optional[str]:
        name = self.worklist.popleft()
        self.queued.discard(name)
        if name in self.visited:
            return None
        self.visited.add(name)
        self.visit_order.append(name)
        self.states[name] = NodeState.FETCHING
        return name

    def pop_batch(self, size: int) -> List[str]:
        batch = []
        while self.worklist and len(batch) < size:
            name = self.pop()
            if name is not None:
                batch.append(name)
        return batch

    def enqueue(self, name: str) -> None:
        if name in self.visited or name in self.queued:
            return
        self.worklist.append(name)
        self.queued.add(name)
        self.states[name] = NodeState.PENDING

    def add_external(self, ref: PackageRef) -> None:
        if ref.name in self._external_names:
            return
        self._external_names.add(ref.name)
        self.external.append(ref)

    def finalize(self, record: ModuleRecord) -> None:
        self.records[record.name] = record
        self.files[record.path] = record.normalized_source
        if not record.failed:
            for sibling in record.sibling_deps:
                self.enqueue(sibling)
            for ref in record.external_deps:
                self.add_external(ref)
        self.states[record.name] = NodeState.DONE

    def result(self) -> ResolutionResult:
        return ResolutionResult(
            files=self.files,
            external_deps=self.external,
            records=self.records,
            visit_order=self.visit_order,
            states=self.states,
        )


class ResolutionEngine:
    """Resolve requested modules and their transitive sibling modules.

    Args:
        config: Engine configuration; defaults when omitted.
        fetcher: Object with ``fetch(name) -> SourceEntry | FetchError``.
        cache: Source cache for the default fetchers; the process-wide cache
            when omitted.
        normalizer: Dialect normalizer; built from ``config`` when omitted.
        scanner: Dependency scanner; built from ``config`` when omitted.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        fetcher=None,
        cache: Optional[SourceCache] = None,
        normalizer: Optional[DialectNormalizer] = None,
        scanner: Optional[DependencyScanner] = None,
    ):
        self.config = config or EngineConfig()
        self.cache = cache
        self.fetcher = fetcher or SourceFetcher(self.config, cache)
        self.normalizer = normalizer or DialectNormalizer(
            internal_alias=self.config.internal_alias,
            shared_lib_alias=self.config.shared_lib_alias,
            substitutions=self.config.substitutions,
        )
        self.scanner = scanner or DependencyScanner(
            self.config.internal_alias, self.config.base_runtime_packages
        )

    def resolve(self, requested: Iterable[str]) -> ResolutionResult:
        """Resolve ``requested`` sequentially.

        Raises:
            InvalidRequestError: If the requested list is empty or malformed.
        """
        names = validate_requested(requested)
        run = _Run(names)
        with Timer() as t:
            while run.worklist:
                name = run.pop()
                if name is None:
                    continue
                self._process(run, name, self._fetch(name))
        self._log_summary(run, t)
        return run.result()

    async def resolve_async(self, requested: Iterable[str], fetcher=None) -> ResolutionResult:
        """Resolve ``requested`` with concurrent fetches.

        Names are popped in batches of at most ``max_concurrency`` and fetched
        together; results are then processed in pop order, so the outcome is
        the same as ``resolve``.

        Args:
            requested: Module names.
            fetcher: Object with ``async fetch(name)``. A temporary
                AsyncSourceFetcher is used when omitted.

        Raises:
            InvalidRequestError: If the requested list is empty or malformed.
        """
        names = validate_requested(requested)
        run = _Run(names)
        if fetcher is None:
            async with AsyncSourceFetcher(self.config, self.cache) as owned:
                await self._drain_async(run, owned)
        else:
            await self._drain_async(run, fetcher)
        return run.result()

    async def _drain_async(self, run: _Run, fetcher) -> None:
        with Timer() as t:
            while run.worklist:
                batch = run.pop_batch(self.config.max_concurrency)
                if not batch:
                    continue
                outcomes = await asyncio.gather(*(self._fetch_async(fetcher, name) for name in batch))
                for name, outcome in zip(batch, outcomes):
                    self._process(run, name, outcome)
        self._log_summary(run, t)

    def _fetch(self, name: str) -> FetchOutcome:
        try:
            return self.fetcher.fetch(name)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected error fetching %s", name)
            return FetchError(name, f"unexpected error: {exc}")

    async def _fetch_async(self, fetcher, name: str) -> FetchOutcome:
        try:
            return await asyncio.wait_for(fetcher.fetch(name), timeout=self.config.request_timeout)
        except asyncio.TimeoutError:
            logger.warning("Fetching %s timed out after %s seconds", name, self.config.request_timeout)
            return FetchError(name, "timeout")
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected error fetching %s", name)
            return FetchError(name, f"unexpected error: {exc}")

    def _process(self, run: _Run, name: str, outcome: FetchOutcome) -> None:
        path = self.config.canonical_path(name)
        if isinstance(outcome, FetchError):
            run.states[name] = NodeState.FETCH_FAILED
            run.finalize(degrade_to_placeholder(name, outcome, path))
            return

        run.states[name] = NodeState.FETCHED
        try:
            record = self._build_record(run, name, path, outcome)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected error processing %s", name)
            record = degrade_to_placeholder(
                name, FetchError(name, f"processing failed: {exc}"), path, raw_source=outcome.raw_source
            )
        run.finalize(record)

    def _build_record(self, run: _Run, name: str, path: str, entry: SourceEntry) -> ModuleRecord:
        normalized = self.normalizer.normalize(entry.raw_source, module=name)
        run.states[name] = NodeState.NORMALIZED

        scan = self.scanner.scan(normalized)
        run.states[name] = NodeState.SCANNED

        pinned = {ref.name: ref for ref in entry.declared_deps}
        external = tuple(pinned.get(ref.name, ref) for ref in scan.external_deps)
        siblings = tuple(
            s for s in ordered_unique(scan.sibling_deps + tuple(entry.declared_siblings)) if s != name
        )

        if is_debug_enabled(logger):
            logger.debug(
                "Scanned module",
                extra=extra_context(
                    event="scan",
                    component="engine",
                    target=name,
                    siblings=",".join(siblings),
                    external=",".join(str(r) for r in external),
                ),
            )
        return ModuleRecord(
            name=name,
            path=path,
            status=ModuleStatus.NORMALIZED,
            raw_source=entry.raw_source,
            normalized_source=normalized,
            external_deps=external,
            sibling_deps=siblings,
        )

    @staticmethod
    def _log_summary(run: _Run, timer: Timer) -> None:
        failed = [name for name, rec in run.records.items() if rec.failed]
        logger.info(
            "Resolved %d module(s), %d placeholder(s), %d external package(s)",
            len(run.records),
            len(failed),
            len(run.external),
            extra=extra_context(
                event="resolve",
                component="engine",
                outcome="partial" if failed else "success",
                duration_ms=timer.duration_ms(),
            ),
        )
