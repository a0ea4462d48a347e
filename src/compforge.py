"""compforge: resolve registry UI components into a ready-to-preview project.

Entry points:
    build_project(["table"])              sequential fetches with requests
    await build_project_async(["table"])  concurrent fetches with aiohttp
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from config import EngineConfig, load_config
from project.composer import ComposedProject, compose_project
from registry.cache import SourceCache
from resolution.engine import ResolutionEngine

logger = logging.getLogger(__name__)


def _resolve_config(config: Optional[EngineConfig], config_path: Optional[str]) -> EngineConfig:
    if config is not None:
        return config
    return load_config(config_path)


def build_project(
    requested: Iterable[str],
    config: Optional[EngineConfig] = None,
    config_path: Optional[str] = None,
    cache: Optional[SourceCache] = None,
    base_files: Optional[Mapping[str, str]] = None,
    fetcher=None,
) -> ComposedProject:
    """Resolve ``requested`` and compose the project.

    Args:
        requested: Module names, e.g. ``["card", "table"]``.
        config: Engine configuration; loaded from ``config_path`` when None.
        config_path: YAML/JSON config file; defaults when None.
        cache: Source cache; the process-wide cache when None.
        base_files: Existing project files to overlay on; base template when None.
        fetcher: Optional fetcher replacing the HTTP one.

    Returns:
        ComposedProject.

    Raises:
        InvalidRequestError: If ``requested`` is empty or malformed.
        ConfigError: If the config file cannot be loaded.
    """
    cfg = _resolve_config(config, config_path)
    engine = ResolutionEngine(cfg, fetcher=fetcher, cache=cache)
    result = engine.resolve(requested)
    return compose_project(
        result,
        base_files=base_files,
        project_name=cfg.project_name,
        baseline_deps=cfg.baseline_dependencies,
        components_dir=cfg.components_dir,
    )


async def build_project_async(
    requested: Iterable[str],
    config: Optional[EngineConfig] = None,
    config_path: Optional[str] = None,
    cache: Optional[SourceCache] = None,
    base_files: Optional[Mapping[str, str]] = None,
    fetcher=None,
) -> ComposedProject:
    """Async variant of build_project; ``fetcher`` must provide ``async fetch(name)``."""
    cfg = _resolve_config(config, config_path)
    engine = ResolutionEngine(cfg, cache=cache)
    result = await engine.resolve_async(requested, fetcher=fetcher)
    return compose_project(
        result,
        base_files=base_files,
        project_name=cfg.project_name,
        baseline_deps=cfg.baseline_dependencies,
        components_dir=cfg.components_dir,
    )
