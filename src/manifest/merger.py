"""Fold discovered external packages into a package.json manifest."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from constants import Constants
from models import PackageRef

logger = logging.getLogger(__name__)


@dataclass
class MergeReport:
    """Which packages a merge added and which it left alone."""
    added: Dict[str, str] = field(default_factory=dict)
    kept: List[str] = field(default_factory=list)


def merge_manifest(
    manifest: Dict[str, Any],
    external_deps: Iterable[PackageRef],
    baseline_deps: Optional[Mapping[str, str]] = None,
    report: Optional[MergeReport] = None,
) -> Dict[str, Any]:
    """Add baseline and discovered packages to ``manifest["dependencies"]``.

    The manifest is changed in place and returned. Baseline packages go in
    first, then discovered packages in order. A package that is already
    declared keeps its declared version.

    Args:
        manifest: Parsed package.json.
        external_deps: Discovered packages.
        baseline_deps: Packages every project needs; Constants.BASELINE_DEPENDENCIES
            when None.
        report: Optional MergeReport to fill in.

    Returns:
        The same manifest object.
    """
    if baseline_deps is None:
        baseline_deps = Constants.BASELINE_DEPENDENCIES
    report = report if report is not None else MergeReport()

    deps = manifest.get("dependencies")
    if not isinstance(deps, dict):
        deps = {}
        manifest["dependencies"] = deps

    candidates: List[Tuple[str, str]] = list(baseline_deps.items())
    candidates.extend((ref.name, ref.version_spec or Constants.DEFAULT_VERSION_SPEC) for ref in external_deps)

    for name, version in candidates:
        if name in deps:
            if name not in report.kept and name not in report.added:
                report.kept.append(name)
            continue
        deps[name] = version
        report.added[name] = version

    if report.added:
        logger.info("Added %d package(s) to manifest: %s", len(report.added), ", ".join(report.added))
    return manifest


def merge_manifest_text(
    package_json: str,
    external_deps: Iterable[PackageRef],
    baseline_deps: Optional[Mapping[str, str]] = None,
) -> Tuple[str, MergeReport]:
    """Merge into package.json text; returns the new text (2-space indent) and the report.

    Raises:
        ValueError: If ``package_json`` is not a JSON object.
    """
    try:
        manifest = json.loads(package_json or "{}")
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid package.json: {exc.msg}") from exc
    if not isinstance(manifest, dict):
        raise ValueError("Invalid package.json: expected an object")
    report = MergeReport()
    merge_manifest(manifest, external_deps, baseline_deps, report)
    return json.dumps(manifest, indent=2) + "\n", report
