"""Overlay a resolution result on the base project template."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from constants import Constants
from manifest.merger import merge_manifest_text
from models import ResolutionResult
from project.exports import extract_component_exports
from project.templates import load_base_template

logger = logging.getLogger(__name__)


@dataclass
class ComposedProject:
    """Files ready for the preview sandbox, plus what was added to the manifest."""
    files: Dict[str, str] = field(default_factory=dict)
    manifest: str = ""
    added_dependencies: Dict[str, str] = field(default_factory=dict)
    component_exports: Dict[str, List[str]] = field(default_factory=dict)
    resolution: Optional[ResolutionResult] = None


def compose_project(
    result: ResolutionResult,
    base_files: Optional[Mapping[str, str]] = None,
    project_name: str = Constants.DEFAULT_PROJECT_NAME,
    baseline_deps: Optional[Mapping[str, str]] = None,
    components_dir: str = Constants.COMPONENTS_DIR,
) -> ComposedProject:
    """Build the final file-set.

    Args:
        result: Output of a resolution run.
        base_files: Starting file-set; the base template when None.
        project_name: Used for the default template only.
        baseline_deps: Packages merged into every manifest.
        components_dir: Where UI components live, for export extraction.

    Returns:
        ComposedProject; resolved files replace base files at the same path.
    """
    files = dict(base_files) if base_files is not None else load_base_template(project_name)
    files.update(result.files)

    manifest_text, report = merge_manifest_text(
        files.get(Constants.MANIFEST_PATH, "{}"), result.external_deps, baseline_deps
    )
    files[Constants.MANIFEST_PATH] = manifest_text

    composed = ComposedProject(
        files=files,
        manifest=manifest_text,
        added_dependencies=report.added,
        component_exports=extract_component_exports(files, components_dir),
        resolution=result,
    )
    logger.info(
        "Composed project with %d file(s), %d component(s)",
        len(files),
        len(composed.component_exports),
    )
    return composed
