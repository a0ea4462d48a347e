"""Dependency scanner: sibling-module and external-package imports of a module."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from constants import Constants
from models import MODULE_NAME_PATTERN, PackageRef, ordered_unique

logger = logging.getLogger(__name__)

# import X from "a" / import { A,\n B } from "a" / import "a" / export { A } from "a"
IMPORT_STATEMENT = re.compile(
    r"""^[ \t]*(?:import|export)\b(?:[^"';]*?\bfrom)?\s*["']([^"'\n]+)["']""",
    re.MULTILINE,
)


@dataclass(frozen=True)
class ScanResult:
    """Ordered-unique dependencies found in one module."""
    sibling_deps: Tuple[str, ...] = ()
    external_deps: Tuple[PackageRef, ...] = ()


def import_specifiers(source: str) -> List[str]:
    """All import/re-export specifiers at line starts, in source order."""
    return [m.group(1).strip() for m in IMPORT_STATEMENT.finditer(source or "")]


def package_name(specifier: str) -> str:
    """Top-level package of a bare specifier (``@scope/name`` keeps two segments)."""
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        return "/".join(parts[:2])
    return parts[0]


class DependencyScanner:
    """Classifies import specifiers of normalized module source."""

    def __init__(
        self,
        internal_alias: str = Constants.INTERNAL_ALIAS,
        base_runtime_packages: Iterable[str] = Constants.BASE_RUNTIME_PACKAGES,
    ):
        self.internal_alias = internal_alias.rstrip("/")
        self.base_runtime_packages = frozenset(base_runtime_packages)
        self._sibling_pattern = re.compile(r"^" + re.escape(self.internal_alias) + r"/([^/]+)$")

    def sibling_name(self, specifier: str) -> Optional[str]:
        """Module name if ``specifier`` points at a canonical internal module.

        Names with dots or other path characters (``button.tsx``, ``..``) are
        not module names and yield None.
        """
        match = self._sibling_pattern.match(specifier)
        if not match:
            return None
        name = match.group(1)
        if not MODULE_NAME_PATTERN.fullmatch(name):
            logger.debug("Ignoring internal import with invalid module name: %s", specifier)
            return None
        return name

    def external_package(self, specifier: str) -> Optional[str]:
        """Top-level package name if ``specifier`` is an external runtime package."""
        if not specifier or specifier.startswith((".", "/", "@/", "~/")):
            return None
        if specifier.startswith(("http:", "https:", "node:", "data:")):
            return None
        name = package_name(specifier)
        if not name or name in self.base_runtime_packages:
            return None
        return name

    def scan(self, source: str) -> ScanResult:
        """Return sibling modules and external packages imported by ``source``."""
        siblings = []
        externals = []
        for specifier in import_specifiers(source):
            sibling = self.sibling_name(specifier)
            if sibling:
                siblings.append(sibling)
                continue
            external = self.external_package(specifier)
            if external:
                externals.append(PackageRef(external))
        return ScanResult(ordered_unique(siblings), ordered_unique(externals))

    def scan_external(self, source: str) -> Tuple[PackageRef, ...]:
        """External packages only; used on raw source at fetch time."""
        return self.scan(source).external_deps
