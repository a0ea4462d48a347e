"""Data models shared by the fetcher, transform, resolution and manifest layers."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from constants import Constants

# Handles "pkg", "pkg@1.2.3", "@scope/pkg" and "@scope/pkg@^1.0.0".
NPM_DEP_PATTERN = re.compile(r"^(@?[a-z0-9_.-]+(?:/[a-z0-9_.-]+)?)(?:@(.+))?$", re.IGNORECASE)
MODULE_NAME_PATTERN = re.compile(r"[\w-]+")


class ModuleStatus(Enum):
    """Final status of a module record."""
    FETCHED = "fetched"
    NORMALIZED = "normalized"
    FAILED = "failed"


class NodeState(Enum):
    """Traversal state of a module name within one resolution run."""
    PENDING = "pending"
    FETCHING = "fetching"
    FETCHED = "fetched"
    FETCH_FAILED = "fetch_failed"
    NORMALIZED = "normalized"
    SCANNED = "scanned"
    DONE = "done"


@dataclass(frozen=True)
class PackageRef:
    """External runtime package. Equal by name only; first-seen version wins."""
    name: str
    version_spec: str = field(default=Constants.DEFAULT_VERSION_SPEC, compare=False)

    @classmethod
    def parse(cls, token: str) -> "PackageRef":
        """Parse ``name``, ``name@version`` or ``@scope/name@version``."""
        match = NPM_DEP_PATTERN.match((token or "").strip())
        if not match:
            raise ValueError(f"Invalid dependency token: {token!r}")
        return cls(match.group(1), match.group(2) or Constants.DEFAULT_VERSION_SPEC)

    def __str__(self) -> str:
        if self.version_spec == Constants.DEFAULT_VERSION_SPEC:
            return self.name
        return f"{self.name}@{self.version_spec}"


@dataclass(frozen=True)
class SourceEntry:
    """Successful fetch result, as stored in the source cache."""
    name: str
    raw_source: str
    declared_deps: Tuple[PackageRef, ...] = ()
    declared_siblings: Tuple[str, ...] = ()
    url: Optional[str] = None


class FetchError(Exception):
    """A module could not be fetched. Returned as a value by fetchers."""

    def __init__(self, name: str, reason: str, status_code: Optional[int] = None):
        super().__init__(f"{name}: {reason}")
        self.name = name
        self.reason = reason
        self.status_code = status_code

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FetchError):
            return NotImplemented
        return (self.name, self.reason, self.status_code) == (other.name, other.reason, other.status_code)

    def __hash__(self) -> int:
        return hash((self.name, self.reason, self.status_code))


class InvalidRequestError(ValueError):
    """The requested module list is empty or malformed."""


FetchOutcome = Union[SourceEntry, FetchError]


@dataclass(frozen=True)
class ModuleRecord:
    """Finalized per-module result of a resolution run."""
    name: str
    path: str
    status: ModuleStatus
    raw_source: str = ""
    normalized_source: str = ""
    external_deps: Tuple[PackageRef, ...] = ()
    sibling_deps: Tuple[str, ...] = ()
    error: Optional[FetchError] = None

    @property
    def failed(self) -> bool:
        return self.status is ModuleStatus.FAILED


@dataclass
class ResolutionResult:
    """Flattened output of one resolution run."""
    files: Dict[str, str] = field(default_factory=dict)
    external_deps: List[PackageRef] = field(default_factory=list)
    records: Dict[str, ModuleRecord] = field(default_factory=dict)
    visit_order: List[str] = field(default_factory=list)
    states: Dict[str, NodeState] = field(default_factory=dict)

    @property
    def failures(self) -> Dict[str, FetchError]:
        """Errors of modules that were replaced by placeholders."""
        return {name: rec.error for name, rec in self.records.items() if rec.failed and rec.error}

    @property
    def module_names(self) -> List[str]:
        return list(self.records)


def ordered_unique(items) -> tuple:
    """Drop duplicates while keeping first-appearance order."""
    seen = set()
    out = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return tuple(out)
