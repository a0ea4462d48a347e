"""Worklist resolution of requested modules and their sibling modules."""

from .engine import ResolutionEngine, validate_requested
from .fallback import degrade_to_placeholder

__all__ = ["ResolutionEngine", "validate_requested", "degrade_to_placeholder"]
