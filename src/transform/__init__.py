"""Source transformation: dialect normalization and dependency scanning."""

from .normalizer import DialectNormalizer
from .scanner import DependencyScanner, ScanResult

__all__ = ["DialectNormalizer", "DependencyScanner", "ScanResult"]
