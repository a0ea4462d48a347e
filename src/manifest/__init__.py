"""package.json dependency merging."""

from .merger import MergeReport, merge_manifest, merge_manifest_text

__all__ = ["MergeReport", "merge_manifest", "merge_manifest_text"]
