"""Range consolidator: minimal, criteria-homogeneous version ranges."""

from trustvet.core.consolidation.consolidator import (
    DEFAULT_SOURCE_ID,
    consolidate,
    merge_runs,
)

__all__ = ["DEFAULT_SOURCE_ID", "consolidate", "merge_runs"]
