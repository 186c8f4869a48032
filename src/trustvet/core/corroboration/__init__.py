"""External corroboration: curated package lists as capped evidence.

Submodules:
    models  -- CorroborationConfig, RedundantCorroboration
    merger  -- merge, match_package_names, MergeResult
"""

from trustvet.core.corroboration.merger import MergeResult, match_package_names, merge
from trustvet.core.corroboration.models import (
    DEFAULT_CAPS,
    DEFAULT_SOURCE_CRITERIA,
    CorroborationConfig,
    RedundantCorroboration,
)

__all__ = [
    "CorroborationConfig",
    "DEFAULT_CAPS",
    "DEFAULT_SOURCE_CRITERIA",
    "MergeResult",
    "RedundantCorroboration",
    "match_package_names",
    "merge",
]
