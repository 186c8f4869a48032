"""Criteria mapper: trust verdicts to audit criteria.

Submodules:
    models  -- ThresholdConfig, Assessment
    mapper  -- map_verdict, assess
"""

from trustvet.core.mapping.mapper import (
    ISSUES_NOTE,
    UNMAINTAINED_NOTE,
    assess,
    map_verdict,
)
from trustvet.core.mapping.models import (
    DEFAULT_THRESHOLDS,
    Assessment,
    ThresholdConfig,
)

__all__ = [
    "Assessment",
    "DEFAULT_THRESHOLDS",
    "ISSUES_NOTE",
    "ThresholdConfig",
    "UNMAINTAINED_NOTE",
    "assess",
    "map_verdict",
]
