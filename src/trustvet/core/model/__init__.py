"""Assessment model: versions, ranges, criteria, evidence and records.

Submodules:
    versions  -- Version (SemVer precedence) and VersionRange
    criteria  -- criteria sets, the standard criteria table, implication
    records   -- TrustLevel, TrustVerdict, ExternalCorroboration,
                 Provenance, AuditRecord

All public names are re-exported here so callers can write
``from trustvet.core.model import AuditRecord``.
"""

from trustvet.core.model.criteria import (
    BUILTIN_CRITERIA,
    REVIEWED_BY_THIRD_PARTY,
    SAFE_TO_DEPLOY,
    SAFE_TO_RUN,
    STANDARD_CRITERIA,
    UNMAINTAINED,
    CriteriaDefinition,
    CriteriaSet,
    CriteriaTable,
    closure,
    criteria_set,
    definitions_for,
    implies,
)
from trustvet.core.model.records import (
    HAS_ISSUES,
    UNMAINTAINED_FLAG,
    AuditRecord,
    ExternalCorroboration,
    PackageId,
    Provenance,
    ProvenanceKind,
    TrustLevel,
    TrustVerdict,
)
from trustvet.core.model.versions import Version, VersionRange, parse_version

__all__ = [
    "AuditRecord",
    "BUILTIN_CRITERIA",
    "CriteriaDefinition",
    "CriteriaSet",
    "CriteriaTable",
    "ExternalCorroboration",
    "HAS_ISSUES",
    "PackageId",
    "Provenance",
    "ProvenanceKind",
    "REVIEWED_BY_THIRD_PARTY",
    "SAFE_TO_DEPLOY",
    "SAFE_TO_RUN",
    "STANDARD_CRITERIA",
    "TrustLevel",
    "TrustVerdict",
    "UNMAINTAINED",
    "UNMAINTAINED_FLAG",
    "Version",
    "VersionRange",
    "closure",
    "criteria_set",
    "definitions_for",
    "implies",
    "parse_version",
]
