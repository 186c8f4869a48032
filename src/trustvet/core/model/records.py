"""Evidence inputs and audit records.

Defines the data flowing through the conversion engine:

- ``TrustLevel`` -- ordered trust levels reported by the trust graph.
- ``TrustVerdict`` -- one per package version, produced by the trust graph.
- ``ExternalCorroboration`` -- "curator Y ships package X at version V".
- ``Provenance`` -- where an audit record came from.
- ``AuditRecord`` -- the unit of output written to the ledger.

All input types are frozen: the engine never mutates evidence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from trustvet.core.model.criteria import CriteriaSet
from trustvet.core.model.versions import Version, VersionRange
from trustvet.exceptions import MalformedInputError

PackageId = str

HAS_ISSUES = "has_issues"
UNMAINTAINED_FLAG = "unmaintained"


# ---------------------------------------------------------------------------
# TrustLevel
# ---------------------------------------------------------------------------


class TrustLevel(IntEnum):
    """Effective trust in the reviewers behind a verdict.

    The integer encoding enables direct comparison:
    NONE < LOW < MEDIUM < HIGH.
    """

    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @classmethod
    def parse(cls, value: str | int | TrustLevel) -> TrustLevel:
        """Parse a trust level name (case-insensitive) or integer.

        Raises:
            MalformedInputError: If the value is not a recognized level.
        """
        if isinstance(value, TrustLevel):
            return value
        if isinstance(value, bool):
            raise MalformedInputError(f"Unrecognized trust level: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise MalformedInputError(
                    f"Unrecognized trust level: {value!r}"
                ) from None
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise MalformedInputError(
                    f"Unrecognized trust level: {value!r}. "
                    f"Valid levels: {[lvl.name.lower() for lvl in cls]}"
                ) from None
        raise MalformedInputError(f"Unrecognized trust level: {value!r}")


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrustVerdict:
    """The trust graph's verdict on one package version.

    Attributes:
        package: Package name.
        version: Reviewed version.
        trust_level: Effective trust in the reviewers.
        flags: Review flags, e.g. ``has_issues`` or ``unmaintained``.
            Unrecognized flags are carried but have no effect.
        reviewer_count: Number of trusted reviews behind the verdict.
        timestamp: When the most recent review was made, if known.
        reviewers: Reviewer attributions, exported as ``who``.
        comment: Free-text review comment, appended to notes.
    """

    package: PackageId
    version: Version
    trust_level: TrustLevel
    flags: frozenset[str] = frozenset()
    reviewer_count: int = 0
    timestamp: datetime | None = None
    reviewers: tuple[str, ...] = ()
    comment: str | None = None

    @property
    def has_issues(self) -> bool:
        return HAS_ISSUES in self.flags

    @property
    def unmaintained(self) -> bool:
        return UNMAINTAINED_FLAG in self.flags


@dataclass(frozen=True)
class ExternalCorroboration:
    """A curated distribution ships *package* at *version*.

    Carries no criteria of its own: the corroboration merger assigns the
    fixed criteria configured for ``source_name``.
    """

    package: PackageId
    version: Version
    source_name: str


# ---------------------------------------------------------------------------
# Provenance
# ---------------------------------------------------------------------------


class ProvenanceKind(Enum):
    """Origin of an audit record. Values are the ledger text prefixes."""

    MANUAL = "manual"
    DERIVED = "derived"
    EXTERNAL = "external"


_KIND_ORDER = {
    ProvenanceKind.MANUAL: 0,
    ProvenanceKind.DERIVED: 1,
    ProvenanceKind.EXTERNAL: 2,
}


@dataclass(frozen=True)
class Provenance:
    """Where an audit record came from.

    Attributes:
        kind: Manual, derived from trust data, or external corroboration.
        source: Trust-graph id for derived records, curator name for
            external records, None for manual records.
    """

    kind: ProvenanceKind
    source: str | None = None

    @classmethod
    def manual(cls) -> Provenance:
        return cls(ProvenanceKind.MANUAL)

    @classmethod
    def derived(cls, source_id: str) -> Provenance:
        return cls(ProvenanceKind.DERIVED, source_id)

    @classmethod
    def external(cls, source_name: str) -> Provenance:
        return cls(ProvenanceKind.EXTERNAL, source_name)

    @classmethod
    def parse(cls, text: str) -> Provenance:
        """Parse ``manual``, ``derived:<id>`` or ``external:<name>``.

        Raises:
            MalformedInputError: On any other text.
        """
        if not isinstance(text, str):
            raise MalformedInputError(f"Invalid provenance: {text!r}")
        kind_text, _, source = text.strip().partition(":")
        try:
            kind = ProvenanceKind(kind_text)
        except ValueError:
            raise MalformedInputError(f"Invalid provenance: {text!r}") from None
        if kind is ProvenanceKind.MANUAL:
            if source:
                raise MalformedInputError(f"Manual provenance takes no source: {text!r}")
            return cls.manual()
        if not source:
            raise MalformedInputError(f"Provenance {kind.value!r} needs a source: {text!r}")
        return cls(kind, source)

    @property
    def is_manual(self) -> bool:
        return self.kind is ProvenanceKind.MANUAL

    @property
    def is_derived(self) -> bool:
        return self.kind is ProvenanceKind.DERIVED

    @property
    def is_external(self) -> bool:
        return self.kind is ProvenanceKind.EXTERNAL

    def sort_key(self) -> tuple[int, str]:
        return (_KIND_ORDER[self.kind], self.source or "")

    def __str__(self) -> str:
        if self.source is None:
            return self.kind.value
        return f"{self.kind.value}:{self.source}"


# ---------------------------------------------------------------------------
# AuditRecord
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuditRecord:
    """One audit entry of the ledger.

    Attributes:
        package: Package name.
        version_range: Versions the record certifies.
        criteria: Criteria the versions are certified to satisfy.
        provenance: Origin of the record.
        notes: Optional free text.
        who: Reviewer attributions.
        extra: Record keys trustvet does not understand, written back
            unchanged.
    """

    package: PackageId
    version_range: VersionRange
    criteria: CriteriaSet
    provenance: Provenance
    notes: str | None = None
    who: tuple[str, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def with_range(self, version_range: VersionRange) -> AuditRecord:
        """Copy of this record restricted to *version_range*."""
        return AuditRecord(
            package=self.package,
            version_range=version_range,
            criteria=self.criteria,
            provenance=self.provenance,
            notes=self.notes,
            who=self.who,
            extra=dict(self.extra),
        )

    def sort_key(self) -> tuple:
        return (self.version_range.sort_key(), self.provenance.sort_key())
