"""Ledger reconciliation results: conflicts and the reconcile outcome.

Conflicts are recovered locally (truncate or drop) and reported as
values; they never abort a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from trustvet.core.model import PackageId

if TYPE_CHECKING:
    from trustvet.core.ledger.ledger import Ledger


class ConflictKind(Enum):
    """How a conflict was resolved."""

    TRUNCATED = "truncated"   # new record cut around a manual entry
    DROPPED = "dropped"       # new record fully covered by manual entries
    REDUNDANT = "redundant"   # corroboration already implied by a derived record


@dataclass(frozen=True)
class Conflict:
    """A conflict found and resolved during conversion.

    Attributes:
        package: Package the conflict concerns.
        kind: Resolution applied.
        record: Text form of the affected record's range and provenance.
        against: Range(s) of the entries that won.
        message: Human-readable description.
    """

    package: PackageId
    kind: ConflictKind
    record: str
    against: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "package": self.package,
            "kind": self.kind.value,
            "record": self.record,
            "against": self.against,
            "message": self.message,
        }


@dataclass
class ReconcileResult:
    """Outcome of ``reconcile``.

    Attributes:
        ledger: The updated ledger.
        conflicts: Truncations and drops applied to new records.
    """

    ledger: Ledger
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def dropped(self) -> list[Conflict]:
        return [c for c in self.conflicts if c.kind is ConflictKind.DROPPED]

    @property
    def truncated(self) -> list[Conflict]:
        return [c for c in self.conflicts if c.kind is ConflictKind.TRUNCATED]
