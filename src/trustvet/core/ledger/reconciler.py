"""Ledger reconciler: merge derived records into an existing ledger.

Policy:

- **Manual entries win.** They are copied unchanged. Every new record is
  reduced by subtracting the ranges of its package's manual entries; the
  remaining pieces are kept (one record can split in two). When nothing
  remains the record is dropped. Both outcomes are reported as
  conflicts; neither aborts the run.
- **Derived data is regenerated, not patched.** Every previous derived
  or external entry is discarded and replaced by the new set, so stale
  criteria never survive a re-run. External entries of sources listed in
  ``retain_sources`` (sources that could not be fetched this run) are
  carried over instead and truncated like new records.
- **Manual ranges are frozen.** Nothing here ever widens or narrows a
  manual entry.

Reconciling twice with the same inputs yields the same ledger.
"""

from __future__ import annotations

import copy
import itertools
from collections import defaultdict
from collections.abc import Collection, Iterable

from trustvet.core.ledger.ledger import Ledger
from trustvet.core.ledger.models import Conflict, ConflictKind, ReconcileResult
from trustvet.core.model import AuditRecord, PackageId, VersionRange


def _describe(record: AuditRecord) -> str:
    return f"{record.provenance} {record.version_range}"


def truncate_against(
    record: AuditRecord, manual_ranges: Iterable[VersionRange]
) -> list[VersionRange]:
    """Pieces of *record*'s range not covered by any manual range."""
    pieces = [record.version_range]
    for manual in manual_ranges:
        pieces = [rest for piece in pieces for rest in piece.subtract(manual)]
        if not pieces:
            break
    return sorted(pieces, key=VersionRange.sort_key)


def reconcile(
    existing: Ledger,
    new_records: Iterable[AuditRecord],
    *,
    retain_sources: Collection[str] = (),
) -> ReconcileResult:
    """Merge *new_records* into a copy of *existing*.

    Args:
        existing: The ledger loaded at the start of the run. Not mutated.
        new_records: Derived and external records computed this run.
        retain_sources: External sources whose previous entries are kept
            because no fresh data was available for them.

    Returns:
        A ``ReconcileResult`` holding the new ledger and the conflicts
        resolved on the way.

    Raises:
        ValueError: If a new record claims Manual provenance.
    """
    result = Ledger()
    result.criteria = copy.deepcopy(existing.criteria)
    result.extra = copy.deepcopy(existing.extra)

    manual: dict[PackageId, list[VersionRange]] = defaultdict(list)
    retained: list[AuditRecord] = []
    for package in existing.packages:
        for entry in existing.opaque_for(package):
            result.add_opaque(package, entry)
        for record in existing.records_for(package):
            if record.provenance.is_manual:
                result.add_record(record)
                manual[package].append(record.version_range)
            elif record.provenance.is_external and record.provenance.source in retain_sources:
                retained.append(record)

    conflicts: list[Conflict] = []
    for record in itertools.chain(retained, new_records):
        if record.provenance.is_manual:
            raise ValueError(
                f"New records must be derived or external, got manual record "
                f"for {record.package} {record.version_range}"
            )
        manual_ranges = manual.get(record.package, [])
        pieces = truncate_against(record, manual_ranges)
        against = ", ".join(
            str(m) for m in manual_ranges if m.overlaps(record.version_range)
        )

        if not pieces:
            message = (
                f"Dropped {_describe(record)} for {record.package}: "
                f"fully covered by manual entries {against}"
            )
            conflicts.append(Conflict(
                package=record.package,
                kind=ConflictKind.DROPPED,
                record=_describe(record),
                against=against,
                message=message,
            ))
            continue

        if pieces != [record.version_range]:
            kept = ", ".join(str(p) for p in pieces)
            message = (
                f"Truncated {_describe(record)} for {record.package} to {kept} "
                f"around manual entries {against}"
            )
            conflicts.append(Conflict(
                package=record.package,
                kind=ConflictKind.TRUNCATED,
                record=_describe(record),
                against=against,
                message=message,
            ))

        for piece in pieces:
            result.add_record(record.with_range(piece))

    result.criteria.merge_standard(result.criteria_in_use())
    return ReconcileResult(ledger=result, conflicts=conflicts)
