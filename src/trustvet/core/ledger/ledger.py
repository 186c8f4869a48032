"""Audit ledger core class: record management and serialization.

The ``Ledger`` is the in-memory form of an audit ledger document::

    {
      "audits": {
        "serde": [
          {"criteria": ["safe-to-run"], "versions": ">=1.0.0,<=1.0.2",
           "provenance": "derived:crev", "who": ["alice"]},
          {"criteria": "safe-to-deploy", "version": "1.0.3",
           "notes": "Hand-reviewed."}
        ]
      },
      "criteria": {"reviewed-by-third-party": {"description": "..."}},
      "generated-by": "trustvet 0.1.0"
    }

Records without a ``provenance`` key were written by a human and are
Manual. Keys trustvet does not understand, at the top level or inside a
record, are carried through unchanged. Entries without any version (for
example ``delta`` or ``violation`` entries) are preserved verbatim and
take no part in reconciliation.

Determinism guarantee: ``to_json()`` sorts packages alphabetically,
records by version range then provenance, and all dictionary keys, and
contains no timestamps. Two ledgers with the same content produce
byte-identical JSON.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from trustvet import __version__
from trustvet.core.model import AuditRecord, CriteriaTable, PackageId
from trustvet.exceptions import LedgerError

GENERATED_BY = f"trustvet {__version__}"

# Record keys with meaning to trustvet; anything else goes to ``extra``.
RECORD_KEYS = frozenset(["criteria", "version", "versions", "provenance", "notes", "who"])
# Top-level keys with meaning to trustvet.
TOP_LEVEL_KEYS = frozenset(["audits", "criteria", "generated-by"])


def record_to_dict(record: AuditRecord) -> dict[str, Any]:
    """Serialize one record to its ledger entry."""
    entry: dict[str, Any] = dict(record.extra)
    entry["criteria"] = sorted(record.criteria)
    if record.version_range.is_exact:
        entry["version"] = str(record.version_range.start)
    else:
        entry["versions"] = record.version_range.to_string()
    if not record.provenance.is_manual:
        entry["provenance"] = str(record.provenance)
    if record.notes is not None:
        entry["notes"] = record.notes
    if record.who:
        entry["who"] = list(record.who)
    return entry


class Ledger:
    """An audit ledger: ordered mapping from package to audit records.

    Example::

        ledger = Ledger.read(Path("audits.json"))     # empty if absent
        result = reconcile(ledger, new_records)
        result.ledger.write(Path("audits.json"))
    """

    def __init__(self) -> None:
        self._audits: dict[PackageId, list[AuditRecord]] = {}
        self._opaque: dict[PackageId, list[dict[str, Any]]] = {}
        self.criteria = CriteriaTable()
        self.extra: dict[str, Any] = {}

    # -- Record management ----------------------------------------------------

    def add_record(self, record: AuditRecord) -> None:
        """Append a record to its package's list."""
        self._audits.setdefault(record.package, []).append(record)

    def add_opaque(self, package: PackageId, entry: dict[str, Any]) -> None:
        """Keep an entry trustvet cannot interpret, verbatim."""
        self._opaque.setdefault(package, []).append(dict(entry))

    def records_for(self, package: PackageId) -> list[AuditRecord]:
        """Records of *package*, sorted by version range then provenance."""
        return sorted(self._audits.get(package, ()), key=AuditRecord.sort_key)

    def opaque_for(self, package: PackageId) -> list[dict[str, Any]]:
        return [dict(e) for e in self._opaque.get(package, ())]

    def records(self) -> Iterator[AuditRecord]:
        """All records, packages alphabetically."""
        for package in self.packages:
            yield from self.records_for(package)

    @property
    def packages(self) -> list[PackageId]:
        """Sorted names of packages with at least one entry."""
        names = {p for p, recs in self._audits.items() if recs}
        names.update(p for p, entries in self._opaque.items() if entries)
        return sorted(names)

    @property
    def record_count(self) -> int:
        return sum(len(recs) for recs in self._audits.values())

    def criteria_in_use(self) -> set[str]:
        used: set[str] = set()
        for record in self.records():
            used.update(record.criteria)
        return used

    # -- Serialization --------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dict matching the ledger schema.

        Unknown top-level keys are emitted first so that trustvet's own
        keys win if a name ever collides.
        """
        audits: dict[str, list[dict[str, Any]]] = {}
        for package in self.packages:
            entries = [record_to_dict(r) for r in self.records_for(package)]
            entries.extend(self.opaque_for(package))
            audits[package] = entries

        data: dict[str, Any] = dict(self.extra)
        data["criteria"] = self.criteria.to_dict()
        data["audits"] = audits
        data["generated-by"] = GENERATED_BY
        return data

    def to_json(self, indent: int = 2) -> str:
        """Deterministic JSON text of the ledger, newline-terminated."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True) + "\n"

    def write(self, path: Path) -> None:
        """Write the ledger to *path* atomically.

        The JSON is written to a temporary file in the same directory and
        renamed over *path*, so a failed write never leaves a partial
        ledger behind.

        Raises:
            LedgerError: If the file cannot be written.
        """
        text = self.to_json()
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise LedgerError(f"Cannot write ledger to {path}: {exc}") from exc

    def __iter__(self) -> Iterator[AuditRecord]:
        return self.records()

    def __len__(self) -> int:
        return self.record_count

    @classmethod
    def from_records(cls, records: Iterable[AuditRecord]) -> Ledger:
        """Build a ledger holding *records* and nothing else."""
        ledger = cls()
        for record in records:
            ledger.add_record(record)
        return ledger
