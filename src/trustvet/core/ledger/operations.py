"""Ledger operations: deserialization, validation, and diffing.

This module extends the ``Ledger`` class (defined in ``ledger.py``) with
classmethods and instance methods for:

- **Deserialization:** ``from_dict``, ``from_json``, ``read`` (disk).
- **Validation:** range invariants between records of one package.
- **Diffing:** records added and removed between two ledgers.

These are attached to the ``Ledger`` class at import time (in
``__init__.py``) so each source file stays focused while callers see a
single API.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from itertools import combinations
from pathlib import Path
from typing import Any

from trustvet.core.ledger.ledger import RECORD_KEYS, TOP_LEVEL_KEYS, record_to_dict
from trustvet.core.model import (
    AuditRecord,
    CriteriaDefinition,
    Provenance,
    VersionRange,
    criteria_set,
)
from trustvet.exceptions import LedgerError, MalformedInputError

logger = logging.getLogger(__name__)


def _string_list(value: Any, what: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise MalformedInputError(f"{what} must be a string or a list of strings, got {value!r}")


def _record_from_dict(package: str, entry: Mapping[str, Any]) -> AuditRecord:
    """Parse one ledger entry that has a ``version`` or ``versions`` key."""
    if "criteria" not in entry:
        raise MalformedInputError(f"Audit entry for {package!r} has no criteria: {entry!r}")
    criteria = criteria_set(_string_list(entry["criteria"], f"{package}: criteria"))

    if "version" in entry and "versions" in entry:
        raise MalformedInputError(
            f"Audit entry for {package!r} has both 'version' and 'versions'"
        )
    if "version" in entry:
        version_range = VersionRange.exact(str(entry["version"]))
    else:
        version_range = VersionRange.parse(str(entry["versions"]))

    provenance = Provenance.manual()
    if "provenance" in entry:
        provenance = Provenance.parse(entry["provenance"])

    notes = entry.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise MalformedInputError(f"{package}: notes must be a string, got {notes!r}")

    return AuditRecord(
        package=package,
        version_range=version_range,
        criteria=criteria,
        provenance=provenance,
        notes=notes,
        who=_string_list(entry.get("who"), f"{package}: who"),
        extra={k: v for k, v in entry.items() if k not in RECORD_KEYS},
    )


def _from_dict(cls: type, data: Mapping[str, Any]) -> Any:
    """Deserialize a ledger from a dict (parsed JSON).

    Raises:
        MalformedInputError: If the document does not match the schema.
    """
    if not isinstance(data, Mapping):
        raise MalformedInputError("Ledger document must be a JSON object")

    ledger = cls()

    criteria = data.get("criteria") or {}
    if not isinstance(criteria, Mapping):
        raise MalformedInputError("Ledger 'criteria' must be an object")
    for name, definition in criteria.items():
        if not isinstance(definition, Mapping):
            raise MalformedInputError(f"Criteria entry {name!r} must be an object")
        ledger.criteria.entries[name] = CriteriaDefinition.from_dict(definition)

    audits = data.get("audits") or {}
    if not isinstance(audits, Mapping):
        raise MalformedInputError("Ledger 'audits' must be an object")
    for package, entries in audits.items():
        if isinstance(entries, Mapping):
            entries = [entries]
        if not isinstance(entries, list):
            raise MalformedInputError(f"Audits for {package!r} must be a list")
        for entry in entries:
            if not isinstance(entry, Mapping):
                raise MalformedInputError(f"Audit entry for {package!r} must be an object")
            if "version" not in entry and "versions" not in entry:
                logger.debug("Keeping unversioned entry for %s verbatim", package)
                ledger.add_opaque(package, dict(entry))
                continue
            ledger.add_record(_record_from_dict(package, entry))

    ledger.extra = {k: v for k, v in data.items() if k not in TOP_LEVEL_KEYS}
    return ledger


def _from_json(cls: type, json_str: str) -> Any:
    """Deserialize from a JSON string.

    Raises:
        MalformedInputError: If the string is not valid JSON or does not
            match the schema.
    """
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise MalformedInputError(f"Ledger is not valid JSON: {exc}") from exc
    return cls.from_dict(data)


def _read(cls: type, path: Path) -> Any:
    """Read a ledger from disk. A missing file is an empty ledger.

    Raises:
        LedgerError: If the file exists but cannot be read.
        MalformedInputError: If the file is not a valid ledger.
    """
    if not path.exists():
        logger.info("No ledger at %s, starting empty", path)
        return cls()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise LedgerError(f"Cannot read ledger {path}: {exc}") from exc
    return cls.from_json(text)


def _validate(self: Any) -> list[str]:
    """Check the range invariants of the ledger.

    1. **Non-empty ranges:** no record covers zero versions.
    2. **Derived disjointness:** derived records of one package never
       overlap.
    3. **External disjointness:** external records of one source never
       overlap.
    4. **Manual priority:** no derived or external record overlaps a
       manual record.

    Returns:
        List of violation messages. Empty means the ledger is consistent.
    """
    errors: list[str] = []
    for package in self.packages:
        records = self.records_for(package)
        for r in records:
            if r.version_range.is_empty:
                errors.append(f"{package}: empty range {r.version_range} ({r.provenance})")
        for a, b in combinations(records, 2):
            if not a.version_range.overlaps(b.version_range):
                continue
            if a.provenance.is_manual and b.provenance.is_manual:
                continue
            if a.provenance.is_manual or b.provenance.is_manual:
                errors.append(
                    f"{package}: {a.provenance} {a.version_range} overlaps "
                    f"{b.provenance} {b.version_range}"
                )
            elif a.provenance.is_derived and b.provenance.is_derived:
                errors.append(
                    f"{package}: derived records {a.version_range} and "
                    f"{b.version_range} overlap"
                )
            elif a.provenance == b.provenance:
                errors.append(
                    f"{package}: {a.provenance} records {a.version_range} and "
                    f"{b.version_range} overlap"
                )
    return errors


def _record_key(record: AuditRecord) -> str:
    return json.dumps(record_to_dict(record), sort_keys=True)


def _diff(self: Any, other: Any) -> dict[str, Any]:
    """Compare two ledgers record by record.

    Args:
        other: The ledger to compare against (typically the newer one).

    Returns:
        Dict with keys 'added' and 'removed', each mapping package names
        to lists of serialized entries.
    """
    added: dict[str, list[dict[str, Any]]] = {}
    removed: dict[str, list[dict[str, Any]]] = {}
    for package in sorted(set(self.packages) | set(other.packages)):
        old = {_record_key(r): r for r in self.records_for(package)}
        new = {_record_key(r): r for r in other.records_for(package)}
        plus = [record_to_dict(new[k]) for k in new if k not in old]
        minus = [record_to_dict(old[k]) for k in old if k not in new]
        if plus:
            added[package] = plus
        if minus:
            removed[package] = minus
    return {"added": added, "removed": removed}
