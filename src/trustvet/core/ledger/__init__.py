"""Audit ledger: persistence and reconciliation.

The package is split into focused submodules:

- ``models``: ``Conflict``, ``ConflictKind`` and ``ReconcileResult``.
- ``ledger``: The ``Ledger`` class with record management and
  deterministic serialization.
- ``operations``: Deserialization (``from_dict``, ``from_json``, ``read``),
  invariant validation, and diffing.
- ``reconciler``: ``reconcile``, merging new records into an existing
  ledger without touching manual entries.

All public names are re-exported here so that imports like
``from trustvet.core.ledger import Ledger`` work.
"""

from trustvet.core.ledger.ledger import GENERATED_BY, Ledger, record_to_dict
from trustvet.core.ledger.models import Conflict, ConflictKind, ReconcileResult

# Attach operations to Ledger as methods/classmethods
from trustvet.core.ledger import operations as _ops

Ledger.from_dict = classmethod(_ops._from_dict)
Ledger.from_json = classmethod(_ops._from_json)
Ledger.read = classmethod(_ops._read)
Ledger.validate = _ops._validate
Ledger.diff = _ops._diff

from trustvet.core.ledger.reconciler import reconcile, truncate_against  # noqa: E402

__all__ = [
    "Conflict",
    "ConflictKind",
    "GENERATED_BY",
    "Ledger",
    "ReconcileResult",
    "reconcile",
    "record_to_dict",
    "truncate_against",
]
