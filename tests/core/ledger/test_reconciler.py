"""Tests for ledger reconciliation.

Verifies:
    - Manual entries are never modified.
    - New records are truncated, split or dropped around manual ranges.
    - Previous derived and external entries are regenerated, except for
      retained (unavailable) sources.
    - Idempotence and non-mutation of the input ledger.
"""

from __future__ import annotations

import pytest

from trustvet.core.ledger import ConflictKind, Ledger, reconcile, truncate_against
from trustvet.core.model import VersionRange

from factories import make_record


@pytest.fixture
def manual_ledger() -> Ledger:
    return Ledger.from_dict({
        "audits": {
            "serde": [{"criteria": "safe-to-deploy", "versions": ">=1.0.0,<=2.0.0"}],
        },
    })


def _entries(ledger: Ledger, package: str = "serde") -> list[tuple[str, str]]:
    return [(str(r.provenance), str(r.version_range)) for r in ledger.records_for(package)]


class TestManualPriority:
    """Validate truncation around manual entries."""

    def test_overlap_truncates_derived(self, manual_ledger: Ledger) -> None:
        """Manual [1.0, 2.0] wins; derived [1.5, 2.5] keeps (2.0, 2.5]."""
        result = reconcile(manual_ledger, [make_record(">=1.5.0,<=2.5.0")])
        assert _entries(result.ledger) == [
            ("manual", ">=1.0.0,<=2.0.0"),
            ("derived:crev", ">2.0.0,<=2.5.0"),
        ]
        (conflict,) = result.conflicts
        assert conflict.kind is ConflictKind.TRUNCATED
        assert conflict.against == ">=1.0.0,<=2.0.0"
        assert result.truncated == [conflict]

    def test_manual_record_unchanged(self, manual_ledger: Ledger) -> None:
        result = reconcile(manual_ledger, [make_record(">=0.5.0,<=3.0.0")])
        assert result.ledger.records_for("serde")[1] == manual_ledger.records_for("serde")[0]

    def test_covering_record_splits(self, manual_ledger: Ledger) -> None:
        result = reconcile(manual_ledger, [make_record(">=0.5.0,<=3.0.0")])
        assert _entries(result.ledger) == [
            ("derived:crev", ">=0.5.0,<1.0.0"),
            ("manual", ">=1.0.0,<=2.0.0"),
            ("derived:crev", ">2.0.0,<=3.0.0"),
        ]
        assert [c.kind for c in result.conflicts] == [ConflictKind.TRUNCATED]

    def test_fully_covered_dropped(self, manual_ledger: Ledger) -> None:
        result = reconcile(manual_ledger, [make_record(">=1.2.0,<=1.4.0")])
        assert _entries(result.ledger) == [("manual", ">=1.0.0,<=2.0.0")]
        assert [c.kind for c in result.dropped] == [ConflictKind.DROPPED]

    def test_disjoint_record_kept_whole(self, manual_ledger: Ledger) -> None:
        result = reconcile(manual_ledger, [make_record("3.0.0")])
        assert result.conflicts == []
        assert ("derived:crev", "3.0.0") in _entries(result.ledger)

    def test_other_package_unaffected(self, manual_ledger: Ledger) -> None:
        result = reconcile(manual_ledger, [make_record("1.5.0", package="log")])
        assert result.conflicts == []
        assert _entries(result.ledger, "log") == [("derived:crev", "1.5.0")]

    def test_external_records_truncated_too(self, manual_ledger: Ledger) -> None:
        result = reconcile(
            manual_ledger,
            [make_record("1.5.0", ("reviewed-by-third-party",), "external:debian")],
        )
        assert [c.kind for c in result.conflicts] == [ConflictKind.DROPPED]

    def test_new_manual_record_rejected(self) -> None:
        with pytest.raises(ValueError):
            reconcile(Ledger(), [make_record("1.0.0", provenance="manual")])


class TestRegeneration:
    """Validate replacement of previously generated entries."""

    def test_stale_derived_discarded(self) -> None:
        existing = Ledger.from_records([
            make_record("1.0.0", ("safe-to-deploy",)),
            make_record("1.0.0", ("reviewed-by-third-party",), "external:debian"),
        ])
        result = reconcile(existing, [make_record("1.0.0", ("safe-to-run",))])
        (record,) = result.ledger.records_for("serde")
        assert record.criteria == {"safe-to-run"}

    def test_retained_source_carried_over(self) -> None:
        existing = Ledger.from_records([
            make_record("1.0.0", ("reviewed-by-third-party",), "external:debian"),
            make_record("1.0.0", ("reviewed-by-third-party",), "external:guix"),
        ])
        result = reconcile(existing, [], retain_sources=["debian"])
        assert _entries(result.ledger) == [("external:debian", "1.0.0")]

    def test_retained_source_yields_to_new_manual_entry(self) -> None:
        existing = Ledger.from_records([
            make_record(">=1.0.0,<=2.0.0", ("safe-to-deploy",), "manual"),
            make_record("1.5.0", ("reviewed-by-third-party",), "external:debian"),
        ])
        result = reconcile(existing, [], retain_sources=["debian"])
        assert _entries(result.ledger) == [("manual", ">=1.0.0,<=2.0.0")]
        assert [c.kind for c in result.conflicts] == [ConflictKind.DROPPED]

    def test_opaque_and_unknown_keys_preserved(self) -> None:
        existing = Ledger.from_dict({
            "audits": {"serde": [{"criteria": "safe-to-run", "violation": "<1.0.0"}]},
            "policy": {"serde": {}},
        })
        result = reconcile(existing, [])
        assert result.ledger.opaque_for("serde") == [{"criteria": "safe-to-run", "violation": "<1.0.0"}]
        assert result.ledger.extra == {"policy": {"serde": {}}}

    def test_criteria_table_extended(self) -> None:
        result = reconcile(Ledger(), [
            make_record("1.0.0", ("safe-to-deploy",)),
            make_record("1.0.0", ("reviewed-by-third-party",), "external:debian"),
        ])
        assert set(result.ledger.criteria.entries) == {"reviewed-by-third-party"}

    def test_existing_not_mutated(self, manual_ledger: Ledger) -> None:
        before = manual_ledger.to_json()
        reconcile(manual_ledger, [make_record(">=1.5.0,<=2.5.0")])
        assert manual_ledger.to_json() == before

    def test_idempotent(self, manual_ledger: Ledger) -> None:
        new = [make_record(">=1.5.0,<=2.5.0"), make_record("0.9.0")]
        once = reconcile(manual_ledger, new).ledger
        twice = reconcile(once, new).ledger
        assert twice.to_json() == once.to_json()


class TestTruncateAgainst:
    def test_multiple_manual_ranges(self) -> None:
        record = make_record(">=1.0.0,<=5.0.0")
        pieces = truncate_against(record, [
            VersionRange.closed("4.0.0", "4.5.0"),
            VersionRange.closed("2.0.0", "3.0.0"),
        ])
        assert [str(p) for p in pieces] == [
            ">=1.0.0,<2.0.0", ">3.0.0,<4.0.0", ">4.5.0,<=5.0.0",
        ]

    def test_no_manual_ranges(self) -> None:
        record = make_record("1.0.0")
        assert truncate_against(record, []) == [record.version_range]
