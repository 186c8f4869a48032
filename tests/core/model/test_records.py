"""Tests for trust levels, provenance and audit records."""

from __future__ import annotations

import pytest

from trustvet.core.model import (
    AuditRecord,
    Provenance,
    ProvenanceKind,
    TrustLevel,
    VersionRange,
)
from trustvet.exceptions import MalformedInputError

from factories import make_record, make_verdict


class TestTrustLevel:
    def test_ordering(self) -> None:
        assert TrustLevel.NONE < TrustLevel.LOW < TrustLevel.MEDIUM < TrustLevel.HIGH

    @pytest.mark.parametrize("value,expected", [
        ("high", TrustLevel.HIGH),
        ("Medium", TrustLevel.MEDIUM),
        (" none ", TrustLevel.NONE),
        (1, TrustLevel.LOW),
        (TrustLevel.HIGH, TrustLevel.HIGH),
    ])
    def test_parse(self, value: object, expected: TrustLevel) -> None:
        assert TrustLevel.parse(value) is expected  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", ["extreme", 7, True, None, 2.0])
    def test_parse_rejects_unknown(self, value: object) -> None:
        with pytest.raises(MalformedInputError):
            TrustLevel.parse(value)  # type: ignore[arg-type]


class TestTrustVerdict:
    def test_flags(self) -> None:
        verdict = make_verdict(flags=("has_issues", "unmaintained"))
        assert verdict.has_issues
        assert verdict.unmaintained

    def test_unknown_flags_have_no_effect(self) -> None:
        verdict = make_verdict(flags=("sparkly",))
        assert not verdict.has_issues
        assert not verdict.unmaintained


class TestProvenance:
    @pytest.mark.parametrize("text", ["manual", "derived:crev", "external:debian"])
    def test_text_round_trip(self, text: str) -> None:
        assert str(Provenance.parse(text)) == text

    def test_kinds(self) -> None:
        assert Provenance.parse("manual").is_manual
        assert Provenance.parse("derived:crev").kind is ProvenanceKind.DERIVED
        assert Provenance.external("guix").source == "guix"

    @pytest.mark.parametrize("text", ["manual:alice", "derived", "external:", "imported:x", ""])
    def test_parse_rejects_invalid(self, text: str) -> None:
        with pytest.raises(MalformedInputError):
            Provenance.parse(text)

    def test_sort_manual_first(self) -> None:
        provenances = [
            Provenance.external("debian"),
            Provenance.derived("crev"),
            Provenance.manual(),
        ]
        ordered = sorted(provenances, key=Provenance.sort_key)
        assert [str(p) for p in ordered] == ["manual", "derived:crev", "external:debian"]


class TestAuditRecord:
    def test_with_range_keeps_everything_else(self) -> None:
        record = AuditRecord(
            package="serde",
            version_range=VersionRange.closed("1.0.0", "2.0.0"),
            criteria=frozenset(["safe-to-run"]),
            provenance=Provenance.derived("crev"),
            notes="n",
            who=("alice",),
            extra={"importable": False},
        )
        piece = record.with_range(VersionRange.exact("1.0.0"))
        assert piece.version_range.is_exact
        assert (piece.criteria, piece.provenance, piece.notes, piece.who) == (
            record.criteria, record.provenance, record.notes, record.who,
        )
        assert piece.extra == {"importable": False}
        assert piece.extra is not record.extra

    def test_extra_ignored_for_equality(self) -> None:
        a = make_record("1.0.0")
        b = AuditRecord(
            a.package, a.version_range, a.criteria, a.provenance, extra={"x": 1}
        )
        assert a == b
