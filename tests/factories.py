"""Factories shared by the trustvet test suite."""

from __future__ import annotations

from trustvet.core.model import (
    AuditRecord,
    ExternalCorroboration,
    Provenance,
    TrustLevel,
    TrustVerdict,
    Version,
    VersionRange,
)


def v(text: str) -> Version:
    return Version.parse(text)


def make_verdict(
    version: str = "1.0.0",
    level: TrustLevel | str = TrustLevel.HIGH,
    package: str = "serde",
    flags: tuple[str, ...] = (),
    reviewers: tuple[str, ...] = (),
    comment: str | None = None,
) -> TrustVerdict:
    """Convenience factory for TrustVerdict instances."""
    return TrustVerdict(
        package=package,
        version=v(version),
        trust_level=TrustLevel.parse(level),
        flags=frozenset(flags),
        reviewer_count=len(reviewers),
        reviewers=reviewers,
        comment=comment,
    )


def make_record(
    versions: str,
    criteria: tuple[str, ...] = ("safe-to-run",),
    provenance: str = "derived:crev",
    package: str = "serde",
    notes: str | None = None,
) -> AuditRecord:
    """Convenience factory for AuditRecord instances.

    *versions* uses the ledger text form (``1.0.0``, ``>=1.0.0,<=2.0.0``).
    """
    return AuditRecord(
        package=package,
        version_range=VersionRange.parse(versions),
        criteria=frozenset(criteria),
        provenance=Provenance.parse(provenance),
        notes=notes,
    )


def make_corroboration(
    version: str, package: str = "serde", source: str = "debian"
) -> ExternalCorroboration:
    return ExternalCorroboration(package, v(version), source)
