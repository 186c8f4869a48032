"""Range consolidator: per-version assessments to minimal version ranges.

For one package, versions are walked in ascending SemVer order. Runs of
consecutive versions that received an *identical* criteria set collapse
into one closed range ``[first, last]`` (greedy run-length merge).

A run ends when:

- the criteria set changes;
- a known release has no verdict (unknown means un-audited, so gaps are
  never bridged);
- a verdict maps to the empty criteria set (no evidence, no record).

Bounds are written as full ``MAJOR.MINOR.PATCH`` versions whatever the
input spelling. The last run is left open upward only when the caller
opts into extending trust to future releases and the run reaches the
highest known release. Output ranges are disjoint by construction.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from trustvet.core.mapping import Assessment, ThresholdConfig, assess
from trustvet.core.model import (
    AuditRecord,
    CriteriaSet,
    PackageId,
    Provenance,
    TrustVerdict,
    Version,
    VersionRange,
    parse_version,
)
from trustvet.exceptions import MalformedInputError

DEFAULT_SOURCE_ID = "crev"


@dataclass
class _Run:
    """An open run of consecutive versions sharing one criteria set."""

    start: Version
    end: Version
    criteria: CriteriaSet
    notes: list[str] = field(default_factory=list)
    who: list[str] = field(default_factory=list)

    def absorb(self, version: Version, assessment: Assessment) -> None:
        self.end = version
        for note in assessment.notes:
            if note not in self.notes:
                self.notes.append(note)
        for name in assessment.who:
            if name not in self.who:
                self.who.append(name)


def merge_runs(
    package: PackageId,
    assessments: Mapping[Version, Assessment],
    provenance: Provenance,
    *,
    known_versions: Iterable[str | Version] | None = None,
    extend_to_future: bool = False,
) -> list[AuditRecord]:
    """Run-length merge per-version assessments into ranged records.

    Args:
        package: Package the assessments belong to.
        assessments: Assessment per version. Empty criteria sets act as
            gaps.
        provenance: Provenance stamped on every output record.
        known_versions: Releases of the package without necessarily
            having an assessment. Each one without an assessment breaks
            the current run.
        extend_to_future: Leave a run reaching the highest known release
            open upward.

    Returns:
        Records in ascending version order, pairwise disjoint.
    """
    timeline = set(assessments)
    if known_versions is not None:
        timeline.update(parse_version(v) for v in known_versions)
    if not timeline:
        return []
    ordered = sorted(timeline)
    highest = ordered[-1]

    records: list[AuditRecord] = []
    run: _Run | None = None

    def close(current: _Run) -> None:
        start = current.start.normalized()
        if extend_to_future and current.end == highest:
            rng = VersionRange.at_least(start)
        else:
            rng = VersionRange.closed(start, current.end.normalized())
        records.append(AuditRecord(
            package=package,
            version_range=rng,
            criteria=current.criteria,
            provenance=provenance,
            notes="\n".join(current.notes) or None,
            who=tuple(current.who),
        ))

    for version in ordered:
        assessment = assessments.get(version)
        if assessment is None or not assessment.criteria:
            # Unknown or vacuous: terminates any open run
            if run is not None:
                close(run)
                run = None
            continue
        if run is not None and run.criteria == assessment.criteria:
            run.absorb(version, assessment)
            continue
        if run is not None:
            close(run)
        run = _Run(start=version, end=version, criteria=assessment.criteria)
        run.absorb(version, assessment)

    if run is not None:
        close(run)
    return records


def consolidate(
    package: PackageId,
    verdicts: Sequence[TrustVerdict],
    thresholds: ThresholdConfig,
    *,
    known_versions: Iterable[str | Version] | None = None,
    extend_to_future: bool = False,
    source_id: str = DEFAULT_SOURCE_ID,
) -> list[AuditRecord]:
    """Consolidate one package's verdicts into derived audit records.

    Args:
        package: The package every verdict must belong to.
        verdicts: At most one verdict per version, in any order.
        thresholds: Criteria mapper configuration.
        known_versions: All releases of the package known to the caller.
        extend_to_future: Extend the newest run to unreleased versions.
        source_id: Trust-graph identifier for ``Derived`` provenance.

    Returns:
        Disjoint ``Derived(source_id)`` records in ascending order.

    Raises:
        MalformedInputError: If a verdict names another package or two
            verdicts share a version.
        ConfigurationError: If a trust level is missing from *thresholds*.
    """
    assessments: dict[Version, Assessment] = {}
    for verdict in verdicts:
        if verdict.package != package:
            raise MalformedInputError(
                f"Verdict for {verdict.package!r} passed while consolidating "
                f"{package!r}"
            )
        if verdict.version in assessments:
            raise MalformedInputError(
                f"Duplicate verdict for {package} {verdict.version}"
            )
        assessments[verdict.version] = assess(verdict, thresholds)

    return merge_runs(
        package,
        assessments,
        Provenance.derived(source_id),
        known_versions=known_versions,
        extend_to_future=extend_to_future,
    )
