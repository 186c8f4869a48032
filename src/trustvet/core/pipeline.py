"""Conversion pipeline: trust verdicts to a reconciled audit ledger.

``AuditConverter`` wires the engine's stages together::

    verdicts --(per package)--> map criteria --> consolidate ranges
             --> corroborate with curated lists --> reconcile into ledger

Per-package stages are pure and independent, so they may run on a thread
pool (``max_workers``). Reconciliation always happens on the calling
thread, once, after every package has been processed. Nothing is written
to disk here; the caller persists ``ConversionResult.ledger``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from trustvet.config import ConflictVerbosity, ConversionConfig
from trustvet.core.consolidation import consolidate
from trustvet.core.corroboration import match_package_names, merge
from trustvet.core.ledger import Conflict, ConflictKind, Ledger, reconcile
from trustvet.core.model import (
    AuditRecord,
    ExternalCorroboration,
    PackageId,
    TrustVerdict,
    Version,
)

logger = logging.getLogger(__name__)


@dataclass
class ConversionReport:
    """What happened during a conversion run.

    Attributes:
        packages: Number of packages with at least one verdict.
        derived_records: Derived records before reconciliation.
        external_records: External records before reconciliation.
        conflicts: Truncated, dropped, and redundant evidence.
        unavailable_sources: Curated sources that supplied no data.
    """

    packages: int = 0
    derived_records: int = 0
    external_records: int = 0
    conflicts: list[Conflict] = field(default_factory=list)
    unavailable_sources: list[str] = field(default_factory=list)

    @property
    def reduced_confidence(self) -> bool:
        """True when some configured curated source was unavailable."""
        return bool(self.unavailable_sources)

    def count(self, kind: ConflictKind) -> int:
        return sum(1 for c in self.conflicts if c.kind is kind)

    def to_dict(self) -> dict:
        return {
            "packages": self.packages,
            "derived_records": self.derived_records,
            "external_records": self.external_records,
            "reduced_confidence": self.reduced_confidence,
            "unavailable_sources": sorted(self.unavailable_sources),
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


@dataclass
class ConversionResult:
    """Reconciled ledger plus the run report."""

    ledger: Ledger
    report: ConversionReport


_LOG_LEVELS: dict[ConflictVerbosity, dict[ConflictKind, int]] = {
    ConflictVerbosity.QUIET: {
        ConflictKind.DROPPED: logging.INFO,
        ConflictKind.TRUNCATED: logging.DEBUG,
        ConflictKind.REDUNDANT: logging.DEBUG,
    },
    ConflictVerbosity.NORMAL: {
        ConflictKind.DROPPED: logging.WARNING,
        ConflictKind.TRUNCATED: logging.INFO,
        ConflictKind.REDUNDANT: logging.DEBUG,
    },
    ConflictVerbosity.VERBOSE: {
        ConflictKind.DROPPED: logging.WARNING,
        ConflictKind.TRUNCATED: logging.WARNING,
        ConflictKind.REDUNDANT: logging.WARNING,
    },
}


def group_verdicts(
    verdicts: Iterable[TrustVerdict],
) -> dict[PackageId, list[TrustVerdict]]:
    """Group verdicts by package, packages in alphabetical order."""
    grouped: dict[PackageId, list[TrustVerdict]] = defaultdict(list)
    for verdict in verdicts:
        grouped[verdict.package].append(verdict)
    return {name: grouped[name] for name in sorted(grouped)}


class AuditConverter:
    """Convert trust verdicts and curated lists into a reconciled ledger.

    The converter holds only immutable configuration; ``convert`` can be
    called repeatedly and from several threads.

    Args:
        config: Conversion options. Defaults to ``ConversionConfig()``.
        max_workers: Thread pool size for per-package work. ``None`` or
            ``1`` processes packages sequentially.
    """

    def __init__(
        self,
        config: ConversionConfig | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._config = config or ConversionConfig()
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self._max_workers = max_workers

    @property
    def config(self) -> ConversionConfig:
        return self._config

    # -- Per-package stage ------------------------------------------------------

    def derive_package(
        self,
        package: PackageId,
        verdicts: Sequence[TrustVerdict],
        known_versions: Iterable[str | Version] | None = None,
    ) -> list[AuditRecord]:
        """Map and consolidate one package's verdicts."""
        return consolidate(
            package,
            verdicts,
            self._config.thresholds,
            known_versions=known_versions,
            extend_to_future=self._config.extend_to_future,
            source_id=self._config.source_id,
        )

    def derive(
        self,
        verdicts: Iterable[TrustVerdict],
        known_versions: Mapping[PackageId, Iterable[str | Version]] | None = None,
    ) -> list[AuditRecord]:
        """Derived records for every package, packages in alphabetical order."""
        grouped = group_verdicts(verdicts)
        known = known_versions or {}

        def work(package: PackageId) -> list[AuditRecord]:
            return self.derive_package(package, grouped[package], known.get(package))

        if self._max_workers is None or self._max_workers == 1 or len(grouped) < 2:
            per_package = [work(p) for p in grouped]
        else:
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                per_package = list(pool.map(work, grouped))
        return [record for records in per_package for record in records]

    # -- Whole run ----------------------------------------------------------

    def convert(
        self,
        verdicts: Iterable[TrustVerdict],
        existing: Ledger | None = None,
        *,
        corroborations: Mapping[str, Sequence[ExternalCorroboration] | None] | None = None,
        known_versions: Mapping[PackageId, Iterable[str | Version]] | None = None,
    ) -> ConversionResult:
        """Run the full pipeline.

        Args:
            verdicts: Evidence from the trust graph.
            existing: Ledger loaded at the start of the run (empty if None).
            corroborations: Curated-list evidence per source name. A value
                of None marks a source that could not be retrieved: it
                contributes nothing, its previous ledger entries are kept,
                and the report is flagged as reduced-confidence.
            known_versions: Known releases per package.

        Returns:
            The reconciled ledger and a report.

        Raises:
            MalformedInputError: On duplicate verdicts.
            ConfigurationError: On a trust level missing from thresholds.
        """
        verdicts = list(verdicts)
        existing = existing if existing is not None else Ledger()
        report = ConversionReport(packages=len({v.package for v in verdicts}))

        derived = self.derive(verdicts, known_versions)
        report.derived_records = len(derived)

        evidence: list[ExternalCorroboration] = []
        for source_name in sorted(corroborations or {}):
            items = corroborations[source_name]
            if items is None:
                logger.warning(
                    "Curated source %r unavailable; output is reduced-confidence",
                    source_name,
                )
                report.unavailable_sources.append(source_name)
                continue
            evidence.extend(items)

        run_names = {v.package for v in verdicts} | set(known_versions or {}) | set(existing.packages)
        merged = merge(
            derived,
            match_package_names(evidence, run_names),
            self._config.corroboration,
            known_versions=known_versions,
            table=existing.criteria.as_mapping(),
        )
        report.external_records = len(merged.records) - len(derived)
        for item in merged.redundant:
            c = item.corroboration
            report.conflicts.append(Conflict(
                package=c.package,
                kind=ConflictKind.REDUNDANT,
                record=f"external:{c.source_name} {c.version}",
                against=item.covered_by,
                message=(
                    f"Skipped {c.source_name} corroboration of {c.package} "
                    f"{c.version}: implied by derived {item.covered_by}"
                ),
            ))

        result = reconcile(
            existing,
            merged.records,
            retain_sources=report.unavailable_sources,
        )
        report.conflicts.extend(result.conflicts)

        levels = _LOG_LEVELS[self._config.conflict_verbosity]
        for conflict in report.conflicts:
            logger.log(levels[conflict.kind], "%s", conflict.message)

        return ConversionResult(ledger=result.ledger, report=report)
