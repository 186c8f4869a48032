"""External corroboration merger.

Folds curated package lists ("Debian ships serde 1.0.188") into the
assessment set as ``External(source_name)`` records carrying the fixed
criteria configured for that source.

A corroboration is skipped as redundant when a derived record of the
same package already covers its version with criteria that imply the
source's cap. Otherwise it becomes an external record, coexisting with
any derived record over the same versions. External records are
deduplicated and run-length merged per source, so two records of one
source never overlap.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace

from trustvet.core.consolidation import merge_runs
from trustvet.core.corroboration.models import (
    CorroborationConfig,
    RedundantCorroboration,
)
from trustvet.core.mapping import Assessment
from trustvet.core.model import (
    AuditRecord,
    CriteriaDefinition,
    ExternalCorroboration,
    PackageId,
    Provenance,
    Version,
    implies,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeResult:
    """Output of ``merge``.

    Attributes:
        records: Base records followed by the new external records.
        redundant: Corroborations skipped because a derived record
            already implied them.
    """

    records: list[AuditRecord]
    redundant: list[RedundantCorroboration]


def _name_key(name: str) -> str:
    return name.lower().replace("_", "-")


def match_package_names(
    corroborations: Iterable[ExternalCorroboration],
    names: Iterable[PackageId],
) -> list[ExternalCorroboration]:
    """Respell corroborated package names to match names the run knows.

    Distributions fold crate names to lower case and write ``_`` as
    ``-``, so ``serde-json`` from a curated list is the ``serde_json``
    of the trust graph. A name is rewritten only when exactly one known
    name folds to the same key; anything else is kept as listed.
    """
    by_key: dict[str, set[PackageId]] = defaultdict(set)
    for name in names:
        by_key[_name_key(name)].add(name)

    out = []
    for c in corroborations:
        candidates = by_key.get(_name_key(c.package), set())
        if c.package not in candidates and len(candidates) == 1:
            (name,) = candidates
            logger.debug("Matched %s corroboration %r to %r", c.source_name, c.package, name)
            c = replace(c, package=name)
        out.append(c)
    return out


def _covering_derived(
    records: Sequence[AuditRecord], version: Version
) -> list[AuditRecord]:
    return [
        r for r in records
        if r.provenance.is_derived and r.version_range.contains(version)
    ]


def merge(
    base_records: Iterable[AuditRecord],
    corroborations: Iterable[ExternalCorroboration],
    config: CorroborationConfig | None = None,
    *,
    known_versions: Mapping[PackageId, Iterable[str | Version]] | None = None,
    table: Mapping[str, CriteriaDefinition] | None = None,
) -> MergeResult:
    """Add external corroboration records to *base_records*.

    Args:
        base_records: Records produced by the range consolidator.
        corroborations: Curated-list evidence from any number of sources.
        config: Criteria caps per source. Defaults to the built-in caps.
        known_versions: Known releases per package; used to run-length
            merge consecutive corroborated versions without bridging
            gaps.
        table: Criteria table used for the implication test.

    Returns:
        A ``MergeResult`` with the augmented records.
    """
    if config is None:
        config = CorroborationConfig()

    base = list(base_records)
    by_package: dict[PackageId, list[AuditRecord]] = defaultdict(list)
    for record in base:
        by_package[record.package].append(record)

    # (package, source) -> version -> Assessment
    grouped: dict[tuple[PackageId, str], dict[Version, Assessment]] = defaultdict(dict)
    redundant: list[RedundantCorroboration] = []

    for corroboration in corroborations:
        cap = config.criteria_for(corroboration.source_name)
        if not cap:
            continue
        covering = _covering_derived(
            by_package.get(corroboration.package, ()), corroboration.version
        )
        implied_by = next(
            (r for r in covering if implies(r.criteria, cap, table)), None
        )
        if implied_by is not None:
            logger.debug(
                "Corroboration of %s %s by %s already implied by derived %s",
                corroboration.package,
                corroboration.version,
                corroboration.source_name,
                implied_by.version_range,
            )
            redundant.append(RedundantCorroboration(
                corroboration=corroboration,
                covered_by=str(implied_by.version_range),
            ))
            continue
        key = (corroboration.package, corroboration.source_name)
        grouped[key][corroboration.version] = Assessment(
            criteria=cap,
            notes=(f"Shipped by {corroboration.source_name}.",),
        )

    external: list[AuditRecord] = []
    for (package, source_name) in sorted(grouped):
        versions = grouped[(package, source_name)]
        provenance = Provenance.external(source_name)
        if known_versions is None or package not in known_versions:
            # Curated lists are sparse; without the release list, never bridge
            for version in sorted(versions):
                external.extend(merge_runs(
                    package, {version: versions[version]}, provenance
                ))
            continue
        external.extend(merge_runs(
            package,
            versions,
            provenance,
            known_versions=known_versions[package],
        ))

    return MergeResult(records=base + external, redundant=redundant)
