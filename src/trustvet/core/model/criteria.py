"""Audit criteria: names, definitions, and the implication order.

A criteria set is a ``frozenset`` of criterion names. Criteria can imply
other criteria (``safe-to-deploy`` implies ``safe-to-run``), so deciding
whether one record's guarantees cover another's uses the transitive
closure of the implication table rather than a plain subset test.

The standard table below is published in the ``criteria`` section of
every ledger trustvet writes, so the vetting tool consuming the ledger
knows what each derived criterion means.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

CriteriaSet = frozenset

SAFE_TO_RUN = "safe-to-run"
SAFE_TO_DEPLOY = "safe-to-deploy"
REVIEWED_BY_THIRD_PARTY = "reviewed-by-third-party"
UNMAINTAINED = "unmaintained"

CREV_URL = "https://github.com/crev-dev"

# Understood by the vetting tool itself; never redefined in a ledger.
BUILTIN_CRITERIA = frozenset([SAFE_TO_RUN, SAFE_TO_DEPLOY])


@dataclass(frozen=True)
class CriteriaDefinition:
    """One entry of the ledger's criteria table.

    Attributes:
        description: Human-readable meaning of the criterion.
        implies: Names of criteria this one implies.
        aggregated_from: URLs the definition was imported from.
    """

    description: str | None = None
    implies: tuple[str, ...] = ()
    aggregated_from: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        entry: dict = {}
        if self.description is not None:
            entry["description"] = self.description
        if self.implies:
            entry["implies"] = sorted(self.implies)
        if self.aggregated_from:
            entry["aggregated-from"] = list(self.aggregated_from)
        return entry

    @classmethod
    def from_dict(cls, data: Mapping) -> CriteriaDefinition:
        implies = data.get("implies", ())
        if isinstance(implies, str):
            implies = (implies,)
        aggregated = data.get("aggregated-from", ())
        if isinstance(aggregated, str):
            aggregated = (aggregated,)
        return cls(
            description=data.get("description"),
            implies=tuple(implies),
            aggregated_from=tuple(aggregated),
        )


STANDARD_CRITERIA: dict[str, CriteriaDefinition] = {
    SAFE_TO_DEPLOY: CriteriaDefinition(
        description=(
            "Reviewed by trusted peers with enough thoroughness and "
            "understanding to be deployed to production"
        ),
        implies=(SAFE_TO_RUN,),
    ),
    SAFE_TO_RUN: CriteriaDefinition(
        description=(
            "Reviewed by trusted peers and believed safe to run on a "
            "developer machine or in CI"
        ),
    ),
    REVIEWED_BY_THIRD_PARTY: CriteriaDefinition(
        description=(
            "Shipped by a third-party curated distribution. The curator's "
            "own vetting is weaker evidence than a direct peer review"
        ),
    ),
    "trust-high": CriteriaDefinition(
        description=(
            "Author of this review is well known and trusted by the publisher "
            "of this audit repository. Higher levels imply all lower levels"
        ),
        implies=("trust-medium",),
        aggregated_from=(CREV_URL,),
    ),
    "trust-medium": CriteriaDefinition(
        description=(
            "Author of this review is somewhat known and trusted by the "
            "publisher of this audit repository"
        ),
        implies=("trust-low",),
        aggregated_from=(CREV_URL,),
    ),
    "trust-low": CriteriaDefinition(
        description=(
            "Author of this review is not well known, or not trusted much, "
            "by the publisher of this audit repository"
        ),
        aggregated_from=(CREV_URL,),
    ),
    UNMAINTAINED: CriteriaDefinition(
        description="The package has been flagged as unmaintained",
        aggregated_from=(CREV_URL,),
    ),
}


def criteria_set(names: Iterable[str] | str | None) -> CriteriaSet:
    """Build a criteria set from a name, a list of names, or None."""
    if names is None:
        return frozenset()
    if isinstance(names, str):
        return frozenset([names])
    return frozenset(names)


def closure(
    criteria: Iterable[str],
    table: Mapping[str, CriteriaDefinition] | None = None,
) -> CriteriaSet:
    """Return *criteria* together with everything they transitively imply.

    Unknown names are kept as-is and imply nothing.
    """
    if table is None:
        table = STANDARD_CRITERIA
    seen: set[str] = set()
    stack = list(criteria)
    while stack:
        name = stack.pop()
        if name in seen:
            continue
        seen.add(name)
        definition = table.get(name)
        if definition is not None:
            stack.extend(definition.implies)
    return frozenset(seen)


def implies(
    stronger: Iterable[str],
    weaker: Iterable[str],
    table: Mapping[str, CriteriaDefinition] | None = None,
) -> bool:
    """Check whether the guarantees of *stronger* cover all of *weaker*.

    This is the subset test used to decide whether one record makes
    another redundant: every criterion of *weaker* must appear in the
    implication closure of *stronger*.
    """
    return frozenset(weaker) <= closure(stronger, table)


def definitions_for(
    names: Iterable[str],
    table: Mapping[str, CriteriaDefinition] | None = None,
) -> dict[str, CriteriaDefinition]:
    """Return the standard definitions needed to describe *names*.

    Includes definitions of implied criteria so the published table is
    closed under implication. Builtin criteria and names without a
    standard definition are skipped.
    """
    if table is None:
        table = STANDARD_CRITERIA
    return {
        name: table[name]
        for name in sorted(closure(names, table))
        if name in table and name not in BUILTIN_CRITERIA
    }


@dataclass
class CriteriaTable:
    """Mutable criteria table of a ledger, keyed by criterion name."""

    entries: dict[str, CriteriaDefinition] = field(default_factory=dict)

    def merge_standard(self, names: Iterable[str]) -> None:
        """Add standard definitions for *names* without touching existing ones."""
        for name, definition in definitions_for(names).items():
            self.entries.setdefault(name, definition)

    def as_mapping(self) -> dict[str, CriteriaDefinition]:
        merged = dict(STANDARD_CRITERIA)
        merged.update(self.entries)
        return merged

    def to_dict(self) -> dict:
        return {name: self.entries[name].to_dict() for name in sorted(self.entries)}
