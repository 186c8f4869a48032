"""Threshold table and assessment result for the criteria mapper.

- ``ThresholdConfig`` -- base criteria granted per trust level.
- ``Assessment`` -- criteria plus the notes and attribution a verdict
  contributes to its audit record.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from trustvet.core.model import (
    SAFE_TO_DEPLOY,
    SAFE_TO_RUN,
    CriteriaSet,
    TrustLevel,
    criteria_set,
)
from trustvet.exceptions import ConfigurationError, MalformedInputError


DEFAULT_THRESHOLDS: Mapping[TrustLevel, CriteriaSet] = MappingProxyType({
    TrustLevel.NONE: frozenset(),
    TrustLevel.LOW: frozenset(),
    TrustLevel.MEDIUM: frozenset([SAFE_TO_RUN]),
    TrustLevel.HIGH: frozenset([SAFE_TO_RUN, SAFE_TO_DEPLOY]),
})


@dataclass(frozen=True)
class ThresholdConfig:
    """Base criteria granted to a verdict at each trust level.

    Immutable; use ``with_overrides`` to derive a table with some levels
    replaced. Every ``TrustLevel`` must have an entry.

    Attributes:
        levels: Mapping from trust level to its base criteria set.
    """

    levels: Mapping[TrustLevel, CriteriaSet] = field(
        default_factory=lambda: DEFAULT_THRESHOLDS
    )

    def __post_init__(self) -> None:
        normalized: dict[TrustLevel, CriteriaSet] = {}
        for level, names in self.levels.items():
            if not isinstance(level, TrustLevel):
                raise ConfigurationError(
                    f"Threshold key must be a TrustLevel, got {level!r}"
                )
            normalized[level] = criteria_set(names)
        missing = [lvl.name.lower() for lvl in TrustLevel if lvl not in normalized]
        if missing:
            raise ConfigurationError(
                f"Threshold table is missing trust levels: {missing}"
            )
        object.__setattr__(self, "levels", MappingProxyType(normalized))

    @classmethod
    def from_dict(cls, data: Mapping[str, Iterable[str] | str | None]) -> ThresholdConfig:
        """Build a table from level names to criteria lists.

        Levels not mentioned keep their default criteria.

        Raises:
            ConfigurationError: If a key is not a trust level name.
        """
        return cls().with_overrides(data)

    def with_overrides(
        self, overrides: Mapping[TrustLevel | str, Iterable[str] | str | None]
    ) -> ThresholdConfig:
        """Return a new table with the given levels replaced."""
        levels = dict(self.levels)
        for key, names in overrides.items():
            try:
                level = TrustLevel.parse(key)
            except MalformedInputError as exc:
                raise ConfigurationError(str(exc)) from None
            levels[level] = criteria_set(names)
        return ThresholdConfig(levels)

    def criteria_for(self, level: TrustLevel) -> CriteriaSet:
        """Base criteria for *level*.

        Raises:
            ConfigurationError: If *level* is not a recognized trust level.
        """
        if not isinstance(level, TrustLevel) or level not in self.levels:
            raise ConfigurationError(f"Unrecognized trust level: {level!r}")
        return self.levels[level]

    def to_dict(self) -> dict[str, list[str]]:
        return {
            level.name.lower(): sorted(self.levels[level])
            for level in TrustLevel
        }


@dataclass(frozen=True)
class Assessment:
    """Criteria and annotations derived from one verdict.

    Attributes:
        criteria: Criteria the verdict supports.
        notes: Annotations for the audit record, in display order.
        who: Reviewer attributions.
    """

    criteria: CriteriaSet
    notes: tuple[str, ...] = ()
    who: tuple[str, ...] = ()
