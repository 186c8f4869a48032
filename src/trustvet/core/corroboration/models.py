"""Per-source criteria caps for external corroboration."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from trustvet.core.model import (
    REVIEWED_BY_THIRD_PARTY,
    SAFE_TO_DEPLOY,
    CriteriaSet,
    ExternalCorroboration,
    closure,
    criteria_set,
)
from trustvet.exceptions import ConfigurationError

DEFAULT_SOURCE_CRITERIA: CriteriaSet = frozenset([REVIEWED_BY_THIRD_PARTY])

DEFAULT_CAPS: Mapping[str, CriteriaSet] = MappingProxyType({
    "debian": DEFAULT_SOURCE_CRITERIA,
    "guix": DEFAULT_SOURCE_CRITERIA,
})


@dataclass(frozen=True)
class CorroborationConfig:
    """Fixed criteria granted by each curated source.

    Curated-distribution trust is capped below a direct high-trust
    review. A cap that would grant ``safe-to-deploy`` (directly or by
    implication) is rejected unless ``allow_safe_to_deploy`` is set.

    Attributes:
        caps: Criteria per source name.
        default_criteria: Criteria for sources not listed in ``caps``.
        allow_safe_to_deploy: Permit caps containing ``safe-to-deploy``.
    """

    caps: Mapping[str, CriteriaSet] = field(default_factory=lambda: DEFAULT_CAPS)
    default_criteria: CriteriaSet = DEFAULT_SOURCE_CRITERIA
    allow_safe_to_deploy: bool = False

    def __post_init__(self) -> None:
        caps = {str(name): criteria_set(names) for name, names in self.caps.items()}
        default = criteria_set(self.default_criteria)
        if not self.allow_safe_to_deploy:
            for name, cap in [*caps.items(), ("<default>", default)]:
                if SAFE_TO_DEPLOY in closure(cap):
                    raise ConfigurationError(
                        f"Corroboration source {name!r} would grant "
                        f"{SAFE_TO_DEPLOY!r}; set allow_safe_to_deploy to permit it"
                    )
        object.__setattr__(self, "caps", MappingProxyType(caps))
        object.__setattr__(self, "default_criteria", default)

    @classmethod
    def from_dict(cls, data: Mapping) -> CorroborationConfig:
        """Build from ``{"sources": {name: [criteria]}, "default": [...],
        "allow-safe-to-deploy": bool}``.

        Sources listed override the built-in caps; others are kept.
        """
        unknown = set(data) - {"sources", "default", "allow-safe-to-deploy"}
        if unknown:
            raise ConfigurationError(
                f"Unknown corroboration options: {sorted(unknown)}"
            )
        sources = data.get("sources") or {}
        if not isinstance(sources, Mapping):
            raise ConfigurationError("corroboration.sources must be a mapping")
        caps: dict[str, Iterable[str]] = dict(DEFAULT_CAPS)
        caps.update(sources)
        return cls(
            caps=caps,
            default_criteria=criteria_set(data.get("default", DEFAULT_SOURCE_CRITERIA)),
            allow_safe_to_deploy=bool(data.get("allow-safe-to-deploy", False)),
        )

    def criteria_for(self, source_name: str) -> CriteriaSet:
        return self.caps.get(source_name, self.default_criteria)

    def to_dict(self) -> dict:
        return {
            "sources": {name: sorted(self.caps[name]) for name in sorted(self.caps)},
            "default": sorted(self.default_criteria),
            "allow-safe-to-deploy": self.allow_safe_to_deploy,
        }


@dataclass(frozen=True)
class RedundantCorroboration:
    """A corroboration skipped because a derived record already implies it.

    Attributes:
        corroboration: The skipped evidence.
        covered_by: Range of the derived record that made it redundant.
    """

    corroboration: ExternalCorroboration
    covered_by: str
