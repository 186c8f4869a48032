"""Conversion configuration.

All options live in one immutable ``ConversionConfig`` that is passed
explicitly into the pipeline; nothing reads process-wide state. A config
file is YAML::

    thresholds:            # criteria granted per trust level
      medium: [safe-to-run]
      high: [safe-to-run, safe-to-deploy]
    corroboration:
      sources:
        debian: [reviewed-by-third-party]
      default: [reviewed-by-third-party]
      allow-safe-to-deploy: false
    extend-to-future: false
    conflict-verbosity: normal   # quiet | normal | verbose
    source-id: crev

Every key is optional; omitted keys keep their defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from trustvet.core.consolidation import DEFAULT_SOURCE_ID
from trustvet.core.corroboration import CorroborationConfig
from trustvet.core.mapping import ThresholdConfig
from trustvet.exceptions import ConfigurationError

CONFIG_KEYS = frozenset([
    "thresholds",
    "corroboration",
    "extend-to-future",
    "conflict-verbosity",
    "source-id",
])


class ConflictVerbosity(Enum):
    """How loudly resolved conflicts are logged.

    - ``QUIET``: only dropped records, at INFO.
    - ``NORMAL``: dropped records at WARNING, truncations at INFO.
    - ``VERBOSE``: every conflict at WARNING, including redundant
      corroborations.
    """

    QUIET = "quiet"
    NORMAL = "normal"
    VERBOSE = "verbose"

    @classmethod
    def parse(cls, value: str | ConflictVerbosity) -> ConflictVerbosity:
        if isinstance(value, ConflictVerbosity):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown conflict verbosity {value!r}; "
                f"expected one of {[v.value for v in cls]}"
            ) from None


@dataclass(frozen=True)
class ConversionConfig:
    """Every option of a conversion run.

    Attributes:
        thresholds: Base criteria per trust level.
        corroboration: Criteria caps per curated source.
        extend_to_future: Leave the newest run of each package open to
            unreleased versions.
        conflict_verbosity: Logging level policy for resolved conflicts.
        source_id: Identifier stamped on derived records
            (``derived:<source_id>``).
    """

    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    corroboration: CorroborationConfig = field(default_factory=CorroborationConfig)
    extend_to_future: bool = False
    conflict_verbosity: ConflictVerbosity = ConflictVerbosity.NORMAL
    source_id: str = DEFAULT_SOURCE_ID

    def __post_init__(self) -> None:
        if not self.source_id or ":" in self.source_id:
            raise ConfigurationError(
                f"source-id must be non-empty and contain no ':', got {self.source_id!r}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ConversionConfig:
        """Build a config from a parsed YAML/JSON mapping.

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigurationError("Configuration must be a mapping")
        unknown = set(data) - CONFIG_KEYS
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")

        thresholds = data.get("thresholds") or {}
        if not isinstance(thresholds, Mapping):
            raise ConfigurationError("thresholds must be a mapping of level to criteria")
        corroboration = data.get("corroboration") or {}
        if not isinstance(corroboration, Mapping):
            raise ConfigurationError("corroboration must be a mapping")
        extend = data.get("extend-to-future", False)
        if not isinstance(extend, bool):
            raise ConfigurationError(f"extend-to-future must be true or false, got {extend!r}")

        return cls(
            thresholds=ThresholdConfig.from_dict(thresholds),
            corroboration=CorroborationConfig.from_dict(corroboration),
            extend_to_future=extend,
            conflict_verbosity=ConflictVerbosity.parse(
                data.get("conflict-verbosity", ConflictVerbosity.NORMAL)
            ),
            source_id=str(data.get("source-id", DEFAULT_SOURCE_ID)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "thresholds": self.thresholds.to_dict(),
            "corroboration": self.corroboration.to_dict(),
            "extend-to-future": self.extend_to_future,
            "conflict-verbosity": self.conflict_verbosity.value,
            "source-id": self.source_id,
        }


def load_config(path: Path | None) -> ConversionConfig:
    """Load a YAML config file; None gives the defaults.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    if path is None:
        return ConversionConfig()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    return ConversionConfig.from_dict(data)
