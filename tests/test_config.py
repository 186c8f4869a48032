"""Tests for ConversionConfig and YAML loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from trustvet.config import ConflictVerbosity, ConversionConfig, load_config
from trustvet.core.model import SAFE_TO_RUN, TrustLevel
from trustvet.exceptions import ConfigurationError


class TestFromDict:
    def test_none_gives_defaults(self) -> None:
        assert ConversionConfig.from_dict(None) == ConversionConfig()

    def test_all_keys(self) -> None:
        config = ConversionConfig.from_dict({
            "thresholds": {"low": ["safe-to-run"]},
            "corroboration": {"sources": {"guix": []}},
            "extend-to-future": True,
            "conflict-verbosity": "Verbose",
            "source-id": "mirror",
        })
        assert config.thresholds.criteria_for(TrustLevel.LOW) == {SAFE_TO_RUN}
        assert config.corroboration.criteria_for("guix") == frozenset()
        assert config.extend_to_future is True
        assert config.conflict_verbosity is ConflictVerbosity.VERBOSE
        assert config.source_id == "mirror"

    @pytest.mark.parametrize("data", [
        ["thresholds"],
        {"threshold": {}},
        {"thresholds": ["high"]},
        {"corroboration": "debian"},
        {"extend-to-future": "yes"},
        {"conflict-verbosity": "loud"},
        {"source-id": "derived:crev"},
        {"source-id": ""},
    ])
    def test_invalid(self, data: object) -> None:
        with pytest.raises(ConfigurationError):
            ConversionConfig.from_dict(data)  # type: ignore[arg-type]

    def test_to_dict_round_trip(self) -> None:
        config = ConversionConfig.from_dict({"extend-to-future": True, "source-id": "x"})
        assert ConversionConfig.from_dict(config.to_dict()) == config


class TestLoadConfig:
    def test_no_path(self) -> None:
        assert load_config(None) == ConversionConfig()

    def test_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "trustvet.yaml"
        path.write_text("thresholds:\n  medium: []\nconflict-verbosity: quiet\n")
        config = load_config(path)
        assert config.thresholds.criteria_for(TrustLevel.MEDIUM) == frozenset()
        assert config.conflict_verbosity is ConflictVerbosity.QUIET

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "trustvet.yaml"
        path.write_text("")
        assert load_config(path) == ConversionConfig()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "trustvet.yaml"
        path.write_text("thresholds: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "absent.yaml")
