"""Shared fixtures for trustvet tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def verdicts_file(tmp_path: Path) -> Path:
    """Verdicts for two packages, written as JSON."""
    path = tmp_path / "verdicts.json"
    path.write_text(json.dumps([
        {"package": "serde", "version": "1.0.0", "trust_level": "medium"},
        {"package": "serde", "version": "1.1.0", "trust_level": "medium"},
        {"package": "serde", "version": "1.2.0", "trust_level": "high",
         "reviewers": ["alice"]},
        {"package": "log", "version": "0.4.20", "trust_level": "high",
         "flags": ["has_issues"]},
    ]))
    return path


@pytest.fixture
def manual_ledger(tmp_path: Path) -> Path:
    """A ledger holding one hand-written serde audit."""
    path = tmp_path / "audits.json"
    path.write_text(json.dumps({
        "audits": {
            "serde": [
                {"criteria": "safe-to-deploy", "versions": ">=1.0.0,<=2.0.0",
                 "notes": "Hand-reviewed.", "importable": False},
            ],
        },
        "policy": {"serde": {"audit-as-crates-io": True}},
    }))
    return path
