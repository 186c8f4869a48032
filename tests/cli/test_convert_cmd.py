"""Tests for ``trustvet convert``.

Verifies:
    - A fresh ledger is created from verdicts.
    - Manual entries and unknown keys survive; --strict reports overrides.
    - Corroboration and known-version files are honoured.
    - Malformed input exits 2 without writing.
"""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from trustvet.cli.main import cli


def _audits(path: Path) -> dict:
    return json.loads(path.read_text())["audits"]


class TestConvertFresh:
    def test_creates_ledger(self, runner: CliRunner, verdicts_file: Path, tmp_path: Path) -> None:
        ledger = tmp_path / "supply-chain" / "audits.json"
        result = runner.invoke(cli, ["convert", "--verdicts", str(verdicts_file), "--ledger", str(ledger)])
        assert result.exit_code == 0, result.output
        assert "Ledger written to" in result.output
        audits = _audits(ledger)
        assert [e.get("versions", e.get("version")) for e in audits["serde"]] == [
            ">=1.0.0,<=1.1.0", "1.2.0",
        ]
        assert audits["log"] == [
            {"criteria": ["safe-to-run"], "version": "0.4.20", "provenance": "derived:crev",
             "notes": "Reviewers reported issues; safe-to-deploy withheld."},
        ]

    def test_json_report(self, runner: CliRunner, verdicts_file: Path, tmp_path: Path) -> None:
        ledger = tmp_path / "audits.json"
        result = runner.invoke(cli, [
            "convert", "--verdicts", str(verdicts_file), "--ledger", str(ledger), "--format", "json",
        ])
        assert result.exit_code == 0
        report = json.loads(result.output)
        assert report["packages"] == 2
        assert report["derived_records"] == 3
        assert report["output"] == str(ledger)

    def test_output_path(self, runner: CliRunner, verdicts_file: Path, manual_ledger: Path, tmp_path: Path) -> None:
        before = manual_ledger.read_text()
        out = tmp_path / "new.json"
        result = runner.invoke(cli, [
            "convert", "--verdicts", str(verdicts_file), "--ledger", str(manual_ledger), "-o", str(out),
        ])
        assert result.exit_code == 0
        assert manual_ledger.read_text() == before
        assert out.exists()


class TestConvertWithManualLedger:
    def test_manual_entry_preserved(self, runner: CliRunner, verdicts_file: Path, manual_ledger: Path) -> None:
        result = runner.invoke(cli, ["convert", "--verdicts", str(verdicts_file), "--ledger", str(manual_ledger)])
        assert result.exit_code == 0
        data = json.loads(manual_ledger.read_text())
        assert data["policy"] == {"serde": {"audit-as-crates-io": True}}
        assert data["audits"]["serde"] == [
            {"criteria": ["safe-to-deploy"], "versions": ">=1.0.0,<=2.0.0",
             "notes": "Hand-reviewed.", "importable": False},
        ]

    def test_strict_exits_1(self, runner: CliRunner, verdicts_file: Path, manual_ledger: Path) -> None:
        result = runner.invoke(cli, [
            "convert", "--verdicts", str(verdicts_file), "--ledger", str(manual_ledger), "--strict",
        ])
        assert result.exit_code == 1
        assert manual_ledger.exists()


class TestConvertEvidence:
    def test_corroborations_file(self, runner: CliRunner, verdicts_file: Path, tmp_path: Path) -> None:
        guix = tmp_path / "guix.json"
        guix.write_text(json.dumps({"source": "guix", "packages": {"rand": ["0.8.5"]}}))
        ledger = tmp_path / "audits.json"
        result = runner.invoke(cli, [
            "convert", "--verdicts", str(verdicts_file), "--corroborations", str(guix),
            "--ledger", str(ledger),
        ])
        assert result.exit_code == 0
        (entry,) = _audits(ledger)["rand"]
        assert entry["provenance"] == "external:guix"
        assert entry["criteria"] == ["reviewed-by-third-party"]
        assert "reviewed-by-third-party" in json.loads(ledger.read_text())["criteria"]

    def test_known_versions_file(self, runner: CliRunner, verdicts_file: Path, tmp_path: Path) -> None:
        known = tmp_path / "known.json"
        known.write_text(json.dumps({"serde": ["1.0.0", "1.0.1", "1.1.0", "1.2.0"]}))
        ledger = tmp_path / "audits.json"
        result = runner.invoke(cli, [
            "convert", "--verdicts", str(verdicts_file), "--known-versions", str(known),
            "--ledger", str(ledger),
        ])
        assert result.exit_code == 0
        assert [e["version"] for e in _audits(ledger)["serde"]] == ["1.0.0", "1.1.0", "1.2.0"]

    def test_config_extends_to_future(self, runner: CliRunner, verdicts_file: Path, tmp_path: Path) -> None:
        config = tmp_path / "trustvet.yaml"
        config.write_text("extend-to-future: true\n")
        ledger = tmp_path / "audits.json"
        result = runner.invoke(cli, [
            "convert", "--verdicts", str(verdicts_file), "--config", str(config), "--ledger", str(ledger),
        ])
        assert result.exit_code == 0
        assert _audits(ledger)["serde"][-1]["versions"] == ">=1.2.0"


class TestConvertErrors:
    def test_malformed_verdicts(self, runner: CliRunner, tmp_path: Path) -> None:
        bad = tmp_path / "verdicts.json"
        bad.write_text(json.dumps([{"package": "serde", "version": "1.0.0", "trust_level": "cosmic"}]))
        ledger = tmp_path / "audits.json"
        result = runner.invoke(cli, ["convert", "--verdicts", str(bad), "--ledger", str(ledger)])
        assert result.exit_code == 2
        assert "Error" in result.output
        assert not ledger.exists()

    def test_invalid_config(self, runner: CliRunner, verdicts_file: Path, tmp_path: Path) -> None:
        config = tmp_path / "trustvet.yaml"
        config.write_text("corroboration:\n  sources:\n    debian: [safe-to-deploy]\n")
        result = runner.invoke(cli, [
            "convert", "--verdicts", str(verdicts_file), "--config", str(config),
            "--ledger", str(tmp_path / "audits.json"),
        ])
        assert result.exit_code == 2

    def test_malformed_ledger(self, runner: CliRunner, verdicts_file: Path, tmp_path: Path) -> None:
        ledger = tmp_path / "audits.json"
        ledger.write_text("{broken")
        result = runner.invoke(cli, ["convert", "--verdicts", str(verdicts_file), "--ledger", str(ledger)])
        assert result.exit_code == 2
        assert ledger.read_text() == "{broken"

    def test_verdicts_required(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["convert"])
        assert result.exit_code == 2
