"""Tests for ``trustvet show``."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from trustvet.cli.main import cli


def _write(path: Path, audits: dict) -> Path:
    path.write_text(json.dumps({"audits": audits}))
    return path


class TestShow:
    def test_table(self, runner: CliRunner, manual_ledger: Path) -> None:
        result = runner.invoke(cli, ["show", str(manual_ledger)])
        assert result.exit_code == 0
        assert "serde" in result.output
        assert "manual" in result.output

    def test_empty_ledger(self, runner: CliRunner, tmp_path: Path) -> None:
        path = _write(tmp_path / "audits.json", {})
        result = runner.invoke(cli, ["show", str(path)])
        assert result.exit_code == 0
        assert "No audit records." in result.output

    def test_json_filtered_by_package(self, runner: CliRunner, tmp_path: Path) -> None:
        path = _write(tmp_path / "audits.json", {
            "serde": [{"criteria": "safe-to-run", "version": "1.0.0"}],
            "log": [{"criteria": "safe-to-run", "version": "0.4.0"}],
        })
        result = runner.invoke(cli, ["show", str(path), "--package", "log", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert list(data["audits"]) == ["log"]
        assert data["audits"]["log"][0]["version"] == "0.4.0"

    def test_check_consistent(self, runner: CliRunner, manual_ledger: Path) -> None:
        result = runner.invoke(cli, ["show", str(manual_ledger), "--check"])
        assert result.exit_code == 0
        assert "Ledger is consistent." in result.output

    def test_check_reports_overlap(self, runner: CliRunner, tmp_path: Path) -> None:
        path = _write(tmp_path / "audits.json", {
            "serde": [
                {"criteria": "safe-to-deploy", "versions": ">=1.0.0,<=2.0.0"},
                {"criteria": "safe-to-run", "version": "1.5.0", "provenance": "derived:crev"},
            ],
        })
        result = runner.invoke(cli, ["show", str(path), "--check", "--format", "json"])
        assert result.exit_code == 1
        assert len(json.loads(result.output)["errors"]) == 1

    def test_malformed_ledger(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "audits.json"
        path.write_text("[]")
        result = runner.invoke(cli, ["show", str(path)])
        assert result.exit_code == 2
        assert "Error" in result.output

    def test_missing_ledger(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["show", str(tmp_path / "absent.json")])
        assert result.exit_code == 2


class TestShowDiff:
    """``--diff`` lists records added and removed since a baseline ledger."""

    def test_json(self, runner: CliRunner, tmp_path: Path) -> None:
        old = _write(tmp_path / "old.json", {
            "serde": [{"criteria": "safe-to-run", "version": "1.0.0", "provenance": "derived:crev"}],
            "rand": [{"criteria": "safe-to-run", "version": "0.8.5", "provenance": "derived:crev"}],
        })
        new = _write(tmp_path / "new.json", {
            "serde": [{"criteria": "safe-to-run", "versions": ">=1.0.0,<=1.1.0", "provenance": "derived:crev"}],
        })
        result = runner.invoke(cli, ["show", str(new), "--diff", str(old), "--format", "json"])
        assert result.exit_code == 0
        diff = json.loads(result.output)["diff"]
        assert [e["versions"] for e in diff["added"]["serde"]] == [">=1.0.0,<=1.1.0"]
        assert [e["version"] for e in diff["removed"]["serde"]] == ["1.0.0"]
        assert [e["version"] for e in diff["removed"]["rand"]] == ["0.8.5"]

    def test_json_filtered_by_package(self, runner: CliRunner, tmp_path: Path) -> None:
        old = _write(tmp_path / "old.json", {
            "rand": [{"criteria": "safe-to-run", "version": "0.8.5"}],
        })
        new = _write(tmp_path / "new.json", {
            "serde": [{"criteria": "safe-to-run", "version": "1.0.0"}],
        })
        result = runner.invoke(cli, [
            "show", str(new), "--diff", str(old), "-p", "serde", "--format", "json",
        ])
        assert json.loads(result.output)["diff"] == {
            "added": {"serde": [{"criteria": ["safe-to-run"], "version": "1.0.0"}]},
            "removed": {},
        }

    def test_text(self, runner: CliRunner, tmp_path: Path) -> None:
        old = _write(tmp_path / "old.json", {"log": [{"criteria": "safe-to-run", "version": "0.4.0"}]})
        new = _write(tmp_path / "new.json", {"log": [{"criteria": "safe-to-run", "version": "0.4.1"}]})
        result = runner.invoke(cli, ["show", str(new), "--diff", str(old)])
        assert result.exit_code == 0
        assert "+ log 0.4.1" in result.output
        assert "- log 0.4.0" in result.output

    def test_unchanged(self, runner: CliRunner, manual_ledger: Path) -> None:
        result = runner.invoke(cli, ["show", str(manual_ledger), "--diff", str(manual_ledger)])
        assert result.exit_code == 0
        assert "No changes since the baseline." in result.output

    def test_unreadable_baseline(self, runner: CliRunner, manual_ledger: Path, tmp_path: Path) -> None:
        bad = tmp_path / "old.json"
        bad.write_text("{broken")
        result = runner.invoke(cli, ["show", str(manual_ledger), "--diff", str(bad)])
        assert result.exit_code == 2
