"""Tests for ``trustvet fetch``, ``trustvet criteria`` and the group options."""

from __future__ import annotations

import gzip
import json
from pathlib import Path

from click.testing import CliRunner

from trustvet import __version__
from trustvet.cli.main import cli
from trustvet.sources.guix import DEFAULT_MODULES

SOURCES = """\
Package: rust-serde
Version: 1.0.188-1

Package: rust-log
Version: 0.4.20-2
"""


GUIX_MODULE = """\
(define-public rust-serde-json-1
  (package
    (name "rust-serde-json")
    (version "1.0.108")
    (source (origin (uri (crate-uri "serde_json" version))))))
"""


def _seed_guix_cache(cache_dir: Path) -> Path:
    """Pre-populate every Guix module so no download is attempted."""
    cache_dir.mkdir(parents=True, exist_ok=True)
    for name in DEFAULT_MODULES:
        (cache_dir / name).write_text(GUIX_MODULE if name == "crates-io.scm" else "")
    return cache_dir


def _seed_cache(cache_dir: Path) -> Path:
    """Pre-populate the Debian cache so no download is attempted."""
    cache_dir.mkdir(parents=True, exist_ok=True)
    (cache_dir / "Sources.gz").write_bytes(gzip.compress(SOURCES.encode("utf-8")))
    return cache_dir


class TestFetch:
    def test_stdout(self, runner: CliRunner, tmp_path: Path) -> None:
        cache = _seed_cache(tmp_path / "cache")
        result = runner.invoke(cli, ["fetch", "debian", "--cache-dir", str(cache)])
        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "source": "debian",
            "packages": {"log": ["0.4.20"], "serde": ["1.0.188"]},
        }

    def test_output_file_feeds_convert(self, runner: CliRunner, tmp_path: Path, verdicts_file: Path) -> None:
        cache = _seed_cache(tmp_path / "cache")
        out = tmp_path / "debian.json"
        result = runner.invoke(cli, ["fetch", "debian", "--cache-dir", str(cache), "-o", str(out)])
        assert result.exit_code == 0
        assert "2 corroborations" in result.output

        ledger = tmp_path / "audits.json"
        result = runner.invoke(cli, [
            "convert", "--verdicts", str(verdicts_file), "--corroborations", str(out),
            "--ledger", str(ledger),
        ])
        assert result.exit_code == 0
        audits = json.loads(ledger.read_text())["audits"]
        assert {"criteria": ["reviewed-by-third-party"], "version": "1.0.188",
                "provenance": "external:debian", "notes": "Shipped by debian."} in audits["serde"]

    def test_debian_cache_option_on_convert(self, runner: CliRunner, tmp_path: Path, verdicts_file: Path) -> None:
        cache = _seed_cache(tmp_path / "cache")
        ledger = tmp_path / "audits.json"
        result = runner.invoke(cli, [
            "convert", "--verdicts", str(verdicts_file), "--debian-cache", str(cache),
            "--ledger", str(ledger), "--format", "json",
        ])
        assert result.exit_code == 0
        assert json.loads(result.output)["external_records"] == 2

    def test_guix(self, runner: CliRunner, tmp_path: Path) -> None:
        cache = _seed_guix_cache(tmp_path / "guix")
        result = runner.invoke(cli, ["fetch", "guix", "--cache-dir", str(cache)])
        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "source": "guix",
            "packages": {"serde_json": ["1.0.108"]},
        }

    def test_guix_cache_option_on_convert(self, runner: CliRunner, tmp_path: Path, verdicts_file: Path) -> None:
        cache = _seed_guix_cache(tmp_path / "guix")
        ledger = tmp_path / "audits.json"
        result = runner.invoke(cli, [
            "convert", "--verdicts", str(verdicts_file), "--guix-cache", str(cache),
            "--ledger", str(ledger),
        ])
        assert result.exit_code == 0
        (entry,) = json.loads(ledger.read_text())["audits"]["serde_json"]
        assert entry["provenance"] == "external:guix"

    def test_unknown_source(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["fetch", "fedora", "--cache-dir", str(tmp_path)])
        assert result.exit_code == 2


class TestCriteria:
    def test_text(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["criteria"])
        assert result.exit_code == 0
        assert "reviewed-by-third-party" in result.output
        assert "Thresholds:" in result.output

    def test_json(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["criteria", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["criteria"]["safe-to-deploy"]["implies"] == ["safe-to-run"]
        assert data["config"]["thresholds"]["high"] == ["safe-to-deploy", "safe-to-run"]

    def test_bad_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "trustvet.yaml"
        config.write_text("bogus: 1\n")
        result = runner.invoke(cli, ["criteria", "--config", str(config)])
        assert result.exit_code == 2


class TestGroup:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        for name in ("convert", "show", "fetch", "criteria"):
            assert name in result.output
