"""``trustvet convert``: Convert trust verdicts into the audit ledger.

Loads verdicts exported from the trust graph, optional curated-list
corroborations, and the existing ledger; runs the conversion pipeline;
and writes the reconciled ledger atomically.

Exit Codes:
    0: Ledger written (conflicts, if any, were resolved).
    1: Ledger written, but ``--strict`` was given and records were
        truncated or dropped around manual entries.
    2: Malformed input, invalid configuration, or ledger I/O failure.
        Nothing is written.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path

import click

from trustvet.config import load_config
from trustvet.core.ledger import ConflictKind, Ledger
from trustvet.core.model import ExternalCorroboration
from trustvet.core.pipeline import AuditConverter
from trustvet.exceptions import SourceUnavailableError, TrustVetError
from trustvet.sources import group_by_source, load_corroborations, load_known_versions, load_verdicts

DEFAULT_LEDGER = "audits.json"


def _fetchers(debian_cache: str | None, guix_cache: str | None) -> dict[str, tuple[Callable, Path]]:
    from trustvet.sources import debian, guix

    fetchers: dict[str, tuple[Callable, Path]] = {}
    if debian_cache is not None:
        fetchers[debian.SOURCE_NAME] = (debian.fetch_debian, Path(debian_cache))
    if guix_cache is not None:
        fetchers[guix.SOURCE_NAME] = (guix.fetch_guix, Path(guix_cache))
    return fetchers


def _collect_corroborations(
    files: tuple[str, ...],
    fetchers: dict[str, tuple[Callable, Path]],
    refresh: bool,
) -> dict[str, list[ExternalCorroboration] | None]:
    """Load curated lists from files and from the requested remote sources.

    A remote source that cannot be fetched maps to None so the pipeline
    treats it as unavailable rather than failing the run.
    """
    sources: dict[str, list[ExternalCorroboration] | None] = {}
    for path in files:
        for name, items in group_by_source(load_corroborations(Path(path))).items():
            sources.setdefault(name, []).extend(items)

    for name, (fetch, cache_dir) in fetchers.items():
        try:
            items = fetch(cache_dir, refresh=refresh)
        except SourceUnavailableError as exc:
            click.echo(f"Warning: {exc}", err=True)
            sources.setdefault(name, None)
        else:
            existing = sources.get(name) or []
            sources[name] = existing + items
    return sources


@click.command("convert")
@click.option(
    "--verdicts", "verdicts_path",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="Trust verdicts exported from the trust graph (JSON or YAML).",
)
@click.option(
    "--corroborations", "corroboration_paths",
    type=click.Path(exists=True, dir_okay=False),
    multiple=True,
    help="Curated package list (JSON or YAML). Repeatable.",
)
@click.option(
    "--debian-cache",
    type=click.Path(file_okay=False),
    default=None,
    help="Corroborate with Debian stable, caching Sources.gz in this directory.",
)
@click.option(
    "--guix-cache",
    type=click.Path(file_okay=False),
    default=None,
    help="Corroborate with Guix, caching its crate modules in this directory.",
)
@click.option("--refresh", is_flag=True, help="Re-download cached curated lists.")
@click.option(
    "--known-versions", "known_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Known releases per package; unreviewed releases break ranges.",
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML configuration file.",
)
@click.option(
    "--ledger", "ledger_path",
    type=click.Path(dir_okay=False),
    default=DEFAULT_LEDGER,
    show_default=True,
    help="Existing ledger to update (created if absent).",
)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Where to write the ledger (default: same as --ledger).",
)
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Threads for per-package work.")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Report format (default: text).",
)
@click.option("--strict", is_flag=True, help="Exit 1 if any record was truncated or dropped.")
def convert_command(
    verdicts_path: str,
    corroboration_paths: tuple[str, ...],
    debian_cache: str | None,
    guix_cache: str | None,
    refresh: bool,
    known_path: str | None,
    config_path: str | None,
    ledger_path: str,
    output: str | None,
    workers: int | None,
    output_format: str,
    strict: bool,
) -> None:
    """Convert trust verdicts into criteria-based audit records.

    Manual entries already in the ledger are never changed; derived and
    external entries are regenerated from the inputs.

    Exit code 0 on success, 1 on conflicts with --strict, 2 on errors.
    """
    out_path = Path(output) if output else Path(ledger_path)
    try:
        config = load_config(Path(config_path) if config_path else None)
        verdicts = load_verdicts(Path(verdicts_path))
        corroborations = _collect_corroborations(
            corroboration_paths, _fetchers(debian_cache, guix_cache), refresh
        )
        known = load_known_versions(Path(known_path)) if known_path else None
        existing = Ledger.read(Path(ledger_path))

        converter = AuditConverter(config, max_workers=workers)
        result = converter.convert(
            verdicts,
            existing,
            corroborations=corroborations,
            known_versions=known,
        )
        result.ledger.write(out_path)
    except TrustVetError as exc:
        if output_format == "json":
            click.echo(json.dumps({"error": str(exc)}))
        else:
            click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    report = result.report
    if output_format == "json":
        payload = report.to_dict()
        payload["output"] = str(out_path)
        click.echo(json.dumps(payload, indent=2))
    else:
        from trustvet.cli.output import print_conversion_report
        print_conversion_report(report)
        click.echo(f"\nLedger written to: {out_path}")

    overridden = report.count(ConflictKind.TRUNCATED) + report.count(ConflictKind.DROPPED)
    sys.exit(1 if strict and overridden else 0)
