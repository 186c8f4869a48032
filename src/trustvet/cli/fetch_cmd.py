"""``trustvet fetch <source>``: Download a curated package list.

Writes the list as a compact corroboration document that
``trustvet convert --corroborations`` accepts, so the network fetch and
the conversion can run separately.

Usage::

    trustvet fetch debian --cache-dir ~/.cache/trustvet -o debian.json
    trustvet fetch guix --cache-dir ~/.cache/trustvet/guix -o guix.json

Exit Codes:
    0: List written.
    1: Source unavailable.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from trustvet.exceptions import SourceUnavailableError
from trustvet.sources import corroborations_to_dict


@click.command("fetch")
@click.argument("source", type=click.Choice(["debian", "guix"]))
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False),
    required=True,
    help="Directory for the downloaded index or modules.",
)
@click.option("--refresh", is_flag=True, help="Re-download even if cached.")
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the list here (default: stdout).",
)
def fetch_command(source: str, cache_dir: str, refresh: bool, output: str | None) -> None:
    """Download SOURCE's curated list and emit its corroborations."""
    if source == "guix":
        from trustvet.sources.guix import fetch_guix as fetch_source
    else:
        from trustvet.sources.debian import fetch_debian as fetch_source

    try:
        items = fetch_source(Path(cache_dir), refresh=refresh)
    except SourceUnavailableError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    text = json.dumps(corroborations_to_dict(source, items), indent=2, sort_keys=True)
    if output is None:
        click.echo(text)
    else:
        Path(output).write_text(text + "\n", encoding="utf-8")
        click.echo(f"{len(items)} corroborations written to: {output}")
    sys.exit(0)
