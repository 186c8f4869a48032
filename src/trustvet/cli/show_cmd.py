"""``trustvet show <ledger>``: Display an audit ledger.

Exit Codes:
    0: Ledger displayed and consistent.
    1: Ledger displayed, but ``--check`` found invariant violations.
    2: Ledger (or the ``--diff`` baseline) could not be read.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from trustvet.core.ledger import Ledger
from trustvet.exceptions import TrustVetError


@click.command("show")
@click.argument("ledger_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--package", "-p", "packages", multiple=True, help="Only show these packages.")
@click.option("--check", is_flag=True, help="Validate range invariants.")
@click.option(
    "--diff", "baseline_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Also list records added and removed since this earlier ledger.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def show_command(
    ledger_path: str,
    packages: tuple[str, ...],
    check: bool,
    baseline_path: str | None,
    output_format: str,
) -> None:
    """Display the audit records of LEDGER_PATH."""
    try:
        ledger = Ledger.read(Path(ledger_path))
        baseline = Ledger.read(Path(baseline_path)) if baseline_path else None
    except TrustVetError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    selected = list(packages) if packages else ledger.packages
    errors = ledger.validate() if check else []
    changes = None
    if baseline is not None:
        changes = baseline.diff(ledger)
        if packages:
            changes = {
                side: {name: e for name, e in by_package.items() if name in packages}
                for side, by_package in changes.items()
            }

    if output_format == "json":
        audits = ledger.to_dict()["audits"]
        payload: dict = {"audits": {name: audits.get(name, []) for name in selected}}
        if check:
            payload["errors"] = errors
        if changes is not None:
            payload["diff"] = changes
        click.echo(json.dumps(payload, indent=2))
    else:
        from trustvet.cli.output import print_ledger, print_ledger_diff
        print_ledger(ledger, selected)
        if changes is not None:
            print_ledger_diff(changes)
        for error in errors:
            click.echo(f"Invariant violated: {error}")
        if check and not errors:
            click.echo("Ledger is consistent.")

    sys.exit(1 if errors else 0)
