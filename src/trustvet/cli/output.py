"""Rich output formatting helpers for the trustvet CLI.

Provides consistent terminal output for ledgers, conversion reports and
the criteria table.

Provenance Color Mapping:
    manual = bold, derived = cyan, external = yellow
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from trustvet.core.ledger import ConflictKind, Ledger
from trustvet.core.model import CriteriaDefinition, ProvenanceKind
from trustvet.core.pipeline import ConversionReport

_PROVENANCE_STYLES: dict[ProvenanceKind, str] = {
    ProvenanceKind.MANUAL: "bold",
    ProvenanceKind.DERIVED: "cyan",
    ProvenanceKind.EXTERNAL: "yellow",
}

_CONFLICT_STYLES: dict[ConflictKind, str] = {
    ConflictKind.DROPPED: "bold red",
    ConflictKind.TRUNCATED: "yellow",
    ConflictKind.REDUNDANT: "dim",
}

console = Console()


def provenance_style(kind: ProvenanceKind) -> str:
    """Return the Rich style string for a provenance kind."""
    return _PROVENANCE_STYLES.get(kind, "white")


def print_ledger(ledger: Ledger, packages: Iterable[str] | None = None) -> None:
    """Print the audit records of a ledger as a table.

    Args:
        ledger: The ledger to display.
        packages: Restrict output to these packages.
    """
    names = list(packages) if packages is not None else ledger.packages
    if not any(ledger.records_for(name) for name in names):
        console.print("[dim]No audit records.[/dim]")
        return

    table = Table(title="Audit Ledger", show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Versions")
    table.add_column("Criteria")
    table.add_column("Provenance")
    table.add_column("Notes", style="dim")

    for name in names:
        for record in ledger.records_for(name):
            table.add_row(
                record.package,
                str(record.version_range),
                ", ".join(sorted(record.criteria)),
                Text(str(record.provenance), style=provenance_style(record.provenance.kind)),
                (record.notes or "").splitlines()[0][:60] if record.notes else "",
            )
    console.print(table)


def print_ledger_diff(changes: Mapping[str, Mapping[str, list[dict]]]) -> None:
    """Print records added and removed relative to a baseline ledger.

    Args:
        changes: Output of ``Ledger.diff`` with 'added' and 'removed' keys.
    """
    added, removed = changes["added"], changes["removed"]
    if not added and not removed:
        console.print("[dim]No changes since the baseline.[/dim]")
        return
    for sign, style, by_package in (("+", "green", added), ("-", "red", removed)):
        for package, entries in by_package.items():
            for entry in entries:
                versions = entry.get("versions", entry.get("version"))
                line = Text(f"{sign} {package} {versions} ", style=style)
                line.append(", ".join(entry["criteria"]))
                line.append(f" ({entry.get('provenance', 'manual')})", style="dim")
                console.print(line)


def print_conversion_report(report: ConversionReport) -> None:
    """Print the summary of a conversion run.

    Args:
        report: Report returned by ``AuditConverter.convert``.
    """
    if report.reduced_confidence:
        title = "[bold yellow]Ledger updated (reduced confidence)[/bold yellow]"
    else:
        title = "[bold green]Ledger updated[/bold green]"
    console.print(Panel(title, title="Conversion"))

    console.print(f"  Packages:         [bold]{report.packages}[/bold]")
    console.print(f"  Derived records:  [cyan]{report.derived_records}[/cyan]")
    console.print(f"  External records: [yellow]{report.external_records}[/yellow]")
    if report.unavailable_sources:
        console.print(
            "  Unavailable:      [yellow]"
            + ", ".join(sorted(report.unavailable_sources))
            + "[/yellow]"
        )

    if report.conflicts:
        table = Table(title="Conflicts", show_header=True)
        table.add_column("Kind", justify="center")
        table.add_column("Package", style="bold")
        table.add_column("Record")
        table.add_column("Against", style="dim")
        for conflict in report.conflicts:
            table.add_row(
                Text(conflict.kind.value, style=_CONFLICT_STYLES[conflict.kind]),
                conflict.package,
                conflict.record,
                conflict.against,
            )
        console.print(table)


def print_criteria(definitions: Mapping[str, CriteriaDefinition]) -> None:
    """Print a criteria table."""
    table = Table(title="Audit Criteria", show_header=True, header_style="bold")
    table.add_column("Criterion", style="bold")
    table.add_column("Implies")
    table.add_column("Description", style="dim")
    for name in sorted(definitions):
        definition = definitions[name]
        table.add_row(name, ", ".join(definition.implies), definition.description or "")
    console.print(table)

