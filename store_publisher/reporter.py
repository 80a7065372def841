from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from store_publisher.config import MIB
from store_publisher.domain.models import SplitManifest
from store_publisher.domain.results import AggregateCounts, OversizedFile, ValidationReport
from store_publisher.utils.profiler import ProfileStats


def _mb(size: int) -> str:
    return f"{size / MIB:,.2f}"


def print_validation_report(
    reports: Sequence[ValidationReport],
    counts: AggregateCounts,
    console: Optional[Console] = None,
) -> None:
    """
    Render per-bundle validation results followed by the summary counts.

    Valid bundles without warnings are left out to keep long catalogs readable.
    """
    console = console or Console()
    noteworthy = [r for r in reports if r.errors or r.warnings]

    if noteworthy:
        table = Table(title="Bundle Validation", box=box.ROUNDED)
        table.add_column("Bundle", style="cyan", no_wrap=True)
        table.add_column("Status", justify="center")
        table.add_column("Details")

        for report in noteworthy:
            status = "[red]FAIL[/red]" if report.errors else "[yellow]WARN[/yellow]"
            details: List[str] = [f"[red]{escape(str(error))}[/red]" for error in report.errors]
            details.extend(f"[yellow]{escape(warning)}[/yellow]" for warning in report.warnings)
            table.add_row(escape(report.bundle), status, "\n".join(details))
        console.print(table)

    style = "red" if counts.errors else "green"
    console.print(
        f"[{style}]Scan complete: {counts.total} apps found, "
        f"{counts.valid} valid, {counts.errors} errors[/{style}]"
    )


def print_stage_timings(stages: Iterable[ProfileStats], console: Optional[Console] = None) -> None:
    console = console or Console()
    stages = list(stages)
    if not stages:
        return

    table = Table(title="Pipeline Stages", box=box.ROUNDED)
    table.add_column("Stage", style="cyan", no_wrap=True)
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_column("Peak Memory (MB)", justify="right", style="yellow")

    for stats in stages:
        mem_str = _mb(stats.peak_rss_bytes) if stats.peak_rss_bytes else "N/A"
        table.add_row(stats.label, f"{stats.duration_seconds:.2f}", mem_str)
    console.print(table)


def print_split_summary(manifests: Sequence[SplitManifest], console: Optional[Console] = None) -> None:
    console = console or Console()
    if not manifests:
        console.print("[dim]No files exceed the size limit.[/dim]")
        return

    table = Table(title="Split Files", box=box.ROUNDED)
    table.add_column("File", style="cyan", no_wrap=True)
    table.add_column("Size (MB)", justify="right", style="magenta")
    table.add_column("Parts", justify="right", style="blue")
    table.add_column("SHA-256", style="dim")

    for manifest in manifests:
        table.add_row(
            escape(manifest.original_file),
            _mb(manifest.original_size),
            str(len(manifest.parts)),
            manifest.original_sha256[:16],
        )
    console.print(table)


def print_oversized(violations: Sequence[OversizedFile], threshold: int, console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(
        title=f"[red]Files over the {_mb(threshold)} MB limit[/red]",
        box=box.ROUNDED,
    )
    table.add_column("File", style="red")
    table.add_column("Size (MB)", justify="right")
    table.add_column("Bytes", justify="right", style="dim")
    for violation in violations:
        table.add_row(escape(str(violation.path)), _mb(violation.size), f"{violation.size:,}")
    console.print(table)


__all__ = [
    "print_oversized",
    "print_split_summary",
    "print_stage_timings",
    "print_validation_report",
]
