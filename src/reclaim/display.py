"""Rich terminal display for reclaim."""

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from reclaim.models import (
    ActionKind,
    CleanupTier,
    DiskUsageSnapshot,
    RunReport,
    TaskOutcome,
    TaskStatus,
    VolumeDelta,
)
from reclaim.tasks import TaskMatrix

console = Console()


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable string (decimal units)."""
    sign = "-" if size_bytes < 0 else ""
    size_bytes = abs(size_bytes)
    if size_bytes >= 1000**3:
        return f"{sign}{size_bytes / (1000**3):.1f} GB"
    elif size_bytes >= 1000**2:
        return f"{sign}{size_bytes / (1000**2):.1f} MB"
    elif size_bytes >= 1000:
        return f"{sign}{size_bytes / 1000:.1f} KB"
    else:
        return f"{sign}{size_bytes} B"


def tier_label(tier: CleanupTier) -> str:
    colors = {
        CleanupTier.LIGHT: "green",
        CleanupTier.STANDARD: "yellow",
        CleanupTier.DEEP: "red",
    }
    color = colors.get(tier, "white")
    return f"[{color}]{tier.value.title()}[/{color}]"


def show_snapshot(snapshot: DiskUsageSnapshot, out: Any = console) -> None:
    """Display one snapshot as a table."""
    table = Table(title="Fixed Volumes", show_header=True, header_style="bold")
    table.add_column("Volume")
    table.add_column("Mount")
    table.add_column("Total", justify="right")
    table.add_column("Free", justify="right")
    table.add_column("Free %", justify="right")

    for volume in snapshot.volumes:
        percent = volume.percent_free
        color = "red" if percent < 10 else "yellow" if percent < 25 else "green"
        table.add_row(
            escape(volume.id),
            escape(volume.mount_point),
            f"{volume.total_gb:.1f} GB",
            f"[bold]{volume.free_gb:.1f} GB[/bold]",
            f"[{color}]{percent:.1f}%[/{color}]",
        )

    out.print(table)


def show_snapshot_diff(deltas: list[VolumeDelta], out: Any = console) -> None:
    """Display free space per volume before and after a run."""
    table = Table(title="Disk Space Before / After", show_header=True, header_style="bold")
    table.add_column("Volume")
    table.add_column("Free Before", justify="right")
    table.add_column("Free After", justify="right")
    table.add_column("Free % Before", justify="right")
    table.add_column("Free % After", justify="right")
    table.add_column("Reclaimed", justify="right")

    for delta in deltas:
        freed = delta.freed_bytes
        color = "green" if freed > 0 else "dim"
        table.add_row(
            escape(delta.mount_point),
            format_size(delta.free_before),
            format_size(delta.free_after),
            f"{delta.percent_free_before:.1f}%",
            f"{delta.percent_free_after:.1f}%",
            f"[{color}]{format_size(freed)}[/{color}]",
        )

    out.print(table)


def show_task_outcome(outcome: TaskOutcome, out: Any = console) -> None:
    """Display the result of one task."""
    name = escape(outcome.task_name)
    if outcome.status == TaskStatus.SKIPPED:
        reason = f" ({escape(outcome.message)})" if outcome.message else ""
        out.print(f"  [dim]- {name}: skipped{reason}[/dim]")
    elif outcome.status == TaskStatus.FAILED:
        out.print(f"  [red]✗[/red] {name}: {escape(outcome.message or 'failed')}")
    else:
        detail = f"{outcome.removed_count} removed, {format_size(outcome.bytes_freed)}"
        if outcome.failed_count:
            detail += f", [yellow]{outcome.failed_count} skipped[/yellow]"
        out.print(f"  [green]✓[/green] {name}: {detail}")


def show_task_matrix(matrix: TaskMatrix, tier: CleanupTier | None = None, out: Any = console) -> None:
    """List the tasks of a matrix, optionally only those a tier runs."""
    table = Table(title="Cleanup Tasks", show_header=True, header_style="bold")
    table.add_column("Tier")
    table.add_column("Task")
    table.add_column("Action")
    table.add_column("Admin", justify="center")
    table.add_column("Age", justify="right")

    for task in matrix:
        if tier is not None and not tier.includes(task.tier):
            continue
        age = f"{task.age_days}d" if task.age_days is not None else ""
        if not age and task.kind == ActionKind.AGE_FILTERED_DELETE:
            age = "default"
        table.add_row(
            tier_label(task.tier),
            f"[bold]{escape(task.id)}[/bold] - {escape(task.name)}",
            task.kind.value.replace("_", " "),
            "✓" if task.requires_elevation else "",
            age,
        )

    out.print(table)


def show_large_files(files: list[dict], out: Any = console) -> None:
    """Display found disk images, largest first."""
    if not files:
        out.print("[dim]No disk image or update package files found.[/dim]")
        return

    table = Table(title="Large Image Files (review only)", show_header=True, header_style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Path")
    for item in files:
        table.add_row(format_size(item["size_bytes"]), escape(item["path"]))
    out.print(table)


def show_run_summary(report: RunReport, out: Any = console) -> None:
    """Display the before/after table and elapsed time of a run."""
    out.print()
    show_snapshot_diff(report.deltas, out=out)
    out.print(
        f"[bold green]Total reclaimed: {format_size(report.total_freed_bytes)}[/bold green]"
    )
    out.print(f"Elapsed: {report.elapsed_seconds:.1f} seconds")
    if report.log_path:
        out.print(f"[dim]Log: {escape(report.log_path)}[/dim]")


def show_status(snapshot: DiskUsageSnapshot, out: Any = console) -> None:
    """Display current free space per fixed volume."""
    if not snapshot.volumes:
        out.print("[yellow]No fixed volumes found.[/yellow]")
        return
    show_snapshot(snapshot, out=out)
