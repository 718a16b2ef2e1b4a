"""CLI interface for reclaim."""

from typing import Optional

import typer

from reclaim import __version__, prompts
from reclaim.config import config_path, load_settings
from reclaim.display import console, format_size, show_large_files, show_status, show_task_matrix
from reclaim.models import CleanupTier
from reclaim.orchestrator import Orchestrator, RunDeclined
from reclaim.snapshot import capture_snapshot, find_disk_images
from reclaim.tasks import DEFAULT_MATRIX

# Create Typer app
app = typer.Typer(
    name="reclaim",
    help="Tiered, privilege-aware disk space reclamation",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"reclaim version {__version__}")
        raise typer.Exit()


def parse_tier(value: Optional[str]) -> Optional[CleanupTier]:
    if value is None:
        return None
    try:
        return CleanupTier.parse(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """reclaim - tiered disk cleanup."""
    # If no command specified, run an interactive cleanup
    if ctx.invoked_subcommand is None:
        ctx.invoke(run, tier=None, age_days=None, yes=False, scan=None, scan_root=None, log_dir=None)


@app.command()
def run(
    tier: Optional[str] = typer.Option(
        None, "--tier", "-t", help="Cleanup tier: light, standard or deep (prompted if omitted)"
    ),
    age_days: Optional[int] = typer.Option(
        None, "--age-days", "-a", min=0, help="Delete temp files older than this many days [default: 30]"
    ),
    yes: bool = typer.Option(False, "-y", "--yes", help="Answer yes to confirmation prompts"),
    scan: Optional[bool] = typer.Option(
        None, "--scan/--no-scan", help="Scan for large disk images afterwards (prompted if omitted)"
    ),
    scan_root: Optional[str] = typer.Option(None, "--scan-root", help="Root of the large file scan"),
    log_dir: Optional[str] = typer.Option(None, "--log-dir", help="Directory for the session log"),
) -> None:
    """Run a cleanup for the selected tier."""
    selected = parse_tier(tier)
    settings = load_settings(age_days=age_days, scan_root=scan_root, log_dir=log_dir)

    answers = dict(settings.answers)
    if selected is None and prompts.TIER in answers:
        try:
            selected = CleanupTier.parse(str(answers[prompts.TIER]))
        except ValueError as e:
            raise typer.BadParameter(f"{e} (answers.tier in {config_path()})")
    if scan is not None:
        answers[prompts.LARGE_FILE_SCAN] = scan
    elif yes:
        answers.setdefault(prompts.LARGE_FILE_SCAN, False)

    prompter = prompts.PresetPrompter(
        answers,
        fallback=prompts.ConsolePrompter(console),
        assume_yes=yes,
    )
    orchestrator = Orchestrator(prompter=prompter, settings=settings, console=console)

    try:
        orchestrator.run(tier=selected, age_days=settings.age_days)
    except RunDeclined:
        raise typer.Exit(1)


@app.command()
def status() -> None:
    """Show free space on fixed volumes."""
    show_status(capture_snapshot())


@app.command()
def tasks(
    tier: Optional[str] = typer.Option(None, "--tier", "-t", help="Only tasks this tier runs"),
) -> None:
    """List the cleanup tasks."""
    show_task_matrix(DEFAULT_MATRIX, tier=parse_tier(tier))


@app.command()
def scan(
    root: Optional[str] = typer.Argument(None, help="Directory to search [default: system drive]"),
    limit: int = typer.Option(50, "--limit", "-n", min=1, help="Maximum files to list"),
) -> None:
    """List large disk images and update packages (nothing is deleted)."""
    settings = load_settings(scan_root=root)
    console.print(f"[bold blue]Scanning {settings.scan_root}...[/bold blue]\n")
    files = find_disk_images(settings.scan_root, settings.image_extensions, max_results=limit)
    show_large_files(files)
    if files:
        total = sum(f["size_bytes"] for f in files)
        console.print(f"\n[bold]Total: {format_size(total)}[/bold]")


if __name__ == "__main__":
    app()
