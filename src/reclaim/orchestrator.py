"""Cleanup orchestration for reclaim.

A run walks the task matrix once, in a fixed order:

1. resolve the tier (argument, else prompt)
2. probe privilege; a standard user must opt in to a reduced run
3. open the session log
4. capture the "before" snapshot
5. stop the update service if its cache cleanup will run
6-8. run Light, Standard and Deep tasks allowed by tier and privilege
9. restart the service if (and only if) step 5 stopped it
10. optionally list large disk images for review
11. capture the "after" snapshot and print the difference
12. close the session log
"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from rich.console import Console

from reclaim import prompts
from reclaim.config import Settings
from reclaim.display import (
    format_size,
    show_large_files,
    show_run_summary,
    show_task_outcome,
    tier_label,
)
from reclaim.external import ExternalTool, build_tools
from reclaim.models import (
    ActionKind,
    CleanupTask,
    CleanupTier,
    DiskUsageSnapshot,
    PrivilegeLevel,
    RunContext,
    RunReport,
    TaskOutcome,
    TaskStatus,
)
from reclaim.privilege import probe_privilege
from reclaim.remover import remove_all, remove_older_than
from reclaim.services import ServiceCoordinator
from reclaim.session import SessionRecorder
from reclaim.snapshot import capture_snapshot, diff_snapshots, find_disk_images
from reclaim.tasks import DEFAULT_MATRIX, TaskMatrix

logger = logging.getLogger(__name__)


class RunDeclined(Exception):
    """The operator declined to continue without administrator rights."""


class TaskExecutor:
    """Performs a single task. Replaceable so runs can be observed in tests."""

    def __init__(self, tools: Optional[dict[str, ExternalTool]] = None):
        self.tools = tools or {}

    def execute(self, task: CleanupTask, context: RunContext) -> TaskOutcome:
        """
        Run one task against the filesystem or an external tool.

        Args:
            task: Task to run
            context: Current run state (age threshold)

        Returns:
            TaskOutcome
        """
        if task.kind == ActionKind.EXTERNAL_PROCESS:
            tool = self.tools.get(task.tool or "")
            if tool is None:
                return TaskOutcome(
                    task_id=task.id,
                    task_name=task.name,
                    status=TaskStatus.SKIPPED,
                    message=f"No tool configured: {task.tool}",
                )
            return tool.run(task.id, task.name)

        if task.kind == ActionKind.SERVICE_TOGGLE:
            raise ValueError(f"Service toggles are coordinated by the orchestrator: {task.id}")

        outcome = TaskOutcome(task_id=task.id, task_name=task.name)
        for target in task.targets:
            if task.kind == ActionKind.AGE_FILTERED_DELETE:
                age_days = task.age_days if task.age_days is not None else context.age_days
                outcome.removals.extend(remove_older_than(target, age_days))
            else:
                outcome.removals.extend(remove_all(target))
        return outcome


class Orchestrator:
    """Runs the task matrix for one tier and privilege level."""

    def __init__(
        self,
        matrix: TaskMatrix = DEFAULT_MATRIX,
        prompter: Optional[prompts.Prompter] = None,
        settings: Optional[Settings] = None,
        executor: Optional[TaskExecutor] = None,
        services: Optional[ServiceCoordinator] = None,
        privilege_probe: Callable[[], PrivilegeLevel] = probe_privilege,
        snapshot: Callable[[], DiskUsageSnapshot] = capture_snapshot,
        console: Optional[Console] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.matrix = matrix
        self.console = console or Console()
        self.prompter = prompter or prompts.ConsolePrompter(self.console)
        self.settings = settings or Settings()
        self.executor = executor or TaskExecutor(build_tools(self.settings))
        self.services = services or ServiceCoordinator()
        self.privilege_probe = privilege_probe
        self.snapshot = snapshot
        self.clock = clock

    # -------------------------------------------------------------------------
    # Steps 1-2: tier and privilege
    # -------------------------------------------------------------------------

    def resolve_tier(self, tier: CleanupTier | str | None) -> CleanupTier:
        if isinstance(tier, CleanupTier):
            return tier
        if tier:
            return CleanupTier.parse(tier)

        choice = self.prompter.choose(
            prompts.TIER,
            "Cleanup tier",
            [t.value for t in CleanupTier],
            CleanupTier.LIGHT.value,
        )
        return CleanupTier.parse(choice)

    def resolve_privilege(self) -> PrivilegeLevel:
        privilege = self.privilege_probe()
        if privilege.is_elevated:
            return privilege

        self.console.print(
            "[yellow]Not running as administrator: only current-user cleanup is available.[/yellow]"
        )
        if not self.prompter.confirm(
            prompts.CONTINUE_UNELEVATED,
            "Continue with a reduced cleanup?",
            False,
        ):
            raise RunDeclined()
        return privilege

    # -------------------------------------------------------------------------
    # Steps 5 and 9: update service
    # -------------------------------------------------------------------------

    def _service_name(self) -> Optional[str]:
        service_task = self.matrix.service_task()
        if self.settings.service_name:
            return self.settings.service_name
        if service_task and service_task.targets:
            return service_task.targets[0]
        return None

    def _confirm(self, key: str, message: str, default: bool, recorder: SessionRecorder) -> bool:
        try:
            return self.prompter.confirm(key, message, default)
        except ValueError as e:
            recorder.warn(f"{e}; using the default answer ({'yes' if default else 'no'})")
            return default

    def _prepare_service(self, context: RunContext, recorder: SessionRecorder) -> None:
        if not self.matrix.requires_service(context.tier, context.privilege):
            return

        if context.tier == CleanupTier.LIGHT:
            context.update_cleanup = self._confirm(
                prompts.UPDATE_CLEANUP,
                "Also clear the Windows Update download cache?",
                False,
                recorder,
            )
        else:
            context.update_cleanup = True

        service_task = self.matrix.service_task()
        if not context.update_cleanup or service_task is None:
            return
        if not context.tier.includes(service_task.tier):
            return
        if service_task.requires_elevation and not context.privilege.is_elevated:
            return

        name = self._service_name()
        if not name:
            return

        context.service_name = name
        recorder.print(f"Stopping service [bold]{name}[/bold]...")
        try:
            context.service_stopped = self.services.stop(name)
        except Exception as e:
            logger.exception("Stopping %s failed", name)
            recorder.warn(f"Could not stop service {name}: {e}")
            return

        if not context.service_stopped:
            recorder.warn(f"Service {name} was not stopped by this run; it will not be restarted")

    def _restore_service(self, context: RunContext, recorder: SessionRecorder) -> None:
        if not context.service_stopped or not context.service_name:
            return

        recorder.print(f"Starting service [bold]{context.service_name}[/bold]...")
        try:
            started = self.services.start(context.service_name)
        except Exception as e:
            logger.exception("Starting %s failed", context.service_name)
            recorder.warn(f"Could not restart service {context.service_name}: {e}")
            return

        if not started:
            recorder.warn(f"Could not restart service {context.service_name}")

    # -------------------------------------------------------------------------
    # Steps 6-8: task matrix
    # -------------------------------------------------------------------------

    def _skip(self, task: CleanupTask, reason: str) -> TaskOutcome:
        return TaskOutcome(
            task_id=task.id,
            task_name=task.name,
            status=TaskStatus.SKIPPED,
            message=reason,
        )

    def _execute(self, task: CleanupTask, context: RunContext, recorder: SessionRecorder) -> TaskOutcome:
        try:
            outcome = self.executor.execute(task, context)
        except Exception as e:
            logger.exception("Task %s failed", task.id)
            outcome = TaskOutcome(
                task_id=task.id,
                task_name=task.name,
                status=TaskStatus.FAILED,
                message=str(e),
            )

        if outcome.status == TaskStatus.FAILED:
            recorder.warn(f"{task.name}: {outcome.message}")
        elif outcome.failed_count:
            recorder.warn(f"{task.name}: {outcome.failed_count} entries could not be removed (see log)")
        return outcome

    def run_tier(self, level: CleanupTier, context: RunContext, recorder: SessionRecorder) -> list[TaskOutcome]:
        """Run the tasks gated to exactly `level`, if the selected tier includes it."""
        if not context.tier.includes(level):
            return []

        tasks = self.matrix.at_tier(level)
        if not tasks:
            return []

        recorder.print(f"\n[bold]{tier_label(level)} tasks[/bold]")
        outcomes = []
        for task in tasks:
            if task.requires_elevation and not context.privilege.is_elevated:
                outcome = self._skip(task, "requires administrator rights")
            elif task.service_sensitive and not context.update_cleanup:
                outcome = self._skip(task, "update cache cleanup not selected")
            else:
                recorder.verbose(f"Running task {task.id}")
                outcome = self._execute(task, context, recorder)
            show_task_outcome(outcome, out=recorder)
            outcomes.append(outcome)
        return outcomes

    # -------------------------------------------------------------------------
    # Step 10: large image scan
    # -------------------------------------------------------------------------

    def _offer_scan(self, recorder: SessionRecorder) -> list[dict]:
        root = self.settings.scan_root
        if not self._confirm(
            prompts.LARGE_FILE_SCAN,
            f"Scan {root} for large disk images and update packages?",
            False,
            recorder,
        ):
            return []

        recorder.print(f"\nScanning [bold]{root}[/bold] for disk images...")
        try:
            files = find_disk_images(root, self.settings.image_extensions)
        except Exception as e:
            logger.exception("Large file scan failed")
            recorder.warn(f"Large file scan failed: {e}")
            return []

        show_large_files(files, out=recorder)
        return files

    # -------------------------------------------------------------------------
    # Full run
    # -------------------------------------------------------------------------

    def run(self, tier: CleanupTier | str | None = None, age_days: Optional[int] = None) -> RunReport:
        """
        Execute one cleanup run.

        Args:
            tier: Cleanup tier; prompted for when None
            age_days: Age threshold for age-filtered tasks (default: settings)

        Returns:
            RunReport

        Raises:
            RunDeclined: A standard user declined the reduced cleanup
        """
        started = self.clock()
        age_days = self.settings.age_days if age_days is None else age_days
        if age_days < 0:
            raise ValueError("age_days must be >= 0")

        selected = self.resolve_tier(tier)
        privilege = self.resolve_privilege()

        context = RunContext(
            tier=selected,
            privilege=privilege,
            age_days=age_days,
            host=self.settings.host,
            started_at=datetime.now(),
            started_monotonic=started,
        )

        with SessionRecorder(
            self.settings.log_dir,
            self.settings.host,
            console=self.console,
            started=context.started_at,
        ) as recorder:
            context.recorder = recorder
            recorder.print(
                f"[bold blue]reclaim[/bold blue] {tier_label(selected)} cleanup on "
                f"[bold]{context.host}[/bold] ({privilege.value}, files older than {age_days} days)"
            )

            before = self.snapshot()
            outcomes: list[TaskOutcome] = []
            try:
                self._prepare_service(context, recorder)
                for level in CleanupTier:
                    outcomes.extend(self.run_tier(level, context, recorder))
            finally:
                self._restore_service(context, recorder)

            large_files = self._offer_scan(recorder)

            after = self.snapshot()
            report = RunReport(
                tier=selected,
                privilege=privilege,
                age_days=age_days,
                host=context.host,
                outcomes=outcomes,
                before=before,
                after=after,
                deltas=diff_snapshots(before, after),
                service_stopped=context.service_stopped,
                elapsed_seconds=self.clock() - started,
                log_path=str(recorder.path),
                large_files=large_files,
            )
            freed = sum(o.bytes_freed for o in outcomes)
            recorder.verbose(f"Tasks removed {format_size(freed)} in total")
            show_run_summary(report, out=recorder)
            context.recorder = None

        return report
