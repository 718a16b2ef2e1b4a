"""Cleanup task matrix for reclaim."""

from typing import Iterable, Iterator

from reclaim.models import ActionKind, CleanupTask, CleanupTier, PrivilegeLevel


class TaskMatrix:
    """
    Ordered, read-only table of cleanup tasks.

    Declaration order is execution order: the service toggle is declared
    before the tasks that depend on the service being stopped.
    """

    def __init__(self, tasks: Iterable[CleanupTask]):
        self._tasks = tuple(tasks)
        ids = [t.id for t in self._tasks]
        duplicates = {i for i in ids if ids.count(i) > 1}
        if duplicates:
            raise ValueError(f"Duplicate task ids: {', '.join(sorted(duplicates))}")

    def __iter__(self) -> Iterator[CleanupTask]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def tasks(self) -> tuple[CleanupTask, ...]:
        return self._tasks

    def get(self, task_id: str) -> CleanupTask | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def at_tier(self, tier: CleanupTier) -> list[CleanupTask]:
        """Tasks gated to exactly this tier, excluding service toggles."""
        return [
            t for t in self._tasks if t.tier == tier and t.kind != ActionKind.SERVICE_TOGGLE
        ]

    def for_tier(self, tier: CleanupTier) -> list[CleanupTask]:
        """Every task the tier runs, ignoring privilege."""
        return [
            t for t in self._tasks if tier.includes(t.tier) and t.kind != ActionKind.SERVICE_TOGGLE
        ]

    def eligible(self, tier: CleanupTier, privilege: PrivilegeLevel) -> list[CleanupTask]:
        """Tasks allowed to run for this tier and privilege level."""
        return [
            t
            for t in self.for_tier(tier)
            if privilege.is_elevated or not t.requires_elevation
        ]

    def service_task(self) -> CleanupTask | None:
        """The service toggle declared by the matrix, if any."""
        for task in self._tasks:
            if task.kind == ActionKind.SERVICE_TOGGLE:
                return task
        return None

    def requires_service(self, tier: CleanupTier, privilege: PrivilegeLevel) -> bool:
        """True if any eligible task touches the toggled service's working directory."""
        return any(t.service_sensitive for t in self.eligible(tier, privilege))


# Per-user segments iterate every profile under the users root.
USERS_ROOT = "C:/Users/*"

DEFAULT_TASKS: tuple[CleanupTask, ...] = (
    # =============================================================================
    # LIGHT - temp files past the age threshold, update download cache
    # =============================================================================
    CleanupTask(
        id="update_service",
        name="Windows Update service",
        kind=ActionKind.SERVICE_TOGGLE,
        targets=("wuauserv",),
        tier=CleanupTier.LIGHT,
        requires_elevation=True,
        description="Stopped while its download cache is cleared, restarted afterwards",
    ),
    CleanupTask(
        id="user_temp",
        name="Current user temp files",
        kind=ActionKind.AGE_FILTERED_DELETE,
        targets=("~/AppData/Local/Temp",),
        tier=CleanupTier.LIGHT,
        description="Temporary files of the current user older than the age threshold",
    ),
    CleanupTask(
        id="user_crash_dumps",
        name="Current user crash dumps",
        kind=ActionKind.AGE_FILTERED_DELETE,
        targets=("~/AppData/Local/CrashDumps",),
        tier=CleanupTier.LIGHT,
        description="Application crash dumps of the current user older than the age threshold",
    ),
    CleanupTask(
        id="windows_temp",
        name="Windows temp files",
        kind=ActionKind.AGE_FILTERED_DELETE,
        targets=("C:/Windows/Temp",),
        tier=CleanupTier.LIGHT,
        requires_elevation=True,
        description="System temporary files older than the age threshold",
    ),
    CleanupTask(
        id="all_users_temp",
        name="All users temp files",
        kind=ActionKind.AGE_FILTERED_DELETE,
        targets=(f"{USERS_ROOT}/AppData/Local/Temp",),
        tier=CleanupTier.LIGHT,
        requires_elevation=True,
        description="Temporary files of every profile older than the age threshold",
    ),
    CleanupTask(
        id="update_downloads",
        name="Windows Update download cache",
        kind=ActionKind.UNCONDITIONAL_DELETE,
        targets=("C:/Windows/SoftwareDistribution/Download/*",),
        tier=CleanupTier.LIGHT,
        requires_elevation=True,
        service_sensitive=True,
        description="Downloaded update packages; re-downloaded by the update agent on demand",
    ),
    # =============================================================================
    # STANDARD - system artifacts, per-user caches, built-in disk cleanup
    # =============================================================================
    CleanupTask(
        id="client_cache_size",
        name="Configuration Manager client cache size",
        kind=ActionKind.EXTERNAL_PROCESS,
        tool="client-cache",
        tier=CleanupTier.STANDARD,
        requires_elevation=True,
        description="Caps the client cache size when the management client is installed",
    ),
    CleanupTask(
        id="system_artifacts",
        name="System artifacts",
        kind=ActionKind.UNCONDITIONAL_DELETE,
        targets=(
            "C:/Windows/Minidump/*",
            "C:/Windows/MEMORY.DMP",
            "C:/Windows/Logs/DISM/*",
            "C:/Windows/Downloaded Program Files/*",
            "C:/ProgramData/Microsoft/Windows/WER/ReportArchive/*",
            "C:/ProgramData/Microsoft/Windows/WER/ReportQueue/*",
            "C:/ProgramData/Microsoft/Windows/WER/Temp/*",
            "C:/$Recycle.Bin/*",
        ),
        tier=CleanupTier.STANDARD,
        requires_elevation=True,
        description="Crash dumps, error reports, servicing logs and the recycle bin",
    ),
    CleanupTask(
        id="user_caches",
        name="Per-user caches",
        kind=ActionKind.UNCONDITIONAL_DELETE,
        targets=(
            f"{USERS_ROOT}/AppData/Local/Microsoft/Windows/INetCache/*",
            f"{USERS_ROOT}/AppData/Local/Microsoft/Windows/WER/*",
            f"{USERS_ROOT}/AppData/Local/Microsoft/Terminal Server Client/Cache/*",
            f"{USERS_ROOT}/AppData/Local/CrashDumps/*",
            f"{USERS_ROOT}/AppData/Local/Google/Chrome/User Data/Default/Cache/*",
            f"{USERS_ROOT}/AppData/Local/Microsoft/Edge/User Data/Default/Cache/*",
            f"{USERS_ROOT}/AppData/Local/Mozilla/Firefox/Profiles/*/cache2/*",
        ),
        tier=CleanupTier.STANDARD,
        requires_elevation=True,
        description="Browser, error reporting and remote desktop caches of every profile",
    ),
    CleanupTask(
        id="disk_cleanup",
        name="Built-in Disk Cleanup",
        kind=ActionKind.EXTERNAL_PROCESS,
        tool="cleanmgr",
        tier=CleanupTier.STANDARD,
        requires_elevation=True,
        description="Runs cleanmgr with the preconfigured /sagerun profile",
    ),
    # =============================================================================
    # DEEP - servicing and web server logs
    # =============================================================================
    CleanupTask(
        id="cbs_logs",
        name="Component servicing logs",
        kind=ActionKind.UNCONDITIONAL_DELETE,
        targets=("C:/Windows/Logs/CBS/*.log",),
        tier=CleanupTier.DEEP,
        requires_elevation=True,
        description="CBS logs written by Windows component servicing",
    ),
    CleanupTask(
        id="iis_logs",
        name="IIS logs",
        kind=ActionKind.AGE_FILTERED_DELETE,
        targets=("C:/inetpub/logs/LogFiles",),
        tier=CleanupTier.DEEP,
        requires_elevation=True,
        age_days=60,
        description="Web server logs older than 60 days",
    ),
)

DEFAULT_MATRIX = TaskMatrix(DEFAULT_TASKS)


def get_task(task_id: str) -> CleanupTask | None:
    """Get a default task by ID."""
    return DEFAULT_MATRIX.get(task_id)
