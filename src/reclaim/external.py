"""External cleanup tools invoked by reclaim."""

import logging
import shutil
import subprocess
from functools import cached_property
from typing import Sequence

from reclaim.config import Settings
from reclaim.models import TaskOutcome, TaskStatus

logger = logging.getLogger(__name__)

# Exit code used by the client cache script when the management object is missing
EXIT_OBJECT_ABSENT = 3


class ExternalTool:
    """
    An optional external program run with fixed arguments.

    Availability is probed once per instance and cached, so a run asks the
    filesystem at most once whether the program exists.
    """

    def __init__(
        self,
        name: str,
        executable: str,
        args: Sequence[str] = (),
        timeout: int = 1800,
        absent_codes: Sequence[int] = (),
    ):
        self.name = name
        self.executable = executable
        self.args = list(args)
        self.timeout = timeout
        self.absent_codes = set(absent_codes)

    def __repr__(self) -> str:
        return f"ExternalTool({self.name!r}, {self.executable!r})"

    @cached_property
    def resolved(self) -> str | None:
        """Full path of the executable, or None when it is not installed."""
        return shutil.which(self.executable)

    @property
    def available(self) -> bool:
        return self.resolved is not None

    @property
    def command(self) -> list[str]:
        return [self.resolved or self.executable, *self.args]

    def run(self, task_id: str, task_name: str) -> TaskOutcome:
        """
        Run the tool and wait for it to finish.

        Args:
            task_id: Task the run belongs to
            task_name: Human-readable task name

        Returns:
            TaskOutcome (skipped when the tool or its target is absent)
        """
        outcome = TaskOutcome(task_id=task_id, task_name=task_name)

        if not self.available:
            logger.warning("%s not found; skipping %s", self.executable, task_name)
            outcome.status = TaskStatus.SKIPPED
            outcome.message = f"{self.executable} not available"
            return outcome

        try:
            result = subprocess.run(
                self.command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("%s timed out after %ss", self.name, self.timeout)
            outcome.status = TaskStatus.FAILED
            outcome.message = "Command timed out"
            return outcome
        except OSError as e:
            logger.warning("Could not run %s: %s", self.name, e)
            outcome.status = TaskStatus.FAILED
            outcome.message = str(e)
            return outcome

        if result.returncode == 0:
            logger.info("Ran %s", " ".join(self.command))
            outcome.message = (result.stdout or "").strip() or None
        elif result.returncode in self.absent_codes:
            logger.info("%s: target not present", self.name)
            outcome.status = TaskStatus.SKIPPED
            outcome.message = "Not present on this machine"
        else:
            detail = (result.stderr or result.stdout or "Command failed").strip()
            logger.warning("%s exited with %s: %s", self.name, result.returncode, detail)
            outcome.status = TaskStatus.FAILED
            outcome.message = detail
        return outcome


def client_cache_script(size_mb: int) -> str:
    """PowerShell that caps the Configuration Manager client cache, exiting 3 when absent."""
    return (
        "$cache = Get-CimInstance -Namespace 'root\\ccm\\SoftMgmtAgent' "
        "-ClassName CacheConfig -ErrorAction SilentlyContinue; "
        f"if (-not $cache) {{ exit {EXIT_OBJECT_ABSENT} }}; "
        f"$cache.Size = {size_mb}; "
        "Set-CimInstance -InputObject $cache; "
        "exit 0"
    )


def build_tools(settings: Settings) -> dict[str, ExternalTool]:
    """External tools referenced by the default task matrix."""
    return {
        "cleanmgr": ExternalTool(
            "cleanmgr",
            "cleanmgr.exe",
            [f"/sagerun:{settings.cleanup_profile}"],
        ),
        "client-cache": ExternalTool(
            "client-cache",
            "powershell.exe",
            [
                "-NoProfile",
                "-NonInteractive",
                "-Command",
                client_cache_script(settings.cache_size_mb),
            ],
            timeout=120,
            absent_codes=[EXIT_OBJECT_ABSENT],
        ),
    }
