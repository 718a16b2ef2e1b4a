"""Background service coordination for reclaim."""

import logging
import subprocess
import time

from reclaim.privilege import is_windows

logger = logging.getLogger(__name__)

# sc.exe exit codes
SC_SERVICE_DOES_NOT_EXIST = 1060
SC_SERVICE_NOT_ACTIVE = 1062
SC_SERVICE_ALREADY_RUNNING = 1056

SC_STATE_STOPPED = "STOPPED"


class ServiceCoordinator:
    """
    Best-effort stop/start of an OS service.

    Both operations return True only when this call changed the service
    state. The caller remembers whether stop() succeeded and calls start()
    only in that case; the live service status says nothing about who
    stopped it.
    """

    def __init__(self, timeout: int = 120, poll_interval: float = 1.0):
        self.timeout = timeout
        self.poll_interval = poll_interval

    def stop(self, name: str) -> bool:
        """Stop a running service. Returns True if it was stopped by this call."""
        if is_windows():
            return self._sc("stop", name) and self._wait_stopped(name)
        if not self._systemctl_active(name):
            logger.warning("Service %s is not running; nothing to stop", name)
            return False
        return self._systemctl("stop", name)

    def start(self, name: str) -> bool:
        """Start a service. Returns True if it was started by this call."""
        if is_windows():
            return self._sc("start", name)
        return self._systemctl("start", name)

    def _run(self, cmd: list[str]) -> subprocess.CompletedProcess | None:
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            logger.warning("Service control tool not found: %s", cmd[0])
        except subprocess.TimeoutExpired:
            logger.warning("Timed out running: %s", " ".join(cmd))
        except OSError as e:
            logger.warning("Could not run %s: %s", " ".join(cmd), e)
        return None

    def _sc(self, action: str, name: str) -> bool:
        result = self._run(["sc.exe", action, name])
        if result is None:
            return False

        if result.returncode == 0:
            logger.info("Service %s: %s requested", name, action)
            return True

        if result.returncode == SC_SERVICE_DOES_NOT_EXIST:
            logger.warning("Service %s is not installed", name)
        elif result.returncode == SC_SERVICE_NOT_ACTIVE:
            logger.warning("Service %s is not running; nothing to stop", name)
        elif result.returncode == SC_SERVICE_ALREADY_RUNNING:
            logger.warning("Service %s is already running", name)
        else:
            detail = (result.stdout or result.stderr or "").strip()
            logger.warning(
                "Could not %s service %s (exit %s): %s", action, name, result.returncode, detail
            )
        return False

    def _wait_stopped(self, name: str) -> bool:
        """Poll sc.exe query until the service leaves STOP_PENDING, up to the timeout."""
        deadline = time.monotonic() + self.timeout
        while True:
            result = self._run(["sc.exe", "query", name])
            if result is not None and SC_STATE_STOPPED in (result.stdout or ""):
                logger.info("Service %s stopped", name)
                return True
            if time.monotonic() >= deadline:
                # Stop was issued by this run; start() stays paired with it
                logger.warning("Service %s did not report STOPPED within %ss", name, self.timeout)
                return True
            time.sleep(self.poll_interval)

    def _systemctl_active(self, name: str) -> bool:
        result = self._run(["systemctl", "is-active", "--quiet", name])
        return result is not None and result.returncode == 0

    def _systemctl(self, action: str, name: str) -> bool:
        result = self._run(["systemctl", action, name])
        if result is None:
            return False
        if result.returncode == 0:
            logger.info("Service %s: %s requested", name, action)
            return True
        logger.warning(
            "Could not %s service %s: %s", action, name, (result.stderr or "Command failed").strip()
        )
        return False
