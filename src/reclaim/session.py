"""Session log for a reclaim run."""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape

PACKAGE_LOGGER = "reclaim"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
PREVIOUS_MARKER = ".old"

logger = logging.getLogger(__name__)


class SessionRecorder:
    """
    Transcript of one run, written to a per-host, per-day log file.

    Everything printed through the recorder goes to the terminal console and
    to the log file; records from the ``reclaim`` logger (removals, warnings)
    go to the log file while the recorder is open. Use as a context manager
    so the file is closed on every exit path.
    """

    def __init__(
        self,
        log_dir: str | Path,
        host: str,
        console: Optional[Console] = None,
        started: Optional[datetime] = None,
    ):
        self.log_dir = Path(log_dir)
        self.host = host
        self.console = console or Console()
        self.started = started or datetime.now()
        self._file = None
        self._file_console: Optional[Console] = None
        self._handler: Optional[logging.Handler] = None
        self._previous_level = logging.NOTSET

    @property
    def path(self) -> Path:
        return self.log_dir / f"reclaim-{self.host}-{self.started:%Y%m%d-%H%M%S}.log"

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> "SessionRecorder":
        """Open the log file, moving a same-named file from an earlier run aside."""
        if self.is_open:
            return self

        self.log_dir.mkdir(parents=True, exist_ok=True)
        path = self.path
        if path.exists():
            os.replace(path, path.with_name(path.name + PREVIOUS_MARKER))

        self._file = open(path, "w", encoding="utf-8")
        self._file_console = Console(
            file=self._file,
            no_color=True,
            force_terminal=False,
            highlight=False,
            width=120,
        )

        self._handler = logging.StreamHandler(self._file)
        self._handler.setLevel(logging.DEBUG)
        self._handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        self._previous_level = package_logger.level
        package_logger.setLevel(logging.DEBUG)
        package_logger.addHandler(self._handler)

        self._file_console.print(
            f"reclaim session on {self.host} started {self.started:%Y-%m-%d %H:%M:%S}"
        )
        return self

    def close(self) -> None:
        """Detach from logging and close the file. Safe to call twice."""
        if not self.is_open:
            return

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.removeHandler(self._handler)
        package_logger.setLevel(self._previous_level)
        self._handler.close()

        self._file_console.print(f"reclaim session ended {datetime.now():%Y-%m-%d %H:%M:%S}")
        self._file.close()
        self._file = None
        self._file_console = None
        self._handler = None

    def __enter__(self) -> "SessionRecorder":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def print(self, *objects: Any, **kwargs: Any) -> None:
        """Print to the terminal and to the log file."""
        self.console.print(*objects, **kwargs)
        if self._file_console is not None:
            self._file_console.print(*objects, **kwargs)
            self._file.flush()

    def warn(self, message: str) -> None:
        """Show a warning in yellow and record it in the log."""
        self.console.print(f"[yellow]WARNING: {escape(message)}[/yellow]")
        logger.warning(message)

    def verbose(self, message: str) -> None:
        """Record a detail line in the log only."""
        logger.info(message)
