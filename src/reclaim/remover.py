"""Best-effort filesystem removal for reclaim.

Two primitives back the task matrix:

- ``remove_older_than`` walks beneath each path matched by a pattern and
  removes entries created before a cutoff.
- ``remove_all`` removes every path matched by a pattern outright.

Neither raises for a single entry. Every attempted removal is reported as a
``RemovalOutcome`` and written to the ``reclaim`` logger, which the session
recorder captures.
"""

import glob
import logging
import os
import shutil
import stat
import sys
import time
from pathlib import Path

from reclaim.models import RemovalOutcome

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def expand_path(path: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expanduser(os.path.expandvars(path)))


def expand_targets(pattern: str) -> list[Path]:
    """
    Resolve a path pattern to the entries that currently exist.

    `*` segments iterate over siblings (e.g. every user profile under
    C:\\Users). A pattern that matches nothing yields an empty list.

    Args:
        pattern: Path or glob pattern

    Returns:
        Sorted list of matching paths
    """
    expanded = str(expand_path(pattern))

    if any(ch in expanded for ch in "*?["):
        return sorted(Path(p) for p in glob.glob(expanded, include_hidden=True))

    path = Path(expanded)
    if path.exists() or path.is_symlink():
        return [path]
    return []


def entry_created_at(st: os.stat_result) -> float:
    """
    Creation time of an entry as a POSIX timestamp.

    Uses st_birthtime where the platform records it and st_ctime on Windows.
    Linux exposes no creation time through stat, so last-write time is used.
    """
    birthtime = getattr(st, "st_birthtime", None)
    if birthtime is not None:
        return birthtime
    if os.name == "nt":
        return st.st_ctime
    return st.st_mtime


def get_directory_size(path: Path) -> int:
    """Total size in bytes of the files beneath path, without following links."""
    total_size = 0

    def _scan(p: Path):
        nonlocal total_size
        try:
            with os.scandir(p) as entries:
                for entry in entries:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            _scan(Path(entry.path))
                        else:
                            total_size += entry.stat(follow_symlinks=False).st_size
                    except OSError:
                        continue
        except OSError:
            pass

    _scan(path)
    return total_size


class _RmtreeErrors:
    """Collects rmtree failures instead of aborting the tree removal."""

    def __init__(self):
        self.errors: list[str] = []

    def _retry(self, func, path, exc: BaseException):
        # Read-only entries (common on Windows) get one retry after chmod.
        if isinstance(exc, PermissionError):
            try:
                os.chmod(path, stat.S_IWRITE | stat.S_IREAD | stat.S_IEXEC)
                func(path)
                return
            except OSError as e:
                exc = e
        self.errors.append(f"{path}: {exc}")

    def onexc(self, func, path, exc):
        self._retry(func, path, exc)

    def onerror(self, func, path, exc_info):
        self._retry(func, path, exc_info[1])


def _rmtree(path: Path) -> list[str]:
    handler = _RmtreeErrors()
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=handler.onexc)
    else:
        shutil.rmtree(path, onerror=handler.onerror)
    return handler.errors


def delete_path(path: Path) -> tuple[int, str | None]:
    """
    Delete a path (file, link or directory tree).

    Args:
        path: Path to delete

    Returns:
        Tuple of (bytes_freed, error_message)
    """
    if not path.exists() and not path.is_symlink():
        return 0, None

    try:
        if path.is_symlink() or not path.is_dir():
            size = path.lstat().st_size
            path.unlink()
            return size, None

        size = get_directory_size(path)
        errors = _rmtree(path)
        if not errors:
            return size, None

        remaining = get_directory_size(path) if path.exists() else 0
        return max(size - remaining, 0), errors[0]

    except FileNotFoundError:
        # Vanished between listing and removal
        return 0, None
    except PermissionError as e:
        return 0, f"Permission denied: {e}"
    except OSError as e:
        return 0, f"OS error: {e}"


def _remove(path: Path) -> RemovalOutcome:
    bytes_freed, error = delete_path(path)

    if error:
        logger.warning("Could not remove %s: %s", path, error)
        return RemovalOutcome(path=str(path), removed=False, bytes_freed=bytes_freed, reason=error)

    logger.info("Removed %s", path)
    return RemovalOutcome(path=str(path), removed=True, bytes_freed=bytes_freed)


def _is_empty(path: Path) -> bool:
    with os.scandir(path) as it:
        return next(it, None) is None


def _sweep(root: Path, cutoff: float) -> list[RemovalOutcome]:
    """Remove entries beneath root created before cutoff, keeping anything younger."""
    outcomes: list[RemovalOutcome] = []

    try:
        with os.scandir(root) as it:
            entries = list(it)
    except FileNotFoundError:
        return outcomes
    except OSError as e:
        logger.warning("Could not list %s: %s", root, e)
        outcomes.append(RemovalOutcome(path=str(root), removed=False, reason=f"Cannot enumerate: {e}"))
        return outcomes

    for entry in entries:
        path = Path(entry.path)
        try:
            # Taken before the sweep; removing children bumps a directory's mtime
            is_old = entry_created_at(entry.stat(follow_symlinks=False)) < cutoff
            if entry.is_dir(follow_symlinks=False):
                outcomes.extend(_sweep(path, cutoff))
                if is_old and _is_empty(path):
                    outcomes.append(_remove(path))
            elif is_old:
                outcomes.append(_remove(path))
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Could not inspect %s: %s", path, e)
            outcomes.append(RemovalOutcome(path=str(path), removed=False, reason=str(e)))

    return outcomes


def remove_older_than(
    pattern: str,
    age_days: int,
    now: float | None = None,
) -> list[RemovalOutcome]:
    """
    Remove entries created more than age_days ago.

    Each path matched by pattern is an enumeration root. A matched directory
    is walked recursively (links are never followed) and every file or link
    created before the cutoff is removed. A directory created before the
    cutoff is removed only once the sweep has left it empty, so younger
    entries inside it survive. A matched file or link is itself tested
    against the cutoff. The matched directories are never removed by this
    call.

    Args:
        pattern: Path or glob pattern; matching nothing is not an error
        age_days: Age threshold in days (>= 0)
        now: Reference time (default: current time)

    Returns:
        One RemovalOutcome per attempted removal
    """
    if age_days < 0:
        raise ValueError("age_days must be >= 0")

    cutoff = (time.time() if now is None else now) - age_days * SECONDS_PER_DAY
    outcomes: list[RemovalOutcome] = []

    for root in expand_targets(pattern):
        try:
            if root.is_dir() and not root.is_symlink():
                outcomes.extend(_sweep(root, cutoff))
            elif entry_created_at(root.lstat()) < cutoff:
                outcomes.append(_remove(root))
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Could not inspect %s: %s", root, e)
            outcomes.append(RemovalOutcome(path=str(root), removed=False, reason=str(e)))

    return outcomes


def remove_all(pattern: str) -> list[RemovalOutcome]:
    """
    Remove every entry matched by pattern, regardless of age.

    Args:
        pattern: Path or glob pattern; matching nothing is not an error

    Returns:
        One RemovalOutcome per matched entry
    """
    return [_remove(path) for path in expand_targets(pattern)]
