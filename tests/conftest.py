"""Shared fixtures for reclaim tests."""

import io
import os
import time
from pathlib import Path

import pytest
from rich.console import Console

from reclaim.models import DiskUsageSnapshot, VolumeUsage

DAY = 24 * 60 * 60


def age_file(path: Path, days: float) -> Path:
    """Backdate a file's timestamps by the given number of days."""
    stamp = time.time() - days * DAY
    os.utime(path, (stamp, stamp))
    return path


def make_file(path: Path, days: float = 0, content: str = "data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    if days:
        age_file(path, days)
    return path


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200, force_terminal=False)


@pytest.fixture
def fixed_snapshot():
    def _snapshot():
        return DiskUsageSnapshot(
            volumes=(
                VolumeUsage(id="C:", mount_point="C:\\", total_bytes=100 * 1000**3, free_bytes=20 * 1000**3),
            )
        )

    return _snapshot
