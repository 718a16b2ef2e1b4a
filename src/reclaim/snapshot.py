"""Disk usage snapshots and large image discovery for reclaim."""

import logging
import os
from datetime import datetime
from pathlib import Path

import psutil

from reclaim.models import DiskUsageSnapshot, VolumeDelta, VolumeUsage
from reclaim.remover import expand_path

logger = logging.getLogger(__name__)

NETWORK_FSTYPES = frozenset(
    {"nfs", "nfs4", "cifs", "smbfs", "smb3", "afpfs", "sshfs", "fuse.sshfs", "9p", "davfs"}
)
OPTICAL_FSTYPES = frozenset({"iso9660", "udf", "cdfs"})


def is_fixed_volume(partition) -> bool:
    """True for local, non-removable, non-optical, non-network partitions."""
    opts = set((partition.opts or "").split(","))
    fstype = (partition.fstype or "").lower()

    if {"cdrom", "removable", "remote"} & opts:
        return False
    if os.name == "nt":
        return "fixed" in opts
    if fstype in NETWORK_FSTYPES or fstype in OPTICAL_FSTYPES:
        return False
    return bool(fstype)


def capture_snapshot() -> DiskUsageSnapshot:
    """
    Record capacity and free space of every fixed local volume.

    Volumes that cannot be queried (e.g. a locked drive) are left out.

    Returns:
        DiskUsageSnapshot
    """
    volumes: list[VolumeUsage] = []
    seen: set[str] = set()

    for partition in psutil.disk_partitions(all=False):
        if not is_fixed_volume(partition) or partition.device in seen:
            continue
        try:
            usage = psutil.disk_usage(partition.mountpoint)
        except OSError as e:
            logger.debug("Skipping volume %s: %s", partition.mountpoint, e)
            continue

        seen.add(partition.device)
        volumes.append(
            VolumeUsage(
                id=partition.device,
                mount_point=partition.mountpoint,
                total_bytes=usage.total,
                free_bytes=usage.free,
            )
        )

    return DiskUsageSnapshot(captured_at=datetime.now(), volumes=tuple(volumes))


def diff_snapshots(before: DiskUsageSnapshot, after: DiskUsageSnapshot) -> list[VolumeDelta]:
    """
    Pair volumes of two snapshots.

    A volume missing from the after snapshot is reported with unchanged free
    space; volumes that only appear afterwards are ignored.
    """
    deltas = []
    for volume in before.volumes:
        later = after.get(volume.id)
        deltas.append(
            VolumeDelta(
                id=volume.id,
                mount_point=volume.mount_point,
                total_bytes=volume.total_bytes,
                free_before=volume.free_bytes,
                free_after=later.free_bytes if later else volume.free_bytes,
            )
        )
    return deltas


def find_disk_images(
    path: str,
    extensions: list[str],
    max_results: int = 50,
) -> list[dict]:
    """
    Find disk image and update package files under path.

    Read-only: nothing is deleted.

    Args:
        path: Root to search
        extensions: File extensions to match, case-insensitively (e.g. ".iso")
        max_results: Maximum number of results to return

    Returns:
        List of dicts with path and size_bytes, largest first
    """
    root = expand_path(path)
    wanted = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions}
    found = []

    if not root.exists():
        return []

    for dirpath, _dirnames, filenames in os.walk(root, onerror=None, followlinks=False):
        for name in filenames:
            if Path(name).suffix.lower() not in wanted:
                continue
            file_path = Path(dirpath) / name
            try:
                if file_path.is_symlink():
                    continue
                found.append({"path": str(file_path), "size_bytes": file_path.stat().st_size})
            except OSError:
                continue

    found.sort(key=lambda x: x["size_bytes"], reverse=True)
    return found[:max_results]
