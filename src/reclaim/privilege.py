"""Privilege probe for reclaim."""

import ctypes
import logging
import os

from reclaim.models import PrivilegeLevel

logger = logging.getLogger(__name__)


def is_windows() -> bool:
    return os.name == "nt"


def is_admin() -> bool:
    """
    Check whether the current process holds administrator rights.

    Windows asks the shell for the administrator role; POSIX checks for an
    effective uid of 0. A failed query counts as not elevated.
    """
    try:
        if is_windows():
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        return os.geteuid() == 0
    except (AttributeError, OSError) as e:
        logger.debug("Privilege query failed: %s", e)
        return False


def probe_privilege() -> PrivilegeLevel:
    """Return the privilege level of the current process."""
    return PrivilegeLevel.ELEVATED if is_admin() else PrivilegeLevel.STANDARD
