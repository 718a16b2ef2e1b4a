"""Configuration loading for reclaim."""

import json
import logging
import os
import socket
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(os.path.expanduser("~/.reclaim"))
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_IMAGE_EXTENSIONS = [".iso", ".vhd", ".vhdx", ".msu", ".cab"]


def default_host() -> str:
    """Identifier of the current host for reports and log names."""
    return os.environ.get("COMPUTERNAME") or socket.gethostname() or "localhost"


def default_scan_root() -> str:
    return os.environ.get("SystemDrive", "") + os.sep if os.name == "nt" else os.sep


class Settings(BaseModel):
    """Run settings; CLI flags override values loaded from disk."""

    age_days: int = Field(30, ge=0, description="Age threshold for age-filtered deletes")
    log_dir: str = Field(default_factory=tempfile.gettempdir, description="Session log directory")
    host: str = Field(default_factory=default_host)
    service_name: Optional[str] = Field(None, description="Overrides the service toggled by the task matrix")
    cleanup_profile: int = Field(1, ge=0, description="Disk cleanup utility /sagerun profile number")
    cache_size_mb: int = Field(5120, gt=0, description="Client cache size applied in the standard tier")
    scan_root: str = Field(default_factory=default_scan_root)
    image_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS))
    answers: dict[str, str] = Field(
        default_factory=dict,
        description="Preset prompt answers keyed by prompt id",
    )


def config_path() -> Path:
    override = os.environ.get("RECLAIM_CONFIG")
    return Path(override) if override else CONFIG_FILE


def load_settings(path: Optional[Path] = None, **overrides) -> Settings:
    """
    Load settings from a JSON file and apply overrides.

    Overrides whose value is None are ignored so unset CLI flags keep the
    file (or default) value.

    Args:
        path: Config file to read (default: RECLAIM_CONFIG or ~/.reclaim/config.json)
        **overrides: Field values taking precedence over the file

    Returns:
        Settings
    """
    path = path or config_path()
    data: dict = {}

    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable config %s: %s", path, e)
            data = {}

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        data = {}

    try:
        Settings(**data)
    except ValidationError as e:
        logger.warning("Ignoring invalid config %s: %s", path, e)
        data = {}

    data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
