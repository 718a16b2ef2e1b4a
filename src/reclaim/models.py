"""Data models for reclaim."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CleanupTier(str, Enum):
    """Aggressiveness tier. Each tier includes every lower tier."""

    LIGHT = "light"
    STANDARD = "standard"
    DEEP = "deep"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    def includes(self, other: "CleanupTier") -> bool:
        """True if tasks gated to `other` run at this tier."""
        return self.rank >= other.rank

    @classmethod
    def parse(cls, text: str) -> "CleanupTier":
        """Parse a tier name, case-insensitively."""
        try:
            return cls(text.strip().lower())
        except ValueError:
            names = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown tier: {text!r} (expected one of {names})") from None


_TIER_RANK = {
    CleanupTier.LIGHT: 0,
    CleanupTier.STANDARD: 1,
    CleanupTier.DEEP: 2,
}


class PrivilegeLevel(str, Enum):
    """Privilege held by the running process."""

    ELEVATED = "elevated"
    STANDARD = "standard"

    @property
    def is_elevated(self) -> bool:
        return self is PrivilegeLevel.ELEVATED


class ActionKind(str, Enum):
    """What a task does when it runs."""

    AGE_FILTERED_DELETE = "age_filtered_delete"
    UNCONDITIONAL_DELETE = "unconditional_delete"
    EXTERNAL_PROCESS = "external_process"
    SERVICE_TOGGLE = "service_toggle"


class TaskStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class CleanupTask(BaseModel):
    """One row of the task matrix."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique identifier for the task")
    name: str = Field(..., description="Human-readable name")
    kind: ActionKind = Field(..., description="Action performed by the task")
    targets: tuple[str, ...] = Field(
        default=(),
        description="Path patterns (supports ~, env vars and * segments) or a service name",
    )
    tier: CleanupTier = Field(CleanupTier.LIGHT, description="Minimum tier that runs the task")
    requires_elevation: bool = Field(False, description="Whether administrator rights are needed")
    age_days: Optional[int] = Field(
        None,
        ge=0,
        description="Fixed age threshold; None on an age-filtered task uses the run's threshold",
    )
    service_sensitive: bool = Field(
        False,
        description="Touches the update service's working directory (service stopped first)",
    )
    tool: Optional[str] = Field(None, description="External tool name for external_process tasks")
    description: str = Field("", description="What the task removes")


class RemovalOutcome(BaseModel):
    """Result of attempting to remove a single filesystem entry."""

    path: str
    removed: bool
    bytes_freed: int = 0
    reason: Optional[str] = Field(None, description="Why the entry was skipped or failed")


class TaskOutcome(BaseModel):
    """Aggregated result of running one task."""

    task_id: str
    task_name: str
    status: TaskStatus = TaskStatus.COMPLETED
    message: Optional[str] = None
    removals: list[RemovalOutcome] = Field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return sum(1 for r in self.removals if r.removed)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.removals if not r.removed)

    @property
    def bytes_freed(self) -> int:
        return sum(r.bytes_freed for r in self.removals if r.removed)


class VolumeUsage(BaseModel):
    """Capacity and free space of one fixed volume."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Volume identifier (device or drive letter)")
    mount_point: str
    total_bytes: int
    free_bytes: int

    @property
    def percent_free(self) -> float:
        return (self.free_bytes / self.total_bytes) * 100 if self.total_bytes > 0 else 0.0

    @property
    def free_gb(self) -> float:
        return self.free_bytes / (1000**3)

    @property
    def total_gb(self) -> float:
        return self.total_bytes / (1000**3)


class DiskUsageSnapshot(BaseModel):
    """Point-in-time record of every fixed volume."""

    model_config = ConfigDict(frozen=True)

    captured_at: datetime = Field(default_factory=datetime.now)
    volumes: tuple[VolumeUsage, ...] = ()

    def get(self, volume_id: str) -> Optional[VolumeUsage]:
        for volume in self.volumes:
            if volume.id == volume_id:
                return volume
        return None

    @property
    def total_free_bytes(self) -> int:
        return sum(v.free_bytes for v in self.volumes)


class VolumeDelta(BaseModel):
    """Free space of one volume before and after a run."""

    id: str
    mount_point: str
    total_bytes: int
    free_before: int
    free_after: int

    @property
    def freed_bytes(self) -> int:
        return self.free_after - self.free_before

    @property
    def percent_free_before(self) -> float:
        return (self.free_before / self.total_bytes) * 100 if self.total_bytes > 0 else 0.0

    @property
    def percent_free_after(self) -> float:
        return (self.free_after / self.total_bytes) * 100 if self.total_bytes > 0 else 0.0


class RunReport(BaseModel):
    """Everything a completed run produced."""

    tier: CleanupTier
    privilege: PrivilegeLevel
    age_days: int
    host: str
    outcomes: list[TaskOutcome] = Field(default_factory=list)
    before: DiskUsageSnapshot
    after: DiskUsageSnapshot
    deltas: list[VolumeDelta] = Field(default_factory=list)
    service_stopped: bool = False
    elapsed_seconds: float = 0.0
    log_path: Optional[str] = None
    large_files: list[dict] = Field(default_factory=list)

    @property
    def executed_task_ids(self) -> list[str]:
        return [o.task_id for o in self.outcomes if o.status != TaskStatus.SKIPPED]

    @property
    def total_freed_bytes(self) -> int:
        return sum(d.freed_bytes for d in self.deltas)


@dataclass
class RunContext:
    """Mutable state of a single run, owned by the orchestrator."""

    tier: CleanupTier
    privilege: PrivilegeLevel
    age_days: int
    host: str
    started_at: datetime = field(default_factory=datetime.now)
    started_monotonic: float = 0.0
    service_name: Optional[str] = None
    service_stopped: bool = False
    update_cleanup: bool = False
    recorder: Any = None
