"""Tests for the task matrix."""

import pytest

from reclaim.models import ActionKind, CleanupTask, CleanupTier, PrivilegeLevel
from reclaim.tasks import DEFAULT_MATRIX, TaskMatrix, get_task


class TestDefaultMatrix:
    def test_ids_are_unique(self):
        ids = [t.id for t in DEFAULT_MATRIX]
        assert len(ids) == len(set(ids))

    def test_service_toggle_declared_first(self):
        assert DEFAULT_MATRIX.tasks[0].kind == ActionKind.SERVICE_TOGGLE
        assert DEFAULT_MATRIX.service_task().targets == ("wuauserv",)

    def test_light_has_user_scope_tasks(self):
        light = DEFAULT_MATRIX.eligible(CleanupTier.LIGHT, PrivilegeLevel.STANDARD)
        assert light
        assert all(not t.requires_elevation for t in light)

    def test_standard_and_deep_tasks_require_elevation(self):
        for level in (CleanupTier.STANDARD, CleanupTier.DEEP):
            assert all(t.requires_elevation for t in DEFAULT_MATRIX.at_tier(level))

    def test_iis_logs_use_sixty_days(self):
        task = get_task("iis_logs")
        assert task.kind == ActionKind.AGE_FILTERED_DELETE
        assert task.age_days == 60
        assert task.tier == CleanupTier.DEEP

    def test_cbs_logs_are_unconditional(self):
        task = get_task("cbs_logs")
        assert task.kind == ActionKind.UNCONDITIONAL_DELETE
        assert task.age_days is None

    def test_standard_bulk_deletes_are_unconditional(self):
        for task_id in ("system_artifacts", "user_caches"):
            assert get_task(task_id).kind == ActionKind.UNCONDITIONAL_DELETE

    def test_external_tools(self):
        assert get_task("disk_cleanup").tool == "cleanmgr"
        assert get_task("client_cache_size").tool == "client-cache"

    def test_unknown_task(self):
        assert get_task("nonexistent") is None


class TestTierInclusion:
    @pytest.mark.parametrize("privilege", list(PrivilegeLevel))
    def test_monotonic(self, privilege):
        light = {t.id for t in DEFAULT_MATRIX.eligible(CleanupTier.LIGHT, privilege)}
        standard = {t.id for t in DEFAULT_MATRIX.eligible(CleanupTier.STANDARD, privilege)}
        deep = {t.id for t in DEFAULT_MATRIX.eligible(CleanupTier.DEEP, privilege)}
        assert light <= standard <= deep

    def test_for_tier_excludes_service_toggle(self):
        for tier in CleanupTier:
            assert all(t.kind != ActionKind.SERVICE_TOGGLE for t in DEFAULT_MATRIX.for_tier(tier))

    def test_at_tier_is_exact(self):
        assert all(t.tier == CleanupTier.STANDARD for t in DEFAULT_MATRIX.at_tier(CleanupTier.STANDARD))


class TestRequiresService:
    def test_needs_elevation(self):
        assert not DEFAULT_MATRIX.requires_service(CleanupTier.DEEP, PrivilegeLevel.STANDARD)

    def test_elevated_light(self):
        assert DEFAULT_MATRIX.requires_service(CleanupTier.LIGHT, PrivilegeLevel.ELEVATED)

    def test_matrix_without_sensitive_tasks(self):
        matrix = TaskMatrix(
            [
                CleanupTask(id="a", name="A", kind=ActionKind.UNCONDITIONAL_DELETE, targets=("/x",)),
            ]
        )
        assert not matrix.requires_service(CleanupTier.DEEP, PrivilegeLevel.ELEVATED)
        assert matrix.service_task() is None


class TestTaskMatrix:
    def test_rejects_duplicate_ids(self):
        task = CleanupTask(id="dup", name="Dup", kind=ActionKind.UNCONDITIONAL_DELETE)
        with pytest.raises(ValueError, match="dup"):
            TaskMatrix([task, task])

    def test_preserves_order(self):
        tasks = [
            CleanupTask(id=str(i), name=str(i), kind=ActionKind.UNCONDITIONAL_DELETE) for i in range(5)
        ]
        assert [t.id for t in TaskMatrix(tasks)] == ["0", "1", "2", "3", "4"]
        assert len(TaskMatrix(tasks)) == 5

    def test_tasks_are_immutable(self):
        task = get_task("user_temp")
        with pytest.raises(Exception):
            task.tier = CleanupTier.DEEP
