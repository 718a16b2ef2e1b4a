"""Tests for external tool strategies."""

import subprocess
from unittest.mock import MagicMock, patch

from reclaim.config import Settings
from reclaim.external import EXIT_OBJECT_ABSENT, ExternalTool, build_tools, client_cache_script
from reclaim.models import TaskStatus


class TestAvailability:
    @patch("shutil.which", return_value=None)
    def test_absent_tool_is_skipped(self, mock_which):
        tool = ExternalTool("cleanmgr", "cleanmgr.exe", ["/sagerun:1"])
        outcome = tool.run("disk_cleanup", "Disk Cleanup")
        assert outcome.status == TaskStatus.SKIPPED
        assert "not available" in outcome.message

    @patch("shutil.which", return_value="C:\\Windows\\System32\\cleanmgr.exe")
    def test_probed_once(self, mock_which):
        tool = ExternalTool("cleanmgr", "cleanmgr.exe")
        assert tool.available
        assert tool.available
        assert mock_which.call_count == 1

    @patch("shutil.which", return_value="/usr/bin/tool")
    def test_command_uses_resolved_path(self, _):
        tool = ExternalTool("tool", "tool", ["--flag"])
        assert tool.command == ["/usr/bin/tool", "--flag"]


class TestRun:
    @patch("shutil.which", return_value="/usr/bin/tool")
    @patch("subprocess.run")
    def test_success(self, mock_run, _):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        outcome = ExternalTool("tool", "tool").run("t", "Tool")
        assert outcome.status == TaskStatus.COMPLETED

    @patch("shutil.which", return_value="/usr/bin/tool")
    @patch("subprocess.run")
    def test_failure(self, mock_run, _):
        mock_run.return_value = MagicMock(returncode=2, stdout="", stderr="boom")
        outcome = ExternalTool("tool", "tool").run("t", "Tool")
        assert outcome.status == TaskStatus.FAILED
        assert outcome.message == "boom"

    @patch("shutil.which", return_value="/usr/bin/powershell")
    @patch("subprocess.run")
    def test_absent_object_is_skipped(self, mock_run, _):
        mock_run.return_value = MagicMock(returncode=EXIT_OBJECT_ABSENT, stdout="", stderr="")
        tool = ExternalTool("client-cache", "powershell", absent_codes=[EXIT_OBJECT_ABSENT])
        outcome = tool.run("client_cache_size", "Client cache")
        assert outcome.status == TaskStatus.SKIPPED
        assert "Not present" in outcome.message

    @patch("shutil.which", return_value="/usr/bin/tool")
    @patch("subprocess.run", side_effect=subprocess.TimeoutExpired("tool", 10))
    def test_timeout(self, mock_run, _):
        outcome = ExternalTool("tool", "tool", timeout=10).run("t", "Tool")
        assert outcome.status == TaskStatus.FAILED
        assert "timed out" in outcome.message

    @patch("shutil.which", return_value="/usr/bin/tool")
    @patch("subprocess.run", side_effect=PermissionError("denied"))
    def test_os_error(self, mock_run, _):
        outcome = ExternalTool("tool", "tool").run("t", "Tool")
        assert outcome.status == TaskStatus.FAILED
        assert "denied" in outcome.message


class TestBuildTools:
    def test_uses_settings(self):
        tools = build_tools(Settings(cleanup_profile=7, cache_size_mb=2048))
        assert tools["cleanmgr"].args == ["/sagerun:7"]
        assert "$cache.Size = 2048" in tools["client-cache"].args[-1]
        assert EXIT_OBJECT_ABSENT in tools["client-cache"].absent_codes

    def test_client_cache_script_exits_when_absent(self):
        script = client_cache_script(1024)
        assert f"exit {EXIT_OBJECT_ABSENT}" in script
        assert "CacheConfig" in script
