"""Tests for the privilege probe."""

from unittest.mock import MagicMock, patch

from reclaim.models import PrivilegeLevel
from reclaim.privilege import is_admin, probe_privilege


class TestIsAdmin:
    @patch("reclaim.privilege.is_windows", return_value=False)
    @patch("os.geteuid", return_value=0, create=True)
    def test_posix_root(self, *_):
        assert is_admin()

    @patch("reclaim.privilege.is_windows", return_value=False)
    @patch("os.geteuid", return_value=1000, create=True)
    def test_posix_user(self, *_):
        assert not is_admin()

    @patch("reclaim.privilege.is_windows", return_value=True)
    def test_windows_admin(self, _):
        windll = MagicMock()
        windll.shell32.IsUserAnAdmin.return_value = 1
        with patch("reclaim.privilege.ctypes.windll", windll, create=True):
            assert is_admin()

    @patch("reclaim.privilege.is_windows", return_value=True)
    def test_windows_query_failure(self, _):
        windll = MagicMock()
        windll.shell32.IsUserAnAdmin.side_effect = OSError("no shell32")
        with patch("reclaim.privilege.ctypes.windll", windll, create=True):
            assert not is_admin()


class TestProbePrivilege:
    @patch("reclaim.privilege.is_admin", return_value=True)
    def test_elevated(self, _):
        assert probe_privilege() == PrivilegeLevel.ELEVATED

    @patch("reclaim.privilege.is_admin", return_value=False)
    def test_standard(self, _):
        assert probe_privilege() == PrivilegeLevel.STANDARD
