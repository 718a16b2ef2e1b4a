"""Tests for configuration loading."""

import json

import pytest
from pydantic import ValidationError

from reclaim.config import DEFAULT_IMAGE_EXTENSIONS, Settings, config_path, load_settings


class TestDefaults:
    def test_defaults(self):
        settings = Settings()
        assert settings.age_days == 30
        assert settings.service_name is None
        assert settings.cleanup_profile == 1
        assert settings.image_extensions == DEFAULT_IMAGE_EXTENSIONS
        assert settings.host
        assert settings.log_dir

    def test_negative_age_rejected(self):
        with pytest.raises(ValidationError):
            Settings(age_days=-1)


class TestLoadSettings:
    def test_missing_file(self, tmp_path):
        settings = load_settings(tmp_path / "missing.json")
        assert settings.age_days == 30

    def test_reads_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"age_days": 14, "answers": {"tier": "deep"}}))
        settings = load_settings(path)
        assert settings.age_days == 14
        assert settings.answers == {"tier": "deep"}

    def test_overrides_win(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"age_days": 14}))
        assert load_settings(path, age_days=7).age_days == 7

    def test_none_overrides_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"age_days": 14}))
        assert load_settings(path, age_days=None).age_days == 14

    def test_corrupt_file_falls_back(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        settings = load_settings(path)
        assert settings.age_days == 30
        assert "unreadable" in caplog.text

    def test_invalid_values_fall_back(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"age_days": -5}))
        settings = load_settings(path, log_dir=str(tmp_path))
        assert settings.age_days == 30
        assert settings.log_dir == str(tmp_path)
        assert "invalid" in caplog.text

    def test_non_object_falls_back(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        assert load_settings(path).age_days == 30

    def test_env_override_path(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.json"
        monkeypatch.setenv("RECLAIM_CONFIG", str(path))
        assert config_path() == path
