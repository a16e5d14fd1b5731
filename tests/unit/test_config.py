"""Tests for SiftConfig — env-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from buildsift.config import SiftConfig


class TestSiftConfig:
    def test_defaults(self):
        config = SiftConfig()
        assert config.log_level == "INFO"
        assert config.min_severity == "info"
        assert config.hang_suspect_seconds == 60.0
        assert config.hang_threshold_seconds == 300.0
        assert config.cancel_on_hang is True
        assert config.eta_min_progress == 0.1

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BUILDSIFT_HANG_THRESHOLD_SECONDS", "600")
        monkeypatch.setenv("BUILDSIFT_MONITOR_RESOURCES", "true")
        config = SiftConfig()
        assert config.hang_threshold_seconds == 600.0
        assert config.monitor_resources is True

    def test_unknown_env_ignored(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BUILDSIFT_NOT_A_SETTING", "x")
        assert SiftConfig().log_level == "INFO"

    def test_hang_threshold_must_exceed_suspect(self):
        with pytest.raises(ValidationError):
            SiftConfig(hang_suspect_seconds=100, hang_threshold_seconds=50)

    def test_dotenv_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch):
        (tmp_path / ".env").write_text("BUILDSIFT_MIN_SEVERITY=warning\n")
        monkeypatch.chdir(tmp_path)
        assert SiftConfig().min_severity == "warning"
