"""
Tests for settings loading and the user .env writer.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import AppSettings, get_user_config_dir, write_user_env_vars


class TestAppSettings:

    def test_defaults(self, monkeypatch):
        for key in ("DT_EXT_TENANT_URL", "DT_EXT_API_TOKEN", "DT_EXT_MAX_PAGES", "DT_EXT_LOG_LEVEL"):
            monkeypatch.delenv(key, raising=False)

        settings = AppSettings(_env_file=None)

        assert settings.tenant_url is None
        assert settings.api_token is None
        assert settings.http_timeout_seconds is None
        assert settings.max_pages is None
        assert settings.verify_ssl is True
        assert settings.upload_poll_interval == 1.0
        assert settings.log_level == "WARNING"

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("DT_EXT_TENANT_URL", "https://abc.live.dynatrace.com/")
        monkeypatch.setenv("DT_EXT_API_TOKEN", "dt0c01.ENV")
        monkeypatch.setenv("DT_EXT_MAX_PAGES", "3")
        monkeypatch.setenv("DT_EXT_LOG_LEVEL", "debug")

        settings = AppSettings(_env_file=None)

        assert settings.tenant_url == "https://abc.live.dynatrace.com"
        assert settings.api_token == "dt0c01.ENV"
        assert settings.max_pages == 3
        assert settings.log_level == "DEBUG"

    def test_reads_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DT_EXT_TENANT_URL", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("DT_EXT_TENANT_URL=https://file.example.com\n", encoding="utf-8")

        settings = AppSettings(_env_file=str(env_file))

        assert settings.tenant_url == "https://file.example.com"

    def test_rejects_invalid_page_limit(self):
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None, max_pages=0)


class TestUserEnvFile:

    def test_user_config_dir_honours_xdg(self, tmp_path, monkeypatch):
        monkeypatch.setattr("core.config.sys.platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert get_user_config_dir() == tmp_path / "dt-ext-copilot"

    def test_write_merges_existing_values(self, tmp_path):
        env_path = tmp_path / "cfg" / ".env"
        env_path.parent.mkdir()
        env_path.write_text('# old\nDT_EXT_TENANT_URL="https://old"\nDT_EXT_LOG_LEVEL=INFO\n', encoding="utf-8")

        written = write_user_env_vars(
            {"DT_EXT_TENANT_URL": "https://new", "DT_EXT_API_TOKEN": "tok", "DT_EXT_MAX_PAGES": None},
            env_path=env_path,
        )

        assert written == env_path
        lines = env_path.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("#")
        assert lines[1:] == [
            "DT_EXT_API_TOKEN=tok",
            "DT_EXT_LOG_LEVEL=INFO",
            "DT_EXT_TENANT_URL=https://new",
        ]
