"""
Tests for the Typer CLI, wired to a scripted transport.
"""

from __future__ import annotations

import json
import asyncio
from types import SimpleNamespace

import httpx
import pytest
from typer.testing import CliRunner

from cli.main import app
from core.config import AppSettings

runner = CliRunner()


@pytest.fixture(autouse=True)
def wired_cli(monkeypatch, settings, dt):
    """Route the CLI to the scripted tenant and keep logging configuration out of the way."""

    monkeypatch.setattr("cli.main.AppSettings", lambda: settings)
    monkeypatch.setattr("cli.main.configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr("cli.main.Dynatrace", SimpleNamespace(from_settings=lambda _settings: dt))


class TestEntitiesCommands:

    def test_list_prints_table(self, scripted):
        scripted.queue_json({"entities": [{"entityId": "HOST-1", "displayName": "web-1", "type": "HOST"}]})

        result = runner.invoke(app, ["entities", "list", "--selector", "type(HOST)"])

        assert result.exit_code == 0, result.output
        assert "HOST-1" in result.output
        assert scripted.requests[0].url.params["entitySelector"] == "type(HOST)"

    def test_list_json(self, scripted):
        scripted.queue_json({"entities": [{"entityId": "HOST-1"}]})

        result = runner.invoke(app, ["entities", "list", "-s", "type(HOST)", "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)[0]["entityId"] == "HOST-1"

    def test_list_output_file(self, scripted, tmp_path):
        scripted.queue_json({"entities": [{"entityId": "HOST-1"}]})
        output = tmp_path / "out" / "entities.json"

        result = runner.invoke(app, ["entities", "list", "-s", "type(HOST)", "--output", str(output)])

        assert result.exit_code == 0, result.output
        assert json.loads(output.read_text(encoding="utf-8"))[0]["entityId"] == "HOST-1"

    def test_api_error_exits_with_panel(self, scripted):
        scripted.queue_json(
            {"error": {"code": 401, "message": "Token Authentication failed", "constraintViolations": []}},
            status_code=401,
        )

        result = runner.invoke(app, ["entities", "types"])

        assert result.exit_code == 1
        assert "Token Authentication failed" in result.output
        assert "401" in result.output


class TestExtensionsCommands:

    def test_versions(self, scripted):
        scripted.queue_json({"extensions": [{"extensionName": "custom:demo", "version": "1.0.0"}]})

        result = runner.invoke(app, ["extensions", "versions", "custom:demo"])

        assert result.exit_code == 0, result.output
        assert "1.0.0" in result.output

    def test_validate_only_failure(self, scripted, tmp_path):
        package = tmp_path / "extension.zip"
        package.write_bytes(b"zip")
        scripted.queue_json({"error": {"code": 400, "message": "Invalid schema"}}, status_code=400)

        result = runner.invoke(app, ["extensions", "upload", str(package), "--validate-only"])

        assert result.exit_code == 1
        assert "Extension validation failed." in result.output
        assert scripted.requests[0].url.params["validateOnly"] == "true"

    def test_deploy(self, scripted, tmp_path):
        package = tmp_path / "extension.zip"
        package.write_bytes(b"zip")
        scripted.queue_json(
            {"extensions": [{"extensionName": "custom:demo", "version": "1.0.0"}]},
            {"extensionName": "custom:demo", "version": "1.0.1"},
            {"version": "1.0.0"},
            {},
        )

        result = runner.invoke(
            app, ["extensions", "deploy", str(package), "--name", "custom:demo", "--version", "1.0.1"]
        )

        assert result.exit_code == 0, result.output
        assert "Deployed" in result.output
        assert [r.method for r in scripted.requests] == ["GET", "POST", "GET", "PUT"]
        assert b'filename="extension.zip"' in scripted.requests[1].content

    def test_v1_download(self, scripted, tmp_path):
        scripted.queue(httpx.Response(200, content=b"PK\x03\x04"))
        output = tmp_path / "ext.zip"

        result = runner.invoke(app, ["extensions", "v1-download", "custom.python.a", "--output", str(output)])

        assert result.exit_code == 0, result.output
        assert output.read_bytes() == b"PK\x03\x04"


class TestConfigurationErrors:

    def test_missing_tenant_exits_with_hint(self, monkeypatch):
        from adapters.dynatrace_api import Dynatrace

        empty = AppSettings(_env_file=None, tenant_url=None, api_token=None)
        monkeypatch.setattr("cli.main.AppSettings", lambda: empty)
        monkeypatch.setattr("cli.main.Dynatrace", Dynatrace)

        result = runner.invoke(app, ["entities", "types"])

        assert result.exit_code == 2
        assert "doctor setup" in result.output


async def _slow_reply(request: httpx.Request) -> httpx.Response:
    await asyncio.sleep(1.5)
    return httpx.Response(200, json={"version": "1.0.0"})


class TestTimeout:

    def test_activate_honours_timeout(self, scripted):
        scripted.queue(_slow_reply, _slow_reply)

        result = runner.invoke(app, ["--timeout", "0.2", "extensions", "activate", "custom:demo", "1.0.0"])

        assert result.exit_code == 3, result.output
        assert "Timed out" in result.output
        assert "Activated" not in result.output
        assert len(scripted.requests) == 1

    def test_deploy_honours_timeout(self, scripted, tmp_path):
        package = tmp_path / "custom_demo-1.0.1.zip"
        package.write_bytes(b"zip")
        scripted.queue(_slow_reply)

        result = runner.invoke(
            app,
            ["--timeout", "0.2", "extensions", "deploy", str(package), "--name", "custom:demo", "--version", "1.0.1"],
        )

        assert result.exit_code == 3, result.output
        assert "Deployed" not in result.output

    def test_upload_uses_package_filename(self, scripted, tmp_path):
        package = tmp_path / "custom_demo-1.0.1.zip"
        package.write_bytes(b"zip")
        scripted.queue_json({"extensionName": "custom:demo", "version": "1.0.1"})

        result = runner.invoke(app, ["extensions", "upload", str(package)])

        assert result.exit_code == 0, result.output
        assert b'filename="custom_demo-1.0.1.zip"' in scripted.requests[0].content
