"""Tests for the ccswitch CLI.

Covers:
- Exit code constants and console helpers
- Logging setup from --verbose/--quiet
- Record commands against a real SQLite workspace in tmp_path
- Backup commands
- Raw external file commands
"""

import asyncio
import json
import logging
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from ccswitch import __version__
from ccswitch.cli import app
from ccswitch.cli_utils import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    EXIT_SUCCESS,
    _error,
    _info,
    _setup_logging,
    _success,
    _warning,
    console,
)
from ccswitch.core.exceptions import ErrorKind
from ccswitch.kinds import default_registry
from ccswitch.store import SqliteStore
from ccswitch.store.models import BackupSnapshot, ConfigRecord
from ccswitch.sync import ConfigManager, OperationResult

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path) -> dict[str, Path]:
    """Settings file pointing every path into tmp_path."""
    data_dir = tmp_path / "data"
    claude = tmp_path / "claude" / "settings.json"
    config = tmp_path / "ccswitch.yaml"
    config.write_text(
        f"data_dir: {data_dir}\nexternal_files:\n  claude-code: {claude}\n",
        encoding="utf-8",
    )
    return {"config": config, "data_dir": data_dir, "claude": claude}


def _invoke(cli_env: dict[str, Path], *args: str):
    return runner.invoke(app, ["-c", str(cli_env["config"]), *args])


def _store(cli_env: dict[str, Path]) -> SqliteStore:
    return SqliteStore(cli_env["data_dir"] / "ccswitch.db", default_registry())


def _records(cli_env: dict[str, Path], command: str = "get_api_keys_config") -> list[ConfigRecord]:
    raw = asyncio.run(_store(cli_env).call(command))
    return [ConfigRecord.model_validate(r) for r in raw]


def _backups(cli_env: dict[str, Path]) -> list[BackupSnapshot]:
    return asyncio.run(_store(cli_env).list_backups())


# =============================================================================
# Constants and helpers
# =============================================================================


class TestExitCodes:
    def test_values(self) -> None:
        assert (EXIT_SUCCESS, EXIT_ERROR, EXIT_CONFIG_ERROR) == (0, 1, 2)


class TestConsoleHelpers:
    """Message helpers print styled, escaped text."""

    @pytest.mark.parametrize(
        ("helper", "prefix"),
        [
            (_error, "[red]Error:[/red]"),
            (_warning, "[yellow]Warning:[/yellow]"),
            (_success, "[green]✓[/green]"),
            (_info, "[blue]i[/blue]"),
        ],
    )
    def test_prefix(self, helper, prefix: str) -> None:
        with patch.object(console, "print") as mock_print:
            helper("message")
        assert mock_print.call_args[0][0] == f"{prefix} message"

    def test_markup_in_message_is_escaped(self) -> None:
        with patch.object(console, "print") as mock_print:
            _error("bad [bold]name")
        assert mock_print.call_args[0][0] == "[red]Error:[/red] bad \\[bold]name"


class TestSetupLogging:
    @pytest.mark.parametrize(
        ("verbose", "quiet", "level"),
        [
            (False, False, logging.INFO),
            (True, False, logging.DEBUG),
            (False, True, logging.WARNING),
            (True, True, logging.DEBUG),
        ],
    )
    def test_levels(self, verbose: bool, quiet: bool, level: int) -> None:
        _setup_logging(verbose, quiet)
        assert logging.getLogger().level == level


# =============================================================================
# Global options
# =============================================================================


class TestGlobalOptions:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == EXIT_SUCCESS
        assert __version__ in result.output

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "Usage" in result.output

    def test_missing_config_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["-c", str(tmp_path / "nope.yaml"), "list", "claude-code"])
        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Config file not found" in result.output

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        config = tmp_path / "bad.yaml"
        config.write_text("list_timeout: -1\n", encoding="utf-8")
        result = runner.invoke(app, ["-c", str(config), "list", "claude-code"])
        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_unknown_kind(self, cli_env: dict[str, Path]) -> None:
        result = _invoke(cli_env, "list", "nope")
        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Unknown config kind" in result.output

    def test_kinds(self) -> None:
        result = runner.invoke(app, ["kinds"])
        assert result.exit_code == EXIT_SUCCESS
        for kind_id in ("claude-code", "environment", "claude-router"):
            assert kind_id in result.output

    def test_kinds_shows_configured_files(self, tmp_path: Path) -> None:
        config = tmp_path / "c.yaml"
        config.write_text(
            "external_files:\n"
            "  claude-code: cc.json\n"
            "  environment: env.json\n"
            "  claude-router: ccr.json\n",
            encoding="utf-8",
        )
        result = runner.invoke(app, ["-c", str(config), "kinds"])
        assert result.exit_code == EXIT_SUCCESS
        for name in ("cc.json", "env.json", "ccr.json"):
            assert name in result.output
        assert "settings.json" not in result.output


# =============================================================================
# Record commands
# =============================================================================


class TestRecordCommands:
    """add/list/edit/activate/deactivate/remove against SQLite."""

    def test_empty_list(self, cli_env: dict[str, Path]) -> None:
        result = _invoke(cli_env, "list", "claude-code")
        assert result.exit_code == EXIT_SUCCESS
        assert "No Claude Code API Keys yet" in result.output

    def test_add_and_activate_writes_settings(self, cli_env: dict[str, Path]) -> None:
        result = _invoke(
            cli_env,
            "add",
            "claude-code",
            "work",
            "--data",
            '{"anthropic_auth_token": "sk-ant-work-123"}',
            "--activate",
        )
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "created and activated" in result.output

        settings = json.loads(cli_env["claude"].read_text(encoding="utf-8"))
        assert settings["env"]["ANTHROPIC_AUTH_TOKEN"] == "sk-ant-work-123"
        state = json.loads((cli_env["data_dir"] / "state.json").read_text(encoding="utf-8"))
        assert state == {"active_claude-code": _records(cli_env)[0].id}

    def test_list_marks_active_and_masks(self, cli_env: dict[str, Path]) -> None:
        token = '{"anthropic_auth_token": "sk-ant-work-123"}'
        _invoke(cli_env, "add", "claude-code", "work", "-d", token, "-a")
        result = _invoke(cli_env, "list", "claude-code")
        assert result.exit_code == EXIT_SUCCESS
        assert "work" in result.output
        assert "●" in result.output
        assert "sk-ant-work-123" not in result.output

    def test_add_invalid_data(self, cli_env: dict[str, Path]) -> None:
        result = _invoke(cli_env, "add", "claude-code", "work", "--data", "{oops")
        assert result.exit_code == EXIT_ERROR
        assert "not valid JSON" in result.output

    def test_add_fails_validation(self, cli_env: dict[str, Path]) -> None:
        result = _invoke(cli_env, "add", "claude-code", "work")
        assert result.exit_code == EXIT_ERROR
        assert "anthropic_auth_token" in result.output
        assert _records(cli_env) == []

    def test_add_duplicate_name(self, cli_env: dict[str, Path]) -> None:
        data = '{"anthropic_auth_token": "sk-1"}'
        _invoke(cli_env, "add", "claude-code", "work", "-d", data)
        result = _invoke(cli_env, "add", "claude-code", "work", "-d", data)
        assert result.exit_code == EXIT_ERROR
        assert "already exists" in result.output

    def test_activate_switches_file(self, cli_env: dict[str, Path]) -> None:
        _invoke(cli_env, "add", "claude-code", "a", "-d", '{"anthropic_auth_token": "sk-a"}', "-a")
        _invoke(cli_env, "add", "claude-code", "b", "-d", '{"anthropic_auth_token": "sk-b"}')
        b = next(r for r in _records(cli_env) if r.name == "b")

        result = _invoke(cli_env, "activate", "claude-code", b.id)

        assert result.exit_code == EXIT_SUCCESS, result.output
        settings = json.loads(cli_env["claude"].read_text(encoding="utf-8"))
        assert settings["env"]["ANTHROPIC_API_KEY"] == "sk-b"

    def test_activate_unknown_id(self, cli_env: dict[str, Path]) -> None:
        result = _invoke(cli_env, "activate", "claude-code", "missing")
        assert result.exit_code == EXIT_ERROR
        assert "not found" in result.output

    def test_edit_merges_data(self, cli_env: dict[str, Path]) -> None:
        _invoke(cli_env, "add", "claude-code", "a", "-d", '{"anthropic_auth_token": "sk-a"}', "-a")
        record = _records(cli_env)[0]

        result = _invoke(
            cli_env,
            "edit",
            "claude-code",
            record.id,
            "-d",
            '{"anthropic_base_url": "https://p.test"}',
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert _records(cli_env)[0].data == {
            "anthropic_auth_token": "sk-a",
            "anthropic_base_url": "https://p.test",
        }
        settings = json.loads(cli_env["claude"].read_text(encoding="utf-8"))
        assert settings["env"]["ANTHROPIC_BASE_URL"] == "https://p.test"

    def test_edit_data_of_unknown_record(self, cli_env: dict[str, Path]) -> None:
        data = '{"anthropic_base_url": "x"}'
        result = _invoke(cli_env, "edit", "claude-code", "missing", "-d", data)
        assert result.exit_code == EXIT_ERROR
        assert "missing not found" in result.output

    def test_edit_stops_when_load_fails(self, cli_env: dict[str, Path]) -> None:
        failed = OperationResult(ok=False, message="Failed", error=ErrorKind.STORE)
        with (
            patch.object(ConfigManager, "load", AsyncMock(return_value=failed)),
            patch.object(ConfigManager, "update", AsyncMock()) as update,
        ):
            result = _invoke(cli_env, "edit", "claude-code", "abc", "-d", '{"x": 1}')
        assert result.exit_code == EXIT_ERROR
        update.assert_not_called()

    def test_deactivate_writes_defaults(self, cli_env: dict[str, Path]) -> None:
        _invoke(cli_env, "add", "claude-code", "a", "-d", '{"anthropic_auth_token": "sk-a"}', "-a")
        result = _invoke(cli_env, "deactivate", "claude-code")
        assert result.exit_code == EXIT_SUCCESS
        settings = json.loads(cli_env["claude"].read_text(encoding="utf-8"))
        assert "ANTHROPIC_AUTH_TOKEN" not in settings["env"]
        state = json.loads((cli_env["data_dir"] / "state.json").read_text(encoding="utf-8"))
        assert state == {}

    def test_remove(self, cli_env: dict[str, Path]) -> None:
        _invoke(cli_env, "add", "claude-code", "a", "-d", '{"anthropic_auth_token": "sk-a"}')
        record = _records(cli_env)[0]
        assert _invoke(cli_env, "remove", "claude-code", record.id).exit_code == EXIT_SUCCESS
        assert _records(cli_env) == []
        assert _invoke(cli_env, "remove", "claude-code", record.id).exit_code == EXIT_ERROR


# =============================================================================
# Backup commands
# =============================================================================


class TestBackupCommands:
    @pytest.fixture
    def active_setup(self, cli_env: dict[str, Path]) -> dict[str, Path]:
        _invoke(cli_env, "add", "claude-code", "a", "-d", '{"anthropic_auth_token": "sk-a"}', "-a")
        return cli_env

    def test_backup_requires_existing_file(self, cli_env: dict[str, Path]) -> None:
        result = _invoke(cli_env, "backup", "claude-code")
        assert result.exit_code == EXIT_ERROR
        assert "Config file" in result.output

    def test_backup_list_show_restore_delete(self, active_setup: dict[str, Path]) -> None:
        result = _invoke(active_setup, "backup", "claude-code")
        assert result.exit_code == EXIT_SUCCESS, result.output
        (snapshot,) = _backups(active_setup)
        original = active_setup["claude"].read_text(encoding="utf-8")

        listing = _invoke(active_setup, "backups")
        assert listing.exit_code == EXIT_SUCCESS
        assert "Backups" in listing.output

        shown = _invoke(active_setup, "show-backup", snapshot.filename)
        assert shown.exit_code == EXIT_SUCCESS
        assert "ANTHROPIC_AUTH_TOKEN" in shown.output

        active_setup["claude"].write_text("{}", encoding="utf-8")
        restored = _invoke(active_setup, "restore", snapshot.filename)
        assert restored.exit_code == EXIT_SUCCESS, restored.output
        assert active_setup["claude"].read_text(encoding="utf-8") == original

        deleted = _invoke(active_setup, "delete-backup", snapshot.filename)
        assert deleted.exit_code == EXIT_SUCCESS
        assert _backups(active_setup) == []

    def test_backups_empty(self, cli_env: dict[str, Path]) -> None:
        result = _invoke(cli_env, "backups", "claude-code")
        assert result.exit_code == EXIT_SUCCESS
        assert "No backups yet" in result.output

    def test_unknown_backup(self, cli_env: dict[str, Path]) -> None:
        for command in ("show-backup", "restore", "delete-backup"):
            result = _invoke(cli_env, command, "nope.json")
            assert result.exit_code == EXIT_ERROR
            assert "does not exist" in result.output


# =============================================================================
# Raw external file commands
# =============================================================================


class TestFileCommands:
    def test_show_missing_file(self, cli_env: dict[str, Path]) -> None:
        result = _invoke(cli_env, "show-file", "claude-code")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "does not exist yet" in result.output

    def test_show_existing_file(self, cli_env: dict[str, Path]) -> None:
        cli_env["claude"].parent.mkdir(parents=True)
        cli_env["claude"].write_text('{"env": {"ANTHROPIC_BASE_URL": "u"}}', encoding="utf-8")
        result = _invoke(cli_env, "show-file", "claude-code")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "ANTHROPIC_BASE_URL" in result.output

    def test_edit_with_content(self, cli_env: dict[str, Path]) -> None:
        content = '{"env": {"ANTHROPIC_AUTH_TOKEN": "sk-new"}}'
        result = _invoke(cli_env, "edit-file", "claude-code", "--content", content)
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "file saved" in result.output
        saved = json.loads(cli_env["claude"].read_text(encoding="utf-8"))
        assert saved == {"env": {"ANTHROPIC_AUTH_TOKEN": "sk-new"}}

    def test_edit_from_file(self, cli_env: dict[str, Path], tmp_path: Path) -> None:
        source = tmp_path / "edited.json"
        source.write_text('{"model": "opus"}', encoding="utf-8")
        result = _invoke(cli_env, "edit-file", "claude-code", "--from", str(source))
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert json.loads(cli_env["claude"].read_text(encoding="utf-8")) == {"model": "opus"}

    def test_edit_rejects_invalid_json(self, cli_env: dict[str, Path]) -> None:
        result = _invoke(cli_env, "edit-file", "claude-code", "--content", "{broken")
        assert result.exit_code == EXIT_ERROR
        assert "not valid JSON" in result.output
        assert not cli_env["claude"].exists()

    @pytest.mark.parametrize("with_both", [True, False])
    def test_edit_needs_exactly_one_source(
        self, cli_env: dict[str, Path], tmp_path: Path, with_both: bool
    ) -> None:
        args = ["edit-file", "claude-code"]
        if with_both:
            source = tmp_path / "edited.json"
            source.write_text("{}", encoding="utf-8")
            args += ["--content", "{}", "--from", str(source)]
        result = _invoke(cli_env, *args)
        assert result.exit_code == EXIT_ERROR
        assert "exactly one" in result.output
