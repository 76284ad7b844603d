"""Tests for the command line interface."""

import json
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import acetester.main as cli
from acetester import __version__
from acetester.config.settings import Settings
from acetester.core.types import RunResult


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and the working directory."""
    return Settings(_env_file=None, reports_dir=tmp_path / "reports")


@pytest.fixture
def patched_cli(settings):
    """Patch settings, logging and the coordinator factory."""
    coordinator = MagicMock()
    coordinator.run = AsyncMock(return_value=RunResult(
        success=True,
        action_log="SUCCESS: Open homepage",
        report="No issues found.",
    ))

    with patch.object(cli, "get_settings", return_value=settings), \
            patch.object(cli, "setup_logging") as setup_logging, \
            patch.object(cli, "build_coordinator", return_value=coordinator) as build:
        yield coordinator, setup_logging, build


class TestCLIParser:
    """Test command line parser."""

    def test_parser_creation(self):
        parser = cli.create_parser()

        assert f"v{__version__}" in parser.description
        actions = {action.dest for action in parser._actions}
        assert {
            "url", "prompt", "prompt_file", "username", "password", "headless",
            "timeout", "output", "no_save", "no_ai_log", "json", "debug",
            "verbose", "version", "test_api",
        } <= actions

    def test_headless_flags(self):
        parser = cli.create_parser()

        assert parser.parse_args([]).headless is None
        assert parser.parse_args(["--headless"]).headless is True
        assert parser.parse_args(["--headed"]).headless is False

        with pytest.raises(SystemExit):
            parser.parse_args(["--headless", "--headed"])

    def test_prompt_sources_are_exclusive(self):
        parser = cli.create_parser()

        with pytest.raises(SystemExit):
            parser.parse_args(["--prompt", "Check things", "--prompt-file", "p.txt"])


class TestApplyOverrides:
    """Command line options override settings."""

    def test_overrides(self, settings, tmp_path):
        args = cli.create_parser().parse_args([
            "--debug", "--verbose", "--headed", "--timeout", "2500",
            "--output", str(tmp_path / "out"), "--no-save", "--no-ai-log",
        ])

        cli.apply_overrides(settings, args)

        assert settings.debug_mode is True
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"
        assert settings.browser_headless is False
        assert settings.browser_timeout == 2500
        assert settings.reports_dir == tmp_path / "out"
        assert settings.save_reports is False
        assert settings.narrate_with_ai is False

    def test_timeout_above_launch_ceiling_rejected(self, settings):
        args = cli.create_parser().parse_args(["--timeout", "999999"])

        with pytest.raises(ValueError, match="--timeout"):
            cli.apply_overrides(settings, args)


class TestUtilityCommands:
    """Test utility command functions."""

    def test_show_version(self, capsys):
        assert cli.show_version() == 0
        assert __version__ in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_version_flag(self):
        with patch.object(cli, "show_version", return_value=0) as show_version:
            assert await cli.async_main(["--version"]) == 0
        show_version.assert_called_once()

    @pytest.mark.asyncio
    async def test_api_connection_success(self, settings):
        client = MagicMock()
        client.call = AsyncMock(return_value={
            "content": "API test successful",
            "model": "gpt-4o-mini",
            "usage": {"total_tokens": 12},
        })

        with patch.object(cli, "get_settings", return_value=settings), \
                patch("acetester.models.openai_client.OpenAIClient", return_value=client):
            assert await cli.test_api_connection() == 0

    @pytest.mark.asyncio
    async def test_api_connection_failure(self, settings):
        with patch.object(cli, "get_settings", return_value=settings), \
                patch("acetester.models.openai_client.OpenAIClient", side_effect=ValueError("no key")):
            assert await cli.test_api_connection() == 1


class TestRun:
    """End-to-end CLI runs with a mocked coordinator."""

    @pytest.mark.asyncio
    async def test_successful_run_exits_zero(self, patched_cli, settings):
        coordinator, setup_logging, build = patched_cli

        code = await cli.async_main([
            "--url", "https://example.com",
            "--prompt", "Check the homepage renders",
            "--username", "demo",
            "--password", "hunter22",
        ])

        assert code == 0
        build.assert_called_once_with(settings)
        coordinator.run.assert_awaited_once_with({
            "url": "https://example.com",
            "prompt": "Check the homepage renders",
            "username": "demo",
            "password": "hunter22",
        })
        setup_logging.assert_called_once()
        assert setup_logging.call_args.kwargs["stream"] is None
        assert settings.reports_dir.is_dir()

    @pytest.mark.asyncio
    async def test_failed_run_exits_one(self, patched_cli):
        coordinator, _, _ = patched_cli
        coordinator.run.return_value = RunResult(success=False, error="Planning failed")

        code = await cli.async_main([
            "--url", "https://example.com", "--prompt", "Check the homepage renders",
        ])

        assert code == 1

    @pytest.mark.asyncio
    async def test_json_output(self, patched_cli, capsys):
        _, setup_logging, _ = patched_cli

        code = await cli.async_main([
            "--url", "https://example.com", "--prompt", "Check the homepage renders", "--json",
        ])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output == {
            "success": True,
            "actionLog": "SUCCESS: Open homepage",
            "report": "No issues found.",
        }
        assert setup_logging.call_args.kwargs["stream"] is sys.stderr

    @pytest.mark.asyncio
    async def test_prompt_file(self, patched_cli, tmp_path):
        coordinator, _, _ = patched_cli
        prompt_file = tmp_path / "prompt.txt"
        prompt_file.write_text("  Sign up with a new account  \n", encoding="utf-8")

        code = await cli.async_main([
            "--url", "https://example.com", "--prompt-file", str(prompt_file),
        ])

        assert code == 0
        assert coordinator.run.call_args.args[0]["prompt"] == "Sign up with a new account"

    @pytest.mark.asyncio
    async def test_missing_prompt_file(self, patched_cli, tmp_path):
        coordinator, _, _ = patched_cli

        code = await cli.async_main([
            "--url", "https://example.com", "--prompt-file", str(tmp_path / "missing.txt"),
        ])

        assert code == 1
        coordinator.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_timeout_exits_one(self, patched_cli):
        coordinator, _, _ = patched_cli

        code = await cli.async_main([
            "--url", "https://example.com", "--prompt", "Check the homepage renders",
            "--timeout", "0",
        ])

        assert code == 1
        coordinator.run.assert_not_awaited()

    def test_main_wraps_async_main(self):
        with patch.object(cli, "async_main", new=AsyncMock(return_value=0)):
            assert cli.main(["--version"]) == 0

    def test_main_reports_fatal_errors(self):
        with patch.object(cli, "async_main", new=AsyncMock(side_effect=RuntimeError("boom"))):
            assert cli.main([]) == 1
