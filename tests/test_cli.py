"""Tests for the bashgpt command line."""

import sys

import pytest
from click.testing import CliRunner

from bashgpt.errors import CompletionError, ErrorKind, UpgradeError
from bashgpt.main import cli
from bashgpt.models import UpgradeOutcome, UpgradeStatus


class FakeUpgrader:
    def __init__(self, error=None):
        self.error = error
        self.checks = 0
        self.upgrades = 0

    def check_for_upgrade(self):
        self.checks += 1
        return False

    def run_upgrade(self):
        self.upgrades += 1
        if self.error is not None:
            raise self.error
        return UpgradeOutcome(status=UpgradeStatus.UP_TO_DATE, current_version="v1.2.0")


class FakeCompletion:
    def __init__(self, reply="ls -la\n", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def suggest(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def upgrader():
    return FakeUpgrader()


def _invoke(runner, args, settings, upgrader, input=None, **obj):
    return runner.invoke(
        cli, args, obj={"settings": settings, "upgrader": upgrader, **obj}, input=input
    )


def test_version(runner, settings, upgrader):
    result = _invoke(runner, ["version"], settings, upgrader)

    assert result.exit_code == 0
    assert "bashgpt-v1.2.0" in result.output
    assert upgrader.checks == 1


def test_upgrade_skips_startup_check(runner, settings, upgrader):
    result = _invoke(runner, ["upgrade"], settings, upgrader)

    assert result.exit_code == 0
    assert upgrader.upgrades == 1
    assert upgrader.checks == 0


def test_upgrade_failure_exits_1(runner, settings):
    error = UpgradeError(ErrorKind.INSTALL, "Could not replace existing /usr/bin/bashgpt")
    result = _invoke(runner, ["upgrade"], settings, FakeUpgrader(error=error))

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "MANUAL RECOVERY" not in result.output


def test_degraded_upgrade_is_called_out(runner, settings):
    error = UpgradeError(
        ErrorKind.DEGRADED,
        "Could not install v1.3.0 and could not restore /opt/bashgpt",
        path="/opt/bashgpt",
        version="v1.3.0",
        backup_path="/opt/bashgpt.bak",
        rollback_error=OSError("Input/output error"),
    )
    result = _invoke(runner, ["upgrade"], settings, FakeUpgrader(error=error))

    assert result.exit_code == 1
    assert "MANUAL RECOVERY REQUIRED" in result.output
    assert "mv /opt/bashgpt.bak /opt/bashgpt" in result.output


def test_help(runner, settings, upgrader):
    result = _invoke(runner, ["help"], settings, upgrader)

    assert result.exit_code == 0
    assert "upgrade" in result.output


def test_unknown_command_shows_help(runner, settings, upgrader):
    result = _invoke(runner, ["frobnicate"], settings, upgrader)

    assert result.exit_code == 1
    assert "Commands" in result.output
    assert upgrader.checks == 1


def test_no_command_shows_help(runner, settings, upgrader):
    result = _invoke(runner, [], settings, upgrader)

    assert result.exit_code == 1
    assert "Commands" in result.output


def test_sh_prints_suggestion(runner, settings, upgrader):
    completion = FakeCompletion()
    result = _invoke(
        runner, ["sh", "list", "all", "files"], settings, upgrader, completion_client=completion
    )

    assert result.exit_code == 0
    assert result.output.endswith("ls -la\n")
    assert completion.prompts == ["list all files"]


def test_sh_runs_command_after_delimiter(runner, settings, upgrader):
    completion = FakeCompletion()
    result = _invoke(
        runner,
        ["sh", "succeed", "--", sys.executable, "-c", "raise SystemExit(0)"],
        settings,
        upgrader,
        completion_client=completion,
    )

    assert result.exit_code == 0
    assert completion.prompts == []


def test_sh_failing_command_exits_1(runner, settings, upgrader):
    result = _invoke(
        runner,
        ["sh", "fail", "--", sys.executable, "-c", "raise SystemExit(4)"],
        settings,
        upgrader,
    )

    assert result.exit_code == 1
    assert "exit status 4" in result.output


def test_sh_completion_error_exits_1(runner, settings, upgrader):
    completion = FakeCompletion(error=CompletionError("Expected 1 response, got 2"))
    result = _invoke(runner, ["sh", "anything"], settings, upgrader, completion_client=completion)

    assert result.exit_code == 1
    assert "Expected 1 response, got 2" in result.output


def test_sh_without_key_asks_for_config(runner, settings, upgrader):
    result = _invoke(runner, ["sh", "anything"], settings, upgrader)

    assert result.exit_code == 1
    assert "bashgpt config" in result.output


def test_config_stores_key_and_script(runner, settings, upgrader):
    result = _invoke(runner, ["config"], settings, upgrader, input="sk-test\n")

    assert result.exit_code == 0
    assert settings.key_path.read_text() == "sk-test"
    assert settings.autocomplete_path.exists()
    assert ".bashrc" in result.output


def test_config_rejects_blank_key(runner, settings, upgrader):
    result = _invoke(runner, ["config"], settings, upgrader, input="   \n")

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert not settings.key_path.exists()
