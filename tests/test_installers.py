"""Tests for command-backed installer adapters."""

from unittest.mock import AsyncMock, patch

import pytest

from devstrap.config import ConfigError
from devstrap.engine import OutcomeKind, Target, dispatch
from devstrap.installers import (
    APP_ALREADY_EXISTS,
    ECOSYSTEMS,
    CommandInstaller,
    get_installer,
    render_command,
)


def test_builtin_ecosystems():
    for name in ("brew", "cask", "npm", "pip", "cargo", "go", "vscode"):
        assert name in ECOSYSTEMS


def test_render_command_quotes_values():
    target = Target("a b; rm -rf ~")
    assert render_command("brew install {name}", target) == "brew install 'a b; rm -rf ~'"


def test_render_command_source_falls_back_to_name():
    assert render_command("go install {source}", Target("gopls")) == "go install gopls"
    target = Target("gopls", source="golang.org/x/tools/gopls@latest")
    assert render_command("go install {source}", target) == (
        "go install golang.org/x/tools/gopls@latest"
    )


class TestGetInstaller:
    def test_builtin(self):
        installer = get_installer("brew")
        assert installer.install_template == "brew install {name}"
        assert APP_ALREADY_EXISTS in installer.already_exists_markers

    def test_override_one_command(self):
        installer = get_installer("pip", {"install": "uv pip install {name}"})
        assert installer.install_template == "uv pip install {name}"
        assert installer.check == ECOSYSTEMS["pip"].check

    def test_custom_ecosystem(self):
        installer = get_installer("apt", {"check": "dpkg -s {name}", "install": "apt-get install -y {name}"})
        assert installer.ecosystem == "apt"

    def test_unknown_without_commands(self):
        with pytest.raises(ConfigError, match="Unknown ecosystem 'apt'"):
            get_installer("apt", {"check": "dpkg -s {name}"})


class TestClassify:
    def test_already_exists_marker(self):
        failure = get_installer("cask").classify(
            "==> Installing Cask docker\n"
            "Error: It seems there is already an App at '/Applications/Docker.app'."
        )
        assert failure.already_exists
        assert failure.reason.startswith("Error: It seems there is already an App")

    def test_terminal_marker(self):
        failure = get_installer("brew").classify(
            "Warning: No available formula with the name \"gitt\"."
        )
        assert not failure.retryable
        assert not failure.already_exists

    def test_generic_failure_is_retryable(self):
        failure = get_installer("npm").classify("npm ERR! network ETIMEDOUT")
        assert failure.retryable
        assert failure.reason == "npm ERR! network ETIMEDOUT"

    def test_empty_output(self):
        assert get_installer("npm").classify("").reason == "command failed with no output"

    def test_long_reason_is_truncated(self):
        failure = get_installer("npm").classify("x" * 500)
        assert len(failure.reason) == 200
        assert failure.reason.endswith("...")


class TestCommandInstallerExecution:
    @pytest.mark.asyncio
    async def test_is_present_uses_check_command(self):
        installer = get_installer("brew")
        with patch(
            "devstrap.installers.base.run_command_async",
            new=AsyncMock(return_value=("git 2.45", 0)),
        ) as mock_run:
            assert await installer.is_present(Target("git"))
        mock_run.assert_awaited_once()
        assert mock_run.await_args.args[0] == "brew list --formula git"

    @pytest.mark.asyncio
    async def test_install_success_and_failure(self):
        installer = get_installer("npm")
        with patch(
            "devstrap.installers.base.run_command_async",
            new=AsyncMock(side_effect=[("added 1 package", 0), ("npm ERR! 404 Not Found", 1)]),
        ):
            assert await installer.install(Target("prettier")) is None
            failure = await installer.install(Target("prettier-typo"))
        assert failure is not None
        assert not failure.retryable

    @pytest.mark.asyncio
    async def test_dispatch_with_cask_already_present_app(self, no_wait_policy):
        installer = get_installer("cask")
        responses = [
            ("", 1),
            ("Error: It seems there is already an App at '/Applications/Docker.app'.", 1),
        ]
        with patch(
            "devstrap.installers.base.run_command_async",
            new=AsyncMock(side_effect=responses),
        ) as mock_run:
            outcome = await dispatch(Target("docker"), installer, no_wait_policy)

        assert outcome.kind == OutcomeKind.ALREADY_PRESENT
        assert mock_run.await_count == 2

    @pytest.mark.asyncio
    async def test_real_shell_commands(self):
        installer = CommandInstaller("shell", check="test {name} = present", install="exit 3")
        assert await installer.is_present(Target("present"))
        assert not await installer.is_present(Target("absent"))
        failure = await installer.install(Target("anything"))
        assert failure is not None
        assert failure.retryable
