"""Built-in package manager adapters."""

from dataclasses import dataclass, field

from devstrap.config import ConfigError

from .base import CommandInstaller

APP_ALREADY_EXISTS = "It seems there is already an App at"


@dataclass(frozen=True)
class EcosystemSpec:
    name: str
    check: str
    install: str
    description: str
    already_exists_markers: tuple[str, ...] = field(default_factory=tuple)
    terminal_markers: tuple[str, ...] = field(default_factory=tuple)


_BUILTIN_ECOSYSTEMS = [
    EcosystemSpec(
        name="brew",
        check="brew list --formula {name}",
        install="brew install {name}",
        description="Homebrew formulae",
        already_exists_markers=(APP_ALREADY_EXISTS,),
        terminal_markers=("No available formula", "No formulae or casks found"),
    ),
    EcosystemSpec(
        name="cask",
        check="brew list --cask {name}",
        install="brew install --cask {name}",
        description="Homebrew casks",
        already_exists_markers=(APP_ALREADY_EXISTS,),
        terminal_markers=("No available cask", "No casks found", "No formulae or casks found"),
    ),
    EcosystemSpec(
        name="npm",
        check="npm list -g --depth=0 {name}",
        install="npm install -g {name}",
        description="Global npm packages",
        terminal_markers=("E404", "404 Not Found"),
    ),
    EcosystemSpec(
        name="pip",
        check="python3 -m pip show {name}",
        install="python3 -m pip install --no-cache-dir {name}",
        description="Python packages",
        terminal_markers=("No matching distribution found",),
    ),
    EcosystemSpec(
        name="cargo",
        check='cargo install --list | grep -q -- "^"{name}" v"',
        install="cargo install {name}",
        description="Rust crates",
        terminal_markers=("could not find `",),
    ),
    EcosystemSpec(
        name="go",
        check="command -v {name}",
        install="go install {source}",
        description="Go binaries (source is the module path)",
        terminal_markers=("is not in std", "no matching versions"),
    ),
    EcosystemSpec(
        name="vscode",
        check="code --list-extensions | grep -qix -- {name}",
        install="code --install-extension {name}",
        description="Visual Studio Code extensions",
        already_exists_markers=("is already installed",),
        terminal_markers=("not found",),
    ),
]

ECOSYSTEMS: dict[str, EcosystemSpec] = {spec.name: spec for spec in _BUILTIN_ECOSYSTEMS}


def get_installer(
    ecosystem: str, commands: dict[str, str] | None = None
) -> CommandInstaller:
    """Build the installer for ``ecosystem``, applying manifest command overrides.

    Raises:
        ConfigError: If the ecosystem is unknown and no check/install commands
            were given for it
    """
    commands = commands or {}
    spec = ECOSYSTEMS.get(ecosystem)

    if spec is None:
        missing = [key for key in ("check", "install") if not commands.get(key)]
        if missing:
            raise ConfigError(
                f"Unknown ecosystem '{ecosystem}' needs custom commands: "
                f"missing {', '.join(missing)}. "
                f"Built-in ecosystems: {', '.join(ECOSYSTEMS)}"
            )
        return CommandInstaller(ecosystem, check=commands["check"], install=commands["install"])

    return CommandInstaller(
        ecosystem,
        check=commands.get("check") or spec.check,
        install=commands.get("install") or spec.install,
        already_exists_markers=spec.already_exists_markers,
        terminal_markers=spec.terminal_markers,
    )


__all__ = [
    "APP_ALREADY_EXISTS",
    "EcosystemSpec",
    "ECOSYSTEMS",
    "get_installer",
]
