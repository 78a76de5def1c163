"""Package manager adapters implementing the engine's Installer protocol."""

from .base import CommandInstaller, render_command
from .ecosystems import APP_ALREADY_EXISTS, ECOSYSTEMS, EcosystemSpec, get_installer

__all__ = [
    "CommandInstaller",
    "render_command",
    "APP_ALREADY_EXISTS",
    "EcosystemSpec",
    "ECOSYSTEMS",
    "get_installer",
]
