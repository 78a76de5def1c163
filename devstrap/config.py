"""Manifest loading and validation.

A manifest lists the package batches to install, one batch per ecosystem,
plus engine settings. Manifests are YAML; plain JSON is accepted as well since
it is a subset of YAML.

Example:

    settings:
      concurrency: 1
      max_attempts: 3
      backoff_seconds: 2
    batches:
      - ecosystem: brew
        concurrency: 4
        backoff_seconds: 1
        packages: [git, gh, {name: ripgrep, label: rg}]
      - ecosystem: go
        backoff_seconds: 5
        packages:
          - {name: gopls, source: golang.org/x/tools/gopls@latest}
"""

import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from devstrap.engine import Target
from devstrap.engine.policy import (
    BACKOFF_STRATEGIES,
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    AttemptPolicy,
    build_policy,
)
from devstrap.errors import format_field_error


class ConfigError(Exception):
    """Raised when manifest loading or validation fails.

    Syntax errors carry the line number, column, and a caret indicator.
    """
    pass


# Dangerous shell metacharacters that could enable command injection
DANGEROUS_PATTERNS = [r"\$\(", r"`"]

COMMAND_KEYS = ("check", "install")


def is_command_safe(command: str) -> bool:
    """Check if command contains dangerous shell metacharacters."""
    if not command:
        return False
    for pattern in DANGEROUS_PATTERNS:
        if re.search(pattern, command):
            return False
    return True


@dataclass(frozen=True)
class EngineSettings:
    """Effective engine configuration for one batch."""
    concurrency: int = 1
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    backoff: str = "fixed"

    def merged(self, **values: Any) -> "EngineSettings":
        """Return a copy with every non-None value applied."""
        changes = {k: v for k, v in values.items() if v is not None}
        return replace(self, **changes)

    def policy(self) -> AttemptPolicy:
        return build_policy(self.max_attempts, self.backoff_seconds, self.backoff)


@dataclass
class BatchConfig:
    ecosystem: str
    targets: list[Target] = field(default_factory=list)
    concurrency: int | None = None
    max_attempts: int | None = None
    backoff_seconds: float | None = None
    backoff: str | None = None
    commands: dict[str, str] = field(default_factory=dict)


@dataclass
class Manifest:
    settings: EngineSettings = field(default_factory=EngineSettings)
    batches: list[BatchConfig] = field(default_factory=list)
    log_file: Path | None = None

    @property
    def ecosystems(self) -> list[str]:
        return [b.ecosystem for b in self.batches]

    def settings_for(self, batch: BatchConfig, **overrides: Any) -> EngineSettings:
        """Resolve settings: overrides > batch fields > manifest settings."""
        return self.settings.merged(
            concurrency=batch.concurrency,
            max_attempts=batch.max_attempts,
            backoff_seconds=batch.backoff_seconds,
            backoff=batch.backoff,
        ).merged(**overrides)

    def select(
        self, only: tuple[str, ...] = (), skip: tuple[str, ...] = ()
    ) -> list[BatchConfig]:
        """Filter batches by ecosystem name, keeping manifest order.

        Raises:
            ConfigError: If a name in ``only`` or ``skip`` matches no batch
        """
        known = set(self.ecosystems)
        unknown = sorted((set(only) | set(skip)) - known)
        if unknown:
            raise ConfigError(
                f"Unknown ecosystem(s): {', '.join(unknown)}. "
                f"Manifest defines: {', '.join(self.ecosystems) or 'none'}"
            )
        selected = [b for b in self.batches if not only or b.ecosystem in only]
        return [b for b in selected if b.ecosystem not in skip]


def _require_int(value: Any, path: str, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(format_field_error(path, f"must be an integer >= {minimum}"))
    return value


def _require_seconds(value: Any, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(format_field_error(path, "must be a number >= 0"))
    return float(value)


def _require_str(value: Any, path: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(format_field_error(path, "must be a non-empty string"))
    return value.strip()


def _optional_str(data: dict, key: str, path: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(format_field_error(f"{path}.{key}", "must be a string or null"))
    return value


def _validate_strategy(value: Any, path: str) -> str:
    if value not in BACKOFF_STRATEGIES:
        raise ConfigError(
            format_field_error(path, f"must be one of: {', '.join(BACKOFF_STRATEGIES)}")
        )
    return value


def _validate_tuning(data: dict, path: str) -> dict[str, Any]:
    """Validate the engine tuning keys shared by settings and batches."""
    values: dict[str, Any] = {}
    if data.get("concurrency") is not None:
        values["concurrency"] = _require_int(data["concurrency"], f"{path}.concurrency")
    if data.get("max_attempts") is not None:
        values["max_attempts"] = _require_int(data["max_attempts"], f"{path}.max_attempts")
    if data.get("backoff_seconds") is not None:
        values["backoff_seconds"] = _require_seconds(
            data["backoff_seconds"], f"{path}.backoff_seconds"
        )
    if data.get("backoff") is not None:
        values["backoff"] = _validate_strategy(data["backoff"], f"{path}.backoff")
    return values


def _validate_target(entry: Any, path: str) -> Target:
    if isinstance(entry, str):
        return Target(name=_require_str(entry, path))
    if not isinstance(entry, dict):
        raise ConfigError(
            format_field_error(path, f"must be a string or an object, got {type(entry).__name__}")
        )
    if "name" not in entry:
        raise ConfigError(format_field_error(f"{path}.name", "is required"))
    return Target(
        name=_require_str(entry["name"], f"{path}.name"),
        source=_optional_str(entry, "source", path),
        label=_optional_str(entry, "label", path),
    )


def _validate_commands(data: Any, path: str) -> dict[str, str]:
    if not isinstance(data, dict):
        raise ConfigError(format_field_error(path, "must be an object"))
    commands = {}
    for key, value in data.items():
        if key not in COMMAND_KEYS:
            raise ConfigError(
                format_field_error(f"{path}.{key}", f"is not one of: {', '.join(COMMAND_KEYS)}")
            )
        command = _require_str(value, f"{path}.{key}")
        if not is_command_safe(command):
            raise ConfigError(
                format_field_error(f"{path}.{key}", f"contains dangerous characters: {command[:50]}")
            )
        commands[key] = command
    return commands


def _validate_batch(data: Any, index: int) -> BatchConfig:
    path = f"batches[{index}]"
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must be an object, got {type(data).__name__}")
    if "ecosystem" not in data:
        raise ConfigError(format_field_error(f"{path}.ecosystem", "is required"))
    ecosystem = _require_str(data["ecosystem"], f"{path}.ecosystem")

    packages = data.get("packages") or []
    if not isinstance(packages, list):
        raise ConfigError(format_field_error(f"{path}.packages", "must be a list"))
    targets = [
        _validate_target(entry, f"{path}.packages[{i}]")
        for i, entry in enumerate(packages)
    ]

    commands = {}
    if data.get("commands") is not None:
        commands = _validate_commands(data["commands"], f"{path}.commands")

    return BatchConfig(
        ecosystem=ecosystem,
        targets=targets,
        commands=commands,
        **_validate_tuning(data, path),
    )


def validate_manifest(data: Any) -> Manifest:
    """Validate and convert a raw mapping into a Manifest.

    Args:
        data: Parsed YAML/JSON document

    Returns:
        Manifest with validated batches and settings

    Raises:
        ConfigError: If validation fails, naming the offending field path
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Manifest must be a mapping, got {type(data).__name__}")

    settings_data = data.get("settings") or {}
    if not isinstance(settings_data, dict):
        raise ConfigError(format_field_error("settings", "must be an object"))
    settings = EngineSettings().merged(**_validate_tuning(settings_data, "settings"))

    log_file = None
    if settings_data.get("log_file") is not None:
        log_file = Path(_require_str(settings_data["log_file"], "settings.log_file")).expanduser()

    if "batches" not in data:
        raise ConfigError("Missing required field: batches")
    batches_data = data["batches"]
    if not isinstance(batches_data, list):
        raise ConfigError(f"batches must be a list, got {type(batches_data).__name__}")

    batches = [_validate_batch(b, i) for i, b in enumerate(batches_data)]

    seen = set()
    for i, batch in enumerate(batches):
        if batch.ecosystem in seen:
            raise ConfigError(
                format_field_error(f"batches[{i}].ecosystem", f"'{batch.ecosystem}' is defined twice")
            )
        seen.add(batch.ecosystem)

    return Manifest(settings=settings, batches=batches, log_file=log_file)


def _format_syntax_error(original_text: str, error: yaml.MarkedYAMLError) -> str:
    """Format a YAML syntax error with line, caret, and context."""
    mark = error.problem_mark
    problem = error.problem or "invalid syntax"
    if mark is None:
        return f"Manifest syntax error: {problem}"

    line_num = mark.line + 1
    col_num = mark.column + 1
    msg_parts = [f"Manifest syntax error at line {line_num}, col {col_num}: {problem}"]

    lines = original_text.split("\n")
    if 1 <= line_num <= len(lines):
        msg_parts.append(lines[line_num - 1])
        msg_parts.append(" " * mark.column + "^")

    return "\n".join(msg_parts)


def load_manifest(path_or_text: Path | str) -> Manifest:
    """Load, parse, and validate a manifest.

    Args:
        path_or_text: A Path to a manifest file, or the manifest text itself

    Raises:
        ConfigError: If the file cannot be read, parsed, or validated
        TypeError: If path_or_text is neither Path nor str
    """
    if isinstance(path_or_text, Path):
        try:
            original_text = path_or_text.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigError(f"Manifest not found: {path_or_text}")
        except PermissionError:
            raise ConfigError(f"Permission denied reading manifest: {path_or_text}")
        except UnicodeDecodeError:
            raise ConfigError(f"Manifest is not valid UTF-8: {path_or_text}")
        except OSError as e:
            raise ConfigError(f"Error reading manifest {path_or_text}: {e}")
    elif isinstance(path_or_text, str):
        original_text = path_or_text
    else:
        raise TypeError(f"path_or_text must be Path or str, got {type(path_or_text).__name__}")

    try:
        data = yaml.safe_load(original_text)
    except yaml.MarkedYAMLError as e:
        raise ConfigError(_format_syntax_error(original_text, e)) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Manifest syntax error: {e}") from e

    return validate_manifest(data)


__all__ = [
    "ConfigError",
    "EngineSettings",
    "BatchConfig",
    "Manifest",
    "is_command_safe",
    "validate_manifest",
    "load_manifest",
]
