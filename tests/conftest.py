"""Pytest fixtures and utilities for devstrap tests."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from devstrap.engine import AttemptPolicy, Target, fixed_backoff


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def no_wait_policy() -> AttemptPolicy:
    """Three attempts without any backoff delay."""
    return AttemptPolicy(max_attempts=3, backoff=fixed_backoff(0))


@pytest.fixture
def targets() -> list[Target]:
    return [Target("git"), Target("gh", label="GitHub CLI"), Target("jq"), Target("fzf")]


@pytest.fixture
def manifest_text() -> str:
    return """
settings:
  concurrency: 2
  max_attempts: 2
  backoff_seconds: 0
batches:
  - ecosystem: brew
    concurrency: 4
    packages:
      - git
      - {name: gh, label: GitHub CLI}
  - ecosystem: npm
    packages: [prettier]
  - ecosystem: go
    backoff_seconds: 5
    packages:
      - {name: gopls, source: golang.org/x/tools/gopls@latest}
"""


@pytest.fixture
def manifest_file(temp_dir: Path, manifest_text: str) -> Path:
    path = temp_dir / "manifest.yaml"
    path.write_text(manifest_text)
    return path


@pytest.fixture
def isolated_env(temp_dir: Path, monkeypatch) -> Path:
    """Point config and log locations into the temp dir."""
    monkeypatch.setattr(Path, "home", lambda: temp_dir)
    monkeypatch.delenv("DEVSTRAP_MANIFEST", raising=False)
    monkeypatch.delenv("DEVSTRAP_LOG", raising=False)
    return temp_dir
