"""Fixtures for integration tests."""

import subprocess
from pathlib import Path
from typing import Protocol

import pytest


class CreateRepoFn(Protocol):
    """Protocol for source repository creation function."""

    def __call__(self, name: str, files: dict[str, str]) -> str:
        """Create a committed repository and return its clone locator."""


def _git(cwd: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


@pytest.fixture
def create_repo(tmp_path: Path) -> CreateRepoFn:
    """Return a function creating local source repositories."""
    sources = tmp_path / "sources"

    def _create(name: str, files: dict[str, str]) -> str:
        repo = sources / name
        repo.mkdir(parents=True)
        _git(repo, "init")
        _git(repo, "config", "user.email", "test@example.com")
        _git(repo, "config", "user.name", "Test")
        for relative, content in files.items():
            path = repo / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        _git(repo, "add", "-A")
        _git(repo, "commit", "--allow-empty", "-m", "initial")
        return f"file://{repo}"

    return _create
