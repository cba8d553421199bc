"""Acquire repositories and locate their end-to-end test suites."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

DEFAULT_TEST_PATH = ("test", "e2e")


class RepositoryNotFoundError(Exception):
    """Raised when a repository cannot be cloned."""


@dataclass(frozen=True, kw_only=True)
class GitCloner:
    """Shallow-clone repositories with the git CLI."""

    executable: str = "git"
    depth: int = 1

    async def clone(self, locator: str, destination: Path) -> Path:
        """Clone `locator` into `destination` and return the local path.

        Raises:
            RepositoryNotFoundError: If git fails for any reason

        """
        try:
            process = await asyncio.create_subprocess_exec(
                self.executable,
                "clone",
                f"--depth={self.depth}",
                locator,
                str(destination),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as error:
            raise RepositoryNotFoundError(
                f"git executable '{self.executable}' was not found in PATH"
            ) from error

        _, stderr = await process.communicate()

        if process.returncode != 0:
            raise RepositoryNotFoundError(
                f"Git clone of {locator} failed: {stderr.decode().strip()}"
            )

        return destination


@dataclass(frozen=True, kw_only=True)
class TestDirectoryResolver:
    """Locate the end-to-end test directory inside a cloned repository.

    A directory qualifies when it exists and directly contains at least one
    file with one of the configured source suffixes.
    """

    __test__ = False

    relative_path: Sequence[str] = DEFAULT_TEST_PATH
    source_suffixes: frozenset[str] = frozenset({".go"})

    def resolve(self, repository_path: Path) -> Path | None:
        """Return the test directory, or None when the repository has none."""
        candidate = repository_path.joinpath(*self.relative_path)
        if not candidate.is_dir():
            log.debug("No test directory at %s", candidate)
            return None

        if not has_test_sources(candidate, self.source_suffixes):
            log.debug("No test sources in %s", candidate)
            return None

        return candidate


def has_test_sources(directory: Path, suffixes: frozenset[str]) -> bool:
    """Check if a directory directly contains a matching source file."""
    return any(
        entry.is_file() and entry.suffix in suffixes for entry in directory.iterdir()
    )
