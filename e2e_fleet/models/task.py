"""Models for repositories moving through the dispatcher."""

from dataclasses import dataclass
from pathlib import Path


def repository_name(locator: str) -> str:
    """Derive a repository name from its clone locator.

    >>> repository_name("https://github.com/openshift/addon-operator.git")
    'addon-operator'
    """
    return locator.rstrip("/").rsplit("/", 1)[-1].removesuffix(".git")


@dataclass(kw_only=True)
class RepositoryTask:
    """One repository being processed by a single dispatcher unit.

    The local path and test directory are filled in as acquisition proceeds.
    """

    name: str
    locator: str
    local_path: Path | None = None
    test_directory: Path | None = None

    @classmethod
    def from_locator(cls, locator: str) -> "RepositoryTask":
        """Create a task whose name is derived from the clone locator."""
        return cls(name=repository_name(locator), locator=locator)


def clone_locator(owner: str, name: str, host: str = "https://github.com") -> str:
    """Build the clone locator of a repository hosted under `owner`."""
    return f"{host.rstrip('/')}/{owner}/{name}.git"
