"""Test runners registered as package entry points."""

from importlib.metadata import entry_points
from typing import Any

from e2e_fleet.runners.manifest import RunnerManifest

ENTRY_POINT_GROUP = "e2e_fleet.runners"


class RunnerNotFoundError(Exception):
    """Raised when no installed package registers the requested runner."""


def available_runners() -> list[str]:
    """Return the keys of all registered runners, sorted."""
    return sorted({entry.name for entry in entry_points(group=ENTRY_POINT_GROUP)})


def load_runner_manifest(key: str) -> RunnerManifest[Any]:
    """Import the manifest registered under `key` (for example "ginkgo")."""
    matches = entry_points(group=ENTRY_POINT_GROUP, name=key)
    if not matches:
        raise RunnerNotFoundError(
            f"Runner '{key}' not found. Available runners: {available_runners()}"
        )

    manifest: RunnerManifest[Any] = next(iter(matches)).load()
    return manifest
