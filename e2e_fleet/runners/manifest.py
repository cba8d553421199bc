"""Runner manifest definition for the plugin system."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

from e2e_fleet.runners.base import TestRunner

ConfigT = TypeVar("ConfigT", bound=BaseModel)


@dataclass(frozen=True, kw_only=True)
class RunnerManifest(Generic[ConfigT]):
    """Manifest describing a test-runner plugin.

    The manifest contains references to the configuration class and the
    runner factory function for lazy loading of runners based on their key.
    """

    config_cls: type[ConfigT]
    runner_factory: Callable[[ConfigT], TestRunner]
