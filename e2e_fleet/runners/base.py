"""Abstract base class for external test runners."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, kw_only=True)
class RunnerOutput:
    """Combined stdout/stderr text and exit status of one runner process."""

    output: str
    exit_status: int


class TestRunner(ABC):
    """Abstract base for external test-runner invocations.

    Implementations spawn exactly one logical test-suite execution per call
    and report failures through the returned output, never by raising.
    """

    __test__ = False

    @property
    @abstractmethod
    def flags(self) -> Sequence[str]:
        """Flags configured for every execution of this runner."""

    @abstractmethod
    async def execute(self, directory: Path, flags: Sequence[str]) -> RunnerOutput:
        """Run the test suite found in a directory.

        Args:
            directory: Test directory used as working directory
            flags: Command line flags passed to the runner

        Returns:
            Combined output and exit status of the runner process

        """
