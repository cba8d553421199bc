"""Single execution of a repository's test suite."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from e2e_fleet.classifier import classify
from e2e_fleet.models.result import AttemptResult
from e2e_fleet.runners.base import TestRunner

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class AttemptRunner:
    """Runs a test suite once and classifies the output.

    Retries are not handled here; a non-zero exit status is a normal outcome
    that the classifier turns into data.
    """

    runner: TestRunner
    flags: Sequence[str] = field(default=())

    @classmethod
    def for_runner(cls, runner: TestRunner) -> "AttemptRunner":
        """Create attempt runner using the runner's configured flags."""
        return cls(runner=runner, flags=tuple(runner.flags))

    async def run_once(self, test_directory: Path) -> AttemptResult:
        """Execute the suite in `test_directory` and classify its output."""
        result = await self.runner.execute(test_directory, self.flags)
        log.debug(
            "Runner finished in %s with exit status %d",
            test_directory,
            result.exit_status,
        )
        return classify(result.output, result.exit_status)
