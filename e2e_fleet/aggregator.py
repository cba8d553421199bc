"""Repeated execution of one repository's test suite under a deadline."""

import asyncio
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from e2e_fleet.attempt import AttemptRunner
from e2e_fleet.models.result import AggregatedOutcome, AttemptResult, OutcomeStatus

log = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 3
DEFAULT_DEADLINE = 180.0


def timeout_note(deadline: float) -> str:
    """Describe an aggregation abandoned at its deadline."""
    return (
        f"Test suite took too long (>{deadline / 60:g} minutes), "
        "skipping remaining attempts."
    )


class OrderedSet:
    """Insertion-ordered set of identifiers."""

    def __init__(self) -> None:
        self._items: dict[str, None] = {}

    def update(self, items: Iterable[str]) -> None:
        for item in items:
            self._items.setdefault(item, None)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items


@dataclass
class OutcomeAccumulator:
    """Running merge of attempt results for one repository.

    Produces exactly one `AggregatedOutcome`; finalizing twice is an error.
    """

    failing: OrderedSet = field(default_factory=OrderedSet)
    flaky: OrderedSet = field(default_factory=OrderedSet)
    attempts: int = 0
    _finalized: bool = field(default=False, repr=False)

    def merge(self, result: AttemptResult) -> None:
        self.failing.update(result.failing)
        self.flaky.update(result.flaky)
        self.attempts += 1

    def finalize(
        self,
        status: OutcomeStatus,
        *,
        critical: str | None = None,
        note: str | None = None,
    ) -> AggregatedOutcome:
        if self._finalized:
            raise RuntimeError("Outcome has already been finalized")
        self._finalized = True
        return AggregatedOutcome(
            status=status,
            failing=tuple(self.failing),
            flaky=tuple(self.flaky),
            critical=critical,
            attempts=self.attempts,
            note=note,
        )


@dataclass(frozen=True, kw_only=True)
class RetryAggregator:
    """Runs a suite several times and merges the classified results.

    A failure seen on only some attempts is kept as a failure; flaky
    classification is left to the runner's own tagging.
    """

    attempt_runner: AttemptRunner

    async def aggregate(
        self,
        test_directory: Path,
        attempts: int = DEFAULT_ATTEMPTS,
        deadline: float = DEFAULT_DEADLINE,
    ) -> AggregatedOutcome:
        """Run up to `attempts` executions within `deadline` seconds.

        Args:
            test_directory: Directory containing the test suite
            attempts: Maximum number of executions
            deadline: Wall-clock budget in seconds for all executions together

        Returns:
            A `critical` outcome as soon as one execution reports a
            compilation or setup failure, a `timed_out` outcome holding the
            results gathered so far when the deadline passes, otherwise a
            `completed` outcome

        """
        if attempts < 1:
            raise ValueError("attempts must be at least 1")

        accumulator = OutcomeAccumulator()
        loop = asyncio.get_running_loop()
        expires_at = loop.time() + deadline

        try:
            async with asyncio.timeout_at(expires_at):
                for attempt in range(1, attempts + 1):
                    if loop.time() >= expires_at:
                        raise TimeoutError

                    log.info(
                        "Running tests in %s (attempt %d/%d)",
                        test_directory,
                        attempt,
                        attempts,
                    )
                    result = await self.attempt_runner.run_once(test_directory)

                    if result.critical:
                        accumulator.attempts += 1
                        log.warning(
                            "Critical failure in %s on attempt %d, stopping",
                            test_directory,
                            attempt,
                        )
                        return accumulator.finalize(
                            "critical", critical=result.critical
                        )

                    accumulator.merge(result)
        except TimeoutError:
            log.warning(
                "Deadline of %.0fs exceeded in %s after %d attempt(s)",
                deadline,
                test_directory,
                accumulator.attempts,
            )
            return accumulator.finalize("timed_out", note=timeout_note(deadline))

        return accumulator.finalize("completed")
