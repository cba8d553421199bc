"""Models for test-suite execution results."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, TypeAlias

OutcomeStatus: TypeAlias = Literal["completed", "critical", "timed_out"]


@dataclass(frozen=True, kw_only=True)
class AttemptResult:
    """Classified result of one test-suite execution."""

    failing: Sequence[str] = ()
    flaky: Sequence[str] = ()
    critical: str | None = None
    exit_status: int = 0


@dataclass(frozen=True, kw_only=True)
class AggregatedOutcome:
    """Merged result of all attempts made for one repository.

    Failing and flaky identifiers are de-duplicated and keep the order in
    which they were first seen.
    """

    status: OutcomeStatus
    failing: Sequence[str] = ()
    flaky: Sequence[str] = ()
    critical: str | None = None
    attempts: int = 0
    note: str | None = None

    @property
    def has_findings(self) -> bool:
        """Whether anything other than a clean pass was observed."""
        return bool(self.critical or self.failing or self.flaky)
