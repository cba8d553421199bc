"""Dispatcher running repository units under a concurrency limit."""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from e2e_fleet.acquisition import RepositoryNotFoundError
from e2e_fleet.aggregator import DEFAULT_ATTEMPTS, DEFAULT_DEADLINE, RetryAggregator
from e2e_fleet.models.task import RepositoryTask
from e2e_fleet.report import (
    NOT_FOUND_TEXT,
    POLICY_SKIP_TEXT,
    RunReport,
    format_summary,
)

log = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5
DEFAULT_SKIP_POLICY = frozenset({"cluster-kube-apiserver-operator"})


class Cloner(Protocol):
    """Acquires a repository into a local directory."""

    async def clone(self, locator: str, destination: Path) -> Path:
        """Clone and return the local path; raise RepositoryNotFoundError."""
        ...


class DirectoryResolver(Protocol):
    """Locates the test directory of an acquired repository."""

    def resolve(self, repository_path: Path) -> Path | None:
        """Return the test directory, or None when there is none."""
        ...


def unique_tasks(locators: Iterable[str]) -> list[RepositoryTask]:
    """Create one task per repository name, in sorted locator order.

    The name keys the clone destination and the report entry, so a second
    locator with an already seen name is dropped.
    """
    tasks: dict[str, RepositoryTask] = {}
    for locator in sorted(set(locators)):
        task = RepositoryTask.from_locator(locator)
        if task.name in tasks:
            log.warning(
                "Ignoring %s: repository name %s already comes from %s",
                locator,
                task.name,
                tasks[task.name].locator,
            )
            continue
        tasks[task.name] = task
    return list(tasks.values())


@dataclass(frozen=True, kw_only=True)
class Dispatcher:
    """Runs clone, resolve, aggregate and record for every repository.

    Each repository is an independent unit; at most `concurrency_limit`
    units hold a slot at once. A failing unit never affects the others.
    """

    cloner: Cloner
    resolver: DirectoryResolver
    aggregator: RetryAggregator
    workdir: Path
    attempts: int = DEFAULT_ATTEMPTS
    deadline: float = DEFAULT_DEADLINE
    skip_policy: frozenset[str] = field(default=DEFAULT_SKIP_POLICY)

    async def run(
        self,
        locators: Iterable[str],
        concurrency_limit: int = DEFAULT_CONCURRENCY,
        report: RunReport | None = None,
    ) -> RunReport:
        """Process all repositories and return the completed report.

        Args:
            locators: Clone locators of the repositories to process
            concurrency_limit: Maximum number of units running at once
            report: Report to record into (a fresh one when omitted)

        Returns:
            The report, holding exactly one record per repository

        """
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")

        report = report if report is not None else RunReport()
        tasks = unique_tasks(locators)

        if not tasks:
            log.info("No repositories to process")
            return report

        log.info(
            "Dispatching %d repositories with concurrency limit %d",
            len(tasks),
            concurrency_limit,
        )
        semaphore = asyncio.Semaphore(concurrency_limit)
        results = await asyncio.gather(
            *(self._run_unit(task, semaphore, report) for task in tasks),
            return_exceptions=True,
        )
        log.info("All repository units finished")

        await self._process_results(tasks, results, report)
        return report

    async def _run_unit(
        self,
        task: RepositoryTask,
        semaphore: asyncio.Semaphore,
        report: RunReport,
    ) -> None:
        async with semaphore:
            await self.process_repository(task, report)

    async def _process_results(
        self,
        tasks: Sequence[RepositoryTask],
        results: Sequence[None | BaseException],
        report: RunReport,
    ) -> None:
        """Record units that ended with an unexpected exception."""
        recorded = set(report.repositories)

        for task, result in zip(tasks, results, strict=True):
            if not isinstance(result, Exception):
                continue
            log.error(
                "Repository unit failed: repo=%s error=%s",
                task.name,
                result,
                exc_info=result,
            )
            if task.name not in recorded:
                await report.record(task.name, f"Unexpected error: {result}")

    async def process_repository(self, task: RepositoryTask, report: RunReport) -> None:
        """Run the sequential steps of one repository unit."""
        if task.name in self.skip_policy:
            log.info("Skipping repository by policy: %s", task.name)
            await report.record(task.name, POLICY_SKIP_TEXT)
            return

        log.info("Cloning repository: %s", task.locator)
        try:
            task.local_path = await self.cloner.clone(
                task.locator, self.workdir / task.name
            )
        except RepositoryNotFoundError as error:
            log.warning(
                "Repository not found or failed to clone: %s (%s)", task.locator, error
            )
            await report.record(task.name, NOT_FOUND_TEXT)
            return

        task.test_directory = self.resolver.resolve(task.local_path)
        if task.test_directory is None:
            log.info("Skipping repository without e2e test directory: %s", task.name)
            await report.record_skipped(task.name)
            return

        outcome = await self.aggregator.aggregate(
            task.test_directory, self.attempts, self.deadline
        )
        log.info(
            "Finished %s: status=%s failing=%d flaky=%d attempts=%d",
            task.name,
            outcome.status,
            len(outcome.failing),
            len(outcome.flaky),
            outcome.attempts,
        )
        await report.record(task.name, format_summary(outcome))
