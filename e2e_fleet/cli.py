"""CLI entry point for fleet-wide end-to-end test runs."""

import argparse
import asyncio
import json
import logging
import os
import sys
import tempfile
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import TextIO

import aiohttp
from pydantic import SecretStr, ValidationError

from e2e_fleet.acquisition import GitCloner, TestDirectoryResolver
from e2e_fleet.aggregator import RetryAggregator
from e2e_fleet.attempt import AttemptRunner
from e2e_fleet.discovery import DiscoveryConfig, DiscoveryError, GitHubDiscovery
from e2e_fleet.dispatcher import Dispatcher
from e2e_fleet.models.settings import RunSettings
from e2e_fleet.models.task import clone_locator
from e2e_fleet.report import (
    NO_FINDINGS_TEXT,
    NOT_FOUND_TEXT,
    POLICY_SKIP_TEXT,
    FileSink,
    ReportEntry,
    RunReport,
)
from e2e_fleet.runners.loading import load_runner_manifest

STATUS_SYMBOLS = {
    "clean": "✓",
    "findings": "✗",
    "not-found": "?",
    "policy": "-",
    "skipped": "-",
}


class ConfigurationError(Exception):
    """Raised when required configuration is missing."""


def entry_status(entry: ReportEntry) -> str:
    """Classify a report entry for the log summary."""
    if entry.text == NO_FINDINGS_TEXT:
        return "clean"
    if entry.text == NOT_FOUND_TEXT:
        return "not-found"
    if entry.text == POLICY_SKIP_TEXT:
        return "policy"
    return "findings"


def log_run_summary(log: logging.Logger, report: RunReport) -> None:
    """Log a formatted summary of the run."""
    log.info("=" * 80)
    log.info("Test Run Summary:")
    log.info("=" * 80)

    for entry in sorted(report.entries, key=lambda item: item.repository):
        status = entry_status(entry)
        log.info("%s %s: %s", STATUS_SYMBOLS[status], entry.repository, status)

    for repository in sorted(report.skipped):
        log.info("%s %s: skipped", STATUS_SYMBOLS["skipped"], repository)


def read_repository_names(stream: Iterable[str]) -> Sequence[str]:
    """Read one repository name per non-empty line."""
    return [name for line in stream if (name := line.strip())]


def select_repository_names(
    selected_repo: str | None, stdin: TextIO
) -> Sequence[str]:
    """Pick repository names from piped input, else from `--repo`.

    An empty result means the organization should be discovered.
    """
    if not stdin.isatty():
        if names := read_repository_names(stdin):
            return names
    if selected_repo:
        return [selected_repo]
    return []


async def run(
    settings: RunSettings,
    repository_names: Sequence[str] = (),
    token: str | None = None,
) -> int:
    """Run the fleet's test suites and return exit code."""
    log = logging.getLogger("e2e_fleet")

    if not repository_names and not token:
        raise ConfigurationError("GITHUB_TOKEN is not set")

    log.info("Loading runner: %s", settings.runner)
    manifest = load_runner_manifest(settings.runner)
    runner_config = manifest.config_cls(**json.loads(settings.runner_config))
    runner = manifest.runner_factory(runner_config)

    workdir = settings.workdir or Path(tempfile.mkdtemp(prefix="repos"))
    workdir.mkdir(parents=True, exist_ok=True)
    log.info("Cloning repositories to: %s", workdir)

    if repository_names:
        locators = [clone_locator(settings.org, name) for name in repository_names]
    else:
        discovery_config = DiscoveryConfig(
            token=SecretStr(token or ""),
            org=settings.org,
            name_filter=settings.name_filter,
            api_base_url=settings.api_base_url,
        )
        async with GitHubDiscovery.from_config(discovery_config) as discovery:
            locators = await discovery.list_repositories()

    with (
        FileSink.create(settings.report_path) as report_sink,
        FileSink.create(settings.skipped_path) as skipped_sink,
    ):
        report = RunReport(report_sink=report_sink, skipped_sink=skipped_sink)

        if not locators:
            log.info("No repositories found")
            return 0

        log.info("Found %d repositories", len(locators))

        dispatcher = Dispatcher(
            cloner=GitCloner(),
            resolver=TestDirectoryResolver(),
            aggregator=RetryAggregator(attempt_runner=AttemptRunner.for_runner(runner)),
            workdir=workdir,
            attempts=settings.attempts,
            deadline=settings.deadline,
        )
        await dispatcher.run(locators, settings.concurrency_limit, report)

    log_run_summary(log, report)
    log.info("Results saved in %s", settings.report_path)
    log.info("Skipped repositories saved in %s", settings.skipped_path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="e2e-fleet",
        description="Run e2e test suites across an organization's repositories",
    )
    parser.add_argument(
        "--repo",
        default="",
        help="Run tests on a single repository (e.g., 'cloud-ingress-operator')",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=5,
        help="Maximum number of concurrent test executions",
    )
    parser.add_argument("--org", default="openshift", help="GitHub organization")
    parser.add_argument(
        "--name-filter",
        default="operator",
        help="Substring repository names must contain to be discovered",
    )
    parser.add_argument("--runner", default="ginkgo", help="Test runner key")
    parser.add_argument(
        "--runner-config",
        default="{}",
        help="JSON configuration for the test runner",
    )
    parser.add_argument("--attempts", type=int, default=3, help="Runs per repository")
    parser.add_argument(
        "--deadline",
        type=float,
        default=180.0,
        help="Seconds allowed for all runs of one repository",
    )
    parser.add_argument(
        "--report", type=Path, default=Path("test_report.txt"), help="Report file"
    )
    parser.add_argument(
        "--skipped",
        type=Path,
        default=Path("skipped_repos.txt"),
        help="File listing repositories without e2e tests",
    )
    parser.add_argument(
        "--workdir",
        type=Path,
        default=None,
        help="Directory to clone into (a temporary directory by default)",
    )
    return parser


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = RunSettings(
            org=args.org,
            name_filter=args.name_filter,
            api_base_url=os.environ.get("GITHUB_API_URL", "https://api.github.com"),
            runner=args.runner,
            runner_config=args.runner_config,
            concurrency_limit=args.limit,
            attempts=args.attempts,
            deadline=args.deadline,
            report_path=args.report,
            skipped_path=args.skipped,
            workdir=args.workdir,
        )
    except ValidationError as error:
        parser.error(str(error))

    repository_names = select_repository_names(args.repo, sys.stdin)

    try:
        exit_code = asyncio.run(
            run(
                settings,
                repository_names=repository_names,
                token=os.environ.get("GITHUB_TOKEN"),
            )
        )
    except (ConfigurationError, DiscoveryError, aiohttp.ClientError, OSError) as error:
        parser.error(str(error))

    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
