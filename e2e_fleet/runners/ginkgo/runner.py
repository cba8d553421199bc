"""Ginkgo test runner implementation."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from e2e_fleet.runners.base import RunnerOutput, TestRunner
from e2e_fleet.runners.ginkgo.config import GinkgoConfig
from e2e_fleet.runners.process import run_process

log = logging.getLogger(__name__)

VERSION_MISMATCH_MARKER = "Ginkgo detected a version mismatch"


@dataclass(frozen=True, kw_only=True)
class GinkgoRunner(TestRunner):
    """Run Ginkgo suites with the configured CLI.

    When the installed CLI reports a version mismatch with the suite, the
    execution is repeated once through `go run` so the suite's own Ginkgo
    version is used.
    """

    config: GinkgoConfig

    @classmethod
    def from_config(cls, config: GinkgoConfig) -> "GinkgoRunner":
        """Create runner from its configuration."""
        return cls(config=config)

    @property
    def flags(self) -> Sequence[str]:
        """Flags configured for every execution of this runner."""
        return self.config.to_flags()

    async def execute(self, directory: Path, flags: Sequence[str]) -> RunnerOutput:
        """Run the Ginkgo suite in a directory."""
        result = await run_process(
            [self.config.executable, *flags],
            cwd=directory,
            kill_grace_period=self.config.kill_grace_period,
        )

        if result.exit_status != 0 and VERSION_MISMATCH_MARKER in result.output:
            log.warning(
                "Ginkgo version mismatch in %s, retrying with go run %s",
                directory,
                self.config.fallback_package,
            )
            result = await run_process(
                [
                    self.config.go_executable,
                    "run",
                    self.config.fallback_package,
                    *flags,
                ],
                cwd=directory,
                kill_grace_period=self.config.kill_grace_period,
            )

        return result
