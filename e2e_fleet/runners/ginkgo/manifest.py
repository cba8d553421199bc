"""Ginkgo runner manifest."""

from e2e_fleet.runners.ginkgo.config import GinkgoConfig
from e2e_fleet.runners.ginkgo.runner import GinkgoRunner
from e2e_fleet.runners.manifest import RunnerManifest

ginkgo_manifest = RunnerManifest(
    config_cls=GinkgoConfig,
    runner_factory=GinkgoRunner.from_config,
)
