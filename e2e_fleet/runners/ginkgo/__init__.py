"""Ginkgo test runner module."""

from e2e_fleet.runners.ginkgo.config import GinkgoConfig
from e2e_fleet.runners.ginkgo.manifest import ginkgo_manifest
from e2e_fleet.runners.ginkgo.runner import GinkgoRunner

__all__ = ["GinkgoConfig", "GinkgoRunner", "ginkgo_manifest"]
