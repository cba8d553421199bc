"""Configuration for the Ginkgo test runner."""

from collections.abc import Sequence

from pydantic import BaseModel, Field


class GinkgoConfig(BaseModel):
    """Configuration for the Ginkgo test runner."""

    executable: str = "ginkgo"
    nodes: int = Field(default=4, ge=1)
    flake_attempts: int = Field(default=3, ge=0)
    tags: Sequence[str] = ("e2e", "osde2e")
    extra_flags: Sequence[str] = ("--no-color", "-v", "--trace")
    # Used when the installed CLI does not match the suite's Ginkgo version
    go_executable: str = "go"
    fallback_package: str = "github.com/onsi/ginkgo/v2/ginkgo"
    kill_grace_period: float = Field(default=5.0, ge=0)

    def to_flags(self) -> list[str]:
        """Build the command line flags used for every execution."""
        flags = [
            "-p",
            f"-nodes={self.nodes}",
            f"--flake-attempts={self.flake_attempts}",
        ]
        if self.tags:
            flags.append(f"--tags={','.join(self.tags)}")
        flags.extend(self.extra_flags)
        flags.append(".")
        return flags
