"""Run-wide settings resolved from the command line and environment."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from e2e_fleet.aggregator import DEFAULT_ATTEMPTS, DEFAULT_DEADLINE
from e2e_fleet.dispatcher import DEFAULT_CONCURRENCY


class RunSettings(BaseModel):
    """Settings for one orchestration run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    org: str = "openshift"
    name_filter: str = "operator"
    api_base_url: str = "https://api.github.com"
    runner: str = "ginkgo"
    runner_config: str = Field(default="{}", description="JSON runner configuration")
    concurrency_limit: int = Field(default=DEFAULT_CONCURRENCY, ge=1)
    attempts: int = Field(default=DEFAULT_ATTEMPTS, ge=1)
    deadline: float = Field(default=DEFAULT_DEADLINE, ge=0)
    report_path: Path = Path("test_report.txt")
    skipped_path: Path = Path("skipped_repos.txt")
    workdir: Path | None = None
