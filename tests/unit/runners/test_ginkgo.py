"""Tests for the Ginkgo runner."""

import asyncio
import stat
from pathlib import Path

import pytest

from e2e_fleet.runners.ginkgo import GinkgoConfig, GinkgoRunner, ginkgo_manifest
from e2e_fleet.runners.process import run_process
from e2e_fleet.testing.factories import GinkgoConfigFactory


def write_script(path: Path, body: str) -> Path:
    """Write an executable shell script."""
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


class TestGinkgoConfig:
    """Tests for GinkgoConfig."""

    def test_default_flags(self) -> None:
        """Defaults match the fleet's standard invocation."""
        assert GinkgoConfig().to_flags() == [
            "-p",
            "-nodes=4",
            "--flake-attempts=3",
            "--tags=e2e,osde2e",
            "--no-color",
            "-v",
            "--trace",
            ".",
        ]

    def test_omits_tags_when_empty(self) -> None:
        """No tags flag is emitted without tags."""
        flags = GinkgoConfig(tags=(), extra_flags=()).to_flags()

        assert flags == ["-p", "-nodes=4", "--flake-attempts=3", "."]

    def test_rejects_zero_nodes(self) -> None:
        """At least one parallel node is required."""
        with pytest.raises(ValueError, match="nodes"):
            GinkgoConfig(nodes=0)

    def test_manifest_builds_runner(self) -> None:
        """The manifest factory creates a runner from its config."""
        config = GinkgoConfigFactory.build()

        runner = ginkgo_manifest.runner_factory(config)

        assert isinstance(runner, GinkgoRunner)
        assert runner.flags == config.to_flags()


class TestGinkgoRunner:
    """Tests for GinkgoRunner using stand-in executables."""

    async def test_captures_combined_output_and_status(self, tmp_path: Path) -> None:
        """Stdout and stderr are combined and a failure status is returned."""
        script = write_script(
            tmp_path / "ginkgo",
            'echo "[FAIL] suite test"\necho "stderr line" >&2\necho "args: $*"\nexit 1',
        )
        runner = GinkgoRunner(config=GinkgoConfig(executable=str(script)))

        result = await runner.execute(tmp_path, ["-v", "."])

        assert result.exit_status == 1
        assert "[FAIL] suite test" in result.output
        assert "stderr line" in result.output
        assert "args: -v ." in result.output

    async def test_runs_in_test_directory(self, tmp_path: Path) -> None:
        """The test directory is the working directory."""
        test_dir = tmp_path / "test" / "e2e"
        test_dir.mkdir(parents=True)
        script = write_script(tmp_path / "ginkgo", "pwd")
        runner = GinkgoRunner(config=GinkgoConfig(executable=str(script)))

        result = await runner.execute(test_dir, [])

        assert result.output.strip() == str(test_dir.resolve())
        assert result.exit_status == 0

    async def test_falls_back_to_go_run_on_version_mismatch(
        self, tmp_path: Path
    ) -> None:
        """A version mismatch repeats the execution through go run."""
        ginkgo = write_script(
            tmp_path / "ginkgo",
            'echo "Ginkgo detected a version mismatch"\nexit 1',
        )
        go = write_script(tmp_path / "go", 'echo "go $*"\nexit 0')
        runner = GinkgoRunner(
            config=GinkgoConfig(executable=str(ginkgo), go_executable=str(go))
        )

        result = await runner.execute(tmp_path, ["-v"])

        assert result.exit_status == 0
        assert result.output.strip() == "go run github.com/onsi/ginkgo/v2/ginkgo -v"

    async def test_raises_when_executable_missing(self, tmp_path: Path) -> None:
        """A missing runner executable is reported clearly."""
        runner = GinkgoRunner(
            config=GinkgoConfig(executable=str(tmp_path / "missing-ginkgo"))
        )

        with pytest.raises(RuntimeError, match="was not found in PATH"):
            await runner.execute(tmp_path, [])


async def test_cancellation_terminates_process(tmp_path: Path) -> None:
    """Cancelling the awaiting task kills the running process."""
    pid_file = tmp_path / "pid"
    script = write_script(tmp_path / "slow", f"echo $$ > {pid_file}\nexec sleep 30")

    task = asyncio.create_task(run_process([str(script)], cwd=tmp_path))
    for _ in range(100):
        if pid_file.exists() and pid_file.read_text().strip():
            break
        await asyncio.sleep(0.02)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    pid = int(pid_file.read_text())
    assert not Path(f"/proc/{pid}").exists() or _is_zombie(pid)


def _is_zombie(pid: int) -> bool:
    status = Path(f"/proc/{pid}/status").read_text()
    return "State:\tZ" in status
