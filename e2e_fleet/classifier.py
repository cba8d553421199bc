"""Classify raw test-runner output into failing, flaky and critical results."""

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from e2e_fleet.models.result import AttemptResult

FAIL_MARKER = re.compile(r"\[FAIL\]", re.IGNORECASE)
FLAKY_MARKER = re.compile(r"\[FLAK(?:EY|E|Y)\b", re.IGNORECASE)
SUMMARY_HEADER = re.compile(r"^Summarizing\b")

COMPILATION_ERROR_STATUS = 2
SETUP_ERROR_STATUS = 3

CRITICAL_TAGS: Mapping[int, str] = {
    COMPILATION_ERROR_STATUS: "[COMPILATION ERROR]",
    SETUP_ERROR_STATUS: "[SETUP ERROR]",
}


class ClassifierStrategy(Protocol):
    """Strategy extracting failing and flaky lines from runner output."""

    name: str

    def extract(self, lines: Sequence[str]) -> tuple[list[str], list[str]]:
        """Return `(failing, flaky)` lines in the order they appear."""
        ...


def _split_markers(lines: Iterable[str]) -> tuple[list[str], list[str]]:
    failing: list[str] = []
    flaky: list[str] = []
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if FAIL_MARKER.search(line):
            failing.append(line)
        elif FLAKY_MARKER.search(line):
            flaky.append(line)
    return failing, flaky


@dataclass(frozen=True)
class LineScanStrategy:
    """Consider every line of the output."""

    name: str = "line-scan"

    def extract(self, lines: Sequence[str]) -> tuple[list[str], list[str]]:
        """Return marker lines found anywhere in the output."""
        return _split_markers(lines)


@dataclass(frozen=True)
class SummaryBlockStrategy:
    """Take failing lines from the runner's summary blocks.

    A block opens at a "Summarizing" header and closes at the first blank
    line or "Ran " line that follows it. Ginkgo lists only failures there, so
    flaky markers are still collected from the whole output.
    """

    name: str = "summary-block"

    def extract(self, lines: Sequence[str]) -> tuple[list[str], list[str]]:
        """Return failing lines of summary blocks and flaky lines of all output."""
        failing, _ = _split_markers(self._block_lines(lines))
        _, flaky = _split_markers(lines)
        return failing, flaky

    @staticmethod
    def _block_lines(lines: Sequence[str]) -> list[str]:
        selected: list[str] = []
        in_block = False
        for raw in lines:
            line = raw.strip()
            if SUMMARY_HEADER.match(line):
                in_block = True
                continue
            if not in_block:
                continue
            if not line or line.startswith("Ran "):
                in_block = False
                continue
            selected.append(line)
        return selected


def select_strategy(lines: Sequence[str]) -> ClassifierStrategy:
    """Pick the summary-block strategy when the output carries a summary."""
    if any(SUMMARY_HEADER.match(line.strip()) for line in lines):
        return SummaryBlockStrategy()
    return LineScanStrategy()


def critical_error(output: str, exit_status: int) -> str | None:
    """Return the tagged critical message for suite-level failures."""
    tag = CRITICAL_TAGS.get(exit_status)
    if tag is None:
        return None
    return f"{tag} {output}"


def classify(output: str, exit_status: int) -> AttemptResult:
    """Classify the combined output of one test-suite execution.

    Compilation and setup failures invalidate the run, so no failing or
    flaky lines are reported alongside them. A line carrying both markers
    counts as failing.
    """
    if (critical := critical_error(output, exit_status)) is not None:
        return AttemptResult(critical=critical, exit_status=exit_status)

    lines = output.splitlines()
    failing, flaky = select_strategy(lines).extract(lines)
    return AttemptResult(failing=failing, flaky=flaky, exit_status=exit_status)
