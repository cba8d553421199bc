"""Run report shared by concurrent dispatcher units."""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, Self, TextIO

from e2e_fleet.models.result import AggregatedOutcome

NOT_FOUND_TEXT = "Repository Not Found."
POLICY_SKIP_TEXT = "Repository skipped by policy."
NO_FINDINGS_TEXT = "No failing or flaky tests detected."


class TextSink(Protocol):
    """Append-only text destination."""

    def write(self, text: str) -> None:
        """Append text and make it durable."""
        ...


@dataclass(kw_only=True)
class FileSink:
    """Text sink backed by a file, flushed after every write."""

    path: Path
    handle: TextIO = field(repr=False)

    @classmethod
    def create(cls, path: Path) -> Self:
        """Create (or truncate) the file at `path`.

        Raises:
            OSError: If the file cannot be created

        """
        path.parent.mkdir(parents=True, exist_ok=True)
        return cls(path=path, handle=path.open("w", encoding="utf-8"))

    def write(self, text: str) -> None:
        """Append text and flush it to disk."""
        self.handle.write(text)
        self.handle.flush()

    def close(self) -> None:
        """Flush and close the underlying file."""
        if not self.handle.closed:
            self.handle.flush()
            self.handle.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass(frozen=True, kw_only=True)
class ReportEntry:
    """Outcome text recorded for one repository."""

    repository: str
    text: str


@dataclass(kw_only=True)
class RunReport:
    """Ordered record of repository outcomes and skipped repositories.

    Appends from concurrent units are serialized by a lock so that entries
    reach the sinks whole and in the same order as in memory.
    """

    report_sink: TextSink | None = None
    skipped_sink: TextSink | None = None
    entries: list[ReportEntry] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def record(self, repository: str, text: str) -> None:
        """Append the outcome text of a repository."""
        async with self._lock:
            self.entries.append(ReportEntry(repository=repository, text=text))
            if self.report_sink is not None:
                self.report_sink.write(f"\n{repository}\n{text}\n")

    async def record_skipped(self, repository: str) -> None:
        """Append a repository without a usable test directory."""
        async with self._lock:
            self.skipped.append(repository)
            if self.skipped_sink is not None:
                self.skipped_sink.write(f"{repository}\n")

    @property
    def repositories(self) -> Sequence[str]:
        """Every repository recorded, in recording order."""
        return [entry.repository for entry in self.entries] + self.skipped


def _bullet_block(title: str, items: Sequence[str]) -> str:
    lines = [f"{title}:"]
    lines.extend(f"  - {item}" for item in items)
    return "\n".join(lines) + "\n"


def format_summary(outcome: AggregatedOutcome) -> str:
    """Format an aggregated outcome as human-readable report text.

    A critical error hides any other findings. A timed-out outcome starts
    with its note, followed by whatever was collected before the deadline.
    """
    if outcome.critical:
        return _bullet_block("Critical Error", [outcome.critical])

    blocks: list[str] = []
    if outcome.failing:
        blocks.append(_bullet_block("Failing Tests", outcome.failing))
    if outcome.flaky:
        blocks.append(_bullet_block("Flaky Tests", outcome.flaky))

    if outcome.note:
        blocks.insert(0, f"{outcome.note}\n")
    elif not blocks:
        return NO_FINDINGS_TEXT

    return "\n".join(blocks)
