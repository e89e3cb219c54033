"""
Stats Recorder

Records the outcome of every processed work item and renders the
combined report shown after a batch:
- One Stat per item (name, operation, status, duration)
- Batch results with the terminating error
- Rich table output with a total row
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional

from rich.console import Console
from rich.table import Table

from .errors import BootkitError


class Operation(Enum):
    INSTALL = 'Install'
    CONFIGURE = 'Configure'


class Status(Enum):
    SUCCESS = 'success'
    ERROR = 'error'


@dataclass(frozen=True)
class Stat:
    """Outcome of one work item"""
    name: str
    operation: Operation
    status: Status
    duration: float


@dataclass
class BatchResult:
    """Stats of one orchestrator run plus the error that stopped it, if any"""
    stats: List[Stat] = field(default_factory=list)
    error: Optional[BootkitError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class StatsSummary:
    total: int
    succeeded: int
    failed: int
    duration: float


class StatsRecorder:
    """Append-only collector of Stat records"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._stats: List[Stat] = []

    @contextmanager
    def track(self, name: str, operation: Operation) -> Iterator[None]:
        """
        Time the enclosed block and record its outcome

        A success Stat is appended when the block completes, an error Stat
        when it raises; the exception is re-raised unchanged.
        """
        started = self._clock()
        try:
            yield
        except BaseException:
            self._append(name, operation, Status.ERROR, started)
            raise
        self._append(name, operation, Status.SUCCESS, started)

    def _append(self, name: str, operation: Operation, status: Status, started: float) -> None:
        self._stats.append(Stat(name, operation, status, self._clock() - started))

    @property
    def stats(self) -> List[Stat]:
        return list(self._stats)

    def result(self, error: Optional[BootkitError] = None) -> BatchResult:
        return BatchResult(self.stats, error)


def summarize(stats: Iterable[Stat]) -> StatsSummary:
    """Aggregate a list of stats into counts and total duration"""
    stats = list(stats)
    succeeded = sum(1 for stat in stats if stat.status is Status.SUCCESS)
    return StatsSummary(
        total=len(stats),
        succeeded=succeeded,
        failed=len(stats) - succeeded,
        duration=sum(stat.duration for stat in stats),
    )


def format_duration(seconds: float) -> str:
    """Format seconds like 350ms, 4.2s or 3m12s"""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(round(seconds)), 60)
    if minutes < 60:
        return f"{minutes}m{secs:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h{minutes:02d}m{secs:02d}s"


def build_stats_table(stats: Iterable[Stat]) -> Table:
    stats = list(stats)
    table = Table(show_header=True, header_style="bold green")
    table.add_column("Name")
    table.add_column("Duration", justify="right")
    table.add_column("Status")
    table.add_column("Operation")

    for stat in stats:
        style = "green" if stat.status is Status.SUCCESS else "red"
        table.add_row(
            stat.name,
            format_duration(stat.duration),
            stat.status.value,
            stat.operation.value,
            style=style
        )

    summary = summarize(stats)
    table.add_row("Total", format_duration(summary.duration), "", "", style="bold")
    return table


def print_stats_table(console: Console, stats: Iterable[Stat]) -> None:
    """Print the combined stats table"""
    console.print(build_stats_table(stats))
