from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import TYPE_CHECKING, override

from rich.console import Console
from rich.markup import escape

from ...application.ports.services import LoggerPort

if TYPE_CHECKING:
    from ...domain.entities.comparison import ComparisonSummary

_STATUS_STYLES = {"Pass": "green", "Warning": "yellow", "Fail": "red"}


class LogLevel(IntEnum):
    NORMAL = 0
    VERBOSE = 1
    DEBUG = 2


@dataclass(slots=True)
class LogContext:
    study_id: str = ""
    object_name: str = ""
    operation: str = ""
    start_time: datetime = field(default_factory=datetime.now)

    def elapsed_ms(self) -> float:
        return (datetime.now() - self.start_time).total_seconds() * 1000


def _empty_stats() -> dict[str, int]:
    return {
        "comparisons": 0,
        "records_compared": 0,
        "findings": 0,
        "transitions": 0,
        "warnings": 0,
        "errors": 0,
    }


class ConsoleLogger(LoggerPort):
    pass

    def __init__(self, console: Console | None = None, verbosity: int = 0) -> None:
        super().__init__()
        self.console = console or Console()
        self.verbosity = verbosity
        self._context: LogContext | None = None
        self._stats = _empty_stats()

    def set_context(self, **kwargs: str) -> None:
        if self._context is None:
            self._context = LogContext()
        for key, value in kwargs.items():
            if hasattr(self._context, key):
                setattr(self._context, key, value)

    def clear_context(self) -> None:
        self._context = None

    @override
    def info(self, message: str, *, level: int = LogLevel.NORMAL) -> None:
        if self.verbosity >= level:
            self.console.print(f"{self._get_prefix()}{message}")

    @override
    def verbose(self, message: str) -> None:
        if self.verbosity >= LogLevel.VERBOSE:
            self.console.print(f"[dim]{self._get_prefix()}{message}[/dim]")

    @override
    def debug(self, message: str) -> None:
        if self.verbosity >= LogLevel.DEBUG:
            self.console.print(f"[dim cyan]{self._get_prefix()}{message}[/dim cyan]")

    @override
    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    @override
    def warning(self, message: str) -> None:
        self._stats["warnings"] += 1
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    @override
    def error(self, message: str) -> None:
        self._stats["errors"] += 1
        self.console.print(f"[red]✗[/red] {message}")

    @override
    def log_comparison_start(
        self,
        object_name: str,
        *,
        left_name: str,
        left_rows: int,
        right_name: str,
        right_rows: int,
    ) -> None:
        self.set_context(object_name=object_name, operation="compare")
        if self._context is not None:
            self._context.start_time = datetime.now()
        self.verbose(
            f"Comparing {object_name}: {left_name} ({left_rows:,} rows) vs "
            + f"{right_name} ({right_rows:,} rows)"
        )

    @override
    def log_comparison_complete(self, summary: ComparisonSummary) -> None:
        self._stats["comparisons"] += 1
        self._stats["records_compared"] += summary.statistics.matched_pairs
        self._stats["findings"] += summary.total_findings
        style = _STATUS_STYLES.get(str(summary.status), "white")
        self.verbose(
            f"{summary.object_name}: [{style}]{summary.status}[/{style}] with "
            + f"{summary.total_findings} finding(s), "
            + f"{summary.statistics.matched_pairs:,} matched pair(s)"
        )
        if self.verbosity >= LogLevel.DEBUG and self._context is not None:
            self.debug(f"  Comparison took {self._context.elapsed_ms():.1f} ms")
            for kind, count in sorted(summary.kind_counts.items()):
                self.debug(f"  {kind}: {count}")

    @override
    def log_transition(
        self, object_name: str, from_state: str | None, to_state: str, action: str
    ) -> None:
        self._stats["transitions"] += 1
        if from_state is None or from_state == to_state:
            self.verbose(f"{object_name}: {action} ({to_state})")
        else:
            self.verbose(f"{object_name}: {from_state} → {to_state} ({action})")

    @override
    def log_final_stats(self) -> None:
        if self.verbosity >= LogLevel.VERBOSE:
            self.console.print()
            self.console.print("[dim]Run Statistics:[/dim]")
            self.console.print(f"[dim]  Comparisons: {self._stats['comparisons']}[/dim]")
            self.console.print(
                f"[dim]  Matched records: {self._stats['records_compared']:,}[/dim]"
            )
            self.console.print(f"[dim]  Findings: {self._stats['findings']:,}[/dim]")
            if self._stats["transitions"] > 0:
                self.console.print(
                    f"[dim]  Transitions: {self._stats['transitions']}[/dim]"
                )
            if self._stats["warnings"] > 0:
                self.console.print(
                    f"[dim yellow]  Warnings: {self._stats['warnings']}[/dim yellow]"
                )
            if self._stats["errors"] > 0:
                self.console.print(
                    f"[dim red]  Errors: {self._stats['errors']}[/dim red]"
                )

    def get_stats(self) -> dict[str, int]:
        return self._stats.copy()

    def reset_stats(self) -> None:
        self._stats = _empty_stats()

    def _get_prefix(self) -> str:
        if self._context is None or self.verbosity < LogLevel.DEBUG:
            return ""
        parts = [p for p in (self._context.study_id, self._context.object_name) if p]
        return escape(f"[{':'.join(parts)}] ") if parts else ""
