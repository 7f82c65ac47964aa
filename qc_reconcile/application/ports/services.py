from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path

    from ...domain.entities.comparison import ComparisonResult, ComparisonSummary


@runtime_checkable
class LoggerPort(Protocol):
    pass

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def debug(self, message: str) -> None: ...

    def verbose(self, message: str) -> None: ...

    def log_comparison_start(
        self,
        object_name: str,
        *,
        left_name: str,
        left_rows: int,
        right_name: str,
        right_rows: int,
    ) -> None: ...

    def log_comparison_complete(self, summary: ComparisonSummary) -> None: ...

    def log_transition(
        self, object_name: str, from_state: str | None, to_state: str, action: str
    ) -> None: ...

    def log_final_stats(self) -> None: ...


@runtime_checkable
class ComparisonResultWriterPort(Protocol):
    pass

    def write_json(
        self, result: ComparisonResult, output_path: Path
    ) -> Path: ...
