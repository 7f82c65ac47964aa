from __future__ import annotations

from typing import TYPE_CHECKING, override

from ...application.ports.services import LoggerPort

if TYPE_CHECKING:
    from ...domain.entities.comparison import ComparisonSummary


class NullLogger(LoggerPort):
    pass

    @override
    def info(self, message: str) -> None:
        return

    @override
    def success(self, message: str) -> None:
        return

    @override
    def warning(self, message: str) -> None:
        return

    @override
    def error(self, message: str) -> None:
        return

    @override
    def debug(self, message: str) -> None:
        return

    @override
    def verbose(self, message: str) -> None:
        return

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
        return None

    @override
    def log_comparison_complete(self, summary: ComparisonSummary) -> None:
        return None

    @override
    def log_transition(
        self, object_name: str, from_state: str | None, to_state: str, action: str
    ) -> None:
        return None

    @override
    def log_final_stats(self) -> None:
        return None
