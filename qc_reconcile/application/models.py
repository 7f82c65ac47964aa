from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from ..domain.entities.comparison import ComparisonConfig, ComparisonResult


def _empty_str_list() -> list[str]:
    return []


@dataclass(slots=True)
class CompareDatasetsRequest:
    left_path: Path
    right_path: Path
    config: ComparisonConfig
    object_name: str | None = None
    output_path: Path | None = None
    verbose: int = 0


@dataclass(slots=True)
class CompareDatasetsResponse:
    object_name: str = ""
    result: ComparisonResult | None = None
    output_path: Path | None = None
    error: str | None = None
    error_kind: str | None = None
    warnings: list[str] = field(default_factory=_empty_str_list)

    @property
    def success(self) -> bool:
        return self.error is None and self.result is not None

    @property
    def artifacts_match(self) -> bool:
        return self.result is not None and self.result.summary.passed

