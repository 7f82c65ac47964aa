from __future__ import annotations

import json
from typing import TYPE_CHECKING, override

from ...application.ports.services import ComparisonResultWriterPort
from .exceptions import DataSourceError

if TYPE_CHECKING:
    from pathlib import Path

    from ...domain.entities.comparison import ComparisonResult


class ComparisonResultWriter(ComparisonResultWriterPort):
    pass

    @override
    def write_json(self, result: ComparisonResult, output_path: Path) -> Path:
        document = result.to_dict()
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(
                json.dumps(document, indent=2, sort_keys=True, allow_nan=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            raise DataSourceError(
                f"Could not write comparison result to {output_path}: {e}"
            ) from e
        return output_path
