"""Ad hoc comparison of two dataset files.

Loads both snapshots through the snapshot repository, runs one comparison job
and optionally writes the JSON result. No workflow state is touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.entities.comparison import ComparisonJob
from ..domain.entities.findings import Severity
from ..domain.errors import ConfigurationError, IntegrityError, ReconcileError
from ..domain.services.comparison_engine import run_comparison
from .models import CompareDatasetsResponse

if TYPE_CHECKING:
    from ..domain.entities.comparison import ComparisonResult
    from ..domain.entities.snapshot import DatasetSnapshot
    from .models import CompareDatasetsRequest
    from .ports.repositories import SnapshotRepositoryPort
    from .ports.services import ComparisonResultWriterPort, LoggerPort

ERROR_KIND_CONFIGURATION = "configuration"
ERROR_KIND_INTEGRITY = "integrity"
ERROR_KIND_INGESTION = "ingestion"
ERROR_KIND_OUTPUT = "output"


@dataclass(slots=True)
class ComparisonDependencies:
    logger: LoggerPort
    snapshot_repository: SnapshotRepositoryPort
    result_writer: ComparisonResultWriterPort | None = None


class ComparisonUseCase:
    pass

    def __init__(self, dependencies: ComparisonDependencies) -> None:
        super().__init__()
        self.logger = dependencies.logger
        self._snapshot_repository = dependencies.snapshot_repository
        self._result_writer = dependencies.result_writer

    def execute(self, request: CompareDatasetsRequest) -> CompareDatasetsResponse:
        """Compare the two files named in ``request``.

        Failures to load or configure the job are reported on the response
        (``error`` and ``error_kind``); differences between the datasets are
        reported through ``result.status``.
        """
        response = CompareDatasetsResponse(
            object_name=request.object_name or request.left_path.stem.upper()
        )
        try:
            left, right = self._load_pair(request)
        except ReconcileError as exc:
            return self._fail(response, exc, ERROR_KIND_CONFIGURATION)
        except Exception as exc:
            return self._fail(response, exc, ERROR_KIND_INGESTION)

        try:
            result = self._run(response.object_name, left, right, request)
        except ConfigurationError as exc:
            return self._fail(response, exc, ERROR_KIND_CONFIGURATION)
        except IntegrityError as exc:
            return self._fail(response, exc, ERROR_KIND_INTEGRITY)
        response.result = result
        response.warnings.extend(
            f"{finding.identifier}: {finding.reason}"
            for finding in result.findings
            if finding.severity is Severity.WARNING
        )

        if request.output_path is not None and self._result_writer is not None:
            try:
                response.output_path = self._result_writer.write_json(
                    result, request.output_path
                )
            except Exception as exc:
                return self._fail(response, exc, ERROR_KIND_OUTPUT)
            self.logger.verbose(f"Wrote comparison result to {response.output_path}")
        self.logger.log_final_stats()
        return response

    def _load_pair(
        self, request: CompareDatasetsRequest
    ) -> tuple[DatasetSnapshot, DatasetSnapshot]:
        key = request.config.key
        left = self._snapshot_repository.load(request.left_path, text_columns=key)
        self.logger.verbose(
            f"Loaded {left.row_count:,} rows x {len(left.columns)} columns from {request.left_path.name}"
        )
        right = self._snapshot_repository.load(request.right_path, text_columns=key)
        self.logger.verbose(
            f"Loaded {right.row_count:,} rows x {len(right.columns)} columns from {request.right_path.name}"
        )
        return left, right

    def _run(
        self,
        object_name: str,
        left: DatasetSnapshot,
        right: DatasetSnapshot,
        request: CompareDatasetsRequest,
    ) -> ComparisonResult:
        self.logger.log_comparison_start(
            object_name,
            left_name=left.name,
            left_rows=left.row_count,
            right_name=right.name,
            right_rows=right.row_count,
        )
        result = run_comparison(
            ComparisonJob(
                object_name=object_name, left=left, right=right, config=request.config
            )
        )
        self.logger.log_comparison_complete(result.summary)
        return result

    def _fail(
        self, response: CompareDatasetsResponse, exc: Exception, kind: str
    ) -> CompareDatasetsResponse:
        response.error = str(exc)
        response.error_kind = kind
        self.logger.error(f"{response.object_name}: {exc}")
        return response
