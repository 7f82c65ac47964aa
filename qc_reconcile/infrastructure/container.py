from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console

from ..application.comparison_use_case import (
    ComparisonDependencies,
    ComparisonUseCase,
)
from ..application.validation_workflow_use_case import (
    ObjectLocks,
    ValidationWorkflowUseCase,
    WorkflowDependencies,
)
from ..config import ReconcileConfig
from ..constants import Files
from .io.csv_reader import CSVReader
from .io.result_writer import ComparisonResultWriter
from .logging.console_logger import ConsoleLogger
from .logging.null_logger import NullLogger
from .repositories.audit_trail import InMemoryAuditTrail, JsonlAuditTrail
from .repositories.object_locks import WorkspaceObjectLocks
from .repositories.snapshot_repository import SnapshotRepository
from .repositories.validation_object_repository import (
    InMemoryValidationObjectRepository,
    JsonValidationObjectRepository,
)

if TYPE_CHECKING:
    from ..application.ports.repositories import (
        AuditTrailPort,
        ObjectLockPort,
        SnapshotRepositoryPort,
        ValidationObjectRepositoryPort,
    )
    from ..application.ports.services import ComparisonResultWriterPort, LoggerPort


class DependencyContainer:
    """Builds and caches the adapters used by the CLI and use cases.

    With ``in_memory=True`` the audit trail, object store and object locks live
    in memory; otherwise they are files under ``config.workspace_dir``.
    """

    def __init__(
        self,
        config: ReconcileConfig | None = None,
        verbose: int = 0,
        console: Console | None = None,
        use_null_logger: bool = False,
        in_memory: bool = False,
    ) -> None:
        super().__init__()
        self.config = config or ReconcileConfig()
        self.verbose = verbose
        self.console = console or Console()
        self.use_null_logger = use_null_logger
        self.in_memory = in_memory
        self._logger_instance: LoggerPort | None = None
        self._csv_reader_instance: CSVReader | None = None
        self._snapshot_repository_instance: SnapshotRepositoryPort | None = None
        self._result_writer_instance: ComparisonResultWriterPort | None = None
        self._audit_trail_instance: AuditTrailPort | None = None
        self._object_repository_instance: ValidationObjectRepositoryPort | None = None
        self._object_locks_instance: ObjectLockPort | None = None
        self._workflow_use_case_instance: ValidationWorkflowUseCase | None = None

    def create_logger(self) -> LoggerPort:
        if self._logger_instance is None:
            if self.use_null_logger:
                self._logger_instance = NullLogger()
            else:
                self._logger_instance = ConsoleLogger(
                    console=self.console, verbosity=self.verbose
                )
        return self._logger_instance

    def create_csv_reader(self) -> CSVReader:
        if self._csv_reader_instance is None:
            self._csv_reader_instance = CSVReader()
        return self._csv_reader_instance

    def create_snapshot_repository(self) -> SnapshotRepositoryPort:
        if self._snapshot_repository_instance is None:
            self._snapshot_repository_instance = SnapshotRepository(
                csv_reader=self.create_csv_reader(),
                blank_text_is_missing=self.config.blank_text_is_missing,
            )
        return self._snapshot_repository_instance

    def create_result_writer(self) -> ComparisonResultWriterPort:
        if self._result_writer_instance is None:
            self._result_writer_instance = ComparisonResultWriter()
        return self._result_writer_instance

    def create_audit_trail(self) -> AuditTrailPort:
        if self._audit_trail_instance is None:
            if self.in_memory:
                self._audit_trail_instance = InMemoryAuditTrail()
            else:
                self._audit_trail_instance = JsonlAuditTrail(
                    self.config.audit_trail_path
                )
        return self._audit_trail_instance

    def create_object_repository(self) -> ValidationObjectRepositoryPort:
        if self._object_repository_instance is None:
            if self.in_memory:
                self._object_repository_instance = InMemoryValidationObjectRepository()
            else:
                self._object_repository_instance = JsonValidationObjectRepository(
                    self.config.object_store_path
                )
        return self._object_repository_instance

    def create_object_locks(self) -> ObjectLockPort:
        if self._object_locks_instance is None:
            if self.in_memory:
                self._object_locks_instance = ObjectLocks()
            else:
                self._object_locks_instance = WorkspaceObjectLocks(
                    self.config.workspace_dir / Files.LOCK_DIR
                )
        return self._object_locks_instance

    def create_comparison_use_case(self) -> ComparisonUseCase:
        return ComparisonUseCase(
            ComparisonDependencies(
                logger=self.create_logger(),
                snapshot_repository=self.create_snapshot_repository(),
                result_writer=self.create_result_writer(),
            )
        )

    def create_workflow_use_case(self) -> ValidationWorkflowUseCase:
        # one instance per container so in-memory stores and locks are shared
        if self._workflow_use_case_instance is None:
            self._workflow_use_case_instance = ValidationWorkflowUseCase(
                WorkflowDependencies(
                    logger=self.create_logger(),
                    audit_trail=self.create_audit_trail(),
                    object_repository=self.create_object_repository(),
                    object_locks=self.create_object_locks(),
                    comparison_defaults=self.config.comparison_defaults(),
                )
            )
        return self._workflow_use_case_instance

    def override_logger(self, logger: LoggerPort) -> None:
        self._logger_instance = logger

    def override_snapshot_repository(self, repository: SnapshotRepositoryPort) -> None:
        self._snapshot_repository_instance = repository

    def override_audit_trail(self, audit_trail: AuditTrailPort) -> None:
        self._audit_trail_instance = audit_trail

    def override_object_repository(
        self, repository: ValidationObjectRepositoryPort
    ) -> None:
        self._object_repository_instance = repository

    def reset_singletons(self) -> None:
        self._logger_instance = None
        self._csv_reader_instance = None
        self._snapshot_repository_instance = None
        self._result_writer_instance = None
        self._audit_trail_instance = None
        self._object_repository_instance = None
        self._object_locks_instance = None
        self._workflow_use_case_instance = None


def create_default_container(
    config: ReconcileConfig | None = None, verbose: int = 0
) -> DependencyContainer:
    return DependencyContainer(config=config, verbose=verbose)
