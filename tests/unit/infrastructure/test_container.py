"""Tests for dependency injection container.

These tests verify the container creates and wires up dependencies,
including singleton patterns, configuration injection, and testing
overrides.
"""

from pathlib import Path

import pytest
from rich.console import Console

from qc_reconcile.application import ComparisonUseCase, ValidationWorkflowUseCase
from qc_reconcile.application.validation_workflow_use_case import ObjectLocks
from qc_reconcile.config import ReconcileConfig
from qc_reconcile.domain.entities.context import RunContext
from qc_reconcile.domain.errors import ConcurrentTransitionError
from qc_reconcile.infrastructure import DependencyContainer, create_default_container
from qc_reconcile.infrastructure.logging import ConsoleLogger, NullLogger
from qc_reconcile.infrastructure.repositories import (
    InMemoryAuditTrail,
    InMemoryValidationObjectRepository,
    JsonlAuditTrail,
    JsonValidationObjectRepository,
    WorkspaceObjectLocks,
)


class MockLogger(NullLogger):
    """Logger that records messages for override tests."""

    def __init__(self):
        super().__init__()
        self.messages = []

    def error(self, message: str) -> None:
        self.messages.append(("error", message))


class TestDependencyContainer:
    """Tests for DependencyContainer class."""

    def test_create_container_with_defaults(self):
        container = DependencyContainer()

        assert container.verbose == 0
        assert container.console is not None
        assert container.use_null_logger is False
        assert container.config == ReconcileConfig()

    def test_logger_is_singleton(self):
        container = DependencyContainer(console=Console())
        logger = container.create_logger()

        assert isinstance(logger, ConsoleLogger)
        assert container.create_logger() is logger

    def test_null_logger(self):
        container = DependencyContainer(use_null_logger=True)
        assert isinstance(container.create_logger(), NullLogger)

    def test_file_stores_live_in_workspace(self, tmp_path):
        config = ReconcileConfig(workspace_dir=tmp_path / "ws")
        container = DependencyContainer(config=config)

        audit_trail = container.create_audit_trail()
        repository = container.create_object_repository()

        assert isinstance(audit_trail, JsonlAuditTrail)
        assert audit_trail.path == tmp_path / "ws" / "audit.jsonl"
        assert isinstance(repository, JsonValidationObjectRepository)
        assert repository.path == tmp_path / "ws" / "objects.json"

        locks = container.create_object_locks()
        assert isinstance(locks, WorkspaceObjectLocks)
        assert locks.directory == tmp_path / "ws" / "locks"

    def test_in_memory_stores(self):
        container = DependencyContainer(in_memory=True)
        assert isinstance(container.create_audit_trail(), InMemoryAuditTrail)
        assert isinstance(
            container.create_object_repository(), InMemoryValidationObjectRepository
        )
        assert isinstance(container.create_object_locks(), ObjectLocks)

    def test_use_cases(self):
        container = DependencyContainer(use_null_logger=True, in_memory=True)

        assert isinstance(container.create_comparison_use_case(), ComparisonUseCase)
        workflow = container.create_workflow_use_case()
        assert isinstance(workflow, ValidationWorkflowUseCase)
        assert container.create_workflow_use_case() is workflow

    def test_workflow_uses_configured_defaults(self, adsl_pair):
        config = ReconcileConfig(trim="both", chunk_size=2)
        container = DependencyContainer(
            config=config, use_null_logger=True, in_memory=True
        )
        workflow = container.create_workflow_use_case()
        context = RunContext(actor="tester")
        workflow.register(context, "ADSL", ["USUBJID"])
        workflow.mark_lead_produced(context, "ADSL")
        workflow.mark_independent_produced(context, "ADSL")

        result = workflow.compare_with_result(context, "ADSL", *adsl_pair)

        assert str(result.job.config.trim) == "both"
        assert result.job.config.chunk_size == 2

    def test_containers_on_one_workspace_share_object_locks(self, tmp_path):
        config = ReconcileConfig(workspace_dir=tmp_path / "ws")
        first = DependencyContainer(config=config, use_null_logger=True)
        second = DependencyContainer(config=config, use_null_logger=True)
        context = RunContext(actor="tester")
        first.create_workflow_use_case().register(context, "ADSL", ["USUBJID"])

        with first.create_object_locks().hold("ADSL"):
            with pytest.raises(ConcurrentTransitionError):
                second.create_workflow_use_case().mark_lead_produced(context, "ADSL")

        second.create_workflow_use_case().mark_lead_produced(context, "ADSL")
        history = first.create_audit_trail().query_by_object("ADSL")
        assert [e.sequence for e in history] == [1, 2]

    def test_override_logger(self):
        container = DependencyContainer(in_memory=True)
        logger = MockLogger()
        container.override_logger(logger)

        assert container.create_logger() is logger
        assert container.create_workflow_use_case().logger is logger

    def test_override_stores(self):
        container = DependencyContainer()
        audit_trail = InMemoryAuditTrail()
        repository = InMemoryValidationObjectRepository()
        container.override_audit_trail(audit_trail)
        container.override_object_repository(repository)

        assert container.create_audit_trail() is audit_trail
        assert container.create_object_repository() is repository

    def test_reset_singletons(self):
        container = DependencyContainer(in_memory=True)
        first = container.create_workflow_use_case()
        container.reset_singletons()
        assert container.create_workflow_use_case() is not first


class TestCreateDefaultContainer:
    def test_defaults(self):
        container = create_default_container(verbose=1)
        assert container.verbose == 1
        assert container.config.workspace_dir == Path(".qc_reconcile")
