"""Application layer for qc-reconcile.

Use cases orchestrating the domain services: ad hoc dataset comparison and the
validation workflow. External dependencies are reached through the ports.
"""

from .comparison_use_case import ComparisonDependencies, ComparisonUseCase
from .models import CompareDatasetsRequest, CompareDatasetsResponse
from .validation_workflow_use_case import (
    ValidationWorkflowUseCase,
    WorkflowDependencies,
)

__all__ = [
    "CompareDatasetsRequest",
    "CompareDatasetsResponse",
    "ComparisonDependencies",
    "ComparisonUseCase",
    "ValidationWorkflowUseCase",
    "WorkflowDependencies",
]
