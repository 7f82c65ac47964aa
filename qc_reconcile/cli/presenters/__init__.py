"""Presenters for CLI output formatting.

This module contains presenter classes that format and display information
to the user via the CLI. Presenters turn comparison results, validation
objects and audit entries into rich tables.
"""

from .summary import ComparisonPresenter
from .workflow import WorkflowPresenter

__all__ = ["ComparisonPresenter", "WorkflowPresenter"]
