"""Infrastructure layer for qc-reconcile.

Adapters for files, SAS datasets, console output and persistent stores. They
implement the ports defined in the application layer.
"""

from .container import DependencyContainer, create_default_container

__all__ = ["DependencyContainer", "create_default_container"]
