"""qc-reconcile package.

Independent-programming reconciliation for clinical-trial datasets: two
independently produced datasets are compared for structural and value
equivalence, and each compared artifact is tracked through a validation
workflow with an append-only audit trail.

Features:
- Schema comparison (types, widths, labels, positions)
- Key-based record matching with duplicate-key detection
- Tolerance-aware value differencing
- Validation workflow with durable audit trail
- CSV, Excel, SAS7BDAT and XPT ingestion
"""

from importlib.metadata import PackageNotFoundError, version

try:  # pragma: no cover
    __version__ = version("qc-reconcile")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

from qc_reconcile.domain.entities.comparison import (
    ComparisonConfig,
    ComparisonResult,
    ComparisonSummary,
    build_comparison_config,
)
from qc_reconcile.domain.entities.snapshot import (
    ColumnDefinition,
    ColumnType,
    DatasetSnapshot,
)
from qc_reconcile.domain.services.comparison_engine import (
    compare_snapshots,
    run_comparison,
)

__all__ = [
    "__version__",
    # Snapshots
    "ColumnDefinition",
    "ColumnType",
    "DatasetSnapshot",
    # Comparison
    "ComparisonConfig",
    "ComparisonResult",
    "ComparisonSummary",
    "build_comparison_config",
    "compare_snapshots",
    "run_comparison",
]
