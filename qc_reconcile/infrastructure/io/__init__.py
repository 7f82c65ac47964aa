"""Dataset ingestion and result output adapters."""

from .csv_reader import CSVReader, CSVReadOptions, CSVTable
from .exceptions import (
    DataParseError,
    DataSourceError,
    DataSourceNotFoundError,
    DataValidationError,
    ReconcileInfrastructureError,
)
from .frame_conversion import infer_column_type, snapshot_from_frame
from .result_writer import ComparisonResultWriter

__all__ = [
    "CSVReadOptions",
    "CSVReader",
    "CSVTable",
    "ComparisonResultWriter",
    "DataParseError",
    "DataSourceError",
    "DataSourceNotFoundError",
    "DataValidationError",
    "ReconcileInfrastructureError",
    "infer_column_type",
    "snapshot_from_frame",
]
