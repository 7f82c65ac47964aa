from collections.abc import Collection
from pathlib import Path

import pandas as pd
import pyreadstat

from ...constants import Files
from ...domain.entities.snapshot import ColumnType, DatasetSnapshot
from ..io.csv_reader import CSVReader, CSVReadOptions
from ..io.exceptions import DataParseError, DataSourceNotFoundError
from ..io.frame_conversion import snapshot_from_frame

DELIMITED_SUFFIXES = {".csv": ",", ".tsv": "\t", ".txt": ","}
EXCEL_SUFFIXES = (".xls", ".xlsx")
SAS_DATASET_SUFFIX = ".sas7bdat"
SAS_TRANSPORT_SUFFIX = ".xpt"
SAS_STRING_TYPE = "string"


def _as_text(columns: Collection[str]) -> dict[str, ColumnType]:
    return dict.fromkeys(columns, ColumnType.TEXT)


class SnapshotRepository:
    pass

    def __init__(
        self,
        csv_reader: CSVReader | None = None,
        *,
        blank_text_is_missing: bool = False,
    ) -> None:
        super().__init__()
        self._csv_reader = csv_reader or CSVReader()
        self._blank_text_is_missing = blank_text_is_missing

    def load(
        self,
        path: Path,
        name: str | None = None,
        *,
        text_columns: Collection[str] = (),
    ) -> DatasetSnapshot:
        """Read ``path`` into a snapshot.

        ``text_columns`` (typically the key) are kept as text in delimited and
        Excel files so identifiers are matched exactly as written. SAS files
        keep their declared types.
        """
        path = Path(path)
        if not path.exists():
            raise DataSourceNotFoundError(f"File not found: {path}")
        if not path.is_file():
            raise DataSourceNotFoundError(f"Not a file: {path}")
        snapshot_name = name or path.stem.upper()
        ext = path.suffix.lower()
        if ext in DELIMITED_SUFFIXES:
            return self._read_delimited(
                path, snapshot_name, DELIMITED_SUFFIXES[ext], text_columns
            )
        if ext in EXCEL_SUFFIXES:
            return self._read_excel(path, snapshot_name, text_columns)
        if ext in (SAS_DATASET_SUFFIX, SAS_TRANSPORT_SUFFIX):
            return self._read_sas(path, snapshot_name)
        supported = ", ".join(Files.SUPPORTED_SUFFIXES)
        raise DataParseError(f"Unsupported format '{ext}'. Supported: {supported}")

    def _read_delimited(
        self, path: Path, name: str, delimiter: str, text_columns: Collection[str]
    ) -> DatasetSnapshot:
        table = self._csv_reader.read(path, CSVReadOptions(delimiter=delimiter))
        return snapshot_from_frame(
            table.frame,
            name,
            types=_as_text(text_columns),
            labels=table.labels,
            blank_text_is_missing=self._blank_text_is_missing,
        )

    def _read_excel(
        self, path: Path, name: str, text_columns: Collection[str]
    ) -> DatasetSnapshot:
        try:
            frame = pd.read_excel(path)
        except Exception as e:
            raise DataParseError(f"Failed to read Excel file {path}: {e}") from e
        frame.columns = [str(col).strip() for col in frame.columns]
        return snapshot_from_frame(
            frame,
            name,
            types=_as_text(text_columns),
            blank_text_is_missing=self._blank_text_is_missing,
        )

    def _read_sas(self, path: Path, name: str) -> DatasetSnapshot:
        reader = (
            pyreadstat.read_xport
            if path.suffix.lower() == SAS_TRANSPORT_SUFFIX
            else pyreadstat.read_sas7bdat
        )
        try:
            frame, meta = reader(str(path))
        except Exception as e:
            raise DataParseError(f"Failed to read SAS file {path}: {e}") from e
        types = {
            column: ColumnType.TEXT
            if kind == SAS_STRING_TYPE
            else ColumnType.NUMERIC
            for column, kind in (meta.readstat_variable_types or {}).items()
        }
        widths = {
            column: int(width)
            for column, width in (meta.variable_storage_width or {}).items()
            if width
        }
        return snapshot_from_frame(
            frame,
            name,
            types=types,
            widths=widths,
            labels=meta.column_names_to_labels or {},
            blank_text_is_missing=self._blank_text_is_missing,
        )
