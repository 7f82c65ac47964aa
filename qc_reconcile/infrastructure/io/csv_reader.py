from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import pandas as pd

from .exceptions import DataParseError, DataSourceNotFoundError, DataValidationError

if TYPE_CHECKING:
    from pathlib import Path

# A label row above the variable-name row is common in SAS exports.
HEADER_SAMPLE_ROWS = 2
HEADER_SPACE_THRESHOLD = 0.5
HEADER_CODE_THRESHOLD = 0.5
VARIABLE_NAME_PATTERN = "^[A-Za-z_][A-Za-z0-9_]*$"


@dataclass(slots=True)
class CSVReadOptions:
    delimiter: str = ","
    encoding: str = "utf-8"
    detect_header_row: bool = True
    strip_headers: bool = True


@dataclass(frozen=True, slots=True)
class CSVTable:
    frame: pd.DataFrame
    labels: dict[str, str]


class CSVReader:
    pass

    def read(self, path: Path, options: CSVReadOptions | None = None) -> CSVTable:
        """Read a delimited file with every cell kept as text.

        Only empty cells are treated as missing. When the first row looks like
        a row of labels sitting above the variable names, it is returned as
        ``labels`` instead of being used as the header.
        """
        if options is None:
            options = CSVReadOptions()
        if not path.exists():
            raise DataSourceNotFoundError(f"File not found: {path}")
        if not path.is_file():
            raise DataSourceNotFoundError(f"Not a file: {path}")
        header_row = 0
        if options.detect_header_row:
            header_row = self._detect_header_row(path, options)
        try:
            df = pd.read_csv(
                path,
                sep=options.delimiter,
                header=header_row,
                dtype=str,
                keep_default_na=False,
                na_values=[""],
                encoding=options.encoding,
            )
        except FileNotFoundError as e:
            raise DataSourceNotFoundError(f"File not found: {path}") from e
        except pd.errors.ParserError as e:
            raise DataParseError(f"Failed to parse {path}: {e}") from e
        except pd.errors.EmptyDataError as e:
            raise DataParseError(f"File is empty: {path}") from e
        except UnicodeDecodeError as e:
            raise DataParseError(
                f"Encoding error reading {path}. Try a different encoding: {e}"
            ) from e
        if df.shape[1] == 0:
            raise DataParseError(f"File has no columns: {path}")
        if options.strip_headers:
            df.columns = [str(col).strip() for col in df.columns]
        self._check_headers(path, df)
        labels = self._read_labels(path, options) if header_row == 1 else []
        return CSVTable(
            frame=df,
            labels={
                str(name): label
                for name, label in zip(df.columns, labels, strict=False)
                if label
            },
        )

    def _detect_header_row(self, path: Path, options: CSVReadOptions) -> int:
        try:
            sample = pd.read_csv(
                path,
                sep=options.delimiter,
                nrows=HEADER_SAMPLE_ROWS,
                header=None,
                dtype=str,
                keep_default_na=False,
                encoding=options.encoding,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError):
            return 0
        if sample.empty or len(sample) < HEADER_SAMPLE_ROWS:
            return 0
        first_row = sample.iloc[0].astype(str)
        second_row = sample.iloc[1].astype(str)
        first_has_spaces = first_row.str.contains("\\s").mean() > HEADER_SPACE_THRESHOLD
        second_is_names = (
            second_row.str.match(VARIABLE_NAME_PATTERN).mean() > HEADER_CODE_THRESHOLD
        )
        if first_has_spaces and second_is_names:
            return 1
        return 0

    def _read_labels(self, path: Path, options: CSVReadOptions) -> list[str]:
        first = pd.read_csv(
            path,
            sep=options.delimiter,
            nrows=1,
            header=None,
            dtype=str,
            keep_default_na=False,
            encoding=options.encoding,
        )
        return [str(value).strip() for value in first.iloc[0]]

    def _check_headers(self, path: Path, df: pd.DataFrame) -> None:
        seen: dict[str, str] = {}
        for column in df.columns:
            name = str(column)
            if not name or name.startswith("Unnamed:"):
                raise DataValidationError(f"{path} has an unnamed column")
            upper = name.upper()
            if upper in seen:
                raise DataValidationError(
                    f"{path} declares column {name} twice (clashes with {seen[upper]})"
                )
            seen[upper] = name
