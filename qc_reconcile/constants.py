from typing import ClassVar


class Defaults:
    TOLERANCE = 1e-5
    TOLERANCE_METHOD = "absolute"
    TRIM = "trailing"
    CHUNK_SIZE = 1000
    MAX_WORKERS = 1
    LOCK_TIMEOUT = 10.0


class FindingKinds:
    SCHEMA: ClassVar[tuple[str, ...]] = (
        "left-only",
        "right-only",
        "type-mismatch",
        "width-mismatch",
        "label-mismatch",
        "position-mismatch",
        "missing-comparison-field",
    )
    PRESENCE: ClassVar[tuple[str, ...]] = ("left-only", "right-only", "duplicate-key")
    VALUE: ClassVar[tuple[str, ...]] = (
        "value-mismatch",
        "missing-pattern",
        "type-mismatch",
    )


class Files:
    CONFIG_FILE = "qc_reconcile.toml"
    WORKSPACE_DIR = ".qc_reconcile"
    AUDIT_TRAIL = "audit.jsonl"
    OBJECT_STORE = "objects.json"
    LOCK_DIR = "locks"
    LOCK_SUFFIX = ".lock"
    SUPPORTED_SUFFIXES: ClassVar[tuple[str, ...]] = (
        ".csv",
        ".tsv",
        ".txt",
        ".xls",
        ".xlsx",
        ".sas7bdat",
        ".xpt",
    )


class ExitCodes:
    OK = 0
    DIFFERENCES = 1
    ERROR = 2

