from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import os
from pathlib import Path
import tomllib
from typing import cast
import warnings

from .constants import Defaults, Files

TOLERANCE_METHODS = ("absolute", "relative")
TRIM_POLICIES = ("none", "trailing", "both")
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True, slots=True)
class ReconcileConfig:
    default_tolerance: float = Defaults.TOLERANCE
    tolerance_method: str = Defaults.TOLERANCE_METHOD
    trim: str = Defaults.TRIM
    chunk_size: int = Defaults.CHUNK_SIZE
    max_workers: int = Defaults.MAX_WORKERS
    workspace_dir: Path = field(default_factory=lambda: Path(Files.WORKSPACE_DIR))
    blank_text_is_missing: bool = False
    default_actor: str | None = None

    def __post_init__(self) -> None:
        if not self.default_tolerance >= 0.0 or self.default_tolerance == float("inf"):
            raise ValueError(
                f"default_tolerance must be a finite non-negative number, got {self.default_tolerance}"
            )
        if self.tolerance_method not in TOLERANCE_METHODS:
            raise ValueError(
                f"tolerance_method must be one of {TOLERANCE_METHODS}, got {self.tolerance_method!r}"
            )
        if self.trim not in TRIM_POLICIES:
            raise ValueError(f"trim must be one of {TRIM_POLICIES}, got {self.trim!r}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")

    @property
    def audit_trail_path(self) -> Path:
        return self.workspace_dir / Files.AUDIT_TRAIL

    @property
    def object_store_path(self) -> Path:
        return self.workspace_dir / Files.OBJECT_STORE

    def comparison_defaults(self) -> dict[str, object]:
        return {
            "tolerance": self.default_tolerance,
            "tolerance_method": self.tolerance_method,
            "trim": self.trim,
            "chunk_size": self.chunk_size,
            "max_workers": self.max_workers,
        }

    @classmethod
    def from_env(cls) -> ReconcileConfig:
        raw_actor = os.getenv("QC_DEFAULT_ACTOR")
        default_actor = raw_actor.strip() if raw_actor else None
        return cls(
            default_tolerance=float(
                os.getenv("QC_DEFAULT_TOLERANCE", str(Defaults.TOLERANCE))
            ),
            tolerance_method=os.getenv("QC_TOLERANCE_METHOD", Defaults.TOLERANCE_METHOD),
            trim=os.getenv("QC_TRIM", Defaults.TRIM),
            chunk_size=int(os.getenv("QC_CHUNK_SIZE", str(Defaults.CHUNK_SIZE))),
            max_workers=int(os.getenv("QC_MAX_WORKERS", str(Defaults.MAX_WORKERS))),
            workspace_dir=Path(os.getenv("QC_WORKSPACE_DIR", Files.WORKSPACE_DIR)),
            blank_text_is_missing=_coerce_bool(
                os.getenv("QC_BLANK_TEXT_IS_MISSING", ""),
                key="QC_BLANK_TEXT_IS_MISSING",
            ),
            default_actor=default_actor or None,
        )


class ConfigLoader:
    pass

    @staticmethod
    def load(config_file: Path | None = None) -> ReconcileConfig:
        config = ReconcileConfig.from_env()
        if config_file is None:
            config_file = Path(Files.CONFIG_FILE)
        if config_file.exists():
            try:
                config = ConfigLoader._load_from_toml(config_file, config)
            except Exception as e:
                warnings.warn(
                    f"Failed to load config from {config_file}: {e}", stacklevel=2
                )
        return config

    @staticmethod
    def _load_from_toml(
        config_file: Path, base_config: ReconcileConfig
    ) -> ReconcileConfig:
        with config_file.open("rb") as handle:
            data = tomllib.load(handle)
        comparison = _get_table(data, "comparison")
        paths = _get_table(data, "paths")
        workflow = _get_table(data, "workflow")
        default_tolerance = base_config.default_tolerance
        if (value := comparison.get("tolerance")) is not None:
            default_tolerance = _coerce_float(value, key="comparison.tolerance")
        tolerance_method = base_config.tolerance_method
        if (value := comparison.get("tolerance_method")) is not None:
            tolerance_method = str(value).strip().lower()
        trim = base_config.trim
        if (value := comparison.get("trim")) is not None:
            trim = str(value).strip().lower()
        chunk_size = base_config.chunk_size
        if (value := comparison.get("chunk_size")) is not None:
            chunk_size = _coerce_int(value, key="comparison.chunk_size")
        max_workers = base_config.max_workers
        if (value := comparison.get("max_workers")) is not None:
            max_workers = _coerce_int(value, key="comparison.max_workers")
        blank_text_is_missing = base_config.blank_text_is_missing
        if (value := comparison.get("blank_text_is_missing")) is not None:
            blank_text_is_missing = _coerce_bool(
                value, key="comparison.blank_text_is_missing"
            )
        workspace_dir = base_config.workspace_dir
        if value := paths.get("workspace_dir"):
            workspace_dir = Path(str(value))
        default_actor = base_config.default_actor
        if "default_actor" in workflow:
            raw = workflow.get("default_actor")
            cleaned = str(raw).strip() if raw is not None else ""
            default_actor = cleaned or None
        return ReconcileConfig(
            default_tolerance=default_tolerance,
            tolerance_method=tolerance_method,
            trim=trim,
            chunk_size=chunk_size,
            max_workers=max_workers,
            workspace_dir=workspace_dir,
            blank_text_is_missing=blank_text_is_missing,
            default_actor=default_actor,
        )


def _get_table(data: Mapping[str, object], key: str) -> Mapping[str, object]:
    value = data.get(key)
    if isinstance(value, Mapping):
        return cast("Mapping[str, object]", value)
    return {}


def _coerce_float(value: object, *, key: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{key} must be numeric, got bool")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value)
    raise ValueError(f"{key} must be numeric or string, got {type(value).__name__}")


def _coerce_int(value: object, *, key: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{key} must be an int, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        return int(value)
    raise ValueError(f"{key} must be int-like or string, got {type(value).__name__}")


def _coerce_bool(value: object, *, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"{key} must be a boolean, got {value!r}")
