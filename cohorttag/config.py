"""Configuration loading for cohorttag (.cohorttag.yml)."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

CONFIG_FILENAME = ".cohorttag.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or holds invalid values."""


@dataclass(frozen=True)
class ClassificationConfig:
    """Thresholds and policies for one classification run.

    Built once at the entry point and passed down unchanged; use
    ``with_overrides`` for per-invocation changes.
    """

    # Single-repository taggers
    max_branches: int = 20
    dead_days: int = 365

    # Combination taggers
    min_average_aspect_count_fraction: float = 0.75
    hot_days: int = 10
    hot_contributors: int = 2

    # Commit risk scorers
    file_change_limit: int = 2
    file_change_weight: float = 1.0
    build_descriptors: Tuple[str, ...] = ("pom.xml",)
    build_descriptor_weight: float = 1.0
    indicators: Tuple[str, ...] = ()
    indicator_weight: float = 1.0

    # Cohort run
    exclude_failed_from_average: bool = True
    workers: int = 1

    root: Optional[Path] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "build_descriptors", tuple(self.build_descriptors))
        object.__setattr__(self, "indicators", tuple(self.indicators))
        _validate(self)

    def with_overrides(self, **changes: Any) -> "ClassificationConfig":
        """Return a copy with the given options replaced; ``None`` values are ignored."""
        known = {item.name for item in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration options: {', '.join(unknown)}")
        applied = {key: value for key, value in changes.items() if value is not None}
        if not applied:
            return self
        return replace(self, **applied)


def load_config(config_path: Path) -> ClassificationConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ClassificationConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    values: Dict[str, Any] = {}

    tagger_data = _as_dict(data.get("taggers"))
    _put(values, "max_branches", _as_int(tagger_data.get("max_branches")))
    _put(values, "dead_days", _as_int(tagger_data.get("dead_days")))

    combination_data = _as_dict(data.get("combination_taggers"))
    _put(
        values,
        "min_average_aspect_count_fraction",
        _as_float(combination_data.get("min_average_aspect_count_fraction")),
    )
    _put(values, "hot_days", _as_int(combination_data.get("hot_days")))
    _put(values, "hot_contributors", _as_int(combination_data.get("hot_contributors")))

    risk_data = _as_dict(data.get("commit_risk"))
    _put(values, "file_change_limit", _as_int(risk_data.get("file_change_limit")))
    _put(values, "file_change_weight", _as_float(risk_data.get("file_change_weight")))
    if "build_descriptors" in risk_data:
        values["build_descriptors"] = tuple(_as_str_list(risk_data.get("build_descriptors")))
    _put(values, "build_descriptor_weight", _as_float(risk_data.get("build_descriptor_weight")))
    if "indicators" in risk_data:
        values["indicators"] = tuple(_as_str_list(risk_data.get("indicators")))
    _put(values, "indicator_weight", _as_float(risk_data.get("indicator_weight")))

    cohort_data = _as_dict(data.get("cohort"))
    _put(
        values,
        "exclude_failed_from_average",
        _as_bool(cohort_data.get("exclude_failed_from_average")),
    )
    _put(values, "workers", _as_int(cohort_data.get("workers")))

    try:
        return ClassificationConfig(root=root, **values)
    except ConfigError as exc:
        raise ConfigError(f"Invalid value in {config_file.name}: {exc}") from exc


def _validate(config: ClassificationConfig) -> None:
    for name in ("max_branches", "dead_days", "hot_days", "hot_contributors", "file_change_limit"):
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"{name} must be a non-negative integer, got {value!r}")
    fraction = config.min_average_aspect_count_fraction
    if not isinstance(fraction, (int, float)) or not 0 <= fraction <= 1:
        raise ConfigError(
            f"min_average_aspect_count_fraction must be between 0 and 1, got {fraction!r}"
        )
    for name in ("file_change_weight", "build_descriptor_weight", "indicator_weight"):
        weight = getattr(config, name)
        if not isinstance(weight, (int, float)) or not math.isfinite(weight) or weight < 0:
            raise ConfigError(f"{name} must be a non-negative number, got {weight!r}")
    if isinstance(config.workers, bool) or not isinstance(config.workers, int) or config.workers < 1:
        raise ConfigError(f"workers must be at least 1, got {config.workers!r}")


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _put(values: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        values[key] = value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ConfigError(f"Expected an integer, got {value!r}") from exc
    raise ConfigError(f"Expected an integer, got {value!r}")


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise ConfigError(f"Expected a number, got {value!r}") from exc
    raise ConfigError(f"Expected a number, got {value!r}")


def _as_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    raise ConfigError(f"Expected a boolean, got {value!r}")


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    raise ConfigError(f"Expected a list of strings, got {value!r}")


__all__ = ["CONFIG_FILENAME", "ClassificationConfig", "ConfigError", "load_config"]
