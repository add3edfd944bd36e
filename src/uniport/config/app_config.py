"""Application configuration loader.

Loads centralized configuration from data/config/uniport_v1.yaml
with fallback to built-in defaults.

Usage:
    from uniport.config.app_config import load_app_config

    config = load_app_config()
    max_credits = config.academic.max_credits
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/uniport_v1.yaml")


@dataclass
class GradeBand:
    """A letter grade with its minimum score and grade point."""

    grade: str
    min_score: float
    point: int


@dataclass
class DegreeClass:
    """A class of degree awarded at or above a CGPA threshold."""

    name: str
    min_cgpa: float


@dataclass
class AcademicConfig:
    """Registration calendar and credit limits."""

    current_semester: int = 1
    current_session: str = "2024/2025"
    max_credits: int = 24
    min_level: int = 100
    max_level: int = 600


@dataclass
class GradingConfig:
    """Grading scale and class-of-degree thresholds.

    Bands and classes are kept sorted from highest to lowest.
    """

    scale: list[GradeBand] = field(default_factory=list)
    degree_classes: list[DegreeClass] = field(default_factory=list)
    lowest_class: str = "Pass"


@dataclass
class CBTConfig:
    """Defaults for CBT practice sessions."""

    default_question_count: int = 10
    max_question_count: int = 100
    default_time_limit: int = 0
    history_limit: int = 10


@dataclass
class AppConfig:
    """Application-wide configuration."""

    academic: AcademicConfig = field(default_factory=AcademicConfig)
    grading: GradingConfig = field(default_factory=GradingConfig)
    cbt: CBTConfig = field(default_factory=CBTConfig)
    paths: dict[str, str] = field(default_factory=dict)

    @property
    def db_path(self) -> Path:
        """Path to the SQLite database file."""
        return Path(self.paths.get("database", "db/uniport.db"))


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "academic": {
            "current_semester": 1,
            "current_session": "2024/2025",
            "max_credits": 24,
            "min_level": 100,
            "max_level": 600,
        },
        "grading": {
            "scale": [
                {"grade": "A", "min_score": 70, "point": 5},
                {"grade": "B", "min_score": 60, "point": 4},
                {"grade": "C", "min_score": 50, "point": 3},
                {"grade": "D", "min_score": 45, "point": 2},
                {"grade": "E", "min_score": 40, "point": 1},
                {"grade": "F", "min_score": 0, "point": 0},
            ],
            "degree_classes": [
                {"name": "First Class", "min_cgpa": 4.50},
                {"name": "Second Class Upper", "min_cgpa": 3.50},
                {"name": "Second Class Lower", "min_cgpa": 2.40},
                {"name": "Third Class", "min_cgpa": 1.50},
            ],
            "lowest_class": "Pass",
        },
        "cbt": {
            "default_question_count": 10,
            "max_question_count": 100,
            "default_time_limit": 0,
            "history_limit": 10,
        },
        "paths": {
            "database": "db/uniport.db",
            "config_dir": "data/config",
        },
    }


def _merge(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge YAML overrides one level deep into the defaults."""
    result = dict(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = {**result[key], **value}
        else:
            result[key] = value
    return result


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    academic_data = data.get("academic", {})
    academic = AcademicConfig(
        current_semester=int(academic_data.get("current_semester", 1)),
        current_session=str(academic_data.get("current_session", "2024/2025")),
        max_credits=int(academic_data.get("max_credits", 24)),
        min_level=int(academic_data.get("min_level", 100)),
        max_level=int(academic_data.get("max_level", 600)),
    )

    grading_data = data.get("grading", {})
    scale = sorted(
        (
            GradeBand(
                grade=str(b["grade"]).upper(),
                min_score=float(b["min_score"]),
                point=int(b["point"]),
            )
            for b in grading_data.get("scale", [])
        ),
        key=lambda b: b.min_score,
        reverse=True,
    )
    degree_classes = sorted(
        (
            DegreeClass(name=str(c["name"]), min_cgpa=float(c["min_cgpa"]))
            for c in grading_data.get("degree_classes", [])
        ),
        key=lambda c: c.min_cgpa,
        reverse=True,
    )
    grading = GradingConfig(
        scale=scale,
        degree_classes=degree_classes,
        lowest_class=str(grading_data.get("lowest_class", "Pass")),
    )

    cbt_data = data.get("cbt", {})
    cbt = CBTConfig(
        default_question_count=int(cbt_data.get("default_question_count", 10)),
        max_question_count=int(cbt_data.get("max_question_count", 100)),
        default_time_limit=int(cbt_data.get("default_time_limit", 0)),
        history_limit=int(cbt_data.get("history_limit", 10)),
    )

    paths = data.get("paths", {})

    return AppConfig(academic=academic, grading=grading, cbt=cbt, paths=paths)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data = _get_defaults()

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        overrides = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
        data = _merge(data, overrides)
    else:
        logger.info("using_default_config")

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
