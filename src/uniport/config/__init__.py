"""Configuration package for uniport."""

from uniport.config.app_config import (
    AcademicConfig,
    AppConfig,
    CBTConfig,
    DegreeClass,
    GradeBand,
    GradingConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AcademicConfig",
    "AppConfig",
    "CBTConfig",
    "DegreeClass",
    "GradeBand",
    "GradingConfig",
    "clear_config_cache",
    "load_app_config",
]
