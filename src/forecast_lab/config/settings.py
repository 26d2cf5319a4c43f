#!/usr/bin/env python3
"""
Workbook Configuration Management
Environment-specific settings for data paths, plotting, tables and forecasting defaults
"""

import os
import yaml
from typing import Dict, Any, Optional, List, Union
from pathlib import Path
import logging
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum

logger = logging.getLogger(__name__)

ENV_VAR = "FORECAST_LAB_ENV"


class Environment(str, Enum):
    """Environment types"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class DataConfig(BaseModel):
    """Dataset location"""
    data_path: str = Field(default="data/raw", description="Directory holding dataset files")
    file_format: str = Field(default="csv", description="Preferred file format (csv or parquet)")

    @field_validator('file_format')
    @classmethod
    def validate_file_format(cls, v):
        if v not in ('csv', 'parquet'):
            raise ValueError('file_format must be csv or parquet')
        return v


class PlotConfig(BaseModel):
    """Plot theme"""
    dpi: int = Field(default=100, ge=50, le=600, description="Figure resolution")
    style: str = Field(default="seaborn-v0_8-whitegrid", description="Matplotlib style sheet")
    palette: str = Field(default="husl", description="Seaborn colour palette")
    figure_width: float = Field(default=10.0, gt=0, description="Figure width in inches")
    figure_height: float = Field(default=5.0, gt=0, description="Figure height in inches")
    output_dir: str = Field(default="reports/figures", description="Where saved figures go")


class ReportConfig(BaseModel):
    """Table rendering"""
    max_rows: int = Field(default=10, ge=1, description="Rows shown when printing tables")
    float_precision: int = Field(default=3, ge=0, le=12, description="Digits shown for floats")


class ForecastConfig(BaseModel):
    """Forecasting defaults"""
    levels: List[int] = Field(default_factory=lambda: [80, 95])
    lambda_lower: float = Field(default=-0.9, description="Lower bound of the Guerrero search")
    lambda_upper: float = Field(default=2.0, description="Upper bound of the Guerrero search")
    bootstrap_times: int = Field(default=1000, ge=1, description="Simulated paths for bootstrap intervals")
    seed: int = Field(default=42, description="Seed for simulated paths")
    cv_initial: int = Field(default=12, ge=1, description="Initial training size for rolling origins")
    cv_step: int = Field(default=1, ge=1, description="Observations added per rolling origin")

    @field_validator('levels')
    @classmethod
    def validate_levels(cls, v):
        for level in v:
            if not 0 < level < 100:
                raise ValueError('Interval levels must lie strictly between 0 and 100')
        return v

    @field_validator('lambda_upper')
    @classmethod
    def validate_lambda_bounds(cls, v, info):
        lower = info.data.get('lambda_lower')
        if lower is not None and v <= lower:
            raise ValueError('lambda_upper must be greater than lambda_lower')
        return v


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = Field(default="INFO", description="Logging level")
    enable_file_logging: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(default="logs/forecast_lab.log", description="Log file path")
    structured: bool = Field(default=False, description="Enable JSON logging")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'Unknown logging level: {v}')
        return level


class AnalysisConfig(BaseModel):
    """Complete workbook configuration"""
    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Current environment")
    data: DataConfig = Field(default_factory=DataConfig)
    plot: PlotConfig = Field(default_factory=PlotConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    forecast: ForecastConfig = Field(default_factory=ForecastConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# Environment variable -> (section, key, type)
ENV_OVERRIDES = {
    'FORECAST_LAB_DATA_PATH': ('data', 'data_path', str),
    'FORECAST_LAB_DPI': ('plot', 'dpi', int),
    'FORECAST_LAB_LOG_LEVEL': ('logging', 'level', str),
    'FORECAST_LAB_MAX_ROWS': ('report', 'max_rows', int),
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay `override` on `base` without mutating either"""
    merged = dict(base)
    for key, value in override.items():
        nested = merged.get(key)
        merged[key] = _deep_merge(nested, value) if isinstance(nested, dict) and isinstance(value, dict) else value
    return merged


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning(f"Config file not found: {path}")
        return {}
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


class ConfigManager:
    """
    Loads base.yaml, overlays <environment>.yaml, then FORECAST_LAB_* variables

    The environment comes from the argument, else FORECAST_LAB_ENV, else
    development. Unknown names fall back to development with a warning.
    """

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        self.config_dir = Path(config_dir) if config_dir else Path(__file__).parent / "environments"
        self._config: Optional[AnalysisConfig] = None
        self._environment: Optional[Environment] = None

    @staticmethod
    def _resolve_environment(name: Optional[str]) -> Environment:
        name = name or os.getenv(ENV_VAR, Environment.DEVELOPMENT.value)
        if name in {e.value for e in Environment}:
            return Environment(name)
        logger.warning(f"Unknown environment '{name}', using development settings")
        return Environment.DEVELOPMENT

    def load_config(self, environment: Optional[str] = None) -> AnalysisConfig:
        """
        Build the configuration for an environment

        Args:
            environment: Environment name; None reads FORECAST_LAB_ENV

        Returns:
            Validated AnalysisConfig, also kept as the current configuration
        """
        env = self._resolve_environment(environment)
        layered = _deep_merge(_read_yaml(self.config_dir / "base.yaml"),
                              _read_yaml(self.config_dir / f"{env.value}.yaml"))
        layered['environment'] = env.value

        for var, (section, key, cast) in ENV_OVERRIDES.items():
            raw = os.getenv(var)
            if raw is not None:
                layered.setdefault(section, {})[key] = cast(raw)
                logger.debug(f"{var} overrides {section}.{key}")

        self._environment = env
        self._config = AnalysisConfig(**layered)
        logger.info(f"Loaded '{env.value}' configuration from {self.config_dir}")
        return self._config

    def get_config(self) -> Optional[AnalysisConfig]:
        return self._config

    def get_environment(self) -> Optional[Environment]:
        return self._environment

    def reload_config(self) -> AnalysisConfig:
        """Re-read the files for the environment loaded last"""
        return self.load_config(self._environment.value if self._environment else None)

    def validate_config(self, config_dict: Dict[str, Any]) -> bool:
        """True when the dictionary builds a valid AnalysisConfig"""
        try:
            AnalysisConfig(**config_dict)
        except ValueError as e:
            logger.error(f"Invalid configuration: {e}")
            return False
        return True


config_manager = ConfigManager()


def get_config(environment: Optional[str] = None) -> AnalysisConfig:
    """Current configuration, loaded on first use or when an environment is named"""
    if environment is None and config_manager.get_config() is not None:
        return config_manager.get_config()
    return config_manager.load_config(environment)


def reload_config() -> AnalysisConfig:
    return config_manager.reload_config()
