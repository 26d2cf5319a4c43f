from .settings import (
    AnalysisConfig, ConfigManager, Environment,
    DataConfig, PlotConfig, ReportConfig, ForecastConfig, LoggingConfig,
    get_config, reload_config
)

__all__ = [
    'AnalysisConfig', 'ConfigManager', 'Environment',
    'DataConfig', 'PlotConfig', 'ReportConfig', 'ForecastConfig', 'LoggingConfig',
    'get_config', 'reload_config'
]
