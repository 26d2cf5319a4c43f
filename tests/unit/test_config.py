#!/usr/bin/env python3
"""
Unit Tests for Configuration Management
Tests for AnalysisConfig and ConfigManager
"""

import pytest
import yaml

from forecast_lab.config import (
    AnalysisConfig, ConfigManager, Environment,
    DataConfig, PlotConfig, ForecastConfig, LoggingConfig
)


class TestEnvironmentEnum:
    """Tests for Environment enum"""

    def test_environment_values(self):
        """Test environment enum has correct values"""
        assert Environment.DEVELOPMENT == "development"
        assert Environment.TESTING == "testing"
        assert Environment.PRODUCTION == "production"


class TestConfigModels:
    """Tests for Pydantic configuration models"""

    def test_defaults(self):
        """Test complete configuration defaults"""
        config = AnalysisConfig()

        assert config.environment == "development"
        assert config.data.data_path == "data/raw"
        assert config.plot.dpi == 100
        assert config.forecast.levels == [80, 95]
        assert config.forecast.seed == 42

    def test_file_format_validation(self):
        """Test data config rejects unknown formats"""
        with pytest.raises(ValueError, match="csv or parquet"):
            DataConfig(file_format="xlsx")

    def test_dpi_bounds(self):
        """Test plot dpi must be in range"""
        with pytest.raises(ValueError):
            PlotConfig(dpi=10)

    def test_levels_validation(self):
        """Test interval levels must be percentages"""
        with pytest.raises(ValueError, match="between 0 and 100"):
            ForecastConfig(levels=[80, 100])

    def test_lambda_bounds_validation(self):
        """Test Guerrero search bounds must be ordered"""
        with pytest.raises(ValueError, match="greater than lambda_lower"):
            ForecastConfig(lambda_lower=1.0, lambda_upper=0.5)

    def test_logging_level_uppercased(self):
        """Test logging level is normalised"""
        assert LoggingConfig(level="debug").level == "DEBUG"

        with pytest.raises(ValueError, match="Unknown logging level"):
            LoggingConfig(level="verbose")

    def test_validate_assignment(self):
        """Test assignments are validated"""
        config = AnalysisConfig()
        with pytest.raises(ValueError):
            config.plot = {"dpi": 5}


class TestConfigManager:
    """Tests for ConfigManager"""

    def test_load_testing_config(self, test_config):
        """Test bundled testing environment"""
        assert test_config.environment == "testing"
        assert test_config.plot.dpi == 60
        assert test_config.forecast.bootstrap_times == 200
        assert test_config.logging.level == "WARNING"
        # Inherited from base.yaml
        assert test_config.report.max_rows == 10

    def test_load_production_config(self):
        """Test production overrides"""
        config = ConfigManager().load_config("production")

        assert config.environment == "production"
        assert config.plot.dpi == 200
        assert config.logging.structured is True

    def test_unknown_environment_defaults_to_development(self):
        """Test unknown environment name"""
        manager = ConfigManager()
        config = manager.load_config("staging")

        assert config.environment == "development"
        assert manager.get_environment() == Environment.DEVELOPMENT

    def test_missing_files_give_defaults(self, tmp_path):
        """Test empty config directory falls back to model defaults"""
        config = ConfigManager(config_dir=tmp_path).load_config("testing")

        assert config.plot.dpi == 100
        assert config.environment == "testing"

    def test_deep_merge(self, tmp_path):
        """Test environment file overrides only the keys it names"""
        (tmp_path / "base.yaml").write_text(yaml.safe_dump({
            "plot": {"dpi": 120, "palette": "deep"},
            "report": {"max_rows": 15}
        }))
        (tmp_path / "development.yaml").write_text(yaml.safe_dump({"plot": {"dpi": 300}}))

        config = ConfigManager(config_dir=tmp_path).load_config("development")

        assert config.plot.dpi == 300
        assert config.plot.palette == "deep"
        assert config.report.max_rows == 15

    def test_env_overrides(self, monkeypatch):
        """Test environment variable overrides"""
        monkeypatch.setenv("FORECAST_LAB_DPI", "150")
        monkeypatch.setenv("FORECAST_LAB_DATA_PATH", "/tmp/series")
        monkeypatch.setenv("FORECAST_LAB_LOG_LEVEL", "error")

        config = ConfigManager().load_config("testing")

        assert config.plot.dpi == 150
        assert config.data.data_path == "/tmp/series"
        assert config.logging.level == "ERROR"

    def test_environment_from_variable(self, monkeypatch):
        """Test FORECAST_LAB_ENV selects the environment"""
        monkeypatch.setenv("FORECAST_LAB_ENV", "production")

        assert ConfigManager().load_config().environment == "production"

    def test_reload_keeps_environment(self):
        """Test reload uses the previously loaded environment"""
        manager = ConfigManager()
        manager.load_config("production")

        assert manager.reload_config().environment == "production"

    def test_validate_config(self):
        """Test dictionary validation"""
        manager = ConfigManager()

        assert manager.validate_config({"plot": {"dpi": 100}}) is True
        assert manager.validate_config({"plot": {"dpi": 1}}) is False
