#!/usr/bin/env python3
"""
Unit Tests for Time Series Graphics
"""

import pytest
import pandas as pd
import numpy as np
import matplotlib.pyplot as plt

from forecast_lab.visualization import (
    autoplot, season_plot, subseries_plot, lag_plot, acf_plot,
    decomposition_plot, forecast_plot, residual_plot, set_theme, save_figure
)
from forecast_lab.decomposition import stl_decomposition
from forecast_lab.models import NaiveForecaster, SeasonalNaiveForecaster


class TestPlots:
    """Tests for plotting functions"""

    def test_autoplot_series(self, monthly_series):
        """Test single series time plot"""
        fig = autoplot(monthly_series, title='Sales')

        assert isinstance(fig, plt.Figure)
        assert fig.axes[0].get_title() == 'Sales'
        assert len(fig.axes[0].lines) == 1

    def test_autoplot_table(self, keyed_table):
        """Test one line per keyed series"""
        fig = autoplot(keyed_table, 'Visitors')
        assert len(fig.axes[0].lines) >= 3

    def test_season_plot(self, monthly_series):
        """Test one line per year"""
        fig = season_plot(monthly_series)
        assert len(fig.axes[0].lines) >= 10

    def test_season_plot_needs_period(self, random_walk):
        """Test annual data has no seasonal plot"""
        with pytest.raises(ValueError):
            season_plot(random_walk)

    def test_subseries_plot(self, quarterly_series):
        """Test one panel per quarter"""
        fig = subseries_plot(quarterly_series)
        assert len(fig.axes) == 4

    def test_subseries_plot_needs_period(self, random_walk):
        """Test annual data has no subseries plot"""
        with pytest.raises(ValueError):
            subseries_plot(random_walk)

    def test_lag_plot(self, quarterly_series):
        """Test unused panels hidden"""
        fig = lag_plot(quarterly_series, lags=4)
        visible = [ax for ax in fig.axes if ax.get_visible()]

        assert len(fig.axes) == 6
        assert len(visible) == 4

    def test_acf_and_pacf(self, ar_series):
        """Test correlograms"""
        assert isinstance(acf_plot(ar_series), plt.Figure)
        assert isinstance(acf_plot(ar_series, lags=10, partial=True), plt.Figure)

    def test_decomposition_plot(self, monthly_series):
        """Test four component panels"""
        fig = decomposition_plot(stl_decomposition(monthly_series))
        assert len(fig.axes) == 4

    def test_forecast_plot(self, monthly_series):
        """Test forecasts of several models with intervals"""
        train, test = monthly_series.iloc[:-12], monthly_series.iloc[-12:]
        forecasts = {
            'naive': NaiveForecaster().fit(train).forecast(12),
            'snaive': SeasonalNaiveForecaster(period=12).fit(train).forecast(12),
        }

        fig = forecast_plot(train, forecasts, actual=test)
        ax = fig.axes[0]

        assert len(ax.lines) == 4
        assert len(ax.collections) == 4

    def test_forecast_plot_without_intervals(self, random_walk):
        """Test point forecasts only"""
        fig = forecast_plot(random_walk, NaiveForecaster().fit(random_walk).forecast(5), show_intervals=False)
        assert len(fig.axes[0].collections) == 0

    def test_residual_plot(self, monthly_series):
        """Test time, ACF and histogram panels"""
        residuals = NaiveForecaster().fit(monthly_series).residuals_
        fig = residual_plot(residuals)
        assert len(fig.axes) == 3


class TestTheme:
    """Tests for theme and figure saving"""

    def test_set_theme(self, test_config):
        """Test display options applied"""
        config = set_theme(test_config)

        assert config is test_config
        assert pd.get_option('display.max_rows') == test_config.report.max_rows
        assert plt.rcParams['figure.dpi'] == test_config.plot.dpi

    def test_save_figure(self, monthly_series, tmp_path):
        """Test PNG written"""
        fig = autoplot(monthly_series)
        path = save_figure(fig, 'sales', output_dir=tmp_path)

        assert path == tmp_path / 'sales.png'
        assert path.exists()
        assert path.stat().st_size > 0
