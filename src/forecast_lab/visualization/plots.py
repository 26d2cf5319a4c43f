#!/usr/bin/env python3
"""
Time Series Graphics
Time plots, seasonal plots, lag plots, correlograms, decomposition
panels and forecast fans
"""

import pandas as pd
import numpy as np
from typing import Dict, Optional, Union
import logging

import matplotlib.pyplot as plt
import seaborn as sns
from statsmodels.graphics.tsaplots import plot_acf, plot_pacf

from ..data.tsframe import TimeSeriesTable, seasonal_period
from ..decomposition.components import Decomposition
from ..models.baselines import Forecast

logger = logging.getLogger(__name__)


def _period_of(series: pd.Series, period: Optional[int]) -> int:
    if period is not None:
        return period
    return seasonal_period(getattr(series.index, 'freqstr', None))


def _cycle_frame(series: pd.Series, period: int) -> pd.DataFrame:
    """Position within the seasonal cycle and cycle label for every observation"""
    index = series.index
    if isinstance(index, pd.DatetimeIndex) and period in (4, 12):
        season = index.month if period == 12 else index.quarter
        cycle = index.year
    elif isinstance(index, pd.DatetimeIndex) and period == 7:
        season = index.dayofweek + 1
        cycle = index.isocalendar().week.to_numpy()
    else:
        position = np.arange(len(series))
        season = position % period + 1
        cycle = position // period + 1
    return pd.DataFrame({
        'season': np.asarray(season),
        'cycle': np.asarray(cycle),
        'value': series.to_numpy(),
    })


def autoplot(data: Union[TimeSeriesTable, pd.Series], measure: Optional[str] = None,
             ax: Optional[plt.Axes] = None, title: Optional[str] = None) -> plt.Figure:
    """Time plot; one line per keyed series for tables"""
    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    if isinstance(data, pd.Series):
        ax.plot(data.index, data.to_numpy())
        ax.set_ylabel(data.name or '')
    else:
        measure = measure or data.measures[0]
        frame = data.data.copy()
        if data.keys:
            frame['series'] = frame[data.keys].astype(str).agg('/'.join, axis=1)
            sns.lineplot(data=frame, x=data.index, y=measure, hue='series', ax=ax)
        else:
            sns.lineplot(data=frame, x=data.index, y=measure, ax=ax)

    ax.set_title(title or '')
    ax.set_xlabel('')
    fig.autofmt_xdate()
    return fig


def season_plot(series: pd.Series, period: Optional[int] = None,
                ax: Optional[plt.Axes] = None) -> plt.Figure:
    """Values against season, one line per seasonal cycle"""
    period = _period_of(series, period)
    if period < 2:
        raise ValueError("Seasonal plot needs a seasonal period of at least 2")

    frame = _cycle_frame(series, period)
    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    sns.lineplot(data=frame, x='season', y='value', hue='cycle', palette='viridis', ax=ax, legend='brief')
    ax.set_xticks(range(1, period + 1))
    ax.set_ylabel(series.name or '')
    ax.set_title(f"Seasonal plot: {series.name or ''}")
    return fig


def subseries_plot(series: pd.Series, period: Optional[int] = None) -> plt.Figure:
    """One panel per season showing its values over time and their mean"""
    period = _period_of(series, period)
    if period < 2:
        raise ValueError("Subseries plot needs a seasonal period of at least 2")

    frame = _cycle_frame(series, period)
    fig, axes = plt.subplots(1, period, sharey=True, figsize=(max(8, period), 4))

    for season, ax in zip(range(1, period + 1), axes):
        subset = frame[frame['season'] == season]
        ax.plot(subset['cycle'], subset['value'])
        ax.axhline(subset['value'].mean(), color='tab:blue', linestyle='--', linewidth=1)
        ax.set_title(str(season), fontsize=9)
        ax.set_xticks([])

    axes[0].set_ylabel(series.name or '')
    fig.suptitle(f"Subseries plot: {series.name or ''}")
    return fig


def lag_plot(series: pd.Series, lags: int = 9, period: Optional[int] = None) -> plt.Figure:
    """Scatter of y_t against y_(t-k) for k = 1..lags, coloured by season"""
    period = _period_of(series, period)
    n_cols = 3
    n_rows = int(np.ceil(lags / n_cols))
    fig, axes = plt.subplots(n_rows, n_cols, figsize=(10, 3 * n_rows), squeeze=False)

    values = series.to_numpy()
    season = _cycle_frame(series, max(period, 1))['season'].to_numpy()

    for lag, ax in zip(range(1, lags + 1), axes.flat):
        ax.scatter(values[:-lag], values[lag:], c=season[lag:], cmap='viridis', s=10)
        ax.set_title(f'lag {lag}', fontsize=9)
    for ax in list(axes.flat)[lags:]:
        ax.set_visible(False)

    fig.suptitle(f"Lag plots: {series.name or ''}")
    fig.tight_layout()
    return fig


def acf_plot(series: pd.Series, lags: Optional[int] = None, partial: bool = False,
             ax: Optional[plt.Axes] = None) -> plt.Figure:
    """Correlogram (ACF, or PACF when partial=True)"""
    values = series.dropna()
    if lags is None:
        period = _period_of(series, None)
        lags = min(max(2 * period, 20), len(values) // 2 - 1)

    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    if partial:
        plot_pacf(values, lags=lags, ax=ax, zero=False, method='ywm')
    else:
        plot_acf(values, lags=lags, ax=ax, zero=False)
    return fig


def decomposition_plot(decomposition: Decomposition) -> plt.Figure:
    """Observed, trend, seasonal and remainder panels"""
    frame = decomposition.to_frame()
    panels = ['observed', 'trend', 'seasonal', 'remainder']

    fig, axes = plt.subplots(len(panels), 1, sharex=True, figsize=(10, 8))
    for name, ax in zip(panels, axes):
        ax.plot(frame.index, frame[name])
        ax.set_ylabel(name)

    fig.suptitle(f"{decomposition.method.upper()} decomposition ({decomposition.kind})")
    fig.tight_layout()
    return fig


def forecast_plot(history: pd.Series,
                  forecasts: Union[Forecast, Dict[str, Forecast]],
                  actual: Optional[pd.Series] = None,
                  show_intervals: bool = True,
                  ax: Optional[plt.Axes] = None) -> plt.Figure:
    """History followed by point forecasts with shaded prediction intervals"""
    if isinstance(forecasts, Forecast):
        forecasts = {forecasts.model: forecasts}

    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    ax.plot(history.index, history.to_numpy(), color='black', label='observed')
    if actual is not None:
        ax.plot(actual.index, actual.to_numpy(), color='black', linestyle=':', label='actual')

    colours = sns.color_palette(n_colors=len(forecasts))
    for colour, (label, forecast) in zip(colours, forecasts.items()):
        ax.plot(forecast.index, forecast.mean.to_numpy(), color=colour, label=label)
        if show_intervals:
            # Widest interval drawn first and lightest
            for level in sorted(forecast.intervals, reverse=True):
                lower, upper = forecast.intervals[level]
                alpha = 0.15 if level >= 90 else 0.3
                ax.fill_between(forecast.index, lower.to_numpy(), upper.to_numpy(),
                                color=colour, alpha=alpha, linewidth=0)

    ax.legend()
    ax.set_ylabel(history.name or '')
    fig.autofmt_xdate()
    return fig


def residual_plot(residuals: pd.Series, lags: Optional[int] = None) -> plt.Figure:
    """Innovation residuals over time, their ACF and histogram"""
    values = residuals.dropna()

    fig = plt.figure(figsize=(10, 7))
    grid = fig.add_gridspec(2, 2)
    ax_time = fig.add_subplot(grid[0, :])
    ax_acf = fig.add_subplot(grid[1, 0])
    ax_hist = fig.add_subplot(grid[1, 1])

    ax_time.plot(values.index, values.to_numpy())
    ax_time.axhline(0, color='grey', linewidth=0.8)
    ax_time.set_title('Innovation residuals')

    acf_plot(values, lags=lags, ax=ax_acf)
    sns.histplot(values.to_numpy(), kde=True, ax=ax_hist)
    ax_hist.set_title('Distribution')

    fig.tight_layout()
    return fig
