#!/usr/bin/env python3
"""
THE FORECASTER'S TOOLBOX
Chapter 5: simple benchmarks, residual checks and accuracy

This notebook covers:
1. Mean, naive, seasonal naive and drift forecasts
2. Fitted values and residual diagnostics
3. Prediction intervals, bootstrapped intervals and Box-Cox back-transformation
4. Train/test accuracy and rolling-origin cross-validation
"""

import matplotlib
import matplotlib.pyplot as plt
import sys
import os

# Add src to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from forecast_lab import load_dataset, get_lambda
from forecast_lab.config import get_config
from forecast_lab.models import (
    MeanForecaster, NaiveForecaster, SeasonalNaiveForecaster, DriftForecaster, forecast_table
)
from forecast_lab.evaluation import (
    residual_summary, accuracy_table, cross_validate, cv_accuracy, train_test_split
)
from forecast_lab.utils.logging import get_logger, LogContext
from forecast_lab.visualization import set_theme, save_figure, forecast_plot, residual_plot

matplotlib.use('Agg')
logger = get_logger(__name__)


def benchmark_models(period: int):
    return {
        'mean': MeanForecaster(),
        'naive': NaiveForecaster(),
        'snaive': SeasonalNaiveForecaster(period=period),
        'drift': DriftForecaster(),
    }


def simple_methods(co2, config):
    print("=" * 60)
    print("SIMPLE FORECASTING METHODS")
    print("=" * 60)

    train, test = train_test_split(co2, test_size=36)
    models = benchmark_models(12)
    table = forecast_table(train, models, h=len(test), level=config.forecast.levels)
    print(table.groupby('model').head(2))

    forecasts = {label: model.forecast(len(test)) for label, model in models.items()}
    save_figure(forecast_plot(train['1990':], forecasts, actual=test, show_intervals=False), '05_co2_benchmarks')

    print("\nTest set accuracy:")
    print(accuracy_table(forecasts, test, train=train, period=12))
    plt.close('all')


def residual_diagnostics(gdp):
    print("\n" + "=" * 60)
    print("RESIDUAL DIAGNOSTICS")
    print("=" * 60)

    model = NaiveForecaster().fit(gdp)
    summary = residual_summary(model.residuals_, dof=0)
    for key, value in summary.items():
        print(f"  {key:12s} {value}")

    save_figure(residual_plot(model.residuals_), '05_gdp_naive_residuals')
    plt.close('all')


def intervals(gdp, config):
    print("\n" + "=" * 60)
    print("PREDICTION INTERVALS")
    print("=" * 60)

    lam = get_lambda(gdp.to_frame(), 'realgdp', period=4)
    drift = DriftForecaster(lam=lam, bias_adjust=True).fit(gdp)
    analytic = drift.forecast(12, level=config.forecast.levels)
    print(analytic.to_frame().head())

    bootstrapped = drift.bootstrap_forecast(
        12, times=config.forecast.bootstrap_times,
        level=config.forecast.levels, seed=config.forecast.seed
    )
    print(bootstrapped.to_frame().head())

    save_figure(forecast_plot(gdp['1995':], {'analytic': analytic, 'bootstrap': bootstrapped}),
                '05_gdp_drift_intervals')
    plt.close('all')


def rolling_origin(gdp, config):
    print("\n" + "=" * 60)
    print("TIME SERIES CROSS-VALIDATION")
    print("=" * 60)

    factories = {
        'naive': NaiveForecaster,
        'drift': DriftForecaster,
        'snaive': lambda: SeasonalNaiveForecaster(period=4),
    }
    with LogContext(logger, 'cross_validation', h=4):
        results = cross_validate(gdp, factories, h=4, initial=config.forecast.cv_initial * 4,
                                 step=config.forecast.cv_step)

    print(cv_accuracy(results))
    print(cv_accuracy(results, by_horizon=True).head(8))


def main():
    """Main execution function"""

    print("FORECAST LAB")
    print("CHAPTER 5: THE FORECASTER'S TOOLBOX")
    print("=" * 80)

    set_theme()
    config = get_config()
    co2 = load_dataset('co2').resample('MS', how='mean').series('co2').interpolate().dropna()
    gdp = load_dataset('us_macro').series('realgdp')

    simple_methods(co2, config)
    residual_diagnostics(gdp)
    intervals(gdp, config)
    rolling_origin(gdp, config)

    print("\n" + "=" * 80)
    print("[OK] Toolbox notebook finished")


if __name__ == "__main__":
    main()
