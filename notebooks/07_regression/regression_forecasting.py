#!/usr/bin/env python3
"""
TIME SERIES REGRESSION
Chapter 7: linear models for forecasting

This notebook covers:
1. Consumption growth regressed on income, investment and unemployment
2. Fit statistics and predictor selection
3. Trend, season dummies, Fourier terms and piecewise trends
4. Scenario based forecasts
"""

import pandas as pd
import numpy as np
import matplotlib
import matplotlib.pyplot as plt
import seaborn as sns
import sys
import os

# Add src to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from forecast_lab import load_dataset
from forecast_lab.models import TimeSeriesRegression, select_predictors
from forecast_lab.evaluation import residual_summary, train_test_split, accuracy
from forecast_lab.utils.logging import get_logger
from forecast_lab.visualization import set_theme, save_figure, forecast_plot, residual_plot

matplotlib.use('Agg')
logger = get_logger(__name__)

PREDICTORS = ['realdpi', 'realinv', 'unemp']


def growth_rates(us_macro) -> pd.DataFrame:
    """Quarterly percentage changes of the real aggregates; unemployment in differences"""
    frame = us_macro.data.set_index(us_macro.index).asfreq(us_macro.freq)
    changes = pd.DataFrame({
        'realcons': frame['realcons'].pct_change() * 100,
        'realdpi': frame['realdpi'].pct_change() * 100,
        'realinv': frame['realinv'].pct_change() * 100,
        'unemp': frame['unemp'].diff(),
    })
    return changes.dropna()


def consumption_model(changes: pd.DataFrame):
    print("=" * 60)
    print("CONSUMPTION GROWTH REGRESSION")
    print("=" * 60)

    fig, ax = plt.subplots()
    sns.regplot(data=changes, x='realdpi', y='realcons', ax=ax, scatter_kws={'s': 10})
    save_figure(fig, '07_cons_vs_income')

    model = TimeSeriesRegression(exog=PREDICTORS, trend=False).fit(changes['realcons'], changes)
    print(model.coefficients())
    for key, value in model.glance().items():
        print(f"  {key:14s} {value:.4f}")

    summary = residual_summary(model.residuals_, dof=len(PREDICTORS) + 1)
    print(f"Residual Ljung-Box p-value: {summary['lb_pvalue']:.4f}")
    save_figure(residual_plot(model.residuals_), '07_cons_residuals')

    print("\nBest subsets by CV:")
    print(select_predictors(changes['realcons'], changes, PREDICTORS, criterion='CV', trend=False))
    plt.close('all')
    return model


def scenarios(model: TimeSeriesRegression, changes: pd.DataFrame, h: int = 8):
    print("\n" + "=" * 60)
    print("SCENARIO FORECASTS")
    print("=" * 60)

    def future(income: float, investment: float, unemployment: float) -> pd.DataFrame:
        return pd.DataFrame({
            'realdpi': np.full(h, income),
            'realinv': np.full(h, investment),
            'unemp': np.full(h, unemployment),
        })

    table = model.scenario_forecast({
        'optimistic': future(1.0, 2.0, -0.1),
        'pessimistic': future(-0.5, -3.0, 0.3),
    })
    print(table.groupby('scenario')['mean'].describe()[['mean', 'min', 'max']])

    forecasts = {
        'optimistic': model.forecast(new_data=future(1.0, 2.0, -0.1)),
        'pessimistic': model.forecast(new_data=future(-0.5, -3.0, 0.3)),
    }
    save_figure(forecast_plot(changes['realcons']['2000':], forecasts), '07_cons_scenarios')
    plt.close('all')


def trend_and_season(co2: pd.Series):
    print("\n" + "=" * 60)
    print("TREND, SEASONALITY AND FOURIER TERMS")
    print("=" * 60)

    train, test = train_test_split(co2, test_size=36)

    candidates = {
        'trend + season': TimeSeriesRegression(trend=True, season=True, period=12),
        'trend + fourier K=2': TimeSeriesRegression(trend=True, fourier_k=2, period=12),
        'trend + fourier K=6': TimeSeriesRegression(trend=True, fourier_k=6, period=12),
        'piecewise + season': TimeSeriesRegression(trend=True, season=True, period=12,
                                                     knots=['1980-01-01', '1995-01-01']),
    }

    rows = []
    forecasts = {}
    for label, model in candidates.items():
        model.fit(train)
        forecast = model.forecast(len(test))
        forecasts[label] = forecast
        row = {'model': label, **{k: model.glance()[k] for k in ('adj_r_squared', 'AICc', 'CV')}}
        row['test_RMSE'] = accuracy(forecast, test)['RMSE']
        rows.append(row)

    print(pd.DataFrame(rows).sort_values('AICc'))
    save_figure(forecast_plot(train['2000':], forecasts, actual=test, show_intervals=False), '07_co2_regressions')
    plt.close('all')


def main():
    """Main execution function"""

    print("FORECAST LAB")
    print("CHAPTER 7: TIME SERIES REGRESSION")
    print("=" * 80)

    set_theme()
    us_macro = load_dataset('us_macro')
    co2 = load_dataset('co2').resample('MS', how='mean').series('co2').interpolate().dropna()

    changes = growth_rates(us_macro)
    model = consumption_model(changes)
    scenarios(model, changes)
    trend_and_season(co2)

    print("\n" + "=" * 80)
    print("[OK] Regression notebook finished")


if __name__ == "__main__":
    main()
