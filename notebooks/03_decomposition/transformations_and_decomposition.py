#!/usr/bin/env python3
"""
TRANSFORMATIONS AND DECOMPOSITION
Chapter 3: adjusting series and splitting them into components

This notebook covers:
1. Population, inflation and calendar adjustments
2. Box-Cox transformations with the Guerrero lambda
3. Moving averages and classical decomposition
4. STL, X-11 and SEATS decompositions
"""

import pandas as pd
import numpy as np
import matplotlib
import matplotlib.pyplot as plt
import sys
import os

# Add src to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from forecast_lab import load_dataset, get_lambda
from forecast_lab.features import box_cox, inv_box_cox, per_capita, inflation_adjust, calendar_adjust
from forecast_lab.decomposition import (
    moving_average, double_moving_average, decompose
)
from forecast_lab.exceptions import DecompositionUnavailableError, DatasetNotFoundError
from forecast_lab.utils.logging import get_logger
from forecast_lab.visualization import set_theme, save_figure, autoplot, decomposition_plot

matplotlib.use('Agg')
logger = get_logger(__name__)


def adjustments(us_macro):
    print("=" * 60)
    print("ADJUSTMENTS")
    print("=" * 60)

    # pop is in millions, realgdp in billions of chained 2005 dollars
    table = us_macro.mutate(
        gdp_per_capita=lambda d: per_capita(d['realgdp'], d['pop'], scale=1000),
        real_m1=lambda d: inflation_adjust(d['m1'], d['cpi'])
    )
    gdp_pc = table.series('gdp_per_capita')
    print(f"Real GDP per capita (thousands): {gdp_pc.iloc[0]:.2f} -> {gdp_pc.iloc[-1]:.2f}")
    save_figure(autoplot(table.select('gdp_per_capita'), title='Real GDP per capita'), '03_gdp_per_capita')
    save_figure(autoplot(table.select('real_m1'), title='M1 in constant prices'), '03_real_m1')

    try:
        retail = load_dataset('aus_retail')
    except DatasetNotFoundError as e:
        logger.warning(f"Skipping calendar adjustment example: {e}")
    else:
        total = retail.aggregate('Turnover').series('Turnover')
        daily = calendar_adjust(total)
        print(f"Average daily turnover, last month: {daily.iloc[-1]:.1f}")
    plt.close('all')
    return table


def transformations(us_macro, co2_monthly):
    print("\n" + "=" * 60)
    print("BOX-COX TRANSFORMATIONS")
    print("=" * 60)

    for table, column in [(us_macro, 'realgdp'), (us_macro, 'realinv'), (co2_monthly, 'co2')]:
        lam = get_lambda(table, column)
        print(f"{column:10s} lambda = {lam:7.4f}")

    investment = us_macro.series('realinv')
    lam = get_lambda(us_macro, 'realinv')
    transformed = box_cox(investment, lam)
    recovered = inv_box_cox(transformed, lam)
    print(f"Round trip max error: {np.max(np.abs(recovered - investment)):.2e}")

    save_figure(autoplot(transformed.rename(f'Box-Cox realinv (λ={lam:.2f})')), '03_realinv_boxcox')
    plt.close('all')


def moving_averages(sunspots, co2_monthly):
    print("\n" + "=" * 60)
    print("MOVING AVERAGES")
    print("=" * 60)

    spots = sunspots.series('Sunspots')
    smoothed = pd.DataFrame({
        'observed': spots,
        '5-MA': moving_average(spots, 5),
        '11-MA': moving_average(spots, 11),
    })
    print(smoothed.dropna().tail())

    co2 = co2_monthly.series('co2').interpolate()
    trend = double_moving_average(co2, 12)
    print(f"2x12-MA trend rises {trend.dropna().iloc[-1] - trend.dropna().iloc[0]:.1f} ppm")

    fig, ax = plt.subplots()
    ax.plot(co2.index, co2.to_numpy(), color='grey', label='observed')
    ax.plot(trend.index, trend.to_numpy(), color='tab:red', label='2x12-MA')
    ax.legend()
    save_figure(fig, '03_co2_trend')
    plt.close('all')


def decompositions(us_macro, co2_monthly):
    print("\n" + "=" * 60)
    print("DECOMPOSITIONS")
    print("=" * 60)

    co2 = co2_monthly.series('co2').interpolate().dropna()

    classical = decompose(co2, method='classical', kind='additive')
    save_figure(decomposition_plot(classical), '03_co2_classical')

    stl = decompose(co2, method='stl', seasonal=13, robust=True)
    save_figure(decomposition_plot(stl), '03_co2_stl')
    print(stl.to_frame().tail())

    consumption = us_macro.series('realcons')
    for method in ('x11', 'seats'):
        try:
            result = decompose(consumption, method=method)
        except DecompositionUnavailableError as e:
            logger.warning(f"{method.upper()} skipped: {e}")
            continue
        save_figure(decomposition_plot(result), f'03_realcons_{method}')
    plt.close('all')


def main():
    """Main execution function"""

    print("FORECAST LAB")
    print("CHAPTER 3: TRANSFORMATIONS AND DECOMPOSITION")
    print("=" * 80)

    set_theme()
    us_macro = load_dataset('us_macro')
    co2_monthly = load_dataset('co2').resample('MS', how='mean')
    sunspots = load_dataset('sunspots')

    adjustments(us_macro)
    transformations(us_macro, co2_monthly)
    moving_averages(sunspots, co2_monthly)
    decompositions(us_macro, co2_monthly)

    print("\n" + "=" * 80)
    print("[OK] Decomposition notebook finished")


if __name__ == "__main__":
    main()
