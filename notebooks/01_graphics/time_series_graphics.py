#!/usr/bin/env python3
"""
TIME SERIES GRAPHICS
Chapter 2: looking at the data before modelling it

This notebook covers:
1. Time plots of single and keyed series
2. Seasonal and subseries plots
3. Lag plots and autocorrelation
4. White noise as a reference point

Figures are written to the configured figures directory.
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
from forecast_lab.exceptions import DatasetNotFoundError
from forecast_lab.utils.logging import get_logger
from forecast_lab.visualization import (
    set_theme, save_figure, autoplot, season_plot, subseries_plot, lag_plot, acf_plot
)
from forecast_lab.evaluation import ljung_box

matplotlib.use('Agg')
logger = get_logger(__name__)


def preamble():
    """Theme plus the datasets used throughout the chapter"""
    config = set_theme()

    us_macro = load_dataset('us_macro')
    co2 = load_dataset('co2')
    sunspots = load_dataset('sunspots')

    print("=" * 60)
    print("DATASETS")
    print("=" * 60)
    for table in (us_macro, co2, sunspots):
        print(table)

    # Monthly averages give the weekly CO2 record a 12 month season
    co2_monthly = co2.resample('MS', how='mean')

    lam = get_lambda(us_macro, 'realgdp')
    print(f"\nGuerrero lambda for real GDP: {lam:.4f}")

    return config, us_macro, co2_monthly, sunspots


def time_plots(us_macro, co2_monthly, sunspots):
    print("\n" + "=" * 60)
    print("TIME PLOTS")
    print("=" * 60)

    gdp = us_macro.series('realgdp')
    save_figure(autoplot(gdp, title='US real GDP'), '01_realgdp')
    save_figure(autoplot(co2_monthly, title='Mauna Loa CO2 (monthly mean)'), '01_co2')
    save_figure(autoplot(sunspots, title='Yearly sunspot activity'), '01_sunspots')

    print(f"Real GDP: {gdp.index[0]:%Y-%m} to {gdp.index[-1]:%Y-%m}, {len(gdp)} quarters")
    plt.close('all')


def seasonal_plots(us_macro, co2_monthly):
    print("\n" + "=" * 60)
    print("SEASONAL PATTERNS")
    print("=" * 60)

    co2 = co2_monthly.series('co2').interpolate()
    save_figure(season_plot(co2), '01_co2_season')
    save_figure(subseries_plot(co2), '01_co2_subseries')

    by_month = co2.groupby(co2.index.month).mean()
    print(f"CO2 peaks in month {by_month.idxmax()} and bottoms out in month {by_month.idxmin()}")

    unemployment = us_macro.series('unemp')
    save_figure(season_plot(unemployment), '01_unemp_season')
    plt.close('all')


def lags_and_autocorrelation(co2_monthly, sunspots):
    print("\n" + "=" * 60)
    print("LAG PLOTS AND AUTOCORRELATION")
    print("=" * 60)

    co2 = co2_monthly.series('co2').interpolate()
    save_figure(lag_plot(co2, lags=12), '01_co2_lags')
    save_figure(acf_plot(co2, lags=48), '01_co2_acf')

    spots = sunspots.series('Sunspots')
    save_figure(acf_plot(spots, lags=40), '01_sunspots_acf')
    print("Sunspot ACF oscillates with the ~11 year solar cycle")
    plt.close('all')


def white_noise(seed: int):
    print("\n" + "=" * 60)
    print("WHITE NOISE")
    print("=" * 60)

    rng = np.random.default_rng(seed)
    noise = pd.Series(rng.normal(size=50), index=pd.RangeIndex(1, 51), name='wn')
    save_figure(autoplot(noise, title='White noise'), '01_white_noise')
    save_figure(acf_plot(noise, lags=15), '01_white_noise_acf')

    bound = 2 / np.sqrt(len(noise))
    result = ljung_box(noise, lag=10)
    print(f"95% ACF bounds: ±{bound:.3f}")
    print(f"Ljung-Box Q={result['lb_stat']:.2f}, p={result['lb_pvalue']:.3f}")
    plt.close('all')


def file_backed_examples():
    """Datasets that need files under data/raw"""
    try:
        production = load_dataset('aus_production')
    except DatasetNotFoundError as e:
        logger.warning(f"Skipping aus_production examples: {e}")
        return

    beer = production.filter_index(start='1992-01-01').series('Beer')
    save_figure(season_plot(beer), '01_beer_season')
    save_figure(subseries_plot(beer), '01_beer_subseries')
    save_figure(lag_plot(beer, lags=9), '01_beer_lags')
    plt.close('all')


def main():
    """Main execution function"""

    print("FORECAST LAB")
    print("CHAPTER 2: TIME SERIES GRAPHICS")
    print("=" * 80)

    config, us_macro, co2_monthly, sunspots = preamble()
    time_plots(us_macro, co2_monthly, sunspots)
    seasonal_plots(us_macro, co2_monthly)
    lags_and_autocorrelation(co2_monthly, sunspots)
    white_noise(config.forecast.seed)
    file_backed_examples()

    print("\n" + "=" * 80)
    print(f"[OK] Figures saved to: {config.plot.output_dir}")


if __name__ == "__main__":
    main()
