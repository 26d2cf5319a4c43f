#!/usr/bin/env python3
"""
TIME SERIES FEATURES
Chapter 4: summarising many series with a handful of numbers

This notebook covers:
1. Simple statistics and ACF features
2. STL strength of trend and seasonality
3. Unit root features (KPSS, ndiffs, nsdiffs)
4. Principal components across a collection of series
"""

import matplotlib
import matplotlib.pyplot as plt
import seaborn as sns
import sys
import os

# Add src to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from forecast_lab import load_dataset, TimeSeriesTable
from forecast_lab.features import (
    acf_features, stl_features, unitroot_kpss, ndiffs, nsdiffs, feature_table, pca_features,
    guerrero_by_key
)
from forecast_lab.exceptions import DatasetNotFoundError
from forecast_lab.utils.logging import get_logger
from forecast_lab.visualization import set_theme, save_figure

matplotlib.use('Agg')
logger = get_logger(__name__)


def macro_collection(us_macro) -> TimeSeriesTable:
    """US macro measures stacked into one keyed table"""
    columns = ['realgdp', 'realcons', 'realinv', 'realgovt', 'realdpi', 'cpi', 'm1', 'pop']
    long = us_macro.data.melt(id_vars=[us_macro.index], value_vars=columns,
                              var_name='series', value_name='value')
    return TimeSeriesTable.from_frame(long, index=us_macro.index, keys=['series'],
                                      measures=['value'], freq=us_macro.freq)


def single_series_features(co2):
    print("=" * 60)
    print("FEATURES OF ONE SERIES")
    print("=" * 60)

    for name, values in [('acf', acf_features(co2, period=12)),
                         ('stl', stl_features(co2, period=12)),
                         ('kpss', unitroot_kpss(co2))]:
        print(f"\n{name}:")
        for key, value in values.items():
            print(f"  {key:20s} {value:10.4f}")

    print(f"\nndiffs = {ndiffs(co2)}, nsdiffs = {nsdiffs(co2, period=12)}")


def collection_features(collection: TimeSeriesTable):
    print("\n" + "=" * 60)
    print("FEATURES ACROSS SERIES")
    print("=" * 60)

    features = feature_table(collection, 'value')
    print(features[['series', 'trend_strength', 'seasonal_strength', 'ndiffs']])

    lambdas = guerrero_by_key(collection, 'value')
    print(lambdas)

    fig, ax = plt.subplots()
    sns.scatterplot(data=features, x='trend_strength', y='seasonal_strength', hue='series', ax=ax)
    save_figure(fig, '04_strengths')

    scores, explained = pca_features(features, n_components=2, exclude=['n_obs'])
    print(f"\nPC1 explains {explained[0]:.1%}, PC2 {explained[1]:.1%}")

    fig, ax = plt.subplots()
    sns.scatterplot(data=scores, x='PC1', y='PC2', hue='series', ax=ax)
    save_figure(fig, '04_pca')
    plt.close('all')
    return features


def tourism_features():
    try:
        tourism = load_dataset('tourism')
    except DatasetNotFoundError as e:
        logger.warning(f"Skipping tourism features: {e}")
        return None

    features = feature_table(tourism, 'Trips')
    scores, explained = pca_features(features, n_components=2)
    print(f"Tourism: {len(features)} series, PC1 explains {explained[0]:.1%}")

    fig, ax = plt.subplots()
    sns.scatterplot(data=scores, x='PC1', y='PC2', hue='Purpose', ax=ax)
    save_figure(fig, '04_tourism_pca')
    plt.close('all')
    return scores


def main():
    """Main execution function"""

    print("FORECAST LAB")
    print("CHAPTER 4: TIME SERIES FEATURES")
    print("=" * 80)

    set_theme()
    us_macro = load_dataset('us_macro')
    co2 = load_dataset('co2').resample('MS', how='mean').series('co2').interpolate().dropna()

    single_series_features(co2)
    features = collection_features(macro_collection(us_macro))
    tourism_features()

    print("\n" + "=" * 80)
    print(f"[OK] Computed {features.shape[1]} features for {len(features)} series")


if __name__ == "__main__":
    main()
