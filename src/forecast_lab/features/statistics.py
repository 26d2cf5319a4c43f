#!/usr/bin/env python3
"""
Time Series Features
STL strength measures, autocorrelation features, unit root tests and
principal components of per-series feature tables
"""

import pandas as pd
import numpy as np
from typing import Dict, Any, List, Optional, Tuple
import logging
import warnings

from statsmodels.tsa.stattools import acf, kpss
from statsmodels.tools.sm_exceptions import InterpolationWarning
from statsmodels.nonparametric.smoothers_lowess import lowess
from sklearn.decomposition import PCA
from sklearn.preprocessing import StandardScaler

from ..data.tsframe import TimeSeriesTable, seasonal_period
from ..decomposition.methods import stl_decomposition
from .transforms import guerrero
from ..utils.logging import performance_monitor

logger = logging.getLogger(__name__)

# Seasonal strength above this suggests one seasonal difference
SEASONAL_STRENGTH_THRESHOLD = 0.64


def _strength(component: np.ndarray, remainder: np.ndarray) -> float:
    denominator = np.nanvar(component + remainder, ddof=1)
    if denominator == 0 or np.isnan(denominator):
        return 0.0
    return float(max(0.0, 1 - np.nanvar(remainder, ddof=1) / denominator))


def _orthogonal_poly(n: int) -> np.ndarray:
    """Orthonormal linear and quadratic time polynomials, like R's poly(t, 2)"""
    t = np.arange(1, n + 1, dtype=float)
    design = np.column_stack([np.ones(n), t, t ** 2])
    q, _ = np.linalg.qr(design)
    basis = q[:, 1:3]
    if basis[-1, 0] < basis[0, 0]:
        basis[:, 0] = -basis[:, 0]
    if basis[-1, 1] < 0:
        basis[:, 1] = -basis[:, 1]
    return basis


def _cycle_position(index: pd.Index, position: int, period: int) -> int:
    if isinstance(index, pd.DatetimeIndex):
        stamp = index[position]
        if period == 12:
            return stamp.month - 1
        if period == 4:
            return stamp.quarter - 1
        if period == 7:
            return stamp.dayofweek
    return position % period


def stl_features(series: pd.Series, period: Optional[int] = None) -> Dict[str, float]:
    """
    Strength of trend and seasonality and shape of the trend

    Args:
        series: Regular series without missing values
        period: Seasonal period; inferred from the index when omitted.
            Non-seasonal series (period < 2) get a lowess trend only.

    Returns:
        trend_strength, seasonal_strength, seasonal_peak, seasonal_trough,
        spikiness, linearity, curvature, stl_e_acf1, stl_e_acf10
    """
    values = series.dropna()
    n = len(values)

    if period is None:
        period = seasonal_period(getattr(series.index, 'freqstr', None))

    features: Dict[str, float] = {}

    if period >= 2 and n >= 2 * period:
        decomposition = stl_decomposition(values, period=period)
        trend = decomposition.trend.to_numpy()
        seasonal = decomposition.seasonal.to_numpy()
        remainder = decomposition.remainder.to_numpy()

        features['seasonal_strength'] = _strength(seasonal, remainder)
        # Peak/trough measured over the final complete cycle
        last_cycle = seasonal[-period:]
        offset = n - period
        features['seasonal_peak'] = _cycle_position(values.index, offset + int(np.argmax(last_cycle)), period)
        features['seasonal_trough'] = _cycle_position(values.index, offset + int(np.argmin(last_cycle)), period)
    else:
        x = np.arange(n, dtype=float)
        trend = lowess(values.to_numpy(), x, frac=min(1.0, max(0.1, 13 / max(n, 1))), return_sorted=False)
        remainder = values.to_numpy() - trend

    features['trend_strength'] = _strength(trend, remainder)

    # Variance of leave-one-out variances of the remainder
    d = (remainder - np.mean(remainder)) ** 2
    var_r = np.var(remainder, ddof=1)
    varloo = (var_r * (n - 1) - d) / (n - 2)
    features['spikiness'] = float(np.var(varloo, ddof=1))

    basis = _orthogonal_poly(n)
    design = np.column_stack([np.ones(n), basis])
    coefficients, *_ = np.linalg.lstsq(design, trend, rcond=None)
    features['linearity'] = float(coefficients[1])
    features['curvature'] = float(coefficients[2])

    remainder_acf = acf(remainder, nlags=min(10, n - 1), fft=False)
    features['stl_e_acf1'] = float(remainder_acf[1])
    features['stl_e_acf10'] = float(np.sum(remainder_acf[1:11] ** 2))

    return features


def acf_features(series: pd.Series, period: int = 1) -> Dict[str, float]:
    """
    Autocorrelation features of the series and its differences

    Returns:
        acf1, acf10, diff1_acf1, diff1_acf10, diff2_acf1, diff2_acf10
        and season_acf1 for seasonal data
    """
    values = series.dropna().to_numpy(dtype=float)

    def _summary(x: np.ndarray, prefix: str) -> Dict[str, float]:
        nlags = min(max(10, period), len(x) - 1)
        if nlags < 1:
            return {f'{prefix}acf1': np.nan, f'{prefix}acf10': np.nan}
        r = acf(x, nlags=nlags, fft=False)
        return {
            f'{prefix}acf1': float(r[1]),
            f'{prefix}acf10': float(np.sum(r[1:11] ** 2)),
        }

    features = _summary(values, '')
    features.update(_summary(np.diff(values), 'diff1_'))
    features.update(_summary(np.diff(values, n=2), 'diff2_'))

    if period > 1:
        if len(values) > period:
            features['season_acf1'] = float(acf(values, nlags=period, fft=False)[period])
        else:
            features['season_acf1'] = np.nan

    return features


def unitroot_kpss(series: pd.Series) -> Dict[str, float]:
    """KPSS level-stationarity test; small p-values suggest differencing"""
    values = series.dropna().to_numpy(dtype=float)
    with warnings.catch_warnings():
        # p-values outside the lookup table are truncated to [0.01, 0.1]
        warnings.simplefilter('ignore', InterpolationWarning)
        statistic, p_value, lags, _ = kpss(values, regression='c', nlags='auto')
    return {'kpss_stat': float(statistic), 'kpss_pvalue': float(p_value), 'kpss_lags': int(lags)}


def ndiffs(series: pd.Series, alpha: float = 0.05, max_d: int = 2) -> int:
    """Number of first differences needed for a stationary series (repeated KPSS)"""
    values = series.dropna()
    for d in range(max_d + 1):
        if len(values) < 3 or unitroot_kpss(values)['kpss_pvalue'] >= alpha:
            return d
        values = values.diff().dropna()
    return max_d


def nsdiffs(series: pd.Series, period: int, max_d: int = 1) -> int:
    """Number of seasonal differences suggested by STL seasonal strength"""
    values = series.dropna()
    for d in range(max_d + 1):
        if len(values) < 2 * period:
            return d
        strength = stl_features(values, period=period).get('seasonal_strength', 0.0)
        if strength < SEASONAL_STRENGTH_THRESHOLD:
            return d
        values = values.diff(period).dropna()
    return max_d


def series_features(series: pd.Series, period: int) -> Dict[str, Any]:
    """All features for one series"""
    values = series.dropna()
    features: Dict[str, Any] = {
        'mean': float(values.mean()),
        'variance': float(values.var()),
        'n_obs': int(len(values)),
    }
    features.update(stl_features(values, period=period))
    features.update(acf_features(values, period=period))
    features.update(unitroot_kpss(values))
    features['ndiffs'] = ndiffs(values)
    if period > 1:
        features['nsdiffs'] = nsdiffs(values, period=period)
    if (values > 0).all():
        features['lambda_guerrero'] = guerrero(values.to_numpy(), period=period)
    return features


@performance_monitor()
def feature_table(table: TimeSeriesTable, column: str) -> pd.DataFrame:
    """One row of features per keyed series"""
    period = table.period
    logger.info(f"Computing features for {len(table.key_values())} series of '{column}'")
    return table.group_apply(lambda s: series_features(s, period), measure=column)


def pca_features(features: pd.DataFrame,
                 n_components: int = 2,
                 exclude: Optional[List[str]] = None) -> Tuple[pd.DataFrame, np.ndarray]:
    """
    Principal components of a feature table

    Numeric columns are standardised first; rows with missing features
    are dropped.

    Args:
        features: Output of feature_table
        n_components: Number of components to keep
        exclude: Numeric columns to leave out

    Returns:
        (scores table with the non-numeric columns and PC1..PCk, explained variance ratio)
    """
    exclude = set(exclude or [])
    all_numeric = list(features.select_dtypes(include=[np.number, 'bool']).columns)
    numeric = [col for col in all_numeric if col not in exclude]
    complete = features.dropna(subset=numeric)
    dropped = len(features) - len(complete)
    if dropped:
        logger.warning(f"Dropped {dropped} rows with missing features before PCA")

    # Constant columns carry no information and break standardisation
    numeric = [col for col in numeric if complete[col].nunique() > 1]

    scaled = StandardScaler().fit_transform(complete[numeric].astype(float))
    pca = PCA(n_components=n_components)
    scores = pca.fit_transform(scaled)

    labels = complete[[c for c in complete.columns if c not in all_numeric]]
    result = labels.reset_index(drop=True)
    for i in range(n_components):
        result[f'PC{i + 1}'] = scores[:, i]

    return result, pca.explained_variance_ratio_
