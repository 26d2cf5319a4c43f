#!/usr/bin/env python3
"""
Forecast Accuracy Metrics
Scale-dependent, percentage, scaled and distributional accuracy measures
"""

import numpy as np
import pandas as pd
from typing import Union, Dict, Optional, Sequence
import warnings
from scipy import stats

from ..exceptions import SeriesSelectionError

ArrayLike = Union[np.ndarray, pd.Series]


def _errors(y_true: ArrayLike, y_pred: ArrayLike):
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if len(y_true) != len(y_pred):
        raise ValueError("y_true and y_pred must have same length")
    return y_true, y_true - y_pred


def me(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """Mean Error (positive when forecasts are too low)"""
    _, e = _errors(y_true, y_pred)
    return float(np.nanmean(e))


def mae(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """Mean Absolute Error"""
    _, e = _errors(y_true, y_pred)
    return float(np.nanmean(np.abs(e)))


def rmse(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """Root Mean Square Error"""
    _, e = _errors(y_true, y_pred)
    return float(np.sqrt(np.nanmean(e ** 2)))


def mpe(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """Mean Percentage Error"""
    y, e = _errors(y_true, y_pred)
    with np.errstate(divide='ignore', invalid='ignore'):
        return float(np.nanmean(100 * e / y))


def mape(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Mean Absolute Percentage Error

    Infinite when any actual value is zero.

    Returns:
        MAPE as percentage
    """
    y, e = _errors(y_true, y_pred)
    with np.errstate(divide='ignore', invalid='ignore'):
        return float(np.nanmean(np.abs(100 * e / y)))


def smape(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Symmetric Mean Absolute Percentage Error

    sMAPE = 100 * mean(2 * |actual - forecast| / (|actual| + |forecast|))
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    numerator = 2 * np.abs(y_true - y_pred)
    denominator = np.abs(y_true) + np.abs(y_pred)

    # Both zero counts as a perfect forecast
    ratio = np.divide(numerator, denominator, out=np.zeros_like(numerator), where=denominator != 0)
    return float(100 * np.nanmean(ratio))


def wmape(y_true: ArrayLike,
          y_pred: ArrayLike,
          sample_weight: Optional[ArrayLike] = None) -> float:
    """
    Weighted Mean Absolute Percentage Error

    WMAPE = sum(|actual - forecast|) / sum(|actual|) * 100

    Args:
        y_true: Actual values
        y_pred: Predicted values
        sample_weight: Optional weights for each sample

    Returns:
        WMAPE as percentage
    """
    y_true, e = _errors(y_true, y_pred)

    if sample_weight is not None:
        sample_weight = np.asarray(sample_weight, dtype=float)
        if len(sample_weight) != len(y_true):
            raise ValueError("sample_weight must have same length as y_true")
    else:
        sample_weight = np.ones_like(y_true)

    total_abs_actuals = np.nansum(np.abs(y_true) * sample_weight)
    if total_abs_actuals == 0:
        warnings.warn("Sum of absolute actuals is zero. WMAPE undefined.")
        return np.inf

    return float(np.nansum(np.abs(e) * sample_weight) / total_abs_actuals * 100)


def _naive_scale(train: ArrayLike, period: int, power: int) -> float:
    """In-sample mean of |seasonal naive error|^power"""
    train = np.asarray(train, dtype=float)
    if len(train) <= period:
        raise ValueError(f"Training data must be longer than the period ({period})")
    diffs = train[period:] - train[:-period]
    return float(np.nanmean(np.abs(diffs) ** power))


def mase(y_true: ArrayLike, y_pred: ArrayLike, train: ArrayLike, period: int = 1) -> float:
    """
    Mean Absolute Scaled Error

    Errors are scaled by the in-sample MAE of the seasonal naive method
    (the naive method when period is 1).
    """
    scale = _naive_scale(train, period, 1)
    _, e = _errors(y_true, y_pred)
    return float(np.nanmean(np.abs(e)) / scale)


def rmsse(y_true: ArrayLike, y_pred: ArrayLike, train: ArrayLike, period: int = 1) -> float:
    """Root Mean Squared Scaled Error"""
    scale = _naive_scale(train, period, 2)
    _, e = _errors(y_true, y_pred)
    return float(np.sqrt(np.nanmean(e ** 2) / scale))


def lag1_autocorrelation(values: ArrayLike) -> float:
    """Sample autocorrelation at lag 1, NaN for constant or too short input"""
    x = np.asarray(values, dtype=float)
    x = x[~np.isnan(x)]
    if len(x) < 2:
        return np.nan
    centred = x - x.mean()
    denominator = np.sum(centred ** 2)
    if denominator == 0:
        return np.nan
    return float(np.sum(centred[1:] * centred[:-1]) / denominator)


def acf1(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """First-order autocorrelation of the errors"""
    _, e = _errors(y_true, y_pred)
    return lag1_autocorrelation(e)


def winkler_score(y_true: ArrayLike, lower: ArrayLike, upper: ArrayLike, level: float) -> float:
    """
    Mean Winkler score of a prediction interval

    Interval width plus a penalty of 2/alpha times the distance by which
    an observation falls outside.

    Args:
        level: Coverage percentage, e.g. 80
    """
    y = np.asarray(y_true, dtype=float)
    lower = np.asarray(lower, dtype=float)
    upper = np.asarray(upper, dtype=float)
    alpha = 1 - level / 100

    score = (upper - lower) \
        + (2 / alpha) * np.maximum(lower - y, 0) \
        + (2 / alpha) * np.maximum(y - upper, 0)
    return float(np.nanmean(score))


def quantile_score(y_true: ArrayLike, q_pred: ArrayLike, p: float) -> float:
    """
    Mean pinball loss of a quantile forecast

    Args:
        p: Probability of the quantile, in (0, 1)
    """
    y = np.asarray(y_true, dtype=float)
    q = np.asarray(q_pred, dtype=float)
    score = np.where(y < q, 2 * (1 - p) * (q - y), 2 * p * (y - q))
    return float(np.nanmean(score))


def crps_gaussian(y_true: ArrayLike, mean: ArrayLike, sd: ArrayLike) -> float:
    """Mean Continuous Ranked Probability Score of Gaussian forecasts"""
    y = np.asarray(y_true, dtype=float)
    mu = np.asarray(mean, dtype=float)
    sigma = np.asarray(sd, dtype=float)

    z = (y - mu) / sigma
    score = sigma * (z * (2 * stats.norm.cdf(z) - 1) + 2 * stats.norm.pdf(z) - 1 / np.sqrt(np.pi))
    return float(np.nanmean(score))


def _align_actual(actual: ArrayLike, index: pd.Index) -> np.ndarray:
    """
    Observations matched to the forecast time points

    Forecasts of irregular series are indexed by integer position; their
    actuals are then matched by position when the lengths agree.
    """
    if not isinstance(actual, pd.Series):
        return np.asarray(actual, dtype=float)

    if actual.index.inferred_type == index.inferred_type:
        matched = actual.reindex(index)
        if matched.isna().all() and actual.notna().any():
            raise SeriesSelectionError("Actual observations do not cover the forecast period")
        return matched.to_numpy(dtype=float)

    if len(actual) != len(index):
        raise SeriesSelectionError(
            f"Cannot align {len(actual)} actuals indexed by {actual.index.inferred_type} "
            f"with {len(index)} forecasts indexed by {index.inferred_type}"
        )
    return actual.to_numpy(dtype=float)


def accuracy(forecast, actual: pd.Series,
             train: Optional[ArrayLike] = None,
             period: int = 1,
             levels: Optional[Sequence[int]] = None) -> Dict[str, float]:
    """
    Accuracy of one forecast against held-out observations

    Args:
        forecast: Forecast object (mean, sd, intervals)
        actual: Observations over the forecast period
        train: Training data; enables MASE and RMSSE
        period: Seasonal period for the scaled errors
        levels: Interval levels to score with the Winkler score

    Returns:
        Dictionary of metrics
    """
    y = _align_actual(actual, forecast.mean.index)
    y_pred = forecast.mean.to_numpy()

    results = {
        'ME': me(y, y_pred),
        'RMSE': rmse(y, y_pred),
        'MAE': mae(y, y_pred),
        'MPE': mpe(y, y_pred),
        'MAPE': mape(y, y_pred),
        'sMAPE': smape(y, y_pred),
        'WMAPE': wmape(y, y_pred),
        'ACF1': acf1(y, y_pred),
    }

    if train is not None:
        results['MASE'] = mase(y, y_pred, train, period)
        results['RMSSE'] = rmsse(y, y_pred, train, period)

    # The Gaussian CRPS only holds for untransformed forecasts
    if forecast.lam is None:
        results['CRPS'] = crps_gaussian(y, y_pred, forecast.sd.to_numpy())

    for level in (levels if levels is not None else sorted(forecast.intervals)):
        lower, upper = forecast.interval(level)
        results[f'winkler_{level}'] = winkler_score(y, lower, upper, level)

    return results


def accuracy_table(forecasts: Dict[str, object], actual: pd.Series,
                   train: Optional[ArrayLike] = None, period: int = 1) -> pd.DataFrame:
    """One accuracy row per model, best RMSE first"""
    rows = []
    for label, forecast in forecasts.items():
        row = {'model': label}
        row.update(accuracy(forecast, actual, train=train, period=period))
        rows.append(row)
    return pd.DataFrame(rows).sort_values('RMSE').reset_index(drop=True)
