#!/usr/bin/env python3
"""
Transformations and Adjustments
Box-Cox family with Guerrero lambda selection, plus population,
inflation and calendar adjustments
"""

import pandas as pd
import numpy as np
from typing import Optional, Union
import logging
import warnings
from scipy.optimize import minimize_scalar
from sklearn.base import BaseEstimator, TransformerMixin

from ..data.tsframe import TimeSeriesTable, seasonal_period
from ..exceptions import NotFittedError

logger = logging.getLogger(__name__)

ArrayLike = Union[np.ndarray, pd.Series, list]

LAMBDA_LOWER = -0.9
LAMBDA_UPPER = 2.0
# Same tolerance R's optimise() uses
_XATOL = np.finfo(float).eps ** 0.25


def _lambda_coef_var(lam: float, blocks: np.ndarray) -> float:
    """Coefficient of variation of sd_h / mean_h^(1 - lambda) across blocks"""
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', RuntimeWarning)
        mu = np.nanmean(blocks, axis=1)
        sigma = np.nanstd(blocks, axis=1, ddof=1)
        ratio = sigma / mu ** (1 - lam)
        ratio = ratio[np.isfinite(ratio)]
    if len(ratio) < 2:
        return np.inf
    mean_ratio = np.mean(ratio)
    if mean_ratio == 0:
        return np.inf
    return float(np.std(ratio, ddof=1) / mean_ratio)


def guerrero(x: ArrayLike,
             period: int = 2,
             lower: float = LAMBDA_LOWER,
             upper: float = LAMBDA_UPPER) -> float:
    """
    Guerrero's method for choosing the Box-Cox lambda

    The series is cut into consecutive blocks of one seasonal period
    (at least two observations). The chosen lambda minimises the
    coefficient of variation of sd_h / mean_h^(1 - lambda), i.e. it makes
    the local spread proportional to the local level to the power
    (1 - lambda).

    Args:
        x: Observations in time order
        period: Seasonal period used as block length
        lower: Lower bound of the search interval
        upper: Upper bound of the search interval

    Returns:
        Estimated lambda
    """
    values = np.asarray(x, dtype=float)

    finite = values[~np.isnan(values)]
    if len(finite) == 0 or np.all(finite == finite[0]):
        return 1.0

    period = max(int(period), 2)
    n_blocks = len(values) // period
    if n_blocks < 2:
        raise ValueError(
            f"Guerrero's method needs at least two blocks of {period} observations, got {len(values)}"
        )

    # Keep the most recent complete blocks
    tail = values[len(values) - n_blocks * period:]
    blocks = tail.reshape(n_blocks, period)

    result = minimize_scalar(
        _lambda_coef_var,
        bounds=(lower, upper),
        args=(blocks,),
        method='bounded',
        options={'xatol': _XATOL}
    )
    return float(result.x)


def _search_bounds(lower: Optional[float], upper: Optional[float]):
    """Lambda search interval, unset bounds taken from the forecast configuration"""
    if lower is None or upper is None:
        from ..config.settings import get_config
        forecast_config = get_config().forecast
        lower = forecast_config.lambda_lower if lower is None else lower
        upper = forecast_config.lambda_upper if upper is None else upper
    if lower >= upper:
        raise ValueError(f"Empty lambda search interval [{lower}, {upper}]")
    return lower, upper


def get_lambda(table: Union[TimeSeriesTable, pd.DataFrame],
               column: str,
               key=None,
               period: Optional[int] = None,
               lower: Optional[float] = None,
               upper: Optional[float] = None) -> float:
    """
    Box-Cox lambda for one column of a time series table (Guerrero method)

    Args:
        table: TimeSeriesTable, or a DataFrame indexed by time
        column: Numeric column to estimate lambda for
        key: Series key when the table holds several series
        period: Seasonal period; defaults to the one implied by the table frequency
        lower: Lower bound of the lambda search; defaults to ForecastConfig.lambda_lower
        upper: Upper bound of the lambda search; defaults to ForecastConfig.lambda_upper

    Returns:
        Estimated lambda
    """
    if isinstance(table, TimeSeriesTable):
        values = table.series(column, key=key)
        if period is None:
            period = table.period
    else:
        values = table[column]
        if period is None:
            freq = getattr(table.index, 'freqstr', None)
            period = seasonal_period(freq)

    lower, upper = _search_bounds(lower, upper)
    lam = guerrero(values.to_numpy(), period=period, lower=lower, upper=upper)
    logger.debug(f"Guerrero lambda for '{column}': {lam:.4f}")
    return lam


def guerrero_by_key(table: TimeSeriesTable, column: str,
                    lower: Optional[float] = None,
                    upper: Optional[float] = None) -> pd.DataFrame:
    """Guerrero lambda for every keyed series"""
    period = table.period
    lower, upper = _search_bounds(lower, upper)
    return table.group_apply(
        lambda s: {'lambda_guerrero': guerrero(s.to_numpy(), period=period, lower=lower, upper=upper)},
        measure=column
    )


def box_cox(x: ArrayLike, lam: float) -> Union[np.ndarray, pd.Series]:
    """Box-Cox transform; sign-preserving power for lambda > 0"""
    values = x if isinstance(x, pd.Series) else np.asarray(x, dtype=float)
    if lam < 0:
        values = values.where(values >= 0) if isinstance(values, pd.Series) else np.where(values < 0, np.nan, values)
    with np.errstate(divide='ignore', invalid='ignore'):
        if lam == 0:
            return np.log(values)
        return (np.sign(values) * np.abs(values) ** lam - 1) / lam


def inv_box_cox(y: ArrayLike,
                lam: float,
                variance: Optional[ArrayLike] = None) -> Union[np.ndarray, pd.Series]:
    """
    Invert the Box-Cox transform

    Args:
        y: Values on the transformed scale
        lam: Box-Cox lambda
        variance: Forecast variance on the transformed scale; when given,
            the result is bias-adjusted to estimate the mean rather than the median

    Returns:
        Values on the original scale
    """
    values = y if isinstance(y, pd.Series) else np.asarray(y, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        if lam < 0:
            values = values.where(values <= -1 / lam) if isinstance(values, pd.Series) \
                else np.where(values > -1 / lam, np.nan, values)
        if lam == 0:
            out = np.exp(values)
        else:
            base = values * lam + 1
            out = np.sign(base) * np.abs(base) ** (1 / lam)

        if variance is not None:
            variance = np.asarray(variance, dtype=float)
            out = out * (1 + 0.5 * variance * (1 - lam) / out ** (2 * lam))
    return out


class BoxCoxTransformer(BaseEstimator, TransformerMixin):
    """Box-Cox transform with lambda chosen by Guerrero's method when not given"""

    def __init__(self, lam: Optional[float] = None, period: int = 2,
                 lower: float = LAMBDA_LOWER, upper: float = LAMBDA_UPPER):
        self.lam = lam
        self.period = period
        self.lower = lower
        self.upper = upper

    def fit(self, X, y=None) -> 'BoxCoxTransformer':
        values = np.asarray(X, dtype=float).ravel()
        if self.lam is None:
            self.lambda_ = guerrero(values, period=self.period, lower=self.lower, upper=self.upper)
        else:
            self.lambda_ = float(self.lam)
        return self

    def _check_fitted(self):
        if not hasattr(self, 'lambda_'):
            raise NotFittedError("BoxCoxTransformer must be fitted before use")

    def transform(self, X):
        self._check_fitted()
        return box_cox(X, self.lambda_)

    def inverse_transform(self, X, variance=None):
        self._check_fitted()
        return inv_box_cox(X, self.lambda_, variance=variance)


def _divide(values: ArrayLike, denominator: ArrayLike):
    denominator = np.asarray(denominator, dtype=float)
    if isinstance(values, pd.Series):
        return values / denominator
    return np.asarray(values, dtype=float) / denominator


def per_capita(values: ArrayLike, population: ArrayLike, scale: float = 1.0):
    """Divide by population (e.g. GDP per person)"""
    return _divide(values, population) * scale


def inflation_adjust(values: ArrayLike, price_index: ArrayLike, base: float = 100.0):
    """Express nominal values in base-year prices"""
    return _divide(values, price_index) * base


def calendar_adjust(series: pd.Series) -> pd.Series:
    """Monthly totals divided by the number of days in each month"""
    if not isinstance(series.index, pd.DatetimeIndex):
        raise TypeError("calendar_adjust needs a DatetimeIndex")
    return series / series.index.days_in_month
