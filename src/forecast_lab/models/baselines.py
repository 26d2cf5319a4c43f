#!/usr/bin/env python3
"""
BASELINE FORECASTERS
Mean, naive, seasonal naive and drift methods

Every method:
- fits on one regular series (optionally on a Box-Cox scale)
- exposes fitted values and innovation residuals
- produces Gaussian prediction intervals from the residual standard deviation
- simulates future sample paths (bootstrapped or Gaussian errors)

Benchmarks every other forecasting method has to beat.
"""

import pandas as pd
import numpy as np
from typing import Dict, List, Tuple, Optional, Union, Sequence, Type
from dataclasses import dataclass, field
from abc import ABC, abstractmethod
import logging
from scipy import stats

from ..features.transforms import box_cox, inv_box_cox
from ..data.validators import require_length, require_positive
from ..exceptions import NotFittedError, InsufficientDataError

logger = logging.getLogger(__name__)

DEFAULT_LEVELS = (80, 95)


def future_index(index: pd.Index, h: int) -> pd.Index:
    """The h time points following the end of an index"""
    if isinstance(index, pd.DatetimeIndex):
        freq = index.freq or (pd.infer_freq(index) if len(index) >= 3 else None)
        if freq is not None:
            return pd.date_range(start=index[-1], periods=h + 1, freq=freq)[1:]
    start = len(index)
    if isinstance(index, pd.RangeIndex) or pd.api.types.is_integer_dtype(index):
        start = int(index[-1]) + 1
    return pd.RangeIndex(start, start + h)


@dataclass
class Forecast:
    """Point forecasts with prediction intervals on the original scale"""
    model: str
    mean: pd.Series
    sd: pd.Series
    intervals: Dict[int, Tuple[pd.Series, pd.Series]] = field(default_factory=dict)
    lam: Optional[float] = None

    @property
    def horizon(self) -> int:
        return len(self.mean)

    @property
    def index(self) -> pd.Index:
        return self.mean.index

    def interval(self, level: int) -> Tuple[pd.Series, pd.Series]:
        if level not in self.intervals:
            raise KeyError(f"No {level}% interval; available: {sorted(self.intervals)}")
        return self.intervals[level]

    def to_frame(self) -> pd.DataFrame:
        """mean, sd and lower_/upper_ columns per level"""
        frame = pd.DataFrame({'mean': self.mean, 'sd': self.sd})
        for level in sorted(self.intervals):
            lower, upper = self.intervals[level]
            frame[f'lower_{level}'] = lower
            frame[f'upper_{level}'] = upper
        frame.index.name = self.mean.index.name or 'index'
        return frame


class BaseForecaster(ABC):
    """
    Common machinery for simple forecasting rules

    Subclasses implement the rule on the (possibly transformed) scale:
    fitted values, point forecasts, forecast standard deviations and
    one-step simulation.
    """

    name = 'base'
    # Parameters estimated from the data, used for the residual variance
    n_params = 0

    def __init__(self, lam: Optional[float] = None, bias_adjust: bool = False):
        self.lam = lam
        self.bias_adjust = bias_adjust
        self.is_fitted = False

    def __repr__(self) -> str:
        params = ', '.join(f"{k}={v}" for k, v in self._params().items())
        return f"{type(self).__name__}({params})"

    def _params(self) -> Dict[str, object]:
        params = {}
        if self.lam is not None:
            params['lam'] = self.lam
        return params

    # -- scale handling -------------------------------------------------

    def _transform(self, values: np.ndarray) -> np.ndarray:
        if self.lam is None:
            return values
        require_positive(values, self.lam)
        return np.asarray(box_cox(values, self.lam), dtype=float)

    def _back_transform(self, values: np.ndarray, variance: Optional[np.ndarray] = None) -> np.ndarray:
        if self.lam is None:
            return values
        return np.asarray(inv_box_cox(values, self.lam, variance=variance), dtype=float)

    # -- rule specific ----------------------------------------------------

    @property
    def min_obs(self) -> int:
        return 1

    @abstractmethod
    def _fitted(self, y: np.ndarray) -> np.ndarray:
        """One-step fitted values (NaN where undefined)"""

    @abstractmethod
    def _point(self, y: np.ndarray, h: int) -> np.ndarray:
        """Point forecasts for horizons 1..h"""

    @abstractmethod
    def _sd_factor(self, h: int) -> np.ndarray:
        """Forecast sd divided by sigma for horizons 1..h"""

    @abstractmethod
    def _step(self, path: List[float]) -> float:
        """Next value of a simulated path before adding the error"""

    # -- public API -------------------------------------------------------

    def fit(self, series: pd.Series) -> 'BaseForecaster':
        """
        Fit the rule to a series

        Args:
            series: Observations indexed by time

        Returns:
            Self
        """
        if not isinstance(series, pd.Series):
            series = pd.Series(series)
        require_length(series, self.min_obs, f"{type(self).__name__}")

        self.series_ = series
        self.y_ = self._transform(series.to_numpy(dtype=float))
        self.n_obs_ = len(self.y_)
        self.n_observed_ = int(np.sum(~np.isnan(self.y_)))

        fitted = self._fitted(self.y_)
        innovations = self.y_ - fitted

        n_resid = int(np.sum(~np.isnan(innovations)))
        dof = n_resid - self.n_params
        if dof <= 0:
            raise InsufficientDataError(f"{type(self).__name__} has no residual degrees of freedom")
        self.sigma_ = float(np.sqrt(np.nansum(innovations ** 2) / dof))

        self.fitted_ = pd.Series(self._back_transform(fitted), index=series.index, name='fitted')
        self.residuals_ = pd.Series(innovations, index=series.index, name='innov_resid')
        self.is_fitted = True

        logger.debug(f"{self!r} fitted on {self.n_obs_} observations, sigma={self.sigma_:.4f}")
        return self

    def _check_fitted(self):
        if not self.is_fitted:
            raise NotFittedError(f"{type(self).__name__} must be fitted before forecasting")

    def augment(self) -> pd.DataFrame:
        """Observed, fitted, response residuals and innovation residuals"""
        self._check_fitted()
        return pd.DataFrame({
            'observed': self.series_,
            'fitted': self.fitted_,
            'resid': self.series_ - self.fitted_,
            'innov_resid': self.residuals_,
        })

    def forecast(self, h: int, level: Sequence[int] = DEFAULT_LEVELS) -> Forecast:
        """
        Point forecasts and Gaussian prediction intervals

        Args:
            h: Forecast horizon
            level: Interval coverage percentages

        Returns:
            Forecast on the original scale
        """
        self._check_fitted()
        if h < 1:
            raise ValueError("h must be at least 1")

        index = future_index(self.series_.index, h)
        point = self._point(self.y_, h)
        sd = self.sigma_ * self._sd_factor(h)

        variance = sd ** 2 if self.bias_adjust else None
        mean = pd.Series(self._back_transform(point, variance), index=index, name='mean')

        intervals = {}
        for lvl in level:
            z = stats.norm.ppf(0.5 + lvl / 200)
            lower = pd.Series(self._back_transform(point - z * sd), index=index, name=f'lower_{lvl}')
            upper = pd.Series(self._back_transform(point + z * sd), index=index, name=f'upper_{lvl}')
            intervals[lvl] = (lower, upper)

        return Forecast(
            model=self.name,
            mean=mean,
            sd=pd.Series(sd, index=index, name='sd'),
            intervals=intervals,
            lam=self.lam
        )

    def generate(self, h: int, times: int = 100, seed: Optional[int] = None,
                 bootstrap: bool = True) -> pd.DataFrame:
        """
        Simulate future sample paths

        Args:
            h: Forecast horizon
            times: Number of paths
            seed: Random seed
            bootstrap: Resample residuals instead of drawing Gaussian errors

        Returns:
            DataFrame indexed by future time with one column per path
        """
        self._check_fitted()
        rng = np.random.default_rng(seed)

        residuals = self.residuals_.dropna().to_numpy()
        if bootstrap and len(residuals) == 0:
            raise InsufficientDataError("No residuals available to bootstrap")

        history = [v for v in self.y_]
        paths = np.empty((h, times))
        for j in range(times):
            path = list(history)
            if bootstrap:
                errors = rng.choice(residuals, size=h, replace=True)
            else:
                errors = rng.normal(0.0, self.sigma_, size=h)
            for step in range(h):
                path.append(self._step(path) + errors[step])
            paths[:, j] = path[-h:]

        index = future_index(self.series_.index, h)
        return pd.DataFrame(self._back_transform(paths), index=index,
                            columns=[f'path_{j}' for j in range(times)])

    def bootstrap_forecast(self, h: int, times: int = 1000, level: Sequence[int] = DEFAULT_LEVELS,
                           seed: Optional[int] = None) -> Forecast:
        """Forecast whose intervals are percentiles of bootstrapped paths"""
        paths = self.generate(h, times=times, seed=seed, bootstrap=True)

        intervals = {}
        for lvl in level:
            tail = (100 - lvl) / 2
            intervals[lvl] = (
                paths.quantile(tail / 100, axis=1).rename(f'lower_{lvl}'),
                paths.quantile(1 - tail / 100, axis=1).rename(f'upper_{lvl}'),
            )

        return Forecast(
            model=f'{self.name}_bootstrap',
            mean=paths.mean(axis=1).rename('mean'),
            sd=paths.std(axis=1).rename('sd'),
            intervals=intervals,
            lam=self.lam
        )


def _last_finite(y: np.ndarray) -> float:
    finite = y[~np.isnan(y)]
    if len(finite) == 0:
        raise InsufficientDataError("Series has no observed values")
    return float(finite[-1])


def _last_finite_in_season(y: Sequence[float], position: int, period: int) -> float:
    """Most recent observed value at or before `position` in the same season"""
    for t in range(position, -1, -period):
        if not np.isnan(y[t]):
            return float(y[t])
    raise InsufficientDataError(f"Season at position {position % period} has no observed values")


class MeanForecaster(BaseForecaster):
    """All future values equal the sample mean"""

    name = 'mean'
    n_params = 1

    def _fitted(self, y):
        self.level_ = float(np.nanmean(y))
        return np.full_like(y, self.level_)

    def _point(self, y, h):
        return np.full(h, self.level_)

    def _sd_factor(self, h):
        return np.full(h, np.sqrt(1 + 1 / self.n_observed_))

    def _step(self, path):
        return self.level_


class NaiveForecaster(BaseForecaster):
    """All future values equal the last observation (random walk)"""

    name = 'naive'

    @property
    def min_obs(self) -> int:
        return 2

    def _fitted(self, y):
        fitted = np.empty_like(y)
        fitted[0] = np.nan
        fitted[1:] = y[:-1]
        return fitted

    def _point(self, y, h):
        return np.full(h, _last_finite(y))

    def _sd_factor(self, h):
        return np.sqrt(np.arange(1, h + 1))

    def _step(self, path):
        return path[-1] if not np.isnan(path[-1]) else _last_finite(np.asarray(path))


class SeasonalNaiveForecaster(BaseForecaster):
    """Each future value equals the last observed value from the same season"""

    name = 'snaive'

    def __init__(self, period: int, lam: Optional[float] = None, bias_adjust: bool = False):
        if period < 1:
            raise ValueError("period must be positive")
        super().__init__(lam=lam, bias_adjust=bias_adjust)
        self.period = int(period)

    def _params(self):
        return {'period': self.period, **super()._params()}

    @property
    def min_obs(self) -> int:
        return self.period + 1

    def _fitted(self, y):
        m = self.period
        fitted = np.full_like(y, np.nan)
        fitted[m:] = y[:-m]
        return fitted

    def _point(self, y, h):
        m, n = self.period, len(y)
        last_season = [_last_finite_in_season(y, n - m + j, m) for j in range(m)]
        return np.array([last_season[j % m] for j in range(h)])

    def _sd_factor(self, h):
        k = (np.arange(1, h + 1) - 1) // self.period
        return np.sqrt(k + 1)

    def _step(self, path):
        return _last_finite_in_season(path, len(path) - self.period, self.period)


class DriftForecaster(BaseForecaster):
    """Naive forecasts plus the average change seen in the data"""

    name = 'drift'
    n_params = 1

    @property
    def min_obs(self) -> int:
        return 2

    def _fitted(self, y):
        finite = np.flatnonzero(~np.isnan(y))
        first, last = finite[0], finite[-1]
        if last == first:
            raise InsufficientDataError("Drift needs two observed values")
        self.slope_ = float((y[last] - y[first]) / (last - first))
        fitted = np.empty_like(y)
        fitted[0] = np.nan
        fitted[1:] = y[:-1] + self.slope_
        return fitted

    def _point(self, y, h):
        return _last_finite(y) + self.slope_ * np.arange(1, h + 1)

    def _sd_factor(self, h):
        steps = np.arange(1, h + 1)
        return np.sqrt(steps * (1 + steps / (self.n_observed_ - 1)))

    def _step(self, path):
        last = path[-1] if not np.isnan(path[-1]) else _last_finite(np.asarray(path))
        return last + self.slope_


FORECASTERS: Dict[str, Type[BaseForecaster]] = {
    'mean': MeanForecaster,
    'naive': NaiveForecaster,
    'snaive': SeasonalNaiveForecaster,
    'drift': DriftForecaster,
}


def create_forecaster(name: str, **params) -> BaseForecaster:
    """Build a forecaster from the registry"""
    if name not in FORECASTERS:
        raise ValueError(
            f"Forecaster '{name}' not registered. Available: {', '.join(FORECASTERS)}"
        )
    return FORECASTERS[name](**params)


def forecast_table(series: pd.Series,
                   models: Union[Dict[str, BaseForecaster], List[BaseForecaster]],
                   h: int,
                   level: Sequence[int] = DEFAULT_LEVELS) -> pd.DataFrame:
    """
    Fit several forecasters and stack their forecasts

    Returns:
        Long DataFrame with a 'model' column followed by Forecast.to_frame() columns
    """
    if not isinstance(models, dict):
        models = {model.name: model for model in models}

    frames = []
    for label, model in models.items():
        forecast = model.fit(series).forecast(h, level=level)
        frame = forecast.to_frame().reset_index()
        frame.insert(0, 'model', label)
        frames.append(frame)
        logger.info(f"Forecast {label}: h={h}")

    return pd.concat(frames, ignore_index=True)
