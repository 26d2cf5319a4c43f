#!/usr/bin/env python3
"""
TIME SERIES REGRESSION
Linear models with trend, season dummies, Fourier terms and exogenous predictors

Built on statsmodels OLS:
- piecewise linear trends through knots
- seasonal dummies or K Fourier pairs
- fit statistics (R², AIC, AICc, BIC, leave-one-out CV)
- scenario based forecasting and best-subset predictor selection
"""

import pandas as pd
import numpy as np
from typing import Dict, List, Optional, Sequence, Any
from itertools import combinations
import logging

import statsmodels.api as sm

from .baselines import Forecast, future_index, DEFAULT_LEVELS
from ..data.tsframe import seasonal_period
from ..data.validators import require_length
from ..features.transforms import box_cox, inv_box_cox
from ..exceptions import NotFittedError

logger = logging.getLogger(__name__)

SELECTION_CRITERIA = ('CV', 'AIC', 'AICc', 'BIC', 'adj_r_squared')


def _season_position(index: pd.Index, start: int, period: int) -> np.ndarray:
    if isinstance(index, pd.DatetimeIndex):
        if period == 12:
            return np.asarray(index.month - 1)
        if period == 4:
            return np.asarray(index.quarter - 1)
        if period == 7:
            return np.asarray(index.dayofweek)
    return (np.arange(len(index)) + start) % period


class TimeSeriesRegression:
    """
    Linear regression for a single time series

    Args:
        exog: Names of exogenous predictor columns
        trend: Include a linear time trend
        season: Include seasonal dummy variables
        fourier_k: Number of Fourier sin/cos pairs (instead of or alongside dummies)
        knots: Time positions (0-based ints or timestamps) where the trend slope may change
        period: Seasonal period; inferred from the series index when omitted
        lam: Box-Cox lambda applied to the response
        bias_adjust: Back-transform forecasts to the mean instead of the median
    """

    name = 'tslm'

    def __init__(self, exog: Optional[Sequence[str]] = None, trend: bool = True,
                 season: bool = False, fourier_k: Optional[int] = None,
                 knots: Optional[Sequence[Any]] = None, period: Optional[int] = None,
                 lam: Optional[float] = None, bias_adjust: bool = False):
        self.exog = list(exog or [])
        self.trend = trend
        self.season = season
        self.fourier_k = fourier_k
        self.knots = list(knots or [])
        self.period = period
        self.lam = lam
        self.bias_adjust = bias_adjust
        self.is_fitted = False

    def __repr__(self) -> str:
        terms = self.exog + (['trend'] if self.trend else []) + (['season'] if self.season else [])
        if self.fourier_k:
            terms.append(f'fourier(K={self.fourier_k})')
        return f"TimeSeriesRegression({' + '.join(terms) or '1'})"

    def _knot_positions(self, index: pd.Index) -> List[int]:
        positions = []
        for knot in self.knots:
            if isinstance(knot, (int, np.integer)):
                positions.append(int(knot))
            else:
                positions.append(int(index.searchsorted(pd.Timestamp(knot))))
        return positions

    def _design(self, index: pd.Index, start: int, exog: Optional[pd.DataFrame]) -> pd.DataFrame:
        """Design matrix for time positions start..start+len(index)-1"""
        n = len(index)
        t = np.arange(start, start + n, dtype=float)
        X = pd.DataFrame({'const': np.ones(n)}, index=index)

        if self.trend:
            X['trend'] = t + 1
            for i, knot in enumerate(self.knot_positions_):
                X[f'trend_knot{i + 1}'] = np.maximum(t - knot, 0.0)

        if self.season and self.period_ > 1:
            position = _season_position(index, start, self.period_)
            for s in range(1, self.period_):
                X[f'season{s + 1}'] = (position == s).astype(float)

        if self.fourier_k:
            m = self.period_
            for k in range(1, self.fourier_k + 1):
                angle = 2 * np.pi * k * t / m
                # At k = m/2 the sine term is identically zero
                if 2 * k != m:
                    X[f'sin{k}_{m}'] = np.sin(angle)
                X[f'cos{k}_{m}'] = np.cos(angle)

        if self.exog:
            if exog is None:
                raise ValueError(f"Predictors {self.exog} required but no data given")
            missing = [col for col in self.exog if col not in exog.columns]
            if missing:
                raise KeyError(f"Missing predictor columns: {missing}")
            for col in self.exog:
                X[col] = np.asarray(exog[col], dtype=float)

        return X

    def fit(self, series: pd.Series, exog: Optional[pd.DataFrame] = None) -> 'TimeSeriesRegression':
        """
        Fit by ordinary least squares

        Args:
            series: Response indexed by time
            exog: Predictors aligned with the series

        Returns:
            Self
        """
        self.period_ = self.period or seasonal_period(getattr(series.index, 'freqstr', None))
        if self.fourier_k:
            if self.period_ < 2:
                raise ValueError("Fourier terms need a seasonal period of at least 2")
            if self.fourier_k > self.period_ // 2:
                raise ValueError(f"fourier_k must be at most period/2 = {self.period_ // 2}")

        self.series_ = series
        self.knot_positions_ = self._knot_positions(series.index)

        y = series.astype(float)
        if self.lam is not None:
            y = box_cox(y, self.lam)

        X = self._design(series.index, 0, exog)
        require_length(y, X.shape[1] + 1, "Regression")

        self.results_ = sm.OLS(y, X, missing='drop').fit()
        self.design_columns_ = list(X.columns)
        self.is_fitted = True

        fitted = self.results_.fittedvalues.reindex(series.index)
        self.fitted_ = pd.Series(self._back(fitted.to_numpy()), index=series.index, name='fitted')
        self.residuals_ = (y - fitted).rename('innov_resid')

        logger.info(f"{self!r} fitted: R²={self.results_.rsquared:.3f}, n={int(self.results_.nobs)}")
        return self

    def _back(self, values: np.ndarray, variance: Optional[np.ndarray] = None) -> np.ndarray:
        if self.lam is None:
            return values
        return np.asarray(inv_box_cox(values, self.lam, variance=variance), dtype=float)

    def _check_fitted(self):
        if not self.is_fitted:
            raise NotFittedError("TimeSeriesRegression must be fitted before use")

    def coefficients(self) -> pd.DataFrame:
        """term, estimate, std_error, statistic, p_value"""
        self._check_fitted()
        r = self.results_
        return pd.DataFrame({
            'term': r.params.index,
            'estimate': r.params.values,
            'std_error': r.bse.values,
            'statistic': r.tvalues.values,
            'p_value': r.pvalues.values,
        }).reset_index(drop=True)

    def glance(self) -> Dict[str, float]:
        """Goodness of fit and information criteria"""
        self._check_fitted()
        r = self.results_
        T = int(r.nobs)
        # Predictors excluding the intercept
        k = len(self.design_columns_) - 1
        sse = float(np.sum(r.resid ** 2))

        aic = T * np.log(sse / T) + 2 * (k + 2)
        aicc = aic + 2 * (k + 2) * (k + 3) / (T - k - 3) if T - k - 3 > 0 else np.inf
        bic = T * np.log(sse / T) + (k + 2) * np.log(T)

        hat = r.get_influence().hat_matrix_diag
        cv = float(np.mean((r.resid.to_numpy() / (1 - hat)) ** 2))

        return {
            'r_squared': float(r.rsquared),
            'adj_r_squared': float(r.rsquared_adj),
            'sigma2': float(r.scale),
            'statistic': float(r.fvalue) if k > 0 else np.nan,
            'p_value': float(r.f_pvalue) if k > 0 else np.nan,
            'df': k + 1,
            'log_lik': float(r.llf),
            'AIC': float(aic),
            'AICc': float(aicc),
            'BIC': float(bic),
            'CV': cv,
        }

    def forecast(self, h: Optional[int] = None, new_data: Optional[pd.DataFrame] = None,
                 level: Sequence[int] = DEFAULT_LEVELS) -> Forecast:
        """
        Forecasts with prediction intervals

        Args:
            h: Horizon; taken from new_data when omitted
            new_data: Future values of the exogenous predictors
            level: Interval coverage percentages

        Returns:
            Forecast on the original scale
        """
        self._check_fitted()
        if h is None:
            if new_data is None:
                raise ValueError("Either h or new_data is required")
            h = len(new_data)

        index = future_index(self.series_.index, h)
        if new_data is not None and len(new_data) != h:
            raise ValueError(f"new_data has {len(new_data)} rows, expected {h}")

        X = self._design(index, len(self.series_), new_data)
        prediction = self.results_.get_prediction(X)
        point = np.asarray(prediction.predicted_mean, dtype=float)
        sd = np.sqrt(np.asarray(prediction.var_pred_mean, dtype=float) + self.results_.scale)

        variance = sd ** 2 if self.bias_adjust else None
        intervals = {}
        for lvl in level:
            frame = prediction.summary_frame(alpha=1 - lvl / 100)
            intervals[lvl] = (
                pd.Series(self._back(frame['obs_ci_lower'].to_numpy()), index=index, name=f'lower_{lvl}'),
                pd.Series(self._back(frame['obs_ci_upper'].to_numpy()), index=index, name=f'upper_{lvl}'),
            )

        return Forecast(
            model=self.name,
            mean=pd.Series(self._back(point, variance), index=index, name='mean'),
            sd=pd.Series(sd, index=index, name='sd'),
            intervals=intervals,
            lam=self.lam
        )

    def scenario_forecast(self, scenarios: Dict[str, pd.DataFrame],
                          level: Sequence[int] = DEFAULT_LEVELS) -> pd.DataFrame:
        """Forecast under several assumed futures of the predictors, stacked with a 'scenario' column"""
        frames = []
        for label, new_data in scenarios.items():
            frame = self.forecast(new_data=new_data, level=level).to_frame().reset_index()
            frame.insert(0, 'scenario', label)
            frames.append(frame)
        return pd.concat(frames, ignore_index=True)


def select_predictors(series: pd.Series, exog: pd.DataFrame, candidates: Sequence[str],
                      criterion: str = 'CV', **model_params) -> pd.DataFrame:
    """
    Best-subset selection over candidate predictors

    Every subset of candidates (including the empty one) is fitted with the
    same trend/season settings.

    Returns:
        One row per subset with its predictors and fit statistics, best first
    """
    if criterion not in SELECTION_CRITERIA:
        raise ValueError(f"criterion must be one of {SELECTION_CRITERIA}")

    rows = []
    for size in range(len(candidates) + 1):
        for subset in combinations(candidates, size):
            model = TimeSeriesRegression(exog=subset, **model_params).fit(series, exog)
            stats = model.glance()
            row = {col: col in subset for col in candidates}
            row.update({key: stats[key] for key in ('adj_r_squared', 'CV', 'AIC', 'AICc', 'BIC')})
            rows.append(row)

    logger.info(f"Evaluated {len(rows)} predictor subsets, ranked by {criterion}")
    table = pd.DataFrame(rows)
    ascending = criterion != 'adj_r_squared'
    return table.sort_values(criterion, ascending=ascending).reset_index(drop=True)
