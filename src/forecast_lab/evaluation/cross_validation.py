#!/usr/bin/env python3
"""
TIME SERIES CROSS-VALIDATION
Rolling forecast origin evaluation

- Expanding ("stretched") or fixed training windows
- Multi-step horizons from every origin
- Accuracy aggregated per model and per horizon
"""

import pandas as pd
import numpy as np
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging

from .metrics import me, mae, rmse, mape
from ..models.baselines import BaseForecaster
from ..exceptions import InsufficientDataError
from ..utils.logging import performance_monitor

logger = logging.getLogger(__name__)


class TimeSeriesWalkForward:
    """
    Walk-forward splits over a single series

    Args:
        initial: Observations in the first training window
        step: Origin advance between splits
        horizon: Observations in each validation window
        expanding: Grow the training window (otherwise it slides)
        max_splits: Maximum number of splits to generate
    """

    def __init__(self, initial: int, step: int = 1, horizon: int = 1,
                 expanding: bool = True, max_splits: Optional[int] = None):
        if initial < 1 or step < 1 or horizon < 1:
            raise ValueError("initial, step and horizon must be positive")
        self.initial = initial
        self.step = step
        self.horizon = horizon
        self.expanding = expanding
        self.max_splits = max_splits

    def split(self, series) -> List[Tuple[np.ndarray, np.ndarray]]:
        """
        Generate train/validation index positions

        The last validation window may be shorter than the horizon.

        Returns:
            List of (train_indices, val_indices) tuples
        """
        n_total = len(series)
        splits = []
        current_train_end = self.initial

        while current_train_end < n_total:
            if self.max_splits is not None and len(splits) >= self.max_splits:
                break

            train_start = 0 if self.expanding else current_train_end - self.initial
            train_indices = np.arange(train_start, current_train_end)
            val_indices = np.arange(current_train_end, min(current_train_end + self.horizon, n_total))
            splits.append((train_indices, val_indices))

            current_train_end += self.step

        return splits

    def get_n_splits(self, series) -> int:
        return len(self.split(series))


def train_test_split(series: pd.Series, test_size: int) -> Tuple[pd.Series, pd.Series]:
    """Hold out the last test_size observations"""
    if not 0 < test_size < len(series):
        raise ValueError(f"test_size must be between 1 and {len(series) - 1}")
    return series.iloc[:-test_size], series.iloc[-test_size:]


@performance_monitor()
def cross_validate(series: pd.Series,
                   forecasters: Dict[str, Callable[[], BaseForecaster]],
                   h: int,
                   initial: int,
                   step: int = 1,
                   expanding: bool = True) -> pd.DataFrame:
    """
    Forecast from every origin of a walk-forward scheme

    Args:
        series: Series to evaluate on
        forecasters: Model label -> zero-argument factory returning an unfitted forecaster
        h: Forecast horizon
        initial: First training window length
        step: Origin advance
        expanding: Grow the training window

    Returns:
        One row per model, origin and horizon with mean, actual and error
    """
    splitter = TimeSeriesWalkForward(initial=initial, step=step, horizon=h, expanding=expanding)
    splits = splitter.split(series)
    if not splits:
        raise InsufficientDataError(f"No origins: series has {len(series)} observations, initial={initial}")

    logger.info(f"Cross-validating {len(forecasters)} models over {len(splits)} origins")

    rows = []
    for origin, (train_idx, val_idx) in enumerate(splits):
        train = series.iloc[train_idx]
        actual = series.iloc[val_idx]
        for label, factory in forecasters.items():
            forecast = factory().fit(train).forecast(len(val_idx))
            for step_ahead, (time, mean) in enumerate(forecast.mean.items(), start=1):
                value = float(actual.iloc[step_ahead - 1])
                rows.append({
                    'model': label,
                    'origin': origin,
                    'origin_time': train.index[-1],
                    'h': step_ahead,
                    'time': time,
                    'mean': float(mean),
                    'sd': float(forecast.sd.iloc[step_ahead - 1]),
                    'actual': value,
                    'error': value - float(mean),
                })

    return pd.DataFrame(rows)


def cv_accuracy(results: pd.DataFrame, by_horizon: bool = False,
                metrics: Sequence[str] = ('ME', 'RMSE', 'MAE', 'MAPE')) -> pd.DataFrame:
    """
    Aggregate cross-validation results

    Args:
        results: Output of cross_validate
        by_horizon: One row per model and horizon instead of per model
        metrics: Metric columns to compute

    Returns:
        Accuracy table
    """
    functions = {'ME': me, 'RMSE': rmse, 'MAE': mae, 'MAPE': mape}
    unknown = [m for m in metrics if m not in functions]
    if unknown:
        raise ValueError(f"Unknown metrics {unknown}; available: {list(functions)}")

    group_cols = ['model', 'h'] if by_horizon else ['model']
    rows = []
    for key, group in results.groupby(group_cols):
        key = key if isinstance(key, tuple) else (key,)
        row = dict(zip(group_cols, key))
        for name in metrics:
            row[name] = functions[name](group['actual'], group['mean'])
        row['n_forecasts'] = len(group)
        rows.append(row)

    table = pd.DataFrame(rows)
    return table.sort_values(group_cols).reset_index(drop=True)
