"""
Evaluation Package

- metrics: point, scaled and interval accuracy measures
- diagnostics: residual white-noise checks
- cross_validation: rolling forecast origin evaluation
"""

from .metrics import (
    me, mae, rmse, mpe, mape, smape, wmape, mase, rmsse, acf1,
    winkler_score, quantile_score, crps_gaussian, accuracy, accuracy_table
)
from .diagnostics import ljung_box, box_pierce, residual_summary, default_lag
from .cross_validation import TimeSeriesWalkForward, cross_validate, cv_accuracy, train_test_split

__all__ = [
    'me', 'mae', 'rmse', 'mpe', 'mape', 'smape', 'wmape', 'mase', 'rmsse', 'acf1',
    'winkler_score', 'quantile_score', 'crps_gaussian', 'accuracy', 'accuracy_table',
    'ljung_box', 'box_pierce', 'residual_summary', 'default_lag',
    'TimeSeriesWalkForward', 'cross_validate', 'cv_accuracy', 'train_test_split'
]
