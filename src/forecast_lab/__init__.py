#!/usr/bin/env python3
"""
forecast_lab - Forecasting Theory Workbook

Shared preamble for the exploratory notebooks:
- Dataset bindings as keyed time series tables
- Box-Cox lambda selection (Guerrero) and transforms
- Classical / STL / X-11 / SEATS decompositions
- Mean, naive, seasonal naive and drift baselines
- Time series regression
- Accuracy, residual diagnostics and rolling-origin evaluation
- Plotting theme and standard charts
"""

from .data.tsframe import TimeSeriesTable
from .data.datasets import load_dataset, list_datasets
from .features.transforms import get_lambda, guerrero, box_cox, inv_box_cox

__all__ = [
    'TimeSeriesTable',
    'load_dataset',
    'list_datasets',
    'get_lambda',
    'guerrero',
    'box_cox',
    'inv_box_cox',
]

__version__ = '1.0.0'
