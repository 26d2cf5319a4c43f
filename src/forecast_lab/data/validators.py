#!/usr/bin/env python3
"""
Series Validation
Regularity, missing value and domain checks run before statistical routines
"""

import pandas as pd
import numpy as np
from typing import Optional
import logging

from .tsframe import TimeSeriesTable
from ..exceptions import IrregularIndexError, TransformDomainError, InsufficientDataError

logger = logging.getLogger(__name__)


def check_regular_index(series: pd.Series) -> None:
    """Raise IrregularIndexError unless observations are evenly spaced"""
    index = series.index
    if not isinstance(index, pd.DatetimeIndex):
        return
    if index.freq is not None or len(index) < 3:
        return
    if pd.infer_freq(index) is None:
        raise IrregularIndexError(
            f"Series '{series.name}' is not evenly spaced; call fill_gaps() or resample first"
        )


def missing_value_report(table: TimeSeriesTable) -> pd.DataFrame:
    """
    Count missing values for every series and measure

    Returns:
        DataFrame with key columns, measure, n_obs, n_missing and pct_missing
    """
    rows = []
    groups = table.data.groupby(table.keys, observed=True) if table.keys else [((), table.data)]
    for key, group in groups:
        key = key if isinstance(key, tuple) else (key,)
        for measure in table.measures:
            n_missing = int(group[measure].isna().sum())
            row = dict(zip(table.keys, key))
            row.update({
                'measure': measure,
                'n_obs': len(group),
                'n_missing': n_missing,
                'pct_missing': round(100 * n_missing / len(group), 2) if len(group) else 0.0
            })
            rows.append(row)

    report = pd.DataFrame(rows)
    total_missing = int(report['n_missing'].sum()) if not report.empty else 0
    if total_missing:
        logger.warning(f"Missing values detected: {total_missing} across {len(report)} series/measures")
    return report


def drop_missing(series: pd.Series) -> pd.Series:
    """Drop NaN observations, logging how many went"""
    cleaned = series.dropna()
    n_dropped = len(series) - len(cleaned)
    if n_dropped:
        logger.info(f"Dropped {n_dropped} missing values from '{series.name}'")
    return cleaned


def require_positive(values, lam: Optional[float] = None) -> None:
    """Box-Cox with lambda <= 0 (and the Guerrero search) needs strictly positive data"""
    array = np.asarray(values, dtype=float)
    array = array[~np.isnan(array)]
    if lam is not None and lam > 0:
        return
    if (array <= 0).any():
        raise TransformDomainError(
            f"Series has {int((array <= 0).sum())} non-positive values; "
            "Box-Cox with lambda <= 0 requires positive data"
        )


def require_length(series, minimum: int, what: str = "this operation") -> None:
    """Raise InsufficientDataError for short series"""
    n = int(np.sum(~np.isnan(np.asarray(series, dtype=float))))
    if n < minimum:
        raise InsufficientDataError(f"{what} needs at least {minimum} observations, got {n}")
