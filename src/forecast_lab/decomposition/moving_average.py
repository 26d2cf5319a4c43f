#!/usr/bin/env python3
"""
Moving Average Smoothers
"""

import pandas as pd


def moving_average(series: pd.Series, order: int, centre: bool = True) -> pd.Series:
    """
    m-MA: mean of ``order`` consecutive observations

    For even orders with centre=True the window is shifted so the
    result lines up with the later of the two middle observations.
    """
    if order < 1:
        raise ValueError("order must be positive")
    return series.rolling(window=order, center=centre).mean()


def double_moving_average(series: pd.Series, order: int) -> pd.Series:
    """
    2 x m-MA: a 2-MA applied to an m-MA

    For even m this is a centred, symmetric weighted average and is the
    usual trend-cycle estimate for quarterly (m=4) or monthly (m=12) data.
    """
    if order < 1:
        raise ValueError("order must be positive")
    if order % 2:
        return moving_average(series, order, centre=True)

    # Weights 1/(2m), 1/m, ..., 1/m, 1/(2m) over m + 1 observations
    first = series.rolling(window=order).mean()
    second = first.rolling(window=2).mean()
    return second.shift(-(order // 2))
