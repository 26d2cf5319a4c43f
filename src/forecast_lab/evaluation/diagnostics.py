#!/usr/bin/env python3
"""
Residual Diagnostics
Portmanteau tests and summary checks that residuals look like white noise
"""

import numpy as np
import pandas as pd
from typing import Dict, Any, Optional
import logging

from scipy import stats
from statsmodels.stats.diagnostic import acorr_ljungbox

from ..data.tsframe import seasonal_period
from .metrics import lag1_autocorrelation

logger = logging.getLogger(__name__)


def default_lag(n_obs: int, period: int = 1) -> int:
    """2m lags for seasonal data, 10 otherwise, at most T/5"""
    lag = 2 * period if period > 1 else 10
    return max(1, min(lag, n_obs // 5))


def _portmanteau(residuals, lag: Optional[int], dof: int, period: int, boxpierce: bool) -> Dict[str, float]:
    values = pd.Series(np.asarray(residuals, dtype=float)).dropna()
    if lag is None:
        lag = default_lag(len(values), period)
    if lag <= dof:
        raise ValueError(f"lag ({lag}) must exceed the model degrees of freedom ({dof})")

    result = acorr_ljungbox(values, lags=[lag], model_df=dof, boxpierce=boxpierce, return_df=True)
    row = result.iloc[-1]
    if boxpierce:
        return {'bp_stat': float(row['bp_stat']), 'bp_pvalue': float(row['bp_pvalue']), 'lag': lag}
    return {'lb_stat': float(row['lb_stat']), 'lb_pvalue': float(row['lb_pvalue']), 'lag': lag}


def ljung_box(residuals, lag: Optional[int] = None, dof: int = 0, period: int = 1) -> Dict[str, float]:
    """
    Ljung-Box test of no autocorrelation up to a given lag

    Args:
        residuals: Innovation residuals (NaNs are dropped)
        lag: Number of autocorrelations; default_lag() when omitted
        dof: Parameters estimated by the model
        period: Seasonal period used for the default lag

    Returns:
        lb_stat, lb_pvalue, lag
    """
    return _portmanteau(residuals, lag, dof, period, boxpierce=False)


def box_pierce(residuals, lag: Optional[int] = None, dof: int = 0, period: int = 1) -> Dict[str, float]:
    """Box-Pierce test; the unweighted sum of squared autocorrelations"""
    return _portmanteau(residuals, lag, dof, period, boxpierce=True)


def residual_summary(residuals: pd.Series, period: Optional[int] = None,
                     dof: int = 0, alpha: float = 0.05) -> Dict[str, Any]:
    """
    Summary of residual behaviour

    Returns:
        mean, sd, acf1, Jarque-Bera normality test, Ljung-Box test and a
        white_noise flag (Ljung-Box p-value above alpha)
    """
    if period is None:
        period = seasonal_period(getattr(residuals.index, 'freqstr', None))

    values = residuals.dropna().to_numpy(dtype=float)

    jb = stats.jarque_bera(values)
    lb = ljung_box(values, dof=dof, period=period)

    summary = {
        'n_obs': int(len(values)),
        'mean': float(values.mean()),
        'sd': float(values.std(ddof=1)),
        'acf1': lag1_autocorrelation(values),
        'jb_stat': float(jb.statistic),
        'jb_pvalue': float(jb.pvalue),
        **lb,
        'white_noise': bool(lb['lb_pvalue'] > alpha),
    }

    if not summary['white_noise']:
        logger.info(f"Residuals are autocorrelated (Ljung-Box p={lb['lb_pvalue']:.4f}, lag={lb['lag']})")
    return summary
