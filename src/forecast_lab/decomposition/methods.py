#!/usr/bin/env python3
"""
Time Series Decomposition
Classical, STL, X-11 and SEATS decompositions through statsmodels

X-11 and SEATS need the Census Bureau X-13ARIMA-SEATS binary; it is
looked up in the X13PATH / X12PATH environment variables and on PATH.
"""

import os
import re
import shutil
import tempfile
import subprocess
import pandas as pd
from typing import Dict, Any, Optional, Callable
from pathlib import Path
import logging

from statsmodels.tsa.seasonal import seasonal_decompose, STL
from statsmodels.tsa.x13 import x13_arima_analysis
from statsmodels.tools.sm_exceptions import X13NotFoundError

from .components import Decomposition
from ..data.tsframe import seasonal_period
from ..data.validators import check_regular_index, require_length
from ..features.transforms import box_cox
from ..exceptions import DecompositionUnavailableError, InsufficientDataError

logger = logging.getLogger(__name__)

_X13_BINARIES = ('x13as', 'x13as.exe', 'x12a', 'x12a.exe')


def _infer_period(series: pd.Series, period: Optional[int]) -> int:
    if period is not None:
        return int(period)
    freq = getattr(series.index, 'freqstr', None)
    inferred = seasonal_period(freq)
    if inferred < 2:
        raise ValueError("Cannot infer a seasonal period; pass period= explicitly")
    return inferred


def classical_decomposition(series: pd.Series,
                            kind: str = 'additive',
                            period: Optional[int] = None) -> Decomposition:
    """
    Classical decomposition with a 2 x m moving average trend

    Args:
        series: Regular series without missing values
        kind: 'additive' or 'multiplicative'
        period: Seasonal period; inferred from the index frequency when omitted

    Returns:
        Decomposition (trend and remainder are missing at both ends)
    """
    if kind not in ('additive', 'multiplicative'):
        raise ValueError("kind must be 'additive' or 'multiplicative'")
    period = _infer_period(series, period)
    require_length(series, 2 * period, "Classical decomposition")
    check_regular_index(series)

    result = seasonal_decompose(series, model=kind, period=period)
    return Decomposition(
        observed=result.observed,
        trend=result.trend,
        seasonal=result.seasonal,
        remainder=result.resid,
        method='classical',
        kind=kind
    )


def stl_decomposition(series: pd.Series,
                      period: Optional[int] = None,
                      seasonal: int = 7,
                      trend: Optional[int] = None,
                      robust: bool = False,
                      lam: Optional[float] = None) -> Decomposition:
    """
    STL decomposition (Seasonal and Trend decomposition using Loess)

    Args:
        series: Regular series without missing values
        period: Seasonal period; inferred from the index frequency when omitted
        seasonal: Seasonal smoother length (odd, >= 3)
        trend: Trend smoother length (odd); statsmodels default when omitted
        robust: Downweight outliers
        lam: Box-Cox lambda; components are then on the transformed scale

    Returns:
        Additive Decomposition
    """
    period = _infer_period(series, period)
    require_length(series, 2 * period, "STL")
    check_regular_index(series)

    if series.isna().any():
        raise InsufficientDataError("STL cannot handle missing values; fill or drop them first")

    observed = box_cox(series, lam) if lam is not None else series

    result = STL(observed, period=period, seasonal=seasonal, trend=trend, robust=robust).fit()
    logger.debug(f"STL fitted: period={period}, seasonal={seasonal}, robust={robust}")

    return Decomposition(
        observed=result.observed,
        trend=result.trend,
        seasonal=result.seasonal,
        remainder=result.resid,
        method='stl',
        kind='additive',
        lam=lam
    )


def find_x13(x13path: Optional[str] = None) -> str:
    """Directory holding the X-13ARIMA-SEATS binary"""
    candidates = [x13path, os.getenv('X13PATH'), os.getenv('X12PATH')]
    for candidate in candidates:
        if not candidate:
            continue
        path = Path(candidate)
        if path.is_file():
            return str(path.parent)
        if any((path / name).is_file() for name in _X13_BINARIES):
            return str(path)

    for name in _X13_BINARIES:
        found = shutil.which(name)
        if found:
            return str(Path(found).parent)

    raise DecompositionUnavailableError(
        "X-13ARIMA-SEATS binary not found; install x13as and set X13PATH"
    )


def _x13_binary(directory: str) -> str:
    for name in _X13_BINARIES:
        candidate = Path(directory) / name
        if candidate.is_file():
            return str(candidate)
    raise DecompositionUnavailableError(f"No X-13 binary in {directory}")


def x11_decomposition(series: pd.Series,
                      kind: str = 'multiplicative',
                      x13path: Optional[str] = None) -> Decomposition:
    """
    X-11 decomposition via X-13ARIMA-SEATS

    Args:
        series: Monthly or quarterly series
        kind: 'multiplicative' (log-additive) or 'additive'
        x13path: Directory or binary path of X-13

    Returns:
        Decomposition
    """
    directory = find_x13(x13path)
    log = kind == 'multiplicative'

    try:
        result = x13_arima_analysis(series, log=log, x12path=directory, outlier=True)
    except X13NotFoundError as e:
        raise DecompositionUnavailableError(str(e)) from e

    seasonal = series / result.seasadj if log else series - result.seasadj

    return Decomposition(
        observed=series,
        trend=result.trend,
        seasonal=seasonal,
        remainder=result.irregular,
        method='x11',
        kind=kind
    )


def _read_x13_table(path: str, index: pd.Index, name: str) -> pd.Series:
    table = pd.read_csv(path, skiprows=2, header=None, sep='\t')
    values = table.iloc[:, 1].to_numpy(dtype=float)
    return pd.Series(values, index=index, name=name)


def seats_decomposition(series: pd.Series,
                        x13path: Optional[str] = None) -> Decomposition:
    """
    SEATS decomposition via X-13ARIMA-SEATS

    The series/automdl part of the .spc input is generated by
    statsmodels; its X-11 block is swapped for a SEATS block.
    """
    directory = find_x13(x13path)
    binary = _x13_binary(directory)

    spec = x13_arima_analysis(series, log=True, x12path=directory, speconly=True)
    spec, n_blocks = re.subn(r"x11\{[^}]*\}", "seats{ save=(s10 s11 s12 s13) }", spec)
    if n_blocks != 1:
        raise DecompositionUnavailableError("Unexpected X-13 .spc layout")

    with tempfile.TemporaryDirectory() as workdir:
        spec_path = Path(workdir) / 'series.spc'
        spec_path.write_text(spec)
        out_stem = str(Path(workdir) / 'series')

        completed = subprocess.run(
            [binary, str(spec_path)[:-4], out_stem],
            capture_output=True, text=True
        )
        if completed.returncode != 0:
            logger.error(f"X-13 SEATS run failed: {completed.stderr or completed.stdout}")
            raise DecompositionUnavailableError("X-13 SEATS run failed")

        seasonal = _read_x13_table(out_stem + '.s10', series.index, 'seasonal')
        trend = _read_x13_table(out_stem + '.s12', series.index, 'trend')
        remainder = _read_x13_table(out_stem + '.s13', series.index, 'remainder')

    return Decomposition(
        observed=series,
        trend=trend,
        seasonal=seasonal,
        remainder=remainder,
        method='seats',
        kind='multiplicative'
    )


DECOMPOSITIONS: Dict[str, Callable[..., Decomposition]] = {
    'classical': classical_decomposition,
    'stl': stl_decomposition,
    'x11': x11_decomposition,
    'seats': seats_decomposition,
}


def decompose(series: pd.Series, method: str = 'stl', **kwargs: Any) -> Decomposition:
    """Run a decomposition by name"""
    if method not in DECOMPOSITIONS:
        raise ValueError(
            f"Unknown decomposition '{method}'. Available: {', '.join(DECOMPOSITIONS)}"
        )
    return DECOMPOSITIONS[method](series, **kwargs)
