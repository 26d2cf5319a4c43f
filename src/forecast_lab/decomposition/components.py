#!/usr/bin/env python3
"""
Decomposition Result Container
"""

import pandas as pd
from typing import Optional
from dataclasses import dataclass


@dataclass
class Decomposition:
    """Trend, seasonal and remainder components of one series"""
    observed: pd.Series
    trend: pd.Series
    seasonal: pd.Series
    remainder: pd.Series
    method: str
    kind: str = 'additive'
    lam: Optional[float] = None

    @property
    def seasonal_adjusted(self) -> pd.Series:
        if self.kind == 'multiplicative':
            return self.observed / self.seasonal
        return self.observed - self.seasonal

    def to_frame(self) -> pd.DataFrame:
        """Components table, one row per observation"""
        return pd.DataFrame({
            'observed': self.observed,
            'trend': self.trend,
            'seasonal': self.seasonal,
            'remainder': self.remainder,
            'season_adjust': self.seasonal_adjusted,
        })

    def reconstruct(self) -> pd.Series:
        """Recombine the components"""
        if self.kind == 'multiplicative':
            return self.trend * self.seasonal * self.remainder
        return self.trend + self.seasonal + self.remainder
