#!/usr/bin/env python3
"""
Exception taxonomy for forecast_lab
"""


class ForecastLabError(Exception):
    """Base class for all workbook errors"""


class DatasetNotFoundError(ForecastLabError, KeyError):
    """Dataset name is not registered or its file is missing"""

    def __str__(self):
        # KeyError quotes its message otherwise
        return str(self.args[0]) if self.args else ''


class SeriesSelectionError(ForecastLabError, ValueError):
    """A key selection did not identify exactly one series"""


class DuplicateIndexError(ForecastLabError, ValueError):
    """The same time index appears twice within one key"""


class IrregularIndexError(ForecastLabError, ValueError):
    """Observations are not evenly spaced in time"""


class TransformDomainError(ForecastLabError, ValueError):
    """Data outside the domain of the requested transform"""


class InsufficientDataError(ForecastLabError, ValueError):
    """Not enough observations for the requested operation"""


class NotFittedError(ForecastLabError, RuntimeError):
    """Model used before fit() was called"""


class DecompositionUnavailableError(ForecastLabError, RuntimeError):
    """Decomposition backend (X-13ARIMA-SEATS) is not installed"""
