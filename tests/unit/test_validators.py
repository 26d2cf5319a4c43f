#!/usr/bin/env python3
"""
Unit Tests for Series Validation
"""

import pytest
import pandas as pd
import numpy as np

from forecast_lab.data.tsframe import TimeSeriesTable
from forecast_lab.data.validators import (
    check_regular_index, missing_value_report, drop_missing, require_positive, require_length
)
from forecast_lab.exceptions import IrregularIndexError, TransformDomainError, InsufficientDataError


class TestValidators:
    """Tests for validation helpers"""

    def test_regular_index_passes(self, monthly_series):
        """Test evenly spaced data"""
        check_regular_index(monthly_series)

    def test_irregular_index(self):
        """Test unevenly spaced timestamps"""
        index = pd.DatetimeIndex(['2020-01-01', '2020-01-02', '2020-01-05', '2020-01-06'])
        with pytest.raises(IrregularIndexError):
            check_regular_index(pd.Series([1.0, 2.0, 3.0, 4.0], index=index))

    def test_missing_value_report(self, keyed_frame):
        """Test per-series missing counts"""
        keyed_frame.loc[[0, 1, 2], 'Visitors'] = np.nan
        table = TimeSeriesTable.from_frame(keyed_frame, index='Month', keys=['Region'])

        report = missing_value_report(table).set_index('Region')

        assert report.loc['North', 'n_missing'] == 3
        assert report.loc['South', 'n_missing'] == 0
        assert report.loc['North', 'pct_missing'] == pytest.approx(6.25)

    def test_drop_missing(self):
        """Test NaN removal"""
        series = pd.Series([1.0, np.nan, 3.0], name='x')
        assert drop_missing(series).tolist() == [1.0, 3.0]

    def test_require_positive(self):
        """Test positivity check depends on lambda"""
        values = np.array([1.0, 0.0, 2.0])

        with pytest.raises(TransformDomainError):
            require_positive(values)
        with pytest.raises(TransformDomainError):
            require_positive(values, lam=0)

        require_positive(values, lam=0.5)
        require_positive(np.array([1.0, np.nan, 2.0]))

    def test_require_length(self):
        """Test minimum length ignores NaN"""
        with pytest.raises(InsufficientDataError, match="at least 3"):
            require_length([1.0, np.nan, 2.0], 3, "Test")

        require_length([1.0, 2.0, 3.0], 3)
