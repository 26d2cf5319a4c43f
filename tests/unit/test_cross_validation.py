#!/usr/bin/env python3
"""
Unit Tests for Time Series Cross-Validation
"""

import pytest
import pandas as pd
import numpy as np

from forecast_lab.evaluation.cross_validation import (
    TimeSeriesWalkForward, train_test_split, cross_validate, cv_accuracy
)
from forecast_lab.models import MeanForecaster, NaiveForecaster, SeasonalNaiveForecaster
from forecast_lab.exceptions import InsufficientDataError


@pytest.fixture
def short_series() -> pd.Series:
    """Twenty monthly observations"""
    np.random.seed(42)
    return pd.Series(np.cumsum(np.random.normal(0, 1, 20)) + 50,
                     index=pd.date_range('2020-01-01', periods=20, freq='MS'), name='y')


class TestTimeSeriesWalkForward:
    """Tests for TimeSeriesWalkForward"""

    def test_expanding_splits(self, short_series):
        """Test training windows start at zero and grow"""
        splits = TimeSeriesWalkForward(initial=10, horizon=3).split(short_series)

        assert len(splits) == 10
        train, val = splits[0]
        assert list(train) == list(range(10))
        assert list(val) == [10, 11, 12]
        assert len(splits[-1][0]) == 19
        assert list(splits[-1][1]) == [19]

    def test_sliding_window(self, short_series):
        """Test fixed length training windows"""
        splits = TimeSeriesWalkForward(initial=10, step=5, expanding=False).split(short_series)

        assert [len(train) for train, _ in splits] == [10, 10]
        assert splits[1][0][0] == 5

    def test_no_overlap(self, short_series):
        """Test validation always follows training"""
        for train, val in TimeSeriesWalkForward(initial=5, step=3, horizon=4).split(short_series):
            assert train.max() < val.min()

    def test_max_splits(self, short_series):
        """Test split limit"""
        splitter = TimeSeriesWalkForward(initial=5, max_splits=3)
        assert splitter.get_n_splits(short_series) == 3

    def test_invalid_parameters(self):
        """Test non-positive settings"""
        with pytest.raises(ValueError):
            TimeSeriesWalkForward(initial=0)


class TestTrainTestSplit:
    """Tests for train_test_split"""

    def test_split(self, short_series):
        """Test last observations held out"""
        train, test = train_test_split(short_series, 4)

        assert len(train) == 16 and len(test) == 4
        assert test.index[0] == pd.Timestamp('2021-05-01')

    def test_invalid_size(self, short_series):
        """Test hold-out covering the whole series"""
        with pytest.raises(ValueError):
            train_test_split(short_series, 20)


class TestCrossValidate:
    """Tests for cross_validate and cv_accuracy"""

    def test_rows(self, short_series):
        """Test one row per model, origin and step"""
        results = cross_validate(short_series, {'naive': NaiveForecaster, 'mean': MeanForecaster},
                                 h=3, initial=10)

        assert len(results) == 2 * 27
        assert results['origin'].nunique() == 10
        assert set(results['h']) == {1, 2, 3}
        np.testing.assert_allclose(results['error'], results['actual'] - results['mean'])

    def test_naive_forecasts_last_training_value(self, short_series):
        """Test forecasts are made from the origin only"""
        results = cross_validate(short_series, {'naive': NaiveForecaster}, h=2, initial=10)
        first = results[results['origin'] == 0]

        np.testing.assert_allclose(first['mean'], short_series.iloc[9])
        assert list(first['time']) == list(short_series.index[10:12])
        assert first['origin_time'].iloc[0] == short_series.index[9]

    def test_factories_with_parameters(self, monthly_series):
        """Test lambdas as forecaster factories"""
        results = cross_validate(monthly_series, {'snaive': lambda: SeasonalNaiveForecaster(period=12)},
                                 h=12, initial=96, step=12)

        assert results['origin'].nunique() == 2

    def test_too_long_initial(self, short_series):
        """Test no origins available"""
        with pytest.raises(InsufficientDataError):
            cross_validate(short_series, {'naive': NaiveForecaster}, h=1, initial=20)

    def test_cv_accuracy(self, short_series):
        """Test aggregation per model"""
        results = cross_validate(short_series, {'naive': NaiveForecaster, 'mean': MeanForecaster},
                                 h=3, initial=10)
        table = cv_accuracy(results)

        assert list(table['model']) == ['mean', 'naive']
        assert list(table['n_forecasts']) == [27, 27]
        assert {'ME', 'RMSE', 'MAE', 'MAPE'} <= set(table.columns)

    def test_cv_accuracy_by_horizon(self, short_series):
        """Test aggregation per model and step"""
        results = cross_validate(short_series, {'naive': NaiveForecaster}, h=3, initial=10)
        table = cv_accuracy(results, by_horizon=True)

        assert list(table['h']) == [1, 2, 3]
        assert list(table['n_forecasts']) == [10, 9, 8]

    def test_unknown_metric(self, short_series):
        """Test metric validation"""
        results = cross_validate(short_series, {'naive': NaiveForecaster}, h=1, initial=15)
        with pytest.raises(ValueError):
            cv_accuracy(results, metrics=('CRPS',))
