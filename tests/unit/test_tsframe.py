#!/usr/bin/env python3
"""
Unit Tests for Keyed Time Series Tables
"""

import pytest
import pandas as pd
import numpy as np

from forecast_lab.data.tsframe import TimeSeriesTable, parse_time_index, seasonal_period
from forecast_lab.exceptions import SeriesSelectionError, DuplicateIndexError, IrregularIndexError


class TestParseTimeIndex:
    """Tests for time label parsing"""

    def test_integer_years(self):
        """Test integer years become year starts"""
        parsed = parse_time_index(pd.Series([1992, 1993]))
        assert parsed.iloc[0] == pd.Timestamp('1992-01-01')

    def test_quarter_labels(self):
        """Test '1992 Q2' style labels"""
        parsed = parse_time_index(pd.Series(['1992 Q2', '1992Q3']))
        assert list(parsed) == [pd.Timestamp('1992-04-01'), pd.Timestamp('1992-07-01')]

    def test_month_labels(self):
        """Test '1998 Jan' style labels"""
        parsed = parse_time_index(pd.Series(['1998 Jan', '1998 Feb']))
        assert parsed.iloc[1] == pd.Timestamp('1998-02-01')

    def test_iso_week_labels(self):
        """Test '2015 W03' maps to the Monday of ISO week 3"""
        parsed = parse_time_index(pd.Series(['2015 W03']))
        assert parsed.iloc[0] == pd.Timestamp('2015-01-12')

    def test_plain_dates(self):
        """Test fallback to pandas parsing"""
        parsed = parse_time_index(pd.Series(['2020-03-01']))
        assert parsed.iloc[0] == pd.Timestamp('2020-03-01')


class TestSeasonalPeriod:
    """Tests for frequency to seasonal period mapping"""

    @pytest.mark.parametrize("freq, expected", [
        ('MS', 12), ('ME', 12), ('QS', 4), ('W', 52), ('D', 7),
        ('h', 24), ('30min', 48), ('YS', 1), (None, 1)
    ])
    def test_periods(self, freq, expected):
        """Test common frequencies"""
        assert seasonal_period(freq) == expected


class TestTimeSeriesTable:
    """Tests for TimeSeriesTable"""

    def test_from_frame_infers_measures_and_freq(self, keyed_table):
        """Test measures default to numeric columns and frequency is inferred"""
        assert keyed_table.measures == ['Visitors']
        assert keyed_table.freq == 'MS'
        assert keyed_table.period == 12
        assert len(keyed_table) == 144

    def test_key_values_sorted(self, keyed_table):
        """Test distinct keys"""
        assert keyed_table.key_values() == [('North',), ('South',), ('West',)]

    def test_missing_columns(self, keyed_frame):
        """Test unknown key column"""
        with pytest.raises(KeyError):
            TimeSeriesTable.from_frame(keyed_frame, index='Month', keys=['Country'])

    def test_duplicate_index(self, keyed_frame):
        """Test duplicated time index within a key is rejected"""
        doubled = pd.concat([keyed_frame, keyed_frame.head(1)])
        with pytest.raises(DuplicateIndexError):
            TimeSeriesTable.from_frame(doubled, index='Month', keys=['Region'])

    def test_series_requires_key(self, keyed_table):
        """Test ambiguous selection"""
        with pytest.raises(SeriesSelectionError):
            keyed_table.series('Visitors')

    def test_series_by_key(self, keyed_table):
        """Test key as scalar, tuple and dict"""
        north = keyed_table.series('Visitors', key='North')

        assert len(north) == 48
        assert north.index.freqstr == 'MS'
        assert north.equals(keyed_table.series('Visitors', key=('North',)))
        assert north.equals(keyed_table.series('Visitors', key={'Region': 'North'}))

    def test_series_unknown_key(self, keyed_table):
        """Test missing key"""
        with pytest.raises(SeriesSelectionError):
            keyed_table.series('Visitors', key='East')

    def test_filter(self, keyed_table):
        """Test filtering by key values"""
        subset = keyed_table.filter(Region=['North', 'West'])
        assert subset.key_values() == [('North',), ('West',)]

        single = keyed_table.filter(Region='South')
        assert single.series().name == 'Visitors'

    def test_filter_index(self, keyed_table):
        """Test time window filtering"""
        window = keyed_table.filter_index(start='2016-01-01', end='2016-12-01')
        assert len(window) == 36

    def test_mutate_and_select(self, keyed_table):
        """Test derived measures"""
        table = keyed_table.mutate(log_visitors=lambda d: np.log(d['Visitors']))
        assert 'log_visitors' in table.measures

        selected = table.select('log_visitors')
        assert selected.measures == ['log_visitors']
        assert 'Visitors' not in selected.data.columns

    def test_aggregate(self, keyed_table, keyed_frame):
        """Test summing across keys"""
        total = keyed_table.aggregate('Visitors')

        assert total.keys == []
        first = keyed_frame[keyed_frame['Month'] == '2015-01-01']['Visitors'].sum()
        assert total.series().iloc[0] == pytest.approx(first)

    def test_resample(self, keyed_table):
        """Test monthly to quarterly aggregation"""
        quarterly = keyed_table.resample('QS')

        assert quarterly.period == 4
        assert len(quarterly.series(key='North')) == 16

    def test_fill_gaps(self, keyed_frame):
        """Test implicit gaps become explicit missing values"""
        gapped = keyed_frame.drop(index=[5, 6])
        table = TimeSeriesTable.from_frame(gapped, index='Month', keys=['Region'], freq='MS')

        assert table.has_gaps()
        filled = table.fill_gaps()
        assert not filled.has_gaps()
        assert filled.series(key='North').isna().sum() == 2

    def test_gaps_need_frequency(self, keyed_table):
        """Test gap handling without a frequency"""
        keyed_table.freq = None
        with pytest.raises(IrregularIndexError):
            keyed_table.fill_gaps()

    def test_group_apply(self, keyed_table):
        """Test per-series summaries"""
        result = keyed_table.group_apply(lambda s: {'mean': s.mean()}, measure='Visitors')

        assert list(result.columns) == ['Region', 'mean']
        assert len(result) == 3

    def test_to_wide(self, keyed_table):
        """Test pivot to one column per key"""
        wide = keyed_table.to_wide()
        assert wide.shape == (48, 3)
