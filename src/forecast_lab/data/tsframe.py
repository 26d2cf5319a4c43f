#!/usr/bin/env python3
"""
Keyed Time Series Tables
Long-format observations (key columns, time index, numeric measures)
"""

import re
import pandas as pd
import numpy as np
from typing import Dict, Any, List, Optional, Tuple, Union, Callable
from dataclasses import dataclass, field, replace
import logging
from pandas.tseries import offsets
from pandas.tseries.frequencies import to_offset

from ..exceptions import SeriesSelectionError, DuplicateIndexError, IrregularIndexError

logger = logging.getLogger(__name__)

_QUARTER_RE = re.compile(r'^\d{4} ?Q[1-4]$')
_MONTH_RE = re.compile(r'^\d{4} [A-Za-z]{3}$')
_WEEK_RE = re.compile(r'^\d{4} W\d{2}$')


def parse_time_index(values: pd.Series) -> pd.Series:
    """
    Convert a column of time labels to timestamps

    Accepts integer years, "1992 Q1" quarters, "1998 Jan" months,
    "2015 W03" ISO weeks and anything pandas can parse directly.
    """
    if pd.api.types.is_datetime64_any_dtype(values):
        return values

    if pd.api.types.is_integer_dtype(values) or pd.api.types.is_float_dtype(values):
        return pd.to_datetime(values.astype(int).astype(str), format='%Y')

    sample = str(values.dropna().iloc[0]) if values.notna().any() else ''

    if _QUARTER_RE.match(sample):
        periods = pd.PeriodIndex(values.astype(str).str.replace(' ', '', regex=False), freq='Q')
        return pd.Series(periods.to_timestamp(), index=values.index)
    if _MONTH_RE.match(sample):
        return pd.to_datetime(values, format='%Y %b')
    if _WEEK_RE.match(sample):
        return pd.to_datetime(values.astype(str) + '-1', format='%G W%V-%u')

    return pd.to_datetime(values)


def seasonal_period(freq: Optional[str]) -> int:
    """Number of observations per seasonal cycle for a pandas frequency"""
    if freq is None:
        return 1

    offset = to_offset(freq)

    if isinstance(offset, (offsets.QuarterBegin, offsets.QuarterEnd)):
        return 4
    if isinstance(offset, (offsets.MonthBegin, offsets.MonthEnd)):
        return 12
    if isinstance(offset, offsets.Week):
        return 52
    if isinstance(offset, (offsets.Day, offsets.BusinessDay)):
        return 7
    if isinstance(offset, offsets.Hour):
        return 24 // max(offset.n, 1)
    if isinstance(offset, offsets.Minute):
        # Daily cycle for sub-hourly data
        return (24 * 60) // max(offset.n, 1)
    return 1


@dataclass
class TimeSeriesTable:
    """
    A table of time series identified by key columns

    Each row is one observation: key values, a timestamp in ``index``
    and one or more numeric ``measures``. Rows are kept sorted by keys
    then time.
    """

    data: pd.DataFrame
    index: str
    keys: List[str] = field(default_factory=list)
    measures: List[str] = field(default_factory=list)
    freq: Optional[str] = None

    @classmethod
    def from_frame(cls,
                   df: pd.DataFrame,
                   index: str,
                   keys: Optional[List[str]] = None,
                   measures: Optional[List[str]] = None,
                   freq: Optional[str] = None) -> 'TimeSeriesTable':
        """
        Build a table from a DataFrame

        Args:
            df: Source data in long format
            index: Name of the time column
            keys: Key columns identifying each series
            measures: Numeric columns; defaults to all remaining numeric columns
            freq: Pandas frequency alias; inferred when omitted

        Returns:
            TimeSeriesTable
        """
        keys = list(keys or [])
        missing = [col for col in [index] + keys if col not in df.columns]
        if missing:
            raise KeyError(f"Columns not found: {missing}")

        data = df.copy()
        data[index] = parse_time_index(data[index])

        if measures is None:
            measures = [
                col for col in data.select_dtypes(include=[np.number]).columns
                if col not in keys and col != index
            ]

        data = data.sort_values(keys + [index]).reset_index(drop=True)

        table = cls(data=data, index=index, keys=keys, measures=list(measures), freq=freq)
        table._check_unique()

        if table.freq is None:
            table.freq = table._infer_freq()

        logger.debug(f"Built table: {len(data)} rows, {len(table.key_values())} series, freq={table.freq}")
        return table

    def _check_unique(self) -> None:
        duplicated = self.data.duplicated(subset=self.keys + [self.index])
        if duplicated.any():
            example = self.data.loc[duplicated, self.keys + [self.index]].iloc[0].to_dict()
            raise DuplicateIndexError(
                f"{int(duplicated.sum())} duplicated index values, e.g. {example}"
            )

    def _infer_freq(self) -> Optional[str]:
        for _, group in self._groups():
            stamps = pd.DatetimeIndex(group[self.index].drop_duplicates().sort_values())
            if len(stamps) < 3:
                continue
            inferred = pd.infer_freq(stamps)
            if inferred is not None:
                return inferred

            # Gapped series: fall back to the most common spacing
            diffs = stamps.to_series().diff().dropna()
            days = diffs.dt.days.mode().iloc[0]
            if 28 <= days <= 31:
                return 'MS'
            if 89 <= days <= 92:
                return 'QS'
            if 365 <= days <= 366:
                return 'YS'
            if days == 7:
                return 'W'
            if days == 1:
                return 'D'
        logger.warning("Could not infer frequency of the time index")
        return None

    def _groups(self):
        if not self.keys:
            yield (), self.data
            return
        for key, group in self.data.groupby(self.keys, sort=True, observed=True):
            yield (key if isinstance(key, tuple) else (key,)), group

    def _derive(self, data: pd.DataFrame, **changes) -> 'TimeSeriesTable':
        return replace(self, data=data.reset_index(drop=True), **changes)

    @property
    def period(self) -> int:
        """Seasonal period implied by the frequency"""
        return seasonal_period(self.freq)

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return (
            f"TimeSeriesTable(rows={len(self.data)}, index='{self.index}', "
            f"keys={self.keys}, measures={self.measures}, freq={self.freq})"
        )

    def key_values(self) -> List[Tuple]:
        """Distinct key tuples, in sorted order"""
        return [key for key, _ in self._groups()]

    def filter(self, **key_values) -> 'TimeSeriesTable':
        """Keep rows whose columns match the given value (or any of a list of values)"""
        mask = pd.Series(True, index=self.data.index)
        for column, value in key_values.items():
            if column not in self.data.columns:
                raise KeyError(f"Column not found: {column}")
            if isinstance(value, (list, tuple, set)):
                mask &= self.data[column].isin(list(value))
            else:
                mask &= self.data[column] == value
        return self._derive(self.data[mask])

    def query(self, expr: str) -> 'TimeSeriesTable':
        """Row filter using DataFrame.query syntax"""
        return self._derive(self.data.query(expr))

    def filter_index(self, start=None, end=None) -> 'TimeSeriesTable':
        """Keep observations within [start, end]"""
        mask = pd.Series(True, index=self.data.index)
        if start is not None:
            mask &= self.data[self.index] >= pd.Timestamp(start)
        if end is not None:
            mask &= self.data[self.index] <= pd.Timestamp(end)
        return self._derive(self.data[mask])

    def select(self, *measures: str) -> 'TimeSeriesTable':
        """Keep only the given measures"""
        unknown = [m for m in measures if m not in self.data.columns]
        if unknown:
            raise KeyError(f"Unknown measures: {unknown}")
        columns = self.keys + [self.index] + list(measures)
        return self._derive(self.data[columns], measures=list(measures))

    def mutate(self, **columns: Union[Callable[[pd.DataFrame], Any], Any]) -> 'TimeSeriesTable':
        """Add derived measures; callables receive the underlying frame"""
        data = self.data.copy()
        measures = list(self.measures)
        for name, value in columns.items():
            data[name] = value(data) if callable(value) else value
            if name not in measures:
                measures.append(name)
        return self._derive(data, measures=measures)

    def _resolve_key(self, key) -> Tuple:
        if key is None:
            return ()
        if isinstance(key, dict):
            return tuple(key[k] for k in self.keys)
        if not isinstance(key, tuple):
            return (key,)
        return key

    def series(self, measure: Optional[str] = None, key=None) -> pd.Series:
        """
        Extract one regular series

        Args:
            measure: Measure column; may be omitted when the table has one measure
            key: Key tuple, dict or scalar for tables with keys

        Returns:
            Series indexed by a DatetimeIndex with the table frequency
        """
        if measure is None:
            if len(self.measures) != 1:
                raise SeriesSelectionError(f"Choose a measure from {self.measures}")
            measure = self.measures[0]
        if measure not in self.data.columns:
            raise KeyError(f"Unknown measure: {measure}")

        data = self.data
        if self.keys:
            if key is None:
                distinct = self.key_values()
                if len(distinct) != 1:
                    raise SeriesSelectionError(
                        f"Table holds {len(distinct)} series; pass key= to pick one"
                    )
                key = distinct[0]
            key = self._resolve_key(key)
            if len(key) != len(self.keys):
                raise SeriesSelectionError(f"Key {key} does not match key columns {self.keys}")
            mask = pd.Series(True, index=data.index)
            for column, value in zip(self.keys, key):
                mask &= data[column] == value
            data = data[mask]
            if data.empty:
                raise SeriesSelectionError(f"No series for key {key}")

        series = data.set_index(self.index)[measure].astype(float)
        series.index = pd.DatetimeIndex(series.index)
        if self.freq is not None:
            series = series.asfreq(self.freq)
        series.name = measure
        return series

    def group_apply(self, func: Callable[[pd.Series], Any], measure: Optional[str] = None) -> pd.DataFrame:
        """Apply func to every keyed series and tabulate the results"""
        rows = []
        for key in self.key_values():
            result = func(self.series(measure, key=key if self.keys else None))
            row = dict(zip(self.keys, key))
            if isinstance(result, dict):
                row.update(result)
            else:
                row['value'] = result
            rows.append(row)
        return pd.DataFrame(rows)

    def aggregate(self, measure: Optional[str] = None, how: str = 'sum') -> 'TimeSeriesTable':
        """Collapse all keys into one series per time index"""
        measures = [measure] if measure else self.measures
        data = self.data.groupby(self.index, as_index=False)[measures].agg(how)
        return self._derive(data, keys=[], measures=measures)

    def resample(self, freq: str, how: str = 'sum') -> 'TimeSeriesTable':
        """Change frequency, aggregating each keyed series"""
        grouper = [pd.Grouper(key=self.index, freq=freq)]
        data = (
            self.data.groupby(self.keys + grouper, observed=True)[self.measures]
            .agg(how)
            .reset_index()
        )
        return self._derive(data, freq=freq)

    def has_gaps(self) -> bool:
        """True when any keyed series skips a time step"""
        if self.freq is None:
            raise IrregularIndexError("Table has no frequency; cannot check for gaps")
        for _, group in self._groups():
            stamps = pd.DatetimeIndex(group[self.index])
            expected = pd.date_range(stamps.min(), stamps.max(), freq=self.freq)
            if len(expected) != len(stamps):
                return True
        return False

    def fill_gaps(self) -> 'TimeSeriesTable':
        """Insert NaN rows for every missing time step within each series"""
        if self.freq is None:
            raise IrregularIndexError("Table has no frequency; cannot fill gaps")
        frames = []
        for key, group in self._groups():
            full = pd.date_range(group[self.index].min(), group[self.index].max(), freq=self.freq)
            filled = group.set_index(self.index).reindex(full)
            filled.index.name = self.index
            for column, value in zip(self.keys, key):
                filled[column] = value
            frames.append(filled.reset_index())
        data = pd.concat(frames, ignore_index=True)
        n_added = len(data) - len(self.data)
        if n_added:
            logger.info(f"Filled {n_added} implicit gaps with missing values")
        return self._derive(data[self.data.columns])

    def to_wide(self, measure: Optional[str] = None) -> pd.DataFrame:
        """One column per key, indexed by time"""
        if measure is None:
            measure = self.measures[0]
        if not self.keys:
            return self.data.set_index(self.index)[[measure]]
        return self.data.pivot_table(index=self.index, columns=self.keys, values=measure)
