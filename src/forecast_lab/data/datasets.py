#!/usr/bin/env python3
"""
Dataset Bindings
Named time series datasets resolved to keyed tables

File-backed datasets are read from the configured data directory
(CSV or Parquet). A few built-in datasets ship with statsmodels and
are always available offline.
"""

import pandas as pd
from typing import Dict, Any, List, Optional, Union, Callable
from pathlib import Path
from dataclasses import dataclass, field
from abc import ABC, abstractmethod
import logging

from .tsframe import TimeSeriesTable
from ..exceptions import DatasetNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class DatasetSpec:
    """How to turn a raw table into a TimeSeriesTable"""
    name: str
    index: str
    measures: List[str]
    keys: List[str] = field(default_factory=list)
    freq: Optional[str] = None
    regular: bool = True
    description: str = ""
    filename: Optional[str] = None
    builder: Optional[Callable[[], pd.DataFrame]] = None

    @property
    def builtin(self) -> bool:
        return self.builder is not None

    @property
    def required_columns(self) -> List[str]:
        return [self.index] + self.keys + self.measures


class BaseDatasetLoader(ABC):
    """Abstract base class for dataset file loaders"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

    @abstractmethod
    def read(self, path: Union[str, Path]) -> pd.DataFrame:
        """Read the raw file"""
        pass

    def load(self, path: Union[str, Path], spec: DatasetSpec) -> pd.DataFrame:
        """Read and validate a dataset file"""
        logger.info(f"Loading dataset '{spec.name}' from {path}")

        try:
            data = self.read(path)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise

        if not self.validate_data(data, spec):
            raise ValueError(f"Dataset '{spec.name}' failed validation")

        logger.info(f"Loaded {spec.name}: {data.shape}, Memory: {self.get_memory_usage_mb(data):.1f}MB")
        return data

    def validate_data(self, data: pd.DataFrame, spec: DatasetSpec) -> bool:
        """Check required columns and basic integrity"""
        if data.empty:
            logger.error(f"Dataset '{spec.name}' is empty")
            return False

        missing_columns = [col for col in spec.required_columns if col not in data.columns]
        if missing_columns:
            logger.error(f"Missing required columns in '{spec.name}': {missing_columns}")
            return False

        if data.isnull().all().any():
            logger.warning(f"Some columns of '{spec.name}' are entirely null")

        return True

    def get_memory_usage_mb(self, data: pd.DataFrame) -> float:
        """Calculate memory usage in MB"""
        return data.memory_usage(deep=True).sum() / (1024 ** 2)


class CSVDatasetLoader(BaseDatasetLoader):
    """Comma-separated files"""

    def read(self, path: Union[str, Path]) -> pd.DataFrame:
        return pd.read_csv(path, **self.config.get('read_options', {}))


class ParquetDatasetLoader(BaseDatasetLoader):
    """Parquet files via pyarrow"""

    def read(self, path: Union[str, Path]) -> pd.DataFrame:
        return pd.read_parquet(path, engine='pyarrow')


LOADERS = {
    '.csv': CSVDatasetLoader,
    '.parquet': ParquetDatasetLoader,
}


# =====================================================
# Built-in datasets from statsmodels
# =====================================================

def _us_macro() -> pd.DataFrame:
    from statsmodels.datasets import macrodata

    raw = macrodata.load_pandas().data
    labels = [f"{int(y)}Q{int(q)}" for y, q in zip(raw['year'], raw['quarter'])]
    frame = raw.drop(columns=['year', 'quarter'])
    frame.insert(0, 'Quarter', pd.PeriodIndex(labels, freq='Q').to_timestamp())
    return frame


def _co2() -> pd.DataFrame:
    from statsmodels.datasets import co2

    raw = co2.load_pandas().data
    return raw.rename_axis('Week').reset_index()


def _sunspots() -> pd.DataFrame:
    from statsmodels.datasets import sunspots

    raw = sunspots.load_pandas().data
    return pd.DataFrame({
        'Year': raw['YEAR'].astype(int),
        'Sunspots': raw['SUNACTIVITY'].astype(float)
    })


DATASETS: Dict[str, DatasetSpec] = {}


def register_dataset(spec: DatasetSpec) -> None:
    """Register (or replace) a dataset binding"""
    if spec.builder is None and spec.filename is None:
        spec.filename = spec.name
    DATASETS[spec.name] = spec
    logger.debug(f"Registered dataset '{spec.name}'")


def list_datasets() -> pd.DataFrame:
    """Registered datasets as a table"""
    return pd.DataFrame([
        {
            'name': spec.name,
            'keys': ', '.join(spec.keys),
            'measures': ', '.join(spec.measures),
            'freq': spec.freq,
            'builtin': spec.builtin,
            'description': spec.description,
        }
        for spec in DATASETS.values()
    ])


def _resolve_file(spec: DatasetSpec, data_dir: Path, file_format: str) -> Path:
    stem = Path(spec.filename)
    if stem.suffix in LOADERS:
        candidates = [data_dir / stem]
    else:
        preferred = ['.parquet', '.csv'] if file_format == 'parquet' else ['.csv', '.parquet']
        candidates = [data_dir / f"{stem}{ext}" for ext in preferred]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    raise DatasetNotFoundError(
        f"Dataset '{spec.name}' not found; looked for {', '.join(str(c) for c in candidates)}"
    )


def load_dataset(name: str,
                 data_dir: Optional[Union[str, Path]] = None,
                 file_format: Optional[str] = None) -> TimeSeriesTable:
    """
    Load a registered dataset as a TimeSeriesTable

    Args:
        name: Registered dataset name
        data_dir: Directory with dataset files; defaults to the configured data path
        file_format: Preferred file format when both CSV and Parquet exist

    Returns:
        TimeSeriesTable
    """
    if name not in DATASETS:
        raise DatasetNotFoundError(
            f"Unknown dataset '{name}'. Available: {', '.join(sorted(DATASETS))}"
        )
    spec = DATASETS[name]

    if spec.builtin:
        logger.info(f"Loading built-in dataset '{name}'")
        raw = spec.builder()
    else:
        if data_dir is None or file_format is None:
            from ..config.settings import get_config
            data_config = get_config().data
            data_dir = data_dir or data_config.data_path
            file_format = file_format or data_config.file_format
        path = _resolve_file(spec, Path(data_dir), file_format)
        loader = LOADERS[path.suffix]()
        raw = loader.load(path, spec)

    table = TimeSeriesTable.from_frame(
        raw,
        index=spec.index,
        keys=spec.keys,
        measures=spec.measures,
        freq=spec.freq
    )
    if not spec.regular:
        # Trading days and similar: keep observation order, no calendar frequency
        table.freq = None
    return table


for _spec in [
    DatasetSpec('us_macro', index='Quarter',
                measures=['realgdp', 'realcons', 'realinv', 'realgovt', 'realdpi',
                          'cpi', 'm1', 'tbilrate', 'unemp', 'pop', 'infl', 'realint'],
                freq='QS', builder=_us_macro,
                description='US quarterly macroeconomic series, 1959-2009'),
    DatasetSpec('co2', index='Week', measures=['co2'], builder=_co2,
                description='Weekly atmospheric CO2 at Mauna Loa'),
    DatasetSpec('sunspots', index='Year', measures=['Sunspots'], freq='YS', builder=_sunspots,
                description='Yearly sunspot activity, 1700-2008'),
    DatasetSpec('global_economy', index='Year', keys=['Country'],
                measures=['GDP', 'Growth', 'CPI', 'Imports', 'Exports', 'Population'],
                freq='YS', description='Annual economic indicators by country'),
    DatasetSpec('aus_retail', index='Month', keys=['State', 'Industry'],
                measures=['Turnover'], freq='MS',
                description='Monthly Australian retail turnover by state and industry'),
    DatasetSpec('aus_production', index='Quarter',
                measures=['Beer', 'Tobacco', 'Bricks', 'Cement', 'Electricity', 'Gas'],
                freq='QS', description='Quarterly Australian production'),
    DatasetSpec('gafa_stock', index='Date', keys=['Symbol'],
                measures=['Open', 'High', 'Low', 'Close', 'Adj_Close', 'Volume'],
                regular=False, description='Daily stock prices on trading days'),
    DatasetSpec('tourism', index='Quarter', keys=['Region', 'State', 'Purpose'],
                measures=['Trips'], freq='QS',
                description='Quarterly overnight trips by region and purpose'),
    DatasetSpec('aus_livestock', index='Month', keys=['Animal', 'State'],
                measures=['Count'], freq='MS',
                description='Monthly livestock slaughtered by animal and state'),
    DatasetSpec('us_employment', index='Month', keys=['Series_ID'],
                measures=['Employed'], freq='MS',
                description='Monthly US employment by industry'),
    DatasetSpec('vic_elec', index='Time', measures=['Demand', 'Temperature'],
                freq='30min', description='Half-hourly electricity demand for Victoria'),
    DatasetSpec('pelt', index='Year', measures=['Hare', 'Lynx'], freq='YS',
                description='Hudson Bay Company pelt trading records'),
    DatasetSpec('souvenirs', index='Month', measures=['Sales'], freq='MS',
                description='Monthly souvenir shop sales'),
    DatasetSpec('hh_budget', index='Year', keys=['Country'],
                measures=['Debt', 'DI', 'Expenditure', 'Savings', 'Wealth', 'Unemployment'],
                freq='YS', description='Household budget indicators by country'),
]:
    register_dataset(_spec)
