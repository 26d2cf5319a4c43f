from .tsframe import TimeSeriesTable, parse_time_index, seasonal_period
from .datasets import DatasetSpec, DATASETS, load_dataset, list_datasets, register_dataset

__all__ = [
    'TimeSeriesTable', 'parse_time_index', 'seasonal_period',
    'DatasetSpec', 'DATASETS', 'load_dataset', 'list_datasets', 'register_dataset'
]
