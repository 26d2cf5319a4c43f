#!/usr/bin/env python3
"""
PyTest Configuration and Fixtures
Seeded synthetic series, keyed tables and dataset files shared by all tests
"""

import pytest
import pandas as pd
import numpy as np
import tempfile
import shutil
from pathlib import Path
from typing import Generator
import logging
import os
import sys

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

os.environ.setdefault('FORECAST_LAB_ENV', 'testing')

from forecast_lab.config import ConfigManager, AnalysisConfig
from forecast_lab.data.tsframe import TimeSeriesTable

# Disable logging during tests
logging.disable(logging.CRITICAL)

# =====================================================
# Session-scoped fixtures (run once per test session)
# =====================================================

@pytest.fixture(scope="session")
def test_config() -> AnalysisConfig:
    """Load test configuration"""
    config_manager = ConfigManager()
    return config_manager.load_config("testing")

@pytest.fixture(scope="session")
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for tests"""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)

@pytest.fixture(scope="session")
def test_data_dir(temp_dir: Path) -> Path:
    """Raw data directory holding small dataset files"""
    data_dir = temp_dir / "data" / "raw"
    data_dir.mkdir(parents=True, exist_ok=True)

    np.random.seed(42)
    quarters = pd.period_range('1992Q1', periods=40, freq='Q')
    seasonal = np.tile([0.0, -20.0, -10.0, 40.0], 10)
    production = pd.DataFrame({
        'Quarter': [f"{p.year} Q{p.quarter}" for p in quarters],
        'Beer': 430 + seasonal + np.random.normal(0, 5, 40),
        'Tobacco': np.linspace(6000, 4000, 40),
        'Bricks': 400 + np.random.normal(0, 10, 40),
        'Cement': 2000 + np.arange(40) * 10.0,
        'Electricity': 40000 + np.arange(40) * 250.0,
        'Gas': 150 + np.tile([0.0, 30.0, 50.0, 10.0], 10),
    })
    production.to_csv(data_dir / "aus_production.csv", index=False)

    months = pd.date_range('2000-01-01', periods=60, freq='MS')
    rows = []
    for state in ['Victoria', 'Queensland']:
        for industry in ['Food', 'Clothing']:
            level = 100 if industry == 'Food' else 40
            for i, month in enumerate(months):
                rows.append({
                    'State': state,
                    'Industry': industry,
                    'Month': month.strftime('%Y %b'),
                    'Turnover': level * (1 + 0.01 * i) * (1 + 0.1 * np.sin(2 * np.pi * i / 12))
                })
    pd.DataFrame(rows).to_parquet(data_dir / "aus_retail.parquet", engine='pyarrow', index=False)

    return data_dir

# =====================================================
# Function-scoped fixtures (run for each test)
# =====================================================

@pytest.fixture
def monthly_series() -> pd.Series:
    """Ten years of trending, seasonal, positive monthly data"""
    np.random.seed(42)

    n = 120
    t = np.arange(n)
    values = 100 + 0.5 * t + 10 * np.sin(2 * np.pi * t / 12) + np.random.normal(0, 1, n)
    index = pd.date_range('2010-01-01', periods=n, freq='MS')
    return pd.Series(values, index=index, name='sales')

@pytest.fixture
def quarterly_series() -> pd.Series:
    """Twelve years of quarterly data with multiplicative seasonality"""
    np.random.seed(42)

    n = 48
    t = np.arange(n)
    pattern = np.tile([1.0, 0.9, 1.05, 1.2], n // 4)
    values = (200 + 3 * t) * pattern * np.exp(np.random.normal(0, 0.01, n))
    index = pd.date_range('2000-01-01', periods=n, freq='QS')
    return pd.Series(values, index=index, name='production')

@pytest.fixture
def random_walk() -> pd.Series:
    """Annual random walk with drift"""
    np.random.seed(42)

    n = 100
    values = 50 + np.cumsum(0.5 + np.random.normal(0, 1, n))
    index = pd.date_range('1900-01-01', periods=n, freq='YS')
    return pd.Series(values, index=index, name='level')

@pytest.fixture
def ar_series() -> pd.Series:
    """Strongly autocorrelated AR(1) series"""
    np.random.seed(42)

    n = 200
    values = np.zeros(n)
    errors = np.random.normal(0, 1, n)
    for i in range(1, n):
        values[i] = 0.9 * values[i - 1] + errors[i]
    return pd.Series(values, index=pd.RangeIndex(n), name='ar1')

@pytest.fixture
def keyed_frame() -> pd.DataFrame:
    """Long-format monthly data for three regions"""
    np.random.seed(42)

    months = pd.date_range('2015-01-01', periods=48, freq='MS')
    frames = []
    for region, level in [('North', 50.0), ('South', 80.0), ('West', 120.0)]:
        t = np.arange(len(months))
        frames.append(pd.DataFrame({
            'Region': region,
            'Month': months,
            'Visitors': level * (1 + 0.02 * t) * (1 + 0.2 * np.sin(2 * np.pi * t / 12))
                        + np.random.normal(0, 1, len(months)),
        }))
    return pd.concat(frames, ignore_index=True)

@pytest.fixture
def keyed_table(keyed_frame: pd.DataFrame) -> TimeSeriesTable:
    """TimeSeriesTable built from keyed_frame"""
    return TimeSeriesTable.from_frame(keyed_frame, index='Month', keys=['Region'])

@pytest.fixture(autouse=True)
def close_figures():
    """Release matplotlib figures after every test"""
    yield
    plt.close('all')

# Test environment setup
def pytest_configure(config):
    """Configure pytest environment"""
    os.environ['FORECAST_LAB_ENV'] = 'testing'

    config.addinivalue_line("markers", "unit: unit tests")
    config.addinivalue_line("markers", "integration: integration tests")
    config.addinivalue_line("markers", "slow: slow running tests")

def pytest_collection_modifyitems(config, items):
    """Modify test items during collection"""
    for item in items:
        # Add markers based on test location
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)
        elif "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
