from .baselines import (
    Forecast, BaseForecaster, MeanForecaster, NaiveForecaster,
    SeasonalNaiveForecaster, DriftForecaster, FORECASTERS, create_forecaster,
    forecast_table, future_index
)
from .regression import TimeSeriesRegression, select_predictors

__all__ = [
    'Forecast', 'BaseForecaster', 'MeanForecaster', 'NaiveForecaster',
    'SeasonalNaiveForecaster', 'DriftForecaster', 'FORECASTERS', 'create_forecaster',
    'forecast_table', 'future_index', 'TimeSeriesRegression', 'select_predictors'
]
