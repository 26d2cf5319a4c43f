from .theme import set_theme, save_figure
from .plots import (
    autoplot, season_plot, subseries_plot, lag_plot, acf_plot,
    decomposition_plot, forecast_plot, residual_plot
)

__all__ = [
    'set_theme', 'save_figure', 'autoplot', 'season_plot', 'subseries_plot',
    'lag_plot', 'acf_plot', 'decomposition_plot', 'forecast_plot', 'residual_plot'
]
