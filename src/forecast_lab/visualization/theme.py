#!/usr/bin/env python3
"""
Plot Theme
Notebook preamble: matplotlib style, seaborn palette, figure size and
pandas display options, plus figure saving
"""

from pathlib import Path
from typing import Optional, Union
import logging

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from ..config import AnalysisConfig, get_config
from ..utils.logging import configure_logging

logger = logging.getLogger(__name__)


def set_theme(config: Optional[AnalysisConfig] = None) -> AnalysisConfig:
    """
    Apply the plotting, table display and logging settings

    Args:
        config: Configuration; the active environment's when omitted

    Returns:
        The configuration that was applied
    """
    config = config or get_config()
    plot = config.plot

    plt.style.use(plot.style)
    sns.set_palette(plot.palette)
    plt.rcParams['figure.figsize'] = (plot.figure_width, plot.figure_height)
    plt.rcParams['figure.dpi'] = plot.dpi

    pd.set_option('display.max_rows', config.report.max_rows)
    pd.set_option('display.precision', config.report.float_precision)

    configure_logging(config.logging)

    logger.debug(f"Theme applied: style={plot.style}, palette={plot.palette}, dpi={plot.dpi}")
    return config


def save_figure(fig: plt.Figure, name: str,
                output_dir: Optional[Union[str, Path]] = None,
                dpi: Optional[int] = None) -> Path:
    """Write a figure as PNG under the configured output directory"""
    config = get_config()
    output_dir = Path(output_dir or config.plot.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    path = output_dir / (name if name.endswith('.png') else f'{name}.png')
    fig.savefig(path, dpi=dpi or config.plot.dpi, bbox_inches='tight')
    logger.info(f"Saved figure: {path}")
    return path
