#!/usr/bin/env python3
"""
Feature Package

- transforms: Box-Cox family, Guerrero lambda, population/inflation/calendar adjustments
- statistics: STL and ACF features, unit root tests, PCA of feature tables
"""

from .transforms import (
    get_lambda, guerrero, guerrero_by_key, box_cox, inv_box_cox, BoxCoxTransformer,
    per_capita, inflation_adjust, calendar_adjust
)
from .statistics import (
    stl_features, acf_features, unitroot_kpss, ndiffs, nsdiffs,
    series_features, feature_table, pca_features
)

__all__ = [
    'get_lambda', 'guerrero', 'guerrero_by_key', 'box_cox', 'inv_box_cox', 'BoxCoxTransformer',
    'per_capita', 'inflation_adjust', 'calendar_adjust',
    'stl_features', 'acf_features', 'unitroot_kpss', 'ndiffs', 'nsdiffs',
    'series_features', 'feature_table', 'pca_features'
]
