#!/usr/bin/env python3
"""
Unit Tests for Time Series Features
"""

import pytest
import pandas as pd
import numpy as np

from forecast_lab.features import (
    stl_features, acf_features, unitroot_kpss, ndiffs, nsdiffs,
    series_features, feature_table, pca_features
)


class TestSTLFeatures:
    """Tests for STL strength features"""

    def test_strong_trend_and_season(self, monthly_series):
        """Test trending seasonal data scores high on both strengths"""
        features = stl_features(monthly_series)

        assert features['trend_strength'] > 0.9
        assert features['seasonal_strength'] > 0.9
        assert 0 <= features['seasonal_peak'] < 12
        assert 0 <= features['seasonal_trough'] < 12
        assert features['linearity'] > 0

    def test_non_seasonal(self, random_walk):
        """Test annual data gets trend features only"""
        features = stl_features(random_walk)

        assert 'seasonal_strength' not in features
        assert 0 <= features['trend_strength'] <= 1
        assert {'spikiness', 'curvature', 'stl_e_acf1', 'stl_e_acf10'} <= set(features)

    def test_white_noise_has_weak_trend(self):
        """Test noise around a constant"""
        np.random.seed(42)
        noise = pd.Series(np.random.normal(size=120),
                          index=pd.date_range('2000-01-01', periods=120, freq='MS'))

        features = stl_features(noise)

        assert features['trend_strength'] < 0.5
        assert features['seasonal_strength'] < 0.5


class TestACFFeatures:
    """Tests for autocorrelation features"""

    def test_keys(self, monthly_series):
        """Test returned features"""
        features = acf_features(monthly_series, period=12)

        assert set(features) == {
            'acf1', 'acf10', 'diff1_acf1', 'diff1_acf10', 'diff2_acf1', 'diff2_acf10', 'season_acf1'
        }
        assert features['acf1'] > 0.5
        assert features['season_acf1'] > 0.5

    def test_non_seasonal_has_no_season_acf(self, random_walk):
        """Test period 1"""
        assert 'season_acf1' not in acf_features(random_walk)


class TestUnitRoot:
    """Tests for KPSS based features"""

    def test_kpss_output(self, random_walk):
        """Test KPSS statistic and truncated p-value"""
        result = unitroot_kpss(random_walk)

        assert result['kpss_stat'] > 0
        assert 0.01 <= result['kpss_pvalue'] <= 0.1

    def test_random_walk_needs_differencing(self, random_walk):
        """Test trending random walk needs at least one difference"""
        d = ndiffs(random_walk)
        assert 1 <= d <= 2

    def test_nsdiffs(self, monthly_series):
        """Test strongly seasonal data needs a seasonal difference"""
        assert nsdiffs(monthly_series, period=12) == 1

    def test_nsdiffs_non_seasonal(self):
        """Test a straight line needs no seasonal difference"""
        np.random.seed(42)
        series = pd.Series(np.arange(240, dtype=float) + np.random.normal(0, 0.1, 240),
                           index=pd.date_range("2000-01-01", periods=240, freq="MS"))
        assert nsdiffs(series, period=12) == 0


class TestFeatureTable:
    """Tests for feature tables and PCA"""

    def test_series_features(self, quarterly_series):
        """Test combined feature dictionary"""
        features = series_features(quarterly_series, period=4)

        assert features['n_obs'] == 48
        assert 'lambda_guerrero' in features
        assert 'nsdiffs' in features

    def test_feature_table(self, keyed_table):
        """Test one row per keyed series"""
        table = feature_table(keyed_table, 'Visitors')

        assert list(table['Region']) == ['North', 'South', 'West']
        assert {'trend_strength', 'seasonal_strength', 'acf1', 'kpss_stat'} <= set(table.columns)

    def test_pca_features(self, keyed_table):
        """Test principal components of the feature table"""
        table = feature_table(keyed_table, 'Visitors')
        scores, explained = pca_features(table, n_components=2)

        assert list(scores.columns) == ['Region', 'PC1', 'PC2']
        assert len(scores) == 3
        assert explained.sum() <= 1.0 + 1e-9
        assert explained[0] >= explained[1]

    def test_pca_drops_incomplete_rows(self):
        """Test rows with missing features are dropped"""
        np.random.seed(42)
        features = pd.DataFrame({
            'id': list('abcdef'),
            'x': np.random.normal(size=6),
            'y': np.random.normal(size=6),
            'z': np.random.normal(size=6),
        })
        features.loc[2, 'x'] = np.nan

        scores, _ = pca_features(features, n_components=2)

        assert list(scores['id']) == ['a', 'b', 'd', 'e', 'f']
