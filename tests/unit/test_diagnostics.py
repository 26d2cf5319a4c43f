#!/usr/bin/env python3
"""
Unit Tests for Residual Diagnostics
"""

import pytest
import pandas as pd
import numpy as np

from forecast_lab.evaluation.diagnostics import default_lag, ljung_box, box_pierce, residual_summary
from forecast_lab.evaluation.metrics import lag1_autocorrelation
from forecast_lab.models import NaiveForecaster


@pytest.fixture
def white_noise() -> pd.Series:
    """Independent Gaussian draws"""
    np.random.seed(42)
    return pd.Series(np.random.normal(0, 1, 200))


class TestPortmanteau:
    """Tests for Ljung-Box and Box-Pierce"""

    def test_default_lag(self):
        """Test lag rule"""
        assert default_lag(100, 12) == 20
        assert default_lag(100, 1) == 10
        assert default_lag(20, 12) == 4
        assert default_lag(3) == 1

    def test_autocorrelated_rejected(self, ar_series):
        """Test AR(1) data fails the test"""
        result = ljung_box(ar_series, lag=10)

        assert result['lb_pvalue'] < 0.05
        assert result['lag'] == 10

    def test_white_noise_not_rejected(self, white_noise):
        """Test independent noise passes"""
        assert ljung_box(white_noise, lag=10)['lb_pvalue'] > 0.01

    def test_box_pierce_smaller(self, ar_series):
        """Test Box-Pierce statistic never exceeds Ljung-Box"""
        lb = ljung_box(ar_series, lag=10)
        bp = box_pierce(ar_series, lag=10)

        assert bp['bp_stat'] <= lb['lb_stat']

    def test_dof_must_be_below_lag(self, white_noise):
        """Test model degrees of freedom validation"""
        with pytest.raises(ValueError, match="degrees of freedom"):
            ljung_box(white_noise, lag=2, dof=2)

    def test_dof_reduces_pvalue(self, white_noise):
        """Test fewer degrees of freedom for the chi-square"""
        assert ljung_box(white_noise, lag=10, dof=2)['lb_pvalue'] <= ljung_box(white_noise, lag=10)['lb_pvalue']

    def test_nan_dropped(self, white_noise):
        """Test leading NaN residuals are ignored"""
        white_noise.iloc[0] = np.nan
        assert np.isfinite(ljung_box(white_noise)['lb_stat'])


class TestResidualSummary:
    """Tests for residual_summary"""

    def test_keys(self, white_noise):
        """Test summary contents"""
        summary = residual_summary(white_noise, alpha=0.01)

        assert set(summary) == {'n_obs', 'mean', 'sd', 'acf1', 'jb_stat', 'jb_pvalue',
                                'lb_stat', 'lb_pvalue', 'lag', 'white_noise'}
        assert summary['white_noise']
        assert summary['lag'] == 10

    def test_autocorrelated(self, ar_series):
        """Test AR residuals are flagged"""
        summary = residual_summary(ar_series)

        assert not summary['white_noise']
        assert summary['acf1'] > 0.5

    def test_acf1_matches_statsmodels(self, ar_series):
        """Test lag-1 autocorrelation agrees with statsmodels acf"""
        from statsmodels.tsa.stattools import acf

        summary = residual_summary(ar_series)
        assert summary['acf1'] == pytest.approx(acf(ar_series.dropna(), nlags=1)[1])

    def test_constant_residuals_acf1(self):
        """Test constant input has undefined acf1 instead of dividing by zero"""
        assert np.isnan(lag1_autocorrelation(np.full(20, 3.0)))
        assert np.isnan(lag1_autocorrelation([1.0]))

    def test_naive_residuals(self, monthly_series):
        """Test seasonal lag for monthly model residuals"""
        residuals = NaiveForecaster().fit(monthly_series).residuals_
        summary = residual_summary(residuals)

        assert summary['n_obs'] == 119
        assert summary['lag'] == 23
        assert not summary['white_noise']
