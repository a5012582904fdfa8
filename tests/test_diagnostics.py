import types

import numpy as np
import pytest

from co2_forecaster_src.diagnostics_utils import (
    default_ljungbox_lag, ljung_box_test, residual_summary, validate_residuals
)


def _ar1(n, phi, seed):
    rng = np.random.default_rng(seed)
    e = rng.normal(size=n)
    x = np.zeros(n)
    for t in range(1, n):
        x[t] = phi * x[t - 1] + e[t]
    return x


def test_default_lag_rule():
    assert default_ljungbox_lag(55) == 10
    assert default_ljungbox_lag(30) == 6
    assert default_ljungbox_lag(4) == 1


def test_white_noise_is_mostly_accepted():
    accepted = 0
    for seed in range(20):
        resid = np.random.default_rng(seed).normal(size=120)
        accepted += not ljung_box_test(resid, lags=10).rejects_null
    assert accepted >= 15


def test_autocorrelated_residuals_are_flagged():
    res = ljung_box_test(_ar1(200, 0.8, seed=1), lags=10)

    assert res.rejects_null
    assert res.p_value < 1e-6
    assert res.lags == 10
    assert res.test_name == "Ljung-Box"


def test_result_depends_only_on_residual_values():
    resid = _ar1(80, 0.3, seed=9)
    a = types.SimpleNamespace(label="ARIMA(0,2,3)", residuals=resid)
    b = types.SimpleNamespace(label="ARIMA(5,2,5)", residuals=resid.copy())

    ca = validate_residuals(a, lags=8)
    cb = validate_residuals(b, lags=8)

    assert ca.test.statistic == pytest.approx(cb.test.statistic)
    assert ca.test.p_value == pytest.approx(cb.test.p_value)
    assert ca.accepted == cb.accepted
    assert ca.model_label == "ARIMA(0,2,3)"


def test_rejection_is_reported_not_raised():
    check = validate_residuals(types.SimpleNamespace(label="m", residuals=_ar1(200, 0.9, seed=2)))

    assert not check.accepted
    assert "inadequate" in check.interpretation


def test_invalid_lag_and_short_residuals():
    with pytest.raises(ValueError):
        ljung_box_test(np.array([1.0, 2.0]))
    with pytest.raises(ValueError):
        ljung_box_test(np.arange(10.0), lags=10)


def test_non_finite_residuals_are_dropped():
    resid = np.random.default_rng(4).normal(size=60)
    with_nan = np.concatenate([[np.nan, np.inf], resid])

    assert ljung_box_test(with_nan, lags=5).statistic == pytest.approx(ljung_box_test(resid, lags=5).statistic)


def test_residual_summary():
    stats = residual_summary(np.random.default_rng(0).normal(size=100))

    assert stats["n_residuals"] == 100
    assert 0.0 <= stats["jarque_bera_pvalue"] <= 1.0
    assert residual_summary(np.array([])) == {}
