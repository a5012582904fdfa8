import numpy as np
import pandas as pd
import pytest

from co2_forecaster_src import stationarity_utils as su
from co2_forecaster_src.errors import SeriesValidationError


def _series(values, start=1960):
    return pd.Series(np.asarray(values, dtype=float), index=np.arange(start, start + len(values)), name="y")


def _report(order, stationary):
    p_unit = 0.01 if stationary else 0.60
    p_kpss = 0.10 if stationary else 0.01
    return su.StationarityReport(
        order=order,
        n_obs=50 - order,
        adf=su.TestResult("ADF", -4.0, p_unit, "unit root"),
        pp=su.TestResult("Phillips-Perron", -30.0, p_unit, "unit root"),
        kpss=su.TestResult("KPSS", 0.1, p_kpss, "level stationarity"),
    )


def _stub_tests(monkeypatch, stationary_orders):
    seen = []

    def fake(series, alpha=0.05, order=0):
        seen.append((order, len(series)))
        return _report(order, order in stationary_orders)

    monkeypatch.setattr(su, "run_stationarity_tests", fake)
    return seen


def test_lag_rules():
    assert su.adf_lag(57) == 3
    assert su.adf_lag(100) == 4
    assert su.pp_lag(57) == 3
    assert su.pp_lag(100) == 4
    assert su.kpss_lag(57) == 1
    assert su.kpss_lag(100) == 2


def test_stationary_requires_all_three_tests_to_agree():
    base = _report(0, True)
    assert base.is_stationary

    kpss_rejects = su.StationarityReport(0, 50, base.adf, base.pp,
                                         su.TestResult("KPSS", 0.8, 0.01, "level stationarity"))
    pp_accepts = su.StationarityReport(0, 50, base.adf,
                                       su.TestResult("Phillips-Perron", -5.0, 0.4, "unit root"), base.kpss)
    assert not kpss_rejects.is_stationary
    assert not pp_accepts.is_stationary


def test_select_differencing_order_picks_first_stationary_level(monkeypatch):
    seen = _stub_tests(monkeypatch, stationary_orders={2})
    decision = su.select_differencing_order(_series(np.arange(57)), max_d=2)

    assert decision.d == 2
    assert decision.is_conclusive
    assert [r.order for r in decision.reports] == [0, 1, 2]
    # Each level is tested on the series differenced that many times
    assert seen == [(0, 57), (1, 56), (2, 55)]


def test_select_differencing_order_stops_early(monkeypatch):
    seen = _stub_tests(monkeypatch, stationary_orders={0, 1, 2})
    decision = su.select_differencing_order(_series(np.arange(57)), max_d=2)

    assert decision.d == 0
    assert len(seen) == 1


def test_select_differencing_order_inconclusive(monkeypatch):
    _stub_tests(monkeypatch, stationary_orders=set())
    decision = su.select_differencing_order(_series(np.arange(57)), max_d=2)

    assert decision.d == 2
    assert not decision.is_conclusive
    frame = decision.to_frame()
    assert len(frame) == 9
    assert set(frame["test"]) == {"ADF", "Phillips-Perron", "KPSS"}


def test_select_differencing_order_rejects_out_of_range_max_d():
    with pytest.raises(ValueError):
        su.select_differencing_order(_series(np.arange(57)), max_d=3)


def test_unit_root_tests_on_white_noise_and_random_walk():
    rng = np.random.default_rng(2024)
    noise = _series(rng.normal(0.0, 1.0, size=200))
    walk = _series(np.cumsum(rng.normal(0.0, 1.0, size=200)))

    adf = su.adf_test(noise)
    pp = su.pp_test(noise)
    assert adf.rejects_null
    assert pp.rejects_null
    assert adf.lags == su.adf_lag(200)
    assert pp.lags == su.pp_lag(200)

    kpss_walk = su.kpss_test(walk)
    assert kpss_walk.rejects_null
    assert kpss_walk.lags == su.kpss_lag(200)
    assert 0.0 <= kpss_walk.p_value <= 1.0


def test_run_stationarity_tests_reports_order_and_size():
    rng = np.random.default_rng(5)
    report = su.run_stationarity_tests(_series(rng.normal(size=60)), alpha=0.05, order=1)

    assert report.order == 1
    assert report.n_obs == 60
    assert [t.test_name for t in report.tests] == ["ADF", "Phillips-Perron", "KPSS"]
    assert all(t.alpha == 0.05 for t in report.tests)


def test_short_series_is_rejected():
    with pytest.raises(SeriesValidationError):
        su.adf_test(_series([1.0, 2.0, 3.0]))
