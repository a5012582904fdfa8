import numpy as np
import pandas as pd
import pytest

from co2_forecaster_src.forecasting_utils import fit_arima, forecast_arima


@pytest.fixture(scope="module")
def fitted():
    rng = np.random.default_rng(3)
    y = 1000.0 + np.cumsum(np.cumsum(rng.normal(0.0, 1.0, size=57)))
    series = pd.Series(y, index=np.arange(1960, 2017), name="y")
    return series, fit_arima(series, (0, 2, 1))


def test_forecast_years_follow_the_sample(fitted):
    series, results = fitted
    fc = forecast_arima(results, last_year=int(series.index[-1]), horizon=4, model_label="ARIMA(0,2,1)")

    assert list(fc.years) == [2017, 2018, 2019, 2020]
    assert fc.horizon == 4
    assert len(fc.mean) == 4
    frame = fc.to_frame()
    assert frame.index.name == "year"
    assert list(frame.columns) == ["forecast", "lo_80", "hi_80", "lo_95", "hi_95"]


def test_prediction_intervals_are_nested(fitted):
    series, results = fitted
    fc = forecast_arima(results, last_year=2016, horizon=14, coverage_levels=(95, 80))

    assert sorted(fc.lower) == [80, 95]
    assert np.all(fc.lower[95] < fc.lower[80])
    assert np.all(fc.lower[80] < fc.mean)
    assert np.all(fc.mean < fc.upper[80])
    assert np.all(fc.upper[80] < fc.upper[95])
    widths = fc.upper[95] - fc.lower[95]
    assert np.all(np.diff(widths) > 0)


def test_short_horizon_is_prefix_of_long_horizon(fitted):
    _, results = fitted
    short = forecast_arima(results, 2016, 4)
    long = forecast_arima(results, 2016, 14)

    np.testing.assert_allclose(short.mean, long.mean[:4])
    np.testing.assert_allclose(short.lower[95], long.lower[95][:4])


def test_forecast_rejects_non_positive_horizon(fitted):
    _, results = fitted
    with pytest.raises(ValueError):
        forecast_arima(results, 2016, 0)
