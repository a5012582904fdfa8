"""Checks against the published World Bank data; needs network access."""

import os

import numpy as np
import pytest

pytestmark = [
    pytest.mark.network,
    pytest.mark.skipif(os.environ.get("CO2_FORECASTER_NETWORK_TESTS") != "1",
                       reason="set CO2_FORECASTER_NETWORK_TESTS=1 to query the World Bank API"),
]

INDICATORS = ["EN.ATM.CO2E.GF.KT", "EN.ATM.CO2E.LF.KT", "EN.ATM.CO2E.SF.KT"]


@pytest.fixture(scope="module")
def usa_series():
    from co2_forecaster_src.config_utils import DEFAULT_SETTINGS
    from co2_forecaster_src.data_utils import load_emissions_series

    return load_emissions_series("USA", INDICATORS, 1960, 2016, source=DEFAULT_SETTINGS["data"]["source"])


@pytest.fixture(scope="module")
def usa_analysis(usa_series):
    from co2_forecaster_src.main import run_analysis

    return run_analysis(usa_series)


def test_series_covers_1960_to_2016(usa_series):
    assert len(usa_series) == 57
    assert usa_series.index[0] == 1960 and usa_series.index[-1] == 2016
    assert np.all(usa_series.to_numpy() > 0)


def test_second_differences_are_needed(usa_analysis):
    assert usa_analysis.differencing.d == 2
    assert usa_analysis.differencing.is_conclusive


def test_selected_model_and_residuals(usa_analysis):
    best = usa_analysis.selection.best
    assert best.order == (0, 2, 3)
    assert best.aic == pytest.approx(1455.76, abs=5.0)
    assert usa_analysis.residual_check.accepted


def test_forecasts_and_baseline(usa_analysis):
    assert list(usa_analysis.forecasts[4].years) == [2017, 2018, 2019, 2020]
    assert list(usa_analysis.forecasts[14].years)[-1] == 2030
    assert usa_analysis.baseline.more_informative in {"Holt (log)", "ARIMA(0,2,3)"}
