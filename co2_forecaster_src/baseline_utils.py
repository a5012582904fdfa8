# co2_forecaster_src/baseline_utils.py

"""
Holt (trend-only exponential smoothing) baseline on the log scale.

The baseline is fitted to log(series) with additive error and additive trend
and no seasonal component. Forecasts and interval bounds are mapped back with
exp(). The comparison with the selected ARIMA model is informal: both models'
residuals go through the same Ljung-Box test and the lower p-value is read as
"more informative".
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd
from statsmodels.tsa.exponential_smoothing.ets import ETSModel

from .diagnostics_utils import ljung_box_test
from .errors import SeriesValidationError
from .forecasting_utils import ForecastResult
from .stationarity_utils import TestResult
from .transform_utils import log_transform

logger = logging.getLogger(__name__)

HOLT_LABEL = "Holt (log)"


@dataclass(frozen=True)
class BaselineComparison:
    """Ljung-Box results for both models plus the baseline forecasts."""

    arima_label: str
    arima_ljungbox: TestResult
    holt_ljungbox: TestResult
    holt_forecasts: Dict[int, ForecastResult]
    holt_params: Dict[str, float]

    @property
    def more_informative(self) -> str:
        """Label of the model with the lower Ljung-Box p-value (heuristic only)."""
        if self.holt_ljungbox.p_value < self.arima_ljungbox.p_value:
            return HOLT_LABEL
        return self.arima_label

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {"model": self.arima_label, "Q": self.arima_ljungbox.statistic,
                 "lag": self.arima_ljungbox.lags, "p_value": self.arima_ljungbox.p_value},
                {"model": HOLT_LABEL, "Q": self.holt_ljungbox.statistic,
                 "lag": self.holt_ljungbox.lags, "p_value": self.holt_ljungbox.p_value},
            ]
        )


def fit_holt_log(series: pd.Series):
    """
    Fit Holt's linear trend model to the natural log of a positive series.

    The model is fitted on a positionally indexed series so that
    out-of-sample predictions can be indexed past the last observation.

    Returns
    -------
    ETSResults
        Fitted results on the log scale

    Raises
    ------
    SeriesValidationError
        If any value is zero or negative
    """
    if (np.asarray(series, dtype=float) <= 0).any():
        raise SeriesValidationError("Holt baseline on the log scale requires a strictly positive series")
    log_y = log_transform(series).astype(float).reset_index(drop=True)
    model = ETSModel(log_y, error="add", trend="add", seasonal=None)
    return model.fit(disp=False)


def forecast_holt(results,
                  last_year: int,
                  horizon: int,
                  coverage_levels: Sequence[int] = (80, 95)) -> ForecastResult:
    """
    Forecast the Holt baseline and return it on the original scale.

    Mean and bounds are exponentiated; exp is monotone, so interval nesting on
    the log scale carries over.
    """
    if horizon < 1:
        raise ValueError(f"Forecast horizon must be positive, got {horizon}")

    n = int(np.asarray(results.model.endog).shape[0])
    pred = results.get_prediction(start=n, end=n + horizon - 1)
    lower: Dict[int, np.ndarray] = {}
    upper: Dict[int, np.ndarray] = {}
    mean: Optional[np.ndarray] = None
    for lvl in sorted(set(coverage_levels)):
        frame = pred.summary_frame(alpha=1.0 - lvl / 100.0)
        if mean is None:
            mean = np.exp(frame["mean"].to_numpy(dtype=float))
        lower[lvl] = np.exp(frame["pi_lower"].to_numpy(dtype=float))
        upper[lvl] = np.exp(frame["pi_upper"].to_numpy(dtype=float))
    if mean is None:
        mean = np.exp(np.asarray(pred.predicted_mean, dtype=float))

    years = np.arange(int(last_year) + 1, int(last_year) + 1 + horizon)
    return ForecastResult(horizon=horizon, years=years, mean=mean, lower=lower, upper=upper,
                          model_label=HOLT_LABEL)


def compare_with_baseline(arima_candidate,
                          series: pd.Series,
                          horizons: Sequence[int] = (4, 14),
                          coverage_levels: Sequence[int] = (80, 95),
                          lags: Optional[int] = None,
                          alpha: float = 0.05) -> BaselineComparison:
    """
    Fit the Holt baseline, forecast every horizon and compare Ljung-Box results.

    Parameters
    ----------
    arima_candidate : CandidateModel
        Selected ARIMA model
    series : pd.Series
        Raw annual series (strictly positive)
    horizons : Sequence[int]
        Forecast horizons for the baseline
    coverage_levels : Sequence[int]
        Interval coverages in percent
    lags : Optional[int]
        Ljung-Box lag; the default rule is applied to each residual series
    alpha : float
        Significance level for the Ljung-Box test

    Returns
    -------
    BaselineComparison
    """
    holt = fit_holt_log(series)
    last_year = int(series.index[-1])
    forecasts = {h: forecast_holt(holt, last_year, h, coverage_levels) for h in horizons}

    holt_lb = ljung_box_test(np.asarray(holt.resid, dtype=float), lags=lags, alpha=alpha)
    arima_lb = ljung_box_test(arima_candidate.residuals, lags=lags, alpha=alpha)
    values = np.asarray(holt.params, dtype=float).tolist()
    names = getattr(holt.model, "param_names", None) or [f"param_{i}" for i in range(len(values))]
    params = dict(zip(names, values))

    comparison = BaselineComparison(
        arima_label=arima_candidate.label,
        arima_ljungbox=arima_lb,
        holt_ljungbox=holt_lb,
        holt_forecasts=forecasts,
        holt_params=params,
    )
    logger.info("Ljung-Box p-values: %s=%.4f, %s=%.4f -> more informative: %s",
                arima_candidate.label, arima_lb.p_value, HOLT_LABEL, holt_lb.p_value,
                comparison.more_informative)
    return comparison
