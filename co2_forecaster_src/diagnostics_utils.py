# co2_forecaster_src/diagnostics_utils.py

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Optional, Union
import logging

from statsmodels.stats.diagnostic import acorr_ljungbox
from statsmodels.stats.stattools import jarque_bera

from .stationarity_utils import TestResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResidualCheck:
    """Outcome of the white-noise check on a model's residuals."""

    model_label: str
    test: TestResult
    accepted: bool

    @property
    def interpretation(self) -> str:
        if self.accepted:
            return "No significant serial correlation in residuals"
        return "Serial correlation detected in residuals; model flagged as inadequate"


def default_ljungbox_lag(n: int) -> int:
    """Lag used when none is configured: min(10, n // 5), at least 1."""
    return max(1, min(10, n // 5))


def _clean_residuals(residuals: Union[pd.Series, np.ndarray]) -> np.ndarray:
    resid = np.asarray(residuals, dtype=float)
    return resid[np.isfinite(resid)]


def ljung_box_test(residuals: Union[pd.Series, np.ndarray],
                   lags: Optional[int] = None,
                   alpha: float = 0.05) -> TestResult:
    """
    Ljung-Box portmanteau test against the white-noise null.

    The result depends on the residual values alone; nothing about the model
    that produced them is used.

    Parameters
    ----------
    residuals : Union[pd.Series, np.ndarray]
        Residual vector; non-finite values are dropped
    lags : Optional[int]
        Number of autocorrelations pooled into the statistic; defaults to
        :func:`default_ljungbox_lag`
    alpha : float, default=0.05
        Significance level

    Returns
    -------
    TestResult
        Statistic and p-value at the requested lag

    Raises
    ------
    ValueError
        If fewer than three residuals remain, or lags is not below their count
    """
    resid = _clean_residuals(residuals)
    n = len(resid)
    if n < 3:
        raise ValueError(f"Ljung-Box test needs at least 3 residuals, got {n}")
    lag = int(lags) if lags is not None else default_ljungbox_lag(n)
    if not 1 <= lag < n:
        raise ValueError(f"Ljung-Box lag must satisfy 1 <= lag < {n}, got {lag}")

    df_lb = acorr_ljungbox(resid, lags=[lag], return_df=True)
    stat = float(df_lb["lb_stat"].iloc[-1])
    pval = float(df_lb["lb_pvalue"].iloc[-1])
    return TestResult("Ljung-Box", stat, pval, "no autocorrelation", alpha, lag)


def validate_residuals(candidate, lags: Optional[int] = None, alpha: float = 0.05) -> ResidualCheck:
    """
    Accept the model when its residuals look like white noise (p >= alpha).

    A rejection is reported, never acted on: no alternative model is fitted.
    """
    res = ljung_box_test(candidate.residuals, lags=lags, alpha=alpha)
    accepted = not res.rejects_null
    if accepted:
        logger.info("%s residuals: Ljung-Box Q=%.3f (lag %d), p=%.4f -> accepted",
                    candidate.label, res.statistic, res.lags, res.p_value)
    else:
        logger.warning("%s residuals: Ljung-Box Q=%.3f (lag %d), p=%.4f -> model inadequate",
                       candidate.label, res.statistic, res.lags, res.p_value)
    return ResidualCheck(model_label=candidate.label, test=res, accepted=accepted)


def residual_summary(residuals: Union[pd.Series, np.ndarray]) -> dict:
    """Descriptive statistics and a Jarque-Bera normality check for the report."""
    resid = _clean_residuals(residuals)
    if len(resid) == 0:
        logger.warning("Cannot summarize an empty residual series")
        return {}

    jb_stat, jb_pvalue, skew, kurtosis = jarque_bera(resid)
    return {
        "n_residuals": int(len(resid)),
        "residual_mean": float(np.mean(resid)),
        "residual_std": float(np.std(resid, ddof=1)) if len(resid) > 1 else float("nan"),
        "skew": float(skew),
        "kurtosis": float(kurtosis),
        "jarque_bera_stat": float(jb_stat),
        "jarque_bera_pvalue": float(jb_pvalue),
    }
