# co2_forecaster_src/stationarity_utils.py

"""
Unit-root and stationarity testing used to choose the differencing order d.

Three tests are run on each differencing level:

- Augmented Dickey-Fuller (statsmodels), null: unit root
- Phillips-Perron (arch), null: unit root
- KPSS (statsmodels), null: level stationarity

A level counts as stationary only when both unit-root tests reject and KPSS
does not. Lag choices follow the usual short-bandwidth rules so results are
reproducible for a given series length.
"""

import logging
import math
import warnings
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import pandas as pd
from arch.unitroot import PhillipsPerron
from statsmodels.tools.sm_exceptions import InterpolationWarning
from statsmodels.tsa.stattools import adfuller, kpss

from .errors import SeriesValidationError
from .transform_utils import MAX_DIFFERENCE_ORDER, difference

logger = logging.getLogger(__name__)

MIN_TEST_OBSERVATIONS = 10


@dataclass(frozen=True)
class TestResult:
    """Statistic and p-value of one hypothesis test."""

    test_name: str
    statistic: float
    p_value: float
    null_hypothesis: str
    alpha: float = 0.05
    lags: Optional[int] = None

    # keep pytest from collecting this class
    __test__ = False

    @property
    def rejects_null(self) -> bool:
        return self.p_value < self.alpha

    def to_dict(self) -> dict:
        return {
            "test": self.test_name,
            "statistic": self.statistic,
            "p_value": self.p_value,
            "null": self.null_hypothesis,
            "lags": self.lags,
            "rejects_null": self.rejects_null,
        }


@dataclass(frozen=True)
class StationarityReport:
    """ADF, PP and KPSS results for one differencing level."""

    order: int
    n_obs: int
    adf: TestResult
    pp: TestResult
    kpss: TestResult

    @property
    def is_stationary(self) -> bool:
        return self.adf.rejects_null and self.pp.rejects_null and not self.kpss.rejects_null

    @property
    def tests(self) -> List[TestResult]:
        return [self.adf, self.pp, self.kpss]


@dataclass(frozen=True)
class DifferencingDecision:
    """Chosen d with the evidence for every level that was tested."""

    d: int
    reports: List[StationarityReport] = field(default_factory=list)
    is_conclusive: bool = True

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for rep in self.reports:
            for res in rep.tests:
                row = {"d": rep.order}
                row.update(res.to_dict())
                rows.append(row)
        return pd.DataFrame(rows)


def adf_lag(n: int) -> int:
    """Fixed ADF lag order trunc((n - 1)^(1/3))."""
    return int(math.trunc((n - 1) ** (1.0 / 3.0)))


def pp_lag(n: int) -> int:
    """Short Newey-West bandwidth trunc(4 (n/100)^(1/4)) for Phillips-Perron."""
    return int(math.trunc(4.0 * (n / 100.0) ** 0.25))


def kpss_lag(n: int) -> int:
    """Short KPSS bandwidth trunc(3 sqrt(n) / 13)."""
    return int(math.trunc(3.0 * math.sqrt(n) / 13.0))


def _clean(series: pd.Series) -> np.ndarray:
    values = pd.Series(series).dropna().to_numpy(dtype=float)
    if len(values) < MIN_TEST_OBSERVATIONS:
        raise SeriesValidationError(
            f"Stationarity tests need at least {MIN_TEST_OBSERVATIONS} observations, got {len(values)}"
        )
    return values


def adf_test(series: pd.Series, alpha: float = 0.05) -> TestResult:
    """
    Augmented Dickey-Fuller test with constant and linear trend.

    Lower p-values (< alpha) reject the unit-root null, i.e. suggest stationarity.
    """
    x = _clean(series)
    lag = adf_lag(len(x))
    res = adfuller(x, maxlag=lag, regression="ct", autolag=None)
    return TestResult("ADF", float(res[0]), float(res[1]), "unit root", alpha, int(res[2]))


def pp_test(series: pd.Series, alpha: float = 0.05) -> TestResult:
    """Phillips-Perron Z(alpha) test with constant and linear trend."""
    x = _clean(series)
    pp = PhillipsPerron(x, lags=pp_lag(len(x)), trend="ct", test_type="rho")
    return TestResult("Phillips-Perron", float(pp.stat), float(pp.pvalue), "unit root", alpha, int(pp.lags))


def kpss_test(series: pd.Series, alpha: float = 0.05) -> TestResult:
    """
    KPSS test for level stationarity.

    statsmodels interpolates p-values from a table bounded at 0.01 and 0.10;
    values outside that range are clipped and a warning is logged.
    """
    x = _clean(series)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", InterpolationWarning)
        stat, p_value, lags, _ = kpss(x, regression="c", nlags=kpss_lag(len(x)))
    for w in caught:
        if issubclass(w.category, InterpolationWarning):
            logger.debug("KPSS p-value clipped to table bounds: %s", w.message)
    return TestResult("KPSS", float(stat), float(p_value), "level stationarity", alpha, int(lags))


def run_stationarity_tests(series: pd.Series, alpha: float = 0.05, order: int = 0) -> StationarityReport:
    """
    Run the ADF, Phillips-Perron and KPSS tests on one series.

    Parameters
    ----------
    series : pd.Series
        Series to test (already differenced ``order`` times)
    alpha : float, default=0.05
        Decision threshold shared by all three tests
    order : int, default=0
        Differencing order the series corresponds to, recorded in the report

    Returns
    -------
    StationarityReport
    """
    report = StationarityReport(
        order=order,
        n_obs=int(pd.Series(series).dropna().shape[0]),
        adf=adf_test(series, alpha),
        pp=pp_test(series, alpha),
        kpss=kpss_test(series, alpha),
    )
    logger.info(
        "d=%d: ADF p=%.4f, PP p=%.4f, KPSS p=%.4f -> %s",
        order, report.adf.p_value, report.pp.p_value, report.kpss.p_value,
        "stationary" if report.is_stationary else "non-stationary",
    )
    return report


def select_differencing_order(series: pd.Series,
                              max_d: int = MAX_DIFFERENCE_ORDER,
                              alpha: float = 0.05) -> DifferencingDecision:
    """
    Difference until ADF, PP and KPSS all agree the series is stationary.

    Levels 0..max_d are tested in order and the first stationary one wins.
    If none is, d = max_d is returned with ``is_conclusive=False``; deciding
    whether to proceed is left to the caller.

    Parameters
    ----------
    series : pd.Series
        Raw annual series
    max_d : int, default=2
        Highest differencing order to try
    alpha : float, default=0.05
        Significance level for all tests

    Returns
    -------
    DifferencingDecision
    """
    if not 0 <= max_d <= MAX_DIFFERENCE_ORDER:
        raise ValueError(f"max_d must be between 0 and {MAX_DIFFERENCE_ORDER}, got {max_d}")

    reports: List[StationarityReport] = []
    for k in range(max_d + 1):
        report = run_stationarity_tests(difference(series, k), alpha=alpha, order=k)
        reports.append(report)
        if report.is_stationary:
            logger.info("Selected differencing order d=%d", k)
            return DifferencingDecision(d=k, reports=reports, is_conclusive=True)

    logger.warning(
        "Stationarity tests still disagree after %d difference(s); d=%d is not supported by all tests.",
        max_d, max_d,
    )
    return DifferencingDecision(d=max_d, reports=reports, is_conclusive=False)
