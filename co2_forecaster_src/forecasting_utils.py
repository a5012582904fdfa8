# co2_forecaster_src/forecasting_utils.py

import logging
import warnings
from dataclasses import dataclass, field
from itertools import product
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from tqdm.auto import tqdm

from statsmodels.tools.sm_exceptions import ConvergenceWarning
from statsmodels.tsa.statespace.sarimax import SARIMAX

from .errors import ModelSelectionError

logger = logging.getLogger(__name__)

ScoreFn = Callable[[Any], float]


@dataclass(frozen=True)
class CandidateModel:
    """One fitted ARIMA(p,d,q) candidate from the order grid."""

    p: int
    d: int
    q: int
    params: Dict[str, float]
    aic: float
    bic: float
    hqic: float
    score: float
    residuals: np.ndarray = field(repr=False, compare=False)
    converged: bool = True
    results: Any = field(default=None, repr=False, compare=False)

    @property
    def order(self) -> Tuple[int, int, int]:
        return (self.p, self.d, self.q)

    @property
    def n_params(self) -> int:
        return self.p + self.q

    @property
    def label(self) -> str:
        return f"ARIMA({self.p},{self.d},{self.q})"


@dataclass
class SelectionResult:
    """Ranked candidates of a grid search; ``candidates[0]`` is the winner."""

    candidates: List[CandidateModel]
    criterion: str
    skipped: List[Tuple[int, int, str]] = field(default_factory=list)

    @property
    def best(self) -> CandidateModel:
        return self.candidates[0]

    def to_frame(self) -> pd.DataFrame:
        """Candidate table in ranking order."""
        return pd.DataFrame(
            [
                {
                    "rank": i + 1,
                    "model": c.label,
                    "p": c.p,
                    "d": c.d,
                    "q": c.q,
                    "AIC": c.aic,
                    "BIC": c.bic,
                    "HQIC": c.hqic,
                    "score": c.score,
                }
                for i, c in enumerate(self.candidates)
            ]
        )


@dataclass(frozen=True)
class ForecastResult:
    """Point forecasts and central prediction intervals for years after the sample."""

    horizon: int
    years: np.ndarray
    mean: np.ndarray
    lower: Dict[int, np.ndarray]
    upper: Dict[int, np.ndarray]
    model_label: str = ""

    def to_frame(self) -> pd.DataFrame:
        data = {"forecast": self.mean}
        for lvl in sorted(self.lower):
            data[f"lo_{lvl}"] = self.lower[lvl]
            data[f"hi_{lvl}"] = self.upper[lvl]
        return pd.DataFrame(data, index=pd.Index(self.years, name="year"))


def build_order_grid(p_values: Sequence[int], q_values: Sequence[int]) -> List[Tuple[int, int]]:
    """
    Enumerate (p, q) pairs in a fixed order.

    Examples
    --------
    >>> build_order_grid([0, 1], [0, 1])
    [(0, 0), (0, 1), (1, 0), (1, 1)]
    """
    return list(product(sorted(set(p_values)), sorted(set(q_values))))


def criterion_score(criterion: str = "aic") -> ScoreFn:
    """Score function reading an information criterion off fitted results."""
    name = criterion.lower()

    def _score(results) -> float:
        return float(getattr(results, name))

    _score.__name__ = f"score_{name}"
    return _score


def fit_arima(series: Union[pd.Series, np.ndarray], order: Tuple[int, int, int],
              fit_kwargs: Optional[Dict] = None):
    """
    Fit ARIMA(p,d,q) by maximum likelihood, without a trend term.

    The model is a SARIMAX with no seasonal part and internal differencing
    (``simple_differencing=False``), so fitted values, residuals and forecasts
    are all on the original scale.

    Parameters
    ----------
    series : Union[pd.Series, np.ndarray]
        Annual series. Values only are passed to statsmodels; years are tracked by the caller.
    order : Tuple[int, int, int]
        (p, d, q)
    fit_kwargs : Optional[Dict]
        Extra keyword arguments for ``fit``

    Returns
    -------
    SARIMAXResults
    """
    if fit_kwargs is None:
        fit_kwargs = {"disp": False}
    model = SARIMAX(
        np.asarray(series, dtype=float),
        order=order,
        trend="n",
        simple_differencing=False,
    )
    return model.fit(**fit_kwargs)


def _candidate_from_results(results, p: int, d: int, q: int, score: float) -> CandidateModel:
    names = list(getattr(results.model, "param_names", []))
    values = np.asarray(results.params, dtype=float)
    # First d residuals are burn-in of the diffuse initialisation
    resid = np.asarray(results.resid, dtype=float)[d:]
    return CandidateModel(
        p=p,
        d=d,
        q=q,
        params=dict(zip(names, values.tolist())),
        aic=float(results.aic),
        bic=float(results.bic),
        hqic=float(results.hqic),
        score=float(score),
        residuals=resid,
        converged=bool(results.mle_retvals.get("converged", True)) if results.mle_retvals else True,
        results=results,
    )


def rank_candidates(candidates: Sequence[CandidateModel]) -> List[CandidateModel]:
    """
    Order candidates best first.

    Lowest score wins; ties go to the candidate with fewer ARMA terms (p+q),
    then the lower AR order, then the lower MA order.
    """
    return sorted(candidates, key=lambda c: (c.score, c.p + c.q, c.p, c.q))


def optimize_arima(series: Union[pd.Series, np.ndarray],
                   order_list: Sequence[Tuple[int, int]],
                   d: int,
                   criterion: str = "aic",
                   score_fn: Optional[ScoreFn] = None,
                   fit_fn: Optional[Callable] = None) -> SelectionResult:
    """
    Grid-search ARIMA(p,d,q) over (p, q) at fixed d and rank by a score.

    Parameters
    ----------
    series : Union[pd.Series, np.ndarray]
        Annual series on its original scale (differencing happens inside the model)
    order_list : Sequence[Tuple[int, int]]
        (p, q) pairs to try, e.g. from :func:`build_order_grid`
    d : int
        Differencing order decided by the stationarity tests; never changed here
    criterion : str, default="aic"
        Name recorded on the result and used for the default score function
    score_fn : Optional[ScoreFn]
        Maps fitted results to a float, lower is better. Defaults to the named criterion
    fit_fn : Optional[Callable]
        ``fit_fn(series, (p, d, q))`` returning fitted results; defaults to :func:`fit_arima`

    Returns
    -------
    SelectionResult
        Candidates ranked by :func:`rank_candidates`

    Raises
    ------
    ModelSelectionError
        If no candidate in the grid could be fitted and scored

    Notes
    -----
    - Fits that raise, report non-convergence or produce a non-finite score are
      recorded in ``skipped`` and left out of the ranking
    - Progress is displayed via tqdm progress bar
    """
    score_fn = score_fn or criterion_score(criterion)
    fit_fn = fit_fn or fit_arima

    candidates: List[CandidateModel] = []
    skipped: List[Tuple[int, int, str]] = []

    for p, q in tqdm(order_list, desc=f"Grid search ARIMA(p,{d},q)"):
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", ConvergenceWarning)
                results = fit_fn(series, (p, d, q))
            score = float(score_fn(results))
        except Exception as e:
            logger.debug("ARIMA(%d,%d,%d) failed to fit: %s", p, d, q, e)
            skipped.append((p, q, f"fit error: {e}"))
            continue

        retvals = getattr(results, "mle_retvals", None) or {}
        if not retvals.get("converged", True):
            logger.debug("ARIMA(%d,%d,%d) did not converge; excluded from ranking", p, d, q)
            skipped.append((p, q, "not converged"))
            continue
        if not np.isfinite(score):
            logger.debug("ARIMA(%d,%d,%d) produced non-finite score %s", p, d, q, score)
            skipped.append((p, q, "non-finite score"))
            continue

        candidates.append(_candidate_from_results(results, p, d, q, score))

    if not candidates:
        raise ModelSelectionError(f"Grid search failed: none of {len(order_list)} ARIMA configurations could be fit.")

    ranked = rank_candidates(candidates)
    if skipped:
        logger.info("Skipped %d of %d candidate models", len(skipped), len(order_list))
    logger.info("Selected %s with %s=%.3f", ranked[0].label, criterion.upper(), ranked[0].score)
    return SelectionResult(candidates=ranked, criterion=criterion.lower(), skipped=skipped)


def forecast_arima(results,
                   last_year: int,
                   horizon: int,
                   coverage_levels: Sequence[int] = (80, 95),
                   model_label: str = "") -> ForecastResult:
    """
    h-step-ahead point forecasts and central prediction intervals.

    Intervals come from the model's own Gaussian error assumption via
    ``get_forecast(...).conf_int(alpha=1 - level/100)``.

    Parameters
    ----------
    results : SARIMAXResults
        Fitted model (e.g. ``SelectionResult.best.results``)
    last_year : int
        Last observed year; forecasts are labelled last_year+1 .. last_year+horizon
    horizon : int
        Number of periods ahead
    coverage_levels : Sequence[int], default=(80, 95)
        Interval coverages in percent

    Returns
    -------
    ForecastResult
    """
    if horizon < 1:
        raise ValueError(f"Forecast horizon must be positive, got {horizon}")

    fc = results.get_forecast(steps=horizon)
    mean = np.asarray(fc.predicted_mean, dtype=float)
    lower: Dict[int, np.ndarray] = {}
    upper: Dict[int, np.ndarray] = {}
    for lvl in sorted(set(coverage_levels)):
        ci = np.asarray(fc.conf_int(alpha=1.0 - lvl / 100.0), dtype=float)
        lower[lvl] = ci[:, 0]
        upper[lvl] = ci[:, 1]

    years = np.arange(int(last_year) + 1, int(last_year) + 1 + horizon)
    return ForecastResult(horizon=horizon, years=years, mean=mean, lower=lower, upper=upper,
                          model_label=model_label)
