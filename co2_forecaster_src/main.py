# co2_forecaster_src/main.py

"""
ARIMA modelling of annual CO2 emissions with a Holt baseline.

This is the main entry point of the emissions forecasting package.

Purpose
-------
- Load the annual aggregate of three fuel sub-components for one country
  (World Bank indicators API, or a local CSV)
- Run ADF, Phillips-Perron and KPSS tests on the level, first and second
  differences and fix the differencing order d
- Grid-search ARIMA(p,d,q) over (p, q) at that d and rank by AIC
- Check the winner's residuals with Ljung-Box
- Forecast 4 and 14 years ahead with 80%/95% intervals
- Compare with Holt's linear trend on the log series
- Render a markdown report with figures from the structured results

Configuration-Driven Workflow
-----------------------------
Defaults live in config/settings.yaml. CLI arguments override
configuration values where applicable.
"""

import argparse
import logging
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd

from .baseline_utils import BaselineComparison, compare_with_baseline
from .config_utils import get_config_value, initialize_config
from .data_utils import load_emissions_series, load_emissions_series_csv
from .diagnostics_utils import ResidualCheck, residual_summary, validate_residuals
from .errors import ForecasterError, StationarityError
from .file_utils import resolve_path
from .forecasting_utils import (
    ForecastResult, SelectionResult, build_order_grid, forecast_arima, optimize_arima
)
from .parsing_utils import (
    parse_horizons_arg, parse_indicator_list, parse_intervals_arg, parse_range_arg,
    validate_criterion, validate_log_level
)
from .report_utils import render_report
from .stationarity_utils import DifferencingDecision, select_differencing_order
from .transform_utils import difference_levels

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Structured output of one pipeline run, consumed by the report layer."""

    series: pd.Series
    difference_levels: Dict[int, pd.Series]
    differencing: DifferencingDecision
    selection: SelectionResult
    model_summary: str
    residual_check: ResidualCheck
    residual_stats: dict
    forecasts: Dict[int, ForecastResult]
    baseline: Optional[BaselineComparison] = None
    country: str = ""
    indicators: Optional[List[str]] = None


def run_analysis(series: pd.Series,
                 max_d: int = 2,
                 alpha: float = 0.05,
                 p_values: Sequence[int] = range(6),
                 q_values: Sequence[int] = range(6),
                 criterion: str = "aic",
                 horizons: Sequence[int] = (4, 14),
                 intervals: Sequence[int] = (80, 95),
                 ljungbox_lags: Optional[int] = None,
                 ljungbox_alpha: float = 0.05,
                 allow_inconclusive: bool = False,
                 with_baseline: bool = True,
                 fit_fn: Optional[Callable] = None) -> AnalysisResult:
    """
    Run the statistical pipeline on an annual series and return structured results.

    No files are written and no global state is touched.

    Parameters
    ----------
    series : pd.Series
        Validated annual series indexed by year
    max_d : int, default=2
        Highest differencing order tried by the stationarity tester
    alpha : float, default=0.05
        Significance level of the stationarity tests
    p_values, q_values : Sequence[int]
        AR and MA orders for the grid search
    criterion : str, default="aic"
        Information criterion used for ranking
    horizons : Sequence[int], default=(4, 14)
        Forecast horizons
    intervals : Sequence[int], default=(80, 95)
        Prediction interval coverages in percent
    ljungbox_lags : Optional[int]
        Ljung-Box lag; default rule when None
    ljungbox_alpha : float, default=0.05
        Significance level of the residual check
    allow_inconclusive : bool, default=False
        Continue with d = max_d when stationarity tests still disagree there
    with_baseline : bool, default=True
        Fit and compare the Holt baseline
    fit_fn : Optional[Callable]
        Replacement model fitter passed to the grid search

    Returns
    -------
    AnalysisResult

    Raises
    ------
    StationarityError
        If d is inconclusive and ``allow_inconclusive`` is False
    ModelSelectionError
        If no candidate model could be fitted
    """
    logger.info("Analysing '%s': %d observations (%s-%s)", series.name, len(series),
                series.index[0], series.index[-1])

    decision = select_differencing_order(series, max_d=max_d, alpha=alpha)
    if not decision.is_conclusive:
        if not allow_inconclusive:
            raise StationarityError(
                f"Stationarity tests disagree at the maximum differencing order d={decision.d}. "
                "Re-run with --allow-inconclusive-d (or stationarity.allow_inconclusive: true) to proceed."
            )
        logger.warning("Proceeding with inconclusive differencing order d=%d by operator request.", decision.d)
    d = decision.d

    order_list = build_order_grid(p_values, q_values)
    selection = optimize_arima(series, order_list, d, criterion=criterion, fit_fn=fit_fn)
    logger.info("Top 5 models by %s:\n%s", criterion.upper(), selection.to_frame().head().to_string(index=False))

    best = selection.best
    residual_check = validate_residuals(best, lags=ljungbox_lags, alpha=ljungbox_alpha)

    last_year = int(series.index[-1])
    forecasts = {
        h: forecast_arima(best.results, last_year, h, intervals, model_label=best.label)
        for h in sorted(set(horizons))
    }

    baseline = None
    if with_baseline:
        baseline = compare_with_baseline(best, series, horizons=sorted(set(horizons)),
                                         coverage_levels=intervals, lags=ljungbox_lags, alpha=ljungbox_alpha)

    try:
        model_summary = best.results.summary().as_text()
    except AttributeError:
        model_summary = f"{best.label}: {best.params}"

    return AnalysisResult(
        series=series,
        difference_levels=difference_levels(series, max_d),
        differencing=decision,
        selection=selection,
        model_summary=model_summary,
        residual_check=residual_check,
        residual_stats=residual_summary(best.residuals),
        forecasts=forecasts,
        baseline=baseline,
    )


def run_emissions_workflow(args: argparse.Namespace, base_dir: Path) -> AnalysisResult:
    """
    Load the series, run the analysis and render the report.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed CLI arguments (see :func:`setup_cli_parser`)
    base_dir : Path
        Directory that relative paths are resolved against

    Returns
    -------
    AnalysisResult
    """
    country = get_config_value("data.country", "USA", args, "country")
    indicators = parse_indicator_list(get_config_value("data.indicators", [], args, "indicators"))
    start_year = int(get_config_value("data.start_year", 1960, args, "start_year"))
    end_year = int(get_config_value("data.end_year", 2016, args, "end_year"))
    name = get_config_value("data.series_name", "co2_kt")

    if getattr(args, "series_csv", None):
        series = load_emissions_series_csv(resolve_path(args.series_csv, base_dir), name=name)
        country = getattr(args, "country", None) or Path(args.series_csv).stem
        indicators = []
    else:
        series = load_emissions_series(country, indicators, start_year, end_year, name=name,
                                       source=get_config_value("data.source", None))

    result = run_analysis(
        series,
        max_d=int(get_config_value("stationarity.max_d", 2, args, "max_d")),
        alpha=float(get_config_value("stationarity.alpha", 0.05)),
        p_values=parse_range_arg(getattr(args, "p_range", None), config_key="model.search_space.p_range"),
        q_values=parse_range_arg(getattr(args, "q_range", None), config_key="model.search_space.q_range"),
        criterion=validate_criterion(get_config_value("model.criterion", "aic", args, "criterion")),
        horizons=parse_horizons_arg(get_config_value("forecast.horizons", "4,14", args, "horizons")),
        intervals=parse_intervals_arg(get_config_value("forecast.intervals", "80,95", args, "intervals")),
        ljungbox_lags=get_config_value("diagnostics.ljungbox_lags", None),
        ljungbox_alpha=float(get_config_value("diagnostics.alpha", 0.05)),
        allow_inconclusive=bool(getattr(args, "allow_inconclusive_d", False)
                                or get_config_value("stationarity.allow_inconclusive", False)),
        with_baseline=not getattr(args, "no_baseline", False),
    )
    result.country = country
    result.indicators = indicators

    out_dir = resolve_path(get_config_value("output.out_dir", "reports", args, "out_dir"), base_dir)
    render_report(result, out_dir, dpi=int(get_config_value("output.figure_dpi", 150)))
    return result


def setup_cli_parser() -> argparse.ArgumentParser:
    """
    Set up the command-line argument parser.

    Every option defaults to None so that configuration values apply unless
    a flag is given explicitly.

    Returns
    -------
    argparse.ArgumentParser
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        description="ARIMA modelling and forecasting of annual CO2 emissions with a Holt baseline."
    )

    # Data and output arguments
    parser.add_argument("--config", type=str, default=None,
                        help="Path to the YAML settings file (default: config/settings.yaml).")
    parser.add_argument("--country", type=str, default=None,
                        help="World Bank country code, e.g. USA.")
    parser.add_argument("--indicators", type=str, default=None,
                        help="Comma-separated indicator codes summed into the aggregate series.")
    parser.add_argument("--start-year", dest="start_year", type=int, default=None,
                        help="First year of the series.")
    parser.add_argument("--end-year", dest="end_year", type=int, default=None,
                        help="Last year of the series.")
    parser.add_argument("--series-csv", type=str, default=None,
                        help="Read the aggregate from a CSV with 'year' and 'value' columns instead of fetching.")
    parser.add_argument("--out-dir", dest="out_dir", type=str, default=None,
                        help="Directory for report.md and figures.")
    parser.add_argument("--log-level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging verbosity level.")

    # Stationarity controls
    parser.add_argument("--max-d", dest="max_d", type=int, default=None,
                        help="Maximum differencing order to test (0-2).")
    parser.add_argument("--allow-inconclusive-d", dest="allow_inconclusive_d", action="store_true",
                        help="Proceed with d = max-d even when the stationarity tests still disagree.")

    # Grid search controls
    parser.add_argument("--p-range", type=str, default=None,
                        help="Range or list for AR order p (e.g., '0-5' or '0,1,2').")
    parser.add_argument("--q-range", type=str, default=None,
                        help="Range or list for MA order q.")
    parser.add_argument("--criterion", type=str, default=None, choices=["aic", "bic", "hqic"],
                        help="Information criterion used to rank candidate models.")

    # Forecast controls
    parser.add_argument("--horizons", type=str, default=None,
                        help="Comma-separated forecast horizons (e.g., '4,14').")
    parser.add_argument("--intervals", type=str, default=None,
                        help="Comma-separated predictive interval coverages (e.g., '80,95').")
    parser.add_argument("--no-baseline", dest="no_baseline", action="store_true",
                        help="Skip the Holt exponential smoothing comparison.")

    return parser


def setup_logging(log_level: str) -> None:
    """
    Configure logging with specified level and warning filters.

    Parameters
    ----------
    log_level : str
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = validate_log_level(log_level)
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Configure warnings based on log level
    if level == "DEBUG":
        warnings.resetwarnings()
        warnings.filterwarnings("default")
    else:
        from statsmodels.tools.sm_exceptions import ConvergenceWarning
        warnings.filterwarnings("ignore", category=ConvergenceWarning)
        warnings.filterwarnings("ignore", category=FutureWarning)
        warnings.filterwarnings("ignore", category=UserWarning, module="statsmodels")


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point for the emissions forecasting application.

    Workflow errors (fetch failure, invalid series, inconclusive differencing,
    empty grid) end the run with a non-zero exit status.
    """
    parser = setup_cli_parser()
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.log_level)

    # Initialize configuration system
    initialize_config(args.config)

    base_dir = Path.cwd()
    try:
        result = run_emissions_workflow(args, base_dir)
    except ForecasterError as e:
        logger.error("%s: %s", type(e).__name__, e)
        raise SystemExit(f"Error: {e}") from e

    logger.info("Selected %s (d=%d); residuals %s",
                result.selection.best.label, result.differencing.d,
                "accepted" if result.residual_check.accepted else "flagged")


if __name__ == "__main__":
    main()
