# co2_forecaster_src/__init__.py

"""
CO2 Forecaster ARIMA - annual emissions time series analysis

This package loads an annual CO2-emissions aggregate, decides the
differencing order from unit-root/stationarity tests, selects an ARIMA model
by information criterion, validates its residuals, forecasts with prediction
intervals and compares against a Holt exponential smoothing baseline.

Key Components
--------------
- config_utils: YAML configuration management and CLI override support
- data_utils: Aggregation and validation of the annual series
- parsing_utils: Command-line argument parsing helpers
- transform_utils: Differencing, its inverse, and the log transform
- stationarity_utils: ADF, Phillips-Perron and KPSS tests; choice of d
- forecasting_utils: ARIMA grid search, ranking and forecasting
- diagnostics_utils: Ljung-Box residual validation
- baseline_utils: Holt (log scale) baseline and comparison
- plotting_utils / report_utils: Rendering of figures and the markdown report
- main: Pipeline orchestration and CLI

Usage
-----
    # Command-line usage
    python -m co2_forecaster_src.main --country USA --out-dir reports

    # Programmatic usage
    from co2_forecaster_src import run_analysis
    result = run_analysis(series)
"""

__version__ = "1.0.0"

from .errors import (
    ForecasterError,
    DataFetchError,
    SeriesValidationError,
    StationarityError,
    ModelSelectionError,
)
from .config_utils import initialize_config, get_config_value
from .data_utils import build_annual_series, load_emissions_series, load_emissions_series_csv
from .transform_utils import difference, undifference, difference_initial_values
from .stationarity_utils import run_stationarity_tests, select_differencing_order
from .forecasting_utils import build_order_grid, optimize_arima, rank_candidates, forecast_arima
from .diagnostics_utils import ljung_box_test, validate_residuals
from .baseline_utils import compare_with_baseline
from .main import main, run_analysis, AnalysisResult

__all__ = [
    # Core functionality
    "main",
    "run_analysis",
    "AnalysisResult",
    "initialize_config",
    "get_config_value",
    "build_annual_series",
    "load_emissions_series",
    "load_emissions_series_csv",
    "difference",
    "undifference",
    "difference_initial_values",
    "run_stationarity_tests",
    "select_differencing_order",
    "build_order_grid",
    "optimize_arima",
    "rank_candidates",
    "forecast_arima",
    "ljung_box_test",
    "validate_residuals",
    "compare_with_baseline",
    # Errors
    "ForecasterError",
    "DataFetchError",
    "SeriesValidationError",
    "StationarityError",
    "ModelSelectionError",
    # Version info
    "__version__",
]
