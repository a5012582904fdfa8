#!/usr/bin/env python3
"""
ARIMA modelling and forecasting of annual CO2 emissions (World Bank, 1960-2016).

Usage
-----
    python forecaster_ARIMA.py --help
    python forecaster_ARIMA.py --country USA --out-dir reports
    python forecaster_ARIMA.py --series-csv data/co2_USA.csv

Modular Structure
-----------------
The code is organized in co2_forecaster_src/ with these modules:
- config_utils.py: Configuration management
- data_utils.py: Series aggregation and validation
- parsing_utils.py: CLI argument parsing
- transform_utils.py: Differencing and log transform
- stationarity_utils.py: ADF / Phillips-Perron / KPSS tests
- forecasting_utils.py: ARIMA grid search and forecasts
- diagnostics_utils.py: Residual diagnostics
- baseline_utils.py: Holt exponential smoothing baseline
- plotting_utils.py, report_utils.py: Figures and markdown report
- main.py: Main entry point
and the World Bank client lives in fetchers/worldbank.py.
"""

from co2_forecaster_src.main import main

if __name__ == "__main__":
    main()
