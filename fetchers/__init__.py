"""
Data fetchers for the CO2 forecaster.

Main Components:
- fetch: rows (country, indicator, year, value) for several World Bank indicators
- fetch_indicator: the same for a single indicator code
- CO2_FUEL_INDICATORS: the fuel sub-components summed into the aggregate series
"""

from .worldbank import (
    CO2_FUEL_INDICATORS,
    IndicatorSpec,
    fetch,
    fetch_indicator,
)

__all__ = [
    'CO2_FUEL_INDICATORS',
    'IndicatorSpec',
    'fetch',
    'fetch_indicator',
]
