# co2_forecaster_src/data_utils.py

import numpy as np
import pandas as pd
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging

from .errors import DataFetchError, SeriesValidationError

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, List[str], int, int], List[Dict[str, Any]]]


def validate_annual_series(series: pd.Series) -> pd.Series:
    """
    Check that a series satisfies the annual TimeSeries contract.

    The contract is: non-empty, integer year index that is strictly increasing
    with no gaps, and finite float values.

    Parameters
    ----------
    series : pd.Series
        Candidate annual series indexed by year.

    Returns
    -------
    pd.Series
        A float64 copy with an int64 year index named 'year'.

    Raises
    ------
    SeriesValidationError
        If any part of the contract is violated.
    """
    if series is None or len(series) == 0:
        raise SeriesValidationError("Annual series is empty")

    try:
        years = np.asarray(series.index, dtype=np.int64)
    except (TypeError, ValueError) as e:
        raise SeriesValidationError(f"Series index must hold integer years: {e}") from e
    if not np.array_equal(years, np.asarray(series.index, dtype=float)):
        raise SeriesValidationError("Series index must hold whole years")

    steps = np.diff(years)
    if (steps <= 0).any():
        raise SeriesValidationError("Years must be strictly increasing")
    if (steps != 1).any():
        gap_at = int(years[1:][steps != 1][0])
        raise SeriesValidationError(f"Gap in annual series before year {gap_at}")

    values = pd.to_numeric(series, errors="coerce").to_numpy(dtype=float)
    if not np.isfinite(values).all():
        raise SeriesValidationError("Series contains missing or non-finite values")

    out = pd.Series(values, index=pd.Index(years, name="year"), name=series.name)
    return out


def build_annual_series(rows: Iterable[Dict[str, Any]],
                        indicators: List[str],
                        start_year: int,
                        end_year: int,
                        name: str = "co2_kt") -> pd.Series:
    """
    Sum indicator sub-components into one annual aggregate series.

    Parameters
    ----------
    rows : Iterable[Dict[str, Any]]
        Rows with keys 'indicator', 'year' and 'value' as returned by the fetcher.
    indicators : List[str]
        Indicator codes that make up the aggregate; every one must be present
        for every year in the range.
    start_year, end_year : int
        Inclusive year range expected in the rows.
    name : str, default="co2_kt"
        Name of the resulting series.

    Returns
    -------
    pd.Series
        Aggregate indexed by year, validated by validate_annual_series.

    Raises
    ------
    DataFetchError
        If an indicator is missing entirely or has missing years/values.
    """
    df = pd.DataFrame(list(rows), columns=["country", "indicator", "year", "value"])
    if df.empty:
        raise DataFetchError("No rows to aggregate")

    df = df[df["indicator"].isin(indicators)]
    df = df[(df["year"] >= start_year) & (df["year"] <= end_year)].copy()
    df["value"] = pd.to_numeric(df["value"], errors="coerce")

    if df.duplicated(subset=["indicator", "year"]).any():
        logger.warning("Duplicate indicator/year rows found; keeping the last observation")
        df = df.drop_duplicates(subset=["indicator", "year"], keep="last")

    wide = df.pivot(index="year", columns="indicator", values="value")
    wide = wide.reindex(index=range(start_year, end_year + 1), columns=indicators)

    missing_cols = [c for c in indicators if wide[c].isna().all()]
    if missing_cols:
        raise DataFetchError(f"No observations for indicator(s): {', '.join(missing_cols)}")

    gaps = wide[wide.isna().any(axis=1)]
    if not gaps.empty:
        detail = {int(y): [c for c in indicators if pd.isna(gaps.loc[y, c])] for y in gaps.index[:5]}
        raise DataFetchError(f"Missing observations for {len(gaps)} year(s), e.g. {detail}")

    aggregate = wide.sum(axis=1)
    aggregate.name = name
    logger.info("Built aggregate '%s' from %d indicators: %d years (%d-%d)",
                name, len(indicators), len(aggregate), start_year, end_year)
    return validate_annual_series(aggregate)


def load_emissions_series(country: str,
                          indicators: List[str],
                          start_year: int,
                          end_year: int,
                          fetcher: Optional[Fetcher] = None,
                          name: str = "co2_kt",
                          source: Optional[int] = None) -> pd.Series:
    """
    Fetch the indicator rows and return the aggregate annual series.

    ``fetcher`` defaults to the World Bank fetcher, queried against database
    ``source`` when given; any callable with the signature
    ``fetch(country, indicators, start_year, end_year) -> rows`` works.
    """
    if fetcher is None:
        from fetchers.worldbank import fetch

        fetcher = fetch if source is None else partial(fetch, source=int(source))

    rows = fetcher(country, indicators, start_year, end_year)
    return build_annual_series(rows, indicators, start_year, end_year, name=name)


def load_emissions_series_csv(series_path: Path, name: str = "co2_kt") -> pd.Series:
    """
    Load an annual series from a CSV file with 'year' and 'value' columns.

    Parameters
    ----------
    series_path : Path
        Path to CSV file containing the aggregate series.
    name : str
        Name given to the returned series.

    Returns
    -------
    pd.Series
        Series indexed by year.

    Raises
    ------
    SeriesValidationError
        If the file doesn't exist, lacks required columns, or contains no valid data.
    """
    if not series_path.exists():
        raise SeriesValidationError(f"Series CSV not found: {series_path}")

    logger.info("Loading emissions series from: %s", series_path)
    df_series = pd.read_csv(series_path)

    if "year" not in df_series.columns or "value" not in df_series.columns:
        raise SeriesValidationError("Series CSV must contain 'year' and 'value' columns.")

    df_series["year"] = pd.to_numeric(df_series["year"], errors="coerce")
    df_series["value"] = pd.to_numeric(df_series["value"], errors="coerce")
    df_series = df_series.dropna(subset=["year", "value"]).sort_values("year").reset_index(drop=True)

    if df_series.empty:
        raise SeriesValidationError("No valid rows found in series CSV after parsing.")

    series = pd.Series(df_series["value"].values, index=df_series["year"].astype(int).values, name=name)
    return validate_annual_series(series)
