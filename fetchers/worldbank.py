"""World Bank indicator fetchers for annual emissions series.

Purpose
-------
Library utilities used by the emissions workflow to pull annual indicator
observations for one country from the World Bank Indicators API (v2) and to
normalize them into plain rows for downstream aggregation.

Providers
---------
- World Bank Indicators API, JSON over HTTPS. No authentication required.
  https://api.worldbank.org/v2/country/{country}/indicator/{indicator}

Key Inputs/Outputs
------------------
- fetch(): query one country and several indicator codes over a year range; returns a
  list of rows {'country', 'indicator', 'year', 'value'} with year as int and value as
  float (None when the API reports no observation).
- fetch_indicator(): the same for a single indicator code, following pagination.

Assumptions
-----------
- Annual frequency; the API's 'date' field is a 4-digit year string.
- The API answers errors with HTTP 200 and a payload of the form [{"message": [...]}];
  those are raised as DataFetchError just like transport failures.
- No retries: any failure is fatal for the run and is surfaced to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import requests

from co2_forecaster_src.errors import DataFetchError

logger = logging.getLogger(__name__)

# Base URL for the World Bank Indicators API (version 2).
WORLDBANK_BASE = "https://api.worldbank.org/v2"

DEFAULT_PER_PAGE = 1000


@dataclass(frozen=True)
class IndicatorSpec:
    """Descriptor for a World Bank indicator."""

    code: str
    title: Optional[str] = None


# CO2 emissions by fuel type, kt. Their sum is the aggregate modelled by the workflow.
# These codes moved to the WDI archives (source 57) after the 2024 WDI revision.
CO2_FUEL_INDICATORS: Dict[str, IndicatorSpec] = {
    "gaseous": IndicatorSpec("EN.ATM.CO2E.GF.KT", "CO2 emissions from gaseous fuel consumption (kt)"),
    "liquid": IndicatorSpec("EN.ATM.CO2E.LF.KT", "CO2 emissions from liquid fuel consumption (kt)"),
    "solid": IndicatorSpec("EN.ATM.CO2E.SF.KT", "CO2 emissions from solid fuel consumption (kt)"),
}


def _build_indicator_url(country: str, indicator: str) -> str:
    return f"{WORLDBANK_BASE}/country/{country}/indicator/{indicator}"


def _raise_for_api_message(payload: Any, indicator: str) -> None:
    """Raise DataFetchError when the API returned its error envelope."""
    if isinstance(payload, list) and payload and isinstance(payload[0], dict) and "message" in payload[0]:
        messages = payload[0].get("message") or []
        text = "; ".join(
            f"{m.get('key', '')}: {m.get('value', '')}".strip(": ") for m in messages if isinstance(m, dict)
        )
        raise DataFetchError(f"World Bank API error for {indicator}: {text or payload[0]}")


def _parse_rows(items: Iterable[Dict[str, Any]], country: str, indicator: str) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for item in items:
        try:
            year = int(str(item.get("date", "")).strip())
        except ValueError:
            logger.debug("Skipping non-annual observation %r for %s", item.get("date"), indicator)
            continue
        raw = item.get("value")
        rows.append(
            {
                "country": item.get("countryiso3code") or (item.get("country") or {}).get("id") or country,
                "indicator": (item.get("indicator") or {}).get("id") or indicator,
                "year": year,
                "value": float(raw) if raw is not None else None,
            }
        )
    return rows


def fetch_indicator(
    country: str,
    indicator: str,
    start_year: int,
    end_year: int,
    source: Optional[int] = None,
    session: Optional[requests.Session] = None,
    timeout: int = 60,
) -> List[Dict[str, Any]]:
    """Fetch annual observations of a single indicator for one country.

    Parameters
    ----------
    country : str
        ISO3 (or ISO2) country code understood by the API, e.g. 'USA'.
    indicator : str
        Indicator code, e.g. 'EN.ATM.CO2E.LF.KT'.
    start_year, end_year : int
        Inclusive year range passed as 'date=start:end'.
    source : Optional[int], optional
        World Bank database id (e.g. 57 for WDI archives). None lets the API choose.
    session : Optional[requests.Session], optional
        Reused HTTP session; a plain requests.get is used when None.
    timeout : int, optional
        Per-request timeout in seconds (default 60).

    Returns
    -------
    List[Dict[str, Any]]
        Rows {'country', 'indicator', 'year', 'value'} sorted by year.

    Raises
    ------
    DataFetchError
        On transport/HTTP failure, an API error payload, or an unexpected response shape.
    """
    url = _build_indicator_url(country, indicator)
    getter = session.get if session is not None else requests.get
    params: Dict[str, Any] = {
        "date": f"{start_year}:{end_year}",
        "format": "json",
        "per_page": DEFAULT_PER_PAGE,
        "page": 1,
    }
    if source is not None:
        params["source"] = source

    rows: List[Dict[str, Any]] = []
    pages = 1
    while params["page"] <= pages:
        try:
            r = getter(url, params=params, timeout=timeout)
            r.raise_for_status()  # Fail fast on HTTP errors
            payload = r.json()
        except (requests.RequestException, ValueError) as e:
            raise DataFetchError(f"Failed to fetch {indicator} for {country}: {e}") from e

        _raise_for_api_message(payload, indicator)
        if not isinstance(payload, list) or len(payload) < 2:
            raise DataFetchError(f"Unexpected World Bank response for {indicator}: {str(payload)[:200]}")

        meta, items = payload[0] or {}, payload[1] or []
        pages = int(meta.get("pages", 1) or 1)
        rows.extend(_parse_rows(items, country, indicator))
        params["page"] += 1

    logger.debug("Fetched %d rows for %s/%s", len(rows), country, indicator)
    return sorted(rows, key=lambda row: row["year"])


def fetch(
    country: str,
    indicators: List[str],
    start_year: int,
    end_year: int,
    source: Optional[int] = None,
    timeout: int = 60,
) -> List[Dict[str, Any]]:
    """Fetch rows (country, indicator, year, value) for several indicators.

    This is the upstream collaborator of the workflow: it performs no aggregation and
    no gap handling; data_utils.build_annual_series validates and sums the rows.

    Raises
    ------
    DataFetchError
        If the request fails or no rows come back at all.
    """
    if not indicators:
        raise DataFetchError("At least one indicator code is required")
    if start_year > end_year:
        raise DataFetchError(f"Invalid year range {start_year}:{end_year}")

    logger.info("Fetching %s for %s, %d-%d from the World Bank API", ",".join(indicators), country,
                start_year, end_year)
    rows: List[Dict[str, Any]] = []
    with requests.Session() as session:
        for code in indicators:
            rows.extend(
                fetch_indicator(country, code, start_year, end_year, source=source, session=session,
                                timeout=timeout)
            )

    if not rows:
        raise DataFetchError(f"No observations returned for {country} ({', '.join(indicators)})")
    return rows
