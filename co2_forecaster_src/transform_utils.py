# co2_forecaster_src/transform_utils.py

import pandas as pd
import numpy as np
from typing import Dict, Sequence
import logging

logger = logging.getLogger(__name__)

MAX_DIFFERENCE_ORDER = 2


def difference(series: pd.Series, k: int = 1) -> pd.Series:
    """
    Apply the first-difference operator k times.

    Parameters
    ----------
    series : pd.Series
        Annual series indexed by year
    k : int, default=1
        Number of differences, 0 <= k <= 2

    Returns
    -------
    pd.Series
        Differenced series of length len(series) - k, indexed by the years of the
        surviving observations (the first k years are dropped)

    Raises
    ------
    ValueError
        If k is out of range or the series is too short to difference k times

    Examples
    --------
    >>> s = pd.Series([1.0, 4.0, 9.0, 16.0], index=[2000, 2001, 2002, 2003])
    >>> difference(s, 2).tolist()
    [2.0, 2.0]
    """
    if not 0 <= k <= MAX_DIFFERENCE_ORDER:
        raise ValueError(f"Differencing order must be between 0 and {MAX_DIFFERENCE_ORDER}, got {k}")
    if len(series) <= k:
        raise ValueError(f"Series of length {len(series)} is too short to difference {k} time(s)")

    out = series.astype(float)
    for _ in range(k):
        out = out.diff().iloc[1:]
    return out


def difference_initial_values(series: pd.Series, k: int) -> np.ndarray:
    """
    Return the first value of each differencing level 0..k-1.

    These are the constants needed to integrate a k-times differenced series
    back to the original scale: ``[y_0, (Δy)_0, ..., (Δ^{k-1}y)_0]``.
    """
    head = np.asarray(series.iloc[:k], dtype=float)
    inits = []
    for _ in range(k):
        inits.append(head[0])
        head = np.diff(head)
    return np.asarray(inits, dtype=float)


def undifference(diffed: pd.Series, initial_values: Sequence[float]) -> pd.Series:
    """
    Invert :func:`difference` with cumulative sums.

    Parameters
    ----------
    diffed : pd.Series
        Series differenced k times, indexed by year
    initial_values : Sequence[float]
        Output of :func:`difference_initial_values` on the original series;
        its length sets k

    Returns
    -------
    pd.Series
        Reconstructed series of length len(diffed) + k, with the k leading years restored

    Notes
    -----
    Level j is rebuilt as ``init_j`` followed by ``init_j + cumsum(level j+1)``,
    working from the innermost level outwards.
    """
    inits = np.asarray(initial_values, dtype=float)
    k = len(inits)
    values = np.asarray(diffed, dtype=float)
    for j in range(k - 1, -1, -1):
        values = np.concatenate([[inits[j]], inits[j] + np.cumsum(values)])

    if len(diffed) > 0:
        first_year = int(diffed.index[0]) - k
    else:
        first_year = 0
    index = pd.Index(np.arange(first_year, first_year + len(values)), name=diffed.index.name)
    return pd.Series(values, index=index, name=diffed.name)


def difference_levels(series: pd.Series, max_d: int = MAX_DIFFERENCE_ORDER) -> Dict[int, pd.Series]:
    """
    Return the series together with its successive differences.

    Used by the report layer to show the raw series, first and second differences.
    """
    return {k: difference(series, k) for k in range(0, max_d + 1) if len(series) > k}


def log_transform(series: pd.Series) -> pd.Series:
    """
    Natural logarithm of a strictly positive series.

    Raises
    ------
    ValueError
        If any value is zero or negative
    """
    if (series <= 0).any():
        raise ValueError("log transformation requires all positive values")
    return np.log(series.astype(float))
