# co2_forecaster_src/plotting_utils.py

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict, Union
import logging

from .file_utils import ensure_dir

logger = logging.getLogger(__name__)

INTERVAL_ALPHAS = {80: 0.35, 95: 0.18}


def plot_emissions_series(series: pd.Series, out_path: Path, ylabel: str = "CO2 emissions (kt)",
                          dpi: int = 150) -> None:
    """
    Render and save the raw annual series.

    Parameters
    ----------
    series : pd.Series
        Annual series indexed by year
    out_path : Path
        File path to save the rendered PNG (parents are created if missing)
    ylabel : str
        Y-axis label
    dpi : int
        Output resolution
    """
    ensure_dir(out_path.parent)
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.plot(series.index, series.values, color="black", linewidth=1.2)
    ax.set_xlabel("Year")
    ax.set_ylabel(ylabel)
    ax.set_title(f"{series.name or 'Series'} ({series.index[0]}-{series.index[-1]})")
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)


def plot_difference_levels(levels: Dict[int, pd.Series], out_path: Path, dpi: int = 150) -> None:
    """
    Render the series and its differences as a vertical panel, one row per order.
    """
    ensure_dir(out_path.parent)
    orders = sorted(levels)
    fig, axes = plt.subplots(nrows=len(orders), ncols=1, figsize=(8, 2.6 * len(orders)), sharex=True)
    axes = np.atleast_1d(axes)
    titles = {0: "Level", 1: "First difference", 2: "Second difference"}
    for ax, k in zip(axes, orders):
        s = levels[k]
        ax.plot(s.index, s.values, color="black", linewidth=1)
        if k > 0:
            ax.axhline(0.0, color="gray", linewidth=0.8, linestyle="--")
        ax.set_title(titles.get(k, f"Difference order {k}"), fontsize=9)
        ax.spines["top"].set_alpha(0)
        ax.tick_params(labelsize=7)
    axes[-1].set_xlabel("Year")
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)


def plot_residual_acf_pacf(residuals: Union[pd.Series, np.ndarray], out_path: Path, dpi: int = 150) -> None:
    """
    Create and save combined ACF and PACF plots for residual analysis.

    These plots help identify remaining autocorrelation patterns in residuals
    that might indicate model misspecification.
    """
    from statsmodels.graphics.tsaplots import plot_acf, plot_pacf

    resid = pd.Series(np.asarray(residuals, dtype=float)).dropna()
    if resid.empty:
        logger.warning("Residual ACF/PACF skipped: empty residual series.")
        return
    # PACF lags must stay below half the sample size
    lags = int(max(1, min(20, len(resid) // 2 - 1)))

    ensure_dir(out_path.parent)
    fig, axes = plt.subplots(2, 1, figsize=(8, 6))
    plot_acf(resid, ax=axes[0], lags=lags, zero=False)
    axes[0].set_title("Residual ACF")
    plot_pacf(resid, ax=axes[1], lags=lags, zero=False, method="ywm")
    axes[1].set_title("Residual PACF")
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)


def plot_forecast(series: pd.Series, forecast, out_path: Path, title: str = "",
                  history: int = 30, dpi: int = 150) -> None:
    """
    Fan chart: recent history, point forecast, and shaded prediction intervals.

    Parameters
    ----------
    series : pd.Series
        Observed annual series
    forecast : ForecastResult
        Forecast to draw; wider intervals are drawn first
    out_path : Path
        Output PNG path
    title : str
        Plot title; defaults to the forecast's model label and horizon
    history : int, default=30
        Number of trailing observed years to show
    """
    ensure_dir(out_path.parent)
    fig, ax = plt.subplots(figsize=(8, 4))
    tail = series.iloc[-history:]
    ax.plot(tail.index, tail.values, color="black", linewidth=1.2, label="observed")

    for lvl in sorted(forecast.lower, reverse=True):
        ax.fill_between(forecast.years, forecast.lower[lvl], forecast.upper[lvl],
                        color="tab:blue", alpha=INTERVAL_ALPHAS.get(lvl, 0.25), linewidth=0,
                        label=f"{lvl}% interval")
    ax.plot(forecast.years, forecast.mean, color="tab:blue", linewidth=1.5, label="forecast")

    ax.set_xlabel("Year")
    ax.set_title(title or f"{forecast.model_label} forecast, h={forecast.horizon}")
    ax.legend(fontsize=8, loc="upper left")
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)
