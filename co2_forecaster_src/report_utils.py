# co2_forecaster_src/report_utils.py

"""
Rendering pass over a finished analysis.

Everything here consumes the structured ``AnalysisResult`` produced by
``main.run_analysis``; nothing feeds back into the statistics.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from .file_utils import ensure_dir, md_table_from_df
from .plotting_utils import (
    plot_difference_levels,
    plot_emissions_series,
    plot_forecast,
    plot_residual_acf_pacf,
)

logger = logging.getLogger(__name__)


def render_figures(result, out_dir: Path, dpi: int = 150) -> List[Path]:
    """Write all figures for ``result`` under ``out_dir/figures`` and return their paths."""
    fig_dir = out_dir / "figures"
    ensure_dir(fig_dir)
    paths = [
        fig_dir / "Series.png",
        fig_dir / "Differences.png",
        fig_dir / "Residuals_ACF_PACF.png",
    ]
    plot_emissions_series(result.series, paths[0], dpi=dpi)
    plot_difference_levels(result.difference_levels, paths[1], dpi=dpi)
    plot_residual_acf_pacf(result.selection.best.residuals, paths[2], dpi=dpi)

    for h, fc in sorted(result.forecasts.items()):
        path = fig_dir / f"Forecast_h{h}.png"
        plot_forecast(result.series, fc, path, dpi=dpi)
        paths.append(path)
    if result.baseline is not None:
        for h, fc in sorted(result.baseline.holt_forecasts.items()):
            path = fig_dir / f"Forecast_Holt_h{h}.png"
            plot_forecast(result.series, fc, path, dpi=dpi)
            paths.append(path)
    return paths


def build_markdown(result, figure_paths: List[Path], out_dir: Path) -> str:
    """Assemble the markdown report text."""
    ts = datetime.now(timezone.utc).isoformat(timespec="seconds")
    s = result.series
    best = result.selection.best
    lines = [
        f"# CO2 emissions ARIMA analysis: {result.country}",
        "",
        f"_generated: {ts}_",
        "",
        f"Series `{s.name}`: {len(s)} annual observations, {s.index[0]}-{s.index[-1]}.",
    ]
    if result.indicators:
        lines.append(f"Sum of indicators: {', '.join(result.indicators)}.")

    lines += ["", "## Stationarity", ""]
    lines.append(md_table_from_df(result.differencing.to_frame(), max_rows=None,
                                  columns=["d", "test", "statistic", "p_value", "lags", "rejects_null"]))
    verdict = "conclusive" if result.differencing.is_conclusive else "NOT conclusive (operator override)"
    lines += ["", f"Selected differencing order d = {result.differencing.d} ({verdict})."]

    lines += ["", f"## Model selection ({result.selection.criterion.upper()})", ""]
    lines.append(md_table_from_df(result.selection.to_frame(), max_rows=10,
                                  columns=["rank", "model", "AIC", "BIC", "HQIC"], float_fmt=".2f"))
    if result.selection.skipped:
        lines += ["", f"{len(result.selection.skipped)} candidate(s) skipped: "
                      + ", ".join(f"({p},{q}) {why}" for p, q, why in result.selection.skipped)]
    lines += ["", f"Selected model: **{best.label}**", "", "```text", result.model_summary.rstrip(), "```"]

    lines += ["", "## Residual diagnostics", ""]
    lb = result.residual_check.test
    lines.append(f"Ljung-Box Q = {lb.statistic:.4f} at lag {lb.lags}, p = {lb.p_value:.4f}: "
                 f"{result.residual_check.interpretation}.")
    if result.residual_stats:
        stats = result.residual_stats
        lines.append(f"Residual mean {stats['residual_mean']:.3f}, std {stats['residual_std']:.3f}, "
                     f"Jarque-Bera p = {stats['jarque_bera_pvalue']:.4f}.")

    lines += ["", "## Forecasts", ""]
    for h, fc in sorted(result.forecasts.items()):
        lines += [f"### {fc.model_label}, {h} periods ahead", ""]
        lines.append(md_table_from_df(fc.to_frame(), max_rows=None, include_index=True, float_fmt=".1f"))
        lines.append("")

    if result.baseline is not None:
        b = result.baseline
        lines += ["## Holt baseline (log scale)", ""]
        lines.append(md_table_from_df(b.to_frame(), max_rows=None))
        lines += ["", f"Lower Ljung-Box p-value (informal \"more informative\" reading): {b.more_informative}.", ""]
        for h, fc in sorted(b.holt_forecasts.items()):
            lines += [f"### {fc.model_label}, {h} periods ahead", ""]
            lines.append(md_table_from_df(fc.to_frame(), max_rows=None, include_index=True, float_fmt=".1f"))
            lines.append("")

    lines += ["## Figures", ""]
    for p in figure_paths:
        rel = p.relative_to(out_dir) if p.is_relative_to(out_dir) else p
        lines.append(f"![{p.stem}]({rel.as_posix()})")
    return "\n".join(lines) + "\n"


def render_report(result, out_dir: Path, dpi: int = 150) -> Path:
    """
    Write ``report.md`` and its figures to ``out_dir``.

    Returns
    -------
    Path
        Path of the markdown report
    """
    ensure_dir(out_dir)
    figure_paths = render_figures(result, out_dir, dpi=dpi)
    report_path = out_dir / "report.md"
    report_path.write_text(build_markdown(result, figure_paths, out_dir), encoding="utf-8")
    logger.info("Report written to %s", report_path)
    return report_path
