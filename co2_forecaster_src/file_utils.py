# co2_forecaster_src/file_utils.py

import numpy as np
import pandas as pd
from pathlib import Path
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> None:
    """
    Create directory if it doesn't exist, including all parent directories.

    Parameters
    ----------
    path : Path
        Directory path to create

    Notes
    -----
    Uses mkdir with parents=True and exist_ok=True for safe operation.
    No error is raised if the directory already exists.
    """
    path.mkdir(parents=True, exist_ok=True)


def _format_cell(value, float_fmt: str) -> str:
    if isinstance(value, (float, np.floating)):
        if not np.isfinite(value):
            return "nan"
        return format(float(value), float_fmt)
    if isinstance(value, (bool, np.bool_)):
        return "yes" if value else "no"
    return str(value)


def md_table_from_df(df: pd.DataFrame,
                     max_rows: Optional[int] = 10,
                     columns: Optional[List[str]] = None,
                     float_fmt: str = ".4f",
                     include_index: bool = False) -> str:
    """
    Convert a DataFrame to markdown table format.

    This function generates markdown-formatted tables from pandas DataFrames,
    used for every table in the rendered report.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to convert
    max_rows : Optional[int], default=10
        Maximum number of rows to include (None for all)
    columns : Optional[List[str]]
        Specific columns to include (None for all)
    float_fmt : str, default=".4f"
        Format spec applied to float cells
    include_index : bool, default=False
        Emit the index as the first column

    Returns
    -------
    str
        Markdown table string, or empty string for an empty frame
    """
    if columns is not None:
        keep = [c for c in columns if c in df.columns]
        if keep:
            df = df.loc[:, keep]
    if include_index:
        df = df.reset_index()

    df_disp = df if max_rows is None else df.head(max_rows)
    cols = list(df_disp.columns)
    if not cols or df_disp.empty:
        return ""

    header = "| " + " | ".join(str(c) for c in cols) + " |"
    separator = "| " + " | ".join("---" for _ in cols) + " |"
    rows = []
    # itertuples keeps per-column dtypes (iterrows upcasts ints to float)
    for tup in df_disp.itertuples(index=False, name=None):
        vals = [_format_cell(v, float_fmt) for v in tup]
        rows.append("| " + " | ".join(vals) + " |")

    return "\n".join([header, separator] + rows)


def resolve_path(path_str: str, base_dir: Path) -> Path:
    """
    Resolve a path string relative to a base directory if not absolute.

    Examples
    --------
    >>> resolve_path("data/file.csv", Path("/project"))
    PosixPath('/project/data/file.csv')
    """
    path = Path(path_str)
    return path if path.is_absolute() else (base_dir / path)
