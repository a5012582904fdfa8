# co2_forecaster_src/parsing_utils.py

from typing import List, Optional, Sequence, Union
import logging

logger = logging.getLogger(__name__)


def parse_range_arg(s: Optional[str], default: str = "0-5", config_key: Optional[str] = None) -> List[int]:
    """
    Parse a CLI range argument like '0-5' or '0,1,2,3' into a list of integers.

    This function handles different input formats for specifying order ranges:
    - Range format: "0-3" becomes [0, 1, 2, 3]
    - List format: "0,1,2,3" becomes [0, 1, 2, 3]
    - Lists coming from the YAML configuration are accepted as is

    Parameters
    ----------
    s : str, optional
        CLI range argument string to parse; takes precedence over configuration
    default : str, default="0-5"
        Default range if no CLI arg or config value provided
    config_key : str, optional
        Configuration key path for fallback value

    Returns
    -------
    List[int]
        Parsed range as sorted list of unique non-negative integers

    Raises
    ------
    ValueError
        If the text cannot be parsed or yields no non-negative orders

    Examples
    --------
    >>> parse_range_arg("0-3")
    [0, 1, 2, 3]
    >>> parse_range_arg("0,2,4")
    [0, 2, 4]
    """
    from .config_utils import get_config_value

    value: Union[str, Sequence[int], None] = s
    if value is None and config_key:
        value = get_config_value(config_key, default)
    if value is None:
        value = default

    # Lists from configuration
    if isinstance(value, (list, tuple)):
        out = [int(x) for x in value]
    else:
        txt = str(value).strip()
        try:
            if "-" in txt and "," not in txt:
                a, b = txt.split("-", 1)
                out = list(range(int(a.strip()), int(b.strip()) + 1))
            else:
                out = [int(x.strip()) for x in txt.split(",") if x.strip() != ""]
        except ValueError:
            raise ValueError(f"Invalid order range '{txt}'. Use 'lo-hi' or a comma-separated list.") from None

    out = sorted({v for v in out if v >= 0})
    if not out:
        raise ValueError(f"Order range '{value}' contains no non-negative values")
    return out


def parse_intervals_arg(s: Union[str, Sequence[int], None], default: str = "80,95") -> List[int]:
    """
    Parse a CLI intervals argument like '80,95' into sorted unique integer coverage levels.

    Values outside 1..99 are dropped; an empty result falls back to [80, 95].

    Examples
    --------
    >>> parse_intervals_arg("95,80")
    [80, 95]
    """
    if isinstance(s, (list, tuple)):
        vals = sorted({int(x) for x in s})
    else:
        txt = (s or default).strip()
        try:
            vals = sorted({int(x.strip()) for x in txt.split(",") if x.strip() != ""})
        except ValueError:
            logger.warning("Could not parse intervals '%s'; using 80,95", txt)
            return [80, 95]
    vals = [v for v in vals if 1 <= v < 100]
    return vals or [80, 95]


def parse_horizons_arg(s: Union[str, Sequence[int], None], default: str = "4,14") -> List[int]:
    """Parse forecast horizons such as '4,14' into sorted unique positive integers."""
    if isinstance(s, (list, tuple)):
        vals = {int(x) for x in s}
    else:
        txt = (s or default).strip()
        try:
            vals = {int(x.strip()) for x in txt.split(",") if x.strip() != ""}
        except ValueError:
            raise ValueError(f"Invalid horizons '{txt}'. Use a comma-separated list like '4,14'.") from None
    out = sorted(v for v in vals if v >= 1)
    if not out:
        raise ValueError(f"No positive forecast horizon in '{s}'")
    return out


def parse_indicator_list(s: Union[str, Sequence[str], None]) -> List[str]:
    """
    Split a comma-separated list of indicator codes.

    Examples
    --------
    >>> parse_indicator_list(" EN.ATM.CO2E.GF.KT , EN.ATM.CO2E.LF.KT ")
    ['EN.ATM.CO2E.GF.KT', 'EN.ATM.CO2E.LF.KT']
    """
    if s is None:
        return []
    if isinstance(s, (list, tuple)):
        return [str(c).strip() for c in s if str(c).strip()]
    return [c.strip() for c in s.split(",") if c.strip()]


def validate_criterion(criterion: str) -> str:
    """Normalize an information criterion name to one of 'aic', 'bic', 'hqic'."""
    valid = ["aic", "bic", "hqic"]
    crit = str(criterion).lower()
    if crit not in valid:
        raise ValueError(f"Invalid criterion '{criterion}'. Must be one of: {valid}")
    return crit


def validate_log_level(log_level: str) -> str:
    """
    Validate and normalize logging level specification.

    Parameters
    ----------
    log_level : str
        Logging level to validate

    Returns
    -------
    str
        Validated logging level

    Raises
    ------
    ValueError
        If the logging level is not supported
    """
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    level_upper = log_level.upper()
    if level_upper not in valid_levels:
        raise ValueError(f"Invalid log level '{log_level}'. Must be one of: {valid_levels}")
    return level_upper
