import datetime
import math
import warnings
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from apps.analytics.constants import (
    BOOLEAN_TOKENS,
    DATE_FORMATS,
    FALSE_VALUES,
    MIN_DATE_YEAR,
    NUMERIC_PATTERN,
    NUMERIC_STRIP_PATTERN,
    TRUE_VALUES,
)


def is_missing(value) -> bool:
    """None, NaN and blank strings are treated as missing cells."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return value is pd.NaT


def get_columns(rows: Iterable[Dict]) -> List[str]:
    """Union of row keys in first-seen order."""
    columns = {}
    for row in rows:
        for key in row:
            columns.setdefault(key, None)
    return list(columns)


def column_values(rows: Iterable[Dict], column: str) -> List:
    return [row.get(column) for row in rows]


def is_numeric(value) -> bool:
    """Strict check: the whole value must read as a finite number."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, np.integer, np.floating)):
        return math.isfinite(float(value))
    if not isinstance(value, str):
        return False
    text = value.strip()
    if not text or "_" in text:
        return False
    try:
        return math.isfinite(float(text))
    except ValueError:
        return False


def to_float(value) -> Optional[float]:
    """
    Leading-number parse of a cell, returning None when nothing parses.

    ``"12.5kg"`` reads as 12.5 while ``"kg"`` and overflows like ``"1e999"``
    give None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    else:
        match = NUMERIC_PATTERN.match(str(value))
        if not match:
            return None
        number = float(match.group(0))
    return number if math.isfinite(number) else None


def to_number(value) -> float:
    """Coerce a cell to a float after stripping separators, 0 when unparseable."""
    if is_missing(value):
        return 0.0
    if isinstance(value, str):
        value = NUMERIC_STRIP_PATTERN.sub("", value)
    number = to_float(value)
    return 0.0 if number is None else number


def _to_timestamp(value) -> Optional[pd.Timestamp]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (datetime.datetime, datetime.date, pd.Timestamp)):
        return pd.Timestamp(value)
    if isinstance(value, (int, float, np.integer, np.floating)):
        return None

    text = str(value).strip()
    if not text or is_numeric(text):
        return None

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            parsed = pd.NaT

    if not pd.isna(parsed):
        return parsed

    for fmt in DATE_FORMATS:
        try:
            return pd.Timestamp(datetime.datetime.strptime(text, fmt))
        except ValueError:
            continue
    return None


def is_date(value) -> bool:
    timestamp = _to_timestamp(value)
    return timestamp is not None and timestamp.year > MIN_DATE_YEAR


def parse_date(value) -> Optional[str]:
    """ISO-8601 text for a parseable date, otherwise None."""
    timestamp = _to_timestamp(value)
    if timestamp is None:
        return None
    return timestamp.isoformat()


def is_boolean_token(value) -> bool:
    if isinstance(value, bool):
        return True
    return str(value).strip().lower() in BOOLEAN_TOKENS


def parse_boolean(value) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return None


def distinct_key(value):
    """
    Identity used for uniqueness counts.

    Numbers compare by value (1 == 1.0), but booleans, numbers and strings
    never collapse into each other.
    """
    if isinstance(value, (bool, np.bool_)):
        return ("bool", bool(value))
    if isinstance(value, (int, float, np.integer, np.floating)):
        return ("number", float(value))
    return (type(value).__name__, value)


def count_distinct(values: Iterable) -> int:
    return len({distinct_key(v) for v in values})


def convert_numpy(obj):
    if isinstance(obj, dict):
        return {k: convert_numpy(v) for k, v in obj.items()}

    elif isinstance(obj, list):
        return [convert_numpy(v) for v in obj]

    elif isinstance(obj, tuple):
        return [convert_numpy(v) for v in obj]

    elif isinstance(obj, np.ndarray):
        return convert_numpy(obj.tolist())

    elif isinstance(obj, (np.integer,)):
        return int(obj)

    elif isinstance(obj, (np.floating, float)):
        value = float(obj)
        return None if math.isnan(value) or math.isinf(value) else value

    elif isinstance(obj, (np.bool_,)):
        return bool(obj)

    elif obj is pd.NaT:
        return None

    elif isinstance(obj, pd.Timestamp):
        return obj.isoformat()

    elif isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()

    else:
        return obj
