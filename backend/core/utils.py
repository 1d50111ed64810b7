"""
Shared utility helpers for the visualization engine.

Pure functions, no I/O.
"""

from __future__ import annotations

import hashlib
import json
import math
import numbers
from typing import Any, Optional

import numpy as np
import pandas as pd


UNKNOWN_LABEL = "Unknown"
SERIES_X_KEY = "name"
SERIES_NAME_ALIAS = f"{SERIES_X_KEY} (series)"


# ---------------------------------------------------------------------------
# DataFrame safety
# ---------------------------------------------------------------------------

def df_json_safe(df: pd.DataFrame) -> pd.DataFrame:
    """Replace +/-inf -> NaN, then NaN -> None so JSON serialization works."""
    if df.empty:
        return df
    tmp = df.replace([np.inf, -np.inf], np.nan)
    tmp = tmp.astype(object)
    return tmp.where(pd.notna(tmp), None)


def df_to_records_safe(df: pd.DataFrame) -> list[dict]:
    """Convert DataFrame to list of dicts with JSON-safe values."""
    return df_json_safe(df).to_dict(orient="records")


def json_safe_value(val: Any) -> Any:
    """NaN / +-inf floats become None; everything else is returned unchanged."""
    if isinstance(val, float) and not math.isfinite(val):
        return None
    return val


# ---------------------------------------------------------------------------
# Numeric coercion
# ---------------------------------------------------------------------------

def to_number(val: Any) -> Optional[float]:
    """
    Return the numeric value of *val*, or None when it is not a number.

    Finite numbers pass through (booleans, NaN and infinities excluded).
    Strings must parse fully once surrounding whitespace is trimmed; integer
    strings stay ints.
    """
    if val is None or isinstance(val, (bool, np.bool_)):
        return None
    if isinstance(val, numbers.Number):
        if isinstance(val, numbers.Integral):
            return int(val)
        try:
            num = float(val)
        except (TypeError, ValueError):
            return None
        return num if math.isfinite(num) else None
    if not isinstance(val, str):
        return None
    text = val.strip()
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        num = float(text)
    except ValueError:
        return None
    return num if math.isfinite(num) else None


def number_or_zero(val: Any) -> float:
    num = to_number(val)
    return 0 if num is None else num


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

def label_or_unknown(val: Any) -> Any:
    """Missing or blank labels become "Unknown"; anything else is kept as-is."""
    if val is None or (isinstance(val, str) and not val.strip()):
        return UNKNOWN_LABEL
    if isinstance(val, float) and math.isnan(val):
        return UNKNOWN_LABEL
    return val


def category_label(val: Any) -> str:
    """String key for a category value (used as a series / dict key)."""
    label = label_or_unknown(val)
    return label if isinstance(label, str) else str(label)


def series_key(val: Any) -> str:
    """Category label used as a pivoted series key; never collides with the x key."""
    label = category_label(val)
    return SERIES_NAME_ALIAS if label == SERIES_X_KEY else label


def hashable_key(val: Any) -> Any:
    """*val* itself when hashable, else its repr (for set / dict keys)."""
    try:
        hash(val)
    except TypeError:
        return repr(val)
    return val


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def parse_date_key(val: Any) -> Optional[int]:
    """Parse an x-axis value into a sortable epoch (ns); None when unparsable."""
    if val is None or isinstance(val, bool):
        return None
    try:
        ts = pd.to_datetime(val, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if not isinstance(ts, pd.Timestamp) or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return int(ts.value)


# ---------------------------------------------------------------------------
# Fingerprints
# ---------------------------------------------------------------------------

def fingerprint(*parts: Any) -> str:
    """Stable sha256 over JSON-serialized parts."""
    payload = json.dumps(parts, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
