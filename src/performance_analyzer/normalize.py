import math
import numbers
import re
from datetime import date, datetime
from typing import Optional

import pandas as pd

# Spreadsheet serial dates count days from this instant.
SPREADSHEET_EPOCH = pd.Timestamp("1899-12-30", tz="UTC")

_BRACKETS_RE = re.compile(r"[\[\]]")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NA or value is pd.NaT


def normalize_key(value: object) -> str:
    """Canonicalize a free-text identifier used as a lookup key.

    Square brackets are removed and surrounding whitespace trimmed. Missing
    values become the empty string. Integral floats (how spreadsheet readers
    hand back numeric ids) render without the trailing ``.0``.
    """
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return _BRACKETS_RE.sub("", str(value)).strip()


def parse_leading_int(value: object) -> Optional[int]:
    """Parse the leading integer of a cell, ``None`` when there is none.

    Blank and whitespace-only cells are "no value" and never coerce to 0.
    """
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT_RE.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_answer(value: object) -> Optional[int]:
    return parse_leading_int(value)


def parse_float(value: object, default: float = 0.0) -> float:
    if _is_missing(value):
        return default
    try:
        return float(str(value).strip().rstrip("%"))
    except ValueError:
        return default


def parse_timestamp(value: object) -> pd.Timestamp:
    """Return a UTC timestamp truncated to milliseconds.

    Accepts datetimes, spreadsheet serial day counts and ISO-like strings.
    Naive values are taken as UTC. Raises ``ValueError`` when the value
    cannot be interpreted.
    """
    if _is_missing(value) or isinstance(value, bool):
        raise ValueError("Missing timestamp")

    if isinstance(value, numbers.Real):
        serial = float(value)
        if not math.isfinite(serial):
            raise ValueError(f"Unrecognized timestamp: {value!r}")
        try:
            ts = SPREADSHEET_EPOCH + pd.to_timedelta(serial, unit="D")
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"Unrecognized timestamp: {value!r}") from exc
    elif isinstance(value, (datetime, date, pd.Timestamp)):
        ts = pd.Timestamp(value)
    else:
        text = str(value).strip()
        if not text:
            raise ValueError("Missing timestamp")
        try:
            ts = pd.Timestamp(text)
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"Unrecognized timestamp: {text!r}") from exc

    if ts is pd.NaT:
        raise ValueError(f"Unrecognized timestamp: {value!r}")
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    else:
        ts = ts.tz_convert("UTC")
    return ts.floor("ms")


def format_timestamp(ts: pd.Timestamp) -> str:
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def to_iso_timestamp(value: object) -> str:
    return format_timestamp(parse_timestamp(value))


def timestamp_millis(value: object) -> int:
    return int(parse_timestamp(value).value // 1_000_000)
