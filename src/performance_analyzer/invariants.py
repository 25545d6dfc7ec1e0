from typing import Dict, List

import pandas as pd

from .mapping import FIELD_ALIASES, missing_catalog_fields
from .models import DIFFICULTY_TIERS
from .normalize import normalize_key, parse_answer, parse_leading_int


def _column(df: pd.DataFrame, field: str) -> pd.Series:
    """First present alias column for ``field``, or an empty-string series."""
    for alias in FIELD_ALIASES[field]:
        if alias in df.columns:
            return df[alias]
    return pd.Series([""] * len(df), index=df.index, dtype=object)


def check_missing_identifiers(df: pd.DataFrame) -> int:
    ids = _column(df, "catalog_id").map(normalize_key) == ""
    numbers = _column(df, "number").map(parse_leading_int).isna()
    return int((ids | numbers).sum())


def check_answer_keys(df: pd.DataFrame) -> int:
    return int(_column(df, "answer").map(parse_answer).isna().sum())


def check_difficulty_tiers(df: pd.DataFrame) -> int:
    tiers = _column(df, "difficulty").map(normalize_key)
    return int((~tiers.isin(DIFFICULTY_TIERS)).sum())


def check_duplicate_questions(df: pd.DataFrame) -> int:
    keys = pd.DataFrame(
        {
            "subject": _column(df, "subject").map(normalize_key),
            "id": _column(df, "catalog_id").map(normalize_key),
            "number": _column(df, "number").map(parse_leading_int),
        }
    )
    return int(keys.duplicated(keep="first").sum())


def run_catalog_invariants(df: pd.DataFrame) -> List[Dict[str, object]]:
    """Data-quality checks for a question catalog export.

    None of these stop the pipeline; rows that fail are skipped or defaulted
    there. The report tells the operator what will be ignored.
    """
    results = []

    missing_fields = missing_catalog_fields(df.columns)
    results.append(
        {
            "name": "required_columns",
            "ok": len(missing_fields) == 0,
            "detail": ", ".join(missing_fields) if missing_fields else "all present",
        }
    )

    missing_ids = check_missing_identifiers(df)
    results.append({"name": "missing_identifiers", "ok": missing_ids == 0, "detail": missing_ids})

    bad_answers = check_answer_keys(df)
    results.append({"name": "non_numeric_answer_keys", "ok": bad_answers == 0, "detail": bad_answers})

    bad_tiers = check_difficulty_tiers(df)
    results.append({"name": "unrecognized_difficulty", "ok": bad_tiers == 0, "detail": bad_tiers})

    duplicates = check_duplicate_questions(df)
    results.append({"name": "duplicate_questions", "ok": duplicates == 0, "detail": duplicates})

    return results
