from typing import Dict, Iterable, Mapping, Optional

import pandas as pd

from .catalog import QuestionCatalog
from .mapping import resolve_field
from .models import PATH_SEPARATOR
from .normalize import normalize_key

UNIT_COLUMNS = ["subject", "major_unit", "middle_unit", "display_score", "accuracy", "total_attempts", "constituent_types"]
MAJOR_UNIT_COLUMNS = ["subject", "major_unit", "display_score", "accuracy", "total_attempts", "constituent_types"]

UNASSIGNED_GRADE = "미지정"
UNORDERED = 999999


def _student_ledger(ledger_df: pd.DataFrame, student_id: str) -> pd.DataFrame:
    data = ledger_df[ledger_df["StudentID"] == student_id].copy()
    data["Total_Attempts"] = pd.to_numeric(data["Total_Attempts"], errors="coerce").fillna(0)
    data["Accuracy"] = pd.to_numeric(data["Accuracy"], errors="coerce").fillna(0)
    data["DisplayScore"] = pd.to_numeric(data["DisplayScore"], errors="coerce").fillna(-1)
    return data


def unit_breakdown(
    ledger_df: pd.DataFrame,
    catalog: QuestionCatalog,
    student_id: str,
    subject: Optional[str] = None,
    order: Optional[Mapping[str, int]] = None,
) -> pd.DataFrame:
    """Roll one student's detail-type records up to middle units.

    Display scores are averaged weighted by attempts, with unscored topics
    counting as 0. Units with no attempts are left out. ``order`` (from
    ``classification_order``) sorts units in taxonomy order.
    """
    data = _student_ledger(ledger_df, student_id)
    units = catalog.detail_type_units()
    data = data[data["DetailType"].isin(list(units))].copy()
    if subject is not None:
        data = data[data["DetailType"].map(lambda detail: units[detail][0] == subject)].copy()
    if data.empty:
        return pd.DataFrame(columns=UNIT_COLUMNS)

    data["subject"] = data["DetailType"].map(lambda detail: units[detail][0])
    data["major_unit"] = data["DetailType"].map(lambda detail: units[detail][1])
    data["middle_unit"] = data["DetailType"].map(lambda detail: units[detail][2])
    data["correct"] = (data["Accuracy"] / 100 * data["Total_Attempts"]).round()
    data["weighted"] = data["DisplayScore"].clip(lower=0) * data["Total_Attempts"]

    rows = []
    for (subject_name, major, middle), subset in data.groupby(["subject", "major_unit", "middle_unit"], sort=False):
        attempts = subset["Total_Attempts"].sum()
        if attempts <= 0:
            continue
        rows.append(
            {
                "subject": subject_name,
                "major_unit": major,
                "middle_unit": middle,
                "display_score": subset["weighted"].sum() / attempts,
                "accuracy": subset["correct"].sum() / attempts * 100,
                "total_attempts": int(attempts),
                "constituent_types": subset["DetailType"].nunique(),
            }
        )
    if not rows:
        return pd.DataFrame(columns=UNIT_COLUMNS)

    order = order or {}

    def sort_key(row):
        return (
            order.get(row["subject"], UNORDERED),
            order.get(PATH_SEPARATOR.join([row["subject"], row["major_unit"]]), UNORDERED),
            order.get(PATH_SEPARATOR.join([row["subject"], row["major_unit"], row["middle_unit"]]), UNORDERED),
        )

    return pd.DataFrame(sorted(rows, key=sort_key), columns=UNIT_COLUMNS)


def major_unit_breakdown(units_df: pd.DataFrame) -> pd.DataFrame:
    """Aggregate the output of :func:`unit_breakdown` to major units."""
    if units_df.empty:
        return pd.DataFrame(columns=MAJOR_UNIT_COLUMNS)

    data = units_df.copy()
    data["weighted"] = data["display_score"] * data["total_attempts"]
    data["correct"] = data["accuracy"] / 100 * data["total_attempts"]

    rows = []
    for (subject, major), subset in data.groupby(["subject", "major_unit"], sort=False):
        attempts = subset["total_attempts"].sum()
        rows.append(
            {
                "subject": subject,
                "major_unit": major,
                "display_score": subset["weighted"].sum() / attempts,
                "accuracy": subset["correct"].sum() / attempts * 100,
                "total_attempts": int(attempts),
                "constituent_types": int(subset["constituent_types"].sum()),
            }
        )
    return pd.DataFrame(rows, columns=MAJOR_UNIT_COLUMNS)


def student_overview(ledger_df: pd.DataFrame) -> pd.DataFrame:
    """One row per student: topics seen, topics scored, mean display score, attempts."""
    if ledger_df.empty:
        return pd.DataFrame(columns=["student_id", "topics", "scored_topics", "avg_display_score", "total_attempts", "weakest_topic"])

    data = ledger_df.copy()
    data["DisplayScore"] = pd.to_numeric(data["DisplayScore"], errors="coerce").fillna(-1)
    data["Total_Attempts"] = pd.to_numeric(data["Total_Attempts"], errors="coerce").fillna(0)

    rows = []
    for student_id, subset in data.groupby("StudentID"):
        scored = subset[subset["DisplayScore"] >= 0]
        weakest = scored.sort_values(by=["DisplayScore", "DetailType"]).iloc[0]["DetailType"] if not scored.empty else ""
        rows.append(
            {
                "student_id": student_id,
                "topics": subset["DetailType"].nunique(),
                "scored_topics": len(scored),
                "avg_display_score": scored["DisplayScore"].mean() if not scored.empty else -1.0,
                "total_attempts": int(subset["Total_Attempts"].sum()),
                "weakest_topic": weakest,
            }
        )
    return pd.DataFrame(rows).sort_values(by="student_id").reset_index(drop=True)


def grade_roster(test_rows: Iterable[Mapping[str, object]]) -> Dict[str, str]:
    """Student -> grade as first reported; students without one are ``미지정``."""
    roster: Dict[str, str] = {}
    for row in test_rows:
        name = normalize_key(resolve_field(row, "name"))
        if not name or name in roster:
            continue
        roster[name] = normalize_key(resolve_field(row, "grade")) or UNASSIGNED_GRADE
    return roster


def score_distribution(scores_df: pd.DataFrame, bins: int = 10) -> pd.DataFrame:
    """Histogram of final exam scores over fixed 0-100 bins."""
    metric = pd.to_numeric(scores_df.get("최종 점수", pd.Series(dtype=float)), errors="coerce").dropna()
    if metric.empty:
        return pd.DataFrame(columns=["bin", "count"])

    edges = [100 * i / bins for i in range(bins + 1)]
    buckets = pd.cut(metric, bins=edges, include_lowest=True, right=True)
    counts = buckets.value_counts().sort_index()
    labels = [f"{start:.0f}-{end:.0f}" for start, end in zip(edges[:-1], edges[1:])]
    return pd.DataFrame({"bin": labels, "count": counts.tolist()})
