from pathlib import Path

import plotly.express as px
import plotly.graph_objects as go
import pandas as pd

from .security import build_export_path


def mastery_bar(ledger_df: pd.DataFrame, student_id: str) -> go.Figure:
    data = ledger_df[(ledger_df["StudentID"] == student_id) & (pd.to_numeric(ledger_df["DisplayScore"], errors="coerce") >= 0)]
    if data.empty:
        return go.Figure()
    fig = px.bar(
        data.sort_values(by="DisplayScore"),
        x="DisplayScore",
        y="DetailType",
        orientation="h",
        title=f"{student_id} mastery by detail type",
        labels={"DisplayScore": "Display score", "DetailType": "Detail type"},
    )
    fig.update_layout(xaxis_range=[0, 100])
    return fig


def unit_bar(units_df: pd.DataFrame) -> go.Figure:
    if units_df.empty:
        return go.Figure()
    fig = px.bar(units_df, x="middle_unit", y="display_score", color="major_unit", title="Score by unit")
    fig.update_layout(xaxis_title="Unit", yaxis_title="Display score", yaxis_range=[0, 100])
    return fig


def exam_score_histogram(dist_df: pd.DataFrame, exam_id: str = "") -> go.Figure:
    if dist_df.empty:
        return go.Figure()
    title = f"Score distribution - {exam_id}" if exam_id else "Score distribution"
    fig = px.bar(dist_df, x="bin", y="count", title=title, labels={"bin": "Score", "count": "Students"})
    fig.update_layout(bargap=0.05)
    return fig


def question_error_bar(stats_df: pd.DataFrame) -> go.Figure:
    if stats_df.empty:
        return go.Figure()
    fig = px.bar(stats_df, x="번호", y="오답률", color="난이도", title="Error rate by question")
    fig.update_layout(xaxis_title="Question", yaxis_title="Error rate (%)")
    return fig


def write_figure(fig: go.Figure, out_dir: Path, filename: str) -> Path:
    """Write ``fig`` as a standalone HTML page inside ``out_dir``."""
    out_dir.mkdir(parents=True, exist_ok=True)
    path = build_export_path(out_dir, filename)
    fig.write_html(path, include_plotlyjs="cdn")
    return path
