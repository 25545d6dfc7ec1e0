import pandas as pd

from performance_analyzer import plots
from performance_analyzer.io import exam_scores_to_frame, ledger_to_frame, question_stats_to_frame
from performance_analyzer.metrics import score_distribution, unit_breakdown
from performance_analyzer.pipeline import run_pipeline


def test_figures_from_pipeline_output(catalog, config, test_rows, textbook_rows):
    result = run_pipeline(catalog, test_rows, textbook_rows, config=config, now="2024-04-01T00:00:00Z")
    ledger_df = ledger_to_frame(result.ledger)

    assert len(plots.mastery_bar(ledger_df, "김민준").data) == 1
    assert len(plots.unit_bar(unit_breakdown(ledger_df, catalog, "김민준")).data) >= 1
    dist = score_distribution(exam_scores_to_frame(result.exam_scores))
    assert "M1" in plots.exam_score_histogram(dist, "M1").layout.title.text
    assert len(plots.question_error_bar(question_stats_to_frame(result.exam_reports["M1"].question_stats)).data) >= 1


def test_empty_inputs_give_empty_figures():
    empty_ledger = ledger_to_frame([])
    assert len(plots.mastery_bar(empty_ledger, "김민준").data) == 0
    assert len(plots.unit_bar(pd.DataFrame()).data) == 0
    assert len(plots.exam_score_histogram(pd.DataFrame()).data) == 0
    assert len(plots.question_error_bar(pd.DataFrame()).data) == 0
