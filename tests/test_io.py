import json
from io import StringIO
from pathlib import Path

import pandas as pd
import pytest

from performance_analyzer.io import (
    export_tables,
    ledger_from_frame,
    ledger_to_frame,
    load_ledger,
    load_transaction_log,
    read_rows,
    read_table,
    transactions_from_frame,
    transactions_to_frame,
)
from performance_analyzer.models import LEDGER_COLUMNS, TRANSACTION_COLUMNS
from performance_analyzer.pipeline import run_pipeline


def test_read_table_keeps_blank_answers_as_empty_strings():
    csv = StringIO(
        """이름,시험 ID,문제 답안 입력 [1번],문제 답안 입력 [2번]
김민준,M1,3,
이서연,M1,,1
"""
    )
    rows = read_rows(csv)
    assert rows[0]["문제 답안 입력 [2번]"] == ""
    assert rows[1]["문제 답안 입력 [1번]"] == ""


def test_read_table_json_accepts_data_wrapper(tmp_path: Path):
    path = tmp_path / "rows.json"
    path.write_text(json.dumps({"data": [{"이름": "김민준"}]}, ensure_ascii=False), encoding="utf-8")
    assert read_rows(path) == [{"이름": "김민준"}]

    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"rows": 1}), encoding="utf-8")
    with pytest.raises(ValueError):
        read_table(bad)


def test_saved_log_and_ledger_reload(tmp_path: Path, catalog, config, test_rows, textbook_rows):
    result = run_pipeline(catalog, test_rows, textbook_rows, config=config, now="2024-04-01T00:00:00Z")

    paths = export_tables(
        {"transaction_log": transactions_to_frame(result.transaction_log), "progress_master": ledger_to_frame(result.ledger)},
        tmp_path,
    )
    assert [p.name for p in paths] == ["transaction_log.csv", "progress_master.csv"]

    log = load_transaction_log(tmp_path / "transaction_log.csv")
    assert log == result.transaction_log

    ledger = load_ledger(tmp_path / "progress_master.csv")
    assert [r.to_record() for r in ledger] == [r.to_record() for r in result.ledger]


def test_frames_use_public_column_names(catalog, config, test_rows):
    result = run_pipeline(catalog, test_rows, config=config, now="2024-04-01T00:00:00Z")
    assert list(transactions_to_frame(result.transaction_log).columns) == TRANSACTION_COLUMNS
    ledger_df = ledger_to_frame(result.ledger)
    assert list(ledger_df.columns) == LEDGER_COLUMNS
    assert "correct_answers" not in ledger_df.columns


def test_transactions_from_frame_requires_columns():
    with pytest.raises(ValueError):
        transactions_from_frame(pd.DataFrame({"Date": ["2024-03-04"]}))


def test_unreadable_log_rows_are_dropped():
    df = pd.DataFrame(
        [
            {"Date": "2024-03-04T09:00:00.000Z", "StudentID": "a", "ExamID": "수학|M1", "QuestionNum": 1, "Result": "O", "Type": "Test", "Weight": 1.0, "Score": 1.0},
            {"Date": "어제", "StudentID": "a", "ExamID": "수학|M1", "QuestionNum": 2, "Result": "X", "Type": "Test", "Weight": 1.0, "Score": -1.0},
        ]
    )
    log = transactions_from_frame(df)
    assert len(log) == 1
    assert log[0].correct is True


def test_ledger_from_frame_drops_rows_without_keys():
    df = pd.DataFrame([{"StudentID": "", "DetailType": "기울기"}, {"StudentID": "a", "DetailType": "기울기", "Accuracy": 50, "Total_Attempts": 4}])
    ledger = ledger_from_frame(df)
    assert len(ledger) == 1
    assert ledger[0].correct_answers == 2
    assert ledger[0].display_score == -1.0


def test_missing_state_files_are_empty(tmp_path: Path):
    assert load_transaction_log(tmp_path / "none.csv") == []
    assert load_ledger(tmp_path / "none.csv") == []
