import json
import logging
from pathlib import Path
from typing import IO, Dict, Iterable, List, Sequence

import pandas as pd

from .models import (
    EXAM_SCORE_COLUMNS,
    LEDGER_COLUMNS,
    QUESTION_STAT_COLUMNS,
    TRANSACTION_COLUMNS,
    ExamScore,
    MasteryRecord,
    QuestionStat,
    Transaction,
)
from .security import build_export_path

logger = logging.getLogger(__name__)


def read_table(source: str | Path | IO[str] | IO[bytes]) -> pd.DataFrame:
    """Read a CSV export, or a JSON array of row objects when the path ends in ``.json``."""
    if isinstance(source, (str, Path)) and Path(source).suffix.lower() == ".json":
        raw = json.loads(Path(source).read_text(encoding="utf-8"))
        if isinstance(raw, dict) and isinstance(raw.get("data"), list):
            raw = raw["data"]
        if not isinstance(raw, list):
            raise ValueError(f"{source} does not contain an array of rows")
        return pd.DataFrame(raw)
    # Keep blank answer cells as "" instead of NaN; they mean "not answered".
    return pd.read_csv(source, keep_default_na=False, encoding="utf-8-sig")


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, object]]:
    if df.empty:
        return []
    cleaned = df.copy()
    cleaned.columns = [str(col).strip() for col in cleaned.columns]
    return cleaned.to_dict(orient="records")


def read_rows(source: str | Path | IO[str] | IO[bytes]) -> List[Dict[str, object]]:
    return frame_to_rows(read_table(source))


def transactions_to_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    return pd.DataFrame([t.to_record() for t in transactions], columns=TRANSACTION_COLUMNS)


def transactions_from_frame(df: pd.DataFrame) -> List[Transaction]:
    missing = [col for col in TRANSACTION_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Transaction log missing required columns: {missing}")

    transactions = []
    for record in frame_to_rows(df):
        try:
            transactions.append(Transaction.from_record(record))
        except ValueError as exc:
            logger.warning("Dropping unreadable transaction log row: %s", exc)
    return transactions


def ledger_to_frame(records: Sequence[MasteryRecord]) -> pd.DataFrame:
    return pd.DataFrame([r.to_record() for r in records], columns=LEDGER_COLUMNS)


def ledger_from_frame(df: pd.DataFrame) -> List[MasteryRecord]:
    missing = [col for col in ("StudentID", "DetailType") if col not in df.columns]
    if missing:
        raise ValueError(f"Mastery ledger missing required columns: {missing}")
    records = [MasteryRecord.from_record(row) for row in frame_to_rows(df)]
    return [r for r in records if r.student_id and r.detail_type]


def exam_scores_to_frame(scores: Sequence[ExamScore]) -> pd.DataFrame:
    return pd.DataFrame([s.to_record() for s in scores], columns=EXAM_SCORE_COLUMNS)


def question_stats_to_frame(stats: Sequence[QuestionStat]) -> pd.DataFrame:
    return pd.DataFrame([s.to_record() for s in stats], columns=QUESTION_STAT_COLUMNS)


def load_transaction_log(path: Path) -> List[Transaction]:
    if not path.exists():
        return []
    return transactions_from_frame(read_table(path))


def load_ledger(path: Path) -> List[MasteryRecord]:
    if not path.exists():
        return []
    return ledger_from_frame(read_table(path))


def export_dataframe(df: pd.DataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    # BOM so spreadsheet apps detect UTF-8 for Korean headers.
    df.to_csv(path, index=False, encoding="utf-8-sig")
    return path


def export_tables(tables: Dict[str, pd.DataFrame], out_dir: Path) -> Iterable[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, df in tables.items():
        path = build_export_path(out_dir, f"{name}.csv")
        written.append(export_dataframe(df, path))
        logger.info("Wrote %d rows to %s", len(df), path)
    return written
