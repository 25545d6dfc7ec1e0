from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional

from .catalog import QuestionCatalog
from .config import AnalysisConfig
from .exam_scorer import UnknownExamError, score_exam
from .mapping import exam_response_from_row, textbook_response_from_row
from .mastery import aggregate_mastery
from .models import ExamReport, ExamScore, MasteryRecord, Transaction
from .normalize import to_iso_timestamp
from .scope import filter_transactions
from .transactions import build_transactions, transaction_key

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    transaction_log: List[Transaction]
    ledger: List[MasteryRecord]
    exam_scores: List[ExamScore]
    exam_reports: Dict[str, ExamReport] = field(default_factory=dict)
    new_transactions: int = 0
    skipped_exams: List[str] = field(default_factory=list)


def run_pipeline(
    catalog: QuestionCatalog,
    test_rows: Iterable[Mapping[str, object]],
    textbook_rows: Iterable[Mapping[str, object]] = (),
    prior_log: Iterable[Transaction] = (),
    prior_ledger: Iterable[MasteryRecord] = (),
    config: Optional[AnalysisConfig] = None,
    now: Optional[object] = None,
) -> PipelineResult:
    """Run one full analysis pass.

    Prior state is read, never mutated; re-running with the same snapshot
    gives the same result. ``now`` stamps ledger entries that lose all their
    evidence and defaults to the current time.
    """
    config = config or AnalysisConfig()
    stamp = to_iso_timestamp(now if now is not None else datetime.now(timezone.utc))

    exam_responses = [exam_response_from_row(row) for row in test_rows]
    textbook_responses = [textbook_response_from_row(row) for row in textbook_rows]
    prior_log = list(prior_log)

    new = build_transactions(catalog, exam_responses, textbook_responses, config, prior_log)
    full_log = prior_log + new
    filtered = filter_transactions(full_log, catalog, config.selected_sub_units)
    logger.info("%d of %d transactions in scope", len(filtered), len(full_log))

    ledger = aggregate_mastery(filtered, catalog, config, stamp, prior_ledger)

    reports: Dict[str, ExamReport] = {}
    skipped: List[str] = []
    exam_ids = dict.fromkeys(r.exam_id for r in exam_responses if r.exam_id)
    for exam_id in exam_ids:
        try:
            reports[exam_id] = score_exam(catalog, exam_responses, exam_id, config)
        except UnknownExamError as exc:
            logger.warning("Could not score exam %s: %s", exam_id, exc)
            skipped.append(exam_id)

    exam_scores = [score for report in reports.values() for score in report.results]

    filtered.sort(key=lambda t: tuple(transaction_key(t)))
    ledger.sort(key=lambda r: (r.student_id, r.detail_type))
    exam_scores.sort(key=lambda s: (s.exam_id, s.student_name))

    return PipelineResult(
        transaction_log=filtered,
        ledger=ledger,
        exam_scores=exam_scores,
        exam_reports=reports,
        new_transactions=len(new),
        skipped_exams=skipped,
    )
