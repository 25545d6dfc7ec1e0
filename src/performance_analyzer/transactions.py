"""Turn raw response rows into scored, deduplicated transactions."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .catalog import QuestionCatalog
from .config import AnalysisConfig
from .models import BOOK, TEST, ExamResponse, Question, SourceKey, TextbookResponse, Transaction, TransactionKey
from .normalize import parse_answer, parse_timestamp, format_timestamp, timestamp_millis

logger = logging.getLogger(__name__)

# Weight/score precision; keeps float drift from accumulating across reruns.
SCORE_DIGITS = 4


def transaction_key(transaction: Transaction) -> TransactionKey:
    return TransactionKey(
        millis=timestamp_millis(transaction.date),
        student_id=transaction.student_id,
        exam_key=transaction.exam_key,
        question_number=transaction.question_number,
    )


def seen_keys(transactions: Iterable[Transaction]) -> Set[TransactionKey]:
    return {transaction_key(t) for t in transactions}


def textbook_ordinal(start_number: int, relative_number: int) -> int:
    """Absolute catalog ordinal of the ``relative_number``-th answer of a block starting at ``start_number``."""
    return start_number + relative_number - 1


def score_answer(question: Question, raw_answer: object, config: AnalysisConfig) -> Tuple[bool, float, float]:
    """Return (correct, weight, signed score) for one answer."""
    answer = parse_answer(raw_answer)
    correct = answer is not None and question.answer is not None and answer == question.answer
    weight = config.weight_for(question.difficulty)
    score = weight if correct else -weight
    return correct, round(weight, SCORE_DIGITS), round(score, SCORE_DIGITS)


def _row_timestamp(raw: object, student_id: str) -> Optional[Tuple[str, int]]:
    try:
        ts = parse_timestamp(raw)
    except ValueError:
        logger.warning("Skipping response from %s: unreadable timestamp %r", student_id, raw)
        return None
    return format_timestamp(ts), int(ts.value // 1_000_000)


def _emit(
    date: str,
    millis: int,
    student_id: str,
    source: SourceKey,
    number: int,
    question: Question,
    raw_answer: object,
    kind: str,
    config: AnalysisConfig,
    seen: Set[TransactionKey],
) -> Optional[Transaction]:
    key = TransactionKey(millis, student_id, source.exam_key, number)
    if key in seen:
        return None
    correct, weight, score = score_answer(question, raw_answer, config)
    seen.add(key)
    return Transaction(
        date=date,
        student_id=student_id,
        exam_key=source.exam_key,
        question_number=number,
        correct=correct,
        kind=kind,
        weight=weight,
        score=score,
    )


def transactions_from_exam_response(
    response: ExamResponse,
    catalog: QuestionCatalog,
    config: AnalysisConfig,
    seen: Set[TransactionKey],
) -> List[Transaction]:
    if not response.student_id or not response.exam_id:
        return []

    source = catalog.resolve_exam_source(response.exam_id)
    if source is None:
        logger.debug("No catalog questions for exam %s", response.exam_id)
        return []
    questions = catalog.source_questions(source)

    stamp = _row_timestamp(response.timestamp, response.student_id)
    if stamp is None:
        return []
    date, millis = stamp

    built = []
    for number, raw_answer in response.answers.items():
        question = questions.get(number)
        if question is None:
            continue
        transaction = _emit(date, millis, response.student_id, source, number, question, raw_answer, TEST, config, seen)
        if transaction is not None:
            built.append(transaction)
    return built


def transactions_from_textbook_response(
    response: TextbookResponse,
    catalog: QuestionCatalog,
    config: AnalysisConfig,
    seen: Set[TransactionKey],
) -> List[Transaction]:
    if not (response.student_id and response.book_name and response.subject) or response.start_number is None:
        return []

    source = response.source_key
    questions = catalog.source_questions(source)
    if not questions:
        logger.debug("No catalog questions for book %s", source.exam_key)
        return []

    stamp = _row_timestamp(response.timestamp, response.student_id)
    if stamp is None:
        return []
    date, millis = stamp

    built = []
    for relative, raw_answer in response.answers.items():
        number = textbook_ordinal(response.start_number, relative)
        question = questions.get(number)
        if question is None:
            continue
        transaction = _emit(date, millis, response.student_id, source, number, question, raw_answer, BOOK, config, seen)
        if transaction is not None:
            built.append(transaction)
    return built


def build_transactions(
    catalog: QuestionCatalog,
    exam_responses: Iterable[ExamResponse],
    textbook_responses: Iterable[TextbookResponse],
    config: AnalysisConfig,
    prior_log: Iterable[Transaction] = (),
) -> List[Transaction]:
    """Return only the transactions not already present in ``prior_log``.

    Test rows are processed before textbook rows; within each, row order is
    kept. Rows that resolve to nothing produce nothing.
    """
    seen = seen_keys(prior_log)
    new: List[Transaction] = []
    counts: Dict[str, int] = {TEST: 0, BOOK: 0}

    for response in exam_responses:
        built = transactions_from_exam_response(response, catalog, config, seen)
        counts[TEST] += len(built)
        new.extend(built)

    for response in textbook_responses:
        built = transactions_from_textbook_response(response, catalog, config, seen)
        counts[BOOK] += len(built)
        new.extend(built)

    logger.info("Built %d new transactions (%d test, %d book)", len(new), counts[TEST], counts[BOOK])
    return new
