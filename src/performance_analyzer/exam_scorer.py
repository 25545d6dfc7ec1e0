from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from .catalog import QuestionCatalog
from .config import AnalysisConfig
from .models import ExamReport, ExamResponse, ExamScore, ExamSummary, Question, QuestionStat
from .normalize import normalize_key, parse_answer, to_iso_timestamp
from .scope import in_scope

logger = logging.getLogger(__name__)

# Scores are compared at this precision when assigning shared ranks.
RANK_DIGITS = 6


class UnknownExamError(ValueError):
    """The exam id has no questions in the catalog at all."""

    def __init__(self, exam_id: str):
        self.exam_id = exam_id
        super().__init__(f"Exam '{exam_id}' has no questions in the question catalog")


@dataclass
class _StudentResult:
    name: str
    exam_date: str
    score: float
    correct_count: int


def point_values(questions: Sequence[Question], config: AnalysisConfig) -> List[float]:
    """Per-question points, scaled so a perfect paper scores exactly 100."""
    weights = [config.weight_for(q.difficulty) for q in questions]
    total = sum(weights)
    factor = 100 / total if total > 0 else 0.0
    return [w * factor for w in weights]


def assign_ranks(scores: Sequence[float]) -> List[int]:
    """Competition ranks for ``scores`` sorted descending: 90, 90, 80 -> 1, 1, 3."""
    ranks = []
    previous = None
    current = 0
    for position, score in enumerate(scores, start=1):
        rounded = round(score, RANK_DIGITS)
        if rounded != previous:
            current = position
            previous = rounded
        ranks.append(current)
    return ranks


def _exam_date(raw: object, student: str) -> str:
    try:
        return to_iso_timestamp(raw)[:10]
    except ValueError:
        logger.warning("Unreadable timestamp %r for %s; exam date left blank", raw, student)
        return ""


def score_exam(
    catalog: QuestionCatalog,
    responses: Iterable[ExamResponse],
    exam_id: str,
    config: AnalysisConfig,
) -> ExamReport:
    """Score one exam over the in-scope questions.

    Raises :class:`UnknownExamError` when ``exam_id`` matches no catalog
    question. No in-scope question or no matching response is not an
    error: an empty report comes back instead.
    """
    exam_id = normalize_key(exam_id)
    all_questions = catalog.questions_for_exam(exam_id)
    if not all_questions:
        raise UnknownExamError(exam_id)

    by_number: Dict[int, Question] = {}
    for question in all_questions:
        by_number[question.number] = question
    questions = sorted(
        (q for q in by_number.values() if in_scope(q.topic_path, config.selected_sub_units)),
        key=lambda q: q.number,
    )
    if not questions:
        logger.info("Exam %s has no questions in the selected scope", exam_id)
        return ExamReport.empty(exam_id)

    matching = [r for r in responses if r.exam_id == exam_id]
    if not matching:
        return ExamReport.empty(exam_id)

    points = point_values(questions, config)
    attempts = {q.number: 0 for q in questions}
    correct = {q.number: 0 for q in questions}

    students: List[_StudentResult] = []
    for response in matching:
        name = response.student_id
        if not name:
            continue
        earned = 0.0
        correct_count = 0
        for question, value in zip(questions, points):
            attempts[question.number] += 1
            answer = parse_answer(response.answers.get(question.number))
            if answer is not None and question.answer is not None and answer == question.answer:
                earned += value
                correct_count += 1
                correct[question.number] += 1
        students.append(_StudentResult(name, _exam_date(response.timestamp, name), earned, correct_count))

    students.sort(key=lambda s: s.score, reverse=True)
    ranks = assign_ranks([s.score for s in students])
    total = len(students)
    results = [
        ExamScore(
            exam_id=exam_id,
            student_name=student.name,
            exam_date=student.exam_date,
            correct_count=student.correct_count,
            score=round(student.score, 1),
            rank=f"{rank} / {total}",
        )
        for student, rank in zip(students, ranks)
    ]

    question_stats = []
    for question in questions:
        taken = attempts[question.number]
        right = correct[question.number]
        errors = taken - right
        question_stats.append(
            QuestionStat(
                number=question.number,
                difficulty=question.difficulty,
                detail_type=question.detail_type,
                answer=question.answer,
                attempts=taken,
                correct=right,
                errors=errors,
                error_rate=round(errors / taken * 100, 1) if taken > 0 else 0.0,
            )
        )

    summary = ExamSummary(
        average=round(sum(s.score for s in students) / total, 1) if total else 0.0,
        max=round(students[0].score, 1) if total else 0.0,
        student_count=total,
    )
    return ExamReport(exam_id=exam_id, results=results, question_stats=question_stats, summary=summary)
