"""Header alias resolution for spreadsheet exports.

Exports from different form/sheet versions name the same field differently
("시험 ID", "시험ID", "시험 ID/교재명"...). Everything that reads a raw row goes
through this module so the rest of the pipeline only sees typed records.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from .models import DEFAULT_MAJOR_UNIT, DEFAULT_MINOR_UNIT, ExamResponse, Question, TextbookResponse
from .normalize import normalize_key, parse_answer, parse_float, parse_leading_int
from .responses import ANSWER_PATTERN, extract_answers

FIELD_ALIASES: Dict[str, List[str]] = {
    "catalog_id": ["시험 ID/교재명", "시험 ID", "시험ID"],
    "exam_id": ["시험 ID", "시험ID"],
    "subject": ["과목", "과목명"],
    "number": ["번호"],
    "answer": ["정답"],
    "difficulty": ["난이도"],
    "correct_rate": ["정답율", "정답률"],
    "major_unit": ["대단원"],
    "middle_unit": ["중단원"],
    "minor_unit": ["소단원"],
    "detail_type": ["세부 유형", "세부유형"],
    "timestamp": ["타임스탬프"],
    "name": ["이름"],
    "email": ["이메일 주소"],
    "grade": ["학년"],
    "book_name": ["교재명"],
    "book_subject": ["과목명", "과목"],
    "range": ["문제 자릿수"],
}

REQUIRED_CATALOG_FIELDS = ["catalog_id", "subject", "number", "answer", "difficulty", "detail_type"]


def resolve_field(row: Mapping[str, object], field: str) -> Optional[object]:
    """Return the first non-blank value among ``field``'s aliases."""
    for alias in FIELD_ALIASES[field]:
        value = row.get(alias)
        if normalize_key(value):
            return value
    return None


def has_field(columns: Iterable[str], field: str) -> bool:
    present = {str(col).strip() for col in columns}
    return any(alias in present for alias in FIELD_ALIASES[field])


def missing_catalog_fields(columns: Iterable[str]) -> List[str]:
    columns = list(columns)
    return [field for field in REQUIRED_CATALOG_FIELDS if not has_field(columns, field)]


def question_from_row(row: Mapping[str, object]) -> Optional[Question]:
    """Build a catalog Question; ``None`` when the row has no usable ordinal."""
    number = parse_leading_int(resolve_field(row, "number"))
    if number is None:
        return None
    return Question(
        source_id=normalize_key(resolve_field(row, "catalog_id")),
        number=number,
        answer=parse_answer(resolve_field(row, "answer")),
        difficulty=normalize_key(resolve_field(row, "difficulty")),
        subject=normalize_key(resolve_field(row, "subject")),
        major_unit=normalize_key(resolve_field(row, "major_unit")) or DEFAULT_MAJOR_UNIT,
        middle_unit=normalize_key(resolve_field(row, "middle_unit")) or DEFAULT_MINOR_UNIT,
        minor_unit=normalize_key(resolve_field(row, "minor_unit")) or DEFAULT_MINOR_UNIT,
        detail_type=normalize_key(resolve_field(row, "detail_type")),
        correct_rate=parse_float(resolve_field(row, "correct_rate")),
    )


def exam_response_from_row(row: Mapping[str, object]) -> ExamResponse:
    name = normalize_key(resolve_field(row, "name"))
    email = normalize_key(resolve_field(row, "email"))
    return ExamResponse(
        timestamp=resolve_field(row, "timestamp"),
        student_id=name or email,
        exam_id=normalize_key(resolve_field(row, "exam_id")),
        answers=extract_answers(row, ANSWER_PATTERN),
        email=email,
        grade=normalize_key(resolve_field(row, "grade")),
    )


def textbook_response_from_row(row: Mapping[str, object]) -> TextbookResponse:
    # "15-20" and "15번부터" both start at 15.
    start = parse_leading_int(resolve_field(row, "range"))
    return TextbookResponse(
        timestamp=resolve_field(row, "timestamp"),
        student_id=normalize_key(resolve_field(row, "name")),
        book_name=normalize_key(resolve_field(row, "book_name")),
        subject=normalize_key(resolve_field(row, "book_subject")),
        start_number=start if start is not None and start >= 0 else None,
        answers=extract_answers(row, ANSWER_PATTERN),
    )
