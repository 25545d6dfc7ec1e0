from dataclasses import dataclass, field
from typing import Dict, List, Mapping, NamedTuple, Optional

from .normalize import normalize_key, parse_float, parse_leading_int, to_iso_timestamp

HIGH = "상"
MID = "중"
LOW = "하"
DIFFICULTY_TIERS = (HIGH, MID, LOW)

TEST = "Test"
BOOK = "Book"

CORRECT_MARK = "O"
INCORRECT_MARK = "X"

# Tier score / display score for a tier without enough evidence.
INSUFFICIENT = -1.0

PATH_SEPARATOR = "|"
DEFAULT_MAJOR_UNIT = "미분류"
DEFAULT_MINOR_UNIT = "일반"


class SourceKey(NamedTuple):
    subject: str
    source_id: str

    @property
    def exam_key(self) -> str:
        return make_exam_key(self.subject, self.source_id)


class TransactionKey(NamedTuple):
    millis: int
    student_id: str
    exam_key: str
    question_number: int


class PairKey(NamedTuple):
    student_id: str
    detail_type: str


def make_exam_key(subject: str, source_id: str) -> str:
    return f"{subject}{PATH_SEPARATOR}{source_id}"


@dataclass(frozen=True)
class Question:
    source_id: str
    number: int
    answer: Optional[int]
    difficulty: str
    subject: str
    major_unit: str = DEFAULT_MAJOR_UNIT
    middle_unit: str = DEFAULT_MINOR_UNIT
    minor_unit: str = DEFAULT_MINOR_UNIT
    detail_type: str = ""
    correct_rate: float = 0.0

    @property
    def source_key(self) -> SourceKey:
        return SourceKey(self.subject, self.source_id)

    @property
    def exam_key(self) -> str:
        return make_exam_key(self.subject, self.source_id)

    @property
    def topic_path(self) -> str:
        return PATH_SEPARATOR.join([self.subject, self.major_unit, self.minor_unit, self.detail_type])


@dataclass(frozen=True)
class ExamResponse:
    timestamp: object
    student_id: str
    exam_id: str
    answers: Dict[int, object]
    email: str = ""
    grade: str = ""


@dataclass(frozen=True)
class TextbookResponse:
    timestamp: object
    student_id: str
    book_name: str
    subject: str
    start_number: Optional[int]
    answers: Dict[int, object]

    @property
    def source_key(self) -> SourceKey:
        return SourceKey(self.subject, self.book_name)


@dataclass(frozen=True)
class Transaction:
    date: str
    student_id: str
    exam_key: str
    question_number: int
    correct: bool
    kind: str
    weight: float
    score: float

    @property
    def result(self) -> str:
        return CORRECT_MARK if self.correct else INCORRECT_MARK

    def to_record(self) -> Dict[str, object]:
        return {
            "Date": self.date,
            "StudentID": self.student_id,
            "ExamID": self.exam_key,
            "QuestionNum": self.question_number,
            "Result": self.result,
            "Type": self.kind,
            "Weight": self.weight,
            "Score": self.score,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, object]) -> "Transaction":
        number = parse_leading_int(record.get("QuestionNum"))
        if number is None:
            raise ValueError(f"Transaction record has no question number: {dict(record)!r}")
        result = normalize_key(record.get("Result")).upper()
        return cls(
            date=to_iso_timestamp(record.get("Date")),
            student_id=normalize_key(record.get("StudentID")),
            exam_key=normalize_key(record.get("ExamID")),
            question_number=number,
            correct=result == CORRECT_MARK,
            kind=normalize_key(record.get("Type")) or TEST,
            weight=parse_float(record.get("Weight")),
            score=parse_float(record.get("Score")),
        )


TRANSACTION_COLUMNS = ["Date", "StudentID", "ExamID", "QuestionNum", "Result", "Type", "Weight", "Score"]


@dataclass(frozen=True)
class MasteryRecord:
    student_id: str
    detail_type: str
    score_high: float
    score_mid: float
    score_low: float
    total_attempts: int
    correct_answers: int
    accuracy: float
    last_updated: str
    display_score: float

    @property
    def key(self) -> PairKey:
        return PairKey(self.student_id, self.detail_type)

    @classmethod
    def reset(cls, key: PairKey, last_updated: str) -> "MasteryRecord":
        return cls(
            student_id=key.student_id,
            detail_type=key.detail_type,
            score_high=INSUFFICIENT,
            score_mid=INSUFFICIENT,
            score_low=INSUFFICIENT,
            total_attempts=0,
            correct_answers=0,
            accuracy=0.0,
            last_updated=last_updated,
            display_score=INSUFFICIENT,
        )

    def to_record(self) -> Dict[str, object]:
        # correct_answers stays internal.
        return {
            "StudentID": self.student_id,
            "DetailType": self.detail_type,
            "Score_High": round(self.score_high, 1),
            "Score_Mid": round(self.score_mid, 1),
            "Score_Low": round(self.score_low, 1),
            "Total_Attempts": self.total_attempts,
            "Accuracy": round(self.accuracy, 2),
            "Last_Updated": self.last_updated,
            "DisplayScore": round(self.display_score, 1),
        }

    @classmethod
    def from_record(cls, record: Mapping[str, object]) -> "MasteryRecord":
        attempts = parse_leading_int(record.get("Total_Attempts")) or 0
        accuracy = parse_float(record.get("Accuracy"))
        return cls(
            student_id=normalize_key(record.get("StudentID")),
            detail_type=normalize_key(record.get("DetailType")),
            score_high=parse_float(record.get("Score_High"), INSUFFICIENT),
            score_mid=parse_float(record.get("Score_Mid"), INSUFFICIENT),
            score_low=parse_float(record.get("Score_Low"), INSUFFICIENT),
            total_attempts=attempts,
            correct_answers=round(accuracy / 100 * attempts),
            accuracy=accuracy,
            last_updated=str(record.get("Last_Updated", "")),
            display_score=parse_float(record.get("DisplayScore"), INSUFFICIENT),
        )


LEDGER_COLUMNS = [
    "StudentID",
    "DetailType",
    "Score_High",
    "Score_Mid",
    "Score_Low",
    "Total_Attempts",
    "Accuracy",
    "Last_Updated",
    "DisplayScore",
]


@dataclass(frozen=True)
class ExamScore:
    exam_id: str
    student_name: str
    exam_date: str
    correct_count: int
    score: float
    rank: str

    def to_record(self) -> Dict[str, object]:
        return {
            "시험 ID": self.exam_id,
            "학생 이름": self.student_name,
            "시험 응시일": self.exam_date,
            "맞힌 개수": self.correct_count,
            "최종 점수": self.score,
            "석차": self.rank,
        }


EXAM_SCORE_COLUMNS = ["시험 ID", "학생 이름", "시험 응시일", "맞힌 개수", "최종 점수", "석차"]


@dataclass(frozen=True)
class QuestionStat:
    number: int
    difficulty: str
    detail_type: str
    answer: Optional[int]
    attempts: int
    correct: int
    errors: int
    error_rate: float

    def to_record(self) -> Dict[str, object]:
        return {
            "번호": self.number,
            "난이도": self.difficulty,
            "세부 유형": self.detail_type,
            "정답": self.answer,
            "전체 응시": self.attempts,
            "정답수": self.correct,
            "오답수": self.errors,
            "오답률": self.error_rate,
        }


QUESTION_STAT_COLUMNS = ["번호", "난이도", "세부 유형", "정답", "전체 응시", "정답수", "오답수", "오답률"]


@dataclass(frozen=True)
class ExamSummary:
    average: float = 0.0
    max: float = 0.0
    student_count: int = 0


@dataclass(frozen=True)
class ExamReport:
    exam_id: str
    results: List[ExamScore] = field(default_factory=list)
    question_stats: List[QuestionStat] = field(default_factory=list)
    summary: ExamSummary = field(default_factory=ExamSummary)

    @classmethod
    def empty(cls, exam_id: str) -> "ExamReport":
        return cls(exam_id=exam_id)

    @property
    def is_empty(self) -> bool:
        return not self.results

