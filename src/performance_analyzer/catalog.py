from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .mapping import question_from_row, resolve_field
from .models import (
    DEFAULT_MAJOR_UNIT,
    DEFAULT_MINOR_UNIT,
    PATH_SEPARATOR,
    Question,
    SourceKey,
    Transaction,
)
from .normalize import normalize_key

logger = logging.getLogger(__name__)

ClassificationTree = Dict[str, Dict[str, List[str]]]


class QuestionCatalog:
    """Question reference data, pre-indexed for the lookups the pipeline makes."""

    def __init__(self, questions: Iterable[Question]):
        self._questions: List[Question] = list(questions)
        self._by_exam_id: Dict[str, List[Question]] = {}
        self._by_source: Dict[SourceKey, Dict[int, Question]] = {}
        self._by_exam_key: Dict[Tuple[str, int], Question] = {}

        for question in self._questions:
            self._by_exam_id.setdefault(question.source_id, []).append(question)
            # Later duplicates of the same (subject, id, number) win.
            self._by_source.setdefault(question.source_key, {})[question.number] = question
            self._by_exam_key[(question.exam_key, question.number)] = question

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, object]]) -> "QuestionCatalog":
        questions = []
        skipped = 0
        for row in records:
            question = question_from_row(row)
            if question is None:
                skipped += 1
                continue
            questions.append(question)
        if skipped:
            logger.warning("Skipped %d catalog rows without a question number", skipped)
        return cls(questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self):
        return iter(self._questions)

    @property
    def questions(self) -> List[Question]:
        return list(self._questions)

    def questions_for_exam(self, exam_id: str) -> List[Question]:
        """All questions whose id matches ``exam_id``, across subjects, in catalog order."""
        return list(self._by_exam_id.get(normalize_key(exam_id), []))

    def source_questions(self, key: SourceKey) -> Dict[int, Question]:
        return dict(self._by_source.get(key, {}))

    def resolve_exam_source(self, exam_id: str) -> Optional[SourceKey]:
        """The (subject, exam id) a test response refers to.

        Test responses do not carry a subject; the subject of the exam's first
        catalog question is used.
        """
        questions = self._by_exam_id.get(normalize_key(exam_id))
        if not questions:
            return None
        return questions[0].source_key

    def lookup(self, exam_key: str, number: int) -> Optional[Question]:
        return self._by_exam_key.get((exam_key, number))

    def question_for(self, transaction: Transaction) -> Optional[Question]:
        return self.lookup(transaction.exam_key, transaction.question_number)

    def sub_unit_paths(self) -> List[str]:
        """Distinct ``subject|major|minor`` paths in catalog order."""
        seen: Dict[str, None] = OrderedDict()
        for question in self._questions:
            seen.setdefault(PATH_SEPARATOR.join([question.subject, question.major_unit, question.minor_unit]), None)
        return list(seen)

    def detail_type_units(self) -> Dict[str, Tuple[str, str, str]]:
        """Map detail type -> (subject, major unit, middle unit); first question wins."""
        units: Dict[str, Tuple[str, str, str]] = {}
        for question in self._questions:
            units.setdefault(question.detail_type, (question.subject, question.major_unit, question.middle_unit))
        return units


def build_classification_tree(records: Iterable[Mapping[str, object]]) -> ClassificationTree:
    """Subject -> major unit -> minor units, preserving first-seen order."""
    tree: ClassificationTree = OrderedDict()
    for row in records:
        subject = normalize_key(resolve_field(row, "book_subject")) or DEFAULT_MAJOR_UNIT
        major = normalize_key(resolve_field(row, "major_unit")) or DEFAULT_MAJOR_UNIT
        minor = normalize_key(resolve_field(row, "minor_unit")) or DEFAULT_MINOR_UNIT
        minors = tree.setdefault(subject, OrderedDict()).setdefault(major, [])
        if minor not in minors:
            minors.append(minor)
    return tree


def all_sub_unit_paths(tree: ClassificationTree) -> List[str]:
    return [
        PATH_SEPARATOR.join([subject, major, minor])
        for subject, majors in tree.items()
        for major, minors in majors.items()
        for minor in minors
    ]


def classification_order(records: Sequence[Mapping[str, object]]) -> Dict[str, int]:
    """Map every path prefix to the index of the first taxonomy row that mentions it."""
    order: Dict[str, int] = {}
    for index, row in enumerate(records):
        parts = [
            normalize_key(resolve_field(row, "book_subject")) or DEFAULT_MAJOR_UNIT,
            normalize_key(resolve_field(row, "major_unit")) or DEFAULT_MAJOR_UNIT,
            normalize_key(resolve_field(row, "minor_unit")) or DEFAULT_MINOR_UNIT,
            normalize_key(resolve_field(row, "detail_type")),
        ]
        for depth in range(1, len(parts) + 1):
            order.setdefault(PATH_SEPARATOR.join(parts[:depth]), index)
    return order
