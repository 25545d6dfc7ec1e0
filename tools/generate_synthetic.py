#!/usr/bin/env python3
"""Generate a synthetic question catalog and response exports for demos.

Usage:
    python tools/generate_synthetic.py --output-dir data/synthetic --students 40 --exams 3 --seed 42

Writes question_db.csv, responses.csv and textbook.csv in the same header
layout as the real form exports. Students get a hidden ability per detail
type so mastery scores spread out, and a few students improve over time.
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Dict, Iterable, List

import numpy as np
import pandas as pd

SUBJECT = "공통수학1"
BOOK_NAME = "쎈"
BOOK_START = 101
ANSWER_HEADER = "문제 답안 입력 [{}번]"

# (major, middle, minor, detail type)
UNITS = [
    ("다항식", "다항식의 연산", "다항식의 덧셈", "동류항 정리"),
    ("다항식", "다항식의 연산", "다항식의 곱셈", "곱셈 공식"),
    ("다항식", "나머지정리", "나머지정리", "나머지 구하기"),
    ("방정식", "복소수", "복소수의 연산", "켤레복소수"),
    ("방정식", "이차방정식", "근의 공식", "근의 공식 활용"),
    ("방정식", "이차방정식", "판별식", "판별식 활용"),
]
TIERS = ["상", "중", "하"]
TIER_PROBS = [0.25, 0.45, 0.30]
# Added to a student's ability on each tier; harder questions are missed more.
TIER_OFFSET = {"상": -0.25, "중": 0.0, "하": 0.2}


def _catalog_rows(source_id: str, numbers: Iterable[int], rng: np.random.Generator) -> List[Dict[str, object]]:
    rows = []
    for number in numbers:
        major, middle, minor, detail = UNITS[rng.integers(len(UNITS))]
        rows.append(
            {
                "시험 ID/교재명": source_id,
                "번호": int(number),
                "정답": int(rng.integers(1, 6)),
                "난이도": str(rng.choice(TIERS, p=TIER_PROBS)),
                "정답율": round(float(rng.uniform(20, 95)), 1),
                "과목": SUBJECT,
                "대단원": major,
                "중단원": middle,
                "소단원": minor,
                "세부 유형": detail,
            }
        )
    return rows


def _answer(question: Dict[str, object], ability: float, rng: np.random.Generator) -> str:
    if rng.random() < 0.03:
        return ""
    p_correct = float(np.clip(ability + TIER_OFFSET[str(question["난이도"])], 0.05, 0.98))
    if rng.random() < p_correct:
        return str(question["정답"])
    wrong = [choice for choice in range(1, 6) if choice != question["정답"]]
    return str(rng.choice(wrong))


def generate_synthetic_dataset(
    output_dir: Path,
    n_students: int = 40,
    n_exams: int = 3,
    questions_per_exam: int = 20,
    seed: int = 42,
) -> Dict[str, pd.DataFrame]:
    if n_students < 1 or n_exams < 1 or questions_per_exam < 1:
        raise ValueError("students, exams and questions per exam must be positive")

    rng = np.random.default_rng(seed)

    exam_ids = [f"M{i}" for i in range(1, n_exams + 1)]
    catalog_rows: List[Dict[str, object]] = []
    for exam_id in exam_ids:
        catalog_rows.extend(_catalog_rows(exam_id, range(1, questions_per_exam + 1), rng))
    book_numbers = range(BOOK_START, BOOK_START + questions_per_exam * 2)
    catalog_rows.extend(_catalog_rows(BOOK_NAME, book_numbers, rng))
    catalog = pd.DataFrame(catalog_rows)

    students = [f"학생{i:03d}" for i in range(1, n_students + 1)]
    improving = set(rng.choice(students, size=max(1, n_students // 5), replace=False))
    details = sorted({unit[3] for unit in UNITS})
    start = pd.Timestamp("2024-03-04 09:00:00")

    exam_questions = {exam_id: [row for row in catalog_rows if row["시험 ID/교재명"] == exam_id] for exam_id in exam_ids}
    book_questions = [row for row in catalog_rows if row["시험 ID/교재명"] == BOOK_NAME]

    response_rows = []
    textbook_rows = []
    for index, student in enumerate(students):
        ability = {detail: float(rng.normal(0.6, 0.15)) for detail in details}
        grade = str(rng.choice(["고1", "고2"]))
        for exam_idx, exam_id in enumerate(exam_ids):
            boost = 0.08 * exam_idx if student in improving else 0.0
            taken_at = start + pd.Timedelta(days=7 * exam_idx, minutes=index)
            row = {
                "타임스탬프": taken_at.strftime("%Y-%m-%d %H:%M:%S"),
                "이메일 주소": f"student{index + 1:03d}@example.com",
                "학년": grade,
                "이름": student,
                "시험 ID": exam_id,
            }
            for question in exam_questions[exam_id]:
                row[ANSWER_HEADER.format(question["번호"])] = _answer(question, ability[str(question["세부 유형"])] + boost, rng)
            response_rows.append(row)

            # One textbook block per week, somewhere inside the book's range.
            block = min(int(rng.integers(5, 11)), len(book_questions))
            offset = int(rng.integers(0, len(book_questions) - block + 1))
            practiced = book_questions[offset : offset + block]
            book_row = {
                "타임스탬프": (taken_at + pd.Timedelta(days=2)).strftime("%Y-%m-%d %H:%M:%S"),
                "이름": student,
                "교재명": BOOK_NAME,
                "과목명": SUBJECT,
                "문제 자릿수": f"{practiced[0]['번호']}-{practiced[-1]['번호']}",
            }
            for relative, question in enumerate(practiced, start=1):
                book_row[ANSWER_HEADER.format(relative)] = _answer(question, ability[str(question["세부 유형"])] + boost, rng)
            textbook_rows.append(book_row)

    tables = {
        "question_db": catalog,
        "responses": pd.DataFrame(response_rows),
        "textbook": pd.DataFrame(textbook_rows),
    }

    output_dir.mkdir(parents=True, exist_ok=True)
    for name, df in tables.items():
        df.to_csv(output_dir / f"{name}.csv", index=False, encoding="utf-8-sig")
    return tables


def main(argv: Iterable[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Generate synthetic catalog and response exports for demos")
    parser.add_argument("--output-dir", type=Path, default=Path("data/synthetic"), help="Where to write the CSV files")
    parser.add_argument("--students", type=int, default=40, help="Number of synthetic students")
    parser.add_argument("--exams", type=int, default=3, help="Number of exams")
    parser.add_argument("--questions", type=int, default=20, help="Questions per exam")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args(list(argv) if argv is not None else None)

    generate_synthetic_dataset(
        args.output_dir,
        n_students=args.students,
        n_exams=args.exams,
        questions_per_exam=args.questions,
        seed=args.seed,
    )
    print(f"Synthetic dataset written to {args.output_dir}")


if __name__ == "__main__":
    main()
