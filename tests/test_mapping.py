from performance_analyzer.mapping import (
    exam_response_from_row,
    missing_catalog_fields,
    question_from_row,
    resolve_field,
    textbook_response_from_row,
)
from performance_analyzer.models import DEFAULT_MAJOR_UNIT, DEFAULT_MINOR_UNIT
from performance_analyzer.responses import extract_answers


def test_extract_answers_matches_numbered_columns_only():
    row = {
        "타임스탬프": "2024-03-04 09:00:00",
        "문제 답안 입력 [1번]": "3",
        "문제 답안 입력 [12번]": "",
        "문제 답안 입력 [가번]": "5",
        "메모": "x",
    }
    assert extract_answers(row) == {1: "3", 12: ""}


def test_extract_answers_without_answer_columns_is_empty():
    assert extract_answers({"이름": "김민준"}) == {}


def test_resolve_field_skips_blank_aliases():
    row = {"시험 ID": "", "시험ID": "M2"}
    assert resolve_field(row, "exam_id") == "M2"
    assert resolve_field({"이름": "a"}, "exam_id") is None


def test_question_from_row_defaults_units():
    question = question_from_row(
        {"시험ID": "[M1]", "번호": "3", "정답": 4.0, "난이도": "하", "과목": "수학", "세부 유형": "근의 공식 활용"}
    )
    assert question.source_id == "M1"
    assert question.number == 3
    assert question.answer == 4
    assert question.major_unit == DEFAULT_MAJOR_UNIT
    assert question.minor_unit == DEFAULT_MINOR_UNIT
    assert question.topic_path == "수학|미분류|일반|근의 공식 활용"


def test_question_from_row_without_number_is_skipped():
    assert question_from_row({"시험 ID": "M1", "번호": ""}) is None


def test_missing_catalog_fields_lists_logical_names():
    assert missing_catalog_fields(["시험 ID", "번호", "정답"]) == ["subject", "difficulty", "detail_type"]


def test_exam_response_falls_back_to_email():
    response = exam_response_from_row(
        {"타임스탬프": "2024-03-04", "이메일 주소": "a@example.com", "시험 ID": "[M1]", "문제 답안 입력 [1번]": "2"}
    )
    assert response.student_id == "a@example.com"
    assert response.exam_id == "M1"
    assert response.answers == {1: "2"}


def test_textbook_response_reads_range_start():
    response = textbook_response_from_row(
        {"이름": "김민준", "교재명": "쎈", "과목명": "공통수학1", "문제 자릿수": "15-20", "문제 답안 입력 [1번]": "2"}
    )
    assert response.start_number == 15
    assert response.source_key == ("공통수학1", "쎈")

    missing = textbook_response_from_row({"이름": "김민준", "교재명": "쎈", "과목명": "공통수학1", "문제 자릿수": ""})
    assert missing.start_number is None
