import pandas as pd

SUBJECT = "공통수학1"
EXAM_ID = "M1"
BOOK_NAME = "쎈"

POLYNOMIAL = {"대단원": "다항식", "중단원": "다항식의 연산", "소단원": "다항식의 덧셈", "세부 유형": "동류항 정리"}
EQUATION = {"대단원": "방정식", "중단원": "이차방정식", "소단원": "근의 공식", "세부 유형": "근의 공식 활용"}

SAMPLE_CATALOG = [
    {"시험 ID/교재명": EXAM_ID, "번호": 1, "정답": 3, "난이도": "상", "정답율": 42.5, "과목": SUBJECT, **POLYNOMIAL},
    {"시험 ID/교재명": EXAM_ID, "번호": 2, "정답": 1, "난이도": "중", "정답율": 61.0, "과목": SUBJECT, **POLYNOMIAL},
    {"시험 ID/교재명": EXAM_ID, "번호": 3, "정답": 4, "난이도": "하", "정답율": 83.2, "과목": SUBJECT, **EQUATION},
    {"시험 ID/교재명": BOOK_NAME, "번호": 15, "정답": 2, "난이도": "상", "정답율": 38.0, "과목": SUBJECT, **POLYNOMIAL},
    {"시험 ID/교재명": BOOK_NAME, "번호": 16, "정답": 5, "난이도": "중", "정답율": 55.0, "과목": SUBJECT, **POLYNOMIAL},
    {"시험 ID/교재명": BOOK_NAME, "번호": 17, "정답": 1, "난이도": "하", "정답율": 77.0, "과목": SUBJECT, **EQUATION},
]

SAMPLE_CLASSIFICATION = [
    {"과목명": SUBJECT, **POLYNOMIAL},
    {"과목명": SUBJECT, **EQUATION},
]

SAMPLE_TEST_RESPONSES = [
    {
        "타임스탬프": "2024-03-04 09:00:00",
        "이메일 주소": "minjun@example.com",
        "학년": "고1",
        "이름": "김민준",
        "시험 ID": EXAM_ID,
        "문제 답안 입력 [1번]": "3",
        "문제 답안 입력 [2번]": "1",
        "문제 답안 입력 [3번]": "4",
    },
    {
        "타임스탬프": "2024-03-04 09:05:00",
        "이메일 주소": "seoyeon@example.com",
        "학년": "고1",
        "이름": "이서연",
        "시험 ID": EXAM_ID,
        "문제 답안 입력 [1번]": "2",
        "문제 답안 입력 [2번]": "1",
        "문제 답안 입력 [3번]": "4",
    },
    {
        "타임스탬프": "2024-03-04 09:10:00",
        "이메일 주소": "",
        "학년": "",
        "이름": "박지호",
        "시험 ID": f"[{EXAM_ID}] ",
        "문제 답안 입력 [1번]": "3",
        "문제 답안 입력 [2번]": "",
        "문제 답안 입력 [3번]": "1",
    },
]

SAMPLE_TEXTBOOK_RESPONSES = [
    {
        "타임스탬프": "2024-03-05 10:00:00",
        "이름": "김민준",
        "교재명": BOOK_NAME,
        "과목명": SUBJECT,
        "문제 자릿수": "15-17",
        "문제 답안 입력 [1번]": "2",
        "문제 답안 입력 [2번]": "5",
        "문제 답안 입력 [3번]": "3",
    },
]


def load_sample_catalog() -> pd.DataFrame:
    return pd.DataFrame(SAMPLE_CATALOG)


def load_sample_test_responses() -> pd.DataFrame:
    return pd.DataFrame(SAMPLE_TEST_RESPONSES)
