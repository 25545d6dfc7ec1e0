import copy

import pandas as pd
import pytest

from performance_analyzer.catalog import QuestionCatalog, all_sub_unit_paths, build_classification_tree
from performance_analyzer.config import AnalysisConfig
from performance_analyzer.models import TEST, Transaction
from performance_analyzer.sample_data import (
    SAMPLE_CATALOG,
    SAMPLE_CLASSIFICATION,
    SAMPLE_TEST_RESPONSES,
    SAMPLE_TEXTBOOK_RESPONSES,
    load_sample_catalog,
    load_sample_test_responses,
)


@pytest.fixture()
def catalog():
    return QuestionCatalog.from_records(SAMPLE_CATALOG)


@pytest.fixture()
def config():
    return AnalysisConfig().with_scope(all_sub_unit_paths(build_classification_tree(SAMPLE_CLASSIFICATION)))


@pytest.fixture()
def test_rows():
    return copy.deepcopy(SAMPLE_TEST_RESPONSES)


@pytest.fixture()
def textbook_rows():
    return copy.deepcopy(SAMPLE_TEXTBOOK_RESPONSES)


@pytest.fixture()
def sample_csv_paths(tmp_path):
    paths = {
        "catalog": tmp_path / "question_db.csv",
        "responses": tmp_path / "responses.csv",
        "textbook": tmp_path / "textbook.csv",
        "classification": tmp_path / "classification.csv",
    }
    load_sample_catalog().to_csv(paths["catalog"], index=False)
    load_sample_test_responses().to_csv(paths["responses"], index=False)
    pd.DataFrame(SAMPLE_TEXTBOOK_RESPONSES).to_csv(paths["textbook"], index=False)
    pd.DataFrame(SAMPLE_CLASSIFICATION).to_csv(paths["classification"], index=False)
    return paths


@pytest.fixture()
def make_transaction():
    def factory(date, correct, kind=TEST, weight=1.0, number=1, student="s1", exam_key="수학|M1"):
        return Transaction(
            date=date,
            student_id=student,
            exam_key=exam_key,
            question_number=number,
            correct=correct,
            kind=kind,
            weight=weight,
            score=weight if correct else -weight,
        )

    return factory
