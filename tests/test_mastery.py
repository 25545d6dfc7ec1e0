import pytest

from performance_analyzer.catalog import QuestionCatalog
from performance_analyzer.config import AnalysisConfig
from performance_analyzer.mastery import aggregate_mastery, difficulty_index, display_score, tier_score
from performance_analyzer.models import BOOK, HIGH, INSUFFICIENT, LOW, MID, TEST, MasteryRecord, PairKey, Question

NOW = "2024-04-01T00:00:00.000Z"


def _dates(n):
    return [f"2024-03-{day:02d}T09:00:00.000Z" for day in range(1, n + 1)]


def test_tier_needs_enough_test_transactions(make_transaction):
    config = AnalysisConfig(min_test_count=2)
    dates = _dates(6)
    evidence = [make_transaction(dates[0], True, kind=TEST)]
    evidence += [make_transaction(date, True, kind=BOOK) for date in dates[1:]]

    assert tier_score(evidence, config) == INSUFFICIENT
    assert tier_score([], config) == INSUFFICIENT


def test_recency_window_only_counts_newest(make_transaction):
    d1, d2, d3, d4, d5 = _dates(5)
    # Fed out of time order; the two newest (d4 wrong, d5 right) are neither
    # the heaviest nor the first two given.
    evidence = [
        make_transaction(d3, False, weight=0.8),
        make_transaction(d5, True, weight=0.8),
        make_transaction(d1, True, weight=1.2),
        make_transaction(d4, False, weight=1.0),
        make_transaction(d2, True, weight=1.2),
    ]
    assert difficulty_index(evidence, recent_count=2) == pytest.approx(-0.2 / 1.8)
    assert difficulty_index(evidence, recent_count=5) == pytest.approx(1.4 / 5.0)
    assert tier_score(evidence, AnalysisConfig(recent_count=2)) == pytest.approx(-0.2 / 1.8 * 50 + 50)


def test_difficulty_index_is_weighted(make_transaction):
    dates = _dates(2)
    evidence = [make_transaction(dates[0], True, weight=1.2), make_transaction(dates[1], False, weight=0.8)]
    assert difficulty_index(evidence, recent_count=5) == pytest.approx(0.4 / 2.0)


def test_book_evidence_blends_in(make_transaction):
    dates = _dates(2)
    evidence = [make_transaction(dates[0], True, kind=TEST), make_transaction(dates[1], False, kind=BOOK)]
    assert tier_score(evidence, AnalysisConfig()) == pytest.approx(70.0)


def test_display_score_skips_sentinel_tiers():
    ratio = {HIGH: 1.0, MID: 1.0, LOW: 1.0}
    assert display_score({HIGH: 80.0, MID: 60.0, LOW: INSUFFICIENT}, ratio) == pytest.approx(70.0)
    assert display_score({HIGH: INSUFFICIENT, MID: INSUFFICIENT, LOW: INSUFFICIENT}, ratio) == INSUFFICIENT
    assert display_score({HIGH: 90.0, MID: 60.0, LOW: 30.0}, {HIGH: 2.0, MID: 1.0, LOW: 0.0}) == pytest.approx(80.0)


def test_aggregate_builds_tier_scores_per_detail_type(make_transaction):
    catalog = QuestionCatalog(
        [
            Question("M1", 1, 1, HIGH, "수학", detail_type="기울기"),
            Question("M1", 2, 1, MID, "수학", detail_type="기울기"),
            Question("M1", 3, 1, LOW, "수학", detail_type="절편"),
        ]
    )
    log = [
        make_transaction("2024-03-01T09:00:00.000Z", True, number=1, weight=1.2),
        make_transaction("2024-03-01T09:00:00.000Z", False, number=2, weight=1.0),
        make_transaction("2024-03-02T09:00:00.000Z", True, number=3, weight=0.8),
    ]

    ledger = {r.detail_type: r for r in aggregate_mastery(log, catalog, AnalysisConfig(), NOW)}

    slope = ledger["기울기"]
    assert slope.score_high == 100.0
    assert slope.score_mid == 0.0
    assert slope.score_low == INSUFFICIENT
    assert slope.display_score == pytest.approx(50.0)
    assert slope.total_attempts == 2
    assert slope.accuracy == pytest.approx(50.0)
    assert slope.last_updated == "2024-03-01T09:00:00.000Z"
    assert ledger["절편"].last_updated == "2024-03-02T09:00:00.000Z"


def test_prior_pairs_without_evidence_are_reset():
    prior = MasteryRecord(
        student_id="s1",
        detail_type="기울기",
        score_high=90.0,
        score_mid=80.0,
        score_low=70.0,
        total_attempts=12,
        correct_answers=10,
        accuracy=83.33,
        last_updated="2024-03-01T09:00:00.000Z",
        display_score=80.0,
    )

    ledger = aggregate_mastery([], QuestionCatalog([]), AnalysisConfig(), NOW, prior_ledger=[prior])

    assert ledger == [MasteryRecord.reset(PairKey("s1", "기울기"), NOW)]
    assert ledger[0].to_record()["DisplayScore"] == -1.0
