"""Per-student, per-detail-type mastery ledger.

Every affected (student, detail type) pair is recomputed from scratch out of
the scope-filtered transaction log. Nothing is patched field by field, so a
scope change retroactively adds or removes evidence.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Sequence

from .catalog import QuestionCatalog
from .config import AnalysisConfig
from .models import BOOK, DIFFICULTY_TIERS, HIGH, INSUFFICIENT, LOW, MID, TEST, MasteryRecord, PairKey, Transaction
from .normalize import timestamp_millis

logger = logging.getLogger(__name__)

TEST_SHARE = 0.7
BOOK_SHARE = 0.3


def difficulty_index(transactions: Sequence[Transaction], recent_count: int) -> float:
    """Weighted recent accuracy in roughly [-1, 1].

    Only the ``recent_count`` newest transactions count. Returns 0 when there
    is no weight to divide by.
    """
    if not transactions:
        return 0.0
    newest_first = sorted(transactions, key=lambda t: timestamp_millis(t.date), reverse=True)
    recent = newest_first[:recent_count]
    weight_sum = sum(t.weight for t in recent)
    if weight_sum == 0:
        return 0.0
    return sum(t.score for t in recent) / weight_sum


def tier_score(transactions: Sequence[Transaction], config: AnalysisConfig) -> float:
    """0-100 score for one difficulty tier, or the sentinel when evidence is thin.

    Only Test transactions count toward ``min_test_count``; Book practice
    alone never qualifies a tier.
    """
    if not transactions:
        return INSUFFICIENT
    tests = [t for t in transactions if t.kind == TEST]
    if len(tests) < config.min_test_count:
        return INSUFFICIENT
    books = [t for t in transactions if t.kind == BOOK]

    index = difficulty_index(tests, config.recent_count)
    if books:
        index = TEST_SHARE * index + BOOK_SHARE * difficulty_index(books, config.recent_count)
    return index * 50 + 50


def display_score(tier_scores: Mapping[str, float], ratio: Mapping[str, float]) -> float:
    """Ratio-weighted mean over the tiers that have a score."""
    weighted = 0.0
    ratio_sum = 0.0
    for tier in DIFFICULTY_TIERS:
        score = tier_scores.get(tier, INSUFFICIENT)
        if score < 0:
            continue
        weighted += score * ratio[tier]
        ratio_sum += ratio[tier]
    return weighted / ratio_sum if ratio_sum > 0 else INSUFFICIENT


def compute_mastery_record(
    key: PairKey,
    transactions: Sequence[Transaction],
    catalog: QuestionCatalog,
    config: AnalysisConfig,
    now: str,
) -> MasteryRecord:
    if not transactions:
        return MasteryRecord.reset(key, now)

    by_tier: Dict[str, List[Transaction]] = {tier: [] for tier in DIFFICULTY_TIERS}
    for transaction in transactions:
        question = catalog.question_for(transaction)
        if question is not None and question.difficulty in by_tier:
            by_tier[question.difficulty].append(transaction)

    scores = {tier: tier_score(by_tier[tier], config) for tier in DIFFICULTY_TIERS}

    total = len(transactions)
    correct = sum(1 for t in transactions if t.correct)
    latest = max(transactions, key=lambda t: timestamp_millis(t.date))

    return MasteryRecord(
        student_id=key.student_id,
        detail_type=key.detail_type,
        score_high=scores[HIGH],
        score_mid=scores[MID],
        score_low=scores[LOW],
        total_attempts=total,
        correct_answers=correct,
        accuracy=correct / total * 100,
        last_updated=latest.date,
        display_score=display_score(scores, config.difficulty_ratio),
    )


def group_by_pair(transactions: Iterable[Transaction], catalog: QuestionCatalog) -> Dict[PairKey, List[Transaction]]:
    groups: Dict[PairKey, List[Transaction]] = {}
    for transaction in transactions:
        question = catalog.question_for(transaction)
        if question is None:
            continue
        groups.setdefault(PairKey(transaction.student_id, question.detail_type), []).append(transaction)
    return groups


def aggregate_mastery(
    filtered_log: Sequence[Transaction],
    catalog: QuestionCatalog,
    config: AnalysisConfig,
    now: str,
    prior_ledger: Iterable[MasteryRecord] = (),
) -> List[MasteryRecord]:
    """Recompute the ledger for every pair in the filtered log or the prior ledger.

    ``filtered_log`` must already be scope-filtered. Prior pairs with no
    remaining evidence come back as reset records stamped ``now``.
    """
    groups = group_by_pair(filtered_log, catalog)
    pairs = dict.fromkeys(groups)
    for record in prior_ledger:
        pairs.setdefault(record.key, None)

    ledger = [compute_mastery_record(key, groups.get(key, []), catalog, config, now) for key in pairs]
    resets = sum(1 for record in ledger if record.total_attempts == 0)
    logger.info("Recomputed %d mastery records (%d without in-scope evidence)", len(ledger), resets)
    return ledger
