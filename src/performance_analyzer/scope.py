from typing import Iterable, List, Sequence

from .catalog import QuestionCatalog
from .models import Transaction


def in_scope(topic_path: str, prefixes: Iterable[str]) -> bool:
    """True when ``topic_path`` starts with any selected prefix.

    Prefixes may name a whole subject ("수학"), a major unit ("수학|함수") or a
    minor unit ("수학|함수|일차함수"). An empty selection selects nothing.
    """
    if not topic_path:
        return False
    return any(topic_path.startswith(prefix) for prefix in prefixes)


def filter_transactions(transactions: Sequence[Transaction], catalog: QuestionCatalog, prefixes: Iterable[str]) -> List[Transaction]:
    """Return the in-scope subset of ``transactions`` as a new list.

    Transactions whose question is no longer in the catalog are out of scope.
    """
    selected = tuple(prefixes)
    kept = []
    for transaction in transactions:
        question = catalog.question_for(transaction)
        if question is not None and in_scope(question.topic_path, selected):
            kept.append(transaction)
    return kept
