import re
from typing import Dict, Mapping, Pattern

# Answer columns look like "문제 답안 입력 [12번]".
ANSWER_PATTERN = re.compile(r"^문제 답안 입력 \[(\d+)번]")


def extract_answers(row: Mapping[str, object], pattern: Pattern[str] = ANSWER_PATTERN) -> Dict[int, object]:
    """Map question ordinal -> raw cell value for every answer column in ``row``.

    Columns that do not match, or whose capture is not a number, are ignored.
    Values are returned unparsed; blank cells are kept so callers can tell
    "answered nothing" apart from "column absent".
    """
    answers: Dict[int, object] = {}
    for header, value in row.items():
        match = pattern.match(str(header))
        if not match:
            continue
        try:
            number = int(match.group(1))
        except (IndexError, ValueError):
            continue
        answers[number] = value
    return answers
