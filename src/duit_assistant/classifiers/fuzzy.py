from collections.abc import Iterable

from rapidfuzz.distance import Levenshtein

from duit_assistant.models import FuzzyMatch

DEFAULT_THRESHOLD = 0.7


def levenshtein_distance(first: str, second: str) -> int:
    return Levenshtein.distance(first, second)


def string_similarity(first: str, second: str) -> float:
    """1.0 for identical strings, falling towards 0.0 as edits approach the longer length."""
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    return 1 - levenshtein_distance(first, second) / longest


def find_best_match(
    value: str,
    candidates: Iterable[str],
    threshold: float = DEFAULT_THRESHOLD,
) -> FuzzyMatch | None:
    best: FuzzyMatch | None = None
    for candidate in candidates:
        similarity = string_similarity(value, candidate)
        if similarity < threshold:
            continue
        # Strictly greater keeps the earliest candidate on ties.
        if best is None or similarity > best.similarity:
            best = FuzzyMatch(candidate=candidate, similarity=similarity)
    return best
