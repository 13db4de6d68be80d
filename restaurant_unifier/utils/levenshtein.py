"""
Bounded Levenshtein (edit) distance.

Every fuzzy decision in the unifier goes through this module, so it is kept
free of configuration and safe to call from concurrently running mappers.
"""

import unicodedata
from typing import Optional, Tuple


def strip_diacritics(text: str) -> str:
    """Removes combining accents: "Bogotá" -> "Bogota"."""
    decomposed = unicodedata.normalize('NFD', text)
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def _prepare(a: str, b: str, case_sensitive: bool, normalize_diacritics: bool) -> Tuple[str, str]:
    if not case_sensitive:
        a, b = a.lower(), b.lower()
    if normalize_diacritics:
        a, b = strip_diacritics(a), strip_diacritics(b)
    return a, b


def _edit_distance(shorter: str, longer: str, max_distance: Optional[int]) -> int:
    # Two rows sized by the shorter string
    m = len(shorter)
    prev = list(range(m + 1))
    curr = [0] * (m + 1)

    for j, char_b in enumerate(longer, start=1):
        curr[0] = j
        row_min = j
        for i in range(1, m + 1):
            cost = 0 if shorter[i - 1] == char_b else 1
            value = min(prev[i] + 1, curr[i - 1] + 1, prev[i - 1] + cost)
            curr[i] = value
            if value < row_min:
                row_min = value

        # Row minimum never decreases on later rows
        if max_distance is not None and row_min > max_distance:
            return max_distance + 1

        prev, curr = curr, prev

    if max_distance is not None and prev[m] > max_distance:
        return max_distance + 1
    return prev[m]


def levenshtein(
    a: str,
    b: str,
    max_distance: Optional[int] = None,
    case_sensitive: bool = False,
    normalize_diacritics: bool = False,
) -> int:
    """
    Computes the edit distance between two strings.

    Args:
        a: First string.
        b: Second string.
        max_distance: Optional cap. Once the true distance provably exceeds it,
            ``max_distance + 1`` is returned instead of the exact value, so any
            result above the cap must be read as "no match".
        case_sensitive: When False (default) both strings are lower-cased first.
        normalize_diacritics: When True accents are stripped first.

    Returns:
        int: The distance, or ``max_distance + 1`` when the cap is exceeded.

    Examples:
        >>> levenshtein("wings", "wngs")
        1
        >>> levenshtein("kitten", "sitting", max_distance=1)
        2
    """
    a, b = _prepare(a, b, case_sensitive, normalize_diacritics)

    if a == b:
        return 0
    if not a:
        return len(b) if max_distance is None else min(len(b), max_distance + 1)
    if not b:
        return len(a) if max_distance is None else min(len(a), max_distance + 1)

    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)

    if max_distance is not None and len(longer) - len(shorter) > max_distance:
        return max_distance + 1

    return _edit_distance(shorter, longer, max_distance)
