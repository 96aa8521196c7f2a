"""Name normalization, name similarity and weighted person scoring."""

import math
import re
import unicodedata
from typing import Optional

from roster import ParsedPerson, ReferencePerson

LAST_NAME_WEIGHT = 0.6
FIRST_NAME_WEIGHT = 0.4
SHIRT_NUMBER_BONUS = 40

EXACT_SCORE = 100
# Containment and token overlap are capped below an exact match
PARTIAL_SCORE_CAP = 90

_DISALLOWED_RE = re.compile(r'[^a-z0-9\s]')
_WHITESPACE_RE = re.compile(r'\s+')


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def normalize(raw: Optional[str]) -> str:
    """Canonicalize a name for comparison.

    Lower-cases, strips diacritics via NFD decomposition, drops anything
    outside ``[a-z0-9 ]`` and collapses whitespace. The result is only used
    for comparing; display names are never rewritten.

    Args:
        raw: Raw name string, may be None.

    Returns:
        Normalized string, empty for empty input.
    """
    if not raw:
        return ''
    decomposed = unicodedata.normalize('NFD', raw.lower())
    stripped = ''.join(ch for ch in decomposed if unicodedata.category(ch) != 'Mn')
    stripped = _DISALLOWED_RE.sub('', stripped)
    return _WHITESPACE_RE.sub(' ', stripped).strip()


def _tokens(value: str) -> list[str]:
    return [t for t in value.split(' ') if len(t) > 1]


def _tokens_related(a: str, b: str) -> bool:
    return a == b or a in b or b in a


def _count_token_hits(tokens_a: list[str], tokens_b: list[str]) -> int:
    """Count tokens of *a* paired with a distinct related token of *b*.

    Each token is used at most once on either side. The pairing is a
    maximum bipartite matching so that the count does not depend on
    argument order.
    """
    owner: dict[int, int] = {}

    def assign(i: int, seen: set[int]) -> bool:
        for j, tok in enumerate(tokens_b):
            if j in seen or not _tokens_related(tokens_a[i], tok):
                continue
            seen.add(j)
            if j not in owner or assign(owner[j], seen):
                owner[j] = i
                return True
        return False

    return sum(1 for i in range(len(tokens_a)) if assign(i, set()))


def similarity(a: Optional[str], b: Optional[str]) -> int:
    """Score how alike two names are on a 0–100 scale.

    Cascade: exact match, then substring containment, then token overlap
    for reordered or partially missing name parts.

    Args:
        a: First name string (raw or normalized).
        b: Second name string (raw or normalized).

    Returns:
        Integer similarity between 0 and 100.
    """
    n1 = normalize(a)
    n2 = normalize(b)

    if not n1 or not n2:
        return 0
    if n1 == n2:
        return EXACT_SCORE

    if n1 in n2 or n2 in n1:
        shorter, longer = sorted((n1, n2), key=len)
        return round_half_up(len(shorter) / len(longer) * PARTIAL_SCORE_CAP)

    tokens1 = _tokens(n1)
    tokens2 = _tokens(n2)
    if not tokens1 or not tokens2:
        return 0

    hits = _count_token_hits(tokens1, tokens2)
    total = max(len(tokens1), len(tokens2))
    return round_half_up(hits / total * PARTIAL_SCORE_CAP)


def person_score(
    ocr: ParsedPerson,
    ref: ReferencePerson,
    use_shirt_numbers: bool = False,
) -> float:
    """Weighted identity score of an OCR entry against a reference entry.

    Last name counts 60 %, first name 40 %. When the reference source
    provides shirt numbers, an equal number adds ``SHIRT_NUMBER_BONUS``.

    Args:
        ocr: Entry parsed from the scoresheet.
        ref: Entry from the reference roster.
        use_shirt_numbers: Whether the shirt-number contributor is active.

    Returns:
        Unrounded score; may exceed 100 with the shirt-number bonus.
    """
    score = (
        LAST_NAME_WEIGHT * similarity(ocr.last_name, ref.last_name)
        + FIRST_NAME_WEIGHT * similarity(ocr.first_name, ref.first_name)
    )
    if (
        use_shirt_numbers
        and ocr.shirt_number is not None
        and ref.shirt_number is not None
        and ocr.shirt_number == ref.shirt_number
    ):
        score += SHIRT_NUMBER_BONUS
    return score
