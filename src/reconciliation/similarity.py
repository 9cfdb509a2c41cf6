"""Name similarity scoring.

Provides the character-overlap heuristic used by the match resolver and
a Jaro-Winkler alternative backed by RapidFuzz. Both return integer
scores on a 0-100 scale.
"""

import math
from enum import Enum

from rapidfuzz.distance import JaroWinkler

from src.reconciliation.normalizer import normalize

# Score when one normalized name contains the other ("Chef Steve" vs "Steve")
CONTAINMENT_SCORE = 75


class SimilarityAlgorithm(str, Enum):
    """Versioned similarity algorithms.

    Switching algorithms changes every fuzzy score, so it is a
    configuration decision rather than a drop-in fix.
    """

    CHARACTER_OVERLAP = "character_overlap"
    JARO_WINKLER = "jaro_winkler"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's round() uses banker's rounding (round(59.5) == 60 but
    round(60.5) == 60); scores need 60.5 -> 61.
    """
    return math.floor(value + 0.5)


def similarity(a: str | None, b: str | None) -> int:
    """Character-overlap similarity between two names (0-100).

    1. Empty after normalization -> 0
    2. Equal -> 100
    3. One contains the other -> 75
    4. Otherwise the share of characters of the shorter string found
       anywhere in the longer one, relative to the longer length.

    Step 4 is a bag-of-characters check, not edit distance: characters of
    the longer string can be counted for several positions.

    Args:
        a: First name string
        b: Second name string

    Returns:
        Integer similarity from 0 to 100
    """
    na = normalize(a)
    nb = normalize(b)
    if not na or not nb:
        return 0
    if na == nb:
        return 100
    if na in nb or nb in na:
        return CONTAINMENT_SCORE

    if len(na) > len(nb):
        longer, shorter = na, nb
    else:
        longer, shorter = nb, na
    matches = sum(1 for char in shorter if char in longer)
    return round_half_up(matches / len(longer) * 100)


def jaro_winkler_similarity(a: str | None, b: str | None) -> int:
    """Jaro-Winkler similarity between two names (0-100)."""
    na = normalize(a)
    nb = normalize(b)
    if not na or not nb:
        return 0
    if na == nb:
        return 100
    return round_half_up(JaroWinkler.normalized_similarity(na, nb) * 100)


_ALGORITHMS = {
    SimilarityAlgorithm.CHARACTER_OVERLAP: similarity,
    SimilarityAlgorithm.JARO_WINKLER: jaro_winkler_similarity,
}


class NameScorer:
    """Weighted first/last name scoring.

    Last name is weighted higher by default on the assumption that it is
    the more discriminating part of a name.
    """

    def __init__(
        self,
        algorithm: SimilarityAlgorithm = SimilarityAlgorithm.CHARACTER_OVERLAP,
        first_name_weight: float = 0.4,
        last_name_weight: float = 0.6,
    ):
        """Initialize scorer.

        Args:
            algorithm: Which similarity algorithm to use
            first_name_weight: Weight of the first-name score
            last_name_weight: Weight of the last-name score
        """
        self.algorithm = SimilarityAlgorithm(algorithm)
        self._similarity = _ALGORITHMS[self.algorithm]
        self._first_weight = first_name_weight
        self._last_weight = last_name_weight

    def similarity(self, a: str | None, b: str | None) -> int:
        """Score two strings with the configured algorithm."""
        return self._similarity(a, b)

    def combined(
        self,
        first_a: str | None,
        first_b: str | None,
        last_a: str | None,
        last_b: str | None,
    ) -> float:
        """Unrounded weighted name score between two people.

        The resolver compares this value against the threshold and between
        pool entries; only the reported confidence is rounded.
        """
        first_score = self.similarity(first_a, first_b)
        last_score = self.similarity(last_a, last_b)
        return self._first_weight * first_score + self._last_weight * last_score

    def weighted(
        self,
        first_a: str | None,
        first_b: str | None,
        last_a: str | None,
        last_b: str | None,
    ) -> int:
        """Weighted name score between two people.

        Args:
            first_a: First name of the first person
            first_b: First name of the second person
            last_a: Last name of the first person
            last_b: Last name of the second person

        Returns:
            round(first_weight * first_score + last_weight * last_score)
        """
        return round_half_up(self.combined(first_a, first_b, last_a, last_b))
