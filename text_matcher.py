"""
Approximate word matching against a plain word list.

Every word-list entry is scored against the token with a Levenshtein distance
and the best MATCH_LIMIT entries are kept in a fixed-size ranked list of
SuggestItem slots, the same item type the symspell lookups return.
"""

import math
from typing import Iterable, List

from symspellpy.editdistance import DistanceAlgorithm, EditDistance
from symspellpy.suggest_item import SuggestItem

MATCH_LIMIT = 5
EMPTY_DISTANCE = math.inf
UNBOUNDED = 2**31 - 1

_distance_comparer = EditDistance(DistanceAlgorithm.LEVENSHTEIN)


def levenshtein_distance(s1: str, s2: str, max_distance: int = UNBOUNDED) -> int:
    """
    Minimum number of single-character insertions, deletions and
    substitutions needed to turn s1 into s2.

    Returns -1 when the distance is greater than max_distance.
    """
    return _distance_comparer.compare(s1, s2, max_distance)


def empty_candidates(limit: int = MATCH_LIMIT) -> List[SuggestItem]:
    return [SuggestItem("", EMPTY_DISTANCE, 0) for _ in range(limit)]


def is_filled(item: SuggestItem) -> bool:
    """A slot only holds a word while its distance is finite."""
    return item.distance != EMPTY_DISTANCE


def has_exact_match(token: str, candidates: List[SuggestItem]) -> bool:
    return any(item.distance == 0 and item.term == token for item in candidates)


class TopKMatcher:
    """
    Ranks every entry of a word list against one token.

    The result always has exactly `limit` slots sorted by ascending distance.
    A new entry goes into the first slot whose distance is strictly greater,
    so on equal distance the entry seen first keeps its place.

    Args:
        limit: Number of ranked slots to keep
    """

    def __init__(self, limit: int = MATCH_LIMIT):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit

    def lookup(self, token: str, words: Iterable[str]) -> List[SuggestItem]:
        """Scan `words` in order and return the ranked candidate slots."""
        candidates = empty_candidates(self.limit)
        token_len = len(token)

        for word in words:
            worst = candidates[-1].distance
            # Distance is never below the length difference
            if abs(len(word) - token_len) >= worst:
                continue

            # Only distances strictly below the last slot can enter the list
            max_distance = UNBOUNDED if worst == EMPTY_DISTANCE else int(worst) - 1
            distance = levenshtein_distance(token, word, max_distance)
            if distance < 0:
                continue

            for k, slot in enumerate(candidates):
                if distance < slot.distance:
                    candidates.insert(k, SuggestItem(word, distance, 0))
                    candidates.pop()
                    break

        return candidates
