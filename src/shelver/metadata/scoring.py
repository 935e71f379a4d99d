# ABOUTME: Similarity scoring for (title, author) pairs on a 0-100 scale.
# ABOUTME: Longest-common-substring percentage per field, weighted 60% title / 40% author.

from difflib import SequenceMatcher

# Match weights, must sum to 1.0
_WEIGHT_TITLE = 0.6
_WEIGHT_AUTHOR = 0.4

# Minimum pair score for accepting a fuzzy catalog match.
CATALOG_MIN_SCORE = 55.0
# Default minimum pair score for accepting an external provider result.
EXTERNAL_MIN_SCORE = 62.0


def _common_length(a: bytes, b: bytes) -> int:
    """Total length of common substrings found by recursive longest-match splitting.

    Finds the longest common substring, then recurses on the pieces to its
    left and to its right. SequenceMatcher breaks ties on the earliest
    position in `a`, then in `b`.
    """
    if not a or not b:
        return 0
    matcher = SequenceMatcher(None, a, b, autojunk=False)
    i, j, size = matcher.find_longest_match(0, len(a), 0, len(b))
    if size == 0:
        return 0
    return size + _common_length(a[:i], b[:j]) + _common_length(a[i + size :], b[j + size :])


def similar_text(a: str, b: str) -> float:
    """Percentage similarity of two strings, 0.0 to 100.0.

    Computed on UTF-8 bytes as 2 * common / (len(a) + len(b)) * 100, so
    stored confidence values stay comparable across implementations.
    Two empty strings score 0.
    """
    a_bytes = a.encode("utf-8")
    b_bytes = b.encode("utf-8")
    total = len(a_bytes) + len(b_bytes)
    if total == 0:
        return 0.0
    return _common_length(a_bytes, b_bytes) * 2 * 100 / total


def score_pair(
    candidate_title: str,
    candidate_author: str,
    target_title: str,
    target_author: str,
) -> float:
    """Confidence that two normalized (title, author) pairs denote the same work."""
    title_score = similar_text(candidate_title, target_title)
    author_score = similar_text(candidate_author, target_author)
    return min(100.0, _WEIGHT_TITLE * title_score + _WEIGHT_AUTHOR * author_score)
