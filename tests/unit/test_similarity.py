# ABOUTME: Unit tests for the similar_text percentage and the weighted pair score.
# ABOUTME: Reference values match the classic similar_text algorithm.

import pytest

from shelver.metadata.scoring import (
    CATALOG_MIN_SCORE,
    EXTERNAL_MIN_SCORE,
    score_pair,
    similar_text,
)


class TestSimilarText:
    """Tests for similar_text."""

    def test_identical(self) -> None:
        assert similar_text("dune", "dune") == 100.0

    def test_both_empty(self) -> None:
        assert similar_text("", "") == 0.0

    def test_one_empty(self) -> None:
        assert similar_text("dune", "") == 0.0

    def test_reference_values(self) -> None:
        """Known results of the recursive common-substring algorithm."""
        assert similar_text("World", "Word") == pytest.approx(88.8888, abs=1e-3)
        assert similar_text("Hello World", "Hello PHP World") == pytest.approx(84.6153, abs=1e-3)

    def test_disjoint(self) -> None:
        assert similar_text("abc", "xyz") == 0.0

    def test_symmetric_for_simple_case(self) -> None:
        assert similar_text("the hobbit", "hobbit") == similar_text("hobbit", "the hobbit")


class TestScorePair:
    """Tests for score_pair."""

    def test_exact_match(self) -> None:
        assert score_pair("dune", "frank herbert", "dune", "frank herbert") == 100.0

    def test_title_weight(self) -> None:
        """Title similarity carries 60% of the score."""
        assert score_pair("dune", "abc", "dune", "xyz") == pytest.approx(60.0)

    def test_author_weight(self) -> None:
        """Author similarity carries 40% of the score."""
        assert score_pair("abc", "frank herbert", "xyz", "frank herbert") == pytest.approx(40.0)

    def test_in_range(self) -> None:
        score = score_pair("the hobbit", "tolkien", "the hobbit illustrated", "j r r tolkien")
        assert 0.0 <= score <= 100.0

    def test_thresholds(self) -> None:
        assert CATALOG_MIN_SCORE == 55.0
        assert EXTERNAL_MIN_SCORE == 62.0
