"""
Tests for Grepsight fuzzy search.

Tests cover:
- Levenshtein distance properties
- Acceptance rules (containment, length difference, half-length bound)
- Best word per line
- Result shape and multi-unit search
"""

import pytest

from grepsight.tools.config import CancelToken
from grepsight.tools.errors import InputError, SearchCancelled
from grepsight.tools.fuzzy import FuzzyMatcher, levenshtein, search_fuzzy
from grepsight.tools.units import unit_from_text


class TestLevenshtein:
    """Tests for levenshtein()."""

    @pytest.mark.parametrize("a,b,expected", [
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("", "abc", 3),
        ("same", "same", 0),
    ])
    def test_known_values(self, a, b, expected):
        assert levenshtein(a, b) == expected

    def test_symmetric(self):
        assert levenshtein("config", "cnofig") == levenshtein("cnofig", "config")


class TestFuzzyMatcher:
    """Tests for FuzzyMatcher scoring."""

    def test_containment_is_exact(self):
        assert FuzzyMatcher("config").score("configs") == 0
        assert FuzzyMatcher("config").score("CONFIGURATION") == 0

    def test_within_distance(self):
        assert FuzzyMatcher("config").score("confg") == 1

    def test_length_difference_limit(self):
        assert FuzzyMatcher("config", max_edit_distance=2).score("conf") == 2
        assert FuzzyMatcher("config", max_edit_distance=1).score("conf") is None

    def test_half_length_bound(self):
        """A distance above half the shorter length is rejected."""
        matcher = FuzzyMatcher("abc", max_edit_distance=2)
        assert matcher.score("abd") == 1
        assert matcher.score("axd") is None

    @pytest.mark.parametrize("pattern", ["", "   ", None])
    def test_empty_pattern(self, pattern):
        with pytest.raises(InputError):
            FuzzyMatcher(pattern)

    def test_negative_distance(self):
        with pytest.raises(InputError):
            FuzzyMatcher("config", max_edit_distance=-1)

    def test_best_is_lowest_distance(self):
        candidate = FuzzyMatcher("config").best_candidate("confg then config")
        assert candidate.word == "config"
        assert candidate.distance == 0
        assert candidate.position == 11

    def test_tie_goes_to_leftmost(self):
        candidate = FuzzyMatcher("hello").best_candidate("hallo hullo")
        assert (candidate.word, candidate.position) == ("hallo", 0)

    def test_short_words_skipped(self):
        candidate = FuzzyMatcher("cat").best_candidate("ca cat")
        assert candidate.position == 3


class TestSearchText:
    """Tests for FuzzyMatcher.search_text()."""

    def test_typo_tolerant_match(self):
        results = FuzzyMatcher("config").search_text("my configs here")
        assert len(results) == 1
        data = results[0].to_dict()["match"]
        assert data["line_number"] == 1
        assert data["tags"] == ["fuzzy_match"]
        assert data["captures"] == [["configs"]]
        assert data["insights"] == {}
        assert data["enrichment"]["edit_distance"] == 0
        assert data["enrichment"]["match_position"] == 3
        assert 0 < data["enrichment"]["similarity"] <= 100

    def test_one_result_per_line(self):
        results = FuzzyMatcher("config").search_text("config confg\nnothing\nconfig\n")
        assert [r.line_number for r in results] == [1, 3]
        assert results[0].context_after == "nothing"

    def test_exact_word_similarity(self):
        result = FuzzyMatcher("config").search_text("config")[0]
        assert result.enrichment["similarity"] == 100

    def test_rejects_non_string(self):
        with pytest.raises(InputError):
            FuzzyMatcher("config").search_text(b"config")


class TestSearchFuzzy:
    """Tests for search_fuzzy()."""

    def test_one_group_per_unit(self):
        units = [
            unit_from_text("setings file", identifier="a.txt"),
            unit_from_text("nothing", identifier="b.txt"),
        ]
        groups = search_fuzzy(units, "settings")
        assert [g.unit.identifier for g in groups] == ["a.txt", "b.txt"]
        assert groups[0].matches[0].source_identifier == "a.txt"
        assert groups[0].matches[0].enrichment["edit_distance"] == 1
        assert groups[1].matches == ()

    def test_rejects_non_units(self):
        with pytest.raises(InputError):
            search_fuzzy(["text"], "config")

    def test_cancelled(self):
        token = CancelToken()
        token.cancel()
        with pytest.raises(SearchCancelled):
            search_fuzzy([unit_from_text("config")], "config", token=token)
