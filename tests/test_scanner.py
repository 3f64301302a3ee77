"""
Tests for the Grepsight scanner.

Tests cover:
- Line matching, context and captures
- Soundness and completeness over every line
- stop_at_first_match and ignore_case
- Invalid patterns and malformed units
- Processor failures contained to the match
- Concurrent scanning order and cancellation
"""

import re

import pytest

from grepsight.tools.config import CancelToken, SearchOptions
from grepsight.tools.errors import InputError, PatternError, SearchCancelled
from grepsight.tools.processors.base import InsightProcessor
from grepsight.tools.scanner import captures_for, compile_pattern, search
from grepsight.tools.units import unit_from_text

from conftest import only_match


# =============================================================================
# FIXTURES
# =============================================================================

class ExplodingProcessor:
    """Processor whose analyze() raises."""

    label = "Boom"

    def analyze(self, unit, match):
        raise RuntimeError("kaboom")


class FragileProcessor(InsightProcessor):
    """InsightProcessor that fails on lines containing 'bad'."""

    label = "Fragile"

    def extract_insights(self, unit, match):
        if "bad" in match.line:
            raise KeyError("missing")
        return {"ok": True}


class CancellingProcessor(InsightProcessor):
    """Cancels the shared token on the first match it sees."""

    label = "Cancelling"

    def __init__(self, token):
        self.token = token

    def extract_insights(self, unit, match):
        self.token.cancel()
        return {}


# =============================================================================
# TESTS
# =============================================================================

class TestBasicSearch:
    """Tests for plain regex search."""

    def test_single_match_with_context(self):
        """A match reports its line, nearest context and generic enrichment."""
        groups = search([unit_from_text("hello world\nruby is awesome\n")], "ruby")
        result = only_match(groups)

        assert result.line_number == 2
        assert result.line == "ruby is awesome"
        assert result.context_before == "hello world"
        assert result.context_after is None
        assert result.to_dict()["match"]["captures"] == [["ruby"]]
        assert result.tags == ()
        assert dict(result.insights) == {}
        assert dict(result.enrichment) == {"capture_count": 1, "context_density": 1}

    def test_first_line_has_no_before(self):
        result = only_match(search([unit_from_text("ruby\nnext\n")], "ruby"))
        assert result.context_before is None
        assert result.context_after == "next"

    def test_sound_and_complete(self):
        """Exactly the lines the regex matches come back, in line order."""
        text = "alpha 1\nbeta\ngamma 22\ndelta\nepsilon 333\n"
        regex = re.compile(r"\d+")
        groups = search([unit_from_text(text)], regex)

        expected = [i + 1 for i, line in enumerate(text.splitlines()) if regex.search(line)]
        assert [r.line_number for r in groups[0].matches] == expected
        assert all(regex.search(r.line) for r in groups[0].matches)

    def test_no_match_gives_empty_group(self):
        groups = search([unit_from_text("nothing here")], "absent")
        assert len(groups) == 1
        assert groups[0].matches == ()

    def test_empty_unit(self):
        assert search([unit_from_text("")], "x")[0].matches == ()

    def test_single_unit_accepted(self):
        assert len(search(unit_from_text("a"), "a")) == 1

    def test_stop_at_first_match(self):
        groups = search(
            [unit_from_text("x 1\nx 2\nx 3\n")], "x",
            SearchOptions(stop_at_first_match=True),
        )
        assert [r.line_number for r in groups[0].matches] == [1]

    def test_ignore_case(self):
        groups = search([unit_from_text("Ruby\n")], "ruby", SearchOptions(ignore_case=True))
        assert len(groups[0].matches) == 1

    def test_crlf_lines(self):
        result = only_match(search([unit_from_text("a\r\nruby\r\nb\r\n")], "ruby"))
        assert result.line == "ruby"
        assert result.context_before == "a"

    def test_identifier_and_type_on_results(self):
        unit = unit_from_text("needle", declared_type="txt", identifier="notes.txt")
        result = only_match(search([unit], "needle"))
        assert result.source_identifier == "notes.txt"
        assert result.declared_type == "txt"

    def test_unknown_type_gets_empty_insights(self):
        unit = unit_from_text("some text here", declared_type="unknown")
        result = only_match(search([unit], "text"))
        assert dict(result.insights) == {}


class TestCaptures:
    """Tests for capture collection."""

    def test_every_occurrence(self):
        assert captures_for(re.compile(r"(\d+)"), "a 1 b 22") == [["1"], ["22"]]

    def test_whole_match_without_groups(self):
        assert captures_for(re.compile(r"ru\w+"), "ruby rules") == [["ruby"], ["rules"]]

    def test_unmatched_group_is_empty_string(self):
        assert captures_for(re.compile(r"(a)(z)?"), "a") == [["a", ""]]

    def test_capture_count(self):
        result = only_match(search([unit_from_text("a1 b2")], r"(\w)(\d)"))
        assert result.enrichment["capture_count"] == 4


class TestInvalidInput:
    """Tests for pattern and unit validation."""

    def test_invalid_pattern(self):
        with pytest.raises(PatternError) as exc:
            search([unit_from_text("x")], "(unclosed")
        assert exc.value.pattern == "(unclosed"

    def test_pattern_checked_before_units(self):
        """A bad pattern is reported even when the units are bad too."""
        with pytest.raises(PatternError):
            search(["not a unit"], "[")

    def test_non_unit_entry(self):
        with pytest.raises(InputError):
            search([unit_from_text("x"), "raw string"], "x")

    def test_string_instead_of_units(self):
        with pytest.raises(InputError):
            search("plain text", "x")

    def test_non_string_pattern(self):
        with pytest.raises(InputError):
            compile_pattern(42)


class TestProcessorFailures:
    """A failing processor only affects the match it failed on."""

    def test_raising_analyze(self, registry):
        registry = registry.copy()
        registry.register("boom", ExplodingProcessor())
        unit = unit_from_text("first hit\nsecond hit\n", declared_type="boom")

        groups = search([unit], "hit", registry=registry)
        assert len(groups[0].matches) == 2
        for result in groups[0].matches:
            assert dict(result.insights) == {"error": "Boom processing error: kaboom"}
            assert "capture_count" in result.enrichment

    def test_failure_contained_to_line(self, registry):
        registry = registry.copy()
        registry.register("fragile", FragileProcessor())
        unit = unit_from_text("good line\nbad line\ngood again\n", declared_type="fragile")

        results = search([unit], "line|again", registry=registry)[0].matches
        assert dict(results[0].insights) == {"ok": True}
        assert results[1].insights["error"].startswith("Fragile processing error:")
        assert dict(results[2].insights) == {"ok": True}

    def test_other_units_unaffected(self, registry):
        registry = registry.copy()
        registry.register("boom", ExplodingProcessor())
        units = [
            unit_from_text("hit", declared_type="boom"),
            unit_from_text('{"k": "hit"}', declared_type="json"),
        ]
        groups = search(units, "(hit)", registry=registry)
        assert "error" in groups[0].matches[0].insights
        assert dict(groups[1].matches[0].insights) == {"json_path": 'data["k"]'}


class TestConcurrency:
    """Tests for worker pools and cancellation."""

    def test_workers_keep_input_order(self):
        units = [unit_from_text(f"line {i}\nmatch {i}\n", identifier=f"u{i}") for i in range(8)]
        sequential = search(units, "match")
        parallel = search(units, "match", SearchOptions(workers=4))

        assert [g.unit.identifier for g in parallel] == [f"u{i}" for i in range(8)]
        assert [g.to_dict() for g in parallel] == [g.to_dict() for g in sequential]

    def test_cancelled_token(self):
        token = CancelToken()
        token.cancel()
        with pytest.raises(SearchCancelled):
            search([unit_from_text("x")], "x", token=token)

    def test_cancel_mid_unit(self, registry):
        token = CancelToken()
        registry = registry.copy()
        registry.register("txt", CancellingProcessor(token))
        with pytest.raises(SearchCancelled):
            search([unit_from_text("x\nx\nx\n")], "x", registry=registry, token=token)

    def test_repeatable(self):
        """Two runs over the same unit give equal results."""
        unit = unit_from_text('{"name": "Ruby", "url": "https://ruby.org"}', declared_type="json")
        first = search([unit], r"(Ruby)")
        second = search([unit], r"(Ruby)")
        assert first[0].matches == second[0].matches
