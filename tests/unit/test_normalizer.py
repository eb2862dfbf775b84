"""
Unit tests for ResponseNormalizer.

Covers fence stripping, syntactic repair, array boundary extraction and the
single quote-repair pass.
"""

import json

import pytest

from opportunity_scanner.errors import ParseError
from opportunity_scanner.normalizer import (
    ResponseNormalizer,
    extract_array,
    repair_inner_quotes,
    repair_syntax,
    strip_code_fences,
)


class TestNormalizationSteps:
    """Tests for the individual cleanup steps."""

    def test_strip_fence_with_language_tag(self):
        """Test that a ```json fence is removed on both ends."""
        assert strip_code_fences('```json\n[1, 2]\n```') == '[1, 2]'

    def test_strip_fence_without_language_tag(self):
        """Test that a bare ``` fence is removed."""
        assert strip_code_fences('```\n[1]\n```') == '[1]'

    def test_strip_fence_leaves_plain_text(self):
        """Test that unfenced text is unchanged."""
        assert strip_code_fences('[{"a": 1}]') == '[{"a": 1}]'

    def test_repair_removes_trailing_commas(self):
        """Test trailing commas before ] and } are dropped."""
        assert repair_syntax('[{"a": 1,}, {"b": 2},]') == '[{"a": 1}, {"b": 2}]'

    def test_repair_collapses_whitespace(self):
        """Test that newlines and whitespace runs become single spaces."""
        assert repair_syntax('[\n  {"a":\t\t"x  y"}\n]') == '[ {"a": "x y"} ]'

    def test_extract_array_discards_prose(self):
        """Test that text outside the outermost brackets is dropped."""
        assert extract_array('Sure! [1, [2]] Hope this helps.') == '[1, [2]]'

    def test_extract_array_without_brackets_raises(self):
        """Test that missing brackets raise ParseError."""
        with pytest.raises(ParseError):
            extract_array('{"title": "no array"}')

    def test_repair_inner_quotes(self):
        """Test that a quote nested inside a string value is escaped."""
        broken = '[{"title": "The "smart" assistant", "priority": 5}]'
        repaired = repair_inner_quotes(broken)

        assert json.loads(repaired)[0]["title"] == 'The "smart" assistant'

    def test_repair_inner_quotes_keeps_valid_json(self):
        """Test that already valid JSON is unchanged by the repair pattern."""
        valid = '[{"title": "Plain", "description": "He said \\"hi\\"", "n": 1}]'
        assert repair_inner_quotes(valid) == valid


class TestResponseNormalizer:
    """Tests for the full normalization sequence."""

    @pytest.fixture
    def normalizer(self):
        return ResponseNormalizer()

    @pytest.fixture
    def records(self):
        return [
            {"title": "A", "description": "First", "impact": "High", "effort": "Low", "priority": 8},
            {"title": "B", "description": "Second", "impact": "Low", "effort": "Low", "priority": 3},
        ]

    def test_plain_array(self, normalizer, records):
        """Test that a clean JSON array parses unchanged."""
        assert normalizer.normalize(json.dumps(records)) == records

    def test_fenced_array_with_trailing_comma_matches_clean_input(self, normalizer, records):
        """Test that fence + trailing comma normalizes identically to clean input."""
        clean = json.dumps(records, indent=2)
        wrapped = "```json\n" + clean[:-1].rstrip() + ",\n]\n```"

        assert normalizer.normalize(wrapped) == normalizer.normalize(clean)

    def test_prose_around_array(self, normalizer, records):
        """Test that commentary before and after the array is ignored."""
        text = "Here is the analysis you asked for:\n" + json.dumps(records) + "\nLet me know!"
        assert normalizer.normalize(text) == records

    def test_unescaped_quote_is_repaired(self, normalizer):
        """Test that a single unescaped quote is recovered by the repair pass."""
        text = '[{"title": "Smart "Concierge" bot", "priority": 4}]'
        result = normalizer.normalize(text)

        assert result[0]["title"] == 'Smart "Concierge" bot'

    def test_embedded_newlines_are_collapsed(self, normalizer):
        """Test that newlines inside string values become spaces."""
        text = '[{"title": "Line one\nline two"}]'
        assert normalizer.normalize(text)[0]["title"] == "Line one line two"

    def test_empty_response_raises(self, normalizer):
        """Test that an empty response raises ParseError."""
        with pytest.raises(ParseError):
            normalizer.normalize("   ")

    def test_unrecoverable_json_raises_with_preview(self, normalizer):
        """Test that unrecoverable text raises ParseError with a bounded preview."""
        text = "[" + "{not json at all} " * 50 + "]"

        with pytest.raises(ParseError) as excinfo:
            normalizer.normalize(text)

        assert 0 < len(excinfo.value.preview) <= 200
        assert excinfo.value.preview.startswith("[{not json")

    def test_no_array_raises(self, normalizer):
        """Test that a JSON object instead of an array raises ParseError."""
        with pytest.raises(ParseError):
            normalizer.normalize('{"title": "single object"}')
