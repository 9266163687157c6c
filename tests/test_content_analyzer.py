"""Tests for app.services.content_analyzer."""

import pytest

from app.services.content_analyzer import (
    analyze_content,
    compare_quality,
    find_issues,
    readability_score,
)

_PROSE = (
    "The service stores your notes. It keeps them safe. "
    "You can search them later. Every note has a title and a body."
)

_CODE = (
    "export const CONFIG_DEFAULT_VALUES = { retries: [1, 2, 3] };\n\n"
    "function load() { return import('x'); }"
)


class TestAnalyzeContent:
    def test_plain_text(self):
        stats = analyze_content("First paragraph.\n\nSecond paragraph.")
        assert stats.total_characters == len("First paragraph.\n\nSecond paragraph.")
        assert stats.paragraph_count == 2
        assert stats.average_paragraph_length == pytest.approx(stats.total_characters / 2)
        assert stats.has_structured_data is False
        assert stats.content_type == "text"

    def test_empty_text_has_no_division_error(self):
        stats = analyze_content("")
        assert stats.paragraph_count == 0
        assert stats.average_paragraph_length == 0

    def test_blank_paragraphs_are_not_counted(self):
        assert analyze_content("One\n\n   \n\nTwo").paragraph_count == 2

    def test_structured_data_without_api(self):
        stats = analyze_content('Result: {"id": 1}')
        assert stats.has_structured_data is True
        assert stats.content_type == "structured_data"

    def test_square_brackets_count_as_structure(self):
        assert analyze_content("Items [a, b]").has_structured_data is True

    def test_api_docs_needs_structure_and_api(self):
        assert analyze_content('GET /users returns {"id": 1}. See the API guide.').content_type == "api_docs"
        assert analyze_content("Read the API guide.").content_type == "text"

    def test_stats_are_immutable(self):
        stats = analyze_content("text")
        with pytest.raises(Exception):
            stats.total_characters = 1


class TestFindIssues:
    def test_clean_prose_has_no_issues(self):
        assert find_issues(_PROSE) == []

    def test_detects_uppercase_runs(self):
        assert "Long uppercase sequences" in find_issues("Set MAX_RETRY_COUNT in the file.")

    def test_detects_programming_keywords(self):
        assert "Contains programming keywords" in find_issues("Then return the value.")

    def test_keyword_inside_word_is_ignored(self):
        assert "Contains programming keywords" not in find_issues("Write a letter to the team.")

    def test_detects_bracket_density(self):
        assert "High density of brackets" in find_issues("f(a)[b]{c}")

    def test_detects_excessive_paragraph_breaks(self):
        assert "Excessive paragraph breaks" in find_issues("a\n\nb\n\nc")


class TestReadabilityScore:
    def test_short_sentences_score_higher(self):
        assert readability_score("Go. Run. Stop.") > readability_score("This is one rather long sentence about things.")

    def test_empty_text(self):
        assert readability_score("") == 1.0


class TestCompareQuality:
    def test_single_sample(self):
        quality = compare_quality([_PROSE])
        assert quality.best_index == 0
        assert quality.issues == []
        assert quality.is_likely_code is False

    def test_prefers_fewest_issues(self):
        quality = compare_quality([_CODE, _PROSE])
        assert quality.best_index == 1

    def test_code_sample_is_flagged(self):
        quality = compare_quality([_CODE])
        assert quality.is_likely_code is True
        assert len(quality.issues) > 1

    def test_readability_breaks_issue_ties(self):
        long_sentence = "This sample is one single long sentence without many stops at all"
        short_sentences = "Short one. Another one. And more."
        assert compare_quality([long_sentence, short_sentences]).best_index == 1

    def test_earliest_index_wins_full_ties(self):
        assert compare_quality([_PROSE, _PROSE, _PROSE]).best_index == 0

    @pytest.mark.parametrize("count", [1, 2, 5])
    def test_best_index_in_bounds(self, count):
        samples = [f"Sample number {i}. It is fine." for i in range(count)]
        assert 0 <= compare_quality(samples).best_index < count

    def test_empty_input_rejected(self):
        with pytest.raises(ValueError):
            compare_quality([])
