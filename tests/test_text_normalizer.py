"""
Unit tests for extracted-text normalization
"""
import pytest

from app.services.text_normalizer import normalize, repair_word_boundaries, strip_artifacts


class TestArtifacts:
    def test_deletes_placeholder_glyphs(self):
        """Box and replacement characters are removed, not turned into spaces"""
        assert normalize("data\u25a1base") == "database"
        assert normalize("co\ufffdoperate") == "cooperate"

    def test_deletes_soft_hyphen_and_zero_width(self):
        assert normalize("infor\u00admation") == "information"
        assert normalize("zero\u200bwidth") == "zerowidth"

    def test_non_breaking_space_becomes_space(self):
        assert strip_artifacts("a\u00a0b") == "a b"

    def test_ligatures(self):
        """Typographic ligatures are expanded"""
        assert normalize("ﬁnd the ﬂow of traﬃc") == "find the flow of traffic"
        assert normalize("oﬀer") == "offer"


class TestWhitespace:
    def test_collapses_runs(self):
        assert normalize("  one \n\n two\t\tthree  ") == "one two three"

    @pytest.mark.parametrize("raw", ["", "   ", "\n\t \u00a0"])
    def test_blank_input(self, raw):
        assert normalize(raw) == ""


class TestWordBoundaries:
    @pytest.mark.parametrize("raw,expected", [
        ("helloWorld", "hello World"),
        ("chapter12", "chapter 12"),
        ("12pages", "12 pages"),
        ("end.Next", "end. Next"),
        ("first,second", "first, second"),
        ("ratio:value", "ratio: value"),
        ("(note)text", "(note) text"),
        ("word(aside)", "word (aside)"),
    ])
    def test_lost_spaces_are_restored(self, raw, expected):
        assert normalize(raw) == expected

    def test_acronyms_stay_joined(self):
        """An uppercase run followed by lowercase is not split"""
        assert normalize("ABCdef") == "ABCdef"
        assert normalize("NASA") == "NASA"

    def test_camel_after_lowercase_splits(self):
        assert repair_word_boundaries("xAbc") == "x Abc"

    def test_capital_keeps_rest_of_word(self):
        """A camel-case capital is split from the previous word only, never from its own tail"""
        assert normalize("matrixDeterminantEquals zero") == "matrix Determinant Equals zero"
        assert normalize("theCalvinCycle") == "the Calvin Cycle"

    def test_keywords_from_camel_case_text(self):
        from app.services.content_analyzer import ContentAnalyzer
        keywords = ContentAnalyzer().extract_keywords(normalize("plantCells store glucoseStarch"))
        assert keywords == ["plant", "cells", "store", "glucose", "starch"]

    def test_decimal_numbers_untouched(self):
        assert normalize("pi is 3.14 roughly") == "pi is 3.14 roughly"


class TestIdempotence:
    @pytest.mark.parametrize("raw", [
        "theMatrix determinant\u25a1 is  zero.Rows are dependent",
        "ﬁnal results(see table2)show growth",
        "aBﬁ mixed\u00a0CASE,text;here",
        "Plain sentence with nothing to fix.",
    ])
    def test_normalize_twice_is_stable(self, raw):
        once = normalize(raw)
        assert normalize(once) == once
