"""
Unit tests for rule-based question synthesis
"""
import pytest

from app.models import FILL_IN_BLANK, MULTIPLE_CHOICE, TRUE_FALSE, GeneratedQuestion
from app.services.content_analyzer import ContentAnalyzer
from app.services.question_synthesizer import (
    BLANK, MAX_TEXT_LENGTH, QuestionSynthesizer, split_token, truncate_text,
)

MATRIX_TEXT = (
    "The matrix determinant equals zero when rows are linearly dependent. "
    "The determinant calculation requires careful row reduction."
)


@pytest.fixture
def synthesizer():
    return QuestionSynthesizer()


def synthesize_text(text, target):
    analysis = ContentAnalyzer().analyze(text)
    return QuestionSynthesizer().synthesize_from_analysis(analysis, target)


class TestHelpers:
    def test_split_token(self):
        assert split_token("rows,") == ("", "rows", ",")
        assert split_token("(matrix)") == ("(", "matrix", ")")
        assert split_token("...") == ("...", "", "")

    def test_truncate_text(self):
        assert truncate_text("short") == "short"
        long_text = "x" * 200
        assert truncate_text(long_text) == "x" * 147 + "..."
        assert len(truncate_text(long_text)) == MAX_TEXT_LENGTH


class TestMatrixScenario:
    def test_two_questions(self):
        draft = synthesize_text(MATRIX_TEXT, 2)
        assert len(draft.questions) == 2
        mc, tf = draft.questions

        assert mc.kind == MULTIPLE_CHOICE
        assert mc.correct_answer == "matrix"
        assert mc.text == "Complete the sentence: The ____ determinant equals zero when rows are linearly dependent."
        assert mc.options == ["matrix", "determinant", "equals", "zero"]
        assert mc.correct_index == 0
        assert mc.provenance == "rule-based"

        assert tf.kind == TRUE_FALSE
        assert tf.options == ["True", "False"]
        # "determinant" swapped for the next ranked keyword
        assert tf.text == "True or False: The matrix calculation requires careful row reduction."
        assert tf.correct_answer == "False"
        assert tf.correct_index == 1

    def test_deterministic(self):
        first = synthesize_text(MATRIX_TEXT, 4)
        second = synthesize_text(MATRIX_TEXT, 4)
        assert [(q.kind, q.text, q.options) for q in first.questions] == \
            [(q.kind, q.text, q.options) for q in second.questions]

    def test_duplicates_dropped_when_pool_is_reused(self):
        draft = synthesize_text(MATRIX_TEXT, 5)
        keys = [(q.kind, q.text) for q in draft.questions]
        assert len(keys) == len(set(keys))
        assert len(draft.questions) == 2


class TestDraftInvariants:
    def test_properties_hold(self, study_text):
        draft = synthesize_text(study_text, 8)
        assert 0 < len(draft.questions) <= 8
        for q in draft.questions:
            assert len(q.text) <= MAX_TEXT_LENGTH
            if q.kind == MULTIPLE_CHOICE:
                assert len(q.options) == 4
                assert len({o.lower() for o in q.options}) == 4
                assert q.options[q.correct_index] == q.correct_answer
                assert q.correct_answer.lower() in study_text.lower()
                assert BLANK in q.text
            else:
                assert q.kind == TRUE_FALSE
                assert q.options == ["True", "False"]
                assert q.options[q.correct_index] == q.correct_answer

    def test_zero_target(self, study_text):
        assert synthesize_text(study_text, 0).questions == []

    def test_short_document(self):
        assert synthesize_text("Too short.", 5).questions == []

    def test_empty_pool(self, synthesizer):
        assert synthesizer.synthesize([], ["keyword"], [], 3).questions == []


class TestMultipleChoice:
    def test_blank_keeps_punctuation(self, synthesizer):
        q = synthesizer.generate_multiple_choice(
            "Gaussian elimination swaps rows, scales rows and adds multiples.",
            ["multiples"], [],
        )
        assert q.text.endswith("adds ____.")
        assert q.correct_answer == "multiples"

    def test_short_keywords_are_not_targets(self, synthesizer):
        q = synthesizer.generate_multiple_choice(
            "The cell wall gives plants a rigid outer structure.", ["cell", "wall"], [],
        )
        # Falls through to the positional scan from the third word
        assert q.correct_answer == "gives"

    def test_concept_target(self, synthesizer):
        q = synthesizer.generate_multiple_choice(
            "In biology the cell membrane controls what enters.", [], ["cell membrane"],
        )
        assert q.correct_answer == "cell membrane"
        assert "the ____ controls" in q.text

    def test_no_target(self, synthesizer):
        assert synthesizer.generate_multiple_choice("A cat sat on it.", [], []) is None

    def test_fallback_skips_denylisted_words(self, synthesizer):
        q = synthesizer.generate_multiple_choice(
            "Kata ini yangpanjang adalahkata kalimat biasa sekali.", [], [],
        )
        assert q.correct_answer == "kalimat"

    def test_generic_fillers_complete_options(self, synthesizer):
        options = synthesizer.build_options("enzyme", [], [])
        assert options == ["enzyme", "None of the above", "All of the above", "Cannot be determined"]

    def test_concept_containing_answer_not_a_distractor(self, synthesizer):
        options = synthesizer.build_options("membrane", [], ["cell membrane", "nuclear envelope"])
        assert "cell membrane" not in options
        assert "nuclear envelope" in options


class TestTrueFalse:
    def test_copula_negation(self, synthesizer):
        q = synthesizer.generate_true_false("The mitochondria is the powerhouse of cells.", ["powerhouse"])
        assert q.text == "True or False: The mitochondria is not the powerhouse of cells."
        assert q.correct_answer == "False"

    def test_keyword_swap_preserves_case(self, synthesizer):
        q = synthesizer.generate_true_false(
            "Enzymes speed up reactions inside living cells.", ["enzymes", "reactions"],
        )
        assert q.text.startswith("True or False: Reactions speed up")
        assert q.correct_answer == "False"

    def test_short_sentence_stays_true(self, synthesizer):
        q = synthesizer.generate_true_false("Water is wet today.", ["water", "today"])
        assert q.correct_answer == "True"
        assert q.correct_index == 0

    def test_no_keywords_stays_true(self, synthesizer):
        q = synthesizer.generate_true_false("The mitochondria is the powerhouse of cells.", [])
        assert q.correct_answer == "True"


class TestFillInBlank:
    def test_generates_free_text_question(self, synthesizer):
        q = synthesizer.generate_fill_in_blank("Ribosomes assemble proteins from amino acids.", ["proteins"])
        assert q.kind == FILL_IN_BLANK
        assert q.options == []
        assert q.correct_answer == "proteins"
        assert "______" in q.text


class TestQualityGate:
    def _mc(self, text, options, answer):
        return GeneratedQuestion(kind=MULTIPLE_CHOICE, text=text, options=options, correct_answer=answer)

    def test_rejects_duplicate_options(self, synthesizer):
        q = self._mc("Complete the sentence: The ____ is here.", ["cell", "Cell", "wall", "root"], "cell")
        assert not synthesizer.passes_quality_gate(q, "The cell is here.")

    def test_rejects_answer_missing_from_source(self, synthesizer):
        q = self._mc("Complete the sentence: The ____ is here.", ["atom", "cell", "wall", "root"], "atom")
        assert not synthesizer.passes_quality_gate(q, "The cell is here.")

    def test_rejects_truncated_blank(self, synthesizer):
        q = self._mc("Complete the sentence: The cell is...", ["cell", "atom", "wall", "root"], "cell")
        assert not synthesizer.passes_quality_gate(q, "The cell is here.")

    def test_rejects_placeholder_option(self, synthesizer):
        q = self._mc("Complete the sentence: The ____ is here.", ["cell", "atom", "wall", "Option 4"], "cell")
        assert not synthesizer.passes_quality_gate(q, "The cell is here. Option 4 was chosen.")

    def test_placeholder_text_allowed_when_in_source(self, synthesizer):
        q = self._mc("Complete the sentence: Option 1 uses the ____ method.",
                     ["simplex", "greedy", "random", "linear"], "simplex")
        source = "Option 1 uses the simplex method for optimisation."
        assert synthesizer.passes_quality_gate(q, source)
        assert not synthesizer.passes_quality_gate(q, "The simplex method for optimisation.")

    def test_rejects_short_text(self, synthesizer):
        q = GeneratedQuestion(kind=TRUE_FALSE, text="True or False", options=["True", "False"],
                              correct_answer="True")
        assert not synthesizer.passes_quality_gate(q, "anything")
