"""
Rule-based question synthesis from a content analysis.

The synthesizer turns the analyzer's sentence pool, keyword ranking and
concept list into multiple-choice and true/false questions. It never
performs I/O and never raises for empty input; when nothing passes the
quality gate the draft is simply empty.
"""
import re
from typing import List, Optional, Sequence, Set, Tuple

import structlog

from app.models import (
    FILL_IN_BLANK, MULTIPLE_CHOICE, TRUE_FALSE,
    GeneratedQuestion, QuizDraft,
)
from app.services.content_analyzer import TOKEN_STRIP, ContentAnalysis

logger = structlog.get_logger()

PROVENANCE = "rule-based"

BLANK = "____"
FILL_BLANK = "______"
MC_PREFIX = "Complete the sentence: "
TF_PREFIX = "True or False: "
FILL_PREFIX = "Fill in the blank: "
MAX_TEXT_LENGTH = 150
MIN_TEXT_LENGTH = 15
OPTION_COUNT = 4
TRUE_FALSE_OPTIONS = ["True", "False"]

GENERIC_OPTIONS = ["None of the above", "All of the above", "Cannot be determined", "Not specified"]
PLACEHOLDER_RE = re.compile(r"\b(?:concept [ab]|option [1-4])\b", re.IGNORECASE)

# Fragments never picked by the fallback target scan
FALLBACK_DENYLIST = ("yang", "adalah")
COPULAS = frozenset({"is", "are", "was", "were", "dapat", "adalah", "merupakan"})
NEGATION = "not"

MIN_INFORMATIVE_KEYWORDS = 2
MIN_INFORMATIVE_LENGTH = 41
MIN_FILTERED_POOL = 5


def split_token(token: str) -> Tuple[str, str, str]:
    """Split a whitespace token into (leading punctuation, word, trailing punctuation)."""
    core = token.strip(TOKEN_STRIP)
    if not core:
        return token, "", ""
    start = len(token) - len(token.lstrip(TOKEN_STRIP))
    end = start + len(core)
    return token[:start], core, token[end:]


def truncate_text(text: str, limit: int = MAX_TEXT_LENGTH) -> str:
    if len(text) > limit:
        return text[:limit - 3] + "..."
    return text


def match_case(word: str, template: str) -> str:
    if template[:1].isupper():
        return word[:1].upper() + word[1:]
    return word


class QuestionSynthesizer:
    def __init__(self, provenance: str = PROVENANCE):
        self.provenance = provenance

    # -------------------- SENTENCE SELECTION --------------------

    def select_informative_sentences(self, sentences: Sequence[str], keywords: Sequence[str]) -> List[str]:
        lowered = {k.lower() for k in keywords}
        selected = []
        for sentence in sentences:
            sentence_lower = sentence.lower()
            hits = sum(1 for k in lowered if k in sentence_lower)
            if hits >= MIN_INFORMATIVE_KEYWORDS and len(sentence) >= MIN_INFORMATIVE_LENGTH:
                selected.append(sentence)
        if len(selected) < MIN_FILTERED_POOL and sentences:
            logger.debug("informative_filter_fallback", selected=len(selected), pool=len(sentences))
            return list(sentences)
        return selected

    # -------------------- GENERATORS --------------------

    def _find_target(self, words: List[str], keywords: Sequence[str],
                     concepts: Sequence[str]) -> Optional[Tuple[str, List[str]]]:
        """Pick the span to blank out. Returns (answer, tokens with the blank)."""
        keyword_set = {k.lower() for k in keywords}
        for i, word in enumerate(words):
            lead, core, trail = split_token(word)
            if len(core) > 4 and core.lower() in keyword_set:
                tokens = list(words)
                tokens[i] = lead + BLANK + trail
                return core, tokens

        for concept in concepts:
            for i in range(len(words) - 1):
                lead, first, gap_left = split_token(words[i])
                gap_right, second, trail = split_token(words[i + 1])
                if gap_left or gap_right or not first or not second:
                    continue
                if f"{first} {second}".lower() == concept.lower():
                    tokens = words[:i] + [lead + BLANK + trail] + words[i + 2:]
                    return f"{first} {second}", tokens

        if len(words) > 5:
            for i in range(2, len(words) - 2):
                lead, core, trail = split_token(words[i])
                lowered = core.lower()
                if len(core) > 4 and not any(f in lowered for f in FALLBACK_DENYLIST):
                    tokens = list(words)
                    tokens[i] = lead + BLANK + trail
                    return core, tokens
        return None

    def build_options(self, answer: str, keywords: Sequence[str], concepts: Sequence[str]) -> List[str]:
        options = [answer]
        used = {answer.lower()}
        answer_lower = answer.lower()

        def add(option: str):
            if len(options) < OPTION_COUNT and option.lower() not in used:
                options.append(option)
                used.add(option.lower())

        for keyword in keywords:
            add(keyword)
        for concept in concepts:
            concept_lower = concept.lower()
            if answer_lower in concept_lower or concept_lower in answer_lower:
                continue
            add(concept)
        for generic in GENERIC_OPTIONS:
            add(generic)
        while len(options) < OPTION_COUNT:
            options.append(f"Option {len(options) + 1}")
        return options[:OPTION_COUNT]

    def generate_multiple_choice(self, sentence: str, keywords: Sequence[str],
                                 concepts: Sequence[str]) -> Optional[GeneratedQuestion]:
        words = sentence.split()
        target = self._find_target(words, keywords, concepts)
        if target is None:
            return None
        answer, tokens = target
        return GeneratedQuestion(
            kind=MULTIPLE_CHOICE,
            text=truncate_text(MC_PREFIX + " ".join(tokens)),
            options=self.build_options(answer, keywords, concepts),
            correct_answer=answer,
            correct_index=0,
            provenance=self.provenance,
        )

    def generate_true_false(self, sentence: str, keywords: Sequence[str]) -> GeneratedQuestion:
        words = sentence.split()
        tokens = list(words)
        correct = "True"

        if len(words) > 5 and keywords:
            rank = {k.lower(): j for j, k in enumerate(keywords)}
            # Swap a keyword for the next one in the ranking
            for i, word in enumerate(words):
                lead, core, trail = split_token(word)
                j = rank.get(core.lower())
                if j is not None and j + 1 < len(keywords) and keywords[j + 1].lower() != core.lower():
                    tokens[i] = lead + match_case(keywords[j + 1], core) + trail
                    correct = "False"
                    break

            if correct == "True":
                for i in range(1, len(words) - 1):
                    lead, core, trail = split_token(words[i])
                    if core.lower() in COPULAS:
                        tokens[i] = f"{lead}{core} {NEGATION}{trail}"
                        correct = "False"
                        break

        return GeneratedQuestion(
            kind=TRUE_FALSE,
            text=truncate_text(TF_PREFIX + " ".join(tokens)),
            options=list(TRUE_FALSE_OPTIONS),
            correct_answer=correct,
            correct_index=TRUE_FALSE_OPTIONS.index(correct),
            provenance=self.provenance,
        )

    def generate_fill_in_blank(self, sentence: str, keywords: Sequence[str]) -> Optional[GeneratedQuestion]:
        """Free-text variant. Not used by synthesize(): its answer has no option set to check against."""
        words = sentence.split()
        keyword_set = {k.lower() for k in keywords}
        candidates = [i for i, word in enumerate(words)
                      if len(split_token(word)[1]) > 4 and split_token(word)[1].lower() in keyword_set]
        if not candidates and len(words) > 5:
            candidates = [i for i in range(2, len(words) - 2) if len(split_token(words[i])[1]) > 5]
        if not candidates:
            return None
        index = candidates[0]
        lead, core, trail = split_token(words[index])
        tokens = list(words)
        tokens[index] = lead + FILL_BLANK + trail
        return GeneratedQuestion(
            kind=FILL_IN_BLANK,
            text=truncate_text(FILL_PREFIX + " ".join(tokens)),
            options=[],
            correct_answer=core,
            provenance=self.provenance,
        )

    # -------------------- QUALITY GATE --------------------

    def passes_quality_gate(self, question: GeneratedQuestion, source_text: str) -> bool:
        if len(question.text) < MIN_TEXT_LENGTH:
            return False
        source_lower = source_text.lower()

        if question.kind == MULTIPLE_CHOICE:
            if len(question.options) != OPTION_COUNT:
                return False
            if len({o.strip().lower() for o in question.options}) != OPTION_COUNT:
                return False
            if BLANK not in question.text:
                return False
            # Every surfaced answer must be traceable to the document
            if question.correct_answer and question.correct_answer.lower() not in source_lower:
                return False
        elif question.kind == TRUE_FALSE:
            if question.options != TRUE_FALSE_OPTIONS or question.correct_answer not in TRUE_FALSE_OPTIONS:
                return False

        for match in PLACEHOLDER_RE.finditer(question.text):
            if match.group(0).lower() not in source_lower:
                return False
        if any(PLACEHOLDER_RE.search(option) for option in question.options):
            return False
        return True

    # -------------------- GENERATION LOOP --------------------

    def synthesize(self, sentences: Sequence[str], keywords: Sequence[str], concepts: Sequence[str],
                   target_count: int, source_text: Optional[str] = None) -> QuizDraft:
        """Generate up to `target_count` validated questions.

        Makes at most 2 * target_count attempts. Even attempts produce
        multiple-choice questions, odd attempts true/false. Sentences are
        taken in pool order; once every sentence has been used the pool is
        reused by attempt index.
        """
        draft = QuizDraft()
        if target_count <= 0:
            return draft
        if source_text is None:
            source_text = " ".join(sentences)

        pool = self.select_informative_sentences(sentences, keywords)
        used: Set[int] = set()
        seen: Set[Tuple[str, str]] = set()

        for attempt in range(2 * target_count):
            if len(draft.questions) >= target_count:
                break
            if not pool:
                continue
            index = next((i for i in range(len(pool)) if i not in used), None)
            if index is None:
                index = attempt % len(pool)
            used.add(index)
            sentence = pool[index]

            if attempt % 2 == 0:
                question = self.generate_multiple_choice(sentence, keywords, concepts)
            else:
                question = self.generate_true_false(sentence, keywords)

            if question is None or not self.passes_quality_gate(question, source_text):
                logger.debug("candidate_rejected", attempt=attempt, sentence_index=index)
                continue
            key = (question.kind, question.text)
            if key in seen:
                continue
            seen.add(key)
            draft.questions.append(question)

        return draft

    def synthesize_from_analysis(self, analysis: ContentAnalysis, target_count: int) -> QuizDraft:
        return self.synthesize(
            analysis.sentences, analysis.keywords, analysis.concepts,
            target_count, source_text=analysis.text,
        )
