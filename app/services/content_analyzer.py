"""
Content analysis over normalized document text.

Three independent passes, each a pure function of the text and the
analyzer's configuration:
    - sentence pool: document-ordered sentences inside the length bounds
    - keywords: frequency-ranked tokens (stable on ties)
    - concepts: adjacent two-word phrases in discovery order
"""
import re
from typing import Dict, FrozenSet, List, NamedTuple, Optional, Tuple

import structlog

logger = structlog.get_logger()


# -------------------- CONFIGURATION --------------------

# English and Indonesian function words
DEFAULT_STOP_WORDS: FrozenSet[str] = frozenset("""
the a an and or but in on at to for of with by from as is was are were been be
have has had do does did will would could should may might must can this that these those
yang dan atau adalah ini itu dari ke di untuk dengan pada
""".split())

TOKEN_STRIP = ".,!?;:()[]{}\"'"
SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")


class AnalyzerConfig(NamedTuple):
    stop_words: FrozenSet[str] = DEFAULT_STOP_WORDS
    min_sentence_words: int = 5
    max_sentence_words: int = 30
    min_sentence_chars: int = 30
    max_sentence_chars: int = 200
    min_alpha_ratio: float = 0.5
    min_keyword_length: int = 4
    max_keywords: int = 30
    min_concept_word_length: int = 4
    min_concept_length: int = 9
    max_concepts: int = 20


class ContentAnalysis(NamedTuple):
    text: str
    sentences: List[str]
    keywords: List[str]
    keyword_frequencies: List[Tuple[str, int]]
    concepts: List[str]


# -------------------- ANALYZER --------------------

class ContentAnalyzer:
    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or AnalyzerConfig()

    # sentences

    def is_candidate_sentence(self, sentence: str) -> bool:
        cfg = self.config
        words = sentence.split()
        if not cfg.min_sentence_words <= len(words) <= cfg.max_sentence_words:
            return False
        if not cfg.min_sentence_chars <= len(sentence) <= cfg.max_sentence_chars:
            return False
        letters = sum(1 for c in sentence if c.isalpha())
        return letters >= cfg.min_alpha_ratio * len(sentence)

    def extract_sentences(self, text: str) -> List[str]:
        sentences = []
        for part in SENTENCE_END_RE.split(text or ""):
            candidate = part.strip()
            if not candidate:
                continue
            if candidate[-1] not in ".!?":
                candidate += "."
            if self.is_candidate_sentence(candidate):
                sentences.append(candidate)
        return sentences

    # keywords

    def rank_keywords(self, text: str) -> List[Tuple[str, int]]:
        """Return (keyword, frequency) pairs, highest frequency first.

        Ties keep first-seen order: counts live in an insertion-ordered
        dict and sorted() is stable.
        """
        cfg = self.config
        freq: Dict[str, int] = {}
        for token in (text or "").split():
            cleaned = token.strip(TOKEN_STRIP).lower()
            if len(cleaned) < cfg.min_keyword_length or cleaned in cfg.stop_words:
                continue
            freq[cleaned] = freq.get(cleaned, 0) + 1
        ranked = sorted(freq.items(), key=lambda item: item[1], reverse=True)
        return ranked[:cfg.max_keywords]

    def extract_keywords(self, text: str) -> List[str]:
        return [word for word, _ in self.rank_keywords(text)]

    # concepts

    def extract_concepts(self, text: str) -> List[str]:
        cfg = self.config
        seen = set()
        concepts: List[str] = []
        # Split on "." only: concepts may come from sentences the pool rejected
        for chunk in (text or "").split("."):
            words = [w.strip(TOKEN_STRIP) for w in chunk.split()]
            for first, second in zip(words, words[1:]):
                if len(first) < cfg.min_concept_word_length or len(second) < cfg.min_concept_word_length:
                    continue
                phrase = f"{first} {second}".lower()
                if len(phrase) < cfg.min_concept_length or phrase in seen:
                    continue
                seen.add(phrase)
                concepts.append(phrase)
                if len(concepts) >= cfg.max_concepts:
                    return concepts
        return concepts

    def analyze(self, text: str) -> ContentAnalysis:
        ranked = self.rank_keywords(text)
        analysis = ContentAnalysis(
            text=text or "",
            sentences=self.extract_sentences(text),
            keywords=[word for word, _ in ranked],
            keyword_frequencies=ranked,
            concepts=self.extract_concepts(text),
        )
        logger.debug(
            "content_analyzed",
            sentences=len(analysis.sentences),
            keywords=len(analysis.keywords),
            concepts=len(analysis.concepts),
        )
        return analysis
