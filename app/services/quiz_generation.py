"""
Quiz generation strategies and the orchestrator that tries them in order.

Every strategy honours the same contract: try_generate(document, request)
returns a QuizDraft or raises GenerationError. The rule-based strategy is
last in the list and never fails, so a caller always gets a draft back.
"""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import requests
import structlog
from openai import OpenAI, OpenAIError

from app import config
from app.models import DIFFICULTIES, MULTIPLE_CHOICE, GeneratedQuestion, QuizDraft, QuizGenerationRequest
from app.services.content_analyzer import ContentAnalyzer
from app.services.logging import log_performance
from app.services.monitoring import GENERATION_DURATION, record_generation
from app.services.question_synthesizer import QuestionSynthesizer
from app.services.text_normalizer import normalize

logger = structlog.get_logger()

MAX_AI_QUESTIONS = 20
MAX_PROMPT_CONTENT = 3000

# Harder quizzes ask the same generator for a few more questions
DIFFICULTY_EXTRA = {"easy": 0, "medium": 1, "hard": 2}

DIFFICULTY_INSTRUCTIONS = {
    "easy": "Create simple, straightforward questions that test basic understanding.",
    "medium": "Create moderately challenging questions that require analysis and comprehension.",
    "hard": "Create complex questions that require deep understanding and critical thinking.",
}

SYSTEM_PROMPT = (
    "You are an expert quiz generator. Generate high-quality multiple choice questions "
    "based on the provided content. Return ONLY valid JSON without any additional text or formatting."
)


class GenerationError(Exception):
    """A strategy could not produce a usable draft."""


# -------------------- PROMPT / RESPONSE --------------------

def build_prompt(content: str, request: QuizGenerationRequest) -> str:
    if len(content) > MAX_PROMPT_CONTENT:
        content = content[:MAX_PROMPT_CONTENT] + "..."
    instruction = DIFFICULTY_INSTRUCTIONS.get(request.difficulty, DIFFICULTY_INSTRUCTIONS["medium"])
    count = request.question_count
    return (
        f"Based on the following content, generate {count} multiple choice questions. {instruction}\n\n"
        f"Content:\n{content}\n\n"
        "Requirements:\n"
        f"- Generate exactly {count} questions\n"
        "- Each question should have 4 options (A, B, C, D)\n"
        "- Indicate the correct answer (0-3 index)\n"
        "- Provide a brief explanation for each answer\n"
        "- Return the response as a JSON array of questions\n\n"
        "JSON Format:\n"
        '[{"question": "Question text here?", "options": ["Option A", "Option B", "Option C", "Option D"], '
        '"correctAnswer": 0, "explanation": "Brief explanation of why this is correct"}]\n\n'
        "Return ONLY the JSON array, no additional text."
    )


def _clean_json_like(content: str) -> str:
    # Strip common code fences ```json ... ``` or ``` ... ```
    text = content.strip()
    if text.startswith("```"):
        first_nl = text.find("\n")
        if first_nl != -1:
            text = text[first_nl + 1:]
        if text.endswith("```"):
            text = text[:-3]
    # Prefer the first JSON array when the model wrapped it in prose
    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end != -1 and end > start:
        return text[start:end + 1]
    return text.strip()


def _option_index(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_ai_questions(content: str, provenance: str, limit: int) -> List[GeneratedQuestion]:
    """Turn a model response into validated multiple-choice questions.

    Items without exactly four distinct options or with an out-of-range
    correctAnswer are skipped. Raises GenerationError when nothing usable
    remains.
    """
    try:
        data = json.loads(_clean_json_like(content or ""))
    except json.JSONDecodeError as e:
        raise GenerationError(f"failed to parse JSON response: {e}") from e
    if isinstance(data, dict):
        data = data.get("questions", [])
    if not isinstance(data, list):
        raise GenerationError("response is not a JSON array")

    cap = min(limit, MAX_AI_QUESTIONS) if limit > 0 else MAX_AI_QUESTIONS
    questions: List[GeneratedQuestion] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        text = str(item.get("question") or item.get("text") or "").strip()
        options = item.get("options")
        if not text or not isinstance(options, list) or len(options) != 4:
            continue
        options = [str(o).strip() for o in options]
        if not all(options) or len({o.lower() for o in options}) != 4:
            continue
        index = _option_index(item.get("correctAnswer"))
        if index is None or not 0 <= index < len(options):
            continue
        questions.append(GeneratedQuestion(
            kind=MULTIPLE_CHOICE,
            text=text,
            options=options,
            correct_answer=options[index],
            correct_index=index,
            provenance=provenance,
            explanation=(str(item.get("explanation") or "").strip() or None),
        ))
        if len(questions) >= cap:
            break

    if not questions:
        raise GenerationError("no valid questions found in response")
    return questions


# -------------------- STRATEGIES --------------------

class QuizStrategy(ABC):
    name = "base"

    def enabled(self) -> bool:
        return True

    @abstractmethod
    def try_generate(self, document: str, request: QuizGenerationRequest) -> QuizDraft:
        """Return a draft with up to request.question_count questions or raise GenerationError."""


class OpenAIStrategy(QuizStrategy):
    name = "openai"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.api_key = config.OPENAI_API_KEY if api_key is None else api_key
        self.model = model or config.OPENAI_MODEL
        self.timeout = timeout or config.AI_TIMEOUT_SECONDS

    def enabled(self) -> bool:
        return bool(self.api_key) and self.api_key != config.OPENAI_KEY_PLACEHOLDER

    def _get_client(self) -> OpenAI:
        return OpenAI(api_key=self.api_key).with_options(timeout=self.timeout)

    def try_generate(self, document: str, request: QuizGenerationRequest) -> QuizDraft:
        try:
            rsp = self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(document, request)},
                ],
                max_tokens=2000,
                temperature=0.7,
            )
        except OpenAIError as e:
            raise GenerationError(f"OpenAI API error: {e}") from e
        if not rsp.choices:
            raise GenerationError("no response from OpenAI")
        content = rsp.choices[0].message.content or ""
        return QuizDraft(questions=parse_ai_questions(content, self.name, request.question_count))


class OllamaStrategy(QuizStrategy):
    name = "ollama"

    def __init__(self, url: Optional[str] = None, model: Optional[str] = None,
                 timeout: Optional[float] = None, enabled: Optional[bool] = None):
        self.url = url or config.OLLAMA_URL
        self.model = model or config.OLLAMA_MODEL
        self.timeout = timeout or config.AI_TIMEOUT_SECONDS
        self._enabled = config.OLLAMA_ENABLED if enabled is None else enabled

    def enabled(self) -> bool:
        return self._enabled

    def try_generate(self, document: str, request: QuizGenerationRequest) -> QuizDraft:
        payload = {
            "model": self.model,
            "prompt": SYSTEM_PROMPT + "\n\n" + build_prompt(document, request),
            "stream": False,
            "options": {"temperature": 0.2},
        }
        try:
            r = requests.post(self.url, json=payload, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise GenerationError(f"ollama API error: {e}") from e
        content = data.get("response", "") if isinstance(data, dict) else ""
        return QuizDraft(questions=parse_ai_questions(content, self.name, request.question_count))


class RuleBasedStrategy(QuizStrategy):
    name = "rule-based"

    def __init__(self, analyzer: Optional[ContentAnalyzer] = None,
                 synthesizer: Optional[QuestionSynthesizer] = None):
        self.analyzer = analyzer or ContentAnalyzer()
        self.synthesizer = synthesizer or QuestionSynthesizer(provenance=self.name)

    def try_generate(self, document: str, request: QuizGenerationRequest) -> QuizDraft:
        analysis = self.analyzer.analyze(document)
        return self.synthesizer.synthesize_from_analysis(analysis, request.question_count)


def default_strategies() -> List[QuizStrategy]:
    return [OpenAIStrategy(), OllamaStrategy(), RuleBasedStrategy()]


# -------------------- ORCHESTRATOR --------------------

def resolve_question_count(question_count: int, difficulty: str) -> int:
    if question_count == 0:
        question_count = config.DEFAULT_QUESTION_COUNT
    return question_count + DIFFICULTY_EXTRA.get(difficulty, 0)


@log_performance("generate_quiz")
def generate_quiz(document_text: str, request: QuizGenerationRequest,
                  strategies: Optional[Sequence[QuizStrategy]] = None) -> Tuple[QuizDraft, str]:
    """Run the strategies in priority order and return (draft, strategy name).

    The first non-empty draft wins. When every AI strategy fails the
    rule-based draft is returned, even if it is empty; deciding whether an
    empty draft is an error is up to the caller.
    """
    if not isinstance(document_text, str):
        raise TypeError("document text must be a string")
    if request.question_count < 0:
        raise ValueError("question count must not be negative")
    if request.difficulty not in DIFFICULTIES:
        raise ValueError(f"difficulty must be one of {', '.join(DIFFICULTIES)}")

    effective = QuizGenerationRequest(
        title=request.title,
        description=request.description,
        difficulty=request.difficulty,
        question_count=resolve_question_count(request.question_count, request.difficulty),
    )
    document = normalize(document_text)
    if strategies is None:
        strategies = default_strategies()

    draft, used = QuizDraft(), "none"
    with GENERATION_DURATION.time():
        for strategy in strategies:
            if not strategy.enabled():
                continue
            try:
                draft = strategy.try_generate(document, effective)
            except GenerationError as e:
                logger.warning("generation_strategy_failed", strategy=strategy.name, error=str(e))
                record_generation(strategy.name, "failed")
                continue
            used = strategy.name
            if draft.questions:
                record_generation(strategy.name, "success", len(draft.questions))
                break
            record_generation(strategy.name, "empty")

    logger.info(
        "quiz_generated",
        strategy=used,
        questions=len(draft.questions),
        target=effective.question_count,
        difficulty=effective.difficulty,
    )
    return draft, used
