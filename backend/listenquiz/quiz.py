"""
Comprehension quiz pipeline.

Turns a source text into a validated 10-question multiple-choice quiz:

1. detect the language of the text with a short model call
2. pick the matching prompt template (Dutch when the code is unknown)
3. ask the model for the quiz and pull a JSON object out of its reply
4. check the object against the quiz schema

The model is reached through any object with an async ``generate(prompt)``
method, normally the shared GeminiClient. Exactly two calls are made per
quiz and nothing is retried.
"""

from __future__ import annotations
import json
import logging
import re
from typing import Any, Callable, List, Optional, Protocol, Sequence

from pydantic import BaseModel, Field, StrictInt, StrictStr, field_validator

from .errors import InputValidationError, ResponseParseError, SchemaValidationError
from .prompts import Language, build_detection_prompt, build_quiz_prompt, select_language

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 100
EXPECTED_QUESTIONS = 10
OPTIONS_PER_QUESTION = 4

_FENCE_OPEN_RE = re.compile(r"```json\s*")
_FENCE_CLOSE_RE = re.compile(r"```\s*")
_OUTER_BRACES_RE = re.compile(r"\{[\s\S]*\}")


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...


class Question(BaseModel):
    question: StrictStr
    options: List[StrictStr] = Field(min_length=OPTIONS_PER_QUESTION, max_length=OPTIONS_PER_QUESTION)
    # Strict: true/false and 1.0 are not answer indexes
    correctAnswer: StrictInt = Field(ge=0, le=OPTIONS_PER_QUESTION - 1)
    explanation: StrictStr

    @field_validator("question", "explanation")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class QuizResult(BaseModel):
    questions: List[Question]
    language: Language
    message: str


# ============================================================================
# INPUT
# ============================================================================

def validate_quiz_text(text: Any) -> str:
    if not text or not isinstance(text, str):
        raise InputValidationError("Tekst is vereist en moet een string zijn")
    if len(text) < MIN_TEXT_LENGTH:
        raise InputValidationError(
            f"Tekst moet minimaal {MIN_TEXT_LENGTH} karakters bevatten voor een goede quiz"
        )
    return text


# ============================================================================
# LANGUAGE DETECTION
# ============================================================================

async def detect_language(client: TextGenerator, text: str) -> str:
    """Ask the model for the two-letter code of the text.

    The reply is only trimmed and lowercased; mapping it onto a supported
    language is left to select_language().
    """
    raw = await client.generate(build_detection_prompt(text))
    return raw.strip().lower()


# ============================================================================
# REPLY PARSING
# ============================================================================

def strip_code_fences(reply: str) -> str:
    return _FENCE_CLOSE_RE.sub("", _FENCE_OPEN_RE.sub("", reply)).strip()


def _parse_direct(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _parse_outer_braces(text: str) -> Optional[Any]:
    match = _OUTER_BRACES_RE.search(text)
    if not match:
        return None
    logger.info("Reply was not bare JSON, retrying on the outermost {...} span")
    return _parse_direct(match.group(0))


# Tried in order; the first strategy that returns a value wins
PARSE_STRATEGIES: Sequence[Callable[[str], Optional[Any]]] = (_parse_direct, _parse_outer_braces)


def parse_quiz_reply(reply: str) -> Any:
    cleaned = strip_code_fences(reply)
    for strategy in PARSE_STRATEGIES:
        parsed = strategy(cleaned)
        if parsed is not None:
            return parsed
    logger.error("Could not parse quiz reply: %s", cleaned[:500])
    if _OUTER_BRACES_RE.search(cleaned):
        raise ResponseParseError("Kon quiz data niet parsen uit Gemini response")
    raise ResponseParseError("Geen geldige JSON gevonden in Gemini response")


# ============================================================================
# SCHEMA VALIDATION
# ============================================================================

def _is_filled_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _check_question(index: int, item: Any) -> Question:
    if not isinstance(item, dict) or not _is_filled_string(item.get("question")):
        raise SchemaValidationError(
            f"Vraag {index}: Ongeldige vraag tekst (question)", index=index, field="question"
        )

    options = item.get("options")
    if (
        not isinstance(options, list)
        or len(options) != OPTIONS_PER_QUESTION
        or not all(isinstance(o, str) for o in options)
    ):
        raise SchemaValidationError(
            f"Vraag {index}: Moet exact 4 antwoordopties hebben (options)", index=index, field="options"
        )

    correct = item.get("correctAnswer")
    # bool is an int subclass and must not count as an index
    if not isinstance(correct, int) or isinstance(correct, bool) or not 0 <= correct < OPTIONS_PER_QUESTION:
        raise SchemaValidationError(
            f"Vraag {index}: correctAnswer moet een nummer tussen 0 en 3 zijn",
            index=index,
            field="correctAnswer",
        )

    if not _is_filled_string(item.get("explanation")):
        raise SchemaValidationError(
            f"Vraag {index}: Ongeldige uitleg (explanation)", index=index, field="explanation"
        )

    return Question(
        question=item["question"],
        options=options,
        correctAnswer=correct,
        explanation=item["explanation"],
    )


def validate_quiz(data: Any) -> List[Question]:
    """Check a parsed reply and return its questions.

    A question count other than 10 is only logged. Any field violation
    rejects the whole quiz.
    """
    questions = data.get("questions") if isinstance(data, dict) else None
    if not isinstance(questions, list):
        raise SchemaValidationError("Ongeldige quiz structuur: geen questions array", field="questions")

    if len(questions) != EXPECTED_QUESTIONS:
        logger.warning("Expected %d questions, got %d", EXPECTED_QUESTIONS, len(questions))

    return [_check_question(i, item) for i, item in enumerate(questions, start=1)]


# ============================================================================
# PIPELINE
# ============================================================================

async def generate_quiz(client: TextGenerator, text: str) -> QuizResult:
    detected = await detect_language(client, text)
    language = select_language(detected)
    logger.info("Detected language: %s (using %s template)", detected, language.value)

    logger.info("Generating quiz with Gemini...")
    reply = await client.generate(build_quiz_prompt(language, text))
    logger.debug("Raw Gemini response: %s...", reply[:500])

    questions = validate_quiz(parse_quiz_reply(reply))
    logger.info("Quiz generated successfully with %d questions", len(questions))

    return QuizResult(
        questions=questions,
        language=language,
        message=f"Quiz succesvol gegenereerd met {len(questions)} vragen",
    )
