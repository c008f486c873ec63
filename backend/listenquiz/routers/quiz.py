"""
Quiz Router

- POST /generate-quiz          build a 10-question comprehension quiz from a text
- GET  /generate-quiz          static description of what the generator produces
- POST /generate-quiz/score    score a finished quiz
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, StrictInt

from ..errors import InputValidationError, error_response
from ..gemini_client import GeminiClient, get_gemini_client, require_client
from ..prompts import SUPPORTED_LANGUAGES
from ..quiz import EXPECTED_QUESTIONS, OPTIONS_PER_QUESTION, Question, generate_quiz, validate_quiz_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/generate-quiz", tags=["quiz"])

QUESTION_TYPES: List[str] = ["Feitenvragen", "Begrip", "Conclusies", "Details", "Hoofdpunten"]
DIFFICULTY_LEVEL = "VMBO jaar 4"

# Minimum number of correct answers to pass, regardless of quiz length
PASS_MARK = 7


class GenerateQuizRequest(BaseModel):
	# Type is checked by validate_quiz_text so bad input gets the 400 message
	text: Any = None


class ScoreRequest(BaseModel):
	questions: List[Question]
	answers: List[Optional[StrictInt]]


@router.post("")
async def create_quiz(req: GenerateQuizRequest, client: Optional[GeminiClient] = Depends(get_gemini_client)):
	try:
		gemini = require_client(client)
		text = validate_quiz_text(req.text)
		result = await generate_quiz(gemini, text)
	except InputValidationError as e:
		return error_response(e)
	except Exception as e:
		logger.exception("Quiz generation error")
		return error_response(e, "Er is een fout opgetreden bij het genereren van de quiz")
	return {
		"success": True,
		"questions": [q.model_dump() for q in result.questions],
		"language": result.language.value,
		"message": result.message,
	}


@router.get("")
def quiz_info() -> Dict[str, Any]:
	return {
		"maxQuestions": EXPECTED_QUESTIONS,
		"supportedLanguages": SUPPORTED_LANGUAGES,
		"questionTypes": QUESTION_TYPES,
		"difficultyLevel": DIFFICULTY_LEVEL,
	}


def _check_answers(req: ScoreRequest) -> None:
	if len(req.answers) != len(req.questions):
		raise InputValidationError("answers must have one entry per question")
	for idx, chosen in enumerate(req.answers, start=1):
		if chosen is not None and not 0 <= chosen < OPTIONS_PER_QUESTION:
			raise InputValidationError(f"answer {idx} must be 0..3")


@router.post("/score")
def score_quiz(req: ScoreRequest):
	"""Count correct answers; unanswered questions (null) score nothing."""
	try:
		_check_answers(req)
	except InputValidationError as e:
		return error_response(e)

	results: List[Dict[str, Any]] = []
	score = 0
	for idx, (question, chosen) in enumerate(zip(req.questions, req.answers), start=1):
		is_correct = chosen == question.correctAnswer
		if is_correct:
			score += 1
		results.append(
			{
				"index": idx,
				"chosen": chosen,
				"correctAnswer": question.correctAnswer,
				"correct": is_correct,
				"explanation": question.explanation,
			}
		)

	total = len(req.questions)
	return {
		"score": score,
		"total": total,
		# Half-up rounding, as the quiz page shows it
		"percentage": int(score * 100 / total + 0.5) if total else 0,
		"passed": score >= PASS_MARK,
		"results": results,
	}
