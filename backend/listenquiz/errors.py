"""Failure classes for the quiz and listening pipeline.

Each class carries the HTTP status the routes answer with, so a caller can
tell bad input, missing credentials, upstream rate limiting, an unreadable
model reply and a reply with the wrong shape apart.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


class QuizError(Exception):
	status_code = 500


class InputValidationError(QuizError):
	"""Request text is missing, not a string or too short."""
	status_code = 400


class UpstreamConfigError(QuizError):
	"""No credentials for the text-generation service."""
	status_code = 500

	def __init__(self, message: str, hint: Optional[str] = None) -> None:
		super().__init__(message)
		self.hint = hint


class UpstreamQuotaError(QuizError):
	"""The text-generation service reported quota exhaustion or rate limiting."""
	status_code = 429


class UpstreamError(QuizError):
	"""Any other failure talking to the text-generation service."""


class ResponseParseError(QuizError):
	"""The model reply could not be read as JSON, even after brace extraction."""


class SchemaValidationError(QuizError):
	"""Parsed reply does not match the quiz schema."""

	def __init__(self, message: str, *, index: Optional[int] = None, field: Optional[str] = None) -> None:
		super().__init__(message)
		self.index = index
		self.field = field


QUOTA_MESSAGE = "API quota bereikt. Probeer het later opnieuw."


def error_response(exc: Exception, fallback_message: str = "Er is een fout opgetreden") -> JSONResponse:
	"""Translate a pipeline failure into the JSON body the frontend expects."""
	if isinstance(exc, UpstreamConfigError):
		body: Dict[str, Any] = {"error": str(exc)}
		if exc.hint:
			body["hint"] = exc.hint
		return JSONResponse(status_code=exc.status_code, content=body)
	if isinstance(exc, InputValidationError):
		return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})
	if isinstance(exc, UpstreamQuotaError) or "quota" in str(exc).lower():
		return JSONResponse(status_code=429, content={"error": QUOTA_MESSAGE, "details": "Rate limit exceeded"})
	return JSONResponse(
		status_code=500,
		content={
			"error": fallback_message,
			"details": str(exc) or exc.__class__.__name__,
			"timestamp": datetime.now(timezone.utc).isoformat(),
		},
	)
