from __future__ import annotations
import base64
import logging
import httpx
from fastapi import Request
from typing import Any, Dict, Optional, Tuple
from .errors import UpstreamConfigError, UpstreamError, UpstreamQuotaError
from .settings import settings

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "API configuratie ontbreekt. Check Environment Variables."
MISSING_KEY_HINT = "Voeg GEMINI_API_KEY toe aan je environment variables"


class GeminiClient:
	"""Thin async wrapper around the Gemini generateContent REST endpoint.

	One instance is created by the hosting process and shared by all requests;
	call aclose() when the process shuts down.
	"""

	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		model: Optional[str] = None,
		tts_model: Optional[str] = None,
		http_client: Optional[httpx.AsyncClient] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise UpstreamConfigError(MISSING_KEY_MESSAGE, hint=MISSING_KEY_HINT)
		self.model = model or settings.gemini_model
		self.tts_model = tts_model or settings.gemini_tts_model
		self.provider = settings.gemini_provider
		# Vertex AI takes the key in a header, AI Studio in the query string
		self._auth_in_query = self.provider != "vertex"
		self._client = http_client or httpx.AsyncClient(timeout=settings.gemini_timeout_seconds)

	def _endpoint(self, model: str) -> str:
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			return (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{model}:generateContent"
			)
		return f"https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

	async def generate(self, prompt: str) -> str:
		payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
		data = await self._post_payload(self.model, payload)
		try:
			return data["candidates"][0]["content"]["parts"][0]["text"]
		except (KeyError, IndexError, TypeError) as err:
			raise UpstreamError(f"Unexpected Gemini response: {str(data)[:300]}") from err

	async def synthesize_speech(self, text: str, *, voice_name: Optional[str] = None) -> Tuple[bytes, str]:
		"""Return raw PCM audio and its mime type for the given text."""
		payload: Dict[str, Any] = {
			"contents": [{"parts": [{"text": text}]}],
			"generationConfig": {
				"responseModalities": ["AUDIO"],
				"speechConfig": {
					"voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice_name or settings.gemini_tts_voice}}
				},
			},
		}
		data = await self._post_payload(self.tts_model, payload)
		try:
			inline = data["candidates"][0]["content"]["parts"][0]
			inline = inline.get("inlineData") or inline.get("inline_data")
			audio = base64.b64decode(inline["data"])
			mime_type = inline.get("mimeType") or inline.get("mime_type") or "audio/L16;rate=24000"
		except (KeyError, IndexError, TypeError, AttributeError, ValueError) as err:
			raise UpstreamError(f"Unexpected Gemini TTS response: {str(data)[:300]}") from err
		return audio, mime_type

	async def _post_payload(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		try:
			r = await self._client.post(self._endpoint(model), params=params, headers=headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			status = http_err.response.status_code
			body = http_err.response.text
			if status == 429 or "quota" in body.lower():
				logger.warning("Gemini quota exhausted (HTTP %s)", status)
				raise UpstreamQuotaError(f"Gemini quota exceeded (HTTP {status})") from http_err
			raise UpstreamError(f"Gemini returned HTTP {status}: {body[:300]}") from http_err
		except httpx.RequestError as net_err:
			raise UpstreamError(f"Gemini request failed: {net_err}") from net_err
		try:
			return r.json()
		except ValueError as err:
			raise UpstreamError(f"Unexpected Gemini response: {r.text[:300]}") from err

	async def aclose(self) -> None:
		await self._client.aclose()


def get_gemini_client(request: Request) -> Optional[GeminiClient]:
	"""FastAPI dependency: the process-wide client, or None when no API key is configured."""
	return getattr(request.app.state, "gemini_client", None)


def require_client(client: Optional[GeminiClient]) -> GeminiClient:
	if client is None:
		raise UpstreamConfigError(MISSING_KEY_MESSAGE, hint=MISSING_KEY_HINT)
	return client
