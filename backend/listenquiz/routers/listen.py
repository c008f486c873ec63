"""
Listening Exercise Router

Turns the text a student pasted or uploaded into spoken audio with the
Gemini text-to-speech model. Gemini returns raw 16-bit PCM; it is wrapped in
a WAV container here so browsers can play it directly.
"""

from __future__ import annotations
import io
import logging
import re
import wave
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel

from ..errors import InputValidationError, error_response
from ..gemini_client import GeminiClient, get_gemini_client, require_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/generate-tts", tags=["listening"])

# Gemini TTS output format unless the mime type says otherwise
DEFAULT_SAMPLE_RATE = 24000
SAMPLE_WIDTH = 2
CHANNELS = 1

_RATE_RE = re.compile(r"rate=(\d+)")


class TTSRequest(BaseModel):
	text: Optional[str] = None
	voiceName: Optional[str] = None


def _sample_rate_from_mime(mime_type: str) -> int:
	match = _RATE_RE.search(mime_type or "")
	return int(match.group(1)) if match else DEFAULT_SAMPLE_RATE


def pcm_to_wav(pcm: bytes, *, sample_rate: int = DEFAULT_SAMPLE_RATE) -> bytes:
	buffer = io.BytesIO()
	with wave.open(buffer, "wb") as wav_file:
		wav_file.setnchannels(CHANNELS)
		wav_file.setsampwidth(SAMPLE_WIDTH)
		wav_file.setframerate(sample_rate)
		wav_file.writeframes(pcm)
	return buffer.getvalue()


@router.post("")
async def generate_tts(req: TTSRequest, client: Optional[GeminiClient] = Depends(get_gemini_client)):
	try:
		gemini = require_client(client)
		text = (req.text or "").strip()
		if not text:
			raise InputValidationError("Tekst is vereist")
		pcm, mime_type = await gemini.synthesize_speech(text, voice_name=req.voiceName)
	except InputValidationError as e:
		return error_response(e)
	except Exception as e:
		logger.exception("Audio generation error")
		return error_response(e, "Er is een fout opgetreden bij het genereren van de audio")

	logger.info("Generated %d bytes of speech audio (%s)", len(pcm), mime_type)
	wav = pcm_to_wav(pcm, sample_rate=_sample_rate_from_mime(mime_type))
	return Response(content=wav, media_type="audio/wav")
