"""
Unit tests for backend/listenquiz/gemini_client.py
Tests: missing key, reply extraction, quota and error classification, TTS decoding.
Transport is mocked with httpx.MockTransport — no network.
"""

import base64
import json

import httpx
import pytest

from listenquiz.errors import UpstreamConfigError, UpstreamError, UpstreamQuotaError
from listenquiz.gemini_client import GeminiClient, require_client
from listenquiz.settings import settings


def _client(handler):
    return GeminiClient(
        "test-key",
        model="gemini-test",
        tts_model="gemini-test-tts",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _text_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_missing_key_is_a_config_error():
    with pytest.raises(UpstreamConfigError) as exc_info:
        GeminiClient()
    assert "GEMINI_API_KEY" in exc_info.value.hint


def test_require_client_without_client():
    with pytest.raises(UpstreamConfigError):
        require_client(None)


@pytest.mark.asyncio
async def test_generate_returns_first_text_part():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_text_reply("nl"))

    client = _client(handler)
    assert await client.generate("Welke taal?") == "nl"
    await client.aclose()

    assert "models/gemini-test:generateContent" in seen["url"]
    assert "key=test-key" in seen["url"]
    assert seen["body"] == {"contents": [{"parts": [{"text": "Welke taal?"}]}]}


@pytest.mark.asyncio
async def test_vertex_provider_sends_key_in_header(monkeypatch):
    monkeypatch.setattr(settings, "gemini_provider", "vertex")
    monkeypatch.setattr(settings, "vertex_region", "europe-west4")
    monkeypatch.setattr(settings, "vertex_project", "luisteroefening")
    seen = {}

    def handler(request):
        seen["url"] = request.url
        seen["headers"] = request.headers
        return httpx.Response(200, json=_text_reply("de"))

    client = _client(handler)
    assert await client.generate("Welke taal?") == "de"
    await client.aclose()

    assert seen["url"].host == "europe-west4-aiplatform.googleapis.com"
    assert seen["url"].path == (
        "/v1/projects/luisteroefening/locations/europe-west4/publishers/google/models/gemini-test:generateContent"
    )
    assert "key" not in seen["url"].params
    assert seen["headers"]["x-goog-api-key"] == "test-key"


@pytest.mark.asyncio
async def test_http_429_is_quota_error():
    client = _client(lambda request: httpx.Response(429, json={"error": {"status": "RESOURCE_EXHAUSTED"}}))
    with pytest.raises(UpstreamQuotaError):
        await client.generate("x")
    await client.aclose()


@pytest.mark.asyncio
async def test_quota_message_is_quota_error():
    client = _client(lambda request: httpx.Response(403, text="You exceeded your current quota"))
    with pytest.raises(UpstreamQuotaError):
        await client.generate("x")
    await client.aclose()


@pytest.mark.asyncio
async def test_other_http_errors_are_upstream_errors():
    client = _client(lambda request: httpx.Response(503, text="overloaded"))
    with pytest.raises(UpstreamError, match="HTTP 503"):
        await client.generate("x")
    await client.aclose()


@pytest.mark.asyncio
async def test_network_error_is_upstream_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    with pytest.raises(UpstreamError, match="request failed"):
        await client.generate("x")
    await client.aclose()


@pytest.mark.asyncio
async def test_reply_without_candidates():
    client = _client(lambda request: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}}))
    with pytest.raises(UpstreamError, match="Unexpected Gemini response"):
        await client.generate("x")
    await client.aclose()


@pytest.mark.asyncio
async def test_synthesize_speech_decodes_inline_audio():
    pcm = b"\x01\x00\x02\x00" * 8
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {
                        "content": {
                            "parts": [
                                {
                                    "inlineData": {
                                        "mimeType": "audio/L16;codec=pcm;rate=24000",
                                        "data": base64.b64encode(pcm).decode(),
                                    }
                                }
                            ]
                        }
                    }
                ]
            },
        )

    client = _client(handler)
    audio, mime_type = await client.synthesize_speech("Hallo", voice_name="Puck")
    await client.aclose()

    assert audio == pcm
    assert mime_type == "audio/L16;codec=pcm;rate=24000"
    assert "models/gemini-test-tts:generateContent" in seen["url"]
    config = seen["body"]["generationConfig"]
    assert config["responseModalities"] == ["AUDIO"]
    assert config["speechConfig"]["voiceConfig"]["prebuiltVoiceConfig"]["voiceName"] == "Puck"


@pytest.mark.asyncio
async def test_synthesize_speech_without_audio():
    client = _client(lambda request: httpx.Response(200, json=_text_reply("geen audio")))
    with pytest.raises(UpstreamError, match="TTS"):
        await client.synthesize_speech("Hallo")
    await client.aclose()
