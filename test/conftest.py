"""
Shared pytest fixtures and configuration for the entire test suite.
Applies to all subdirectories: unit/, api/
"""

import json
import os
import sys
from typing import List

import pytest

# ── Ensure backend is importable from every pytest session ──────────────────
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend"))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

# No real key: nothing in the suite may reach Gemini
os.environ["GEMINI_API_KEY"] = ""


# ── Fake text generator ──────────────────────────────────────────────────────

class FakeGenerator:
    """Stands in for GeminiClient: records prompts, returns scripted replies in order."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def make_question(n: int = 1, **overrides) -> dict:
    q = {
        "question": f"Wat gebeurt er in alinea {n}?",
        "options": ["Optie A", "Optie B", "Optie C", "Optie D"],
        "correctAnswer": n % 4,
        "explanation": f"Dat staat letterlijk in alinea {n}.",
    }
    q.update(overrides)
    return q


def make_quiz(count: int = 10) -> dict:
    return {"questions": [make_question(i) for i in range(1, count + 1)]}


@pytest.fixture
def quiz_payload():
    return make_quiz()


@pytest.fixture
def quiz_reply(quiz_payload):
    return json.dumps(quiz_payload, ensure_ascii=False)


@pytest.fixture
def long_text():
    return (
        "De Waddenzee is een getijdengebied tussen de Waddeneilanden en het vasteland. "
        "Twee keer per dag valt een groot deel droog, zodat je er bij laagwater kunt wadlopen. "
        "Veel vogels zoeken hier voedsel."
    )
