"""
Prompt templates for the comprehension quiz.

One fixed template per supported language; the only variable part is the
literal source text. Unknown language codes fall back to Dutch.
"""

from __future__ import annotations
from enum import Enum
from string import Template
from typing import Dict, List


class Language(str, Enum):
    nl = "nl"
    en = "en"
    de = "de"
    fr = "fr"


DEFAULT_LANGUAGE = Language.nl
SUPPORTED_LANGUAGES: List[str] = [lang.value for lang in Language]

# How many characters of the source text are shown to the language detector
DETECTION_SAMPLE_CHARS = 200

LANGUAGE_DETECTION_PROMPT = Template(
    "\nDetecteer de taal van deze tekst en geef alleen de taalcode terug (nl, en, de, fr, etc.):\n\n"
    '"$sample..."\n'
)


_QUIZ_TEMPLATES: Dict[Language, Template] = {
    Language.nl: Template("""
Maak een quiz van 10 multiple choice vragen over de volgende tekst. De quiz moet in het Nederlands zijn.

BELANGRIJKE REGELS:
1. Elke vraag moet 4 antwoordopties hebben (A, B, C, D)
2. Slechts 1 antwoord is correct
3. Vragen moeten over de INHOUD van de tekst gaan
4. Varieer tussen feitenvragen, begrip en conclusies
5. Maak vragen geschikt voor VMBO jaar 4 niveau
6. Geef bij elke vraag een korte uitleg waarom het antwoord correct is

Geef het antwoord in dit EXACTE JSON formaat:
{
  "questions": [
    {
      "question": "Vraag hier?",
      "options": ["Optie A", "Optie B", "Optie C", "Optie D"],
      "correctAnswer": 0,
      "explanation": "Uitleg waarom dit antwoord correct is."
    }
  ]
}

TEKST:
$text
"""),
    Language.en: Template("""
Create a quiz of 10 multiple choice questions about the following text. The quiz must be in English.

IMPORTANT RULES:
1. Each question must have 4 answer options (A, B, C, D)
2. Only 1 answer is correct
3. Questions must be about the CONTENT of the text
4. Vary between factual questions, comprehension and conclusions
5. Make questions suitable for secondary school level
6. Provide a brief explanation for each question why the answer is correct

Give the answer in this EXACT JSON format:
{
  "questions": [
    {
      "question": "Question here?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": 0,
      "explanation": "Explanation why this answer is correct."
    }
  ]
}

TEXT:
$text
"""),
    Language.de: Template("""
Erstelle ein Quiz mit 10 Multiple-Choice-Fragen über den folgenden Text. Das Quiz muss auf Deutsch sein.

WICHTIGE REGELN:
1. Jede Frage muss 4 Antwortoptionen haben (A, B, C, D)
2. Nur 1 Antwort ist richtig
3. Fragen müssen über den INHALT des Textes gehen
4. Variiere zwischen Faktenfragen, Verständnis und Schlussfolgerungen
5. Mache Fragen geeignet für Sekundarschulniveau
6. Gib bei jeder Frage eine kurze Erklärung, warum die Antwort richtig ist

Gib die Antwort in diesem EXAKTEN JSON-Format:
{
  "questions": [
    {
      "question": "Frage hier?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": 0,
      "explanation": "Erklärung, warum diese Antwort richtig ist."
    }
  ]
}

TEXT:
$text
"""),
    Language.fr: Template("""
Créez un quiz de 10 questions à choix multiples sur le texte suivant. Le quiz doit être en français.

RÈGLES IMPORTANTES:
1. Chaque question doit avoir 4 options de réponse (A, B, C, D)
2. Seulement 1 réponse est correcte
3. Les questions doivent porter sur le CONTENU du texte
4. Variez entre questions factuelles, compréhension et conclusions
5. Rendez les questions adaptées au niveau secondaire
6. Donnez une brève explication pour chaque question pourquoi la réponse est correcte

Donnez la réponse dans ce format JSON EXACT:
{
  "questions": [
    {
      "question": "Question ici?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": 0,
      "explanation": "Explication pourquoi cette réponse est correcte."
    }
  ]
}

TEXTE:
$text
"""),
}


def build_detection_prompt(text: str) -> str:
    return LANGUAGE_DETECTION_PROMPT.substitute(sample=text[:DETECTION_SAMPLE_CHARS])


def select_language(code: str) -> Language:
    """Map a detector code onto a supported language, defaulting to Dutch."""
    try:
        return Language(code)
    except ValueError:
        return DEFAULT_LANGUAGE


def build_quiz_prompt(language: Language, text: str) -> str:
    return _QUIZ_TEMPLATES[language].substitute(text=text)
