"""Prompt builders and chat payload helpers."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from magic_lexicon.config_manager import DEFAULT_MODEL

DEFAULT_DEFINITION_LANGUAGE = "Vietnamese"
JSON_RESPONSE_FORMAT: Dict[str, str] = {"type": "json_object"}

CHAT_SYSTEM_PROMPT = (
    "You are a helpful English learning assistant. Answer questions clearly and concisely."
)

WORD_ANALYSIS_KEYS = (
    "definition",
    "word_type",
    "cefr_level",
    "ipa_pronunciation",
    "example_sentence",
)


def build_word_prompt(word: str, *, definition_language: str = DEFAULT_DEFINITION_LANGUAGE) -> str:
    """Return the instruction asking for a JSON analysis of one English word."""

    language = (definition_language or "").strip() or DEFAULT_DEFINITION_LANGUAGE
    return "\n".join(
        [
            f"Analyze the English word '{word}'.",
            "Provide a concise and clear analysis in JSON format. "
            "The JSON object must contain these exact keys:",
            f'- "definition": (string, in {language})',
            '- "word_type": (string, e.g., "noun", "verb", "adjective")',
            '- "cefr_level": (string, e.g., "A1", "A2", "B1", "B2", "C1", "C2")',
            '- "ipa_pronunciation": (string)',
            '- "example_sentence": (string, a clear English example)',
            "",
            "Example for the word 'ubiquitous':",
            "{",
            f'    "definition": "<{language} definition of ubiquitous>",',
            '    "word_type": "adjective",',
            '    "cefr_level": "C1",',
            '    "ipa_pronunciation": "/juːˈbɪkwɪtəs/",',
            '    "example_sentence": "The company\'s logo has become ubiquitous all over the world."',
            "}",
            "",
            f"Generate the JSON for the word '{word}':",
        ]
    )


def build_sentence_analysis_prompt(
    sentence: str, *, definition_language: str = DEFAULT_DEFINITION_LANGUAGE
) -> str:
    """Return the instruction asking for a scored JSON review of ``sentence``."""

    language = (definition_language or "").strip() or DEFAULT_DEFINITION_LANGUAGE
    return f"""Analyze this English sentence and return JSON only:

"{sentence}"

JSON format:
{{
  "score": 0-10 (one decimal),
  "overall_feedback": "brief assessment in {language}",
  "errors": [{{"text": "incorrect text", "start_index": number, "end_index": number, "type": "grammar|vocabulary|spelling|punctuation|tense|article|preposition", "explanation": "why wrong in {language}", "correction": "correct version", "suggestion": "teaching tip in {language}"}}],
  "strengths": ["positive aspects in {language}"],
  "improvements": [{{"aspect": "grammar|vocabulary|style", "suggestion": "improvement in {language}"}}],
  "grammar_analysis": {{"tense": "assessment", "subject_verb_agreement": "assessment", "word_order": "assessment", "articles": "assessment"}},
  "vocabulary_analysis": {{"level": "A1-C2", "appropriateness": "assessment", "suggestions": ["better words if any"]}}
}}

Rules:
- If perfect, score=10
- Indices must be accurate
- {language} for explanations
- JSON only, no extra text"""


def make_chat_payload(
    content: str,
    *,
    model: Optional[str] = None,
    stream: bool = False,
    system_prompt: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    json_mode: bool = False,
) -> Dict[str, Any]:
    """Build a ``/api/chat`` request body."""

    messages: List[Dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": content})

    payload: Dict[str, Any] = {
        "model": model or DEFAULT_MODEL,
        "messages": messages,
        "stream": stream,
    }
    if temperature is not None:
        payload["temperature"] = temperature
    if max_tokens is not None:
        payload["max_tokens"] = max_tokens
    if json_mode:
        payload["response_format"] = dict(JSON_RESPONSE_FORMAT)
    return payload


__all__ = [
    "CHAT_SYSTEM_PROMPT",
    "DEFAULT_DEFINITION_LANGUAGE",
    "WORD_ANALYSIS_KEYS",
    "build_sentence_analysis_prompt",
    "build_word_prompt",
    "make_chat_payload",
]
