"""Practice plan generation using the Gemini REST API."""

import json
from typing import Optional

import requests

from timer.config import GEMINI_API_KEY, GEMINI_MODEL, GEMINI_URL, GEMINI_TIMEOUT, DEBUG
from timer.state import ActivityType

FALLBACK_QUOTE = "Where words fail, music speaks."

COACH_INSTRUCTION = (
    "You are an expert piano coach. Build dynamic practice plans. "
    "Every step MUST have a 'type' that is strictly 'study', 'practice' or 'break'."
)

QUOTE_INSTRUCTION = "Answer with a single short sentence."

PLAN_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "steps": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "duration": {"type": "STRING"},
                    "action": {"type": "STRING"},
                    "description": {"type": "STRING"},
                    "type": {"type": "STRING", "enum": [t.value for t in ActivityType]},
                },
                "required": ["duration", "action", "description", "type"],
            },
        },
        "techniqueTip": {"type": "STRING"},
    },
    "required": ["title", "steps", "techniqueTip"],
}


class CoachError(Exception):
    """The AI service could not produce a usable answer."""


def build_plan_prompt(goal: str, minutes: int) -> str:
    return f"""The student is practicing: "{goal}". Build a practice plan of EXACTLY {minutes} minutes.
IMPORTANT: classify every step into one of these 3 categories:
- 'study': technique, slow reading or analysis.
- 'practice': playing pieces fluently or repertoire.
- 'break': short 2-5 minute pauses if the session is long.
Each step duration is a whole number of minutes written as a string, e.g. "10"."""


def _generate(prompt: str, system_instruction: str, schema: Optional[dict] = None) -> str:
    """Call generateContent and return the text of the first candidate."""
    if not GEMINI_API_KEY:
        raise CoachError("GEMINI_API_KEY is not set")

    body = {
        "system_instruction": {"parts": [{"text": system_instruction}]},
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
    }
    if schema is not None:
        body["generationConfig"] = {
            "responseMimeType": "application/json",
            "responseSchema": schema,
        }

    url = GEMINI_URL.format(model=GEMINI_MODEL)
    if DEBUG:
        print(f"[Coach] POST {url}")

    try:
        response = requests.post(
            url,
            headers={"x-goog-api-key": GEMINI_API_KEY},
            json=body,
            timeout=GEMINI_TIMEOUT,
        )
    except requests.exceptions.RequestException as e:
        raise CoachError(f"Cannot reach the AI service: {e}") from e

    if response.status_code != 200:
        raise CoachError(f"AI service returned {response.status_code}")

    try:
        result = response.json()
        return result["candidates"][0]["content"]["parts"][0]["text"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise CoachError(f"Unexpected AI response: {e}") from e


def _normalize_step(step: dict) -> dict:
    activity = str(step.get("type", "")).strip().lower()
    if activity not in {t.value for t in ActivityType}:
        activity = ActivityType.PRACTICE.value
    return {
        "duration": str(step.get("duration", "")).strip(),
        "action": str(step.get("action", "")).strip(),
        "description": str(step.get("description", "")).strip(),
        "type": activity,
    }


def generate_practice_plan(goal: str, minutes: int) -> dict:
    """
    Ask the AI for a structured practice plan.

    Returns {"title", "steps": [{"duration", "action", "description", "type"}],
    "techniqueTip"}. Raises CoachError on any failure.
    """
    text = _generate(build_plan_prompt(goal, minutes), COACH_INSTRUCTION, PLAN_SCHEMA)

    try:
        plan = json.loads((text or "{}").strip())
    except json.JSONDecodeError as e:
        raise CoachError(f"AI response is not JSON: {e}") from e

    if not isinstance(plan, dict) or not isinstance(plan.get("steps"), list):
        raise CoachError("AI response has no steps")

    print(f"[Coach] Generated plan with {len(plan['steps'])} steps for '{goal}'")
    return {
        "title": str(plan.get("title") or goal),
        "steps": [_normalize_step(s) for s in plan["steps"] if isinstance(s, dict)],
        "techniqueTip": str(plan.get("techniqueTip") or ""),
    }


def get_inspirational_quote() -> str:
    """Short quote about piano practice, or a fixed fallback."""
    try:
        text = _generate("Give me a short quote about playing the piano.", QUOTE_INSTRUCTION)
    except CoachError as e:
        if DEBUG:
            print(f"[Coach] Quote unavailable: {e}")
        return FALLBACK_QUOTE
    return text.strip() or FALLBACK_QUOTE
