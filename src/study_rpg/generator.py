"""Text generation client (Gemini) and helpers for parsing its output."""
import json
import logging
import re

import requests

from study_rpg.config import Config
from study_rpg.errors import GenerationUnavailable

logger = logging.getLogger(__name__)

FENCE_RE = re.compile(r"```(?:json)?\n?|\n?```")

MOTIVATION_SUCCESS = "Great progress! The exam is yours! 🎯"
MOTIVATION_RETRY = "No giving up! Stay disciplined and keep going! 💪"


class GeminiGenerator:
    """`generate(prompt) -> text` over the Gemini generateContent endpoint."""

    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        self.config = config or Config()
        self.session = session or requests.Session()

    @property
    def available(self) -> bool:
        return bool(self.config.gemini_api_key)

    def generate(self, prompt: str) -> str:
        if not self.available:
            raise GenerationUnavailable("GEMINI_API_KEY is not set")
        try:
            resp = self.session.post(
                self.config.gemini_api_url,
                params={"key": self.config.gemini_api_key},
                json={
                    "contents": [{"parts": [{"text": prompt}]}],
                    "generationConfig": {
                        "temperature": self.config.gemini_temperature,
                        "maxOutputTokens": self.config.gemini_max_tokens,
                    },
                },
                timeout=self.config.gemini_timeout,
            )
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Gemini request failed: %s", e)
            raise GenerationUnavailable(str(e)) from e

        if "error" in data:
            logger.error("Gemini API error: %s", data["error"])
            raise GenerationUnavailable(str(data["error"].get("message", data["error"])))
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationUnavailable(f"unexpected Gemini response: {e}") from e


def strip_fences(text: str) -> str:
    """Remove markdown code fences around generated JSON."""
    return FENCE_RE.sub("", text).strip()


def parse_json(text: str) -> dict:
    try:
        data = json.loads(strip_fences(text))
    except json.JSONDecodeError as e:
        logger.warning("generated content is not JSON: %s", e)
        raise GenerationUnavailable(f"unparseable generated content: {e}") from e
    if not isinstance(data, dict):
        raise GenerationUnavailable("generated content is not a JSON object")
    return data


def motivation_message(generator, name: str, level: int, streak: int, success: bool,
                       days_left: int = 7, exam: str = "MSÜ") -> str:
    """Short pep talk after a task; falls back to a canned line if generation fails."""
    prompt = (
        f"{days_left} days are left until the {exam} exam. Write a short motivational "
        f"message for the student:\n"
        f"- Name: {name}\n"
        f"- Level: {level}\n"
        f"- Streak: {streak} consecutive study days\n"
        f"- Last result: {'success' if success else 'failure'}\n"
        f"- Days left: {days_left}\n\n"
        "Two sentences, energizing, stress military discipline, use emoji."
    )
    try:
        text = generator.generate(prompt).strip()
    except GenerationUnavailable as e:
        logger.info("motivation fallback used: %s", e)
        text = ""
    if text:
        return text
    return MOTIVATION_SUCCESS if success else MOTIVATION_RETRY
