"""Configuration loaded from the environment (and a .env file if present)."""
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from study_rpg.db import DEFAULT_DB_PATH

load_dotenv()

GEMINI_DEFAULT_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent"
)


@dataclass
class Config:
    db_path: str = field(default_factory=lambda: os.getenv("STUDY_RPG_DB_PATH", DEFAULT_DB_PATH))
    log_level: str = field(default_factory=lambda: os.getenv("STUDY_RPG_LOG_LEVEL", "INFO"))
    exam_name: str = field(default_factory=lambda: os.getenv("STUDY_RPG_EXAM", "MSÜ"))
    gemini_api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    gemini_api_url: str = field(default_factory=lambda: os.getenv("GEMINI_API_URL", GEMINI_DEFAULT_URL))
    gemini_timeout: float = field(default_factory=lambda: float(os.getenv("GEMINI_TIMEOUT", "30")))
    gemini_temperature: float = field(default_factory=lambda: float(os.getenv("GEMINI_TEMPERATURE", "0.7")))
    gemini_max_tokens: int = field(default_factory=lambda: int(os.getenv("GEMINI_MAX_TOKENS", "2000")))
