"""
Environment settings and configuration variables.

This module loads environment variables and defines project-wide constants.

GEMINI CONFIGURATION:
- Primary API key: GEMINI_API_KEY (preferred)
- Fallback: GOOGLE_API_KEY (the variable langchain_google_genai reads itself)
- Default model: gemini-2.0-flash (Google Gemini)
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project root directory
# settings.py is in src/shared_lib/core/settings.py
# so we need to go up 4 levels to reach project root
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

# Gemini Configuration
GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

# Generation Configuration
TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.5"))
MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "2048"))

# Outbound calls are not timed out unless LLM_TIMEOUT is set explicitly
_llm_timeout = os.getenv("LLM_TIMEOUT")
LLM_TIMEOUT: Optional[float] = float(_llm_timeout) if _llm_timeout else None
LLM_MAX_RETRIES: int = int(os.getenv("LLM_MAX_RETRIES", "2"))

# Tabular Document Service (spreadsheet node)
DOCUMENT_SERVICE_URL: Optional[str] = os.getenv("DOCUMENT_SERVICE_URL") or None

# Debounce windows (seconds)
CLASSIFICATION_PAUSE_SECONDS: float = float(os.getenv("CLASSIFICATION_PAUSE_SECONDS", "1.0"))
PROMPT_DEBOUNCE_SECONDS: float = float(os.getenv("PROMPT_DEBOUNCE_SECONDS", "1.0"))

# Logging Configuration
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str = os.getenv("LOG_FILE", str(PROJECT_ROOT / "logs" / "system_errors.log"))


def has_llm_credentials() -> bool:
    """Return True when a Gemini API key is available."""
    return bool(GEMINI_API_KEY)


def validate_settings() -> bool:
    """
    Validate that numeric settings are within usable ranges.

    A missing API key is not an error: classification then runs on local
    heuristics and prompt nodes report an ``Error:`` output when executed.

    Returns:
        bool: True if all settings are valid

    Raises:
        ValueError: If a setting is out of range
    """
    if TEMPERATURE < 0 or TEMPERATURE > 2:
        raise ValueError(f"TEMPERATURE must be between 0 and 2, got: {TEMPERATURE}")

    if MAX_OUTPUT_TOKENS < 1:
        raise ValueError(f"MAX_OUTPUT_TOKENS must be positive, got: {MAX_OUTPUT_TOKENS}")

    if CLASSIFICATION_PAUSE_SECONDS < 0:
        raise ValueError(
            f"CLASSIFICATION_PAUSE_SECONDS must be >= 0, got: {CLASSIFICATION_PAUSE_SECONDS}"
        )

    if PROMPT_DEBOUNCE_SECONDS < 0:
        raise ValueError(
            f"PROMPT_DEBOUNCE_SECONDS must be >= 0, got: {PROMPT_DEBOUNCE_SECONDS}"
        )

    return True
