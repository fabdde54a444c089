"""
Centralized Gemini LLM configuration.

Every component that talks to the text-generation service builds its
ChatGoogleGenerativeAI instance from an LLMConfig, so model, retries and
credentials are defined in one place.

Presets:
- get_classifier_config(): low temperature, small output budget, JSON replies
- get_prompt_config(): balanced temperature for prompt nodes
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from src.shared_lib.core.settings import (
    GEMINI_API_KEY,
    GEMINI_MODEL,
    LLM_MAX_RETRIES,
    LLM_TIMEOUT,
    MAX_OUTPUT_TOKENS,
    TEMPERATURE,
)

logger = logging.getLogger(__name__)


@dataclass
class LLMConfig:
    """
    Gemini LLM configuration.

    Attributes:
        model: Gemini model name
        temperature: Sampling temperature (0.0-2.0)
        max_output_tokens: Maximum tokens in the response
        timeout: Request timeout in seconds (None = wait indefinitely)
        max_retries: Retries performed by the client on transient errors
        api_key: Gemini API key (defaults to settings)
        response_mime_type: Optional MIME type hint (JSON mode)
    """

    model: str = GEMINI_MODEL
    temperature: float = TEMPERATURE
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    timeout: Optional[float] = LLM_TIMEOUT
    max_retries: int = LLM_MAX_RETRIES
    api_key: Optional[str] = field(default=GEMINI_API_KEY, repr=False)
    response_mime_type: Optional[str] = None

    def to_gemini_kwargs(self) -> Dict[str, Any]:
        """
        Convert the configuration into ChatGoogleGenerativeAI keyword arguments.

        Returns:
            Dictionary ready to be unpacked into ChatGoogleGenerativeAI(...)
        """
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "max_output_tokens": self.max_output_tokens,
            "max_retries": self.max_retries,
        }
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        if self.api_key:
            kwargs["google_api_key"] = self.api_key
        if self.response_mime_type:
            kwargs["response_mime_type"] = self.response_mime_type
        return kwargs


def _apply_overrides(config: LLMConfig, overrides: Dict[str, Any]) -> LLMConfig:
    valid = {k: v for k, v in overrides.items() if v is not None}
    unknown = set(valid) - set(LLMConfig.__dataclass_fields__)
    if unknown:
        raise ValueError(f"Unknown LLMConfig fields: {sorted(unknown)}")
    return replace(config, **valid)


def get_classifier_config(**overrides: Any) -> LLMConfig:
    """
    Configuration used by the content classifier.

    Low temperature keeps the JSON reply stable across edits of the same tab.
    """
    config = LLMConfig(
        temperature=0.1,
        max_output_tokens=256,
        response_mime_type="application/json",
    )
    config = _apply_overrides(config, overrides)
    logger.debug(f"Classifier LLM config: model={config.model}, temp={config.temperature}")
    return config


def get_prompt_config(**overrides: Any) -> LLMConfig:
    """Configuration used by prompt nodes."""
    config = _apply_overrides(LLMConfig(), overrides)
    logger.debug(f"Prompt LLM config: model={config.model}, temp={config.temperature}")
    return config
