"""Core configuration shared by every package."""

from src.shared_lib.core.config import (
    LLMConfig,
    get_classifier_config,
    get_prompt_config,
)

__all__ = [
    "LLMConfig",
    "get_classifier_config",
    "get_prompt_config",
]
