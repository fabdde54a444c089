"""
LLM loader for the text-generation service.

This module provides functions to initialize ChatGoogleGenerativeAI
instances from the centralized LLMConfig presets.

GEMINI:
- Uses ChatGoogleGenerativeAI (Google Gemini) through langchain_google_genai
- Classifier preset: temperature=0.1, JSON mode
- Prompt preset: temperature from settings (default 0.5)
"""

import logging
from typing import Optional

from langchain_google_genai import ChatGoogleGenerativeAI

from src.shared_lib.core.config import LLMConfig, get_classifier_config, get_prompt_config

logger = logging.getLogger(__name__)


def load_llm(config: Optional[LLMConfig] = None) -> ChatGoogleGenerativeAI:
    """
    Initialize and return a configured ChatGoogleGenerativeAI instance.

    Args:
        config: LLM configuration. Defaults to the prompt preset.

    Returns:
        ChatGoogleGenerativeAI: Configured LLM instance.

    Example:
        >>> llm = load_llm()
        >>> response = await llm.ainvoke("Summarize this dataset: ...")
    """
    config = config or get_prompt_config()

    llm = ChatGoogleGenerativeAI(**config.to_gemini_kwargs())

    logger.info(
        f"Gemini LLM initialized - "
        f"Model: {config.model}, "
        f"Timeout: {config.timeout if config.timeout is not None else 'none'}, "
        f"Max Retries: {config.max_retries}, "
        f"Max Output Tokens: {config.max_output_tokens}, "
        f"Temperature: {config.temperature}"
    )

    return llm


def load_classifier_llm() -> ChatGoogleGenerativeAI:
    """Gemini instance tuned for single-object JSON classification replies."""
    return load_llm(get_classifier_config())
