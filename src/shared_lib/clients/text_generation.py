"""
Text-generation client.

Prompt nodes and the content classifier depend on the TextGenerator
protocol (prompt in, text out, one round trip, no streaming). The Gemini
implementation wraps a LangChain chat model and awaits ``ainvoke``.
"""

import logging
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

logger = logging.getLogger(__name__)


class TextGenerationError(Exception):
    """Raised when the text-generation service fails or returns no text."""

    pass


@runtime_checkable
class TextGenerator(Protocol):
    """Anything able to turn a prompt into generated text."""

    async def generate(self, prompt: str) -> str:
        ...


def extract_text(response: Any) -> str:
    """
    Extract plain text from a LangChain response.

    Gemini may return ``content`` either as a string or as a list of
    parts (strings or ``{"type": "text", "text": ...}`` dicts).
    """
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return str(content) if content is not None else ""


class GeminiTextGenerator:
    """
    TextGenerator backed by Google Gemini.

    The chat model is created lazily so that building an editor without
    credentials never fails; the first call does.

    Example:
        >>> generator = GeminiTextGenerator()
        >>> text = await generator.generate("List three colors as JSON")
    """

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        name: str = "gemini",
        loader: Optional[Callable[[], BaseChatModel]] = None,
    ):
        """
        Args:
            llm: Pre-configured chat model (built by *loader* if None)
            name: Label used in log messages
            loader: Factory for the chat model (defaults to load_llm)
        """
        self._llm = llm
        self._loader = loader
        self.name = name
        self.call_count = 0

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            from src.shared_lib.models.llm_loader import load_llm

            self._llm = (self._loader or load_llm)()
        return self._llm

    async def generate(self, prompt: str) -> str:
        """
        Send *prompt* and return the generated text verbatim.

        Raises:
            TextGenerationError: If the call fails or the reply is empty
        """
        self.call_count += 1
        logger.debug(f"[TextGenerator:{self.name}] Call #{self.call_count} ({len(prompt)} chars)")

        try:
            response = await self.llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            logger.error(f"[TextGenerator:{self.name}] Request failed: {e}")
            raise TextGenerationError(str(e)) from e

        text = extract_text(response)
        if not text.strip():
            raise TextGenerationError("Empty response from text-generation service")

        logger.debug(f"[TextGenerator:{self.name}] Received {len(text)} chars")
        return text
