"""
Content classification for editor tabs.

ClassificationService asks the text-generation service for a single JSON
object describing what a tab holds (dataset, prompt, spreadsheet or display).
It never raises: any failure yields DEFAULT_CLASSIFICATION. Without a text
generator it falls back to the deterministic local heuristics.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from src.content_classifier.core.settings import CLASSIFICATION_PROMPT, KIND_ALIASES
from src.content_classifier.heuristics import classify_locally
from src.shared_lib.clients.text_generation import TextGenerationError, TextGenerator
from src.shared_lib.models.schema import (
    DATA_FORMATS,
    DEFAULT_CLASSIFICATION,
    Classification,
    ContentKind,
)
from src.shared_lib.utils.json_utils import parse_json_reply

logger = logging.getLogger(__name__)


class ClassificationParseError(ValueError):
    """Raised when a classifier reply cannot be turned into a Classification."""

    pass


def parse_classification(reply: str) -> Classification:
    """
    Validate a classifier reply.

    ``kind`` (or its alias ``type``) and a numeric ``confidence`` are
    required; datasets also need a ``format`` string. ``sheets`` is
    accepted for ``spreadsheet``. Dataset formats outside
    json/csv/yaml/structured are reported as ``structured``.

    Raises:
        ClassificationParseError: If the reply is not a usable classification
    """
    try:
        data: Dict[str, Any] = parse_json_reply(reply)
    except ValueError as e:
        raise ClassificationParseError(str(e)) from e

    raw_kind = data.get("kind", data.get("type"))
    if not isinstance(raw_kind, str):
        raise ClassificationParseError("Missing 'kind' in classification reply")
    kind = KIND_ALIASES.get(raw_kind.strip().lower())
    if kind is None:
        raise ClassificationParseError(f"Unknown kind '{raw_kind}'")

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise ClassificationParseError("Missing numeric 'confidence' in classification reply")

    data_format = data.get("format")
    if kind == ContentKind.DATASET.value:
        if not isinstance(data_format, str) or not data_format.strip():
            raise ClassificationParseError("Missing 'format' in dataset classification reply")
        data_format = data_format.strip().lower()
        if data_format not in DATA_FORMATS:
            data_format = "structured"
    else:
        data_format = None

    try:
        return Classification(kind=kind, format=data_format, confidence=float(confidence))
    except ValidationError as e:
        raise ClassificationParseError(f"Invalid classification: {e}") from e


class ClassificationService:
    """
    Classifies tab content.

    Example:
        >>> service = ClassificationService(GeminiTextGenerator())
        >>> await service.classify('{"a": 1}', "data-source")
        Classification(kind=<ContentKind.DATASET: 'dataset'>, format='json', confidence=0.95)
    """

    def __init__(self, generator: Optional[TextGenerator] = None):
        """
        Args:
            generator: Text-generation client; None selects the local heuristics
        """
        self.generator = generator
        self.mode = "llm" if generator is not None else "heuristic"
        logger.info(f"[ClassificationService] Initialized in {self.mode} mode")

    async def classify(self, content: str, hint: str = "text") -> Classification:
        """
        Classify *content*.

        Args:
            content: Raw tab text
            hint: Current tab type, included in the prompt as context

        Returns:
            The inferred Classification, or DEFAULT_CLASSIFICATION on failure
        """
        if self.generator is None:
            return classify_locally(content)

        prompt = CLASSIFICATION_PROMPT.format(hint=hint, content=content)
        try:
            reply = await self.generator.generate(prompt)
        except TextGenerationError as e:
            logger.warning(f"[ClassificationService] Service error, using default: {e}")
            return DEFAULT_CLASSIFICATION
        except Exception as e:
            logger.error(
                f"[ClassificationService] Unexpected error, using default: {e}",
                exc_info=True,
            )
            return DEFAULT_CLASSIFICATION

        try:
            classification = parse_classification(reply)
        except ClassificationParseError as e:
            logger.warning(f"[ClassificationService] Unusable reply, using default: {e}")
            logger.debug(f"[ClassificationService] Raw reply: {reply[:200]}")
            return DEFAULT_CLASSIFICATION

        logger.debug(
            f"[ClassificationService] {classification.kind.value} "
            f"({classification.format}, {classification.confidence:.2f})"
        )
        return classification
