"""
Local content heuristics.

Used when no text-generation service is configured. Detection order:
JSON, CSV, YAML, then keyword rules for spreadsheet and display content;
anything else is treated as a prompt.
"""

import io
import json
import logging
import re
from typing import Optional

import pandas as pd
import yaml

from src.content_classifier.core.settings import (
    DISPLAY_KEYWORDS,
    HEURISTIC_DEFAULT_CONFIDENCE,
    HEURISTIC_FORMAT_CONFIDENCE,
    HEURISTIC_KEYWORD_CONFIDENCE,
    SPREADSHEET_KEYWORDS,
)
from src.shared_lib.models.schema import Classification, ContentKind

logger = logging.getLogger(__name__)

_YAML_LINE = re.compile(r"^\s*(-\s|-$|[\w\"'][\w\s\"'.-]*:(\s|$)|#)")


def looks_like_json(text: str) -> bool:
    stripped = text.strip()
    if not stripped.startswith(("{", "[")):
        return False
    try:
        json.loads(stripped)
    except json.JSONDecodeError:
        return False
    return True


def looks_like_csv(text: str) -> bool:
    """
    At least a header and one row, every line with the same number of
    comma-separated fields (two or more), and parseable by pandas.
    """
    lines = [line for line in text.strip().splitlines() if line.strip()]
    if len(lines) < 2:
        return False
    widths = {len(line.split(",")) for line in lines}
    if len(widths) != 1 or widths.pop() < 2:
        return False
    try:
        frame = pd.read_csv(io.StringIO(text.strip()))
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError):
        return False
    return len(frame.columns) >= 2 and len(frame) >= 1


def looks_like_yaml(text: str) -> bool:
    """Every line reads like a mapping key or list item and the document loads as a collection."""
    lines = [line for line in text.strip().splitlines() if line.strip()]
    if len(lines) < 2:
        return False
    for line in lines:
        if not _YAML_LINE.match(line) and not line.startswith((" ", "\t")):
            return False
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError:
        return False
    return isinstance(loaded, (dict, list))


def _contains_keyword(text: str, keywords) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def detect_data_format(text: str) -> Optional[str]:
    """Return ``json``, ``csv`` or ``yaml`` when *text* is structured data."""
    if looks_like_json(text):
        return "json"
    if looks_like_csv(text):
        return "csv"
    if looks_like_yaml(text):
        return "yaml"
    return None


def classify_locally(content: str) -> Classification:
    """
    Deterministic classification of *content*.

    Args:
        content: Raw tab text

    Returns:
        Classification inferred without calling any service
    """
    data_format = detect_data_format(content)
    if data_format:
        logger.debug(f"[Heuristics] Detected {data_format} dataset")
        return Classification(
            kind=ContentKind.DATASET,
            format=data_format,
            confidence=HEURISTIC_FORMAT_CONFIDENCE,
        )

    if _contains_keyword(content, SPREADSHEET_KEYWORDS):
        return Classification(
            kind=ContentKind.SPREADSHEET, confidence=HEURISTIC_KEYWORD_CONFIDENCE
        )

    if _contains_keyword(content, DISPLAY_KEYWORDS):
        return Classification(
            kind=ContentKind.DISPLAY, confidence=HEURISTIC_KEYWORD_CONFIDENCE
        )

    return Classification(kind=ContentKind.PROMPT, confidence=HEURISTIC_DEFAULT_CONFIDENCE)
