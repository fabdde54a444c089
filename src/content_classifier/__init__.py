"""
Content classifier - infers what an editor tab holds.

Components:
- ClassificationService: LLM classification with a safe default
- ClassificationScheduler: per-tab debounced reclassification
- TabStore: ordered editor tabs with change notifications
"""

from src.content_classifier.classifier import (
    ClassificationParseError,
    ClassificationService,
    parse_classification,
)
from src.content_classifier.heuristics import classify_locally
from src.content_classifier.scheduler import ClassificationScheduler
from src.content_classifier.tab_store import TabEvent, TabEventType, TabStore

__all__ = [
    "ClassificationParseError",
    "ClassificationService",
    "parse_classification",
    "classify_locally",
    "ClassificationScheduler",
    "TabEvent",
    "TabEventType",
    "TabStore",
]
