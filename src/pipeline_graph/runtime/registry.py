"""
Runtime Registry - maps node kinds to their runtime implementations
====================================================================

Usage:
    runtimes = build_runtimes(generator=GeminiTextGenerator())
    runtime = runtimes[NodeKind.PROMPT]
"""

import logging
from typing import Dict, Optional, Type

from src.pipeline_graph.runtime.base import BaseNodeRuntime
from src.pipeline_graph.runtime.data_source import DataSourceRuntime
from src.pipeline_graph.runtime.display import DisplayRuntime
from src.pipeline_graph.runtime.prompt import PromptRuntime
from src.pipeline_graph.runtime.spreadsheet import SpreadsheetRuntime
from src.shared_lib.clients.tabular_document import TabularDocumentClient
from src.shared_lib.clients.text_generation import GeminiTextGenerator, TextGenerator
from src.shared_lib.models.schema import NodeKind

logger = logging.getLogger(__name__)


RUNTIME_REGISTRY: Dict[NodeKind, Type[BaseNodeRuntime]] = {
    NodeKind.DATA_SOURCE: DataSourceRuntime,
    NodeKind.PROMPT: PromptRuntime,
    NodeKind.SPREADSHEET: SpreadsheetRuntime,
    NodeKind.DISPLAY: DisplayRuntime,
}


def build_runtimes(
    generator: Optional[TextGenerator] = None,
    document_client: Optional[TabularDocumentClient] = None,
    debounce_overrides: Optional[Dict[NodeKind, float]] = None,
) -> Dict[NodeKind, BaseNodeRuntime]:
    """
    Instantiate one runtime per node kind.

    Args:
        generator: Text generator for prompt nodes (Gemini when None)
        document_client: Tabular-document client for spreadsheet nodes
            (None = pass-through)
        debounce_overrides: Per-kind debounce windows replacing the defaults

    Returns:
        Mapping NodeKind -> runtime instance
    """
    overrides = debounce_overrides or {}
    runtimes: Dict[NodeKind, BaseNodeRuntime] = {}
    for kind, runtime_class in RUNTIME_REGISTRY.items():
        debounce = overrides.get(kind)
        if runtime_class is PromptRuntime:
            runtimes[kind] = PromptRuntime(generator or GeminiTextGenerator(), debounce)
        elif runtime_class is SpreadsheetRuntime:
            runtimes[kind] = SpreadsheetRuntime(document_client, debounce)
        else:
            runtimes[kind] = runtime_class(debounce)

    logger.debug(f"Runtimes built: {', '.join(repr(r) for r in runtimes.values())}")
    return runtimes


def get_supported_kinds() -> list[str]:
    return [kind.value for kind in RUNTIME_REGISTRY]
