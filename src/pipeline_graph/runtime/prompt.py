"""
Prompt runtime.

Builds the final prompt from the node's template and its resolved input,
sends it to the text-generation service and returns the reply verbatim.
"""

import logging
from typing import Optional

from src.pipeline_graph.core.settings import INPUT_MARKER
from src.pipeline_graph.runtime.base import BaseNodeRuntime, NoUsableDataError
from src.shared_lib.clients.text_generation import TextGenerator
from src.shared_lib.models.schema import Node, NodeKind
from src.shared_lib.utils.json_utils import is_error_output

logger = logging.getLogger(__name__)


def build_prompt(template: str, input_text: Optional[str]) -> str:
    """
    Combine a template with the resolved input.

    Every ``INPUT`` marker is replaced by the input. Without a marker a
    non-empty input is appended in its own section.

    Example:
        >>> build_prompt("Summarize INPUT", '{"a":1}')
        'Summarize {"a":1}'
    """
    input_text = input_text or ""
    if INPUT_MARKER in template:
        return template.replace(INPUT_MARKER, input_text)
    if not input_text.strip():
        return template
    return f"{template.rstrip()}\n\nInput:\n{input_text}"


class PromptRuntime(BaseNodeRuntime):
    """Debounced text generation for prompt nodes."""

    kind = NodeKind.PROMPT

    def __init__(self, generator: TextGenerator, debounce_seconds: Optional[float] = None):
        super().__init__(debounce_seconds)
        self.generator = generator

    def is_ready(self, node: Node) -> bool:
        return bool(node.config.prompt.strip())

    async def execute(self, node: Node) -> str:
        if is_error_output(node.input):
            raise NoUsableDataError(f"Upstream error: {node.input}")
        prompt = build_prompt(node.config.prompt, node.input)
        logger.info(f"[PromptRuntime] Generating for '{node.label}' ({len(prompt)} chars)")
        return await self.generator.generate(prompt)
