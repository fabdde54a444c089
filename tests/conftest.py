"""Shared fixtures and service doubles."""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest

from src.content_classifier.tab_store import TabStore
from src.pipeline_graph.editor import PipelineEditor
from src.pipeline_graph.graph.store import GraphStore
from src.shared_lib.clients.tabular_document import DocumentServiceError
from src.shared_lib.clients.text_generation import TextGenerationError
from src.shared_lib.models.schema import NodeKind


class FakeTextGenerator:
    """Records prompts; replies through *responder* (echo by default)."""

    def __init__(
        self,
        responder: Optional[Callable[[str], str]] = None,
        delay: float = 0.0,
        fail_with: Optional[str] = None,
    ):
        self.responder = responder or (lambda prompt: f"generated: {prompt}")
        self.delay = delay
        self.fail_with = fail_with
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with:
            raise TextGenerationError(self.fail_with)
        return self.responder(prompt)

    @property
    def calls(self) -> int:
        return len(self.prompts)


class FakeDocumentClient:
    def __init__(self, url: str = "https://docs.example.com/sheet/1", fail: bool = False):
        self.url = url
        self.fail = fail
        self.requests: List[List[Dict[str, Any]]] = []

    async def create_document(self, rows):
        self.requests.append(rows)
        if self.fail:
            raise DocumentServiceError("Document service returned 500")
        return self.url


FAST_RUNTIMES = {NodeKind.PROMPT: 0.05}


@pytest.fixture
def generator():
    return FakeTextGenerator()


@pytest.fixture
def document_client():
    return FakeDocumentClient()


@pytest.fixture
def store():
    return GraphStore()


@pytest.fixture
def tabs():
    return TabStore()


@pytest.fixture
def make_editor(generator):
    """Factory for editors with short debounce windows; closed after the test."""
    editors = []

    def _make(**kwargs) -> PipelineEditor:
        kwargs.setdefault("generator", generator)
        kwargs.setdefault("classification_debounce", 0.05)
        kwargs.setdefault("runtime_debounce", FAST_RUNTIMES)
        kwargs.setdefault("seed_samples", False)
        editor = PipelineEditor(**kwargs)
        editors.append(editor)
        return editor

    yield _make
    for editor in editors:
        editor.close()
