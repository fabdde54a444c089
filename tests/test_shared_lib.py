"""Shared helpers: JSON utilities, LLM config, event hub and service clients."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.shared_lib.clients import tabular_document
from src.shared_lib.clients.tabular_document import (
    DocumentServiceError,
    HttpTabularDocumentClient,
)
from src.shared_lib.clients.text_generation import (
    GeminiTextGenerator,
    TextGenerationError,
    extract_text,
)
from src.shared_lib.core.config import LLMConfig, get_classifier_config, get_prompt_config
from src.shared_lib.utils.events import EventHub
from src.shared_lib.utils.json_utils import (
    error_output,
    format_for_display,
    is_error_output,
    parse_json_reply,
    try_parse_json,
)


# ---------------------------------------------------------------------------
# JSON utilities
# ---------------------------------------------------------------------------


def test_parse_json_reply_handles_fences_and_prose():
    assert parse_json_reply('```json\n{"a": 1}\n```') == {"a": 1}
    assert parse_json_reply('Sure! Here it is: {"a": 2} Hope it helps') == {"a": 2}


@pytest.mark.parametrize("reply", ["no json", "[1, 2]", "{broken"])
def test_parse_json_reply_rejects_non_objects(reply):
    with pytest.raises(ValueError):
        parse_json_reply(reply)


def test_try_parse_json():
    assert try_parse_json("[1, 2]") == [1, 2]
    assert try_parse_json("  ") is None
    assert try_parse_json("not json") is None


def test_format_for_display_only_reindents_json():
    assert format_for_display('{"a":1}') == '{\n  "a": 1\n}'
    assert format_for_display("plain text {not json}") == "plain text {not json}"
    assert format_for_display(None) is None


def test_error_output_convention():
    assert error_output("quota exceeded") == "Error: quota exceeded"
    assert error_output("Error: already prefixed") == "Error: already prefixed"
    assert error_output("") == "Error: Unknown error"
    assert is_error_output("  Error: x")
    assert not is_error_output("fine")
    assert not is_error_output(None)


# ---------------------------------------------------------------------------
# LLM config
# ---------------------------------------------------------------------------


def test_llm_config_to_gemini_kwargs():
    config = LLMConfig(model="gemini-test", temperature=0.2, api_key="key", timeout=None)

    kwargs = config.to_gemini_kwargs()

    assert kwargs["model"] == "gemini-test"
    assert kwargs["google_api_key"] == "key"
    assert "timeout" not in kwargs


def test_presets_apply_overrides():
    assert get_classifier_config().response_mime_type == "application/json"
    assert get_prompt_config(temperature=1.5).temperature == 1.5

    with pytest.raises(ValueError):
        get_prompt_config(not_a_field=1)


# ---------------------------------------------------------------------------
# Event hub
# ---------------------------------------------------------------------------


def _event(type_, subject):
    return SimpleNamespace(type=type_, subject_ids=lambda: {subject})


def test_event_hub_filters_by_type_and_subject():
    hub = EventHub("test")
    seen = []
    hub.subscribe(seen.append, subject_id="a", event_types={"changed"})

    hub.publish(_event("changed", "a"))
    hub.publish(_event("changed", "b"))
    hub.publish(_event("removed", "a"))

    assert len(seen) == 1


def test_event_hub_isolates_failing_subscriber():
    hub = EventHub("test")
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    hub.subscribe(broken)
    subscription = hub.subscribe(seen.append)
    hub.publish(_event("changed", "a"))
    subscription.cancel()
    hub.publish(_event("changed", "a"))

    assert len(seen) == 1
    assert len(hub) == 1


# ---------------------------------------------------------------------------
# Text generation
# ---------------------------------------------------------------------------


def test_extract_text_joins_parts():
    response = SimpleNamespace(content=["Hello ", {"type": "text", "text": "world"}, {"type": "image"}])

    assert extract_text(response) == "Hello world"


@pytest.mark.asyncio
async def test_gemini_generator_returns_reply_text():
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=SimpleNamespace(content="generated"))
    generator = GeminiTextGenerator(llm=llm)

    assert await generator.generate("prompt") == "generated"
    messages = llm.ainvoke.await_args.args[0]
    assert messages[0].content == "prompt"


@pytest.mark.asyncio
async def test_gemini_generator_wraps_failures():
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=RuntimeError("quota exceeded"))

    with pytest.raises(TextGenerationError, match="quota exceeded"):
        await GeminiTextGenerator(llm=llm).generate("prompt")


@pytest.mark.asyncio
async def test_gemini_generator_rejects_empty_reply():
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=SimpleNamespace(content="   "))

    with pytest.raises(TextGenerationError):
        await GeminiTextGenerator(llm=llm).generate("prompt")


# ---------------------------------------------------------------------------
# Tabular document service
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_transport(monkeypatch):
    """Route the document client's requests to a handler set by the test."""
    state = {"handler": None, "requests": []}
    real_client = httpx.AsyncClient

    def handler(request):
        state["requests"].append(request)
        return state["handler"](request)

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(tabular_document.httpx, "AsyncClient", client_factory)
    return state


@pytest.mark.asyncio
async def test_document_client_posts_rows(mock_transport):
    mock_transport["handler"] = lambda request: httpx.Response(
        200, json={"documentUrl": "https://docs.example.com/d/1"}
    )
    client = HttpTabularDocumentClient("https://service.example.com/documents")

    url = await client.create_document([{"id": 1}])

    assert url == "https://docs.example.com/d/1"
    assert json.loads(mock_transport["requests"][0].content) == {"rows": [{"id": 1}]}


@pytest.mark.asyncio
async def test_document_client_accepts_legacy_field(mock_transport):
    mock_transport["handler"] = lambda request: httpx.Response(
        200, json={"sheetUrl": "https://docs.example.com/d/2"}
    )

    url = await HttpTabularDocumentClient("https://service.example.com").create_document([])

    assert url == "https://docs.example.com/d/2"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "down"}),
        httpx.Response(200, json={"status": "ok"}),
        httpx.Response(200, text="not json"),
    ],
)
async def test_document_client_errors(mock_transport, response):
    mock_transport["handler"] = lambda request: response

    with pytest.raises(DocumentServiceError):
        await HttpTabularDocumentClient("https://service.example.com").create_document([{"a": 1}])


def test_document_client_requires_endpoint(monkeypatch):
    monkeypatch.setattr(tabular_document, "DOCUMENT_SERVICE_URL", None)

    with pytest.raises(ValueError):
        HttpTabularDocumentClient()


@pytest.mark.asyncio
async def test_gemini_generator_builds_model_lazily_from_loader():
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=SimpleNamespace(content='{"kind": "prompt"}'))
    loader = MagicMock(return_value=llm)
    generator = GeminiTextGenerator(name="classifier", loader=loader)

    loader.assert_not_called()
    await generator.generate("classify")
    await generator.generate("classify again")

    loader.assert_called_once_with()
    assert generator.call_count == 2
