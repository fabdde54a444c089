"""Per-kind node runtimes."""

import pytest

from src.pipeline_graph.runtime.base import NoUsableDataError
from src.pipeline_graph.runtime.data_source import DataSourceRuntime
from src.pipeline_graph.runtime.display import DisplayRuntime
from src.pipeline_graph.runtime.prompt import PromptRuntime, build_prompt
from src.pipeline_graph.runtime.registry import RUNTIME_REGISTRY, build_runtimes
from src.pipeline_graph.runtime.spreadsheet import (
    SpreadsheetRuntime,
    build_preview,
    frame_to_records,
    parse_rows,
)
from src.shared_lib.models.schema import (
    DataSourceConfig,
    DisplayConfig,
    Node,
    NodeKind,
    Position,
    PromptConfig,
    SpreadsheetConfig,
)
from tests.conftest import FakeDocumentClient, FakeTextGenerator


def _node(config, input=None, label="Node"):
    return Node(id="node-1", label=label, position=Position(x=0, y=0), config=config, input=input)


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------


def test_build_prompt_replaces_every_marker():
    assert build_prompt("Compare INPUT with INPUT", "x") == "Compare x with x"


def test_build_prompt_appends_input_without_marker():
    assert build_prompt("Summarize this", "data") == "Summarize this\n\nInput:\ndata"


def test_build_prompt_without_input_is_template():
    assert build_prompt("List three colors", None) == "List three colors"


@pytest.mark.asyncio
async def test_prompt_runtime_sends_built_prompt():
    generator = FakeTextGenerator(responder=lambda prompt: "summary")
    runtime = PromptRuntime(generator)

    output = await runtime.execute(_node(PromptConfig(prompt="Summarize INPUT"), input='{"a":1}'))

    assert output == "summary"
    assert generator.prompts == ['Summarize {"a":1}']


@pytest.mark.asyncio
async def test_prompt_runtime_rejects_upstream_error():
    runtime = PromptRuntime(FakeTextGenerator())

    with pytest.raises(NoUsableDataError):
        await runtime.execute(_node(PromptConfig(prompt="Summarize INPUT"), input="Error: boom"))


def test_prompt_fingerprint_waits_for_template_and_upstream():
    runtime = PromptRuntime(FakeTextGenerator())

    assert runtime.fingerprint(_node(PromptConfig(prompt="   "))) is None
    assert runtime.fingerprint(_node(PromptConfig(prompt="Go"), input=""), has_upstream=True) is None
    assert runtime.fingerprint(_node(PromptConfig(prompt="Go")), has_upstream=False) is not None


def test_fingerprint_tracks_config_and_input():
    runtime = PromptRuntime(FakeTextGenerator())
    base = runtime.fingerprint(_node(PromptConfig(prompt="Go"), input="a"))

    assert base == runtime.fingerprint(_node(PromptConfig(prompt="Go"), input="a"))
    assert base != runtime.fingerprint(_node(PromptConfig(prompt="Go"), input="b"))
    assert base != runtime.fingerprint(_node(PromptConfig(prompt="Stop"), input="a"))


# ---------------------------------------------------------------------------
# DataSource / Display
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_data_source_outputs_content():
    runtime = DataSourceRuntime()
    node = _node(DataSourceConfig(content='{"a":1}'))

    assert await runtime.execute(node) == '{"a":1}'
    assert runtime.debounce_seconds == 0
    assert runtime.fingerprint(node) == runtime.fingerprint(node.model_copy(update={"input": "x"}))


@pytest.mark.asyncio
async def test_display_passes_input_through():
    assert await DisplayRuntime().execute(_node(DisplayConfig(), input="hello")) == "hello"


@pytest.mark.asyncio
async def test_display_reports_upstream_error_as_no_data():
    with pytest.raises(NoUsableDataError):
        await DisplayRuntime().execute(_node(DisplayConfig(), input="Error: quota exceeded"))


# ---------------------------------------------------------------------------
# Spreadsheet
# ---------------------------------------------------------------------------


def test_parse_rows_from_array_of_records():
    frame = parse_rows('[{"id": "TA0001", "name": "Initial Access"}, {"id": "TA0002"}]')

    assert list(frame.columns) == ["id", "name"]
    assert frame_to_records(frame) == [
        {"id": "TA0001", "name": "Initial Access"},
        {"id": "TA0002", "name": None},
    ]


def test_parse_rows_wraps_scalar_items():
    frame = parse_rows("[1, 2, 3]")

    assert frame_to_records(frame) == [{"value": 1}, {"value": 2}, {"value": 3}]


def test_parse_rows_from_object_gives_key_value_rows():
    frame = parse_rows('{"name": "Execution", "ids": [1, 2]}')

    assert frame_to_records(frame) == [
        {"Key": "name", "Value": "Execution"},
        {"Key": "ids", "Value": "[1, 2]"},
    ]


@pytest.mark.parametrize("text", ["not json", "42", "[]", "{}", "Error: upstream failed"])
def test_parse_rows_rejects_unusable_input(text):
    with pytest.raises(NoUsableDataError):
        parse_rows(text)


def test_build_preview_renders_table():
    preview = build_preview('[{"id": "TA0001", "name": "Initial Access"}]')

    assert "TA0001" in preview
    assert "Initial Access" in preview
    assert build_preview("plain text") is None


@pytest.mark.asyncio
async def test_spreadsheet_without_client_passes_input_through():
    node = _node(SpreadsheetConfig(), input='[{"a": 1}]')

    assert await SpreadsheetRuntime().execute(node) == '[{"a": 1}]'


@pytest.mark.asyncio
async def test_spreadsheet_with_client_returns_document_url():
    client = FakeDocumentClient(url="https://docs.example.com/sheet/42")
    node = _node(SpreadsheetConfig(), input='{"a": 1}')

    output = await SpreadsheetRuntime(client).execute(node)

    assert output == "https://docs.example.com/sheet/42"
    assert client.requests == [[{"Key": "a", "Value": "1"}]]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def test_registry_covers_every_kind():
    assert set(RUNTIME_REGISTRY) == set(NodeKind)


def test_build_runtimes_applies_overrides():
    generator = FakeTextGenerator()

    runtimes = build_runtimes(generator, debounce_overrides={NodeKind.PROMPT: 0.25})

    assert runtimes[NodeKind.PROMPT].debounce_seconds == 0.25
    assert runtimes[NodeKind.PROMPT].generator is generator
    assert runtimes[NodeKind.SPREADSHEET].client is None
