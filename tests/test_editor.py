"""End-to-end editor scenarios: runtimes, drag and drop, tab linkage."""

import asyncio

import pytest

from src.pipeline_graph.graph.placement import Viewport
from src.pipeline_graph.runtime.base import RuntimeStatus
from src.shared_lib.models.schema import (
    Classification,
    ContentKind,
    NodeKind,
    Position,
)
from tests.conftest import FakeDocumentClient, FakeTextGenerator


def _prompt_tab(editor, name, content):
    tab = editor.tabs.create_tab(name, content)
    return editor.tabs.set_classification(
        tab.id, Classification(kind=ContentKind.PROMPT, confidence=0.9)
    )


@pytest.mark.asyncio
async def test_data_source_feeds_prompt(make_editor, generator):
    editor = make_editor()
    a = editor.add_node_from_palette(NodeKind.DATA_SOURCE)
    editor.graph.update_node_config(a.id, content='{"a":1}')
    b = editor.add_node_from_palette(NodeKind.PROMPT)
    editor.graph.update_node_config(b.id, prompt="Summarize INPUT")

    await editor.settle()

    node_b = editor.graph.get_node(b.id)
    assert editor.graph.get_node(a.id).output == '{"a":1}'
    assert node_b.input == '{"a":1}'
    assert node_b.output
    assert generator.prompts == ['Summarize {"a":1}']
    assert editor.status(b.id) == RuntimeStatus.RESOLVED


@pytest.mark.asyncio
async def test_deleting_source_resets_downstream(make_editor):
    editor = make_editor()
    a = editor.add_node_from_palette(NodeKind.DATA_SOURCE)
    editor.graph.update_node_config(a.id, content='{"a":1}')
    b = editor.add_node_from_palette(NodeKind.PROMPT)
    editor.graph.update_node_config(b.id, prompt="Summarize INPUT")
    await editor.settle()

    editor.remove_node(a.id)
    assert editor.graph.get_node(b.id).output is None
    await editor.settle()

    node_b = editor.graph.get_node(b.id)
    assert editor.snapshot().edges == ()
    assert node_b.input == ""
    # A root prompt with a template runs on its own again
    assert node_b.output == "generated: Summarize "


@pytest.mark.asyncio
async def test_chain_settles_hop_by_hop(make_editor):
    editor = make_editor()
    a = editor.add_node_from_palette(NodeKind.DATA_SOURCE)
    editor.graph.update_node_config(a.id, content="hello")
    b = editor.add_node_from_palette(NodeKind.PROMPT)
    editor.graph.update_node_config(b.id, prompt="Echo INPUT")
    c = editor.add_node_from_palette(NodeKind.DISPLAY)

    await editor.settle()

    assert editor.graph.get_node(c.id).input == "generated: Echo hello"
    assert editor.graph.get_node(c.id).output == "generated: Echo hello"


@pytest.mark.asyncio
async def test_prompt_debounce_coalesces_edits(make_editor, generator):
    editor = make_editor()
    node = editor.add_node_from_palette(NodeKind.PROMPT)

    for text in ("S", "Su", "Summarize"):
        editor.graph.update_node_config(node.id, prompt=text)
        await asyncio.sleep(0.01)
    assert editor.status(node.id) == RuntimeStatus.PENDING_DEBOUNCE

    await editor.settle()

    assert generator.prompts == ["Summarize"]


@pytest.mark.asyncio
async def test_stale_completion_is_discarded(make_editor):
    generator = FakeTextGenerator(responder=lambda prompt: f"out({prompt})", delay=0.1)
    editor = make_editor(generator=generator)
    node = editor.add_node_from_palette(NodeKind.PROMPT)
    editor.graph.update_node_config(node.id, prompt="first")
    await asyncio.sleep(0.08)
    assert editor.status(node.id) == RuntimeStatus.EXECUTING

    editor.graph.update_node_config(node.id, prompt="second")
    await editor.settle()

    assert editor.graph.get_node(node.id).output == "out(second)"
    assert generator.prompts == ["first", "second"]


@pytest.mark.asyncio
async def test_settled_pair_reuses_result(make_editor, generator):
    editor = make_editor()
    node = editor.add_node_from_palette(NodeKind.PROMPT)
    editor.graph.update_node_config(node.id, prompt="one")
    await editor.settle()
    editor.graph.update_node_config(node.id, prompt="two")
    await editor.settle()

    editor.graph.update_node_config(node.id, prompt="one")
    await editor.settle()

    assert editor.graph.get_node(node.id).output == "generated: one"
    assert generator.prompts == ["one", "two"]


@pytest.mark.asyncio
async def test_generation_failure_becomes_error_output(make_editor):
    editor = make_editor(generator=FakeTextGenerator(fail_with="quota exceeded"))
    prompt = editor.add_node_from_palette(NodeKind.PROMPT)
    editor.graph.update_node_config(prompt.id, prompt="Go")
    display = editor.add_node_from_palette(NodeKind.DISPLAY)

    await editor.settle()

    assert editor.graph.get_node(prompt.id).output == "Error: quota exceeded"
    assert editor.status(prompt.id) == RuntimeStatus.FAILED
    assert editor.graph.get_node(display.id).output is None
    assert editor.status(display.id) == RuntimeStatus.NO_DATA


@pytest.mark.asyncio
async def test_spreadsheet_malformed_input_is_no_data(make_editor):
    editor = make_editor()
    source = editor.add_node_from_palette(NodeKind.DATA_SOURCE)
    editor.graph.update_node_config(source.id, content="not json")
    sheet = editor.add_node_from_palette(NodeKind.SPREADSHEET)

    await editor.settle()

    assert editor.status(sheet.id) == RuntimeStatus.NO_DATA
    assert editor.graph.get_node(sheet.id).output is None


@pytest.mark.asyncio
async def test_spreadsheet_exports_document(make_editor):
    client = FakeDocumentClient(url="https://docs.example.com/sheet/7")
    editor = make_editor(document_client=client)
    source = editor.add_node_from_palette(NodeKind.DATA_SOURCE)
    editor.graph.update_node_config(source.id, content='[{"id": 1}, {"id": 2}]')
    sheet = editor.add_node_from_palette(NodeKind.SPREADSHEET)

    await editor.settle()

    assert editor.graph.get_node(sheet.id).output == "https://docs.example.com/sheet/7"
    assert client.requests == [[{"id": 1}, {"id": 2}]]
    assert "id" in editor.preview(sheet.id)


# ---------------------------------------------------------------------------
# Drag and drop
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_drop_tab_creates_typed_node_at_canvas_position(make_editor):
    editor = make_editor()
    tab = editor.tabs.create_tab("Dataset 1", '{"a": 1}')

    payload = editor.build_drag_payload(tab.id)
    node = editor.handle_drop(payload, 300, 200)
    await editor.settle()

    assert payload.tab_type == "data-source"
    assert node.kind == NodeKind.DATA_SOURCE
    assert node.label == "Dataset 1"
    assert node.position == Position(x=300, y=200)
    assert editor.graph.get_node(node.id).output == '{"a": 1}'


@pytest.mark.asyncio
async def test_drop_converts_screen_to_canvas(make_editor):
    editor = make_editor()
    editor.graph.viewport = Viewport(x=100, y=50, zoom=2)
    tab = editor.tabs.create_tab("Dataset 1", "{}")

    node = editor.handle_drop(editor.build_drag_payload(tab.id), 300, 250)

    assert node.position == Position(x=100, y=100)


@pytest.mark.asyncio
async def test_drop_onto_node_retypes_without_edges(make_editor):
    editor = make_editor()
    source = editor.add_node_from_palette(NodeKind.DATA_SOURCE)
    editor.graph.update_node_config(source.id, content="data")
    target = editor.add_node_from_palette(NodeKind.DISPLAY)
    await editor.settle()
    edges_before = editor.snapshot().edges
    tab = _prompt_tab(editor, "Prompt 1", "Summarize INPUT")

    node = editor.handle_drop(editor.build_drag_payload(tab.id, target_node_id=target.id))
    await editor.settle()

    node = editor.graph.get_node(node.id)
    assert node.kind == NodeKind.PROMPT
    assert node.label == "Prompt 1"
    assert node.input == "data"
    assert node.output == "generated: Summarize data"
    assert editor.snapshot().edges == edges_before


@pytest.mark.asyncio
async def test_drop_of_deleted_tab_uses_payload(make_editor):
    editor = make_editor()
    tab = _prompt_tab(editor, "Prompt 1", "Go")
    payload = editor.build_drag_payload(tab.id)
    editor.tabs.delete_tab(tab.id)

    node = editor.handle_drop(payload, 10, 10)

    assert node.kind == NodeKind.PROMPT
    assert node.config.prompt == "Go"


@pytest.mark.asyncio
async def test_three_drops_of_same_tab_get_unique_labels(make_editor):
    editor = make_editor()
    tab = editor.tabs.create_tab("Source", "{}")
    payload = editor.build_drag_payload(tab.id)

    labels = [editor.handle_drop(payload, x, 0).label for x in (0, 400, 800)]

    assert labels == ["Source", "Source (Copy 1)", "Source (Copy 2)"]


# ---------------------------------------------------------------------------
# Tabs <-> nodes
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_tab_edit_updates_linked_prompt(make_editor, generator):
    editor = make_editor()
    tab = _prompt_tab(editor, "Prompt 1", "Say hi")
    node = editor.handle_drop(editor.build_drag_payload(tab.id), 0, 0)
    await editor.settle()

    editor.edit_tab(tab.id, "Say bye")
    await editor.settle()

    node = editor.graph.get_node(node.id)
    assert node.config.prompt == "Say bye"
    assert node.output == "generated: Say bye"


@pytest.mark.asyncio
async def test_materialize_output_creates_named_tabs(make_editor):
    editor = make_editor()
    source = editor.add_node_from_palette(NodeKind.DATA_SOURCE)
    editor.graph.update_node_config(source.id, content='{"a":1}')
    await editor.settle()

    first = editor.materialize_output(source.id)
    second = editor.materialize_output(source.id)

    assert first.name == "New Data Source Output"
    assert second.name == "New Data Source Output 1"
    assert first.content == '{\n  "a": 1\n}'
    assert first.classification.kind == ContentKind.DATASET


@pytest.mark.asyncio
async def test_materialize_without_output_does_nothing(make_editor):
    editor = make_editor()
    node = editor.add_node_from_palette(NodeKind.PROMPT)

    assert editor.materialize_output(node.id) is None
    assert len(editor.tabs) == 0


@pytest.mark.asyncio
async def test_new_tab_with_deleted_tab_name_does_not_adopt_its_nodes(make_editor):
    editor = make_editor()
    tab = editor.tabs.create_tab("Data", '{"a": 1}')
    node = editor.handle_drop(editor.build_drag_payload(tab.id), 0, 0)
    editor.tabs.delete_tab(tab.id)

    newcomer = editor.tabs.create_tab("Data", "unrelated text")
    editor.edit_tab(newcomer.id, "still unrelated")
    await editor.settle()

    kept = editor.graph.get_node(node.id)
    assert kept.tab_id == tab.id
    assert kept.config.content == '{"a": 1}'
    assert editor.graph.sync_tab_content(editor.tabs.get(newcomer.id)) == []


@pytest.mark.asyncio
async def test_payload_tab_type_decides_kind_for_canvas_and_node_drops(make_editor):
    editor = make_editor()
    tab = editor.tabs.create_tab("Notes", "Summarize INPUT")
    payload = editor.build_drag_payload(tab.id).model_copy(update={"tab_type": "prompt-template"})
    target = editor.add_node_from_palette(NodeKind.DISPLAY)

    on_canvas = editor.handle_drop(payload, 500, 500)
    on_node = editor.handle_drop(payload.model_copy(update={"target_node_id": target.id}))

    assert tab.classification.node_kind == NodeKind.DATA_SOURCE
    assert on_canvas.kind == NodeKind.PROMPT
    assert on_node.kind == NodeKind.PROMPT
    assert on_node.config.prompt == "Summarize INPUT"
