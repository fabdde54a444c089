"""Interactive session: command dispatch, graph commands and the input loop."""

import pytest
from rich.console import Console

from src.pipeline_session import session as session_module
from src.pipeline_session.session import InteractivePipelineSession
from src.shared_lib.models.schema import Classification, ContentKind, NodeKind, Position


@pytest.fixture
def make_session(make_editor):
    """Session around a fake-backed editor, printing to a recording console."""

    def _make(**kwargs):
        console = Console(record=True, width=120)
        return InteractivePipelineSession(editor=make_editor(**kwargs), console=console)

    return _make


def _output(session) -> str:
    return session.console.export_text()


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unknown_command_is_reported_and_session_continues(make_session):
    session = make_session()

    assert await session.command_handler.handle("/nope now") is True
    assert "Unknown command: /nope" in _output(session)


@pytest.mark.asyncio
async def test_unbalanced_quotes_are_reported(make_session):
    session = make_session()

    assert await session.command_handler.handle('/new-tab "Data') is True
    assert "Could not parse command" in _output(session)
    assert len(session.editor.tabs) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("command", ["/exit", "/quit", "/EXIT"])
async def test_exit_commands_stop_the_session(make_session, command):
    session = make_session()

    assert await session.command_handler.handle(command) is False


@pytest.mark.asyncio
async def test_wrong_arity_prints_usage(make_session):
    session = make_session()

    assert await session.command_handler.handle("/connect only-one") is True
    assert "Usage: /connect <source> <target>" in _output(session)


@pytest.mark.asyncio
async def test_new_tab_and_tabs_listing(make_session):
    session = make_session()

    await session.command_handler.handle('/new-tab "Data Set" id,name 1,a')
    await session.command_handler.handle("/tabs")

    tab = session.editor.tabs.resolve("Data Set")
    assert tab is not None
    assert tab.content == "id,name 1,a"
    assert "Data Set" in _output(session)


# ---------------------------------------------------------------------------
# Graph commands
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_drop_at_coordinates_creates_node(make_session):
    session = make_session()
    session.editor.tabs.create_tab("Data", '{"a": 1}')

    await session.command_handler.handle("/drop Data 300 200")

    (node,) = session.editor.snapshot().nodes
    assert node.label == "Data"
    assert node.kind == NodeKind.DATA_SOURCE
    assert node.position == Position(x=300, y=200)


@pytest.mark.asyncio
async def test_drop_onto_node_retypes_instead_of_adding(make_session):
    session = make_session()
    editor = session.editor
    tab = editor.tabs.create_tab("Summary", "Summarize INPUT")
    editor.tabs.set_classification(tab.id, Classification(kind=ContentKind.PROMPT, confidence=0.9))
    target = editor.add_node_from_palette(NodeKind.DISPLAY)

    await session.command_handler.handle('/drop Summary @"New Display"')

    nodes = editor.snapshot().nodes
    assert len(nodes) == 1
    assert nodes[0].id == target.id
    assert nodes[0].kind == NodeKind.PROMPT
    assert nodes[0].label == "Summary"


@pytest.mark.asyncio
async def test_drop_onto_unknown_node_is_an_error(make_session):
    session = make_session()
    session.editor.tabs.create_tab("Data", "{}")

    await session.command_handler.handle("/drop Data @Missing")

    assert "Unknown node: Missing" in _output(session)
    assert session.editor.snapshot().nodes == ()


@pytest.mark.asyncio
async def test_disconnect_pair_removes_every_edge_between_them(make_session):
    session = make_session()
    editor = session.editor
    source = editor.add_node_from_palette(NodeKind.DATA_SOURCE)
    prompt = editor.add_node_from_palette(NodeKind.PROMPT)
    editor.connect(source.id, prompt.id)
    display = editor.add_node_from_palette(NodeKind.DISPLAY)
    assert len(editor.snapshot().edges) == 3

    await session.command_handler.handle('/disconnect "New Data Source" "New Prompt"')

    edges = editor.snapshot().edges
    assert [(edge.source, edge.target) for edge in edges] == [(prompt.id, display.id)]


@pytest.mark.asyncio
async def test_settle_and_show_node_output(make_session):
    session = make_session()
    editor = session.editor
    source = editor.add_node_from_palette(NodeKind.DATA_SOURCE)
    editor.graph.update_node_config(source.id, content="hello")

    await session.command_handler.handle("/settle")
    await session.command_handler.handle('/show "New Data Source"')
    await session.command_handler.handle("/nodes")

    output = _output(session)
    assert "Pipeline settled" in output
    assert "hello" in output
    assert "resolved" in output


@pytest.mark.asyncio
async def test_materialize_reports_missing_output(make_session):
    session = make_session()
    session.editor.add_node_from_palette(NodeKind.PROMPT)

    await session.command_handler.handle('/materialize "New Prompt"')

    assert "has no output yet" in _output(session)
    assert len(session.editor.tabs) == 0


# ---------------------------------------------------------------------------
# Input loop and entry point
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_run_async_processes_lines_until_exit(make_session, monkeypatch):
    session = make_session()
    lines = iter(["", "not a command", "/new-tab Notes hi", "/exit", "/new-tab Never"])
    monkeypatch.setattr(session_module.Prompt, "ask", lambda *args, **kwargs: next(lines))

    await session.run_async()

    output = _output(session)
    assert "Commands start with '/'" in output
    assert "Goodbye!" in output
    assert session.editor.tabs.resolve("Notes") is not None
    assert session.editor.tabs.resolve("Never") is None


@pytest.mark.asyncio
async def test_run_async_stops_on_end_of_input(make_session, monkeypatch):
    session = make_session()

    def ask(*args, **kwargs):
        raise EOFError

    monkeypatch.setattr(session_module.Prompt, "ask", ask)

    await session.run_async()

    assert "Goodbye!" in _output(session)


def test_main_runs_session_built_from_settings(monkeypatch):
    built = {}
    ran = []

    def from_settings(**kwargs):
        built.update(kwargs)
        return "editor"

    monkeypatch.setattr(session_module.PipelineEditor, "from_settings", from_settings)
    monkeypatch.setattr("src.shared_lib.utils.logger.setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(InteractivePipelineSession, "run", lambda self: ran.append(self))

    session_module.main(["--empty", "--debug"])

    assert built == {"seed_samples": False}
    assert len(ran) == 1
    assert ran[0].debug_mode is True
    assert ran[0].editor == "editor"
