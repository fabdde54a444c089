"""
Display Module

Rich display helpers for the interactive pipeline session.
"""

from typing import Iterable, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from src.pipeline_graph.graph.snapshot import GraphSnapshot
from src.pipeline_graph.runtime.base import RuntimeState, RuntimeStatus
from src.shared_lib.models.schema import Node, Tab
from src.shared_lib.utils.json_utils import format_for_display, try_parse_json

STATUS_STYLES = {
    RuntimeStatus.IDLE: "dim",
    RuntimeStatus.PENDING_DEBOUNCE: "yellow",
    RuntimeStatus.EXECUTING: "cyan",
    RuntimeStatus.RESOLVED: "green",
    RuntimeStatus.FAILED: "red",
    RuntimeStatus.NO_DATA: "magenta",
}


def _shorten(text: Optional[str], limit: int = 40) -> str:
    if text is None:
        return "-"
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 3] + "..."


class DisplayHelper:
    """Consistent Rich formatting for tabs, nodes and edges."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def show_welcome(self):
        """Display welcome banner."""
        welcome_text = """
[bold cyan]Prompt Pipeline Canvas[/bold cyan]

[yellow]Node kinds:[/yellow]
  • [green]data_source[/green] - static data from a tab
  • [cyan]prompt[/cyan] - text generation (INPUT is replaced by the upstream output)
  • [blue]spreadsheet[/blue] - tabular rows, optionally exported as a document
  • [magenta]display[/magenta] - shows the upstream output

[dim]Use /help for commands[/dim]
"""
        self.console.print(Panel(welcome_text, border_style="cyan", box=box.DOUBLE))

    def show_tabs(self, tabs: Iterable[Tab]):
        table = Table(title="Tabs", box=box.ROUNDED)
        table.add_column("#", style="dim", justify="right")
        table.add_column("Id")
        table.add_column("Name", style="bold")
        table.add_column("Kind")
        table.add_column("Format")
        table.add_column("Conf.", justify="right")
        table.add_column("Content", style="dim")
        for index, tab in enumerate(tabs):
            c = tab.classification
            table.add_row(
                str(index),
                tab.id,
                tab.name,
                c.kind.value,
                c.format or "-",
                f"{c.confidence:.2f}",
                _shorten(tab.content),
            )
        self.console.print(table)

    def show_tab(self, tab: Tab):
        lexer = "json" if try_parse_json(tab.content) is not None else "text"
        c = tab.classification
        title = f"{tab.name} [{c.kind.value}{'/' + c.format if c.format else ''} {c.confidence:.2f}]"
        self.console.print(
            Panel(Syntax(tab.content or "", lexer, word_wrap=True), title=title, box=box.ROUNDED)
        )

    def show_nodes(self, snapshot: GraphSnapshot, states: dict):
        table = Table(title="Nodes", box=box.ROUNDED)
        table.add_column("Label", style="bold")
        table.add_column("Kind")
        table.add_column("Position", justify="right")
        table.add_column("Status")
        table.add_column("Input", style="dim")
        table.add_column("Output", style="dim")
        for node in snapshot.nodes:
            status = states.get(node.id, RuntimeState()).status
            table.add_row(
                node.label,
                node.kind.value,
                f"({node.position.x:.0f}, {node.position.y:.0f})",
                f"[{STATUS_STYLES[status]}]{status.value}[/{STATUS_STYLES[status]}]",
                _shorten(node.input, 30),
                _shorten(node.output, 30),
            )
        self.console.print(table)

    def show_edges(self, snapshot: GraphSnapshot):
        table = Table(title="Edges", box=box.ROUNDED)
        table.add_column("Id", style="dim")
        table.add_column("Source", style="bold")
        table.add_column("Target", style="bold")
        for edge in snapshot.edges:
            source = snapshot.node(edge.source)
            target = snapshot.node(edge.target)
            table.add_row(
                edge.id,
                source.label if source else edge.source,
                target.label if target else edge.target,
            )
        self.console.print(table)

    def show_node(self, node: Node, state: RuntimeState, preview: Optional[str] = None):
        lines = [
            f"[bold]Id:[/bold] {node.id}",
            f"[bold]Kind:[/bold] {node.kind.value}",
            f"[bold]Status:[/bold] {state.status.value}",
            f"[bold]Tab:[/bold] {node.tab_id or '-'}",
        ]
        if state.error:
            lines.append(f"[red]{state.error}[/red]")
        self.console.print(Panel("\n".join(lines), title=node.label, box=box.ROUNDED))
        self.console.print_json(node.config.model_dump_json())
        if node.input:
            self.console.print(Panel(format_for_display(node.input), title="Input", border_style="blue"))
        if preview:
            self.console.print(Panel(preview, title="Preview", border_style="green"))
        elif node.output is not None:
            self.console.print(
                Panel(format_for_display(node.output), title="Output", border_style="green")
            )

    def show_error(self, message: str):
        self.console.print(f"[bold red]Error:[/bold red] {message}")

    def show_info(self, message: str):
        self.console.print(f"[cyan]{message}[/cyan]")

    def show_success(self, message: str):
        self.console.print(f"[green]✓ {message}[/green]")
