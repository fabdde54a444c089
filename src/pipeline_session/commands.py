"""
Command Handlers Module

Handles slash commands for the interactive pipeline session.
"""

import inspect
import shlex
from pathlib import Path
from typing import Callable, Dict, List, Optional

from rich.console import Console

from src.pipeline_graph.runtime.registry import get_supported_kinds
from src.shared_lib.models.schema import Node, Tab


class CommandHandler:
    """
    Handles slash commands in the interactive session.

    Commands receive their arguments already split with shell quoting rules,
    so labels containing spaces can be passed as ``"New Prompt"``.
    """

    def __init__(self, session: "InteractivePipelineSession"):
        """
        Args:
            session: Reference to the InteractivePipelineSession
        """
        self.session = session
        self.console: Console = session.console

        # Command registry
        self.commands: Dict[str, Callable] = {
            # Tabs
            "/tabs": self.cmd_tabs,
            "/tab": self.cmd_tab,
            "/new-tab": self.cmd_new_tab,
            "/edit": self.cmd_edit,
            "/load": self.cmd_load,
            "/rename-tab": self.cmd_rename_tab,
            "/delete-tab": self.cmd_delete_tab,
            "/move-tab": self.cmd_move_tab,
            # Graph
            "/add": self.cmd_add,
            "/drop": self.cmd_drop,
            "/connect": self.cmd_connect,
            "/disconnect": self.cmd_disconnect,
            "/move": self.cmd_move,
            "/rename": self.cmd_rename,
            "/rm": self.cmd_remove,
            "/nodes": self.cmd_nodes,
            "/edges": self.cmd_edges,
            "/show": self.cmd_show,
            "/materialize": self.cmd_materialize,
            "/settle": self.cmd_settle,
            # Help and control
            "/help": self.cmd_help,
            "/exit": self.cmd_exit,
            "/quit": self.cmd_exit,  # Alias
        }

    async def handle(self, command_str: str) -> bool:
        """
        Handle a command.

        Args:
            command_str: Command string starting with '/'

        Returns:
            bool: False if should exit, True to continue
        """
        try:
            parts = shlex.split(command_str.strip())
        except ValueError as e:
            self.session.display.show_error(f"Could not parse command: {e}")
            return True
        if not parts:
            return True
        cmd, args = parts[0].lower(), parts[1:]

        handler = self.commands.get(cmd)
        if handler is None:
            self.console.print(f"[red]Unknown command: {cmd}[/red]")
            self.console.print("Type [cyan]/help[/cyan] for available commands")
            return True

        result = handler(args)
        if inspect.isawaitable(result):
            result = await result
        return result

    @property
    def editor(self):
        return self.session.editor

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def _tab(self, ref: str) -> Optional[Tab]:
        tab = self.editor.tabs.resolve(ref)
        if tab is None:
            self.session.display.show_error(f"Unknown tab: {ref}")
        return tab

    def _node(self, ref: str) -> Optional[Node]:
        node = self.editor.graph.find_node(ref)
        if node is None:
            self.session.display.show_error(f"Unknown node: {ref}")
        return node

    def _usage(self, text: str) -> bool:
        self.console.print(f"[yellow]Usage: {text}[/yellow]")
        return True

    # ========================================================================
    # TAB COMMANDS
    # ========================================================================

    def cmd_tabs(self, args: List[str]) -> bool:
        """List tabs with their classification."""
        self.session.display.show_tabs(self.editor.tabs.tabs)
        return True

    def cmd_tab(self, args: List[str]) -> bool:
        """Show one tab's content."""
        if len(args) != 1:
            return self._usage("/tab <tab>")
        tab = self._tab(args[0])
        if tab:
            self.session.display.show_tab(tab)
        return True

    def cmd_new_tab(self, args: List[str]) -> bool:
        """Create a tab: /new-tab <name> [content]."""
        if not args:
            return self._usage("/new-tab <name> [content]")
        tab = self.editor.create_tab(args[0], " ".join(args[1:]))
        self.session.display.show_success(f"Created tab '{tab.name}'")
        return True

    def cmd_edit(self, args: List[str]) -> bool:
        """Replace a tab's content with inline text."""
        if len(args) < 2:
            return self._usage("/edit <tab> <content>")
        tab = self._tab(args[0])
        if tab:
            self.editor.edit_tab(tab.id, " ".join(args[1:]))
            self.session.display.show_success(f"Updated '{tab.name}' (reclassification pending)")
        return True

    def cmd_load(self, args: List[str]) -> bool:
        """Replace a tab's content with a file's content."""
        if len(args) != 2:
            return self._usage("/load <tab> <file>")
        tab = self._tab(args[0])
        if tab is None:
            return True
        path = Path(args[1])
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            self.session.display.show_error(f"Could not read {path}: {e}")
            return True
        self.editor.edit_tab(tab.id, content)
        self.session.display.show_success(f"Loaded {path} into '{tab.name}'")
        return True

    def cmd_rename_tab(self, args: List[str]) -> bool:
        if len(args) != 2:
            return self._usage("/rename-tab <tab> <new name>")
        tab = self._tab(args[0])
        if tab and self.editor.tabs.rename_tab(tab.id, args[1]) is None:
            self.session.display.show_error(f"Cannot rename '{tab.name}' to '{args[1]}'")
        return True

    def cmd_delete_tab(self, args: List[str]) -> bool:
        if len(args) != 1:
            return self._usage("/delete-tab <tab>")
        tab = self._tab(args[0])
        if tab:
            self.editor.tabs.delete_tab(tab.id)
            self.session.display.show_success(f"Deleted tab '{tab.name}'")
        return True

    def cmd_move_tab(self, args: List[str]) -> bool:
        if len(args) != 2 or not args[1].lstrip("-").isdigit():
            return self._usage("/move-tab <tab> <index>")
        tab = self._tab(args[0])
        if tab:
            self.editor.tabs.move_tab(tab.id, int(args[1]))
        return True

    # ========================================================================
    # GRAPH COMMANDS
    # ========================================================================

    def cmd_add(self, args: List[str]) -> bool:
        """Add a node from the palette."""
        kinds = get_supported_kinds()
        if len(args) != 1 or args[0] not in kinds:
            return self._usage(f"/add <{'|'.join(kinds)}>")
        node = self.editor.add_node_from_palette(args[0])
        self.session.display.show_success(
            f"Added '{node.label}' at ({node.position.x:.0f}, {node.position.y:.0f})"
        )
        return True

    def cmd_drop(self, args: List[str]) -> bool:
        """
        Drop a tab onto the canvas or a node.

        /drop <tab> <x> <y>   drop at screen coordinates
        /drop <tab> @<node>   drop onto an existing node
        /drop <tab>           drop without a position (placed like a palette add)
        """
        if not args or len(args) not in (1, 2, 3):
            return self._usage("/drop <tab> [<x> <y> | @<node>]")
        tab = self._tab(args[0])
        if tab is None:
            return True

        if len(args) == 2:
            if not args[1].startswith("@"):
                return self._usage("/drop <tab> [<x> <y> | @<node>]")
            target = self._node(args[1][1:])
            if target is None:
                return True
            payload = self.editor.build_drag_payload(tab.id, target_node_id=target.id)
            node = self.editor.handle_drop(payload)
        else:
            payload = self.editor.build_drag_payload(tab.id)
            if len(args) == 3:
                try:
                    x, y = float(args[1]), float(args[2])
                except ValueError:
                    return self._usage("/drop <tab> <x> <y>")
                node = self.editor.handle_drop(payload, x, y)
            else:
                node = self.editor.handle_drop(payload)

        if node is not None:
            self.session.display.show_success(f"'{node.label}' ({node.kind.value})")
        return True

    def cmd_connect(self, args: List[str]) -> bool:
        if len(args) != 2:
            return self._usage("/connect <source> <target>")
        source, target = self._node(args[0]), self._node(args[1])
        if source and target:
            edge = self.editor.connect(source.id, target.id)
            if edge is None:
                self.session.display.show_error("Connection rejected")
            else:
                self.session.display.show_success(f"{source.label} -> {target.label}")
        return True

    def cmd_disconnect(self, args: List[str]) -> bool:
        """Remove an edge by id, or every edge between two nodes."""
        if len(args) == 1:
            self.editor.disconnect(args[0])
            return True
        if len(args) != 2:
            return self._usage("/disconnect <edge id> | /disconnect <source> <target>")
        source, target = self._node(args[0]), self._node(args[1])
        if source and target:
            for edge in self.editor.snapshot().edges:
                if edge.source == source.id and edge.target == target.id:
                    self.editor.disconnect(edge.id)
        return True

    def cmd_move(self, args: List[str]) -> bool:
        if len(args) != 3:
            return self._usage("/move <node> <x> <y>")
        node = self._node(args[0])
        if node:
            try:
                self.editor.move_node(node.id, float(args[1]), float(args[2]))
            except ValueError:
                return self._usage("/move <node> <x> <y>")
        return True

    def cmd_rename(self, args: List[str]) -> bool:
        if len(args) != 2:
            return self._usage("/rename <node> <new label>")
        node = self._node(args[0])
        if node:
            renamed = self.editor.rename_node(node.id, args[1])
            if renamed:
                self.session.display.show_success(f"Renamed to '{renamed.label}'")
        return True

    def cmd_remove(self, args: List[str]) -> bool:
        if len(args) != 1:
            return self._usage("/rm <node>")
        node = self._node(args[0])
        if node:
            self.editor.remove_node(node.id)
            self.session.display.show_success(f"Removed '{node.label}'")
        return True

    def cmd_nodes(self, args: List[str]) -> bool:
        self.session.display.show_nodes(self.editor.snapshot(), self.editor.supervisor.states)
        return True

    def cmd_edges(self, args: List[str]) -> bool:
        self.session.display.show_edges(self.editor.snapshot())
        return True

    def cmd_show(self, args: List[str]) -> bool:
        if len(args) != 1:
            return self._usage("/show <node>")
        node = self._node(args[0])
        if node:
            preview = None
            if node.kind.value == "spreadsheet":
                preview = self.editor.preview(node.id)
            self.session.display.show_node(node, self.editor.supervisor.state(node.id), preview)
        return True

    def cmd_materialize(self, args: List[str]) -> bool:
        """Copy a node's output into a new tab."""
        if len(args) != 1:
            return self._usage("/materialize <node>")
        node = self._node(args[0])
        if node:
            tab = self.editor.materialize_output(node.id)
            if tab is None:
                self.session.display.show_info(f"'{node.label}' has no output yet")
            else:
                self.session.display.show_success(f"Created tab '{tab.name}'")
        return True

    async def cmd_settle(self, args: List[str]) -> bool:
        """Wait for pending classifications and node runtimes."""
        with self.console.status("[cyan]Waiting for pending work...[/cyan]"):
            await self.editor.settle()
        self.session.display.show_success("Pipeline settled")
        return True

    # ========================================================================
    # HELP AND CONTROL
    # ========================================================================

    def cmd_help(self, args: List[str]) -> bool:
        help_text = """
[bold cyan]Tabs[/bold cyan]
  /tabs                         List tabs
  /tab <tab>                    Show a tab
  /new-tab <name> [content]     Create a tab
  /edit <tab> <content>         Replace a tab's content
  /load <tab> <file>            Load a file into a tab
  /rename-tab <tab> <name>      Rename a tab
  /delete-tab <tab>             Delete a tab
  /move-tab <tab> <index>       Reorder tabs

[bold cyan]Graph[/bold cyan]
  /add <kind>                   Add a node from the palette
  /drop <tab> [x y | @node]     Drop a tab on the canvas or onto a node
  /connect <source> <target>    Connect two nodes
  /disconnect <edge | src tgt>  Remove edges
  /move <node> <x> <y>          Move a node
  /rename <node> <label>        Rename a node
  /rm <node>                    Remove a node
  /nodes, /edges                List nodes / edges
  /show <node>                  Node details and output
  /materialize <node>           Copy a node's output into a new tab
  /settle                       Wait for pending work

[bold cyan]Control[/bold cyan]
  /help, /exit
"""
        self.console.print(help_text)
        return True

    def cmd_exit(self, args: List[str]) -> bool:
        return False
