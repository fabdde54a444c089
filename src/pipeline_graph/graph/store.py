"""
GraphStore - single owner of the pipeline's nodes and edges.
=============================================================

All mutations go through the store's commands. Each command is a synchronous
transition that leaves the graph consistent, then publishes a GraphEvent
carrying the snapshot taken right after it. Readers use immutable snapshots.

Invariant violations (self-loops, unknown ids) are rejected as logged no-ops;
the store never raises them to callers.

Usage:
    store = GraphStore()
    source = store.add_node(NodeKind.DATA_SOURCE, source_tab=tab)
    prompt = store.add_node(NodeKind.PROMPT)          # placed and connected under source
    store.update_node_output(source.id, tab.content)  # propagates into prompt.input
"""

import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Set, Union

from pydantic import ValidationError

from src.pipeline_graph.core.settings import PALETTE_LABELS
from src.pipeline_graph.graph.placement import (
    Viewport,
    drop_connection,
    palette_placement,
    unique_label,
)
from src.pipeline_graph.graph.propagation import (
    inputs_after_output_change,
    resolve_input,
    targets_to_reset,
)
from src.pipeline_graph.graph.snapshot import GraphEvent, GraphEventType, GraphSnapshot
from src.shared_lib.models.schema import (
    DataSourceConfig,
    DisplayConfig,
    Edge,
    Node,
    NodeKind,
    Position,
    PromptConfig,
    SpreadsheetConfig,
    Tab,
)
from src.shared_lib.utils.events import EventHub, Subscription

logger = logging.getLogger(__name__)


def new_node_id() -> str:
    return f"node-{uuid.uuid4().hex}"


def new_edge_id() -> str:
    return f"edge-{uuid.uuid4().hex}"


def config_for_kind(kind: NodeKind, tab: Optional[Tab] = None):
    """
    Build the config variant for *kind*, filled from *tab* when given.

    Args:
        kind: Node kind
        tab: Source tab (DataSource content/format, Prompt template)

    Returns:
        Fresh NodeConfig variant
    """
    if kind == NodeKind.DATA_SOURCE:
        if tab is None:
            return DataSourceConfig()
        return DataSourceConfig(
            source_format=tab.classification.format or "json",
            content=tab.content,
        )
    if kind == NodeKind.PROMPT:
        return PromptConfig(prompt=tab.content if tab is not None else "")
    if kind == NodeKind.SPREADSHEET:
        return SpreadsheetConfig()
    return DisplayConfig()


def config_with_tab_content(config, tab: Tab):
    """Same variant with its text field substituted from *tab*."""
    if isinstance(config, DataSourceConfig):
        return config.model_copy(
            update={
                "content": tab.content,
                "source_format": tab.classification.format or config.source_format,
            }
        )
    if isinstance(config, PromptConfig):
        return config.model_copy(update={"prompt": tab.content})
    return config


class GraphStore:
    """
    Pipeline graph state.

    Attributes:
        viewport: Visible canvas, used to place the first palette node
    """

    def __init__(self, viewport: Optional[Viewport] = None):
        self.viewport = viewport or Viewport()
        self._nodes: Dict[str, Node] = {}
        self._edges: List[Edge] = []
        self._output_stamps: Dict[str, int] = {}
        self._edge_stamps: Dict[str, int] = {}
        self._sequence = 0
        self._events: EventHub[GraphEvent] = EventHub("GraphStore")

    # ========================================================================
    # QUERIES
    # ========================================================================

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def find_node(self, ref: str) -> Optional[Node]:
        """Look a node up by id, then by label."""
        if ref in self._nodes:
            return self._nodes[ref]
        for node in self._nodes.values():
            if node.label == ref:
                return node
        return None

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(
            nodes=tuple(self._nodes.values()),
            edges=tuple(self._edges),
            output_stamps=dict(self._output_stamps),
            edge_stamps=dict(self._edge_stamps),
        )

    # ========================================================================
    # SUBSCRIPTIONS
    # ========================================================================

    def subscribe(
        self,
        callback: Callable[[GraphEvent], None],
        node_id: Optional[str] = None,
        event_types: Optional[Set[GraphEventType]] = None,
    ) -> Subscription:
        """
        Observe graph transitions.

        Args:
            callback: Receives each GraphEvent
            node_id: Only events concerning this node (including its edges)
            event_types: Only events of these types

        Returns:
            Subscription handle (call ``cancel()`` to stop)
        """
        return self._events.subscribe(callback, subject_id=node_id, event_types=event_types)

    def _publish(
        self,
        event_type: GraphEventType,
        node_id: Optional[str] = None,
        edge: Optional[Edge] = None,
    ) -> None:
        self._events.publish(
            GraphEvent(type=event_type, snapshot=self.snapshot(), node_id=node_id, edge=edge)
        )

    def _next_stamp(self) -> int:
        self._sequence += 1
        return self._sequence

    def _replace(self, node: Node, **changes: Any) -> Node:
        updated = node.model_copy(update=changes)
        self._nodes[node.id] = updated
        return updated

    # ========================================================================
    # NODES
    # ========================================================================

    def add_node(
        self,
        kind: Union[NodeKind, str],
        label: Optional[str] = None,
        explicit_position: Optional[Position] = None,
        source_tab: Optional[Tab] = None,
        auto_connect: bool = True,
    ) -> Node:
        """
        Create a node.

        Args:
            kind: Node kind
            label: Base label (defaults to the tab name or the palette label)
            explicit_position: Drop position in canvas coordinates; None
                places the node under the lowest node (palette add)
            source_tab: Tab the node is created from
            auto_connect: Connect a dropped node to its nearest anchor

        Returns:
            The created Node
        """
        kind = NodeKind(kind)
        snapshot = self.snapshot()
        base = label or (source_tab.name if source_tab is not None else None) or PALETTE_LABELS[kind]

        parent = None
        if explicit_position is None:
            position, parent = palette_placement(snapshot, self.viewport)
        else:
            position = explicit_position

        node = Node(
            id=new_node_id(),
            label=unique_label(base, snapshot.labels()),
            position=position,
            config=config_for_kind(kind, source_tab),
            tab_id=source_tab.id if source_tab is not None else None,
        )
        self._nodes[node.id] = node
        logger.info(
            f"[GraphStore] Added {kind.value} node '{node.label}' "
            f"at ({position.x:.0f}, {position.y:.0f})"
        )
        self._publish(GraphEventType.NODE_ADDED, node.id)

        if parent is not None:
            self.connect(parent.id, node.id)
        elif explicit_position is not None and auto_connect:
            pair = drop_connection(self.snapshot(), node.id, position)
            if pair is not None:
                self.connect(*pair)

        return self._nodes[node.id]

    def remove_node(self, node_id: str) -> GraphSnapshot:
        """
        Remove a node and every incident edge.

        Former downstream nodes are re-resolved from their remaining upstream;
        those left without one get input ``''`` and no output.
        """
        node = self._nodes.pop(node_id, None)
        if node is None:
            logger.warning(f"[GraphStore] remove_node: unknown node '{node_id}'")
            return self.snapshot()

        incident = [e for e in self._edges if e.source == node_id or e.target == node_id]
        downstream = []
        for edge in incident:
            if edge.source == node_id and edge.target not in downstream:
                downstream.append(edge.target)
        self._edges = [e for e in self._edges if e not in incident]
        for edge in incident:
            self._edge_stamps.pop(edge.id, None)
        self._output_stamps.pop(node_id, None)

        logger.info(f"[GraphStore] Removed node '{node.label}' ({len(incident)} edges)")
        for edge in incident:
            self._publish(GraphEventType.EDGE_REMOVED, edge=edge)
        self._publish(GraphEventType.NODE_REMOVED, node_id)

        self._reresolve(downstream)
        return self.snapshot()

    def move_node(self, node_id: str, position: Position) -> Optional[Node]:
        node = self._nodes.get(node_id)
        if node is None:
            logger.warning(f"[GraphStore] move_node: unknown node '{node_id}'")
            return None
        if node.position == position:
            return node
        node = self._replace(node, position=position)
        self._publish(GraphEventType.NODE_MOVED, node_id)
        return node

    def rename_node(self, node_id: str, label: str) -> Optional[Node]:
        """Rename a node; the label is made unique among the other nodes."""
        node = self._nodes.get(node_id)
        label = (label or "").strip()
        if node is None or not label:
            logger.warning(f"[GraphStore] rename_node rejected for '{node_id}'")
            return None
        taken = {n.label for n in self._nodes.values() if n.id != node_id}
        label = unique_label(label, taken)
        if label == node.label:
            return node
        node = self._replace(node, label=label)
        self._publish(GraphEventType.NODE_RENAMED, node_id)
        return node

    def update_node_config(self, node_id: str, **changes: Any) -> Optional[Node]:
        """
        Replace config fields of a node and clear its output.

        The variant itself cannot change here; retyping goes through
        apply_tab_to_node.
        """
        node = self._nodes.get(node_id)
        if node is None:
            logger.warning(f"[GraphStore] update_node_config: unknown node '{node_id}'")
            return None
        if "kind" in changes and changes["kind"] != node.config.kind:
            logger.warning(f"[GraphStore] update_node_config cannot change kind of '{node.label}'")
            return None
        try:
            config = type(node.config).model_validate({**node.config.model_dump(), **changes})
        except ValidationError as e:
            logger.warning(f"[GraphStore] Invalid config for '{node.label}': {e}")
            return None
        if config == node.config:
            return node
        node = self._replace(node, config=config, output=None)
        self._publish(GraphEventType.CONFIG_CHANGED, node_id)
        return node

    def apply_tab_to_node(
        self, tab: Tab, target_node_id: str, kind: Optional[NodeKind] = None
    ) -> Optional[Node]:
        """
        Apply a tab dropped onto an existing node.

        The node takes the tab's name and ``tab_id``. When *kind* (the tab's
        inferred kind when omitted) differs from the node's kind the node is
        retyped with a fresh config built from the tab; its input is preserved
        and its output reset. No edge is created.
        """
        node = self._nodes.get(target_node_id)
        if node is None:
            logger.warning(f"[GraphStore] apply_tab_to_node: unknown node '{target_node_id}'")
            return None

        taken = {n.label for n in self._nodes.values() if n.id != node.id}
        label = unique_label(tab.name, taken)
        if label != node.label or node.tab_id != tab.id:
            node = self._replace(node, label=label, tab_id=tab.id)
            self._publish(GraphEventType.NODE_RENAMED, node.id)

        kind = kind or tab.classification.node_kind
        if kind != node.kind:
            node = self._replace(node, config=config_for_kind(kind, tab), output=None)
            logger.info(f"[GraphStore] Retyped '{node.label}' to {kind.value}")
            self._publish(GraphEventType.NODE_RETYPED, node.id)
            return node

        config = config_with_tab_content(node.config, tab)
        if config != node.config:
            node = self._replace(node, config=config, output=None)
            self._publish(GraphEventType.CONFIG_CHANGED, node.id)
        return node

    def sync_tab_content(self, tab: Tab) -> List[Node]:
        """Substitute the tab's content into the config of every node created from it."""
        updated = []
        for node in list(self._nodes.values()):
            if node.tab_id != tab.id:
                continue
            config = config_with_tab_content(node.config, tab)
            if config != node.config:
                updated.append(self._replace(node, config=config, output=None))
                self._publish(GraphEventType.CONFIG_CHANGED, node.id)
        return updated

    def update_node_output(self, node_id: str, output: Optional[str]) -> Optional[Node]:
        """
        Store a node's output and propagate it to every direct downstream node.

        Returns:
            The updated node, or None for unknown ids
        """
        node = self._nodes.get(node_id)
        if node is None:
            logger.warning(f"[GraphStore] update_node_output: unknown node '{node_id}'")
            return None
        if node.output == output:
            return node

        node = self._replace(node, output=output)
        self._output_stamps[node_id] = self._next_stamp()
        self._publish(GraphEventType.OUTPUT_CHANGED, node_id)

        for target_id, value in inputs_after_output_change(self.snapshot(), node_id).items():
            self._set_input(target_id, value)
        return self._nodes[node_id]

    # ========================================================================
    # EDGES
    # ========================================================================

    def connect(self, source_id: str, target_id: str) -> Optional[Edge]:
        """
        Add an edge ``source -> target`` and propagate into the target.

        Returns:
            The new Edge, or None for self-loops and unknown ids
        """
        if source_id == target_id:
            logger.warning(f"[GraphStore] connect: self-loop on '{source_id}' rejected")
            return None
        if source_id not in self._nodes or target_id not in self._nodes:
            logger.warning(f"[GraphStore] connect: unknown node in {source_id} -> {target_id}")
            return None

        edge = Edge(id=new_edge_id(), source=source_id, target=target_id)
        self._edges.append(edge)
        self._edge_stamps[edge.id] = self._next_stamp()
        logger.info(
            f"[GraphStore] Connected '{self._nodes[source_id].label}' -> "
            f"'{self._nodes[target_id].label}'"
        )
        self._publish(GraphEventType.EDGE_ADDED, edge=edge)

        value, _ = resolve_input(self.snapshot(), target_id)
        self._set_input(target_id, value)
        return edge

    def disconnect(self, edge_id: str) -> GraphSnapshot:
        """Remove an edge and re-resolve its former target."""
        edge = next((e for e in self._edges if e.id == edge_id), None)
        if edge is None:
            logger.warning(f"[GraphStore] disconnect: unknown edge '{edge_id}'")
            return self.snapshot()
        self._edges.remove(edge)
        self._edge_stamps.pop(edge.id, None)
        self._publish(GraphEventType.EDGE_REMOVED, edge=edge)
        self._reresolve([edge.target])
        return self.snapshot()

    # ========================================================================
    # PROPAGATION
    # ========================================================================

    def _set_input(self, node_id: str, value: str) -> None:
        node = self._nodes.get(node_id)
        if node is None or node.input == value:
            return
        self._replace(node, input=value, output=None)
        logger.debug(f"[GraphStore] Input of '{node.label}' updated ({len(value)} chars)")
        self._publish(GraphEventType.INPUT_CHANGED, node_id)

    def _reresolve(self, target_ids: List[str]) -> None:
        for target_id, value in targets_to_reset(self.snapshot(), target_ids).items():
            if value is not None:
                self._set_input(target_id, value)
                continue
            node = self._nodes[target_id]
            if node.input == "" and node.output is None:
                continue
            self._replace(node, input="", output=None)
            self._publish(GraphEventType.INPUT_CHANGED, target_id)
