"""
Immutable graph views and change events.

GraphSnapshot is what readers get: an ordered node tuple, the edge tuple and
the change stamps (per output, per edge) used to resolve fan-in. GraphEvent
is published by the GraphStore after every transition and always carries the
snapshot taken right after it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Set, Tuple

from src.shared_lib.models.schema import Edge, Node


class GraphEventType(str, Enum):
    NODE_ADDED = "node_added"
    NODE_REMOVED = "node_removed"
    NODE_MOVED = "node_moved"
    NODE_RENAMED = "node_renamed"
    NODE_RETYPED = "node_retyped"
    CONFIG_CHANGED = "config_changed"
    INPUT_CHANGED = "input_changed"
    OUTPUT_CHANGED = "output_changed"
    EDGE_ADDED = "edge_added"
    EDGE_REMOVED = "edge_removed"


@dataclass(frozen=True)
class GraphSnapshot:
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    output_stamps: Dict[str, int] = field(default_factory=dict)
    edge_stamps: Dict[str, int] = field(default_factory=dict)

    def node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def edge(self, edge_id: str) -> Optional[Edge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def incoming(self, node_id: str) -> Tuple[Edge, ...]:
        """Edges targeting *node_id*, in creation order."""
        return tuple(edge for edge in self.edges if edge.target == node_id)

    def outgoing(self, node_id: str) -> Tuple[Edge, ...]:
        return tuple(edge for edge in self.edges if edge.source == node_id)

    def has_edge(self, source_id: str, target_id: str) -> bool:
        return any(e.source == source_id and e.target == target_id for e in self.edges)

    def labels(self) -> Set[str]:
        return {node.label for node in self.nodes}

    def lowest_node(self) -> Optional[Node]:
        """Node with maximal ``y``; the first in node order wins ties."""
        lowest = None
        for node in self.nodes:
            if lowest is None or node.position.y > lowest.position.y:
                lowest = node
        return lowest

    def __len__(self) -> int:
        return len(self.nodes)


@dataclass(frozen=True)
class GraphEvent:
    type: GraphEventType
    snapshot: GraphSnapshot
    node_id: Optional[str] = None
    edge: Optional[Edge] = None

    def subject_ids(self) -> Set[str]:
        ids = set()
        if self.node_id:
            ids.add(self.node_id)
        if self.edge is not None:
            ids.update({self.edge.id, self.edge.source, self.edge.target})
        return ids

    @property
    def node(self) -> Optional[Node]:
        """The subject node as of this event (None once removed)."""
        return self.snapshot.node(self.node_id) if self.node_id else None
