"""Graph state, propagation and placement."""

from src.pipeline_graph.graph.placement import Viewport, unique_label
from src.pipeline_graph.graph.snapshot import GraphEvent, GraphEventType, GraphSnapshot
from src.pipeline_graph.graph.store import GraphStore

__all__ = [
    "Viewport",
    "unique_label",
    "GraphEvent",
    "GraphEventType",
    "GraphSnapshot",
    "GraphStore",
]
