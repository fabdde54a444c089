"""
Pipeline graph engine.

Nodes (DataSource, Prompt, Spreadsheet, Display) connected by directed edges;
each edge propagates the upstream output into the downstream input and node
runtimes recompute outputs as inputs change.
"""

from src.pipeline_graph.editor import PipelineEditor
from src.pipeline_graph.graph import GraphEvent, GraphEventType, GraphSnapshot, GraphStore, Viewport
from src.pipeline_graph.runtime import RuntimeStatus, RuntimeSupervisor

__all__ = [
    "PipelineEditor",
    "GraphEvent",
    "GraphEventType",
    "GraphSnapshot",
    "GraphStore",
    "Viewport",
    "RuntimeStatus",
    "RuntimeSupervisor",
]
