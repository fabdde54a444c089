"""
Propagation of outputs along edges.

Pure functions over a GraphSnapshot. They compute what a target's input
should be; the GraphStore applies the result and clears the target's output
only when the input value actually changed.

Fan-in is "last writer wins": among the incoming edges of a target, the one
whose source output changed (or which was itself connected) most recently is
effective. Stamps come from one monotonic counter, so ties cannot occur
between stamped events; unstamped edges fall back to creation order.
"""

import logging
from typing import Dict, List, Optional, Tuple

from src.shared_lib.models.schema import Edge
from src.pipeline_graph.graph.snapshot import GraphSnapshot

logger = logging.getLogger(__name__)


def effective_edge(snapshot: GraphSnapshot, target_id: str) -> Optional[Edge]:
    """
    Incoming edge whose source currently feeds *target_id*.

    Returns:
        The winning edge, or None when the target has no upstream
    """
    best: Optional[Edge] = None
    best_key: Tuple[int, int] = (-1, -1)
    for order, edge in enumerate(snapshot.edges):
        if edge.target != target_id:
            continue
        stamp = max(
            snapshot.output_stamps.get(edge.source, 0),
            snapshot.edge_stamps.get(edge.id, 0),
        )
        key = (stamp, order)
        if key > best_key:
            best, best_key = edge, key
    return best


def resolve_input(snapshot: GraphSnapshot, target_id: str) -> Tuple[str, bool]:
    """
    Input the target should hold.

    Returns:
        ``(value, has_upstream)``; ``value`` is ``''`` when the effective
        source has no output yet or there is no upstream at all
    """
    edge = effective_edge(snapshot, target_id)
    if edge is None:
        return "", False
    source = snapshot.node(edge.source)
    value = source.output if source is not None and source.output is not None else ""
    return value, True


def inputs_after_output_change(snapshot: GraphSnapshot, source_id: str) -> Dict[str, str]:
    """
    New inputs for every direct downstream node of *source_id*.

    Each target is resolved through the fan-in rule, so a target fed by a
    more recent writer keeps that writer's value.
    """
    assignments: Dict[str, str] = {}
    for edge in snapshot.outgoing(source_id):
        if edge.target in assignments:
            continue
        value, _ = resolve_input(snapshot, edge.target)
        assignments[edge.target] = value
    return assignments


def targets_to_reset(snapshot: GraphSnapshot, target_ids: List[str]) -> Dict[str, Optional[str]]:
    """
    Re-resolve targets that lost an incoming edge.

    Returns:
        Mapping target id -> new input, or None when no upstream remains
        (input becomes ``''`` and output is cleared unconditionally)
    """
    result: Dict[str, Optional[str]] = {}
    for target_id in target_ids:
        if snapshot.node(target_id) is None:
            continue
        value, has_upstream = resolve_input(snapshot, target_id)
        result[target_id] = value if has_upstream else None
    return result
