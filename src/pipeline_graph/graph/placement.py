"""
Node placement, unique naming and auto-connection heuristics.

Positions are node centers in canvas coordinates.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from src.pipeline_graph.core.settings import (
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
    FIRST_NODE_HEIGHT_RATIO,
    NODE_VERTICAL_SPACING,
)
from src.pipeline_graph.graph.snapshot import GraphSnapshot
from src.shared_lib.models.schema import Node, Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Viewport:
    """
    Visible part of the canvas.

    ``x``/``y`` are the pan offset in screen units and ``zoom`` the scale
    factor, so a canvas point ``c`` appears on screen at ``c * zoom + offset``.
    """

    width: float = DEFAULT_VIEWPORT_WIDTH
    height: float = DEFAULT_VIEWPORT_HEIGHT
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0

    def screen_to_canvas(self, screen_x: float, screen_y: float) -> Position:
        zoom = self.zoom or 1.0
        return Position(x=(screen_x - self.x) / zoom, y=(screen_y - self.y) / zoom)

    def visible_center_x(self) -> float:
        return self.screen_to_canvas(self.width / 2, 0).x


def unique_label(base: str, taken: Iterable[str]) -> str:
    """
    Make *base* unique among *taken*.

    Example:
        >>> unique_label("Source", {"Source", "Source (Copy 1)"})
        'Source (Copy 2)'
    """
    taken = set(taken)
    if base not in taken:
        return base
    n = 1
    while f"{base} (Copy {n})" in taken:
        n += 1
    return f"{base} (Copy {n})"


def palette_placement(
    snapshot: GraphSnapshot, viewport: Viewport
) -> Tuple[Position, Optional[Node]]:
    """
    Position for a node added from the palette.

    Returns:
        ``(position, parent)``: on an empty graph the canonical top-center
        position and no parent; otherwise a point directly beneath the
        lowest node, which becomes the parent of the new node
    """
    lowest = snapshot.lowest_node()
    if lowest is None:
        return (
            Position(x=viewport.visible_center_x(), y=viewport.height * FIRST_NODE_HEIGHT_RATIO),
            None,
        )
    return (
        Position(x=lowest.position.x, y=lowest.position.y + NODE_VERTICAL_SPACING),
        lowest,
    )


def find_closest_node(
    snapshot: GraphSnapshot, position: Position, exclude_id: Optional[str] = None
) -> Optional[Node]:
    """Node nearest to *position*; the first in node order wins ties."""
    closest = None
    min_distance = float("inf")
    for node in snapshot.nodes:
        if node.id == exclude_id:
            continue
        distance = node.position.distance_to(position)
        if distance < min_distance:
            closest, min_distance = node, distance
    return closest


def drop_connection(
    snapshot: GraphSnapshot, new_id: str, position: Position
) -> Optional[Tuple[str, str]]:
    """
    Edge ``(source, target)`` to create for a node dropped at *position*.

    The nearest other node is the anchor. A node dropped above its anchor
    feeds it; otherwise the anchor feeds the new node. None when the graph
    has no other node or the pair is already connected.
    """
    anchor = find_closest_node(snapshot, position, exclude_id=new_id)
    if anchor is None:
        return None
    if position.y < anchor.position.y:
        pair = (new_id, anchor.id)
    else:
        pair = (anchor.id, new_id)
    if snapshot.has_edge(*pair):
        logger.debug(f"[Placement] Edge {pair[0]} -> {pair[1]} already exists")
        return None
    return pair
