"""
Pydantic schemas for the pipeline graph.

This module defines the data structures for:
- Nodes, their kind-specific configuration (tagged variant) and positions
- Edges between nodes
- Editor tabs and their content classification
- The drag-and-drop payload exchanged between the tab bar and the canvas

Every model is immutable; stores produce updated copies with
``model_copy(update=...)``.
"""

from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ============================================================================
# ENUMS AND LITERALS
# ============================================================================


class NodeKind(str, Enum):
    """Kinds of pipeline nodes."""

    DATA_SOURCE = "data_source"
    PROMPT = "prompt"
    SPREADSHEET = "spreadsheet"
    DISPLAY = "display"


class ContentKind(str, Enum):
    """Semantic kind inferred for a tab's content."""

    DATASET = "dataset"
    PROMPT = "prompt"
    SPREADSHEET = "spreadsheet"
    DISPLAY = "display"


DataFormat = Literal["json", "csv", "yaml", "structured"]
DATA_FORMATS = ("json", "csv", "yaml", "structured")

CONTENT_TO_NODE_KIND: Dict[ContentKind, NodeKind] = {
    ContentKind.DATASET: NodeKind.DATA_SOURCE,
    ContentKind.PROMPT: NodeKind.PROMPT,
    ContentKind.SPREADSHEET: NodeKind.SPREADSHEET,
    ContentKind.DISPLAY: NodeKind.DISPLAY,
}

NODE_TO_CONTENT_KIND: Dict[NodeKind, ContentKind] = {
    node_kind: content_kind for content_kind, node_kind in CONTENT_TO_NODE_KIND.items()
}

# Drag payload tab types used by the tab bar
TAB_TYPE_TO_NODE_KIND: Dict[str, NodeKind] = {
    "data-source": NodeKind.DATA_SOURCE,
    "prompt-template": NodeKind.PROMPT,
    "spreadsheet": NodeKind.SPREADSHEET,
    "display": NodeKind.DISPLAY,
}

NODE_KIND_TO_TAB_TYPE: Dict[NodeKind, str] = {
    kind: tab_type for tab_type, kind in TAB_TYPE_TO_NODE_KIND.items()
}


# ============================================================================
# GEOMETRY
# ============================================================================


class Position(BaseModel):
    """Canvas coordinate of a node's center."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    def distance_to(self, other: "Position") -> float:
        """Euclidean distance to another position."""
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5


# ============================================================================
# NODE CONFIGURATION (TAGGED VARIANT)
# ============================================================================


class DataSourceConfig(BaseModel):
    """Static data typed into (or dropped from) a tab."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["data_source"] = "data_source"
    source_format: DataFormat = "json"
    content: str = ""


class PromptConfig(BaseModel):
    """Prompt template sent to the text-generation service."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["prompt"] = "prompt"
    prompt: str = ""


class SpreadsheetConfig(BaseModel):
    """Tabular view of the upstream output, optionally exported as a document."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["spreadsheet"] = "spreadsheet"
    source_type: Literal["sheets"] = "sheets"


class DisplayConfig(BaseModel):
    """Read-only display of the upstream output."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["display"] = "display"
    display_type: Literal["text"] = "text"


NodeConfig = Annotated[
    Union[DataSourceConfig, PromptConfig, SpreadsheetConfig, DisplayConfig],
    Field(discriminator="kind"),
]


# ============================================================================
# GRAPH ELEMENTS
# ============================================================================


class Node(BaseModel):
    """
    A pipeline node.

    ``input`` is written only by the propagation engine and ``output`` only
    through GraphStore.update_node_output. ``output`` is None while the node
    is unresolved or executing.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)
    position: Position
    config: NodeConfig
    input: Optional[str] = None
    output: Optional[str] = None
    tab_id: Optional[str] = None

    @property
    def kind(self) -> NodeKind:
        return NodeKind(self.config.kind)


class Edge(BaseModel):
    """Directed edge: ``source.output`` flows into ``target.input``."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def reject_self_loop(self) -> "Edge":
        if self.source == self.target:
            raise ValueError(f"Edge {self.id} would connect node {self.source} to itself")
        return self


# ============================================================================
# TABS AND CLASSIFICATION
# ============================================================================


class Classification(BaseModel):
    """Semantic label inferred for a tab's content."""

    model_config = ConfigDict(frozen=True)

    kind: ContentKind
    format: Optional[DataFormat] = None
    confidence: float = Field(..., ge=0.0, le=1.0)

    @model_validator(mode="before")
    @classmethod
    def drop_format_for_non_datasets(cls, data: Any) -> Any:
        """Only datasets carry a data format."""
        if isinstance(data, dict) and data.get("format") is not None:
            kind = data.get("kind")
            if kind not in (ContentKind.DATASET, ContentKind.DATASET.value):
                data = {**data, "format": None}
        return data

    @property
    def node_kind(self) -> NodeKind:
        return CONTENT_TO_NODE_KIND[self.kind]


DEFAULT_CLASSIFICATION = Classification(
    kind=ContentKind.DATASET, format="json", confidence=0.8
)


class Tab(BaseModel):
    """A named text document in the editor."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    content: str = ""
    classification: Classification = DEFAULT_CLASSIFICATION


class DragPayload(BaseModel):
    """
    Drag-and-drop transfer from the tab bar to the canvas.

    ``target_node_id`` present means the tab was dropped onto an existing
    node; absent means it was dropped on empty canvas.
    """

    model_config = ConfigDict(frozen=True)

    tab_id: str = Field(..., min_length=1)
    tab_name: str = Field(..., min_length=1)
    tab_content: str = ""
    tab_type: Optional[str] = None
    target_node_id: Optional[str] = None

    def to_tab(self) -> Tab:
        """Tab view of the payload, used when the source tab no longer exists."""
        return Tab(id=self.tab_id, name=self.tab_name, content=self.tab_content)


__all__ = [
    "NodeKind",
    "ContentKind",
    "DataFormat",
    "DATA_FORMATS",
    "CONTENT_TO_NODE_KIND",
    "NODE_TO_CONTENT_KIND",
    "TAB_TYPE_TO_NODE_KIND",
    "NODE_KIND_TO_TAB_TYPE",
    "Position",
    "DataSourceConfig",
    "PromptConfig",
    "SpreadsheetConfig",
    "DisplayConfig",
    "NodeConfig",
    "Node",
    "Edge",
    "Classification",
    "DEFAULT_CLASSIFICATION",
    "Tab",
    "DragPayload",
]
