"""
PipelineEditor - facade wiring tabs, classification, graph and runtimes.

The editor owns one TabStore and one GraphStore and connects them:
- tab content edits are reclassified (debounced) and substituted into the
  config of every node created from that tab
- drag payloads from the tab bar create nodes or retarget existing ones
- node outputs can be materialized back into tabs
- the RuntimeSupervisor keeps node outputs computed
"""

import logging
from typing import Optional, Union

from src.content_classifier.classifier import ClassificationService
from src.content_classifier.core.settings import CLASSIFICATION_DEBOUNCE_SECONDS
from src.content_classifier.scheduler import ClassificationScheduler
from src.content_classifier.tab_store import TabEvent, TabEventType, TabStore
from src.pipeline_graph.graph.placement import Viewport
from src.pipeline_graph.graph.snapshot import GraphSnapshot
from src.pipeline_graph.graph.store import GraphStore
from src.pipeline_graph.runtime.base import RuntimeStatus
from src.pipeline_graph.runtime.registry import build_runtimes
from src.pipeline_graph.runtime.spreadsheet import build_preview
from src.pipeline_graph.runtime.supervisor import RuntimeSupervisor
from src.shared_lib.clients.tabular_document import (
    HttpTabularDocumentClient,
    TabularDocumentClient,
)
from src.shared_lib.clients.text_generation import GeminiTextGenerator, TextGenerator
from src.shared_lib.core.settings import DOCUMENT_SERVICE_URL, has_llm_credentials
from src.shared_lib.models.llm_loader import load_classifier_llm
from src.shared_lib.models.schema import (
    DEFAULT_CLASSIFICATION,
    NODE_KIND_TO_TAB_TYPE,
    NODE_TO_CONTENT_KIND,
    TAB_TYPE_TO_NODE_KIND,
    Classification,
    DragPayload,
    Edge,
    Node,
    NodeKind,
    Position,
    Tab,
)
from src.shared_lib.utils.json_utils import format_for_display

logger = logging.getLogger(__name__)


class PipelineEditor:
    """
    Pipeline editor session state.

    Args:
        generator: Text generator for prompt nodes and classification.
            None classifies with local heuristics and runs prompts on Gemini.
        document_client: Tabular-document client for spreadsheet nodes
        tabs: Initial tab store (sample tabs when None and seed_samples)
        viewport: Visible canvas
        classification_debounce: Quiet period before reclassifying a tab
        runtime_debounce: Per-kind debounce overrides for node runtimes
        seed_samples: Seed the sample tabs when *tabs* is None
        classifier_generator: Text generator for classification only
            (defaults to *generator*)
    """

    def __init__(
        self,
        generator: Optional[TextGenerator] = None,
        document_client: Optional[TabularDocumentClient] = None,
        tabs: Optional[TabStore] = None,
        viewport: Optional[Viewport] = None,
        classification_debounce: float = CLASSIFICATION_DEBOUNCE_SECONDS,
        runtime_debounce: Optional[dict] = None,
        seed_samples: bool = True,
        classifier_generator: Optional[TextGenerator] = None,
    ):
        if tabs is None:
            tabs = TabStore.with_samples() if seed_samples else TabStore()
        self.tabs = tabs
        self.graph = GraphStore(viewport)
        self.classifier = ClassificationService(classifier_generator or generator)
        self.scheduler = ClassificationScheduler(
            self.tabs, self.classifier, debounce_seconds=classification_debounce
        )
        self.runtimes = build_runtimes(generator, document_client, runtime_debounce)
        self.supervisor = RuntimeSupervisor(self.graph, self.runtimes)
        self._tab_subscription = self.tabs.subscribe(
            self._on_tab_content_changed, event_types={TabEventType.CONTENT_CHANGED}
        )
        logger.info(
            f"[PipelineEditor] Ready ({len(self.tabs)} tabs, classifier={self.classifier.mode}, "
            f"documents={'on' if document_client else 'off'})"
        )

    @classmethod
    def from_settings(cls, **kwargs) -> "PipelineEditor":
        """Editor with Gemini and the document service configured from the environment."""
        generator = classifier_generator = None
        if has_llm_credentials():
            generator = GeminiTextGenerator(name="prompt")
            classifier_generator = GeminiTextGenerator(name="classifier", loader=load_classifier_llm)
        client = HttpTabularDocumentClient() if DOCUMENT_SERVICE_URL else None
        if generator is None:
            logger.warning("[PipelineEditor] No Gemini API key; classification uses local heuristics")
        return cls(
            generator=generator,
            document_client=client,
            classifier_generator=classifier_generator,
            **kwargs,
        )

    @property
    def viewport(self) -> Viewport:
        return self.graph.viewport

    def snapshot(self) -> GraphSnapshot:
        return self.graph.snapshot()

    # ========================================================================
    # TABS
    # ========================================================================

    def create_tab(self, name: Optional[str] = None, content: str = "") -> Tab:
        tab = self.tabs.create_tab(name, content)
        if content.strip():
            self.scheduler.request(tab.id)
        return tab

    def edit_tab(self, tab_id: str, content: str) -> Optional[Tab]:
        """Replace a tab's content; linked nodes and reclassification follow."""
        return self.tabs.update_content(tab_id, content)

    def _on_tab_content_changed(self, event: TabEvent) -> None:
        if event.tab is not None:
            self.graph.sync_tab_content(event.tab)

    def build_drag_payload(self, tab_id: str, target_node_id: Optional[str] = None) -> Optional[DragPayload]:
        """Payload for dragging *tab_id* onto the canvas (or onto a node)."""
        tab = self.tabs.get(tab_id)
        if tab is None:
            return None
        return DragPayload(
            tab_id=tab.id,
            tab_name=tab.name,
            tab_content=tab.content,
            tab_type=NODE_KIND_TO_TAB_TYPE[tab.classification.node_kind],
            target_node_id=target_node_id,
        )

    def _tab_from_payload(self, payload: DragPayload) -> Tab:
        tab = self.tabs.get(payload.tab_id)
        if tab is not None:
            return tab
        # Tab deleted after the drag started: rebuild it from the payload
        kind = TAB_TYPE_TO_NODE_KIND.get(payload.tab_type or "")
        classification = DEFAULT_CLASSIFICATION
        if kind is not None and kind != DEFAULT_CLASSIFICATION.node_kind:
            classification = Classification(kind=NODE_TO_CONTENT_KIND[kind], confidence=1.0)
        return payload.to_tab().model_copy(update={"classification": classification})

    # ========================================================================
    # GRAPH
    # ========================================================================

    def add_node_from_palette(self, kind: Union[NodeKind, str]) -> Node:
        return self.graph.add_node(kind)

    def handle_drop(
        self,
        payload: DragPayload,
        screen_x: Optional[float] = None,
        screen_y: Optional[float] = None,
    ) -> Optional[Node]:
        """
        Handle a tab dropped from the tab bar.

        Args:
            payload: Drag payload
            screen_x, screen_y: Drop point in screen coordinates; omitted
                means no position (palette placement)

        Returns:
            The created or updated node
        """
        tab = self._tab_from_payload(payload)
        # The payload's tab type decides the kind for both drop targets
        kind = TAB_TYPE_TO_NODE_KIND.get(payload.tab_type or "", tab.classification.node_kind)
        if payload.target_node_id:
            return self.graph.apply_tab_to_node(tab, payload.target_node_id, kind)

        position = None
        if screen_x is not None and screen_y is not None:
            position = self.viewport.screen_to_canvas(screen_x, screen_y)
        return self.graph.add_node(kind, explicit_position=position, source_tab=tab)

    def connect(self, source_id: str, target_id: str) -> Optional[Edge]:
        return self.graph.connect(source_id, target_id)

    def disconnect(self, edge_id: str) -> GraphSnapshot:
        return self.graph.disconnect(edge_id)

    def remove_node(self, node_id: str) -> GraphSnapshot:
        return self.graph.remove_node(node_id)

    def move_node(self, node_id: str, x: float, y: float) -> Optional[Node]:
        return self.graph.move_node(node_id, Position(x=x, y=y))

    def rename_node(self, node_id: str, label: str) -> Optional[Node]:
        return self.graph.rename_node(node_id, label)

    def status(self, node_id: str) -> RuntimeStatus:
        return self.supervisor.status(node_id)

    def preview(self, node_id: str) -> Optional[str]:
        """Table preview for spreadsheet nodes, display-formatted output otherwise."""
        node = self.graph.get_node(node_id)
        if node is None:
            return None
        if node.kind == NodeKind.SPREADSHEET:
            return build_preview(node.input)
        return format_for_display(node.output)

    def materialize_output(self, node_id: str) -> Optional[Tab]:
        """
        Create a tab holding the node's output.

        Returns:
            The new ``"<label> Output"`` tab, or None when the node has no output
        """
        node = self.graph.get_node(node_id)
        if node is None or node.output is None:
            logger.info(f"[PipelineEditor] Nothing to materialize for '{node_id}'")
            return None
        return self.tabs.create_output_tab(node.label, format_for_display(node.output))

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    @property
    def pending(self) -> bool:
        return self.scheduler.pending or self.supervisor.pending

    async def settle(self) -> None:
        """Wait until no classification, debounce timer or runtime task is pending."""
        while self.pending:
            await self.scheduler.drain()
            await self.supervisor.settle()

    def close(self) -> None:
        self.scheduler.close()
        self.supervisor.close()
        self._tab_subscription.cancel()
