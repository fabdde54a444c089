"""
TabStore - ordered collection of editor tabs.

The store is the single owner of the tab list. Every mutation replaces the
affected (immutable) Tab and publishes a TabEvent to subscribers.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from src.content_classifier.core.settings import OUTPUT_TAB_SUFFIX, SAMPLE_TABS
from src.shared_lib.models.schema import DEFAULT_CLASSIFICATION, Classification, Tab
from src.shared_lib.utils.events import EventHub, Subscription

logger = logging.getLogger(__name__)

DEFAULT_TAB_NAME = "New Tab"


class TabEventType(str, Enum):
    CREATED = "tab_created"
    CONTENT_CHANGED = "tab_content_changed"
    RENAMED = "tab_renamed"
    CLASSIFIED = "tab_classified"
    MOVED = "tab_moved"
    DELETED = "tab_deleted"


@dataclass(frozen=True)
class TabEvent:
    type: TabEventType
    tab_id: str
    tab: Optional[Tab] = None
    tabs: Tuple[Tab, ...] = field(default_factory=tuple)

    def subject_ids(self) -> Set[str]:
        return {self.tab_id}


def numbered_name(base: str, taken: Iterable[str]) -> str:
    """Return *base*, or ``"<base> N"`` with the smallest N >= 1 not in *taken*."""
    taken = set(taken)
    if base not in taken:
        return base
    n = 1
    while f"{base} {n}" in taken:
        n += 1
    return f"{base} {n}"


class TabStore:
    """
    Ordered editor tabs.

    Tab ids are assigned once (from the initial, unique name) and never
    change; renaming only changes ``name``. An id is never issued twice,
    even after its tab is deleted, so weak node links cannot be picked up
    by an unrelated tab.
    """

    def __init__(self, tabs: Optional[Iterable[Tab]] = None):
        self._tabs: Dict[str, Tab] = {}
        self._events: EventHub[TabEvent] = EventHub("TabStore")
        self._issued_ids: Set[str] = set()
        for tab in tabs or ():
            self._tabs[tab.id] = tab
            self._issued_ids.add(tab.id)

    @classmethod
    def with_samples(cls) -> "TabStore":
        """Store seeded with the sample dataset and prompt tabs."""
        tabs = [
            Tab(
                id=sample["name"],
                name=sample["name"],
                content=sample["content"],
                classification=Classification(**sample["classification"]),
            )
            for sample in SAMPLE_TABS
        ]
        return cls(tabs)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def tabs(self) -> Tuple[Tab, ...]:
        return tuple(self._tabs.values())

    def snapshot(self) -> Tuple[Tab, ...]:
        return self.tabs

    def get(self, tab_id: str) -> Optional[Tab]:
        return self._tabs.get(tab_id)

    def find_by_name(self, name: str) -> Optional[Tab]:
        for tab in self._tabs.values():
            if tab.name == name:
                return tab
        return None

    def resolve(self, ref: str) -> Optional[Tab]:
        """Look a tab up by id, then by name."""
        return self.get(ref) or self.find_by_name(ref)

    def _taken_names(self) -> Set[str]:
        return {tab.id for tab in self._tabs.values()} | {tab.name for tab in self._tabs.values()}

    def __len__(self) -> int:
        return len(self._tabs)

    def __contains__(self, tab_id: str) -> bool:
        return tab_id in self._tabs

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(
        self,
        callback: Callable[[TabEvent], None],
        tab_id: Optional[str] = None,
        event_types: Optional[Set[TabEventType]] = None,
    ) -> Subscription:
        return self._events.subscribe(callback, subject_id=tab_id, event_types=event_types)

    def _publish(self, event_type: TabEventType, tab_id: str, tab: Optional[Tab]) -> None:
        self._events.publish(TabEvent(type=event_type, tab_id=tab_id, tab=tab, tabs=self.tabs))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_tab(
        self,
        name: Optional[str] = None,
        content: str = "",
        classification: Optional[Classification] = None,
    ) -> Tab:
        """
        Append a new tab.

        Args:
            name: Requested name (``New Tab`` when empty); made unique with a
                numeric suffix
            content: Initial text
            classification: Initial classification (default dataset/json/0.8)

        Returns:
            The created Tab
        """
        base = (name or "").strip() or DEFAULT_TAB_NAME
        unique = numbered_name(base, self._taken_names())
        tab_id = numbered_name(unique, self._issued_ids)
        self._issued_ids.add(tab_id)
        tab = Tab(
            id=tab_id,
            name=unique,
            content=content,
            classification=classification or DEFAULT_CLASSIFICATION,
        )
        self._tabs[tab.id] = tab
        logger.info(f"[TabStore] Created tab '{tab.name}'")
        self._publish(TabEventType.CREATED, tab.id, tab)
        return tab

    def create_output_tab(self, label: str, content: str) -> Tab:
        """Create the ``"<label> Output"`` tab holding a node's output."""
        return self.create_tab(f"{label}{OUTPUT_TAB_SUFFIX}", content, DEFAULT_CLASSIFICATION)

    def update_content(self, tab_id: str, content: str) -> Optional[Tab]:
        """Replace a tab's content. Unknown ids and unchanged content are no-ops."""
        tab = self._tabs.get(tab_id)
        if tab is None:
            logger.warning(f"[TabStore] update_content: unknown tab '{tab_id}'")
            return None
        if tab.content == content:
            return tab
        tab = tab.model_copy(update={"content": content})
        self._tabs[tab_id] = tab
        self._publish(TabEventType.CONTENT_CHANGED, tab_id, tab)
        return tab

    def rename_tab(self, tab_id: str, name: str) -> Optional[Tab]:
        """Change a tab's display name; blank or duplicate names are rejected."""
        tab = self._tabs.get(tab_id)
        name = (name or "").strip()
        if tab is None or not name:
            logger.warning(f"[TabStore] rename_tab rejected for '{tab_id}' -> '{name}'")
            return None
        if any(other.name == name for other in self._tabs.values() if other.id != tab_id):
            logger.warning(f"[TabStore] rename_tab: name '{name}' already in use")
            return None
        tab = tab.model_copy(update={"name": name})
        self._tabs[tab_id] = tab
        self._publish(TabEventType.RENAMED, tab_id, tab)
        return tab

    def set_classification(self, tab_id: str, classification: Classification) -> Optional[Tab]:
        tab = self._tabs.get(tab_id)
        if tab is None:
            return None
        tab = tab.model_copy(update={"classification": classification})
        self._tabs[tab_id] = tab
        self._publish(TabEventType.CLASSIFIED, tab_id, tab)
        return tab

    def move_tab(self, tab_id: str, index: int) -> bool:
        """Move a tab to *index* (clamped to the valid range)."""
        if tab_id not in self._tabs:
            return False
        order: List[str] = [tid for tid in self._tabs if tid != tab_id]
        index = max(0, min(index, len(order)))
        order.insert(index, tab_id)
        self._tabs = {tid: self._tabs[tid] for tid in order}
        self._publish(TabEventType.MOVED, tab_id, self._tabs[tab_id])
        return True

    def delete_tab(self, tab_id: str) -> bool:
        """Remove a tab. Nodes that reference it keep their weak ``tab_id``."""
        tab = self._tabs.pop(tab_id, None)
        if tab is None:
            return False
        logger.info(f"[TabStore] Deleted tab '{tab.name}'")
        self._publish(TabEventType.DELETED, tab_id, tab)
        return True
