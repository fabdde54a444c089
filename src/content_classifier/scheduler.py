"""
Debounced reclassification of editor tabs.

Each content edit restarts a per-tab quiet-period timer. When the timer fires
the current content is captured and classified; the result is applied only if
the tab still holds exactly that content. Blank content is never classified;
a tab whose content is cleared falls back to DEFAULT_CLASSIFICATION.
"""

import asyncio
import logging
from typing import Dict, Optional, Set

from src.content_classifier.classifier import ClassificationService
from src.content_classifier.core.settings import CLASSIFICATION_DEBOUNCE_SECONDS
from src.content_classifier.tab_store import TabEvent, TabEventType, TabStore
from src.shared_lib.models.schema import DEFAULT_CLASSIFICATION, NODE_KIND_TO_TAB_TYPE

logger = logging.getLogger(__name__)


class ClassificationScheduler:
    """
    Per-tab debounce timers around ClassificationService.

    Args:
        tabs: Store whose tabs are classified
        service: Classifier used when a timer fires
        debounce_seconds: Quiet period after the last edit
        watch: Subscribe to content edits of *tabs* automatically
    """

    def __init__(
        self,
        tabs: TabStore,
        service: ClassificationService,
        debounce_seconds: float = CLASSIFICATION_DEBOUNCE_SECONDS,
        watch: bool = True,
    ):
        self.tabs = tabs
        self.service = service
        self.debounce_seconds = debounce_seconds
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._tasks: Set[asyncio.Task] = set()
        self.completed = 0
        self.discarded = 0
        self._subscription = None
        if watch:
            self._subscription = tabs.subscribe(
                self._on_tab_event,
                event_types={TabEventType.CONTENT_CHANGED, TabEventType.DELETED},
            )

    def _on_tab_event(self, event: TabEvent) -> None:
        if event.type == TabEventType.DELETED:
            self.cancel(event.tab_id)
        else:
            self.request(event.tab_id)

    @property
    def pending(self) -> bool:
        return bool(self._timers) or bool(self._tasks)

    def request(self, tab_id: str) -> None:
        """Restart the quiet-period timer for *tab_id*."""
        loop = asyncio.get_running_loop()
        self.cancel(tab_id)
        self._timers[tab_id] = loop.call_later(self.debounce_seconds, self._fire, tab_id)
        logger.debug(f"[ClassificationScheduler] Timer (re)started for '{tab_id}'")

    def cancel(self, tab_id: str) -> None:
        handle = self._timers.pop(tab_id, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    def _fire(self, tab_id: str) -> None:
        self._timers.pop(tab_id, None)
        tab = self.tabs.get(tab_id)
        if tab is None:
            return
        if not tab.content.strip():
            if tab.classification != DEFAULT_CLASSIFICATION:
                self.tabs.set_classification(tab_id, DEFAULT_CLASSIFICATION)
            return
        task = asyncio.get_running_loop().create_task(self._classify(tab_id, tab.content))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _classify(self, tab_id: str, content: str) -> None:
        tab = self.tabs.get(tab_id)
        if tab is None:
            return
        hint = NODE_KIND_TO_TAB_TYPE[tab.classification.node_kind]
        classification = await self.service.classify(content, hint)

        current = self.tabs.get(tab_id)
        if current is None or current.content != content:
            self.discarded += 1
            logger.debug(f"[ClassificationScheduler] Stale result for '{tab_id}' discarded")
            return

        self.completed += 1
        self.tabs.set_classification(tab_id, classification)
        logger.info(
            f"[ClassificationScheduler] '{current.name}' classified as "
            f"{classification.kind.value} ({classification.confidence:.2f})"
        )

    async def drain(self) -> None:
        """Wait until no timer is pending and every classification has finished."""
        loop = asyncio.get_running_loop()
        while self.pending:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
                continue
            next_fire = min(handle.when() for handle in self._timers.values())
            await asyncio.sleep(max(0.0, next_fire - loop.time()) + 0.001)

    def close(self) -> None:
        self.cancel_all()
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
