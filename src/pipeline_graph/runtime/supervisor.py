"""
RuntimeSupervisor - drives node runtimes from graph events.

The supervisor observes the GraphStore. Whenever a node has no output and its
runtime reports a fingerprint, the node is (re)scheduled: debounced with a
timer handle, then executed as a task carrying a fresh token. A completion is
applied only if that token is still current and the node's live fingerprint
still matches the one it was launched with; otherwise it is discarded.
In-flight calls are never cancelled.
"""

import asyncio
import logging
from typing import Dict, Hashable, List, Optional, Set

from src.pipeline_graph.graph.snapshot import GraphEvent, GraphEventType
from src.pipeline_graph.graph.store import GraphStore
from src.pipeline_graph.runtime.base import (
    BaseNodeRuntime,
    NoUsableDataError,
    RuntimeState,
    RuntimeStatus,
)
from src.shared_lib.models.schema import Node, NodeKind
from src.shared_lib.utils.json_utils import error_output

logger = logging.getLogger(__name__)

_WATCHED_EVENTS = {
    GraphEventType.NODE_ADDED,
    GraphEventType.NODE_REMOVED,
    GraphEventType.NODE_RETYPED,
    GraphEventType.CONFIG_CHANGED,
    GraphEventType.INPUT_CHANGED,
    GraphEventType.OUTPUT_CHANGED,
    GraphEventType.EDGE_ADDED,
    GraphEventType.EDGE_REMOVED,
}


class RuntimeSupervisor:
    """
    Per-node state machines around the registered runtimes.

    Args:
        store: Graph to observe and write outputs into
        runtimes: Runtime per node kind (see build_runtimes)
    """

    def __init__(self, store: GraphStore, runtimes: Dict[NodeKind, BaseNodeRuntime]):
        self.store = store
        self.runtimes = runtimes
        self._states: Dict[str, RuntimeState] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._dirty: List[str] = []
        self._flush_scheduled = False
        self._subscription = store.subscribe(self._on_event, event_types=_WATCHED_EVENTS)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def state(self, node_id: str) -> RuntimeState:
        return self._states.setdefault(node_id, RuntimeState())

    def status(self, node_id: str) -> RuntimeStatus:
        return self.state(node_id).status

    @property
    def states(self) -> Dict[str, RuntimeState]:
        return dict(self._states)

    @property
    def pending(self) -> bool:
        return (
            self._flush_scheduled
            or bool(self._tasks)
            or any(state.timer is not None for state in self._states.values())
        )

    def _on_event(self, event: GraphEvent) -> None:
        if event.type == GraphEventType.NODE_REMOVED:
            state = self._states.pop(event.node_id, None)
            if state is not None:
                state.cancel_timer()
            return

        if event.edge is not None:
            self._mark_dirty(event.edge.target)
        elif event.node_id:
            self._mark_dirty(event.node_id)

    def _mark_dirty(self, node_id: str) -> None:
        # Evaluation runs after the current store transition has finished
        if node_id not in self._dirty:
            self._dirty.append(node_id)
        if not self._flush_scheduled:
            self._flush_scheduled = True
            asyncio.get_running_loop().call_soon(self._flush)

    def _flush(self) -> None:
        self._flush_scheduled = False
        dirty, self._dirty = self._dirty, []
        for node_id in dirty:
            self.evaluate(node_id)

    def evaluate_all(self) -> None:
        for node in self.store.nodes:
            self.evaluate(node.id)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _fingerprint(self, node: Node) -> Optional[Hashable]:
        runtime = self.runtimes[node.kind]
        has_upstream = bool(self.store.snapshot().incoming(node.id))
        return runtime.fingerprint(node, has_upstream)

    def evaluate(self, node_id: str) -> None:
        """Bring the node's state machine in line with the live node."""
        node = self.store.get_node(node_id)
        if node is None:
            return
        state = self.state(node_id)

        if node.output is not None:
            state.cancel_timer()
            if state.status not in (RuntimeStatus.RESOLVED, RuntimeStatus.FAILED):
                state.status = RuntimeStatus.RESOLVED
            return

        fingerprint = self._fingerprint(node)
        if fingerprint is None:
            state.cancel_timer()
            state.fingerprint = None
            state.status = RuntimeStatus.IDLE
            return

        if state.fingerprint == fingerprint and state.status in (
            RuntimeStatus.PENDING_DEBOUNCE,
            RuntimeStatus.EXECUTING,
            RuntimeStatus.NO_DATA,
        ):
            return

        state.cancel_timer()
        state.fingerprint = fingerprint
        state.error = None

        cached = state.results.get(fingerprint)
        if cached is not None:
            logger.debug(f"[RuntimeSupervisor] Reusing result for '{node.label}'")
            state.status = RuntimeStatus.RESOLVED
            self.store.update_node_output(node_id, cached)
            return

        runtime = self.runtimes[node.kind]
        if runtime.debounce_seconds > 0:
            state.status = RuntimeStatus.PENDING_DEBOUNCE
            state.timer = asyncio.get_running_loop().call_later(
                runtime.debounce_seconds, self._launch, node_id, fingerprint
            )
        else:
            self._launch(node_id, fingerprint)

    def _launch(self, node_id: str, fingerprint: Hashable) -> None:
        state = self._states.get(node_id)
        node = self.store.get_node(node_id)
        if state is None or node is None:
            return
        state.timer = None
        if node.output is not None:
            return
        if self._fingerprint(node) != fingerprint:
            self.evaluate(node_id)
            return

        state.token += 1
        state.executions += 1
        state.status = RuntimeStatus.EXECUTING
        logger.debug(f"[RuntimeSupervisor] Executing '{node.label}' (token {state.token})")

        task = asyncio.get_running_loop().create_task(
            self._run(node, state.token, fingerprint)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, node: Node, token: int, fingerprint: Hashable) -> None:
        runtime = self.runtimes[node.kind]
        failed = False
        try:
            output = await runtime.execute(node)
        except NoUsableDataError as e:
            if self._is_current(node.id, token, fingerprint):
                state = self._states[node.id]
                state.status = RuntimeStatus.NO_DATA
                state.error = str(e)
                logger.info(f"[RuntimeSupervisor] '{node.label}' has no usable data: {e}")
            return
        except Exception as e:
            logger.error(f"[RuntimeSupervisor] '{node.label}' failed: {e}", exc_info=True)
            output = error_output(str(e))
            failed = True

        if not self._is_current(node.id, token, fingerprint):
            logger.debug(f"[RuntimeSupervisor] Discarding stale result for '{node.label}'")
            return

        state = self._states[node.id]
        if failed:
            state.status = RuntimeStatus.FAILED
            state.error = output
        else:
            state.status = RuntimeStatus.RESOLVED
            state.remember(fingerprint, output)
        self.store.update_node_output(node.id, output)

    def _is_current(self, node_id: str, token: int, fingerprint: Hashable) -> bool:
        state = self._states.get(node_id)
        node = self.store.get_node(node_id)
        if state is None or node is None or state.token != token:
            return False
        if node.output is not None:
            return False
        return self._fingerprint(node) == fingerprint

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def settle(self) -> None:
        """Wait until no evaluation, timer or task is pending."""
        loop = asyncio.get_running_loop()
        while self.pending:
            if self._flush_scheduled:
                await asyncio.sleep(0)
                continue
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
                continue
            timers = [s.timer for s in self._states.values() if s.timer is not None]
            next_fire = min(timer.when() for timer in timers)
            await asyncio.sleep(max(0.0, next_fire - loop.time()) + 0.001)

    def close(self) -> None:
        for state in self._states.values():
            state.cancel_timer()
        self._subscription.cancel()
