"""
Base Node Runtime - Abstract contract for per-kind node execution
==================================================================

A runtime turns a node's ``(config, input)`` pair into an output string.
The RuntimeSupervisor drives it through the per-node state machine:

    idle -> pending_debounce -> executing -> resolved | failed
                                          \\-> no_data

Each runtime declares:
- debounce_seconds: quiet period before executing (0 = immediate)
- consumes_input: whether the output depends on the upstream input
- fingerprint(): identity of the ``(config, input)`` pair, or None when the
  node has nothing to compute yet
- execute(): the actual computation
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, Optional

from src.pipeline_graph.core.settings import RESULT_CACHE_SIZE, RUNTIME_DEBOUNCE_SECONDS
from src.shared_lib.models.schema import Node, NodeKind

logger = logging.getLogger(__name__)


class NoUsableDataError(Exception):
    """Raised by a runtime when its input cannot be used (malformed or upstream error)."""

    pass


class RuntimeStatus(str, Enum):
    IDLE = "idle"
    PENDING_DEBOUNCE = "pending_debounce"
    EXECUTING = "executing"
    RESOLVED = "resolved"
    FAILED = "failed"
    NO_DATA = "no_data"


@dataclass
class RuntimeState:
    """Mutable per-node bookkeeping owned by the supervisor."""

    status: RuntimeStatus = RuntimeStatus.IDLE
    token: int = 0
    fingerprint: Optional[Hashable] = None
    timer: Optional[asyncio.TimerHandle] = field(default=None, repr=False)
    error: Optional[str] = None
    executions: int = 0
    results: "OrderedDict[Hashable, str]" = field(default_factory=OrderedDict, repr=False)

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def remember(self, fingerprint: Hashable, output: str) -> None:
        self.results[fingerprint] = output
        self.results.move_to_end(fingerprint)
        while len(self.results) > RESULT_CACHE_SIZE:
            self.results.popitem(last=False)


class BaseNodeRuntime(ABC):
    """
    Abstract base class for node runtimes.

    Subclasses set ``kind`` and implement execute(); they may override
    is_ready() to declare when a node has something to compute.
    """

    kind: NodeKind
    consumes_input: bool = True

    def __init__(self, debounce_seconds: Optional[float] = None):
        if debounce_seconds is None:
            debounce_seconds = RUNTIME_DEBOUNCE_SECONDS[self.kind]
        self.debounce_seconds = debounce_seconds

    def is_ready(self, node: Node) -> bool:
        return True

    def fingerprint(self, node: Node, has_upstream: bool = False) -> Optional[Hashable]:
        """
        Identity of what this node would compute.

        Returns:
            Hashable key, or None while the node is not ready (including an
            input-consuming node whose upstream has not produced data yet)
        """
        if self.consumes_input and has_upstream and not node.input:
            return None
        if not self.is_ready(node):
            return None
        config_key = node.config.model_dump_json()
        if not self.consumes_input:
            return (config_key,)
        return (config_key, node.input or "")

    @abstractmethod
    async def execute(self, node: Node) -> str:
        """
        Compute the node's output.

        Raises:
            NoUsableDataError: When the input cannot be used
            Exception: Any other failure becomes an ``Error:`` output
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(debounce={self.debounce_seconds}s)"
