"""Node runtimes and the supervisor that drives them."""

from src.pipeline_graph.runtime.base import (
    BaseNodeRuntime,
    NoUsableDataError,
    RuntimeState,
    RuntimeStatus,
)
from src.pipeline_graph.runtime.registry import RUNTIME_REGISTRY, build_runtimes
from src.pipeline_graph.runtime.supervisor import RuntimeSupervisor

__all__ = [
    "BaseNodeRuntime",
    "NoUsableDataError",
    "RuntimeState",
    "RuntimeStatus",
    "RUNTIME_REGISTRY",
    "build_runtimes",
    "RuntimeSupervisor",
]
