"""Display runtime: shows the upstream output as-is."""

from src.pipeline_graph.runtime.base import BaseNodeRuntime, NoUsableDataError
from src.shared_lib.models.schema import Node, NodeKind
from src.shared_lib.utils.json_utils import is_error_output


class DisplayRuntime(BaseNodeRuntime):
    kind = NodeKind.DISPLAY

    def is_ready(self, node: Node) -> bool:
        return node.input is not None

    async def execute(self, node: Node) -> str:
        # Upstream failures are reported, never displayed as data
        if is_error_output(node.input):
            raise NoUsableDataError(f"Upstream error: {node.input}")
        return node.input
