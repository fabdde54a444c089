"""DataSource runtime: the output is the configured content, immediately."""

from src.pipeline_graph.runtime.base import BaseNodeRuntime
from src.shared_lib.models.schema import Node, NodeKind


class DataSourceRuntime(BaseNodeRuntime):
    kind = NodeKind.DATA_SOURCE
    consumes_input = False

    async def execute(self, node: Node) -> str:
        return node.config.content
