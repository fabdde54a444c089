"""
Spreadsheet runtime.

Turns the upstream output into tabular rows with pandas:
- a JSON array becomes one row per item (non-object items go in a ``value`` column)
- a JSON object becomes ``Key`` / ``Value`` rows, non-string values JSON-encoded

With a tabular-document client the rows are exported and the document URL
becomes the node's output; without one the input passes through unchanged and
the rows are only available as a preview.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from src.pipeline_graph.core.settings import PREVIEW_ROWS
from src.pipeline_graph.runtime.base import BaseNodeRuntime, NoUsableDataError
from src.shared_lib.clients.tabular_document import TabularDocumentClient
from src.shared_lib.models.schema import Node, NodeKind
from src.shared_lib.utils.json_utils import is_error_output, try_parse_json

logger = logging.getLogger(__name__)


def rows_to_frame(data: Any) -> pd.DataFrame:
    """
    Build a DataFrame from decoded JSON.

    Raises:
        NoUsableDataError: If *data* is neither a non-empty array nor a non-empty object
    """
    if isinstance(data, list):
        if not data:
            raise NoUsableDataError("Input array is empty")
        records = [item if isinstance(item, dict) else {"value": item} for item in data]
        return pd.DataFrame.from_records(records)

    if isinstance(data, dict):
        if not data:
            raise NoUsableDataError("Input object is empty")
        rows = [
            {"Key": str(key), "Value": value if isinstance(value, str) else json.dumps(value)}
            for key, value in data.items()
        ]
        return pd.DataFrame(rows, columns=["Key", "Value"])

    raise NoUsableDataError("Input must be a JSON array or object")


def parse_rows(input_text: Optional[str]) -> pd.DataFrame:
    """Decode *input_text* and build its rows."""
    if is_error_output(input_text):
        raise NoUsableDataError(f"Upstream error: {input_text}")
    data = try_parse_json(input_text)
    if data is None:
        raise NoUsableDataError("Input is not valid JSON")
    return rows_to_frame(data)


def frame_to_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """JSON-safe records (NaN becomes null)."""
    return json.loads(frame.to_json(orient="records"))


def build_preview(input_text: Optional[str], max_rows: int = PREVIEW_ROWS) -> Optional[str]:
    """Plain-text table preview of *input_text*, or None when it has no rows."""
    try:
        frame = parse_rows(input_text)
    except NoUsableDataError:
        return None
    return frame.to_string(index=False, max_rows=max_rows)


class SpreadsheetRuntime(BaseNodeRuntime):
    kind = NodeKind.SPREADSHEET

    def __init__(
        self,
        client: Optional[TabularDocumentClient] = None,
        debounce_seconds: Optional[float] = None,
    ):
        super().__init__(debounce_seconds)
        self.client = client

    def is_ready(self, node: Node) -> bool:
        return bool(node.input and node.input.strip())

    async def execute(self, node: Node) -> str:
        frame = parse_rows(node.input)
        logger.info(
            f"[SpreadsheetRuntime] '{node.label}': {len(frame)} rows x {len(frame.columns)} columns"
        )
        if self.client is None:
            return node.input
        return await self.client.create_document(frame_to_records(frame))
