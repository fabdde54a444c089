"""
Pipeline graph settings.

Placement constants, palette labels and runtime defaults.
"""

from src.shared_lib.core.settings import PROMPT_DEBOUNCE_SECONDS
from src.shared_lib.models.schema import NodeKind

# Vertical gap between a palette-added node and the lowest existing node
NODE_VERTICAL_SPACING: float = 150.0

# First palette node is placed at this fraction of the canvas height
FIRST_NODE_HEIGHT_RATIO: float = 0.15

# Default visible canvas size (screen units)
DEFAULT_VIEWPORT_WIDTH: float = 1200.0
DEFAULT_VIEWPORT_HEIGHT: float = 800.0

PALETTE_LABELS = {
    NodeKind.DATA_SOURCE: "New Data Source",
    NodeKind.PROMPT: "New Prompt",
    NodeKind.SPREADSHEET: "New Spreadsheet",
    NodeKind.DISPLAY: "New Display",
}

# Runtime debounce windows (seconds)
RUNTIME_DEBOUNCE_SECONDS = {
    NodeKind.DATA_SOURCE: 0.0,
    NodeKind.PROMPT: PROMPT_DEBOUNCE_SECONDS,
    NodeKind.SPREADSHEET: 0.0,
    NodeKind.DISPLAY: 0.0,
}

# Marker replaced by the resolved input in prompt templates
INPUT_MARKER = "INPUT"

# Successful results remembered per node (keyed by fingerprint)
RESULT_CACHE_SIZE: int = 16

# Rows shown in spreadsheet previews
PREVIEW_ROWS: int = 10
