"""
Content classifier settings.

Prompt template, keyword lists for the local heuristics and the sample tabs
seeded into a fresh editor.
"""

from src.shared_lib.core.settings import CLASSIFICATION_PAUSE_SECONDS

# Quiet period before a tab is reclassified after its last edit
CLASSIFICATION_DEBOUNCE_SECONDS: float = CLASSIFICATION_PAUSE_SECONDS

# Classifier prompt; ``{hint}`` is the tab's current node type and
# ``{content}`` the raw tab text
CLASSIFICATION_PROMPT = """Analyze this {hint} content and classify it. Return ONLY a JSON object with these exact fields:
{{
  "kind": "dataset" | "prompt" | "spreadsheet" | "display",
  "format": "json" | "csv" | "yaml" | "structured" | null,
  "confidence": number between 0 and 1
}}

"format" is only meaningful for datasets; use null otherwise.
Do not add explanations or markdown.

Content to analyze:
{content}"""

# Aliases accepted in classifier replies
KIND_ALIASES = {
    "dataset": "dataset",
    "data": "dataset",
    "data-source": "dataset",
    "prompt": "prompt",
    "prompt-template": "prompt",
    "spreadsheet": "spreadsheet",
    "sheets": "spreadsheet",
    "sheet": "spreadsheet",
    "display": "display",
}

# Heuristic keyword rules (checked after format detection)
SPREADSHEET_KEYWORDS = [
    "spreadsheet",
    "google sheets",
    "sheet",
    "worksheet",
    "columns:",
    "export to sheets",
]

DISPLAY_KEYWORDS = [
    "display",
    "show result",
    "render",
    "output:",
]

# Confidence reported by the local heuristics
HEURISTIC_FORMAT_CONFIDENCE = 0.9
HEURISTIC_KEYWORD_CONFIDENCE = 0.6
HEURISTIC_DEFAULT_CONFIDENCE = 0.5

# Tabs created from a node's output are named "<label> Output"
OUTPUT_TAB_SUFFIX = " Output"

SAMPLE_TABS = [
    {
        "name": "Dataset 1",
        "content": """{
  "tactics": [
    {
      "id": "TA0001",
      "name": "Initial Access",
      "description": "Techniques used to gain initial access to a network"
    },
    {
      "id": "TA0002",
      "name": "Execution",
      "description": "Techniques that result in execution of adversary-controlled code"
    }
  ]
}""",
        "classification": {"kind": "dataset", "format": "json", "confidence": 0.8},
    },
    {
        "name": "Prompt 1",
        "content": """Create a list of top 10 MITRE tactics, format as JSON with the following structure:
{
  "tactics": [
    {
      "id": "TA0001",
      "name": "Tactic Name",
      "description": "Tactic Description"
    }
  ]
}""",
        "classification": {"kind": "prompt", "confidence": 0.8},
    },
    {
        "name": "Dataset 2",
        "content": """id,name,description
TA0001,Initial Access,Techniques used to gain initial access to a network
TA0002,Execution,Techniques that result in execution of adversary-controlled code""",
        "classification": {"kind": "dataset", "format": "csv", "confidence": 0.8},
    },
    {
        "name": "Dataset 3",
        "content": """tactics:
  - id: TA0001
    name: Initial Access
    description: Techniques used to gain initial access to a network
  - id: TA0002
    name: Execution
    description: Techniques that result in execution of adversary-controlled code""",
        "classification": {"kind": "dataset", "format": "yaml", "confidence": 0.8},
    },
]
