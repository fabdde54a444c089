"""
Prompt Pipeline Canvas - graph engine for prompt/data pipelines.

Architecture:
    src/
    ├── shared_lib/          # Settings, schemas, logging, service clients
    ├── content_classifier/  # Tab store and debounced content classification
    ├── pipeline_graph/      # Graph store, propagation, placement, runtimes, editor
    └── pipeline_session/    # Interactive terminal session
"""

__version__ = "0.1.0"
