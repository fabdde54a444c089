"""Clients for the external services used by node runtimes."""

from src.shared_lib.clients.text_generation import (
    GeminiTextGenerator,
    TextGenerationError,
    TextGenerator,
)
from src.shared_lib.clients.tabular_document import (
    DocumentServiceError,
    HttpTabularDocumentClient,
    TabularDocumentClient,
)

__all__ = [
    "GeminiTextGenerator",
    "TextGenerationError",
    "TextGenerator",
    "DocumentServiceError",
    "HttpTabularDocumentClient",
    "TabularDocumentClient",
]
