"""
Tabular-document client.

Spreadsheet nodes hand structured rows to a document service and receive a
shareable document URL. The HTTP implementation posts ``{"rows": [...]}``
to DOCUMENT_SERVICE_URL and reads ``documentUrl`` (``sheetUrl`` is accepted
for services that still use the older field name).
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import httpx

from src.shared_lib.core.settings import DOCUMENT_SERVICE_URL

logger = logging.getLogger(__name__)


class DocumentServiceError(Exception):
    """Raised when the tabular-document service fails."""

    pass


@runtime_checkable
class TabularDocumentClient(Protocol):
    """Anything able to turn rows into a shareable document URL."""

    async def create_document(self, rows: List[Dict[str, Any]]) -> str:
        ...


class HttpTabularDocumentClient:
    """TabularDocumentClient talking to an HTTP endpoint."""

    def __init__(self, endpoint: Optional[str] = None, timeout: Optional[float] = None):
        """
        Args:
            endpoint: Service URL (defaults to DOCUMENT_SERVICE_URL)
            timeout: Request timeout in seconds (None = wait indefinitely)

        Raises:
            ValueError: If no endpoint is configured
        """
        self.endpoint = endpoint or DOCUMENT_SERVICE_URL
        if not self.endpoint:
            raise ValueError(
                "Tabular document service URL not configured. Set DOCUMENT_SERVICE_URL."
            )
        self.timeout = timeout

    async def create_document(self, rows: List[Dict[str, Any]]) -> str:
        """
        Create a document from *rows* and return its URL.

        Raises:
            DocumentServiceError: On transport errors, non-2xx replies or
                replies without a document URL
        """
        logger.info(f"[DocumentService] Creating document with {len(rows)} rows")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.endpoint, json={"rows": rows})
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPStatusError as e:
            raise DocumentServiceError(
                f"Document service returned {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise DocumentServiceError(f"Document service request failed: {e}") from e

        url = None
        if isinstance(result, dict):
            url = result.get("documentUrl") or result.get("sheetUrl")
        if not url:
            raise DocumentServiceError("Document service reply has no documentUrl")

        logger.info(f"[DocumentService] Document created: {url}")
        return str(url)
