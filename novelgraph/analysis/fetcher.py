"""Retrieve source documents over HTTP."""

import logging
from typing import Optional, Protocol

import httpx

from novelgraph.analysis.exceptions import FetchError
from novelgraph.core.config import settings

logger = logging.getLogger(__name__)


class DocumentFetcher(Protocol):
    """Turns a document identifier into raw text."""

    async def fetch(self, document_id: str) -> str:
        ...


class GutenbergFetcher:
    """Fetch plain-text books from Project Gutenberg."""

    def __init__(
        self,
        url_template: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the fetcher.

        Args:
            url_template: URL with a ``{book_id}`` placeholder.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used for testing.
        """
        self.url_template = url_template or settings.gutenberg_url_template
        self.timeout = timeout or settings.fetch_timeout
        self.transport = transport

    def url_for(self, document_id: str) -> str:
        return self.url_template.format(book_id=document_id)

    async def fetch(self, document_id: str) -> str:
        """Download the text of a book.

        Raises:
            FetchError: If the identifier is empty, the request fails, or the
                server returns a non-2xx status.
        """
        document_id = str(document_id).strip()
        if not document_id:
            raise FetchError("Document identifier is empty")

        url = self.url_for(document_id)
        logger.info(f"Fetching document {document_id} from {url}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch book: {e}") from e

        if not response.is_success:
            raise FetchError(
                f"Failed to fetch book: {response.status_code} {response.reason_phrase}"
            )

        return response.text
