"""Async API wrapper for the Outline REST API.

This module wraps an httpx AsyncClient around Outline's RPC-style endpoints
(every call is a JSON POST to /api/<resource>.<method>) and translates HTTP
failures into our typed exception hierarchy. Every request goes through the
rate-limit retry logic.
"""

import logging
import mimetypes
import os
import re
from typing import Any, Dict, List, Optional

import httpx

from .auth import Authenticator
from .errors import (
    APIAccessError,
    APIUnreachableError,
    DocumentNotFoundError,
    InvalidCredentialsError,
    RemoteOperationError,
    TransferError,
)
from .models import Collection, Document, StructureNode
from .retry_logic import retry_on_rate_limit

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0


class APIWrapper:
    """Wrapper around httpx.AsyncClient with error translation.

    This class provides a thin wrapper over the Outline API that:
    1. Handles authentication using the Authenticator
    2. Translates HTTP errors to typed exceptions
    3. Integrates retry logic for 429 rate limits
    4. Exposes the document-store operations the sync engine consumes

    Example:
        >>> async with APIWrapper(Authenticator()) as api:
        ...     document = await api.fetch_document("b8c7...")
    """

    def __init__(self, authenticator: Authenticator):
        """Initialize the API wrapper with authentication credentials.

        Args:
            authenticator: Authenticator instance for loading credentials
        """
        self._authenticator = authenticator
        self._client: Optional[httpx.AsyncClient] = None
        self._api_url: Optional[str] = None

    async def __aenter__(self) -> "APIWrapper":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def api_url(self) -> str:
        if self._api_url is None:
            self._api_url = self._authenticator.get_credentials().api_url
        return self._api_url

    @property
    def base_url(self) -> str:
        """Web root of the workspace (API URL without the /api suffix)."""
        return re.sub(r'/api/?$', '', self.api_url)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client.

        Raises:
            InvalidCredentialsError: If the API token is missing
        """
        if self._client is None:
            creds = self._authenticator.get_credentials()
            self._api_url = creds.api_url
            self._client = httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT,
                headers={
                    "Authorization": f"Bearer {creds.api_token}",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _translate_error(self, exception: Exception, operation: str) -> Exception:
        """Translate httpx exceptions to typed remote errors.

        Args:
            exception: The original exception from the HTTP client
            operation: RPC method name that failed

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        if isinstance(exception, RemoteOperationError):
            return exception

        if isinstance(exception, (httpx.TimeoutException, httpx.ConnectError)):
            logger.error(f"{operation}: API unreachable ({type(exception).__name__})")
            return APIUnreachableError(self.api_url, operation=operation)

        if isinstance(exception, httpx.HTTPStatusError):
            status = exception.response.status_code
            if status in (401, 403):
                return InvalidCredentialsError(self.api_url, operation=operation)
            message = _error_message(exception.response)
            logger.error(f"{operation} failed with HTTP {status}: {message}")
            return APIAccessError(
                f"HTTP {status}: {message}",
                operation=operation,
                status_code=status,
            )

        if isinstance(exception, httpx.HTTPError):
            return APIUnreachableError(self.api_url, operation=operation)

        return APIAccessError(str(exception), operation=operation)

    async def _post_once(self, operation: str, body: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._get_client().post(f"{self.api_url}/{operation}", json=body)
        response.raise_for_status()
        return response.json()

    async def _get_once(self, url: str, params: Dict[str, Any]) -> httpx.Response:
        response = await self._get_client().get(url, params=params, follow_redirects=True)
        response.raise_for_status()
        return response

    async def _post(self, operation: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST to an RPC endpoint and return the decoded JSON payload."""
        logger.debug(f"POST {operation}")
        try:
            return await retry_on_rate_limit(self._post_once, operation, body)
        except Exception as e:
            raise self._translate_error(e, operation) from e

    async def list_collections(self) -> List[Collection]:
        """List all non-archived collections visible to the token."""
        payload = await self._post(
            "collections.list",
            {"limit": 100, "offset": 0, "sort": "title", "direction": "ASC"},
        )
        return [
            Collection.from_api(item)
            for item in payload.get("data", [])
            if not item.get("archivedAt")
        ]

    async def fetch_collection_structure(self, collection_id: str) -> List[StructureNode]:
        """Fetch the navigation tree (id, title, children) of a collection."""
        payload = await self._post("collections.documents", {"id": collection_id})
        return [StructureNode.from_api(item) for item in payload.get("data", [])]

    async def fetch_document(self, document_id: str) -> Document:
        """Fetch a single document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        try:
            payload = await self._post("documents.info", {"id": document_id})
        except APIAccessError as e:
            if e.status_code == 404:
                raise DocumentNotFoundError(document_id) from e
            raise
        return Document.from_api(payload["data"])

    async def create_document(
        self,
        title: str,
        text: str,
        collection_id: str,
        parent_id: Optional[str] = None,
    ) -> Document:
        """Create and publish a new document."""
        body: Dict[str, Any] = {
            "title": title,
            "text": text,
            "collectionId": collection_id,
            "publish": True,
        }
        if parent_id:
            body["parentDocumentId"] = parent_id
        payload = await self._post("documents.create", body)
        return Document.from_api(payload["data"])

    async def update_document(
        self,
        document_id: str,
        title: Optional[str] = None,
        text: Optional[str] = None,
    ) -> Document:
        """Update the title and/or text of a document."""
        body: Dict[str, Any] = {"id": document_id}
        if title is not None:
            body["title"] = title
        if text is not None:
            body["text"] = text
        payload = await self._post("documents.update", body)
        return Document.from_api(payload["data"])

    async def move_document(
        self,
        document_id: str,
        collection_id: str,
        parent_id: Optional[str] = None,
        index: Optional[int] = None,
    ) -> None:
        """Move a document to another parent and/or collection."""
        body: Dict[str, Any] = {"id": document_id, "collectionId": collection_id}
        if parent_id:
            body["parentDocumentId"] = parent_id
        if index is not None:
            body["index"] = index
        await self._post("documents.move", body)

    async def upload_attachment(self, document_id: str, file_path: str) -> str:
        """Upload a local file as an attachment of a document.

        Returns:
            The attachment URL to embed in the document body

        Raises:
            TransferError: If any step of the upload fails
        """
        name = os.path.basename(file_path)
        content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        try:
            size = os.path.getsize(file_path)
            payload = await self._post(
                "attachments.create",
                {
                    "name": name,
                    "documentId": document_id,
                    "contentType": content_type,
                    "size": size,
                },
            )
            data = payload["data"]
            upload_url = data["uploadUrl"]
            if upload_url.startswith("/"):
                upload_url = f"{self.base_url}{upload_url}"

            with open(file_path, "rb") as f:
                response = await self._get_client().post(
                    upload_url,
                    data=data.get("form") or {},
                    files={"file": (name, f, content_type)},
                )
            response.raise_for_status()
        except (OSError, KeyError, httpx.HTTPError, RemoteOperationError) as e:
            raise TransferError(file_path, str(e), operation="attachments.create") from e

        logger.debug(f"Uploaded attachment {file_path} for document {document_id}")
        return data["attachment"]["url"]

    async def download_attachment_to_directory(self, attachment_id: str, directory: str) -> str:
        """Download an attachment into a directory.

        The file is named after the attachment ID with an extension derived
        from the response content type.

        Returns:
            Absolute path of the written file

        Raises:
            TransferError: If the download or write fails
        """
        url = f"{self.api_url}/attachments.redirect"
        try:
            response = await retry_on_rate_limit(self._get_once, url, {"id": attachment_id})

            content_type = response.headers.get("content-type", "").split(";")[0].strip()
            extension = mimetypes.guess_extension(content_type) or ".bin"
            os.makedirs(directory, exist_ok=True)
            file_path = os.path.join(directory, f"{attachment_id}{extension}")
            with open(file_path, "wb") as f:
                f.write(response.content)
        except (OSError, httpx.HTTPError, RemoteOperationError) as e:
            raise TransferError(attachment_id, str(e), operation="attachments.redirect") from e

        logger.debug(f"Downloaded attachment {attachment_id} to {file_path}")
        return os.path.abspath(file_path)


def _error_message(response: httpx.Response) -> str:
    """Extract the server's error description from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or "unknown error"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or response.reason_phrase)
    return response.reason_phrase or "unknown error"
