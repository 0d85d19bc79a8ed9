"""
HTTP client for the document-store engine (Elasticsearch-style REST API).

Absence is reported through return values: deleting a data source that does
not exist returns False instead of raising. Every other failure is an
infrastructure fault.
"""
from typing import Optional

import httpx

from .errors import DataSourceNotFound, DocumentStoreError, ErrorCode
from .logging_config import configure_logging

logger = configure_logging("export-isolation:document-store")


class HttpDocumentStore:
    """Creates, deletes and refreshes named data sources over HTTP"""

    def __init__(self, base_url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def connect(self):
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)

    async def disconnect(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str) -> httpx.Response:
        if self._client is None:
            await self.connect()
        try:
            return await self._client.request(method, path)
        except httpx.RequestError as e:
            logger.error("Document store request failed", method=method, path=path, error=str(e))
            raise DocumentStoreError(
                ErrorCode.DOCUMENT_STORE_UNAVAILABLE,
                f"{method} {path} failed: {e}",
                {"method": method, "path": path},
            ) from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, name: str) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DocumentStoreError(
                ErrorCode.DOCUMENT_STORE_UNAVAILABLE,
                f"Unexpected status {response.status_code} for data source {name}",
                {"name": name, "status": response.status_code, "body": response.text[:500]},
            ) from e

    async def exists(self, name: str) -> bool:
        response = await self._request("HEAD", f"/{name}")
        if response.status_code == 404:
            return False
        self._raise_for_status(response, name)
        return True

    async def delete_if_exists(self, name: str) -> bool:
        response = await self._request("DELETE", f"/{name}")
        if response.status_code == 404:
            logger.debug("Data source already absent", name=name)
            return False
        self._raise_for_status(response, name)
        logger.info("Deleted data source", name=name)
        return True

    async def ensure_exists(self, name: str) -> bool:
        if await self.exists(name):
            return False
        response = await self._request("PUT", f"/{name}")
        # Another writer may have created it between HEAD and PUT
        if response.status_code == 400 and "already_exists" in response.text:
            return False
        self._raise_for_status(response, name)
        logger.info("Created data source", name=name)
        return True

    async def refresh(self, name: str) -> None:
        response = await self._request("POST", f"/{name}/_refresh")
        if response.status_code == 404:
            raise DataSourceNotFound(name)
        self._raise_for_status(response, name)
        logger.debug("Refreshed data source", name=name)
