"""Unit tests for HttpDocumentStore."""

import httpx
import pytest

from export_isolation.document_store import HttpDocumentStore
from export_isolation.errors import DataSourceNotFound, DocumentStoreError, InfrastructureFault


def make_store(handler):
    client = httpx.AsyncClient(base_url="http://search:9200", transport=httpx.MockTransport(handler))
    return HttpDocumentStore("http://search:9200", client=client)


class TestDeleteIfExists:
    @pytest.mark.asyncio
    async def test_existing_source(self):
        requests = []

        def handler(request):
            requests.append((request.method, request.url.path))
            return httpx.Response(200, json={"acknowledged": True})

        assert await make_store(handler).delete_if_exists("storefront_review") is True
        assert requests == [("DELETE", "/storefront_review")]

    @pytest.mark.asyncio
    async def test_missing_source_is_not_an_error(self):
        def handler(request):
            return httpx.Response(404, json={"error": {"type": "index_not_found_exception"}})

        assert await make_store(handler).delete_if_exists("storefront_review") is False

    @pytest.mark.asyncio
    async def test_server_error_is_a_fault(self):
        def handler(request):
            return httpx.Response(500, text="cluster unavailable")

        with pytest.raises(DocumentStoreError) as exc_info:
            await make_store(handler).delete_if_exists("storefront_review")

        assert exc_info.value.details["status"] == 500

    @pytest.mark.asyncio
    async def test_connection_error_is_a_fault(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(InfrastructureFault):
            await make_store(handler).delete_if_exists("storefront_review")


class TestEnsureExists:
    @pytest.mark.asyncio
    async def test_creates_missing_source(self):
        requests = []

        def handler(request):
            requests.append(request.method)
            if request.method == "HEAD":
                return httpx.Response(404)
            return httpx.Response(200, json={"acknowledged": True})

        assert await make_store(handler).ensure_exists("storefront_review") is True
        assert requests == ["HEAD", "PUT"]

    @pytest.mark.asyncio
    async def test_existing_source_is_left_alone(self):
        requests = []

        def handler(request):
            requests.append(request.method)
            return httpx.Response(200)

        assert await make_store(handler).ensure_exists("storefront_review") is False
        assert requests == ["HEAD"]

    @pytest.mark.asyncio
    async def test_concurrent_creation_is_tolerated(self):
        def handler(request):
            if request.method == "HEAD":
                return httpx.Response(404)
            return httpx.Response(400, json={"error": {"type": "resource_already_exists_exception"}})

        assert await make_store(handler).ensure_exists("storefront_review") is False


class TestRefresh:
    @pytest.mark.asyncio
    async def test_posts_refresh(self):
        requests = []

        def handler(request):
            requests.append((request.method, request.url.path))
            return httpx.Response(200)

        await make_store(handler).refresh("storefront_review")

        assert requests == [("POST", "/storefront_review/_refresh")]

    @pytest.mark.asyncio
    async def test_missing_source(self):
        def handler(request):
            return httpx.Response(404)

        with pytest.raises(DataSourceNotFound):
            await make_store(handler).refresh("storefront_review")
