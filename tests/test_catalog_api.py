"""Catalog API test cases (repositories resolved per request)."""
import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from apps.catalog.context import CatalogContext
from apps.container import services
from generic_repository.services import ServiceRegistry, add_generic_repository
from main import app

PREFIX = "/api/v1/catalog"


@pytest.fixture
async def client(context_factory) -> AsyncGenerator[AsyncClient, None]:
    """Client whose request scopes open contexts on the test engine."""
    registry = ServiceRegistry().add_data_context(CatalogContext, context_factory)
    add_generic_repository(
        registry,
        lambda options: options.register_services_from_module("apps.catalog.repository")
                               .use_data_context(CatalogContext),
    )
    app.dependency_overrides[services.scope_dependency] = registry.scope_dependency

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


class TestWidgetCreate:
    """POST /widgets."""

    @pytest.mark.asyncio
    async def test_create_with_parts(self, client: AsyncClient):
        payload = {"name": "sprocket", "price": 4.5, "parts": {"S-1": 3, "S-2": 1}}

        response = await client.post(f"{PREFIX}/widgets", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["code"] == 200
        widget = data["data"]
        assert widget["name"] == "sprocket"
        assert widget["id"] is not None
        assert sorted(p["sku"] for p in widget["parts"]) == ["S-1", "S-2"]

    @pytest.mark.asyncio
    async def test_create_duplicate_name(self, client: AsyncClient, sample_widgets):
        response = await client.post(f"{PREFIX}/widgets", json={"name": "alpha"})

        assert response.status_code == 409
        assert response.json()["code"] == 409

    @pytest.mark.asyncio
    async def test_create_invalid_price(self, client: AsyncClient):
        response = await client.post(f"{PREFIX}/widgets", json={"name": "bad", "price": -1})

        assert response.status_code == 422
        assert response.json()["code"] == 422


class TestWidgetRead:
    """GET /widgets, /widgets/{id}, /widgets/stats."""

    @pytest.mark.asyncio
    async def test_list_active_page(self, client: AsyncClient, sample_widgets):
        response = await client.get(f"{PREFIX}/widgets", params={"offset": 0, "limit": 1})

        assert response.status_code == 200
        page = response.json()["data"]
        assert page["total"] == 2
        assert [w["name"] for w in page["items"]] == ["alpha"]
        assert len(page["items"][0]["parts"]) == 2

    @pytest.mark.asyncio
    async def test_get_widget(self, client: AsyncClient, sample_widgets):
        response = await client.get(f"{PREFIX}/widgets/{sample_widgets[0].id}")

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "alpha"

    @pytest.mark.asyncio
    async def test_get_missing_widget(self, client: AsyncClient):
        response = await client.get(f"{PREFIX}/widgets/999")

        assert response.status_code == 404
        assert response.json()["code"] == 404

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, sample_widgets):
        response = await client.get(f"{PREFIX}/widgets/stats")

        assert response.json()["data"] == {"active": 2, "inactive": 1}


class TestWidgetWrite:
    """PATCH, reprice and DELETE."""

    @pytest.mark.asyncio
    async def test_update_widget(self, client: AsyncClient, sample_widgets):
        widget_id = sample_widgets[1].id

        response = await client.patch(f"{PREFIX}/widgets/{widget_id}", json={"price": 20.0})

        assert response.status_code == 200
        assert response.json()["data"]["price"] == 20.0
        fetched = await client.get(f"{PREFIX}/widgets/{widget_id}")
        assert fetched.json()["data"]["price"] == 20.0

    @pytest.mark.asyncio
    async def test_reprice(self, client: AsyncClient, sample_widgets):
        response = await client.post(f"{PREFIX}/widgets/reprice", json={"factor": 2, "min_price": 10})

        assert response.status_code == 200
        assert response.json()["data"] == {"affected": 1}
        fetched = await client.get(f"{PREFIX}/widgets/{sample_widgets[1].id}")
        assert fetched.json()["data"]["price"] == 30.0

    @pytest.mark.asyncio
    async def test_reprice_without_match(self, client: AsyncClient, sample_widgets):
        response = await client.post(f"{PREFIX}/widgets/reprice", json={"factor": 2, "min_price": 500})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_widget_with_parts(self, client: AsyncClient, sample_widgets):
        widget_id = sample_widgets[0].id

        response = await client.delete(f"{PREFIX}/widgets/{widget_id}")

        assert response.status_code == 200
        missing = await client.get(f"{PREFIX}/widgets/{widget_id}")
        assert missing.status_code == 404
