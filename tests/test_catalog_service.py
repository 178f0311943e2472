"""Service catalog: local table, Square catalog transform, cache and fallback."""
import uuid

import httpx
import pytest

from app.core.errors import NotFound
from app.services.catalog.catalog_service import CatalogService, transform_catalog_item
from tests.factories import catalog_item, make_service, square_client


def catalog_handler(items, calls=None):
    def handler(request):
        if calls is not None:
            calls.append(request)
        return httpx.Response(200, json={"objects": items})
    return handler


def failing_handler(request):
    return httpx.Response(503, json={"errors": [{"code": "SERVICE_UNAVAILABLE"}]})


class TestTransformCatalogItem:

    def test_duration_from_milliseconds(self):
        service = transform_catalog_item(catalog_item(duration_ms=5400000), 0)
        assert service.duration_minutes == 90
        assert service.square_variation_id == "VAR1"

    def test_missing_duration_defaults_to_an_hour(self):
        service = transform_catalog_item(catalog_item(duration_ms=None), 0)
        assert service.duration_minutes == 60

    def test_price_display(self):
        service = transform_catalog_item(catalog_item(amount=8000), 0)
        assert service.price_cents == 8000
        assert service.price_display == "$80"

    def test_variable_price(self):
        service = transform_catalog_item(catalog_item(amount=None), 0)
        assert service.price_cents is None
        assert service.price_display == "Price Varies"

    def test_non_items_are_skipped(self):
        assert transform_catalog_item({"type": "CATEGORY", "id": "C1"}, 0) is None

    def test_items_without_variations_are_skipped(self):
        item = catalog_item()
        item["item_data"]["variations"] = []
        assert transform_catalog_item(item, 0) is None


class TestLocalCatalog:

    async def test_lists_active_services_in_display_order(self, db):
        make_service(db, name="Second", sort_order=2)
        make_service(db, name="First", sort_order=1)
        make_service(db, name="Retired", is_active=False)

        services = await CatalogService.list_services(db)
        assert [s.name for s in services] == ["First", "Second"]

    async def test_get_service(self, db):
        service = make_service(db, price_cents=None, price_display="Ask us")
        info = await CatalogService.get_service(db, str(service.id))
        assert info.name == service.name
        assert info.price_display == "Ask us"

    @pytest.mark.parametrize("service_id", ["not-a-uuid", str(uuid.uuid4())])
    async def test_unknown_service(self, db, service_id):
        with pytest.raises(NotFound):
            await CatalogService.get_service(db, service_id)


class TestSquareCatalog:

    @pytest.fixture(autouse=True)
    def square_backend(self, app_settings, monkeypatch):
        monkeypatch.setattr(app_settings, "SCHEDULING_BACKEND", "square")

    async def test_lists_square_services(self, db):
        items = [catalog_item(), catalog_item(item_id="ITEM2", variation_id="VAR2", name="Hot Stone")]
        services = await CatalogService.list_services(db, square_client(catalog_handler(items)))
        assert [s.name for s in services] == ["Swedish Massage", "Hot Stone"]
        assert [s.sort_order for s in services] == [0, 1]

    async def test_catalog_is_cached(self, db):
        calls = []
        client = square_client(catalog_handler([catalog_item()], calls))

        await CatalogService.list_services(db, client)
        await CatalogService.list_services(db, client)
        assert len(calls) == 1

    async def test_follows_pagination_cursor(self, db):
        def handler(request):
            if request.url.params.get("cursor") == "page2":
                return httpx.Response(200, json={"objects": [catalog_item(item_id="ITEM2", name="Hot Stone")]})
            return httpx.Response(200, json={"objects": [catalog_item()], "cursor": "page2"})

        services = await CatalogService.list_services(db, square_client(handler))
        assert len(services) == 2

    async def test_falls_back_to_local_services(self, db):
        make_service(db, name="Local Massage")
        services = await CatalogService.list_services(db, square_client(failing_handler))
        assert [s.name for s in services] == ["Local Massage"]

    async def test_get_service_by_square_id(self, db):
        info = await CatalogService.get_service(db, "ITEM1", square_client(catalog_handler([catalog_item()])))
        assert info.square_variation_id == "VAR1"

    async def test_get_service_falls_back_to_local(self, db):
        service = make_service(db)
        info = await CatalogService.get_service(db, str(service.id), square_client(failing_handler))
        assert info.id == str(service.id)
