"""
HTTP trigger status mapping and response shapes.
"""

import json

import azure.functions as func
import pytest

from stac_api import triggers
from stac_api.service import STACAPIService
from stac_api.triggers import (
    STACAggregateTrigger,
    STACCollectionDetailTrigger,
    STACCollectionsTrigger,
    STACConformanceTrigger,
    STACHealthTrigger,
    STACItemDetailTrigger,
    STACItemsTrigger,
    STACItemThumbnailTrigger,
    STACLandingPageTrigger,
    STACOpenAPITrigger,
    STACSearchTrigger,
    get_stac_triggers,
)
from tests.factories.stac_factories import make_item


BASE = "https://stac.example.com/api/stac"


def _request(method, path, params=None, route_params=None, body=None):
    if body is None:
        raw = b""
    elif isinstance(body, bytes):
        raw = body
    else:
        raw = json.dumps(body).encode()
    return func.HttpRequest(
        method=method,
        url=f"{BASE}{path}",
        headers={"content-type": "application/json"},
        params=params or {},
        route_params=route_params or {},
        body=raw,
    )


def _json(response):
    return json.loads(response.get_body())


@pytest.fixture
def read_only_service(stac_config, backend, url_signer):
    config = stac_config.model_copy(update={"enable_transactions": False})
    return STACAPIService(config, backend, url_signer=url_signer)


@pytest.fixture
def no_backend(monkeypatch):
    """Unbound service: STAC_BACKEND unset and nothing cached."""
    from config import get_app_config
    monkeypatch.delenv("STAC_BACKEND", raising=False)
    monkeypatch.setattr(triggers, "_service_cache", None)
    get_app_config.cache_clear()
    yield
    get_app_config.cache_clear()


class TestRegistry:
    def test_routes(self, service):
        routes = [t["route"] for t in get_stac_triggers(service)]
        assert routes == [
            "stac", "stac/conformance", "stac/api", "stac/collections",
            "stac/collections/{collection_id}",
            "stac/collections/{collection_id}/items",
            "stac/collections/{collection_id}/items/{item_id}",
            "stac/collections/{collection_id}/items/{item_id}/thumbnail",
            "stac/search", "stac/aggregate", "stac/health",
        ]

    def test_write_methods_need_transactions(self, service, monkeypatch):
        monkeypatch.delenv("ENABLE_TRANSACTIONS_EXTENSION", raising=False)
        methods = {t["route"]: t["methods"] for t in get_stac_triggers(service)}
        assert methods["stac/collections"] == ["GET"]
        assert methods["stac/collections/{collection_id}/items/{item_id}"] == ["GET"]

    def test_write_methods_registered_when_enabled(self, service, monkeypatch):
        monkeypatch.setenv("ENABLE_TRANSACTIONS_EXTENSION", "true")
        methods = {t["route"]: t["methods"] for t in get_stac_triggers(service)}
        assert methods["stac/collections/{collection_id}/items/{item_id}"] == ["GET", "PUT", "PATCH", "DELETE"]


class TestReadEndpoints:
    def test_landing_page(self, service):
        response = STACLandingPageTrigger(service).handle(_request("GET", ""))

        assert response.status_code == 200
        assert response.mimetype == "application/geo+json"
        body = _json(response)
        assert body["type"] == "Catalog"
        assert body["links"][0]["href"] == BASE

    def test_conformance(self, service):
        response = STACConformanceTrigger(service).handle(_request("GET", "/conformance"))
        assert response.mimetype == "application/json"
        assert "conformsTo" in _json(response)

    def test_openapi(self, service):
        response = STACOpenAPITrigger(service).handle(_request("GET", "/api"))
        assert response.mimetype.startswith("application/vnd.oai.openapi+json")
        assert _json(response)["openapi"].startswith("3.0")

    def test_collection_not_found(self, service):
        response = STACCollectionDetailTrigger(service).handle(
            _request("GET", "/collections/nope", route_params={"collection_id": "nope"})
        )
        assert response.status_code == 404
        assert _json(response) == {"code": "NotFound", "description": "Collection not found"}

    def test_item(self, service):
        route = {"collection_id": "landsat-c2-l2", "item_id": "LC08_001"}
        response = STACItemDetailTrigger(service).handle(
            _request("GET", "/collections/landsat-c2-l2/items/LC08_001", route_params=route)
        )
        assert response.status_code == 200
        assert _json(response)["id"] == "LC08_001"

    def test_collection_items(self, service):
        response = STACItemsTrigger(service).handle(
            _request("GET", "/collections/sentinel-2-l2a/items",
                     params={"limit": "10"}, route_params={"collection_id": "sentinel-2-l2a"})
        )
        body = _json(response)
        assert [f["id"] for f in body["features"]] == ["S2A_003"]

    def test_health(self, service):
        response = STACHealthTrigger(service).handle(_request("GET", "/health"))
        assert _json(response) == {"status": "ok"}

    def test_health_failure(self, service, backend):
        backend.health_status = 500
        response = STACHealthTrigger(service).handle(_request("GET", "/health"))
        assert response.status_code == 500
        assert _json(response)["code"] == "InternalServerError"


class TestSearchEndpoints:
    def test_get_search(self, service):
        response = STACSearchTrigger(service).handle(
            _request("GET", "/search", params={"collections": "landsat-c2-l2", "limit": "1"})
        )
        body = _json(response)
        assert response.status_code == 200
        assert body["numberReturned"] == 1
        assert body["links"][0]["href"].startswith(f"{BASE}/search?")

    def test_post_search(self, service):
        response = STACSearchTrigger(service).handle(
            _request("POST", "/search", body={"ids": ["LC08_002"]})
        )
        body = _json(response)
        assert [f["id"] for f in body["features"]] == ["LC08_002"]
        assert body["links"][0]["method"] == "POST"

    def test_post_search_without_body(self, service):
        response = STACSearchTrigger(service).handle(_request("POST", "/search"))
        assert response.status_code == 200

    def test_bbox_and_intersects_is_bad_request(self, service, backend):
        response = STACSearchTrigger(service).handle(_request("GET", "/search", params={
            "bbox": "0,0,1,1",
            "intersects": '{"type": "Point", "coordinates": [0, 0]}',
        }))
        assert response.status_code == 400
        assert _json(response) == {
            "code": "BadRequest",
            "description": "Expected bbox OR intersects, not both",
        }
        assert backend.calls == []

    def test_invalid_json_body(self, service):
        response = STACSearchTrigger(service).handle(_request("POST", "/search", body=b"{nope"))
        assert response.status_code == 400
        assert _json(response)["description"] == "Request body must be valid JSON"

    def test_non_object_body(self, service):
        response = STACSearchTrigger(service).handle(_request("POST", "/search", body=[1, 2]))
        assert response.status_code == 400

    def test_overflowing_limit_is_bad_request(self, service, backend):
        response = STACSearchTrigger(service).handle(_request("POST", "/search", body=b'{"limit": 1e400}'))
        assert response.status_code == 400
        assert backend.calls == []

    def test_nan_bbox_is_bad_request(self, service, backend):
        response = STACSearchTrigger(service).handle(
            _request("GET", "/search", params={"bbox": "nan,0,nan,1"})
        )
        assert _json(response) == {"code": "BadRequest", "description": "Invalid bbox"}
        assert backend.calls == []

    def test_aggregate(self, service):
        response = STACAggregateTrigger(service).handle(_request("GET", "/aggregate"))
        body = _json(response)
        assert body["aggregations"][0]["name"] == "total_count"
        assert body["links"][0]["href"] == f"{BASE}/aggregate"


class TestThumbnail:
    def test_redirect(self, service, backend):
        route = {"collection_id": "landsat-c2-l2", "item_id": "LC08_001"}
        response = STACItemThumbnailTrigger(service).handle(
            _request("GET", "/collections/landsat-c2-l2/items/LC08_001/thumbnail", route_params=route)
        )
        href = backend.items[0]["assets"]["thumbnail"]["href"]
        assert response.status_code == 302
        assert response.headers["Location"] == href
        assert _json(response) == {"location": href}

    def test_missing_thumbnail(self, service, backend):
        backend.items.append(make_item("BARE", assets={}))
        route = {"collection_id": "landsat-c2-l2", "item_id": "BARE"}
        response = STACItemThumbnailTrigger(service).handle(
            _request("GET", "/collections/landsat-c2-l2/items/BARE/thumbnail", route_params=route)
        )
        assert response.status_code == 404


class TestTransactions:
    def test_create_collection(self, service):
        response = STACCollectionsTrigger(service).handle(
            _request("POST", "/collections", body={"id": "new", "links": []})
        )
        assert response.status_code == 201
        assert _json(response)["id"] == "new"

    def test_create_item(self, service):
        response = STACItemsTrigger(service).handle(_request(
            "POST", "/collections/landsat-c2-l2/items",
            route_params={"collection_id": "landsat-c2-l2"},
            body=make_item("NEW_1")
        ))
        assert response.status_code == 201
        assert response.mimetype == "application/geo+json"

    def test_create_item_requires_body(self, service):
        response = STACItemsTrigger(service).handle(_request(
            "POST", "/collections/landsat-c2-l2/items", route_params={"collection_id": "landsat-c2-l2"}
        ))
        assert response.status_code == 400
        assert _json(response)["description"] == "Request body is required"

    def test_delete(self, service, backend):
        route = {"collection_id": "landsat-c2-l2", "item_id": "LC08_001"}
        response = STACItemDetailTrigger(service).handle(
            _request("DELETE", "/collections/landsat-c2-l2/items/LC08_001", route_params=route)
        )
        assert response.status_code == 204
        assert backend.calls[-1] == ("delete_item", "landsat-c2-l2", "LC08_001")

    def test_patch(self, service):
        route = {"collection_id": "landsat-c2-l2", "item_id": "LC08_001"}
        response = STACItemDetailTrigger(service).handle(_request(
            "PATCH", "/collections/landsat-c2-l2/items/LC08_001",
            route_params=route, body={"properties": {"platform": "landsat-8"}}
        ))
        assert _json(response)["properties"]["platform"] == "landsat-8"

    def test_put_id_mismatch(self, service):
        route = {"collection_id": "landsat-c2-l2", "item_id": "LC08_001"}
        response = STACItemDetailTrigger(service).handle(_request(
            "PUT", "/collections/landsat-c2-l2/items/LC08_001",
            route_params=route, body=make_item("OTHER")
        ))
        assert response.status_code == 400

    def test_disabled_is_method_not_allowed(self, read_only_service, backend):
        route = {"collection_id": "landsat-c2-l2", "item_id": "LC08_001"}
        response = STACItemDetailTrigger(read_only_service).handle(
            _request("DELETE", "/collections/landsat-c2-l2/items/LC08_001", route_params=route)
        )
        assert response.status_code == 405
        assert _json(response)["code"] == "MethodNotAllowed"
        assert backend.calls == []

    def test_disabled_still_serves_reads(self, read_only_service):
        response = STACCollectionsTrigger(read_only_service).handle(_request("GET", "/collections"))
        assert response.status_code == 200


class TestFailures:
    def test_no_backend_is_service_unavailable(self, no_backend):
        response = STACSearchTrigger().handle(_request("GET", "/search"))
        assert response.status_code == 503
        assert _json(response)["code"] == "ServiceUnavailable"

    def test_unexpected_backend_error(self, service, backend, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(backend, "search", explode)
        response = STACSearchTrigger(service).handle(_request("GET", "/search"))

        assert response.status_code == 500
        assert _json(response) == {"code": "InternalServerError", "description": "connection reset"}

    def test_configured_base_url_wins(self, service, monkeypatch):
        config = service.config.model_copy(update={"stac_base_url": "https://public.example.org/"})
        monkeypatch.setattr(service, "config", config)
        trigger = STACLandingPageTrigger(service)

        body = _json(trigger.handle(_request("GET", "")))

        assert body["links"][0]["href"] == "https://public.example.org/api/stac"


class TestBuildService:
    @pytest.fixture
    def bound_env(self, monkeypatch):
        from config import get_app_config
        from infrastructure import blob

        class Credential:
            def __init__(self, **kwargs):
                self.kwargs = kwargs

        monkeypatch.setattr(triggers, "_service_cache", None)
        monkeypatch.setattr(blob, "DefaultAzureCredential", Credential)
        monkeypatch.setattr(blob, "ManagedIdentityCredential", Credential)
        monkeypatch.setenv("STAC_BACKEND", "tests.factories.stac_factories:create_fake_backend")
        monkeypatch.setenv("STORAGE_ACCOUNT_NAME", "teststorage")
        get_app_config.cache_clear()
        yield monkeypatch
        get_app_config.cache_clear()

    def test_backend_bound_from_settings(self, bound_env, stac_config):
        service = triggers.build_service(stac_config)
        assert service.backend.get_collection("landsat-c2-l2") is not None
        assert service.url_signer.account_name == "teststorage"

    def test_managed_identity_disabled_reaches_signer(self, bound_env, stac_config):
        bound_env.setenv("USE_MANAGED_IDENTITY", "false")
        service = triggers.build_service(stac_config)
        assert service.url_signer._credential.kwargs == {"exclude_managed_identity_credential": True}

    def test_user_assigned_identity_reaches_signer(self, bound_env, stac_config):
        bound_env.setenv("MANAGED_IDENTITY_CLIENT_ID", "client-1234")
        service = triggers.build_service(stac_config)
        assert service.url_signer._credential.kwargs == {"client_id": "client-1234"}
