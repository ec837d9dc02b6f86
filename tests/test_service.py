"""
STACAPIService against the in-memory backend.
"""

from urllib.parse import parse_qs, urlsplit

import pytest

from stac_api.exceptions import AggregationError, BackendError, NotFoundError, STACValidationError
from stac_api.parameters import RequestStyle
from stac_api.service import STACAPIService
from tests.factories.stac_factories import FakeBackend, make_backend_aggregations, make_item


class TestCatalog:
    def test_catalog_children(self, service, backend, endpoint):
        result = service.get_catalog(endpoint)

        assert result.success
        children = [l["href"] for l in result.data["links"] if l["rel"] == "child"]
        assert children == [
            f"{endpoint}/collections/landsat-c2-l2",
            f"{endpoint}/collections/sentinel-2-l2a",
        ]
        assert ("get_collections", 1, 100) in backend.calls

    def test_conformance(self, service):
        assert service.get_conformance().data["conformsTo"]

    def test_openapi(self, service, endpoint):
        spec = service.get_openapi_spec(endpoint).data
        assert spec["servers"][0]["url"] == endpoint
        assert "/search" in spec["paths"]

    def test_collections(self, service, endpoint):
        listing = service.get_collections(endpoint).data
        assert listing["context"]["matched"] == 2

    def test_collection_found(self, service, endpoint):
        result = service.get_collection("landsat-c2-l2", endpoint)
        assert result.success
        assert result.data["links"][0]["href"] == f"{endpoint}/collections/landsat-c2-l2"

    def test_collection_missing(self, service, endpoint):
        result = service.get_collection("nope", endpoint)
        assert not result.success
        assert isinstance(result.error, NotFoundError)
        assert result.error.message == "Collection not found"


class TestItems:
    def test_get_item_searches_by_id(self, service, backend, endpoint):
        result = service.get_item("landsat-c2-l2", "LC08_001", endpoint)

        assert result.success
        assert result.data["id"] == "LC08_001"
        assert backend.calls[-1][1] == {"collections": ["landsat-c2-l2"], "ids": ["LC08_001"]}

    def test_get_item_missing(self, service, endpoint):
        result = service.get_item("landsat-c2-l2", "nope", endpoint)
        assert result.error.message == "Item not found"

    def test_get_item_in_wrong_collection(self, service, endpoint):
        assert not service.get_item("sentinel-2-l2a", "LC08_001", endpoint).success


class TestSearch:
    def test_bbox_get_search(self, service, backend, endpoint):
        params = {"bbox": "-10,-10,10,10", "limit": "2"}

        result = service.search_items(params, endpoint, RequestStyle.QUERY_STRING)

        assert result.success
        _, query, page, limit = backend.calls[-1]
        assert query["intersects"]["type"] == "Polygon"
        assert "bbox" not in query
        assert limit == 2
        assert page is None

        document = result.data
        assert document["numberReturned"] == 2
        assert document["numberMatched"] == 3
        next_link = document["links"][0]
        assert next_link["rel"] == "next"
        next_query = parse_qs(urlsplit(next_link["href"]).query)
        assert next_query["bbox"] == ["-10,-10,10,10"]
        assert next_query["next"] == ["2021-02-01T00:00:00Z,LC08_002,landsat-c2-l2"]
        assert next_link["href"].startswith(f"{endpoint}/search?")

    def test_post_search_next_body(self, service, endpoint):
        result = service.search_items({"ids": ["S2A_003"]}, endpoint, RequestStyle.JSON_BODY)
        next_link = result.data["links"][0]
        assert next_link["method"] == "POST"
        assert next_link["merge"] is False
        assert next_link["body"] == {"ids": ["S2A_003"], "next": "2021-01-01T00:00:00Z,S2A_003,sentinel-2-l2a"}

    def test_collection_items_scoped(self, service, backend, endpoint):
        result = service.search_items(
            {"collections": "sentinel-2-l2a"}, endpoint, RequestStyle.QUERY_STRING,
            collection_id="landsat-c2-l2"
        )
        assert backend.calls[-1][1]["collections"] == ["landsat-c2-l2"]
        rels = [l["rel"] for l in result.data["links"]]
        assert rels == ["next", "self", "root"]
        assert result.data["links"][0]["href"].startswith(f"{endpoint}/collections/landsat-c2-l2/items?")

    def test_empty_page_has_no_next(self, service, endpoint):
        result = service.search_items({"ids": "missing"}, endpoint, RequestStyle.QUERY_STRING)
        assert result.data["features"] == []
        assert result.data["links"] == []

    def test_index_missing_gives_empty_result(self, service, backend, endpoint):
        backend.index_missing = True
        result = service.search_items({"limit": "5"}, endpoint, RequestStyle.QUERY_STRING)

        assert result.success
        assert result.data["features"] == []
        assert result.data["context"] == {"matched": 0, "returned": 0, "limit": 5}

    def test_validation_before_backend(self, service, backend, endpoint):
        with pytest.raises(STACValidationError):
            service.search_items(
                {"bbox": "0,0,1,1", "intersects": '{"type": "Point", "coordinates": [0, 0]}'},
                endpoint, RequestStyle.QUERY_STRING
            )
        assert backend.calls == []

    def test_features_decorated(self, service, endpoint):
        result = service.search_items({}, endpoint, RequestStyle.QUERY_STRING)
        assert all(f["links"][0]["rel"] == "self" for f in result.data["features"])


class TestAggregate:
    def test_aggregate(self, service, backend, endpoint):
        result = service.aggregate({"collections": ["landsat-c2-l2"]}, endpoint, RequestStyle.JSON_BODY)

        assert result.success
        assert result.data["aggregations"][0]["value"] == 42
        assert backend.calls[-1] == ("aggregate", {"collections": ["landsat-c2-l2"]})

    def test_index_missing_gives_empty_aggregations(self, service, backend, endpoint):
        backend.index_missing = True
        result = service.aggregate({}, endpoint, RequestStyle.QUERY_STRING)
        assert result.data["aggregations"][0] == {"name": "total_count", "data_type": "integer", "value": 0}

    def test_malformed_response_fails(self, stac_config, endpoint):
        aggregations = make_backend_aggregations()
        del aggregations["sun_azimuth_frequency"]
        service = STACAPIService(stac_config, FakeBackend(aggregations=aggregations))

        result = service.aggregate({}, endpoint, RequestStyle.QUERY_STRING)

        assert not result.success
        assert isinstance(result.error, AggregationError)


class TestThumbnail:
    def test_http_href_returned(self, service, backend):
        href = backend.items[0]["assets"]["thumbnail"]["href"]
        assert service.get_item_thumbnail("landsat-c2-l2", "LC08_001").data == {"location": href}

    def test_az_href_signed(self, service, backend, url_signer):
        backend.items.append(make_item(
            "LC08_AZ",
            assets={"preview": {"href": "az://thumbs/LC08_AZ.jpg", "roles": ["overview", "thumbnail"]}}
        ))
        result = service.get_item_thumbnail("landsat-c2-l2", "LC08_AZ")

        assert result.data["location"] == "https://teststorage.blob.core.windows.net/thumbs/LC08_AZ.jpg?sig=test"
        assert url_signer.signed == ["az://thumbs/LC08_AZ.jpg"]

    def test_az_href_without_signer(self, stac_config, backend):
        backend.items.append(make_item("LC08_AZ", assets={"t": {"href": "az://c/b.jpg", "roles": ["thumbnail"]}}))
        service = STACAPIService(stac_config, backend)
        assert service.get_item_thumbnail("landsat-c2-l2", "LC08_AZ").error.message == "Thumbnail not found"

    def test_no_thumbnail_asset(self, service, backend):
        backend.items.append(make_item("LC08_BARE", assets={"data": {"href": "https://x/y.tif", "roles": ["data"]}}))
        result = service.get_item_thumbnail("landsat-c2-l2", "LC08_BARE")
        assert isinstance(result.error, NotFoundError)

    def test_item_missing(self, service):
        assert service.get_item_thumbnail("landsat-c2-l2", "nope").error.message == "Item not found"


class TestTransactions:
    def test_create_collection(self, service, backend, endpoint):
        result = service.create_collection({"id": "new-collection", "links": []}, endpoint)
        assert result.success
        assert result.data["links"][0]["href"] == f"{endpoint}/collections/new-collection"
        assert backend.calls[-1][0] == "index_collection"

    def test_create_item_binds_collection(self, service, backend, endpoint):
        item = make_item("NEW_1", collection=None)
        del item["collection"]

        result = service.create_item("landsat-c2-l2", item, endpoint)

        assert result.data["collection"] == "landsat-c2-l2"
        assert backend.calls[-1][1]["collection"] == "landsat-c2-l2"

    def test_create_item_collection_mismatch(self, service, backend, endpoint):
        with pytest.raises(STACValidationError, match="does not match"):
            service.create_item("landsat-c2-l2", make_item("X", collection="other"), endpoint)
        assert backend.calls == []

    def test_create_item_non_object(self, service, endpoint):
        with pytest.raises(STACValidationError):
            service.create_item("landsat-c2-l2", [1, 2], endpoint)

    def test_backend_failure(self, service, backend, endpoint):
        backend.write_response = None
        result = service.create_item("landsat-c2-l2", make_item("X"), endpoint)
        assert isinstance(result.error, BackendError)
        assert result.error.message == "Error creating item in collection landsat-c2-l2"

    def test_update_item_id_mismatch(self, service, endpoint):
        with pytest.raises(STACValidationError):
            service.update_item("landsat-c2-l2", "LC08_001", make_item("LC08_999"), endpoint)

    def test_update_item(self, service, backend, endpoint):
        result = service.update_item("landsat-c2-l2", "LC08_001", make_item("LC08_001"), endpoint)
        assert result.success
        assert backend.calls[-1][0] == "update_item"

    def test_partial_update(self, service, endpoint):
        result = service.partial_update_item(
            "landsat-c2-l2", "LC08_001", {"properties": {"eo:cloud_cover": 1.5}}, endpoint
        )
        assert result.data["properties"]["eo:cloud_cover"] == 1.5
        assert result.data["properties"]["datetime"] == "2021-03-01T00:00:00Z"

    def test_partial_update_missing_item(self, service, endpoint):
        result = service.partial_update_item("landsat-c2-l2", "nope", {"properties": {}}, endpoint)
        assert result.error.message == "Error partially updating item nope"

    def test_delete(self, service, backend):
        assert service.delete_item("landsat-c2-l2", "LC08_001").success
        assert backend.calls[-1] == ("delete_item", "landsat-c2-l2", "LC08_001")

    def test_delete_failure(self, service, backend):
        backend.write_response = {}
        result = service.delete_item("landsat-c2-l2", "LC08_001")
        assert result.error.message == "Error deleting item landsat-c2-l2/LC08_001"


class TestHealth:
    def test_healthy(self, service):
        assert service.health_check().data == {"status": "ok"}

    def test_unhealthy(self, service, backend):
        backend.health_status = 503
        result = service.health_check()
        assert not result.success
        assert result.error.message == "Error with health check."
