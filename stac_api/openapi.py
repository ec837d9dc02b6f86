# ============================================================================
# CLAUDE CONTEXT - STAC API OPENAPI SPECIFICATION
# ============================================================================
# STATUS: Core Infrastructure - OpenAPI 3.0 specification for STAC API
# PURPOSE: Service description document (target of the catalog service-desc link)
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: get_openapi_spec
# DEPENDENCIES: stac_api.config (pure Python dict generation)
# SPEC_REF: https://github.com/radiantearth/stac-api-spec/tree/main/core
# ============================================================================

"""
OpenAPI 3.0 Specification for STAC API

Describes the search, aggregation, collection, item and (when enabled)
transaction endpoints of this module.

Usage:
    from stac_api.openapi import get_openapi_spec

    spec = get_openapi_spec("https://example.com/api/stac", config)
"""

from typing import Dict, Any, List

from .config import STACAPIConfig


GEOJSON = "application/geo+json"
JSON = "application/json"


def _ref(kind: str, name: str) -> Dict[str, str]:
    return {"$ref": f"#/components/{kind}/{name}"}


def _response(description: str, schema: str, media_type: str = JSON) -> Dict[str, Any]:
    return {
        "description": description,
        "content": {media_type: {"schema": _ref("schemas", schema)}}
    }


def _errors(*codes: str) -> Dict[str, Any]:
    return {code: _ref("responses", f"Error{code}") for code in codes}


def _operation(
    tags: List[str],
    summary: str,
    operation_id: str,
    responses: Dict[str, Any],
    parameters: List[Dict[str, Any]] = None,
    body_schema: str = None
) -> Dict[str, Any]:
    operation = {
        "tags": tags,
        "summary": summary,
        "operationId": operation_id,
        "responses": responses
    }
    if parameters:
        operation["parameters"] = parameters
    if body_schema:
        operation["requestBody"] = {
            "required": True,
            "content": {JSON: {"schema": _ref("schemas", body_schema)}}
        }
    return operation


SEARCH_PARAMETERS = [
    _ref("parameters", name)
    for name in (
        "bbox", "intersects", "datetime", "limit", "page", "ids", "collections",
        "sortby", "fields", "query", "next"
    )
]

AGGREGATE_PARAMETERS = [
    _ref("parameters", name)
    for name in ("bbox", "intersects", "datetime", "ids", "collections", "query")
]


def _parameters() -> Dict[str, Any]:
    def query_param(name: str, description: str, schema: Dict[str, Any], **extra) -> Dict[str, Any]:
        param = {
            "name": name,
            "in": "query",
            "required": False,
            "description": description,
            "schema": schema
        }
        param.update(extra)
        return param

    string_array = {"type": "array", "items": {"type": "string"}}

    return {
        "collectionId": {
            "name": "collectionId", "in": "path", "required": True,
            "description": "Collection identifier", "schema": {"type": "string"}
        },
        "itemId": {
            "name": "itemId", "in": "path", "required": True,
            "description": "Item identifier", "schema": {"type": "string"}
        },
        "bbox": query_param(
            "bbox",
            "west,south,east,north or west,south,minz,east,north,maxz. "
            "Mutually exclusive with intersects.",
            {"type": "array", "minItems": 4, "maxItems": 6, "items": {"type": "number"}},
            style="form", explode=False
        ),
        "intersects": query_param(
            "intersects",
            "GeoJSON geometry (JSON encoded). Mutually exclusive with bbox.",
            {"type": "string"}
        ),
        "datetime": query_param(
            "datetime",
            "RFC 3339 instant or interval; '..' or an empty string leaves one end open.",
            {"type": "string"},
            example="2020-01-01T00:00:00Z/.."
        ),
        "limit": query_param(
            "limit",
            "Maximum number of results. Values above 10000 are reduced to 10000.",
            {"type": "integer", "minimum": 1, "maximum": 10000}
        ),
        "page": query_param("page", "Page number", {"type": "integer", "minimum": 1}),
        "ids": query_param(
            "ids", "Item ids (comma separated or JSON array)", string_array,
            style="form", explode=False
        ),
        "collections": query_param(
            "collections", "Collection ids (comma separated or JSON array)", string_array,
            style="form", explode=False
        ),
        "sortby": query_param(
            "sortby", "Sort keys, e.g. -properties.datetime,+id", {"type": "string"}
        ),
        "fields": query_param(
            "fields", "Included and -excluded fields, e.g. id,-assets", {"type": "string"}
        ),
        "query": query_param(
            "query", "Property filter object (JSON encoded)", {"type": "string"}
        ),
        "next": query_param(
            "next", "Opaque cursor from a previous page's next link", {"type": "string"}
        )
    }


def _schemas() -> Dict[str, Any]:
    link = {
        "type": "object",
        "required": ["rel", "href"],
        "properties": {
            "rel": {"type": "string"},
            "type": {"type": "string"},
            "href": {"type": "string", "format": "uri"},
            "title": {"type": "string"},
            "method": {"type": "string"},
            "merge": {"type": "boolean"},
            "body": {"type": "object"}
        }
    }
    links = {"type": "array", "items": _ref("schemas", "Link")}
    string_array = {"type": "array", "items": {"type": "string"}}

    return {
        "Link": link,
        "Catalog": {
            "type": "object",
            "required": ["stac_version", "type", "id", "description", "links"],
            "properties": {
                "stac_version": {"type": "string"},
                "type": {"type": "string", "enum": ["Catalog"]},
                "id": {"type": "string"},
                "title": {"type": "string"},
                "description": {"type": "string"},
                "links": links,
                "conformsTo": string_array
            }
        },
        "Conformance": {
            "type": "object",
            "required": ["conformsTo"],
            "properties": {"conformsTo": string_array}
        },
        "Collection": {
            "type": "object",
            "required": ["id", "links"],
            "properties": {"id": {"type": "string"}, "links": links}
        },
        "Collections": {
            "type": "object",
            "required": ["collections", "links"],
            "properties": {
                "collections": {"type": "array", "items": _ref("schemas", "Collection")},
                "links": links,
                "context": {"type": "object"}
            }
        },
        "Item": {
            "type": "object",
            "required": ["type", "id", "collection", "links"],
            "properties": {
                "type": {"type": "string", "enum": ["Feature"]},
                "id": {"type": "string"},
                "collection": {"type": "string"},
                "geometry": {"type": "object", "nullable": True},
                "properties": {"type": "object"},
                "assets": {"type": "object"},
                "links": links
            }
        },
        "ItemCollection": {
            "type": "object",
            "required": ["type", "features", "links"],
            "properties": {
                "type": {"type": "string", "enum": ["FeatureCollection"]},
                "stac_version": {"type": "string"},
                "stac_extensions": string_array,
                "context": {
                    "type": "object",
                    "properties": {
                        "matched": {"type": "integer"},
                        "returned": {"type": "integer"},
                        "limit": {"type": "integer"}
                    }
                },
                "numberMatched": {"type": "integer"},
                "numberReturned": {"type": "integer"},
                "features": {"type": "array", "items": _ref("schemas", "Item")},
                "links": links
            }
        },
        "SearchBody": {
            "type": "object",
            "properties": {
                "bbox": {"type": "array", "items": {"type": "number"}},
                "intersects": {"type": "object"},
                "datetime": {"type": "string"},
                "limit": {"type": "integer", "minimum": 1, "maximum": 10000},
                "page": {"type": "integer", "minimum": 1},
                "ids": string_array,
                "collections": string_array,
                "sortby": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["field"],
                        "properties": {
                            "field": {"type": "string"},
                            "direction": {"type": "string", "enum": ["asc", "desc"]}
                        }
                    }
                },
                "fields": {
                    "type": "object",
                    "properties": {"include": string_array, "exclude": string_array}
                },
                "query": {"type": "object"},
                "next": {"type": "string"}
            }
        },
        "Aggregations": {
            "type": "object",
            "required": ["aggregations", "links"],
            "properties": {
                "aggregations": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["name", "data_type"],
                        "properties": {
                            "name": {"type": "string"},
                            "data_type": {"type": "string"},
                            "value": {},
                            "overflow": {"type": "integer"},
                            "buckets": {"type": "array", "items": {"type": "object"}}
                        }
                    }
                },
                "links": links
            }
        },
        "Thumbnail": {
            "type": "object",
            "required": ["location"],
            "properties": {"location": {"type": "string", "format": "uri"}}
        },
        "Health": {
            "type": "object",
            "properties": {"status": {"type": "string"}}
        },
        "Error": {
            "type": "object",
            "required": ["code", "description"],
            "properties": {
                "code": {"type": "string"},
                "description": {"type": "string"}
            }
        }
    }


def _error_responses() -> Dict[str, Any]:
    return {
        f"Error{code}": {
            "description": description,
            "content": {JSON: {"schema": _ref("schemas", "Error")}}
        }
        for code, description in (
            ("400", "Invalid request parameters"),
            ("404", "Resource not found"),
            ("500", "Backend failure"),
            ("503", "Search backend not configured")
        )
    }


def get_openapi_spec(endpoint: str, config: STACAPIConfig) -> Dict[str, Any]:
    """
    Generate OpenAPI 3.0 specification for STAC API.

    Args:
        endpoint: Landing page URL (e.g., https://example.com/api/stac)
        config: Catalog identity; transaction operations are listed only
            when enabled

    Returns:
        OpenAPI 3.0 specification dict
    """
    collection_param = _ref("parameters", "collectionId")
    item_params = [collection_param, _ref("parameters", "itemId")]

    paths: Dict[str, Dict[str, Any]] = {
        "/": {
            "get": _operation(
                ["Core"], "Landing Page", "getLandingPage",
                {"200": _response("STAC Catalog", "Catalog", GEOJSON), **_errors("500")}
            )
        },
        "/conformance": {
            "get": _operation(
                ["Core"], "Conformance Classes", "getConformance",
                {"200": _response("Conformance declaration", "Conformance")}
            )
        },
        "/api": {
            "get": _operation(
                ["Core"], "OpenAPI Specification", "getOpenAPI",
                {"200": {
                    "description": "This document",
                    "content": {"application/vnd.oai.openapi+json;version=3.0": {"schema": {"type": "object"}}}
                }}
            )
        },
        "/collections": {
            "get": _operation(
                ["Collections"], "List Collections", "getCollections",
                {"200": _response("Collections", "Collections"), **_errors("500")}
            )
        },
        "/collections/{collectionId}": {
            "get": _operation(
                ["Collections"], "Get Collection", "describeCollection",
                {"200": _response("Collection", "Collection", GEOJSON), **_errors("404", "500")},
                parameters=[collection_param]
            )
        },
        "/collections/{collectionId}/items": {
            "get": _operation(
                ["Items"], "Collection Items", "getFeatures",
                {"200": _response("Items page", "ItemCollection", GEOJSON), **_errors("400", "500")},
                parameters=[collection_param] + SEARCH_PARAMETERS
            )
        },
        "/collections/{collectionId}/items/{itemId}": {
            "get": _operation(
                ["Items"], "Get Item", "getFeature",
                {"200": _response("Item", "Item", GEOJSON), **_errors("404", "500")},
                parameters=item_params
            )
        },
        "/collections/{collectionId}/items/{itemId}/thumbnail": {
            "get": _operation(
                ["Items"], "Item Thumbnail", "getItemThumbnail",
                {"302": {"description": "Redirect to the thumbnail"},
                 "200": _response("Thumbnail location", "Thumbnail"),
                 **_errors("404")},
                parameters=item_params
            )
        },
        "/search": {
            "get": _operation(
                ["Item Search"], "Search Items", "getItemSearch",
                {"200": _response("Items page", "ItemCollection", GEOJSON), **_errors("400", "500")},
                parameters=SEARCH_PARAMETERS
            ),
            "post": _operation(
                ["Item Search"], "Search Items", "postItemSearch",
                {"200": _response("Items page", "ItemCollection", GEOJSON), **_errors("400", "500")},
                body_schema="SearchBody"
            )
        },
        "/aggregate": {
            "get": _operation(
                ["Aggregation"], "Aggregate Items", "getAggregate",
                {"200": _response("Aggregations", "Aggregations"), **_errors("400", "500")},
                parameters=AGGREGATE_PARAMETERS
            ),
            "post": _operation(
                ["Aggregation"], "Aggregate Items", "postAggregate",
                {"200": _response("Aggregations", "Aggregations"), **_errors("400", "500")},
                body_schema="SearchBody"
            )
        },
        "/health": {
            "get": _operation(
                ["Core"], "Health Check", "getHealth",
                {"200": _response("Backend reachable", "Health"), **_errors("500", "503")}
            )
        }
    }

    if config.enable_transactions:
        paths["/collections"]["post"] = _operation(
            ["Transaction"], "Create Collection", "postCollection",
            {"201": _response("Created", "Collection"), **_errors("400", "500")},
            body_schema="Collection"
        )
        paths["/collections/{collectionId}/items"]["post"] = _operation(
            ["Transaction"], "Create Item", "postFeature",
            {"201": _response("Created", "Item", GEOJSON), **_errors("400", "500")},
            parameters=[collection_param], body_schema="Item"
        )
        item_path = paths["/collections/{collectionId}/items/{itemId}"]
        item_path["put"] = _operation(
            ["Transaction"], "Replace Item", "putFeature",
            {"200": _response("Updated", "Item", GEOJSON), **_errors("400", "500")},
            parameters=item_params, body_schema="Item"
        )
        item_path["patch"] = _operation(
            ["Transaction"], "Update Item", "patchFeature",
            {"200": _response("Updated", "Item", GEOJSON), **_errors("400", "500")},
            parameters=item_params, body_schema="Item"
        )
        item_path["delete"] = _operation(
            ["Transaction"], "Delete Item", "deleteFeature",
            {"204": {"description": "Deleted"}, **_errors("500")},
            parameters=item_params
        )

    return {
        "openapi": "3.0.3",
        "info": {
            "title": config.catalog_title,
            "description": config.catalog_description,
            "version": config.stac_version
        },
        "servers": [{"url": endpoint, "description": "STAC API Server"}],
        "tags": [
            {"name": "Core", "description": "Landing page, conformance and service description"},
            {"name": "Collections", "description": "STAC Collection access"},
            {"name": "Items", "description": "STAC Item access"},
            {"name": "Item Search", "description": "Cross-collection item search"},
            {"name": "Aggregation", "description": "Frequency distributions over search results"},
            {"name": "Transaction", "description": "Create, update and delete"}
        ],
        "paths": paths,
        "components": {
            "parameters": _parameters(),
            "schemas": _schemas(),
            "responses": _error_responses()
        }
    }
