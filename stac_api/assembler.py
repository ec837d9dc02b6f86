# ============================================================================
# CLAUDE CONTEXT - STAC RESPONSE ASSEMBLER
# ============================================================================
# STATUS: Core - response documents and hypermedia links
# PURPOSE: Shape backend records into STAC / OGC API Features documents
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: ResponseAssembler, CONFORMANCE_PREFIX, MEDIA_GEOJSON, MEDIA_JSON
# DEPENDENCIES: stac_api.config, stac_api.models
# PATTERNS: Pure transforms - input records are never mutated
# ============================================================================

"""
STAC Response Assembler

Builds every response document together with its mandatory link set.

Link media types follow a fixed per-relation table rather than a general rule:

    item        self=geo+json  parent=json  collection=json  root=geo+json
                thumbnail=(none)
    collection  self, parent, root, items = geo+json
    catalog     self, root, search, child = geo+json
                conformance, data, aggregate = json
                service-desc = application/vnd.oai.openapi
                service-doc, server = text/html
    items page  self=json  root=geo+json
    collections self=json  root=geo+json
    aggregate   self=json  root=geo+json

Decoration returns new records: `self` first, the record's own links next,
then the fixed relation sequence.
"""

from typing import Any, Dict, Iterable, List, Optional

from .config import STACAPIConfig
from .models import ResponseContext, STACLink


MEDIA_GEOJSON = "application/geo+json"
MEDIA_JSON = "application/json"
MEDIA_OPENAPI = "application/vnd.oai.openapi"
MEDIA_HTML = "text/html"

CONFORMANCE_PREFIX = "https://api.stacspec.org/v1.0.0-rc.2"

CONFORMANCE_CLASSES = [
    f"{CONFORMANCE_PREFIX}/core",
    f"{CONFORMANCE_PREFIX}/collections",
    f"{CONFORMANCE_PREFIX}/ogcapi-features",
    f"{CONFORMANCE_PREFIX}/ogcapi-features#fields",
    f"{CONFORMANCE_PREFIX}/ogcapi-features#sort",
    f"{CONFORMANCE_PREFIX}/ogcapi-features#query",
    f"{CONFORMANCE_PREFIX}/item-search",
    f"{CONFORMANCE_PREFIX}/item-search#fields",
    f"{CONFORMANCE_PREFIX}/item-search#sort",
    f"{CONFORMANCE_PREFIX}/item-search#query",
    "https://api.stacspec.org/v0.2.0/aggregation",
    "http://www.opengis.net/spec/ogcapi-features-1/1.0/conf/core",
    "http://www.opengis.net/spec/ogcapi-features-1/1.0/conf/oas30",
    "http://www.opengis.net/spec/ogcapi-features-1/1.0/conf/geojson",
]

TRANSACTION_CONFORMANCE = f"{CONFORMANCE_PREFIX}/ogcapi-features/extensions/transaction"


def _link(rel: str, href: str, media_type: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    return STACLink(rel=rel, href=href, type=media_type, **extra).to_dict()


class ResponseAssembler:
    """
    Response document builder.

    All hrefs are rooted at `endpoint`, the public URL of the STAC landing
    page (e.g. https://host/api/stac).

    Usage:
        assembler = ResponseAssembler(config)
        item = assembler.decorate_item(raw_item, endpoint)
    """

    def __init__(self, config: STACAPIConfig):
        self.config = config

    # ========================================================================
    # ENTITY DECORATION
    # ========================================================================

    def decorate_item(self, item: Dict[str, Any], endpoint: str) -> Dict[str, Any]:
        """
        Item with self/parent/collection/root/thumbnail links and type Feature.

        Args:
            item: Backend item record (not modified)
            endpoint: Landing page URL

        Returns:
            New item record
        """
        item_id = item.get("id")
        collection_id = item.get("collection")
        collection_href = f"{endpoint}/collections/{collection_id}"
        item_href = f"{collection_href}/items/{item_id}"

        links = [_link("self", item_href, MEDIA_GEOJSON)]
        links.extend(item.get("links") or [])
        links.extend([
            _link("parent", collection_href, MEDIA_JSON),
            _link("collection", collection_href, MEDIA_JSON),
            _link("root", endpoint, MEDIA_GEOJSON),
            _link("thumbnail", f"{item_href}/thumbnail"),
        ])

        decorated = dict(item)
        decorated["links"] = links
        decorated["type"] = "Feature"
        return decorated

    def decorate_items(self, items: Iterable[Dict[str, Any]], endpoint: str) -> List[Dict[str, Any]]:
        return [self.decorate_item(item, endpoint) for item in items]

    def decorate_collection(self, collection: Dict[str, Any], endpoint: str) -> Dict[str, Any]:
        """Collection with self/parent/root/items links (new record)."""
        collection_href = f"{endpoint}/collections/{collection.get('id')}"

        links = [_link("self", collection_href, MEDIA_GEOJSON)]
        links.extend(collection.get("links") or [])
        links.extend([
            _link("parent", endpoint, MEDIA_GEOJSON),
            _link("root", endpoint, MEDIA_GEOJSON),
            _link("items", f"{collection_href}/items", MEDIA_GEOJSON),
        ])

        decorated = dict(collection)
        decorated["links"] = links
        return decorated

    def decorate_collections(
        self,
        collections: Iterable[Dict[str, Any]],
        endpoint: str
    ) -> List[Dict[str, Any]]:
        return [self.decorate_collection(c, endpoint) for c in collections]

    # ========================================================================
    # DOCUMENTS
    # ========================================================================

    def conformance(self) -> Dict[str, List[str]]:
        """Conformance classes; transactions add one class when enabled."""
        conforms_to = list(CONFORMANCE_CLASSES)
        if self.config.enable_transactions:
            conforms_to.append(TRANSACTION_CONFORMANCE)
        return {"conformsTo": conforms_to}

    def catalog_links(self, endpoint: str) -> List[Dict[str, Any]]:
        """Fixed landing page links, without the per-collection children."""
        links = [
            _link("self", endpoint, MEDIA_GEOJSON),
            _link("root", endpoint, MEDIA_GEOJSON),
            _link("conformance", f"{endpoint}/conformance", MEDIA_JSON),
            _link("data", f"{endpoint}/collections", MEDIA_JSON),
            _link("search", f"{endpoint}/search", MEDIA_GEOJSON, method="GET"),
            _link("search", f"{endpoint}/search", MEDIA_GEOJSON, method="POST"),
            _link("aggregate", f"{endpoint}/aggregate", MEDIA_JSON),
            _link("service-desc", f"{endpoint}/api", MEDIA_OPENAPI),
            _link("service-doc", f"{endpoint}/api.html", MEDIA_HTML),
        ]
        if self.config.docs_url:
            links.append(_link("server", self.config.docs_url, MEDIA_HTML))
        return links

    def catalog(self, collections: Iterable[Dict[str, Any]], endpoint: str) -> Dict[str, Any]:
        """
        Landing page.

        Args:
            collections: Collections to list as children
            endpoint: Landing page URL

        Returns:
            STAC Catalog with fixed links, one child link per collection, and
            the conformance classes
        """
        children = [
            _link("child", f"{endpoint}/collections/{c.get('id')}", MEDIA_GEOJSON)
            for c in collections
        ]
        return {
            "stac_version": self.config.stac_version,
            "type": "Catalog",
            "id": self.config.catalog_id,
            "title": self.config.catalog_title,
            "description": self.config.catalog_description,
            "links": self.catalog_links(endpoint) + children,
            "conformsTo": self.conformance()["conformsTo"],
        }

    def collections_listing(
        self,
        collections: Iterable[Dict[str, Any]],
        endpoint: str
    ) -> Dict[str, Any]:
        """/collections document with a page-1 context block."""
        decorated = self.decorate_collections(collections, endpoint)
        return {
            "collections": decorated,
            "links": [
                _link("self", f"{endpoint}/collections", MEDIA_JSON),
                _link("root", endpoint, MEDIA_GEOJSON),
            ],
            "context": {
                "page": 1,
                "limit": self.config.collection_limit,
                "matched": len(decorated),
                "returned": len(decorated),
            },
        }

    def feature_collection(
        self,
        context: ResponseContext,
        features: List[Dict[str, Any]],
        links: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Wrap already-decorated features in a FeatureCollection."""
        return {
            "type": "FeatureCollection",
            "stac_version": self.config.stac_version,
            "stac_extensions": [],
            "context": context.model_dump(exclude_none=True),
            "numberMatched": context.matched,
            "numberReturned": context.returned,
            "features": features,
            "links": links,
        }

    def search_results(
        self,
        items: List[Dict[str, Any]],
        context: ResponseContext,
        pagination_links: List[STACLink],
        endpoint: str,
        collection_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Item search / collection items page.

        Args:
            items: Backend items for this page
            context: Backend counts
            pagination_links: Output of CursorPaginator.build_links
            endpoint: Landing page URL
            collection_id: Set for /collections/{id}/items, which adds
                self and root links after the pagination link
        """
        links = [link.to_dict() for link in pagination_links]
        if collection_id:
            links.extend([
                _link("self", f"{endpoint}/collections/{collection_id}/items", MEDIA_JSON),
                _link("root", endpoint, MEDIA_GEOJSON),
            ])
        return self.feature_collection(context, self.decorate_items(items, endpoint), links)

    def aggregate_results(self, aggregations: List[Dict[str, Any]], endpoint: str) -> Dict[str, Any]:
        return {
            "aggregations": aggregations,
            "links": [
                _link("self", f"{endpoint}/aggregate", MEDIA_JSON),
                _link("root", endpoint, MEDIA_GEOJSON),
            ],
        }
