"""
STAC API Service Layer

Orchestrates one request: parameters in, one backend call, document out.

    ParameterExtractor -> SearchQuery -> Backend -> CursorPaginator
                                                 -> ResponseAssembler

Every document-producing method returns a STACResult. Validation errors are
raised (always before the backend is called); unexpected backend exceptions
propagate to the trigger.

`endpoint` is the public landing page URL, e.g. https://host/api/stac.

Date: 18 OCT 2026
"""

from typing import Any, Dict, Mapping, Optional

from util_logger import LoggerFactory, ComponentType, log_exceptions

from .aggregation import AggregationTransformer
from .assembler import ResponseAssembler
from .backend import Backend
from .config import STACAPIConfig
from .exceptions import (
    AggregationError,
    BackendError,
    IndexNotFoundError,
    NotFoundError,
    STACResult,
    STACValidationError,
)
from .models import ResponseContext
from .pagination import CursorPaginator
from .parameters import ParameterExtractor, RequestStyle

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "STACAPIService")


class STACAPIService:
    """
    STAC API business logic layer.

    Args:
        config: Catalog identity and limits
        backend: Search index implementation
        url_signer: Optional signer for catalog-owned thumbnail hrefs
            (anything with `signed_url(href) -> Optional[str]`)
    """

    def __init__(
        self,
        config: STACAPIConfig,
        backend: Backend,
        url_signer: Optional[Any] = None
    ):
        self.config = config
        self.backend = backend
        self.url_signer = url_signer
        self.assembler = ResponseAssembler(config)
        self.aggregations = AggregationTransformer()

    # ========================================================================
    # CATALOG
    # ========================================================================

    def get_conformance(self) -> STACResult:
        return STACResult.ok(self.assembler.conformance())

    def get_catalog(self, endpoint: str) -> STACResult:
        """
        Landing page with one child link per collection.

        Collections are fetched with page 1 and the configured collection limit.
        """
        collections = self.backend.get_collections(1, self.config.collection_limit) or []
        logger.debug(f"Catalog lists {len(collections)} collections")
        return STACResult.ok(self.assembler.catalog(collections, endpoint))

    def get_openapi_spec(self, endpoint: str) -> STACResult:
        """OpenAPI 3.0 description served at {endpoint}/api."""
        from .openapi import get_openapi_spec
        return STACResult.ok(get_openapi_spec(endpoint, self.config))

    def get_collections(self, endpoint: str) -> STACResult:
        # Only the first page of collections is listed
        collections = self.backend.get_collections(1, self.config.collection_limit) or []
        return STACResult.ok(self.assembler.collections_listing(collections, endpoint))

    def get_collection(self, collection_id: str, endpoint: str) -> STACResult:
        collection = self.backend.get_collection(collection_id)
        if not collection:
            return STACResult.fail(NotFoundError("Collection not found"))
        return STACResult.ok(self.assembler.decorate_collection(collection, endpoint))

    # ========================================================================
    # ITEMS
    # ========================================================================

    def _find_item(self, collection_id: str, item_id: str) -> Optional[Dict[str, Any]]:
        response = self.backend.search({"collections": [collection_id], "ids": [item_id]})
        results = (response or {}).get("results") or []
        return results[0] if results else None

    def get_item(self, collection_id: str, item_id: str, endpoint: str) -> STACResult:
        item = self._find_item(collection_id, item_id)
        if item is None:
            return STACResult.fail(NotFoundError("Item not found"))
        return STACResult.ok(self.assembler.decorate_item(item, endpoint))

    def search_items(
        self,
        params: Mapping[str, Any],
        endpoint: str,
        style: RequestStyle,
        collection_id: Optional[str] = None
    ) -> STACResult:
        """
        Item search (/search) or collection items (/collections/{id}/items).

        Args:
            params: Query-string mapping (GET) or JSON body (POST)
            endpoint: Landing page URL
            style: Physical shape of `params`
            collection_id: Restricts the search to one collection

        Returns:
            STACResult with a FeatureCollection

        Raises:
            STACValidationError: invalid parameters (backend not called)
        """
        search = ParameterExtractor(style).extract_search(params, collection_id)

        if collection_id:
            search_endpoint = f"{endpoint}/collections/{collection_id}/items"
        else:
            search_endpoint = f"{endpoint}/search"

        backend_params = search.to_backend_params()
        logger.debug(f"Search parameters: {backend_params}")

        try:
            response = self.backend.search(backend_params, search.page, search.limit)
        except IndexNotFoundError:
            logger.warning("Search index not found, returning empty result")
            response = {
                "results": [],
                "context": {"matched": 0, "returned": 0, "limit": search.limit}
            }

        items = response.get("results") or []
        context = ResponseContext.model_validate(response.get("context") or {})

        links = CursorPaginator(style).build_links(items, search, search_endpoint)
        document = self.assembler.search_results(
            items, context, links, endpoint, collection_id=collection_id
        )

        logger.info(
            f"Search returned {context.returned} of {context.matched} items"
            + (f" in {collection_id}" if collection_id else "")
        )
        return STACResult.ok(document)

    def aggregate(
        self,
        params: Mapping[str, Any],
        endpoint: str,
        style: RequestStyle
    ) -> STACResult:
        """
        Aggregation extension over the filtered item set.

        A missing index yields the empty-but-complete aggregation list; a
        backend payload missing a named aggregation is a failure.
        """
        search = ParameterExtractor(style).extract_aggregate(params)
        backend_params = search.to_backend_params()
        logger.debug(f"Aggregate parameters: {backend_params}")

        try:
            response = self.backend.aggregate(backend_params)
        except IndexNotFoundError:
            logger.warning("Search index not found, returning empty aggregations")
            aggregations = self.aggregations.empty()
        else:
            body = (response or {}).get("body") or {}
            try:
                aggregations = self.aggregations.transform(body.get("aggregations"))
            except AggregationError as e:
                logger.error(f"Malformed aggregation response: {e.message}")
                return STACResult.fail(e)

        return STACResult.ok(self.assembler.aggregate_results(aggregations, endpoint))

    def get_item_thumbnail(self, collection_id: str, item_id: str) -> STACResult:
        """
        Resolve the item's thumbnail asset to a URL.

        The first asset whose roles contain "thumbnail" is used. http(s)
        hrefs are returned as-is; az:// hrefs are signed when a signer is
        configured.

        Returns:
            STACResult with {"location": url}
        """
        item = self._find_item(collection_id, item_id)
        if item is None:
            return STACResult.fail(NotFoundError("Item not found"))

        assets = item.get("assets") or {}
        thumbnail = next(
            (
                asset for asset in assets.values()
                if isinstance(asset, dict) and "thumbnail" in (asset.get("roles") or [])
            ),
            None
        )
        href = (thumbnail or {}).get("href") or ""

        if href.startswith("http"):
            location = href
        elif href.startswith("az://") and self.url_signer is not None:
            location = self.url_signer.signed_url(href)
        else:
            location = None

        if not location:
            return STACResult.fail(NotFoundError("Thumbnail not found"))
        return STACResult.ok({"location": location})

    # ========================================================================
    # TRANSACTIONS
    # ========================================================================

    @staticmethod
    def _require_object(body: Any, kind: str) -> Dict[str, Any]:
        if not isinstance(body, dict):
            raise STACValidationError(f"Invalid {kind}, expected a JSON object")
        return body

    @staticmethod
    def _bind_collection(item: Dict[str, Any], collection_id: str) -> Dict[str, Any]:
        item_collection = item.get("collection")
        if item_collection and item_collection != collection_id:
            raise STACValidationError(
                f"Item collection '{item_collection}' does not match path collection '{collection_id}'"
            )
        return {**item, "collection": collection_id}

    def create_collection(self, collection: Any, endpoint: str) -> STACResult:
        collection = self._require_object(collection, "collection")
        response = self.backend.index_collection(collection)
        logger.debug(f"Create Collection: {response}")

        if not response:
            return STACResult.fail(
                BackendError(f"Error creating collection {collection.get('id')}")
            )
        return STACResult.ok(self.assembler.decorate_collection(collection, endpoint))

    def create_item(self, collection_id: str, item: Any, endpoint: str) -> STACResult:
        item = self._bind_collection(self._require_object(item, "item"), collection_id)
        response = self.backend.index_item(item)
        logger.debug(f"Create Item: {response}")

        if not response:
            return STACResult.fail(
                BackendError(f"Error creating item in collection {collection_id}")
            )
        return STACResult.ok(self.assembler.decorate_item(item, endpoint))

    def update_item(
        self,
        collection_id: str,
        item_id: str,
        item: Any,
        endpoint: str
    ) -> STACResult:
        """Full replacement; the body id must match the path."""
        item = self._bind_collection(self._require_object(item, "item"), collection_id)
        if item.get("id") != item_id:
            raise STACValidationError(
                f"Item id '{item.get('id')}' does not match path item id '{item_id}'"
            )

        response = self.backend.update_item(item)
        logger.debug(f"Update Item: {response}")

        if not response:
            return STACResult.fail(BackendError(f"Error updating item {item_id}"))
        return STACResult.ok(self.assembler.decorate_item(item, endpoint))

    def partial_update_item(
        self,
        collection_id: str,
        item_id: str,
        patch: Any,
        endpoint: str
    ) -> STACResult:
        """Merge `patch` into the stored item; returns the updated item."""
        patch = self._require_object(patch, "patch")
        updated = self.backend.partial_update_item(collection_id, item_id, patch)
        logger.debug(f"Partial Update Item: {updated}")

        if not updated:
            return STACResult.fail(BackendError(f"Error partially updating item {item_id}"))
        return STACResult.ok(self.assembler.decorate_item(updated, endpoint))

    @log_exceptions(ComponentType.SERVICE, "STACAPIService")
    def delete_item(self, collection_id: str, item_id: str) -> STACResult:
        response = self.backend.delete_item(collection_id, item_id)
        logger.debug(f"Delete Item: {response}")

        if not response:
            return STACResult.fail(BackendError(f"Error deleting item {collection_id}/{item_id}"))
        return STACResult.ok(response)

    # ========================================================================
    # HEALTH
    # ========================================================================

    @log_exceptions(ComponentType.SERVICE, "STACAPIService")
    def health_check(self) -> STACResult:
        response = self.backend.health_check()
        logger.debug(f"Health check: {response}")
        if response and response.get("statusCode") == 200:
            return STACResult.ok({"status": "ok"})
        return STACResult.fail(BackendError("Error with health check."))
