"""
STAC API HTTP Triggers

Azure Functions HTTP handlers for the STAC API.

Endpoints:
- GET  /api/stac - Landing page (catalog root)
- GET  /api/stac/conformance - Conformance classes
- GET  /api/stac/api - OpenAPI description
- GET  /api/stac/collections - Collections list
- POST /api/stac/collections - Create collection (transactions)
- GET  /api/stac/collections/{collection_id} - Collection detail
- GET  /api/stac/collections/{collection_id}/items - Items in one collection
- POST /api/stac/collections/{collection_id}/items - Create item (transactions)
- GET  /api/stac/collections/{collection_id}/items/{item_id} - Item detail
- PUT/PATCH/DELETE same route - Replace / update / delete item (transactions)
- GET  /api/stac/collections/{collection_id}/items/{item_id}/thumbnail - Thumbnail redirect
- GET/POST /api/stac/search - Item search
- GET/POST /api/stac/aggregate - Aggregations
- GET  /api/stac/health - Backend health

Integration (in function_app.py):
    from stac_api import get_stac_triggers

    for trigger in get_stac_triggers():
        app.route(
            route=trigger['route'],
            methods=trigger['methods'],
            auth_level=func.AuthLevel.ANONYMOUS
        )(trigger['handler'])

Error mapping:
    STACValidationError -> 400 BadRequest
    NotFoundError       -> 404 NotFound
    BackendError        -> 500 InternalServerError
    anything else       -> 500 InternalServerError
    no backend bound    -> 503 ServiceUnavailable
"""

import azure.functions as func
import json
from typing import Dict, Any, List, Optional

from util_logger import LoggerFactory, ComponentType

from .config import STACAPIConfig, get_stac_config
from .exceptions import STACAPIError, STACResult, STACValidationError
from .parameters import RequestStyle
from .service import STACAPIService

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "STACTriggers")


# Service is built once per worker, on the first request
_service_cache: Optional[STACAPIService] = None


def build_service(config: STACAPIConfig) -> Optional[STACAPIService]:
    """
    Bind the configured backend (and thumbnail signer) to a service.

    Returns:
        STACAPIService, or None when no backend is configured
    """
    global _service_cache

    if _service_cache is not None:
        return _service_cache

    from config import get_app_config
    from .backend import load_backend

    app_config = get_app_config()
    if not app_config.stac_backend:
        logger.warning("STAC_BACKEND is not set; STAC API requests will be rejected")
        return None

    backend = load_backend(app_config.stac_backend)

    url_signer = None
    if app_config.storage_account_name:
        from infrastructure.blob import BlobURLSigner, get_storage_credential
        url_signer = BlobURLSigner(
            app_config.storage_account_name,
            expiry_seconds=config.thumbnail_url_expiry_seconds,
            credential=get_storage_credential(
                app_config.use_managed_identity,
                app_config.managed_identity_client_id
            )
        )

    _service_cache = STACAPIService(config, backend, url_signer=url_signer)
    return _service_cache


# ============================================================================
# TRIGGER REGISTRY FUNCTION
# ============================================================================

def get_stac_triggers(service: Optional[STACAPIService] = None) -> List[Dict[str, Any]]:
    """
    Get list of STAC API trigger configurations for function_app.py.

    Transaction methods are only registered when ENABLE_TRANSACTIONS_EXTENSION
    is true.

    Args:
        service: Pre-built service (tests); otherwise built lazily from settings

    Returns:
        List of dicts with keys:
        - route: URL route pattern
        - methods: List of HTTP methods
        - handler: Callable trigger handler
    """
    txn = get_stac_config().enable_transactions

    def methods(read: List[str], write: List[str]) -> List[str]:
        return read + write if txn else read

    return [
        {
            'route': 'stac',
            'methods': ['GET'],
            'handler': STACLandingPageTrigger(service).handle
        },
        {
            'route': 'stac/conformance',
            'methods': ['GET'],
            'handler': STACConformanceTrigger(service).handle
        },
        {
            'route': 'stac/api',
            'methods': ['GET'],
            'handler': STACOpenAPITrigger(service).handle
        },
        {
            'route': 'stac/collections',
            'methods': methods(['GET'], ['POST']),
            'handler': STACCollectionsTrigger(service).handle
        },
        {
            'route': 'stac/collections/{collection_id}',
            'methods': ['GET'],
            'handler': STACCollectionDetailTrigger(service).handle
        },
        {
            'route': 'stac/collections/{collection_id}/items',
            'methods': methods(['GET'], ['POST']),
            'handler': STACItemsTrigger(service).handle
        },
        {
            'route': 'stac/collections/{collection_id}/items/{item_id}',
            'methods': methods(['GET'], ['PUT', 'PATCH', 'DELETE']),
            'handler': STACItemDetailTrigger(service).handle
        },
        {
            'route': 'stac/collections/{collection_id}/items/{item_id}/thumbnail',
            'methods': ['GET'],
            'handler': STACItemThumbnailTrigger(service).handle
        },
        {
            'route': 'stac/search',
            'methods': ['GET', 'POST'],
            'handler': STACSearchTrigger(service).handle
        },
        {
            'route': 'stac/aggregate',
            'methods': ['GET', 'POST'],
            'handler': STACAggregateTrigger(service).handle
        },
        {
            'route': 'stac/health',
            'methods': ['GET'],
            'handler': STACHealthTrigger(service).handle
        }
    ]


# ============================================================================
# BASE TRIGGER CLASS
# ============================================================================

class BaseSTACTrigger:
    """
    Base class for STAC API triggers.

    Provides common functionality:
    - Base URL extraction from request
    - Request parameter/body parsing
    - STACResult and error to HttpResponse mapping
    - Per-request logging context

    Subclasses implement process(req, service, endpoint).
    """

    # Transaction endpoints answer 405 unless the extension is enabled
    write_methods: tuple = ()

    def __init__(self, service: Optional[STACAPIService] = None):
        """Initialize trigger; the service is resolved on first request."""
        self.config = service.config if service else get_stac_config()
        self._service = service

    @property
    def service(self) -> Optional[STACAPIService]:
        if self._service is None:
            self._service = build_service(self.config)
        return self._service

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        """
        Entry point registered with the Functions host.

        Args:
            req: Azure Functions HTTP request

        Returns:
            HTTP response (JSON body for every status)
        """
        request_logger = LoggerFactory.create_for_request(
            ComponentType.TRIGGER,
            type(self).__name__,
            request_id=req.headers.get("x-request-id") or req.headers.get("x-ms-client-request-id"),
            http_method=req.method,
            endpoint=req.url,
            collection_id=req.route_params.get("collection_id"),
            item_id=req.route_params.get("item_id")
        )

        if req.method.upper() in self.write_methods and not self.config.enable_transactions:
            return self._error_response(
                message="Transaction extension is not enabled",
                status_code=405,
                error_type="MethodNotAllowed"
            )

        try:
            service = self.service
            if service is None:
                return self._service_unavailable_response()

            return self.process(req, service, self._get_endpoint(req))

        except STACAPIError as e:
            log = request_logger.warning if e.status_code < 500 else request_logger.error
            log(f"{e.error_type}: {e.message}")
            return self._error_response(
                message=e.message,
                status_code=e.status_code,
                error_type=e.error_type
            )
        except Exception as e:
            request_logger.error(f"Error processing STAC request: {e}", exc_info=True)
            return self._error_response(
                message=str(e),
                status_code=500,
                error_type="InternalServerError"
            )

    def process(
        self,
        req: func.HttpRequest,
        service: STACAPIService,
        endpoint: str
    ) -> func.HttpResponse:
        raise NotImplementedError

    def _get_base_url(self, req: func.HttpRequest) -> str:
        """
        Extract base URL from request.

        Args:
            req: Azure Functions HTTP request

        Returns:
            Base URL (e.g., https://example.com)
        """
        # Try configured base URL first
        if self.config.stac_base_url:
            return self.config.stac_base_url.rstrip("/")

        # Auto-detect from request URL
        full_url = req.url
        if "/api/stac" in full_url:
            return full_url.split("/api/stac")[0]

        # Fallback
        return "http://localhost:7071"

    def _get_endpoint(self, req: func.HttpRequest) -> str:
        """Landing page URL all STAC links are rooted at."""
        return f"{self._get_base_url(req)}/api/stac"

    def _get_params(self, req: func.HttpRequest) -> Dict[str, Any]:
        """Query string for GET, JSON body otherwise."""
        if RequestStyle.from_method(req.method) == RequestStyle.QUERY_STRING:
            return dict(req.params)
        body = self._get_body(req, required=False)
        if body is None:
            return {}
        if not isinstance(body, dict):
            raise STACValidationError("Request body must be a JSON object")
        return body

    def _get_body(self, req: func.HttpRequest, required: bool = True) -> Any:
        if not req.get_body():
            if required:
                raise STACValidationError("Request body is required")
            return None
        try:
            return req.get_json()
        except ValueError:
            raise STACValidationError("Request body must be valid JSON")

    def _json_response(
        self,
        data: Any,
        status_code: int = 200,
        content_type: str = "application/json",
        headers: Optional[Dict[str, str]] = None
    ) -> func.HttpResponse:
        """
        Create JSON HTTP response.

        Args:
            data: Data to serialize (dict or Pydantic model)
            status_code: HTTP status code
            content_type: Response content type

        Returns:
            Azure Functions HttpResponse
        """
        # Handle Pydantic models
        if hasattr(data, 'model_dump'):
            data = data.model_dump(mode='json', exclude_none=True)

        return func.HttpResponse(
            body=json.dumps(data, indent=2, default=str),
            status_code=status_code,
            mimetype=content_type,
            headers=headers
        )

    def _result_response(
        self,
        result: STACResult,
        status_code: int = 200,
        content_type: str = "application/json"
    ) -> func.HttpResponse:
        """Success payload, or the result's error mapped to its status."""
        if not result.success:
            raise result.error
        return self._json_response(result.data, status_code=status_code, content_type=content_type)

    def _error_response(
        self,
        message: str,
        status_code: int = 400,
        error_type: str = "BadRequest"
    ) -> func.HttpResponse:
        """
        Create error response.

        Args:
            message: Error message
            status_code: HTTP status code
            error_type: Error type string

        Returns:
            Azure Functions HttpResponse with error JSON
        """
        error_body = {
            "code": error_type,
            "description": message
        }
        return func.HttpResponse(
            body=json.dumps(error_body, indent=2),
            status_code=status_code,
            mimetype="application/json"
        )

    def _service_unavailable_response(self) -> func.HttpResponse:
        """
        Return 503 Service Unavailable when no search backend is configured.
        """
        return self._error_response(
            message="STAC API is not available: no search backend has been configured (STAC_BACKEND)",
            status_code=503,
            error_type="ServiceUnavailable"
        )


# ============================================================================
# ENDPOINT TRIGGERS
# ============================================================================

class STACLandingPageTrigger(BaseSTACTrigger):
    """
    Landing page trigger.

    Endpoint: GET /api/stac
    """

    def process(self, req, service, endpoint):
        return self._result_response(
            service.get_catalog(endpoint),
            content_type="application/geo+json"
        )


class STACConformanceTrigger(BaseSTACTrigger):
    """
    Conformance classes trigger.

    Endpoint: GET /api/stac/conformance
    """

    def process(self, req, service, endpoint):
        return self._result_response(service.get_conformance())


class STACOpenAPITrigger(BaseSTACTrigger):
    """
    OpenAPI specification trigger.

    Endpoint: GET /api/stac/api
    """

    def process(self, req, service, endpoint):
        return self._result_response(
            service.get_openapi_spec(endpoint),
            content_type="application/vnd.oai.openapi+json;version=3.0"
        )


class STACCollectionsTrigger(BaseSTACTrigger):
    """
    Collections trigger.

    Endpoints:
        GET  /api/stac/collections - list
        POST /api/stac/collections - create (transactions)
    """

    write_methods = ('POST',)

    def process(self, req, service, endpoint):
        if req.method.upper() == 'POST':
            result = service.create_collection(self._get_body(req), endpoint)
            return self._result_response(result, status_code=201)

        return self._result_response(service.get_collections(endpoint))


class STACCollectionDetailTrigger(BaseSTACTrigger):
    """
    Collection detail trigger.

    Endpoint: GET /api/stac/collections/{collection_id}
    """

    def process(self, req, service, endpoint):
        collection_id = req.route_params.get('collection_id')
        return self._result_response(
            service.get_collection(collection_id, endpoint),
            content_type="application/geo+json"
        )


class STACItemsTrigger(BaseSTACTrigger):
    """
    Collection items trigger.

    Endpoints:
        GET  /api/stac/collections/{collection_id}/items - search within the collection
        POST /api/stac/collections/{collection_id}/items - create item (transactions)
    """

    write_methods = ('POST',)

    def process(self, req, service, endpoint):
        collection_id = req.route_params.get('collection_id')

        if req.method.upper() == 'POST':
            result = service.create_item(collection_id, self._get_body(req), endpoint)
            return self._result_response(result, status_code=201, content_type="application/geo+json")

        result = service.search_items(
            dict(req.params),
            endpoint,
            RequestStyle.QUERY_STRING,
            collection_id=collection_id
        )
        return self._result_response(result, content_type="application/geo+json")


class STACItemDetailTrigger(BaseSTACTrigger):
    """
    Item trigger.

    Endpoints (/api/stac/collections/{collection_id}/items/{item_id}):
        GET    - item
        PUT    - replace (transactions)
        PATCH  - partial update (transactions)
        DELETE - delete (transactions)
    """

    write_methods = ('PUT', 'PATCH', 'DELETE')

    def process(self, req, service, endpoint):
        collection_id = req.route_params.get('collection_id')
        item_id = req.route_params.get('item_id')
        method = req.method.upper()

        if method == 'PUT':
            result = service.update_item(collection_id, item_id, self._get_body(req), endpoint)
        elif method == 'PATCH':
            result = service.partial_update_item(collection_id, item_id, self._get_body(req), endpoint)
        elif method == 'DELETE':
            result = service.delete_item(collection_id, item_id)
            if not result.success:
                raise result.error
            return func.HttpResponse(status_code=204)
        else:
            result = service.get_item(collection_id, item_id, endpoint)

        return self._result_response(result, content_type="application/geo+json")


class STACItemThumbnailTrigger(BaseSTACTrigger):
    """
    Item thumbnail trigger.

    Endpoint: GET /api/stac/collections/{collection_id}/items/{item_id}/thumbnail

    Redirects (302) to the thumbnail; the body repeats the location.
    """

    def process(self, req, service, endpoint):
        result = service.get_item_thumbnail(
            req.route_params.get('collection_id'),
            req.route_params.get('item_id')
        )
        if not result.success:
            raise result.error

        return self._json_response(
            result.data,
            status_code=302,
            headers={"Location": result.data["location"]}
        )


class STACSearchTrigger(BaseSTACTrigger):
    """
    Item search trigger.

    Endpoint: GET|POST /api/stac/search
    """

    def process(self, req, service, endpoint):
        result = service.search_items(
            self._get_params(req),
            endpoint,
            RequestStyle.from_method(req.method)
        )
        return self._result_response(result, content_type="application/geo+json")


class STACAggregateTrigger(BaseSTACTrigger):
    """
    Aggregation trigger.

    Endpoint: GET|POST /api/stac/aggregate
    """

    def process(self, req, service, endpoint):
        result = service.aggregate(
            self._get_params(req),
            endpoint,
            RequestStyle.from_method(req.method)
        )
        return self._result_response(result)


class STACHealthTrigger(BaseSTACTrigger):
    """
    Backend health trigger.

    Endpoint: GET /api/stac/health
    """

    def process(self, req, service, endpoint):
        return self._result_response(service.health_check())
