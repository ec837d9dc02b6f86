"""
STAC API Portable Module

STAC API request translation and response assembly, hosted as Azure
Functions HTTP triggers. The search index itself is pluggable: any object
implementing stac_api.backend.Backend, bound through STAC_BACKEND.

Integration (in function_app.py):
    from stac_api import get_stac_triggers

    for trigger in get_stac_triggers():
        app.route(
            route=trigger['route'],
            methods=trigger['methods'],
            auth_level=func.AuthLevel.ANONYMOUS
        )(trigger['handler'])

Direct use:
    from stac_api import STACAPIService, STACAPIConfig, RequestStyle

    service = STACAPIService(STACAPIConfig(), backend)
    result = service.search_items({"bbox": "-10,-10,10,10"}, endpoint, RequestStyle.QUERY_STRING)
"""

from .triggers import get_stac_triggers
from .config import STACAPIConfig, get_stac_config
from .exceptions import (
    STACAPIError,
    STACValidationError,
    NotFoundError,
    BackendError,
    AggregationError,
    IndexNotFoundError,
    STACResult,
)
from .parameters import RequestStyle, ParameterExtractor
from .service import STACAPIService

__all__ = [
    'get_stac_triggers',
    'get_stac_config',
    'STACAPIConfig',
    'STACAPIService',
    'RequestStyle',
    'ParameterExtractor',
    'STACAPIError',
    'STACValidationError',
    'NotFoundError',
    'BackendError',
    'AggregationError',
    'IndexNotFoundError',
    'STACResult',
]
