# ============================================================================
# CLAUDE CONTEXT - AZURE FUNCTIONS ENTRY POINT
# ============================================================================
# STATUS: Core Infrastructure - Function App Entry Point
# PURPOSE: Main entry point for Azure Functions runtime with the STAC API
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: app (FunctionApp instance)
# DEPENDENCIES: azure-functions, stac_api
# ============================================================================

"""
Azure Functions Entry Point

Registers the STAC API HTTP triggers with the Azure Functions runtime.

Architecture:
    - STAC API: 11 routes (catalog, collections, items, search, aggregate,
      thumbnail, health); write methods only when
      ENABLE_TRANSACTIONS_EXTENSION=true
    - Search backend bound at first request from STAC_BACKEND

Deployment:
    - Local: func start
    - Azure: func azure functionapp publish <app-name> --python --build remote
"""

import azure.functions as func
import logging

from config import validate_configuration
from stac_api import get_stac_triggers

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize Azure Function App
app = func.FunctionApp()

validate_configuration()

# ============================================================================
# STAC API
# ============================================================================

logger.info("Registering STAC API endpoints...")

stac_triggers = {trigger['route']: trigger for trigger in get_stac_triggers()}


def _methods(route: str):
    return stac_triggers[route]['methods']


def _dispatch(route: str, req: func.HttpRequest) -> func.HttpResponse:
    return stac_triggers[route]['handler'](req)


# Landing page (catalog root)
@app.route(route="stac", methods=_methods("stac"), auth_level=func.AuthLevel.ANONYMOUS)
def stac_landing_page(req: func.HttpRequest) -> func.HttpResponse:
    return _dispatch("stac", req)


# Conformance
@app.route(route="stac/conformance", methods=_methods("stac/conformance"), auth_level=func.AuthLevel.ANONYMOUS)
def stac_conformance(req: func.HttpRequest) -> func.HttpResponse:
    return _dispatch("stac/conformance", req)


# OpenAPI specification (service-desc)
@app.route(route="stac/api", methods=_methods("stac/api"), auth_level=func.AuthLevel.ANONYMOUS)
def stac_openapi(req: func.HttpRequest) -> func.HttpResponse:
    return _dispatch("stac/api", req)


# Collections list / create
@app.route(route="stac/collections", methods=_methods("stac/collections"), auth_level=func.AuthLevel.ANONYMOUS)
def stac_collections(req: func.HttpRequest) -> func.HttpResponse:
    return _dispatch("stac/collections", req)


# Single collection
@app.route(
    route="stac/collections/{collection_id}",
    methods=_methods("stac/collections/{collection_id}"),
    auth_level=func.AuthLevel.ANONYMOUS
)
def stac_collection(req: func.HttpRequest) -> func.HttpResponse:
    return _dispatch("stac/collections/{collection_id}", req)


# Collection items search / create item
@app.route(
    route="stac/collections/{collection_id}/items",
    methods=_methods("stac/collections/{collection_id}/items"),
    auth_level=func.AuthLevel.ANONYMOUS
)
def stac_items(req: func.HttpRequest) -> func.HttpResponse:
    return _dispatch("stac/collections/{collection_id}/items", req)


# Single item (read, replace, update, delete)
@app.route(
    route="stac/collections/{collection_id}/items/{item_id}",
    methods=_methods("stac/collections/{collection_id}/items/{item_id}"),
    auth_level=func.AuthLevel.ANONYMOUS
)
def stac_item(req: func.HttpRequest) -> func.HttpResponse:
    return _dispatch("stac/collections/{collection_id}/items/{item_id}", req)


# Item thumbnail redirect
@app.route(
    route="stac/collections/{collection_id}/items/{item_id}/thumbnail",
    methods=_methods("stac/collections/{collection_id}/items/{item_id}/thumbnail"),
    auth_level=func.AuthLevel.ANONYMOUS
)
def stac_item_thumbnail(req: func.HttpRequest) -> func.HttpResponse:
    return _dispatch("stac/collections/{collection_id}/items/{item_id}/thumbnail", req)


# Item search
@app.route(route="stac/search", methods=_methods("stac/search"), auth_level=func.AuthLevel.ANONYMOUS)
def stac_search(req: func.HttpRequest) -> func.HttpResponse:
    return _dispatch("stac/search", req)


# Aggregation
@app.route(route="stac/aggregate", methods=_methods("stac/aggregate"), auth_level=func.AuthLevel.ANONYMOUS)
def stac_aggregate(req: func.HttpRequest) -> func.HttpResponse:
    return _dispatch("stac/aggregate", req)


# Backend health
@app.route(route="stac/health", methods=_methods("stac/health"), auth_level=func.AuthLevel.ANONYMOUS)
def stac_health(req: func.HttpRequest) -> func.HttpResponse:
    return _dispatch("stac/health", req)


logger.info(f"✅ STAC API registered successfully ({len(stac_triggers)} routes)")

# ============================================================================
# Application Startup
# ============================================================================

logger.info("=" * 60)
logger.info("Function App initialized successfully")
logger.info("Available endpoints:")
for route, trigger in stac_triggers.items():
    logger.info(f"  - {'/'.join(trigger['methods'])} /api/{route}")
logger.info("=" * 60)
