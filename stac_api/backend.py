# ============================================================================
# CLAUDE CONTEXT - STAC SEARCH BACKEND CONTRACT
# ============================================================================
# STATUS: Core - collaborator interface
# PURPOSE: Declare what the API layer needs from a search index
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: Backend, load_backend
# DEPENDENCIES: importlib, typing
# ============================================================================

"""
Search Backend Contract

The API layer translates requests and assembles responses; the backend owns
query compilation, index access, retries and timeouts. Any object with these
methods can be plugged in (structural typing, no base class required).

Index-missing is signalled by raising stac_api.exceptions.IndexNotFoundError
from `search` or `aggregate`. Write methods return a falsy value on failure.

Binding:
    STAC_BACKEND=mypackage.search:create_backend

    backend = load_backend("mypackage.search:create_backend")
"""

import importlib
import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Backend(Protocol):
    """Search index operations consumed by STACAPIService."""

    def search(
        self,
        query: Dict[str, Any],
        page: Optional[int] = None,
        limit: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Returns:
            {"results": [item, ...], "context": {"matched", "returned", "limit"}}
        """
        ...

    def aggregate(self, query: Dict[str, Any]) -> Dict[str, Any]:
        """
        Returns:
            {"body": {"aggregations": {name: payload, ...}}}
        """
        ...

    def get_collections(self, page: int, limit: int) -> List[Dict[str, Any]]:
        ...

    def get_collection(self, collection_id: str) -> Optional[Dict[str, Any]]:
        """Collection record, or None when it does not exist."""
        ...

    def index_collection(self, collection: Dict[str, Any]) -> Any:
        ...

    def index_item(self, item: Dict[str, Any]) -> Any:
        ...

    def update_item(self, item: Dict[str, Any]) -> Any:
        ...

    def partial_update_item(
        self,
        collection_id: str,
        item_id: str,
        patch: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Updated item record, or a falsy value on failure."""
        ...

    def delete_item(self, collection_id: str, item_id: str) -> Any:
        ...

    def health_check(self) -> Dict[str, Any]:
        """Returns {"statusCode": int}."""
        ...


def load_backend(path: str) -> Backend:
    """
    Import and call a backend factory.

    Args:
        path: "module:factory"

    Returns:
        Backend instance

    Raises:
        ValueError: malformed path
        ImportError / AttributeError: module or factory missing
        TypeError: factory result lacks Backend methods
    """
    module_name, _, factory_name = path.partition(":")
    if not module_name or not factory_name:
        raise ValueError(f"Backend path must look like 'module:factory', got '{path}'")

    module = importlib.import_module(module_name)
    factory = getattr(module, factory_name)
    backend = factory()

    if not isinstance(backend, Backend):
        raise TypeError(f"{path} did not return a STAC search backend")

    logger.info(f"Loaded STAC backend from {path}")
    return backend
