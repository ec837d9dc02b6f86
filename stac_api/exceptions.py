# ============================================================================
# CLAUDE CONTEXT - STAC API ERRORS AND RESULTS
# ============================================================================
# STATUS: Core - error taxonomy and operation result wrapper
# PURPOSE: Distinguish caller validation errors from not-found/backend errors
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: STACAPIError, STACValidationError, NotFoundError, BackendError,
#          AggregationError, IndexNotFoundError, STACResult
# DEPENDENCIES: dataclasses, typing
# ============================================================================

"""
STAC API Errors

Two error kinds flow out of the core:

- Validation errors (STACValidationError): malformed or contradictory caller
  input. Always raised before the backend is called so the HTTP layer can map
  them to 400 deterministically.
- Generic errors (NotFoundError, BackendError): surfaced through STACResult
  for the HTTP layer to map to 404/500.

IndexNotFoundError is raised by backends when the search index does not exist
yet. Search and aggregate translate it into an empty result.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


class STACAPIError(Exception):
    """Base class for errors the HTTP layer knows how to render."""

    status_code: int = 500
    error_type: str = "InternalServerError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {
            "code": self.error_type,
            "description": self.message
        }


class STACValidationError(STACAPIError, ValueError):
    """Malformed or contradictory request parameters."""

    status_code = 400
    error_type = "BadRequest"


class NotFoundError(STACAPIError):
    """Requested collection, item or asset does not exist."""

    status_code = 404
    error_type = "NotFound"


class BackendError(STACAPIError):
    """Backend reported a failure (falsy response, malformed payload)."""

    status_code = 500
    error_type = "InternalServerError"


class AggregationError(BackendError):
    """Backend aggregation response is missing a named aggregation."""


class IndexNotFoundError(Exception):
    """Raised by a backend when the search index has not been created yet."""


@dataclass
class STACResult:
    """
    Outcome of a document-producing operation.

    Exactly one of `data` / `error` is set. Callers check `success` rather than
    inspecting the payload for error markers.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[STACAPIError] = None

    @classmethod
    def ok(cls, data: Any) -> "STACResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: STACAPIError) -> "STACResult":
        return cls(success=False, error=error)
