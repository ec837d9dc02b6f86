# ============================================================================
# CLAUDE CONTEXT - STAC SEARCH PARAMETER EXTRACTION
# ============================================================================
# STATUS: Core - request parameter normalization
# PURPOSE: Turn untyped GET query strings / POST bodies into a SearchQuery
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: RequestStyle, ParameterExtractor, QueryStringDecoder, JsonBodyDecoder,
#          extract_limit, extract_page
# DEPENDENCIES: pydantic, stac_api.geometry, stac_api.temporal
# PATTERNS: One decoder per request shape, both converging on SearchQuery
# ============================================================================

"""
Search Parameter Extraction

The same logical parameter arrives in two physical shapes:

    GET  /search?sortby=-datetime,+id&fields=id,-assets&ids=a,b
    POST /search {"sortby": [{"field": "datetime", "direction": "desc"}],
                  "fields": {"include": ["id"], "exclude": ["assets"]},
                  "ids": ["a", "b"]}

RequestStyle selects the decoder up front (QueryStringDecoder or
JsonBodyDecoder); ParameterExtractor then pulls every filter through it and
keeps only the ones the caller actually supplied.

All failures raise STACValidationError before any backend call.
"""

import json
import logging
import math
import re
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from .exceptions import STACValidationError
from .geometry import (
    geometry_from_bbox_list,
    geometry_from_bbox_string,
    validate_intersects,
)
from .models import MAX_LIMIT, FieldProjection, SearchQuery, SortDirection, SortRule
from .temporal import extract_datetime

logger = logging.getLogger(__name__)


_LEADING_INT = re.compile(r"^\s*([+-]?\d+)", re.ASCII)


class RequestStyle(str, Enum):
    """Physical shape of the incoming parameters."""
    QUERY_STRING = "GET"
    JSON_BODY = "POST"

    @classmethod
    def from_method(cls, method: str) -> "RequestStyle":
        """GET requests carry query strings, everything else a JSON body."""
        return cls.QUERY_STRING if method.upper() == "GET" else cls.JSON_BODY


# ============================================================================
# SHARED SCALAR PARAMETERS
# ============================================================================

def _parse_leading_int(value: Any) -> Optional[int]:
    """Leading integer of a value ("12", "12abc", 12.7 -> 12), None if absent."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def extract_limit(params: Mapping[str, Any]) -> Optional[int]:
    """
    Result-count limit.

    Returns:
        None if not supplied, otherwise 1..10000 (larger values are clamped)

    Raises:
        STACValidationError: non-numeric or not positive
    """
    raw = params.get("limit")
    if raw is None:
        return None

    limit = _parse_leading_int(raw)
    if limit is None or limit <= 0:
        raise STACValidationError(
            "Invalid limit value, must be a number between 1 and 10000 inclusive"
        )
    return min(limit, MAX_LIMIT)


def extract_page(params: Mapping[str, Any]) -> Optional[int]:
    """
    Page number.

    Raises:
        STACValidationError: non-numeric or not positive
    """
    raw = params.get("page")
    if raw is None:
        return None

    page = _parse_leading_int(raw)
    if page is None or page <= 0:
        raise STACValidationError(
            "Invalid page value, must be a number greater than 1"
        )
    return page


# ============================================================================
# DECODERS
# ============================================================================

class QueryStringDecoder:
    """
    Request-line decoder: every value is a string.

    - sortby: "+field,-field,field"
    - fields: "include1,include2,-exclude1" (or a JSON object)
    - ids / collections: JSON array string, falling back to comma separated
    - query / intersects: JSON strings
    - bbox: "west,south,east,north"
    """

    style = RequestStyle.QUERY_STRING

    def sortby(self, value: Any) -> List[SortRule]:
        rules = []
        for token in str(value).split(","):
            token = token.strip()
            if not token:
                continue
            if token.startswith("-"):
                rules.append(SortRule(field=token[1:], direction=SortDirection.DESC))
            elif token.startswith("+"):
                rules.append(SortRule(field=token[1:], direction=SortDirection.ASC))
            else:
                rules.append(SortRule(field=token, direction=SortDirection.ASC))
        return rules

    def fields(self, value: Any) -> FieldProjection:
        # next links carry the projection JSON-encoded
        try:
            parsed = json.loads(value)
        except (TypeError, ValueError):
            parsed = None
        if isinstance(parsed, dict):
            return JsonBodyDecoder().fields(parsed)

        tokens = [token.strip() for token in str(value).split(",")]
        include = [t for t in tokens if t and not t.startswith("-")]
        exclude = [t[1:] for t in tokens if t.startswith("-")]
        return FieldProjection(include=include, exclude=exclude)

    def id_list(self, value: Any, name: str) -> List[str]:
        text = str(value)
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return [str(v) for v in parsed]
        return text.split(",")

    def query(self, value: Any) -> Dict[str, Any]:
        try:
            parsed = json.loads(value)
        except (TypeError, ValueError):
            raise STACValidationError("Invalid query value, must be a JSON object")
        if not isinstance(parsed, dict):
            raise STACValidationError("Invalid query value, must be a JSON object")
        return parsed

    def bbox(self, value: Any) -> Dict[str, Any]:
        if not isinstance(value, str):
            raise STACValidationError("Invalid bbox")
        return geometry_from_bbox_string(value)


class JsonBodyDecoder:
    """
    Structured-body decoder: values are already JSON-typed.

    - sortby: [{"field": ..., "direction": "asc" | "desc"}, ...]
    - fields: {"include": [...], "exclude": [...]}
    - ids / collections: JSON arrays
    - query / intersects: JSON objects
    - bbox: JSON array of numbers
    """

    style = RequestStyle.JSON_BODY

    def sortby(self, value: Any) -> List[SortRule]:
        if not isinstance(value, list):
            raise STACValidationError("Invalid sortby value, must be an array of sort rules")
        try:
            return [SortRule.model_validate(rule) for rule in value]
        except ValidationError as e:
            raise STACValidationError(f"Invalid sortby value: {e.errors()[0]['msg']}")

    def fields(self, value: Any) -> FieldProjection:
        if not isinstance(value, dict):
            raise STACValidationError("Invalid fields value, must be an object")
        try:
            return FieldProjection.model_validate(value)
        except ValidationError as e:
            raise STACValidationError(f"Invalid fields value: {e.errors()[0]['msg']}")

    def id_list(self, value: Any, name: str) -> List[str]:
        if not isinstance(value, list):
            raise STACValidationError(f"Invalid {name} value, must be an array")
        return [str(v) for v in value]

    def query(self, value: Any) -> Dict[str, Any]:
        if not isinstance(value, dict):
            raise STACValidationError("Invalid query value, must be a JSON object")
        return dict(value)

    def bbox(self, value: Any) -> Dict[str, Any]:
        return geometry_from_bbox_list(value)


# ============================================================================
# EXTRACTOR
# ============================================================================

class ParameterExtractor:
    """
    Builds a SearchQuery from one request's parameters.

    Usage:
        extractor = ParameterExtractor(RequestStyle.from_method(req.method))
        search = extractor.extract_search(params, collection_id=None)
    """

    def __init__(self, style: RequestStyle):
        self.style = style
        self.decoder = (
            QueryStringDecoder() if style == RequestStyle.QUERY_STRING else JsonBodyDecoder()
        )

    def _check_spatial_exclusive(self, params: Mapping[str, Any]) -> None:
        if params.get("bbox") and params.get("intersects"):
            raise STACValidationError("Expected bbox OR intersects, not both")

    def extract_intersects(self, params: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Spatial filter from bbox or intersects, whichever was supplied."""
        bbox = params.get("bbox")
        intersects = params.get("intersects")
        if intersects:
            return validate_intersects(intersects)
        if bbox:
            return self.decoder.bbox(bbox)
        return None

    def extract_sortby(self, params: Mapping[str, Any]) -> Optional[List[SortRule]]:
        value = params.get("sortby")
        if not value:
            return None
        return self.decoder.sortby(value) or None

    def extract_fields(self, params: Mapping[str, Any]) -> Optional[FieldProjection]:
        """
        Field projection.

        A `fields` key that is present but empty yields an explicit empty
        projection; a missing key yields None.
        """
        if "fields" not in params:
            return None
        value = params.get("fields")
        if not value:
            return FieldProjection()
        return self.decoder.fields(value)

    def extract_ids(self, params: Mapping[str, Any]) -> Optional[List[str]]:
        value = params.get("ids")
        if not value:
            return None
        return self.decoder.id_list(value, "ids") or None

    def extract_collections(self, params: Mapping[str, Any]) -> Optional[List[str]]:
        value = params.get("collections")
        if not value:
            return None
        return self.decoder.id_list(value, "collections") or None

    def extract_query(self, params: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        value = params.get("query")
        if not value:
            return None
        return self.decoder.query(value)

    def extract_search(
        self,
        params: Mapping[str, Any],
        collection_id: Optional[str] = None
    ) -> SearchQuery:
        """
        Normalize item-search parameters.

        Args:
            params: Flat query-string mapping (GET) or parsed JSON body (POST)
            collection_id: Route collection for collection-scoped searches;
                overrides any `collections` parameter

        Returns:
            SearchQuery containing only the supplied filters

        Raises:
            STACValidationError: on any invalid or contradictory parameter
        """
        logger.debug(f"Query parameters: {json.dumps(dict(params), default=str)}")

        self._check_spatial_exclusive(params)

        datetime_filter = extract_datetime(params.get("datetime"))
        intersects = self.extract_intersects(params)
        sortby = self.extract_sortby(params)
        query = self.extract_query(params)
        fields = self.extract_fields(params)
        ids = self.extract_ids(params)
        collections = self.extract_collections(params)
        limit = extract_limit(params)
        page = extract_page(params)

        if collection_id:
            collections = [collection_id]

        next_token = params.get("next")

        return SearchQuery(
            datetime=datetime_filter,
            intersects=intersects,
            query=query,
            sortby=sortby,
            fields=fields,
            ids=ids,
            collections=collections,
            next=str(next_token) if next_token else None,
            limit=limit,
            page=page,
            bbox=params.get("bbox") or None,
            intersects_param=params.get("intersects") or None,
        )

    def extract_aggregate(self, params: Mapping[str, Any]) -> SearchQuery:
        """
        Normalize aggregation filters.

        Aggregations take the filtering subset of search: datetime, spatial,
        query, ids and collections. Sorting, projection and paging do not apply.
        """
        logger.debug(f"Aggregate parameters: {json.dumps(dict(params), default=str)}")

        self._check_spatial_exclusive(params)

        return SearchQuery(
            datetime=extract_datetime(params.get("datetime")),
            intersects=self.extract_intersects(params),
            query=self.extract_query(params),
            ids=self.extract_ids(params),
            collections=self.extract_collections(params),
        )
