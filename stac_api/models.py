# ============================================================================
# CLAUDE CONTEXT - STAC API MODELS
# ============================================================================
# STATUS: Core - Pydantic models for search requests and response fragments
# PURPOSE: Canonical in-memory shapes for search parameters, links and context
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: SortDirection, SortRule, FieldProjection, STACLink, ResponseContext,
#          SearchQuery, DEFAULT_SORT_KEYS, MAX_LIMIT
# INTERFACES: Pydantic BaseModel
# PYDANTIC_MODELS: All classes in this file
# DEPENDENCIES: pydantic, typing
# ============================================================================

"""
STAC API Pydantic Models

Canonical request/response fragments shared by the extractor, the paginator
and the response assembler. Everything here is built fresh per request.

References:
- STAC API Item Search: https://github.com/radiantearth/stac-api-spec/tree/main/item-search
- Sort extension: https://github.com/stac-api-extensions/sort
- Fields extension: https://github.com/stac-api-extensions/fields
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


MAX_LIMIT = 10000

# Cursor keys used when the caller did not ask for an explicit sort
DEFAULT_SORT_KEYS = ["properties.datetime", "id", "collection"]


class SortDirection(str, Enum):
    """Sort direction."""
    ASC = "asc"
    DESC = "desc"


class SortRule(BaseModel):
    """Single sort key. Order within a list is significant."""
    field: str = Field(description="Dotted item path to sort on")
    direction: SortDirection = Field(
        default=SortDirection.ASC,
        description="asc or desc"
    )

    def to_compact(self) -> str:
        """Render as `+field` / `-field`."""
        prefix = "-" if self.direction == SortDirection.DESC else "+"
        return f"{prefix}{self.field}"


class FieldProjection(BaseModel):
    """
    Fields extension projection.

    An instance with nothing set is an explicit empty projection, which is
    different from no projection at all (None on SearchQuery).
    """
    include: List[str] = Field(default_factory=list)
    exclude: List[str] = Field(default_factory=list)

    def to_backend(self) -> Dict[str, List[str]]:
        return self.model_dump(exclude_unset=True)


class STACLink(BaseModel):
    """
    STAC / OGC API link object (RFC 8288 Web Linking).
    """
    rel: str = Field(description="Link relation type")
    type: Optional[str] = Field(default=None, description="Media type of the target")
    href: str = Field(description="Target URL")
    title: Optional[str] = Field(default=None)
    method: Optional[str] = Field(default=None, description="HTTP method for the target")
    merge: Optional[bool] = Field(default=None, description="Merge body with the original request")
    body: Optional[Dict[str, Any]] = Field(default=None, description="Request body for the target")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ResponseContext(BaseModel):
    """Context extension counts."""
    matched: int = 0
    returned: int = 0
    limit: Optional[int] = None


class SearchQuery(BaseModel):
    """
    Normalized item search.

    Holds only the filters the caller supplied. `bbox` and `intersects_param`
    keep the raw spatial inputs so pagination can echo them back unchanged;
    `intersects` is the normalized geometry handed to the backend.
    """
    datetime: Optional[str] = None
    intersects: Optional[Dict[str, Any]] = None
    query: Optional[Dict[str, Any]] = None
    sortby: Optional[List[SortRule]] = None
    fields: Optional[FieldProjection] = None
    ids: Optional[List[str]] = None
    collections: Optional[List[str]] = None
    next: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1, le=MAX_LIMIT)
    page: Optional[int] = Field(default=None, ge=1)

    bbox: Optional[Any] = None
    intersects_param: Optional[Any] = None

    @property
    def sort_keys(self) -> List[str]:
        """Item paths the cursor is built from, in sort order."""
        if self.sortby:
            return [rule.field for rule in self.sortby]
        return list(DEFAULT_SORT_KEYS)

    def to_backend_params(self) -> Dict[str, Any]:
        """
        Search parameters as handed to the backend.

        Absent filters are omitted. Key order is stable: datetime, intersects,
        query, sortby, fields, ids, collections, next.
        """
        params: Dict[str, Any] = {}
        if self.datetime:
            params["datetime"] = self.datetime
        if self.intersects:
            params["intersects"] = self.intersects
        if self.query:
            params["query"] = self.query
        if self.sortby:
            params["sortby"] = [rule.model_dump(mode="json") for rule in self.sortby]
        if self.fields is not None:
            params["fields"] = self.fields.to_backend()
        if self.ids:
            params["ids"] = list(self.ids)
        if self.collections:
            params["collections"] = list(self.collections)
        if self.next:
            params["next"] = self.next
        return params
