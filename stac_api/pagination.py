"""
STAC Cursor Pagination

Builds the `next` link of an item search page.

The cursor is read from the LAST item of the page: the value at each active
sort-key path (or properties.datetime, id, collection when no sort was
requested), joined with commas. It is opaque to callers and echoed back as the
`next` parameter; the backend resumes the search after it.

GET pages link to a URL carrying every original filter plus `next`.
POST pages link to the same endpoint with a request body.
"""

import json
import logging
from typing import Any, Dict, List, Sequence
from urllib.parse import quote

from .models import SearchQuery, STACLink
from .parameters import RequestStyle

logger = logging.getLogger(__name__)


# Characters encodeURIComponent leaves alone besides letters, digits and -_.~
_URI_COMPONENT_SAFE = "!*'()"


def get_nested(record: Any, path: str) -> Any:
    """
    Value at a dotted path, None when any segment is missing.

    Example:
        get_nested(item, "properties.datetime")
    """
    current = record
    for segment in path.split("."):
        if isinstance(current, dict):
            current = current.get(segment)
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return None
        if current is None:
            return None
    return current


def _render_cursor_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def build_cursor(item: Dict[str, Any], sort_keys: Sequence[str]) -> str:
    """Comma-joined sort-key values of one item."""
    return ",".join(_render_cursor_value(get_nested(item, key)) for key in sort_keys)


def _encode_query_value(key: str, value: Any) -> str:
    if isinstance(value, (dict, list)):
        if key == "sortby":
            return ",".join(
                f"-{rule['field']}" if rule.get("direction") == "desc" else f"+{rule['field']}"
                for rule in value
            )
        if key == "collections":
            return ",".join(str(v) for v in value)
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def dict_to_query_string(params: Dict[str, Any]) -> str:
    """Serialize next-page parameters the way encodeURIComponent would."""
    return "&".join(
        f"{quote(str(key), safe=_URI_COMPONENT_SAFE)}="
        f"{quote(_encode_query_value(key, value), safe=_URI_COMPONENT_SAFE)}"
        for key, value in params.items()
    )


class CursorPaginator:
    """
    Next-link builder for one search response.

    Usage:
        paginator = CursorPaginator(RequestStyle.QUERY_STRING)
        links = paginator.build_links(items, search, f"{endpoint}/search")
    """

    def __init__(self, style: RequestStyle):
        self.style = style

    def next_parameters(self, search: SearchQuery, next_token: str) -> Dict[str, Any]:
        """
        Original filters plus the derived cursor.

        The raw bbox/intersects inputs replace the normalized geometry so the
        follow-up request has the same shape as the original one.
        """
        params = search.to_backend_params()
        params["bbox"] = search.bbox
        params["intersects"] = search.intersects_param
        params["limit"] = search.limit
        params["next"] = next_token
        return {k: v for k, v in params.items() if v is not None and v != ""}

    def build_links(
        self,
        items: List[Dict[str, Any]],
        search: SearchQuery,
        endpoint: str
    ) -> List[STACLink]:
        """
        Args:
            items: Results of the current page, in order
            search: Normalized query that produced them
            endpoint: Search endpoint the next request targets

        Returns:
            [next link], or [] for an empty page
        """
        if not items:
            return []

        next_token = build_cursor(items[-1], search.sort_keys)
        next_params = self.next_parameters(search, next_token)

        if self.style == RequestStyle.QUERY_STRING:
            link = STACLink(
                rel="next",
                title="Next page of Items",
                method="GET",
                href=f"{endpoint}?{dict_to_query_string(next_params)}"
            )
        else:
            link = STACLink(
                rel="next",
                title="Next page of Items",
                method="POST",
                href=endpoint,
                merge=False,
                body=next_params
            )

        logger.debug(f"Next cursor: {next_token}")
        return [link]
