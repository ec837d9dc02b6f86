"""
STAC API Spatial Filters

Validates the two mutually exclusive spatial inputs of an item search:

- bbox: 4 (2D) or 6 (3D) numbers, west, south, [min elevation,] east, north,
  [max elevation]. Converted to an equivalent closed Polygon.
- intersects: a GeoJSON geometry, either already parsed or as a JSON string.

The caller (ParameterExtractor) rejects requests that supply both.
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional

from .exceptions import STACValidationError

logger = logging.getLogger(__name__)


_NON_GEOMETRY_TYPES = ("Feature", "FeatureCollection")


def _parse_float(token: str) -> Optional[float]:
    try:
        return float(token.strip())
    except ValueError:
        return None


def parse_bbox_string(bbox: str) -> List[float]:
    """
    Split a request-line bbox ("-10,-10,10,10") into numbers.

    Tokens that are not numbers are dropped; the length check that follows
    rejects the result if that leaves the wrong number of components.
    """
    values = [_parse_float(token) for token in bbox.split(",")]
    return [v for v in values if v is not None]


def validate_bbox(values: List[Any]) -> List[float]:
    """
    Check component count and latitude ordering.

    Args:
        values: bbox components

    Returns:
        bbox as a list of floats

    Raises:
        STACValidationError: wrong length, non-numeric or non-finite values,
            or south > north
    """
    if len(values) not in (4, 6):
        raise STACValidationError("Invalid bbox, must have 4 or 6 points")

    try:
        bbox = [float(v) for v in values]
    except (TypeError, ValueError):
        raise STACValidationError("Invalid bbox")
    if not all(math.isfinite(v) for v in bbox):
        raise STACValidationError("Invalid bbox")

    north_index = 3 if len(bbox) == 4 else 4
    if bbox[1] > bbox[north_index]:
        raise STACValidationError(
            "Invalid bbox, SW latitude must be less than NE latitude"
        )

    return bbox


def bbox_to_polygon(bbox: List[float]) -> Dict[str, Any]:
    """
    Closed counter-clockwise Polygon covering a validated bbox.

    Elevation components of a 6-element bbox are ignored.
    """
    if len(bbox) == 6:
        west, south, _, east, north, _ = bbox
    else:
        west, south, east, north = bbox

    return {
        "type": "Polygon",
        "coordinates": [[
            [west, south],
            [east, south],
            [east, north],
            [west, north],
            [west, south]
        ]]
    }


def geometry_from_bbox_string(bbox: str) -> Dict[str, Any]:
    """Request-line bbox to Polygon."""
    return bbox_to_polygon(validate_bbox(parse_bbox_string(bbox)))


def geometry_from_bbox_list(bbox: Any) -> Dict[str, Any]:
    """Structured-body bbox (JSON array) to Polygon."""
    if not isinstance(bbox, (list, tuple)):
        raise STACValidationError("Invalid bbox")
    return bbox_to_polygon(validate_bbox(list(bbox)))


def validate_intersects(intersects: Any) -> Dict[str, Any]:
    """
    Validate an intersects geometry.

    Args:
        intersects: GeoJSON geometry as a mapping or a JSON string

    Returns:
        Geometry mapping (a copy when a mapping was given)

    Raises:
        STACValidationError: unparsable JSON, not an object, or a
            Feature/FeatureCollection instead of a bare geometry
    """
    if isinstance(intersects, str):
        try:
            geojson = json.loads(intersects)
        except ValueError:
            raise STACValidationError("Invalid GeoJSON geometry")
    else:
        geojson = intersects

    if not isinstance(geojson, dict):
        raise STACValidationError("Invalid GeoJSON geometry")

    if geojson.get("type") in _NON_GEOMETRY_TYPES:
        raise STACValidationError(
            "Expected GeoJSON geometry, not Feature or FeatureCollection"
        )

    return dict(geojson)
