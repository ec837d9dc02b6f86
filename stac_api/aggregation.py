"""
STAC Aggregation Transformer

Reshapes raw backend aggregation output (bucket and metric payloads keyed by
aggregation name) into the Aggregation extension's ordered result list.

Backend payload shape:
    {
        "total_count": {"value": 12},
        "datetime_max": {"value": 1.6e12, "value_as_string": "2022-01-01T00:00:00Z"},
        "collection_frequency": {
            "sum_other_doc_count": 0,
            "buckets": [{"key": "landsat", "doc_count": 12}]
        },
        ...
    }

Reference: https://github.com/stac-api-extensions/aggregation
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from .exceptions import AggregationError


FREQUENCY_DISTRIBUTION = "frequency_distribution"

# (name, bucket data_type), in response order
FREQUENCY_AGGREGATIONS: Tuple[Tuple[str, str], ...] = (
    ("collection_frequency", "string"),
    ("datetime_frequency", "datetime"),
    ("cloud_cover_frequency", "numeric"),
    ("grid_code_frequency", "string"),
    ("platform_frequency", "string"),
    ("grid_code_landsat_frequency", "string"),
    ("sun_elevation_frequency", "string"),
    ("sun_azimuth_frequency", "string"),
    ("off_nadir_frequency", "string"),
)


class AggregationTransformer:
    """
    Backend aggregations -> ordered Aggregation extension results.

    Usage:
        results = AggregationTransformer().transform(body["aggregations"])
    """

    def _named(self, raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
        payload = raw.get(name)
        if not isinstance(payload, Mapping):
            raise AggregationError(f"Backend response is missing aggregation '{name}'")
        return payload

    def _bucket(self, bucket: Mapping[str, Any], data_type: str) -> Dict[str, Any]:
        key = bucket.get("key_as_string")
        result = {
            "key": key if key else bucket.get("key"),
            "data_type": data_type,
            "frequency": bucket.get("doc_count"),
        }
        if bucket.get("to") is not None:
            result["to"] = bucket["to"]
        if bucket.get("from") is not None:
            result["from"] = bucket["from"]
        return result

    def frequency(self, raw: Mapping[str, Any], name: str, data_type: str) -> Dict[str, Any]:
        """
        One frequency distribution.

        Raises:
            AggregationError: aggregation absent or has no bucket list
        """
        payload = self._named(raw, name)
        buckets = payload.get("buckets")
        if not isinstance(buckets, list):
            raise AggregationError(f"Aggregation '{name}' has no buckets")

        return {
            "name": name,
            "data_type": FREQUENCY_DISTRIBUTION,
            "overflow": payload.get("sum_other_doc_count") or 0,
            "buckets": [self._bucket(bucket, data_type) for bucket in buckets],
        }

    def transform(self, raw: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """
        Build the full result list.

        Args:
            raw: `aggregations` mapping from the backend response

        Returns:
            total_count, datetime_max, datetime_min, then every frequency
            distribution in FREQUENCY_AGGREGATIONS order

        Raises:
            AggregationError: any named aggregation is missing
        """
        if not isinstance(raw, Mapping):
            raise AggregationError("Backend response has no aggregations")

        results = [
            self._metric("total_count", "integer", self._named(raw, "total_count").get("value")),
            self._metric(
                "datetime_max", "datetime",
                self._named(raw, "datetime_max").get("value_as_string")
            ),
            self._metric(
                "datetime_min", "datetime",
                self._named(raw, "datetime_min").get("value_as_string")
            ),
        ]
        results.extend(
            self.frequency(raw, name, data_type) for name, data_type in FREQUENCY_AGGREGATIONS
        )
        return results

    def empty(self) -> List[Dict[str, Any]]:
        """Well-formed result list for a catalog with nothing indexed yet."""
        return self.transform(empty_backend_aggregations())

    @staticmethod
    def _metric(name: str, data_type: str, value: Optional[Any]) -> Dict[str, Any]:
        return {"name": name, "data_type": data_type, "value": value}


def empty_backend_aggregations() -> Dict[str, Any]:
    """Backend-shaped payload with zero counts and no buckets."""
    raw: Dict[str, Any] = {
        "total_count": {"value": 0},
        "datetime_max": {"value": None},
        "datetime_min": {"value": None},
    }
    for name, _ in FREQUENCY_AGGREGATIONS:
        raw[name] = {"sum_other_doc_count": 0, "buckets": []}
    return raw
