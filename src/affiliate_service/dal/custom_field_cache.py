"""
Cache for the Tapfiliate custom field catalog.

The catalog maps normalized field labels to the vendor key used in
``custom_fields`` payloads. One cache instance lives for the lifetime of a warm
Lambda execution environment and is shared by every invocation it serves.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from affiliate_service.handlers.utils.observability import logger

FieldMap = Dict[str, Any]

COMMISSION_TYPE_LABEL = 'Commission type'


def normalize_field_label(label: Optional[str]) -> str:
    """Normalize a field label for case and spacing insensitive lookup."""
    return (label or '').strip().lower()


def build_field_map(fields: Any) -> FieldMap:
    """
    Build a normalized label -> key map from the vendor catalog.

    The field ``key`` is preferred, falling back to the field ``id``. Entries
    without a title or identifier are skipped.
    """
    field_map: FieldMap = {}
    if not isinstance(fields, list):
        return field_map

    for field in fields:
        if not isinstance(field, dict):
            continue
        title = field.get('title')
        key_or_id = field.get('key') or field.get('id')
        if title and key_or_id:
            field_map[normalize_field_label(title)] = key_or_id

    return field_map


@dataclass(frozen=True)
class CachedFieldMap:
    """Fetched field map with the time it was stored."""

    field_map: FieldMap
    cached_at: float

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        """Check whether the entry is younger than the TTL."""
        return now - self.cached_at < ttl_seconds


class CustomFieldCache:
    """Get-or-refresh cache with a TTL and a required-label check.

    A cached map is served only while it is fresh and still contains the
    required label; otherwise the catalog is fetched again. Entries are
    replaced wholesale, never mutated, so concurrent refreshes are harmless.
    """

    def __init__(
        self,
        ttl_seconds: float = 0,
        required_label: str = COMMISSION_TYPE_LABEL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.required_label = normalize_field_label(required_label)
        self._clock = clock
        self._entry: Optional[CachedFieldMap] = None

    @property
    def entry(self) -> Optional[CachedFieldMap]:
        return self._entry

    def clear(self) -> None:
        self._entry = None

    def is_valid(self, entry: Optional[CachedFieldMap], now: float) -> bool:
        """Check whether a cached entry can be served without refetching."""
        if entry is None:
            return False
        if self.required_label not in entry.field_map:
            logger.info("Cached custom fields lack the required label, forcing refresh", extra={
                "required_label": self.required_label,
            })
            return False
        return entry.is_fresh(now, self.ttl_seconds)

    def get_or_refresh(self, fetch: Callable[[], Optional[FieldMap]]) -> Optional[FieldMap]:
        """
        Return the cached map or fetch a new one.

        Args:
            fetch: Callable returning a fresh map, or None when the catalog is unavailable

        Returns:
            The field map, or None when it could not be fetched
        """
        now = self._clock()
        entry = self._entry
        if self.is_valid(entry, now):
            logger.debug("Using cached custom field keys")
            return entry.field_map

        field_map = fetch()
        if field_map is None:
            return None

        self._entry = CachedFieldMap(field_map=field_map, cached_at=now)

        if self.required_label not in field_map:
            logger.error("Required custom field not found in catalog", extra={
                "required_label": self.required_label,
                "available_labels": sorted(field_map),
            })

        return field_map


def fetch_field_map(list_custom_fields: Callable[[], httpx.Response]) -> Optional[FieldMap]:
    """
    Fetch the vendor catalog and convert it to a field map.

    Any failure (error status, transport error, invalid JSON) is logged and
    reported as None so callers can continue without custom fields.
    """
    logger.info("Fetching custom field keys from Tapfiliate")
    try:
        response = list_custom_fields()
    except httpx.HTTPError as e:
        logger.exception("Error fetching custom fields", extra={"error": str(e)})
        return None

    if not response.is_success:
        logger.error("Failed to fetch custom fields", extra={"status_code": response.status_code})
        return None

    try:
        fields = response.json()
    except ValueError as e:
        logger.error("Custom field catalog is not valid JSON", extra={"error": str(e)})
        return None

    field_map = build_field_map(fields)
    logger.info("Custom field keys fetched", extra={"field_map": field_map})
    return field_map
