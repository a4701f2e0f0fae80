"""
Data Access Layer (DAL) for the affiliate onboarding service.

This module defines the vendor interface used by the logic layer and
re-exports the Tapfiliate client and custom field cache.
"""

from typing import Any, Dict, Protocol, Union, runtime_checkable

import httpx

from affiliate_service.dal.custom_field_cache import (
    CachedFieldMap,
    CustomFieldCache,
    build_field_map,
    fetch_field_map,
    normalize_field_label,
)
from affiliate_service.dal.tapfiliate_client import TapfiliateClient


@runtime_checkable
class AffiliateVendor(Protocol):
    """Protocol defining the affiliate vendor interface."""

    def list_custom_fields(self) -> httpx.Response:
        """Fetch the custom field catalog."""
        ...

    def create_affiliate(self, payload: Dict[str, Any]) -> httpx.Response:
        """Create an affiliate."""
        ...

    def update_affiliate(self, affiliate_id: Union[int, str], payload: Dict[str, Any]) -> httpx.Response:
        """Partially update an affiliate."""
        ...

    def set_website_metadata(self, affiliate_id: Union[int, str], website: str) -> httpx.Response:
        """Store the affiliate website meta-data."""
        ...

    def set_parent(self, affiliate_id: Union[int, str], parent_id: str) -> httpx.Response:
        """Link the affiliate to its parent."""
        ...

    def enroll_in_program(self, program_id: str, affiliate_id: Union[int, str]) -> httpx.Response:
        """Enroll the affiliate in a program."""
        ...


__all__ = [
    "AffiliateVendor",
    "CachedFieldMap",
    "CustomFieldCache",
    "TapfiliateClient",
    "build_field_map",
    "fetch_field_map",
    "normalize_field_label",
]
