"""
Resolution of onboarding answers into Tapfiliate custom fields.

Custom fields are addressed by vendor keys that are looked up by their
human-readable label in the fetched catalog. A label missing from the catalog
silently drops the field.
"""

from typing import Any, Dict, Optional, Sequence

from affiliate_service.dal.custom_field_cache import COMMISSION_TYPE_LABEL, FieldMap, normalize_field_label
from affiliate_service.handlers.utils.observability import logger
from affiliate_service.models.input import AffiliateRequest

COMPANY_TYPE_LABEL = 'Company type'
DEMO_CALL_LABELS = ('Free DEMO call?', 'Do you want a FREE DEMO call?')

COMMISSION_TYPES = (
    'I want 10% commission',
    'I want 10% discount code',
    'Custom',
)

COMPANY_TYPE_LABELS: Dict[str, str] = {
    'supply': 'I want to store bags (Supply)',
    'vacation-rental': 'Vacation Rental / STR / Airbnb Host',
    'pms': 'PMS',
    'venue': 'Venue',
    'blog': 'Blog',
    'tour-operator': 'Tour Operator',
    'transportations': 'Transportations',
    'other': 'Other',
}


def normalize_commission_type(value: str) -> str:
    """Restrict a commission type to the canonical values, defaulting to the first."""
    if value in COMMISSION_TYPES:
        return value
    logger.warning("Unknown commission type, using default", extra={
        "commission_type": value,
        "default": COMMISSION_TYPES[0],
    })
    return COMMISSION_TYPES[0]


def company_type_label(value: str) -> str:
    """Display label for a company type; unknown values pass through."""
    return COMPANY_TYPE_LABELS.get(value, value)


def demo_call_answer(wants_demo_call: bool) -> str:
    return 'Yes' if wants_demo_call else 'No'


class CustomFieldResolver:
    """Resolves field labels against a fetched catalog."""

    def __init__(self, field_map: Optional[FieldMap]):
        self.field_map = field_map or {}

    def key_for(self, *labels: str) -> Optional[Any]:
        """Return the vendor key of the first label found in the catalog."""
        for label in labels:
            key = self.field_map.get(normalize_field_label(label))
            if key:
                return key
        logger.warning("Custom field key not found", extra={
            "labels": list(labels),
            "available_labels": sorted(self.field_map),
        })
        return None

    def _add(self, custom_fields: Dict[Any, Any], labels: Sequence[str], value: Any) -> None:
        key = self.key_for(*labels)
        if key:
            custom_fields[key] = value

    def resolve(
        self,
        request: AffiliateRequest,
        include_company_type: bool = True,
        include_commission_type: bool = True,
        include_demo_call: bool = True,
    ) -> Dict[Any, Any]:
        """
        Build the custom_fields object for a request.

        Args:
            request: Inbound sign-up payload
            include_company_type: Resolve the company type answer
            include_commission_type: Resolve the commission type answer
            include_demo_call: Resolve the demo call answer

        Returns:
            Mapping of vendor field key to value; empty when nothing resolved
        """
        custom_fields: Dict[Any, Any] = {}

        if include_company_type and request.company_type:
            self._add(custom_fields, (COMPANY_TYPE_LABEL,), company_type_label(request.company_type))

        if include_commission_type and request.commission_type:
            self._add(
                custom_fields,
                (COMMISSION_TYPE_LABEL,),
                normalize_commission_type(request.commission_type),
            )

        if include_demo_call and request.wants_demo_call is not None:
            self._add(custom_fields, DEMO_CALL_LABELS, demo_call_answer(request.wants_demo_call))

        if custom_fields:
            logger.info("Resolved custom fields", extra={"custom_fields": custom_fields})

        return custom_fields
