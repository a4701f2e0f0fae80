"""
Request validation rules shared by the onboarding modes.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from affiliate_service.handlers.utils.observability import logger

PROGRAM_ID_MAP: Dict[str, str] = {
    'USD': 'stasher-affiliates-usd',
    'EUR': 'stasher-affiliate-program-sp',
    'GBP': 'stasher-affiliate-program',
    'AUD': 'jg-affiliate-program',
}

CREATE_ONLY_REQUIRED_FIELDS = ('first_name', 'last_name', 'email', 'password')
LEGACY_REQUIRED_FIELDS = ('first_name', 'last_name', 'email', 'password', 'city', 'country', 'company')
AFFILIATE_ID_REQUIRED_FIELDS = ('affiliate_id',)

_DIGITS_PATTERN = re.compile(r'^[0-9]+$')


def is_blank(value: Any) -> bool:
    """A value is blank when it is None or a whitespace-only string."""
    return value is None or (isinstance(value, str) and value.strip() == '')


def find_missing_fields(data: Dict[str, Any], required_fields: Iterable[str]) -> List[str]:
    """Return the required fields that are blank, in declaration order."""
    return [field for field in required_fields if is_blank(data.get(field))]


def resolve_program_id(program: Optional[str]) -> Optional[str]:
    """Map a currency code to its Tapfiliate program id; unmapped values pass through."""
    if not program:
        return None
    return PROGRAM_ID_MAP.get(program, program)


def validate_parent_id(raw_parent_id: Any) -> Optional[str]:
    """
    Validate a parent affiliate id for the MLM parent endpoint.

    Returns:
        The trimmed digit string, or None when the value must be ignored
    """
    if not raw_parent_id:
        return None

    # bool is an int subclass, not an id
    if not isinstance(raw_parent_id, (str, int)) or isinstance(raw_parent_id, bool):
        logger.info("Ignoring parent_id of unsupported type", extra={
            "parent_type": type(raw_parent_id).__name__,
        })
        return None

    parent_id = str(raw_parent_id).strip()
    if parent_id in ('', 'null'):
        return None

    if not _DIGITS_PATTERN.match(parent_id):
        logger.info("Ignoring non-numeric parent_id", extra={"parent_id": parent_id})
        return None

    return parent_id
