"""
Builders for Tapfiliate affiliate payloads.

Tapfiliate requires a nested address with an ISO 3166-1 alpha-2 country code
and a nested company object. Fields the form does not collect are filled with
fixed placeholders.
"""

from typing import Any, Dict, Optional, Union

from affiliate_service.models.input import AffiliateRequest

DEFAULT_COUNTRY_CODE = 'GB'
PLACEHOLDER = 'n/a'

COUNTRY_CODES: Dict[str, str] = {
    'united kingdom': 'GB',
    'uk': 'GB',
    'united states': 'US',
    'usa': 'US',
    'us': 'US',
    'canada': 'CA',
    'australia': 'AU',
    'germany': 'DE',
    'france': 'FR',
    'spain': 'ES',
    'italy': 'IT',
    'netherlands': 'NL',
    'belgium': 'BE',
    'switzerland': 'CH',
    'austria': 'AT',
    'sweden': 'SE',
    'norway': 'NO',
    'denmark': 'DK',
    'poland': 'PL',
    'portugal': 'PT',
    'ireland': 'IE',
    'greece': 'GR',
    'finland': 'FI',
    'czech republic': 'CZ',
    'hungary': 'HU',
    'romania': 'RO',
    'bulgaria': 'BG',
    'croatia': 'HR',
    'slovakia': 'SK',
    'slovenia': 'SI',
    'estonia': 'EE',
    'latvia': 'LV',
    'lithuania': 'LT',
    'luxembourg': 'LU',
    'malta': 'MT',
    'cyprus': 'CY',
}

# STR hosts are always described as "STR"
FIXED_DESCRIPTION_COMPANY_TYPES = {'vacation-rental': 'STR'}
DESCRIBED_COMPANY_TYPES = frozenset({'pms', 'venue', 'blog', 'tour-operator', 'transportations', 'other'})


def get_country_iso_code(country: Optional[str]) -> str:
    """
    Map a country name or code to an ISO 3166-1 alpha-2 code.

    Known names and aliases are matched case-insensitively, other 2-letter
    values are upper-cased and passed through, anything else becomes GB.
    """
    normalized = (country or '').strip()
    if not normalized:
        return DEFAULT_COUNTRY_CODE

    code = COUNTRY_CODES.get(normalized.lower())
    if code:
        return code

    if len(normalized) == 2:
        return normalized.upper()

    return DEFAULT_COUNTRY_CODE


def derive_company_description(
    company_type: Optional[str],
    company_description: Optional[str],
) -> Optional[str]:
    """Decide which company description, if any, is sent for a company type."""
    if not company_type:
        return None
    if company_type in FIXED_DESCRIPTION_COMPANY_TYPES:
        return FIXED_DESCRIPTION_COMPANY_TYPES[company_type]
    if company_type in DESCRIBED_COMPANY_TYPES:
        return company_description or None
    return None


def _company_name(company: Union[str, Dict[str, Any], None]) -> Optional[str]:
    if isinstance(company, dict):
        return company.get('name')
    return company


def strip_empty_values(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Drop top-level keys whose value is None or an empty string."""
    return {key: value for key, value in payload.items() if value is not None and value != ''}


def build_affiliate_payload(request: AffiliateRequest) -> Dict[str, Any]:
    """
    Build the Tapfiliate creation body from the sign-up form.

    The parent affiliate and the website are deliberately not part of the
    body; both are set through their own endpoints once the affiliate exists.
    Raw onboarding answers (company type, commission type, number of
    properties) are only forwarded as resolved custom fields.
    """
    address = {
        'address': PLACEHOLDER,
        'postal_code': PLACEHOLDER,
        'city': request.city or PLACEHOLDER,
        'country': {
            'code': get_country_iso_code(request.country),
        },
    }

    company = {
        'name': _company_name(request.company) or PLACEHOLDER,
    }

    payload = {
        'firstname': request.first_name,
        'lastname': request.last_name,
        'email': request.email,
        'password': request.password,
        'address': address,
        'company': company,
        'company_description': derive_company_description(
            request.company_type,
            request.company_description,
        ),
    }

    return strip_empty_values(payload)


def build_profile_update(
    request: AffiliateRequest,
    custom_fields: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Build the PATCH body used when finalizing an affiliate.

    The derived description is written inside the company object here,
    unlike the creation body which carries it at the top level.
    """
    description = derive_company_description(request.company_type, request.company_description)
    update: Dict[str, Any] = {}

    if request.address:
        update['address'] = request.address

    if request.company:
        if isinstance(request.company, dict):
            company = dict(request.company)
        else:
            company = {'name': request.company}
        if description:
            company['description'] = description
        update['company'] = company
    elif description:
        update['company'] = {
            'name': PLACEHOLDER,
            'description': description,
        }

    if custom_fields:
        update['custom_fields'] = custom_fields

    return update
