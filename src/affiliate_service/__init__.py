"""
Affiliate Onboarding Service Module.

This package contains the affiliate sign-up implementation following the
three-layer architecture pattern:

- handlers: API handler and entry point utilities
- logic: Onboarding sequences and payload construction
- dal: Tapfiliate REST client and custom field catalog cache
- models: Request and response schemas
"""

__version__ = "1.0.0"
__description__ = "Tapfiliate affiliate sign-up Lambda function"

from affiliate_service.handlers.utils.observability import logger, metrics, tracer
from affiliate_service.models.input import AffiliateMode, AffiliateRequest

__all__ = [
    "AffiliateMode",
    "AffiliateRequest",
    "logger",
    "tracer",
    "metrics",
]
