"""
Business Logic Layer Module.

This module contains the onboarding sequences run against Tapfiliate and the
pure helpers they are built from: required field checks, program and parent
id validation, payload construction and custom field resolution.
"""

from affiliate_service.logic.onboarding_service import AffiliateOnboardingService

__all__ = [
    "AffiliateOnboardingService",
]
