"""
Service Models Package

This package contains the Pydantic models for the inbound sign-up payload and
the per-mode success responses.
"""

from .input import AffiliateMetadata, AffiliateMode, AffiliateRequest
from .output import (
    CreateAffiliateOnlyOutput,
    CreateAndEnrollOutput,
    FinalizeAffiliateOutput,
    OnboardingOutput,
    UpdateCustomFieldsOutput,
)

__all__ = [
    # Input models
    "AffiliateMetadata",
    "AffiliateMode",
    "AffiliateRequest",

    # Output models
    "CreateAffiliateOnlyOutput",
    "CreateAndEnrollOutput",
    "FinalizeAffiliateOutput",
    "OnboardingOutput",
    "UpdateCustomFieldsOutput",
]
