"""
Input models for request validation using Pydantic.

This module defines the inbound affiliate sign-up payload posted by the
onboarding form.
"""

from enum import Enum
from typing import Annotated, Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class AffiliateMode(str, Enum):
    """Orchestration sequence requested by the form."""

    CREATE_AFFILIATE_ONLY = 'create_affiliate_only'
    FINALIZE_AFFILIATE = 'finalize_affiliate'
    UPDATE_CUSTOM_FIELDS = 'update_custom_fields'

    @classmethod
    def from_value(cls, value: Optional[str]) -> Optional['AffiliateMode']:
        """Map a raw mode string to a mode, or None for the legacy flow."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class AffiliateMetadata(BaseModel):
    """Optional affiliate meta-data collected by the form."""

    model_config = ConfigDict(extra='allow')

    website: Annotated[Optional[str], Field(
        default=None,
        description='Affiliate website, stored as Tapfiliate meta-data',
        examples=['https://example.com']
    )] = None


class AffiliateRequest(BaseModel):
    """Request model for every onboarding mode.

    Presence of required fields is checked per mode by the logic layer, so
    every field is optional here.
    """

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    mode: Annotated[Optional[str], Field(
        default=None,
        description='Onboarding mode; absent selects the legacy create-and-enroll flow',
        examples=['create_affiliate_only', 'finalize_affiliate', 'update_custom_fields']
    )] = None

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None

    company: Annotated[Optional[Union[str, Dict[str, Any]]], Field(
        default=None,
        description='Company name on creation, or a company object when finalizing'
    )] = None

    address: Annotated[Optional[Dict[str, Any]], Field(
        default=None,
        description='Tapfiliate address object, forwarded as-is when finalizing'
    )] = None

    company_type: Annotated[Optional[str], Field(
        default=None,
        examples=['supply', 'vacation-rental', 'pms']
    )] = None

    company_description: Optional[str] = None

    commission_type: Annotated[Optional[str], Field(
        default=None,
        examples=['I want 10% commission', 'I want 10% discount code', 'Custom']
    )] = None

    # Collected for client-side validation only
    number_of_properties: Optional[Any] = None

    # Checked by the parent link step, never rejected here
    parent_id: Annotated[Optional[Any], Field(
        default=None,
        description='Tapfiliate id of the referring affiliate'
    )] = None

    wants_demo_call: Annotated[Optional[bool], Field(
        default=None,
        alias='wantsDemoCall',
        description='Whether the affiliate asked for a free demo call'
    )] = None

    metadata: Optional[AffiliateMetadata] = None

    program: Annotated[Optional[str], Field(
        default=None,
        description='Currency code or Tapfiliate program id',
        examples=['GBP', 'USD', 'stasher-affiliate-program']
    )] = None

    affiliate_id: Annotated[Optional[Union[StrictInt, str]], Field(
        default=None,
        description='Existing Tapfiliate affiliate id for non-creation modes'
    )] = None

    @property
    def resolved_mode(self) -> Optional[AffiliateMode]:
        """Mode to dispatch on; None selects the legacy flow."""
        return AffiliateMode.from_value(self.mode)

    @property
    def website(self) -> Optional[str]:
        """Website from the nested meta-data, if any."""
        return self.metadata.website if self.metadata else None
