"""
Output models for API responses using Pydantic.

This module defines the success bodies returned by each onboarding mode.
Error bodies are produced by the handler error utilities.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, model_serializer

AffiliateId = Union[int, str]


class CreateAffiliateOnlyOutput(BaseModel):
    """Response model for the create_affiliate_only mode."""

    success: Literal[True] = True
    mode: Literal['create_affiliate_only'] = 'create_affiliate_only'

    affiliate_id: Annotated[AffiliateId, Field(
        description='Tapfiliate id of the created affiliate',
        examples=['jd123', 42]
    )]


class FinalizeAffiliateOutput(BaseModel):
    """Response model for the finalize_affiliate mode."""

    success: Literal[True] = True
    mode: Literal['finalize_affiliate'] = 'finalize_affiliate'
    affiliate_id: AffiliateId

    program: Annotated[Optional[Any], Field(
        default=None,
        description='Enrollment result returned by Tapfiliate'
    )] = None


class UpdateCustomFieldsOutput(BaseModel):
    """Response model for the update_custom_fields mode."""

    success: Literal[True] = True
    mode: Literal['update_custom_fields'] = 'update_custom_fields'
    affiliate_id: AffiliateId

    message: Annotated[Optional[str], Field(
        default=None,
        description='Explanation when nothing was sent to Tapfiliate',
        examples=['No custom fields to update']
    )] = None

    @model_serializer(mode='wrap')
    def _omit_empty_message(self, handler):
        # message only appears when nothing was sent
        data = handler(self)
        if data.get('message') is None:
            data.pop('message', None)
        return data


class CreateAndEnrollOutput(BaseModel):
    """Response model for the legacy create-and-enroll flow."""

    success: Literal[True] = True

    affiliate: Annotated[Dict[str, Any], Field(
        description='Affiliate object returned by Tapfiliate'
    )]

    program: Annotated[Optional[Any], Field(
        default=None,
        description='Enrollment result returned by Tapfiliate'
    )] = None


OnboardingOutput = Union[
    CreateAffiliateOnlyOutput,
    FinalizeAffiliateOutput,
    UpdateCustomFieldsOutput,
    CreateAndEnrollOutput,
]
