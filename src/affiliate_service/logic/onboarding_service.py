"""
Business Logic Layer for affiliate onboarding.

This module composes the Tapfiliate calls for each onboarding mode. Only the
affiliate creation, the program enrollment and the explicit custom field
update are blocking; website meta-data, profile updates and parent links are
best-effort and never change the response.
"""

from typing import Any, Callable, Dict, Iterable, Optional, Union

import httpx
from aws_lambda_powertools.metrics import MetricUnit

from affiliate_service.dal import AffiliateVendor
from affiliate_service.dal.custom_field_cache import CustomFieldCache, FieldMap, fetch_field_map
from affiliate_service.dal.tapfiliate_client import trim_body
from affiliate_service.handlers.utils.errors import (
    GENERIC_VENDOR_FAILURE_MESSAGE,
    CustomFieldUpdateError,
    EnrollmentError,
    ErrorContext,
    InvalidProgramError,
    InvalidVendorResponseError,
    MissingFieldsError,
    VendorRequestError,
)
from affiliate_service.handlers.utils.observability import logger, metrics, tracer
from affiliate_service.logic.custom_fields import CustomFieldResolver
from affiliate_service.logic.payload_builder import build_affiliate_payload, build_profile_update
from affiliate_service.logic.validation import (
    AFFILIATE_ID_REQUIRED_FIELDS,
    CREATE_ONLY_REQUIRED_FIELDS,
    LEGACY_REQUIRED_FIELDS,
    find_missing_fields,
    resolve_program_id,
    validate_parent_id,
)
from affiliate_service.models.input import AffiliateMode, AffiliateRequest
from affiliate_service.models.output import (
    CreateAffiliateOnlyOutput,
    CreateAndEnrollOutput,
    FinalizeAffiliateOutput,
    OnboardingOutput,
    UpdateCustomFieldsOutput,
)

AffiliateId = Union[int, str]

CREATE_AFFILIATE_FAILED_MESSAGE = 'Failed to create affiliate'
NO_CUSTOM_FIELDS_MESSAGE = 'No custom fields to update'


def is_html_response(response: httpx.Response) -> bool:
    return 'text/html' in response.headers.get('content-type', '')


def _json_or_none(response: httpx.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return None


def creation_error_from_response(response: httpx.Response) -> VendorRequestError:
    """
    Convert a rejected affiliate creation into a service error.

    HTML error pages become a generic 500. JSON bodies contribute their
    ``errors`` messages or ``message``; unparseable bodies get the generic
    retry message. The vendor status is forwarded otherwise.
    """
    if is_html_response(response):
        logger.error("Tapfiliate returned an HTML error page instead of JSON")
        return VendorRequestError(
            message=GENERIC_VENDOR_FAILURE_MESSAGE,
            status_code=500,
            vendor_status=response.status_code,
        )

    message = CREATE_AFFILIATE_FAILED_MESSAGE
    try:
        body = response.json()
    except ValueError:
        message = GENERIC_VENDOR_FAILURE_MESSAGE
    else:
        if isinstance(body, dict):
            errors = body.get('errors')
            if isinstance(errors, list) and errors:
                message = ', '.join(
                    str(error.get('message') or error) if isinstance(error, dict) else str(error)
                    for error in errors
                )
            elif body.get('message'):
                message = str(body['message'])

    return VendorRequestError(
        message=message,
        status_code=response.status_code,
        vendor_status=response.status_code,
    )


def enrollment_error_from_response(response: httpx.Response) -> EnrollmentError:
    """Convert a rejected enrollment into a partial-failure error."""
    if is_html_response(response):
        logger.error("Tapfiliate returned an HTML error page instead of JSON")
        return EnrollmentError(
            status_code=500,
            vendor_status=response.status_code,
            message=GENERIC_VENDOR_FAILURE_MESSAGE,
        )

    return EnrollmentError(
        status_code=response.status_code or 500,
        vendor_status=response.status_code,
    )


class AffiliateOnboardingService:
    """Business logic service for affiliate onboarding."""

    def __init__(self, vendor: AffiliateVendor, field_cache: CustomFieldCache):
        """
        Initialize onboarding service.

        Args:
            vendor: Tapfiliate client (or any object with the same interface)
            field_cache: Shared custom field catalog cache
        """
        self.vendor = vendor
        self.field_cache = field_cache

    @tracer.capture_method
    def handle(self, request: AffiliateRequest, context: ErrorContext) -> OnboardingOutput:
        """Run the orchestration sequence selected by the request mode."""
        mode = request.resolved_mode
        if request.mode and mode is None:
            logger.warning("Unknown mode, using legacy flow", extra={"mode": request.mode})

        if mode is AffiliateMode.CREATE_AFFILIATE_ONLY:
            return self.create_affiliate_only(request, context)
        if mode is AffiliateMode.FINALIZE_AFFILIATE:
            return self.finalize_affiliate(request, context)
        if mode is AffiliateMode.UPDATE_CUSTOM_FIELDS:
            return self.update_custom_fields(request, context)
        return self.create_and_enroll(request, context)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    @tracer.capture_method
    def create_affiliate_only(
        self,
        request: AffiliateRequest,
        context: ErrorContext,
    ) -> CreateAffiliateOnlyOutput:
        """Create the affiliate without enrolling it in a program."""
        self._require_fields(request, CREATE_ONLY_REQUIRED_FIELDS, context)

        payload = build_affiliate_payload(request)
        custom_fields = self._resolver().resolve(request)
        if custom_fields:
            payload['custom_fields'] = custom_fields

        affiliate = self._create_affiliate(payload, context)
        affiliate_id = affiliate['id']

        self._link_parent(affiliate_id, request.parent_id)

        return CreateAffiliateOnlyOutput(affiliate_id=affiliate_id)

    @tracer.capture_method
    def finalize_affiliate(
        self,
        request: AffiliateRequest,
        context: ErrorContext,
    ) -> FinalizeAffiliateOutput:
        """Complete the profile of an existing affiliate and enroll it."""
        self._require_fields(request, AFFILIATE_ID_REQUIRED_FIELDS, context)
        program_id = self._require_program(request, context)
        affiliate_id = request.affiliate_id
        tracer.put_annotation("affiliate_id", str(affiliate_id))

        custom_fields = self._resolver().resolve(request, include_company_type=False)
        update = build_profile_update(request, custom_fields)
        if update:
            logger.info("Updating affiliate with complete info", extra={"affiliate_id": affiliate_id})
            self._best_effort('update_affiliate', self.vendor.update_affiliate, affiliate_id, update)

        self._set_website(affiliate_id, request.website)

        program_result = self._enroll(program_id, affiliate_id, context)

        self._link_parent(affiliate_id, request.parent_id)

        return FinalizeAffiliateOutput(affiliate_id=affiliate_id, program=program_result)

    @tracer.capture_method
    def update_custom_fields(
        self,
        request: AffiliateRequest,
        context: ErrorContext,
    ) -> UpdateCustomFieldsOutput:
        """Update the commission type custom field of an existing affiliate."""
        self._require_fields(request, AFFILIATE_ID_REQUIRED_FIELDS, context)
        affiliate_id = request.affiliate_id

        if not request.commission_type:
            logger.info("No commission_type provided, nothing to update", extra={"affiliate_id": affiliate_id})
            return UpdateCustomFieldsOutput(affiliate_id=affiliate_id, message=NO_CUSTOM_FIELDS_MESSAGE)

        custom_fields = self._resolver().resolve(
            request,
            include_company_type=False,
            include_demo_call=False,
        )
        if not custom_fields:
            return UpdateCustomFieldsOutput(affiliate_id=affiliate_id, message=NO_CUSTOM_FIELDS_MESSAGE)

        try:
            response = self.vendor.update_affiliate(affiliate_id, {'custom_fields': custom_fields})
        except httpx.HTTPError as e:
            logger.exception("Error updating custom fields", extra={"affiliate_id": affiliate_id})
            raise CustomFieldUpdateError(
                status_code=500,
                message='Internal server error while updating custom fields',
                detail=str(e),
                context=context,
            ) from e

        if not response.is_success:
            raise CustomFieldUpdateError(
                status_code=response.status_code,
                vendor_status=response.status_code,
                context=context,
            )

        logger.info("Custom fields updated", extra={"affiliate_id": affiliate_id})
        return UpdateCustomFieldsOutput(affiliate_id=affiliate_id)

    @tracer.capture_method
    def create_and_enroll(
        self,
        request: AffiliateRequest,
        context: ErrorContext,
    ) -> CreateAndEnrollOutput:
        """Legacy flow: create the affiliate and enroll it in one request."""
        program_id = self._require_program(request, context)
        self._require_fields(request, LEGACY_REQUIRED_FIELDS, context)

        payload = build_affiliate_payload(request)
        custom_fields = self._resolver().resolve(request)
        if custom_fields:
            payload['custom_fields'] = custom_fields

        affiliate = self._create_affiliate(payload, context)
        affiliate_id = affiliate['id']

        self._set_website(affiliate_id, request.website)

        program_result = self._enroll(program_id, affiliate_id, context)

        self._link_parent(affiliate_id, request.parent_id)

        return CreateAndEnrollOutput(affiliate=affiliate, program=program_result)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _require_fields(
        self,
        request: AffiliateRequest,
        required_fields: Iterable[str],
        context: ErrorContext,
    ) -> None:
        missing = find_missing_fields(request.model_dump(), required_fields)
        if missing:
            raise MissingFieldsError(missing, context=context)

    def _require_program(self, request: AffiliateRequest, context: ErrorContext) -> str:
        program_id = resolve_program_id(request.program)
        if not program_id:
            raise InvalidProgramError(context=context)
        return program_id

    def _field_map(self) -> Optional[FieldMap]:
        return self.field_cache.get_or_refresh(lambda: fetch_field_map(self.vendor.list_custom_fields))

    def _resolver(self) -> CustomFieldResolver:
        return CustomFieldResolver(self._field_map())

    def _create_affiliate(self, payload: Dict[str, Any], context: ErrorContext) -> Dict[str, Any]:
        response = self.vendor.create_affiliate(payload)
        if not response.is_success:
            error = creation_error_from_response(response)
            error.context = context
            raise error

        affiliate = _json_or_none(response)
        if not isinstance(affiliate, dict) or not affiliate.get('id'):
            raise InvalidVendorResponseError(context=context)

        logger.info("Affiliate created", extra={"affiliate_id": affiliate['id']})
        tracer.put_annotation("affiliate_id", str(affiliate['id']))
        metrics.add_metric(name="AffiliateCreated", unit=MetricUnit.Count, value=1)
        return affiliate

    def _enroll(
        self,
        program_id: str,
        affiliate_id: AffiliateId,
        context: ErrorContext,
    ) -> Optional[Any]:
        logger.info("Enrolling affiliate in program", extra={
            "program_id": program_id,
            "affiliate_id": affiliate_id,
        })
        response = self.vendor.enroll_in_program(program_id, affiliate_id)
        if not response.is_success:
            logger.error("Failed to enroll affiliate in program", extra={
                "program_id": program_id,
                "affiliate_id": affiliate_id,
                "body": trim_body(response.text),
            })
            metrics.add_metric(name="EnrollmentFailed", unit=MetricUnit.Count, value=1)
            error = enrollment_error_from_response(response)
            error.context = context
            raise error

        metrics.add_metric(name="AffiliateEnrolled", unit=MetricUnit.Count, value=1)
        return _json_or_none(response)

    def _set_website(self, affiliate_id: AffiliateId, website: Optional[str]) -> None:
        if not website:
            return
        logger.info("Setting affiliate website meta data", extra={"affiliate_id": affiliate_id})
        self._best_effort('set_website_metadata', self.vendor.set_website_metadata, affiliate_id, website)

    def _link_parent(self, affiliate_id: AffiliateId, raw_parent_id: Any) -> None:
        parent_id = validate_parent_id(raw_parent_id)
        if parent_id is None:
            if raw_parent_id:
                logger.info("Skipping parent link, invalid parent_id", extra={"parent_id": raw_parent_id})
            return

        logger.info("Linking affiliate to parent", extra={
            "affiliate_id": affiliate_id,
            "parent_id": parent_id,
        })
        response = self._best_effort('set_parent', self.vendor.set_parent, affiliate_id, parent_id)
        if response is not None and response.is_success:
            metrics.add_metric(name="ParentLinked", unit=MetricUnit.Count, value=1)

    def _best_effort(
        self,
        operation: str,
        call: Callable[..., httpx.Response],
        *args: Any,
    ) -> Optional[httpx.Response]:
        """Run a non-essential vendor call, logging instead of raising on failure."""
        try:
            response = call(*args)
        except httpx.HTTPError as e:
            logger.exception("Best-effort Tapfiliate call raised", extra={
                "operation": operation,
                "error": str(e),
            })
            metrics.add_metric(name="BestEffortCallFailed", unit=MetricUnit.Count, value=1)
            return None

        if not response.is_success:
            logger.error("Best-effort Tapfiliate call failed", extra={
                "operation": operation,
                "status_code": response.status_code,
                "body": trim_body(response.text),
            })
            metrics.add_metric(name="BestEffortCallFailed", unit=MetricUnit.Count, value=1)

        return response
