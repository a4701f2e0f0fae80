"""
Affiliate Handler - Lambda function for the affiliate sign-up form.

This module implements the handler layer: it answers CORS preflight requests,
rejects anything but POST, enforces the Tapfiliate API key precondition, parses
the form payload and dispatches it to the onboarding service.
"""

import base64
import json
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Type

from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import BaseModel, ValidationError

from affiliate_service.dal.custom_field_cache import CustomFieldCache
from affiliate_service.dal.tapfiliate_client import TapfiliateClient
from affiliate_service.handlers.models.env_vars import AffiliateHandlerEnvVars, get_handler_env_vars
from affiliate_service.handlers.utils.errors import (
    BaseServiceError,
    ConfigurationError,
    ErrorContext,
    RequestBodyError,
    create_api_response,
    create_error_context,
    create_error_response,
)
from affiliate_service.handlers.utils.observability import logger, metrics, tracer
from affiliate_service.logic.onboarding_service import AffiliateOnboardingService
from affiliate_service.models.input import AffiliateMetadata, AffiliateRequest

LEGACY_OPERATION = 'create_and_enroll'

# Shared by every invocation served by this execution environment
field_cache = CustomFieldCache(ttl_seconds=get_handler_env_vars().CUSTOM_FIELDS_CACHE_TTL_SECONDS)


def create_tapfiliate_client(env_vars: AffiliateHandlerEnvVars) -> TapfiliateClient:
    """Create the Tapfiliate client for one invocation."""
    return TapfiliateClient(
        api_key=env_vars.TAPFILIATE_API_KEY,
        base_url=env_vars.TAPFILIATE_BASE_URL,
        timeout=env_vars.TAPFILIATE_TIMEOUT_SECONDS,
    )


def _field_names(*models: Type[BaseModel]) -> FrozenSet[str]:
    names = set()
    for model in models:
        for name, field in model.model_fields.items():
            names.add(name)
            if field.alias:
                names.add(field.alias)
    return frozenset(names)


REQUEST_FIELD_NAMES = _field_names(AffiliateRequest, AffiliateMetadata)


def error_field_path(loc: Sequence[Any]) -> str:
    """Dotted path of a validation error, without pydantic union member tags."""
    parts = [str(part) for part in loc if part in REQUEST_FIELD_NAMES]
    return ".".join(parts) or "body"


def read_body(event: Dict[str, Any]) -> Optional[str]:
    body = event.get('body')
    if body and event.get('isBase64Encoded'):
        return base64.b64decode(body).decode('utf-8')
    return body


@tracer.capture_method
def parse_affiliate_request(body: Optional[str], context: ErrorContext) -> AffiliateRequest:
    """
    Parse and validate the form payload.

    Raises:
        RequestBodyError: If the body is not a JSON object or has invalid field types
    """
    try:
        data = json.loads(body) if body else {}
    except json.JSONDecodeError as e:
        raise RequestBodyError(message="Invalid JSON in request body", context=context) from e

    if not isinstance(data, dict):
        raise RequestBodyError(message="Invalid JSON in request body", context=context)

    try:
        return AffiliateRequest.model_validate(data)
    except ValidationError as e:
        metrics.add_metric(name="ValidationError", unit=MetricUnit.Count, value=1)
        field_errors: List[Dict[str, str]] = []
        for error in e.errors():
            field = error_field_path(error["loc"])
            if all(existing["field"] != field for existing in field_errors):
                field_errors.append({"field": field, "message": error["msg"]})
        raise RequestBodyError(
            message="Request validation failed",
            field_errors=field_errors,
            context=context,
        ) from e


@tracer.capture_method
def process_affiliate_request(event: Dict[str, Any], request_id: str) -> Dict[str, Any]:
    """
    Run one POST request through the onboarding service.

    Args:
        event: API Gateway proxy event
        request_id: Request identifier used in error context

    Returns:
        API Gateway response
    """
    error_context = create_error_context(request_id=request_id, operation="unknown")

    env_vars = get_handler_env_vars()
    if not env_vars.api_key_configured:
        logger.error("TAPFILIATE_API_KEY is not set")
        raise ConfigurationError(context=error_context)

    request = parse_affiliate_request(read_body(event), error_context)

    mode = request.resolved_mode
    error_context.operation = mode.value if mode else LEGACY_OPERATION
    if request.affiliate_id is not None:
        error_context.resource_id = str(request.affiliate_id)

    tracer.put_annotation("mode", error_context.operation)
    logger.append_keys(mode=error_context.operation)
    logger.info("Received affiliate request", extra={
        "mode": error_context.operation,
        "email": request.email,
        "affiliate_id": request.affiliate_id,
        "program": request.program,
    })

    with create_tapfiliate_client(env_vars) as client:
        service = AffiliateOnboardingService(vendor=client, field_cache=field_cache)
        output = service.handle(request, error_context)

    metrics.add_metric(name="RequestSuccess", unit=MetricUnit.Count, value=1)
    return create_api_response(
        status_code=200,
        body=output.model_dump(mode="json"),
    )


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Main Lambda handler function.

    Args:
        event: Lambda event payload (API Gateway REST proxy event)
        context: Lambda context object

    Returns:
        API Gateway response
    """
    metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)

    http_method = (event.get('httpMethod') or '').upper()

    if http_method == 'OPTIONS':
        return create_api_response(status_code=200, body='')

    if http_method != 'POST':
        logger.warning("Rejected request method", extra={"http_method": http_method})
        return create_api_response(status_code=405, body={"error": "Method not allowed"})

    request_id = (event.get('requestContext') or {}).get('requestId') or context.aws_request_id

    try:
        return process_affiliate_request(event, request_id)

    except BaseServiceError as e:
        return create_error_response(e)

    except Exception as e:
        metrics.add_metric(name="RequestError", unit=MetricUnit.Count, value=1)

        logger.exception("Unhandled error in lambda handler", extra={
            "error": str(e),
            "request_id": request_id,
        })

        return create_api_response(
            status_code=500,
            body={
                "error": "Internal server error",
                "message": str(e),
            },
        )
