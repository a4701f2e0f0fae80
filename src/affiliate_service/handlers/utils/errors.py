"""
Error handling utilities for the affiliate onboarding handler.

This module defines the service error taxonomy, the mapping of errors to API
Gateway responses, and error metrics used by the handler and logic layers.
"""

import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from aws_lambda_powertools.metrics import MetricUnit
from pydantic import BaseModel, Field

from affiliate_service.handlers.utils.observability import logger, metrics, tracer

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

GENERIC_VENDOR_FAILURE_MESSAGE = (
    "Something went wrong while creating your affiliate account. Please try again later."
)


class ErrorSeverity(str, Enum):
    """Error severity levels for classification."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    VALIDATION = "VALIDATION"
    CONFIGURATION = "CONFIGURATION"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    INFRASTRUCTURE = "INFRASTRUCTURE"


class ErrorContext(BaseModel):
    """Context information for errors."""

    request_id: str = Field(description="Unique request identifier")
    operation: str = Field(description="Onboarding mode being performed")
    resource_id: Optional[str] = Field(default=None, description="Affiliate identifier")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class BaseServiceError(Exception):
    """Base exception class for service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        vendor_status: Optional[int] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.severity = severity
        self.category = category
        self.vendor_status = vendor_status
        self.context = context
        self.error_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "status_code": self.status_code,
            "vendor_status": self.vendor_status,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.model_dump(mode="json") if self.context else None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


class MissingFieldsError(BaseServiceError):
    """Raised when required request fields are absent or blank."""

    def __init__(self, missing_fields: List[str], context: Optional[ErrorContext] = None):
        super().__init__(
            message=f"Missing required fields: {', '.join(missing_fields)}",
            error_code="MISSING_REQUIRED_FIELDS",
            status_code=400,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            context=context,
        )
        self.missing_fields = missing_fields


class InvalidProgramError(BaseServiceError):
    """Raised when the requested program cannot be resolved."""

    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__(
            message="Missing or invalid program selection",
            error_code="INVALID_PROGRAM",
            status_code=400,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            context=context,
        )


class RequestBodyError(BaseServiceError):
    """Raised when the request body is not a JSON object or fails validation."""

    def __init__(
        self,
        message: str,
        field_errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            error_code="INVALID_REQUEST_BODY",
            status_code=400,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            context=context,
        )
        self.field_errors = field_errors or []


class ConfigurationError(BaseServiceError):
    """Raised when the function is deployed without its Tapfiliate API key."""

    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__(
            message="Server configuration error: API key not set.",
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            context=context,
        )


class VendorRequestError(BaseServiceError):
    """Raised when Tapfiliate rejects a blocking call."""

    def __init__(
        self,
        message: str,
        status_code: int,
        vendor_status: Optional[int] = None,
        error_code: str = "VENDOR_REQUEST_FAILED",
        category: ErrorCategory = ErrorCategory.EXTERNAL_SERVICE,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status_code,
            severity=ErrorSeverity.HIGH,
            category=category,
            vendor_status=vendor_status,
            context=context,
        )


class InvalidVendorResponseError(BaseServiceError):
    """Raised when Tapfiliate reports success without an affiliate id."""

    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__(
            message="Invalid response from Tapfiliate API",
            error_code="INVALID_VENDOR_RESPONSE",
            status_code=500,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.EXTERNAL_SERVICE,
            context=context,
        )


class EnrollmentError(VendorRequestError):
    """Raised when an existing affiliate could not be enrolled in its program."""

    def __init__(
        self,
        status_code: int,
        vendor_status: Optional[int] = None,
        message: str = "Affiliate created but failed to enroll in program.",
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            vendor_status=vendor_status,
            error_code="ENROLLMENT_FAILED",
            category=ErrorCategory.PARTIAL_FAILURE,
            context=context,
        )


class CustomFieldUpdateError(VendorRequestError):
    """Raised when the commission type custom field could not be updated."""

    def __init__(
        self,
        status_code: int,
        vendor_status: Optional[int] = None,
        message: str = "Failed to update commission type",
        detail: Optional[str] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            vendor_status=vendor_status,
            error_code="CUSTOM_FIELD_UPDATE_FAILED",
            context=context,
        )
        self.detail = detail


def create_error_context(
    request_id: str,
    operation: str,
    resource_id: Optional[str] = None,
) -> ErrorContext:
    """Create an error context for consistent error handling."""
    return ErrorContext(
        request_id=request_id,
        operation=operation,
        resource_id=resource_id,
    )


@tracer.capture_method
def log_error_metrics(error: BaseServiceError) -> None:
    """Log error metrics for monitoring and alerting."""

    metrics.add_metric(name="ErrorCount", unit=MetricUnit.Count, value=1)
    metrics.add_metric(name=f"Error{error.category.value}Count", unit=MetricUnit.Count, value=1)

    tracer.put_annotation("error_code", error.error_code)
    tracer.put_annotation("error_category", error.category.value)
    tracer.put_metadata("error_details", error.to_dict())

    logger.error(
        "Service error occurred",
        extra={
            "error_id": error.error_id,
            "error_code": error.error_code,
            "error_severity": error.severity.value,
            "error_category": error.category.value,
            "error_message": error.message,
            "status_code": error.status_code,
            "vendor_status": error.vendor_status,
            "context": error.context.model_dump(mode="json") if error.context else None,
        }
    )


def format_error_response(error: BaseServiceError) -> Dict[str, Any]:
    """Format error for API response."""

    response: Dict[str, Any] = {
        "error": error.message,
        "code": error.error_code,
    }

    if error.vendor_status is not None:
        response["status"] = error.vendor_status

    if isinstance(error, RequestBodyError) and error.field_errors:
        response["field_errors"] = error.field_errors

    if isinstance(error, CustomFieldUpdateError) and error.detail:
        response["message"] = error.detail

    return response


def create_api_response(
    status_code: int,
    body: Any,
) -> Dict[str, Any]:
    """Create standardized API Gateway response with CORS headers."""

    headers = {
        **CORS_HEADERS,
        "Content-Type": "application/json",
    }

    if isinstance(body, str):
        serialized = body
    else:
        serialized = json.dumps(body, default=str)

    return {
        "statusCode": status_code,
        "headers": headers,
        "body": serialized,
    }


def create_error_response(error: BaseServiceError) -> Dict[str, Any]:
    """Log a service error and convert it to an API Gateway response."""
    log_error_metrics(error)
    return create_api_response(
        status_code=error.status_code,
        body=format_error_response(error),
    )
