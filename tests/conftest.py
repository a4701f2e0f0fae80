"""
Pytest configuration and shared fixtures for the affiliate onboarding function.

This module provides common test fixtures and configuration used across
unit, integration, and end-to-end tests.
"""

import os

# Must be set before any service module is imported
os.environ.update({
    "AWS_DEFAULT_REGION": "us-east-1",
    "TAPFILIATE_API_KEY": "test-api-key",
    "POWERTOOLS_SERVICE_NAME": "test-affiliate-onboarding",
    "POWERTOOLS_METRICS_NAMESPACE": "TestAffiliateOnboarding",
    "LOG_LEVEL": "DEBUG",
    "POWERTOOLS_TRACE_DISABLED": "true",  # Disable X-Ray in tests
    "LAMBDA_ENV_MODELER_DISABLE_CACHE": "true",
})

import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from unittest.mock import Mock

import httpx
import pytest

from affiliate_service.dal.custom_field_cache import CustomFieldCache
from affiliate_service.dal.tapfiliate_client import TapfiliateClient
from affiliate_service.handlers import affiliate_handler
from affiliate_service.handlers.utils.errors import ErrorContext, create_error_context
from affiliate_service.handlers.utils.observability import metrics

API_PREFIX = "/1.6/"

CUSTOM_FIELD_CATALOG = [
    {"id": 11, "key": "company_type", "title": "Company type"},
    {"id": 12, "key": "commission_type", "title": "Commission type"},
    {"id": 13, "key": "free_demo_call", "title": "Free DEMO call?"},
]

CREATED_AFFILIATE = {
    "id": "janedoe",
    "firstname": "Jane",
    "lastname": "Doe",
    "email": "jane@example.com",
}

ENROLLMENT_RESULT = {
    "id": 7781,
    "approved": None,
    "affiliate": {"id": "janedoe"},
}


class FakeTapfiliate:
    """Recording stand-in for the Tapfiliate REST API.

    Routes answer with sensible defaults; individual routes can be overridden
    with ``respond`` or made to raise a transport error with ``fail``.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.catalog: Any = list(CUSTOM_FIELD_CATALOG)
        self._responses: Dict[Tuple[str, str], Callable[[], httpx.Response]] = {}
        self._failures: Dict[Tuple[str, str], str] = {}
        self.transport = httpx.MockTransport(self.handle)

    @staticmethod
    def _key(method: str, path: str) -> Tuple[str, str]:
        return method.upper(), f"{API_PREFIX}{path}"

    def respond(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        json_body: Any = None,
        html: Optional[str] = None,
        text: Optional[str] = None,
    ) -> None:
        """Override the response of one route."""
        def build() -> httpx.Response:
            if html is not None:
                return httpx.Response(status_code, html=html)
            if text is not None:
                return httpx.Response(status_code, text=text)
            return httpx.Response(status_code, json=json_body)

        self._responses[self._key(method, path)] = build

    def fail(self, method: str, path: str, message: str = "connection refused") -> None:
        """Make one route raise a transport error."""
        self._failures[self._key(method, path)] = message

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)

        if key in self._failures:
            raise httpx.ConnectError(self._failures[key], request=request)

        if key in self._responses:
            return self._responses[key]()

        return self._default_response(request)

    def _default_response(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "GET" and path.endswith("/custom-fields/"):
            return httpx.Response(200, json=self.catalog)
        if request.method == "POST" and path == f"{API_PREFIX}affiliates/":
            return httpx.Response(201, json=CREATED_AFFILIATE)
        if request.method == "POST" and path.startswith(f"{API_PREFIX}programs/"):
            return httpx.Response(200, json=ENROLLMENT_RESULT)
        return httpx.Response(200, json={})

    def calls(self, method: Optional[str] = None, path: Optional[str] = None) -> List[httpx.Request]:
        """Recorded requests, optionally filtered by method and path suffix."""
        return [
            request for request in self.requests
            if (method is None or request.method == method.upper())
            and (path is None or request.url.path == f"{API_PREFIX}{path}")
        ]

    def json_of(self, request: httpx.Request) -> Any:
        return json.loads(request.content)

    def client(self) -> TapfiliateClient:
        return TapfiliateClient(api_key="test-api-key", transport=self.transport)


@pytest.fixture
def tapfiliate() -> FakeTapfiliate:
    """Fake Tapfiliate API recording every request."""
    return FakeTapfiliate()


@pytest.fixture
def tapfiliate_client(tapfiliate: FakeTapfiliate):
    """Tapfiliate client wired to the fake API."""
    with tapfiliate.client() as client:
        yield client


@pytest.fixture
def handler_vendor(monkeypatch, tapfiliate: FakeTapfiliate) -> FakeTapfiliate:
    """Route the handler's Tapfiliate client to the fake API."""

    def create_client(env_vars):
        return TapfiliateClient(
            api_key=env_vars.TAPFILIATE_API_KEY,
            base_url=env_vars.TAPFILIATE_BASE_URL,
            transport=tapfiliate.transport,
        )

    monkeypatch.setattr(affiliate_handler, "create_tapfiliate_client", create_client)
    return tapfiliate


@pytest.fixture
def field_cache() -> CustomFieldCache:
    """Fresh custom field cache without TTL."""
    return CustomFieldCache()


@pytest.fixture
def error_context() -> ErrorContext:
    return create_error_context(request_id="test-request-id-123", operation="test")


@pytest.fixture
def api_gateway_event() -> Callable[..., Dict[str, Any]]:
    """Factory for API Gateway REST proxy events."""

    def make_event(
        body: Union[Dict[str, Any], str, None] = None,
        method: str = "POST",
    ) -> Dict[str, Any]:
        if isinstance(body, dict):
            body = json.dumps(body)
        return {
            "httpMethod": method,
            "path": "/affiliates",
            "headers": {
                "Content-Type": "application/json",
                "Origin": "https://www.example.com",
            },
            "body": body,
            "requestContext": {
                "requestId": "test-request-id-123",
                "accountId": "123456789012",
                "stage": "test",
                "httpMethod": method,
                "path": "/affiliates",
                "identity": {
                    "sourceIp": "127.0.0.1",
                    "userAgent": "test-agent/1.0",
                },
            },
            "pathParameters": None,
            "queryStringParameters": None,
            "isBase64Encoded": False,
        }

    return make_event


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context for testing."""
    context = Mock()
    context.function_name = "test-create-affiliate"
    context.function_version = "1"
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-create-affiliate"
    context.memory_limit_in_mb = "512"
    context.get_remaining_time_in_millis.return_value = 30000
    context.aws_request_id = "test-lambda-request-id"
    context.log_group_name = "/aws/lambda/test-create-affiliate"
    context.log_stream_name = "2024/01/01/[$LATEST]test123"
    return context


@pytest.fixture
def signup_form() -> Dict[str, Any]:
    """Complete legacy sign-up form payload."""
    return {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "password": "s3cret-Passw0rd",
        "city": "London",
        "country": "United Kingdom",
        "company": "Doe Holidays",
        "company_type": "vacation-rental",
        "commission_type": "I want 10% commission",
        "number_of_properties": "5-10",
        "program": "GBP",
    }


# Integration test fixtures
@pytest.fixture
def integration_client():
    """HTTP client for the deployed endpoint."""
    base_url = os.environ.get("API_BASE_URL", "http://localhost:3000")

    with httpx.Client(base_url=base_url, timeout=30.0) as client:
        yield client


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "e2e" in str(item.fspath):
            item.add_marker(pytest.mark.e2e)


@pytest.fixture(autouse=True)
def reset_shared_state():
    """Reset module level state shared between invocations."""
    affiliate_handler.field_cache.clear()
    metrics.clear_metrics()
    yield
    affiliate_handler.field_cache.clear()
    metrics.clear_metrics()
