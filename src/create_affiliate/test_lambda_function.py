import json
import os

os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "create-affiliate")
os.environ.setdefault("LAMBDA_ENV_MODELER_DISABLE_CACHE", "true")

import pytest
from unittest.mock import Mock, patch
from lambda_function import lambda_handler


@pytest.fixture
def lambda_context():
    """Fixture providing a mock Lambda context."""
    context = Mock()
    context.aws_request_id = "test-lambda-context-id"
    context.function_name = "create-affiliate"
    context.function_version = "$LATEST"
    context.invoked_function_arn = (
        "arn:aws:lambda:us-east-1:123456789012:function:create-affiliate"
    )
    context.memory_limit_in_mb = 128
    context.get_remaining_time_in_millis.return_value = 30000
    return context


@pytest.fixture
def sample_api_gateway_event():
    """Fixture providing a sample API Gateway event."""
    return {
        "resource": "/affiliates",
        "path": "/affiliates",
        "httpMethod": "POST",
        "headers": {"Content-Type": "application/json", "User-Agent": "pytest/test-agent"},
        "requestContext": {
            "requestId": "test-request-12345",
            "stage": "prod",
            "resourcePath": "/affiliates",
            "httpMethod": "POST",
        },
        "body": json.dumps({"mode": "create_affiliate_only", "first_name": "Jane"}),
        "isBase64Encoded": False,
    }


class TestLambdaHandler:
    """Test cases for the function entry point."""

    def test_preflight(self, sample_api_gateway_event, lambda_context):
        """Test that the entry point answers CORS preflight requests."""
        sample_api_gateway_event["httpMethod"] = "OPTIONS"

        response = lambda_handler(sample_api_gateway_event, lambda_context)

        assert response["statusCode"] == 200
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_delegates_to_affiliate_handler(self, sample_api_gateway_event, lambda_context):
        """Test that the entry point returns the handler response unchanged."""
        expected = {"statusCode": 200, "headers": {}, "body": "{}"}

        with patch("lambda_function.affiliate_handler", return_value=expected) as handler:
            response = lambda_handler(sample_api_gateway_event, lambda_context)

        handler.assert_called_once_with(sample_api_gateway_event, lambda_context)
        assert response is expected

    def test_validation_error(self, sample_api_gateway_event, lambda_context):
        """Test that missing fields are rejected with the configured API key."""
        with patch.dict("os.environ", {"TAPFILIATE_API_KEY": "test-api-key"}):
            response = lambda_handler(sample_api_gateway_event, lambda_context)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["error"] == "Missing required fields: last_name, email, password"


if __name__ == "__main__":
    pytest.main([__file__])
