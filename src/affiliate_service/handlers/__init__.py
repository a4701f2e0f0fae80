"""
AWS Lambda Handlers Module.

The handler layer owns request and response handling: the HTTP method gate,
CORS preflight, configuration checks, body parsing and the mapping of service
errors to API Gateway responses. Onboarding decisions live in the logic layer.
"""

from affiliate_service.handlers.utils.observability import logger, metrics, tracer

__all__ = [
    "logger",
    "tracer",
    "metrics",
]
