"""
Centralized observability utilities for the affiliate onboarding handler.

This module provides configured instances of AWS Lambda Powertools for logging,
tracing, and metrics collection shared by every layer of the service.
"""

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics
from aws_lambda_powertools.tracing import Tracer

# Metrics namespace for onboarding KPIs
METRICS_NAMESPACE = 'AffiliateOnboarding'

# JSON output format, service name can be set by environment variable "POWERTOOLS_SERVICE_NAME"
logger: Logger = Logger()

# Disabled by setting POWERTOOLS_TRACE_DISABLED to "true"
tracer: Tracer = Tracer()

metrics = Metrics(namespace=METRICS_NAMESPACE)
