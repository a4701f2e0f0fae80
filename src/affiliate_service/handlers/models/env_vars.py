"""
Environment variable models for type-safe configuration.

This module defines the Pydantic model for the environment variables read by the
affiliate onboarding handler.
"""

from typing import Annotated, Optional

from aws_lambda_env_modeler import get_environment_variables
from pydantic import BaseModel, Field

DEFAULT_TAPFILIATE_BASE_URL = 'https://api.tapfiliate.com/1.6/'


class AffiliateHandlerEnvVars(BaseModel):
    """Environment variables for the affiliate onboarding handler."""

    # Tapfiliate API key; there is no fallback value
    TAPFILIATE_API_KEY: Annotated[Optional[str], Field(
        default=None,
        description='API key sent to Tapfiliate in the X-Api-Key header'
    )] = None

    TAPFILIATE_BASE_URL: Annotated[str, Field(
        default=DEFAULT_TAPFILIATE_BASE_URL,
        description='Base URL of the Tapfiliate REST API, including the version segment',
        min_length=1
    )] = DEFAULT_TAPFILIATE_BASE_URL

    # Unset means outbound calls wait until the Lambda timeout
    TAPFILIATE_TIMEOUT_SECONDS: Annotated[Optional[float], Field(
        default=None,
        description='Timeout in seconds for each Tapfiliate call',
        gt=0
    )] = None

    CUSTOM_FIELDS_CACHE_TTL_SECONDS: Annotated[int, Field(
        default=0,
        description='How long the fetched custom field catalog stays valid (0 disables caching)',
        ge=0,
        le=86400
    )] = 0

    # Service name for observability
    POWERTOOLS_SERVICE_NAME: Annotated[str, Field(
        default='affiliate-onboarding',
        description='Service name for AWS Powertools'
    )] = 'affiliate-onboarding'

    LOG_LEVEL: Annotated[str, Field(
        default='INFO',
        description='Log level for application logging',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$'
    )] = 'INFO'

    @property
    def api_key_configured(self) -> bool:
        """Check if a non-blank Tapfiliate API key is present."""
        return bool(self.TAPFILIATE_API_KEY and self.TAPFILIATE_API_KEY.strip())


def get_handler_env_vars() -> AffiliateHandlerEnvVars:
    """
    Get typed environment variables for the handler.

    Returns:
        Validated environment variables model instance
    """
    return get_environment_variables(model=AffiliateHandlerEnvVars)
