"""
Data Access Layer for the Tapfiliate REST API.

This module wraps the Tapfiliate endpoints used during affiliate onboarding.
Every method returns the raw httpx response so the logic layer decides which
calls are blocking and which are best-effort.
"""

from typing import Any, Dict, Optional, Union

import httpx
from aws_lambda_powertools.metrics import MetricUnit

from affiliate_service.handlers.models.env_vars import DEFAULT_TAPFILIATE_BASE_URL
from affiliate_service.handlers.utils.observability import logger, metrics, tracer

AffiliateId = Union[int, str]

MAX_LOGGED_BODY_LENGTH = 1000


def trim_body(text: str, limit: int = MAX_LOGGED_BODY_LENGTH) -> str:
    """Trim a vendor response body for logging."""
    if len(text) > limit:
        return text[:limit] + '...'
    return text


def mask_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of an outbound payload that is safe to log."""
    masked = dict(payload)
    if masked.get('password'):
        masked['password'] = '***MASKED***'
    return masked


class TapfiliateClient:
    """Thin client for the Tapfiliate affiliate endpoints."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_TAPFILIATE_BASE_URL,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the Tapfiliate client.

        Args:
            api_key: Tapfiliate API key sent as X-Api-Key
            base_url: API base URL including the version segment
            timeout: Per-call timeout in seconds, None waits indefinitely
            transport: Optional httpx transport, used by tests
        """
        if not base_url.endswith('/'):
            base_url = f'{base_url}/'

        self.base_url = base_url
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                'X-Api-Key': api_key,
                'Content-Type': 'application/json',
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> 'TapfiliateClient':
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        logger.debug("Calling Tapfiliate", extra={
            "operation": operation,
            "method": method,
            "endpoint": f"{self.base_url}{path}",
        })

        response = self._client.request(method, path, json=json_body, params=params)

        logger.info("Tapfiliate responded", extra={
            "operation": operation,
            "status_code": response.status_code,
        })
        metrics.add_metric(name="VendorCallCount", unit=MetricUnit.Count, value=1)

        if not response.is_success:
            metrics.add_metric(name="VendorCallFailure", unit=MetricUnit.Count, value=1)
            logger.warning("Tapfiliate returned an error response", extra={
                "operation": operation,
                "status_code": response.status_code,
                "content_type": response.headers.get('content-type'),
                "body": trim_body(response.text),
            })

        return response

    @tracer.capture_method
    def list_custom_fields(self) -> httpx.Response:
        """Fetch the affiliate custom field catalog."""
        return self._request('GET', 'affiliates/custom-fields/', operation='list_custom_fields')

    @tracer.capture_method
    def create_affiliate(self, payload: Dict[str, Any]) -> httpx.Response:
        """Create an affiliate."""
        logger.info("Creating affiliate in Tapfiliate", extra={"payload": mask_payload(payload)})
        return self._request('POST', 'affiliates/', operation='create_affiliate', json_body=payload)

    @tracer.capture_method
    def update_affiliate(self, affiliate_id: AffiliateId, payload: Dict[str, Any]) -> httpx.Response:
        """Partially update an affiliate profile or its custom fields."""
        return self._request(
            'PATCH',
            f'affiliates/{affiliate_id}/',
            operation='update_affiliate',
            json_body=payload,
        )

    @tracer.capture_method
    def set_website_metadata(self, affiliate_id: AffiliateId, website: str) -> httpx.Response:
        """Store the affiliate website as the "website" meta-data key."""
        return self._request(
            'PUT',
            f'affiliates/{affiliate_id}/meta-data/website/',
            operation='set_website_metadata',
            json_body={'value': website},
        )

    @tracer.capture_method
    def set_parent(self, affiliate_id: AffiliateId, parent_id: str) -> httpx.Response:
        """Link an affiliate to the affiliate that referred it (MLM parent)."""
        return self._request(
            'POST',
            f'affiliates/{affiliate_id}/parent/',
            operation='set_parent',
            json_body={'via': parent_id},
        )

    @tracer.capture_method
    def enroll_in_program(self, program_id: str, affiliate_id: AffiliateId) -> httpx.Response:
        """Add an affiliate to a program, pending approval and without a welcome email."""
        return self._request(
            'POST',
            f'programs/{program_id}/affiliates/',
            operation='enroll_in_program',
            json_body={
                'affiliate': {'id': affiliate_id},
                'approved': None,
            },
            params={'send_welcome_email': 'false'},
        )
