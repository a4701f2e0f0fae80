"""
Create Affiliate Lambda Function - Entry point for the affiliate sign-up API.

This module serves as the Lambda function entry point that delegates to the
affiliate handler using the three-layer architecture pattern.
"""

import os
import sys
from typing import Any, Dict

# Add the service module to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from aws_lambda_powertools.utilities.typing import LambdaContext
from affiliate_service.handlers.affiliate_handler import lambda_handler as affiliate_handler


def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda function entry point for the affiliate sign-up API.

    Args:
        event: Lambda event payload (API Gateway event)
        context: Lambda context object

    Returns:
        API Gateway response dictionary
    """
    return affiliate_handler(event, context)
