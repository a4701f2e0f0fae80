"""
Affiliate Onboarding - Source Package

This package contains the serverless function that signs affiliates up with
Tapfiliate from the public onboarding form.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
]
