"""
Handlers package for Lambda function handlers.

This package contains the API endpoint handlers for registration, login
and owner-scoped product management.
"""

from . import auth, products

__all__ = ["auth", "products"]
