"""
Utils package for shared utilities and cross-cutting concerns.

This package contains decorators, logging utilities, response formatters,
exceptions and password hashing used across the application.
"""

from .decorators import (extract_bearer_token, extract_path_params,
                         lambda_handler, require_auth, validate_json_body)
from .logging import (log_error, log_lambda_event, log_lambda_response,
                      setup_logger)
from .responses import (HTTPStatus, conflict_response, error_response,
                        forbidden_response, not_found_response,
                        success_response, unauthorized_response,
                        validation_error_response, validation_errors)
from .security import hash_password, verify_password

__all__ = [
    # Decorators
    "lambda_handler",
    "require_auth",
    "validate_json_body",
    "extract_path_params",
    "extract_bearer_token",
    # Logging
    "setup_logger",
    "log_lambda_event",
    "log_lambda_response",
    "log_error",
    # Responses
    "HTTPStatus",
    "success_response",
    "error_response",
    "validation_error_response",
    "validation_errors",
    "not_found_response",
    "unauthorized_response",
    "forbidden_response",
    "conflict_response",
    # Security
    "hash_password",
    "verify_password",
]
