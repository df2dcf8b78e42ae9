"""
Decorators for Lambda function handlers.

This module provides decorators that add consistent logging, error handling,
bearer-token authentication and request parsing to Lambda functions.
"""

import base64
import binascii
import json
import time
from functools import wraps
from typing import Any, Callable, Dict, Optional

from .exceptions import TokenError
from .logging import log_error, log_lambda_event, log_lambda_response, setup_logger
from .responses import (HTTPStatus, error_response, forbidden_response,
                        unauthorized_response, validation_error_response)


def lambda_handler(
    logger_name: Optional[str] = None,
    log_event: bool = True,
    log_response: bool = True,
    structured_logging: bool = True,
) -> Callable:
    """
    Decorator for Lambda function handlers that provides:
    - Consistent logging setup
    - Automatic event/response logging
    - Error handling and response formatting
    - Execution time tracking

    Args:
        logger_name: Logger name (defaults to function module name)
        log_event: Whether to log incoming events
        log_response: Whether to log responses
        structured_logging: Whether to use structured JSON logging

    Returns:
        Decorated function
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
            logger = setup_logger(
                logger_name or func.__module__, structured=structured_logging
            )

            start_time = time.time()

            try:
                if log_event:
                    log_lambda_event(logger, event, context)

                response = func(event, context)

                if not isinstance(response, dict) or "statusCode" not in response:
                    logger.warning("Handler returned invalid response format")
                    response = error_response(
                        "Internal server error", HTTPStatus.INTERNAL_SERVER_ERROR
                    )

                if log_response:
                    execution_time = (time.time() - start_time) * 1000
                    log_lambda_response(logger, response, execution_time)

                return response

            except Exception as e:
                execution_time = (time.time() - start_time) * 1000

                log_error(
                    logger,
                    e,
                    {
                        "function_name": getattr(context, "function_name", "unknown"),
                        "request_id": getattr(context, "aws_request_id", "unknown"),
                        "execution_time_ms": execution_time,
                        "event_path": event.get("path") or event.get("rawPath"),
                        "event_method": event.get("httpMethod")
                        or event.get("requestContext", {})
                        .get("http", {})
                        .get("method"),
                    },
                )

                # Never leak the exception text to the caller
                return error_response(
                    "Internal server error", HTTPStatus.INTERNAL_SERVER_ERROR
                )

        return wrapper

    return decorator


def extract_bearer_token(event: Dict[str, Any]) -> Optional[str]:
    """
    Pull the token out of an ``Authorization: Bearer <token>`` header.

    Returns:
        The token, or None when the header is absent or not a bearer header
    """
    headers = event.get("headers") or {}
    authorization = headers.get("Authorization") or headers.get("authorization")
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def require_auth(func: Callable) -> Callable:
    """
    Decorator that ensures the request carries a valid session token.

    A missing token gives 401; a token that fails verification, for any
    reason, gives 403. On success the verified identity is placed in
    ``event["auth"]["email"]``.

    Args:
        func: Function to decorate

    Returns:
        Decorated function
    """

    @wraps(func)
    def wrapper(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
        from services.runtime import get_token_service

        logger = setup_logger(func.__module__)

        token = extract_bearer_token(event)
        if not token:
            logger.info("Authorization token missing")
            return unauthorized_response("Authorization token is required")

        try:
            email = get_token_service().verify(token)
        except TokenError as e:
            logger.info(
                "Authorization token rejected", extra={"reason": type(e).__name__}
            )
            return forbidden_response("Invalid or expired token")

        event["auth"] = {"email": email}

        return func(event, context)

    return wrapper


def validate_json_body(required_fields: Optional[list] = None) -> Callable:
    """
    Decorator that validates and parses a JSON object request body.

    Args:
        required_fields: List of required field names

    Returns:
        Decorated function
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
            body_str = event.get("body") or "{}"

            try:
                if event.get("isBase64Encoded"):
                    body_str = base64.b64decode(body_str).decode("utf-8")
                body = json.loads(body_str)
            except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError):
                return validation_error_response("Invalid JSON in request body")

            if not isinstance(body, dict):
                return validation_error_response("Request body must be a JSON object")

            event["json_body"] = body

            if required_fields:
                missing_fields = [
                    field
                    for field in required_fields
                    if field not in body or body[field] is None
                ]

                if missing_fields:
                    return validation_error_response(
                        f"Missing required fields: {', '.join(missing_fields)}",
                        {"missing_fields": missing_fields},
                    )

            return func(event, context)

        return wrapper

    return decorator


def extract_path_params(*param_names: str) -> Callable:
    """
    Decorator that extracts and validates path parameters.

    Args:
        param_names: Names of path parameters to extract

    Returns:
        Decorated function
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
            path_params = event.get("pathParameters") or {}

            missing_params = [
                param
                for param in param_names
                if param not in path_params or not path_params[param]
            ]

            if missing_params:
                return validation_error_response(
                    f"Missing path parameters: {', '.join(missing_params)}",
                    {"missing_parameters": missing_params},
                )

            event["path_params"] = {param: path_params[param] for param in param_names}

            return func(event, context)

        return wrapper

    return decorator
