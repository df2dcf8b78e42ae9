"""
JWT Authorization Lambda for API Gateway.

This module lets API Gateway reject requests with a missing or bad session
token before they reach a product handler. The handlers verify the token
again themselves, so routes without this authorizer stay protected.
"""

from typing import Any, Dict

from services.runtime import get_token_service
from utils.decorators import extract_bearer_token
from utils.exceptions import TokenError
from utils.logging import log_error, setup_logger

logger = setup_logger(__name__)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    HTTP API Gateway Lambda Authorizer (simple response format).

    Args:
        event: API Gateway authorizer event
        context: Lambda context object

    Returns:
        Authorization response for API Gateway
    """
    logger.info(
        "Authorization request received",
        extra={
            "request_id": getattr(context, "aws_request_id", "unknown"),
            "method": event.get("requestContext", {}).get("http", {}).get("method"),
            "path": event.get("rawPath"),
        },
    )

    try:
        token = extract_bearer_token(event)
        if not token:
            logger.warning("Authorization failed: no bearer token in request.")
            return {"isAuthorized": False}

        email = get_token_service().verify(token)

        logger.info("User authorized successfully", extra={"email": email})

        return {
            "isAuthorized": True,
            "context": {"email": email},
        }

    except TokenError as e:
        logger.warning(
            "Authorization failed: token rejected.",
            extra={"reason": type(e).__name__},
        )
        return {"isAuthorized": False}
    except Exception as e:
        log_error(
            logger,
            e,
            {
                "event_path": event.get("rawPath"),
                "event_method": event.get("requestContext", {})
                .get("http", {})
                .get("method"),
            },
        )
        return {"isAuthorized": False}
