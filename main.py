"""
Health check endpoint for the price tracker API.

This module provides a simple health check endpoint that can be used
for monitoring and load balancer health checks.
"""

from services.parameter_store import config
from utils.decorators import lambda_handler
from utils.responses import success_response

SERVICE_NAME = "price-tracker-api"
SERVICE_VERSION = "1.0.0"


@lambda_handler()
def healthz(event, context):
    """
    Health check endpoint for the price tracker API.

    Returns a simple success response to indicate the service is running.
    This endpoint does not require authentication and does not touch the
    storage backend.

    Args:
        event: Lambda event object
        context: Lambda context object

    Returns:
        HTTP response indicating service health
    """
    return success_response(
        data={
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "storage_backend": config.get("storage-backend", "dynamodb"),
        },
        message="Service is running",
    )
