"""
Authentication handlers for the price tracker API.

This module provides password registration and login. Both return a
one-hour session token that the product endpoints accept as a bearer token.
"""

from pydantic import ValidationError

from models.users import LoginRequest, RegisterRequest, UserBase
from services.runtime import get_notifier, get_store, get_token_service
from utils.decorators import lambda_handler, validate_json_body
from utils.exceptions import CredentialFormatError, UserAlreadyExists
from utils.logging import log_error, setup_logger
from utils.responses import (HTTPStatus, conflict_response, error_response,
                             not_found_response, success_response,
                             unauthorized_response, validation_error_response,
                             validation_errors)
from utils.security import hash_password, verify_password

logger = setup_logger(__name__)


@lambda_handler()
@validate_json_body(required_fields=["email", "password"])
def register(event, context):
    """
    Register a new user.

    POST /register

    Stores the hashed password, then registers the phone number with the
    SNS SMS sandbox. The second step is best-effort: if it fails the user
    stays registered and the response reports ``notificationRegistered``
    as false.

    Args:
        event: Lambda event with email, password and optional phoneNumber
        context: Lambda context object

    Returns:
        201 with a session token, 409 if the email is taken
    """
    try:
        request = RegisterRequest(**event["json_body"])
    except ValidationError as e:
        return validation_error_response(
            "Registration validation failed", validation_errors(e)
        )

    # Resolve the signing secret before writing anything.
    token_service = get_token_service()

    user = UserBase(
        email=request.email,
        hashed_password=hash_password(request.password),
        phone_number=request.phone_number,
    )

    try:
        get_store().create_user(user)
    except UserAlreadyExists:
        logger.info("Registration rejected, user exists", extra={"email": user.email})
        return conflict_response("User already exists.")
    except Exception as e:
        log_error(logger, e, {"operation": "register", "email": user.email})
        return error_response(
            "Failed to register user.", HTTPStatus.INTERNAL_SERVER_ERROR
        )

    notification_registered = None
    if user.phone_number:
        notification_registered = get_notifier().register_phone_number(
            user.phone_number
        )
        if not notification_registered:
            logger.warning(
                "User registered without SMS sandbox registration",
                extra={"email": user.email},
            )

    logger.info("User registered", extra={"email": user.email})

    return success_response(
        data={
            "token": token_service.issue(user.email),
            "notificationRegistered": notification_registered,
        },
        message="User registered successfully.",
        status_code=HTTPStatus.CREATED,
    )


@lambda_handler()
@validate_json_body(required_fields=["email", "password"])
def login(event, context):
    """
    Log a user in.

    POST /login

    Args:
        event: Lambda event with email and password
        context: Lambda context object

    Returns:
        200 with a session token, 404 for an unknown email, 401 for a wrong password
    """
    try:
        request = LoginRequest(**event["json_body"])
    except ValidationError as e:
        return validation_error_response(
            "Login validation failed", validation_errors(e)
        )

    try:
        user = get_store().get_user(request.email)
    except Exception as e:
        log_error(logger, e, {"operation": "login", "email": request.email})
        return error_response("Failed to login.", HTTPStatus.INTERNAL_SERVER_ERROR)

    if not user:
        return not_found_response("User")

    try:
        password_ok = verify_password(request.password, user.hashed_password)
    except CredentialFormatError as e:
        # Corrupt stored record; not the caller's fault.
        log_error(logger, e, {"operation": "login", "email": user.email})
        return error_response("Failed to login.", HTTPStatus.INTERNAL_SERVER_ERROR)

    if not password_ok:
        logger.info("Login rejected, incorrect password", extra={"email": user.email})
        return unauthorized_response("Incorrect password.")

    return success_response(
        data={"token": get_token_service().issue(user.email)},
        message="Login successful.",
    )
