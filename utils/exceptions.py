"""Custom exceptions for the price tracker backend."""


class PriceTrackerError(Exception):
    """Base exception for the price tracker backend."""

    pass


class ConfigError(PriceTrackerError):
    """Required configuration is missing or invalid."""

    pass


class CredentialFormatError(PriceTrackerError):
    """
    A stored password hash could not be parsed.

    This is a data-integrity problem with the stored record, never a sign
    that the caller supplied the wrong password.
    """

    pass


class TokenError(PriceTrackerError):
    """Base class for session token verification failures."""

    pass


class TokenInvalid(TokenError):
    """Token signature, structure or claims are not acceptable."""

    pass


class TokenExpired(TokenError):
    """Token was valid but its expiry instant has passed."""

    pass


class UserAlreadyExists(PriceTrackerError):
    """A user record already exists for the identity."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User {email!r} already exists")


class ProductNotFound(PriceTrackerError):
    """No product exists at the owner-scoped key."""

    def __init__(self, owner: str, product_id: str):
        self.owner = owner
        self.product_id = product_id
        super().__init__(f"Product {product_id!r} not found for {owner!r}")
