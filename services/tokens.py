"""
Session token issuing and verification.

Tokens are HS256 JWTs carrying the user's email and a one hour lifetime.
They are never stored and cannot be revoked; rotating the signing secret
is the only way to invalidate outstanding tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from utils.exceptions import ConfigError, TokenExpired, TokenInvalid
from utils.logging import setup_logger

logger = setup_logger(__name__)

TOKEN_LIFETIME = timedelta(hours=1)
IDENTITY_CLAIM = "email"


class SessionTokenService:
    """Mints and checks signed, time-bounded session tokens."""

    def __init__(
        self,
        secret: str,
        previous_secrets: Iterable[str] = (),
        lifetime: timedelta = TOKEN_LIFETIME,
        algorithm: str = "HS256",
    ):
        """
        Args:
            secret: Current signing secret; every new token is signed with it
            previous_secrets: Secrets still accepted for verification during rotation
            lifetime: Validity window of an issued token
            algorithm: HMAC algorithm name understood by PyJWT
        """
        if not secret:
            raise ConfigError("JWT signing secret is not configured")

        self._secret = secret
        self._verification_secrets = [secret] + [
            s for s in previous_secrets if s and s != secret
        ]
        self.lifetime = lifetime
        self.algorithm = algorithm

    def issue(self, identity: str, now: Optional[datetime] = None) -> str:
        """
        Issue a token asserting the identity.

        Args:
            identity: The user's email
            now: Issue instant, defaults to the current time

        Returns:
            Encoded JWT
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            IDENTITY_CLAIM: identity,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """
        Verify a token and return the identity it asserts.

        Raises:
            TokenExpired: The token is past its expiry
            TokenInvalid: Signature, structure or claims are wrong
        """
        last_error: Optional[InvalidTokenError] = None

        for secret in self._verification_secrets:
            try:
                payload = jwt.decode(
                    token,
                    secret,
                    algorithms=[self.algorithm],
                    options={"require": [IDENTITY_CLAIM, "iat", "exp"]},
                )
            except ExpiredSignatureError:
                # The signature checked out, so no other secret will help.
                raise TokenExpired("Token has expired") from None
            except InvalidTokenError as e:
                last_error = e
                continue

            identity = payload.get(IDENTITY_CLAIM)
            if not isinstance(identity, str) or not identity:
                raise TokenInvalid("Token does not carry an identity")
            return identity

        logger.warning(
            "Token verification failed",
            extra={"error_type": type(last_error).__name__},
        )
        raise TokenInvalid("Token is invalid") from last_error
