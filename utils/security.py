"""
Security utilities for password hashing and validation.

Passwords are stored as a single colon-delimited field::

    pbkdf2:<hash_function>:<iterations>:<salt_hex>:<derived_hash_hex>

The hex text of the salt is used as the PBKDF2 salt input, so records
written by the earlier Node.js service keep verifying.
"""

import hashlib
import hmac
import secrets

from .exceptions import CredentialFormatError

ALGORITHM = "pbkdf2"


class PasswordHasher:
    """
    Salted PBKDF2 password hashing.

    Each hash gets a fresh random salt, so hashing the same password twice
    yields two different encodings that both verify.
    """

    ITERATIONS = 1000
    KEY_LENGTH = 64  # bytes
    HASH_FUNCTION = "sha512"
    SALT_LENGTH = 16  # bytes, hex encoded to 32 chars

    SUPPORTED_HASH_FUNCTIONS = frozenset({"sha1", "sha256", "sha384", "sha512"})

    @classmethod
    def hash_password(
        cls,
        password: str,
        iterations: int | None = None,
        key_length: int | None = None,
        hash_function: str | None = None,
    ) -> str:
        """
        Hash a password with a random salt.

        Args:
            password: Plain text password to hash
            iterations: PBKDF2 iteration count
            key_length: Derived key length in bytes
            hash_function: Name of the HMAC digest

        Returns:
            Colon-delimited encoding of algorithm, digest, iterations, salt and hash
        """
        if iterations is None:
            iterations = cls.ITERATIONS
        if key_length is None:
            key_length = cls.KEY_LENGTH
        hash_function = hash_function or cls.HASH_FUNCTION

        if hash_function not in cls.SUPPORTED_HASH_FUNCTIONS:
            raise ValueError(f"Unsupported hash function: {hash_function}")
        if iterations < 1 or key_length < 1:
            raise ValueError("Iterations and key length must be positive")

        salt = secrets.token_hex(cls.SALT_LENGTH)
        derived = cls._derive(password, salt, iterations, key_length, hash_function)

        return f"{ALGORITHM}:{hash_function}:{iterations}:{salt}:{derived.hex()}"

    @classmethod
    def verify_password(cls, password: str, stored_hash: str) -> bool:
        """
        Verify a password against a stored hash.

        Args:
            password: Plain text password to verify
            stored_hash: Encoding produced by hash_password

        Returns:
            True if password matches, False otherwise

        Raises:
            CredentialFormatError: If the stored encoding is malformed
        """
        hash_function, iterations, salt, expected = cls._parse(stored_hash)
        derived = cls._derive(password, salt, iterations, len(expected), hash_function)

        return hmac.compare_digest(derived, expected)

    @classmethod
    def _parse(cls, stored_hash: str) -> tuple[str, int, str, bytes]:
        if not isinstance(stored_hash, str):
            raise CredentialFormatError("Stored password hash is not a string")

        parts = stored_hash.split(":")
        if len(parts) != 5:
            raise CredentialFormatError(
                f"Stored password hash has {len(parts)} fields, expected 5"
            )

        algorithm, hash_function, iterations_text, salt, hash_hex = parts

        if algorithm != ALGORITHM:
            raise CredentialFormatError(f"Unknown password algorithm: {algorithm}")
        if hash_function not in cls.SUPPORTED_HASH_FUNCTIONS:
            raise CredentialFormatError(f"Unsupported hash function: {hash_function}")

        try:
            iterations = int(iterations_text)
        except ValueError:
            raise CredentialFormatError("Iteration count is not an integer") from None
        if iterations < 1:
            raise CredentialFormatError("Iteration count must be positive")

        try:
            bytes.fromhex(salt)
            expected = bytes.fromhex(hash_hex)
        except ValueError:
            raise CredentialFormatError("Salt or hash is not hex encoded") from None
        if not salt or not expected:
            raise CredentialFormatError("Salt or hash is empty")

        return hash_function, iterations, salt, expected

    @staticmethod
    def _derive(
        password: str, salt: str, iterations: int, key_length: int, hash_function: str
    ) -> bytes:
        return hashlib.pbkdf2_hmac(
            hash_function,
            password.encode("utf-8"),
            salt.encode("utf-8"),
            iterations,
            dklen=key_length,
        )


def hash_password(password: str, **options) -> str:
    """Hash a password using secure defaults."""
    return PasswordHasher.hash_password(password, **options)


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify a password against a stored hash."""
    return PasswordHasher.verify_password(password, stored_hash)
