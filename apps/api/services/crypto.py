"""
Password hashing for caller accounts using PBKDF2-HMAC-SHA256.
"""

import base64
import hmac
import os

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

HASH_SCHEME = "pbkdf2_sha256"
HASH_ITERATIONS = 390000
SALT_BYTES = 16


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode())


def hash_password(password: str) -> str:
    """
    Hash a password for storage.

    Args:
        password: Plain text password

    Returns:
        ``scheme$iterations$salt$digest`` with base64 salt and digest
    """
    salt = os.urandom(SALT_BYTES)
    digest = _derive(password, salt, HASH_ITERATIONS)
    return "$".join(
        [
            HASH_SCHEME,
            str(HASH_ITERATIONS),
            base64.urlsafe_b64encode(salt).decode(),
            base64.urlsafe_b64encode(digest).decode(),
        ]
    )


def verify_password(password: str, stored_hash: str) -> bool:
    """Check a plain text password against a stored hash. Malformed hashes never match."""
    try:
        scheme, iterations, salt_b64, digest_b64 = str(stored_hash or "").split("$")
        if scheme != HASH_SCHEME:
            return False
        salt = base64.urlsafe_b64decode(salt_b64.encode())
        expected = base64.urlsafe_b64decode(digest_b64.encode())
        candidate = _derive(password, salt, int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(candidate, expected)
