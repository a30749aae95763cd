"""Credential hashing.

Hashes are produced and checked with werkzeug's salted PBKDF2/scrypt helpers;
plaintext passwords are never stored.
"""

from werkzeug.security import check_password_hash, generate_password_hash

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Return a salted hash suitable for storage."""
    return generate_password_hash(password)


def verify_password(password_hash: str, candidate: str) -> bool:
    """Check a candidate password against a stored hash."""
    if not password_hash or not candidate:
        return False
    return check_password_hash(password_hash, candidate)
