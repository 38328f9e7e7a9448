"""
Credential hashing and token generation.

Passwords are hashed with bcrypt (salted, tunable cost). Tokens are drawn
from the secrets module and encoded as URL-safe base64 without padding.
Token uniqueness is not guaranteed here: the primary key in the store is
the backstop, and a collision surfaces as a storage failure.
"""

import secrets
from dataclasses import dataclass
from functools import lru_cache

import bcrypt

REGISTRATION_TOKEN_BYTES = 8  # ~11 characters
SESSION_TOKEN_BYTES = 16  # ~22 characters

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode()[:BCRYPT_MAX_BYTES]


@lru_cache
def _dummy_hash(rounds: int) -> bytes:
    """
    bcrypt hash compared when a login doesn't exist, so bcrypt still runs once.

    Computed per cost factor so the dummy comparison costs as much as a real one.
    """
    return bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(rounds))


def generate_registration_token() -> str:
    """Generate the one-time token emailed in the confirmation link."""
    return secrets.token_urlsafe(REGISTRATION_TOKEN_BYTES)


def generate_session_token() -> str:
    """Generate an opaque bearer session token."""
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


@dataclass(frozen=True)
class PasswordHasher:
    """bcrypt password hashing with a fixed work factor."""

    rounds: int = 10

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=self.rounds)).decode()

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Check a password against a stored hash.

        Returns False on mismatch or on a malformed hash; never raises.
        """
        try:
            return bcrypt.checkpw(_password_bytes(password), password_hash.encode())
        except ValueError:
            return False

    def verify_dummy(self, password: str) -> bool:
        """Burn one bcrypt comparison so unknown logins take as long as known ones."""
        bcrypt.checkpw(_password_bytes(password), _dummy_hash(self.rounds))
        return False
