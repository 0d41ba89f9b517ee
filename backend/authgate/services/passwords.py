"""Password hashing with Argon2id."""

from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from authgate.core import settings


@lru_cache
def get_password_hasher() -> PasswordHasher:
    """Argon2 hasher built from the configured cost parameters."""
    return PasswordHasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
        hash_len=32,
        salt_len=16,
    )


def hash_password(password: str) -> str:
    """Hash a password using Argon2id (random salt per call)."""
    return get_password_hasher().hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison.

    A malformed stored hash verifies as False instead of raising.
    """
    try:
        return get_password_hasher().verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


@lru_cache
def dummy_password_hash() -> str:
    """A throwaway hash verified against when no account matches a login.

    Makes unknown-email logins cost the same as wrong-password logins.
    """
    return hash_password("authgate-dummy-password")
