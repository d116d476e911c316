"""Password hashing utilities."""

import secrets
from functools import lru_cache

import bcrypt


DEFAULT_ROUNDS = 12


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash password using bcrypt with a fresh salt."""
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Malformed stored hash, or a password bcrypt refuses to read
        return False


@lru_cache(maxsize=None)
def dummy_hash(rounds: int = DEFAULT_ROUNDS) -> str:
    """
    Hash of a random throwaway password at the given cost.

    Checked against when an account does not exist so that a login for an
    unknown name costs the same as a wrong password.
    """
    return hash_password(secrets.token_hex(16), rounds=rounds)
