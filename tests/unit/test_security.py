"""Unit tests for password hashing."""

from postboard.core.security import dummy_hash, hash_password, verify_password


def test_hash_is_salted_bcrypt():
    first = hash_password("password123", rounds=4)
    second = hash_password("password123", rounds=4)

    assert first != "password123"
    assert first.startswith("$2")
    assert first != second  # fresh salt each time


def test_verify_password():
    hashed = hash_password("password123", rounds=4)

    assert verify_password("password123", hashed)
    assert not verify_password("wrongpassword", hashed)


def test_verify_password_rejects_malformed_hash():
    assert not verify_password("password123", "not-a-bcrypt-hash")


def test_dummy_hash_matches_cost_and_is_cached():
    hashed = dummy_hash(4)

    assert hashed.startswith("$2b$04$")
    assert dummy_hash(4) is hashed
    assert not verify_password("", hashed)


def test_verify_password_rejects_overlong_input():
    hashed = hash_password("password123", rounds=4)

    assert not verify_password("x" * 100, hashed)
