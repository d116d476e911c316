"""Unit tests for form schemas."""

import pytest
from pydantic import ValidationError

from postboard.schemas import MAX_PASSWORD_BYTES, Credentials


def test_password_limit_counts_utf8_bytes():
    # 36 two-byte characters fit exactly, one more does not
    assert Credentials(name="alice", password="é" * 36).password == "é" * 36

    with pytest.raises(ValidationError) as exc_info:
        Credentials(name="alice", password="é" * 37)
    assert exc_info.value.errors()[0]["type"] == "value_error"


def test_password_at_limit_is_accepted():
    credentials = Credentials(name="alice", password="x" * MAX_PASSWORD_BYTES)
    assert len(credentials.password) == MAX_PASSWORD_BYTES


def test_blank_fields_are_rejected():
    with pytest.raises(ValidationError):
        Credentials(name="", password="")
