"""Unit tests for the auth service and local strategy."""

import pytest

from postboard.auth import AuthService, LocalStrategy
from postboard.auth import strategy as strategy_module
from postboard.core.exceptions import AuthenticationFailed, DuplicateAccount
from postboard.core.security import dummy_hash, verify_password
from postboard.database import Account
from postboard.repositories import AccountRepository
from postboard.schemas import Credentials


@pytest.fixture
def accounts(db_session):
    return AccountRepository(Account, db_session)


@pytest.fixture
def auth(accounts):
    return AuthService(accounts, rounds=4)


async def test_register_hashes_password(auth, accounts):
    account = await auth.register_user("alice", "password123")

    assert account.account_id is not None
    assert account.account_password != "password123"
    assert verify_password("password123", account.account_password)
    assert await accounts.name_exists("alice")


async def test_register_duplicate_name(auth, accounts):
    first = await auth.register_user("alice", "password123")

    with pytest.raises(DuplicateAccount):
        await auth.register_user("alice", "other-password")

    stored = await accounts.get_by_name("alice")
    assert stored.account_id == first.account_id
    assert verify_password("password123", stored.account_password)


async def test_local_strategy_accepts_valid_credentials(auth, accounts):
    await auth.register_user("alice", "password123")
    strategy = LocalStrategy(accounts, rounds=4)

    account = await strategy.verify(Credentials(name="alice", password="password123"))

    assert account.account_name == "alice"


async def test_local_strategy_failures_are_indistinguishable(auth, accounts, monkeypatch):
    await auth.register_user("alice", "password123")
    strategy = LocalStrategy(accounts, rounds=4)

    checked = []

    def spy(password, hashed):
        checked.append(hashed)
        return verify_password(password, hashed)

    monkeypatch.setattr(strategy_module, "verify_password", spy)

    with pytest.raises(AuthenticationFailed) as wrong_password:
        await strategy.verify(Credentials(name="alice", password="nope"))
    with pytest.raises(AuthenticationFailed) as unknown_name:
        await strategy.verify(Credentials(name="bob", password="nope"))

    assert wrong_password.value.message == unknown_name.value.message
    assert wrong_password.value.status_code == unknown_name.value.status_code
    # Both paths ran exactly one bcrypt check at the same cost
    assert len(checked) == 2
    assert checked[1] == dummy_hash(4)
    assert checked[0][:7] == checked[1][:7]


async def test_unknown_name_dummy_hash_runs_off_the_event_loop(auth, accounts, monkeypatch):
    strategy = LocalStrategy(accounts, rounds=4)
    offloaded = []
    real_run_in_threadpool = strategy_module.run_in_threadpool

    async def spy(func, *args, **kwargs):
        offloaded.append(func)
        return await real_run_in_threadpool(func, *args, **kwargs)

    monkeypatch.setattr(strategy_module, "run_in_threadpool", spy)

    with pytest.raises(AuthenticationFailed):
        await strategy.verify(Credentials(name="nobody", password="nope"))

    assert offloaded == [strategy_module.dummy_hash, strategy_module.verify_password]
