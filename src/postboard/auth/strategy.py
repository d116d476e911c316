"""Authentication strategies.

A strategy turns submitted credentials into an Account or raises
AuthenticationFailed. New login methods are new subclasses.
"""

from abc import ABC, abstractmethod

from starlette.concurrency import run_in_threadpool

from ..core.exceptions import AuthenticationFailed
from ..core.security import DEFAULT_ROUNDS, dummy_hash, verify_password
from ..database import Account
from ..repositories import AccountRepository
from ..schemas import Credentials


class AuthStrategy(ABC):
    """Verifies credentials of one kind."""

    name: str

    @abstractmethod
    async def verify(self, credentials: Credentials) -> Account:
        """
        Resolve credentials to an account.

        Raises:
            AuthenticationFailed: If the credentials do not identify an account
        """


class LocalStrategy(AuthStrategy):
    """Account name and bcrypt-hashed password stored in the database."""

    name = "local"

    def __init__(self, accounts: AccountRepository, rounds: int = DEFAULT_ROUNDS):
        self.accounts = accounts
        self.rounds = rounds

    async def verify(self, credentials: Credentials) -> Account:
        account = await self.accounts.get_by_name(credentials.name)

        # Unknown names still pay for one bcrypt check
        if account is not None:
            hashed = account.account_password
        else:
            hashed = await run_in_threadpool(dummy_hash, self.rounds)
        valid = await run_in_threadpool(verify_password, credentials.password, hashed)

        if account is None or not valid:
            raise AuthenticationFailed()
        return account
