"""Authentication service: registration, login and logout."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.responses import RedirectResponse
from loguru import logger
from sqlalchemy.exc import IntegrityError
from starlette.concurrency import run_in_threadpool

from ..config import Settings
from ..core.exceptions import AuthenticationFailed, DuplicateAccount
from ..core.security import DEFAULT_ROUNDS, hash_password
from ..database import Account
from ..dependencies import get_account_repository, get_app_settings
from ..repositories import AccountRepository
from ..schemas import Credentials
from ..sessions import flash
from .strategy import AuthStrategy, LocalStrategy

SESSION_ACCOUNT_KEY = "account_id"
SESSION_TARGET_KEY = "target_url"


class AuthService:
    """Registers accounts and moves requests between anonymous and authenticated."""

    def __init__(
        self,
        accounts: AccountRepository,
        strategy: Optional[AuthStrategy] = None,
        rounds: int = DEFAULT_ROUNDS,
    ):
        self.accounts = accounts
        self.strategy = strategy or LocalStrategy(accounts, rounds)
        self.rounds = rounds

    async def register_user(self, name: str, password: str) -> Account:
        """
        Create an account with a bcrypt-hashed password.

        Raises:
            DuplicateAccount: If the name is already taken
        """
        if await self.accounts.name_exists(name):
            raise DuplicateAccount(name)

        password_hash = await run_in_threadpool(hash_password, password, self.rounds)
        try:
            account = await self.accounts.create(
                account_name=name,
                account_password=password_hash,
            )
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            await self.accounts.session.rollback()
            raise DuplicateAccount(name)

        logger.info(f"Registered account {account.account_id} ({name})")
        return account

    async def authenticate(
        self,
        request: Request,
        credentials: Credentials,
        success_redirect: str = "/",
        failure_redirect: str = "/login",
    ) -> RedirectResponse:
        """Verify credentials with the strategy and log the request in."""
        try:
            account = await self.strategy.verify(credentials)
        except AuthenticationFailed as e:
            logger.warning(f"Failed {self.strategy.name} login attempt")
            flash(request, e.message)
            return RedirectResponse(failure_redirect, status_code=303)

        self.login(request, account)
        logger.info(f"Account {account.account_id} logged in")
        return RedirectResponse(success_redirect, status_code=303)

    @staticmethod
    def login(request: Request, account: Account) -> None:
        """Bind the account to a fresh session id."""
        session = request.session
        session.pop(SESSION_TARGET_KEY, None)
        session.regenerate()
        session[SESSION_ACCOUNT_KEY] = account.account_id

    @staticmethod
    async def logout(request: Request) -> RedirectResponse:
        """Destroy the session and send the browser back where it came from."""
        account_id = request.session.get(SESSION_ACCOUNT_KEY)
        await request.session.destroy()
        if account_id is not None:
            logger.info(f"Account {account_id} logged out")
        return RedirectResponse(request.headers.get("referer") or "/", status_code=303)


async def get_auth_service(
    accounts: AccountRepository = Depends(get_account_repository),
    settings: Settings = Depends(get_app_settings),
) -> AuthService:
    """Get AuthService instance."""
    return AuthService(accounts, rounds=settings.BCRYPT_ROUNDS)
