"""Route guards and the current-account dependency."""

from typing import Callable, Optional

from fastapi import Depends, Request

from ..core.exceptions import RedirectRequired
from ..database import Account
from ..dependencies import get_account_repository
from ..repositories import AccountRepository
from .service import SESSION_ACCOUNT_KEY, SESSION_TARGET_KEY


async def current_account(
    request: Request,
    accounts: AccountRepository = Depends(get_account_repository),
) -> Optional[Account]:
    """The logged-in account, or None for anonymous requests."""
    account_id = request.session.get(SESSION_ACCOUNT_KEY)
    if account_id is None:
        return None
    account = await accounts.get(account_id)
    if account is None:
        # Session outlived its account
        request.session.pop(SESSION_ACCOUNT_KEY, None)
    return account


def _requested_url(request: Request) -> str:
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


def check(redirect_path: str) -> Callable:
    """
    Require a logged-in account.

    Anonymous requests remember the URL they asked for, so a later login
    can send them back to it, and are redirected to ``redirect_path``.
    """

    async def guard(
        request: Request,
        account: Optional[Account] = Depends(current_account),
    ) -> Account:
        if account is None:
            request.session[SESSION_TARGET_KEY] = _requested_url(request)
            raise RedirectRequired(redirect_path)
        return account

    return guard


def check_not(redirect_path: str) -> Callable:
    """Require an anonymous request; logged-in accounts go to ``redirect_path``."""

    async def guard(account: Optional[Account] = Depends(current_account)) -> None:
        if account is not None:
            raise RedirectRequired(redirect_path)

    return guard
