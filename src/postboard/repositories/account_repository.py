"""Account repository with authentication queries."""

from typing import Optional

from sqlalchemy import select

from .base import BaseRepository
from ..database import Account


class AccountRepository(BaseRepository[Account]):
    """Repository for Account operations."""

    async def get_by_name(self, name: str) -> Optional[Account]:
        """Get account by its unique name."""
        result = await self.session.execute(
            select(Account).where(Account.account_name == name)
        )
        return result.scalar_one_or_none()

    async def name_exists(self, name: str) -> bool:
        """Check if an account name is already registered."""
        result = await self.session.execute(
            select(Account.account_id).where(Account.account_name == name)
        )
        return result.scalar_one_or_none() is not None
