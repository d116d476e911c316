"""Post repository with feed queries."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select

from .base import BaseRepository
from ..database import Account, Post


@dataclass(frozen=True)
class FeedEntry:
    """A post as shown in the feed, with its author's name."""
    post_id: int
    post_description: Optional[str]
    post_created_at: datetime
    account_name: str


class PostRepository(BaseRepository[Post]):
    """Repository for Post operations."""

    async def feed(self) -> list[FeedEntry]:
        """All posts joined with their owner's name, newest first."""
        result = await self.session.execute(
            select(
                Post.post_id,
                Post.post_description,
                Post.post_created_at,
                Account.account_name,
            )
            .join(Account, Post.post_owner_id == Account.account_id)
            .order_by(Post.post_created_at.desc(), Post.post_id.desc())
        )
        return [FeedEntry(*row) for row in result.all()]

    async def list_all(self) -> list[Post]:
        """Every post row, unfiltered."""
        result = await self.session.execute(select(Post).order_by(Post.post_id))
        return list(result.scalars().all())

    async def list_by_owner(self, owner_id: int) -> list[Post]:
        """Posts authored by one account, newest first."""
        result = await self.session.execute(
            select(Post)
            .where(Post.post_owner_id == owner_id)
            .order_by(Post.post_created_at.desc(), Post.post_id.desc())
        )
        return list(result.scalars().all())
