"""Repository layer for data access."""

from .base import BaseRepository
from .account_repository import AccountRepository
from .post_repository import FeedEntry, PostRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "FeedEntry",
    "PostRepository",
]
