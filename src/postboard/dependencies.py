"""Dependency injection for FastAPI endpoints."""

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .database import Account, Post
from .repositories import AccountRepository, PostRepository
from .services import Services
from .storage import UploadStorage


def get_services(request: Request) -> Services:
    """Service handles built at startup."""
    return request.app.state.services


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# Database session dependency
async def get_session(
    services: Services = Depends(get_services),
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with services.database.session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# Repository dependencies
async def get_account_repository(
    session: AsyncSession = Depends(get_session)
) -> AccountRepository:
    """Get AccountRepository instance."""
    return AccountRepository(Account, session)


async def get_post_repository(
    session: AsyncSession = Depends(get_session)
) -> PostRepository:
    """Get PostRepository instance."""
    return PostRepository(Post, session)


def get_storage(services: Services = Depends(get_services)) -> UploadStorage:
    return services.storage
