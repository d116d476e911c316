"""Database models and connection for Postboard."""

from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Account(Base):
    """Registered account."""

    __tablename__ = "account"

    account_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    account_password: Mapped[str] = mapped_column(String(255), nullable=False)
    account_created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    posts: Mapped[list["Post"]] = relationship("Post", back_populates="owner")

    def __repr__(self) -> str:
        return f"<Account {self.account_id} {self.account_name!r}>"


class Post(Base):
    """Feed entry authored by an account."""

    __tablename__ = "post"

    post_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("account.account_id"), nullable=False, index=True
    )
    post_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    post_created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )

    owner: Mapped["Account"] = relationship("Account", back_populates="posts")


class Database:
    """
    Async engine and session factory.

    One instance per process, created at startup and disposed on shutdown.
    """

    def __init__(self, url: str):
        self.url = url
        if url.startswith("sqlite"):
            self.engine = create_async_engine(url, echo=False)
        else:
            self.engine = create_async_engine(url, echo=False, pool_pre_ping=True)
        self.session_maker = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def init(self) -> None:
        """Create tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready")

    async def dispose(self) -> None:
        await self.engine.dispose()

