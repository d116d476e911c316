"""Process-wide service handles.

Built once at startup, after the readiness gate has seen every backing
service, and released on shutdown.
"""

from dataclasses import dataclass
from typing import Any, Optional

import redis.asyncio as redis
from loguru import logger
from starlette.concurrency import run_in_threadpool

from .config import Settings
from .core.readiness import ServiceTarget, wait_for_services
from .core.security import dummy_hash
from .database import Database
from .sessions import SessionStore
from .storage import S3UploadStorage, UploadStorage, create_s3_client


@dataclass
class Services:
    """Database, session store and upload storage for one process."""
    database: Database
    sessions: SessionStore
    storage: UploadStorage
    redis_client: Optional[redis.Redis] = None
    s3_client: Optional[Any] = None

    @classmethod
    async def connect(cls, settings: Settings) -> "Services":
        """
        Wait for every backing service, then build the handles.

        Raises:
            DependencyUnavailable: If a service stays unreachable past
                ``READINESS_TIMEOUT``
        """
        targets = [
            ServiceTarget("database", settings.DB_HOST, settings.DB_PORT),
            ServiceTarget("blobstore", settings.BLOB_HOST, settings.BLOB_PORT),
            ServiceTarget("cache", settings.CACHE_HOST, settings.CACHE_PORT),
        ]
        # A DATABASE_URL override (e.g. SQLite) has no server to wait on
        if settings.DATABASE_URL:
            targets = targets[1:]
        await wait_for_services(
            targets,
            timeout=settings.READINESS_TIMEOUT,
            interval=settings.READINESS_INTERVAL,
        )

        database = Database(settings.database_url)
        await database.init()

        s3_client = create_s3_client(settings)
        storage = S3UploadStorage(s3_client, settings.BLOB_BUCKET)
        await storage.ensure_bucket()

        # Warm the cached dummy hash off the event loop before the first login
        await run_in_threadpool(dummy_hash, settings.BCRYPT_ROUNDS)

        client = redis.from_url(settings.cache_url, encoding="utf-8", decode_responses=True)
        await client.ping()
        sessions = SessionStore(client, ttl=settings.SESSION_TTL_SECONDS)
        logger.info(f"Connected to Redis at {settings.cache_url}")

        return cls(
            database=database,
            sessions=sessions,
            storage=storage,
            redis_client=client,
            s3_client=s3_client,
        )

    async def close(self) -> None:
        await self.sessions.close()
        await self.database.dispose()
        if self.s3_client is not None:
            self.s3_client.close()
