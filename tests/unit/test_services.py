"""Unit tests for service startup and shutdown."""

from unittest.mock import AsyncMock

from postboard import services as services_module
from postboard.services import Services
from postboard.sessions import SessionStore
from postboard.storage import S3UploadStorage


async def test_connect_builds_every_handle(settings, s3_client, monkeypatch):
    wait = AsyncMock()
    redis_client = AsyncMock()
    warmed = []

    monkeypatch.setattr(services_module, "wait_for_services", wait)
    monkeypatch.setattr(services_module, "create_s3_client", lambda _: s3_client)
    monkeypatch.setattr(services_module.redis, "from_url", lambda *a, **kw: redis_client)
    monkeypatch.setattr(services_module, "dummy_hash", warmed.append)

    services = await Services.connect(settings)

    # DATABASE_URL is set, so only the blobstore and cache are awaited
    targets = wait.await_args.args[0]
    assert [t.name for t in targets] == ["blobstore", "cache"]

    assert services.redis_client is redis_client
    assert services.sessions.redis is redis_client
    redis_client.ping.assert_awaited_once()
    assert warmed == [settings.BCRYPT_ROUNDS]

    await services.close()
    redis_client.aclose.assert_awaited_once()


async def test_services_without_cache_client(database, s3_client):
    services = Services(
        database=database,
        sessions=SessionStore(),
        storage=S3UploadStorage(s3_client, "uploads"),
    )

    assert services.redis_client is None
    assert services.s3_client is None
