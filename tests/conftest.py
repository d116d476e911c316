"""Pytest configuration and shared fixtures."""

import io

import pytest
from botocore.exceptions import ClientError
from httpx import ASGITransport, AsyncClient

from postboard.config import Settings
from postboard.database import Database
from postboard.main import create_app
from postboard.services import Services
from postboard.sessions import SessionStore
from postboard.storage import S3UploadStorage


# ============================================================================
# Fake Backing Services
# ============================================================================

class FakeS3Client:
    """Dict-backed stand-in for the boto3 S3 client."""

    def __init__(self):
        self.buckets: dict[str, dict[str, bytes]] = {"uploads": {}}
        self.fail_puts = False
        self._etag = 0

    def _bucket(self, name: str, operation: str) -> dict[str, bytes]:
        if name not in self.buckets:
            raise ClientError(
                {"Error": {"Code": "NoSuchBucket", "Message": "missing bucket"}},
                operation,
            )
        return self.buckets[name]

    def head_bucket(self, Bucket):
        self._bucket(Bucket, "HeadBucket")
        return {}

    def create_bucket(self, Bucket):
        self.buckets.setdefault(Bucket, {})
        return {}

    def put_object(self, Bucket, Key, Body, **kwargs):
        if self.fail_puts:
            raise ClientError(
                {"Error": {"Code": "InternalError", "Message": "disk full"}},
                "PutObject",
            )
        self._bucket(Bucket, "PutObject")[Key] = Body.read()
        self._etag += 1
        return {"ETag": f'"etag-{self._etag}"', "VersionId": None}

    def get_object(self, Bucket, Key):
        objects = self._bucket(Bucket, "GetObject")
        if Key not in objects:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "missing key"}},
                "GetObject",
            )
        return {"Body": io.BytesIO(objects[Key])}

    def delete_object(self, Bucket, Key):
        self._bucket(Bucket, "DeleteObject").pop(Key, None)
        return {}

    def close(self):
        pass


# ============================================================================
# Application
# ============================================================================

@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a throwaway SQLite database."""
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'postboard.db'}",
        SESSION_SECRET="test-secret",
        BCRYPT_ROUNDS=4,
    )


@pytest.fixture
async def database(settings):
    db = Database(settings.database_url)
    await db.init()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database):
    async with database.session_maker() as session:
        yield session


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def services(database, s3_client, settings):
    return Services(
        database=database,
        sessions=SessionStore(ttl=settings.SESSION_TTL_SECONDS),
        storage=S3UploadStorage(s3_client, "uploads"),
        s3_client=s3_client,
    )


@pytest.fixture
def app(settings, services):
    return create_app(settings=settings, services=services)


@pytest.fixture
async def client(app):
    """Async HTTP client; keeps cookies between requests, never follows redirects."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ============================================================================
# Test Utilities
# ============================================================================

@pytest.fixture
def register():
    async def _register(client, name="alice", password="hunter22"):
        return await client.post("/register", data={"name": name, "password": password})
    return _register


@pytest.fixture
def login():
    async def _login(client, name="alice", password="hunter22"):
        return await client.post("/login", data={"name": name, "password": password})
    return _login


@pytest.fixture
async def logged_in_client(client, register, login):
    """Client with a registered and logged-in account named alice."""
    await register(client)
    response = await login(client)
    assert response.status_code == 303
    return client
