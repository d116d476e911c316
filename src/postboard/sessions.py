"""Server-side sessions backed by Redis.

The browser only ever holds a signed, opaque session id. Session contents
live in the cache under ``sess:<id>`` and expire with the cache's TTL.
"""

import json
import secrets
import time
from typing import Any, Optional

import redis.asyncio as redis
from itsdangerous import BadSignature, TimestampSigner
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

PREFIX_SESSION = "sess:"
FLASH_KEY = "flash"


class SessionStore:
    """Session storage with an in-memory fallback when no Redis client is given."""

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        ttl: int = 86400,
        prefix: str = PREFIX_SESSION,
    ):
        self.redis = client
        self.ttl = ttl
        self.prefix = prefix
        self._memory: dict[str, tuple[str, float]] = {}

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    async def get(self, session_id: str) -> Optional[dict[str, Any]]:
        """Load a session; missing and expired ids both yield None."""
        key = self._key(session_id)
        if self.redis is not None:
            raw = await self.redis.get(key)
        else:
            cached = self._memory.get(key)
            if cached and cached[1] > time.time():
                raw = cached[0]
            else:
                self._memory.pop(key, None)
                raw = None

        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding unreadable session {session_id[:8]}...")
            return None
        return data if isinstance(data, dict) else None

    async def set(self, session_id: str, data: dict[str, Any]) -> None:
        """Upsert a session and reset its TTL."""
        key = self._key(session_id)
        serialized = json.dumps(data)
        if self.redis is not None:
            await self.redis.setex(key, self.ttl, serialized)
        else:
            self._memory[key] = (serialized, time.time() + self.ttl)

    async def destroy(self, session_id: str) -> None:
        key = self._key(session_id)
        if self.redis is not None:
            await self.redis.delete(key)
        else:
            self._memory.pop(key, None)

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()


class ServerSession(dict):
    """
    Per-request session data, exposed as ``request.session``.

    Behaves as a plain dict. ``regenerate()`` is applied by the middleware
    once the response has been produced; ``destroy()`` removes the stored
    session immediately so store failures surface inside the request.
    """

    def __init__(
        self,
        session_id: Optional[str],
        data: Optional[dict] = None,
        store: Optional["SessionStore"] = None,
    ):
        super().__init__(data or {})
        self.session_id = session_id
        self.store = store
        self.regenerate_requested = False
        self.destroy_requested = False

    @property
    def is_new(self) -> bool:
        return self.session_id is None

    def regenerate(self) -> None:
        """Issue a fresh session id, keeping the current contents."""
        self.regenerate_requested = True

    async def destroy(self) -> None:
        """Drop the session entirely."""
        self.clear()
        self.destroy_requested = True
        if self.session_id and self.store is not None:
            await self.store.destroy(self.session_id)


class ServerSessionMiddleware(BaseHTTPMiddleware):
    """
    Load the session before each request and persist it afterwards.

    Mirrors express-session with ``resave=False, saveUninitialized=False``:
    an unmodified session is not written back and an empty new session is
    never stored.
    """

    def __init__(
        self,
        app: ASGIApp,
        secret: str,
        store: Optional[SessionStore] = None,
        cookie_name: str = "sid",
        max_age: int = 86400,
        same_site: str = "lax",
        https_only: bool = False,
    ):
        super().__init__(app)
        self.store = store
        self.signer = TimestampSigner(secret, salt="postboard.session")
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.same_site = same_site
        self.https_only = https_only

    def _unsign(self, cookie: Optional[str]) -> Optional[str]:
        if not cookie:
            return None
        try:
            return self.signer.unsign(cookie, max_age=self.max_age).decode("utf-8")
        except BadSignature:
            return None

    def _set_cookie(self, response: Response, session_id: str) -> None:
        response.set_cookie(
            self.cookie_name,
            self.signer.sign(session_id).decode("utf-8"),
            max_age=self.max_age,
            path="/",
            httponly=True,
            samesite=self.same_site,
            secure=self.https_only,
        )

    def _store_for(self, request: Request) -> SessionStore:
        # Without an explicit store, use the one built at startup
        if self.store is not None:
            return self.store
        return request.app.state.services.sessions

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        store = self._store_for(request)
        session_id = self._unsign(request.cookies.get(self.cookie_name))
        data = await store.get(session_id) if session_id else None
        if data is None:
            session_id = None

        session = ServerSession(session_id, data, store)
        original = json.dumps(data or {}, sort_keys=True)
        request.scope["session"] = session

        response = await call_next(request)

        if session.destroy_requested:
            response.delete_cookie(self.cookie_name, path="/")
            return response

        if session.regenerate_requested:
            if session.session_id:
                await store.destroy(session.session_id)
            session.session_id = secrets.token_urlsafe(32)
            await store.set(session.session_id, dict(session))
            self._set_cookie(response, session.session_id)
            return response

        if json.dumps(dict(session), sort_keys=True) == original:
            return response

        if session.is_new:
            if not session:
                return response
            session.session_id = secrets.token_urlsafe(32)
            await store.set(session.session_id, dict(session))
            self._set_cookie(response, session.session_id)
        elif session:
            await store.set(session.session_id, dict(session))
        else:
            await store.destroy(session.session_id)
            response.delete_cookie(self.cookie_name, path="/")
        return response


def flash(request: Request, message: str) -> None:
    """Queue a one-shot message for the next rendered page."""
    request.session.setdefault(FLASH_KEY, []).append(message)


def pop_flashes(request: Request) -> list[str]:
    """Take all pending flash messages."""
    return request.session.pop(FLASH_KEY, None) or []
