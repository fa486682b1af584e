import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Callable

from ..exceptions import SessionFullError, SessionNotFoundError
from ..models.sessions import Contact, Session
from ..storage.session_store import SessionStore
from .sanitize import sanitise
from .vcard import render_vcards

logger = logging.getLogger(__name__)

_MAX_ID_ATTEMPTS = 10


def new_session_id() -> str:
    """Short opaque id: the first 8 hex digits of a random UUID."""
    return uuid.uuid4().hex[:8]


def _now_ms() -> int:
    return int(time.time() * 1000)


class _SessionLocks:
    """asyncio.Lock per session id, dropped once nobody holds or awaits it."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, session_id: str):
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._users[session_id] = self._users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[session_id] -= 1
            if not self._users[session_id]:
                del self._users[session_id]
                del self._locks[session_id]


class SessionService:
    def __init__(self, store: SessionStore, contact_limit: int = 1000,
                 id_factory: Callable[[], str] = new_session_id,
                 clock: Callable[[], int] = _now_ms):
        self.store = store
        self.contact_limit = contact_limit
        self._id_factory = id_factory
        self._clock = clock
        self._locks = _SessionLocks()

    async def _allocate_id(self) -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            session_id = self._id_factory()
            if not await self.store.exists(session_id):
                return session_id
            logger.info("Session id %s already taken, generating another", session_id)
        raise RuntimeError(f"Could not allocate a free session id after {_MAX_ID_ATTEMPTS} attempts")

    async def create_session(self, name: str, minutes: float) -> Session:
        """Create and persist an empty session expiring ``minutes`` from now."""
        session_id = await self._allocate_id()
        session = Session(
            id=session_id,
            name=sanitise(name),
            expires_at=int(self._clock() + minutes * 60 * 1000),
            contacts=[],
        )
        async with self._locks.hold(session_id):
            await self.store.write(session_id, session)
        logger.info("Created session %s (expires_at=%d)", session_id, session.expires_at)
        return session

    async def get_session(self, session_id: str) -> Session | None:
        return await self.store.read(session_id)

    async def add_contact(self, session_id: str, name: str, phone: str) -> Session:
        """Append a contact; read, append and write happen under the session's lock."""
        async with self._locks.hold(session_id):
            session = await self.store.read(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            if len(session.contacts) >= self.contact_limit:
                logger.info("Session %s is full (%d contacts)", session_id, self.contact_limit)
                raise SessionFullError(session_id, self.contact_limit)

            session.contacts.append(Contact(name=name, phone=phone))
            await self.store.write(session_id, session)
        return session

    async def export_vcards(self, session_id: str) -> str | None:
        session = await self.store.read(session_id)
        if session is None:
            return None
        return render_vcards(session.contacts)
