import asyncio
import json
import logging
import os
import re
from pathlib import Path

from pydantic import ValidationError

from ..models.sessions import Session

logger = logging.getLogger(__name__)

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def is_valid_id(session_id: str) -> bool:
    """Session ids double as file names, so only allow a plain token."""
    return isinstance(session_id, str) and bool(_SESSION_ID_RE.match(session_id))


class SessionStore:
    """One JSON document per session under ``sessions_dir``.

    Writes go to ``<id>.json.tmp`` first and are then renamed over
    ``<id>.json``, so readers see either the previous document or the new
    one, never a partial write.

    Reads treat a missing file, an invalid id and a corrupt document the same
    way: the session is absent.
    """

    def __init__(self, sessions_dir: Path):
        self.sessions_dir = Path(sessions_dir)
        self.sessions_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, session_id: str) -> Path:
        if not is_valid_id(session_id):
            raise ValueError(f"Invalid session id: {session_id!r}")
        return self.sessions_dir / f"{session_id}.json"

    async def read(self, session_id: str) -> Session | None:
        if not is_valid_id(session_id):
            return None
        return await asyncio.to_thread(self._read_sync, session_id)

    async def write(self, session_id: str, session: Session) -> None:
        await asyncio.to_thread(self._write_sync, session_id, session)

    async def exists(self, session_id: str) -> bool:
        if not is_valid_id(session_id):
            return False
        return await asyncio.to_thread(self.path_for(session_id).exists)

    async def count(self) -> int:
        return await asyncio.to_thread(self._count_sync)

    def is_writable(self) -> bool:
        return self.sessions_dir.is_dir() and os.access(self.sessions_dir, os.W_OK)

    def _count_sync(self) -> int:
        return sum(1 for _ in self.sessions_dir.glob("*.json"))

    def _read_sync(self, session_id: str) -> Session | None:
        path = self.path_for(session_id)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable session document %s: %s", path.name, e)
            return None

        try:
            return Session.model_validate(data)
        except ValidationError as e:
            logger.warning("Ignoring malformed session document %s: %d errors",
                           path.name, e.error_count())
            return None

    def _write_sync(self, session_id: str, session: Session) -> None:
        path = self.path_for(session_id)
        tmp = path.with_name(path.name + ".tmp")
        payload = json.dumps(session.model_dump(by_alias=True), indent=2)
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
