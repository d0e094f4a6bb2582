from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from chat.core.snapshot import decode_collection, encode_collection
from chat.core.state import DEFAULT_TITLE, ROLE_USER, Message, Session, SessionCollection, utc_now
from chat.errors import SessionNotFound, SnapshotError
from chat.storage.kv import DurableStore

logger = logging.getLogger(__name__)

ELLIPSIS = "..."


def derive_title(text: str, limit: int = 30) -> str:
    """First `limit` characters of `text`, with "..." appended when it was cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def _copy(s: Session) -> Session:
    return replace(s, messages=list(s.messages))


class SessionStore:
    """A thread-safe in-memory collection of chat sessions with an active pointer.

    Sessions are kept newest first. When a durable store is attached, the full
    collection is written back after every mutation; write failures are logged
    and otherwise ignored.
    """

    def __init__(
        self,
        durable: Optional[DurableStore] = None,
        *,
        key: str = "aiChatHistory",
        title_max_chars: int = 30,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._lock = threading.RLock()
        self._sessions: List[Session] = []
        self._active_id: Optional[str] = None
        self._durable = durable
        self._key = key
        self._title_max_chars = title_max_chars
        self._clock = clock
        self._last_id = 0

    # --- Queries ---------------------------------------------------------------
    @property
    def active_id(self) -> Optional[str]:
        with self._lock:
            return self._active_id

    def list_sessions(self) -> List[Session]:
        with self._lock:
            return [_copy(s) for s in self._sessions]

    def get_session(self, sid: str) -> Optional[Session]:
        with self._lock:
            s = self._find(sid)
            return _copy(s) if s else None

    def active_session(self) -> Optional[Session]:
        with self._lock:
            return self.get_session(self._active_id) if self._active_id else None

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "sessions": len(self._sessions),
                "messages": sum(len(s.messages) for s in self._sessions),
            }

    def snapshot(self) -> SessionCollection:
        with self._lock:
            return SessionCollection(sessions=[_copy(s) for s in self._sessions], active_id=self._active_id)

    # --- Mutations -------------------------------------------------------------
    def create_session(self) -> str:
        with self._lock:
            sid = self._next_id()
            now = self._clock()
            self._sessions.insert(0, Session(id=sid, title=DEFAULT_TITLE, created_at=now, last_updated_at=now))
            self._active_id = sid
            self._persist()
            return sid

    def select_session(self, sid: str) -> bool:
        with self._lock:
            if self._find(sid) is None:
                logger.debug("select_session: unknown session %s", sid)
                return False
            self._active_id = sid
            self._persist()
            return True

    def delete_session(self, sid: str) -> bool:
        with self._lock:
            s = self._find(sid)
            if s is None:
                logger.debug("delete_session: unknown session %s", sid)
                return False
            self._sessions.remove(s)
            if self._active_id == sid:
                self._active_id = self._sessions[0].id if self._sessions else None
            self._persist()
            return True

    def clear_all(self) -> None:
        with self._lock:
            self._sessions = []
            self._active_id = None
            self._persist()

    def append_message(self, sid: str, message: Message) -> Message:
        with self._lock:
            sess = self._find(sid)
            if sess is None:
                raise SessionNotFound(sid)
            if (
                message.role == ROLE_USER
                and sess.title == DEFAULT_TITLE
                and not any(m.role == ROLE_USER for m in sess.messages)
            ):
                sess.title = derive_title(message.content, self._title_max_chars)
            sess.messages.append(message)
            sess.last_updated_at = self._clock()
            self._persist()
            return message

    # --- Persistence -----------------------------------------------------------
    def restore(self, snapshot: Union[SessionCollection, bytes, str, Mapping[str, Any], None]) -> bool:
        """Replace the whole state from a persisted snapshot.

        A malformed snapshot leaves the store empty and returns False. A missing or
        stale active id falls back to the most recent session.
        """
        with self._lock:
            collection = SessionCollection()
            ok = False
            if snapshot is not None:
                try:
                    collection = decode_collection(snapshot)
                    ok = True
                except SnapshotError as e:
                    logger.warning("Discarding session snapshot: %s", e)
            self._sessions = collection.sessions
            ids = {s.id for s in self._sessions}
            if collection.active_id in ids:
                self._active_id = collection.active_id
            else:
                self._active_id = self._sessions[0].id if self._sessions else None
            for sid in ids:
                if sid.isascii() and sid.isdigit():
                    self._last_id = max(self._last_id, int(sid))
            return ok

    def load(self) -> bool:
        """Restore from the attached durable store; returns True when a valid snapshot was found."""
        if self._durable is None:
            return False
        try:
            data = self._durable.load(self._key)
        except OSError:
            logger.exception("Failed to read session snapshot (key=%s)", self._key)
            data = None
        return self.restore(data)

    def _persist(self) -> None:
        if self._durable is None:
            return
        try:
            data = encode_collection(SessionCollection(sessions=self._sessions, active_id=self._active_id))
            self._durable.save(self._key, data)
        except Exception:
            # Durability is best-effort; never surface write failures to callers
            logger.exception("Failed to persist session snapshot (key=%s)", self._key)

    # --- Internals -------------------------------------------------------------
    def _find(self, sid: Optional[str]) -> Optional[Session]:
        for s in self._sessions:
            if s.id == sid:
                return s
        return None

    def _next_id(self) -> str:
        # Millisecond clock, bumped past the last issued id when two land in the same tick
        self._last_id = max(int(time.time() * 1000), self._last_id + 1)
        sid = str(self._last_id)
        while self._find(sid) is not None:
            self._last_id += 1
            sid = str(self._last_id)
        return sid
