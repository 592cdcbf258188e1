from __future__ import annotations

import threading

from promptforge.core.models.schemas import Message


class SessionStore:
    """Process-lifetime conversation history, keyed by session id.

    Histories only grow. ``append_exchange`` writes a user/assistant pair under
    one lock so concurrent exchanges on the same session never interleave
    their halves; the exchange that finishes last lands last.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, list[Message]] = {}
        self._lock = threading.Lock()

    def history(self, session_id: str) -> list[Message]:
        with self._lock:
            return list(self._sessions.get(session_id, ()))

    def count(self, session_id: str) -> int:
        with self._lock:
            return len(self._sessions.get(session_id, ()))

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions.keys())

    def append_exchange(self, session_id: str, prompt: str, reply: str) -> list[Message]:
        pair = [Message(role="user", content=prompt), Message(role="assistant", content=reply)]
        with self._lock:
            self._sessions.setdefault(session_id, []).extend(pair)
            return list(self._sessions[session_id])
