"""In-memory reveal session store with TTL cleanup.

WHY: The HTTP API serves many readers at once, each scrolling their own
chapter. Every reader needs an independent RevealSession (its own fired
set, its own last render), and a reader who closes the tab should not
hold memory forever. An in-memory store is enough for a single-process
service with no persistence requirements.

HOW: Two components work together:
  StoredSession: one RevealSession plus its effect bus, dispatcher and
    recorder, timestamps, and a per-session lock
  SessionStore: thread-safe dict-based store with create/get/list/
    advance/reload/delete and idle TTL cleanup

RULES:
- Store mutations are protected by a threading.Lock
- Updates to one session are serialized by that session's own lock, so
  each update runs to completion before the next starts
- Session IDs are UUID4 hex strings generated at creation time
- create_session() raises ValueError when max_sessions is reached
- TTL is measured from the last activity (updated_at)
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from cue_reveal.config import (
    KNOWN_CUE_TYPES,
    MAX_SESSIONS,
    REARM_ON_RETREAT,
    REVEAL_WINDOW_LINES,
    SESSION_TTL_SECONDS,
)
from cue_reveal.core.ir import CueFiredEvent
from cue_reveal.core.session import RevealSession, RevealUpdate
from cue_reveal.effects import (
    EffectBus,
    EffectCommand,
    EffectDispatcher,
    EffectError,
    RecordingEffectRenderer,
)

logger = logging.getLogger(__name__)


@dataclass
class ProgressResult:
    """One update plus the effects it produced."""

    update: RevealUpdate
    effects: List[EffectCommand]
    rejected: List[Tuple[CueFiredEvent, EffectError]]


@dataclass
class StoredSession:
    """One reader's session as held by the store.

    RULES:
    - id: UUID4 hex string, immutable after creation
    - updates: number of progress updates since the last (re)load
    - created_at / updated_at: epoch timestamps
    """

    id: str
    session: RevealSession
    dispatcher: EffectDispatcher
    recorder: RecordingEffectRenderer
    created_at: float
    updated_at: float
    updates: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def advance(self, progress: float) -> ProgressResult:
        """Feed one progress sample and collect the resulting effects.

        The recorder history and the dispatcher's rejections are drained
        into the result, so neither grows over the life of the session.
        """
        with self.lock:
            update = self.session.update(progress)
            effects = list(self.recorder.history)
            rejected = list(self.dispatcher.rejected)
            self.recorder.clear()
            self.dispatcher.rejected.clear()
            self.updates += 1
            self.updated_at = time.time()
            return ProgressResult(update=update, effects=effects, rejected=rejected)

    def reload(self, content: str) -> None:
        with self.lock:
            self.session.load(content)
            self.recorder.clear()
            self.dispatcher.rejected.clear()
            self.updates = 0
            self.updated_at = time.time()


class SessionStore:
    """Thread-safe in-memory store for reveal sessions.

    RULES:
    - get_session() returns None for missing IDs (no exceptions)
    - delete_session() returns False for missing IDs
    - cleanup_expired() removes sessions idle for longer than the TTL
    """

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        max_sessions: int = MAX_SESSIONS,
    ) -> None:
        self._sessions: Dict[str, StoredSession] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions

    def create_session(
        self,
        content: str = "",
        window_lines: Optional[int] = None,
        rearm_on_retreat: Optional[bool] = None,
    ) -> StoredSession:
        """Create a session for ``content`` (already normalized).

        Raises:
            ValueError: If max_sessions is reached or window_lines < 1.
        """
        bus = EffectBus()
        recorder = RecordingEffectRenderer()
        dispatcher = EffectDispatcher()
        for cue_type in sorted(KNOWN_CUE_TYPES):
            dispatcher.register(cue_type, recorder)
        dispatcher.attach(bus)

        session = RevealSession(
            content,
            window_lines=window_lines if window_lines is not None else REVEAL_WINDOW_LINES,
            rearm_on_retreat=rearm_on_retreat if rearm_on_retreat is not None else REARM_ON_RETREAT,
            bus=bus,
        )

        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise ValueError(
                    "Maximum number of concurrent sessions ({}) reached".format(
                        self.max_sessions
                    )
                )
            now = time.time()
            stored = StoredSession(
                id=uuid.uuid4().hex,
                session=session,
                dispatcher=dispatcher,
                recorder=recorder,
                created_at=now,
                updated_at=now,
            )
            self._sessions[stored.id] = stored

        logger.info(
            "Created session %s (%d visible chars, %d cues)",
            stored.id, session.total_visible_length, len(session.cues),
        )
        return stored

    def get_session(self, session_id: str) -> Optional[StoredSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self) -> List[StoredSession]:
        """All sessions, oldest first."""
        with self._lock:
            return sorted(self._sessions.values(), key=lambda s: s.created_at)

    def advance(self, session_id: str, progress: float) -> Optional[ProgressResult]:
        stored = self.get_session(session_id)
        if stored is None:
            return None
        return stored.advance(progress)

    def reload(self, session_id: str, content: str) -> Optional[StoredSession]:
        stored = self.get_session(session_id)
        if stored is None:
            return None
        stored.reload(content)
        logger.info("Reloaded session %s (%d cues)", session_id, len(stored.session.cues))
        return stored

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            stored = self._sessions.pop(session_id, None)
        if stored is None:
            return False
        stored.dispatcher.detach()
        logger.info("Deleted session %s", session_id)
        return True

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def cleanup_expired(self) -> int:
        """Remove sessions idle for longer than the TTL.

        Returns:
            Number of sessions removed.
        """
        now = time.time()
        expired: List[StoredSession] = []
        with self._lock:
            for session_id, stored in list(self._sessions.items()):
                if now - stored.updated_at > self._ttl_seconds:
                    expired.append(self._sessions.pop(session_id))

        for stored in expired:
            stored.dispatcher.detach()
            logger.info("Expired session %s (idle %.0fs)", stored.id, now - stored.updated_at)
        return len(expired)
