"""In-memory registry of per-session compaction engines."""

import logging
import uuid
from typing import Dict, List, Optional

from compaction import ContextCompressionEngine

logger = logging.getLogger(__name__)


class SessionLimitError(Exception):
    """Raised when the registry already holds the maximum number of sessions."""
    pass


class SessionRegistry:
    """
    Holds one ContextCompressionEngine per conversation session.

    Engines never share state; the registry only maps ids to engines.
    """

    def __init__(self, max_sessions: int = 1000):
        self.max_sessions = max_sessions
        self._engines: Dict[str, ContextCompressionEngine] = {}

    def __len__(self) -> int:
        return len(self._engines)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._engines

    def create(self, engine: ContextCompressionEngine, session_id: Optional[str] = None) -> str:
        """Register an engine under a new (or given) session id."""
        if session_id in self._engines:
            raise ValueError(f"Session already exists: {session_id}")
        if len(self._engines) >= self.max_sessions:
            raise SessionLimitError(f"Session limit reached ({self.max_sessions})")

        new_id = session_id or str(uuid.uuid4())
        self._engines[new_id] = engine
        logger.info(f"Created context session {new_id} (max_size={engine.max_size})")
        return new_id

    def get(self, session_id: str) -> Optional[ContextCompressionEngine]:
        """Get the engine for a session, if any."""
        return self._engines.get(session_id)

    def delete(self, session_id: str) -> bool:
        """Drop a session and its engine."""
        if session_id not in self._engines:
            return False
        del self._engines[session_id]
        logger.info(f"Deleted context session {session_id}")
        return True

    def session_ids(self) -> List[str]:
        """All live session ids."""
        return list(self._engines.keys())
