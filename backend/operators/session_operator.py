"""
Session Operator - in-process registry of open edit sessions.

Timelines are never persisted: a session lives in memory from creation
until it is closed or the process restarts. Sessions are scoped to a
subject; looking one up under another subject is treated as not found.
"""

import logging
import threading

from models.section_models import Section
from operators.edit_session import EditSession

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Edit session not found: {session_id}")


_sessions: dict[str, EditSession] = {}
_lock = threading.Lock()


def create_session(subject: str, sections: list[Section] | None = None) -> EditSession:
    session = EditSession(subject=subject, sections=sections)
    with _lock:
        _sessions[session.session_id] = session
    logger.info("Opened edit session %s for subject %s", session.session_id, subject)
    return session


def get_session(subject: str, session_id: str) -> EditSession:
    with _lock:
        session = _sessions.get(session_id)
    if session is None or session.subject != subject:
        raise SessionNotFoundError(session_id)
    return session


def close_session(subject: str, session_id: str) -> None:
    session = get_session(subject, session_id)
    with _lock:
        _sessions.pop(session.session_id, None)
    logger.info("Closed edit session %s", session_id)


def clear_sessions() -> None:
    with _lock:
        _sessions.clear()
