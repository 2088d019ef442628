"""
Session Manager for PocketCal
One calculator per web client, held in memory only
"""
import logging
import threading
import uuid

import config
from calculator import Calculator
from history_manager import HistoryManager

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    pass


class SessionLimitError(RuntimeError):
    pass


class Session:
    def __init__(self, session_id):
        self.id = session_id
        self.calculator = Calculator()
        self.history = HistoryManager().attach(self.calculator)
        self.lock = threading.Lock()

    def apply(self, events):
        """Apply events in order and return the final display"""
        with self.lock:
            display = self.calculator.display
            for event in events:
                display = self.calculator.dispatch(event)
            return display

    def to_dict(self):
        with self.lock:
            return {
                'id': self.id,
                'display': self.calculator.display.as_dict(),
                'memory': self.calculator.memory_value,
            }


class SessionManager:
    def __init__(self, max_sessions=config.MAX_SESSIONS):
        self.max_sessions = max_sessions
        self._sessions = {}
        self._lock = threading.Lock()

    def create_session(self):
        """Create a new calculator session"""
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise SessionLimitError(f"session limit of {self.max_sessions} reached")
            session = Session(uuid.uuid4().hex)
            self._sessions[session.id] = session
        logger.info("created session %s (%d active)", session.id, len(self._sessions))
        return session

    def get_session(self, session_id):
        with self._lock:
            try:
                return self._sessions[session_id]
            except KeyError:
                raise SessionNotFoundError(session_id) from None

    def remove_session(self, session_id):
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        logger.info("closed session %s", session_id)

    def __len__(self):
        return len(self._sessions)
