"""
Session reporting hooks.

The engine reports when a session starts and which ending it reached. A
reporter is an external collaborator (a remote counter, a log file, ...);
its failures must never stop playback.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class SessionReporter(ABC):
    """Base class for session reporters."""

    @abstractmethod
    def record_session_start(self) -> None:
        """Called once each time a session starts."""
        pass

    @abstractmethod
    def record_session_complete(self, ending_id: str) -> None:
        """Called once per session when an ending scene is entered."""
        pass


class NullReporter(SessionReporter):
    """Reporter that records nothing."""

    def record_session_start(self) -> None:
        pass

    def record_session_complete(self, ending_id: str) -> None:
        pass


class SafeReporter:
    """Wraps a reporter so that its errors are logged and skipped."""

    def __init__(self, reporter: SessionReporter | None = None):
        self.reporter = reporter or NullReporter()

    def session_start(self) -> None:
        try:
            self.reporter.record_session_start()
        except Exception:
            logger.warning("Session reporter failed on session start", exc_info=True)

    def session_complete(self, ending_id: str) -> None:
        try:
            self.reporter.record_session_complete(ending_id)
        except Exception:
            logger.warning(
                "Session reporter failed on ending %s", ending_id, exc_info=True
            )
