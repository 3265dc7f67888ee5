"""
State machine for response/transition staging and change listeners.
"""

import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class Staging(Enum):
    """What a selected choice has staged for the presentation layer."""
    NONE = "none"
    RESPONSE = "response"
    TRANSITION = "transition"


class NarrativeState(Enum):
    """Session states, derived from the engine's fields."""
    NOT_STARTED = "not_started"
    PLAYING = "playing"
    CHOICE_GATED = "choice_gated"
    RESPONSE_STAGED = "response_staged"
    TRANSITION_STAGED = "transition_staged"
    TERMINAL = "terminal"


class StateMachine:
    """Tracks staged response text and destination, and notifies listeners."""

    def __init__(self):
        self.pending_response: str | None = None
        self.pending_next_scene: str | None = None
        self._listeners: list[tuple[object, Callable[[], None]]] = []

    def add_listener(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Add a change listener. Returns a function that removes it.

        Each registration gets its own handle, so adding the same callback
        twice needs two removals.
        """
        token = object()
        self._listeners.append((token, callback))

        def remove() -> None:
            self._listeners = [
                entry for entry in self._listeners if entry[0] is not token
            ]

        return remove

    def notify_listeners(self) -> None:
        """Call every listener in registration order."""
        for _, callback in list(self._listeners):
            callback()

    @property
    def staging(self) -> Staging:
        if self.pending_response:
            return Staging.RESPONSE
        if self.pending_next_scene:
            return Staging.TRANSITION
        return Staging.NONE

    @property
    def is_staged(self) -> bool:
        return self.staging is not Staging.NONE

    def stage(self, destination: str, response: str | None = None) -> None:
        """Stage a destination, optionally preceded by response text.

        An empty destination stages nothing to move to; only the response
        (if any) is shown and the player stays where they are.
        """
        if not destination:
            logger.warning("Choice has no destination scene; staying in place")
        self.pending_response = response or None
        self.pending_next_scene = destination or None
        logger.debug("Staged %s -> %s", self.staging.value, destination)

    def acknowledge_response(self) -> None:
        """Mark the staged response as read; the destination stays staged."""
        self.pending_response = None

    def commit(self) -> str | None:
        """Clear staging and return the destination that was staged."""
        destination = self.pending_next_scene
        self.clear()
        return destination

    def clear(self) -> None:
        self.pending_response = None
        self.pending_next_scene = None
