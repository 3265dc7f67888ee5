"""
Core narrative engine that ties all systems together.
"""

import logging
import random
from typing import Any, Callable, Mapping

from .analytics import SafeReporter, SessionReporter
from .config import EngineConfig
from .endings import EndingResolver
from .models import (
    Character, Choice, ChoiceRecord, DialogueLine, SaveData, Scene, StoryData
)
from .state_machine import NarrativeState, StateMachine
from .variables import VariableStore

logger = logging.getLogger(__name__)


class GameEngine:
    """Plays one session of a story.

    The engine is driven by ``start``, ``advance``, ``select_choice`` and
    ``complete_transition``. After every state change it calls the
    subscribed listeners synchronously; listeners must not call those
    commands back.
    """

    def __init__(self, story: StoryData, config: EngineConfig | None = None,
                 reporter: SessionReporter | None = None,
                 rng: random.Random | None = None):
        self.story = story
        self.config = config or EngineConfig()
        self.variables = VariableStore()
        self.state_machine = StateMachine()
        self.ending_resolver = EndingResolver(self.config, rng)
        self.reporter = SafeReporter(reporter)

        self.current_scene_id: str = ""
        self.dialogue_index: int = 0
        self._scene_dialogues: list[DialogueLine] = []
        self._choice_history: list[ChoiceRecord] = []
        self._ending_reported = False

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a change listener. Returns an unsubscribe function."""
        return self.state_machine.add_listener(callback)

    def _notify(self) -> None:
        self.state_machine.notify_listeners()

    def start(self) -> None:
        """Start a new session from the first scene."""
        self.variables.init(self.story.variable_defs)
        self._choice_history = []
        self._ending_reported = False
        self.state_machine.clear()
        self.reporter.session_start()

        if self.story.scenes:
            self.go_to_scene(self.story.scenes[0].scene_id)
        else:
            logger.warning("Story has no scenes; session started without a scene")
            self.current_scene_id = ""
            self._scene_dialogues = []
            self.dialogue_index = 0
            self._notify()

    def go_to_scene(self, scene_id: str) -> None:
        """Jump to the start of a scene, dropping anything staged."""
        self.current_scene_id = scene_id
        self._scene_dialogues = self.story.dialogues_for(scene_id)
        self.dialogue_index = 0
        self.state_machine.clear()
        logger.debug("Entered scene %s (%d lines)", scene_id, len(self._scene_dialogues))

        if self.is_ending() and not self._ending_reported:
            self._ending_reported = True
            self.reporter.session_complete(scene_id)

        self._notify()

    def advance(self) -> None:
        """Continue reading."""
        if self.is_at_choice():
            logger.debug("advance() ignored while waiting for a choice")
            return

        # Staged content was read; the front-end finishes the transition.
        if self.state_machine.is_staged:
            self.state_machine.acknowledge_response()
            self._notify()
            return

        if self.dialogue_index < len(self._scene_dialogues) - 1:
            self.dialogue_index += 1
            self._notify()

    def select_choice(self, choice: Choice) -> None:
        """Pick an option at the current choice gate."""
        if not self.is_at_choice():
            logger.debug("select_choice() ignored outside a choice gate")
            return

        scene = self.get_current_scene()
        self._choice_history.append(ChoiceRecord(
            checkpoint=scene.scene_name if scene else "",
            choice_text=choice.option_text,
        ))

        if choice.effect:
            self.variables.apply_effect(choice.effect)

        if choice.targets_ending:
            destination = self.ending_resolver.resolve(self.variables)
        else:
            destination = choice.next_scene

        self.state_machine.stage(destination, choice.response)
        self._notify()

    def complete_transition(self) -> None:
        """Finish a staged transition and enter its destination scene."""
        if not self.state_machine.pending_next_scene:
            return
        destination = self.state_machine.commit()
        self.go_to_scene(destination)

    def get_current_dialogue(self) -> DialogueLine | None:
        if 0 <= self.dialogue_index < len(self._scene_dialogues):
            return self._scene_dialogues[self.dialogue_index]
        return None

    def get_current_scene(self) -> Scene | None:
        return self.story.find_scene(self.current_scene_id)

    def get_character(self, character_id: str) -> Character | None:
        return self.story.find_character(character_id)

    def is_at_choice(self) -> bool:
        """Whether the current line is a choice gate with nothing staged."""
        if self.state_machine.is_staged:
            return False
        dialogue = self.get_current_dialogue()
        return dialogue is not None and dialogue.is_choice_gate

    def get_current_choices(self) -> list[Choice]:
        """Choices of the current gate whose conditions hold."""
        dialogue = self.get_current_dialogue()
        if dialogue is None or not dialogue.is_choice_gate:
            return []
        return [
            choice for choice in self.story.choices_for(dialogue.choice_group)
            if self.variables.check_condition(choice.condition)
        ]

    def is_showing_response(self) -> bool:
        return self.state_machine.pending_response is not None

    def get_response(self) -> str | None:
        return self.state_machine.pending_response

    def has_pending_transition(self) -> bool:
        """A destination is staged and no response is waiting to be read."""
        return (self.state_machine.pending_next_scene is not None
                and self.state_machine.pending_response is None)

    def get_pending_transition_scene(self) -> str | None:
        return self.state_machine.pending_next_scene

    def get_variables(self) -> dict[str, Any]:
        return self.variables.get_all()

    def get_choice_history(self) -> list[ChoiceRecord]:
        return list(self._choice_history)

    def get_progress(self) -> float:
        """Coarse progress hint from the milestone table."""
        if self.is_ending():
            return 1.0
        return self.config.progress_milestones.get(self.current_scene_id, 0.0)

    def is_ending(self) -> bool:
        return self.config.is_ending_scene(self.current_scene_id)

    def is_end(self) -> bool:
        """Whether there is nothing left to read in the current scene."""
        if self.get_current_dialogue() is None:
            return True
        return (
            self.dialogue_index == len(self._scene_dialogues) - 1
            and not self.is_at_choice()
            and not self.is_showing_response()
            and not self.has_pending_transition()
        )

    def get_state(self) -> NarrativeState:
        """Current session state, derived from the fields above."""
        if not self.current_scene_id:
            return NarrativeState.NOT_STARTED
        if self.is_showing_response():
            return NarrativeState.RESPONSE_STAGED
        if self.has_pending_transition():
            return NarrativeState.TRANSITION_STAGED
        if self.is_at_choice():
            return NarrativeState.CHOICE_GATED
        if self.is_ending() and self.is_end():
            return NarrativeState.TERMINAL
        return NarrativeState.PLAYING

    def get_save_data(self) -> SaveData:
        return SaveData(
            scene_id=self.current_scene_id,
            dialogue_index=self.dialogue_index,
            variables=self.variables.get_all(),
        )

    def load_save_data(self, saved: SaveData | Mapping[str, Any]) -> None:
        """Restore variables and position. Choice history is left as is."""
        if not isinstance(saved, SaveData):
            saved = SaveData.from_dict(saved)

        self.variables.load_from(saved.variables)
        self.state_machine.clear()
        self.current_scene_id = saved.scene_id
        self._scene_dialogues = self.story.dialogues_for(saved.scene_id)

        last_index = max(len(self._scene_dialogues) - 1, 0)
        if not 0 <= saved.dialogue_index <= last_index:
            logger.warning(
                "Saved dialogue index %d out of range for scene %s; clamped",
                saved.dialogue_index, saved.scene_id,
            )
        self.dialogue_index = min(max(saved.dialogue_index, 0), last_index)
        # A restored ending scene must not be reported as a new completion.
        self._ending_reported = self.is_ending()
        self._notify()
