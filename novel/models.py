"""
Data models for the narrative engine.
Uses dataclasses for the static story content and the save snapshot.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from .config import EngineConfig
from .exceptions import SaveDataError


# Speaker prefix marking a dialogue line as a choice gate: "→CHOICE:<group>"
CHOICE_PREFIX = "→CHOICE:"

# Choice target meaning "compute the ending from the variables"
ENDING_MARKER = "→ENDING"


@dataclass
class Scene:
    """A scene. Background and music are opaque presentation data."""
    scene_id: str
    scene_name: str = ""
    bg_image: str = ""
    bgm: str = ""


@dataclass
class DialogueLine:
    """A single line of dialogue, or a choice gate."""
    id: int
    scene_id: str
    character: str
    text: str = ""
    expression: str = ""

    @property
    def is_choice_gate(self) -> bool:
        return self.character.startswith(CHOICE_PREFIX)

    @property
    def choice_group(self) -> Optional[str]:
        """Choice group id carried by a gate line, None for spoken lines."""
        if not self.is_choice_gate:
            return None
        return self.character[len(CHOICE_PREFIX):]


@dataclass
class Choice:
    """An option offered at a choice gate."""
    choice_id: str
    option_text: str
    condition: str = ""
    effect: str = ""
    next_scene: str = ""
    response: str = ""

    @property
    def targets_ending(self) -> bool:
        return self.next_scene == ENDING_MARKER


@dataclass
class Character:
    """A speaker."""
    character_id: str
    display_name: str
    color: str = ""
    default_image: str = ""


@dataclass
class VariableDef:
    """Definition of a game variable and its default literal."""
    var_name: str
    default_value: str = "0"
    description: str = ""


@dataclass
class ChoiceRecord:
    """One entry of the choice history."""
    checkpoint: str
    choice_text: str


@dataclass
class SaveData:
    """Snapshot needed to resume a session. History is not included."""
    scene_id: str
    dialogue_index: int = 0
    variables: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "scene_id": self.scene_id,
            "dialogue_index": self.dialogue_index,
            "variables": dict(self.variables),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SaveData":
        """Build save data from a decoded mapping, rejecting bad shapes."""
        if not isinstance(data, Mapping):
            raise SaveDataError("save data must be a mapping")

        scene_id = data.get("scene_id", "")
        if not isinstance(scene_id, str):
            raise SaveDataError(f"scene_id must be a string, got {scene_id!r}", "scene_id")

        dialogue_index = data.get("dialogue_index", 0)
        if isinstance(dialogue_index, bool) or not isinstance(dialogue_index, int):
            raise SaveDataError(
                f"dialogue_index must be an integer, got {dialogue_index!r}", "dialogue_index"
            )

        variables = data.get("variables") or {}
        if not isinstance(variables, Mapping):
            raise SaveDataError(f"variables must be a mapping, got {variables!r}", "variables")
        for name, value in variables.items():
            if not isinstance(name, str) or not isinstance(value, (bool, int, float)):
                raise SaveDataError(
                    f"variable {name!r} has unsupported value {value!r}", "variables"
                )

        return cls(scene_id=scene_id, dialogue_index=dialogue_index, variables=dict(variables))


@dataclass
class StoryData:
    """The static content bundle. The engine never mutates it."""
    scenes: list[Scene] = field(default_factory=list)
    dialogues: list[DialogueLine] = field(default_factory=list)
    choices: list[Choice] = field(default_factory=list)
    characters: list[Character] = field(default_factory=list)
    variable_defs: list[VariableDef] = field(default_factory=list)

    def find_scene(self, scene_id: str) -> Optional[Scene]:
        for scene in self.scenes:
            if scene.scene_id == scene_id:
                return scene
        return None

    def dialogues_for(self, scene_id: str) -> list[DialogueLine]:
        """Lines of a scene in load order."""
        return [d for d in self.dialogues if d.scene_id == scene_id]

    def choices_for(self, group: str) -> list[Choice]:
        return [c for c in self.choices if c.choice_id == group]

    def find_character(self, character_id: str) -> Optional[Character]:
        for character in self.characters:
            if character.character_id == character_id:
                return character
        return None


@dataclass
class StoryInfo:
    """Manifest of a story directory."""
    id: str
    title: str = ""
    version: str = "1.0.0"
    author: str = ""
    description: str = ""
    scene_labels: dict[str, str] = field(default_factory=dict)
    transition_text: dict[str, str] = field(default_factory=dict)
    config: EngineConfig = field(default_factory=EngineConfig)
