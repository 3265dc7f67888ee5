"""
YAML parser for loading story data.

A story is a directory holding a ``story.yaml`` manifest and a ``data``
directory of YAML files. Each data file may define any of the top-level
lists ``scenes``, ``dialogues``, ``choices``, ``characters`` and
``variables``. Files are read in name order and list order is load order.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from .config import EngineConfig
from .exceptions import StoryLoadError
from .models import (
    Character, Choice, DialogueLine, Scene, StoryData, StoryInfo, VariableDef
)

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str:
    """Normalize a YAML scalar to the string form used by the content grammar."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _section_mapping(value: Any, path: Path, section: str) -> dict:
    """A manifest section; missing or empty sections read as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise StoryLoadError(f"'{path}': {section} must be a mapping", path)
    return value


def _section_items(data: dict, section: str, path: Path) -> list[dict]:
    """Entries of a data file list, each of which must be a mapping."""
    items = data.get(section)
    if items is None:
        return []
    if not isinstance(items, list):
        raise StoryLoadError(f"'{path}': {section} must be a list", path)
    for item in items:
        if not isinstance(item, dict):
            raise StoryLoadError(
                f"'{path}': {section} entries must be mappings, got {item!r}", path
            )
    return items


class StoryParser:
    """Parser for loading a story directory."""

    def __init__(self, story_path: str | Path):
        self.story_path = Path(story_path)
        self.story = StoryData()
        self.story_info: StoryInfo | None = None
        self._next_dialogue_id = 1

    def load_story(self) -> StoryData:
        """Load the manifest and every data file."""
        if not self.story_path.is_dir():
            raise StoryLoadError(
                f"Story directory '{self.story_path}' not found", self.story_path
            )

        manifest_path = self.story_path / "story.yaml"
        if manifest_path.exists():
            self.story_info = self._parse_story_info(
                self._read_yaml(manifest_path), manifest_path
            )
        else:
            self.story_info = StoryInfo(id=self.story_path.name)

        data_path = self.story_path / "data"
        if data_path.is_dir():
            for yaml_file in sorted(data_path.glob("*.yaml")):
                data = self._read_yaml(yaml_file)
                if data:
                    self._parse_data_file(data, yaml_file)

        logger.info(
            "Loaded story %s: %d scenes, %d lines, %d choices",
            self.story_info.id, len(self.story.scenes),
            len(self.story.dialogues), len(self.story.choices),
        )
        return self.story

    def _read_yaml(self, path: Path) -> dict:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise StoryLoadError(f"Cannot read '{path}': {e}", path) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StoryLoadError(f"'{path}' must contain a mapping", path)
        return data

    def _parse_story_info(self, data: dict, path: Path) -> StoryInfo:
        """Parse the manifest from story.yaml."""
        story_data = _section_mapping(data.get("story", data), path, "story")
        scene_labels = _section_mapping(story_data.get("scene_labels"), path, "scene_labels")
        transition_text = _section_mapping(
            story_data.get("transition_text"), path, "transition_text"
        )

        return StoryInfo(
            id=_as_text(story_data.get("id")) or self.story_path.name,
            title=_as_text(story_data.get("title")),
            version=_as_text(story_data.get("version", "1.0.0")),
            author=_as_text(story_data.get("author")),
            description=_as_text(story_data.get("description")),
            scene_labels={str(k): _as_text(v) for k, v in scene_labels.items()},
            transition_text={str(k): _as_text(v) for k, v in transition_text.items()},
            config=EngineConfig.from_dict(
                _section_mapping(story_data.get("engine"), path, "engine")
            ),
        )

    def _parse_data_file(self, data: dict, path: Path) -> None:
        for scene_data in _section_items(data, "scenes", path):
            self.story.scenes.append(self._parse_scene(scene_data))
        for dialogue_data in _section_items(data, "dialogues", path):
            self.story.dialogues.append(self._parse_dialogue(dialogue_data))
        for choice_data in _section_items(data, "choices", path):
            self.story.choices.append(self._parse_choice(choice_data))
        for character_data in _section_items(data, "characters", path):
            self.story.characters.append(self._parse_character(character_data))
        for variable_data in _section_items(data, "variables", path):
            self.story.variable_defs.append(self._parse_variable(variable_data))

    def _parse_scene(self, scene_data: dict) -> Scene:
        return Scene(
            scene_id=_as_text(scene_data.get("scene_id")),
            scene_name=_as_text(scene_data.get("scene_name")),
            bg_image=_as_text(scene_data.get("bg_image")),
            bgm=_as_text(scene_data.get("bgm")),
        )

    def _parse_dialogue(self, dialogue_data: dict) -> DialogueLine:
        line_id = dialogue_data.get("id")
        if not isinstance(line_id, int) or isinstance(line_id, bool):
            line_id = self._next_dialogue_id
        self._next_dialogue_id = max(self._next_dialogue_id, line_id) + 1

        return DialogueLine(
            id=line_id,
            scene_id=_as_text(dialogue_data.get("scene_id")),
            character=_as_text(dialogue_data.get("character")),
            text=_as_text(dialogue_data.get("text")),
            expression=_as_text(dialogue_data.get("expression")),
        )

    def _parse_choice(self, choice_data: dict) -> Choice:
        return Choice(
            choice_id=_as_text(choice_data.get("choice_id")),
            option_text=_as_text(choice_data.get("option_text")),
            condition=_as_text(choice_data.get("condition")),
            effect=_as_text(choice_data.get("effect")),
            next_scene=_as_text(choice_data.get("next_scene")),
            response=_as_text(choice_data.get("response")),
        )

    def _parse_character(self, character_data: dict) -> Character:
        return Character(
            character_id=_as_text(character_data.get("character_id")),
            display_name=_as_text(character_data.get("display_name")),
            color=_as_text(character_data.get("color")),
            default_image=_as_text(character_data.get("default_image")),
        )

    def _parse_variable(self, variable_data: dict) -> VariableDef:
        return VariableDef(
            var_name=_as_text(variable_data.get("var_name")),
            default_value=_as_text(variable_data.get("default_value", "0")),
            description=_as_text(variable_data.get("description")),
        )


def load_story(story_path: str | Path) -> tuple[StoryData, StoryInfo]:
    """Load a story directory and return its content and manifest."""
    parser = StoryParser(story_path)
    story = parser.load_story()
    return story, parser.story_info
