"""
Static checks for loaded story content.

Problems are returned as messages; the engine itself tolerates all of them,
so validation is advisory.
"""

from collections import Counter

from .config import EngineConfig
from .models import ENDING_MARKER, StoryData
from .variables import (
    BOOL_ASSIGN_PATTERN, CONDITION_PATTERN, NUMBER_ASSIGN_PATTERN, STEP_PATTERN
)

EFFECT_PATTERNS = (BOOL_ASSIGN_PATTERN, STEP_PATTERN, NUMBER_ASSIGN_PATTERN)


def _duplicates(values) -> list[str]:
    return sorted(value for value, count in Counter(values).items() if count > 1)


def validate_story(story: StoryData, config: EngineConfig | None = None) -> list[str]:
    """Return a list of human-readable problems found in the story."""
    config = config or EngineConfig()
    errors: list[str] = []

    scene_ids = {scene.scene_id for scene in story.scenes}
    character_ids = {c.character_id for c in story.characters}
    choice_groups = {choice.choice_id for choice in story.choices}
    variable_names = {d.var_name for d in story.variable_defs}

    if not story.scenes:
        errors.append("Story defines no scenes.")

    for scene_id in _duplicates(scene.scene_id for scene in story.scenes):
        errors.append(f"Duplicate scene id '{scene_id}'.")
    for name in _duplicates(d.var_name for d in story.variable_defs):
        errors.append(f"Duplicate variable '{name}'.")

    for line in story.dialogues:
        context = f"Dialogue {line.id}"
        if line.scene_id not in scene_ids:
            errors.append(f"{context}: unknown scene '{line.scene_id}'.")
        if line.is_choice_gate:
            if line.choice_group not in choice_groups:
                errors.append(f"{context}: choice group '{line.choice_group}' has no choices.")
        elif line.character and line.character not in character_ids:
            errors.append(f"{context}: unknown character '{line.character}'.")

    ending_targets = False
    for choice in story.choices:
        context = f"Choice '{choice.option_text}' ({choice.choice_id})"
        if choice.targets_ending:
            ending_targets = True
        elif choice.next_scene not in scene_ids:
            errors.append(f"{context}: unknown target scene '{choice.next_scene}'.")

        if choice.condition.strip():
            for clause in choice.condition.split("&&"):
                match = CONDITION_PATTERN.match(clause.strip())
                if not match:
                    errors.append(f"{context}: unparsable condition '{clause.strip()}'.")
                elif match.group(1) not in variable_names:
                    errors.append(f"{context}: condition uses undefined variable '{match.group(1)}'.")

        if choice.effect.strip():
            for clause in choice.effect.split(","):
                clause = clause.strip()
                if not any(p.match(clause) for p in EFFECT_PATTERNS):
                    errors.append(f"{context}: unrecognized effect '{clause}'.")

    if ending_targets:
        endings = (config.good_ending, config.neutral_ending,
                   config.bad_ending, config.death_ending)
        for ending in endings:
            if ending not in scene_ids:
                errors.append(f"'{ENDING_MARKER}' is used but ending scene '{ending}' is missing.")

    return errors
