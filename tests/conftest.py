"""
Shared fixtures for testing the narrative engine.
"""

import random
from pathlib import Path

import pytest
from novel.analytics import SessionReporter
from novel.config import EngineConfig
from novel.core import GameEngine
from novel.models import (
    Character, Choice, DialogueLine, Scene, StoryData, VariableDef
)
from novel.variables import VariableStore

REPO_ROOT = Path(__file__).resolve().parents[1]
SAMPLE_STORY_PATH = REPO_ROOT / "stories" / "october"


class RecordingReporter(SessionReporter):
    """Reporter that remembers what it was told."""

    def __init__(self):
        self.starts = 0
        self.endings: list[str] = []

    def record_session_start(self) -> None:
        self.starts += 1

    def record_session_complete(self, ending_id: str) -> None:
        self.endings.append(ending_id)


@pytest.fixture
def variable_defs() -> list[VariableDef]:
    """Variable definitions covering every default literal form."""
    return [
        VariableDef(var_name="emotion", default_value="5"),
        VariableDef(var_name="risk", default_value="0"),
        VariableDef(var_name="courage", default_value="2"),
        VariableDef(var_name="has_sword", default_value="false"),
        VariableDef(var_name="met_girl", default_value="true"),
    ]


@pytest.fixture
def store(variable_defs) -> VariableStore:
    """A variable store initialized from the default definitions."""
    variables = VariableStore()
    variables.init(variable_defs)
    return variables


@pytest.fixture
def story(variable_defs) -> StoryData:
    """A small story: two lines and a gate, a second scene, and endings."""
    return StoryData(
        scenes=[
            Scene(scene_id="cp1", scene_name="Chapter One"),
            Scene(scene_id="cp2", scene_name="Chapter Two"),
            Scene(scene_id="end_good", scene_name="Good End"),
            Scene(scene_id="end_neutral", scene_name="Neutral End"),
            Scene(scene_id="end_bad", scene_name="Bad End"),
            Scene(scene_id="end_death", scene_name="Death End"),
        ],
        dialogues=[
            DialogueLine(id=1, scene_id="cp1", character="hero", text="Line one."),
            DialogueLine(id=2, scene_id="cp1", character="girl", text="Line two."),
            DialogueLine(id=3, scene_id="cp1", character="→CHOICE:c1"),
            DialogueLine(id=4, scene_id="cp2", character="hero", text="Second chapter."),
            DialogueLine(id=5, scene_id="cp2", character="→CHOICE:c2"),
            DialogueLine(id=6, scene_id="end_good", character="hero", text="Happy."),
            DialogueLine(id=7, scene_id="end_neutral", character="hero", text="Fine."),
            DialogueLine(id=8, scene_id="end_bad", character="hero", text="Sad."),
            DialogueLine(id=9, scene_id="end_death", character="hero", text="Gone."),
        ],
        choices=[
            Choice(choice_id="c1", option_text="Be brave", effect="courage+2,emotion+1",
                   next_scene="cp2", response="You feel braver."),
            Choice(choice_id="c1", option_text="Run away", effect="risk+1",
                   next_scene="cp2"),
            Choice(choice_id="c1", option_text="Draw the sword", condition="has_sword==true",
                   next_scene="cp2"),
            Choice(choice_id="c2", option_text="Face the end", next_scene="→ENDING"),
            Choice(choice_id="c2", option_text="Face the end quietly",
                   next_scene="→ENDING", response="You close your eyes."),
        ],
        characters=[
            Character(character_id="hero", display_name="Hero", color="#ffffff"),
            Character(character_id="girl", display_name="Girl", color="#ff88aa"),
        ],
        variable_defs=variable_defs,
    )


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def engine(story, reporter) -> GameEngine:
    """An engine over the small story with a fixed random source."""
    return GameEngine(story, EngineConfig(), reporter=reporter, rng=random.Random(1234))


@pytest.fixture
def started_engine(engine) -> GameEngine:
    engine.start()
    return engine


@pytest.fixture
def gated_engine(started_engine) -> GameEngine:
    """An engine waiting at the first choice gate."""
    started_engine.advance()
    started_engine.advance()
    return started_engine


@pytest.fixture
def sample_story_path() -> Path:
    return SAMPLE_STORY_PATH
