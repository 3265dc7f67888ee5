# Branching Novel Engine
# YAML-based visual novel engine with choice gates and computed endings

__version__ = "1.0.0"

from .core import GameEngine
from .config import EngineConfig
from .models import *
from .state_machine import NarrativeState, StateMachine, Staging
from .variables import VariableStore
from .endings import EndingResolver
from .analytics import NullReporter, SessionReporter
from .exceptions import SaveDataError, StoryLoadError
from .yaml_parser import StoryParser, load_story
from .validation import validate_story

__all__ = [
    "GameEngine",
    "EngineConfig",
    "NarrativeState",
    "StateMachine",
    "Staging",
    "VariableStore",
    "EndingResolver",
    "NullReporter",
    "SessionReporter",
    "SaveDataError",
    "StoryLoadError",
    "StoryParser",
    "load_story",
    "validate_story",
]
