#!/usr/bin/env python3
"""
Branching Novel - Main Entry Point
Plays a YAML story in the terminal.
"""

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Callable

from novel.analytics import SessionReporter
from novel.core import GameEngine
from novel.exceptions import StoryLoadError
from novel.models import SaveData, StoryInfo
from novel.validation import validate_story
from novel.yaml_parser import load_story

logger = logging.getLogger("novel.console")

DEFAULT_STORY_PATH = Path(__file__).parent / "stories" / "october"
DEFAULT_SAVE_PATH = Path("save.json")


class LogReporter(SessionReporter):
    """Reports session events to the log."""

    def __init__(self):
        self.sessions_started = 0
        self.endings: list[str] = []

    def record_session_start(self) -> None:
        self.sessions_started += 1
        logger.info("Session %d started", self.sessions_started)

    def record_session_complete(self, ending_id: str) -> None:
        self.endings.append(ending_id)
        logger.info("Session reached ending %s", ending_id)


class NovelConsole:
    """Simple text-based front-end for the narrative engine."""

    def __init__(self, engine: GameEngine, info: StoryInfo,
                 save_path: Path = DEFAULT_SAVE_PATH,
                 input_func: Callable[[str], str] = input,
                 output: Callable[[str], None] = print,
                 reporter: LogReporter | None = None):
        self.engine = engine
        self.info = info
        self.reporter = reporter
        self.save_path = save_path
        self._input = input_func
        self._print = output
        self._needs_render = False
        self._last_scene: str | None = None
        self.engine.subscribe(self._on_change)

    def _on_change(self) -> None:
        self._needs_render = True

    def display_title(self) -> None:
        self._print("")
        self._print(self.info.title or self.info.id)
        if self.info.description:
            self._print(self.info.description)
        if self.reporter is not None and self.reporter.sessions_started:
            self._print(f"Sessions played: {self.reporter.sessions_started}")
            tally = Counter(self.reporter.endings)
            if tally:
                self._print("Endings: " + ", ".join(
                    f"{ending} x{count}" for ending, count in sorted(tally.items())
                ))
        self._print("")

    def display_scene_header(self) -> None:
        """Show the scene label when a new scene begins."""
        scene = self.engine.get_current_scene()
        if scene is None or scene.scene_id == self._last_scene:
            return
        self._last_scene = scene.scene_id
        label = self.info.scene_labels.get(scene.scene_id, "")
        progress = int(self.engine.get_progress() * 100)
        header = f"【{scene.scene_name}】"
        if label:
            header = f"{label} {header}"
        self._print("")
        self._print(f"{header}  ({progress}%)")

    def display_dialogue(self) -> None:
        dialogue = self.engine.get_current_dialogue()
        if dialogue is None or dialogue.is_choice_gate:
            return
        character = self.engine.get_character(dialogue.character)
        if character and character.display_name:
            self._print(f"{character.display_name}: {dialogue.text}")
        else:
            self._print(dialogue.text)

    def display_choices(self) -> list:
        """Display available choices and return them."""
        choices = self.engine.get_current_choices()
        self._print("")
        for i, choice in enumerate(choices):
            self._print(f"  {i + 1}. {choice.option_text}")
        return choices

    def display_history(self) -> None:
        self._print("")
        self._print("【Your choices】")
        history = self.engine.get_choice_history()
        if not history:
            self._print("  (none)")
        for record in history:
            self._print(f"  {record.checkpoint}: {record.choice_text}")

    def display_variables(self) -> None:
        variables = self.engine.get_variables()
        self._print("  " + "  ".join(f"{k}={v}" for k, v in variables.items()))

    def show_help(self) -> None:
        self._print("")
        self._print("【Commands】")
        self._print("  Enter     - continue")
        self._print("  number    - pick a choice")
        self._print("  history   - show your choices so far")
        self._print("  vars      - show variables")
        self._print("  save      - save the game")
        self._print("  load      - load the game")
        self._print("  help/h    - show this help")
        self._print("  quit/q    - quit")

    def run_transition(self) -> None:
        """Show the transition text, then let the engine enter the next scene."""
        target = self.engine.get_pending_transition_scene()
        if target is None:
            return
        text = self.info.transition_text.get(target)
        if text:
            self._print("")
            self._print(text)
        self.engine.complete_transition()

    def save_game(self) -> bool:
        try:
            with open(self.save_path, "w", encoding="utf-8") as f:
                json.dump(self.engine.get_save_data().to_dict(), f,
                          ensure_ascii=False, indent=2)
        except OSError as e:
            self._print(f"Save failed: {e}")
            return False
        self._print("Saved.")
        return True

    def load_game(self) -> bool:
        if not self.save_path.exists():
            self._print("No save data.")
            return False
        try:
            with open(self.save_path, "r", encoding="utf-8") as f:
                save_data = SaveData.from_dict(json.load(f))
        except (OSError, ValueError) as e:
            # SaveDataError and JSONDecodeError are both ValueErrors
            self._print(f"Load failed: {e}")
            return False
        self._last_scene = None
        self.engine.load_save_data(save_data)
        self._print("Loaded.")
        return True

    def handle_command(self, command: str) -> bool:
        """Handle a non-story command. Returns False to quit."""
        if command in ("quit", "q"):
            return False
        elif command in ("help", "h"):
            self.show_help()
        elif command == "history":
            self.display_history()
        elif command == "vars":
            self.display_variables()
        elif command == "save":
            self.save_game()
        elif command == "load":
            self.load_game()
        else:
            self._print("Unknown command. (help for a list)")
        return True

    def game_loop(self) -> str | None:
        """Play until an ending is finished or the player quits.

        Returns the ending scene id, or None when the player quit.
        """
        self._needs_render = True
        while True:
            if self._needs_render:
                self._needs_render = False
                self.display_scene_header()
                if self.engine.is_showing_response():
                    self._print(self.engine.get_response())
                elif self.engine.has_pending_transition():
                    self.run_transition()
                    continue
                else:
                    self.display_dialogue()

            if self.engine.is_end():
                if self.engine.is_ending():
                    return self.engine.current_scene_id
                self._print("")
                self._print("The story stops here.")
                return None

            choices = self.display_choices() if self.engine.is_at_choice() else []

            try:
                command = self._input("> ").strip().lower()
            except EOFError:
                return None

            if not command:
                if choices:
                    self._print("Pick a number.")
                    continue
                was_response = self.engine.is_showing_response()
                self.engine.advance()
                if was_response:
                    self.run_transition()
                continue

            if command.isdigit() and choices:
                index = int(command) - 1
                if 0 <= index < len(choices):
                    self._print("")
                    self._print(f"> {choices[index].option_text}")
                    self.engine.select_choice(choices[index])
                else:
                    self._print("Invalid choice.")
                continue

            if not self.handle_command(command):
                return None

    def run(self) -> None:
        """Run sessions until the player stops."""
        while True:
            self.display_title()
            self._last_scene = None
            self.engine.start()
            ending = self.game_loop()
            if ending is None:
                self._print("")
                self._print("Goodbye.")
                return

            scene = self.engine.get_current_scene()
            self._print("")
            self._print(f"=== {scene.scene_name if scene else ending} ===")
            self.display_history()
            self.display_variables()

            try:
                again = self._input("Play again? (y/n) > ").strip().lower()
            except EOFError:
                again = "n"
            if again not in ("y", "yes"):
                self._print("Goodbye.")
                return


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play a branching novel in the terminal.")
    parser.add_argument("story", nargs="?", default=str(DEFAULT_STORY_PATH),
                        help="path to a story directory")
    parser.add_argument("--save", default=str(DEFAULT_SAVE_PATH),
                        help="save file path")
    parser.add_argument("--seed", type=int, default=None,
                        help="seed for the ending resolution")
    parser.add_argument("--validate", action="store_true",
                        help="check the story content and exit")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="logging level")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        story, info = load_story(args.story)
    except StoryLoadError as e:
        print(f"Failed to load story: {e}", file=sys.stderr)
        return 1

    problems = validate_story(story, info.config)
    if args.validate:
        for problem in problems:
            print(problem)
        print(f"{len(problems)} problem(s) found.")
        return 1 if problems else 0
    for problem in problems:
        logger.warning(problem)

    if args.seed is not None:
        info.config.seed = args.seed

    reporter = LogReporter()
    engine = GameEngine(story, info.config, reporter=reporter)
    NovelConsole(engine, info, save_path=Path(args.save), reporter=reporter).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
