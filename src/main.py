"""
Main entry point for playing Verb Tense Bingo in the terminal.

Usage:
    python -m src.main
    python -m src.main config.yaml
    python -m src.main config.yaml --output results/session.json --verbose
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from .bingo import Verb, render_grid
from .environment import (
    GameController,
    GameConfig,
    ConsoleEffects,
    InvalidTransition,
    RecognitionError,
    Phase,
)


HELP = """Commands:
  <index> | <row> <col>   answer a cell (0-24, or row and column 0-4)
  board                   show the board
  new                     start a new game
  level <1-3>             change difficulty (starts a new game)
  verbs <file.yaml>       load a custom verb list (starts a new game)
  end                     end the game and show the summary
  help                    show this help
  quit                    leave"""


def load_config(config_path: Optional[str]) -> GameConfig:
    """Load game configuration from a YAML file, or defaults when no path is given."""
    if config_path is None:
        return GameConfig()

    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return GameConfig(**data)


def load_verbs(verbs_path: str) -> List[Verb]:
    """Load a verb list (a YAML list of {present, past, isRegular} entries)."""
    path = Path(verbs_path)

    if not path.exists():
        raise FileNotFoundError(f"Verb list not found: {verbs_path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or []
    except yaml.YAMLError as e:
        raise ValueError(f"Verb list {verbs_path} is not valid YAML: {e}") from e

    if isinstance(data, dict):
        data = data.get("verbs") or []

    if not isinstance(data, list):
        raise ValueError(f"Verb list {verbs_path} must be a list of verbs")

    verbs = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"Verb list entry {i + 1} must have present, past and isRegular: {entry!r}")
        verbs.append(Verb(**entry))
    return verbs


def parse_cell(command: str) -> Optional[int]:
    """Parse '<index>' or '<row> <col>' into a cell index."""
    parts = command.split()
    if not parts or not all(p.isdigit() for p in parts):
        return None
    if len(parts) == 1:
        return int(parts[0])
    if len(parts) == 2:
        row, col = int(parts[0]), int(parts[1])
        if row > 4 or col > 4:
            return -1
        return row * 5 + col
    return None


async def read_line(prompt: str) -> str:
    # Read in a worker thread so scheduled callbacks keep running
    return (await asyncio.to_thread(input, prompt)).strip()


async def answer_cell(controller: GameController, index: int, handwriting: bool) -> None:
    """Run the answer dialog for one cell until it is closed."""
    verb = controller.select_cell(index)

    while True:
        kind = "image path" if handwriting else "answer"
        answer = await read_line(f"Past tense of '{verb.present}' ({kind}, blank to cancel): ")
        if not answer:
            controller.close_dialog()
            return

        if handwriting:
            image_path = Path(answer)
            if not image_path.exists():
                print(f"❌ Image not found: {answer}")
                continue
            payload = image_path.read_bytes()
        else:
            payload = answer

        print("Checking...", end=" ", flush=True)
        try:
            result = await controller.submit_answer(index, payload)
        except RecognitionError:
            # Already reported through the effects sink
            continue
        print("done.")

        if result is None:
            return

        if result.correct or controller.phase == Phase.WON:
            controller.close_dialog()
            return

        print(f"✗ We read: {result.interpreted}")
        again = await read_line("Try again? [y/N]: ")
        if again.lower().startswith("y"):
            controller.retry()
            continue

        controller.close_dialog()
        return


async def play(controller: GameController, verbose: bool = False) -> None:
    """Interactive loop over stdin."""
    handwriting = controller.config.recognition.mode == "handwriting"

    print("Verb Tense Bingo - find the past tense and complete 3 lines to win!")
    print(HELP)

    while True:
        session = controller.session
        print()
        print(f"Level {session.difficulty} | Lines: {session.completed_lines_count}")
        print(render_grid(session.grid))

        try:
            command = await read_line("> ")
        except EOFError:
            return

        if not command:
            continue

        word, _, argument = command.partition(" ")
        word = word.lower()

        try:
            if word in ("quit", "q", "exit"):
                return
            elif word == "help":
                print(HELP)
            elif word == "board":
                continue
            elif word == "new":
                controller.restart()
            elif word == "level":
                controller.change_difficulty(int(argument))
            elif word == "verbs":
                controller.save_verbs(load_verbs(argument.strip()))
            elif word == "end":
                controller.end_game()
            else:
                index = parse_cell(command)
                if index is None:
                    print(f"Unknown command: {command}")
                    continue
                await answer_cell(controller, index, handwriting)

            # Let a scheduled summary fire before redrawing
            await asyncio.sleep(0)
        except (InvalidTransition, ValueError, FileNotFoundError) as e:
            print(f"❌ {e}")

        if verbose:
            print(controller.get_state())


def save_result(controller: GameController, path: str | Path) -> None:
    """
    Save the session result to a JSON file.

    Args:
        controller: The controller whose session to save
        path: Path to save the result file
    """
    result = controller.get_result()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        json.dump(result.model_dump(mode="json"), f, indent=2, default=str)


def main():
    parser = argparse.ArgumentParser(
        description="Play Verb Tense Bingo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example config.yaml:
  difficulty: 2
  seed: 42
  summary_delay: 1.0
  recognition:
    mode: handwriting
    model: gemini/gemini-2.5-flash-lite
    temperature: 0.1
        """
    )
    parser.add_argument(
        "config",
        nargs="?",
        help="Path to YAML configuration file (defaults are used if omitted)"
    )
    parser.add_argument(
        "--output", "-o",
        help="Path to save the session result JSON when the game ends"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print controller state and debug logs"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        controller = GameController.create(config=config, effects=ConsoleEffects())
    except ValueError as e:
        print(f"Error starting game: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        asyncio.run(play(controller, verbose=args.verbose))
    except KeyboardInterrupt:
        print("\nGame interrupted by user")

    if args.output:
        save_result(controller, args.output)
        print(f"Results saved to: {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
