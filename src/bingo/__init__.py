"""Bingo board logic: verbs, cells, lines."""

from .models import Verb, CellState, GridCell, Line, ValidationError, ValidationResult
from .lines import detect_lines, has_won, CANDIDATE_LINES, BOARD_SIZE, CELL_COUNT, LINES_TO_WIN
from .grid import GridState, render_grid
from .verb_pool import VerbPool, validate_verbs, DIFFICULTY_MIX
from .data import DEFAULT_VERBS

__all__ = [
    # Models
    "Verb",
    "CellState",
    "GridCell",
    "Line",
    "ValidationError",
    "ValidationResult",
    # Line detection
    "detect_lines",
    "has_won",
    "CANDIDATE_LINES",
    "BOARD_SIZE",
    "CELL_COUNT",
    "LINES_TO_WIN",
    # Board
    "GridState",
    "render_grid",
    # Verb selection
    "VerbPool",
    "validate_verbs",
    "DIFFICULTY_MIX",
    "DEFAULT_VERBS",
]
