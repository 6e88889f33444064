"""Line and win detection for the 5x5 board."""

from typing import List, Sequence

from .models import Line


BOARD_SIZE = 5
CELL_COUNT = BOARD_SIZE * BOARD_SIZE
LINES_TO_WIN = 3


def _build_lines() -> List[Line]:
    lines: List[Line] = []

    for row in range(BOARD_SIZE):
        start = row * BOARD_SIZE
        lines.append(Line("row", row, tuple(range(start, start + BOARD_SIZE))))

    for col in range(BOARD_SIZE):
        lines.append(Line("column", col, tuple(col + j * BOARD_SIZE for j in range(BOARD_SIZE))))

    # Top-left to bottom-right, then top-right to bottom-left
    lines.append(Line("diagonal", 0, tuple(i * (BOARD_SIZE + 1) for i in range(BOARD_SIZE))))
    lines.append(Line("diagonal", 1, tuple((i + 1) * (BOARD_SIZE - 1) for i in range(BOARD_SIZE))))

    return lines


CANDIDATE_LINES: List[Line] = _build_lines()


def detect_lines(correct: Sequence[bool]) -> List[Line]:
    """
    Find every completed line on the board.

    Overlapping lines count independently, so a full board yields all 12.

    Args:
        correct: Per-cell correctness, row-major, exactly 25 entries

    Returns:
        Completed lines in candidate order (rows, columns, diagonals)

    Raises:
        ValueError: If the input does not have 25 entries
    """
    if len(correct) != CELL_COUNT:
        raise ValueError(f"Expected {CELL_COUNT} cells, got {len(correct)}")

    return [line for line in CANDIDATE_LINES if all(correct[i] for i in line.cells)]


def has_won(correct: Sequence[bool]) -> bool:
    """True once at least three lines are complete."""
    return len(detect_lines(correct)) >= LINES_TO_WIN
