"""Board state and rendering utilities."""

from typing import List, Sequence, Tuple
from pydantic import BaseModel, Field, field_validator

from .models import Verb, CellState, GridCell
from .lines import BOARD_SIZE, CELL_COUNT


class GridState(BaseModel):
    """
    The 25 cells of a bingo board in row-major order.

    Each cell pairs a verb with its progress. A cell moves from unattempted
    to attempted, and once correct it is locked for the rest of the session.

    Attributes:
        cells: Exactly 25 (verb, state) pairs
    """

    cells: List[GridCell] = Field(default_factory=list)

    @field_validator("cells")
    @classmethod
    def _check_size(cls, cells: List[GridCell]) -> List[GridCell]:
        if len(cells) != CELL_COUNT:
            raise ValueError(f"A board needs exactly {CELL_COUNT} cells, got {len(cells)}")
        return cells

    @classmethod
    def from_verbs(cls, verbs: Sequence[Verb]) -> "GridState":
        """Build a fresh board with every cell unattempted."""
        return cls(cells=[GridCell(verb=verb) for verb in verbs])

    @staticmethod
    def position(index: int) -> Tuple[int, int]:
        """Map a cell index to its (row, col)."""
        if not 0 <= index < CELL_COUNT:
            raise ValueError(f"Cell index {index} out of range (0-{CELL_COUNT - 1})")
        return divmod(index, BOARD_SIZE)

    @staticmethod
    def index_of(row: int, col: int) -> int:
        """Map a (row, col) to its cell index."""
        if not (0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE):
            raise ValueError(f"Position ({row}, {col}) is off the board")
        return row * BOARD_SIZE + col

    def cell(self, index: int) -> GridCell:
        self.position(index)
        return self.cells[index]

    def verb(self, index: int) -> Verb:
        return self.cell(index).verb

    def state(self, index: int) -> CellState:
        return self.cell(index).state

    def is_locked(self, index: int) -> bool:
        """A correctly answered cell accepts no further answers."""
        return self.state(index).correct

    def apply_result(self, index: int, is_correct: bool) -> CellState:
        """
        Record a resolved answer for a cell.

        Every resolved answer counts as an attempt; a correct cell stays correct.

        Args:
            index: Cell index (0-24)
            is_correct: Whether the recognized answer matched

        Returns:
            The cell's new state

        Raises:
            ValueError: If the cell is already correct
        """
        cell = self.cell(index)
        if cell.state.correct:
            raise ValueError(f"Cell {index} ('{cell.verb.present}') is already complete")

        cell.state = CellState(
            attempted=True,
            correct=cell.state.correct or is_correct,
            attempts=cell.state.attempts + 1,
        )
        return cell.state

    def correctness(self) -> List[bool]:
        return [c.state.correct for c in self.cells]

    @property
    def correct_count(self) -> int:
        return sum(1 for c in self.cells if c.state.correct)

    @property
    def attempted_count(self) -> int:
        return sum(1 for c in self.cells if c.state.attempted)

    @property
    def total_attempts(self) -> int:
        return sum(c.state.attempts for c in self.cells)


def _cell_label(cell: GridCell) -> str:
    if cell.state.correct:
        return f"[{cell.verb.past}]"
    if cell.state.attempted:
        return f"{cell.verb.present}?"
    return cell.verb.present


def render_grid(grid: GridState, width: int = 12) -> str:
    """
    Render the board as plain text.

    Correct cells show their past form in brackets, attempted-but-wrong cells
    are marked with '?', and each cell is prefixed with its index.
    """
    rows = []
    for row in range(BOARD_SIZE):
        parts = []
        for col in range(BOARD_SIZE):
            index = row * BOARD_SIZE + col
            label = f"{index:>2} {_cell_label(grid.cells[index])}"
            parts.append(label.ljust(width + 3))
        rows.append(" ".join(parts).rstrip())
    return "\n".join(rows)
