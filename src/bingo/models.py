"""Data models for the bingo board."""

from typing import List, Literal, NamedTuple, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field


LineKind = Literal["row", "column", "diagonal"]


class Verb(BaseModel):
    """A verb prompt and its expected past-tense answer."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    present: str
    past: str
    is_regular: bool = Field(True, alias="isRegular")


class CellState(BaseModel):
    """Progress on a single grid cell."""
    attempted: bool = False
    correct: bool = False
    attempts: int = Field(0, ge=0)


class GridCell(BaseModel):
    """A verb paired with its cell state."""
    verb: Verb
    state: CellState = Field(default_factory=CellState)


class Line(NamedTuple):
    """A row, column or diagonal of the board."""
    kind: LineKind
    number: int
    cells: Tuple[int, ...]


class ValidationError(BaseModel):
    """A single verb-list validation problem."""
    code: str
    message: str
    line: Optional[int] = None


class ValidationResult(BaseModel):
    """Result of validating a candidate verb list."""
    valid: bool
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationError] = Field(default_factory=list)
    verbs: List[Verb] = Field(default_factory=list)  # Accepted entries, blanks removed
