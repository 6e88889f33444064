"""
Pydantic models for the environment layer.

This module contains the data models (configuration, session state, results,
celebration triggers) used by the controller. The logic classes
(GameController, RecognitionClient, effect sinks) live in their own files.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..bingo.models import Verb, GridCell
from ..bingo.grid import GridState


# Type aliases
Outcome = Literal["CORRECT", "INCORRECT", "UNREADABLE"]
RecognitionMode = Literal["typed", "handwriting"]

UNREADABLE_TEXT = "Unable to read"


class Phase(str, Enum):
    """Where the session is in the answer workflow."""
    IDLE = "idle"
    AWAITING_ANSWER = "awaiting_answer"
    VERIFYING = "verifying"
    RESOLVED = "resolved"
    CELEBRATING = "celebrating"
    WON = "won"


class AnswerResult(BaseModel):
    """Outcome of one resolved submission, shown in the answer dialog."""
    index: int
    correct: bool
    interpreted: str
    outcome: Outcome


class Confetti(BaseModel):
    particle_count: int
    spread: int
    duration_ms: int = 0  # 0 for a single burst
    colors: List[str] = Field(default_factory=lambda: ["#FFD700", "#FF69B4", "#87CEEB", "#98D8C8"])


class Sound(BaseModel):
    frequencies: List[float]  # Hz, played in order
    note_spacing: float = 0.0  # Seconds between note starts
    note_length: float = 0.3
    gain: float = 0.1


class Celebration(BaseModel):
    """Trigger for the toast/confetti/sound shown when lines complete."""
    lines: int
    message: str
    is_win: bool = False
    toast_duration_ms: int = 3000
    confetti: Optional[Confetti] = None
    sound: Optional[Sound] = None


class Session(BaseModel):
    """One play-through, from initialization until the next restart."""
    session_id: int
    grid: GridState
    difficulty: int = Field(1, ge=1, le=3)
    completed_lines_count: int = 0
    has_won: bool = False


class SubmissionRecord(BaseModel):
    """A resolved submission in the session history."""
    index: int
    present: str
    expected: str
    recognized: str
    outcome: Outcome
    attempts: int
    completed_lines: int
    surfaced: bool = True  # False when the dialog was closed before the result arrived
    resolved_at: str = ""


class GameSummary(BaseModel):
    """Statistics shown in the end-of-game summary."""
    verbs: List[Verb]
    cells: List[GridCell]
    correct_count: int
    attempted_count: int
    incorrect_count: int
    total_attempts: int
    completed_lines: int
    has_won: bool
    title: str = "Game Summary"
    sound: Optional[Sound] = None


class RecognitionConfig(BaseModel):
    """Configuration for the recognition client."""
    model_config = ConfigDict(extra='allow')

    mode: RecognitionMode = "typed"
    model: str = "gemini/gemini-2.5-flash-lite"
    temperature: float = 0.1
    max_tokens: Optional[int] = 200
    # Additional kwargs are allowed and passed to LiteLLM


class GameConfig(BaseModel):
    """Configuration for a game session."""
    difficulty: int = Field(1, ge=1, le=3)
    seed: Optional[int] = None
    summary_delay: float = Field(1.0, ge=0.0)
    recognition: RecognitionConfig = Field(default_factory=RecognitionConfig)
    verbs: Optional[List[Verb]] = None


class SessionResult(BaseModel):
    """Exported record of a session."""
    config: GameConfig
    summary: GameSummary
    history: List[SubmissionRecord] = Field(default_factory=list)
    state: Dict[str, Any] = Field(default_factory=dict)
    started_at: str = ""
    ended_at: str = ""
    duration_seconds: float = 0.0
