import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .models import (
    Phase,
    AnswerResult,
    Celebration,
    Session,
    SubmissionRecord,
    GameSummary,
    GameConfig,
    SessionResult,
    UNREADABLE_TEXT,
)
from .effects import GameEffects, build_celebration, WIN_CHORD
from .recognition import (
    RecognitionClient,
    RecognitionError,
    RecognitionFailed,
    TypedAnswerClient,
    HandwritingRecognitionClient,
    Payload,
)
from ..bingo.models import Verb, ValidationResult
from ..bingo.grid import GridState
from ..bingo.lines import detect_lines, LINES_TO_WIN
from ..bingo.verb_pool import VerbPool, validate_verbs, DIFFICULTY_MIX


logger = logging.getLogger(__name__)


class InvalidTransition(ValueError):
    """Raised when an action is not allowed in the current phase."""


def normalize_answer(text: str) -> str:
    return text.strip().lower()


class GameController(BaseModel):
    """
    Top-level orchestrator for a bingo session.

    Owns the session and its board, runs the answer workflow through the
    recognition client, and decides when celebrations and the summary fire.
    Only one answer is ever being checked at a time.

    Attributes:
        config: Game configuration
        verb_pool: Catalog and selection for new boards
        recognition_client: Turns a submission into text
        effects: Sink for celebration, summary and notice triggers
        session: The current play-through
        phase: Where the answer workflow stands
        selected_index: Cell whose answer dialog is open
        result: Result shown in the open dialog
        pending_celebration: Line count waiting for the dialog to close
        summary_open: Whether the summary view has been opened
        history: Resolved submissions for the current session
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    config: GameConfig = Field(default_factory=GameConfig)
    verb_pool: VerbPool = Field(default_factory=VerbPool)
    recognition_client: RecognitionClient = Field(default_factory=TypedAnswerClient)
    effects: GameEffects = Field(default_factory=GameEffects)
    session: Optional[Session] = None
    phase: Phase = Phase.IDLE
    selected_index: Optional[int] = None
    in_flight_index: Optional[int] = None
    result: Optional[AnswerResult] = None
    pending_celebration: Optional[int] = None
    summary_open: bool = False
    history: List[SubmissionRecord] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    _summary_handle: Optional[asyncio.TimerHandle] = None
    _session_counter: int = 0

    @classmethod
    def create(
        cls,
        config: Optional[GameConfig] = None,
        effects: Optional[GameEffects] = None,
        recognition_client: Optional[RecognitionClient] = None,
        **config_kwargs: Any
    ) -> "GameController":
        """
        Factory method to create a controller with a verb pool, recognition
        client and a first session.

        Args:
            config: Optional GameConfig instance
            effects: Optional effects sink (defaults to a silent one)
            recognition_client: Optional client overriding the configured one
            **config_kwargs: Config parameters if config not provided

        Returns:
            Controller with a started session

        Raises:
            ValueError: If the configured verb list is not playable
        """
        if config is None:
            config = GameConfig(**config_kwargs)

        verb_pool = VerbPool(seed=config.seed)
        if config.verbs is not None:
            validation = validate_verbs(config.verbs)
            if not validation.valid:
                raise ValueError(f"Configured verb list rejected: {[e.message for e in validation.errors]}")
            verb_pool.verbs = validation.verbs

        if recognition_client is None:
            recognition_client = build_recognition_client(config)

        controller = cls(
            config=config,
            verb_pool=verb_pool,
            recognition_client=recognition_client,
            effects=effects or GameEffects(),
        )
        controller.start(config.difficulty)
        return controller

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @property
    def difficulty(self) -> int:
        return self.session.difficulty if self.session else self.config.difficulty

    @property
    def selected_verb(self) -> Optional[Verb]:
        """Verb shown in the open answer dialog, if any."""
        if self.session is None or self.selected_index is None:
            return None
        return self.session.grid.verb(self.selected_index)

    def start(self, difficulty: Optional[int] = None) -> Session:
        """
        Begin a new session with a freshly selected board.

        Any dialog, pending celebration and scheduled summary from the previous
        session is discarded. An answer still being checked keeps blocking
        selection until it returns, and its result is then dropped.
        """
        level = self.difficulty if difficulty is None else difficulty
        if level not in DIFFICULTY_MIX:
            raise ValueError(f"Unknown difficulty level {level}")

        self._cancel_scheduled_summary()

        verbs = self.verb_pool.select_for_difficulty(level)
        self._session_counter += 1
        self.session = Session(
            session_id=self._session_counter,
            grid=GridState.from_verbs(verbs),
            difficulty=level,
        )
        self.phase = Phase.IDLE
        self.selected_index = None
        self.result = None
        self.pending_celebration = None
        self.summary_open = False
        self.history = []
        self.started_at = datetime.now()

        logger.info(f"Started session {self.session.session_id} at level {level}")
        return self.session

    def restart(self) -> Session:
        """Start over with a new board at the current difficulty."""
        return self.start()

    def change_difficulty(self, level: int) -> Session:
        """Switch difficulty; always starts a new session."""
        return self.start(level)

    def save_verbs(self, candidates: List[Verb]) -> ValidationResult:
        """
        Replace the verb catalog and start a new session.

        A rejected list leaves the catalog and the current session untouched.

        Returns:
            ValidationResult describing acceptance or the reasons for rejection
        """
        validation = validate_verbs(candidates)
        if not validation.valid:
            for error in validation.errors:
                self.effects.notify(error.message, "error")
            logger.info(f"Verb list rejected: {[e.code for e in validation.errors]}")
            return validation

        self.verb_pool.verbs = validation.verbs
        self.start()
        self.effects.notify("Verb list updated!", "success")
        return validation

    def _require_session(self) -> Session:
        if self.session is None:
            raise InvalidTransition("No session started. Call start() first.")
        return self.session

    # ------------------------------------------------------------------
    # Answer workflow
    # ------------------------------------------------------------------

    def select_cell(self, index: int) -> Verb:
        """
        Open the answer dialog for a cell.

        Returns:
            The verb to answer

        Raises:
            InvalidTransition: If the game is won, an answer is being checked,
                another dialog is open, or the cell is already correct
        """
        session = self._require_session()
        verb = session.grid.verb(index)

        if session.has_won:
            raise InvalidTransition("The game is already won")
        if self.in_flight_index is not None:
            raise InvalidTransition("An answer is still being checked")
        if self.phase != Phase.IDLE:
            raise InvalidTransition(f"Cannot select a cell while {self.phase.value}")
        if session.grid.is_locked(index):
            raise InvalidTransition(f"Cell {index} ('{verb.present}') is already complete")

        self.selected_index = index
        self.result = None
        self.phase = Phase.AWAITING_ANSWER
        return verb

    async def submit_answer(self, index: int, payload: Payload) -> Optional[AnswerResult]:
        """
        Check an answer for the selected cell.

        Calls the recognition client once, records the attempt, recomputes
        completed lines and queues a celebration if the count grew. The board
        update, line count and celebration queue change together with no
        await in between.

        If the dialog was closed while checking, the result is still applied
        but not shown. If the session was replaced while checking, the result
        is dropped and None is returned.

        Args:
            index: Cell being answered (must be the selected cell)
            payload: Image payload or already recognized text

        Returns:
            The AnswerResult, or None if the session changed meanwhile

        Raises:
            InvalidTransition: If the cell is not awaiting an answer
            RecognitionError: If recognition failed; no attempt is consumed.
                Unexpected client errors surface as RecognitionFailed.
        """
        session = self._require_session()
        if self.phase != Phase.AWAITING_ANSWER or self.selected_index != index:
            raise InvalidTransition(f"Cell {index} is not awaiting an answer")

        verb = session.grid.verb(index)
        self.phase = Phase.VERIFYING
        self.in_flight_index = index

        try:
            recognition = await self.recognition_client.recognize(payload)
        except RecognitionError as e:
            self._recognition_failed(session, index, e)
            raise
        except Exception as e:
            error = RecognitionFailed(f"{RecognitionFailed.user_message} ({e})")
            self._recognition_failed(session, index, error)
            raise error from e
        finally:
            self.in_flight_index = None

        if self.session is not session:
            logger.info(f"Dropping answer for cell {index}: session {session.session_id} was replaced")
            return None

        surfaced = self.phase == Phase.VERIFYING and self.selected_index == index

        interpreted = normalize_answer(recognition.text)
        if not interpreted:
            correct = False
            outcome = "UNREADABLE"
            interpreted = UNREADABLE_TEXT
        else:
            correct = interpreted == normalize_answer(verb.past)
            outcome = "CORRECT" if correct else "INCORRECT"

        state = session.grid.apply_result(index, correct)
        lines = detect_lines(session.grid.correctness())
        if len(lines) > session.completed_lines_count:
            session.completed_lines_count = len(lines)
            self.pending_celebration = len(lines)

        just_won = not session.has_won and session.completed_lines_count >= LINES_TO_WIN
        if just_won:
            session.has_won = True

        result = AnswerResult(index=index, correct=correct, interpreted=interpreted, outcome=outcome)
        self.history.append(SubmissionRecord(
            index=index,
            present=verb.present,
            expected=verb.past,
            recognized=recognition.text,
            outcome=outcome,
            attempts=state.attempts,
            completed_lines=session.completed_lines_count,
            surfaced=surfaced,
            resolved_at=datetime.now().isoformat(),
        ))
        logger.info(
            f"Cell {index} '{verb.present}': read {recognition.text!r}, {outcome} "
            f"(attempt {state.attempts}, {session.completed_lines_count} lines)"
        )

        if surfaced:
            self.result = result
            self.phase = Phase.RESOLVED
            if correct:
                self.effects.notify("Correct! Great job!", "success")
        if session.has_won:
            self.phase = Phase.WON

        if just_won:
            self._schedule_summary(session.session_id)

        return result

    def _recognition_failed(self, session: Session, index: int, error: RecognitionError) -> None:
        # Only the dialog that is still waiting on this call hears about it
        if self.session is session and self.phase == Phase.VERIFYING and self.selected_index == index:
            self.phase = Phase.AWAITING_ANSWER
            self.effects.notify(str(error), "error")
        logger.warning(f"Recognition failed for cell {index} ({error.code}): {error}")

    def retry(self) -> Verb:
        """Clear a wrong result and answer the same cell again."""
        if self.phase != Phase.RESOLVED or self.result is None or self.result.correct:
            raise InvalidTransition("Only an incorrect result can be retried")

        self.result = None
        self.phase = Phase.AWAITING_ANSWER
        return self.selected_verb

    def close_dialog(self) -> Optional[Celebration]:
        """
        Close the answer dialog, cancelling it if still open.

        A pending celebration fires now, after the dialog is gone, and is
        consumed.

        Returns:
            The celebration that fired, if any
        """
        session = self._require_session()
        if self.phase not in (Phase.AWAITING_ANSWER, Phase.VERIFYING, Phase.RESOLVED, Phase.WON):
            raise InvalidTransition(f"No dialog to close while {self.phase.value}")

        self.selected_index = None
        self.result = None

        celebration = None
        if self.pending_celebration is not None:
            self.phase = Phase.CELEBRATING
            celebration = build_celebration(self.pending_celebration)
            self.pending_celebration = None
            self.effects.celebrate(celebration)

        self.phase = Phase.WON if session.has_won else Phase.IDLE
        return celebration

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _schedule_summary(self, session_id: int) -> None:
        loop = asyncio.get_running_loop()
        self._cancel_scheduled_summary()
        self._summary_handle = loop.call_later(self.config.summary_delay, self._open_scheduled_summary, session_id)

    def _cancel_scheduled_summary(self) -> None:
        if self._summary_handle is not None:
            self._summary_handle.cancel()
            self._summary_handle = None

    def _open_scheduled_summary(self, session_id: int) -> None:
        self._summary_handle = None
        if self.session is None or self.session.session_id != session_id:
            return
        self.open_summary()

    def open_summary(self) -> GameSummary:
        summary = self.summary()
        self.summary_open = True
        self.effects.show_summary(summary)
        return summary

    def end_game(self) -> GameSummary:
        """Open the summary now, won or not."""
        self._require_session()
        self._cancel_scheduled_summary()
        return self.open_summary()

    def summary(self) -> GameSummary:
        """Build the end-of-game statistics for the current session."""
        session = self._require_session()
        grid = session.grid
        return GameSummary(
            verbs=[c.verb for c in grid.cells],
            cells=[c.model_copy(deep=True) for c in grid.cells],
            correct_count=grid.correct_count,
            attempted_count=grid.attempted_count,
            incorrect_count=grid.attempted_count - grid.correct_count,
            total_attempts=grid.total_attempts,
            completed_lines=session.completed_lines_count,
            has_won=session.has_won,
            title="Congratulations! 🎉" if session.has_won else "Game Summary",
            sound=WIN_CHORD if session.has_won else None,
        )

    def get_state(self) -> Dict:
        """
        Get the current controller state as a dictionary.

        Useful for serialization and logging.
        """
        session = self.session
        return {
            "session_id": session.session_id if session else None,
            "phase": self.phase.value,
            "difficulty": self.difficulty,
            "selected_index": self.selected_index,
            "in_flight_index": self.in_flight_index,
            "completed_lines": session.completed_lines_count if session else 0,
            "has_won": session.has_won if session else False,
            "pending_celebration": self.pending_celebration,
            "summary_open": self.summary_open,
            "submissions": len(self.history),
        }

    def get_result(self) -> SessionResult:
        """Get the exportable record of the current session."""
        ended_at = datetime.now()
        duration = (ended_at - self.started_at).total_seconds() if self.started_at else 0.0

        return SessionResult(
            config=self.config,
            summary=self.summary(),
            history=list(self.history),
            state=self.get_state(),
            started_at=self.started_at.isoformat() if self.started_at else "",
            ended_at=ended_at.isoformat(),
            duration_seconds=duration,
        )


def build_recognition_client(config: GameConfig) -> RecognitionClient:
    """Create the recognition client described by the configuration."""
    recognition = config.recognition
    if recognition.mode == "typed":
        return TypedAnswerClient()

    llm_kwargs = {
        "model": recognition.model,
        "temperature": recognition.temperature,
        "max_tokens": recognition.max_tokens,
    }
    # Add any extra kwargs from the config (api_base, timeout, ...)
    if hasattr(recognition, '__pydantic_extra__') and recognition.__pydantic_extra__:
        llm_kwargs.update(recognition.__pydantic_extra__)

    return HandwritingRecognitionClient(**llm_kwargs)
