"""
Test suite for the game controller.

Covers:
- Phase transitions (select, submit, retry, close)
- Attempt counting and cell locking
- Line counting, deferred celebrations and the win summary
- Recognition failures and answers arriving after the dialog closed
- Session lifecycle (restart, difficulty, verb lists)
"""

import asyncio
from typing import Optional

import pytest
from src.bingo import CellState, Verb
from src.environment import (
    GameController,
    GameConfig,
    RecordingEffects,
    RecognitionClient,
    Recognition,
    RateLimited,
    RecognitionFailed,
    InvalidTransition,
    Phase,
)


ROW_0 = [0, 1, 2, 3, 4]
COL_0_REST = [5, 10, 15, 20]
DIAGONAL_REST = [6, 12, 18, 24]


def make_controller(summary_delay: float = 0.0, client: Optional[RecognitionClient] = None, **kwargs) -> GameController:
    config = GameConfig(seed=7, summary_delay=summary_delay, **kwargs)
    return GameController.create(config=config, effects=RecordingEffects(), recognition_client=client)


def past(controller: GameController, index: int) -> str:
    return controller.session.grid.verb(index).past


async def answer(controller: GameController, index: int, text: Optional[str] = None, close: bool = True):
    """Select a cell, submit an answer (correct by default) and optionally close."""
    controller.select_cell(index)
    result = await controller.submit_answer(index, past(controller, index) if text is None else text)
    if close:
        controller.close_dialog()
    return result


class FailingClient(RecognitionClient):
    """Raises the configured recognition error on every call."""
    error: str = "rate"
    calls: int = 0

    async def recognize(self, payload):
        self.calls += 1
        if self.error == "rate":
            raise RateLimited()
        if self.error == "broken":
            raise KeyError("content")
        raise RecognitionFailed("network down")


class GatedClient(RecognitionClient):
    """Holds every recognition until released."""
    calls: int = 0
    fail: bool = False
    _gate: Optional[asyncio.Event] = None

    def model_post_init(self, __context) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def recognize(self, payload):
        self.calls += 1
        await self._gate.wait()
        if self.fail:
            raise RecognitionFailed("network down")
        return Recognition(text=payload)


class TestSessionStart:
    """Test controller creation."""

    def test_initial_state(self):
        """A new controller has a fresh, idle session."""
        controller = make_controller()
        session = controller.session

        assert controller.phase == Phase.IDLE
        assert len(session.grid.cells) == 25
        assert session.completed_lines_count == 0
        assert session.has_won is False
        assert session.difficulty == 1
        assert all(c.state == CellState() for c in session.grid.cells)

    def test_seeded_boards_repeat(self):
        """The same seed gives the same board."""
        a = make_controller()
        b = make_controller()
        assert [c.verb for c in a.session.grid.cells] == [c.verb for c in b.session.grid.cells]

    def test_difficulty_from_config(self):
        """The configured level decides the mix."""
        controller = make_controller(difficulty=3)
        regular = sum(c.verb.is_regular for c in controller.session.grid.cells)
        assert controller.session.difficulty == 3
        assert regular == 5

    def test_invalid_configured_verbs(self):
        """A configured verb list that cannot fill a board is refused."""
        verbs = [Verb(present="go", past="went", is_regular=False)] * 10
        with pytest.raises(ValueError, match="rejected"):
            make_controller(verbs=verbs)


class TestAnswerWorkflow:
    """Test the select/submit/retry/close cycle."""

    def test_select_cell(self):
        """Selecting opens the dialog for that verb."""
        controller = make_controller()
        verb = controller.select_cell(3)

        assert verb == controller.session.grid.verb(3)
        assert controller.phase == Phase.AWAITING_ANSWER
        assert controller.selected_verb == verb

    def test_incorrect_then_retry_then_correct(self):
        """Attempts count every resolved answer and a correct cell locks."""
        async def scenario():
            controller = make_controller()
            grid = controller.session.grid

            result = await answer(controller, 0, "nope", close=False)
            assert result.correct is False
            assert result.outcome == "INCORRECT"
            assert controller.phase == Phase.RESOLVED
            assert grid.state(0) == CellState(attempted=True, correct=False, attempts=1)

            controller.retry()
            assert controller.phase == Phase.AWAITING_ANSWER
            assert controller.result is None
            assert grid.state(0).attempts == 1

            result = await controller.submit_answer(0, past(controller, 0))
            assert result.correct is True
            assert grid.state(0) == CellState(attempted=True, correct=True, attempts=2)

            controller.close_dialog()
            with pytest.raises(InvalidTransition, match="already complete"):
                controller.select_cell(0)
            assert grid.state(0).attempts == 2

        asyncio.run(scenario())

    def test_answer_normalized(self):
        """Case and surrounding whitespace are ignored."""
        async def scenario():
            controller = make_controller()
            result = await answer(controller, 2, f"  {past(controller, 2).upper()} \n")
            assert result.correct is True
            assert result.interpreted == past(controller, 2)

        asyncio.run(scenario())

    def test_unreadable_answer(self):
        """Empty recognized text is its own outcome but still an attempt."""
        async def scenario():
            controller = make_controller()
            result = await answer(controller, 1, "   ", close=False)
            assert result.outcome == "UNREADABLE"
            assert result.correct is False
            assert result.interpreted == "Unable to read"
            assert controller.session.grid.state(1).attempts == 1

            # Unreadable results can be retried like wrong ones
            controller.retry()
            assert controller.phase == Phase.AWAITING_ANSWER

        asyncio.run(scenario())

    def test_attempts_increment_once_per_submission(self):
        """Each resolved submission adds exactly one attempt."""
        async def scenario():
            controller = make_controller()
            controller.select_cell(4)
            for expected in range(1, 4):
                await controller.submit_answer(4, "wrong")
                assert controller.session.grid.state(4).attempts == expected
                controller.retry()

        asyncio.run(scenario())

    def test_cannot_select_second_cell(self):
        """Only one dialog can be open."""
        controller = make_controller()
        controller.select_cell(0)
        with pytest.raises(InvalidTransition):
            controller.select_cell(1)

    def test_submit_wrong_cell(self):
        """Answers only go to the selected cell."""
        async def scenario():
            controller = make_controller()
            controller.select_cell(0)
            with pytest.raises(InvalidTransition):
                await controller.submit_answer(1, "anything")
            assert controller.session.grid.state(1).attempts == 0

        asyncio.run(scenario())

    def test_submit_without_selection(self):
        """Submitting needs an open dialog."""
        async def scenario():
            controller = make_controller()
            with pytest.raises(InvalidTransition):
                await controller.submit_answer(0, "walked")

        asyncio.run(scenario())

    def test_retry_after_correct_refused(self):
        """Correct results cannot be retried."""
        async def scenario():
            controller = make_controller()
            await answer(controller, 0, close=False)
            with pytest.raises(InvalidTransition):
                controller.retry()

        asyncio.run(scenario())

    def test_cancel_dialog(self):
        """Closing an unanswered dialog returns to idle without an attempt."""
        controller = make_controller()
        controller.select_cell(8)
        assert controller.close_dialog() is None
        assert controller.phase == Phase.IDLE
        assert controller.selected_index is None
        assert controller.session.grid.state(8).attempts == 0

    def test_close_without_dialog(self):
        """There is nothing to close while idle."""
        controller = make_controller()
        with pytest.raises(InvalidTransition):
            controller.close_dialog()

    def test_bad_index(self):
        """Cells outside the board are rejected."""
        controller = make_controller()
        with pytest.raises(ValueError):
            controller.select_cell(25)


class TestLinesAndCelebrations:
    """Test line counting and deferred celebrations."""

    def test_line_sequence_and_win(self):
        """Row 0, column 0, then the diagonal give 1, 2, 3 lines; the win comes last."""
        async def scenario():
            controller = make_controller(summary_delay=10.0)
            session = controller.session
            observed = []
            won_at = []

            for group in (ROW_0, COL_0_REST, DIAGONAL_REST):
                for index in group:
                    assert session.has_won is False
                    await answer(controller, index)
                    if session.completed_lines_count and session.completed_lines_count not in observed:
                        observed.append(session.completed_lines_count)
                    won_at.append(session.has_won)

            assert observed == [1, 2, 3]
            assert won_at == [False] * 12 + [True]
            assert controller.phase == Phase.WON

        asyncio.run(scenario())

    def test_lines_count_never_decreases(self):
        """Wrong answers after a line leave the count alone."""
        async def scenario():
            controller = make_controller()
            for index in ROW_0:
                await answer(controller, index)
            await answer(controller, 7, "wrong")
            assert controller.session.completed_lines_count == 1

        asyncio.run(scenario())

    def test_celebration_waits_for_dialog_close(self):
        """The celebration fires on close, not when the line completes."""
        async def scenario():
            controller = make_controller()
            effects = controller.effects

            for index in ROW_0[:-1]:
                await answer(controller, index)
            await answer(controller, ROW_0[-1], close=False)

            assert controller.pending_celebration == 1
            assert effects.celebrations == []

            celebration = controller.close_dialog()
            assert celebration.lines == 1
            assert celebration.is_win is False
            assert [c.lines for c in effects.celebrations] == [1]
            assert controller.pending_celebration is None
            assert controller.phase == Phase.IDLE

            # Consumed exactly once
            await answer(controller, 9, "wrong")
            assert len(effects.celebrations) == 1

        asyncio.run(scenario())

    def test_win_celebration(self):
        """The third line fires the winning celebration on close."""
        async def scenario():
            controller = make_controller(summary_delay=10.0)
            for index in ROW_0 + COL_0_REST + DIAGONAL_REST[:-1]:
                await answer(controller, index)
            await answer(controller, DIAGONAL_REST[-1], close=False)

            assert controller.phase == Phase.WON
            assert controller.result.correct is True

            celebration = controller.close_dialog()
            assert celebration.is_win is True
            assert celebration.lines == 3
            assert controller.phase == Phase.WON

        asyncio.run(scenario())

    def test_no_selection_after_win(self):
        """A won session refuses further answers."""
        async def scenario():
            controller = make_controller(summary_delay=10.0)
            for index in ROW_0 + COL_0_REST + DIAGONAL_REST:
                await answer(controller, index)
            with pytest.raises(InvalidTransition, match="won"):
                controller.select_cell(23)

        asyncio.run(scenario())


class TestSummary:
    """Test the summary view triggers."""

    def test_summary_opens_after_win_without_closing(self):
        """The summary is scheduled on the win, whether or not the dialog closed."""
        async def scenario():
            controller = make_controller(summary_delay=0.01)
            effects = controller.effects
            for index in ROW_0 + COL_0_REST + DIAGONAL_REST[:-1]:
                await answer(controller, index)
            await answer(controller, DIAGONAL_REST[-1], close=False)

            assert effects.summaries == []
            await asyncio.sleep(0.05)

            assert len(effects.summaries) == 1
            summary = effects.summaries[0]
            assert summary.has_won is True
            assert summary.completed_lines == 3
            assert summary.correct_count == 13
            assert summary.sound is not None
            assert controller.summary_open is True

        asyncio.run(scenario())

    def test_end_game_opens_summary_immediately(self):
        """Ending the game shows the summary without a win."""
        async def scenario():
            controller = make_controller()
            await answer(controller, 0)
            await answer(controller, 1, "wrong")

            summary = controller.end_game()
            assert controller.effects.summaries == [summary]
            assert summary.has_won is False
            assert summary.correct_count == 1
            assert summary.attempted_count == 2
            assert summary.incorrect_count == 1
            assert summary.total_attempts == 2
            assert summary.title == "Game Summary"

        asyncio.run(scenario())

    def test_restart_cancels_scheduled_summary(self):
        """A summary scheduled by a finished session never opens in the next one."""
        async def scenario():
            controller = make_controller(summary_delay=0.02)
            for index in ROW_0 + COL_0_REST + DIAGONAL_REST:
                await answer(controller, index)
            controller.restart()
            await asyncio.sleep(0.05)
            assert controller.effects.summaries == []

        asyncio.run(scenario())


class TestRecognitionFailures:
    """Test failed recognition calls."""

    def test_rate_limited(self):
        """Failures propagate, consume no attempt and keep the dialog open."""
        async def scenario():
            client = FailingClient(error="rate")
            controller = make_controller(client=client)
            controller.select_cell(0)

            with pytest.raises(RateLimited):
                await controller.submit_answer(0, "walked")

            assert client.calls == 1
            assert controller.phase == Phase.AWAITING_ANSWER
            assert controller.in_flight_index is None
            assert controller.session.grid.state(0) == CellState()
            assert controller.history == []
            assert controller.effects.notices == [("error", "Too many attempts! Please wait a moment.")]

        asyncio.run(scenario())

    def test_failure_then_manual_retry(self):
        """The user can submit again after a failure."""
        async def scenario():
            client = FailingClient(error="network")
            controller = make_controller(client=client)
            controller.select_cell(0)
            for _ in range(2):
                with pytest.raises(RecognitionFailed):
                    await controller.submit_answer(0, "walked")
            assert client.calls == 2
            assert controller.session.grid.state(0).attempts == 0

        asyncio.run(scenario())

    def test_unexpected_client_error(self):
        """Any client error becomes RecognitionFailed and frees the board."""
        async def scenario():
            controller = make_controller(client=FailingClient(error="broken"))
            controller.select_cell(0)

            with pytest.raises(RecognitionFailed) as excinfo:
                await controller.submit_answer(0, "walked")

            assert isinstance(excinfo.value.__cause__, KeyError)
            assert controller.phase == Phase.AWAITING_ANSWER
            assert controller.in_flight_index is None
            assert controller.effects.notices[0][0] == "error"

            controller.close_dialog()
            controller.select_cell(1)
            assert controller.phase == Phase.AWAITING_ANSWER

        asyncio.run(scenario())

    def test_undecodable_typed_answer(self):
        """Bytes that are not UTF-8 fail the check without locking the session."""
        async def scenario():
            controller = make_controller()
            controller.select_cell(0)

            with pytest.raises(RecognitionFailed):
                await controller.submit_answer(0, b"\xff\xfe")

            assert controller.in_flight_index is None
            assert controller.session.grid.state(0) == CellState()

            await controller.submit_answer(0, past(controller, 0))
            assert controller.session.grid.state(0).correct is True

        asyncio.run(scenario())

    def test_failure_after_close_is_silent(self):
        """A cancelled submission that fails shows nothing."""
        async def scenario():
            client = GatedClient(fail=True)
            controller = make_controller(client=client)
            controller.select_cell(0)
            task = asyncio.create_task(controller.submit_answer(0, "walked"))
            await asyncio.sleep(0)

            controller.close_dialog()
            client.release()
            with pytest.raises(RecognitionFailed):
                await task

            assert controller.effects.notices == []
            assert controller.phase == Phase.IDLE
            assert controller.in_flight_index is None
            controller.select_cell(1)

        asyncio.run(scenario())


class TestAnswersInFlight:
    """Test answers that resolve after the dialog closed or the session changed."""

    def test_closed_dialog_still_applies_result(self):
        """A late result updates the board but is not shown."""
        async def scenario():
            client = GatedClient()
            controller = make_controller(client=client)
            controller.select_cell(0)
            task = asyncio.create_task(controller.submit_answer(0, past(controller, 0)))
            await asyncio.sleep(0)

            assert controller.phase == Phase.VERIFYING
            controller.close_dialog()
            assert controller.phase == Phase.IDLE

            # Still checking: no other cell may start
            with pytest.raises(InvalidTransition, match="still being checked"):
                controller.select_cell(1)

            client.release()
            result = await task

            assert result.correct is True
            assert controller.session.grid.state(0) == CellState(attempted=True, correct=True, attempts=1)
            assert controller.result is None
            assert controller.phase == Phase.IDLE
            assert controller.history[-1].surfaced is False

            controller.select_cell(1)
            assert controller.phase == Phase.AWAITING_ANSWER

        asyncio.run(scenario())

    def test_restart_drops_result(self):
        """A result for a replaced session is discarded."""
        async def scenario():
            client = GatedClient()
            controller = make_controller(client=client)
            controller.select_cell(0)
            task = asyncio.create_task(controller.submit_answer(0, past(controller, 0)))
            await asyncio.sleep(0)

            controller.restart()
            assert controller.phase == Phase.IDLE

            # The old call still counts as the one in flight
            with pytest.raises(InvalidTransition, match="still being checked"):
                controller.select_cell(0)

            client.release()

            assert await task is None
            assert client.calls == 1
            assert controller.in_flight_index is None
            assert controller.session.grid.state(0) == CellState()
            assert controller.history == []
            assert controller.phase == Phase.IDLE

            controller.select_cell(0)
            assert controller.phase == Phase.AWAITING_ANSWER

        asyncio.run(scenario())


class TestLifecycle:
    """Test restart, difficulty changes and verb lists."""

    def test_restart_resets_everything(self):
        """Restarting gives a new session with clean state."""
        async def scenario():
            controller = make_controller()
            for index in ROW_0:
                await answer(controller, index, close=index != ROW_0[-1])
            old_id = controller.session.session_id

            controller.restart()
            session = controller.session
            assert session.session_id == old_id + 1
            assert session.completed_lines_count == 0
            assert session.has_won is False
            assert controller.pending_celebration is None
            assert controller.phase == Phase.IDLE
            assert controller.history == []
            assert all(c.state == CellState() for c in session.grid.cells)

        asyncio.run(scenario())

    def test_change_difficulty(self):
        """Changing level starts a new session with the new mix."""
        controller = make_controller()
        controller.change_difficulty(3)
        assert controller.session.difficulty == 3
        assert sum(c.verb.is_regular for c in controller.session.grid.cells) == 5

        # Restart keeps the chosen level
        controller.restart()
        assert controller.session.difficulty == 3

    def test_invalid_difficulty(self):
        """Unknown levels leave the session alone."""
        controller = make_controller()
        session_id = controller.session.session_id
        with pytest.raises(ValueError):
            controller.change_difficulty(0)
        assert controller.session.session_id == session_id

    def test_save_verbs_rejected(self):
        """A short list changes nothing and reports why."""
        controller = make_controller()
        session_id = controller.session.session_id
        catalog = list(controller.verb_pool.verbs)

        result = controller.save_verbs([Verb(present="go", past="went", is_regular=False)])

        assert result.valid is False
        assert controller.session.session_id == session_id
        assert controller.verb_pool.verbs == catalog
        assert controller.effects.notices[-1][0] == "error"

    def test_save_verbs_accepted(self):
        """A valid list becomes the catalog and starts a new board."""
        controller = make_controller()
        verbs = [Verb(present=f"verb{i}", past=f"verbed{i}", is_regular=i % 2 == 0) for i in range(30)]

        result = controller.save_verbs(verbs)

        assert result.valid is True
        assert controller.session.session_id == 2
        presents = {c.verb.present for c in controller.session.grid.cells}
        assert presents <= {v.present for v in verbs}
        assert controller.effects.notices[-1] == ("success", "Verb list updated!")


class TestResult:
    """Test state and result export."""

    def test_get_state(self):
        """State reflects the workflow."""
        controller = make_controller()
        controller.select_cell(6)
        state = controller.get_state()
        assert state["phase"] == "awaiting_answer"
        assert state["selected_index"] == 6
        assert state["completed_lines"] == 0

    def test_get_result(self):
        """The result carries summary and history."""
        async def scenario():
            controller = make_controller()
            await answer(controller, 0)
            await answer(controller, 1, "wrong")
            return controller.get_result()

        result = asyncio.run(scenario())
        assert [h.outcome for h in result.history] == ["CORRECT", "INCORRECT"]
        assert result.summary.total_attempts == 2
        assert result.config.seed == 7
        assert result.model_dump(mode="json")["state"]["submissions"] == 2
