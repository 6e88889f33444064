"""
Celebration and summary triggers.

The controller decides *when* an effect happens; an effects sink decides how
it is shown. Sinks are fire-and-forget: their return values are ignored and
they must not call back into the controller.
"""

from typing import List

from .models import Celebration, Confetti, Sound, GameSummary


LINE_MESSAGES = {
    1: "🎉 Amazing! You completed a line!",
    2: "🌟 Fantastic! That's 2 lines!",
}
WIN_MESSAGE = "🎊 INCREDIBLE! You completed 3 lines and won!"

# C5, E5, G5
WIN_CHORD = Sound(frequencies=[523.25, 659.25, 783.99], note_spacing=0.1, note_length=0.4, gain=0.15)
LINE_TONES = {1: 523.25, 2: 659.25}


def build_celebration(lines: int) -> Celebration:
    """
    Build the celebration for reaching `lines` completed lines.

    Lines one and two get a toast, a confetti burst and a tone. The winning
    celebration is a longer toast with streaming confetti; its chord plays
    when the summary opens instead.
    """
    if lines < 3:
        return Celebration(
            lines=lines,
            message=LINE_MESSAGES.get(lines, LINE_MESSAGES[2]),
            confetti=Confetti(
                particle_count=50 if lines == 1 else 100,
                spread=60 if lines == 1 else 90,
            ),
            sound=Sound(frequencies=[LINE_TONES.get(lines, LINE_TONES[2])]),
        )

    return Celebration(
        lines=lines,
        message=WIN_MESSAGE,
        is_win=True,
        toast_duration_ms=5000,
        confetti=Confetti(
            particle_count=5,
            spread=55,
            duration_ms=3000,
            colors=["#FFD700", "#FF69B4", "#87CEEB", "#98D8C8", "#F97316"],
        ),
    )


class GameEffects:
    """Effects sink that does nothing; subclass to render effects."""

    def celebrate(self, celebration: Celebration) -> None:
        pass

    def show_summary(self, summary: GameSummary) -> None:
        pass

    def notify(self, message: str, level: str = "info") -> None:
        pass


class RecordingEffects(GameEffects):
    """Keeps every triggered effect in order; useful for headless runs."""

    def __init__(self):
        self.celebrations: List[Celebration] = []
        self.summaries: List[GameSummary] = []
        self.notices: List[tuple] = []

    def celebrate(self, celebration: Celebration) -> None:
        self.celebrations.append(celebration)

    def show_summary(self, summary: GameSummary) -> None:
        self.summaries.append(summary)

    def notify(self, message: str, level: str = "info") -> None:
        self.notices.append((level, message))


class ConsoleEffects(GameEffects):
    """Prints effects to stdout for the terminal front end."""

    def celebrate(self, celebration: Celebration) -> None:
        print()
        print(f"*** {celebration.message} ***")

    def show_summary(self, summary: GameSummary) -> None:
        print()
        print(f"=== {summary.title} ===")
        print(f"Correct: {summary.correct_count}")
        print(f"Incorrect: {summary.incorrect_count}")
        print(f"Not attempted: {len(summary.cells) - summary.attempted_count}")
        print(f"Total attempts: {summary.total_attempts}")
        print(f"Lines completed: {summary.completed_lines}")
        for cell in summary.cells:
            if cell.state.correct:
                status = "✓"
            elif cell.state.attempted:
                status = "✗"
            else:
                status = "-"
            print(f"  {status} {cell.verb.present} -> {cell.verb.past} ({cell.state.attempts} attempts)")

    def notify(self, message: str, level: str = "info") -> None:
        prefix = {"success": "✓", "error": "❌", "warning": "⚠"}.get(level, "-")
        print(f"{prefix} {message}")
