"""Game session environment for Verb Tense Bingo."""

from .models import (
    Phase,
    Outcome,
    AnswerResult,
    Celebration,
    Confetti,
    Sound,
    Session,
    SubmissionRecord,
    GameSummary,
    RecognitionConfig,
    GameConfig,
    SessionResult,
)
from .recognition import (
    RecognitionClient,
    HandwritingRecognitionClient,
    TypedAnswerClient,
    Recognition,
    RecognitionError,
    RateLimited,
    QuotaExceeded,
    RecognitionFailed,
)
from .effects import GameEffects, RecordingEffects, ConsoleEffects, build_celebration
from .controller import GameController, InvalidTransition, build_recognition_client

__all__ = [
    "Phase",
    "Outcome",
    "AnswerResult",
    "Celebration",
    "Confetti",
    "Sound",
    "Session",
    "SubmissionRecord",
    "GameSummary",
    "RecognitionConfig",
    "GameConfig",
    "SessionResult",
    "RecognitionClient",
    "HandwritingRecognitionClient",
    "TypedAnswerClient",
    "Recognition",
    "RecognitionError",
    "RateLimited",
    "QuotaExceeded",
    "RecognitionFailed",
    "GameEffects",
    "RecordingEffects",
    "ConsoleEffects",
    "build_celebration",
    "GameController",
    "InvalidTransition",
    "build_recognition_client",
]
