from ._main import build_arg_parser, build_controller
from .acquisition import (
    AcquisitionController,
    AcquisitionState,
    ActiveSource,
    FetchOutcome,
    FetchStatus,
    SessionSnapshot,
    TriggerTracker,
)
from .config import QuizConfigError, QuizzerConfig, load_config
from .ingest import IngestedDocument, IngestionError, extract
from .manager.generator import OpenAIQuestionProvider, ParseError, ProviderError
from .models import QuizQuestion, question_from_record, validate_question
from .session import (
    QuizSessionState,
    QuizSummary,
    is_complete,
    is_correct,
    progress,
    score,
    summarize,
)
from .utils import filter_unseen, shuffle_batch, shuffled
from .view import QuizSessionResult, parse_session_command, run_quiz_session

__all__ = [
    "build_arg_parser",
    "build_controller",
    "AcquisitionController",
    "AcquisitionState",
    "ActiveSource",
    "FetchOutcome",
    "FetchStatus",
    "SessionSnapshot",
    "TriggerTracker",
    "QuizConfigError",
    "QuizzerConfig",
    "load_config",
    "IngestedDocument",
    "IngestionError",
    "extract",
    "OpenAIQuestionProvider",
    "ParseError",
    "ProviderError",
    "QuizQuestion",
    "question_from_record",
    "validate_question",
    "QuizSessionState",
    "QuizSummary",
    "is_complete",
    "is_correct",
    "progress",
    "score",
    "summarize",
    "filter_unseen",
    "shuffle_batch",
    "shuffled",
    "QuizSessionResult",
    "parse_session_command",
    "run_quiz_session",
]
