"""Question model shared by the provider, the controller and the view."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Sequence

REQUIRED_FIELDS: tuple[str, ...] = (
    "question",
    "options",
    "correct_answers",
    "explanation",
    "original_index",
)
OPTION_COUNT = 4


@dataclass(frozen=True)
class QuizQuestion:
    """One multiple-choice card.

    ``correct_answers`` is a subset of ``options`` and may hold more than one
    entry; grading compares it to the selection as a set.
    """

    question: str
    options: tuple[str, ...]
    correct_answers: frozenset[str]
    explanation: str
    original_index: str

    def with_options(self, options: Iterable[str]) -> "QuizQuestion":
        """Return a copy whose options are reordered to ``options``."""

        reordered = tuple(options)
        if sorted(reordered) != sorted(self.options):
            raise ValueError("reordered options must match the originals")
        return replace(self, options=reordered)

    def to_dict(self) -> dict[str, object]:
        return {
            "question": self.question,
            "options": list(self.options),
            "correct_answers": sorted(self.correct_answers),
            "explanation": self.explanation,
            "original_index": self.original_index,
        }


def validate_question(question: QuizQuestion) -> None:
    """Check the option contract; raise ``ValueError`` with the reason.

    - exactly four options, all non-empty and distinct
    - at least one correct answer, every one of them among the options
    """

    if not question.question.strip():
        raise ValueError("question text must be non-empty")
    if len(question.options) != OPTION_COUNT:
        raise ValueError(
            f"expected {OPTION_COUNT} options, got {len(question.options)}"
        )
    if not all(option.strip() for option in question.options):
        raise ValueError("option text must be non-empty")
    if len(set(question.options)) != len(question.options):
        raise ValueError("duplicate options detected")
    if not question.correct_answers:
        raise ValueError("at least one correct answer is required")
    missing = question.correct_answers - set(question.options)
    if missing:
        raise ValueError(
            "correct answers not among options: " + ", ".join(sorted(missing))
        )


def question_from_record(record: Mapping[str, Any]) -> QuizQuestion:
    """Build a :class:`QuizQuestion` from a decoded provider record.

    Raises ``KeyError`` when one of the five fields is absent and
    ``ValueError`` when a field has the wrong shape or the option contract
    is broken.
    """

    missing = [name for name in REQUIRED_FIELDS if name not in record]
    if missing:
        raise KeyError("missing field(s): " + ", ".join(missing))
    question = QuizQuestion(
        question=_require_text(record["question"], "question"),
        options=tuple(_require_text_list(record["options"], "options")),
        correct_answers=frozenset(
            _require_text_list(record["correct_answers"], "correct_answers")
        ),
        explanation=_require_text(record["explanation"], "explanation"),
        original_index=str(record["original_index"]),
    )
    validate_question(question)
    return question


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"'{field}' must be a string")
    return value


def _require_text_list(value: Any, field: str) -> Sequence[str]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ValueError(f"'{field}' must be a list of strings")
    return [_require_text(item, field) for item in value]
