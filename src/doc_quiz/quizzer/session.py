"""In-memory quiz session state and the scoring derived from it.

The state object enforces its own invariants (checked indices stay in
range, graded answers are frozen) and knows nothing about fetching. The
acquisition controller owns an instance and is the only writer.
"""

from __future__ import annotations

from collections.abc import Iterable, Set
from dataclasses import dataclass, field

from .models import QuizQuestion


@dataclass(frozen=True)
class QuizSummary:
    """Snapshot of progress and score for the progress bar and summary."""

    total_questions: int
    checked_questions: int
    correct_answers: int
    progress: float

    @property
    def accuracy(self) -> float:
        if self.checked_questions == 0:
            return 0.0
        return self.correct_answers / self.checked_questions


@dataclass
class QuizSessionState:
    """Questions accumulated so far plus the user's answers."""

    questions: list[QuizQuestion] = field(default_factory=list)
    user_answers: dict[int, set[str]] = field(default_factory=dict)
    checked: set[int] = field(default_factory=set)
    is_loading: bool = False
    error: str | None = None

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    def titles(self) -> list[str]:
        return [question.question for question in self.questions]

    def install(self, questions: Iterable[QuizQuestion]) -> None:
        """Replace the (empty) question list with a first batch."""

        if self.questions:
            raise RuntimeError("install() is only valid on an empty session")
        self.questions = list(questions)

    def append(self, questions: Iterable[QuizQuestion]) -> int:
        before = len(self.questions)
        self.questions.extend(questions)
        return len(self.questions) - before

    def selected_for(self, index: int) -> frozenset[str]:
        return frozenset(self.user_answers.get(index, ()))

    def is_checked(self, index: int) -> bool:
        return index in self.checked

    def toggle_option(self, index: int, option: str) -> bool:
        """Flip ``option`` in the selection for ``index``.

        Returns ``False`` without touching anything when the question is
        already graded, does not exist, or does not offer ``option``.
        """

        if index in self.checked:
            return False
        if not 0 <= index < len(self.questions):
            return False
        if option not in self.questions[index].options:
            return False
        selection = self.user_answers.setdefault(index, set())
        if option in selection:
            selection.remove(option)
        else:
            selection.add(option)
        return True

    def check_answer(self, index: int) -> bool:
        """Grade ``index``; ``True`` only the first time it is checked."""

        if not 0 <= index < len(self.questions):
            raise IndexError(f"No question at index {index}")
        if index in self.checked:
            return False
        self.checked.add(index)
        return True

    def reset(self) -> None:
        self.questions = []
        self.user_answers = {}
        self.checked = set()
        self.is_loading = False
        self.error = None


def is_correct(question: QuizQuestion, selected: Set[str]) -> bool:
    """Exact set equality between the selection and the correct answers."""

    return len(selected) == len(question.correct_answers) and set(
        selected
    ).issubset(question.correct_answers)


def score(state: QuizSessionState) -> int:
    return sum(
        1
        for index in state.checked
        if index < len(state.questions)
        and is_correct(state.questions[index], state.selected_for(index))
    )


def progress(state: QuizSessionState) -> float:
    if not state.questions:
        return 0.0
    return len(state.checked) / len(state.questions)


def is_complete(
    state: QuizSessionState,
    *,
    has_reached_end: bool,
    is_fetching_more: bool,
) -> bool:
    """All cards graded and no more can arrive."""

    return (
        bool(state.questions)
        and len(state.checked) == len(state.questions)
        and has_reached_end
        and not is_fetching_more
    )


def summarize(state: QuizSessionState) -> QuizSummary:
    return QuizSummary(
        total_questions=len(state.questions),
        checked_questions=len(state.checked),
        correct_answers=score(state),
        progress=progress(state),
    )
