"""Scripted question provider and question builders."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from doc_quiz.quizzer.ingest import IngestedDocument
from doc_quiz.quizzer.models import QuizQuestion

DEFAULT_OPTIONS = ("alpha", "beta", "gamma", "delta")

Scripted = Union[Sequence[QuizQuestion], BaseException]


def make_question(
    text: str,
    *,
    options: Sequence[str] = DEFAULT_OPTIONS,
    correct: Iterable[str] = ("alpha",),
    explanation: str = "",
    original_index: str = "1",
) -> QuizQuestion:
    return QuizQuestion(
        question=text,
        options=tuple(options),
        correct_answers=frozenset(correct),
        explanation=explanation,
        original_index=original_index,
    )


def make_batch(prefix: str, count: int, *, start: int = 0) -> List[QuizQuestion]:
    return [
        make_question(f"{prefix} {n}", original_index=str(n))
        for n in range(start, start + count)
    ]


@dataclass(frozen=True)
class ProviderCall:
    content: str
    existing_titles: List[str]
    is_image: bool
    mime_type: Optional[str]


class FakeProvider:
    """Replays queued batches; an exception in the queue is raised instead.

    An exhausted queue answers with an empty batch.
    """

    def __init__(self, *script: Scripted) -> None:
        self._script: deque = deque(script)
        self.calls: List[ProviderCall] = []

    def queue(self, item: Scripted) -> None:
        self._script.append(item)

    def generate_batch(
        self,
        content: str,
        existing_titles: Sequence[str],
        is_image: bool = False,
        *,
        mime_type: Optional[str] = None,
    ) -> List[QuizQuestion]:
        self.calls.append(
            ProviderCall(content, list(existing_titles), is_image, mime_type)
        )
        if not self._script:
            return []
        item = self._script.popleft()
        if isinstance(item, BaseException):
            raise item
        return list(item)


def make_ingestor(
    *,
    kind: str = "application/pdf",
    content: str = "Chapter 1\nPhotosynthesis\n",
    error: Optional[Exception] = None,
):
    """Return an ingestor that skips the filesystem."""

    def _ingest(path: Path) -> IngestedDocument:
        if error is not None:
            raise error
        return IngestedDocument(name=Path(path).name, kind=kind, content=content)

    return _ingest


__all__ = [
    "DEFAULT_OPTIONS",
    "FakeProvider",
    "ProviderCall",
    "make_batch",
    "make_ingestor",
    "make_question",
]
