"""Incremental question acquisition for a quiz session.

The controller owns both the quiz state and the fetch bookkeeping. It loads
the first batch when a document is opened, then keeps topping the session up
(on request, or automatically when checkpoint questions are graded) until the
ceiling is hit or the provider stops producing unseen questions.

Every transition happens under one lock. Background fetches run on an
executor and re-enter the lock only to merge; a reset bumps ``epoch`` so a
fetch started before it cannot leak into the next session.
"""

from __future__ import annotations

import logging
import random
import threading
from collections import deque
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Protocol, Sequence

from ..core.ai import CredentialError
from .ingest import IngestedDocument, IngestionError, extract
from .manager.generator import ProviderError
from .models import QuizQuestion
from .session import QuizSessionState, QuizSummary, is_complete, summarize
from .utils import filter_unseen, shuffle_batch

BATCH_SIZE = 15
MAX_QUESTIONS = 65
CHECKPOINTS: tuple[int, ...] = (2, 12)

NO_NEW_QUESTIONS = "No more new, unique questions were found in the document."
NO_QUESTIONS = "No questions could be extracted from this document."

_SESSION_ERRORS = (IngestionError, CredentialError, ProviderError)

Ingestor = Callable[[Path], IngestedDocument]


class QuestionProvider(Protocol):
    def generate_batch(
        self,
        content: str,
        existing_titles: Sequence[str],
        is_image: bool = False,
        *,
        mime_type: Optional[str] = None,
    ) -> list[QuizQuestion]: ...


class FetchStatus(Enum):
    """How a ``fetch_more`` call ended."""

    APPENDED = "appended"
    EXHAUSTED = "exhausted"
    CEILING = "ceiling"
    FAILED = "failed"
    STALE = "stale"


@dataclass(frozen=True)
class FetchOutcome:
    status: FetchStatus
    appended: int = 0
    received: int = 0
    notice: Optional[str] = None


@dataclass(frozen=True)
class ActiveSource:
    """The document the session draws questions from."""

    name: str
    kind: str
    content: str

    @property
    def is_image(self) -> bool:
        return self.kind.startswith("image/")

    @classmethod
    def from_document(cls, document: IngestedDocument) -> "ActiveSource":
        return cls(
            name=document.name, kind=document.kind, content=document.content
        )


class TriggerTracker:
    """Remembers which graded indices already started an automatic fetch."""

    def __init__(
        self,
        batch_size: int = BATCH_SIZE,
        checkpoints: Sequence[int] = CHECKPOINTS,
    ) -> None:
        self.batch_size = batch_size
        self.checkpoints = frozenset(checkpoints)
        self._triggered: set[int] = set()

    @property
    def triggered(self) -> frozenset[int]:
        return frozenset(self._triggered)

    def is_checkpoint(self, index: int) -> bool:
        return index % self.batch_size in self.checkpoints

    def claim(self, index: int) -> bool:
        """Return ``True`` exactly once per checkpoint index."""

        if not self.is_checkpoint(index) or index in self._triggered:
            return False
        self._triggered.add(index)
        return True

    def reset(self) -> None:
        self._triggered.clear()


@dataclass
class AcquisitionState:
    source: Optional[ActiveSource] = None
    is_fetching_more: bool = False
    has_reached_end: bool = False
    epoch: int = 0
    triggers: TriggerTracker = field(default_factory=TriggerTracker)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of everything the presentation layer renders."""

    questions: tuple[QuizQuestion, ...]
    user_answers: Mapping[int, frozenset[str]]
    checked: frozenset[int]
    is_loading: bool
    error: Optional[str]
    source: Optional[ActiveSource]
    is_fetching_more: bool
    has_reached_end: bool
    summary: QuizSummary
    is_complete: bool

    def selected_for(self, index: int) -> frozenset[str]:
        return self.user_answers.get(index, frozenset())


class AcquisitionController:
    """Single writer for :class:`QuizSessionState` and :class:`AcquisitionState`."""

    def __init__(
        self,
        provider: QuestionProvider,
        *,
        ingestor: Ingestor = extract,
        executor: Optional[Executor] = None,
        batch_size: int = BATCH_SIZE,
        max_questions: int = MAX_QUESTIONS,
        checkpoints: Sequence[int] = CHECKPOINTS,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider
        self._ingest = ingestor
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="doc-quiz-fetch"
        )
        self.batch_size = batch_size
        self.max_questions = max_questions
        self._rng = rng or random.Random()
        self._log = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._notices: deque[str] = deque()
        self.session = QuizSessionState()
        self.acquisition = AcquisitionState(
            triggers=TriggerTracker(batch_size, checkpoints)
        )

    # -- lifecycle -----------------------------------------------------

    def start_session(self, path: Path) -> bool:
        """Open ``path`` and load the first batch; ``False`` on failure.

        Failures leave an empty question list and a user-facing ``error``.
        """

        with self._lock:
            self._clear()
            self.session.is_loading = True
            epoch = self.acquisition.epoch

        self._log.info("Starting quiz session", extra={"path": str(path)})
        try:
            document = self._ingest(Path(path))
            batch = self._provider.generate_batch(
                document.content,
                [],
                document.is_image,
                mime_type=document.kind if document.is_image else None,
            )
        except Exception as exc:
            with self._lock:
                if self.acquisition.epoch == epoch:
                    self.session.is_loading = False
                    self.session.error = str(exc) or "Extraction failed."
            if not isinstance(exc, _SESSION_ERRORS):
                self._log.exception("Unexpected failure starting session")
                raise
            self._log.error(
                "Quiz session failed to start",
                extra={"path": str(path), "error": str(exc)},
            )
            return False

        with self._lock:
            if self.acquisition.epoch != epoch:
                self._log.info("Discarded first batch after reset")
                return False
            self.session.is_loading = False
            accepted = filter_unseen(batch, [])[: self.max_questions]
            if not accepted:
                self.session.error = NO_QUESTIONS
                self._log.warning(
                    "First batch was empty", extra={"received": len(batch)}
                )
                return False
            self.session.install(shuffle_batch(accepted, self._rng))
            self.acquisition.source = ActiveSource.from_document(document)
            if self.session.total_questions >= self.max_questions:
                self.acquisition.has_reached_end = True
            self._log.info(
                "Installed first batch",
                extra={
                    "source": document.name,
                    "received": len(batch),
                    "accepted": len(accepted),
                },
            )
            return True

    def reset(self) -> None:
        """Drop everything; a fetch still in flight will be ignored."""

        with self._lock:
            self._clear()
        self._log.info("Quiz session reset")

    def close(self) -> None:
        """Release the worker pool without waiting on it.

        Queued fetches are cancelled. A provider call already running is not
        interrupted, and the interpreter joins its worker at exit, so quitting
        mid-fetch lasts until that call returns or hits the request timeout.
        """

        with self._lock:
            in_flight = self.acquisition.is_fetching_more
        if in_flight:
            self._log.info("Waiting for in-flight fetch to finish")
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def _clear(self) -> None:
        self.session.reset()
        acq = self.acquisition
        acq.source = None
        acq.is_fetching_more = False
        acq.has_reached_end = False
        acq.triggers.reset()
        acq.epoch += 1
        self._notices.clear()

    # -- fetching ------------------------------------------------------

    def fetch_more(self, is_automatic: bool = False) -> Optional[Future]:
        """Request another batch in the background.

        Returns ``None`` when there is nothing to do (no source, a fetch
        already running, or the end was reached), otherwise a future that
        resolves to a :class:`FetchOutcome`.
        """

        with self._lock:
            acq = self.acquisition
            if acq.source is None or acq.is_fetching_more or acq.has_reached_end:
                return None
            if self.session.total_questions >= self.max_questions:
                acq.has_reached_end = True
                self._log.info(
                    "Question ceiling reached",
                    extra={"count": self.session.total_questions},
                )
                done: Future = Future()
                done.set_result(FetchOutcome(FetchStatus.CEILING))
                return done
            acq.is_fetching_more = True
            epoch = acq.epoch
            source = acq.source
            titles = self.session.titles()

        self._log.debug(
            "Fetching more questions",
            extra={"existing": len(titles), "automatic": is_automatic},
        )
        try:
            return self._executor.submit(
                self._run_fetch, epoch, source, titles, is_automatic
            )
        except RuntimeError:
            self._release_latch(epoch)
            raise

    def _run_fetch(
        self,
        epoch: int,
        source: ActiveSource,
        titles: list[str],
        is_automatic: bool,
    ) -> FetchOutcome:
        try:
            batch = self._provider.generate_batch(
                source.content,
                titles,
                source.is_image,
                mime_type=source.kind if source.is_image else None,
            )
        except (ProviderError, CredentialError) as exc:
            return self._fetch_failed(epoch, exc, is_automatic)
        except Exception:
            self._log.exception("Unexpected failure fetching questions")
            raise
        else:
            with self._lock:
                return self._merge(epoch, batch, is_automatic)
        finally:
            self._release_latch(epoch)

    def _release_latch(self, epoch: int) -> None:
        with self._lock:
            if self.acquisition.epoch == epoch:
                self.acquisition.is_fetching_more = False

    def _fetch_failed(
        self, epoch: int, exc: Exception, is_automatic: bool
    ) -> FetchOutcome:
        with self._lock:
            if self.acquisition.epoch != epoch:
                return FetchOutcome(FetchStatus.STALE)
            if is_automatic:
                self._log.warning(
                    "Automatic fetch failed", exc_info=exc
                )
                return FetchOutcome(FetchStatus.FAILED)
            notice = f"Could not load more questions: {exc}"
            self._notices.append(notice)
            self._log.error(
                "Manual fetch failed", extra={"error": str(exc)}
            )
            return FetchOutcome(FetchStatus.FAILED, notice=notice)

    def _merge(
        self, epoch: int, batch: Sequence[QuizQuestion], is_automatic: bool
    ) -> FetchOutcome:
        acq = self.acquisition
        if acq.epoch != epoch:
            self._log.info(
                "Discarded batch from a previous session",
                extra={"received": len(batch)},
            )
            return FetchOutcome(FetchStatus.STALE, received=len(batch))

        existing = self.session.titles()
        unique = filter_unseen(batch, existing)
        if not unique:
            acq.has_reached_end = True
            notice = None if is_automatic else NO_NEW_QUESTIONS
            if notice:
                self._notices.append(notice)
            self._log.info(
                "Source exhausted",
                extra={"received": len(batch), "automatic": is_automatic},
            )
            return FetchOutcome(
                FetchStatus.EXHAUSTED, received=len(batch), notice=notice
            )

        remaining = self.max_questions - len(existing)
        if remaining <= 0:
            acq.has_reached_end = True
            return FetchOutcome(FetchStatus.CEILING, received=len(batch))
        accepted = shuffle_batch(unique[:remaining], self._rng)
        appended = self.session.append(accepted)
        if self.session.total_questions >= self.max_questions:
            acq.has_reached_end = True
        self._log.info(
            "Appended questions",
            extra={
                "received": len(batch),
                "unique": len(unique),
                "appended": appended,
                "total": self.session.total_questions,
            },
        )
        return FetchOutcome(
            FetchStatus.APPENDED, appended=appended, received=len(batch)
        )

    # -- user intents ----------------------------------------------------

    def toggle_option(self, index: int, option: str) -> bool:
        with self._lock:
            return self.session.toggle_option(index, option)

    def check_answer(self, index: int) -> bool:
        """Grade ``index`` and prefetch when it is a fresh checkpoint.

        The grade is committed before any fetch starts; the fetch itself
        runs on the executor.
        """

        with self._lock:
            first_time = self.session.check_answer(index)
            trigger = self.acquisition.triggers.claim(index)
        if trigger:
            self._log.debug("Checkpoint reached", extra={"index": index})
            self.fetch_more(is_automatic=True)
        return first_time

    def drain_notices(self) -> list[str]:
        with self._lock:
            notices = list(self._notices)
            self._notices.clear()
        return notices

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            session = self.session
            acq = self.acquisition
            return SessionSnapshot(
                questions=tuple(session.questions),
                user_answers=MappingProxyType(
                    {
                        index: frozenset(answers)
                        for index, answers in session.user_answers.items()
                    }
                ),
                checked=frozenset(session.checked),
                is_loading=session.is_loading,
                error=session.error,
                source=acq.source,
                is_fetching_more=acq.is_fetching_more,
                has_reached_end=acq.has_reached_end,
                summary=summarize(session),
                is_complete=is_complete(
                    session,
                    has_reached_end=acq.has_reached_end,
                    is_fetching_more=acq.is_fetching_more,
                ),
            )
