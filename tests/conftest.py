from __future__ import annotations

import logging
import random
import sys
from pathlib import Path
from typing import Callable, Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    if str(extra) not in sys.path:
        sys.path.insert(0, str(extra))

from doc_quiz.quizzer.acquisition import AcquisitionController  # noqa: E402
from fixtures import (  # noqa: E402
    FakeProvider,
    InlineExecutor,
    WorkspaceBuilder,
    make_ingestor,
)


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _isolated_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Iterator[None]:
    monkeypatch.setenv("DOC_QUIZ_DATA_HOME", str(tmp_path / "data-home"))
    monkeypatch.delenv("DOC_QUIZ_CONFIG", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    yield


@pytest.fixture(autouse=True)
def _close_managed_loggers() -> Iterator[None]:
    yield
    for name in ("doc_quiz.quizzer", "doc_quiz.test"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.propagate = True


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_controller(
    provider: FakeProvider,
) -> Iterator[Callable[..., AcquisitionController]]:
    """Build controllers that fetch inline with a seeded shuffle."""

    created: list[AcquisitionController] = []

    def _factory(**overrides) -> AcquisitionController:
        overrides.setdefault("ingestor", make_ingestor())
        overrides.setdefault("executor", InlineExecutor())
        overrides.setdefault("rng", random.Random(7))
        controller = AcquisitionController(provider, **overrides)
        created.append(controller)
        return controller

    yield _factory
    for controller in created:
        controller.close()
