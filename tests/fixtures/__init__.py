"""Shared fakes and builders for the doc_quiz test suite."""

from .executors import InlineExecutor, ManualExecutor  # noqa: F401
from .openai import FakeOpenAIClient  # noqa: F401
from .provider import (  # noqa: F401
    FakeProvider,
    make_batch,
    make_ingestor,
    make_question,
)
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "FakeOpenAIClient",
    "FakeProvider",
    "InlineExecutor",
    "ManualExecutor",
    "WorkspaceBuilder",
    "build_tree",
    "make_batch",
    "make_ingestor",
    "make_question",
]
