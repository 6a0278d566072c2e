"""Filesystem helpers for tests that need real files on disk."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Union

Content = Union[str, bytes, None]


def build_tree(base: Path, tree: Mapping[str, Content]) -> None:
    """Create files under ``base``; ``None`` values become directories.

    Keys may contain ``/`` to reach nested paths.
    """

    for relative, value in tree.items():
        path = base / relative
        if value is None:
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(value, bytes):
            path.write_bytes(value)
        else:
            path.write_text(value, encoding="utf-8")


@dataclass
class WorkspaceBuilder:
    root: Path

    def write(self, relative: Union[str, Path], content: Content = "") -> Path:
        build_tree(self.root, {str(relative): content})
        return self.root / Path(relative)

    def config(self, body: str) -> Path:
        """Write ``quizzer.toml`` into the test workspace (DOC_QUIZ_DATA_HOME)."""

        return self.write("data-home/config/quizzer.toml", body)
