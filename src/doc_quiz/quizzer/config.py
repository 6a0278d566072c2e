"""Configuration for the quizzer command.

Defaults live in code; a TOML file may override any known key. Unknown keys
and out-of-range values are rejected with :class:`QuizConfigError`.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from doc_quiz.core import config as core_config
from doc_quiz.core import workspace as workspace_mod


CONFIG_FILENAME = "quizzer.toml"
CONFIG_PATH_ENV = "DOC_QUIZ_CONFIG"


class QuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizSettings:
    batch_size: int
    max_questions: int
    checkpoints: tuple[int, ...]
    exclusion_window: int
    language: str


@dataclass(frozen=True)
class OpenAIConfig:
    model: str
    temperature: float
    max_tokens: int
    request_timeout_seconds: int
    api_base: Optional[str]


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class QuizzerConfig:
    quiz: QuizSettings
    openai: OpenAIConfig
    logging: LoggingConfig
    source: Optional[Path] = None


_DEFAULTS: Dict[str, Any] = {
    "quiz": {
        "batch_size": 15,
        "max_questions": 65,
        "checkpoints": [2, 12],
        "exclusion_window": 30,
        "language": "English",
    },
    "providers": {
        "openai": {
            "model": "gpt-4o-mini",
            "temperature": 0.7,
            "max_tokens": 6000,
            "request_timeout_seconds": 120,
            "api_base": None,
        },
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


def default_tree() -> Dict[str, Any]:
    return copy.deepcopy(_DEFAULTS)


def _positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise QuizConfigError(f"'{field}' must be a positive integer.")
    return value


def _non_negative_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise QuizConfigError(f"'{field}' must be a non-negative integer.")
    return value


def _text(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _build_quiz(section: Mapping[str, Any]) -> QuizSettings:
    batch_size = _positive_int(section["batch_size"], field="quiz.batch_size")
    max_questions = _positive_int(
        section["max_questions"], field="quiz.max_questions"
    )
    raw_checkpoints = section["checkpoints"]
    if not isinstance(raw_checkpoints, list):
        raise QuizConfigError("'quiz.checkpoints' must be a list of integers.")
    checkpoints = tuple(
        _non_negative_int(value, field="quiz.checkpoints")
        for value in raw_checkpoints
    )
    if any(value >= batch_size for value in checkpoints):
        raise QuizConfigError(
            "'quiz.checkpoints' entries must be smaller than quiz.batch_size."
        )
    return QuizSettings(
        batch_size=batch_size,
        max_questions=max_questions,
        checkpoints=checkpoints,
        exclusion_window=_non_negative_int(
            section["exclusion_window"], field="quiz.exclusion_window"
        ),
        language=_text(section["language"], field="quiz.language"),
    )


def _build_openai(section: Mapping[str, Any]) -> OpenAIConfig:
    temperature = section["temperature"]
    if isinstance(temperature, bool) or not isinstance(
        temperature, (int, float)
    ):
        raise QuizConfigError(
            "'providers.openai.temperature' must be a number."
        )
    if not 0.0 <= float(temperature) <= 2.0:
        raise QuizConfigError(
            "'providers.openai.temperature' must be between 0.0 and 2.0."
        )
    api_base = section["api_base"]
    if api_base is not None:
        api_base = _text(api_base, field="providers.openai.api_base")
    return OpenAIConfig(
        model=_text(section["model"], field="providers.openai.model"),
        temperature=float(temperature),
        max_tokens=_positive_int(
            section["max_tokens"], field="providers.openai.max_tokens"
        ),
        request_timeout_seconds=_positive_int(
            section["request_timeout_seconds"],
            field="providers.openai.request_timeout_seconds",
        ),
        api_base=api_base,
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _text(section["level"], field="logging.level").upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise QuizConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = section["verbose"]
    if not isinstance(verbose, bool):
        raise QuizConfigError("'logging.verbose' must be a boolean.")
    return LoggingConfig(level=level, verbose=verbose)


def build_config(
    tree: Mapping[str, Any], *, source: Optional[Path] = None
) -> QuizzerConfig:
    return QuizzerConfig(
        quiz=_build_quiz(tree["quiz"]),
        openai=_build_openai(tree["providers"]["openai"]),
        logging=_build_logging(tree["logging"]),
        source=source,
    )


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    workspace_path: Optional[Path] = None,
) -> Optional[Path]:
    """Find the config file to load, or ``None`` to run on defaults.

    An explicit path or ``DOC_QUIZ_CONFIG`` must exist; the workspace copy
    is optional.
    """

    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().resolve()
    override = env_map.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser().resolve()
    layout = workspace_mod.ensure_workspace(
        env=env_map, path=workspace_path, create=False
    )
    candidate = layout.path_for("config") / CONFIG_FILENAME
    return candidate if candidate.exists() else None


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    workspace_path: Optional[Path] = None,
) -> QuizzerConfig:
    """Load defaults, overlay the TOML file (if any) and validate."""

    tree = default_tree()
    try:
        path = resolve_config_path(
            explicit_path=explicit_path,
            env=env,
            workspace_path=workspace_path,
        )
        if path is not None:
            core_config.merge_defaults(tree, core_config.load_toml(path))
    except (core_config.TomlConfigError, workspace_mod.WorkspaceError) as exc:
        raise QuizConfigError(str(exc)) from exc
    return build_config(tree, source=path)


def default_template() -> str:
    """Return the packaged ``quizzer.toml`` with every default spelled out."""

    resource = resources.files(__package__).joinpath(CONFIG_FILENAME)
    return resource.read_text(encoding="utf-8")


def write_default_config(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return core_config.write_toml_template(
            path, template=default_template(), overwrite=overwrite
        )
    except (core_config.TomlConfigError, OSError) as exc:
        raise QuizConfigError(str(exc)) from exc
