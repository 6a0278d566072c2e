"""Command-line interface for ``doc-quiz quizzer``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from doc_quiz.core import workspace as workspace_mod
from doc_quiz.core.logging import configure_logger
from doc_quiz.core.workspace import WorkspaceError

from .acquisition import AcquisitionController
from .config import (
    CONFIG_FILENAME,
    QuizConfigError,
    QuizzerConfig,
    load_config,
    write_default_config,
)
from .manager.generator import OpenAIQuestionProvider
from .view import run_quiz_session

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="doc-quiz quizzer",
        description=(
            "Turn a PDF or an image into an interactive multiple-choice "
            "quiz, fetching new questions as you go"
        ),
        epilog=(
            "Run `doc-quiz quizzer config init` to scaffold the default "
            "quizzer.toml template."
        ),
    )
    p.add_argument(
        "path",
        nargs="?",
        type=Path,
        help="PDF or image to quiz on (prompted for when omitted)",
    )
    p.add_argument("--config", type=Path, help="Path to quizzer.toml")
    p.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root override for config and logs",
    )
    p.add_argument(
        "--api-key",
        help="OpenAI API key (defaults to OPENAI_API_KEY / .env)",
    )
    p.add_argument("--log-level", help="Override the configured log level")
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log output to stderr",
    )
    p.add_argument(
        "--no-explain",
        dest="explain",
        action="store_false",
        help="Hide explanations after checking an answer",
    )
    p.set_defaults(explain=True)
    return p


def build_controller(
    config: QuizzerConfig,
    *,
    api_key: Optional[str] = None,
    logger=None,
) -> AcquisitionController:
    """Wire an OpenAI provider and a controller from ``config``."""
    quiz = config.quiz
    openai_cfg = config.openai
    provider = OpenAIQuestionProvider(
        api_key=api_key,
        model=openai_cfg.model,
        temperature=openai_cfg.temperature,
        max_tokens=openai_cfg.max_tokens,
        api_base=openai_cfg.api_base,
        request_timeout=float(openai_cfg.request_timeout_seconds),
        batch_size=quiz.batch_size,
        exclusion_window=quiz.exclusion_window,
        language=quiz.language,
    )
    return AcquisitionController(
        provider,
        batch_size=quiz.batch_size,
        max_questions=quiz.max_questions,
        checkpoints=quiz.checkpoints,
        logger=logger,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])

    if args_list[:1] == ["config"]:
        return _handle_config(args_list[1:])

    parser = build_arg_parser()
    args = parser.parse_args(args_list)

    try:
        config = load_config(
            explicit_path=args.config, workspace_path=args.workspace
        )
        layout = workspace_mod.ensure_workspace(path=args.workspace)
    except QuizConfigError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    logger, log_path = configure_logger(
        "doc_quiz.quizzer",
        log_dir=layout.path_for("logs"),
        level=args.log_level or config.logging.level,
        verbose=args.verbose or config.logging.verbose,
    )
    logger.debug(
        "quizzer CLI invoked",
        extra={"config": config.source, "log_path": log_path},
    )

    console = Console()
    controller = build_controller(config, api_key=args.api_key, logger=logger)
    try:
        result = run_quiz_session(
            controller,
            console,
            lambda: console.input("[bold]> [/]"),
            source=args.path,
            show_explanations=args.explain,
        )
    finally:
        controller.close()
    logger.info(
        "Quiz session ended",
        extra={
            "exit_action": result.exit_action,
            "total": result.summary.total_questions,
            "correct": result.summary.correct_answers,
        },
    )
    return 0


def _handle_config(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="doc-quiz quizzer config",
        description="Manage configuration files for quizzer.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    init_parser = subparsers.add_parser(
        "init", help="Write the default quizzer.toml template."
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help="Destination (defaults to the workspace config directory).",
    )
    init_parser.add_argument(
        "--workspace", type=Path, help="Workspace root override."
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    args = parser.parse_args(argv)

    try:
        if args.path is not None:
            target = args.path.expanduser().absolute()
        else:
            layout = workspace_mod.ensure_workspace(path=args.workspace)
            target = layout.path_for("config") / CONFIG_FILENAME
        written = write_default_config(target, overwrite=args.force)
    except (WorkspaceError, QuizConfigError) as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote quizzer config to {written}\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
