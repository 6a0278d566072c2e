"""Rich console front end for a quiz session.

The loop only reads controller snapshots and forwards intents; all state
changes go through :class:`~doc_quiz.quizzer.acquisition.AcquisitionController`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from .acquisition import AcquisitionController, FetchStatus, SessionSnapshot
from .session import QuizSummary, is_correct

InputProvider = Callable[[], str]
ExitAction = Literal["quit", "interrupted", "no_source"]

OPTION_KEYS = "ABCD"


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal["toggle", "check", "next", "prev", "more", "reset", "quit"]
    choice: Optional[str] = None


@dataclass(frozen=True)
class QuizSessionResult:
    summary: QuizSummary
    exit_action: ExitAction


def parse_session_command(raw: Optional[str]) -> Optional[SessionCommand]:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next"}:
        return SessionCommand("next")
    if lowered in {"p", "prev", "previous"}:
        return SessionCommand("prev")
    if lowered in {"s", "check", "submit"}:
        return SessionCommand("check")
    if lowered in {"m", "more"}:
        return SessionCommand("more")
    if lowered in {"r", "reset"}:
        return SessionCommand("reset")
    if lowered in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    if len(text) == 1:
        if text.isdigit() and 1 <= int(text) <= len(OPTION_KEYS):
            return SessionCommand("toggle", OPTION_KEYS[int(text) - 1])
        if text.upper() in OPTION_KEYS:
            return SessionCommand("toggle", text.upper())
    return None


def run_quiz_session(
    controller: AcquisitionController,
    console: Console,
    input_provider: InputProvider,
    *,
    source: Optional[Path] = None,
    show_explanations: bool = True,
) -> QuizSessionResult:
    """Drive a session: upload prompt, question loop, final summary."""

    index = 0
    pending = source
    announced_complete = False
    while True:
        snapshot = controller.snapshot()
        if not snapshot.questions:
            try:
                pending = pending or _ask_for_source(console, input_provider)
            except (EOFError, KeyboardInterrupt, StopIteration):
                return _finish(console, controller, "interrupted")
            if pending is None:
                return _finish(console, controller, "no_source")
            _open_source(console, controller, pending)
            pending = None
            index = 0
            announced_complete = False
            continue

        index = min(index, len(snapshot.questions) - 1)
        _render_notices(console, controller.drain_notices())
        _render_question(console, snapshot, index, show_explanations)
        if snapshot.is_complete and not announced_complete:
            _render_completion(console, snapshot.summary)
            announced_complete = True

        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            return _finish(console, controller, "interrupted")
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            return _finish(console, controller, "quit")
        index = _apply_command(command, controller, console, snapshot, index)


def _apply_command(
    command: SessionCommand,
    controller: AcquisitionController,
    console: Console,
    snapshot: SessionSnapshot,
    index: int,
) -> int:
    if command.type == "toggle" and command.choice:
        options = snapshot.questions[index].options
        position = OPTION_KEYS.index(command.choice)
        if position >= len(options):
            console.print(
                f"[red]'{command.choice}' is not a valid choice.[/red]"
            )
        elif not controller.toggle_option(index, options[position]):
            console.print("[yellow]This question is already checked.[/]")
        return index
    if command.type == "check":
        controller.check_answer(index)
        return index
    if command.type == "next":
        return min(index + 1, len(snapshot.questions) - 1)
    if command.type == "prev":
        return max(index - 1, 0)
    if command.type == "more":
        _load_more(console, controller)
        return index
    if command.type == "reset":
        controller.reset()
        console.print("[bold yellow]Quiz reset.[/]")
        return 0
    return index


def _ask_for_source(
    console: Console, input_provider: InputProvider
) -> Optional[Path]:
    console.print()
    console.rule(Text("Upload source material", style="bold cyan"))
    console.print(
        "Enter the path of a PDF or an image (blank to quit).", style="dim"
    )
    raw = input_provider().strip()
    return Path(raw).expanduser() if raw else None


def _open_source(
    console: Console, controller: AcquisitionController, path: Path
) -> None:
    with console.status("Mining questions..."):
        ok = controller.start_session(path)
    snapshot = controller.snapshot()
    if ok:
        console.print(
            f"Loaded [bold]{len(snapshot.questions)}[/] questions from "
            f"[cyan]{escape(path.name)}[/]."
        )
        return
    console.print(
        Panel(
            Text(snapshot.error or "Extraction failed."),
            title="Error",
            border_style="red",
        )
    )


def _load_more(console: Console, controller: AcquisitionController) -> None:
    future = controller.fetch_more(is_automatic=False)
    if future is None:
        snapshot = controller.snapshot()
        if snapshot.is_fetching_more:
            console.print("[dim]Already loading more questions...[/]")
        else:
            console.print("[dim]All questions have been extracted.[/]")
        return
    with console.status("Loading more questions..."):
        outcome = future.result()
    if outcome.status is FetchStatus.APPENDED:
        console.print(f"Added [bold]{outcome.appended}[/] new question(s).")
    elif outcome.status is FetchStatus.CEILING:
        console.print("[dim]Question limit reached.[/]")


def _render_notices(console: Console, notices: list[str]) -> None:
    for notice in notices:
        console.print(
            Panel(Text(notice), title="Notice", border_style="yellow")
        )


def _status_line(snapshot: SessionSnapshot) -> Text:
    summary = snapshot.summary
    line = Text.assemble(
        ("Correct: ", "bold"),
        (str(summary.correct_answers), "bold green"),
        f" | {summary.checked_questions} / {summary.total_questions} "
        "questions",
    )
    if snapshot.is_fetching_more:
        line.append("  loading more...", style="bold magenta")
    if snapshot.has_reached_end:
        line.append("  all questions extracted", style="dim")
    return line


def _render_question(
    console: Console,
    snapshot: SessionSnapshot,
    index: int,
    show_explanations: bool,
) -> None:
    question = snapshot.questions[index]
    checked = index in snapshot.checked
    selected = snapshot.selected_for(index)

    console.print()
    console.print(_status_line(snapshot))
    console.print(
        ProgressBar(
            total=max(snapshot.summary.total_questions, 1),
            completed=snapshot.summary.checked_questions,
            width=60,
        )
    )
    header = Text.assemble(
        (f"Question {index + 1}", "bold cyan"),
        (f" / {len(snapshot.questions)}", "dim"),
        (f"  [source #{question.original_index}]", "dim"),
    )
    console.rule(header)
    console.print(Text(question.question, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Choice")
    for key, option in zip(OPTION_KEYS, question.options):
        marker = "[x]" if option in selected else "[ ]"
        row = Text(f"{marker} {option}")
        if checked and option in question.correct_answers:
            row.stylize("bold green")
        elif checked and option in selected:
            row.stylize("bold red")
        elif option in selected:
            row.stylize("bold")
        table.add_row(key, row)
    console.print(table)

    if checked:
        correct = is_correct(question, selected)
        verdict = "Correct!" if correct else "Incorrect."
        body = verdict
        if show_explanations and question.explanation:
            body = f"{verdict}\n\n{question.explanation}"
        console.print(
            Panel(
                Text(body),
                title="Result",
                border_style="green" if correct else "red",
            )
        )

    console.print(
        Text(
            "Commands: a-d / 1-4 (toggle), s (check), n (next), p (prev), "
            "m (more), r (reset), q (quit)",
            style="dim",
        )
    )


def _render_completion(console: Console, summary: QuizSummary) -> None:
    console.print(
        Panel(
            f"You answered {summary.correct_answers} of "
            f"{summary.total_questions} questions correctly.",
            title="Quiz complete",
            border_style="magenta",
        )
    )


def _finish(
    console: Console,
    controller: AcquisitionController,
    exit_action: ExitAction,
) -> QuizSessionResult:
    summary = controller.snapshot().summary
    if summary.total_questions:
        _render_summary(console, summary)
    return QuizSessionResult(summary=summary, exit_action=exit_action)


def _render_summary(console: Console, summary: QuizSummary) -> None:
    console.print()
    console.rule(Text("Quiz Summary", style="bold magenta"))
    overview = Table(
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
        expand=False,
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Questions", str(summary.total_questions))
    overview.add_row("Checked", str(summary.checked_questions))
    overview.add_row("Correct", str(summary.correct_answers))
    overview.add_row("Progress", f"{summary.progress * 100:.1f}%")
    overview.add_row("Accuracy", f"{summary.accuracy * 100:.1f}%")
    console.print(overview)
