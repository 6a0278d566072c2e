from __future__ import annotations

import json
from pathlib import Path

import pytest

from doc_quiz.quizzer import _main as quizzer_main
from doc_quiz.quizzer.acquisition import AcquisitionController
from doc_quiz.quizzer.manager.generator import OpenAIQuestionProvider
from doc_quiz.quizzer.session import QuizSummary
from doc_quiz.quizzer.view import QuizSessionResult


@pytest.fixture
def captured_session(monkeypatch):
    """Replace the interactive loop and record what it was given."""

    seen = {}

    def fake_run(controller, console, input_provider, *, source, show_explanations):
        seen.update(
            controller=controller,
            source=source,
            show_explanations=show_explanations,
        )
        return QuizSessionResult(QuizSummary(0, 0, 0, 0.0), "no_source")

    monkeypatch.setattr(quizzer_main, "run_quiz_session", fake_run)
    return seen


def test_main_wires_config_into_controller(
    workspace, captured_session
) -> None:
    workspace.config(
        "[quiz]\nbatch_size = 10\nmax_questions = 40\ncheckpoints = [3]\n"
        "exclusion_window = 5\nlanguage = \"German\"\n"
        "[providers.openai]\nmodel = \"gpt-4o\"\ntemperature = 0.2\n"
    )

    code = quizzer_main.main(["notes.pdf", "--api-key", "sk-test", "--no-explain"])

    assert code == 0
    controller = captured_session["controller"]
    assert isinstance(controller, AcquisitionController)
    assert controller.batch_size == 10
    assert controller.max_questions == 40
    assert controller.acquisition.triggers.checkpoints == frozenset({3})
    provider = controller._provider
    assert isinstance(provider, OpenAIQuestionProvider)
    assert provider.model == "gpt-4o"
    assert provider.temperature == 0.2
    assert provider.language == "German"
    assert provider.exclusion_window == 5
    assert captured_session["source"] == Path("notes.pdf")
    assert captured_session["show_explanations"] is False


def test_main_writes_json_logs(tmp_path: Path, captured_session) -> None:
    code = quizzer_main.main(["--log-level", "DEBUG"])

    assert code == 0
    log_path = tmp_path / "data-home" / "logs" / "quizzer.log"
    lines = [
        json.loads(line)
        for line in log_path.read_text(encoding="utf-8").splitlines()
    ]
    messages = [entry["message"] for entry in lines]
    assert "quizzer CLI invoked" in messages
    assert "Quiz session ended" in messages


def test_main_rejects_invalid_config(workspace, capsys) -> None:
    path = workspace.write("bad.toml", "[quiz]\nbatch_size = 0\n")

    code = quizzer_main.main(["--config", str(path)])

    assert code == 2
    assert "quiz.batch_size" in capsys.readouterr().err


def test_config_init_writes_template(tmp_path: Path, capsys) -> None:
    code = quizzer_main.main(["config", "init"])

    target = tmp_path / "data-home" / "config" / "quizzer.toml"
    assert code == 0
    assert target.exists()
    assert "[providers.openai]" in target.read_text(encoding="utf-8")
    assert str(target) in capsys.readouterr().out


def test_config_init_refuses_to_overwrite(tmp_path: Path, capsys) -> None:
    target = tmp_path / "custom.toml"
    target.write_text("# mine\n", encoding="utf-8")

    assert quizzer_main.main(["config", "init", "--path", str(target)]) == 1
    assert "already exists" in capsys.readouterr().err
    assert target.read_text(encoding="utf-8") == "# mine\n"

    assert (
        quizzer_main.main(["config", "init", "--path", str(target), "--force"])
        == 0
    )
    assert "[quiz]" in target.read_text(encoding="utf-8")


def test_config_init_with_workspace_override(tmp_path: Path) -> None:
    root = tmp_path / "elsewhere"

    assert quizzer_main.main(["config", "init", "--workspace", str(root)]) == 0
    assert (root / "config" / "quizzer.toml").exists()
