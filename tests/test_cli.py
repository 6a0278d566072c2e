import pytest

from doc_quiz import cli
from doc_quiz.quizzer import _main as quizzer_main


@pytest.fixture(autouse=True)
def fixed_version(monkeypatch):
    def fake_version(name: str) -> str:
        assert name == "doc-quiz"
        return "0.0-test"

    monkeypatch.setattr(cli.metadata, "version", fake_version)


def test_version_variants(capsys):
    for flag in ("version", "--version", "-V"):
        assert cli.main([flag]) == 0
        assert capsys.readouterr().out.strip() == "0.0-test"


def test_version_handles_missing_distribution(monkeypatch, capsys):
    def missing(name):
        raise cli.metadata.PackageNotFoundError(name)

    monkeypatch.setattr(cli.metadata, "version", missing)

    assert cli.main(["version"]) == 0
    assert capsys.readouterr().out.strip() == "unknown"


def test_no_args_prints_usage_and_fails(capsys):
    assert cli.main([]) == 2
    out = capsys.readouterr().out
    assert "Usage: doc-quiz" in out
    assert "Available commands:" in out


def test_help_flag_and_command(capsys):
    assert cli.main(["--help"]) == 0
    assert "Usage: doc-quiz" in capsys.readouterr().out
    assert cli.main(["help"]) == 0
    assert "Usage: doc-quiz" in capsys.readouterr().out


def test_list_shows_commands(capsys):
    assert cli.main(["list"]) == 0
    out = capsys.readouterr().out
    assert "init" in out
    assert "quizzer" in out
    assert "(interactive)" in out


def test_help_for_known_command(capsys):
    assert cli.main(["help", "quizzer"]) == 0
    assert "Run `doc-quiz quizzer --help`" in capsys.readouterr().out


@pytest.mark.parametrize("argv", [["help", "nope"], ["nope"]])
def test_unknown_command(argv, capsys):
    assert cli.main(argv) == 2
    err = capsys.readouterr().err
    assert "Unknown command 'nope'." in err
    assert "Available commands:" in err


def test_dispatch_passes_arguments(monkeypatch):
    seen = {}

    def fake_main(argv):
        seen["argv"] = list(argv)
        seen["prog"] = cli.sys.argv[0]
        return 5

    monkeypatch.setattr(quizzer_main, "main", fake_main)

    assert cli.main(["quizzer", "notes.pdf", "--verbose"]) == 5
    assert seen == {"argv": ["notes.pdf", "--verbose"], "prog": "doc-quiz quizzer"}


def test_dispatch_normalizes_system_exit(monkeypatch, capsys):
    def exits(argv):
        raise SystemExit("fatal: bad input")

    monkeypatch.setattr(quizzer_main, "main", exits)

    assert cli.main(["quizzer"]) == 1
    assert "fatal: bad input" in capsys.readouterr().err


def test_subcommand_help_exits_cleanly(capsys):
    assert cli.main(["quizzer", "--help"]) == 0
    assert "doc-quiz quizzer" in capsys.readouterr().out


def test_init_runs_through_dispatcher(tmp_path, capsys):
    target = tmp_path / "ws"

    assert cli.main(["init", "--path", str(target)]) == 0
    assert (target / "config").is_dir()
    assert "Workspace ready" in capsys.readouterr().out


def test_exit_code_helpers():
    assert cli._exit_code(None) == 0
    assert cli._exit_code(3) == 3
    assert cli._accepts_argv(lambda argv: 0) is True
    assert cli._accepts_argv(lambda: 0) is False
