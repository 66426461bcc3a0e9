import subprocess
from pathlib import Path

import pytest

from rustlings.cli import ExerciseNotFound, find_exercise, list_exercises, main, rustc_exists
from rustlings.exercise import Exercise, Mode

PENDING_SOURCE = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED_SOURCE = "// fake_exercise\n\nfn main() {\n\n}\n"


def _fake_run(rustc_ok=True, binary_out=b""):
    def fake(args, **kwargs):
        program = args[0]
        if program == "rustc" and "--version" in args:
            return subprocess.CompletedProcess(args, 0, b"", b"")
        if program in ("rustc", "cargo"):
            code = 0 if rustc_ok else 1
            return subprocess.CompletedProcess(args, code, b"", b"error: bad")
        return subprocess.CompletedProcess(args, 0, binary_out, b"")

    return fake


def _write_project(root: Path, entries):
    blocks = []
    for name, mode, source, hint in entries:
        (root / f"{name}.rs").write_text(source)
        blocks.append(
            f'[[exercises]]\nname = "{name}"\npath = "{name}.rs"\n'
            f'mode = "{mode}"\nhint = """{hint}"""\n'
        )
    (root / "info.toml").write_text("\n".join(blocks))


@pytest.fixture
def state_dir(tmp_path, monkeypatch):
    _write_project(tmp_path, [
        ("pending_exercise", "compile", PENDING_SOURCE, ""),
        ("finished_exercise", "compile", FINISHED_SOURCE, ""),
    ])
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(subprocess, "run", _fake_run())
    return tmp_path


@pytest.fixture
def failure_dir(tmp_path, monkeypatch):
    _write_project(tmp_path, [
        ("compFailure", "compile", "fn main() {\n    let\n}\n", ""),
        ("testFailure", "test", "#[test]\nfn passing() {\n    asset!(true);\n}\n", "Hello!"),
    ])
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(subprocess, "run", _fake_run(rustc_ok=False))
    return tmp_path


@pytest.fixture
def success_dir(tmp_path, monkeypatch):
    _write_project(tmp_path, [
        ("compSuccess", "compile", "fn main() {\n}\n", ""),
        ("testSuccess", "test", "#[test]\nfn passing() {}\n", ""),
    ])
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        subprocess, "run", _fake_run(binary_out=b"THIS TEST TOO SHALL PASS\n")
    )
    return tmp_path


def _exercises(tmp_path):
    pending = tmp_path / "intro1.rs"
    pending.write_text(PENDING_SOURCE)
    finished = tmp_path / "variables1.rs"
    finished.write_text(FINISHED_SOURCE)
    return [
        Exercise("intro1", pending, Mode.COMPILE, ""),
        Exercise("variables1", finished, Mode.COMPILE, ""),
    ]


def test_runs_without_arguments(state_dir, capsys):
    assert main([]) == 0
    assert "Thanks for installing Rustlings!" in capsys.readouterr().out


def test_fails_when_in_wrong_dir(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main([]) == 1
    assert "must be run from the rustlings directory" in capsys.readouterr().out


def test_version_flag(capsys):
    assert main(["-v"]) == 0
    assert capsys.readouterr().out == "v5.5.1\n"


def test_missing_rustc(state_dir, monkeypatch, capsys):
    def missing(args, **kwargs):
        raise FileNotFoundError(args[0])

    monkeypatch.setattr(subprocess, "run", missing)
    assert main(["list"]) == 1
    assert "We cannot find `rustc`." in capsys.readouterr().out


def test_rustc_exists_reports_failure(monkeypatch):
    monkeypatch.setattr(
        subprocess, "run", lambda args, **kw: subprocess.CompletedProcess(args, 1)
    )
    assert rustc_exists() is False


def test_reset_no_exercise():
    with pytest.raises(SystemExit) as info:
        main(["reset"])
    assert info.value.code == 1


def test_run_single_test_no_filename(state_dir):
    with pytest.raises(SystemExit) as info:
        main(["run"])
    assert info.value.code == 1


def test_get_hint_for_single_test(failure_dir, capsys):
    assert main(["hint", "testFailure"]) == 0
    assert capsys.readouterr().out == "Hello!\n"


@pytest.mark.parametrize("name", ["compNoExercise.rs", "testNotPassed.rs"])
def test_run_unknown_exercise(failure_dir, capsys, name):
    assert main(["run", name]) == 1
    assert f"No exercise found for '{name}'!" in capsys.readouterr().out


def test_run_single_compile_failure(failure_dir):
    assert main(["run", "compFailure"]) == 1


def test_run_single_test_failure(failure_dir):
    assert main(["run", "testFailure"]) == 1


def test_verify_fails_if_some_fails(failure_dir):
    assert main(["verify"]) == 1


def test_verify_all_success(success_dir):
    assert main(["verify"]) == 0


def test_run_single_compile_success(success_dir):
    assert main(["run", "compSuccess"]) == 0


def test_run_single_test_success_with_output(success_dir, capsys):
    assert main(["--nocapture", "run", "testSuccess"]) == 0
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out


def test_run_single_test_success_without_output(success_dir, capsys):
    assert main(["run", "testSuccess"]) == 0
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_run_compile_exercise_does_not_prompt(success_dir, capsys):
    (success_dir / "compSuccess.rs").write_text(PENDING_SOURCE)
    assert main(["run", "compSuccess"]) == 0
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_rustlings_list_no_pending(success_dir, capsys):
    assert main(["list"]) == 0
    assert "Pending" not in capsys.readouterr().out


def test_run_rustlings_list_both_done_and_pending(state_dir, capsys):
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "Done" in out and "Pending" in out


def test_run_rustlings_list_without_pending(state_dir, capsys):
    assert main(["list", "--solved"]) == 0
    assert "Pending" not in capsys.readouterr().out


def test_run_rustlings_list_without_done(state_dir, capsys):
    assert main(["list", "--unsolved"]) == 0
    assert "Done" not in capsys.readouterr().out


def test_find_exercise_by_name(tmp_path):
    exercises = _exercises(tmp_path)
    assert find_exercise("variables1", exercises) is exercises[1]


def test_find_exercise_next_returns_first_pending(tmp_path):
    exercises = _exercises(tmp_path)
    assert find_exercise("next", exercises) is exercises[0]


def test_find_exercise_next_when_all_done(tmp_path):
    exercises = _exercises(tmp_path)[1:]
    with pytest.raises(ExerciseNotFound, match="Congratulations"):
        find_exercise("next", exercises)


def test_find_exercise_missing(tmp_path):
    with pytest.raises(ExerciseNotFound, match="No exercise found for 'nope'!"):
        find_exercise("nope", _exercises(tmp_path))


def test_list_exercises_table(tmp_path):
    exercises = _exercises(tmp_path)
    lines = list_exercises(exercises)
    assert lines[0] == f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}"
    assert lines[1].split("\t")[2].strip() == "Pending"
    assert lines[2].split("\t")[2].strip() == "Done"
    assert lines[-1] == "Progress: You completed 1 / 2 exercises (50.0 %)."


def test_list_exercises_names_with_filter(tmp_path):
    lines = list_exercises(_exercises(tmp_path), names=True, filter_text="INTRO")
    assert lines == ["intro1", "Progress: You completed 1 / 2 exercises (50.0 %)."]


def test_list_exercises_paths(tmp_path):
    exercises = _exercises(tmp_path)
    lines = list_exercises(exercises, paths=True, solved=True)
    assert lines[:-1] == [str(exercises[1].path)]


def test_list_exercises_blank_filter_matches_nothing(tmp_path):
    lines = list_exercises(_exercises(tmp_path), names=True, filter_text=" , ")
    assert lines == ["Progress: You completed 1 / 2 exercises (50.0 %)."]


def test_list_exercises_empty():
    assert list_exercises([], names=True) == [
        "Progress: You completed 0 / 0 exercises (NaN %)."
    ]