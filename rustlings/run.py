"""Run a single exercise, or reset it with git."""

from __future__ import annotations

import subprocess
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console

from rustlings.exercise import Exercise, ExerciseFailed, Mode
from rustlings.ui import success, warn
from rustlings.verify import VerificationFailed, test

_console = Console(highlight=False, soft_wrap=True, emoji=False)


@contextmanager
def _spinner(message: str) -> Iterator[None]:
    if _console.is_terminal:
        with _console.status(message):
            yield
    else:
        yield


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run one exercise; raise VerificationFailed on failure."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            test(exercise, verbose)
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)
        case _:
            raise ValueError(f"unknown mode {exercise.mode!r}")


def reset(exercise: Exercise) -> subprocess.Popen:
    """Stash local changes to the exercise file; OSError if git cannot start."""
    return subprocess.Popen(["git", "stash", "--", str(exercise.path)])


def _compile_and_run(exercise: Exercise) -> None:
    try:
        with _spinner(f"Compiling {exercise}..."):
            compiled = exercise.compile()
    except ExerciseFailed as exc:
        warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(exc.output.stderr)
        raise VerificationFailed(exercise) from exc

    try:
        with compiled, _spinner(f"Running {exercise}..."):
            output = compiled.run()
    except ExerciseFailed as exc:
        print(exc.output.stdout)
        print(exc.output.stderr)
        warn(f"Ran {exercise} with errors")
        raise VerificationFailed(exercise) from exc

    print(output.stdout)
    success(f"Successfully ran {exercise}")