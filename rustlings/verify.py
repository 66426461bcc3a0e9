"""Verify exercises in order, stopping at the first one that is not finished."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.text import Text

from rustlings.exercise import CompiledExercise, Exercise, ExerciseFailed, Mode
from rustlings.ui import success, warn

_console = Console(highlight=False, soft_wrap=True, emoji=False)
_SEPARATOR = "===================="


class VerificationFailed(Exception):
    """An exercise failed to compile, failed to run, or is still pending."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} is not finished")
        self.exercise = exercise


@contextmanager
def _spinner(message: str) -> Iterator[None]:
    if _console.is_terminal:
        with _console.status(message):
            yield
    else:
        yield


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check each exercise in turn; raise VerificationFailed at the first failure."""
    num_done, total = progress
    percentage = num_done / total * 100.0 if total else 0.0
    columns = (
        TextColumn("Progress:"),
        BarColumn(
            bar_width=60,
            style="red",
            complete_style="green",
            finished_style="green",
        ),
        MofNCompleteColumn(),
        TextColumn("{task.description}"),
    )
    with Progress(*columns, console=_console) as bar:
        task = bar.add_task(f"({percentage:.1f} %)", total=total, completed=num_done)
        for exercise in exercises:
            if not _check(exercise, verbose, success_hints):
                raise VerificationFailed(exercise)
            if total:
                percentage += 100.0 / total
            bar.update(task, advance=1, description=f"({percentage:.1f} %)")


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run an exercise's test harness without prompting."""
    _compile_and_test(exercise, interactive=False, verbose=verbose, success_hints=False)


def _check(exercise: Exercise, verbose: bool, success_hints: bool) -> bool:
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            return _compile_and_test(exercise, True, verbose, success_hints)
        case Mode.COMPILE:
            return _compile_and_run_interactively(exercise, success_hints)
        case Mode.CLIPPY:
            return _compile_only(exercise, success_hints)
    raise ValueError(f"unknown mode {exercise.mode!r}")


def _compile(exercise: Exercise, message: str) -> CompiledExercise:
    try:
        with _spinner(message):
            return exercise.compile()
    except ExerciseFailed as exc:
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stderr)
        raise VerificationFailed(exercise) from exc


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    _compile(exercise, f"Compiling {exercise}...").close()
    return _prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    compiled = _compile(exercise, f"Compiling {exercise}...")
    try:
        with compiled, _spinner(f"Running {exercise}..."):
            output = compiled.run()
    except ExerciseFailed as exc:
        warn(f"Ran {exercise} with errors")
        print(exc.output.stdout)
        print(exc.output.stderr)
        raise VerificationFailed(exercise) from exc
    return _prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, interactive: bool, verbose: bool, success_hints: bool
) -> bool:
    compiled = _compile(exercise, f"Testing {exercise}...")
    try:
        with compiled, _spinner(f"Testing {exercise}..."):
            output = compiled.run()
    except ExerciseFailed as exc:
        warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stdout)
        raise VerificationFailed(exercise) from exc
    if verbose:
        print(output.stdout)
    if interactive:
        return _prompt_for_completion(exercise, None, success_hints)
    return True


def _print_separator() -> None:
    _console.print(Text(_SEPARATOR, style="bold"))


def _prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    state = exercise.state()
    if state.done:
        return True

    verb = {
        Mode.COMPILE: "ran",
        Mode.TEST: "tested",
        Mode.CLIPPY: "compiled",
        Mode.BUILD_SCRIPT: "compiled",
    }[exercise.mode]
    success(f"Successfully {verb} {exercise}!")

    no_emoji = "NO_EMOJI" in os.environ
    clippy_msg = (
        "The code is compiling, and Clippy is happy!"
        if no_emoji
        else "The code is compiling, and 📎 Clippy 📎 is happy!"
    )
    success_msg = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_msg,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    print()
    print(f"~*~ {success_msg} ~*~" if no_emoji else f"🎉 🎉  {success_msg} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        _print_separator()
        print(prompt_output)
        _print_separator()
        print()
    if success_hints:
        print("Hints:")
        _print_separator()
        print(exercise.hint)
        _print_separator()
        print()

    print("You can keep working on this exercise,")
    _console.print(
        Text.assemble(
            "or jump into the next one by removing the ",
            ("`I AM NOT DONE`", "bold"),
            " comment:",
        )
    )
    print()
    for context_line in state.context:
        _console.print(
            Text.assemble(
                (f"{context_line.number:>2}", "bold blue"),
                " ",
                ("|", "blue"),
                "  ",
                (context_line.line, "bold" if context_line.important else ""),
            )
        )
    return False