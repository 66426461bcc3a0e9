"""Exercises: loading, compiling, running and checking completion state."""

from __future__ import annotations

import enum
import os
import re
import subprocess
import threading
import tomllib
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = Path("./exercises/clippy/Cargo.toml")
BUILD_SCRIPT_CARGO_TOML_PATH = Path("./exercises/tests/Cargo.toml")


def temp_file_path() -> str:
    """Return a temporary binary path unique to this process and thread."""
    thread_id = "".join(c for c in f"ThreadId{threading.get_ident()}" if c.isalnum())
    return f"./temp_{os.getpid()}_{thread_id}"


def _clean() -> None:
    with suppress(OSError):
        Path(temp_file_path()).unlink()


class Mode(enum.Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a command."""

    stdout: str
    stderr: str


class ExerciseFailed(Exception):
    """Compiling or running an exercise failed."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr or output.stdout)
        self.output = output


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Completion state; an empty context means the exercise is done."""

    context: tuple[ContextLine, ...] = ()

    @property
    def done(self) -> bool:
        return not self.context


def _output(result: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(
        stdout=(result.stdout or b"").decode("utf-8", errors="replace"),
        stderr=(result.stderr or b"").decode("utf-8", errors="replace"),
    )


def _source_lines(source: str) -> list[str]:
    lines = source.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


def _cargo_toml(name: str) -> str:
    return (
        "[package]\n"
        f'name = "{name}"\n'
        'version = "0.0.1"\n'
        'edition = "2021"\n'
        "[[bin]]\n"
        f'name = "{name}"\n'
        f'path = "{name}.rs"'
    )


def _write_cargo_toml(path: Path, name: str) -> None:
    message = (
        "Failed to write Clippy Cargo.toml file."
        if "NO_EMOJI" in os.environ
        else "Failed to write 📎 Clippy 📎 Cargo.toml file."
    )
    try:
        path.write_text(_cargo_toml(name))
    except OSError as exc:
        raise RuntimeError(message) from exc


def _capture(args: list[str], failure: str) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(args, capture_output=True)
    except OSError as exc:
        raise RuntimeError(failure) from exc


class CompiledExercise:
    """A successfully compiled exercise; removes its binary when closed."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise
        self._closed = False

    def run(self) -> ExerciseOutput:
        """Run the compiled binary; raise ExerciseFailed on a non-zero exit."""
        return self.exercise._run()

    def close(self) -> None:
        """Remove the compiled binary."""
        if not self._closed:
            self._closed = True
            _clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass
class Exercise:
    """One exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    def __str__(self) -> str:
        return str(self.path)

    def _rustc(self, *extra: str) -> list[str]:
        return [
            "rustc",
            *extra,
            str(self.path),
            "-o",
            temp_file_path(),
            *RUSTC_COLOR_ARGS,
            *RUSTC_EDITION_ARGS,
        ]

    def _invoke_compiler(self) -> subprocess.CompletedProcess:
        failure = "Failed to run 'compile' command."
        match self.mode:
            case Mode.COMPILE:
                return _capture(self._rustc(), failure)
            case Mode.TEST:
                return _capture(self._rustc("--test"), failure)
            case Mode.CLIPPY:
                _write_cargo_toml(CLIPPY_CARGO_TOML_PATH, self.name)
                # Also build a binary so clippy exercises can be run afterwards.
                _capture(self._rustc(), "Failed to compile!")
                manifest = str(CLIPPY_CARGO_TOML_PATH)
                _capture(
                    ["cargo", "clean", "--manifest-path", manifest, *RUSTC_COLOR_ARGS],
                    "Failed to run 'cargo clean'",
                )
                return _capture(
                    [
                        "cargo", "clippy", "--manifest-path", manifest,
                        *RUSTC_COLOR_ARGS,
                        "--", "-D", "warnings", "-D", "clippy::float_cmp",
                    ],
                    failure,
                )
            case Mode.BUILD_SCRIPT:
                _write_cargo_toml(BUILD_SCRIPT_CARGO_TOML_PATH, self.name)
                return _capture(
                    ["cargo", "test", "--manifest-path", str(BUILD_SCRIPT_CARGO_TOML_PATH)],
                    failure,
                )
        raise ValueError(f"unknown mode {self.mode!r}")

    def compile(self) -> CompiledExercise:
        """Compile the exercise; raise ExerciseFailed with the compiler output."""
        result = self._invoke_compiler()
        if result.returncode == 0:
            return CompiledExercise(self)
        _clean()
        raise ExerciseFailed(_output(result))

    def _run(self) -> ExerciseOutput:
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput(stdout="", stderr="")
        arg = "--show-output" if self.mode is Mode.TEST else ""
        result = _capture([temp_file_path(), arg], "Failed to run 'run' command")
        output = _output(result)
        if result.returncode != 0:
            raise ExerciseFailed(output)
        return output

    def state(self) -> State:
        """Report whether the pending marker is still present, with context."""
        try:
            source = Path(self.path).read_text()
        except OSError as exc:
            raise RuntimeError("We were unable to read the exercise file!") from exc

        if not I_AM_DONE_REGEX.search(source):
            return State()

        lines = _source_lines(source)
        matched = next(
            (i for i, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)), None
        )
        if matched is None:
            raise RuntimeError("the pending marker spans several lines")

        first = max(matched - CONTEXT, 0)
        last = matched + CONTEXT
        return State(
            tuple(
                ContextLine(line=line, number=i + 1, important=i == matched)
                for i, line in enumerate(lines[first : last + 1], start=first)
            )
        )

    def looks_done(self) -> bool:
        """True when the pending marker has been removed."""
        return self.state().done


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Read the list of exercises from an info.toml file."""
    data = tomllib.loads(Path(path).read_text())
    try:
        return [
            Exercise(
                name=entry["name"],
                path=Path(entry["path"]),
                mode=Mode(entry["mode"]),
                hint=entry["hint"],
            )
            for entry in data["exercises"]
        ]
    except KeyError as exc:
        raise ValueError(f"missing field {exc.args[0]!r} in {path}") from exc