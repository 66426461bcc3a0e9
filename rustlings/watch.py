"""Watch mode: re-verify exercises whenever a source file changes."""

from __future__ import annotations

import enum
import itertools
import os
import queue
import subprocess
import sys
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from rustlings.exercise import Exercise
from rustlings.verify import VerificationFailed, verify

WATCH_DIR = Path("./exercises")
_POLL_SECONDS = 1.0
# Full terminal reset; works on UNIX and newer Windows terminals.
_RESET_TERMINAL = "\x1bc"

WELCOME_SHELL = (
    "Welcome to watch mode! You can type 'help' to get an overview of the "
    "commands you can use here."
)

HELP_TEXT = "\n".join(
    [
        "Commands available to you in watch mode:",
        "  hint   - prints the current exercise's hint",
        "  clear  - clears the screen",
        "  quit   - quits watch mode",
        "  !<cmd> - executes a command, like `!rustc --explain E0381`",
        "  help   - displays this help message",
        "",
        "Watch mode automatically re-evaluates the current exercise",
        "when you edit a file's contents.",
    ]
)


class WatchStatus(enum.Enum):
    """How watch mode ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


def handle_command(line: str, hint: str | None = None) -> bool:
    """Act on one line typed in watch mode; return True when the user quits."""
    command = line.strip()
    if command == "hint":
        if hint is not None:
            print(hint)
    elif command == "clear":
        print("\x1b[2J\x1b[1;1H")
    elif command == "quit":
        print("Bye!")
        return True
    elif command == "help":
        print(HELP_TEXT)
    elif command.startswith("!"):
        cmd = command[1:]
        parts = cmd.split()
        if not parts:
            print("no command provided")
        else:
            try:
                subprocess.run(parts, check=False)
            except OSError as exc:
                print(f"failed to execute command `{cmd}`: {exc}")
    else:
        print(f"unknown command: {command}")
    return False


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, changes: queue.Queue[Path]) -> None:
        super().__init__()
        self._changes = changes

    def on_created(self, event: FileSystemEvent) -> None:
        self._put(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._put(event)

    def _put(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._changes.put(Path(os.fsdecode(event.src_path)))


@dataclass
class _Shell:
    hint: str | None
    quit: threading.Event = field(default_factory=threading.Event)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def set_hint(self, hint: str) -> None:
        with self.lock:
            self.hint = hint

    def serve(self) -> None:
        try:
            for line in sys.stdin:
                with self.lock:
                    hint = self.hint
                if handle_command(line, hint):
                    self.quit.set()
                    break
        except (OSError, ValueError) as exc:
            print(f"error reading command: {exc}")


def _clear_screen(stream: TextIO | None = None) -> None:
    """Reset the terminal so the next verification starts on a clean screen."""
    out = stream if stream is not None else sys.stdout
    out.write(_RESET_TERMINAL + "\n")
    out.flush()


def _ends_with(path: Path, suffix: str | os.PathLike) -> bool:
    parts = Path(suffix).parts
    if not parts:
        return True
    return len(parts) <= len(path.parts) and path.parts[-len(parts):] == parts


def _pending_after_edit(filepath: Path, exercises: list[Exercise]) -> Iterator[Exercise]:
    edited = next((e for e in exercises if _ends_with(filepath, e.path)), None)
    rest = (
        e for e in exercises if not e.looks_done() and not _ends_with(filepath, e.path)
    )
    return itertools.chain([edited] if edited is not None else [], rest)


def _reverify(
    changed: Path,
    exercises: list[Exercise],
    verbose: bool,
    success_hints: bool,
    shell: _Shell,
) -> bool:
    if changed.suffix != ".rs" or not changed.exists():
        return False
    filepath = changed.resolve()
    pending = _pending_after_edit(filepath, exercises)
    num_done = sum(1 for e in exercises if e.looks_done())
    _clear_screen()
    try:
        verify(pending, (num_done, len(exercises)), verbose, success_hints)
    except VerificationFailed as exc:
        shell.set_hint(exc.exercise.hint)
        return False
    return True


def watch(
    exercises: Iterable[Exercise],
    verbose: bool = False,
    success_hints: bool = False,
) -> WatchStatus:
    """Verify all exercises, then keep re-verifying as files in ./exercises change."""
    exercises = list(exercises)
    if not WATCH_DIR.is_dir():
        raise FileNotFoundError(f"cannot watch {WATCH_DIR}: no such directory")

    changes: queue.Queue[Path] = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(changes), str(WATCH_DIR), recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
        except VerificationFailed as exc:
            shell = _Shell(exc.exercise.hint)
        else:
            return WatchStatus.FINISHED

        print(WELCOME_SHELL)
        threading.Thread(target=shell.serve, daemon=True).start()
        while True:
            try:
                changed = changes.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                pass
            else:
                if _reverify(changed, exercises, verbose, success_hints, shell):
                    return WatchStatus.FINISHED
            if shell.quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()