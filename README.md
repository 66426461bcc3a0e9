# rustlings

Small exercises to get you used to reading and writing Rust code.

Each exercise is a Rust source file that does not compile, or whose tests
fail. Fix it, remove the `// I AM NOT DONE` marker, and move on to the next
one. An exercise counts as done once no line in its file starts (after
optional whitespace) with a `//` or `///` comment reading `I AM NOT DONE`.

The exercises are listed, in their recommended order, in an `info.toml` file
in the directory you run the commands from:

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment."
```

`mode` is one of:

- `compile` – compiled with `rustc` and the resulting binary is run
- `test` – compiled with `rustc --test` and the test harness is run
- `clippy` – checked with `cargo clippy` (warnings are errors); a
  `Cargo.toml` is written to `exercises/clippy/`
- `buildscript` – run with `cargo test`; a `Cargo.toml` is written to
  `exercises/tests/`

## What this package does not include

It ships the tool only, not a set of exercises. You need your own
`info.toml` and the Rust files it points to.

## Requirements

- Python 3.11 or newer
- A Rust toolchain with `rustc` (and `cargo` for `clippy` and `buildscript`
  exercises) on your `PATH`
- `git`, for `rustlings reset`

## Installation

```
pip install .
```

## Usage

Run every command from the directory that holds `info.toml`; elsewhere the
command exits with status 1. It also exits with status 1 when `rustc` cannot
be run.

```
rustlings                  # welcome text and a short guide
rustlings watch            # verify exercises in order, re-checking on every edit
rustlings verify           # verify every exercise once, in order
rustlings run <name>       # compile and run (or test) one exercise
rustlings run next         # run the first exercise not yet done
rustlings hint <name>      # print the hint for an exercise
rustlings reset <name>     # run "git stash -- <path>" for an exercise
rustlings list             # show every exercise and whether it is done
rustlings lsp              # write rust-project.json for rust-analyzer
rustlings cicvverify       # grade all exercises and write a JSON report
rustlings --version
```

`--nocapture` before the subcommand shows the output of test exercises.
`verify`, `run` and `hint` exit with status 1 when an exercise fails or no
exercise has the given name.

### verify

Goes through the exercises in order and stops at the first one that fails to
compile, fails to run, or still carries the `I AM NOT DONE` marker. For a
pending exercise it prints the lines around the marker.

### watch

Runs `verify`, then re-evaluates whenever a `.rs` file under `exercises/` is
created or modified: the edited exercise first, then every other one not yet
done. While it runs you can type:

- `hint` – print the hint of the exercise that last failed
- `clear` – clear the screen
- `quit` – leave watch mode
- `!<cmd>` – run a command, such as `!rustc --explain E0381`
- `help` – list these commands

`rustlings watch --success-hints` also shows an exercise's hint once it passes.

### list

```
rustlings list --paths            # only paths
rustlings list --names            # only names
rustlings list --filter vec,str   # names or paths containing any pattern
rustlings list --solved           # only finished exercises
rustlings list --unsolved         # only pending exercises
```

The listing ends with a progress line counting the finished exercises.

### lsp

Writes `rust-project.json` in the current directory, with one crate for every
`.rs` file under `exercises/`, so that rust-analyzer can work on the
exercises. The standard library source path is taken from `RUST_SRC_PATH`, or
else from `rustc --print sysroot`.

### cicvverify

Runs every exercise concurrently and writes the results – each exercise's
name and whether it passed, with counts of successes and failures and the
total time in seconds – as JSON to `.github/result/check_result.json`. That
directory must already exist.

## Environment

Set `NO_EMOJI` to replace emoji in the output with plain characters.
`RUST_SRC_PATH`, when set, is used by `rustlings lsp` as the standard library
source path instead of asking `rustc`.

## Running the tests

```
pip install .[test]
pytest
```