# exdrill

exdrill works through a collection of small Rust exercises. It compiles
each one, runs or tests it, and tells you what to fix next. It reads the
list of exercises from an `info.toml` file in the current directory.
`rustc` must be on your `PATH`. The clippy and build-script exercises
also need `cargo`.

## Installing

```
pip install .
```

For the test suite, install with `pip install .[test]` and then run
`pytest`.

## The exercise list

`info.toml` holds one `[[exercises]]` table for each exercise:

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment."
```

`mode` is one of these values:

- `compile`: build the file with `rustc` and run the binary.
- `test`: build it as a test harness with `rustc --test` and run the tests.
- `clippy`: write `exercises/clippy/Cargo.toml` and run `cargo clippy`.
  Warnings count as errors.
- `buildscript`: write `exercises/tests/Cargo.toml` and run `cargo test`.

## Commands

Run every command from the directory that holds `info.toml`:

```
exdrill watch              # verify, then re-verify whenever an exercise file changes
exdrill verify             # verify all exercises in the listed order
exdrill run <name>         # compile and run (or test) a single exercise
exdrill run next           # run the first exercise not yet marked done
exdrill hint <name>        # print the hint for an exercise
exdrill reset <name>       # stash local changes to an exercise with git
exdrill list               # show every exercise with its status
exdrill lsp                # write rust-project.json for rust-analyzer
exdrill cicvverify         # grade every exercise and write a JSON report
exdrill --version
```

Run with no command, exdrill prints a welcome text and a short
introduction. The global `--nocapture` switch prints the output of test
exercises.

The exit status is 1 in these cases:

- there is no `info.toml` in the current directory;
- `rustc` cannot be run;
- no exercise has the name you gave;
- `run` fails;
- `verify` stops at an exercise that is not finished;
- a required argument is missing.

`exdrill list` takes these options:

- `-p`, `--paths`: print only the paths.
- `-n`, `--names`: print only the names.
- `-f`, `--filter PATTERNS`: keep only the exercises whose name or path
  contains one of the comma-separated patterns. The patterns are lowercased
  before matching.
- `-u`, `--unsolved`: keep only pending exercises.
- `-s`, `--solved`: keep only finished exercises.

`list` always ends with a progress line.

`exdrill watch --success-hints` also prints the hint after an exercise
passes.

## Marking an exercise done

An exercise counts as pending while its source still has a line such as
`// I AM NOT DONE`. `verify` and `watch` move past an exercise that
compiles and passes but still carries this comment. They show the lines
around the comment and stop there. Delete the comment to go on to the next
exercise. `run` does not check for the comment.

While `watch` is running you can type these commands:

- `hint`: print the hint of the exercise that failed last.
- `clear`: clear the screen.
- `quit`: leave watch mode.
- `!<cmd>`: run a command, for example `!rustc --explain E0381`.
- `help`: list these commands.

## Grading

`exdrill cicvverify` runs every exercise at the same time, one per worker
thread. As each one finishes, it prints a progress line. It then writes a
JSON report to `.github/result/check_result.json`. The report has these
parts:

- `exercises`: a list of `{"name", "result"}` entries;
- `user_name`: always `null`;
- `statistics`: holds `total_exercations`, `total_succeeds`,
  `total_failures` and `total_time` (in seconds).

The `.github/result` directory must already exist.

## Using it from Python

- `exdrill.exercise.load_exercises(path)` reads an `info.toml` file and
  returns a list of `Exercise` objects.
- `Exercise.state()` returns a `State`. `state.done()` is true once the
  marker comment is gone. Otherwise `state.pending` holds the
  `ContextLine`s around the comment.
- `Exercise.looks_done()` is a shortcut for `state().done()`.
- `Exercise.compile()` returns a `CompiledExercise` or raises
  `CompileError`. A `CompiledExercise` is a context manager that removes
  the temporary binary when it is closed.
- `CompiledExercise.run()` returns an `ExerciseOutput` with `stdout` and
  `stderr`, or raises `RunError`.
- `exdrill.verify.verify(exercises, (done, total))` raises
  `VerificationFailed` for the first exercise that is not finished.
- `exdrill.run.run(exercise)` raises an `ExerciseFailed` subclass when the
  exercise fails.
- `exdrill.cli.main(argv)` runs the command line and returns the exit
  status.

## Environment

If `NO_EMOJI` is set, the output uses plain characters instead of emoji.
If `RUST_SRC_PATH` is set, `exdrill lsp` uses it as the standard-library
source path and does not ask `rustc`.