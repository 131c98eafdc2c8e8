"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess

from .exercise import CompileError, Exercise, Mode, RunError
from .ui import success, warn
from .verify import _Spinner, test


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run one exercise, raising ExerciseFailed when it fails.

    Unlike verification, a pending marker left in the source is not reported.
    """
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            test(exercise, verbose)
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)
        case _:
            raise ValueError(f"unknown mode: {exercise.mode!r}")


def reset(exercise: Exercise) -> subprocess.Popen:
    """Start stashing the changes made to the exercise file with git."""
    return subprocess.Popen(["git", "stash", "--", str(exercise.path)])


def _compile_and_run(exercise: Exercise) -> None:
    spinner = _Spinner(f"Compiling {exercise}...")
    try:
        compiled = exercise.compile()
    except CompileError as exc:
        spinner.finish_and_clear()
        warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(exc.output.stderr)
        raise

    with compiled:
        spinner.set_message(f"Running {exercise}...")
        try:
            try:
                output = compiled.run()
            finally:
                spinner.finish_and_clear()
        except RunError as exc:
            print(exc.output.stdout)
            print(exc.output.stderr)
            warn(f"Ran {exercise} with errors")
            raise

    print(output.stdout)
    success(f"Successfully ran {exercise}")