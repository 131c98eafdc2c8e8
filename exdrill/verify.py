"""Checking exercises one after another until one is not yet solved."""

from __future__ import annotations

import enum
import sys
from collections.abc import Iterable
from typing import TextIO

from .exercise import (
    CompiledExercise,
    CompileError,
    Exercise,
    ExerciseFailed,
    Mode,
    RunError,
)
from .ui import no_emoji, style, success, warn

_CLEAR_LINE = "\r\x1b[2K"
_BAR_WIDTH = 60


class VerificationFailed(Exception):
    """Raised by :func:`verify` for the first exercise that is not finished."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"exercise {exercise} is not finished")
        self.exercise = exercise


class RunMode(enum.Enum):
    """Whether a passing test should prompt about the pending marker."""

    INTERACTIVE = "interactive"
    NON_INTERACTIVE = "non-interactive"


class _Spinner:
    """A one-line status message on a terminal, cleared when finished."""

    def __init__(self, message: str, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stderr
        self._active = self._stream.isatty()
        self.set_message(message)

    def set_message(self, message: str) -> None:
        if self._active:
            self._stream.write(f"{_CLEAR_LINE}{message}")
            self._stream.flush()

    def finish_and_clear(self) -> None:
        if self._active:
            self._stream.write(_CLEAR_LINE)
            self._stream.flush()
            self._active = False


class _ProgressBar:
    """A progress bar drawn in place on a terminal."""

    def __init__(self, total: int, stream: TextIO | None = None) -> None:
        self.total = total
        self.position = 0
        self._message = ""
        self._stream = stream if stream is not None else sys.stderr
        self._active = self._stream.isatty()

    def set_message(self, message: str) -> None:
        self._message = message
        self._draw()

    def inc(self, delta: int = 1) -> None:
        self.position += delta
        self._draw()

    def _draw(self) -> None:
        if not self._active:
            return
        filled = (
            min(_BAR_WIDTH, _BAR_WIDTH * self.position // self.total)
            if self.total
            else 0
        )
        if filled >= _BAR_WIDTH:
            bar = "#" * _BAR_WIDTH
        elif filled:
            bar = "#" * (filled - 1) + ">" + "-" * (_BAR_WIDTH - filled)
        else:
            bar = "-" * _BAR_WIDTH
        bar = style(bar[:filled], "green") + style(bar[filled:], "red")
        self._stream.write(
            f"{_CLEAR_LINE}Progress: [{bar}] {self.position}/{self.total} {self._message}"
        )
        self._stream.flush()


def separator() -> str:
    """The bold rule printed around output and hints."""
    return style("====================", bold=True)


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check each exercise in turn; raise VerificationFailed at the first unfinished one."""
    num_done, total = progress
    bar = _ProgressBar(total)
    step = 100.0 / total if total else 0.0
    percentage = num_done * step
    bar.position = num_done
    bar.set_message(f"({percentage:.1f} %)")

    for exercise in exercises:
        try:
            finished = _check(exercise, verbose, success_hints)
        except ExerciseFailed as exc:
            raise VerificationFailed(exercise) from exc
        if not finished:
            raise VerificationFailed(exercise)
        percentage += step
        bar.inc(1)
        bar.set_message(f"({percentage:.1f} %)")


def _check(exercise: Exercise, verbose: bool, success_hints: bool) -> bool:
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            return _compile_and_test(
                exercise, RunMode.INTERACTIVE, verbose, success_hints
            )
        case Mode.COMPILE:
            return _compile_and_run_interactively(exercise, success_hints)
        case Mode.CLIPPY:
            return _compile_only(exercise, success_hints)
    raise ValueError(f"unknown mode: {exercise.mode!r}")


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Compile the exercise as a test harness and run it, raising on failure."""
    _compile_and_test(exercise, RunMode.NON_INTERACTIVE, verbose, False)


def _compile(exercise: Exercise, spinner: _Spinner) -> CompiledExercise:
    try:
        return exercise.compile()
    except CompileError as exc:
        spinner.finish_and_clear()
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stderr)
        raise


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    spinner = _Spinner(f"Compiling {exercise}...")
    with _compile(exercise, spinner):
        pass
    spinner.finish_and_clear()
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    spinner = _Spinner(f"Compiling {exercise}...")
    with _compile(exercise, spinner) as compiled:
        spinner.set_message(f"Running {exercise}...")
        try:
            try:
                output = compiled.run()
            finally:
                spinner.finish_and_clear()
        except RunError as exc:
            warn(f"Ran {exercise} with errors")
            print(exc.output.stdout)
            print(exc.output.stderr)
            raise
    return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, run_mode: RunMode, verbose: bool, success_hints: bool
) -> bool:
    spinner = _Spinner(f"Testing {exercise}...")
    with _compile(exercise, spinner) as compiled:
        try:
            try:
                output = compiled.run()
            finally:
                spinner.finish_and_clear()
        except RunError as exc:
            warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
            print(exc.output.stdout)
            raise
    if verbose:
        print(output.stdout)
    if run_mode is RunMode.INTERACTIVE:
        return prompt_for_completion(exercise, None, success_hints)
    return True


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None = None, success_hints: bool = False
) -> bool:
    """Return True if the exercise is done; otherwise show where the marker is."""
    state = exercise.state()
    if state.done():
        return True

    match exercise.mode:
        case Mode.COMPILE:
            success(f"Successfully ran {exercise}!")
        case Mode.TEST:
            success(f"Successfully tested {exercise}!")
        case Mode.CLIPPY | Mode.BUILD_SCRIPT:
            success(f"Successfully compiled {exercise}!")

    emoji_free = no_emoji()
    clippy_message = (
        "The code is compiling, and Clippy is happy!"
        if emoji_free
        else "The code is compiling, and 📎 Clippy 📎 is happy!"
    )
    success_message = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_message,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    print()
    if emoji_free:
        print(f"~*~ {success_message} ~*~")
    else:
        print(f"🎉 🎉  {success_message} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        print(separator())
        print(prompt_output)
        print(separator())
        print()
    if success_hints:
        print("Hints:")
        print(separator())
        print(exercise.hint)
        print(separator())
        print()

    print("You can keep working on this exercise,")
    print(
        "or jump into the next one by removing the "
        f"{style('`I AM NOT DONE`', bold=True)} comment:"
    )
    print()
    for context_line in state.pending:
        line = (
            style(context_line.line, bold=True)
            if context_line.important
            else context_line.line
        )
        number = style(f"{context_line.number:>2}", "blue", bold=True)
        print(f"{number} {style('|', 'blue')}  {line}")
    return False