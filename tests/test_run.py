from pathlib import Path
from unittest import mock

import pytest

from exdrill.exercise import (
    CompileError,
    ContextLine,
    ExerciseOutput,
    Mode,
    RunError,
    State,
)
from exdrill.run import reset, run

PENDING = State(
    pending=(ContextLine(line="// I AM NOT DONE", number=1, important=True),)
)


class FakeCompiled:
    def __init__(self, owner):
        self.owner = owner
        self.closed = False

    def run(self):
        self.owner.runs += 1
        if self.owner.run_error is not None:
            raise RunError(self.owner.run_error)
        return self.owner.run_output

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.closed = True


class FakeExercise:
    def __init__(
        self,
        name="example",
        mode=Mode.COMPILE,
        state=State(),
        compile_error=None,
        run_output=ExerciseOutput(stdout="", stderr=""),
        run_error=None,
    ):
        self.name = name
        self.path = Path(f"exercises/{name}.rs")
        self.mode = mode
        self.hint = "Hello!"
        self._state = state
        self.compile_error = compile_error
        self.run_output = run_output
        self.run_error = run_error
        self.runs = 0
        self.compiled = []

    def compile(self):
        if self.compile_error is not None:
            raise CompileError(self.compile_error)
        compiled = FakeCompiled(self)
        self.compiled.append(compiled)
        return compiled

    def state(self):
        return self._state

    def looks_done(self):
        return self._state.done()

    def __str__(self):
        return str(self.path)


@pytest.fixture(autouse=True)
def _emoji(monkeypatch):
    monkeypatch.delenv("NO_EMOJI", raising=False)


def test_run_compile_success(capsys):
    exercise = FakeExercise(
        "compSuccess", run_output=ExerciseOutput(stdout="hi there", stderr="")
    )
    run(exercise)
    out = capsys.readouterr().out
    assert "hi there" in out
    assert "Successfully ran exercises/compSuccess.rs" in out
    assert exercise.compiled[0].closed


def test_run_compile_failure(capsys):
    exercise = FakeExercise(
        "compFailure", compile_error=ExerciseOutput(stdout="", stderr="expected pattern")
    )
    with pytest.raises(CompileError):
        run(exercise)
    out = capsys.readouterr().out
    assert "Compilation of exercises/compFailure.rs failed!" in out
    assert "expected pattern" in out
    assert exercise.runs == 0


def test_run_with_errors(capsys):
    exercise = FakeExercise(
        "r", Mode.CLIPPY, run_error=ExerciseOutput(stdout="out", stderr="panic")
    )
    with pytest.raises(RunError) as info:
        run(exercise)
    assert info.value.output.stderr == "panic"
    out = capsys.readouterr().out
    assert "Ran exercises/r.rs with errors" in out
    assert exercise.compiled[0].closed


def test_run_compile_exercise_does_not_prompt(capsys):
    run(FakeExercise("pending_exercise", state=PENDING))
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_test_exercise_does_not_prompt(capsys):
    run(FakeExercise("pending_test_exercise", Mode.TEST, state=PENDING))
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_single_test_success_with_output(capsys):
    exercise = FakeExercise(
        "testSuccess",
        Mode.TEST,
        run_output=ExerciseOutput(stdout="THIS TEST TOO SHALL PASS", stderr=""),
    )
    run(exercise, verbose=True)
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out


def test_run_single_test_success_without_output(capsys):
    exercise = FakeExercise(
        "testSuccess",
        Mode.TEST,
        run_output=ExerciseOutput(stdout="THIS TEST TOO SHALL PASS", stderr=""),
    )
    run(exercise, verbose=False)
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_run_single_test_not_passed():
    exercise = FakeExercise(
        "testNotPassed",
        Mode.TEST,
        run_error=ExerciseOutput(stdout="assertion failed", stderr=""),
    )
    with pytest.raises(RunError):
        run(exercise)


def test_build_script_runs_through_test():
    exercise = FakeExercise("b", Mode.BUILD_SCRIPT)
    run(exercise)
    assert exercise.runs == 1
    assert exercise.compiled[0].closed


def test_reset_stashes_file():
    exercise = FakeExercise("intro1")
    with mock.patch("exdrill.run.subprocess.Popen") as popen:
        result = reset(exercise)
    popen.assert_called_once_with(
        ["git", "stash", "--", str(Path("exercises/intro1.rs"))]
    )
    assert result is popen.return_value


def test_reset_reports_missing_git():
    exercise = FakeExercise("intro1")
    with mock.patch(
        "exdrill.run.subprocess.Popen", side_effect=FileNotFoundError("git")
    ):
        with pytest.raises(FileNotFoundError):
            reset(exercise)