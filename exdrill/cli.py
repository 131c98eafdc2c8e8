"""Command line interface: listing, running, verifying and watching exercises."""

from __future__ import annotations

import argparse
import enum
import json
import os
import queue
import subprocess
import sys
import threading
import time
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from .exercise import Exercise, ExerciseFailed, load_exercises
from .project import RustAnalyzerProject
from .run import reset, run
from .verify import VerificationFailed, verify

VERSION = "5.5.1"
INFO_FILE = "info.toml"
CHECK_RESULT_PATH = ".github/result/check_result.json"

WELCOME = """       welcome to...
              _      _ _ _
  _____  ____| |_ __(_) | |
 / _ \\ \\/ / _` | '__| | | |
|  __/>  < (_| | |  | | | |
 \\___/_/\\_\\__,_|_|  |_|_|_|"""

DEFAULT_OUT = """Thanks for installing exdrill!

Is this your first time? Don't worry, exdrill was made for beginners! We are
going to teach you a lot of things about Rust, but before we can get
started, here's a couple of notes about how exdrill operates:

1. The central concept behind exdrill is that you solve exercises. These
   exercises usually have some sort of syntax error in them, which will cause
   them to fail compilation or testing. Sometimes there's a logic error instead
   of a syntax error. No matter what error, it's your job to find it and fix it!
   You'll know when you fixed it because then, the exercise will compile and
   exdrill will be able to move on to the next exercise.
2. If you run exdrill in watch mode (which we recommend), it'll automatically
   start with the first exercise. Don't get confused by an error message popping
   up as soon as you run exdrill! This is part of the exercise that you're
   supposed to solve, so open the exercise file in an editor and start your
   detective work!
3. If you're stuck on an exercise, there is a helpful hint you can view by typing
   'hint' (in watch mode), or running `exdrill hint exercise_name`.
4. If an exercise doesn't make sense to you, feel free to open an issue!
   We look at every issue, and sometimes, other learners do too so you can
   help each other out!
5. If you want to use `rust-analyzer` with exercises, which provides features like
   autocompletion, run the command `exdrill lsp`.

Got all that? Great! To get started, run `exdrill watch` in order to get the first
exercise. Make sure to have your editor open!"""

FINISH_LINE = """+----------------------------------------------------+
|          You made it to the Fe-nish line!          |
+----------------------------------------------------+

We hope you enjoyed learning about the various aspects of Rust!
If you noticed any issues, please don't hesitate to report them.
You can also contribute your own exercises to help the greater community!"""

WATCH_HELP = """Commands available to you in watch mode:
  hint   - prints the current exercise's hint
  clear  - clears the screen
  quit   - quits watch mode
  !<cmd> - executes a command, like `!rustc --explain E0381`
  help   - displays this help message

Watch mode automatically re-evaluates the current exercise
when you edit a file's contents."""


class WatchStatus(enum.Enum):
    """How watch mode ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


@dataclass
class ExerciseResult:
    """Whether one exercise passed during batch grading."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals gathered during batch grading."""

    total_exercations: int = 0
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """The report written by batch grading."""

    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None
    statistics: ExerciseStatistics = field(default_factory=ExerciseStatistics)

    def to_dict(self) -> dict:
        return {
            "exercises": [
                {"name": item.name, "result": item.result} for item in self.exercises
            ],
            "user_name": self.user_name,
            "statistics": {
                "total_exercations": self.statistics.total_exercations,
                "total_succeeds": self.statistics.total_succeeds,
                "total_failures": self.statistics.total_failures,
                "total_time": self.statistics.total_time,
            },
        }


class ExerciseNotFound(LookupError):
    """No exercise matches the requested name."""


class _Parser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message: str) -> None:  # type: ignore[override]
        prefix = "the following arguments are required:"
        if message.startswith(prefix):
            missing = message[len(prefix):].strip()
            message = f"Required positional arguments not provided:\n    {missing}"
        self.print_usage(sys.stderr)
        self.exit(1, f"{message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = _Parser(
        prog="exdrill",
        description="A collection of small exercises to get you used to "
        "writing and reading Rust code",
    )
    parser.add_argument(
        "--nocapture", action="store_true", help="show outputs from the test exercises"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="show the executable version"
    )
    commands = parser.add_subparsers(dest="command")

    commands.add_parser(
        "verify", help="Verifies all exercises according to the recommended order"
    )
    watch_parser = commands.add_parser(
        "watch", help="Reruns `verify` when files were edited"
    )
    watch_parser.add_argument(
        "--success-hints", action="store_true", help="show hints on success"
    )
    for name, text in (
        ("run", "Runs/Tests a single exercise"),
        ("reset", 'Resets a single exercise using "git stash -- <filename>"'),
        ("hint", "Returns a hint for the given exercise"),
    ):
        sub = commands.add_parser(name, help=text)
        sub.add_argument("name", help="the name of the exercise")

    list_parser = commands.add_parser(
        "list", help="Lists the exercises available in exdrill"
    )
    list_parser.add_argument(
        "-p", "--paths", action="store_true", help="show only the paths of the exercises"
    )
    list_parser.add_argument(
        "-n", "--names", action="store_true", help="show only the names of the exercises"
    )
    list_parser.add_argument(
        "-f",
        "--filter",
        help="provide a string to match exercise names; "
        "comma separated patterns are acceptable",
    )
    list_parser.add_argument(
        "-u", "--unsolved", action="store_true", help="display only exercises not yet solved"
    )
    list_parser.add_argument(
        "-s", "--solved", action="store_true", help="display only exercises that have been solved"
    )
    commands.add_parser("lsp", help="Enable rust-analyzer for exercises")
    commands.add_parser("cicvverify", help="cicvverify")
    return parser


def find_exercise(name: str, exercises: Sequence[Exercise]) -> Exercise:
    """Find an exercise by name; ``next`` selects the first unfinished one."""
    if name == "next":
        found = next((e for e in exercises if not e.looks_done()), None)
        if found is None:
            raise ExerciseNotFound(
                "🎉 Congratulations! You have done all the exercises!\n"
                "🔚 There are no more exercises to do next!"
            )
        return found
    found = next((e for e in exercises if e.name == name), None)
    if found is None:
        raise ExerciseNotFound(f"No exercise found for '{name}'!")
    return found


def list_exercises(
    exercises: Sequence[Exercise],
    paths: bool = False,
    names: bool = False,
    filter: str | None = None,
    unsolved: bool = False,
    solved: bool = False,
    out: TextIO | None = None,
) -> int:
    """Write the exercise table and a progress line; return how many are done."""
    out = out if out is not None else sys.stdout
    if not paths and not names:
        out.write(f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}\n")
    patterns = [p for p in (filter or "").lower().split(",") if p.strip()]
    exercises_done = 0
    for exercise in exercises:
        fname = str(exercise.path)
        matches = any(p in exercise.name or p in fname for p in patterns)
        done = exercise.looks_done()
        if done:
            exercises_done += 1
        status = "Done" if done else "Pending"
        show = (done and solved) or (not done and unsolved) or (not solved and not unsolved)
        if show and (matches or filter is None):
            if paths:
                line = f"{fname}\n"
            elif names:
                line = f"{exercise.name}\n"
            else:
                line = f"{exercise.name:<17}\t{fname:<46}\t{status:<7}\n"
            out.write(line)
    percentage = exercises_done / len(exercises) * 100.0 if exercises else 0.0
    out.write(
        f"Progress: You completed {exercises_done} / {len(exercises)} "
        f"exercises ({percentage:.1f} %).\n"
    )
    out.flush()
    return exercises_done


def cicv_verify(
    exercises: Sequence[Exercise],
    verbose: bool = False,
    output_path: str | os.PathLike = CHECK_RESULT_PATH,
) -> ExerciseCheckList:
    """Run every exercise concurrently and write a JSON report of the results."""
    started = int(time.time())
    total = len(exercises)
    lock = threading.Lock()
    check_list = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))

    def grade(exercise: Exercise, task_started: int) -> None:
        try:
            run(exercise, True)
        except ExerciseFailed:
            passed = False
        else:
            passed = True
        with lock:
            stats = check_list.statistics
            if passed:
                stats.total_succeeds += 1
                print(f"{exercise.name}执行成功")
            else:
                print(f"{exercise.name}执行失败")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {stats.total_succeeds}")
            print(f"当前修改试卷耗时: {int(time.time()) - task_started} s")
            check_list.exercises.append(ExerciseResult(name=exercise.name, result=passed))
            if not passed:
                stats.total_failures += 1

    with ThreadPoolExecutor() as pool:
        futures = [pool.submit(grade, e, int(time.time())) for e in exercises]
        for future in futures:
            future.result()

    total_time = int(time.time()) - started
    print(
        "===============================试卷批改完成,总耗时: "
        f"{total_time} s; =================================="
    )
    check_list.statistics.total_time = total_time
    Path(output_path).write_text(
        json.dumps(check_list.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
    )
    return check_list


class _SharedHint:
    """The hint of the exercise that failed last, shared with the shell thread."""

    def __init__(self, hint: str | None) -> None:
        self._lock = threading.Lock()
        self._hint = hint

    def get(self) -> str | None:
        with self._lock:
            return self._hint

    def set(self, hint: str | None) -> None:
        with self._lock:
            self._hint = hint


def _watch_shell(hint: _SharedHint, should_quit: threading.Event, stdin: TextIO) -> None:
    for raw in stdin:
        command = raw.strip()
        if command == "hint":
            current = hint.get()
            if current is not None:
                print(current)
        elif command == "clear":
            print("\x1b[2J\x1b[1;1H")
        elif command == "quit":
            should_quit.set()
            print("Bye!")
        elif command == "help":
            print(WATCH_HELP)
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


def _spawn_watch_shell(hint: _SharedHint, should_quit: threading.Event) -> None:
    print(
        "Welcome to watch mode! You can type 'help' to get an overview "
        "of the commands you can use here."
    )
    thread = threading.Thread(
        target=_watch_shell, args=(hint, should_quit, sys.stdin), daemon=True
    )
    thread.start()


def _ends_with(path: Path, suffix: Path) -> bool:
    parts = suffix.parts
    return len(parts) <= len(path.parts) and path.parts[len(path.parts) - len(parts):] == parts


def _clear_screen() -> None:
    print("\x1bc")


def watch(
    exercises: Sequence[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify exercises and re-verify whenever an exercise file changes."""
    from watchdog.events import FileSystemEventHandler
    from watchdog.observers import Observer

    changes: queue.Queue[str] = queue.Queue()

    class _Handler(FileSystemEventHandler):
        def on_created(self, event):  # noqa: ANN001
            if not event.is_directory:
                changes.put(str(event.src_path))

        def on_modified(self, event):  # noqa: ANN001
            if not event.is_directory:
                changes.put(str(event.src_path))

    should_quit = threading.Event()
    observer = Observer()
    observer.schedule(_Handler(), "./exercises", recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
        except VerificationFailed as failure:
            hint = _SharedHint(failure.exercise.hint)
        else:
            return WatchStatus.FINISHED
        _spawn_watch_shell(hint, should_quit)

        while True:
            try:
                first = changes.get(timeout=1.0)
            except queue.Empty:
                pending_paths: list[str] = []
            else:
                pending_paths = [first]
                while True:
                    try:
                        pending_paths.append(changes.get_nowait())
                    except queue.Empty:
                        break
            for changed in dict.fromkeys(pending_paths):
                path = Path(changed)
                if path.suffix != ".rs" or not path.exists():
                    continue
                filepath = path.resolve()

                def pending(filepath: Path = filepath) -> Iterator[Exercise]:
                    current = next(
                        (e for e in exercises if _ends_with(filepath, e.path)), None
                    )
                    if current is not None:
                        yield current
                    yield from (
                        e
                        for e in exercises
                        if not e.looks_done() and not _ends_with(filepath, e.path)
                    )

                num_done = sum(1 for e in exercises if e.looks_done())
                _clear_screen()
                try:
                    verify(pending(), (num_done, len(exercises)), verbose, success_hints)
                except VerificationFailed as failure:
                    hint.set(failure.exercise.hint)
                else:
                    return WatchStatus.FINISHED
            if should_quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()


def rustc_exists() -> bool:
    """Whether ``rustc --version`` runs successfully."""
    try:
        result = subprocess.run(
            ["rustc", "--version"], stdout=subprocess.DEVNULL, check=False
        )
    except OSError:
        return False
    return result.returncode == 0


def _lsp() -> None:
    project = RustAnalyzerProject()
    try:
        project.get_sysroot_src()
    except OSError as exc:
        raise RuntimeError(
            "Couldn't find toolchain path, do you have `rustc` installed?"
        ) from exc
    try:
        project.exercises_to_json()
    except OSError as exc:
        raise RuntimeError("Couldn't parse exercises files") from exc

    if not project.crates:
        print("Failed find any exercises, make sure you're in the `exdrill` folder")
        return
    try:
        project.write_to_disk()
    except OSError:
        print("Failed to write rust-project.json to disk for rust-analyzer")
        return
    print("Successfully generated rust-project.json")
    print(
        "rust-analyzer will now parse exercises, restart your language server or editor"
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line interface and return the exit status."""
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"v{VERSION}")
        return 0

    if args.command is None:
        print(f"\n{WELCOME}\n")

    if not Path(INFO_FILE).exists():
        print(f"{sys.argv[0]} must be run from the exdrill directory")
        print("Try `cd exdrill/`!")
        return 1

    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install Rust, check the README.")
        return 1

    exercises = load_exercises(INFO_FILE)
    verbose = args.nocapture

    if args.command is None:
        print(f"{DEFAULT_OUT}\n")
        return 0

    match args.command:
        case "list":
            try:
                list_exercises(
                    exercises,
                    paths=args.paths,
                    names=args.names,
                    filter=args.filter,
                    unsolved=args.unsolved,
                    solved=args.solved,
                )
            except BrokenPipeError:
                return 0
            return 0
        case "run" | "reset" | "hint":
            try:
                exercise = find_exercise(args.name, exercises)
            except ExerciseNotFound as exc:
                print(exc)
                return 1
            if args.command == "hint":
                print(exercise.hint)
            elif args.command == "run":
                try:
                    run(exercise, verbose)
                except ExerciseFailed:
                    return 1
            else:
                try:
                    reset(exercise)
                except OSError:
                    return 1
            return 0
        case "verify":
            try:
                verify(exercises, (0, len(exercises)), verbose, False)
            except VerificationFailed:
                return 1
            return 0
        case "cicvverify":
            cicv_verify(exercises, verbose, CHECK_RESULT_PATH)
            return 0
        case "lsp":
            _lsp()
            return 0
        case "watch":
            try:
                status = watch(exercises, verbose, args.success_hints)
            except OSError as exc:
                print(f"Error: Could not watch your progress. Error message was {exc!r}.")
                print(
                    "Most likely you've run out of disk space or your "
                    "'inotify limit' has been reached."
                )
                return 1
            if status is WatchStatus.FINISHED:
                print("🎉 All exercises completed! 🎉")
                print(f"\n{FINISH_LINE}\n")
            else:
                print("We hope you're enjoying learning about Rust!")
                print(
                    "If you want to continue working on the exercises at a later "
                    "point, you can simply run `exdrill watch` again"
                )
            return 0
    raise ValueError(f"unknown command: {args.command!r}")


if __name__ == "__main__":
    sys.exit(main())