"""External process execution with redirectable I/O and chaining.

A :class:`Task` describes one command: its argument vector, where its
standard streams go, and an optional successor that receives its output on
standard input. Tasks are immutable; configure them through
:class:`TaskBuilder` and execute them with :func:`run_task`.

Stream wiring
-------------
- Streams exposing a real file descriptor (``sys.stdout``, open files) are
  handed straight to the child process.
- Any other stream (``io.BytesIO``, ``io.StringIO``, pytest capture objects)
  is fed from captured bytes once the child exits.
- Unset output and error streams are captured in memory and exposed on the
  :class:`TaskResult`.
- Unset input reads from ``/dev/null``.

Examples
--------
Pipe one command into another and read the tail of the chain:

    result = (
        TaskBuilder(["printf", "b\\na\\n"])
        .then(TaskBuilder(["sort"]))
        .run()
    )
    assert result.stdout == b"a\\nb\\n"

Stream a long-running command to the terminal:

    TaskBuilder(["bin/minikube", "start"]).stdout(sys.stdout).run()

"""

from __future__ import annotations

import dataclasses
import io
import subprocess
import typing as typ

from fenrir.errors import ExecutionError, SpawnError
from fenrir.logging import get_logger, log_debug

logger = get_logger(__name__)

StdinSource = bytes | typ.IO[typ.Any]


@dataclasses.dataclass(frozen=True, slots=True)
class Task:
    """Immutable execution request for one external command.

    Attributes:
        argv: Program followed by its arguments; no shell is involved.
        stdin: Bytes or a readable stream fed to the child, or None for
            ``/dev/null``.
        stdout: Stream receiving the child's output, or None to capture it.
        stderr: Stream receiving the child's error output, or None to
            capture it.
        next: Successor whose input is bound to this task's output.
        timeout: Seconds to wait before the child is killed, or None to
            wait indefinitely.

    """

    argv: tuple[str, ...]
    stdin: StdinSource | None = None
    stdout: typ.IO[typ.Any] | None = None
    stderr: typ.IO[typ.Any] | None = None
    next: Task | None = None
    timeout: float | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class TaskResult:
    """Outcome of a successful run.

    For a chain, this describes the last task. ``stdout`` and ``stderr`` hold
    whatever was captured; output passed straight through to a caller's file
    descriptor is not captured and reads back as ``b""``.
    """

    argv: tuple[str, ...]
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def text(self) -> str:
        """Return captured output decoded as UTF-8."""
        return self.stdout.decode("utf-8", errors="replace")


class TaskBuilder:
    """Fluent configuration for a :class:`Task`.

    Every setter returns the builder and may be called repeatedly; the last
    value wins. :meth:`build` validates the configuration and freezes it.
    """

    def __init__(self, argv: typ.Sequence[str]) -> None:
        """Start a builder for ``argv`` (program followed by arguments)."""
        self._argv = tuple(argv)
        self._stdin: StdinSource | None = None
        self._stdout: typ.IO[typ.Any] | None = None
        self._stderr: typ.IO[typ.Any] | None = None
        self._next: TaskBuilder | Task | None = None
        self._timeout: float | None = None

    @classmethod
    def from_command_line(cls, command_line: str) -> TaskBuilder:
        """Split ``command_line`` on whitespace into an argument vector.

        Quoting is not interpreted, so arguments containing spaces cannot be
        expressed this way; pass an argument vector to the constructor
        instead.
        """
        return cls(command_line.split())

    def stdin(self, source: StdinSource | None) -> typ.Self:
        """Feed ``source`` to the child's standard input."""
        self._stdin = source
        return self

    def stdout(self, stream: typ.IO[typ.Any] | None) -> typ.Self:
        """Send the child's standard output to ``stream``."""
        self._stdout = stream
        return self

    def stderr(self, stream: typ.IO[typ.Any] | None) -> typ.Self:
        """Send the child's standard error to ``stream``."""
        self._stderr = stream
        return self

    def then(self, successor: TaskBuilder | Task | None) -> typ.Self:
        """Chain ``successor`` to consume this task's output."""
        self._next = successor
        return self

    def timeout(self, seconds: float | None) -> typ.Self:
        """Kill the child if it runs longer than ``seconds``."""
        self._timeout = seconds
        return self

    def build(self) -> Task:
        """Validate the configuration and return an immutable task.

        Raises
        ------
        ValueError
            If the argument vector is empty, the program name is blank, or
            the timeout is not positive.

        """
        if not self._argv or not self._argv[0].strip():
            msg = "task requires a program name"
            raise ValueError(msg)
        if self._timeout is not None and self._timeout <= 0:
            msg = f"timeout must be positive, got {self._timeout}"
            raise ValueError(msg)
        successor = (
            self._next.build() if isinstance(self._next, TaskBuilder) else self._next
        )
        return Task(
            argv=self._argv,
            stdin=self._stdin,
            stdout=self._stdout,
            stderr=self._stderr,
            next=successor,
            timeout=self._timeout,
        )

    def run(self) -> TaskResult:
        """Build and run the task."""
        return run_task(self.build())


def _fileno(stream: object) -> int | None:
    """Return the OS-level descriptor behind ``stream`` if it has one."""
    try:
        return typ.cast("typ.IO[typ.Any]", stream).fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _write_through(stream: typ.IO[typ.Any], data: bytes) -> None:
    if not data:
        return
    if isinstance(stream, io.TextIOBase):
        stream.write(data.decode("utf-8", errors="replace"))
    else:
        stream.write(data)
    stream.flush()


def _output_target(
    stream: typ.IO[typ.Any] | None, *, force_capture: bool
) -> typ.IO[typ.Any] | int:
    if stream is None or force_capture or _fileno(stream) is None:
        return subprocess.PIPE
    # Python-level buffers must reach the descriptor before the child writes.
    stream.flush()
    return stream


def _stdin_kwargs(source: StdinSource | None) -> dict[str, typ.Any]:
    if source is None:
        return {"stdin": subprocess.DEVNULL}
    if isinstance(source, bytes | bytearray | memoryview):
        return {"input": bytes(source)}
    if _fileno(source) is not None:
        return {"stdin": source}
    data = source.read()
    if isinstance(data, str):
        data = data.encode("utf-8")
    return {"input": data}


def run_task(task: Task) -> TaskResult:
    """Run ``task`` and any chained successors.

    The successor's standard input is always bound to this task's output,
    which is captured for that purpose even when an output stream was set
    (the stream still receives a copy). On success the result of the last
    task in the chain is returned.

    Raises
    ------
    SpawnError
        If the executable cannot be found or started.
    ExecutionError
        If the process exits non-zero, is killed by a signal, or exceeds its
        timeout. Remaining tasks in the chain are not run.

    """
    stdout_target = _output_target(task.stdout, force_capture=task.next is not None)
    stderr_target = _output_target(task.stderr, force_capture=False)

    log_debug(logger, "spawning %s", " ".join(task.argv))
    try:
        completed = subprocess.run(  # noqa: S603
            # argv comes from callers, never from a shell string
            list(task.argv),
            stdout=stdout_target,
            stderr=stderr_target,
            timeout=task.timeout,
            check=False,
            **_stdin_kwargs(task.stdin),
        )
    except subprocess.TimeoutExpired as exc:
        raise ExecutionError.timed_out(
            task.argv, typ.cast("float", task.timeout), exc.stderr or b""
        ) from exc
    except OSError as exc:
        raise SpawnError(task.argv, exc.strerror or str(exc)) from exc

    out = completed.stdout or b""
    err = completed.stderr or b""
    if task.stdout is not None and stdout_target is subprocess.PIPE:
        _write_through(task.stdout, out)
    if task.stderr is not None and stderr_target is subprocess.PIPE:
        _write_through(task.stderr, err)

    log_debug(logger, "%s exited with %d", task.argv[0], completed.returncode)
    if completed.returncode != 0:
        raise ExecutionError(task.argv, completed.returncode, err)

    if task.next is not None:
        return run_task(dataclasses.replace(task.next, stdin=out))

    return TaskResult(
        argv=task.argv, returncode=completed.returncode, stdout=out, stderr=err
    )


__all__ = ["StdinSource", "Task", "TaskBuilder", "TaskResult", "run_task"]
