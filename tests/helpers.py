"""Shared test doubles for the acquisition core and sandbox commands."""

from __future__ import annotations

import collections.abc as cabc
import contextlib
import dataclasses
import hashlib
import io
import subprocess
import tarfile
import typing as typ
from pathlib import Path

import httpx
from rich.console import Console

from fenrir.console import ProgressReporter, StatusConsole


def sha256_hex(data: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def build_tarball(members: dict[str, bytes], *, gzip: bool) -> bytes:
    """Return a tar archive holding ``members``, optionally gzip-compressed."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz" if gzip else "w") as tar:
        for name, payload in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(payload)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(payload))
    return buffer.getvalue()


class RecordingConsole(StatusConsole):
    """Status console that remembers every line and progress report."""

    def __init__(self) -> None:
        """Render into an in-memory buffer without colour."""
        super().__init__(Console(file=io.StringIO(), color_system=None, width=200))
        self.lines: list[tuple[str, str]] = []
        self.progress: list[int] = []

    def ok(self, message: str) -> None:
        """Record a success line."""
        self.lines.append(("ok", message))
        super().ok(message)

    def warn(self, message: str) -> None:
        """Record a warning line."""
        self.lines.append(("warn", message))
        super().warn(message)

    def err(self, message: str) -> None:
        """Record a failure line."""
        self.lines.append(("err", message))
        super().err(message)

    def info(self, message: str) -> None:
        """Record an informational line."""
        self.lines.append(("info", message))
        super().info(message)

    @contextlib.contextmanager
    def download_progress(self, name: str) -> typ.Iterator[ProgressReporter]:
        """Record cumulative byte counts instead of drawing a progress bar."""
        del name
        yield self.progress.append

    def messages(self, kind: str) -> list[str]:
        """Return recorded messages of one kind."""
        return [message for line_kind, message in self.lines if line_kind == kind]

    @property
    def output(self) -> str:
        """Return everything rendered so far."""
        return typ.cast("io.StringIO", self.console.file).getvalue()


class ScriptedPrompt:
    """Confirmation source that replays canned answers."""

    def __init__(self, *answers: str) -> None:
        """Queue ``answers``; an exhausted queue answers ``n``."""
        self._answers = list(answers)
        self.questions: list[str] = []

    def __call__(self, question: str) -> str:
        """Record ``question`` and return the next answer."""
        self.questions.append(question)
        return self._answers.pop(0) if self._answers else "n"


class FakeServer:
    """httpx transport handler serving fixed bodies and counting requests."""

    def __init__(self, routes: dict[str, bytes | list[bytes]] | None = None) -> None:
        """Serve ``routes`` (URL to body, or to a list of body chunks)."""
        self.routes = dict(routes or {})
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        """Answer ``request`` from the route table, 404 otherwise."""
        url = str(request.url)
        self.requests.append(url)
        body = self.routes.get(url)
        if body is None:
            return httpx.Response(404, content=b"not found")
        if isinstance(body, list):
            return httpx.Response(200, content=iter(body))
        return httpx.Response(200, content=body)

    def client(self) -> httpx.Client:
        """Return a client routed through this server."""
        return httpx.Client(transport=httpx.MockTransport(self), follow_redirects=True)


@dataclasses.dataclass(slots=True)
class StubResponse:
    """Canned process outcome."""

    returncode: int = 0
    stdout: bytes = b""
    stderr: bytes = b""


class SubprocessStub:
    """Replacement for ``subprocess.run`` that records argument vectors.

    Responses are keyed by the argument tuple after the program name and
    matched by longest prefix, so ``("image", "load")`` answers every image
    load regardless of the path that follows.
    """

    def __init__(
        self, responses: cabc.Mapping[tuple[str, ...], StubResponse] | None = None
    ) -> None:
        """Store ``responses``; unmatched commands succeed silently."""
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, ...]] = []
        self.kwargs: list[dict[str, object]] = []

    def _lookup(self, args: tuple[str, ...]) -> StubResponse:
        for size in range(len(args), -1, -1):
            response = self.responses.get(args[:size])
            if response is not None:
                return response
        return StubResponse()

    def __call__(
        self, args: list[str], **kwargs: object
    ) -> subprocess.CompletedProcess[bytes]:
        """Record the call and return the matching canned outcome."""
        argv = tuple(args)
        self.calls.append(argv)
        self.kwargs.append(kwargs)
        response = self._lookup(argv[1:])

        stdout_target = kwargs.get("stdout")
        stdout: bytes | None = response.stdout
        if stdout_target is not subprocess.PIPE:
            if isinstance(stdout_target, io.BufferedIOBase | io.RawIOBase):
                stdout_target.write(response.stdout)
            stdout = None
        stderr = response.stderr if kwargs.get("stderr") is subprocess.PIPE else None
        return subprocess.CompletedProcess(
            args=args, returncode=response.returncode, stdout=stdout, stderr=stderr
        )

    @property
    def tool_calls(self) -> list[tuple[str, ...]]:
        """Return calls with the program reduced to its file name."""
        return [(Path(argv[0]).name, *argv[1:]) for argv in self.calls]
