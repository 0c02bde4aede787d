"""Error types raised by the acquisition and execution core.

Every error derives from :class:`FenrirError` so the CLI layer can catch a
single base class, print a status line, and exit non-zero. Nothing in the
core retries; errors propagate to the immediate caller unchanged.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class FenrirError(Exception):
    """Base exception for all fenrir errors."""


class NetworkError(FenrirError):
    """Raised when an HTTP request or body transfer fails."""

    def __init__(self, message: str, *, url: str) -> None:
        """Record the URL that failed alongside the message."""
        self.url = url
        super().__init__(message)

    @classmethod
    def transfer_failed(cls, url: str, exc: BaseException) -> NetworkError:
        """Return an error for a failed request or interrupted transfer."""
        return cls(f"download of {url} failed: {exc}", url=url)

    @classmethod
    def http_status(cls, url: str, status_code: int) -> NetworkError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"download of {url} returned HTTP {status_code}", url=url)


class ChecksumMismatchError(FenrirError):
    """Raised when an on-disk file does not hash to the pinned digest."""

    def __init__(self, path: Path, *, expected: str, actual: str) -> None:
        """Record both digests for diagnostics."""
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"checksum mismatch for {path}: expected {expected}, got {actual}"
        )


class SpawnError(FenrirError):
    """Raised when an executable cannot be located or launched."""

    def __init__(self, argv: typ.Sequence[str], reason: str) -> None:
        """Record the argument vector that could not be started."""
        self.argv = tuple(argv)
        super().__init__(f"could not start '{self.argv[0]}': {reason}")


class ExecutionError(FenrirError):
    """Raised when a process exits non-zero or is killed by a signal."""

    def __init__(
        self,
        argv: typ.Sequence[str],
        returncode: int | None,
        stderr: bytes,
        *,
        message: str | None = None,
    ) -> None:
        """Record the command, exit status and captured standard error."""
        self.argv = tuple(argv)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message or self._describe())

    @classmethod
    def timed_out(
        cls, argv: typ.Sequence[str], timeout: float, stderr: bytes
    ) -> ExecutionError:
        """Return an error for a process that exceeded its timeout."""
        msg = f"'{argv[0]}' timed out after {timeout} seconds"
        return cls(argv, None, stderr, message=msg)

    @property
    def signalled(self) -> bool:
        """Return True when the process was terminated by a signal."""
        return self.returncode is not None and self.returncode < 0

    def _describe(self) -> str:
        if self.signalled:
            head = f"'{self.argv[0]}' killed by signal {-(self.returncode or 0)}"
        else:
            head = f"'{self.argv[0]}' exited with status {self.returncode}"
        detail = self.stderr.decode("utf-8", errors="replace").strip()
        return f"{head}: {detail}" if detail else head


class FilesystemError(FenrirError):
    """Raised when a directory or file cannot be created or written."""

    @classmethod
    def from_os_error(cls, action: str, exc: OSError) -> FilesystemError:
        """Wrap an ``OSError`` raised while performing ``action``."""
        return cls(f"failed to {action}: {exc}")


class ArchiveError(FenrirError):
    """Raised when an archive cannot be read as a tar stream."""


class MemberNotFoundError(ArchiveError):
    """Raised when the requested member is absent from an archive."""

    def __init__(self, archive: Path | str, member: str) -> None:
        """Record which member was missing from which archive."""
        self.archive = archive
        self.member = member
        super().__init__(f"member '{member}' not found in archive {archive}")


__all__ = [
    "ArchiveError",
    "ChecksumMismatchError",
    "ExecutionError",
    "FenrirError",
    "FilesystemError",
    "MemberNotFoundError",
    "NetworkError",
    "SpawnError",
]
