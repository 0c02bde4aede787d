"""Local Kubernetes sandbox provisioner for end-to-end testing.

The acquisition and execution core is importable directly:

- Downloadable: verify, fetch and run a pinned external binary
- TaskBuilder / run_task: spawn and chain external processes
- TarArchive / extract_member: pull one member out of a (gzip-)tar archive

Kubernetes-specific commands live in ``fenrir.sandbox`` and the CLI in
``fenrir.cli``.

"""

from __future__ import annotations

from fenrir.archive import TarArchive, extract_member
from fenrir.config import Config
from fenrir.errors import (
    ArchiveError,
    ChecksumMismatchError,
    ExecutionError,
    FenrirError,
    FilesystemError,
    MemberNotFoundError,
    NetworkError,
    SpawnError,
)
from fenrir.fetch import Artifact, Downloadable, FetchOptions, FetchResult, FetchStatus
from fenrir.task import Task, TaskBuilder, TaskResult, run_task

__all__ = [
    "ArchiveError",
    "Artifact",
    "ChecksumMismatchError",
    "Config",
    "Downloadable",
    "ExecutionError",
    "FenrirError",
    "FetchOptions",
    "FetchResult",
    "FetchStatus",
    "FilesystemError",
    "MemberNotFoundError",
    "NetworkError",
    "SpawnError",
    "TarArchive",
    "Task",
    "TaskBuilder",
    "TaskResult",
    "extract_member",
    "run_task",
]
