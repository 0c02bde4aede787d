"""Verified acquisition of external binaries.

:class:`Downloadable` makes sure an artifact exists at ``dest/name`` and
hashes to its pinned SHA-256 digest before anything runs it. The decision
flow for one call to :meth:`Downloadable.download` is:

- file absent: warn, ask for confirmation, then fetch;
- file present and digest matches: done, no network access;
- file present and digest differs: warn, ask for confirmation, then fetch.

Declining the confirmation is a successful no-op, so operators can pre-seed
binaries and CI can skip downloads. Any answer except the literal ``n``
counts as acceptance.

Fetching streams the HTTP body to a ``.part`` file with a running byte count,
then renames it into place. When the artifact ships inside a tarball, the
archive is fetched instead and the member is extracted over the artifact
path. The digest of freshly fetched content is logged but not compared with
the pinned value; the next invocation's checksum gate catches a bad download.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import enum
import os
import typing as typ
from pathlib import Path

import httpx

from fenrir.checksum import sha256_file, verify_checksum
from fenrir.errors import (
    ArchiveError,
    ChecksumMismatchError,
    FenrirError,
    FilesystemError,
    NetworkError,
)
from fenrir.logging import get_logger, log_debug, log_info
from fenrir.task import TaskBuilder

if typ.TYPE_CHECKING:
    from fenrir.archive import TarArchive
    from fenrir.console import StatusConsole
    from fenrir.task import StdinSource, TaskResult

logger = get_logger(__name__)

Prompt = cabc.Callable[[str], str]

_DECLINE = "n"
_EXECUTABLE_MODE = 0o755


def accepts(answer: str) -> bool:
    """Return True unless ``answer`` is exactly ``n``.

    Blank input, ``no`` and ``N`` are all acceptance.
    """
    return answer != _DECLINE


@dataclasses.dataclass(frozen=True, slots=True)
class Artifact:
    """A pinned external binary.

    Attributes:
        name: File name of the binary.
        dest: Directory the binary lives in.
        checksum: Expected lowercase hex SHA-256 digest.
        url: Direct download URL, if the binary is not archive-wrapped.
        archive: Tarball the binary can be extracted from.

    """

    name: str
    dest: Path
    checksum: str
    url: str | None = None
    archive: TarArchive | None = None

    def __post_init__(self) -> None:
        """Reject artifacts that have nowhere to be fetched from."""
        if not self.url and self.archive is None:
            msg = f"artifact {self.name} needs a download URL or an archive"
            raise ValueError(msg)

    @property
    def path(self) -> Path:
        """Return the on-disk location of the binary."""
        return self.dest / self.name


@dataclasses.dataclass(frozen=True, slots=True)
class FetchOptions:
    """Independent toggles for a single download call.

    Attributes:
        verbose: Report a status line when an existing copy is verified.
        from_archive: Fetch the artifact's archive and extract the binary
            from it. Ignored when the artifact has no archive.
        gzip_compressed: The archive is a gzip-compressed tarball.

    """

    verbose: bool = False
    from_archive: bool = False
    gzip_compressed: bool = False


class FetchStatus(enum.StrEnum):
    """How a download call ended."""

    VERIFIED = "verified"
    DOWNLOADED = "downloaded"
    SKIPPED = "skipped"


@dataclasses.dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of :meth:`Downloadable.download`."""

    path: Path
    status: FetchStatus
    bytes_transferred: int = 0
    checksum: str | None = None


class Downloadable:
    """An artifact that can be verified, fetched and executed."""

    def __init__(
        self,
        artifact: Artifact,
        *,
        client: httpx.Client,
        console: StatusConsole,
        prompt: Prompt | None = None,
        assume_yes: bool = False,
        defaults: FetchOptions | None = None,
    ) -> None:
        """Bind ``artifact`` to the collaborators used to materialize it.

        Parameters
        ----------
        artifact : Artifact
            The binary to manage.
        client : httpx.Client
            HTTP client used for downloads; it should follow redirects.
        console : StatusConsole
            Destination for status lines and download progress.
        prompt : Callable[[str], str] | None, optional
            Returns the operator's answer to a question. Defaults to reading
            standard input through ``console``.
        assume_yes : bool, default False
            Skip the confirmation gate and always download.
        defaults : FetchOptions | None, optional
            Options used when a call does not pass its own, including the
            implicit download performed by :meth:`run`.

        """
        self.artifact = artifact
        self._client = client
        self._console = console
        self._prompt = prompt or console.ask
        self._assume_yes = assume_yes
        self.defaults = defaults or FetchOptions()

    @property
    def path(self) -> Path:
        """Return the on-disk location of the binary."""
        return self.artifact.path

    def should_download(self) -> bool:
        """Run the confirmation gate."""
        if self._assume_yes:
            return True
        answer = self._prompt(f"Download {self.artifact.name}? (y/n)")
        return accepts(answer)

    def download(self, options: FetchOptions | None = None) -> FetchResult:
        """Ensure the artifact is present, fetching it if needed.

        Raises
        ------
        NetworkError
            If the HTTP request fails or returns an error status.
        FilesystemError
            If a destination directory or file cannot be written.
        ArchiveError
            If the archive cannot be read or lacks the target member.
        FenrirError
            If the artifact only ships in an archive and ``options`` does
            not select archive fetching.

        """
        opts = options or self.defaults
        name = self.artifact.name
        path = self.artifact.path

        if not path.exists():
            self._console.warn(f"{name} not found")
            log_info(logger, "%s absent at %s", name, path)
        else:
            try:
                digest = verify_checksum(path, self.artifact.checksum)
            except ChecksumMismatchError as exc:
                self._console.warn(f"invalid {name} checksum")
                log_info(logger, "%s", exc)
            else:
                if opts.verbose:
                    self._console.ok(f"{name} found")
                log_debug(logger, "%s verified at %s", name, path)
                return FetchResult(path, FetchStatus.VERIFIED, 0, digest)

        if not self.should_download():
            log_info(logger, "download of %s declined", name)
            return FetchResult(path, FetchStatus.SKIPPED)

        return self._fetch(opts)

    def _fetch(self, opts: FetchOptions) -> FetchResult:
        archive = self.artifact.archive
        if archive is not None and opts.from_archive:
            transferred = self._transfer(archive.url, archive.path, executable=False)
            self._extract(archive, gzip=opts.gzip_compressed)
        else:
            if not self.artifact.url:
                msg = (
                    f"no download URL configured for {self.artifact.name}; "
                    "fetch it from its archive instead"
                )
                raise FenrirError(msg)
            transferred = self._transfer(
                self.artifact.url, self.artifact.path, executable=True
            )
        return FetchResult(
            self.artifact.path,
            FetchStatus.DOWNLOADED,
            transferred,
            sha256_file(self.artifact.path),
        )

    def _transfer(self, url: str, target: Path, *, executable: bool) -> int:
        """Stream ``url`` into ``target`` and return the byte count."""
        partial = target.with_name(f"{target.name}.part")
        total = 0
        log_info(logger, "downloading %s to %s", url, target)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError.from_os_error(f"create {target.parent}", exc) from exc
        try:
            with self._client.stream("GET", url) as response:
                if response.is_error:
                    raise NetworkError.http_status(url, response.status_code)
                with (
                    partial.open("wb") as handle,
                    self._console.download_progress(target.name) as report,
                ):
                    for chunk in response.iter_bytes():
                        if not chunk:
                            continue
                        handle.write(chunk)
                        total += len(chunk)
                        report(total)
                    handle.flush()
                    os.fsync(handle.fileno())
            if executable:
                partial.chmod(_EXECUTABLE_MODE)
            os.replace(partial, target)
        except httpx.HTTPError as exc:
            partial.unlink(missing_ok=True)
            raise NetworkError.transfer_failed(url, exc) from exc
        except OSError as exc:
            partial.unlink(missing_ok=True)
            raise FilesystemError.from_os_error(f"write {target}", exc) from exc

        self._console.ok(f"{target.name} download finished")
        digest = sha256_file(target)
        self._console.info(f"{target.name} sum: {digest}")
        log_info(logger, "fetched %s (%d bytes, sha256 %s)", target, total, digest)
        return total

    def _extract(self, archive: TarArchive, *, gzip: bool) -> None:
        self._console.info(
            f"extracting file {self.artifact.name} to {self.artifact.dest}"
        )
        try:
            archive.extract_to(self.artifact.path, gzip=gzip)
        except (ArchiveError, FilesystemError):
            self._console.err("extraction failed")
            raise
        self._console.ok("extraction done")

    def task(self, args: typ.Sequence[str] = ()) -> TaskBuilder:
        """Return a task builder that runs the artifact with ``args``."""
        return TaskBuilder([str(self.artifact.path.absolute()), *args])

    def run(
        self, args: typ.Sequence[str] = (), stdin: StdinSource | None = None
    ) -> TaskResult:
        """Materialize the artifact, then run it and return captured output.

        Raises
        ------
        SpawnError
            If the binary is missing (for example, the download was declined)
            or cannot be executed.
        ExecutionError
            If the binary exits non-zero; the error carries its stderr.

        """
        self.download()
        return self.task(args).stdin(stdin).run()


__all__ = [
    "Artifact",
    "Downloadable",
    "FetchOptions",
    "FetchResult",
    "FetchStatus",
    "Prompt",
    "accepts",
]
