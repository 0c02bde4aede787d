"""Single-member extraction from plain or gzip-compressed tar archives.

Only one archive shape is supported: a tar stream, optionally wrapped in
gzip, from which exactly one member is copied by its full in-archive path.
Entries are read sequentially in stream mode, so the archive is never
seeked and the member bytes go straight to the destination.
"""

from __future__ import annotations

import dataclasses
import os
import shutil
import tarfile
import typing as typ
from pathlib import Path

from fenrir.errors import ArchiveError, FilesystemError, MemberNotFoundError
from fenrir.logging import get_logger, log_info

logger = get_logger(__name__)

_EXECUTABLE_MODE = 0o755


def extract_member(
    source: typ.IO[bytes], member: str, out: typ.IO[bytes], *, gzip: bool
) -> int:
    """Copy the bytes of ``member`` from the tar stream ``source`` into ``out``.

    Parameters
    ----------
    source : IO[bytes]
        Readable binary stream positioned at the start of the archive.
    member : str
        Exact in-archive path of the entry to copy. No pattern matching is
        performed.
    out : IO[bytes]
        Writable binary stream receiving the member's bytes.
    gzip : bool
        Read the archive through a gzip decompression layer first.

    Returns
    -------
    int
        Number of bytes copied.

    Raises
    ------
    MemberNotFoundError
        If no regular file entry is named ``member``.
    ArchiveError
        If the stream is not a readable (gzip-)tar archive.

    """
    mode = "r|gz" if gzip else "r|"
    archive_name = getattr(source, "name", "<stream>")
    try:
        with tarfile.open(fileobj=source, mode=mode) as tar:
            for entry in tar:
                if entry.name != member or not entry.isfile():
                    continue
                extracted = tar.extractfile(entry)
                if extracted is None:
                    break
                shutil.copyfileobj(extracted, out)
                return entry.size
    except (tarfile.TarError, EOFError) as exc:
        msg = f"cannot read archive {archive_name}: {exc}"
        raise ArchiveError(msg) from exc
    raise MemberNotFoundError(archive_name, member)


@dataclasses.dataclass(frozen=True, slots=True)
class TarArchive:
    """A downloadable tarball that wraps an artifact.

    Attributes:
        name: File name of the archive on disk.
        dest: Directory the archive is downloaded into.
        url: Source URL of the archive.
        member: Exact in-archive path of the artifact.

    """

    name: str
    dest: Path
    url: str
    member: str

    @property
    def path(self) -> Path:
        """Return the on-disk location of the archive."""
        return self.dest / self.name

    def extract_to(self, target: Path, *, gzip: bool) -> int:
        """Extract :attr:`member` from the downloaded archive into ``target``.

        The member is written to a temporary sibling and renamed over
        ``target`` so a failed extraction never leaves a partial file behind.
        The result is marked executable.

        Returns
        -------
        int
            Number of bytes extracted.

        Raises
        ------
        MemberNotFoundError
            If the archive has no entry named :attr:`member`; ``target`` is
            left untouched.
        ArchiveError
            If the archive cannot be read.
        FilesystemError
            If the archive cannot be opened or ``target`` cannot be written.

        """
        log_info(logger, "extracting %s from %s to %s", self.member, self.path, target)
        partial = target.with_name(f"{target.name}.part")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError.from_os_error(f"create {target.parent}", exc) from exc
        try:
            with self.path.open("rb") as source, partial.open("wb") as out:
                size = extract_member(source, self.member, out, gzip=gzip)
            partial.chmod(_EXECUTABLE_MODE)
            os.replace(partial, target)
        except OSError as exc:
            partial.unlink(missing_ok=True)
            raise FilesystemError.from_os_error(f"extract to {target}", exc) from exc
        except ArchiveError:
            partial.unlink(missing_ok=True)
            raise
        return size


__all__ = ["TarArchive", "extract_member"]
