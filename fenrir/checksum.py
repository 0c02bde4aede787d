"""SHA-256 helpers for the checksum gate.

Digests are lowercase hexadecimal and compared by exact string equality;
no case folding or whitespace trimming is applied to the expected value.
"""

from __future__ import annotations

import hashlib
import typing as typ

from fenrir.errors import ChecksumMismatchError, FilesystemError

if typ.TYPE_CHECKING:
    from pathlib import Path

_CHUNK_SIZE = 64 * 1024


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of ``path``, read in chunks.

    Raises
    ------
    FilesystemError
        If the file cannot be opened or read.

    """
    digest = hashlib.sha256()
    try:
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as exc:
        raise FilesystemError.from_os_error(f"read {path}", exc) from exc
    return digest.hexdigest()


def is_valid_checksum(path: Path, expected: str) -> bool:
    """Return True when ``path`` hashes to exactly ``expected``."""
    return sha256_file(path) == expected


def verify_checksum(path: Path, expected: str) -> str:
    """Return the digest of ``path`` or raise when it differs from ``expected``.

    Raises
    ------
    ChecksumMismatchError
        If the computed digest is not identical to ``expected``.

    """
    actual = sha256_file(path)
    if actual != expected:
        raise ChecksumMismatchError(path, expected=expected, actual=actual)
    return actual
