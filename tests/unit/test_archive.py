"""Unit tests for single-member tar extraction."""

from __future__ import annotations

import io
import stat
import typing as typ

import pytest

from fenrir.archive import TarArchive, extract_member
from fenrir.errors import ArchiveError, MemberNotFoundError
from tests.helpers import build_tarball

if typ.TYPE_CHECKING:
    from pathlib import Path

_MEMBERS = {
    "linux-amd64/README.md": b"readme",
    "linux-amd64/helm": b"\x7fELF helm binary",
    "linux-amd64/helm.sig": b"signature",
}


def _seed_archive(tmp_path: Path, *, gzip: bool) -> TarArchive:
    archive = TarArchive(
        name="helm.tar.gz" if gzip else "helm.tar",
        dest=tmp_path / "tars",
        url="https://example.test/helm.tar.gz",
        member="linux-amd64/helm",
    )
    archive.dest.mkdir(parents=True)
    archive.path.write_bytes(build_tarball(_MEMBERS, gzip=gzip))
    return archive


class TestExtractMember:
    """Tests for streaming member extraction."""

    @pytest.mark.parametrize("gzip", [True, False])
    def test_copies_member_bytes(self, *, gzip: bool) -> None:
        """The named member should be copied byte for byte."""
        source = io.BytesIO(build_tarball(_MEMBERS, gzip=gzip))
        out = io.BytesIO()

        size = extract_member(source, "linux-amd64/helm", out, gzip=gzip)

        assert out.getvalue() == b"\x7fELF helm binary"
        assert size == len(b"\x7fELF helm binary")

    def test_matches_full_path_exactly(self) -> None:
        """A member is found by its full path, never by base name."""
        source = io.BytesIO(build_tarball(_MEMBERS, gzip=True))

        with pytest.raises(MemberNotFoundError) as exc_info:
            extract_member(source, "helm", io.BytesIO(), gzip=True)

        assert exc_info.value.member == "helm"

    def test_missing_member_writes_nothing(self) -> None:
        """No bytes are written when the member is absent."""
        source = io.BytesIO(build_tarball(_MEMBERS, gzip=False))
        out = io.BytesIO()

        with pytest.raises(MemberNotFoundError):
            extract_member(source, "linux-arm64/helm", out, gzip=False)

        assert out.getvalue() == b""

    def test_missing_member_is_an_archive_error(self) -> None:
        """Callers catching ArchiveError also see a missing member."""
        source = io.BytesIO(build_tarball({}, gzip=False))

        with pytest.raises(ArchiveError):
            extract_member(source, "linux-amd64/helm", io.BytesIO(), gzip=False)

    def test_rejects_corrupt_gzip(self) -> None:
        """Data that is not gzip should raise ArchiveError."""
        source = io.BytesIO(b"definitely not a gzip stream")

        with pytest.raises(ArchiveError, match="cannot read archive"):
            extract_member(source, "linux-amd64/helm", io.BytesIO(), gzip=True)

    def test_rejects_truncated_archive(self) -> None:
        """A truncated gzip tarball should raise ArchiveError."""
        payload = build_tarball({"linux-amd64/helm": b"x" * 4096}, gzip=True)
        source = io.BytesIO(payload[: len(payload) // 2])

        with pytest.raises(ArchiveError):
            extract_member(source, "linux-amd64/helm", io.BytesIO(), gzip=True)


class TestTarArchive:
    """Tests for extracting a downloaded archive over an artifact path."""

    @pytest.mark.parametrize("gzip", [True, False])
    def test_extracts_executable_member(self, tmp_path: Path, *, gzip: bool) -> None:
        """The member lands at the target path and is executable."""
        archive = _seed_archive(tmp_path, gzip=gzip)
        target = tmp_path / "bin" / "helm"

        size = archive.extract_to(target, gzip=gzip)

        assert target.read_bytes() == b"\x7fELF helm binary"
        assert size == target.stat().st_size
        assert target.stat().st_mode & stat.S_IXUSR

    def test_overwrites_existing_target(self, tmp_path: Path) -> None:
        """An outdated binary is replaced by the extracted member."""
        archive = _seed_archive(tmp_path, gzip=True)
        target = tmp_path / "bin" / "helm"
        target.parent.mkdir()
        target.write_bytes(b"stale helm")

        archive.extract_to(target, gzip=True)

        assert target.read_bytes() == b"\x7fELF helm binary"

    def test_missing_member_leaves_target_untouched(self, tmp_path: Path) -> None:
        """A failed lookup neither creates the target nor leaves a partial."""
        archive = TarArchive(
            name="other.tar",
            dest=tmp_path,
            url="https://example.test/other.tar",
            member="linux-amd64/helm",
        )
        archive.path.write_bytes(build_tarball({"other/file": b"x"}, gzip=False))
        target = tmp_path / "bin" / "helm"

        with pytest.raises(MemberNotFoundError):
            archive.extract_to(target, gzip=False)

        assert not target.exists()
        assert list(target.parent.iterdir()) == []

    def test_wrong_compression_flag_raises(self, tmp_path: Path) -> None:
        """Reading a plain tarball as gzip should fail cleanly."""
        archive = _seed_archive(tmp_path, gzip=False)
        target = tmp_path / "bin" / "helm"

        with pytest.raises(ArchiveError):
            archive.extract_to(target, gzip=True)

        assert not target.exists()

    def test_path_joins_dest_and_name(self, tmp_path: Path) -> None:
        """The archive path should be its directory joined with its name."""
        archive = TarArchive(
            name="helm.tar.gz", dest=tmp_path, url="u", member="linux-amd64/helm"
        )

        assert archive.path == tmp_path / "helm.tar.gz"
