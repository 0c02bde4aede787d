"""Helm acquisition and local chart installation.

Helm is published as a gzip-compressed release tarball, so the binary is
fetched by downloading the archive into the tars directory and extracting
``linux-amd64/helm`` from it. Every sub-directory of the charts directory is
then installed as a release named after the directory.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from fenrir.archive import TarArchive
from fenrir.errors import FilesystemError
from fenrir.fetch import Artifact, FetchOptions
from fenrir.sandbox._steps import status_step

if typ.TYPE_CHECKING:
    from pathlib import Path

    from fenrir.config import Config
    from fenrir.context import Toolchain

HELM_VERSION = "v3.18.6"
HELM_CHECKSUM = "c153fd9c1173f39aefe8e9aa9f00fd3daf6b40c8ea01e94a0d2f2c1787fc60e0"
HELM_EXE_NAME = "helm"
HELM_TAR_NAME = f"helm-{HELM_VERSION}-linux-amd64.tar.gz"
HELM_TAR_TARGET_FILE = "linux-amd64/helm"
HELM_DL_URL = f"https://get.helm.sh/{HELM_TAR_NAME}"

FETCH_DEFAULTS = FetchOptions(from_archive=True, gzip_compressed=True)


def artifact(config: Config) -> Artifact:
    """Return the pinned, archive-wrapped helm artifact for ``config``."""
    return Artifact(
        name=HELM_EXE_NAME,
        dest=config.bin_dir,
        checksum=HELM_CHECKSUM,
        archive=TarArchive(
            name=HELM_TAR_NAME,
            dest=config.tars_dir,
            url=HELM_DL_URL,
            member=HELM_TAR_TARGET_FILE,
        ),
    )


def list_charts(charts_dir: Path) -> list[Path]:
    """Return chart directories under ``charts_dir``, creating it if needed.

    Raises
    ------
    FilesystemError
        If the directory cannot be created or listed.

    """
    try:
        charts_dir.mkdir(parents=True, exist_ok=True)
        return sorted(entry for entry in charts_dir.iterdir() if entry.is_dir())
    except OSError as exc:
        action = f"list charts in {charts_dir}"
        raise FilesystemError.from_os_error(action, exc) from exc


def install_chart(toolchain: Toolchain, chart: Path) -> None:
    """Install ``chart`` as a release named after its directory."""
    with status_step(
        toolchain.console,
        done=f"chart for {chart.name} installed successfully",
        failed=f"failed to install chart for {chart.name}",
    ):
        result = toolchain.helm.run(["install", chart.name, str(chart)])
        toolchain.console.echo(result.stdout)


def init(toolchain: Toolchain) -> None:
    """Fetch helm and install every local chart."""
    toolchain.helm.download(dataclasses.replace(toolchain.helm.defaults, verbose=True))
    for chart in list_charts(toolchain.config.charts_dir):
        install_chart(toolchain, chart)
