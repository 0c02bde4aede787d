"""Kubernetes client acquisition."""

from __future__ import annotations

import typing as typ

from fenrir.fetch import Artifact, FetchOptions

if typ.TYPE_CHECKING:
    from fenrir.config import Config
    from fenrir.context import Toolchain

KUBECTL_VERSION = "v1.33.0"
KUBECTL_CHECKSUM = "9efe8d3facb23e1618cba36fb1c4e15ac9dc3ed5a2c2e18109e4a66b2bac12dc"
KUBECTL_EXE_NAME = "kubectl"
KUBECTL_DL_URL = f"https://dl.k8s.io/release/{KUBECTL_VERSION}/bin/linux/amd64/kubectl"


def artifact(config: Config) -> Artifact:
    """Return the pinned kubectl artifact for ``config``."""
    return Artifact(
        name=KUBECTL_EXE_NAME,
        dest=config.bin_dir,
        checksum=KUBECTL_CHECKSUM,
        url=KUBECTL_DL_URL,
    )


def init(toolchain: Toolchain) -> None:
    """Make sure kubectl is present and verified."""
    toolchain.kubectl.download(FetchOptions(verbose=True))
