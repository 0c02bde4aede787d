"""minikube cluster lifecycle.

``init`` brings a sandbox cluster up from nothing: it fetches the pinned
minikube binary, starts the cluster once so the add-on can be enabled,
configures the metallb load balancer interactively, restarts, and loads every
image tarball found under the images directory.

Image tarballs are matched by name: the second dot-separated segment must be
``tar`` (``app.tar``, ``app.tar.gz``), so ``app.v1.tar`` is skipped.
"""

from __future__ import annotations

import sys
import typing as typ

from fenrir.errors import FilesystemError
from fenrir.fetch import Artifact, FetchOptions
from fenrir.sandbox._steps import status_step

if typ.TYPE_CHECKING:
    from pathlib import Path

    from fenrir.config import Config
    from fenrir.context import Toolchain

MINIKUBE_VERSION = "v1.36.0"
MINIKUBE_CHECKSUM = "cddeab5ab86ab98e4900afac9d62384dae0941498dfbe712ae0c8868250bc3d7"
MINIKUBE_EXE_NAME = "minikube"
MINIKUBE_DL_URL = (
    "https://github.com/kubernetes/minikube/releases/download/"
    f"{MINIKUBE_VERSION}/minikube-linux-amd64"
)


def artifact(config: Config) -> Artifact:
    """Return the pinned minikube artifact for ``config``."""
    return Artifact(
        name=MINIKUBE_EXE_NAME,
        dest=config.bin_dir,
        checksum=MINIKUBE_CHECKSUM,
        url=MINIKUBE_DL_URL,
    )


def init(toolchain: Toolchain) -> None:
    """Fetch minikube and bring up a cluster with metallb and local images."""
    toolchain.minikube.download(FetchOptions(verbose=True))
    start(toolchain)
    stop(toolchain)
    enable_metallb(toolchain)
    configure_metallb(toolchain)
    start(toolchain)
    load_all(toolchain, toolchain.config.images_dir)


def start(toolchain: Toolchain) -> None:
    """Start the cluster, streaming minikube's output to the terminal."""
    with status_step(
        toolchain.console,
        begin="starting minikube",
        done="minikube started successfully",
        failed="minikube failed",
    ):
        toolchain.minikube.task(["start"]).stdout(sys.stdout).run()


def stop(toolchain: Toolchain) -> None:
    """Stop the cluster."""
    with status_step(
        toolchain.console, done="cluster stopped", failed="failed to stop cluster"
    ):
        toolchain.minikube.run(["stop"])


def delete(toolchain: Toolchain) -> None:
    """Delete the cluster and its state."""
    with status_step(
        toolchain.console,
        done="successfully deleted cluster",
        failed="failed to delete cluster",
    ):
        toolchain.minikube.run(["delete"])


def enable_metallb(toolchain: Toolchain) -> None:
    """Enable the metallb add-on."""
    with status_step(
        toolchain.console,
        begin="enabling metallb",
        done="enabled metallb addon",
        failed="failed to enable metallb addon",
    ):
        (
            toolchain.minikube.task(["addons", "enable", "metallb"])
            .stdout(sys.stdout)
            .stderr(sys.stderr)
            .run()
        )


def configure_metallb(toolchain: Toolchain) -> None:
    """Configure metallb; minikube prompts the operator for the IP range."""
    with status_step(
        toolchain.console,
        begin="configuring metallb",
        done="configured metallb",
        failed="failed to configure metallb",
    ):
        (
            toolchain.minikube.task(["addons", "configure", "metallb"])
            .stdin(sys.stdin)
            .stdout(sys.stdout)
            .stderr(sys.stderr)
            .run()
        )


def is_image_tarball(file_name: str) -> bool:
    """Return True when the second dot-separated segment is ``tar``."""
    segments = file_name.split(".")
    return len(segments) > 1 and segments[1] == "tar"


def find_image_tarballs(root: Path) -> list[Path]:
    """Return image tarballs below ``root`` in a stable order.

    Raises
    ------
    FilesystemError
        If ``root`` cannot be created or walked.

    """
    try:
        root.mkdir(parents=True, exist_ok=True)
        return sorted(
            path
            for path in root.rglob("*")
            if path.is_file() and is_image_tarball(path.name)
        )
    except OSError as exc:
        raise FilesystemError.from_os_error(f"scan {root}", exc) from exc


def load_all(toolchain: Toolchain, root: Path) -> None:
    """Load every image tarball below ``root`` into the cluster."""
    with status_step(
        toolchain.console,
        begin=f"loading images from {root}",
        done="minikube loaded images",
        failed="minikube failed to load images",
    ):
        for tarball in find_image_tarballs(root):
            load_image(toolchain, tarball)


def load_image(toolchain: Toolchain, tarball: Path) -> None:
    """Load one image tarball into the cluster."""
    toolchain.console.info(f"loading image {tarball}")
    toolchain.minikube.run(["image", "load", str(tarball)])
    toolchain.console.ok(f"loaded image {tarball}")
