"""High-level provisioning for CLI commands."""

from __future__ import annotations

import typing as typ

from fenrir.sandbox import coredns, helm, kubectl, minikube

if typ.TYPE_CHECKING:
    from fenrir.context import Toolchain


def provision(toolchain: Toolchain) -> int:
    """Bring up the cluster, fetch kubectl and helm, and install charts.

    Returns:
        Exit code (0 for success).

    """
    minikube.init(toolchain)
    kubectl.init(toolchain)
    helm.init(toolchain)
    toolchain.console.ok("sandbox ready")
    return 0


def teardown(toolchain: Toolchain) -> int:
    """Delete the sandbox cluster.

    Returns:
        Exit code (0 for success).

    """
    minikube.delete(toolchain)
    return 0


def export_coredns(toolchain: Toolchain) -> int:
    """Export the CoreDNS deployment manifest."""
    path = coredns.export(toolchain)
    toolchain.console.ok(f"exported coredns deployment to {path}")
    return 0


def set_coredns_image(toolchain: Toolchain, image: str) -> int:
    """Override the CoreDNS image."""
    coredns.change_image(toolchain, image)
    return 0
