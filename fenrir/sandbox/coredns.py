"""CoreDNS deployment export and image override.

The live ``coredns`` deployment is exported into the kustomize directory,
a kustomization replacing its container image is written beside it, and the
result is applied. Existing CoreDNS pods are then deleted so the deployment
recreates them with the new image.
"""

from __future__ import annotations

import sys
import typing as typ

from fenrir.errors import FilesystemError
from fenrir.sandbox._steps import status_step

if typ.TYPE_CHECKING:
    from pathlib import Path

    from fenrir.context import Toolchain

EXPORT_FILE_NAME = "coredns.yaml"
KUSTOMIZATION_FILE_NAME = "kustomization.yaml"

IMAGE_PATCH_TEMPLATE = """\
apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
resources:
   - ./coredns.yaml
patches:
   - target:
        name: coredns
        namespace: kube-system
        kind: Deployment
     patch: |-
        - op: replace
          path: /spec/template/spec/containers/0/image
          value: {image}"""


def render_kustomization(image: str) -> str:
    """Return a kustomization that swaps the CoreDNS container image."""
    return IMAGE_PATCH_TEMPLATE.format(image=image)


def export(toolchain: Toolchain) -> Path:
    """Write the live CoreDNS deployment manifest and return its path."""
    kustomize_dir = toolchain.config.kustomize_dir
    target = kustomize_dir / EXPORT_FILE_NAME
    args = ["get", "deployment/coredns", "-n", "kube-system", "-o", "yaml"]
    try:
        kustomize_dir.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as handle:
            toolchain.kubectl.task(args).stdout(handle).stderr(sys.stderr).run()
    except OSError as exc:
        raise FilesystemError.from_os_error(f"write {target}", exc) from exc
    return target


def change_image(toolchain: Toolchain, image: str) -> None:
    """Point the CoreDNS deployment at ``image`` and restart its pods."""
    export(toolchain)
    kustomization = toolchain.config.kustomize_dir / KUSTOMIZATION_FILE_NAME
    try:
        kustomization.write_text(render_kustomization(image), encoding="utf-8")
    except OSError as exc:
        raise FilesystemError.from_os_error(f"write {kustomization}", exc) from exc

    with status_step(toolchain.console, done="kubectl result", failed="kubectl error"):
        result = toolchain.kubectl.run(
            ["apply", "-k", str(toolchain.config.kustomize_dir)]
        )
    toolchain.console.echo(result.stdout)

    toolchain.console.info("removing pods to force new image")
    remove_pods(toolchain, "k8s-app", "kube-dns")


def remove_pods(toolchain: Toolchain, key: str, value: str) -> None:
    """Delete pods in every namespace labelled ``key=value``."""
    with status_step(toolchain.console, done="kubectl result", failed="kubectl error"):
        result = toolchain.kubectl.run(["delete", "pod", "-A", "-l", f"{key}={value}"])
    toolchain.console.echo(result.stdout)
