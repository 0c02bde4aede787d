"""Command-line entry point for the local Kubernetes sandbox.

Usage:
    fenrir up                              # Fetch tools, start cluster, install charts
    fenrir down                            # Delete the cluster
    fenrir coredns export                  # Export the CoreDNS deployment
    fenrir coredns default --image IMAGE   # Override the CoreDNS image

Environment variables:
    FENRIR_ASSUME_YES  - Download missing or invalid binaries without asking
    FENRIR_LOG_LEVEL   - femtologging level (default: WARNING)
    FENRIR_BIN_DIR     - Directory for downloaded binaries (default: bin)
    FENRIR_TARS_DIR    - Directory for downloaded archives (default: tars)
    FENRIR_IMAGES_DIR  - Directory scanned for image tarballs (default: images)
    FENRIR_CHARTS_DIR  - Directory of Helm charts to install (default: charts)
    FENRIR_KUSTOMIZE_DIR - Directory for CoreDNS manifests (default: kustomize)
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import typing as typ

import httpx
from cyclopts import App, Parameter

from fenrir.config import Config
from fenrir.console import StatusConsole
from fenrir.context import Toolchain
from fenrir.errors import FenrirError
from fenrir.logging import configure_logging, get_logger, log_error, log_warning
from fenrir.sandbox import orchestration

logger = get_logger(__name__)

app = App(
    name="fenrir",
    help="Set up a local Kubernetes sandbox for end-to-end tests",
    version="0.1.0",
)
coredns_app = App(
    name="coredns",
    help="Customize the cluster's CoreDNS deployment",
)
app.command(coredns_app)

AssumeYes = typ.Annotated[bool, Parameter(name="--yes", env_var="FENRIR_ASSUME_YES")]
LogLevel = typ.Annotated[str | None, Parameter(env_var="FENRIR_LOG_LEVEL")]


def _execute(
    action: cabc.Callable[[Toolchain], int],
    *,
    assume_yes: bool,
    log_level: str | None,
) -> int:
    """Build the toolchain, run ``action``, and map failures to exit codes."""
    cfg = Config.from_env()
    cfg = dataclasses.replace(
        cfg,
        assume_yes=assume_yes or cfg.assume_yes,
        log_level=log_level or cfg.log_level,
    )
    level, invalid = configure_logging(cfg.log_level, force=True)
    if invalid:
        log_warning(logger, "unknown log level %r, using %s", cfg.log_level, level)

    console = StatusConsole()
    try:
        with httpx.Client(follow_redirects=True) as client:
            toolchain = Toolchain.from_config(cfg, client=client, console=console)
            return action(toolchain)
    except FenrirError as exc:
        console.err(str(exc))
        log_error(logger, "%s failed: %s", type(exc).__name__, exc)
        return 1


@app.command
def up(*, yes: AssumeYes = False, log_level: LogLevel = None) -> int:
    """Provision the sandbox.

    Fetches and verifies minikube, kubectl and helm, starts the cluster with
    the metallb add-on, loads local images and installs local charts. Safe to
    run repeatedly; verified binaries are not downloaded again.

    Args:
        yes: Download missing or invalid binaries without asking.
        log_level: femtologging level for diagnostic output.

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    return _execute(orchestration.provision, assume_yes=yes, log_level=log_level)


@app.command
def down(*, yes: AssumeYes = False, log_level: LogLevel = None) -> int:
    """Delete the sandbox cluster.

    Args:
        yes: Download minikube without asking if it is missing.
        log_level: femtologging level for diagnostic output.

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    return _execute(orchestration.teardown, assume_yes=yes, log_level=log_level)


@coredns_app.command(name="export")
def coredns_export(*, yes: AssumeYes = False, log_level: LogLevel = None) -> int:
    """Export the active CoreDNS deployment to the kustomize directory.

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    return _execute(orchestration.export_coredns, assume_yes=yes, log_level=log_level)


@coredns_app.command(name="default")
def coredns_default(
    *,
    image: typ.Annotated[str, Parameter(name=["--image", "-i"])],
    yes: AssumeYes = False,
    log_level: LogLevel = None,
) -> int:
    """Set a persistent default image for the cluster's CoreDNS.

    Args:
        image: Container image for the CoreDNS deployment.
        yes: Download kubectl without asking if it is missing.
        log_level: femtologging level for diagnostic output.

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    return _execute(
        lambda toolchain: orchestration.set_coredns_image(toolchain, image),
        assume_yes=yes,
        log_level=log_level,
    )


def main() -> int:
    """Entry point for the CLI."""
    return app()
