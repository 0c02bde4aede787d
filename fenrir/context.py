"""Process-wide services shared by every command.

The toolchain is built once at startup and passed explicitly to each
operation. Fetchers hold no per-run state, so a single instance per binary
serves the whole process.
"""

from __future__ import annotations

import dataclasses
import typing as typ

import httpx

from fenrir.console import StatusConsole
from fenrir.fetch import Downloadable
from fenrir.sandbox import helm, kubectl, minikube

if typ.TYPE_CHECKING:
    from fenrir.config import Config
    from fenrir.fetch import Artifact, FetchOptions, Prompt


@dataclasses.dataclass(frozen=True, slots=True)
class Toolchain:
    """Configured fetchers and output channels for one run.

    Attributes:
        config: Resolved configuration.
        console: Status line renderer shared by all steps.
        minikube: Cluster manager binary.
        kubectl: Kubernetes client binary.
        helm: Chart manager binary, extracted from its release tarball.

    """

    config: Config
    console: StatusConsole
    minikube: Downloadable
    kubectl: Downloadable
    helm: Downloadable

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        client: httpx.Client | None = None,
        console: StatusConsole | None = None,
        prompt: Prompt | None = None,
    ) -> Toolchain:
        """Construct every fetcher for ``config``.

        Parameters
        ----------
        config : Config
            Directory layout and interaction settings.
        client : httpx.Client | None, optional
            HTTP client for downloads. A redirect-following client is
            created when omitted.
        console : StatusConsole | None, optional
            Status output; defaults to stdout.
        prompt : Callable[[str], str] | None, optional
            Confirmation source; defaults to standard input.

        """
        http = client or httpx.Client(follow_redirects=True)
        status = console or StatusConsole()

        def bind(
            artifact: Artifact, defaults: FetchOptions | None = None
        ) -> Downloadable:
            return Downloadable(
                artifact,
                client=http,
                console=status,
                prompt=prompt,
                assume_yes=config.assume_yes,
                defaults=defaults,
            )

        return cls(
            config=config,
            console=status,
            minikube=bind(minikube.artifact(config)),
            kubectl=bind(kubectl.artifact(config)),
            helm=bind(helm.artifact(config), helm.FETCH_DEFAULTS),
        )
