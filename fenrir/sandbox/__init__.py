"""Kubernetes sandbox commands built on the acquisition core.

Each submodule wraps one external tool:

- sandbox.minikube: cluster lifecycle, metallb add-on, image loading
- sandbox.kubectl: Kubernetes client acquisition
- sandbox.helm: chart manager acquisition and chart installation
- sandbox.coredns: CoreDNS deployment export and image override
- sandbox.orchestration: end-to-end provisioning and teardown

Every operation takes a :class:`fenrir.context.Toolchain` as its first
argument.

"""

from __future__ import annotations
