"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest

from fenrir.config import Config
from fenrir.context import Toolchain
from fenrir.sandbox import helm, kubectl, minikube
from tests.helpers import (
    FakeServer,
    RecordingConsole,
    ScriptedPrompt,
    SubprocessStub,
    sha256_hex,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

_SEEDED_TOOLS = (
    (minikube, "MINIKUBE"),
    (kubectl, "KUBECTL"),
    (helm, "HELM"),
)


@pytest.fixture
def console() -> RecordingConsole:
    """Provide a status console that records every line."""
    return RecordingConsole()


@pytest.fixture
def sandbox_config(tmp_path: Path) -> Config:
    """Return a configuration rooted in a temporary directory."""
    return Config(
        bin_dir=tmp_path / "bin",
        tars_dir=tmp_path / "tars",
        images_dir=tmp_path / "images",
        charts_dir=tmp_path / "charts",
        kustomize_dir=tmp_path / "kustomize",
    )


@pytest.fixture
def seeded_toolchain(
    sandbox_config: Config,
    console: RecordingConsole,
    monkeypatch: pytest.MonkeyPatch,
) -> Toolchain:
    """Build a toolchain whose binaries are already present and verified.

    Each tool is seeded with a small placeholder file and the module's pinned
    checksum is patched to match it, so no download is attempted.
    """
    sandbox_config.bin_dir.mkdir(parents=True)
    for module, prefix in _SEEDED_TOOLS:
        payload = f"#!/bin/sh\n# placeholder {prefix.lower()}\n".encode()
        target = sandbox_config.bin_dir / getattr(module, f"{prefix}_EXE_NAME")
        target.write_bytes(payload)
        target.chmod(0o755)
        monkeypatch.setattr(module, f"{prefix}_CHECKSUM", sha256_hex(payload))
    return Toolchain.from_config(
        sandbox_config,
        client=FakeServer().client(),
        console=console,
        prompt=ScriptedPrompt(),
    )


@pytest.fixture
def subprocess_stub(monkeypatch: pytest.MonkeyPatch) -> SubprocessStub:
    """Replace ``subprocess.run`` with a recording stub."""
    stub = SubprocessStub()
    monkeypatch.setattr("subprocess.run", stub)
    return stub
