"""Configuration for the local sandbox provisioner."""

from __future__ import annotations

import dataclasses
import os
import typing as typ
from pathlib import Path

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _env_path(env: typ.Mapping[str, str], key: str, default: str) -> Path:
    value = env.get(key, "").strip()
    return Path(value or default)


@dataclasses.dataclass(frozen=True, slots=True)
class Config:
    """Configuration for the local sandbox provisioner.

    All paths are relative to the current working directory unless absolute.

    Attributes:
        bin_dir: Directory that receives downloaded executables.
        tars_dir: Directory that receives downloaded archives before a
            member is extracted from them.
        images_dir: Directory scanned recursively for image tarballs to load
            into the cluster.
        charts_dir: Directory whose sub-directories are installed as Helm
            charts.
        kustomize_dir: Directory used for exported and patched manifests.
        assume_yes: Skip the interactive download confirmation.
        log_level: femtologging level name.

    """

    bin_dir: Path = dataclasses.field(default_factory=lambda: Path("bin"))
    tars_dir: Path = dataclasses.field(default_factory=lambda: Path("tars"))
    images_dir: Path = dataclasses.field(default_factory=lambda: Path("images"))
    charts_dir: Path = dataclasses.field(default_factory=lambda: Path("charts"))
    kustomize_dir: Path = dataclasses.field(
        default_factory=lambda: Path("kustomize")
    )
    assume_yes: bool = False
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, env: typ.Mapping[str, str] | None = None) -> Config:
        """Build configuration from ``FENRIR_*`` environment variables."""
        source = os.environ if env is None else env
        return cls(
            bin_dir=_env_path(source, "FENRIR_BIN_DIR", "bin"),
            tars_dir=_env_path(source, "FENRIR_TARS_DIR", "tars"),
            images_dir=_env_path(source, "FENRIR_IMAGES_DIR", "images"),
            charts_dir=_env_path(source, "FENRIR_CHARTS_DIR", "charts"),
            kustomize_dir=_env_path(source, "FENRIR_KUSTOMIZE_DIR", "kustomize"),
            assume_yes=source.get("FENRIR_ASSUME_YES", "").strip().lower()
            in _TRUTHY,
            log_level=source.get("FENRIR_LOG_LEVEL", "").strip() or "WARNING",
        )
