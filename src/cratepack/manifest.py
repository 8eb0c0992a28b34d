"""Derive the output module name from the crate's Cargo.toml."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

from cratepack.errors import MetadataError

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST = "Cargo.toml"


def normalize_crate_name(name: str) -> str:
    """Convert a package name into one usable as a Rust identifier."""
    return name.replace("-", "_")


def read_manifest_name(manifest_path: Path) -> str:
    """Return ``package.name`` from a Cargo manifest.

    Raises MetadataError if the file is unreadable, not TOML, or has no
    string package name.
    """
    try:
        content = manifest_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MetadataError(f"failed to read {manifest_path}: {exc}") from exc
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        raise MetadataError(f"failed to parse {manifest_path}: {exc}") from exc

    package = data.get("package")
    name = package.get("name") if isinstance(package, dict) else None
    if not isinstance(name, str) or not name:
        raise MetadataError(f"{manifest_path} has no package.name")
    return name


def fetch_crate_name(
    crate_path: Path, manifest_file: str = DEFAULT_MANIFEST
) -> str:
    """Crate name from the manifest, or the crate directory's name."""
    try:
        return read_manifest_name(crate_path / manifest_file)
    except MetadataError as exc:
        logger.info("event=manifest_fallback reason=%s", exc)

    name = crate_path.resolve().name
    if not name:
        raise MetadataError(
            f"failed to extract crate name from path {crate_path}"
        )
    return name
