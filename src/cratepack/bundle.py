"""Assemble the final ``pub mod <crate> { ... }`` bundle and write it out."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import sys
import tempfile
from pathlib import Path

from cratepack.config import ExpandOptions, Settings
from cratepack.flattener import expand
from cratepack.formatting import format_code
from cratepack.manifest import fetch_crate_name, normalize_crate_name
from cratepack.parsing import read_source
from cratepack.resolver import ResolutionContext

logger = logging.getLogger(__name__)


def bundle_crate(
    crate_path: Path,
    options: ExpandOptions,
    settings: Settings | None = None,
) -> str:
    """Expand the crate's root file and wrap it in ``pub mod <name>``."""
    cfg = settings or Settings()
    root = crate_path / cfg.source_dir / cfg.entry_file
    try:
        expanded = expand(ResolutionContext.for_root(root), options)
    except Exception as exc:
        exc.add_note(f"failed to expand {root}")
        raise

    name = normalize_crate_name(
        fetch_crate_name(crate_path, cfg.manifest_file)
    )
    logger.info("event=crate_expanded crate=%s root=%s", name, root)
    return f"pub mod {name} {{\n{expanded}}}\n"


def assemble(
    crate_path: Path,
    options: ExpandOptions,
    settings: Settings | None = None,
    *,
    prelude: Path | None = None,
    postlude: Path | None = None,
    format_output: bool = False,
) -> str:
    """Prelude file + module bundle + postlude file, optionally formatted."""
    cfg = settings or Settings()
    parts: list[str] = []
    if prelude is not None:
        parts.append(_read_splice(prelude, "input"))
    parts.append(bundle_crate(crate_path, options, cfg))
    if postlude is not None:
        parts.append(_read_splice(postlude, "append"))
    code = "".join(parts)

    if format_output:
        code = asyncio.run(format_code(code, cfg))
    return code


def _read_splice(path: Path, role: str) -> str:
    try:
        text = read_source(path)
    except Exception as exc:
        exc.add_note(f"failed to read {role} file")
        raise
    return text if text.endswith("\n") else text + "\n"


def write_output(code: str, output: Path | None = None) -> None:
    """Write ``code`` to ``output`` atomically, or to stdout."""
    if output is None:
        sys.stdout.write(code)
        sys.stdout.flush()
        return

    fd, tmp_name = tempfile.mkstemp(
        dir=output.parent, prefix=f".{output.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(code)
        os.replace(tmp_name, output)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise
    logger.info("event=bundle_written path=%s bytes=%d", output, len(code))
