"""Optional rustfmt post-processing via the rustfmt CLI."""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path

from cratepack.config import Settings

logger = logging.getLogger(__name__)

_STDERR_TRUNCATION_CHARS = 500


def is_rustfmt_available(command: str = "rustfmt") -> bool:
    """Check if rustfmt is installed."""
    return shutil.which(command) is not None


async def format_code(code: str, settings: Settings | None = None) -> str:
    """Format Rust source with rustfmt.

    Returns the formatted text. If rustfmt is missing, fails, or times
    out, returns ``code`` unchanged (graceful degradation).
    """
    cfg = settings or Settings()
    if not is_rustfmt_available(cfg.rustfmt_path):
        logger.warning(
            "event=rustfmt_unavailable command=%s", cfg.rustfmt_path
        )
        return code

    with tempfile.TemporaryDirectory() as tmpdir:
        source_file = Path(tmpdir) / "bundle.rs"
        source_file.write_text(code, encoding="utf-8")

        proc = await asyncio.create_subprocess_exec(
            cfg.rustfmt_path,
            "--edition",
            cfg.rustfmt_edition,
            str(source_file),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=cfg.format_timeout_seconds
            )
        except TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning(
                "event=rustfmt_timeout seconds=%d",
                cfg.format_timeout_seconds,
            )
            return code

        if proc.returncode != 0:
            logger.warning(
                "event=rustfmt_failed returncode=%s error=%s",
                proc.returncode,
                stderr.decode(errors="replace")[:_STDERR_TRUNCATION_CHARS],
            )
            return code

        return source_file.read_text(encoding="utf-8")
