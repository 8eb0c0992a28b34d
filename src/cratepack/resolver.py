"""Locate the file behind a ``mod name;`` declaration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from cratepack.config import MODULE_DIR_FILE, MODULE_FILE_SUFFIX
from cratepack.errors import AmbiguousModuleError, ModuleFileNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionContext:
    """Which file is open, and whether it is the crate root.

    Immutable: each recursive expansion gets its own child context, so
    a failure deep in the tree never disturbs the caller's state.
    """

    directory: Path
    file_name: str
    is_root: bool = False

    @classmethod
    def for_root(cls, path: Path) -> ResolutionContext:
        return cls(directory=path.parent, file_name=path.name, is_root=True)

    @property
    def path(self) -> Path:
        return self.directory / self.file_name

    @property
    def module_dir(self) -> Path:
        """Directory holding this file's child modules.

        The crate root and ``mod.rs`` files own their directory;
        ``name.rs`` keeps its children under ``name/``.
        """
        if self.is_root or self.file_name == MODULE_DIR_FILE:
            return self.directory
        return self.directory / Path(self.file_name).stem

    def child(self, path: Path) -> ResolutionContext:
        return ResolutionContext(directory=path.parent, file_name=path.name)


def candidate_paths(context: ResolutionContext, name: str) -> tuple[Path, Path]:
    """``<dir>/<name>.rs`` and ``<dir>/<name>/mod.rs``, in that order."""
    base = context.module_dir
    return base / f"{name}{MODULE_FILE_SUFFIX}", base / name / MODULE_DIR_FILE


def resolve_module(context: ResolutionContext, name: str) -> Path:
    """Return the one existing file for module ``name``.

    Raises ModuleFileNotFoundError when neither layout exists and
    AmbiguousModuleError when both do.
    """
    candidates = candidate_paths(context, name)
    found = [p for p in candidates if p.is_file()]
    if not found:
        raise ModuleFileNotFoundError(name, candidates)
    if len(found) > 1:
        raise AmbiguousModuleError(name, candidates)

    logger.debug(
        "event=module_resolved module=%s parent=%s path=%s",
        name,
        context.path,
        found[0],
    )
    return found[0]
