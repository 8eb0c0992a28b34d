"""Error taxonomy for crate expansion.

Every failure aborts the run; nothing is retried. Context is attached
with ``add_note`` while the error unwinds, so callers can still match
on the original exception type.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path


class ErrorKind(StrEnum):
    IO = "io"  # unreadable / missing source file
    PARSE = "parse"  # not valid Rust
    MODULE_NOT_FOUND = "module_not_found"
    AMBIGUOUS_MODULE = "ambiguous_module"  # both name.rs and name/mod.rs
    UNSUPPORTED_VISIBILITY = "unsupported_visibility"  # pub(..) mod
    METADATA = "metadata"  # Cargo.toml / crate name
    GRAMMAR = "grammar"  # tree-sitter grammar not installed
    UNKNOWN = "unknown"


class ExpansionError(Exception):
    """Base class for all failures raised while flattening a crate."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class SourceReadError(ExpansionError):
    kind = ErrorKind.IO

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"failed to read {path}: {reason}")
        self.path = path


class SourceParseError(ExpansionError):
    kind = ErrorKind.PARSE

    def __init__(self, path: Path | None, line: int, column: int) -> None:
        where = path if path is not None else "<source>"
        super().__init__(
            f"failed to parse {where}: syntax error at "
            f"line {line}, column {column}"
        )
        self.path = path
        self.line = line
        self.column = column


class ModuleFileNotFoundError(ExpansionError):
    kind = ErrorKind.MODULE_NOT_FOUND

    def __init__(self, name: str, candidates: tuple[Path, Path]) -> None:
        super().__init__(
            f"module `{name}` not found: tried {candidates[0]} "
            f"and {candidates[1]}"
        )
        self.name = name
        self.candidates = candidates


class AmbiguousModuleError(ExpansionError):
    kind = ErrorKind.AMBIGUOUS_MODULE

    def __init__(self, name: str, candidates: tuple[Path, Path]) -> None:
        super().__init__(
            f"module `{name}` is ambiguous: both {candidates[0]} "
            f"and {candidates[1]} exist"
        )
        self.name = name
        self.candidates = candidates


class UnsupportedVisibilityError(ExpansionError):
    kind = ErrorKind.UNSUPPORTED_VISIBILITY

    def __init__(self, name: str, visibility: str) -> None:
        super().__init__(
            f"module `{name}` uses unsupported visibility `{visibility}`; "
            "only private and `pub` modules can be inlined"
        )
        self.name = name
        self.visibility = visibility


class MetadataError(ExpansionError):
    kind = ErrorKind.METADATA


class GrammarUnavailableError(ExpansionError):
    kind = ErrorKind.GRAMMAR


def classify_error(error: BaseException) -> ErrorKind:
    """Map any exception raised during a run to an :class:`ErrorKind`."""
    if isinstance(error, ExpansionError):
        return error.kind
    if isinstance(error, (OSError, UnicodeDecodeError)):
        return ErrorKind.IO
    return ErrorKind.UNKNOWN


def describe_error(error: BaseException) -> str:
    """Render the message followed by the context notes, innermost first."""
    lines = [str(error) or type(error).__name__]
    notes = getattr(error, "__notes__", None) or []
    if notes:
        lines.append("")
        lines.append("Caused while:")
        lines.extend(f"    {i}: {note}" for i, note in enumerate(notes))
    return "\n".join(lines)
