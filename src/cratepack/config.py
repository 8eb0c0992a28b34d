"""Environment-based configuration and application constants."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

_EDITIONS = ("2015", "2018", "2021", "2024")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Reads from .env file and CRATEPACK_* environment variables."""

    # Crate layout
    source_dir: str = "src"
    entry_file: str = "lib.rs"
    manifest_file: str = "Cargo.toml"

    # Transform defaults (CLI flags can only switch these on)
    remove_test: bool = False
    remove_doc_comment: bool = False
    format: bool = False

    # rustfmt
    rustfmt_path: str = "rustfmt"
    rustfmt_edition: str = "2021"
    format_timeout_seconds: int = 30

    # Logging
    log_level: str = "INFO"

    @field_validator("rustfmt_edition", mode="before")
    @classmethod
    def _validate_edition(cls, v: Any) -> Any:
        edition = str(v).strip()
        if edition not in _EDITIONS:
            raise ValueError(
                f"rustfmt_edition must be one of {', '.join(_EDITIONS)}"
            )
        return edition

    @field_validator("format_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("format_timeout_seconds must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}"
            )
        return level

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "CRATEPACK_",
        "extra": "ignore",
    }


class ExpandOptions(BaseModel):
    """Transform flags threaded through one expansion."""

    strip_docs: bool = False
    strip_tests: bool = False
    docs_as_comments: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        strip_docs: bool = False,
        strip_tests: bool = False,
        docs_as_comments: bool = False,
    ) -> ExpandOptions:
        """Merge CLI switches with configured defaults."""
        return cls(
            strip_docs=strip_docs or settings.remove_doc_comment,
            strip_tests=strip_tests or settings.remove_test,
            docs_as_comments=docs_as_comments,
        )


# tree-sitter grammar package for Rust sources
GRAMMAR_MODULE = "tree_sitter_rust"

# Child module layouts, tried relative to the parent's module directory
MODULE_FILE_SUFFIX = ".rs"
MODULE_DIR_FILE = "mod.rs"

# Attribute paths with special meaning to the flattener
DOC_ATTRIBUTE = "doc"
CFG_ATTRIBUTE = "cfg"
TEST_CFG = "test"

# Node types whose contents are raw macro tokens, never parsed syntax
OPAQUE_NODE_TYPES = frozenset({"token_tree", "token_tree_pattern"})
