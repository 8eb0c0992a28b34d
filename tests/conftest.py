"""Shared test fixtures: throw-away crates under tmp_path."""

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from cratepack.config import ExpandOptions
from cratepack.flattener import expand
from cratepack.resolver import ResolutionContext

FIXTURE_CRATE = Path(__file__).resolve().parent / "fixtures" / "sample_crate"


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write ``{relative_path: source}`` under tmp_path and return it.

    Sources are dedented so tests can use indented triple-quoted strings.
    """

    def _write(files: dict[str, str]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content), encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def expand_crate(
    write_tree: Callable[[dict[str, str]], Path],
) -> Callable[..., str]:
    """Write files under ``src/`` and expand ``src/lib.rs``."""

    def _expand(
        files: dict[str, str],
        options: ExpandOptions | None = None,
    ) -> str:
        root = write_tree({f"src/{k}": v for k, v in files.items()})
        ctx = ResolutionContext.for_root(root / "src" / "lib.rs")
        return expand(ctx, options)

    return _expand


@pytest.fixture
def sample_crate() -> Path:
    return FIXTURE_CRATE
