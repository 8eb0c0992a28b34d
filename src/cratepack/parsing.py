"""Parse Rust source files into tree-sitter backed source units."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

import tree_sitter

from cratepack.attributes import (
    is_attribute,
    is_cfg_test,
    is_comment,
    is_inner_doc_comment,
)
from cratepack.config import GRAMMAR_MODULE
from cratepack.errors import (
    GrammarUnavailableError,
    SourceParseError,
    SourceReadError,
    UnsupportedVisibilityError,
)

logger = logging.getLogger(__name__)

_BOM = "\ufeff"


class Visibility(StrEnum):
    PRIVATE = "private"
    PUBLIC = "public"


@dataclass
class Item:
    """A top-level node plus the outer attributes and comments before it."""

    nodes: list[tree_sitter.Node]

    @property
    def node(self) -> tree_sitter.Node:
        return self.nodes[-1]

    @property
    def leading(self) -> list[tree_sitter.Node]:
        return self.nodes[:-1]

    @property
    def attributes(self) -> list[tree_sitter.Node]:
        return [n for n in self.leading if n.type == "attribute_item"]

    @property
    def is_module(self) -> bool:
        return self.node.type == "mod_item"


@dataclass
class SourceUnit:
    """One parsed file (or inline module body), in source order."""

    source: bytes
    path: Path | None = None
    shebang: str | None = None
    attributes: list[tree_sitter.Node] = field(
        default_factory=lambda: list[tree_sitter.Node]()
    )
    items: list[Item] = field(default_factory=lambda: list[Item]())
    trailing: list[tree_sitter.Node] = field(
        default_factory=lambda: list[tree_sitter.Node]()
    )


@dataclass(frozen=True)
class ModuleDeclaration:
    """A ``mod`` item, either inline or referring to another file."""

    item: Item
    name: str
    visibility_text: str | None
    body: tree_sitter.Node | None

    @classmethod
    def from_item(cls, item: Item) -> ModuleDeclaration:
        node = item.node
        name_node = node.child_by_field_name("name")
        if name_node is None or name_node.text is None:
            raise SourceParseError(
                None, node.start_point[0] + 1, node.start_point[1] + 1
            )
        vis = next(
            (c for c in node.children if c.type == "visibility_modifier"),
            None,
        )
        return cls(
            item=item,
            name=name_node.text.decode("utf-8"),
            visibility_text=(
                vis.text.decode("utf-8") if vis is not None and vis.text else None
            ),
            body=node.child_by_field_name("body"),
        )

    @property
    def file_stem(self) -> str:
        """Name used on disk; raw identifiers drop their ``r#`` prefix."""
        return self.name.removeprefix("r#")

    @property
    def is_inline(self) -> bool:
        return self.body is not None

    @property
    def visibility(self) -> Visibility:
        if self.visibility_text is None:
            return Visibility.PRIVATE
        if "".join(self.visibility_text.split()) == "pub":
            return Visibility.PUBLIC
        raise UnsupportedVisibilityError(self.name, self.visibility_text)

    def is_test_only(self, source: bytes) -> bool:
        """True if the declaration itself carries ``#[cfg(test)]``."""
        return any(is_cfg_test(a, source) for a in self.item.attributes)


# ---------------------------------------------------------------------------
# Parser cache
# ---------------------------------------------------------------------------

_parser_cache: dict[str, tree_sitter.Parser] = {}


def _get_parser() -> tree_sitter.Parser:
    """Get or create the cached tree-sitter Rust parser."""
    if GRAMMAR_MODULE in _parser_cache:
        return _parser_cache[GRAMMAR_MODULE]

    try:
        mod = importlib.import_module(GRAMMAR_MODULE)
        capsule: object = mod.language()
        parser = tree_sitter.Parser(tree_sitter.Language(capsule))
    except (ImportError, AttributeError) as exc:
        raise GrammarUnavailableError(
            f"tree-sitter grammar {GRAMMAR_MODULE} is not available: {exc}"
        ) from exc
    _parser_cache[GRAMMAR_MODULE] = parser
    return parser


def read_source(path: Path) -> str:
    """Canonicalize ``path`` and read it as UTF-8."""
    try:
        resolved = path.resolve(strict=True)
    except OSError as exc:
        raise SourceReadError(path, f"failed to canonicalize: {exc}") from exc
    try:
        return resolved.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceReadError(resolved, str(exc)) from exc


def split_shebang(text: str) -> tuple[str | None, str]:
    """Separate a leading ``#!`` line from the rest of the file.

    ``#![...]`` is an inner attribute, not a shebang.
    """
    text = text.removeprefix(_BOM)
    if not text.startswith("#!") or text[2:].lstrip().startswith("["):
        return None, text
    line, newline, rest = text.partition("\n")
    return line.rstrip("\r"), newline + rest


def _first_error(node: tree_sitter.Node) -> tree_sitter.Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = _first_error(child)
        if found is not None:
            return found
    return node


def split_children(
    children: Sequence[tree_sitter.Node], source: bytes
) -> tuple[list[tree_sitter.Node], list[Item], list[tree_sitter.Node]]:
    """Group the named children of a file or ``{ ... }`` body.

    Returns (file-level attributes, items, trailing comments). Outer
    attributes and comments attach to the item that follows them.
    """
    attributes: list[tree_sitter.Node] = []
    items: list[Item] = []
    pending: list[tree_sitter.Node] = []

    for node in children:
        if node.type == "inner_attribute_item" or is_inner_doc_comment(
            node, source
        ):
            attributes.extend(pending)
            pending.clear()
            attributes.append(node)
        elif is_attribute(node) or is_comment(node):
            pending.append(node)
        else:
            items.append(Item(nodes=[*pending, node]))
            pending = []

    return attributes, items, pending


def parse_source(text: str, path: Path | None = None) -> SourceUnit:
    """Parse Rust source text into a :class:`SourceUnit`."""
    shebang, body = split_shebang(text)
    source = body.encode("utf-8")
    tree = _get_parser().parse(source)
    root = tree.root_node

    error = _first_error(root)
    if error is not None:
        raise SourceParseError(
            path, error.start_point[0] + 1, error.start_point[1] + 1
        )

    attributes, items, trailing = split_children(root.named_children, source)
    logger.debug(
        "event=source_parsed path=%s items=%d attributes=%d",
        path,
        len(items),
        len(attributes),
    )
    return SourceUnit(
        source=source,
        path=path,
        shebang=shebang,
        attributes=attributes,
        items=items,
        trailing=trailing,
    )


def parse_file(path: Path) -> SourceUnit:
    """Read and parse one source file."""
    return parse_source(read_source(path), path)


def body_unit(module: ModuleDeclaration, unit: SourceUnit) -> SourceUnit:
    """View an inline module's ``{ ... }`` body as a source unit."""
    assert module.body is not None
    attributes, items, trailing = split_children(
        module.body.named_children, unit.source
    )
    return SourceUnit(
        source=unit.source,
        path=unit.path,
        attributes=attributes,
        items=items,
        trailing=trailing,
    )

