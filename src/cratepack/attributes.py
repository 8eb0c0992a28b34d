"""Attribute inspection and the doc-attribute filter.

Doc comments (``///``, ``//!``, ``/** */``, ``/*! */``) are sugar for
``#[doc = "..."]`` and are treated as doc attributes throughout.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

import tree_sitter

from cratepack.config import (
    CFG_ATTRIBUTE,
    DOC_ATTRIBUTE,
    OPAQUE_NODE_TYPES,
    TEST_CFG,
    ExpandOptions,
)
from cratepack.serializer import node_text, splice

_ATTRIBUTE_TYPES = frozenset({"attribute_item", "inner_attribute_item"})
_COMMENT_TYPES = frozenset({"line_comment", "block_comment"})

_ATTR_WRAPPER_RE = re.compile(r"^#\s*(!?)\s*\[(.*)\]$", re.DOTALL)
_PATH_RE = re.compile(r"^\s*((?:::\s*)?[A-Za-z_]\w*(?:\s*::\s*[A-Za-z_]\w*)*)")
_CFG_TEST_RE = re.compile(
    rf"^{CFG_ATTRIBUTE}\s*\(\s*{TEST_CFG}\s*,?\s*\)$", re.DOTALL
)
_DOC_VALUE_RE = re.compile(rf"^{DOC_ATTRIBUTE}\s*=\s*(.*)$", re.DOTALL)
_RAW_STRING_RE = re.compile(r'^r(#*)"(.*)"\1$', re.DOTALL)
_STRING_RE = re.compile(r'^"(.*)"$', re.DOTALL)
_ESCAPE_RE = re.compile(
    r"\\(?:x([0-7][0-9a-fA-F])|u\{([0-9a-fA-F_]{1,8})\}|(\r?\n\s*)|(.))",
    re.DOTALL,
)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
    "\\": "\\",
    "'": "'",
    '"': '"',
}


def is_attribute(node: tree_sitter.Node) -> bool:
    return node.type in _ATTRIBUTE_TYPES


def is_comment(node: tree_sitter.Node) -> bool:
    return node.type in _COMMENT_TYPES


def attribute_body(node: tree_sitter.Node, source: bytes) -> str:
    """Text between ``#[`` / ``#![`` and the closing ``]``."""
    m = _ATTR_WRAPPER_RE.match(node_text(node, source).strip())
    return m.group(2).strip() if m else ""


def attribute_path(node: tree_sitter.Node, source: bytes) -> str:
    m = _PATH_RE.match(attribute_body(node, source))
    return re.sub(r"\s+", "", m.group(1)) if m else ""


def is_doc_attribute(node: tree_sitter.Node, source: bytes) -> bool:
    """``#[doc ...]`` in any form, including ``#[doc(hidden)]``."""
    return is_attribute(node) and attribute_path(node, source) == DOC_ATTRIBUTE


def is_cfg_test(node: tree_sitter.Node, source: bytes) -> bool:
    """``#[cfg(test)]``: a cfg gate whose sole argument is ``test``."""
    return node.type == "attribute_item" and bool(
        _CFG_TEST_RE.match(attribute_body(node, source))
    )


def _comment_prefix(node: tree_sitter.Node, source: bytes) -> str:
    return source[node.start_byte : min(node.end_byte, node.start_byte + 4)].decode(
        "utf-8", errors="replace"
    )


def is_outer_doc_comment(node: tree_sitter.Node, source: bytes) -> bool:
    if node.type == "line_comment":
        prefix = _comment_prefix(node, source)
        return prefix.startswith("///") and not prefix.startswith("////")
    if node.type == "block_comment":
        prefix = _comment_prefix(node, source)
        return (
            prefix.startswith("/**")
            and not prefix.startswith("/***")
            and prefix != "/**/"
        )
    return False


def is_inner_doc_comment(node: tree_sitter.Node, source: bytes) -> bool:
    if node.type == "line_comment":
        return _comment_prefix(node, source).startswith("//!")
    if node.type == "block_comment":
        return _comment_prefix(node, source).startswith("/*!")
    return False


def is_doc(node: tree_sitter.Node, source: bytes) -> bool:
    """Doc attribute or doc comment."""
    return (
        is_doc_attribute(node, source)
        or is_outer_doc_comment(node, source)
        or is_inner_doc_comment(node, source)
    )


def doc_ranges(node: tree_sitter.Node, source: bytes) -> list[tuple[int, int]]:
    """Byte ranges of every doc attribute inside ``node``.

    Walks the whole subtree, so fields, variants, arms, closures,
    statements, parameters and nested items are all covered. Macro
    token trees are left alone.
    """
    ranges: list[tuple[int, int]] = []
    _collect_doc_ranges(node, source, ranges)
    return ranges


def _collect_doc_ranges(
    node: tree_sitter.Node,
    source: bytes,
    ranges: list[tuple[int, int]],
) -> None:
    if is_doc(node, source):
        ranges.append((node.start_byte, node.end_byte))
        return
    if node.type in OPAQUE_NODE_TYPES:
        return
    for child in node.children:
        _collect_doc_ranges(child, source, ranges)


def strip_doc_attributes(
    nodes: Sequence[tree_sitter.Node], source: bytes
) -> str:
    """Render the span covered by ``nodes`` without any doc attribute."""
    if not nodes:
        return ""
    ranges = [r for node in nodes for r in doc_ranges(node, source)]
    return splice(source, nodes[0].start_byte, nodes[-1].end_byte, ranges)


def _unescape(m: re.Match[str]) -> str:
    if m.group(1):
        return chr(int(m.group(1), 16))
    if m.group(2):
        return chr(int(m.group(2).replace("_", ""), 16))
    if m.group(3) is not None:
        return ""  # line continuation
    return _SIMPLE_ESCAPES.get(m.group(4), m.group(0))


def doc_attribute_text(node: tree_sitter.Node, source: bytes) -> str | None:
    """Literal text of ``#[doc = "..."]``, or None for other forms."""
    if not is_doc_attribute(node, source):
        return None
    m = _DOC_VALUE_RE.match(attribute_body(node, source))
    if not m:
        return None
    literal = m.group(1).strip()
    raw = _RAW_STRING_RE.match(literal)
    if raw:
        return raw.group(2)
    plain = _STRING_RE.match(literal)
    if plain:
        return _ESCAPE_RE.sub(_unescape, plain.group(1))
    return None


def doc_attribute_to_comment(
    node: tree_sitter.Node, source: bytes
) -> str | None:
    """Re-emit ``#[doc = "..."]`` as ``///`` lines (``//!`` when inner).

    Returns None when the text cannot round-trip through a line comment.
    """
    text = doc_attribute_text(node, source)
    if text is None or "\r" in text:
        return None
    inner = node.type == "inner_attribute_item"
    marker = "//!" if inner else "///"
    lines = text.split("\n")
    if not inner and any(line.startswith("/") for line in lines):
        return None
    return "\n".join(f"{marker}{line}" for line in lines)


def render_attributes(
    nodes: Sequence[tree_sitter.Node],
    source: bytes,
    options: ExpandOptions,
) -> list[str]:
    """Render file- or module-level attributes and comments, one per entry."""
    rendered: list[str] = []
    for node in nodes:
        if options.strip_docs and is_doc(node, source):
            continue
        if options.docs_as_comments:
            comment = doc_attribute_to_comment(node, source)
            if comment is not None:
                rendered.append(comment)
                continue
        rendered.append(node_text(node, source).rstrip("\r\n"))
    return rendered
