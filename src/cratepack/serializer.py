"""Turn parsed nodes and flattened module bodies back into source text."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import tree_sitter

_WHITESPACE = b" \t\r\n"


def node_text(node: tree_sitter.Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8")


def span_text(nodes: Sequence[tree_sitter.Node], source: bytes) -> str:
    """Exact source slice from the first node's start to the last node's end."""
    if not nodes:
        return ""
    return source[nodes[0].start_byte : nodes[-1].end_byte].decode("utf-8")


def splice(
    source: bytes,
    start: int,
    end: int,
    cuts: Iterable[tuple[int, int]],
) -> str:
    """Slice ``source[start:end]`` with the ``cuts`` byte ranges removed.

    Whitespace following a cut is dropped along with it. A single space
    is put back when that would otherwise glue two tokens together.
    """
    out = bytearray()
    pos = start
    for cut_start, cut_end in sorted(cuts):
        if cut_start < pos or cut_end > end:
            continue
        out += source[pos:cut_start]
        pos = cut_end
        while pos < end and source[pos] in _WHITESPACE:
            pos += 1
        if (
            out
            and pos < end
            and out[-1] not in _WHITESPACE
            and source[pos] not in _WHITESPACE
        ):
            out += b" "
    out += source[pos:end]
    return out.decode("utf-8")


def render_module_header(name: str, public: bool) -> str:
    return f"pub mod {name}" if public else f"mod {name}"


def render_module_block(
    attributes: Sequence[str],
    name: str,
    public: bool,
    body: str,
) -> str:
    """Render ``[attrs] [pub] mod name { body }``.

    The body is not re-indented: that would alter multi-line string
    literals.
    """
    if body and not body.endswith("\n"):
        body += "\n"
    block = f"{render_module_header(name, public)} {{\n{body}}}"
    return "\n".join([*attributes, block])


def join_pieces(pieces: Iterable[str]) -> str:
    """Newline-join non-empty pieces, terminating the result."""
    kept = [p for p in pieces if p.strip()]
    return "\n".join(kept) + "\n" if kept else ""
