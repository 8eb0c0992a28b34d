"""Recursively inline a crate's module files into one source tree."""

from __future__ import annotations

import logging

import tree_sitter

from cratepack.attributes import render_attributes, strip_doc_attributes
from cratepack.config import ExpandOptions
from cratepack.errors import ExpansionError
from cratepack.parsing import (
    Item,
    ModuleDeclaration,
    SourceUnit,
    Visibility,
    body_unit,
    parse_file,
)
from cratepack.resolver import ResolutionContext, resolve_module
from cratepack.serializer import join_pieces, render_module_block, span_text

logger = logging.getLogger(__name__)


def expand(
    context: ResolutionContext,
    options: ExpandOptions | None = None,
) -> str:
    """Expand the file identified by ``context`` with every module inlined."""
    opts = options or ExpandOptions()
    unit = parse_file(context.path)
    logger.debug(
        "event=expand_file path=%s root=%s", context.path, context.is_root
    )

    text = _expand_unit(unit, context, opts)
    if unit.shebang is not None:
        return f"{unit.shebang}\n{text}"
    return text


def _expand_unit(
    unit: SourceUnit,
    context: ResolutionContext,
    options: ExpandOptions,
) -> str:
    pieces = render_attributes(unit.attributes, unit.source, options)
    for item in unit.items:
        pieces.append(_expand_item(item, unit, context, options))
    if unit.trailing:
        pieces.append(_render_nodes(unit.trailing, unit, options))
    return join_pieces(pieces)


def _render_nodes(
    nodes: list[tree_sitter.Node],
    unit: SourceUnit,
    options: ExpandOptions,
) -> str:
    """Item text, passed through the doc filter when requested."""
    if options.strip_docs:
        return strip_doc_attributes(nodes, unit.source)
    return span_text(nodes, unit.source)


def _expand_item(
    item: Item,
    unit: SourceUnit,
    context: ResolutionContext,
    options: ExpandOptions,
) -> str:
    if not item.is_module:
        return _render_nodes(item.nodes, unit, options)

    module = ModuleDeclaration.from_item(item)
    if options.strip_tests and module.is_test_only(unit.source):
        logger.debug(
            "event=test_module_skipped module=%s parent=%s",
            module.name,
            context.path,
        )
        return ""

    public = module.visibility == Visibility.PUBLIC
    attributes = render_attributes(item.leading, unit.source, options)

    if module.is_inline:
        # Inline bodies keep the enclosing file's resolution context.
        body = _expand_unit(body_unit(module, unit), context, options)
    else:
        body = _expand_external(module, context, options)

    return render_module_block(attributes, module.name, public, body)


def _expand_external(
    module: ModuleDeclaration,
    context: ResolutionContext,
    options: ExpandOptions,
) -> str:
    try:
        path = resolve_module(context, module.file_stem)
        return expand(context.child(path), options)
    except ExpansionError as exc:
        exc.add_note(
            f"failed to expand child module `{module.name}` of {context.path}"
        )
        raise
