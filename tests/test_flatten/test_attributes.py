"""Tests for attribute inspection and the doc-attribute filter."""

from __future__ import annotations

import pytest
import tree_sitter

from cratepack.attributes import (
    attribute_path,
    doc_attribute_text,
    doc_attribute_to_comment,
    doc_ranges,
    is_cfg_test,
    is_doc,
    is_doc_attribute,
    is_inner_doc_comment,
    is_outer_doc_comment,
    render_attributes,
    strip_doc_attributes,
)
from cratepack.config import ExpandOptions
from cratepack.parsing import SourceUnit, parse_source


def _first_leading(src: str) -> tuple[SourceUnit, tree_sitter.Node]:
    unit = parse_source(src)
    return unit, unit.items[0].leading[0]


class TestAttributePredicates:
    @pytest.mark.parametrize(
        ("attr", "expected"),
        [
            ("#[cfg(test)]", True),
            ("#[cfg( test )]", True),
            ("#[cfg(not(test))]", False),
            ('#[cfg(any(test, feature = "x"))]', False),
            ("#[cfg(testing)]", False),
            ("#[test]", False),
        ],
    )
    def test_is_cfg_test(self, attr: str, expected: bool) -> None:
        unit, node = _first_leading(f"{attr}\nmod m {{}}\n")
        assert is_cfg_test(node, unit.source) is expected

    def test_inner_cfg_test_is_not_a_declaration_gate(self) -> None:
        unit = parse_source("#![cfg(test)]\nfn f() {}\n")
        assert is_cfg_test(unit.attributes[0], unit.source) is False

    @pytest.mark.parametrize(
        ("attr", "path"),
        [
            ('#[doc = "x"]', "doc"),
            ("#[doc(hidden)]", "doc"),
            ("#[rustfmt::skip]", "rustfmt::skip"),
            ("#[derive(Debug)]", "derive"),
            ("#[documented]", "documented"),
        ],
    )
    def test_attribute_path(self, attr: str, path: str) -> None:
        unit, node = _first_leading(f"{attr}\nfn f() {{}}\n")
        assert attribute_path(node, unit.source) == path

    def test_only_exact_doc_path_is_doc(self) -> None:
        unit, node = _first_leading("#[documented]\nfn f() {}\n")
        assert is_doc_attribute(node, unit.source) is False

    @pytest.mark.parametrize(
        ("comment", "outer", "inner"),
        [
            ("/// outer", True, False),
            ("//! inner", False, True),
            ("//// plain", False, False),
            ("// plain", False, False),
            ("/** outer */", True, False),
            ("/*! inner */", False, True),
            ("/*** plain */", False, False),
            ("/* plain */", False, False),
        ],
    )
    def test_doc_comment_classification(
        self, comment: str, outer: bool, inner: bool
    ) -> None:
        unit = parse_source(f"fn f() {{\n    {comment}\n    let x = 1;\n}}\n")
        fn_node = unit.items[0].node
        body = fn_node.child_by_field_name("body")
        assert body is not None
        node = next(c for c in body.children if c.type.endswith("comment"))
        assert is_outer_doc_comment(node, unit.source) is outer
        assert is_inner_doc_comment(node, unit.source) is inner
        assert is_doc(node, unit.source) is (outer or inner)


class TestDocText:
    def test_escapes_are_decoded(self) -> None:
        unit, node = _first_leading(
            '#[doc = "a\\tb \\"q\\" \\u{41}\\x42"]\nfn f() {}\n'
        )
        assert doc_attribute_text(node, unit.source) == 'a\tb "q" AB'

    def test_raw_string(self) -> None:
        unit, node = _first_leading('#[doc = r#"raw "text""#]\nfn f() {}\n')
        assert doc_attribute_text(node, unit.source) == 'raw "text"'

    def test_non_literal_value(self) -> None:
        unit, node = _first_leading(
            '#[doc = include_str!("README.md")]\nfn f() {}\n'
        )
        assert doc_attribute_text(node, unit.source) is None
        assert doc_attribute_to_comment(node, unit.source) is None

    def test_doc_list_form_has_no_text(self) -> None:
        unit, node = _first_leading("#[doc(hidden)]\nfn f() {}\n")
        assert doc_attribute_text(node, unit.source) is None

    def test_multiline_text_becomes_several_comment_lines(self) -> None:
        unit, node = _first_leading(
            '#[doc = "line one\\nline two"]\nfn f() {}\n'
        )
        assert (
            doc_attribute_to_comment(node, unit.source)
            == "///line one\n///line two"
        )

    def test_inner_doc_becomes_inner_comment(self) -> None:
        unit = parse_source('#![doc = " Crate."]\nfn f() {}\n')
        assert (
            doc_attribute_to_comment(unit.attributes[0], unit.source)
            == "//! Crate."
        )

    def test_line_starting_with_slash_is_kept_as_attribute(self) -> None:
        unit, node = _first_leading('#[doc = "/ not a comment"]\nfn f() {}\n')
        assert doc_attribute_to_comment(node, unit.source) is None


class TestStripDocAttributes:
    NESTED = (
        "/// Trait doc.\n"
        "pub trait Shape {\n"
        "    /// Method doc.\n"
        "    fn area(&self) -> f64;\n"
        "}\n"
        "\n"
        "impl Shape for Sq {\n"
        '    #[doc = "Const doc."]\n'
        "    const SIDES: u32 = 4;\n"
        "    /// Impl method doc.\n"
        "    fn area(&self) -> f64 {\n"
        "        /// Local doc.\n"
        "        let x = 1.0;\n"
        "        let f = |v: f64| {\n"
        "            /// Closure doc.\n"
        "            v * x\n"
        "        };\n"
        "        f(self.0)\n"
        "    }\n"
        "}\n"
    )

    def test_walk_reaches_every_nested_position(self) -> None:
        unit = parse_source(self.NESTED)
        ranges = [
            r for item in unit.items for n in item.nodes
            for r in doc_ranges(n, unit.source)
        ]
        assert len(ranges) == 6

    def test_stripped_members_keep_their_code(self) -> None:
        unit = parse_source(self.NESTED)
        out = "\n".join(
            strip_doc_attributes(item.nodes, unit.source) for item in unit.items
        )
        assert "doc" not in out.lower()
        assert "fn area(&self) -> f64;" in out
        assert "const SIDES: u32 = 4;" in out
        assert "let x = 1.0;" in out
        assert "v * x" in out
        parse_source(out)

    def test_macro_token_trees_are_left_alone(self) -> None:
        src = "m! {\n    /// kept\n    struct S;\n}\n"
        unit = parse_source(src)
        item = unit.items[0]
        assert strip_doc_attributes(item.nodes, unit.source) == src.rstrip("\n")

    def test_empty_span(self) -> None:
        assert strip_doc_attributes([], b"") == ""


class TestRenderAttributes:
    SRC = '//! Inner doc.\n#![doc = "Attr doc."]\n#![allow(unused)]\nfn f() {}\n'

    def test_keeps_everything_by_default(self) -> None:
        unit = parse_source(self.SRC)
        rendered = render_attributes(
            unit.attributes, unit.source, ExpandOptions()
        )
        assert rendered == [
            "//! Inner doc.",
            '#![doc = "Attr doc."]',
            "#![allow(unused)]",
        ]

    def test_strip_docs(self) -> None:
        unit = parse_source(self.SRC)
        rendered = render_attributes(
            unit.attributes, unit.source, ExpandOptions(strip_docs=True)
        )
        assert rendered == ["#![allow(unused)]"]

    def test_docs_as_comments(self) -> None:
        unit = parse_source(self.SRC)
        rendered = render_attributes(
            unit.attributes, unit.source, ExpandOptions(docs_as_comments=True)
        )
        assert rendered == [
            "//! Inner doc.",
            "//!Attr doc.",
            "#![allow(unused)]",
        ]
