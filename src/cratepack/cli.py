"""CLI entry point: ``cratepack CRATE_PATH``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from cratepack import __version__
from cratepack.bundle import assemble, write_output
from cratepack.config import ExpandOptions, Settings
from cratepack.errors import ExpansionError, classify_error, describe_error
from cratepack.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"cratepack {__version__}")
        return

    if args.crate_path is None:
        parser.print_help()
        sys.exit(2)

    settings = Settings()
    setup_logging("DEBUG" if args.verbose else settings.log_level)

    crate_path = Path(args.crate_path)
    if not crate_path.is_dir():
        print(f"Error: {crate_path} is not a directory", file=sys.stderr)
        sys.exit(1)

    options = ExpandOptions.from_settings(
        settings,
        strip_docs=args.remove_doc_comment,
        strip_tests=args.remove_test,
        docs_as_comments=args.doc_attrs_as_comments,
    )

    try:
        code = assemble(
            crate_path,
            options,
            settings,
            prelude=args.input,
            postlude=args.append,
            format_output=args.format or settings.format,
        )
        write_output(code, args.output)
    except (ExpansionError, OSError) as exc:
        logger.debug("event=bundle_failed kind=%s", classify_error(exc))
        print(f"Error: {describe_error(exc)}", file=sys.stderr)
        sys.exit(1)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cratepack",
        description=(
            "Flatten a Rust library crate into a single "
            "`pub mod <crate> { ... }` block."
        ),
    )
    parser.add_argument(
        "crate_path",
        nargs="?",
        default=None,
        help="Path to library crate to expand",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--format",
        "-f",
        action="store_true",
        help="Format expanded code. rustfmt must be executable",
    )
    parser.add_argument(
        "--remove-test",
        action="store_true",
        help="Remove all modules to which #[cfg(test)] is attached",
    )
    parser.add_argument(
        "--remove-doc-comment",
        action="store_true",
        help="Remove doc comments and #[doc] attributes",
    )
    parser.add_argument(
        "--doc-attrs-as-comments",
        action="store_true",
        help=(
            "Rewrite file- and module-level #[doc = \"...\"] "
            "attributes as /// comments"
        ),
    )
    parser.add_argument(
        "--input",
        "-i",
        type=Path,
        default=None,
        metavar="INPUT",
        help="File whose content is pasted before the expanded code",
    )
    parser.add_argument(
        "--append",
        type=Path,
        default=None,
        metavar="APPEND",
        help="File whose content is pasted after the expanded code",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        metavar="OUTPUT",
        help="File to write generated code to (default: stdout)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging on stderr",
    )
    return parser


if __name__ == "__main__":
    main()
