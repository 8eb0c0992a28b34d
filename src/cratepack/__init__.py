"""Flatten a Rust library crate's module tree into one inline module."""

__version__ = "0.1.0"
