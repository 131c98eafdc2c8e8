"""Compile, run, test, watch and grade a collection of small Rust exercises."""

__version__ = "5.5.1"