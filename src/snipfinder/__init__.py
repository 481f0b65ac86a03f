"""SnipFinder - incremental fuzzy search over command snippets."""

__version__ = "0.1.0"
