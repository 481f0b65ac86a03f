"""Exception hierarchy shared by the store, the engine and the front ends."""

from __future__ import annotations


class SnipFinderError(Exception):
    """Base class for SnipFinder failures."""


class ContentLoadError(SnipFinderError):
    """Raised when a snippet body cannot be read."""

    def __init__(self, fuzzy_index: str, reason: str = "") -> None:
        message = f"Unable to load content of {fuzzy_index}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.fuzzy_index = fuzzy_index


class StorageError(SnipFinderError):
    """Raised when saving, deleting or renaming a snippet fails."""


class SnippetNotFoundError(StorageError):
    """Raised when the addressed snippet does not exist."""


class InvalidSnippetNameError(StorageError, ValueError):
    """Raised for folder or snippet names that cannot be stored."""
