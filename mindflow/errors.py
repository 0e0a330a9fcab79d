"""Exception types raised by mindflow."""

from __future__ import annotations


class MindflowError(Exception):
    """Base class for all mindflow errors."""


class ParseError(MindflowError, ValueError):
    """Raised when text cannot be parsed into a mind map tree.

    A parse either succeeds completely or raises; no partial tree is returned.
    """

    def __init__(self, message: str, format: str = ""):
        self.format = format
        if format:
            message = f"Invalid {format} input: {message}"
        super().__init__(message)


class UnsupportedFormatError(MindflowError, ValueError):
    """Raised for unknown formats or imports of export-only formats."""


class StorageError(MindflowError, OSError):
    """Raised when durable storage cannot be read or written."""


class DuplicateNodeError(MindflowError, ValueError):
    """Raised when a node list contains the same id more than once."""
