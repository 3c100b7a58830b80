from pathlib import Path
from typing import Optional


class PatternError(Exception):
    """Base class for pattern storage and format errors."""


class PatternParseError(PatternError):
    """The text is not a recognisable pattern file."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}" if path else message)


class PatternNotFoundError(PatternError):
    def __init__(self, identifier: object) -> None:
        self.identifier = identifier
        super().__init__(f"Pattern not found: {identifier}")


class StorageWriteError(PatternError):
    """A pattern directory or file could not be created or written."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class UpsertError(PatternError):
    """The record store rejected a write; carries the store's own message."""
