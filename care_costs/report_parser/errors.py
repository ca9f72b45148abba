"""Error types raised while turning report PDFs into a table."""
from __future__ import annotations


class ReportParserError(Exception):
    """Base class for faults that abort a batch run."""


class DirectoryReadError(ReportParserError):
    """The input directory is missing or cannot be listed."""


class ExtractionFault(ReportParserError):
    """A category row matched but its trailing number triple did not."""

    def __init__(self, filename: str, category: str, line: str) -> None:
        self.filename = filename
        self.category = category
        self.line = line
        super().__init__(
            f"{filename}: category {category} has no trailing value triple: {line.strip()!r}"
        )


class SerializationError(ReportParserError):
    """The record collection could not be rendered as CSV."""


class FileWriteError(ReportParserError):
    """The CSV output could not be written."""
