"""Care-cost report parser package."""
from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from . import batch, errors, normalize, parser, pdf_text, writer

__all__ = [
    "batch",
    "errors",
    "normalize",
    "parser",
    "pdf_text",
    "writer",
    "parse_pdf",
]


def parse_pdf(
    path: Path,
    *,
    min_chars: int | None = None,
    prefer_backends: Iterable[str] | None = None,
) -> parser.Record:
    """Convenience wrapper: extract one PDF's text and parse it into a record."""
    text, _ = pdf_text.extract_pdf_text(
        path,
        min_chars=pdf_text.resolve_min_pdf_chars(min_chars),
        prefer_backends=prefer_backends,
    )
    return parser.parse_report(text, path.name)
