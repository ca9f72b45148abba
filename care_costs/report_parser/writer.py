"""CSV output for extracted report records."""
from __future__ import annotations

import csv
import io
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from .errors import FileWriteError, SerializationError

logger = logging.getLogger(__name__)


def render_records_csv(records: Sequence[Mapping[str, str]]) -> str:
    """Render records as CSV text.

    The columns are the keys of the first record, in order. Keys that only
    later records carry are dropped from the output.
    """
    if not records:
        raise SerializationError("no records to write, cannot derive a CSV header")
    fieldnames = list(records[0].keys())
    if not fieldnames:
        raise SerializationError("first record has no fields, cannot derive a CSV header")
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=fieldnames,
        extrasaction="ignore",
        quoting=csv.QUOTE_ALL,
        lineterminator="\n",
    )
    try:
        writer.writeheader()
        writer.writerows(records)
    except csv.Error as exc:
        raise SerializationError(str(exc)) from exc
    dropped = {key for record in records[1:] for key in record if key not in fieldnames}
    if dropped:
        logger.debug("Columns missing from the header were dropped: %s", sorted(dropped))
    return buffer.getvalue()


def write_records_csv(records: Sequence[Mapping[str, str]], path: Path) -> str:
    content = render_records_csv(records)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8", newline="")
    except OSError as exc:
        raise FileWriteError(f"cannot write {path}: {exc}") from exc
    return content
