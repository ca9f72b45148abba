"""Line-oriented field extraction for nursing-home cost reports."""
from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from .errors import ExtractionFault
from .normalize import (
    PFLEGELEISTUNG_SPLITS,
    RECHTSFORM_SPLITS,
    clean_label,
    repair_known_splits,
)

logger = logging.getLogger(__name__)

Record = dict[str, str]

LINE_BREAK_RE = re.compile(r"\r?\n")

KANTON_RE = re.compile(r"(.*)(Kanton: ([A-Z]{2}))")
RECHTSFORM_RE = re.compile(r"(.*)(Rechtsform: (.*))")
PFLEGELEISTUNG_RE = re.compile(r"(([0-9]{4})(.*))(Pflegeleistung: (.*))")
CATEGORY_RE = re.compile(r"^\s*([0-9]+\.[0-9]{2})(\s+\S.*)")
# Institution value, cantonal average, national average.
VALUE_TRIPLE_RE = re.compile(r"\s{2,}([0-9.*'-]+)\s+[0-9.*'-]+\s+[0-9.*'-]+")

FIELD_NAMES = (
    "filename",
    "name",
    "kanton",
    "strasse",
    "rechtsform",
    "plz",
    "gemeinde",
    "pflegeleistung",
)


@dataclass(frozen=True)
class FieldRule:
    """A pattern and the function that copies its groups into a record."""

    name: str
    pattern: re.Pattern[str]
    apply: Callable[[re.Match[str], Record, str], None]


def _apply_kanton(match: re.Match[str], record: Record, line: str) -> None:
    record["name"] = clean_label(match.group(1))
    record["kanton"] = match.group(3).strip()


def _apply_rechtsform(match: re.Match[str], record: Record, line: str) -> None:
    record["strasse"] = clean_label(match.group(1))
    record["rechtsform"] = repair_known_splits(match.group(3).strip(), RECHTSFORM_SPLITS)


def _apply_pflegeleistung(match: re.Match[str], record: Record, line: str) -> None:
    record["plz"] = match.group(2).strip()
    record["gemeinde"] = clean_label(match.group(3))
    record["pflegeleistung"] = repair_known_splits(
        match.group(5).strip(), PFLEGELEISTUNG_SPLITS
    )


def _apply_category(match: re.Match[str], record: Record, line: str) -> None:
    category = match.group(1).strip()
    values = VALUE_TRIPLE_RE.search(match.group(2))
    if values is None:
        raise ExtractionFault(record["filename"], category, line)
    # Only the first thousands separator goes, "1'234'567" keeps its second one.
    record[category] = values.group(1).replace("'", "", 1)


RULES: tuple[FieldRule, ...] = (
    FieldRule("kanton", KANTON_RE, _apply_kanton),
    FieldRule("rechtsform", RECHTSFORM_RE, _apply_rechtsform),
    FieldRule("pflegeleistung", PFLEGELEISTUNG_RE, _apply_pflegeleistung),
    FieldRule("category", CATEGORY_RE, _apply_category),
)


def iter_lines(text: str) -> Iterator[str]:
    yield from LINE_BREAK_RE.split(text)


def parse_report(text: str, filename: str) -> Record:
    """Extract one record from the text of a single report.

    Every line is run through every rule; a later match overwrites the fields
    of an earlier one. The returned record always holds ``filename``, even if
    nothing else matched.

    Raises:
        ExtractionFault: a cost category row lacks its three trailing values.
    """
    record: Record = {"filename": filename}
    hits: Counter[str] = Counter()
    for line in iter_lines(text):
        if not line:
            continue
        for rule in RULES:
            match = rule.pattern.search(line)
            if match:
                rule.apply(match, record, line)
                hits[rule.name] += 1
    logger.debug(
        "Extracted %d fields from %s (rule hits: %s)",
        len(record) - 1,
        filename,
        ", ".join(f"{rule.name}={hits[rule.name]}" for rule in RULES),
    )
    return record


def category_fields(record: Record) -> dict[str, str]:
    return {key: value for key, value in record.items() if key not in FIELD_NAMES}
