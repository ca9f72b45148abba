"""Text repairs for artifacts of PDF text extraction."""
from __future__ import annotations

import re
from collections.abc import Iterable

WORD_RE = re.compile(r"\w\S*")

# Applied to the reversed string: a whitespace character in front of an "m",
# unless the "m" ends "heim" or "trum".
REVERSED_SPACE_M_RE = re.compile(r"\sm(?!ieh)(?!urt)", re.IGNORECASE)

RECHTSFORM_SPLITS: tuple[tuple[str, str], ...] = (
    ("Ver waltung", "Verwaltung"),
    ("Verw altung", "Verwaltung"),
)
PFLEGELEISTUNG_SPLITS: tuple[tuple[str, str], ...] = (("M inuten", "Minuten"),)


def proper_case(value: str) -> str:
    """Uppercase the first character of every word and lowercase the rest.

    The first character is title-cased, so a leading "ß" becomes "Ss" and a
    second pass leaves the word unchanged.
    """

    def capitalize(match: re.Match[str]) -> str:
        word = match.group(0)
        return word[:1].title() + word[1:].lower()

    return WORD_RE.sub(capitalize, value)


def fix_m_problem(value: str) -> str:
    """Drop the space the text layer puts next to an "m".

    Institution names, streets and municipalities come out of the PDFs with a
    space glued to the letter m ("Gem einde"). Working on the reversed string
    lets a single lookahead protect the word endings "heim" and "trum", which
    are legitimately followed by a space.
    """
    reversed_value = value[::-1]
    reversed_value = REVERSED_SPACE_M_RE.sub("m", reversed_value)
    return reversed_value[::-1]


def repair_known_splits(value: str, splits: Iterable[tuple[str, str]]) -> str:
    for broken, fixed in splits:
        value = value.replace(broken, fixed, 1)
    return value


def clean_label(value: str) -> str:
    return proper_case(fix_m_problem(value.strip()))
