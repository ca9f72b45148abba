from __future__ import annotations

from pathlib import Path

import pytest

SAMPLE_REPORT = "\n".join(
    [
        "Kennzahlen Pflegeheime 2012",
        "ALTERSHEIM SONNENHOF                          Kanton: ZH",
        "BAHNHOFSTRASSE 12                             Rechtsform: Öffentlich-rechtliche Ver waltung",
        "8001 ZÜRICH                                   Pflegeleistung: 120 M inuten pro Tag",
        "",
        "1.01  Pflegetage                               12'345    11'000    10'500",
        "1.02  Aufenthaltsdauer                          123.45    67.89     10.11",
    ]
)

PARTIAL_REPORT = "GEM EINDEHAUS SONNENBERG    Kanton: BE\n"


@pytest.fixture()
def sample_report() -> str:
    return SAMPLE_REPORT


@pytest.fixture()
def report_dir(tmp_path: Path) -> Path:
    """A directory of text fixtures named like PDFs, plus entries to ignore."""
    directory = tmp_path / "pdfs"
    directory.mkdir()
    (directory / "a_partial.pdf").write_text(PARTIAL_REPORT, encoding="utf-8")
    (directory / "b_full.pdf").write_text(SAMPLE_REPORT, encoding="utf-8")
    (directory / "notes.txt").write_text(SAMPLE_REPORT, encoding="utf-8")
    (directory / "upper.PDF").write_text(SAMPLE_REPORT, encoding="utf-8")
    (directory / ".pdf").write_text(SAMPLE_REPORT, encoding="utf-8")
    (directory / "archive.pdf").mkdir()
    return directory


async def read_fixture(path: Path) -> str:
    return path.read_text(encoding="utf-8")


@pytest.fixture()
def fixture_extractor():
    return read_fixture
