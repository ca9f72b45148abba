from __future__ import annotations

from pathlib import Path

import pytest

from care_costs.report_parser.errors import FileWriteError, SerializationError
from care_costs.report_parser.writer import render_records_csv, write_records_csv


def test_header_comes_from_first_record() -> None:
    records = [
        {"filename": "a.pdf", "kanton": "ZH"},
        {"filename": "b.pdf", "name": "Heim", "kanton": "BE"},
        {"filename": "c.pdf"},
    ]
    content = render_records_csv(records)
    assert content.splitlines() == [
        '"filename","kanton"',
        '"a.pdf","ZH"',
        '"b.pdf","BE"',
        '"c.pdf",""',
    ]


def test_values_with_quotes_and_commas_are_escaped() -> None:
    content = render_records_csv([{"filename": "a.pdf", "name": 'Heim "Rose", Bern'}])
    assert content.splitlines()[1] == '"a.pdf","Heim ""Rose"", Bern"'


def test_empty_collection_cannot_be_serialized() -> None:
    with pytest.raises(SerializationError):
        render_records_csv([])


def test_write_records_csv_creates_parent(tmp_path: Path) -> None:
    target = tmp_path / "out" / "output.csv"
    content = write_records_csv([{"filename": "a.pdf"}], target)
    assert target.read_text(encoding="utf-8") == content == '"filename"\n"a.pdf"\n'


def test_unwritable_target_is_a_file_write_error(tmp_path: Path) -> None:
    target = tmp_path / "output.csv"
    target.mkdir()
    with pytest.raises(FileWriteError):
        write_records_csv([{"filename": "a.pdf"}], target)
