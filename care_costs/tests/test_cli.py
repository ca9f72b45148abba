from __future__ import annotations

import csv
from pathlib import Path

import pytest

from care_costs.report_parser import pdf_text
from care_costs.scripts import parse_reports


class FixtureExtractor:
    created: list[FixtureExtractor] = []

    def __init__(self, **kwargs: object) -> None:
        self.options = kwargs
        self.closed = False
        FixtureExtractor.created.append(self)

    def __enter__(self) -> FixtureExtractor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True

    async def __call__(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")


def test_run_writes_csv(
    monkeypatch: pytest.MonkeyPatch, report_dir: Path, tmp_path: Path
) -> None:
    monkeypatch.setattr(parse_reports.pdf_text, "PdfTextExtractor", FixtureExtractor)
    output = tmp_path / "result.csv"
    parse_reports.main(
        ["--input", str(report_dir), "--output", str(output), "--concurrency", "2"]
    )
    with output.open(encoding="utf-8", newline="") as fh:
        rows = list(csv.reader(fh))
    assert rows[0][0] == "filename"
    assert sorted(row[0] for row in rows[1:]) == ["a_partial.pdf", "b_full.pdf"]
    extractor = FixtureExtractor.created[-1]
    assert extractor.options["max_workers"] == 2
    assert extractor.closed


def test_run_exits_on_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_reports.main(["--input", str(tmp_path / "missing"), "--output", str(tmp_path / "o.csv")])
    assert excinfo.value.code == 1


def test_fields_command_prints_record(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
    sample_report: str,
) -> None:
    pdf = tmp_path / "sonnenhof.pdf"
    pdf.write_bytes(b"%PDF-1.4\n")

    def fake_extract(path: Path, *, min_chars: int, prefer_backends: list[str] | None):
        return sample_report, {"backend": "pdftotext", "chars": len(sample_report)}

    monkeypatch.setattr(pdf_text, "extract_pdf_text", fake_extract)
    parse_reports.main(["--pdf-backends", "pdftotext", "fields", str(pdf)])
    out = capsys.readouterr().out
    assert "filename: sonnenhof.pdf" in out
    assert "kanton: ZH" in out
    assert "categories: 2" in out
    assert "  1.02: 123.45" in out


def test_dump_command_prints_text_and_backend(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    pdf = tmp_path / "report.pdf"
    pdf.write_bytes(b"%PDF-1.4\n")

    def fake_extract(path: Path, *, min_chars: int, prefer_backends: list[str] | None):
        assert prefer_backends == ["pypdf", "pdfminer"]
        meta = {"backend": "pypdf", "chars": 11, "repaired": False, "warnings": ["p1: odd"]}
        return "Kanton: ZH\n", meta

    monkeypatch.setattr(pdf_text, "extract_pdf_text", fake_extract)
    parse_reports.main(["--pdf-backends", "pypdf,pdfminer", "dump", str(pdf)])
    out = capsys.readouterr().out
    assert out.startswith("Kanton: ZH\n")
    assert "backend: pypdf | chars: 11 | repaired: False" in out
    assert "warning: p1: odd" in out


def test_single_file_commands_require_existing_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit, match="PDF not found"):
        parse_reports.main(["dump", str(tmp_path / "absent.pdf")])


def test_parse_backend_list() -> None:
    assert parse_reports.parse_backend_list(None) is None
    assert parse_reports.parse_backend_list(" , ") is None
    assert parse_reports.parse_backend_list("pypdf, pdfminer") == ["pypdf", "pdfminer"]
