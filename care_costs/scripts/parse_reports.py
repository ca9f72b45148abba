#!/usr/bin/env python3
"""CLI entrypoint for turning nursing-home cost reports into a CSV table."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from care_costs.report_parser import batch, parse_pdf, parser, pdf_text
from care_costs.report_parser.errors import ReportParserError

DEFAULT_INPUT = Path("pdfs")
DEFAULT_OUTPUT = Path("output.csv")

logger = logging.getLogger("care_costs.report_parser.cli")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def parse_backend_list(value: str | None) -> list[str] | None:
    if not value:
        return None
    parts = [entry.strip() for entry in value.split(",") if entry.strip()]
    return parts or None


def resolve_input(path: str) -> Path:
    resolved = Path(path).expanduser()
    if not resolved.is_file():
        raise SystemExit(f"PDF not found: {resolved}")
    return resolved


def command_run(args: argparse.Namespace) -> None:
    concurrency = batch.resolve_concurrency(args.concurrency)
    with pdf_text.PdfTextExtractor(
        min_chars=args.min_pdf_chars,
        prefer_backends=parse_backend_list(args.pdf_backends),
        max_workers=concurrency,
    ) as extractor:
        result = batch.run(
            Path(args.input).expanduser(),
            Path(args.output).expanduser(),
            extractor=extractor,
            concurrency=concurrency,
        )
    logger.info(
        "Wrote %d records with %d columns to %s",
        len(result.records),
        len(result.columns),
        result.output_path,
    )


def command_dump(args: argparse.Namespace) -> None:
    path = resolve_input(args.file)
    text, meta = pdf_text.extract_pdf_text(
        path,
        min_chars=pdf_text.resolve_min_pdf_chars(args.min_pdf_chars),
        prefer_backends=parse_backend_list(args.pdf_backends),
    )
    print(text)
    print("-" * 72)
    print(f"backend: {meta['backend']} | chars: {meta['chars']} | repaired: {meta['repaired']}")
    for warning in meta["warnings"]:
        print(f"warning: {warning}")


def command_fields(args: argparse.Namespace) -> None:
    path = resolve_input(args.file)
    record = parse_pdf(
        path,
        min_chars=args.min_pdf_chars,
        prefer_backends=parse_backend_list(args.pdf_backends),
    )
    categories = parser.category_fields(record)
    for key, value in record.items():
        if key not in categories:
            print(f"{key}: {value}")
    print(f"categories: {len(categories)}")
    for key, value in categories.items():
        print(f"  {key}: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser_obj = argparse.ArgumentParser(description="Parse care-cost report PDFs into CSV")
    parser_obj.add_argument(
        "--input", default=str(DEFAULT_INPUT), help="Directory holding the report PDFs"
    )
    parser_obj.add_argument(
        "--output", default=str(DEFAULT_OUTPUT), help="Destination of the CSV table"
    )
    parser_obj.add_argument(
        "--concurrency",
        type=int,
        help="Maximum PDFs read at once (overrides CARE_COSTS_CONCURRENCY)",
    )
    parser_obj.add_argument(
        "--pdf-backends",
        help="Comma-separated PDF extraction backend order (overrides CARE_COSTS_PDF_BACKENDS)",
    )
    parser_obj.add_argument(
        "--min-pdf-chars",
        type=int,
        help="Minimum characters required from a PDF (overrides CARE_COSTS_MIN_PDF_CHARS)",
    )
    parser_obj.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser_obj.set_defaults(func=command_run)
    subparsers = parser_obj.add_subparsers(dest="command")

    dump_parser = subparsers.add_parser("dump", help="Print the extracted text of one PDF")
    dump_parser.add_argument("file", help="PDF to read")
    dump_parser.set_defaults(func=command_dump)

    fields_parser = subparsers.add_parser("fields", help="Print the fields parsed from one PDF")
    fields_parser.add_argument("file", help="PDF to parse")
    fields_parser.set_defaults(func=command_fields)

    return parser_obj


def main(argv: list[str] | None = None) -> None:
    parser_obj = build_parser()
    args = parser_obj.parse_args(argv)
    configure_logging(args.verbose)
    try:
        args.func(args)
    except ReportParserError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
