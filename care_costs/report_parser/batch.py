"""Batch driver: every PDF in a directory becomes one row of a CSV file."""
from __future__ import annotations

import asyncio
import logging
import os
import re
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import DirectoryReadError
from .parser import Record, parse_report
from .pdf_text import PdfTextExtractor
from .writer import write_records_csv

logger = logging.getLogger(__name__)

PDF_NAME_RE = re.compile(r".+\.pdf$")

# More parallel extractions than this brought the extraction tool down.
DEFAULT_CONCURRENCY = 100

TextExtractor = Callable[[Path], Awaitable[str]]


@dataclass
class BatchResult:
    records: list[Record]
    output_path: Path

    @property
    def columns(self) -> list[str]:
        return list(self.records[0].keys()) if self.records else []


def resolve_concurrency(value: int | None) -> int:
    if value is not None:
        return max(value, 1)
    env_value = os.environ.get("CARE_COSTS_CONCURRENCY")
    if env_value:
        try:
            return max(int(env_value), 1)
        except ValueError:
            logger.debug("Invalid CARE_COSTS_CONCURRENCY value: %s", env_value)
    return DEFAULT_CONCURRENCY


def is_pdf_name(name: str) -> bool:
    return PDF_NAME_RE.fullmatch(name) is not None


def list_pdf_files(directory: Path) -> list[Path]:
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise DirectoryReadError(f"cannot read directory {directory}: {exc}") from exc
    return [path for path in entries if is_pdf_name(path.name) and path.is_file()]


async def collect_records(
    files: Iterable[Path],
    *,
    extractor: TextExtractor,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[Record]:
    """Extract and parse ``files`` with at most ``concurrency`` in flight.

    Records are collected in completion order. The first failing file cancels
    the rest and its exception is raised.
    """
    records: list[Record] = []
    semaphore = asyncio.Semaphore(concurrency)

    async def process(path: Path) -> None:
        async with semaphore:
            text = await extractor(path)
            record = parse_report(text, path.name)
        records.append(record)
        logger.info("%s parsed.", path.name)

    tasks = [asyncio.create_task(process(path)) for path in files]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return records


async def run_batch(
    directory: Path,
    output_path: Path,
    *,
    extractor: TextExtractor | None = None,
    concurrency: int | None = None,
) -> BatchResult:
    pdf_files = list_pdf_files(directory)
    limit = resolve_concurrency(concurrency)
    logger.info("Processing %d PDF files from %s (limit %d)", len(pdf_files), directory, limit)
    owned: PdfTextExtractor | None = None
    if extractor is None:
        extractor = owned = PdfTextExtractor(max_workers=limit)
    try:
        records = await collect_records(
            pdf_files,
            extractor=extractor,
            concurrency=limit,
        )
    finally:
        if owned is not None:
            owned.close()
    write_records_csv(records, output_path)
    logger.info("Saved CSV.")
    return BatchResult(records=records, output_path=output_path)


def run(directory: Path, output_path: Path, **kwargs: Any) -> BatchResult:
    return asyncio.run(run_batch(directory, output_path, **kwargs))
