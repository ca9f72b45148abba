"""Text extraction from report PDFs using a cascade of backends."""
from __future__ import annotations

import asyncio
import logging
import os
import subprocess
import tempfile
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_PDF_BACKENDS = [
    "pdftotext",
    "pypdf",
    "pdfminer",
    "pikepdf+pypdf",
    "pikepdf+pdfminer",
]

DEFAULT_MIN_PDF_CHARS = 200


def _resolve_backend_order(prefer_backends: Iterable[str] | None) -> list[str]:
    if prefer_backends:
        order = [backend.strip() for backend in prefer_backends if backend and backend.strip()]
    else:
        env_value = os.environ.get("CARE_COSTS_PDF_BACKENDS")
        if env_value:
            order = [backend.strip() for backend in env_value.split(",") if backend.strip()]
        else:
            order = list(DEFAULT_PDF_BACKENDS)
    seen = set()
    unique_order: list[str] = []
    for backend in order:
        if backend not in seen:
            unique_order.append(backend)
            seen.add(backend)
    return unique_order or list(DEFAULT_PDF_BACKENDS)


def _dedupe(sequence: Iterable[str]) -> list[str]:
    seen = set()
    result: list[str] = []
    for item in sequence:
        if item and item not in seen:
            result.append(item)
            seen.add(item)
    return result


def resolve_min_pdf_chars(value: int | None) -> int:
    if value is not None:
        return max(value, 0)
    env_value = os.environ.get("CARE_COSTS_MIN_PDF_CHARS")
    if env_value:
        try:
            return max(int(env_value), 0)
        except ValueError:
            logger.debug("Invalid CARE_COSTS_MIN_PDF_CHARS value: %s", env_value)
    return DEFAULT_MIN_PDF_CHARS


def extract_pdf_text(
    path: str | Path,
    *,
    min_chars: int = DEFAULT_MIN_PDF_CHARS,
    prefer_backends: Iterable[str] | None = None,
) -> tuple[str, dict[str, Any]]:
    """Extract text from a PDF, falling through the backends in order.

    The first backend yielding at least ``min_chars`` characters without an
    error wins. Otherwise the longest text any backend produced is returned,
    with the reasons collected in ``meta["warnings"]``.
    """

    pdf_path = Path(path)
    try:
        byte_size = pdf_path.stat().st_size
    except OSError:
        byte_size = 0

    backend_order = _resolve_backend_order(prefer_backends)
    best_text = ""
    best_chars = 0
    best_backend = "none"
    best_repaired = False
    best_warnings: list[str] = []
    last_error: str | None = None
    all_warnings: list[str] = []

    with tempfile.TemporaryDirectory(prefix="care_costs_pdf_") as tmp_dir:
        repaired_path: Path | None = None
        repair_error: str | None = None

        for backend_name in backend_order:
            use_repair = backend_name.startswith("pikepdf+")
            base_backend = backend_name.split("+", 1)[-1] if use_repair else backend_name
            attempt_warnings: list[str] = []
            attempt_error: str | None = None
            target_path = pdf_path

            if use_repair:
                if repaired_path is None and repair_error is None:
                    try:
                        repaired_path = _repair_pdf_with_pikepdf(pdf_path, Path(tmp_dir))
                    except RuntimeError as exc:
                        repair_error = str(exc)
                        logger.debug("pikepdf repair failed for %s: %s", pdf_path, exc)
                if repaired_path is None:
                    last_error = repair_error or "pikepdf repair unavailable"
                    all_warnings.append(f"{backend_name}: pikepdf repair failed: {last_error}")
                    continue
                target_path = repaired_path

            try:
                text = _extract_with_backend(base_backend, target_path)
            except RuntimeError as exc:
                attempt_error = str(exc)
                logger.debug("PDF backend %s failed for %s: %s", backend_name, pdf_path, exc)
                text = ""

            chars = len(text)
            if text.strip():
                if chars > best_chars:
                    best_chars = chars
                    best_text = text
                    best_backend = backend_name
                    best_repaired = use_repair
                    best_warnings = list(attempt_warnings)
            else:
                attempt_warnings.append("extracted text empty")

            if chars < min_chars and text.strip():
                attempt_warnings.append(
                    f"extracted text shorter than min_chars ({chars} < {min_chars})"
                )

            if attempt_error:
                last_error = attempt_error

            all_warnings.extend(f"{backend_name}: {warning}" for warning in attempt_warnings)

            if chars >= min_chars and text.strip() and not attempt_error:
                break

    if best_chars >= min_chars and best_text.strip():
        meta = {
            "backend": best_backend,
            "bytes": byte_size,
            "chars": best_chars,
            "warnings": _dedupe(best_warnings),
            "repaired": best_repaired,
            "error": None,
        }
        return best_text, meta

    warnings_out = _dedupe(all_warnings)
    if best_chars:
        warnings_out.append(f"best text shorter than min_chars ({best_chars} < {min_chars})")
    meta = {
        "backend": best_backend,
        "bytes": byte_size,
        "chars": best_chars,
        "warnings": warnings_out,
        "repaired": best_repaired,
        "error": last_error,
    }
    return best_text, meta


def _extract_with_backend(backend: str, path: Path) -> str:
    if backend == "pdftotext":
        return _extract_with_pdftotext(path)
    if backend == "pypdf":
        return _extract_with_pypdf(path)
    if backend == "pdfminer":
        return _extract_with_pdfminer(path)
    raise RuntimeError(f"unknown backend: {backend}")


def _extract_with_pdftotext(path: Path) -> str:
    binary = os.environ.get("CARE_COSTS_PDFTOTEXT", "pdftotext")
    command = [binary, "-layout", "-enc", "UTF-8", str(path), "-"]
    try:
        completed = subprocess.run(command, check=True, capture_output=True)
    except FileNotFoundError as exc:
        raise RuntimeError(f"{binary} is not installed") from exc
    except subprocess.CalledProcessError as exc:
        message = exc.stderr.decode("utf-8", errors="replace").strip() if exc.stderr else ""
        raise RuntimeError(message or str(exc)) from exc
    except OSError as exc:
        raise RuntimeError(f"{binary} could not be run: {exc}") from exc
    return completed.stdout.decode("utf-8", errors="replace")


def _extract_with_pypdf(path: Path) -> str:
    try:
        from pypdf import PdfReader
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pypdf is not installed") from exc

    try:
        reader = PdfReader(str(path))
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc


def _extract_with_pdfminer(path: Path) -> str:
    try:
        from pdfminer.high_level import extract_text
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pdfminer.six is not installed") from exc

    try:
        text = extract_text(str(path))
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc
    return text or ""


def _repair_pdf_with_pikepdf(source: Path, temp_dir: Path) -> Path:
    try:
        from pikepdf import Pdf  # type: ignore[attr-defined]
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pikepdf is not installed") from exc

    repaired_path = temp_dir / "repaired.pdf"
    try:
        with Pdf.open(str(source)) as pdf:
            pdf.save(str(repaired_path))
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc
    return repaired_path


class PdfTextExtractor:
    """Async text source for the batch driver.

    The backend cascade blocks (subprocesses, pure-Python parsers), so each
    call runs on a worker thread and the event loop stays free to start or
    finish other files. The pool has ``max_workers`` threads so the batch
    concurrency limit is not capped by the loop's default executor.
    """

    def __init__(
        self,
        *,
        min_chars: int | None = None,
        prefer_backends: Iterable[str] | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.min_chars = resolve_min_pdf_chars(min_chars)
        self.prefer_backends = list(prefer_backends) if prefer_backends else None
        self.max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None

    def __enter__(self) -> PdfTextExtractor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    async def __call__(self, path: Path) -> str:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="care_costs_pdf"
            )
        loop = asyncio.get_running_loop()
        text, meta = await loop.run_in_executor(
            self._executor,
            partial(
                extract_pdf_text,
                path,
                min_chars=self.min_chars,
                prefer_backends=self.prefer_backends,
            ),
        )
        logger.debug(
            "Read %s with %s (%d chars, repaired=%s)",
            path.name,
            meta["backend"],
            meta["chars"],
            meta["repaired"],
        )
        if meta["chars"] < self.min_chars:
            logger.warning(
                "Short text for %s (%d chars): %s",
                path.name,
                meta["chars"],
                "; ".join(meta["warnings"]) or meta["error"] or "no backend produced text",
            )
        return text
