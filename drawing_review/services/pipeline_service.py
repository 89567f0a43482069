"""
pipeline_service.py — per-document pipeline and sequential batch runner.

  extract (bounded) → revisions + fields → layout → rules → ValidationResult

Documents run strictly one at a time in submission order. A document whose
extraction fails, times out or exceeds the size cap gets a rejected
PROCESSING_ERROR result; the batch moves on to the next document.
"""
import asyncio
import logging
from typing import Callable

from drawing_review.config import Settings, settings
from drawing_review.models.drawing_model import ExtractionResult
from drawing_review.models.template_model import RevisionTemplate
from drawing_review.models.validation_model import Finding, ValidationResult
from drawing_review.services.extractor_service import (
    BaseTextExtractor,
    ExtractionError,
    get_text_extractor,
)
from drawing_review.services.field_service import build_record
from drawing_review.services.layout_service import analyze_layout
from drawing_review.services.revision_service import parse_revisions
from drawing_review.services.validation_service import validate_record
from drawing_review.utils.text_utils import clean_text

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────
# Pure analysis
# ─────────────────────────────────────────────────────────────────

def analyze_extraction(
    extraction: ExtractionResult,
    template: RevisionTemplate | None = None,
    cfg: Settings | None = None,
    filename: str = "",
) -> ValidationResult:
    """(extracted text, fragments, template) → ValidationResult, no ambient state."""
    cfg = cfg or settings
    text = clean_text(extraction.full_text)

    revisions = parse_revisions(text)
    record = build_record(text, revisions, cfg)
    layout = analyze_layout(extraction.text_items, cfg)
    errors, warnings = validate_record(record, revisions, layout, template, cfg)

    result = ValidationResult(
        filename=filename,
        extracted_data=record,
        errors=errors,
        warnings=warnings,
        layout=layout,
    )
    logger.info(
        "[%s] %s: %d errors, %d warnings (%d/%d pages)",
        filename, result.status, len(errors), len(warnings),
        extraction.processed_pages, extraction.num_pages,
    )
    return result


# ─────────────────────────────────────────────────────────────────
# Single document
# ─────────────────────────────────────────────────────────────────

async def validate_document(
    filename: str,
    data: bytes,
    extractor: BaseTextExtractor | None = None,
    template: RevisionTemplate | None = None,
    cfg: Settings | None = None,
) -> ValidationResult:
    """
    Never raises: any failure becomes a rejected PROCESSING_ERROR result.
    Without an extractor the default pdfplumber adapter is used.
    """
    cfg = cfg or settings
    extractor = extractor or get_text_extractor()
    try:
        if len(data) > cfg.max_file_bytes:
            raise ExtractionError(
                f"El archivo supera el tamaño máximo de {cfg.MAX_FILE_SIZE_MB}MB ({len(data)} bytes)"
            )
        extraction = await asyncio.wait_for(
            extractor.extract_text_async(data, cfg.MAX_PAGES),
            timeout=cfg.EXTRACTION_TIMEOUT_SECONDS,
        )
        return analyze_extraction(extraction, template, cfg, filename)
    except asyncio.TimeoutError:
        logger.error("[%s] extraction timed out after %.1fs", filename, cfg.EXTRACTION_TIMEOUT_SECONDS)
        return make_failed_result(
            filename, f"Tiempo de extracción agotado ({cfg.EXTRACTION_TIMEOUT_SECONDS:g}s)"
        )
    except Exception as exc:
        logger.exception("[%s] processing failed", filename)
        return make_failed_result(filename, str(exc) or type(exc).__name__)


def make_failed_result(filename: str, cause: str) -> ValidationResult:
    return ValidationResult(
        filename=filename,
        extracted_data=None,
        errors=[Finding(
            type="PROCESSING_ERROR",
            message="Error al procesar el archivo",
            details=cause,
            severity="error",
        )],
        warnings=[],
    )


# ─────────────────────────────────────────────────────────────────
# Batch
# ─────────────────────────────────────────────────────────────────

async def validate_batch(
    documents: list[tuple[str, bytes]],
    extractor: BaseTextExtractor | None = None,
    template: RevisionTemplate | None = None,
    cfg: Settings | None = None,
    progress_cb: Callable[[int, int, str], None] | None = None,
) -> list[ValidationResult]:
    """
    One result per (filename, data) pair, in input order.
    progress_cb(done, total, filename) is called after each document.
    """
    extractor = extractor or get_text_extractor()
    total = len(documents)
    results: list[ValidationResult] = []
    for idx, (filename, data) in enumerate(documents, 1):
        logger.info("Validating %s (%d/%d)", filename, idx, total)
        results.append(await validate_document(filename, data, extractor, template, cfg))
        if progress_cb:
            progress_cb(idx, total, filename)

    rejected = sum(1 for r in results if r.status == "rejected")
    logger.info("Batch done: %d documents, %d rejected", total, rejected)
    return results
