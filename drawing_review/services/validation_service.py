"""
validation_service.py — rule engine over the extracted record.

Every rule is independent and always evaluated; findings are accumulated,
never short-circuited. A rule whose input is absent is skipped, and a rule
that blows up degrades to a RULE_FAILURE warning instead of aborting the
document.
"""
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Callable

from drawing_review.config import Settings, settings
from drawing_review.models.drawing_model import ExtractedRecord, RevisionEntry
from drawing_review.models.template_model import RevisionTemplate
from drawing_review.models.validation_model import Finding, LayoutReport
from drawing_review.services.revision_service import classify_stage
from drawing_review.utils.text_utils import fold, normalize_name, parse_date, strip_accents

logger = logging.getLogger(__name__)


@dataclass
class RuleContext:
    record: ExtractedRecord
    revisions: list[RevisionEntry]
    layout: LayoutReport | None
    template: RevisionTemplate | None
    cfg: Settings


def _error(type_: str, message: str, details: str = "") -> Finding:
    return Finding(type=type_, message=message, details=details, severity="error")


def _warning(type_: str, message: str, details: str = "") -> Finding:
    return Finding(type=type_, message=message, details=details, severity="warning")


# ─────────────────────────────────────────────────────────────────
# Architect name
# ─────────────────────────────────────────────────────────────────

def classify_architect_name(name: str, reference: str) -> tuple[str, str]:
    """
    Classify a mismatching architect name. Priority order, first hit wins:
      1. reference + one trailing letter   → ARCHITECT_NAME_TYPO
      2. reference with accents dropped    → ARCHITECT_NAME_ACCENT
      3. ordered subset of reference words → ARCHITECT_NAME_INCOMPLETE
      4. anything else                     → ARCHITECT_NAME_MISMATCH
    Returns (finding type, problem description).
    """
    n, r = name.casefold(), reference.casefold()
    if len(n) == len(r) + 1 and n.startswith(r) and n[-1].isalpha():
        surname = name.split()[-1]
        return "ARCHITECT_NAME_TYPO", f'letra extra "{name[-1]}" al final de "{surname}"'

    name_words = name.split()
    ref_words = reference.split()

    if fold(name) == fold(reference):
        differing = [
            (nw, rw) for nw, rw in zip(name_words, ref_words)
            if nw.casefold() != rw.casefold()
        ]
        # only a dropped diacritic; an added one is a plain mismatch
        if all(strip_accents(nw) == nw for nw, _ in differing):
            wrong = [f'"{nw}" debería ser "{rw}"' for nw, rw in differing]
            return "ARCHITECT_NAME_ACCENT", "falta tilde: " + ", ".join(wrong)

    folded_name = [fold(w) for w in name_words]
    folded_ref = [fold(w) for w in ref_words]
    remaining = iter(folded_ref)
    if len(folded_name) < len(folded_ref) and all(w in remaining for w in folded_name):
        missing = [rw for rw in ref_words if fold(rw) not in folded_name]
        return "ARCHITECT_NAME_INCOMPLETE", ", ".join(f'falta "{w}"' for w in missing)

    problems = [f'falta "{rw}"' for rw in ref_words if rw.casefold() not in n.split()]
    problems += [f'sobra "{nw}"' for nw in name_words if nw.casefold() not in r.split()]
    if not problems:
        problems = ["orden de los nombres distinto"]
    return "ARCHITECT_NAME_MISMATCH", ", ".join(problems)


_ARCHITECT_MESSAGES = {
    "ARCHITECT_NAME_TYPO": "ERROR EN NOMBRE DE ARQUITECTO: error de tipeo, letra extra",
    "ARCHITECT_NAME_ACCENT": "ERROR EN NOMBRE DE ARQUITECTO: falta tilde",
    "ARCHITECT_NAME_INCOMPLETE": "ERROR EN NOMBRE DE ARQUITECTO: nombre incompleto",
    "ARCHITECT_NAME_MISMATCH": "ERROR EN NOMBRE DE ARQUITECTO: no coincide con el nombre estándar",
}


def check_architect(ctx: RuleContext) -> list[Finding]:
    reference = normalize_name(ctx.cfg.REFERENCE_ARCHITECT)
    if not reference:
        return []
    name = normalize_name(ctx.record.architect)
    if not name:
        return [_warning(
            "ARCHITECT_NAME_NOT_FOUND",
            "No se pudo extraer el nombre del arquitecto",
            f'Estándar: "{reference}"',
        )]
    if name.casefold() == reference.casefold():
        return []

    type_, problem = classify_architect_name(name, reference)
    return [_error(
        type_,
        _ARCHITECT_MESSAGES[type_],
        f'Encontrado: "{name}" | Estándar: "{reference}" | Problema: {problem}',
    )]


# ─────────────────────────────────────────────────────────────────
# Project name
# ─────────────────────────────────────────────────────────────────

def check_project_name(ctx: RuleContext) -> list[Finding]:
    project = ctx.record.project_name.strip()
    if len(project) < ctx.cfg.MIN_PROJECT_NAME_LENGTH:
        return [_warning(
            "PROJECT_NAME_WARNING",
            "Nombre de proyecto faltante o demasiado corto",
            f'Encontrado: "{project}"',
        )]

    reference = ctx.cfg.REFERENCE_PROJECT_NAME.strip()
    if reference and fold(reference) not in fold(project):
        return [_error(
            "PROJECT_NAME_ERROR",
            "Nombre de proyecto incorrecto",
            f'Esperado: "{reference}", Encontrado: "{project}"',
        )]
    return []


# ─────────────────────────────────────────────────────────────────
# Revision dates
# ─────────────────────────────────────────────────────────────────

def check_duplicate_dates(ctx: RuleContext) -> list[Finding]:
    counts = Counter(r.date for r in ctx.revisions)
    duplicated = [d for d, c in counts.items() if c > 1]
    if not duplicated:
        return []
    return [_error(
        "DUPLICATE_DATES",
        "FECHAS DUPLICADAS: varias revisiones comparten la misma fecha",
        "Fechas repetidas: " + ", ".join(duplicated),
    )]


def check_invalid_dates(ctx: RuleContext) -> list[Finding]:
    return [
        _error(
            "INVALID_DATE",
            "FECHA INVÁLIDA: fecha imposible detectada",
            f'Revisión {r.number} "{r.description}": {r.date}',
        )
        for r in ctx.revisions
        if parse_date(r.date) is None
    ]


def check_stage_sequence(ctx: RuleContext) -> list[Finding]:
    """
    Chronology between named stages. Fires only when both stages exist;
    completeness is the template rule's job.
    """
    staged: list[tuple[str | None, RevisionEntry, date | None]] = [
        (classify_stage(r.description), r, parse_date(r.date)) for r in ctx.revisions
    ]

    def first(stage: str) -> tuple[RevisionEntry, date] | None:
        return next(((r, d) for s, r, d in staged if s == stage and d is not None), None)

    final = first("final")
    if final is None:
        return []
    final_rev, final_date = final
    findings: list[Finding] = []

    for stage, rev, rev_date in staged:
        if stage != "modification" or rev_date is None:
            continue
        detail = (
            f'"{final_rev.description}": {final_rev.date} | '
            f'"{rev.description}": {rev.date}'
        )
        if rev_date == final_date:
            findings.append(_error(
                "SAME_DATE_LOGIC",
                "ERROR DE FECHAS: la modificación no puede tener la misma fecha que el proyecto definitivo",
                detail,
            ))
        elif rev_date < final_date:
            findings.append(_error(
                "SEQUENCE_VIOLATION",
                "ERROR DE SECUENCIA: la modificación es anterior al proyecto definitivo",
                detail,
            ))

    preliminary = first("preliminary")
    if preliminary is not None:
        pre_rev, pre_date = preliminary
        if not final_date > pre_date:
            findings.append(_error(
                "SEQUENCE_VIOLATION",
                "ERROR DE SECUENCIA: el proyecto definitivo debe ser posterior al anteproyecto",
                f'"{pre_rev.description}": {pre_rev.date} | "{final_rev.description}": {final_rev.date}',
            ))
    return findings


# ─────────────────────────────────────────────────────────────────
# Template conformance
# ─────────────────────────────────────────────────────────────────

def label_matches(label: str, description: str) -> bool:
    """
    Case/accent-insensitive: label contained in the description, or every
    significant label word (longer than 3 letters) present in it.
    """
    l, d = fold(label), fold(description)
    if l in d:
        return True
    keywords = [w for w in l.split() if len(w) > 3]
    return bool(keywords) and all(k in d for k in keywords)


def check_template(ctx: RuleContext) -> list[Finding]:
    if ctx.template is None:
        return []
    findings: list[Finding] = []
    for entry in ctx.template.required_entries:
        if any(label_matches(entry.description, r.description) for r in ctx.revisions):
            continue
        findings.append(_error(
            "REQUIRED_REVISION_MISSING",
            "REVISIÓN REQUERIDA FALTANTE",
            f'Plantilla "{ctx.template.name}": revisión {entry.number} "{entry.description}" no encontrada',
        ))
    return findings


# ─────────────────────────────────────────────────────────────────
# Layout / content / scale
# ─────────────────────────────────────────────────────────────────

def check_layout(ctx: RuleContext) -> list[Finding]:
    if ctx.layout is None or not ctx.layout.has_alignment_issues:
        return []
    return [_warning(
        "LAYOUT_WARNING",
        "VERIFICAR FORMATO: problemas de alineación en la viñeta",
        "; ".join(ctx.layout.formatting_problems),
    )]


def check_text_content(ctx: RuleContext) -> list[Finding]:
    length = len(ctx.record.raw_text)
    if length >= ctx.cfg.MIN_TEXT_LENGTH:
        return []
    return [_warning(
        "LOW_TEXT_CONTENT",
        "Poco texto extraído: el PDF podría ser solo imagen",
        f"{length} caracteres extraídos, mínimo esperado {ctx.cfg.MIN_TEXT_LENGTH}",
    )]


def check_detail_scale(ctx: RuleContext) -> list[Finding]:
    expected = ctx.cfg.DETAIL_SCALES.get(ctx.record.document_type)
    if not expected or ctx.record.scale == expected:
        return []
    return [_warning(
        "SCALE_WARNING",
        f"Escala no estándar para {ctx.record.document_type}",
        f'Esperado: "{expected}", Encontrado: "{ctx.record.scale or "sin escala"}"',
    )]


RULES: list[Callable[[RuleContext], list[Finding]]] = [
    check_layout,
    check_invalid_dates,
    check_duplicate_dates,
    check_stage_sequence,
    check_project_name,
    check_architect,
    check_template,
    check_detail_scale,
    check_text_content,
]


# ─────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────

def validate_record(
    record: ExtractedRecord,
    revisions: list[RevisionEntry] | None = None,
    layout: LayoutReport | None = None,
    template: RevisionTemplate | None = None,
    cfg: Settings | None = None,
) -> tuple[list[Finding], list[Finding]]:
    """
    Run every rule and split the findings by severity.
    revisions defaults to record.revision_dates.
    """
    ctx = RuleContext(
        record=record,
        revisions=record.revision_dates if revisions is None else revisions,
        layout=layout,
        template=template,
        cfg=cfg or settings,
    )
    errors: list[Finding] = []
    warnings: list[Finding] = []

    for rule in RULES:
        try:
            findings = rule(ctx)
        except Exception as exc:
            logger.exception("Rule %s failed", rule.__name__)
            findings = [_warning("RULE_FAILURE", f"No se pudo evaluar la regla {rule.__name__}", str(exc))]
        for f in findings:
            (errors if f.severity == "error" else warnings).append(f)

    logger.debug("Validation: %d errors, %d warnings", len(errors), len(warnings))
    return errors, warnings
