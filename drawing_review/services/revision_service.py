"""
revision_service.py — revision table recovery from the cleaned page text.

Three patterns of decreasing specificity all run over the full text
(they complement each other, there is no first-match-wins here).
Hits are ordered by source position and deduplicated on
(number, description, date), so overlapping patterns that match the
same row collapse into a single entry.
"""
import logging
import re

from drawing_review.models.drawing_model import RevisionEntry
from drawing_review.utils.text_utils import DATE_SHAPE_RE, clean_text, strip_accents

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────
# Patterns: <number> <label> <DD/MM/YYYY>
# number keeps sub-numbering ("1.1"); a date fragment never starts a row.
# ─────────────────────────────────────────────────────
_NUMBER = r"(?<![\w/.])(\d{1,3}(?:\.\d{1,3})*)"
_DATE = r"(\d{1,2}/\d{1,2}/\d{4})(?![\d/])"

_STAGE_VOCABULARY = (
    r"ANTEPROYECTO",
    r"PROYECTO\s+PRELIMINAR",
    r"PROYECTO\s+DEFINITIVO",
    r"MODIFICACI[OÓ]N\s+DE\s+PROYECTO",
    r"MODIFICACI[OÓ]N",
    r"PERMISO\s+DE\s+EDIFICACI[OÓ]N",
    r"RECEPCI[OÓ]N\s+FINAL",
    r"PARA\s+CONSTRUCCI[OÓ]N",
    r"EMITIDO\s+PARA\s+REVISI[OÓ]N",
)

_UPPER = "A-ZÁÉÍÓÚÑÜ"

_REVISION_PATTERNS: list[re.Pattern] = [
    # 1) closed stage vocabulary, optional "N° n" suffix
    re.compile(
        rf"{_NUMBER}\s+((?:{'|'.join(_STAGE_VOCABULARY)})(?:\s+N[°º]\s*\d+)?)\s+{_DATE}",
        re.IGNORECASE,
    ),
    # 2) any upper-case phrase (case-sensitive on purpose)
    re.compile(
        rf"{_NUMBER}\s+([{_UPPER}][{_UPPER}.,°º-]*(?:\s+[{_UPPER}.,°º-]+){{0,8}})\s+{_DATE}"
    ),
    # 3) any capitalized phrase.
    # Over-matches unrelated numbered lists that end in a date; kept as the
    # recall fallback, hits are logged at debug level.
    re.compile(
        rf"{_NUMBER}\s+([{_UPPER}][^\d/:]{{1,80}}?)\s*[-–:]?\s*{_DATE}"
    ),
]

# Stage keywords on accent-stripped upper-case descriptions.
# modification is checked first: "MODIFICACION DE PROYECTO DEFINITIVO" is a modification.
STAGE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "modification": ("MODIFICACION", "MODIFICATION"),
    "final": ("PROYECTO DEFINITIVO", "DEFINITIVO", "FINAL DESIGN"),
    "preliminary": ("ANTEPROYECTO", "PRELIMINAR", "PRELIMINARY"),
}


def parse_revisions(text: str) -> list[RevisionEntry]:
    """
    Recover revision rows from the cleaned text.
    Zero rows is a valid outcome (revision history unknown).
    """
    text = clean_text(text)
    candidates: list[RevisionEntry] = []

    for pattern_no, pattern in enumerate(_REVISION_PATTERNS, 1):
        for m in pattern.finditer(text):
            number, raw_desc, date_str = m.group(1), m.group(2), m.group(3)
            if not DATE_SHAPE_RE.fullmatch(date_str):
                continue
            description = _clean_description(raw_desc)
            if not description:
                continue
            if pattern_no == 3:
                logger.debug("Loose revision match at %d: %r", m.start(), m.group(0))
            candidates.append(RevisionEntry(
                number=number,
                description=description,
                date=date_str,
                full_match=m.group(0),
                pattern_used=pattern_no,
                position=m.start(),
            ))

    candidates.sort(key=lambda e: (e.position, e.pattern_used))
    revisions = dedupe_revisions(candidates)
    logger.info("Revisions: %d found (%d raw hits)", len(revisions), len(candidates))
    return revisions


def dedupe_revisions(entries: list[RevisionEntry]) -> list[RevisionEntry]:
    """Keep the first entry per (number, description, date); order preserved."""
    seen: set[tuple[str, str, str]] = set()
    unique: list[RevisionEntry] = []
    for entry in entries:
        if entry.key in seen:
            continue
        seen.add(entry.key)
        unique.append(entry)
    return unique


def classify_stage(description: str) -> str | None:
    """"MODIFICACIÓN DE PROYECTO" → "modification", unknown label → None."""
    folded = strip_accents(clean_text(description)).upper()
    for stage, keywords in STAGE_KEYWORDS.items():
        if any(k in folded for k in keywords):
            return stage
    return None


def _clean_description(raw: str) -> str:
    return clean_text(raw).strip(" -–:.,")
