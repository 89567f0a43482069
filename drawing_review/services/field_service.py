"""
field_service.py — title-block text → ExtractedRecord fields.

Every field owns an ordered list of FieldRule (most specific first).
match_first() walks the list and the first rule that yields a value wins;
the remaining rules of that field are never evaluated.
A field nobody matches stays ""; a missing field never raises.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable

from drawing_review.config import Settings, settings
from drawing_review.models.drawing_model import ExtractedRecord, RevisionEntry
from drawing_review.utils.text_utils import clean_text, normalize_name

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────
# Title-block vocabulary
# The input is whitespace-collapsed into one line, so a free-text value
# ends where the next known label starts (or at the end of the text).
# ─────────────────────────────────────────────────────
_LABELS = (
    r"PROYECTO\s*:", r"OBRA\s*:", r"PROJECT\s*:",
    r"ARQUITECT[OA]\b", r"ARCHITECT\b",
    r"PROPIETARIOS?\b", r"MANDANTE\b", r"OWNER\b",
    r"DIRECCI[OÓ]N\b", r"UBICACI[OÓ]N\b", r"ADDRESS\b",
    r"L[AÁ]MINA\b", r"SHEET\b", r"PLANO\b",
    r"ESC(?:ALA)?\b", r"SCALE\b",
    r"FECHA\b", r"DATE\b",
    r"CONTENIDO\b", r"REV(?:ISI[OÓ]N(?:ES)?)?\b", r"DIBUJ[OA]\b", r"ROL\b",
)
_STOP = r"(?=\s+(?:" + "|".join(_LABELS) + r")|\s*$)"

# free text starting with a letter, no digits or colons (person names)
_NAME = r"([^\W\d_][^\d:]{1,80}?)"
# free text that may carry digits (project names, addresses)
_VALUE = r"([^\s:][^:]{1,100}?)"

_MONTHS = (
    r"(?:ENERO|FEBRERO|MARZO|ABRIL|MAYO|JUNIO|JULIO|AGOSTO|"
    r"SEPTIEMBRE|SETIEMBRE|OCTUBRE|NOVIEMBRE|DICIEMBRE)"
)
_SHEET_CODE = r"((?:[A-Z]{1,3}-?)?\d+(?:[-.](?:[A-Z]{1,3})?\d+)*)\b"

_HONORIFIC_RE = re.compile(r"^(?:arq(?:to)?|arquitect[oa])\b\.?\s*", re.IGNORECASE)

# Closed document-type vocabulary → canonical label (most specific first)
_DOCUMENT_TYPES: list[tuple[str, str]] = [
    (r"\bDETALLES?\s+(?:DE\s+)?BA[ÑN]OS?\b", "Detalle Baños"),
    (r"\bDETALLES?\s+(?:DE\s+)?PUERTAS?\b", "Detalle de Puertas"),
    (r"\bDETALLES?\s+(?:DE\s+)?VENTANAS?\b", "Detalle de Ventanas"),
    (r"\bDETALLES?\s+(?:DE\s+)?CLOSETS?\b", "Detalle de Closets"),
    (r"\bDETALLES?\s+(?:DE\s+)?COCINAS?\b", "Detalle de Cocina"),
    (r"\bPLANTA\s+(?:DE\s+)?CUBIERTAS?\b", "Planta de Cubierta"),
    (r"\bEMPLAZAMIENTO\b", "Emplazamiento"),
    (r"\bCORTES?\b", "Cortes Arquitectónicos"),
    (r"\bELEVACI[OÓ]N(?:ES)?\b", "Elevaciones"),
    (r"\bESCANTILL[OÓ]N(?:ES)?\b", "Escantillones"),
    (r"\bPLANTAS?\b", "Planta Arquitectónica"),
    (r"\bDETALLES?\b", "Detalles Constructivos"),
]


# ─────────────────────────────────────────────────────
# Rule interpreter
# ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class FieldRule:
    pattern: re.Pattern
    label: str | None = None                        # canonical value instead of the match
    normalize: Callable[[str], str] | None = None   # "" rejects the candidate


def _rule(
    pattern: str,
    label: str | None = None,
    normalize: Callable[[str], str] | None = None,
) -> FieldRule:
    return FieldRule(re.compile(pattern, re.IGNORECASE), label, normalize)


def match_first(text: str, rules: list[FieldRule]) -> tuple[str, int]:
    """
    Evaluate rules in order; the first one producing a non-empty value wins.
    Returns (value, rule_index), or ("", -1) when nothing matched.
    """
    for idx, rule in enumerate(rules):
        for m in rule.pattern.finditer(text):
            if rule.label is not None:
                return rule.label, idx
            raw = m.group(1) if rule.pattern.groups else m.group(0)
            value = clean_text(raw)
            if rule.normalize is not None:
                value = rule.normalize(value)
            if value:
                return value, idx
    return "", -1


# ─────────────────────────────────────────────────────
# Normalisers
# ─────────────────────────────────────────────────────

def _person_name(value: str) -> str:
    return normalize_name(_HONORIFIC_RE.sub("", value))


def _trim_value(value: str) -> str:
    return value.strip(" -–,;.")


def _scale_normalizer(acceptable: set[int]) -> Callable[[str], str]:
    def normalize(denominator: str) -> str:
        try:
            n = int(denominator)
        except ValueError:
            return ""
        return f"1:{n}" if n in acceptable else ""
    return normalize


# ─────────────────────────────────────────────────────
# Rule lists
# ─────────────────────────────────────────────────────

def build_field_rules(cfg: Settings | None = None) -> dict[str, list[FieldRule]]:
    """
    Ordered rule list per ExtractedRecord field.
    The architect list starts with the configured reference name, and the
    scale normaliser only accepts the configured ratios.
    """
    cfg = cfg or settings
    scale = _scale_normalizer(set(cfg.ACCEPTABLE_SCALES))

    architect_rules: list[FieldRule] = []
    ref_words = cfg.REFERENCE_ARCHITECT.split()
    if ref_words:
        exact = r"\s+".join(re.escape(w) for w in ref_words)
        architect_rules.append(_rule(rf"(?<!\w){exact}(?!\w)"))
    architect_rules += [
        _rule(rf"ARQUITECT[OA](?:\s+RESPONSABLE)?\s*:?\s*{_NAME}{_STOP}", normalize=_person_name),
        _rule(rf"ARCHITECT\s*:?\s*{_NAME}{_STOP}", normalize=_person_name),
        _rule(r"ARQUITECT[OA]\s*:?\s*([^\W\d_]+(?:\s+[^\W\d_]+){1,3})", normalize=_person_name),
    ]

    return {
        "project_name": [
            _rule(rf"PROYECTO\s*:\s*{_VALUE}{_STOP}", normalize=_trim_value),
            _rule(rf"OBRA\s*:\s*{_VALUE}{_STOP}", normalize=_trim_value),
            _rule(rf"PROJECT\s*:\s*{_VALUE}{_STOP}", normalize=_trim_value),
            _rule(r"\b((?:CASA|EDIFICIO|VIVIENDA|CONDOMINIO)\s+[^\W\d_]{3,})"),
        ],
        "architect": architect_rules,
        "owner": [
            _rule(rf"PROPIETARIOS?\s*:?\s*{_NAME}{_STOP}", normalize=_person_name),
            _rule(rf"MANDANTE\s*:?\s*{_NAME}{_STOP}", normalize=_person_name),
            _rule(rf"OWNER\s*:?\s*{_NAME}{_STOP}", normalize=_person_name),
        ],
        "address": [
            _rule(rf"(?:DIRECCI[OÓ]N|UBICACI[OÓ]N|ADDRESS)\s*:?\s*{_VALUE}{_STOP}", normalize=_trim_value),
            _rule(r"\b((?:AVENIDA|AV\.|CALLE|PASAJE|CAMINO|MONSEÑOR)\s+(?:[^\W\d_]+\.?\s+){0,4}\d{1,5})\b"),
        ],
        "title_date": [
            _rule(rf"FECHA\s*:?\s*({_MONTHS}\s+(?:DE(?:L)?\s+)?\d{{4}})\b"),
            _rule(r"FECHA\s*:?\s*(\d{1,2}/\d{1,2}/\d{4})\b"),
            _rule(rf"\b({_MONTHS}\s+(?:DE(?:L)?\s+)?\d{{4}})\b"),
        ],
        "sheet": [
            _rule(rf"L[AÁ]MINA\s*(?:N[°ºO]\.?\s*)?:?\s*{_SHEET_CODE}"),
            _rule(rf"SHEET\s*(?:NO\.?\s*)?:?\s*{_SHEET_CODE}"),
            _rule(rf"PLANO\s*N[°ºO]\.?\s*:?\s*{_SHEET_CODE}"),
        ],
        "scale": [
            _rule(r"\bESC(?:ALA)?\.?\s*:?\s*1\s*:\s*(\d{1,4})\b", normalize=scale),
            _rule(r"\bSCALE\s*:?\s*1\s*:\s*(\d{1,4})\b", normalize=scale),
            _rule(r"\bESC(?:ALA)?\.?\s*:?\s*(?:INDICAD[AO]|S/E|SIN\s+ESCALA)", label="Indicada"),
            _rule(r"(?<![\d:/])1\s*:\s*(\d{1,4})\b(?!\s*:)", normalize=scale),
        ],
        "document_type": [_rule(p, label=lbl) for p, lbl in _DOCUMENT_TYPES],
    }


# ─────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────

def extract_fields(text: str, cfg: Settings | None = None) -> dict[str, str]:
    """Run every field's rule list over the cleaned text."""
    text = clean_text(text)
    fields: dict[str, str] = {}
    for name, rules in build_field_rules(cfg).items():
        value, idx = match_first(text, rules)
        fields[name] = value
        if value:
            logger.debug("Field %s = %r (rule %d)", name, value, idx)
        else:
            logger.debug("Field %s not found", name)
    return fields


def build_record(
    text: str,
    revisions: list[RevisionEntry],
    cfg: Settings | None = None,
) -> ExtractedRecord:
    text = clean_text(text)
    fields = extract_fields(text, cfg)
    missing = [k for k, v in fields.items() if not v]
    if missing:
        logger.info("Title-block fields not found: %s", ", ".join(missing))
    return ExtractedRecord(**fields, revision_dates=list(revisions), raw_text=text)
