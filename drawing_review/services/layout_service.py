"""
layout_service.py — title-block alignment heuristics over positioned fragments.

Coordinate-threshold based: the title-block band and the page window come
from configuration (calibration data for the project's sheet format).
"""
import logging
import re

from drawing_review.config import Settings, settings
from drawing_review.models.drawing_model import TextFragment
from drawing_review.models.validation_model import LayoutReport

logger = logging.getLogger(__name__)

# Title-block labels. A fragment counts as labelled only in label form:
# keyword, an optional qualifier word, then a colon ("LÁMINA N°: 6").
TITLE_BLOCK_LABELS = (
    "architect", "arquitecto", "arquitecta",
    "project", "proyecto",
    "owner", "propietario", "propietarios",
    "scale", "escala",
    "date", "fecha",
    "sheet", "lámina", "lamina",
)
_LABEL_RE = re.compile(
    r"^(?:" + "|".join(TITLE_BLOCK_LABELS) + r")(?:\s+[^\s:]+)?\s*:",
    re.IGNORECASE,
)

# Fragments this short are ignored by the boundary check (bullets, numbers)
MIN_BOUNDARY_TEXT_LEN = 3

NO_TEXT_PROBLEM = "No se encontraron elementos de texto (no text items found)"


def analyze_layout(
    fragments: list[TextFragment],
    cfg: Settings | None = None,
) -> LayoutReport:
    cfg = cfg or settings

    if not fragments:
        logger.warning("Layout: no text items found")
        return LayoutReport(
            has_alignment_issues=True,
            formatting_problems=[NO_TEXT_PROBLEM],
            title_block_item_count=0,
            total_text_items=0,
        )

    problems: list[str] = []

    title_block = [f for f in fragments if _in_title_block(f, cfg)]
    labeled = [f for f in title_block if _is_labeled(f.text)]

    if len(labeled) > 1:
        lefts = [f.x for f in labeled]
        spread = max(lefts) - min(lefts)
        limit = 3 * cfg.ALIGNMENT_TOLERANCE
        if spread > limit:
            problems.append(
                f"Alineación izquierda inconsistente en la viñeta (inconsistent left alignment): "
                f"diferencia de {spread:.1f} entre etiquetas, máximo {limit:.1f}"
            )

    outside = [
        f for f in fragments
        if len(f.text.strip()) > MIN_BOUNDARY_TEXT_LEN
        and not (cfg.PAGE_MIN_X <= f.x <= cfg.PAGE_MAX_X)
    ]
    if outside:
        sample = ", ".join(repr(f.text.strip()) for f in outside[:3])
        problems.append(
            f"{len(outside)} texto(s) fuera de los límites esperados "
            f"(positioned outside expected boundaries): {sample}"
        )

    logger.debug(
        "Layout: %d items, %d in title block, %d labeled, %d problems",
        len(fragments), len(title_block), len(labeled), len(problems),
    )
    return LayoutReport(
        has_alignment_issues=bool(problems),
        formatting_problems=problems,
        title_block_item_count=len(title_block),
        total_text_items=len(fragments),
    )


def _in_title_block(fragment: TextFragment, cfg: Settings) -> bool:
    return (
        cfg.TITLE_BLOCK_MIN_Y <= fragment.y <= cfg.TITLE_BLOCK_MAX_Y
        and fragment.x >= cfg.TITLE_BLOCK_MIN_X
    )


def _is_labeled(text: str) -> bool:
    return _LABEL_RE.match(text.strip()) is not None
