import logging
import re
import unicodedata
from datetime import date

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")
# Anything that is not a letter, whitespace, hyphen or apostrophe.
# \w is unicode-aware, so accented letters survive; digits and "_" do not.
_NON_NAME_RE = re.compile(r"[^\w\s'-]|[\d_]")
DATE_SHAPE_RE = re.compile(r"\d{1,2}/\d{1,2}/\d{4}")


def clean_text(text: str) -> str:
    """
    Collapse every whitespace run to a single space and trim.
    "  PROYECTO:\n Casa   hermanos " → "PROYECTO: Casa hermanos"
    """
    if not text or not isinstance(text, str):
        return ""
    return _WS_RE.sub(" ", text).strip()


def normalize_name(name: str) -> str:
    """
    Person-name cleanup: drop punctuation and digits, collapse whitespace.
    Diacritics are kept since a missing accent is itself a finding.
    "Javier  Andrés Moya-Ortiz.," → "Javier Andrés Moya-Ortiz"
    """
    if not name:
        return ""
    return clean_text(_NON_NAME_RE.sub(" ", name)).strip("-' ")


def strip_accents(text: str) -> str:
    """"Andrés" → "Andres", "ñ" → "n"."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def fold(text: str) -> str:
    """Case- and accent-insensitive comparison key."""
    return clean_text(strip_accents(text)).casefold()


def parse_date(text: str) -> date | None:
    """
    "13/08/2024" → date(2024, 8, 13)
    Wrong shape or impossible calendar date (32/01, 15/13, 29/02 on a
    non-leap year) → None.
    """
    if not text or not DATE_SHAPE_RE.fullmatch(text.strip()):
        return None
    day, month, year = (int(p) for p in text.strip().split("/"))
    try:
        return date(year, month, day)
    except ValueError:
        logger.debug("Impossible calendar date: %r", text)
        return None
