"""
Text extractor abstraction — PDF bytes → ExtractionResult.
The pipeline only talks to BaseTextExtractor; how and where the text is
pulled out of the document is the adapter's business.
"""
import asyncio
import io
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor

from drawing_review.models.drawing_model import ExtractionResult, TextFragment

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """The document could not be turned into text (corrupt, encrypted, unreadable)."""


# ─────────────────────────────────────────────────────────
# Abstract base extractor
# ─────────────────────────────────────────────────────────

class BaseTextExtractor(ABC):

    @abstractmethod
    def extract_text(self, data: bytes, max_pages: int) -> ExtractionResult:
        """
        Blocking extraction of at most max_pages pages.
        Raises ExtractionError on any failure.
        """
        ...

    async def extract_text_async(self, data: bytes, max_pages: int) -> ExtractionResult:
        """
        Async version of extract_text.
        Runs the blocking call on a single-use worker thread so the caller can
        bound it with asyncio.wait_for. A call abandoned on timeout keeps only
        its own thread busy, never the loop's default executor.
        """
        loop = asyncio.get_running_loop()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="extract")
        try:
            return await loop.run_in_executor(executor, self.extract_text, data, max_pages)
        finally:
            executor.shutdown(wait=False)


# ─────────────────────────────────────────────────────────
# pdfplumber adapter
# ─────────────────────────────────────────────────────────

class PdfPlumberExtractor(BaseTextExtractor):
    """
    pdfplumber-based adapter.
    Words become TextFragments; y is flipped to be measured from the page
    bottom so the title-block band reads the same as in PDF user space.
    """

    def __init__(self, x_tolerance: float = 3, y_tolerance: float = 3) -> None:
        self.x_tolerance = x_tolerance
        self.y_tolerance = y_tolerance

    def extract_text(self, data: bytes, max_pages: int) -> ExtractionResult:
        import pdfplumber

        page_texts: list[str] = []
        fragments: list[TextFragment] = []

        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                num_pages = len(pdf.pages)
                for page in pdf.pages[:max_pages]:
                    words = page.extract_words(
                        x_tolerance=self.x_tolerance,
                        y_tolerance=self.y_tolerance,
                        extra_attrs=["fontname", "size"],
                    )
                    page_fragments = [_word_to_fragment(w, page.height) for w in words]
                    fragments.extend(page_fragments)
                    page_texts.append(" ".join(f.text for f in page_fragments))
        except Exception as e:
            logger.error("PDF text extraction failed: %s", e)
            raise ExtractionError(f"No se pudo leer el PDF: {e}") from e

        if num_pages > max_pages:
            logger.warning("PDF has %d pages, only the first %d processed", num_pages, max_pages)

        return ExtractionResult(
            full_text="\n".join(page_texts),
            page_texts=page_texts,
            text_items=fragments,
            num_pages=num_pages,
            processed_pages=len(page_texts),
        )


def _word_to_fragment(word: dict, page_height: float) -> TextFragment:
    return TextFragment(
        text=word["text"],
        x=float(word["x0"]),
        y=float(page_height - word["bottom"]),
        width=float(word["x1"] - word["x0"]),
        height=float(word["bottom"] - word["top"]),
        font_name=str(word.get("fontname", "")),
        font_size=float(word.get("size", 0.0)),
    )


# ─────────────────────────────────────────────────────────
# Factory
# ─────────────────────────────────────────────────────────

def get_text_extractor() -> BaseTextExtractor:
    """Default pdfplumber adapter."""
    return PdfPlumberExtractor()
