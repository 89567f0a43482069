from pydantic import BaseModel, ConfigDict


class TextFragment(BaseModel):
    """
    One positioned run of text as reported by the text extractor.
    Coordinates are PDF user space: x from the left edge, y from the page bottom.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    font_name: str = ""
    font_size: float = 0.0


class ExtractionResult(BaseModel):
    """Everything the core is allowed to assume about an extracted document."""
    full_text: str
    page_texts: list[str]
    text_items: list[TextFragment]
    num_pages: int
    processed_pages: int


class RevisionEntry(BaseModel):
    """
    One row of the revision table.
    number stays a string ("1.1" is kept as written).
    """
    model_config = ConfigDict(frozen=True)

    number: str
    description: str
    date: str                  # DD/MM/YYYY as captured
    full_match: str
    pattern_used: int          # 1 = stage vocabulary, 2 = upper-case phrase, 3 = loose
    position: int              # offset in the cleaned text

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.number, self.description, self.date)


class ExtractedRecord(BaseModel):
    """Title-block fields of one document. Every missing field is ""."""
    project_name: str = ""
    architect: str = ""
    owner: str = ""
    address: str = ""
    title_date: str = ""
    sheet: str = ""
    document_type: str = ""
    scale: str = ""
    revision_dates: list[RevisionEntry] = []
    raw_text: str = ""
