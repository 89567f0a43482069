from pydantic import BaseModel


class TemplateEntry(BaseModel):
    number: str
    description: str           # revision label, e.g. "PROYECTO DEFINITIVO"
    required: bool = True


class RevisionTemplate(BaseModel):
    """Ordered list of the revision stages a conformant document must carry."""
    name: str = ""
    entries: list[TemplateEntry] = []

    @property
    def required_entries(self) -> list[TemplateEntry]:
        return [e for e in self.entries if e.required]
