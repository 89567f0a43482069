from typing import Literal

from pydantic import BaseModel, ConfigDict, computed_field

from drawing_review.models.drawing_model import ExtractedRecord

Severity = Literal["error", "warning"]
Status = Literal["approved", "warning", "rejected"]


class Finding(BaseModel):
    """
    A single validation outcome.
    type is a machine-readable code (e.g. "DUPLICATE_DATES"),
    details carries the found value vs. the expected value.
    """
    model_config = ConfigDict(frozen=True)

    type: str
    message: str
    details: str = ""
    severity: Severity


class LayoutReport(BaseModel):
    has_alignment_issues: bool
    formatting_problems: list[str] = []
    title_block_item_count: int = 0
    total_text_items: int = 0


class ValidationResult(BaseModel):
    filename: str = ""
    extracted_data: ExtractedRecord | None
    errors: list[Finding] = []
    warnings: list[Finding] = []
    layout: LayoutReport | None = None

    @computed_field
    @property
    def status(self) -> Status:
        return derive_status(self.errors, self.warnings)

    @computed_field
    @property
    def error_types(self) -> list[str]:
        return [f.type for f in self.errors]

    @computed_field
    @property
    def warning_types(self) -> list[str]:
        return [f.type for f in self.warnings]


def derive_status(errors: list[Finding], warnings: list[Finding]) -> Status:
    if errors:
        return "rejected"
    if warnings:
        return "warning"
    return "approved"
