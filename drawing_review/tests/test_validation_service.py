import pytest

from drawing_review.config import Settings
from drawing_review.models.drawing_model import ExtractedRecord, RevisionEntry
from drawing_review.models.template_model import RevisionTemplate, TemplateEntry
from drawing_review.models.validation_model import LayoutReport, ValidationResult
from drawing_review.services.validation_service import (
    classify_architect_name,
    label_matches,
    validate_record,
)

REFERENCE = "Javier Andrés Moya Ortiz"
LONG_TEXT = "PROYECTO: Casa hermanos " * 10


def _rev(number: str, description: str, date: str, position: int = 0) -> RevisionEntry:
    return RevisionEntry(
        number=number,
        description=description,
        date=date,
        full_match=f"{number} {description} {date}",
        pattern_used=1,
        position=position,
    )


def _record(**overrides) -> ExtractedRecord:
    data = {
        "project_name": "Casa hermanos",
        "architect": REFERENCE,
        "raw_text": LONG_TEXT,
    }
    data.update(overrides)
    return ExtractedRecord(**data)


def _types(findings) -> list[str]:
    return [f.type for f in findings]


def test_clean_record_has_no_findings() -> None:
    revisions = [_rev("1", "PROYECTO DEFINITIVO", "15/01/2024"), _rev("2", "MODIFICACIÓN DE PROYECTO", "20/08/2024")]
    errors, warnings = validate_record(_record(), revisions, cfg=Settings())
    assert errors == []
    assert warnings == []


# ─────────────────────────────────────────────────────────────────
# Architect name
# ─────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    ("name", "expected_type"),
    [
        ("Javier Andrés Moya Ortizs", "ARCHITECT_NAME_TYPO"),
        ("Javier Andres Moya Ortiz", "ARCHITECT_NAME_ACCENT"),
        ("Jávier Andrés Moya Ortiz", "ARCHITECT_NAME_MISMATCH"),
        ("Javier Andrés Ortiz", "ARCHITECT_NAME_INCOMPLETE"),
        ("Javier Moya Andrés Ortiz", "ARCHITECT_NAME_MISMATCH"),
        ("Pedro Soto", "ARCHITECT_NAME_MISMATCH"),
    ],
)
def test_architect_name_categories(name: str, expected_type: str) -> None:
    errors, _ = validate_record(_record(architect=name), [], cfg=Settings())
    assert _types(errors) == [expected_type]


def test_architect_name_matches_case_insensitively() -> None:
    errors, warnings = validate_record(_record(architect="JAVIER ANDRÉS MOYA ORTIZ"), [], cfg=Settings())
    assert errors == []
    assert warnings == []


def test_missing_architect_is_a_warning() -> None:
    errors, warnings = validate_record(_record(architect=""), [], cfg=Settings())
    assert errors == []
    assert _types(warnings) == ["ARCHITECT_NAME_NOT_FOUND"]


def test_architect_details_name_the_problem() -> None:
    _, problem = classify_architect_name("Javier Andrés Ortiz", REFERENCE)
    assert problem == 'falta "Moya"'
    _, problem = classify_architect_name("Javier Andres Moya Ortiz", REFERENCE)
    assert '"Andres" debería ser "Andrés"' in problem


def test_extra_accent_is_not_reported_as_missing_one() -> None:
    type_, problem = classify_architect_name("Jávier Andrés Moya Ortiz", REFERENCE)
    assert type_ == "ARCHITECT_NAME_MISMATCH"
    assert "falta tilde" not in problem
    assert 'sobra "Jávier"' in problem


def test_reference_architect_comes_from_configuration() -> None:
    cfg = Settings(REFERENCE_ARCHITECT="María José Pérez")
    errors, _ = validate_record(_record(architect="Maria José Pérez"), [], cfg=cfg)
    assert _types(errors) == ["ARCHITECT_NAME_ACCENT"]


# ─────────────────────────────────────────────────────────────────
# Project name
# ─────────────────────────────────────────────────────────────────

def test_short_project_name_is_a_warning() -> None:
    _, warnings = validate_record(_record(project_name="AB"), [], cfg=Settings())
    assert _types(warnings) == ["PROJECT_NAME_WARNING"]


def test_reference_project_name_mismatch_is_an_error() -> None:
    cfg = Settings(REFERENCE_PROJECT_NAME="Casa hermanos")
    errors, _ = validate_record(_record(project_name="Casa Pérez"), [], cfg=cfg)
    assert _types(errors) == ["PROJECT_NAME_ERROR"]

    errors, _ = validate_record(_record(project_name="CASA HERMANOS - Etapa 2"), [], cfg=cfg)
    assert errors == []


# ─────────────────────────────────────────────────────────────────
# Dates
# ─────────────────────────────────────────────────────────────────

def test_duplicate_dates_yield_a_single_error() -> None:
    revisions = [_rev("1", "FINAL", "15/01/2024"), _rev("2", "MOD", "15/01/2024")]
    errors, _ = validate_record(_record(), revisions, cfg=Settings())

    duplicates = [f for f in errors if f.type == "DUPLICATE_DATES"]
    assert len(duplicates) == 1
    assert duplicates[0].details.count("15/01/2024") == 1


def test_duplicate_dates_lists_every_repeated_date_once() -> None:
    revisions = [
        _rev("1", "A", "01/02/2024"),
        _rev("2", "B", "01/02/2024"),
        _rev("3", "C", "05/03/2024"),
        _rev("4", "D", "05/03/2024"),
        _rev("5", "E", "05/03/2024"),
    ]
    errors, _ = validate_record(_record(), revisions, cfg=Settings())
    assert _types(errors) == ["DUPLICATE_DATES"]
    assert errors[0].details == "Fechas repetidas: 01/02/2024, 05/03/2024"


@pytest.mark.parametrize(
    ("modification_date", "expected"),
    [
        ("13/08/2024", ["SAME_DATE_LOGIC"]),
        ("10/08/2024", ["SEQUENCE_VIOLATION"]),
        ("20/08/2024", []),
    ],
)
def test_modification_against_final_design(modification_date: str, expected: list[str]) -> None:
    revisions = [
        _rev("1", "PROYECTO DEFINITIVO", "13/08/2024"),
        _rev("2", "MODIFICACIÓN DE PROYECTO", modification_date),
    ]
    errors, _ = validate_record(_record(), revisions, cfg=Settings())
    assert [t for t in _types(errors) if t != "DUPLICATE_DATES"] == expected


def test_final_design_must_follow_preliminary() -> None:
    revisions = [
        _rev("1", "ANTEPROYECTO", "20/01/2024"),
        _rev("2", "PROYECTO DEFINITIVO", "15/01/2024"),
    ]
    errors, _ = validate_record(_record(), revisions, cfg=Settings())
    assert _types(errors) == ["SEQUENCE_VIOLATION"]


def test_sequence_rules_need_both_stages() -> None:
    revisions = [_rev("2", "MODIFICACIÓN DE PROYECTO", "01/01/2020")]
    errors, _ = validate_record(_record(), revisions, cfg=Settings())
    assert errors == []


def test_impossible_revision_date_is_an_error() -> None:
    revisions = [_rev("1", "PROYECTO DEFINITIVO", "32/01/2024")]
    errors, _ = validate_record(_record(), revisions, cfg=Settings())
    assert _types(errors) == ["INVALID_DATE"]


def test_revisions_default_to_record_revision_dates() -> None:
    record = _record(revision_dates=[_rev("1", "A", "01/01/2024"), _rev("2", "B", "01/01/2024")])
    errors, _ = validate_record(record, cfg=Settings())
    assert _types(errors) == ["DUPLICATE_DATES"]


# ─────────────────────────────────────────────────────────────────
# Template conformance
# ─────────────────────────────────────────────────────────────────

def _template(required: bool = True) -> RevisionTemplate:
    return RevisionTemplate(
        name="Casa hermanos",
        entries=[TemplateEntry(number="1", description="PROYECTO DEFINITIVO", required=required)],
    )


def test_required_revision_missing() -> None:
    revisions = [_rev("1", "ANTEPROYECTO", "01/01/2024")]
    errors, _ = validate_record(_record(), revisions, template=_template(), cfg=Settings())
    assert _types(errors) == ["REQUIRED_REVISION_MISSING"]


def test_required_revision_present_in_any_casing() -> None:
    revisions = [_rev("1", "Proyecto definitivo", "01/01/2024")]
    errors, _ = validate_record(_record(), revisions, template=_template(), cfg=Settings())
    assert errors == []


def test_optional_template_entries_are_not_enforced() -> None:
    errors, _ = validate_record(_record(), [], template=_template(required=False), cfg=Settings())
    assert errors == []


def test_no_template_skips_conformance() -> None:
    errors, _ = validate_record(_record(), [], template=None, cfg=Settings())
    assert errors == []


def test_label_matches_by_keywords() -> None:
    assert label_matches("Modificación de proyecto", "MODIFICACION DE PROYECTO N°1")
    assert label_matches("PROYECTO DEFINITIVO", "PROYECTO ARQUITECTURA DEFINITIVO")
    assert not label_matches("PROYECTO DEFINITIVO", "MODIFICACIÓN DE PROYECTO")


# ─────────────────────────────────────────────────────────────────
# Layout / content / scale
# ─────────────────────────────────────────────────────────────────

def test_layout_problems_become_one_warning() -> None:
    layout = LayoutReport(
        has_alignment_issues=True,
        formatting_problems=["problema uno", "problema dos"],
        title_block_item_count=3,
        total_text_items=10,
    )
    errors, warnings = validate_record(_record(), [], layout=layout, cfg=Settings())
    assert errors == []
    assert _types(warnings) == ["LAYOUT_WARNING"]
    assert warnings[0].details == "problema uno; problema dos"


@pytest.mark.parametrize(("length", "fires"), [(99, True), (100, False)])
def test_low_content_threshold(length: int, fires: bool) -> None:
    _, warnings = validate_record(_record(raw_text="x" * length), [], cfg=Settings(MIN_TEXT_LENGTH=100))
    assert ("LOW_TEXT_CONTENT" in _types(warnings)) is fires


def test_bathroom_detail_expects_1_25_scale() -> None:
    record = _record(document_type="Detalle Baños", scale="1:50")
    _, warnings = validate_record(record, [], cfg=Settings())
    assert _types(warnings) == ["SCALE_WARNING"]

    record = _record(document_type="Detalle Baños", scale="1:25")
    _, warnings = validate_record(record, [], cfg=Settings())
    assert warnings == []


# ─────────────────────────────────────────────────────────────────
# Status
# ─────────────────────────────────────────────────────────────────

def test_status_follows_findings() -> None:
    record = _record()
    errors, warnings = validate_record(_record(architect="Javier Andrés Ortiz", project_name=""), [], cfg=Settings())

    rejected = ValidationResult(extracted_data=record, errors=errors, warnings=warnings)
    warned = ValidationResult(extracted_data=record, errors=[], warnings=warnings)
    approved = ValidationResult(extracted_data=record)

    assert rejected.status == "rejected"
    assert warned.status == "warning"
    assert approved.status == "approved"
    assert approved.model_dump()["status"] == "approved"
