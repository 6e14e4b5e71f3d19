"""
Extraction engine: raw recognised text -> structured field set.

``extract_structured_data`` is pure.  It always extracts the baseline
fields (patient name, date, diagnosis) first and then the fields
specific to the document type.  A field whose patterns never match gets
its empty default; nothing in here raises for a miss.
"""
from __future__ import annotations

from typing import Any, List, Optional, Pattern, Sequence

from .fields import (
    BaseFields,
    DocumentType,
    LabResultsFields,
    LabValue,
    MedicalReportFields,
    PhysioAssessmentFields,
    RadiologyFields,
    ReferenceRange,
)
from .patterns import DEFAULT_TABLE, PatternTable


def first_match(text: str, patterns: Sequence[Pattern[str]]) -> Optional[str]:
    """Group 1 of the first pattern that matches anywhere in ``text``."""
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            return m.group(1) if m.re.groups else m.group(0)
    return None


def _text(text: str, patterns: Sequence[Pattern[str]]) -> str:
    value = first_match(text, patterns)
    return value.strip() if value is not None else ""


def _int(text: str, patterns: Sequence[Pattern[str]]) -> int:
    value = first_match(text, patterns)
    if value is None:
        return 0
    try:
        return int(value)
    except ValueError:
        return 0


def parse_decimal(value: str) -> Optional[float]:
    """Parse ``7,2`` or ``7.2``; ``None`` when it is not a number."""
    try:
        return float(value.replace(",", "."))
    except (AttributeError, ValueError):
        return None


def _all_matches(text: str, pattern: Pattern[str]) -> List[str]:
    return [m.group(1) for m in pattern.finditer(text)]


def _split_list(value: str, separator: str) -> List[str]:
    return [item.strip() for item in value.split(separator)]


def _lab_values(text: str, table: PatternTable) -> List[LabValue]:
    values: List[LabValue] = []
    for line in text.split("\n"):
        m = table.lab_value_line.search(line)
        if not m:
            continue
        number = parse_decimal(m.group(2))
        if number is None:
            continue
        values.append(LabValue(parameter=m.group(1).strip(), value=number, unit=m.group(3) or ""))
    return values


def _reference_ranges(text: str, table: PatternTable) -> List[ReferenceRange]:
    ranges: List[ReferenceRange] = []
    for line in text.split("\n"):
        m = table.reference_range_line.search(line)
        if not m:
            continue
        low, high = parse_decimal(m.group(1)), parse_decimal(m.group(2))
        if low is None or high is None:
            continue
        ranges.append(ReferenceRange(min=low, max=high))
    return ranges


def extract_structured_data(
    text: str,
    document_type: Any,
    table: Optional[PatternTable] = None,
) -> BaseFields:
    """Extract the field set for ``document_type`` from ``text``.

    Unknown document types are treated as ``generic`` and yield only the
    baseline fields.  ``table`` replaces the default German patterns.
    """
    table = table or DEFAULT_TABLE
    text = text or ""
    doc_type = DocumentType.coerce(document_type)

    base = dict(
        patient_name=_text(text, table.patient_name),
        date=_text(text, table.date),
        diagnosis=_text(text, table.diagnosis),
    )

    if doc_type is DocumentType.PHYSIO_ASSESSMENT:
        return PhysioAssessmentFields(
            **base,
            pain_level=_int(text, table.pain_level),
            mobility_assessment=_text(text, table.mobility_assessment),
            therapy_goals=_text(text, table.therapy_goals),
        )
    if doc_type is DocumentType.MEDICAL_REPORT:
        medications = first_match(text, table.medications)
        return MedicalReportFields(
            **base,
            icd10_codes=tuple(_all_matches(text, table.icd10_code)),
            medications=tuple(_split_list(medications, table.list_separator)) if medications is not None else (),
            recommendations=_text(text, table.recommendations),
        )
    if doc_type is DocumentType.LAB_RESULTS:
        return LabResultsFields(
            **base,
            lab_values=tuple(_lab_values(text, table)),
            reference_ranges=tuple(_reference_ranges(text, table)),
        )
    if doc_type is DocumentType.RADIOLOGY:
        return RadiologyFields(
            **base,
            imaging_findings=_text(text, table.imaging_findings),
            impression=_text(text, table.impression),
        )
    return BaseFields(**base)
