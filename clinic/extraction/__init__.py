"""Regex-driven field extraction for recognised medical documents."""
from .engine import extract_structured_data, first_match, parse_decimal
from .fields import (
    BaseFields,
    DocumentType,
    LabResultsFields,
    LabValue,
    MedicalReportFields,
    PhysioAssessmentFields,
    RadiologyFields,
    ReferenceRange,
    VARIANTS,
    fields_from_dict,
)
from .patterns import DEFAULT_TABLE, GERMAN, PatternTable

__all__ = [
    "extract_structured_data",
    "first_match",
    "parse_decimal",
    "BaseFields",
    "DocumentType",
    "LabResultsFields",
    "LabValue",
    "MedicalReportFields",
    "PhysioAssessmentFields",
    "RadiologyFields",
    "ReferenceRange",
    "VARIANTS",
    "fields_from_dict",
    "DEFAULT_TABLE",
    "GERMAN",
    "PatternTable",
]
