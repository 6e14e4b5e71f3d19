"""
Pattern tables for the extraction engine.

A :class:`PatternTable` holds, per field, an ordered tuple of compiled
regular expressions.  The engine tries them in order and keeps the first
one that matches anywhere in the text; group 1 is the captured value.
The default table targets German medical records.  Other locales supply
their own table instead of touching the engine.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Pattern, Tuple

_I = re.IGNORECASE

Patterns = Tuple[Pattern[str], ...]


def _compile(*sources: str, flags: int = _I) -> Patterns:
    return tuple(re.compile(s, flags) for s in sources)


@dataclass(frozen=True)
class PatternTable:
    # baseline, attempted for every document type
    patient_name: Patterns
    date: Patterns
    diagnosis: Patterns
    # physio_assessment
    pain_level: Patterns
    mobility_assessment: Patterns
    therapy_goals: Patterns
    # medical_report
    icd10_code: Pattern[str]
    medications: Patterns
    recommendations: Patterns
    # lab_results, applied line by line
    lab_value_line: Pattern[str]
    reference_range_line: Pattern[str]
    # radiology
    imaging_findings: Patterns
    impression: Patterns
    list_separator: str = ","

    def with_overrides(self, **changes) -> "PatternTable":
        return replace(self, **changes)


GERMAN = PatternTable(
    patient_name=_compile(
        r"Name[:\s]*([A-Za-zÄÖÜäöüß\s,]+)(?:\n|Geb)",
        r"Patient[:\s]*([A-Za-zÄÖÜäöüß\s,]+)(?:\n|,)",
    ),
    date=_compile(
        r"Datum[:\s]*(\d{1,2}\.\d{1,2}\.\d{4})",
        r"(\d{1,2}\.\d{1,2}\.\d{4})",
    ),
    diagnosis=_compile(
        r"Diagnose[:\s]*([^\n]+)",
        r"Befund[:\s]*([^\n]+)",
    ),
    pain_level=_compile(
        r"Schmerz[:\s]*(\d+)",
        r"(\d+)/10",
        r"Schmerzstärke[:\s]*(\d+)",
    ),
    mobility_assessment=_compile(
        r"Mobilität[:\s]*([^\n]+)",
        r"Beweglichkeit[:\s]*([^\n]+)",
    ),
    therapy_goals=_compile(
        r"Therapieziele?[:\s]*([^\n]+)",
        r"Ziele?[:\s]*([^\n]+)",
    ),
    # ICD-10 codes are upper case by definition
    icd10_code=re.compile(r"([A-Z]\d{2}\.\d)"),
    medications=_compile(
        r"Medikation[:\s]*([^\n]+)",
        r"Medikamente[:\s]*([^\n]+)",
    ),
    recommendations=_compile(
        r"Empfehlung[:\s]*([^\n]+)",
        r"Therapieempfehlung[:\s]*([^\n]+)",
    ),
    lab_value_line=re.compile(r"([A-Za-z\s]+):\s*(\d+[,.]?\d*)\s*([A-Za-z/]+)?"),
    reference_range_line=re.compile(r"Referenz[:\s]*(\d+[,.]?\d*)\s*-\s*(\d+[,.]?\d*)"),
    imaging_findings=_compile(
        r"Befund[:\s]*([^\n]+)",
        r"Ergebnis[:\s]*([^\n]+)",
    ),
    impression=_compile(
        r"Beurteilung[:\s]*([^\n]+)",
        r"Eindruck[:\s]*([^\n]+)",
    ),
)

DEFAULT_TABLE = GERMAN
