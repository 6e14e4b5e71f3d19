"""
Structured field sets produced by the extraction engine.

The shape of ``extracted_data`` depends on the document type, so each
type has its own frozen dataclass.  ``generic`` documents only carry the
baseline fields.  Absent values are empty strings, ``0`` or empty
tuples; callers treat "empty" as "not found".
"""
from __future__ import annotations

from dataclasses import dataclass, fields as dc_fields
from enum import Enum
from typing import Any, Dict, Tuple, Type


class DocumentType(str, Enum):
    PHYSIO_ASSESSMENT = "physio_assessment"
    MEDICAL_REPORT = "medical_report"
    LAB_RESULTS = "lab_results"
    RADIOLOGY = "radiology"
    GENERIC = "generic"

    @classmethod
    def coerce(cls, value: Any) -> "DocumentType":
        """Map a raw tag onto the enum; unknown or missing tags become ``GENERIC``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.GENERIC


@dataclass(frozen=True)
class LabValue:
    parameter: str
    value: float
    unit: str = ""


@dataclass(frozen=True)
class ReferenceRange:
    min: float
    max: float


@dataclass(frozen=True)
class BaseFields:
    patient_name: str = ""
    date: str = ""
    diagnosis: str = ""

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in dc_fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                value = [_item_to_json(v) for v in value]
            out[f.name] = value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseFields":
        """Rebuild a variant from stored JSON, ignoring unknown keys."""
        kwargs: Dict[str, Any] = {}
        for f in dc_fields(cls):
            if f.name not in data:
                continue
            kwargs[f.name] = _field_from_json(f.name, data[f.name])
        return cls(**kwargs)


@dataclass(frozen=True)
class PhysioAssessmentFields(BaseFields):
    pain_level: int = 0
    mobility_assessment: str = ""
    therapy_goals: str = ""


@dataclass(frozen=True)
class MedicalReportFields(BaseFields):
    icd10_codes: Tuple[str, ...] = ()
    medications: Tuple[str, ...] = ()
    recommendations: str = ""


@dataclass(frozen=True)
class LabResultsFields(BaseFields):
    lab_values: Tuple[LabValue, ...] = ()
    reference_ranges: Tuple[ReferenceRange, ...] = ()


@dataclass(frozen=True)
class RadiologyFields(BaseFields):
    imaging_findings: str = ""
    impression: str = ""


VARIANTS: Dict[DocumentType, Type[BaseFields]] = {
    DocumentType.PHYSIO_ASSESSMENT: PhysioAssessmentFields,
    DocumentType.MEDICAL_REPORT: MedicalReportFields,
    DocumentType.LAB_RESULTS: LabResultsFields,
    DocumentType.RADIOLOGY: RadiologyFields,
    DocumentType.GENERIC: BaseFields,
}


def fields_from_dict(document_type: Any, data: Dict[str, Any] | None) -> BaseFields:
    return VARIANTS[DocumentType.coerce(document_type)].from_dict(data or {})


def _item_to_json(value: Any) -> Any:
    if isinstance(value, LabValue):
        return {"parameter": value.parameter, "value": value.value, "unit": value.unit}
    if isinstance(value, ReferenceRange):
        return {"min": value.min, "max": value.max}
    return value


def _field_from_json(name: str, value: Any) -> Any:
    if name == "lab_values":
        return tuple(LabValue(v["parameter"], float(v["value"]), v.get("unit") or "") for v in value or [])
    if name == "reference_ranges":
        return tuple(ReferenceRange(float(v["min"]), float(v["max"])) for v in value or [])
    if isinstance(value, list):
        return tuple(value)
    return value
