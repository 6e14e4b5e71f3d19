"""
Simulated text recognition.

No OCR engine is wired in: :func:`recognize` checks that the referenced
file exists, waits the configured latency and returns a canned German
document for the requested type with a per-type confidence constant.
:func:`run_ocr` is the request-style OCR boundary combining recognition
and field extraction.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

import structlog
from django.conf import settings
from django.utils import timezone

from clinic.exceptions import RecognitionError
from clinic.extraction import DocumentType, extract_structured_data
from clinic.services import storage

logger = structlog.get_logger(__name__)

DEFAULT_CONFIDENCE = {
    DocumentType.PHYSIO_ASSESSMENT.value: 0.92,
    DocumentType.MEDICAL_REPORT.value: 0.88,
    DocumentType.LAB_RESULTS.value: 0.95,
    DocumentType.RADIOLOGY.value: 0.85,
    DocumentType.GENERIC.value: 0.80,
}


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    confidence: float
    processing_time: int  # ms


def german_date(d: date) -> str:
    return f"{d.day}.{d.month}.{d.year}"


def _physio_text(today: str) -> str:
    return f"""Eingangsbefund
Datum: {today}
Therapeut: Dr. Müller

Name, Vorname: Mustermann, Max
Geb.-Datum: 15.03.1995

Diagnose: Lumbalgie, akut
Relevante Nebendiagnose: Keine

Medikamente: Ibuprofen 400mg
Freizeitaktivitäten: Volleyball, Laufen

Aktuelle Beschwerden: Schmerzen im unteren Rückenbereich seit 3 Tagen
Schmerzstärke: 6/10
Beschwerden im Alltag: Schmerzen beim Bücken und Heben
Seit wann: 3 Tage
Häufigkeit: Konstant
Ausgelöst durch: Sprungbewegungen beim Volleyball
Linderung durch: Ruhe, Wärme

Inspektion: Schonhaltung erkennbar
Palpation: Verspannung der Lendenmuskulatur

Therapieziele: Schmerzreduktion, Mobilisation, Rückkehr zum Sport"""


def _medical_report_text(today: str) -> str:
    return f"""Ärztlicher Bericht
Datum: {today}
Dr. med. Schmidt

Patient: Mustermann, Max
Geb.: 15.03.1995

Diagnose: Distorsion des Sprunggelenks (S93.4)
ICD-10: S93.4

Befund: Schwellung und Druckschmerz laterales Sprunggelenk
Behandlung: Ruhigstellung, Kryotherapie
Medikation: Ibuprofen 3x400mg täglich

Empfehlung: Physiotherapie nach Abschwellung
Wiederkehr zum Sport: In 2-3 Wochen
Kontrolle: In 1 Woche"""


def _lab_results_text(today: str) -> str:
    return f"""Laborbefund
Datum: {today}

Patient: Mustermann, Max

Blutwerte:
Leukozyten: 7.2 /µl (Referenz: 4.0-10.0)
Erythrozyten: 4.8 /µl (Referenz: 4.5-5.9)
Hämoglobin: 14.5 g/dl (Referenz: 14.0-18.0)
Hämatokrit: 42% (Referenz: 42-50)
CRP: 0.8 mg/l (Referenz: <3.0)
BSG: 12 mm/h (Referenz: <20)

Bewertung: Werte im Normbereich"""


def _radiology_text(today: str) -> str:
    return f"""Radiologischer Befund
Datum: {today}
Dr. med. Weber

Patient: Mustermann, Max
Untersuchung: Röntgen Knie rechts

Technik: Röntgen in 2 Ebenen

Befund:
- Keine Frakturzeichen
- Regelrechte Gelenkstrukturen
- Kein Erguss
- Weichteile unauffällig

Beurteilung: Unauffälliger Befund
Empfehlung: Konservative Therapie"""


def _generic_text(today: str) -> str:
    return f"""Medizinisches Dokument
Datum: {today}

Patient: Mustermann, Max
Geb.: 15.03.1995

Dokumentinhalt wurde durch OCR erkannt.
Für spezifische Extraktion bitte Dokumenttyp angeben.

Allgemeine Informationen wurden erkannt und können
weitere Verarbeitung erfordern."""


CANNED_TEXTS = {
    DocumentType.PHYSIO_ASSESSMENT: _physio_text,
    DocumentType.MEDICAL_REPORT: _medical_report_text,
    DocumentType.LAB_RESULTS: _lab_results_text,
    DocumentType.RADIOLOGY: _radiology_text,
    DocumentType.GENERIC: _generic_text,
}


def confidence_for(document_type: DocumentType) -> float:
    scores = {**DEFAULT_CONFIDENCE, **getattr(settings, 'OCR_CONFIDENCE_SCORES', {})}
    return float(scores.get(document_type.value, scores[DocumentType.GENERIC.value]))


def recognize(file_path: str, document_type: Any, *, today: Optional[date] = None) -> RecognitionResult:
    if not file_path:
        raise RecognitionError('file_path ist erforderlich')
    if not storage.exists(file_path):
        raise RecognitionError(f'Datei nicht gefunden: {file_path}')

    doc_type = DocumentType.coerce(document_type)
    started = time.monotonic()
    latency = float(getattr(settings, 'OCR_SIMULATED_LATENCY_SECONDS', 0) or 0)
    if latency > 0:
        time.sleep(latency)

    text = CANNED_TEXTS[doc_type](german_date(today or timezone.localdate()))
    elapsed = int((time.monotonic() - started) * 1000)
    logger.info("recognition_done", file_path=file_path, document_type=doc_type.value, processing_time=elapsed)
    return RecognitionResult(text=text, confidence=confidence_for(doc_type), processing_time=elapsed)


def run_ocr(file_path: str, document_type: Any, player_id: Optional[int] = None) -> Dict[str, Any]:
    """Recognise and extract in one call; returns the boundary payload."""
    result = recognize(file_path, document_type)
    fields = extract_structured_data(result.text, document_type)
    return {
        'success': True,
        'file_path': file_path,
        'player_id': player_id,
        'raw_text': result.text,
        'confidence_score': result.confidence,
        'extracted_data': fields.to_dict(),
        'processing_time': result.processing_time,
        'timestamp': timezone.now().isoformat(),
    }
