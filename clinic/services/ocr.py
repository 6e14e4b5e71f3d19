"""
OCR job pipeline.

A job moves ``pending -> processing -> completed | failed``; the only
backward edge is ``failed -> processing`` (manual retry).  Processing is
synchronous from the caller's point of view: recognition and field
extraction run inside the request, there is no queue.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Tuple

import structlog
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from clinic.exceptions import InvalidTransition, OCRProcessingError, PromotionError
from clinic.extraction import DocumentType, extract_structured_data, fields_from_dict
from clinic.models import MedicalTreatment, OCRJob, PhysioAssessment, Player
from clinic.permissions import MODULE_MEDICAL, MODULE_PHYSIO, require_any
from clinic.services import storage
from clinic.services.audit import log_action
from clinic.services.notifications import create_notification
from clinic.services.recognition import recognize

User = get_user_model()
logger = structlog.get_logger(__name__)

PENDING = 'pending'
PROCESSING = 'processing'
COMPLETED = 'completed'
FAILED = 'failed'

ALLOWED_TRANSITIONS = {
    PENDING: {PROCESSING},
    PROCESSING: {COMPLETED, FAILED},
    FAILED: {PROCESSING},
    COMPLETED: set(),
}

OCR_STORAGE_PREFIX = 'ocr'


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def _transition(job: OCRJob, target: str, **changes) -> OCRJob:
    if not can_transition(job.status, target):
        raise InvalidTransition(job.status, target)
    previous = job.status
    job.status = target
    for field, value in changes.items():
        setattr(job, field, value)
    job.save()
    logger.info("ocr_job_transition", job_id=job.id, previous=previous, status=target)
    return job


def create_job(
    *,
    player: Player,
    document_type: str,
    file_path: str,
    original_filename: str = '',
    user: Optional[User] = None,
) -> OCRJob:
    """Create a job in ``pending`` and process it right away.

    Raises :class:`OCRProcessingError` (with ``.job`` set) when the
    immediate processing attempt fails; the job then sits in ``failed``.
    """
    if player is None or not file_path:
        raise ValueError('player und file_path sind erforderlich')
    job = OCRJob.objects.create(
        player=player,
        document_type=DocumentType.coerce(document_type).value,
        file_path=file_path,
        original_filename=original_filename or '',
        status=PENDING,
        created_by=user if getattr(user, 'id', None) else None,
    )
    log_action(user=user, action='ocr_job_create', object_type='ocr_job', object_id=job.id,
               detail={'playerId': player.id, 'documentType': job.document_type})
    return process_job(job, user=user)


def process_job(job: OCRJob, *, user: Optional[User] = None) -> OCRJob:
    _transition(job, PROCESSING, error_message='')
    try:
        result = recognize(job.file_path, job.document_type)
        fields = extract_structured_data(result.text, job.document_type)
        _transition(
            job,
            COMPLETED,
            raw_text=result.text,
            extracted_data=fields.to_dict(),
            confidence_score=result.confidence,
            processing_time=result.processing_time,
        )
    except Exception as e:
        logger.warning("ocr_job_failed", job_id=job.id, error=str(e))
        # a failed completion write leaves the in-memory status ahead of the row
        job.status = PROCESSING
        _transition(job, FAILED, raw_text=None, extracted_data=None, confidence_score=None,
                    processing_time=None, error_message=str(e))
        raise OCRProcessingError(str(e) or 'Fehler bei der OCR-Verarbeitung', job=job) from e

    _notify_completed(job)
    log_action(user=user, action='ocr_job_completed', object_type='ocr_job', object_id=job.id,
               detail={'confidence': job.confidence_score})
    return job


def retry_job(job: OCRJob, *, user: Optional[User] = None) -> OCRJob:
    """Re-run processing for a failed job.  No backoff and no retry limit."""
    if job.status != FAILED:
        raise InvalidTransition(job.status, PROCESSING)
    log_action(user=user, action='ocr_job_retry', object_type='ocr_job', object_id=job.id)
    return process_job(job, user=user)


def _notify_completed(job: OCRJob) -> None:
    if not job.created_by_id:
        return
    player = job.player
    create_notification(
        recipient=job.created_by,
        notification_type='ocr_completed',
        title='OCR-Verarbeitung abgeschlossen',
        message=f"Dokument {job.original_filename or job.file_path} für {player.full_name} wurde digitalisiert",
        priority='low',
        action_required=False,
        related_table=OCRJob._meta.db_table,
        related_id=job.id,
        metadata={
            'player_name': player.full_name,
            'document_type': job.document_type,
            'confidence_score': job.confidence_score,
        },
    )


def delete_job(job: OCRJob, *, user: Optional[User] = None) -> bool:
    """Delete the row, then the backing file.

    Returns whether the file was removed too.  A failing file delete
    leaves the file orphaned; the row stays deleted.
    """
    job_id, path = job.id, job.file_path
    job.delete()
    log_action(user=user, action='ocr_job_delete', object_type='ocr_job', object_id=job_id, detail={'filePath': path})
    try:
        storage.delete(path)
    except Exception as e:
        logger.warning("ocr_file_orphaned", job_id=job_id, file_path=path, error=str(e))
        return False
    return True


def parse_german_date(value: str, *, default: Optional[date] = None) -> date:
    """``dd.mm.yyyy`` -> date; anything else falls back to ``default`` (today)."""
    try:
        return datetime.strptime((value or '').strip(), '%d.%m.%Y').date()
    except ValueError:
        return default or timezone.localdate()


@transaction.atomic
def promote_job(job: OCRJob, *, user: User) -> Tuple[str, object]:
    """Materialise ``extracted_data`` into a clinical record.

    Physio assessments become :class:`PhysioAssessment` rows, every other
    type a :class:`MedicalTreatment`.  Not idempotent: promoting twice
    creates two records.
    """
    if job.status != COMPLETED:
        raise PromotionError('Nur abgeschlossene OCR-Aufträge können übernommen werden')

    doc_type = DocumentType.coerce(job.document_type)
    fields = fields_from_dict(doc_type, job.extracted_data)
    record_date = parse_german_date(fields.date)

    if doc_type is DocumentType.PHYSIO_ASSESSMENT:
        require_any(user, [MODULE_PHYSIO])
        record = PhysioAssessment.objects.create(
            player=job.player,
            date_of_assessment=record_date,
            diagnosis=fields.diagnosis,
            pain_intensity=max(0, min(getattr(fields, 'pain_level', 0) or 0, 10)),
            therapy_goals=getattr(fields, 'therapy_goals', ''),
            mobility_assessment=getattr(fields, 'mobility_assessment', ''),
            therapist=user,
        )
        kind = PhysioAssessment._meta.db_table
    else:
        require_any(user, [MODULE_MEDICAL])
        codes = getattr(fields, 'icd10_codes', ())
        record = MedicalTreatment.objects.create(
            player=job.player,
            treatment_date=record_date,
            diagnosis=fields.diagnosis,
            icd10_code=codes[0] if codes else '',
            treatment_notes=f"OCR-Import: {job.original_filename}",
            therapy_recommendations=getattr(fields, 'recommendations', ''),
            created_by=user,
        )
        kind = MedicalTreatment._meta.db_table

    log_action(user=user, action='ocr_job_promote', object_type='ocr_job', object_id=job.id,
               detail={'table': kind, 'recordId': record.id})
    logger.info("ocr_job_promoted", job_id=job.id, table=kind, record_id=record.id)
    return kind, record
