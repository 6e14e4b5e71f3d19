"""
OCR intake endpoints.

``/api/ocr/jobs`` manages the job lifecycle (upload, process, retry,
delete, promote).  ``/api/ocr/process`` is the bare OCR invocation
boundary: it recognises an already stored file and answers with the
``{'data': ...}`` / ``{'error': {'code', 'message'}}`` envelope.
"""
from __future__ import annotations

import os

import structlog
from django.http import FileResponse
from django.shortcuts import get_object_or_404
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from clinic.exceptions import OCRProcessingError, RecognitionError
from clinic.models import OCRJob
from clinic.permissions import MODULE_OCR, require_capability
from clinic.serializers.ocr import OCRListQuerySerializer, OCRProcessSerializer, OCRUploadSerializer
from clinic.services import ocr as ocr_service
from clinic.services import storage
from clinic.services.recognition import run_ocr

logger = structlog.get_logger(__name__)


def serialize_job(job: OCRJob) -> dict:
    return {
        'id': job.id,
        'playerId': job.player_id,
        'playerName': job.player.full_name if job.player_id else None,
        'documentType': job.document_type,
        'filePath': job.file_path,
        'originalFilename': job.original_filename,
        'status': job.status,
        'rawText': job.raw_text,
        'extractedData': job.extracted_data,
        'confidenceScore': job.confidence_score,
        'processingTime': job.processing_time,
        'errorMessage': job.error_message or None,
        'createdBy': job.created_by_id,
        'createdAt': job.created_at.isoformat() if job.created_at else None,
        'updatedAt': job.updated_at.isoformat() if job.updated_at else None,
    }


def _failed(e: OCRProcessingError):
    payload = {'ok': False, 'error': {'code': e.code, 'message': str(e)}}
    if e.job is not None:
        payload['data'] = serialize_job(e.job)
    return Response(payload, status=e.status_code)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_OCR)])
@parser_classes([MultiPartParser, FormParser])
def ocr_jobs(request):
    if request.method == 'GET':
        q = OCRListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        qs = OCRJob.objects.select_related('player')
        if q.validated_data.get('status'):
            qs = qs.filter(status=q.validated_data['status'])
        if q.validated_data.get('playerId'):
            qs = qs.filter(player_id=q.validated_data['playerId'])
        total = qs.count()
        page = q.validated_data.get('page') or 1
        page_size = q.validated_data.get('pageSize') or 50
        start = (page-1)*page_size
        data = [serialize_job(j) for j in qs[start:start+page_size]]
        return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': page_size}})

    s = OCRUploadSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    player = s.validated_data['playerId']
    f = s.validated_data['file']
    path = storage.upload_for_player(ocr_service.OCR_STORAGE_PREFIX, player.id, f)
    try:
        job = ocr_service.create_job(
            player=player,
            document_type=s.validated_data['documentType'],
            file_path=path,
            original_filename=os.path.basename(f.name or ''),
            user=request.user,
        )
    except OCRProcessingError as e:
        return _failed(e)
    return Response({'ok': True, 'data': serialize_job(job)}, status=status.HTTP_201_CREATED)

ocr_jobs.cls.throttle_scope = 'ocr_upload'


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, require_capability(MODULE_OCR)])
def ocr_job_detail(request, pk: int):
    job = get_object_or_404(OCRJob.objects.select_related('player'), pk=pk)
    if request.method == 'GET':
        return Response({'ok': True, 'data': serialize_job(job)})
    file_deleted = ocr_service.delete_job(job, user=request.user)
    return Response({'ok': True, 'fileDeleted': file_deleted})


@api_view(['POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_OCR)])
def ocr_job_process(request, pk: int):
    job = get_object_or_404(OCRJob.objects.select_related('player'), pk=pk)
    try:
        job = ocr_service.process_job(job, user=request.user)
    except OCRProcessingError as e:
        return _failed(e)
    return Response({'ok': True, 'data': serialize_job(job)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_OCR)])
def ocr_job_retry(request, pk: int):
    job = get_object_or_404(OCRJob.objects.select_related('player'), pk=pk)
    try:
        job = ocr_service.retry_job(job, user=request.user)
    except OCRProcessingError as e:
        return _failed(e)
    return Response({'ok': True, 'data': serialize_job(job)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_OCR)])
def ocr_job_promote(request, pk: int):
    job = get_object_or_404(OCRJob.objects.select_related('player'), pk=pk)
    table, record = ocr_service.promote_job(job, user=request.user)
    return Response({'ok': True, 'table': table, 'recordId': record.id}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_capability(MODULE_OCR)])
def ocr_job_download(request, pk: int):
    job = get_object_or_404(OCRJob, pk=pk)
    filename = job.original_filename or os.path.basename(job.file_path)
    return FileResponse(storage.open_file(job.file_path), as_attachment=True, filename=filename)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_OCR)])
@parser_classes([JSONParser])
def ocr_process(request):
    """OCR invocation boundary: recognise a stored file and extract its fields."""
    s = OCRProcessSerializer(data=request.data)
    if not s.is_valid():
        return Response({'error': {'code': 'OCR_PROCESSING_ERROR', 'message': 'file_path ist erforderlich'}},
                        status=status.HTTP_400_BAD_REQUEST)
    vd = s.validated_data
    try:
        data = run_ocr(vd['file_path'], vd.get('document_type'), vd.get('player_id'))
    except RecognitionError as e:
        logger.warning("ocr_process_failed", file_path=vd['file_path'], error=str(e))
        return Response({'error': {'code': 'OCR_PROCESSING_ERROR', 'message': str(e) or 'Fehler bei der OCR-Verarbeitung'}},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({'data': data})
