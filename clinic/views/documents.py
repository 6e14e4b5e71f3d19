"""
Medical document attachments.

Documents are immutable once uploaded: there is no update endpoint.
Deleting removes the row first and then the stored file.
"""
from __future__ import annotations

import structlog
from django.http import FileResponse
from django.shortcuts import get_object_or_404
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from clinic.models import MedicalDocument
from clinic.permissions import MODULE_MEDICAL, require_capability
from clinic.serializers.records import MedicalDocumentSerializer, MedicalDocumentUploadSerializer
from clinic.services import storage
from clinic.services.audit import log_action
from clinic.views.records import list_response

logger = structlog.get_logger(__name__)

DOCUMENT_STORAGE_PREFIX = 'medical-documents'


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_MEDICAL)])
@parser_classes([MultiPartParser, FormParser])
def medical_documents(request):
    if request.method == 'GET':
        qs = MedicalDocument.objects.all()
        if request.query_params.get('treatmentId'):
            qs = qs.filter(treatment_id=request.query_params['treatmentId'])
        return list_response(request, qs, MedicalDocumentSerializer)

    s = MedicalDocumentUploadSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    f = vd['file']
    content_type = storage.validate_upload(f)
    path = storage.upload(storage.build_path(DOCUMENT_STORAGE_PREFIX, vd['player'].id, f.name), f)
    doc = MedicalDocument.objects.create(
        player=vd['player'],
        treatment=vd.get('treatment'),
        document_type=vd['document_type'],
        document_name=vd.get('document_name') or f.name,
        file_path=path,
        content_type=content_type,
        uploaded_by=request.user,
        notes=vd.get('notes', ''),
    )
    log_action(user=request.user, action='document_upload', object_type='medical_document', object_id=doc.id,
               detail={'playerId': doc.player_id, 'path': path})
    return Response({'ok': True, 'data': MedicalDocumentSerializer(doc).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, require_capability(MODULE_MEDICAL)])
def medical_document_detail(request, pk: int):
    doc = get_object_or_404(MedicalDocument, pk=pk)
    if request.method == 'GET':
        return Response({'ok': True, 'data': MedicalDocumentSerializer(doc).data})
    path = doc.file_path
    doc.delete()
    log_action(user=request.user, action='document_delete', object_type='medical_document', object_id=pk,
               detail={'path': path})
    try:
        storage.delete(path)
    except Exception as e:
        logger.warning("document_file_orphaned", document_id=pk, file_path=path, error=str(e))
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_capability(MODULE_MEDICAL)])
def medical_document_download(request, pk: int):
    doc = get_object_or_404(MedicalDocument, pk=pk)
    return FileResponse(storage.open_file(doc.file_path), as_attachment=True,
                        filename=doc.document_name, content_type=doc.content_type or None)
