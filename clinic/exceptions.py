"""
Domain exceptions and the DRF exception handler.

Services raise the exceptions below; views either translate them into a
response envelope themselves or let them reach
:func:`api_exception_handler`, which renders every error as
``{'ok': False, 'error': {'code', 'message'}}``.
"""
import structlog
from django.db.models import ProtectedError
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response

logger = structlog.get_logger(__name__)


class ClinicError(Exception):
    code = 'clinic_error'
    status_code = 400


class InvalidTransition(ClinicError):
    """An OCR job was asked to move along an edge its lifecycle forbids."""
    code = 'invalid_transition'
    status_code = 409

    def __init__(self, current: str, target: str):
        super().__init__(f'cannot move job from {current} to {target}')
        self.current = current
        self.target = target


class RecognitionError(ClinicError):
    code = 'recognition_failed'
    status_code = 500


class OCRProcessingError(ClinicError):
    code = 'OCR_PROCESSING_ERROR'
    status_code = 500

    def __init__(self, message: str, job=None):
        super().__init__(message)
        self.job = job


class PromotionError(ClinicError):
    code = 'promotion_failed'
    status_code = 409


class StorageError(ClinicError):
    code = 'storage_error'
    status_code = 400


def api_exception_handler(exc, context):
    if isinstance(exc, ClinicError):
        return Response({'ok': False, 'error': {'code': exc.code, 'message': str(exc)}}, status=exc.status_code)
    if isinstance(exc, PermissionError):
        return Response({'ok': False, 'error': {'code': 'forbidden', 'message': str(exc)}}, status=403)
    if isinstance(exc, ProtectedError):
        return Response({'ok': False, 'error': {'code': 'protected', 'message': 'record is still referenced'}}, status=409)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.error("unhandled_api_exception", error=str(exc), view=str(context.get('view')))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': detail}}, status=resp.status_code)
