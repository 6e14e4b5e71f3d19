"""
Critical-value monitor trigger.

An external scheduler (cron, k8s CronJob) calls this endpoint; the same
run is available as the ``run_critical_value_monitor`` management
command.
"""
from __future__ import annotations

import structlog
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from clinic.permissions import MONITOR_RUN, require_capability
from clinic.services.monitor import run_critical_value_monitor

logger = structlog.get_logger(__name__)


def _monitor_failed(message: str):
    return Response({'error': {'code': 'MONITORING_FAILED', 'message': message}},
                    status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require_capability(MONITOR_RUN)])
def critical_values(request):
    try:
        report = run_critical_value_monitor()
    except ImproperlyConfigured as e:
        logger.error("monitor_misconfigured", error=str(e))
        return _monitor_failed(str(e))
    except Exception as e:
        logger.exception("monitor_failed", error=str(e))
        return _monitor_failed(str(e) or 'Critical values monitoring failed')
    return Response({
        'success': True,
        'message': 'Critical values monitoring completed',
        'timestamp': timezone.now().isoformat(),
        'data': report.to_dict(),
    })
