"""Notification center endpoints: list, mark one read, mark all read."""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from clinic.models import Notification
from clinic.permissions import MODULE_NOTIFICATIONS, require_capability
from clinic.services import notifications as svc


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_capability(MODULE_NOTIFICATIONS)])
def notification_list(request):
    limit = svc.LIST_LIMIT
    raw = request.query_params.get('limit')
    if raw and raw.isdigit():
        limit = max(1, min(int(raw), 200))
    items = svc.latest_for(request.user, limit=limit)
    return Response({
        'ok': True,
        'data': [svc.serialize(n) for n in items],
        'unreadCount': svc.unread_count(request.user),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_NOTIFICATIONS)])
def notification_read(request, pk: int):
    try:
        n = svc.mark_read(request.user, pk)
    except Notification.DoesNotExist:
        return Response({'ok': False, 'error': {'code': 'not_found', 'message': 'notification not found'}},
                        status=status.HTTP_404_NOT_FOUND)
    return Response({'ok': True, 'data': svc.serialize(n)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_NOTIFICATIONS)])
def notification_read_all(request):
    changed = svc.mark_all_read(request.user)
    return Response({'ok': True, 'updated': changed, 'unreadCount': 0})
