"""Read-only audit trail for admins."""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.models import AuditEvent
from clinic.permissions import IsAdminRole


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_events(request):
    qs = AuditEvent.objects.order_by('-created_at', '-id')
    action = request.query_params.get('action')
    if action:
        qs = qs.filter(action=action)
    object_type = request.query_params.get('objectType')
    if object_type:
        qs = qs.filter(object_type=object_type)
    data = [{
        'id': e.id,
        'userId': e.user_id,
        'action': e.action,
        'objectType': e.object_type,
        'objectId': e.object_id,
        'detail': e.detail,
        'createdAt': e.created_at.isoformat(),
    } for e in qs[:200]]
    return Response({'ok': True, 'data': data})
