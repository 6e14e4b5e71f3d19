from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import MODULE_DASHBOARD, require_capability
from clinic.services.dashboard import dashboard_stats, recent_activities


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_capability(MODULE_DASHBOARD)])
def dashboard(request):
    """Figures and recent activity for the start page, scoped to the caller's role."""
    return Response({
        'ok': True,
        'data': dashboard_stats(request.user),
        'recentActivities': recent_activities(request.user),
    })
