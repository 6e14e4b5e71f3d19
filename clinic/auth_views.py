"""
Authentication views.

This module defines the login endpoint used by the front-end and the
``/api/me`` endpoint the UI shell uses for role gating.  By isolating
these views from the authentication class (see
``clinic.authentication``) we prevent circular imports when Django REST
framework initialises authentication classes.
"""
from __future__ import annotations

from django.contrib.auth import authenticate
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import capabilities_for
from clinic.serializers.auth import LoginSerializer
from clinic.services.audit import log_action


def _profile(user) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'name': user.display_name(),
        'email': user.email,
        'role': user.role,
        'phone': user.phone,
        'team': user.team,
        'position': user.position,
        'isActive': user.is_active,
    }


# ---------------------------------------------------------------------
# Username/password login (no role bypass)
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Exchange staff credentials for an API token.
    Any ``role`` sent along is ignored; the role always comes from the
    stored account.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    password = s.validated_data['password']

    user = authenticate(request, username=username, password=password)
    if not user:
        log_action(user=None, action='login', object_type='user', object_id=None,
                   detail={'result': 'fail', 'username': username, 'ip': request.META.get('REMOTE_ADDR')})
        return Response({'ok': False, 'error': {'code': 'invalid_credentials', 'message': 'Benutzername oder Passwort falsch'}}, status=400)

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})

    token_obj, _ = Token.objects.get_or_create(user=user)
    return Response({
        'ok': True,
        'token': token_obj.key,
        'role': user.role,
        'user': _profile(user),
    }, status=200)

# ScopedRateThrottle reads throttle_scope from the wrapped APIView class
login_view.cls.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response({
        'ok': True,
        'user': _profile(request.user),
        'capabilities': sorted(capabilities_for(request.user)),
    })
