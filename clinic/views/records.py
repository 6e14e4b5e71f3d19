"""
Medical record CRUD endpoints.

Players, CMJ tests, performance assessments, physio assessments (with
their append-only documentation), medical treatments and appointments.
Access follows the role capability table: athletics records for
trainers, physio records for physiotherapists, treatments for
physicians; admins see everything.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from clinic.models import (
    Appointment,
    CMJTest,
    DocumentationEntry,
    MedicalTreatment,
    PerformanceAssessment,
    PhysioAssessment,
    Player,
)
from clinic.permissions import (
    MODULE_APPOINTMENTS,
    MODULE_ATHLETICS,
    MODULE_MEDICAL,
    MODULE_PHYSIO,
    MODULE_PLAYERS,
    PLAYERS_MANAGE,
    require_capability,
)
from clinic.serializers.records import (
    AppointmentSerializer,
    CMJTestSerializer,
    DocumentationEntrySerializer,
    MedicalTreatmentSerializer,
    PerformanceAssessmentSerializer,
    PhysioAssessmentSerializer,
    PlayerSerializer,
    RecordListQuerySerializer,
)
from clinic.services.audit import log_action


def list_response(request, queryset, serializer_class, *, player_field: str | None = 'player_id'):
    q = RecordListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    player_id = q.validated_data.get('playerId')
    if player_id and player_field:
        queryset = queryset.filter(**{player_field: player_id})
    total = queryset.count()
    page = q.validated_data.get('page') or 1
    page_size = q.validated_data.get('pageSize') or 50
    start = (page-1)*page_size
    items = queryset[start:start+page_size]
    return Response({
        'ok': True,
        'data': serializer_class(items, many=True).data,
        'pagination': {'total': total, 'page': page, 'pageSize': page_size},
    })


def create_response(request, serializer_class, **save_kwargs):
    s = serializer_class(data=request.data)
    s.is_valid(raise_exception=True)
    obj = s.save(**save_kwargs)
    return Response({'ok': True, 'data': serializer_class(obj).data}, status=status.HTTP_201_CREATED)


def detail_response(request, obj, serializer_class, *, allow_delete: bool = True):
    if request.method == 'GET':
        return Response({'ok': True, 'data': serializer_class(obj).data})
    if request.method in ('PUT', 'PATCH'):
        s = serializer_class(obj, data=request.data, partial=request.method == 'PATCH')
        s.is_valid(raise_exception=True)
        obj = s.save()
        return Response({'ok': True, 'data': serializer_class(obj).data})
    if not allow_delete:
        return Response({'ok': False, 'error': {'code': 'method_not_allowed', 'message': 'delete not supported'}},
                        status=status.HTTP_405_METHOD_NOT_ALLOWED)
    obj.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_PLAYERS, write_capability=PLAYERS_MANAGE)])
def players(request):
    if request.method == 'GET':
        qs = Player.objects.all()
        if request.query_params.get('includeInactive') not in ('1', 'true'):
            qs = qs.filter(is_active=True)
        return list_response(request, qs, PlayerSerializer, player_field='id')
    return create_response(request, PlayerSerializer)


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, require_capability(MODULE_PLAYERS, write_capability=PLAYERS_MANAGE)])
def player_detail(request, pk: int):
    player = get_object_or_404(Player, pk=pk)
    if request.method == 'DELETE':
        # players are only ever deactivated
        player.is_active = False
        player.save(update_fields=['is_active', 'updated_at'])
        log_action(user=request.user, action='player_deactivate', object_type='player', object_id=player.id)
        return Response({'ok': True, 'data': PlayerSerializer(player).data})
    return detail_response(request, player, PlayerSerializer)


# ---------------------------------------------------------------------
# Athletics: CMJ tests and performance assessments
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_ATHLETICS)])
def cmj_tests(request):
    if request.method == 'GET':
        return list_response(request, CMJTest.objects.select_related('player'), CMJTestSerializer)
    return create_response(request, CMJTestSerializer, tested_by=request.user)


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, require_capability(MODULE_ATHLETICS)])
def cmj_test_detail(request, pk: int):
    return detail_response(request, get_object_or_404(CMJTest.objects.select_related('player'), pk=pk), CMJTestSerializer)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_ATHLETICS)])
def performance_assessments(request):
    if request.method == 'GET':
        qs = PerformanceAssessment.objects.select_related('player')
        return list_response(request, qs, PerformanceAssessmentSerializer)
    return create_response(request, PerformanceAssessmentSerializer, assessed_by=request.user)


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, require_capability(MODULE_ATHLETICS)])
def performance_assessment_detail(request, pk: int):
    obj = get_object_or_404(PerformanceAssessment.objects.select_related('player'), pk=pk)
    return detail_response(request, obj, PerformanceAssessmentSerializer)


# ---------------------------------------------------------------------
# Physiotherapy
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_PHYSIO)])
def physio_assessments(request):
    if request.method == 'GET':
        return list_response(request, PhysioAssessment.objects.select_related('player'), PhysioAssessmentSerializer)
    return create_response(request, PhysioAssessmentSerializer, therapist=request.user)


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, require_capability(MODULE_PHYSIO)])
def physio_assessment_detail(request, pk: int):
    obj = get_object_or_404(PhysioAssessment.objects.select_related('player'), pk=pk)
    return detail_response(request, obj, PhysioAssessmentSerializer)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_PHYSIO)])
def physio_documentation(request, pk: int):
    """Follow-up notes of one assessment.  Append-only."""
    assessment = get_object_or_404(PhysioAssessment, pk=pk)
    if request.method == 'GET':
        entries = DocumentationEntry.objects.filter(assessment=assessment)
        return Response({'ok': True, 'data': DocumentationEntrySerializer(entries, many=True).data})
    data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
    if not data.get('date'):
        data['date'] = timezone.localdate().isoformat()
    s = DocumentationEntrySerializer(data=data)
    s.is_valid(raise_exception=True)
    entry = s.save(assessment=assessment, therapist=request.user)
    return Response({'ok': True, 'data': DocumentationEntrySerializer(entry).data}, status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------
# Medical treatments
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_MEDICAL)])
def medical_treatments(request):
    if request.method == 'GET':
        return list_response(request, MedicalTreatment.objects.select_related('player'), MedicalTreatmentSerializer)
    return create_response(request, MedicalTreatmentSerializer, created_by=request.user)


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, require_capability(MODULE_MEDICAL)])
def medical_treatment_detail(request, pk: int):
    obj = get_object_or_404(MedicalTreatment.objects.select_related('player'), pk=pk)
    return detail_response(request, obj, MedicalTreatmentSerializer)


# ---------------------------------------------------------------------
# Appointments
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_capability(MODULE_APPOINTMENTS)])
def appointments(request):
    if request.method == 'GET':
        qs = Appointment.objects.select_related('player', 'staff')
        if request.query_params.get('status'):
            qs = qs.filter(status=request.query_params['status'])
        return list_response(request, qs, AppointmentSerializer)
    data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
    data.setdefault('staff', request.user.id)
    s = AppointmentSerializer(data=data)
    s.is_valid(raise_exception=True)
    obj = s.save()
    return Response({'ok': True, 'data': AppointmentSerializer(obj).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, require_capability(MODULE_APPOINTMENTS)])
def appointment_detail(request, pk: int):
    obj = get_object_or_404(Appointment.objects.select_related('player', 'staff'), pk=pk)
    return detail_response(request, obj, AppointmentSerializer)
