"""
Serializers for the medical record CRUD endpoints.

Free-text input is run through ``bleach`` before it is stored.
"""
import bleach
from rest_framework import serializers

from clinic.models import (
    Appointment,
    CMJTest,
    DocumentationEntry,
    MedicalDocument,
    MedicalTreatment,
    PerformanceAssessment,
    PhysioAssessment,
    Player,
)


class SanitizedModelSerializer(serializers.ModelSerializer):
    def validate(self, attrs):
        attrs = super().validate(attrs)
        for key, value in attrs.items():
            if isinstance(value, str):
                attrs[key] = bleach.clean(value.strip(), tags=set(), attributes={}, strip=True)
        return attrs


class PlayerSerializer(SanitizedModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Player
        fields = [
            'id', 'first_name', 'last_name', 'full_name', 'date_of_birth', 'jersey_number', 'position',
            'height', 'weight', 'emergency_contact', 'emergency_phone', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['is_active', 'created_at', 'updated_at']


class CMJTestSerializer(SanitizedModelSerializer):
    player_name = serializers.CharField(source='player.full_name', read_only=True)

    class Meta:
        model = CMJTest
        fields = [
            'id', 'player', 'player_name', 'test_date', 'jump_height_cm', 'flight_time_ms',
            'ground_contact_time_ms', 'balance_left_percent', 'balance_right_percent', 'peak_force_n',
            'power_watts', 'rsi_score', 'notes', 'tested_by', 'created_at',
        ]
        read_only_fields = ['tested_by', 'created_at']

    def validate(self, attrs):
        attrs = super().validate(attrs)
        left = attrs.get('balance_left_percent')
        right = attrs.get('balance_right_percent')
        if left is not None and right is not None and left + right > 100:
            raise serializers.ValidationError('balance_left_percent + balance_right_percent must not exceed 100')
        return attrs


class PerformanceAssessmentSerializer(SanitizedModelSerializer):
    player_name = serializers.CharField(source='player.full_name', read_only=True)
    risk_score = serializers.DecimalField(max_digits=4, decimal_places=1, min_value=0, max_value=10,
                                          required=False, allow_null=True)

    class Meta:
        model = PerformanceAssessment
        fields = [
            'id', 'player', 'player_name', 'assessment_date', 'risk_score', 'fatigue_level', 'readiness_score',
            'strength_assessment', 'mobility_assessment', 'recommendations', 'return_to_play_status',
            'assessed_by', 'created_at',
        ]
        read_only_fields = ['assessed_by', 'created_at']


class PhysioAssessmentSerializer(SanitizedModelSerializer):
    player_name = serializers.CharField(source='player.full_name', read_only=True)
    pain_intensity = serializers.IntegerField(min_value=0, max_value=10, required=False)

    class Meta:
        model = PhysioAssessment
        fields = [
            'id', 'player', 'player_name', 'date_of_assessment', 'diagnosis', 'secondary_diagnosis', 'medications',
            'recreational_activities', 'social_history', 'current_occupation', 'current_complaints',
            'complaints_in_daily_life', 'complaints_since_when', 'frequency_of_complaints', 'triggered_by',
            'relieved_by', 'previous_treatments', 'previous_therapies', 'inspection_findings',
            'palpation_findings', 'pain_intensity', 'pain_description', 'specific_findings',
            'mobility_assessment', 'therapy_goals', 'therapist', 'created_at', 'updated_at',
        ]
        read_only_fields = ['therapist', 'created_at', 'updated_at']


class DocumentationEntrySerializer(SanitizedModelSerializer):
    class Meta:
        model = DocumentationEntry
        fields = ['id', 'assessment', 'date', 'notes', 'therapist', 'created_at']
        read_only_fields = ['assessment', 'therapist', 'created_at']


class MedicalTreatmentSerializer(SanitizedModelSerializer):
    player_name = serializers.CharField(source='player.full_name', read_only=True)

    class Meta:
        model = MedicalTreatment
        fields = [
            'id', 'player', 'player_name', 'treatment_date', 'treating_doctor', 'hospital_or_practice',
            'icd10_code', 'diagnosis', 'treatment_measures', 'therapy_recommendations', 'prognosis',
            'follow_up_date', 'treatment_notes', 'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']


class MedicalDocumentSerializer(serializers.ModelSerializer):
    class Meta:
        model = MedicalDocument
        fields = [
            'id', 'player', 'treatment', 'document_type', 'document_name', 'file_path', 'content_type',
            'upload_date', 'uploaded_by', 'notes',
        ]
        read_only_fields = fields


class MedicalDocumentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    player = serializers.PrimaryKeyRelatedField(queryset=Player.objects.all())
    treatment = serializers.PrimaryKeyRelatedField(queryset=MedicalTreatment.objects.all(), required=False, allow_null=True)
    document_type = serializers.CharField(max_length=50)
    document_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        treatment = attrs.get('treatment')
        if treatment is not None and treatment.player_id != attrs['player'].id:
            raise serializers.ValidationError('treatment belongs to another player')
        return attrs


class AppointmentSerializer(SanitizedModelSerializer):
    player_name = serializers.CharField(source='player.full_name', read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id', 'player', 'player_name', 'staff', 'appointment_date', 'appointment_type', 'status', 'notes',
            'created_at',
        ]
        read_only_fields = ['created_at']


class RecordListQuerySerializer(serializers.Serializer):
    playerId = serializers.IntegerField(min_value=1, required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=200, required=False)
