"""
Django admin registrations for the clinic models.

Superusers can inspect records, OCR jobs, notifications and the audit
trail under ``/admin/``.  Audit events are read-only.
"""

from django.contrib import admin

from .models import (
    Appointment,
    AuditEvent,
    CMJTest,
    DocumentationEntry,
    MedicalDocument,
    MedicalTreatment,
    Notification,
    OCRJob,
    PerformanceAssessment,
    PhysioAssessment,
    Player,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'full_name', 'role', 'team', 'is_active', 'is_superuser')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'full_name', 'first_name', 'last_name')


@admin.register(Player)
class PlayerAdmin(admin.ModelAdmin):
    list_display = ('last_name', 'first_name', 'jersey_number', 'position', 'is_active')
    list_filter = ('is_active', 'position')
    search_fields = ('first_name', 'last_name')


@admin.register(CMJTest)
class CMJTestAdmin(admin.ModelAdmin):
    list_display = ('player', 'test_date', 'jump_height_cm', 'rsi_score')
    list_filter = ('test_date',)
    search_fields = ('player__last_name',)


@admin.register(PerformanceAssessment)
class PerformanceAssessmentAdmin(admin.ModelAdmin):
    list_display = ('player', 'assessment_date', 'risk_score', 'return_to_play_status')
    search_fields = ('player__last_name',)


class DocumentationEntryInline(admin.TabularInline):
    model = DocumentationEntry
    extra = 0


@admin.register(PhysioAssessment)
class PhysioAssessmentAdmin(admin.ModelAdmin):
    list_display = ('player', 'date_of_assessment', 'diagnosis', 'pain_intensity', 'therapist')
    search_fields = ('player__last_name', 'diagnosis')
    inlines = [DocumentationEntryInline]


@admin.register(MedicalTreatment)
class MedicalTreatmentAdmin(admin.ModelAdmin):
    list_display = ('player', 'treatment_date', 'icd10_code', 'diagnosis', 'treating_doctor')
    search_fields = ('player__last_name', 'icd10_code', 'diagnosis')


@admin.register(MedicalDocument)
class MedicalDocumentAdmin(admin.ModelAdmin):
    list_display = ('document_name', 'player', 'document_type', 'upload_date')
    list_filter = ('document_type',)


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('player', 'staff', 'appointment_date', 'appointment_type', 'status')
    list_filter = ('status', 'appointment_type')


@admin.register(OCRJob)
class OCRJobAdmin(admin.ModelAdmin):
    list_display = ('id', 'player', 'document_type', 'status', 'confidence_score', 'created_at')
    list_filter = ('status', 'document_type')
    search_fields = ('id', 'original_filename', 'player__last_name')


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'recipient', 'notification_type', 'priority', 'is_read', 'created_at')
    list_filter = ('notification_type', 'priority', 'is_read')
    search_fields = ('title', 'recipient__username')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'object_type', 'object_id', 'user')
    list_filter = ('action', 'object_type')
    readonly_fields = ('user', 'action', 'object_type', 'object_id', 'detail', 'created_at')
