"""
Database models for the VolleyMed backend.

These models capture the medical documentation kept by the club's staff:
players, performance tests, physiotherapy intake records, medical
treatments with their attached documents, appointments, OCR intake jobs
and the notifications raised by the critical-value monitor.  The
``db_table`` names are part of the contract because notifications link
back to their source rows via ``related_table`` + ``related_id``.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Staff account with a role from a closed set.

    The role decides which modules a user may open and which alert
    classes the critical-value monitor routes to them (see
    :mod:`clinic.permissions`).
    """
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('trainer', 'Athletiktrainer'),
        ('physiotherapist', 'Physiotherapeut'),
        ('physician', 'Arzt'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='trainer', db_index=True)
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=50, blank=True)
    team = models.CharField(max_length=100, blank=True)
    position = models.CharField(max_length=100, blank=True)

    def display_name(self) -> str:
        return self.full_name or self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Player(models.Model):
    """A squad member.  Players are deactivated, never hard-deleted."""
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    date_of_birth = models.DateField(null=True, blank=True)
    jersey_number = models.PositiveIntegerField(null=True, blank=True)
    position = models.CharField(max_length=50, blank=True)
    height = models.DecimalField(max_digits=5, decimal_places=1, null=True, blank=True, help_text="cm")
    weight = models.DecimalField(max_digits=5, decimal_places=1, null=True, blank=True, help_text="kg")
    emergency_contact = models.CharField(max_length=255, blank=True)
    emergency_phone = models.CharField(max_length=50, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'players'
        ordering = ['last_name', 'first_name']

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __str__(self) -> str:
        return self.full_name


class CMJTest(models.Model):
    """Counter movement jump test.  ``rsi_score`` drives the low-RSI alert."""
    player = models.ForeignKey(Player, on_delete=models.PROTECT, related_name='cmj_tests')
    test_date = models.DateField(db_index=True)
    jump_height_cm = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    flight_time_ms = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)
    ground_contact_time_ms = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)
    balance_left_percent = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    balance_right_percent = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    peak_force_n = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    power_watts = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    rsi_score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True, db_index=True)
    notes = models.TextField(blank=True)
    tested_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'cmj_tests'
        ordering = ['-test_date', '-id']

    def __str__(self) -> str:
        return f"CMJ {self.player_id} @ {self.test_date}"


class PerformanceAssessment(models.Model):
    player = models.ForeignKey(Player, on_delete=models.PROTECT, related_name='performance_assessments')
    assessment_date = models.DateField(db_index=True)
    risk_score = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    fatigue_level = models.PositiveSmallIntegerField(null=True, blank=True)
    readiness_score = models.PositiveSmallIntegerField(null=True, blank=True)
    strength_assessment = models.TextField(blank=True)
    mobility_assessment = models.TextField(blank=True)
    recommendations = models.TextField(blank=True)
    return_to_play_status = models.CharField(max_length=50, blank=True)
    assessed_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'performance_assessments'
        ordering = ['-assessment_date', '-id']


class PhysioAssessment(models.Model):
    """Physiotherapy intake (Eingangsbefund).

    Most fields are free-text anamnesis.  ``pain_intensity`` (0-10)
    drives the high-pain alert.
    """
    player = models.ForeignKey(Player, on_delete=models.PROTECT, related_name='physio_assessments')
    date_of_assessment = models.DateField(db_index=True)
    diagnosis = models.TextField(blank=True)
    secondary_diagnosis = models.TextField(blank=True)
    medications = models.TextField(blank=True)
    recreational_activities = models.TextField(blank=True)
    social_history = models.TextField(blank=True)
    current_occupation = models.CharField(max_length=255, blank=True)
    current_complaints = models.TextField(blank=True)
    complaints_in_daily_life = models.TextField(blank=True)
    complaints_since_when = models.CharField(max_length=255, blank=True)
    frequency_of_complaints = models.CharField(max_length=255, blank=True)
    triggered_by = models.TextField(blank=True)
    relieved_by = models.TextField(blank=True)
    previous_treatments = models.TextField(blank=True)
    previous_therapies = models.TextField(blank=True)
    inspection_findings = models.TextField(blank=True)
    palpation_findings = models.TextField(blank=True)
    pain_intensity = models.PositiveSmallIntegerField(default=0, db_index=True)
    pain_description = models.TextField(blank=True)
    specific_findings = models.TextField(blank=True)
    mobility_assessment = models.TextField(blank=True)
    therapy_goals = models.TextField(blank=True)
    therapist = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'physio_assessments'
        ordering = ['-date_of_assessment', '-id']


class DocumentationEntry(models.Model):
    """Append-only follow-up note for a physio assessment."""
    assessment = models.ForeignKey(PhysioAssessment, on_delete=models.CASCADE, related_name='documentation')
    date = models.DateField()
    notes = models.TextField()
    therapist = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'physio_documentation'
        ordering = ['date', 'id']


class MedicalTreatment(models.Model):
    player = models.ForeignKey(Player, on_delete=models.PROTECT, related_name='medical_treatments')
    treatment_date = models.DateField(db_index=True)
    treating_doctor = models.CharField(max_length=255, blank=True)
    hospital_or_practice = models.CharField(max_length=255, blank=True)
    icd10_code = models.CharField(max_length=20, blank=True)
    diagnosis = models.TextField(blank=True)
    treatment_measures = models.TextField(blank=True)
    therapy_recommendations = models.TextField(blank=True)
    prognosis = models.TextField(blank=True)
    follow_up_date = models.DateField(null=True, blank=True)
    treatment_notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'medical_treatments'
        ordering = ['-treatment_date', '-id']


class MedicalDocument(models.Model):
    """File attachment.  Immutable once uploaded; deletable (row + file)."""
    player = models.ForeignKey(Player, on_delete=models.PROTECT, related_name='medical_documents')
    treatment = models.ForeignKey(
        MedicalTreatment, null=True, blank=True, on_delete=models.SET_NULL, related_name='documents'
    )
    document_type = models.CharField(max_length=50)
    document_name = models.CharField(max_length=255)
    file_path = models.CharField(max_length=500)
    content_type = models.CharField(max_length=100, blank=True)
    upload_date = models.DateTimeField(auto_now_add=True)
    uploaded_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'medical_documents'
        ordering = ['-upload_date', '-id']


class Appointment(models.Model):
    STATUS_CHOICES = [
        ('scheduled', 'Geplant'),
        ('completed', 'Abgeschlossen'),
        ('cancelled', 'Abgesagt'),
        ('no_show', 'Nicht erschienen'),
    ]
    player = models.ForeignKey(Player, on_delete=models.PROTECT, related_name='appointments')
    staff = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments')
    appointment_date = models.DateTimeField(db_index=True)
    appointment_type = models.CharField(max_length=50, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='scheduled', db_index=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'appointments'
        ordering = ['appointment_date', 'id']


class OCRJob(models.Model):
    """One document submitted for digitisation.

    Lifecycle: pending -> processing -> completed | failed, with
    failed -> processing as the only backward move (manual retry).
    Transitions are enforced by :mod:`clinic.services.ocr`.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
    ]
    player = models.ForeignKey(Player, on_delete=models.PROTECT, related_name='ocr_jobs')
    document_type = models.CharField(max_length=50)
    file_path = models.CharField(max_length=500)
    original_filename = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    raw_text = models.TextField(null=True, blank=True)
    extracted_data = models.JSONField(null=True, blank=True)
    confidence_score = models.FloatField(null=True, blank=True)
    processing_time = models.PositiveIntegerField(null=True, blank=True, help_text="ms")
    error_message = models.TextField(blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='ocr_jobs')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'ocr_jobs'
        ordering = ['-created_at', '-id']

    def __str__(self) -> str:
        return f"OCRJob#{self.pk} {self.document_type} ({self.status})"


class Notification(models.Model):
    """Alert addressed to a single staff member.

    Only the critical-value monitor and the OCR completion path create
    notifications; afterwards only the read state changes.
    """
    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('critical', 'Critical'),
    ]
    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    sender = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    notification_type = models.CharField(max_length=50, db_index=True)
    title = models.CharField(max_length=255)
    message = models.TextField()
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    action_required = models.BooleanField(default=False)
    action_taken = models.BooleanField(default=False)
    related_table = models.CharField(max_length=64, blank=True, null=True)
    related_id = models.BigIntegerField(blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['related_table', 'related_id', 'notification_type'], name='notif_related_idx'),
            models.Index(fields=['recipient', 'is_read'], name='notif_recipient_read_idx'),
        ]


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.BigIntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_idx'),
        ]
