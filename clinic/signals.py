"""
Model signal receivers feeding the change feed.

Events are published after the surrounding transaction commits so
subscribers never see rows that are later rolled back.
"""
from functools import partial

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from clinic.models import (
    Appointment,
    CMJTest,
    DocumentationEntry,
    MedicalDocument,
    MedicalTreatment,
    Notification,
    OCRJob,
    PerformanceAssessment,
    PhysioAssessment,
    Player,
)
from clinic.realtime.feed import DELETE, INSERT, UPDATE, ChangeEvent, publish

TRACKED_MODELS = (
    Player,
    CMJTest,
    PerformanceAssessment,
    PhysioAssessment,
    DocumentationEntry,
    MedicalTreatment,
    MedicalDocument,
    Appointment,
    OCRJob,
    Notification,
)

TABLE_MODELS = {m._meta.db_table: m for m in TRACKED_MODELS}


@receiver(post_save)
def publish_save(sender, instance, created, raw=False, **kwargs):
    if raw or sender not in TRACKED_MODELS:
        return
    event = ChangeEvent.for_instance(instance, INSERT if created else UPDATE)
    transaction.on_commit(partial(publish, event))


@receiver(post_delete)
def publish_delete(sender, instance, **kwargs):
    if sender not in TRACKED_MODELS:
        return
    event = ChangeEvent.for_instance(instance, DELETE)
    transaction.on_commit(partial(publish, event))
