"""
URL mappings for the VolleyMed API.

Trailing slashes are deliberately omitted (``APPEND_SLASH = False``) so
the paths match what the front-end calls.
"""
from django.urls import path, include

from .auth_views import login_view, me_view
from .views import health
from .views.audit import audit_events
from .views.dashboard import dashboard
from .views.documents import medical_document_detail, medical_document_download, medical_documents
from .views.monitor import critical_values
from .views.notifications import notification_list, notification_read, notification_read_all
from .views.ocr import (
    ocr_job_detail,
    ocr_job_download,
    ocr_job_process,
    ocr_job_promote,
    ocr_job_retry,
    ocr_jobs,
    ocr_process,
)
from .views.records import (
    appointment_detail,
    appointments,
    cmj_test_detail,
    cmj_tests,
    medical_treatment_detail,
    medical_treatments,
    performance_assessment_detail,
    performance_assessments,
    physio_assessment_detail,
    physio_assessments,
    physio_documentation,
    player_detail,
    players,
)


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/me', me_view, name='me'),
    # Dashboard
    path('api/dashboard', dashboard, name='dashboard'),
    # Players
    path('api/players', players, name='players'),
    path('api/players/<int:pk>', player_detail, name='player-detail'),
    # Athletics
    path('api/cmj-tests', cmj_tests, name='cmj-tests'),
    path('api/cmj-tests/<int:pk>', cmj_test_detail, name='cmj-test-detail'),
    path('api/performance-assessments', performance_assessments, name='performance-assessments'),
    path('api/performance-assessments/<int:pk>', performance_assessment_detail, name='performance-assessment-detail'),
    # Physiotherapy
    path('api/physio/assessments', physio_assessments, name='physio-assessments'),
    path('api/physio/assessments/<int:pk>', physio_assessment_detail, name='physio-assessment-detail'),
    path('api/physio/assessments/<int:pk>/documentation', physio_documentation, name='physio-documentation'),
    # Medical
    path('api/medical/treatments', medical_treatments, name='medical-treatments'),
    path('api/medical/treatments/<int:pk>', medical_treatment_detail, name='medical-treatment-detail'),
    path('api/medical/documents', medical_documents, name='medical-documents'),
    path('api/medical/documents/<int:pk>', medical_document_detail, name='medical-document-detail'),
    path('api/medical/documents/<int:pk>/download', medical_document_download, name='medical-document-download'),
    # Appointments
    path('api/appointments', appointments, name='appointments'),
    path('api/appointments/<int:pk>', appointment_detail, name='appointment-detail'),
    # OCR intake
    path('api/ocr/process', ocr_process, name='ocr-process'),
    path('api/ocr/jobs', ocr_jobs, name='ocr-jobs'),
    path('api/ocr/jobs/<int:pk>', ocr_job_detail, name='ocr-job-detail'),
    path('api/ocr/jobs/<int:pk>/process', ocr_job_process, name='ocr-job-process'),
    path('api/ocr/jobs/<int:pk>/retry', ocr_job_retry, name='ocr-job-retry'),
    path('api/ocr/jobs/<int:pk>/promote', ocr_job_promote, name='ocr-job-promote'),
    path('api/ocr/jobs/<int:pk>/download', ocr_job_download, name='ocr-job-download'),
    # Notifications
    path('api/notifications', notification_list, name='notifications'),
    path('api/notifications/read-all', notification_read_all, name='notifications-read-all'),
    path('api/notifications/<int:pk>/read', notification_read, name='notification-read'),
    # Monitor and audit
    path('api/monitor/critical-values', critical_values, name='monitor-critical-values'),
    path('api/audit', audit_events, name='audit-events'),
]
