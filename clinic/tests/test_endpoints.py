import datetime
from decimal import Decimal
from io import StringIO

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient

from clinic.models import AuditEvent, CMJTest, MedicalDocument, Notification, OCRJob, PhysioAssessment
from clinic.services import storage


def pdf(name="befund.pdf"):
    return SimpleUploadedFile(name, b"%PDF-1.4 scan", content_type="application/pdf")


pytestmark = pytest.mark.django_db


def api(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def test_ocr_upload_processes_the_job(physio, player):
    resp = api(physio).post("/api/ocr/jobs", {"file": pdf(), "playerId": player.id,
                                              "documentType": "physio_assessment"}, format="multipart")
    assert resp.status_code == 201
    job = resp.data["data"]
    assert job["status"] == "completed"
    assert job["originalFilename"] == "befund.pdf"
    assert job["filePath"].startswith(f"ocr/{player.id}/")
    assert job["extractedData"]["pain_level"] == 6
    assert storage.exists(job["filePath"])
    assert Notification.objects.filter(recipient=physio, notification_type="ocr_completed").count() == 1


def test_ocr_upload_rejects_unsupported_files(physio, player):
    bad = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
    resp = api(physio).post("/api/ocr/jobs", {"file": bad, "playerId": player.id}, format="multipart")
    assert resp.status_code == 400
    assert resp.data["error"]["code"] == "storage_error"
    assert not OCRJob.objects.exists()


def test_ocr_job_lifecycle_endpoints(physio, trainer, player):
    client = api(physio)
    job_id = client.post("/api/ocr/jobs", {"file": pdf(), "playerId": player.id,
                                           "documentType": "physio_assessment"}, format="multipart").data["data"]["id"]

    assert client.post(f"/api/ocr/jobs/{job_id}/retry").status_code == 409

    resp = client.get(f"/api/ocr/jobs/{job_id}/download")
    assert resp.status_code == 200
    assert b"".join(resp.streaming_content) == b"%PDF-1.4 scan"

    assert api(trainer).post(f"/api/ocr/jobs/{job_id}/promote").status_code == 403
    resp = client.post(f"/api/ocr/jobs/{job_id}/promote")
    assert resp.status_code == 201
    assert resp.data["table"] == "physio_assessments"
    assert PhysioAssessment.objects.filter(pk=resp.data["recordId"]).exists()

    resp = client.delete(f"/api/ocr/jobs/{job_id}")
    assert resp.status_code == 200 and resp.data["fileDeleted"] is True
    assert client.get(f"/api/ocr/jobs/{job_id}").status_code == 404


def test_ocr_list_filters_by_status(physio, player):
    client = api(physio)
    client.post("/api/ocr/jobs", {"file": pdf(), "playerId": player.id}, format="multipart")
    assert len(client.get("/api/ocr/jobs?status=completed").data["data"]) == 1
    assert client.get("/api/ocr/jobs?status=failed").data["data"] == []
    assert client.get("/api/ocr/jobs?status=bogus").status_code == 400


def test_ocr_process_boundary(physio, player):
    path = storage.upload(storage.build_path("ocr", player.id, "labor.pdf"), b"%PDF-1.4")
    resp = api(physio).post("/api/ocr/process",
                            {"file_path": path, "document_type": "lab_results", "player_id": player.id}, format="json")
    assert resp.status_code == 200
    data = resp.data["data"]
    assert data["success"] is True
    assert data["confidence_score"] == 0.95
    assert data["player_id"] == player.id
    assert data["extracted_data"]["lab_values"]


def test_ocr_process_boundary_failure(physio):
    resp = api(physio).post("/api/ocr/process", {"file_path": "ocr/9/missing.pdf"}, format="json")
    assert resp.status_code == 500
    assert resp.data["error"]["code"] == "OCR_PROCESSING_ERROR"
    resp = api(physio).post("/api/ocr/process", {}, format="json")
    assert resp.status_code == 400


def test_medical_documents(physician, trainer, player):
    client = api(physician)
    resp = client.post("/api/medical/documents", {"file": pdf("mrt.pdf"), "player": player.id,
                                                  "document_type": "radiology"}, format="multipart")
    assert resp.status_code == 201
    doc = MedicalDocument.objects.get()
    assert doc.document_name == "mrt.pdf"
    assert doc.file_path.startswith(f"medical-documents/{player.id}/")
    assert doc.uploaded_by == physician

    assert api(trainer).get("/api/medical/documents").status_code == 403
    assert client.get(f"/api/medical/documents?playerId={player.id}").data["pagination"]["total"] == 1

    resp = client.get(f"/api/medical/documents/{doc.id}/download")
    assert b"".join(resp.streaming_content) == b"%PDF-1.4 scan"

    assert client.delete(f"/api/medical/documents/{doc.id}").status_code == 204
    assert not storage.exists(doc.file_path)


def test_monitor_endpoint(admin, trainer, player):
    CMJTest.objects.create(player=player, test_date=datetime.date(2024, 1, 10), rsi_score=Decimal("1.2"))
    assert api(trainer).post("/api/monitor/critical-values").status_code == 403

    resp = api(admin).post("/api/monitor/critical-values")
    assert resp.status_code == 200
    assert resp.data["success"] is True
    assert resp.data["message"] == "Critical values monitoring completed"
    assert resp.data["data"]["notificationsCreated"] == 2


def test_monitor_endpoint_reports_bad_config(settings, admin):
    settings.CRITICAL_VALUES = None
    resp = api(admin).post("/api/monitor/critical-values")
    assert resp.status_code == 500
    assert resp.data["error"]["code"] == "MONITORING_FAILED"


def test_audit_trail_is_admin_only(admin, trainer):
    AuditEvent.objects.create(action="monitor_run")
    assert api(trainer).get("/api/audit").status_code == 403
    resp = api(admin).get("/api/audit?action=monitor_run")
    assert resp.status_code == 200
    assert resp.data["data"][0]["action"] == "monitor_run"


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "db": True}


def test_ensure_test_users_is_idempotent():
    from django.core.management import call_command
    from clinic.models import User

    call_command("ensure_test_users", stdout=StringIO())
    call_command("ensure_test_users", stdout=StringIO())
    assert sorted(User.objects.values_list("role", flat=True)) == ["admin", "physician", "physiotherapist", "trainer"]
