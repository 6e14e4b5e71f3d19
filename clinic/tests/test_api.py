"""
Integration tests for the VolleyMed API.

These tests exercise authentication, role gating, the record endpoints,
OCR intake and the monitor trigger through DRF's APIClient.

To run the tests:

```
pytest -q clinic/tests
```
"""
import datetime
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from clinic.models import (
    AuditEvent,
    CMJTest,
    DocumentationEntry,
    PerformanceAssessment,
    PhysioAssessment,
    Player,
    User,
)


class VolleyMedAPITests(APITestCase):
    def setUp(self) -> None:
        """Staff of every role plus one player."""
        self.admin = User.objects.create_user(username="admin1", password="P@ssw0rd1", role="admin")
        self.trainer = User.objects.create_user(username="trainer1", password="P@ssw0rd1", role="trainer")
        self.physio = User.objects.create_user(username="physio1", password="P@ssw0rd1", role="physiotherapist")
        self.physician = User.objects.create_user(username="arzt1", password="P@ssw0rd1", role="physician")
        self.player = Player.objects.create(first_name="Max", last_name="Mustermann", jersey_number=7)

    def login(self, username: str) -> APIClient:
        client = APIClient()
        resp = client.post(reverse("login_view"), {"username": username, "password": "P@ssw0rd1"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        client.credentials(HTTP_AUTHORIZATION=f"Token {resp.data['token']}")
        return client

    def test_login_returns_token_and_stored_role(self) -> None:
        resp = self.client.post(reverse("login_view"),
                                {"username": "trainer1", "password": "P@ssw0rd1", "role": "admin"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["token"])
        self.assertEqual(resp.data["role"], "trainer")
        self.assertTrue(AuditEvent.objects.filter(action="login", user=self.trainer).exists())

    def test_login_with_wrong_password(self) -> None:
        resp = self.client.post(reverse("login_view"), {"username": "trainer1", "password": "nope"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"]["code"], "invalid_credentials")

    def test_unauthenticated_requests_are_rejected(self) -> None:
        resp = self.client.get("/api/players")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(resp.data["ok"])

    def test_me_lists_capabilities(self) -> None:
        resp = self.login("physio1").get(reverse("me"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["user"]["role"], "physiotherapist")
        self.assertIn("module.physio", resp.data["capabilities"])
        self.assertNotIn("module.medical", resp.data["capabilities"])
        self.assertNotIn("monitor.run", resp.data["capabilities"])

    def test_modules_are_gated_by_role(self) -> None:
        trainer = self.login("trainer1")
        physio = self.login("physio1")
        physician = self.login("arzt1")
        self.assertEqual(trainer.get("/api/physio/assessments").status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(physio.get("/api/physio/assessments").status_code, status.HTTP_200_OK)
        self.assertEqual(physician.get("/api/cmj-tests").status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(trainer.get("/api/cmj-tests").status_code, status.HTTP_200_OK)
        self.assertEqual(trainer.get("/api/medical/treatments").status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(physician.get("/api/medical/treatments").status_code, status.HTTP_200_OK)
        for client in (trainer, physio, physician):
            self.assertEqual(client.get("/api/appointments").status_code, status.HTTP_200_OK)
            self.assertEqual(client.get("/api/ocr/jobs").status_code, status.HTTP_200_OK)

    def test_only_admins_manage_players(self) -> None:
        payload = {"first_name": "Lena", "last_name": "Koch", "position": "Libera"}
        self.assertEqual(self.login("trainer1").post("/api/players", payload, format="json").status_code,
                         status.HTTP_403_FORBIDDEN)
        resp = self.login("admin1").post("/api/players", payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["data"]["full_name"], "Lena Koch")

    def test_player_delete_deactivates(self) -> None:
        admin = self.login("admin1")
        resp = admin.delete(f"/api/players/{self.player.id}")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.player.refresh_from_db()
        self.assertFalse(self.player.is_active)
        self.assertEqual(admin.get("/api/players").data["data"], [])
        self.assertEqual(len(admin.get("/api/players?includeInactive=1").data["data"]), 1)
        self.assertTrue(AuditEvent.objects.filter(action="player_deactivate", object_id=self.player.id).exists())

    def test_cmj_balance_cannot_exceed_100_percent(self) -> None:
        trainer = self.login("trainer1")
        base = {"player": self.player.id, "test_date": "2024-01-10", "rsi_score": "1.80"}
        resp = trainer.post("/api/cmj-tests", {**base, "balance_left_percent": "60", "balance_right_percent": "50"},
                            format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        resp = trainer.post("/api/cmj-tests", {**base, "balance_left_percent": "52", "balance_right_percent": "48"},
                            format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(CMJTest.objects.get().tested_by, self.trainer)

    def test_pain_intensity_is_bounded(self) -> None:
        physio = self.login("physio1")
        resp = physio.post("/api/physio/assessments",
                           {"player": self.player.id, "date_of_assessment": "2024-02-01", "pain_intensity": 11},
                           format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_free_text_is_sanitised(self) -> None:
        resp = self.login("physio1").post(
            "/api/physio/assessments",
            {"player": self.player.id, "date_of_assessment": "2024-02-01", "diagnosis": "<b>Lumbalgie</b>"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(PhysioAssessment.objects.get().diagnosis, "Lumbalgie")

    def test_documentation_is_append_only(self) -> None:
        assessment = PhysioAssessment.objects.create(player=self.player, date_of_assessment=datetime.date(2024, 2, 1))
        physio = self.login("physio1")
        url = f"/api/physio/assessments/{assessment.id}/documentation"
        resp = physio.post(url, {"notes": "Verlauf gut"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["data"]["date"], timezone.localdate().isoformat())
        self.assertEqual(physio.put(url, {"notes": "x"}, format="json").status_code,
                         status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(physio.get(url).data["data"][0]["notes"], "Verlauf gut")
        self.assertEqual(DocumentationEntry.objects.get().therapist, self.physio)

    def test_appointment_defaults_to_calling_staff(self) -> None:
        resp = self.login("physio1").post("/api/appointments", {
            "player": self.player.id,
            "appointment_date": "2024-03-01T10:00:00Z",
            "appointment_type": "Kontrolle",
        }, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["data"]["staff"], self.physio.id)
        self.assertEqual(resp.data["data"]["status"], "scheduled")

    def test_dashboard_is_scoped_by_role(self) -> None:
        today = timezone.localdate()
        CMJTest.objects.create(player=self.player, test_date=today, rsi_score=Decimal("2.1"))
        PerformanceAssessment.objects.create(player=self.player, assessment_date=today, risk_score=Decimal("7.5"))
        PhysioAssessment.objects.create(player=self.player, date_of_assessment=today)

        trainer = self.login("trainer1").get("/api/dashboard").data
        self.assertEqual(trainer["data"]["totalPlayers"], 1)
        self.assertEqual(trainer["data"]["thisWeekTests"], 1)
        self.assertEqual(trainer["data"]["criticalRiskPlayers"], 1)
        self.assertEqual(trainer["data"]["pendingAssessments"], 0)
        self.assertEqual([a["type"] for a in trainer["recentActivities"]], ["CMJ Test"])

        physio = self.login("physio1").get("/api/dashboard").data
        self.assertEqual(physio["data"]["pendingAssessments"], 1)
        self.assertEqual(physio["data"]["thisWeekTests"], 0)

        admin = self.login("admin1").get("/api/dashboard").data
        self.assertEqual(len(admin["recentActivities"]), 2)
