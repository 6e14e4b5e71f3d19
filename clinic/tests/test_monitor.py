import datetime
from decimal import Decimal
from io import StringIO

import pytest
from django.core.exceptions import ImproperlyConfigured
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.utils import timezone

from clinic.models import Appointment, AuditEvent, CMJTest, Notification, PhysioAssessment
from clinic.services import monitor

pytestmark = pytest.mark.django_db


@pytest.fixture
def low_rsi_test(player):
    return CMJTest.objects.create(player=player, test_date=datetime.date(2024, 1, 10), rsi_score=Decimal("1.20"))


def recipients_of(related_table, related_id):
    return set(Notification.objects.filter(related_table=related_table, related_id=related_id)
               .values_list("recipient__username", flat=True))


def test_low_rsi_notifies_trainers_and_admins(admin, trainer, make_user, physio, low_rsi_test):
    make_user("trainer2", "trainer")
    report = monitor.run_critical_value_monitor()

    assert recipients_of("cmj_tests", low_rsi_test.id) == {"admin1", "trainer1", "trainer2"}
    n = Notification.objects.filter(related_table="cmj_tests").first()
    assert n.title == "Kritischer RSI-Score erkannt"
    assert n.notification_type == monitor.CRITICAL_VALUE
    assert n.priority == "high"
    assert n.action_required is True
    assert n.message == "Max Mustermann: RSI-Score von 1.2 liegt unter dem kritischen Wert von 1.5"
    assert n.metadata == {"player_name": "Max Mustermann", "rsi_score": 1.2, "test_date": "2024-01-10"}

    low_rsi = report.results[0]
    assert low_rsi.rule == "low_rsi"
    assert (low_rsi.breaches, low_rsi.notified_rows, low_rsi.notifications_created) == (1, 1, 3)


def test_rsi_at_threshold_is_not_critical(admin, trainer, player):
    CMJTest.objects.create(player=player, test_date=datetime.date(2024, 1, 10), rsi_score=Decimal("1.50"))
    CMJTest.objects.create(player=player, test_date=datetime.date(2024, 1, 11), rsi_score=None)
    monitor.run_critical_value_monitor()
    assert not Notification.objects.exists()


def test_rows_are_only_notified_once(admin, trainer, low_rsi_test):
    monitor.run_critical_value_monitor()
    second = monitor.run_critical_value_monitor()
    assert Notification.objects.filter(related_table="cmj_tests").count() == 2
    assert second.notifications_created == 0
    assert second.results[0].breaches == 1
    assert second.results[0].notified_rows == 0


def test_inactive_staff_are_skipped(admin, trainer, make_user, low_rsi_test):
    make_user("retired", "trainer", is_active=False)
    monitor.run_critical_value_monitor()
    assert recipients_of("cmj_tests", low_rsi_test.id) == {"admin1", "trainer1"}


def test_high_pain_notifies_physios_and_admins(admin, trainer, physio, player):
    assessment = PhysioAssessment.objects.create(player=player, date_of_assessment=datetime.date(2024, 2, 1),
                                                 pain_intensity=8)
    PhysioAssessment.objects.create(player=player, date_of_assessment=datetime.date(2024, 2, 2), pain_intensity=7)
    monitor.run_critical_value_monitor()

    assert recipients_of("physio_assessments", assessment.id) == {"admin1", "physio1"}
    assert Notification.objects.filter(related_table="physio_assessments").count() == 2
    n = Notification.objects.filter(related_table="physio_assessments").first()
    assert n.title == "Hohe Schmerzintensität gemeldet"
    assert n.message == "Max Mustermann: Schmerzintensität von 8/10 erfordert Aufmerksamkeit"


def test_overdue_appointment_notifies_staff_and_admins(admin, make_user, physio, player):
    make_user("admin2", "admin")
    now = timezone.now()
    overdue = Appointment.objects.create(player=player, staff=physio, appointment_type="Kontrolle",
                                         appointment_date=now - datetime.timedelta(hours=30))
    Appointment.objects.create(player=player, staff=physio, appointment_date=now - datetime.timedelta(hours=2))
    Appointment.objects.create(player=player, staff=physio, status="completed",
                               appointment_date=now - datetime.timedelta(hours=48))
    report = monitor.run_critical_value_monitor(now=now)

    assert recipients_of("appointments", overdue.id) == {"physio1", "admin1", "admin2"}
    n = Notification.objects.filter(related_table="appointments").first()
    assert n.notification_type == monitor.APPOINTMENT_OVERDUE
    assert n.priority == "medium"
    assert n.title == "Überfälliger Termin"
    assert report.results[2].breaches == 1


def test_overdue_recipients_are_deduplicated(admin, player):
    appointment = Appointment.objects.create(player=player, staff=admin,
                                             appointment_date=timezone.now() - datetime.timedelta(hours=30))
    monitor.run_critical_value_monitor()
    assert Notification.objects.filter(related_table="appointments", related_id=appointment.id).count() == 1


def test_failing_rule_does_not_stop_the_others(admin, physio, player, monkeypatch):
    PhysioAssessment.objects.create(player=player, date_of_assessment=datetime.date(2024, 2, 1), pain_intensity=9)

    def check_low_rsi(thresholds, now):
        raise DatabaseError("store unreachable")

    monkeypatch.setattr(monitor, "RULES", (check_low_rsi, monitor.check_high_pain, monitor.check_overdue_appointments))
    report = monitor.run_critical_value_monitor()

    failed, pain, overdue = report.results
    assert not failed.ok and "store unreachable" in failed.error
    assert pain.ok and pain.notifications_created == 2
    assert overdue.ok
    assert report.to_dict()["notificationsCreated"] == 2
    audit = AuditEvent.objects.get(action="monitor_run")
    assert audit.detail["failedRules"] == ["low_rsi"]


@pytest.mark.parametrize("config", [None, {}, {"RSI_THRESHOLD": 1.5, "PAIN_THRESHOLD": 8}])
def test_missing_thresholds_abort_the_run(settings, admin, low_rsi_test, config):
    settings.CRITICAL_VALUES = config
    with pytest.raises(ImproperlyConfigured):
        monitor.run_critical_value_monitor()
    assert not Notification.objects.exists()


def test_thresholds_come_from_settings(settings, admin, player):
    settings.CRITICAL_VALUES = {"RSI_THRESHOLD": 2.0, "PAIN_THRESHOLD": 8, "OVERDUE_HOURS": 24}
    CMJTest.objects.create(player=player, test_date=datetime.date(2024, 1, 10), rsi_score=Decimal("1.80"))
    report = monitor.run_critical_value_monitor()
    assert report.notifications_created == 1


def test_report_dict_shape(admin, low_rsi_test):
    data = monitor.run_critical_value_monitor().to_dict()
    assert set(data) == {"startedAt", "finishedAt", "notificationsCreated", "rules"}
    assert [r["rule"] for r in data["rules"]] == ["low_rsi", "high_pain", "overdue_appointments"]


def test_management_command(admin, low_rsi_test):
    out = StringIO()
    call_command("run_critical_value_monitor", stdout=out)
    assert "Critical values monitoring completed: 1 notifications" in out.getvalue()


def test_management_command_reports_bad_config(settings):
    settings.CRITICAL_VALUES = {}
    with pytest.raises(CommandError):
        call_command("run_critical_value_monitor", stdout=StringIO())
