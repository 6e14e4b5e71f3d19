import pytest

from clinic.models import Notification
from clinic.services import notifications

pytestmark = pytest.mark.django_db


def notify(user, **extra):
    defaults = dict(notification_type="critical_value", title="Kritischer RSI-Score erkannt", message="Test",
                    priority="high", related_table="cmj_tests", related_id=1)
    defaults.update(extra)
    return notifications.create_notification(recipient=user, **defaults)


def test_create_sanitises_text(trainer):
    n = notify(trainer, title="<b>Alarm</b>", message="<script>x()</script>Bitte prüfen")
    assert n.title == "Alarm"
    assert "<script>" not in n.message
    assert n.is_read is False


def test_already_notified_matches_table_id_and_type(trainer):
    notify(trainer)
    assert notifications.already_notified("cmj_tests", 1, "critical_value")
    assert not notifications.already_notified("cmj_tests", 2, "critical_value")
    assert not notifications.already_notified("cmj_tests", 1, "appointment_overdue")
    assert not notifications.already_notified("physio_assessments", 1, "critical_value")


def test_mark_read_and_unread_count(trainer, physio):
    first = notify(trainer)
    notify(trainer, related_id=2)
    notify(physio)
    assert notifications.unread_count(trainer) == 2

    n = notifications.mark_read(trainer, first.id)
    assert n.is_read and n.read_at is not None
    assert notifications.unread_count(trainer) == 1

    with pytest.raises(Notification.DoesNotExist):
        notifications.mark_read(physio, first.id)


def test_mark_all_read_only_touches_own_rows(trainer, physio):
    notify(trainer)
    notify(trainer, related_id=2)
    notify(physio)
    assert notifications.mark_all_read(trainer) == 2
    assert notifications.unread_count(trainer) == 0
    assert notifications.unread_count(physio) == 1


def test_latest_is_newest_first_and_limited(trainer):
    for i in range(5):
        notify(trainer, related_id=i)
    latest = notifications.latest_for(trainer, limit=3)
    assert [n.related_id for n in latest] == [4, 3, 2]


def test_serialize_uses_camel_case(trainer):
    data = notifications.serialize(notify(trainer, metadata={"rsi_score": 1.2}))
    assert data["recipientId"] == trainer.id
    assert data["type"] == "critical_value"
    assert data["relatedTable"] == "cmj_tests"
    assert data["isRead"] is False
    assert data["metadata"] == {"rsi_score": 1.2}


def test_list_endpoint(client_for, trainer, physio):
    notify(trainer)
    notify(physio)
    resp = client_for(trainer).get("/api/notifications")
    assert resp.status_code == 200
    assert resp.data["ok"] is True
    assert resp.data["unreadCount"] == 1
    assert [n["recipientId"] for n in resp.data["data"]] == [trainer.id]


def test_read_endpoints(client_for, trainer, physio):
    mine = notify(trainer)
    notify(trainer, related_id=2)
    theirs = notify(physio)
    client = client_for(trainer)

    resp = client.post(f"/api/notifications/{mine.id}/read")
    assert resp.status_code == 200
    assert resp.data["data"]["isRead"] is True

    assert client.post(f"/api/notifications/{theirs.id}/read").status_code == 404

    resp = client.post("/api/notifications/read-all")
    assert resp.data["updated"] == 1
    assert Notification.objects.filter(recipient=trainer, is_read=False).count() == 0
    assert Notification.objects.filter(recipient=physio, is_read=False).count() == 1


def test_create_strips_links_and_emphasis(trainer):
    n = notify(trainer, title="<strong>RSI</strong>", message='<a href="https://x.test">Spieler</a> <i>prüfen</i>')
    assert n.title == "RSI"
    assert n.message == "Spieler prüfen"
