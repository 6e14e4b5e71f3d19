import asyncio
import datetime
import json

import pytest
from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from channels.layers import InMemoryChannelLayer, get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.urls import path

from clinic.models import CMJTest, Notification, Player
from clinic.realtime.consumers import ChangeFeedConsumer, NotificationConsumer
from clinic.realtime.feed import (
    DELETE,
    INSERT,
    UPDATE,
    ChangeEvent,
    NotificationInbox,
    Subscription,
    TableCache,
    equals,
    group_name,
    parse_filter,
    publish,
    row_to_dict,
)

application = URLRouter([
    path("ws/changes/<str:table>/", ChangeFeedConsumer.as_asgi()),
    path("ws/notifications/", NotificationConsumer.as_asgi()),
])


def event(kind, row=None, old_id=None, table="players"):
    return ChangeEvent(table=table, event=kind, row=row or {}, old_id=old_id)


# ---------------------------------------------------------------------
# TableCache / NotificationInbox
# ---------------------------------------------------------------------
def test_cache_applies_insert_update_delete():
    cache = TableCache("players")
    cache.load([{"id": 1, "last_name": "Mustermann"}])
    assert cache.apply(event(INSERT, {"id": 2, "last_name": "Meyer"}))
    assert cache.apply(event(UPDATE, {"id": 1, "last_name": "Musterfrau"}))
    assert cache.get(1)["last_name"] == "Musterfrau"
    assert cache.apply(event(DELETE, old_id=2))
    assert 2 not in cache and len(cache) == 1


def test_cache_ignores_other_tables():
    cache = TableCache("players")
    assert not cache.apply(event(INSERT, {"id": 1}, table="cmj_tests"))
    assert len(cache) == 0


def test_cache_with_predicate_drops_rows_leaving_the_view():
    cache = TableCache("appointments", predicate=equals("status", "scheduled"))
    cache.apply(event(INSERT, {"id": 1, "status": "scheduled"}, table="appointments"))
    assert not cache.apply(event(INSERT, {"id": 2, "status": "completed"}, table="appointments"))
    assert cache.apply(event(UPDATE, {"id": 1, "status": "completed"}, table="appointments"))
    assert len(cache) == 0


def test_inbox_tracks_unread_count():
    inbox = NotificationInbox(7)
    inbox.load([
        {"id": 1, "recipient_id": 7, "is_read": False, "created_at": "2024-01-01T10:00:00"},
        {"id": 2, "recipient_id": 7, "is_read": True, "created_at": "2024-01-02T10:00:00"},
    ])
    assert inbox.unread_count == 1
    inbox.apply(event(INSERT, {"id": 3, "recipient_id": 7, "is_read": False,
                               "created_at": "2024-01-03T10:00:00"}, table="notifications"))
    inbox.apply(event(INSERT, {"id": 4, "recipient_id": 8, "is_read": False,
                               "created_at": "2024-01-03T11:00:00"}, table="notifications"))
    assert inbox.unread_count == 2
    inbox.apply(event(UPDATE, {"id": 1, "recipient_id": 7, "is_read": True,
                               "created_at": "2024-01-01T10:00:00"}, table="notifications"))
    assert inbox.unread_count == 1
    assert [r["id"] for r in inbox.snapshot()] == [3, 2, 1]


def test_cache_cap_evicts_oldest_rows_on_insert():
    cache = TableCache("players", max_rows=2)
    cache.load([{"id": 1}, {"id": 2}])
    assert cache.apply(event(UPDATE, {"id": 1, "last_name": "Neu"}))
    assert len(cache) == 2
    assert cache.apply(event(INSERT, {"id": 3}))
    assert [r["id"] for r in cache.snapshot()] == [2, 3]


def test_inbox_cap_keeps_unread_rows():
    inbox = NotificationInbox(7, limit=2)
    inbox.load([
        {"id": 1, "recipient_id": 7, "is_read": False, "created_at": "2024-01-01T10:00:00"},
        {"id": 2, "recipient_id": 7, "is_read": True, "created_at": "2024-01-02T10:00:00"},
    ])
    inbox.apply(event(INSERT, {"id": 3, "recipient_id": 7, "is_read": False,
                               "created_at": "2024-01-03T10:00:00"}, table="notifications"))
    assert 2 not in inbox and len(inbox) == 2
    inbox.apply(event(INSERT, {"id": 4, "recipient_id": 7, "is_read": False,
                               "created_at": "2024-01-04T10:00:00"}, table="notifications"))
    assert inbox.unread_count == 3


def test_parse_filter():
    predicate = parse_filter("recipient_id=eq.7")
    assert predicate(event(INSERT, {"id": 1, "recipient_id": 7}))
    assert not predicate(event(INSERT, {"id": 1, "recipient_id": 8}))
    assert parse_filter("") is None
    with pytest.raises(ValueError):
        parse_filter("recipient_id=gt.7")


def test_event_message_round_trip():
    e = event(DELETE, {"id": 5}, old_id=5)
    assert ChangeEvent.from_message(e.to_message()) == e
    assert e.row_id == 5
    with pytest.raises(ValueError):
        event("upsert")


# ---------------------------------------------------------------------
# Subscription over a channel layer
# ---------------------------------------------------------------------
def test_subscription_receives_published_events():
    layer = InMemoryChannelLayer()

    async def scenario():
        async with Subscription("notifications", predicate=equals("recipient_id", 7), channel_layer=layer) as sub:
            await layer.group_send(group_name("notifications"),
                                   event(INSERT, {"id": 1, "recipient_id": 8}, table="notifications").to_message())
            await layer.group_send(group_name("notifications"),
                                   event(INSERT, {"id": 2, "recipient_id": 7}, table="notifications").to_message())
            received = await sub.receive(timeout=1)
            with pytest.raises(asyncio.TimeoutError):
                await sub.receive(timeout=0.05)
        return received

    received = async_to_sync(scenario)()
    assert received.row == {"id": 2, "recipient_id": 7}


def test_subscription_must_be_open():
    async def scenario():
        await Subscription("players", channel_layer=InMemoryChannelLayer()).receive(timeout=0.1)

    with pytest.raises(RuntimeError):
        async_to_sync(scenario)()


# ---------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------
@pytest.mark.django_db
def test_saves_are_published_after_commit(monkeypatch, django_capture_on_commit_callbacks):
    published = []
    monkeypatch.setattr("clinic.signals.publish", published.append)

    with django_capture_on_commit_callbacks(execute=True):
        p = Player.objects.create(first_name="Lena", last_name="Koch")
    with django_capture_on_commit_callbacks(execute=True):
        p.position = "Libera"
        p.save()
    with django_capture_on_commit_callbacks(execute=True):
        pk = p.pk
        p.delete()

    assert [(e.table, e.event) for e in published] == [("players", INSERT), ("players", UPDATE), ("players", DELETE)]
    assert published[1].row["position"] == "Libera"
    assert published[2].old_id == pk


@pytest.mark.django_db
def test_row_to_dict_uses_column_names(player):
    test = CMJTest.objects.create(player=player, test_date=datetime.date(2024, 1, 10), rsi_score="1.20")
    row = row_to_dict(CMJTest.objects.get(pk=test.pk))
    assert row["player_id"] == player.id
    assert row["rsi_score"] == 1.2
    assert row["test_date"] == "2024-01-10"
    json.dumps(row)


@pytest.mark.django_db
def test_publish_reaches_group_members():
    layer = InMemoryChannelLayer()

    async def join():
        channel = await layer.new_channel()
        await layer.group_add(group_name("players"), channel)
        return channel

    channel = async_to_sync(join)()
    publish(event(INSERT, {"id": 1}), channel_layer=layer)
    message = async_to_sync(layer.receive)(channel)
    assert message["type"] == "change.event"
    assert message["row"] == {"id": 1}


# ---------------------------------------------------------------------
# WebSocket consumers
# ---------------------------------------------------------------------
def connect_as(user, url):
    async def scenario():
        communicator = WebsocketCommunicator(application, url)
        communicator.scope["user"] = user
        connected, code = await communicator.connect()
        first = await communicator.receive_json_from() if connected else None
        await communicator.disconnect()
        return connected, code, first

    return async_to_sync(scenario)()


@pytest.mark.django_db(transaction=True)
def test_feed_rejects_anonymous():
    from django.contrib.auth.models import AnonymousUser
    connected, code, _ = connect_as(AnonymousUser(), "/ws/changes/players/")
    assert not connected and code == 4001


@pytest.mark.django_db(transaction=True)
def test_feed_rejects_unknown_and_forbidden_tables(trainer):
    connected, code, _ = connect_as(trainer, "/ws/changes/auth_user/")
    assert not connected and code == 4004
    connected, code, _ = connect_as(trainer, "/ws/changes/physio_assessments/")
    assert not connected and code == 4003


@pytest.mark.django_db(transaction=True)
def test_feed_rejects_bad_filter(trainer):
    connected, code, _ = connect_as(trainer, "/ws/changes/players/?filter=password=eq.x")
    assert not connected and code == 4000


@pytest.mark.django_db(transaction=True)
def test_feed_sends_snapshot_then_changes(trainer, player):
    async def scenario():
        communicator = WebsocketCommunicator(application, "/ws/changes/players/")
        communicator.scope["user"] = trainer
        connected, _ = await communicator.connect()
        assert connected
        snapshot = await communicator.receive_json_from()
        await communicator.send_json_to({"type": "ping"})
        pong = await communicator.receive_json_from()
        layer = get_channel_layer()
        await layer.group_send(group_name("players"),
                               event(UPDATE, {"id": player.id, "last_name": "Neu"}).to_message())
        change = await communicator.receive_json_from()
        await communicator.disconnect()
        return snapshot, pong, change

    snapshot, pong, change = async_to_sync(scenario)()
    assert snapshot["type"] == "snapshot"
    assert [r["id"] for r in snapshot["rows"]] == [player.id]
    assert pong == {"type": "pong"}
    assert change["type"] == "change"
    assert change["event"] == "update"
    assert change["row"]["last_name"] == "Neu"


@pytest.mark.django_db(transaction=True)
def test_notification_feed_is_scoped_to_recipient(trainer, physio):
    Notification.objects.create(recipient=trainer, notification_type="critical_value", title="a", message="a")
    Notification.objects.create(recipient=physio, notification_type="critical_value", title="b", message="b")

    connected, _, snapshot = connect_as(trainer, "/ws/notifications/")
    assert connected
    assert snapshot["unreadCount"] == 1
    assert [r["recipient_id"] for r in snapshot["rows"]] == [trainer.id]

    # a filter for someone else's rows is overridden
    connected, _, snapshot = connect_as(trainer, f"/ws/changes/notifications/?filter=recipient_id=eq.{physio.id}")
    assert connected
    assert [r["recipient_id"] for r in snapshot["rows"]] == [trainer.id]


@pytest.mark.django_db(transaction=True)
def test_feed_rejects_filter_value_of_wrong_type(trainer, player):
    connected, code, _ = connect_as(trainer, "/ws/changes/cmj_tests/?filter=player_id=eq.abc")
    assert not connected and code == 4000

    CMJTest.objects.create(player=player, test_date=datetime.date(2024, 1, 10), rsi_score="1.80")
    connected, _, snapshot = connect_as(trainer, f"/ws/changes/cmj_tests/?filter=player_id=eq.{player.id}")
    assert connected
    assert [r["player_id"] for r in snapshot["rows"]] == [player.id]


# ---------------------------------------------------------------------
# Committed writes end to end
# ---------------------------------------------------------------------
@pytest.mark.django_db(transaction=True)
def test_committed_saves_reach_subscribers(admin, trainer, make_user):
    from clinic.services.monitor import run_critical_value_monitor

    make_user("trainer2", "trainer")

    async def scenario():
        async with Subscription("notifications") as sub:
            player = await database_sync_to_async(Player.objects.create)(first_name="Lena", last_name="Koch")
            await database_sync_to_async(CMJTest.objects.create)(
                player=player, test_date=datetime.date(2024, 1, 10), rsi_score="1.20")
            report = await database_sync_to_async(run_critical_value_monitor)()
            received = [await sub.receive(timeout=1) for _ in range(3)]
        return report, received

    report, received = async_to_sync(scenario)()
    assert Notification.objects.filter(related_table="cmj_tests").count() == 3
    assert {e.event for e in received} == {INSERT}
    assert {e.row["related_table"] for e in received} == {"cmj_tests"}
    assert all(r.error is None for r in report.results)
