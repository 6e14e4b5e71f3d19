from __future__ import annotations

import json
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError

from clinic.permissions import TABLE_CAPABILITY, has_capability
from clinic.realtime.feed import ChangeEvent, NotificationInbox, TableCache, equals, group_name, parse_filter, row_to_dict

SNAPSHOT_LIMIT = 500


async def _ws_error(ws, code: int, message: str, *, close: bool = False):
    """
    Uniform error frame.
    App codes: 4xxx client errors, 5xxx server errors.
    """
    payload = {"type": "error", "code": code, "message": message}
    try:
        await ws.send(json.dumps(payload))
    finally:
        if close:
            await ws.close(code=code)


def _table_model(table: str):
    from clinic.signals import TABLE_MODELS
    return TABLE_MODELS.get(table)


@database_sync_to_async
def _load_rows(table: str, limit: int = SNAPSHOT_LIMIT, **filters):
    qs = _table_model(table).objects.filter(**filters)
    return [row_to_dict(obj) for obj in qs[:limit]]


class ChangeFeedConsumer(AsyncWebsocketConsumer):
    """Streams one table: a snapshot first, then change events.

    Clients send ``{"type": "resync"}`` to reload the snapshot, e.g. after
    the layer dropped events because the client fell behind.
    """

    async def connect(self):
        user = self.scope.get("user") or AnonymousUser()
        if not getattr(user, "is_authenticated", False):
            await self.close(code=4001)
            return

        self.table = self.scope["url_route"]["kwargs"].get("table")
        capability = TABLE_CAPABILITY.get(self.table)
        if capability is None or _table_model(self.table) is None:
            await self.close(code=4004)
            return
        if not has_capability(user, capability):
            await self.close(code=4003)
            return

        try:
            self.filter_column, self.filter_value = self._filter_from_query(user)
        except ValueError:
            await self.close(code=4000)
            return

        predicate = equals(self.filter_column, self.filter_value) if self.filter_column else None
        self.cache = self.make_cache(user, predicate)
        self.group_name = group_name(self.table)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send_snapshot()

    def _filter_from_query(self, user):
        query = parse_qs((self.scope.get("query_string") or b"").decode())
        expr = (query.get("filter") or [""])[0]
        if self.table == "notifications":
            # recipients only ever see their own notifications
            return "recipient_id", user.id
        if parse_filter(expr) is None:
            return None, None
        column, _, rest = expr.partition("=")
        column = column.strip()
        model = _table_model(self.table)
        fields = {f.attname: f for f in model._meta.concrete_fields}
        if column not in fields:
            raise ValueError(column)
        try:
            value = fields[column].to_python(rest[3:])
        except ValidationError as e:
            raise ValueError(rest[3:]) from e
        return column, value

    def make_cache(self, user, predicate) -> TableCache:
        return TableCache(self.table, predicate=predicate, max_rows=SNAPSHOT_LIMIT)

    async def load(self):
        filters = {self.filter_column: self.filter_value} if self.filter_column else {}
        rows = await _load_rows(self.table, **filters)
        self.cache.load(rows)

    def snapshot_payload(self) -> dict:
        return {"type": "snapshot", "table": self.table, "rows": self.cache.snapshot()}

    async def send_snapshot(self):
        await self.load()
        await self.send(json.dumps(self.snapshot_payload()))

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            data = json.loads(text_data)
        except Exception:
            await _ws_error(self, 4000, "invalid_json")
            return
        if not isinstance(data, dict):
            await _ws_error(self, 4001, "invalid_payload")
            return
        if data.get("type") == "resync":
            await self.send_snapshot()
            return
        if data.get("type") == "ping":
            await self.send(json.dumps({"type": "pong"}))
            return
        await _ws_error(self, 4002, "unsupported_type")

    def change_payload(self, event: ChangeEvent) -> dict:
        return {
            "type": "change",
            "table": event.table,
            "event": event.event,
            "row": event.row,
            "oldId": event.old_id,
            "ts": event.ts,
        }

    async def change_event(self, message):
        # message: {"type": "change.event", "table", "event", "row", "old_id", "ts"}
        event = ChangeEvent.from_message(message)
        if not self.cache.apply(event):
            return
        await self.send(json.dumps(self.change_payload(event)))


class NotificationConsumer(ChangeFeedConsumer):
    """The caller's own notifications with a running unread count."""

    async def connect(self):
        self.scope.setdefault("url_route", {}).setdefault("kwargs", {})["table"] = "notifications"
        await super().connect()

    def make_cache(self, user, predicate) -> TableCache:
        return NotificationInbox(user.id)

    async def load(self):
        recent = await _load_rows("notifications", limit=self.cache.limit, recipient_id=self.filter_value)
        unread = await _load_rows("notifications", recipient_id=self.filter_value, is_read=False)
        self.cache.load([*recent, *unread])

    def snapshot_payload(self) -> dict:
        payload = super().snapshot_payload()
        payload["unreadCount"] = self.cache.unread_count
        return payload

    def change_payload(self, event: ChangeEvent) -> dict:
        payload = super().change_payload(event)
        payload["unreadCount"] = self.cache.unread_count
        return payload
