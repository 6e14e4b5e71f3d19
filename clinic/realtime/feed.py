"""
Row-level change feed over the Channels layer.

Every committed insert/update/delete of a tracked table is published as
a :class:`ChangeEvent` to the group ``changes.<table>``.  Consumers pull
events explicitly through a :class:`Subscription` and keep their own
:class:`TableCache`; nothing here holds ambient global state.

Per-channel capacity of the layer bounds how far a subscriber may lag.
Once its channel is full the layer drops further events for it and the
subscriber is expected to resync from the database.
"""
from __future__ import annotations

import asyncio
import datetime
import decimal
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

import structlog
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

logger = structlog.get_logger(__name__)

INSERT = 'insert'
UPDATE = 'update'
DELETE = 'delete'
EVENT_KINDS = (INSERT, UPDATE, DELETE)

# Channels dispatches "change.event" messages to a consumer's change_event()
MESSAGE_TYPE = 'change.event'

Predicate = Callable[["ChangeEvent"], bool]


def group_name(table: str) -> str:
    return f"changes.{table}"


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def row_to_dict(instance) -> Dict[str, Any]:
    """Full row state keyed by column name (``player_id``, not ``player``)."""
    return {f.attname: _jsonable(getattr(instance, f.attname)) for f in instance._meta.concrete_fields}


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str
    row: Dict[str, Any]
    old_id: Optional[Any] = None
    ts: str = field(default_factory=lambda: timezone.now().isoformat())

    def __post_init__(self):
        if self.event not in EVENT_KINDS:
            raise ValueError(f'unknown change event {self.event!r}')

    @property
    def row_id(self) -> Any:
        return self.old_id if self.event == DELETE else self.row.get('id')

    def to_message(self) -> Dict[str, Any]:
        return {
            'type': MESSAGE_TYPE,
            'table': self.table,
            'event': self.event,
            'row': self.row,
            'old_id': self.old_id,
            'ts': self.ts,
        }

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "ChangeEvent":
        return cls(
            table=message['table'],
            event=message['event'],
            row=message.get('row') or {},
            old_id=message.get('old_id'),
            ts=message.get('ts') or timezone.now().isoformat(),
        )

    @classmethod
    def for_instance(cls, instance, event: str) -> "ChangeEvent":
        return cls(
            table=instance._meta.db_table,
            event=event,
            row=row_to_dict(instance),
            old_id=instance.pk if event == DELETE else None,
        )


def equals(column: str, value: Any) -> Predicate:
    """Single equality filter, compared as strings (``?filter=recipient_id=eq.7``)."""
    expected = str(value)

    def _match(event: ChangeEvent) -> bool:
        return str(event.row.get(column)) == expected

    return _match


def parse_filter(expr: Optional[str]) -> Optional[Predicate]:
    """Parse ``<column>=eq.<value>``; ``None`` for an empty expression."""
    if not expr:
        return None
    column, sep, rest = expr.partition('=')
    if not sep or not rest.startswith('eq.') or not column.strip():
        raise ValueError(f'unsupported filter {expr!r}')
    return equals(column.strip(), rest[3:])


def publish(event: ChangeEvent, channel_layer=None) -> None:
    layer = channel_layer or get_channel_layer()
    if layer is None:
        return
    async_to_sync(layer.group_send)(group_name(event.table), event.to_message())
    logger.debug("change_published", table=event.table, kind=event.event, row_id=event.row_id)


class Subscription:
    """Pull-style subscription to one table's change events.

    Use as an async context manager; the channel joins the table group on
    enter and leaves it on exit::

        async with Subscription('notifications', predicate=equals('recipient_id', 7)) as sub:
            event = await sub.receive(timeout=5)
    """

    def __init__(self, table: str, *, predicate: Optional[Predicate] = None, channel_layer=None):
        self.table = table
        self.predicate = predicate
        self._layer = channel_layer
        self.channel_name: Optional[str] = None

    async def __aenter__(self) -> "Subscription":
        self._layer = self._layer or get_channel_layer()
        if self._layer is None:
            raise RuntimeError('no channel layer configured')
        self.channel_name = await self._layer.new_channel()
        await self._layer.group_add(group_name(self.table), self.channel_name)
        logger.debug("subscription_opened", table=self.table, channel=self.channel_name)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._layer is not None and self.channel_name:
            await self._layer.group_discard(group_name(self.table), self.channel_name)
            logger.debug("subscription_closed", table=self.table, channel=self.channel_name)
        self.channel_name = None

    async def receive(self, timeout: Optional[float] = None) -> ChangeEvent:
        """Next event passing the predicate.  Raises ``asyncio.TimeoutError`` after ``timeout``."""
        if self.channel_name is None:
            raise RuntimeError('subscription is not open')
        while True:
            message = await asyncio.wait_for(self._layer.receive(self.channel_name), timeout)
            if message.get('type') != MESSAGE_TYPE:
                continue
            event = ChangeEvent.from_message(message)
            if self.predicate is None or self.predicate(event):
                return event

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        return await self.receive()


class TableCache:
    """Client-side copy of one table, kept current by applying change events.

    With ``max_rows`` set, inserts beyond the cap evict the oldest cached row.
    """

    def __init__(self, table: str, *, predicate: Optional[Predicate] = None, max_rows: Optional[int] = None):
        self.table = table
        self.predicate = predicate
        self.max_rows = max_rows
        self._rows: Dict[Any, Dict[str, Any]] = {}

    def load(self, rows: Iterable[Dict[str, Any]]) -> None:
        self._rows = {row['id']: dict(row) for row in rows}

    def apply(self, event: ChangeEvent) -> bool:
        """Apply ``event``; returns whether it touched this cache."""
        if event.table != self.table:
            return False
        if event.event == DELETE:
            return self._rows.pop(event.old_id, None) is not None
        if self.predicate is not None and not self.predicate(event):
            # row moved out of the filtered view
            return self._rows.pop(event.row.get('id'), None) is not None
        row_id = event.row['id']
        is_new = row_id not in self._rows
        self._rows[row_id] = dict(event.row)
        if is_new and self.max_rows is not None:
            while len(self._rows) > self.max_rows and self._evict(keep=row_id):
                pass
        return True

    def _evict(self, keep: Any) -> bool:
        for row_id in self._rows:
            if row_id != keep:
                del self._rows[row_id]
                return True
        return False

    def get(self, row_id: Any) -> Optional[Dict[str, Any]]:
        return self._rows.get(row_id)

    def snapshot(self) -> List[Dict[str, Any]]:
        return list(self._rows.values())

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, row_id: Any) -> bool:
        return row_id in self._rows


class NotificationInbox(TableCache):
    """Notification cache of one recipient with a running unread count.

    Read notifications beyond ``limit`` are evicted oldest first; unread
    ones stay so the count remains exact.
    """

    def __init__(self, recipient_id: Any, *, limit: int = 50):
        super().__init__('notifications', predicate=equals('recipient_id', recipient_id), max_rows=limit)
        self.recipient_id = recipient_id
        self.limit = limit

    def _evict(self, keep: Any) -> bool:
        read = [r for r in self._rows.values() if r.get('is_read') and r['id'] != keep]
        if not read:
            return False
        oldest = min(read, key=lambda r: (r.get('created_at') or '', r['id']))
        del self._rows[oldest['id']]
        return True

    @property
    def unread_count(self) -> int:
        return sum(1 for row in self._rows.values() if not row.get('is_read'))

    def snapshot(self) -> List[Dict[str, Any]]:
        rows = sorted(self._rows.values(), key=lambda r: (r.get('created_at') or '', r['id']), reverse=True)
        return rows[:self.limit]
