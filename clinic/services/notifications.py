"""
Notification center read model and the alert write boundary.

Notifications are inserted by the critical-value monitor and the OCR
completion path.  After that the only mutation is marking them read.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import bleach
import structlog
from django.contrib.auth import get_user_model
from django.utils import timezone

from clinic.models import Notification

User = get_user_model()
logger = structlog.get_logger(__name__)

LIST_LIMIT = 50


def create_notification(
    *,
    recipient: User,
    notification_type: str,
    title: str,
    message: str,
    priority: str = 'medium',
    action_required: bool = False,
    related_table: Optional[str] = None,
    related_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
    sender: Optional[User] = None,
) -> Notification:
    n = Notification.objects.create(
        recipient=recipient,
        sender=sender,
        notification_type=notification_type,
        title=bleach.clean(title, tags=set(), attributes={}, strip=True),
        message=bleach.clean(message, tags=set(), attributes={}, strip=True),
        priority=priority,
        action_required=action_required,
        related_table=related_table,
        related_id=related_id,
        metadata=metadata or {},
    )
    logger.info("notification_created", id=n.id, recipient_id=recipient.id, type=notification_type,
                related_table=related_table, related_id=related_id)
    return n


def already_notified(related_table: str, related_id: int, notification_type: str) -> bool:
    """Dedup check on (related_table, related_id, notification_type)."""
    return Notification.objects.filter(
        related_table=related_table, related_id=related_id, notification_type=notification_type
    ).exists()


def serialize(n: Notification) -> Dict[str, Any]:
    return {
        'id': n.id,
        'recipientId': n.recipient_id,
        'senderId': n.sender_id,
        'type': n.notification_type,
        'title': n.title,
        'message': n.message,
        'priority': n.priority,
        'actionRequired': n.action_required,
        'actionTaken': n.action_taken,
        'relatedTable': n.related_table,
        'relatedId': n.related_id,
        'metadata': n.metadata,
        'isRead': n.is_read,
        'readAt': n.read_at.isoformat() if n.read_at else None,
        'expiresAt': n.expires_at.isoformat() if n.expires_at else None,
        'createdAt': n.created_at.isoformat() if n.created_at else None,
    }


def latest_for(user: User, limit: int = LIST_LIMIT) -> List[Notification]:
    return list(Notification.objects.filter(recipient=user).order_by('-created_at', '-id')[:limit])


def unread_count(user: User) -> int:
    return Notification.objects.filter(recipient=user, is_read=False).count()


def mark_read(user: User, notification_id: int) -> Notification:
    n = Notification.objects.filter(id=notification_id, recipient=user).first()
    if n is None:
        raise Notification.DoesNotExist('notification not found')
    if not n.is_read:
        n.is_read = True
        n.read_at = timezone.now()
        n.save(update_fields=['is_read', 'read_at'])
    return n


def mark_all_read(user: User) -> int:
    """Mark every unread notification of ``user`` read; returns how many changed.

    Rows are saved one by one so every change reaches the change feed.
    """
    now = timezone.now()
    changed = 0
    for n in Notification.objects.filter(recipient=user, is_read=False):
        n.is_read = True
        n.read_at = now
        n.save(update_fields=['is_read', 'read_at'])
        changed += 1
    return changed


def notify_many(recipients: Iterable[User], **kwargs) -> List[Notification]:
    return [create_notification(recipient=r, **kwargs) for r in recipients]
