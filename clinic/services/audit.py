from typing import Optional, Any, Dict

import structlog
from django.contrib.auth import get_user_model

from clinic.models import AuditEvent

User = get_user_model()
logger = structlog.get_logger(__name__)


def log_action(*, user: Optional[User], action: str, object_type: Optional[str]=None, object_id: Optional[int]=None, detail: Optional[Dict[str, Any]]=None) -> AuditEvent:
    logger.info("audit", action=action, object_type=object_type, object_id=object_id, user_id=getattr(user, 'id', None))
    return AuditEvent.objects.create(
        user=user if isinstance(user, User) and getattr(user, 'id', None) else None,
        action=action,
        object_type=object_type, object_id=object_id,
        detail=detail or {},
    )
