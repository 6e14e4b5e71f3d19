"""
Role capabilities and DRF permission classes.

Every role-dependent decision goes through :data:`CAPABILITIES`: the
module gating exposed to the UI (``GET /api/me``), the permission
classes guarding the API and the recipient selection of the
critical-value monitor.
"""
from __future__ import annotations

import enum
from typing import FrozenSet, Iterable, List

from rest_framework.permissions import BasePermission, SAFE_METHODS


class Role(str, enum.Enum):
    ADMIN = 'admin'
    TRAINER = 'trainer'
    PHYSIOTHERAPIST = 'physiotherapist'
    PHYSICIAN = 'physician'

    @classmethod
    def of(cls, user) -> "Role | None":
        try:
            return cls(getattr(user, 'role', None))
        except ValueError:
            return None


# Modules visible in the navigation
MODULE_DASHBOARD = 'module.dashboard'
MODULE_PLAYERS = 'module.players'
MODULE_ATHLETICS = 'module.athletics'
MODULE_PHYSIO = 'module.physio'
MODULE_MEDICAL = 'module.medical'
MODULE_OCR = 'module.ocr'
MODULE_APPOINTMENTS = 'module.appointments'
MODULE_NOTIFICATIONS = 'module.notifications'

# Alert classes routed by the critical-value monitor
ALERT_LOW_RSI = 'alerts.low_rsi'
ALERT_HIGH_PAIN = 'alerts.high_pain'
ALERT_APPOINTMENT_OVERDUE = 'alerts.appointment_overdue'

# Operations
MONITOR_RUN = 'monitor.run'
PLAYERS_MANAGE = 'players.manage'

_ALL_STAFF_MODULES = frozenset({
    MODULE_DASHBOARD,
    MODULE_PLAYERS,
    MODULE_OCR,
    MODULE_APPOINTMENTS,
    MODULE_NOTIFICATIONS,
})

CAPABILITIES: dict[Role, FrozenSet[str]] = {
    Role.ADMIN: _ALL_STAFF_MODULES | {
        MODULE_ATHLETICS,
        MODULE_PHYSIO,
        MODULE_MEDICAL,
        ALERT_LOW_RSI,
        ALERT_HIGH_PAIN,
        ALERT_APPOINTMENT_OVERDUE,
        MONITOR_RUN,
        PLAYERS_MANAGE,
    },
    Role.TRAINER: _ALL_STAFF_MODULES | {MODULE_ATHLETICS, ALERT_LOW_RSI},
    Role.PHYSIOTHERAPIST: _ALL_STAFF_MODULES | {MODULE_PHYSIO, ALERT_HIGH_PAIN},
    Role.PHYSICIAN: _ALL_STAFF_MODULES | {MODULE_MEDICAL},
}

# Tables a role may stream over the change feed, keyed by db_table
TABLE_CAPABILITY = {
    'players': MODULE_PLAYERS,
    'cmj_tests': MODULE_ATHLETICS,
    'performance_assessments': MODULE_ATHLETICS,
    'physio_assessments': MODULE_PHYSIO,
    'physio_documentation': MODULE_PHYSIO,
    'medical_treatments': MODULE_MEDICAL,
    'medical_documents': MODULE_MEDICAL,
    'appointments': MODULE_APPOINTMENTS,
    'ocr_jobs': MODULE_OCR,
    'notifications': MODULE_NOTIFICATIONS,
}


def capabilities_for(user) -> FrozenSet[str]:
    role = Role.of(user)
    if role is None:
        return frozenset()
    return CAPABILITIES[role]


def has_capability(user, capability: str) -> bool:
    if not (user and getattr(user, 'is_authenticated', False)):
        return False
    return capability in capabilities_for(user)


def roles_with_capability(capability: str) -> List[str]:
    return [role.value for role, caps in CAPABILITIES.items() if capability in caps]


def require_any(user, capabilities: Iterable[str]) -> None:
    """Raise ``PermissionError`` unless ``user`` holds one of ``capabilities``."""
    if not any(has_capability(user, c) for c in capabilities):
        raise PermissionError('missing capability: ' + ' | '.join(capabilities))


def require_capability(capability: str, *, write_capability: str | None = None):
    """Build a permission class gating a view on a capability.

    ``write_capability`` additionally guards unsafe methods, e.g. every
    role may list players but only admins may change them.
    """

    class _HasCapability(BasePermission):
        message = f'capability {capability} required'

        def has_permission(self, request, view) -> bool:  # type: ignore[override]
            user = getattr(request, 'user', None)
            if not has_capability(user, capability):
                return False
            if write_capability and request.method not in SAFE_METHODS:
                return has_capability(user, write_capability)
            return True

    _HasCapability.__name__ = 'Has_' + capability.replace('.', '_')
    return _HasCapability


class IsAdminRole(BasePermission):
    """Allow access only to users with the admin role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, 'user', None)
        return bool(user and user.is_authenticated and getattr(user, 'role', None) == Role.ADMIN.value)
