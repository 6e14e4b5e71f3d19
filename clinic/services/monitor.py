"""
Critical-value monitor.

One run evaluates three independent threshold rules in sequence and
emits one alert per breaching row per alert type, fanned out to the
staff whose role holds the matching alert capability.  The monitor is
stateless: "already notified" is answered by the notifications table
itself.  Runs are triggered externally (management command or HTTP
endpoint); nothing here schedules itself.

The dedup check is read-then-insert and not atomic, so two overlapping
runs can both insert for the same row.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

import structlog
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError
from django.utils import timezone

from clinic.models import Appointment, CMJTest, PhysioAssessment
from clinic.permissions import (
    ALERT_APPOINTMENT_OVERDUE,
    ALERT_HIGH_PAIN,
    ALERT_LOW_RSI,
    roles_with_capability,
)
from clinic.services.audit import log_action
from clinic.services.notifications import already_notified, notify_many

User = get_user_model()
logger = structlog.get_logger(__name__)

CRITICAL_VALUE = 'critical_value'
APPOINTMENT_OVERDUE = 'appointment_overdue'

_REQUIRED_KEYS = ('RSI_THRESHOLD', 'PAIN_THRESHOLD', 'OVERDUE_HOURS')


@dataclass(frozen=True)
class Thresholds:
    rsi: float
    pain: int
    overdue_hours: int


@dataclass
class RuleResult:
    rule: str
    breaches: int = 0
    notified_rows: int = 0
    notifications_created: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class MonitorReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    results: List[RuleResult] = field(default_factory=list)

    @property
    def notifications_created(self) -> int:
        return sum(r.notifications_created for r in self.results)

    def to_dict(self) -> dict:
        return {
            'startedAt': self.started_at.isoformat(),
            'finishedAt': self.finished_at.isoformat() if self.finished_at else None,
            'notificationsCreated': self.notifications_created,
            'rules': [asdict(r) for r in self.results],
        }


def load_thresholds() -> Thresholds:
    cfg = getattr(settings, 'CRITICAL_VALUES', None)
    if not cfg:
        raise ImproperlyConfigured('CRITICAL_VALUES configuration missing')
    missing = [k for k in _REQUIRED_KEYS if cfg.get(k) is None]
    if missing:
        raise ImproperlyConfigured(f"CRITICAL_VALUES missing {', '.join(missing)}")
    return Thresholds(
        rsi=float(cfg['RSI_THRESHOLD']),
        pain=int(cfg['PAIN_THRESHOLD']),
        overdue_hours=int(cfg['OVERDUE_HOURS']),
    )


def staff_for(capability: str):
    """Active staff whose role carries ``capability``."""
    return User.objects.filter(role__in=roles_with_capability(capability), is_active=True).order_by('id')


def _num(value) -> str:
    return f"{float(value):g}"


def _fan_out(recipients: Iterable[User], **kwargs) -> int:
    return len(notify_many(recipients, **kwargs))


def check_low_rsi(thresholds: Thresholds, now: datetime) -> RuleResult:
    result = RuleResult(rule='low_rsi')
    table = CMJTest._meta.db_table
    for test in CMJTest.objects.select_related('player').filter(rsi_score__lt=thresholds.rsi).order_by('id'):
        result.breaches += 1
        if already_notified(table, test.id, CRITICAL_VALUE):
            continue
        name = test.player.full_name
        result.notifications_created += _fan_out(
            staff_for(ALERT_LOW_RSI),
            notification_type=CRITICAL_VALUE,
            title='Kritischer RSI-Score erkannt',
            message=f"{name}: RSI-Score von {_num(test.rsi_score)} liegt unter dem kritischen Wert von {_num(thresholds.rsi)}",
            priority='high',
            action_required=True,
            related_table=table,
            related_id=test.id,
            metadata={
                'player_name': name,
                'rsi_score': float(test.rsi_score),
                'test_date': test.test_date.isoformat(),
            },
        )
        result.notified_rows += 1
    return result


def check_high_pain(thresholds: Thresholds, now: datetime) -> RuleResult:
    result = RuleResult(rule='high_pain')
    table = PhysioAssessment._meta.db_table
    qs = PhysioAssessment.objects.select_related('player').filter(pain_intensity__gte=thresholds.pain).order_by('id')
    for assessment in qs:
        result.breaches += 1
        if already_notified(table, assessment.id, CRITICAL_VALUE):
            continue
        name = assessment.player.full_name
        result.notifications_created += _fan_out(
            staff_for(ALERT_HIGH_PAIN),
            notification_type=CRITICAL_VALUE,
            title='Hohe Schmerzintensität gemeldet',
            message=f"{name}: Schmerzintensität von {assessment.pain_intensity}/10 erfordert Aufmerksamkeit",
            priority='high',
            action_required=True,
            related_table=table,
            related_id=assessment.id,
            metadata={
                'player_name': name,
                'pain_intensity': assessment.pain_intensity,
                'assessment_date': assessment.date_of_assessment.isoformat(),
            },
        )
        result.notified_rows += 1
    return result


def check_overdue_appointments(thresholds: Thresholds, now: datetime) -> RuleResult:
    result = RuleResult(rule='overdue_appointments')
    table = Appointment._meta.db_table
    cutoff = now - timedelta(hours=thresholds.overdue_hours)
    qs = (Appointment.objects.select_related('player', 'staff')
          .filter(appointment_date__lt=cutoff, status='scheduled').order_by('id'))
    for appointment in qs:
        result.breaches += 1
        if already_notified(table, appointment.id, APPOINTMENT_OVERDUE):
            continue
        recipients: dict[int, User] = {}
        if appointment.staff is not None and appointment.staff.is_active:
            recipients[appointment.staff.id] = appointment.staff
        for admin in staff_for(ALERT_APPOINTMENT_OVERDUE):
            recipients.setdefault(admin.id, admin)
        name = appointment.player.full_name
        result.notifications_created += _fan_out(
            recipients.values(),
            notification_type=APPOINTMENT_OVERDUE,
            title='Überfälliger Termin',
            message=f"Termin mit {name} ist seit mehr als {thresholds.overdue_hours} Stunden überfällig",
            priority='medium',
            action_required=True,
            related_table=table,
            related_id=appointment.id,
            metadata={
                'player_name': name,
                'appointment_date': appointment.appointment_date.isoformat(),
                'appointment_type': appointment.appointment_type,
            },
        )
        result.notified_rows += 1
    return result


RULES: tuple[Callable[[Thresholds, datetime], RuleResult], ...] = (
    check_low_rsi,
    check_high_pain,
    check_overdue_appointments,
)


def _run_rule(rule: Callable[[Thresholds, datetime], RuleResult], thresholds: Thresholds, now: datetime) -> RuleResult:
    name = rule.__name__.replace('check_', '')
    try:
        result = rule(thresholds, now)
    except DatabaseError as e:
        logger.exception("monitor_rule_failed", rule=name, error=str(e))
        return RuleResult(rule=name, error=str(e))
    logger.info("monitor_rule_done", rule=result.rule, breaches=result.breaches,
                notified_rows=result.notified_rows, created=result.notifications_created)
    return result


def run_critical_value_monitor(now: Optional[datetime] = None) -> MonitorReport:
    """Evaluate every rule once.

    Raises ``ImproperlyConfigured`` before any rule runs when thresholds
    are missing.  A store failure inside one rule is recorded in that
    rule's result and the remaining rules still run.  Notifications
    already written are never rolled back.
    """
    thresholds = load_thresholds()
    now = now or timezone.now()
    report = MonitorReport(started_at=timezone.now())
    logger.info("monitor_started", rsi=thresholds.rsi, pain=thresholds.pain, overdue_hours=thresholds.overdue_hours)
    for rule in RULES:
        report.results.append(_run_rule(rule, thresholds, now))
    report.finished_at = timezone.now()
    log_action(user=None, action='monitor_run', object_type='monitor', object_id=None,
               detail={'created': report.notifications_created,
                       'failedRules': [r.rule for r in report.results if not r.ok]})
    logger.info("monitor_completed", created=report.notifications_created)
    return report
