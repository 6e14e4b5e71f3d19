"""
Dashboard figures.

Counts are scoped by the caller's capabilities: trainers see the
athletics figures, physiotherapists the physio figures, admins both.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from django.utils import timezone

from clinic.models import Appointment, CMJTest, Notification, PerformanceAssessment, PhysioAssessment, Player
from clinic.permissions import MODULE_ATHLETICS, MODULE_PHYSIO, has_capability

CRITICAL_RISK_SCORE = 7.0
RECENT_PER_SOURCE = 3
RECENT_LIMIT = 5


def dashboard_stats(user, today: Optional[date] = None) -> dict:
    today = today or timezone.localdate()
    week_ago = today - timedelta(days=7)

    stats = {
        'totalPlayers': Player.objects.filter(is_active=True).count(),
        'todayAppointments': Appointment.objects.filter(
            appointment_date__date=today, status='scheduled'
        ).count(),
        'pendingAssessments': 0,
        'thisWeekTests': 0,
        'criticalRiskPlayers': 0,
        'unreadNotifications': Notification.objects.filter(recipient=user, is_read=False).count(),
    }
    if has_capability(user, MODULE_PHYSIO):
        stats['pendingAssessments'] = PhysioAssessment.objects.filter(date_of_assessment__gte=week_ago).count()
    if has_capability(user, MODULE_ATHLETICS):
        stats['thisWeekTests'] = CMJTest.objects.filter(test_date__gte=week_ago).count()
        stats['criticalRiskPlayers'] = PerformanceAssessment.objects.filter(
            risk_score__gte=CRITICAL_RISK_SCORE
        ).count()
    return stats


def recent_activities(user, limit: int = RECENT_LIMIT) -> list[dict]:
    activities: list[dict] = []
    if has_capability(user, MODULE_ATHLETICS):
        for test in CMJTest.objects.select_related('player').order_by('-test_date', '-id')[:RECENT_PER_SOURCE]:
            height = test.jump_height_cm if test.jump_height_cm is not None else 'N/A'
            activities.append({
                'id': f'cmj-{test.id}',
                'type': 'CMJ Test',
                'description': f'CMJ Test durchgeführt ({height}cm)',
                'timestamp': test.test_date.isoformat(),
                'playerName': test.player.full_name,
            })
    if has_capability(user, MODULE_PHYSIO):
        qs = PhysioAssessment.objects.select_related('player').order_by('-date_of_assessment', '-id')
        for assessment in qs[:RECENT_PER_SOURCE]:
            activities.append({
                'id': f'physio-{assessment.id}',
                'type': 'Physiotherapie',
                'description': assessment.diagnosis or 'Eingangsbefund erstellt',
                'timestamp': assessment.date_of_assessment.isoformat(),
                'playerName': assessment.player.full_name,
            })
    activities.sort(key=lambda a: a['timestamp'], reverse=True)
    return activities[:limit]
