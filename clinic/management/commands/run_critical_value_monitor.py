from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError

from clinic.services.monitor import run_critical_value_monitor


class Command(BaseCommand):
    help = "Run every critical-value rule once and notify the responsible staff (for cron/systemd timers)."

    def handle(self, *args, **options):
        try:
            report = run_critical_value_monitor()
        except ImproperlyConfigured as e:
            raise CommandError(str(e))

        for r in report.results:
            line = f"{r.rule}: {r.breaches} breaches, {r.notified_rows} rows notified, {r.notifications_created} notifications"
            if r.ok:
                self.stdout.write(line)
            else:
                self.stderr.write(self.style.ERROR(f"{line} (error: {r.error})"))
        self.stdout.write(self.style.SUCCESS(
            f"Critical values monitoring completed: {report.notifications_created} notifications at {report.finished_at}"
        ))
