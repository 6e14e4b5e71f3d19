# clinic/management/commands/ensure_test_users.py
from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from clinic.models import User

TEST_SET = [
    ("admin1", "admin", "Vereinsadministration"),
    ("trainer1", "trainer", "Athletiktrainer"),
    ("physio1", "physiotherapist", "Physiotherapie"),
    ("arzt1", "physician", "Mannschaftsarzt"),
]

class Command(BaseCommand):
    help = "Ensure one staff account per role exists with password=123456 (idempotent)."

    def handle(self, *args, **opts):
        for username, role, full_name in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"role": role, "full_name": full_name, "password": make_password("123456"), "is_active": True},
            )
            if not created:
                # reset password, role and active flag
                u.password = make_password("123456")
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
