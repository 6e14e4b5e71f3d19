from django.apps import AppConfig


class ClinicConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic"
    verbose_name = "Clinic"

    def ready(self) -> None:
        # Registers the post_save/post_delete receivers feeding the change feed.
        from . import signals  # noqa: F401
