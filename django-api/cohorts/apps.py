"""Django app configuration for cohorts."""

from django.apps import AppConfig


class CohortsConfig(AppConfig):
    """App configuration for workshop cohorts."""

    name = "cohorts"
    verbose_name = "Workshop Cohorts"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self) -> None:
        from cohorts import signals  # noqa: F401
