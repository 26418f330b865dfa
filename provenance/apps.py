# provenance/apps.py

from django.apps import AppConfig


class ProvenanceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "provenance"
    verbose_name = "Labware provenance"

    def ready(self):
        # Audit receivers
        from . import signals  # noqa
