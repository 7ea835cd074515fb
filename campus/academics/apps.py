from django.apps import AppConfig


class AcademicsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'campus.academics'
    label = 'academics'
    verbose_name = 'Academics'

    def ready(self):
        # Registers the ownership rule of every entity below
        from . import ownership  # noqa: F401
